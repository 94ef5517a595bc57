"""Enumeration types shared by entities, repositories and policies."""

from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    """Account roles."""

    REGULAR = "regular"
    ADMIN = "admin"


class Difficulty(StrEnum):
    """Recipe preparation difficulty."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
