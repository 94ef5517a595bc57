"""Account service package."""

from recipe_portal.services.accounts.service import AccountService


__all__ = ["AccountService"]
