"""Core application components: configuration, errors and lifecycle."""
