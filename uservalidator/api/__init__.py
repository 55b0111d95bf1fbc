"""Flask integration for the user request validator."""
