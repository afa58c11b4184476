"""HTTP adapter for the moderation services."""
