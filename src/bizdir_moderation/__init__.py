"""Content moderation workflow and reputation-gated permissions for the business directory."""

__version__ = "0.1.0"
