"""Failure classes raised inside the moderation layers.

Capability denial is not represented here: it is always a plain ``False``.
So are illegal transitions and unknown queue ids, which ``moderate`` reports
as ``False`` with a warning in the log.
"""


class ModerationError(Exception):
    """Base class for moderation failures."""


class InvalidContentType(ModerationError):
    """Content type has no registered handler."""


class PersistenceFailure(ModerationError):
    """Underlying store rejected a read or write."""
