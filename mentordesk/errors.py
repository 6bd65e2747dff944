"""Exception types raised by MentorDesk."""


class MentordeskError(Exception):
    """Base class for all MentorDesk errors."""


class ValidationError(MentordeskError):
    """Raised when a mutation receives malformed input."""


class NotFoundError(MentordeskError):
    """Raised when an operation references an unknown record."""
