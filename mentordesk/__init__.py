"""MentorDesk - trade journal, protocol rules and performance analytics."""

__version__ = "0.1.0"
