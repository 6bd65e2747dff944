"""Persistence layer for MentorDesk."""

from mentordesk.db.port import ChangeEvent, DataAccessPort, LocalDataAccess
from mentordesk.db.store import DataStore

__all__ = ["ChangeEvent", "DataAccessPort", "LocalDataAccess", "DataStore"]
