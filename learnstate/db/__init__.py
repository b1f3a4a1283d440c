"""SQLAlchemy persistence for mastery records."""

from learnstate.db.database import create_engine_for, init_db, make_session_factory, session_scope
from learnstate.db.mastery_backend import SqlMasteryBackend
from learnstate.db.models import Base, MasteryRecordRow

__all__ = [
    "Base",
    "MasteryRecordRow",
    "SqlMasteryBackend",
    "create_engine_for",
    "init_db",
    "make_session_factory",
    "session_scope",
]
