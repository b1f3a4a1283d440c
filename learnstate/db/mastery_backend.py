"""SQLAlchemy implementation of the MasteryBackend contract."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.engine import Engine

from learnstate.core.errors import AlreadyExists, NotFound
from learnstate.core.mastery import MasteryRecord, ensure_utc
from learnstate.db.database import create_engine_for, init_db, make_session_factory, session_scope
from learnstate.db.models import MasteryRecordRow


def _to_record(row: MasteryRecordRow) -> MasteryRecord:
    return MasteryRecord(
        user_id=row.user_id,
        concept_id=row.concept_id,
        mastery_level=row.mastery_level,
        learned_at=ensure_utc(row.learned_at),
        last_reviewed_at=ensure_utc(row.last_reviewed_at),
        review_count=row.review_count,
    )


class SqlMasteryBackend:
    """Mastery records stored in the ``mastery_records`` table."""

    def __init__(self, engine: Engine, create_tables: bool = True):
        self.engine = engine
        self._factory = make_session_factory(engine)
        if create_tables:
            init_db(engine)

    @classmethod
    def from_url(cls, database_url: str, echo: bool = False) -> SqlMasteryBackend:
        return cls(create_engine_for(database_url, echo=echo))

    def load(self, user_id: str, concept_id: str) -> MasteryRecord | None:
        with session_scope(self._factory) as session:
            row = session.get(MasteryRecordRow, (user_id, concept_id))
            return _to_record(row) if row is not None else None

    def insert(self, record: MasteryRecord) -> None:
        with session_scope(self._factory) as session:
            if session.get(MasteryRecordRow, (record.user_id, record.concept_id)) is not None:
                raise AlreadyExists(record.user_id, record.concept_id)
            session.add(
                MasteryRecordRow(
                    user_id=record.user_id,
                    concept_id=record.concept_id,
                    mastery_level=record.mastery_level,
                    learned_at=ensure_utc(record.learned_at),
                    last_reviewed_at=ensure_utc(record.last_reviewed_at),
                    review_count=record.review_count,
                )
            )

    def update(self, record: MasteryRecord) -> None:
        with session_scope(self._factory) as session:
            row = session.get(MasteryRecordRow, (record.user_id, record.concept_id))
            if row is None:
                raise NotFound(record.user_id, record.concept_id)
            row.mastery_level = record.mastery_level
            row.last_reviewed_at = ensure_utc(record.last_reviewed_at)
            row.review_count = record.review_count

    def list_for_user(self, user_id: str) -> list[MasteryRecord]:
        with session_scope(self._factory) as session:
            rows = session.scalars(
                select(MasteryRecordRow)
                .where(MasteryRecordRow.user_id == user_id)
                .order_by(MasteryRecordRow.concept_id)
            ).all()
            return [_to_record(row) for row in rows]
