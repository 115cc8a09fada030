"""
Read-only lookups over source configuration.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from db.models.source import Source


class SourceRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def find_by_identifier(self, identifier: str) -> Source | None:
        stmt = (
            select(Source)
            .where(Source.identifier == identifier)
            .options(selectinload(Source.destinations))
        )
        return self._session.scalars(stmt).one_or_none()
