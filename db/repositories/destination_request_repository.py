"""
Persistence for DestinationRequest rows.
"""

from __future__ import annotations

import uuid

from sqlalchemy.orm import Session

from db.models.destination_request import DestinationRequest


class DestinationRequestRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def find(self, destination_request_id: uuid.UUID) -> DestinationRequest | None:
        return self._session.get(DestinationRequest, destination_request_id)

    def save(self, destination_request: DestinationRequest) -> DestinationRequest:
        self._session.add(destination_request)
        self._session.flush()
        return destination_request
