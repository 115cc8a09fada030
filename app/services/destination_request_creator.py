"""
Fan-out of a source request into one destination request per configured
destination.
"""

from __future__ import annotations

import copy

from db.models.destination_request import DestinationRequest
from db.models.source_request import SourceRequest


class DestinationRequestCreator:
    """
    Builds destination requests in memory; persisting them is the caller's
    job. Creation order across destinations carries no meaning.
    """

    def create(self, source_request: SourceRequest) -> list[DestinationRequest]:
        created: list[DestinationRequest] = []
        for destination in source_request.source.destinations:
            destination_request = DestinationRequest(
                destination=destination,
                source_request=source_request,
                data=copy.deepcopy(source_request.data),
            )
            if destination_request not in source_request.destination_requests:
                source_request.destination_requests.append(destination_request)
            created.append(destination_request)
        return created
