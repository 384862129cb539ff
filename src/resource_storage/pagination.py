"""Full-prefix listing over a paged gateway."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from resource_storage.errors import StorageUnavailableError

if TYPE_CHECKING:
    from resource_storage.gateway import ObjectStoreGateway
    from resource_storage.models import ObjectSummary

logger = logging.getLogger(__name__)


class ListingPaginator:
    """Collects every object under a prefix by following continuation tokens.

    The result is a materialized list, in the order the backend returned
    the pages. It is not a consistent snapshot: objects written or deleted
    during the scan may be seen or missed.
    """

    def __init__(self, gateway: ObjectStoreGateway) -> None:
        self._gateway = gateway

    def list_all(self, prefix: str) -> list[ObjectSummary]:
        """List all objects whose keys start with ``prefix``.

        Returns:
            Every summary across all pages; empty if nothing matches.

        Raises:
            StorageUnavailableError: If a page request fails or the backend
                repeats a continuation token.
        """
        summaries: list[ObjectSummary] = []
        token: str | None = None
        pages = 0

        while True:
            page = self._gateway.list_page(prefix, token)
            pages += 1
            summaries.extend(page.summaries)

            if page.next_token is None:
                break
            if page.next_token == token:
                logger.error(
                    "Listing did not advance: backend=%s prefix=%s pages=%d",
                    self._gateway.backend_name,
                    prefix,
                    pages,
                )
                raise StorageUnavailableError(
                    message="Listing did not advance: continuation token repeated",
                    key=prefix,
                )
            token = page.next_token

        logger.debug("Listed prefix=%s objects=%d pages=%d", prefix, len(summaries), pages)
        return summaries
