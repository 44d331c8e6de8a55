"""Page view repository."""

from datetime import datetime

from folio.models.base import to_iso
from folio.models.page_view import PageView
from folio.repositories.base import BaseRepository


class PageViewRepository(BaseRepository[PageView]):
    """Repository for PageView entities."""

    def __init__(self, table):
        super().__init__(PageView, table)

    def add_many(self, page_views: list[PageView]) -> None:
        """Append a batch of page views."""
        self.batch_write(page_views)

    def list_for_session(self, session_id: str, limit: int = 100) -> list[PageView]:
        """List a session's page views in navigation order."""
        page_views, _ = self.query(
            pk=f"SESSION#{session_id}",
            sk_begins_with="PAGEVIEW#",
            limit=limit,
        )
        return page_views

    def list_created_between(
        self,
        start: datetime,
        end: datetime,
        max_items: int,
    ) -> tuple[list[PageView], bool]:
        """List page views across all sessions created within [start, end].

        Returns:
            Tuple of (page_views, truncated).
        """
        return self.query_all(
            pk="PAGEVIEWS",
            index_name="GSI1",
            sk_between=(to_iso(start), f"{to_iso(end)}~"),
            max_items=max_items,
        )
