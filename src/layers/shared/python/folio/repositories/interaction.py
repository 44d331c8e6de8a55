"""Interaction event repository."""

from datetime import datetime

from boto3.dynamodb.conditions import Attr

from folio.models.base import to_iso
from folio.models.interaction import InteractionEvent
from folio.repositories.base import BaseRepository


class InteractionRepository(BaseRepository[InteractionEvent]):
    """Repository for raw interaction events.

    Events are partitioned by page path and sorted by type then time, so a
    single query returns one page's events of one type within a date range.
    """

    def __init__(self, table):
        super().__init__(InteractionEvent, table)

    def add_many(self, events: list[InteractionEvent]) -> None:
        """Append a batch of events."""
        self.batch_write(events)

    def list_for_page(
        self,
        page_path: str,
        event_type: str,
        max_items: int,
        start: datetime | None = None,
        end: datetime | None = None,
        device_type: str | None = None,
        required_attributes: tuple[str, ...] = (),
    ) -> tuple[list[InteractionEvent], bool]:
        """List one page's events of one type.

        Args:
            page_path: Page path.
            event_type: Event type.
            max_items: Row cap.
            start: Optional inclusive lower bound on created_at.
            end: Optional inclusive upper bound on created_at.
            device_type: Optional device filter.
            required_attributes: Attributes that must be present on a row.

        Returns:
            Tuple of (events, truncated).
        """
        prefix = f"EVENT#{event_type}#"
        low = prefix + (to_iso(start) if start else "")
        high = prefix + (to_iso(end) if end else "") + "~"

        filter_condition = None
        for attribute in required_attributes:
            condition = Attr(attribute).exists()
            filter_condition = condition if filter_condition is None else filter_condition & condition
        if device_type:
            condition = Attr("device_type").eq(device_type)
            filter_condition = condition if filter_condition is None else filter_condition & condition

        return self.query_all(
            pk=f"PAGE#{page_path}",
            sk_between=(low, high),
            max_items=max_items,
            filter_condition=filter_condition,
        )

    def list_recent(self, limit: int) -> list[InteractionEvent]:
        """List the most recent events across all pages."""
        events, _ = self.query_all(
            pk="EVENTS",
            index_name="GSI1",
            max_items=limit,
            scan_forward=False,
        )
        return events
