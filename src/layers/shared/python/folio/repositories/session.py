"""Session repository.

Session counters are maintained with atomic UpdateItem calls so that
concurrent ingestion invocations never lose increments, and maxima only
ever move upwards.
"""

from datetime import datetime

import structlog
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from folio.models.base import to_iso, utc_now
from folio.models.session import TrackedSession
from folio.repositories.base import BaseRepository, is_conditional_check_failure
from folio.utils.exceptions import ConflictError

logger = structlog.get_logger()


class SessionRepository(BaseRepository[TrackedSession]):
    """Repository for TrackedSession entities."""

    def __init__(self, table):
        super().__init__(TrackedSession, table)

    @staticmethod
    def _key(session_id: str) -> dict[str, str]:
        return {"PK": f"SESSION#{session_id}", "SK": "META"}

    def get_by_id(self, session_id: str) -> TrackedSession | None:
        """Get a session by its client-generated ID."""
        return self.get(pk=f"SESSION#{session_id}", sk="META")

    def create_if_absent(self, session: TrackedSession) -> bool:
        """Insert a session unless one with the same ID already exists.

        The first writer wins; later duplicates are no-ops.

        Returns:
            True if the session was created, False if it already existed.
        """
        try:
            self.create(session)
            return True
        except ConflictError:
            logger.debug("Duplicate session start ignored", session_id=session.session_id)
            return False

    def _claim_entry_page(self, session_id: str) -> bool:
        """Flag the session's entry page view as recorded.

        Returns True only for the caller that flips the flag, so the entry
        page view is never counted on top of the initial page_count of 1.
        """
        try:
            self.table.update_item(
                Key=self._key(session_id),
                UpdateExpression="SET entry_recorded = :true",
                ConditionExpression="attribute_exists(PK) AND entry_recorded = :false",
                ExpressionAttributeValues={":true": True, ":false": False},
            )
            return True
        except ClientError as e:
            if is_conditional_check_failure(e):
                return False
            raise

    def _raise_to(self, session_id: str, attribute: str, value: int) -> None:
        """Set a numeric attribute only if the new value is larger."""
        try:
            self.table.update_item(
                Key=self._key(session_id),
                UpdateExpression="SET #attr = :value",
                ConditionExpression="attribute_exists(PK) AND (attribute_not_exists(#attr) OR #attr < :value)",
                ExpressionAttributeNames={"#attr": attribute},
                ExpressionAttributeValues={":value": value},
            )
        except ClientError as e:
            if not is_conditional_check_failure(e):
                raise

    def record_activity(
        self,
        session_id: str,
        activity_at: datetime,
        exit_page: str | None = None,
        page_views: int = 0,
        clicks: int = 0,
        rage_clicks: int = 0,
        events: int = 0,
        max_scroll_depth: int | None = None,
    ) -> bool:
        """Apply one batch worth of activity to a session.

        Args:
            session_id: Session to update.
            activity_at: Time the activity was received.
            exit_page: Last page path seen in the batch, if any.
            page_views: Number of page views in the batch.
            clicks: Number of click events (rage clicks included).
            rage_clicks: Number of rage click events.
            events: Number of interaction events.
            max_scroll_depth: Highest scroll depth seen in the batch.

        Returns:
            True if the session exists and was updated.
        """
        extra_pages = page_views
        if page_views and self._claim_entry_page(session_id):
            extra_pages -= 1

        now = to_iso(activity_at)
        set_parts = ["last_activity_at = :now", "updated_at = :now"]
        values: dict = {
            ":now": now,
            ":pages": extra_pages,
            ":clicks": clicks,
            ":rage": rage_clicks,
            ":events": events,
        }
        if exit_page:
            set_parts.append("exit_page = :exit")
            values[":exit"] = exit_page

        add_parts = [
            "page_count :pages",
            "click_count :clicks",
            "rage_click_count :rage",
            "event_count :events",
        ]

        try:
            response = self.table.update_item(
                Key=self._key(session_id),
                UpdateExpression=f"SET {', '.join(set_parts)} ADD {', '.join(add_parts)}",
                ConditionExpression="attribute_exists(PK)",
                ExpressionAttributeValues=values,
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            if is_conditional_check_failure(e):
                logger.debug("Activity for unknown session skipped", session_id=session_id)
                return False
            raise

        started_at = response["Attributes"].get("started_at")
        if started_at:
            elapsed = int((activity_at - datetime.fromisoformat(started_at)).total_seconds())
            if elapsed > 0:
                self._raise_to(session_id, "duration_seconds", elapsed)

        if max_scroll_depth is not None:
            self._raise_to(session_id, "max_scroll_depth", max(0, min(100, int(max_scroll_depth))))

        return True

    def mark_converted(self, session_id: str, conversion_type: str) -> bool:
        """Flag a session as converted. The flag is never cleared.

        Returns:
            True if the session exists.
        """
        try:
            self.table.update_item(
                Key=self._key(session_id),
                UpdateExpression=(
                    "SET converted = :true, "
                    "conversion_type = if_not_exists(conversion_type, :type), "
                    "updated_at = :now"
                ),
                ConditionExpression="attribute_exists(PK)",
                ExpressionAttributeValues={
                    ":true": True,
                    ":type": conversion_type,
                    ":now": to_iso(utc_now()),
                },
            )
            return True
        except ClientError as e:
            if is_conditional_check_failure(e):
                logger.info("Conversion for unknown session skipped", session_id=session_id)
                return False
            raise

    def close(self, session_id: str, ended_at: datetime) -> bool:
        """Set ended_at on a session that is still open.

        Returns:
            True if the session was closed by this call.
        """
        try:
            self.table.update_item(
                Key=self._key(session_id),
                UpdateExpression="SET ended_at = :ended, updated_at = :now",
                ConditionExpression="attribute_exists(PK) AND attribute_not_exists(ended_at)",
                ExpressionAttributeValues={
                    ":ended": to_iso(ended_at),
                    ":now": to_iso(utc_now()),
                },
            )
            return True
        except ClientError as e:
            if is_conditional_check_failure(e):
                return False
            raise

    def list_started_between(
        self,
        start: datetime,
        end: datetime,
        max_items: int,
    ) -> tuple[list[TrackedSession], bool]:
        """List sessions whose started_at falls within [start, end].

        Returns:
            Tuple of (sessions, truncated).
        """
        return self.query_all(
            pk="SESSIONS",
            index_name="GSI1",
            sk_between=(to_iso(start), f"{to_iso(end)}~"),
            max_items=max_items,
        )

    def list_recent(
        self,
        limit: int = 50,
        device_type: str | None = None,
        converted: bool | None = None,
        last_key: dict | None = None,
    ) -> tuple[list[TrackedSession], dict | None]:
        """List sessions newest first.

        Args:
            limit: Page size.
            device_type: Optional device filter.
            converted: Optional converted-flag filter.
            last_key: Pagination cursor.

        Returns:
            Tuple of (sessions, last_evaluated_key).
        """
        filter_condition = None
        if device_type:
            filter_condition = Attr("device_type").eq(device_type)
        if converted is not None:
            converted_condition = Attr("converted").eq(converted)
            filter_condition = (
                converted_condition if filter_condition is None else filter_condition & converted_condition
            )

        return self.query(
            pk="SESSIONS",
            index_name="GSI1",
            limit=limit,
            scan_forward=False,
            filter_condition=filter_condition,
            last_key=last_key,
        )

    def list_idle(self, cutoff: datetime, max_items: int = 1000) -> list[TrackedSession]:
        """List open sessions with no activity since cutoff."""
        cutoff_iso = to_iso(cutoff)
        sessions, _ = self.query_all(
            pk="SESSIONS",
            index_name="GSI1",
            sk_between=("0", cutoff_iso),
            max_items=max_items,
            filter_condition=Attr("ended_at").not_exists() & Attr("last_activity_at").lt(cutoff_iso),
        )
        return sessions
