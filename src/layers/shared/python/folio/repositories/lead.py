"""Lead repository for DynamoDB operations."""

import structlog
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from folio.models.base import to_iso, utc_now
from folio.models.lead import Lead
from folio.repositories.base import BaseRepository, is_conditional_check_failure

logger = structlog.get_logger()

# Upper bound on rows read when computing lead statistics
MAX_LEADS_SCANNED = 10000


class LeadRepository(BaseRepository[Lead]):
    """Repository for Lead entities.

    Leads are keyed by lower-cased email, which makes the email unique.
    """

    def __init__(self, table):
        """Initialize lead repository."""
        super().__init__(Lead, table)

    def get_by_email(self, email: str) -> Lead | None:
        """Get a lead by email address.

        Args:
            email: The email address (any case).

        Returns:
            Lead or None if not found.
        """
        return self.get(pk=f"LEAD#{email.strip().lower()}", sk="META")

    def get_by_id(self, lead_id: str) -> Lead | None:
        """Get a lead by ID using GSI2.

        Args:
            lead_id: The lead ID.

        Returns:
            Lead or None if not found.
        """
        items, _ = self.query(
            pk="LEAD#ID",
            sk_begins_with=lead_id,
            index_name="GSI2",
            limit=1,
        )
        if items and items[0].id == lead_id:
            return items[0]
        return None

    def create_lead(self, lead: Lead) -> Lead:
        """Create a new lead.

        Raises:
            ConflictError: If a lead with the same email exists.
        """
        return self.create(lead)

    def relink(
        self,
        email: str,
        session_id: str | None,
        source_page: str | None,
    ) -> Lead | None:
        """Update session linkage and source page of an existing lead.

        Score and behavioral snapshot are left untouched.

        Returns:
            The updated lead, or None if it does not exist.
        """
        set_parts = ["updated_at = :now"]
        values: dict = {":now": to_iso(utc_now())}
        if session_id:
            set_parts.append("session_id = :sid")
            values[":sid"] = session_id
        if source_page:
            set_parts.append("source_page = :page")
            values[":page"] = source_page

        try:
            response = self.table.update_item(
                Key={"PK": f"LEAD#{email.strip().lower()}", "SK": "META"},
                UpdateExpression=f"SET {', '.join(set_parts)}",
                ConditionExpression="attribute_exists(PK)",
                ExpressionAttributeValues=values,
                ReturnValues="ALL_NEW",
            )
        except ClientError as e:
            if is_conditional_check_failure(e):
                return None
            logger.error("Lead relink failed", error=str(e))
            raise

        return Lead.from_dynamodb(response["Attributes"])

    def list_leads(
        self,
        status: str | None = None,
        classification: str | None = None,
        limit: int = 50,
        last_key: dict | None = None,
    ) -> tuple[list[Lead], dict | None]:
        """List leads newest first.

        Args:
            status: Optional status filter.
            classification: Optional classification filter.
            limit: Maximum leads to evaluate.
            last_key: Pagination cursor.

        Returns:
            Tuple of (leads, next_page_key).
        """
        filter_condition = None
        if status:
            filter_condition = Attr("status").eq(status)
        if classification:
            condition = Attr("ai_classification").eq(classification)
            filter_condition = condition if filter_condition is None else filter_condition & condition

        return self.query(
            pk="LEADS",
            index_name="GSI1",
            limit=limit,
            scan_forward=False,
            filter_condition=filter_condition,
            last_key=last_key,
        )

    def list_all(self) -> tuple[list[Lead], bool]:
        """List every lead up to the scan cap, newest first."""
        return self.query_all(
            pk="LEADS",
            index_name="GSI1",
            max_items=MAX_LEADS_SCANNED,
            scan_forward=False,
        )
