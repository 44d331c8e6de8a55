"""Page view model.

DynamoDB keys:
    PK: SESSION#{session_id}
    SK: PAGEVIEW#{created_at}#{id}
    GSI1PK: PAGEVIEWS
    GSI1SK: {created_at}#{id}
"""


from pydantic import Field

from folio.models.base import BaseModel, to_iso


class PageView(BaseModel):
    """A single navigation within a session. Append-only."""

    session_id: str = Field(..., min_length=1)
    page_path: str = Field(..., min_length=1)
    title: str | None = Field(None, max_length=500)
    referrer: str | None = Field(None, max_length=2000)

    def get_pk(self) -> str:
        """Get partition key: SESSION#{session_id}."""
        return f"SESSION#{self.session_id}"

    def get_sk(self) -> str:
        """Get sort key: PAGEVIEW#{created_at}#{id}."""
        return f"PAGEVIEW#{to_iso(self.created_at)}#{self.id}"

    def get_gsi_keys(self) -> dict[str, str]:
        """Get GSI1 keys for time-range page view queries."""
        return {
            "GSI1PK": "PAGEVIEWS",
            "GSI1SK": f"{to_iso(self.created_at)}#{self.id}",
        }
