"""Repository for site settings stored as one item per key."""

from typing import Any

import structlog
from boto3.dynamodb.conditions import Key

from folio.models.base import to_iso, utc_now
from folio.models.settings import SiteSettings

logger = structlog.get_logger()


class SettingsRepository:
    """Repository for SiteSettings key/value items."""

    def __init__(self, table):
        self.table = table

    def load_pairs(self) -> dict[str, Any]:
        """Read every stored setting as raw key/value pairs."""
        pairs: dict[str, Any] = {}
        kwargs: dict[str, Any] = {
            "KeyConditionExpression": Key("PK").eq("SETTINGS") & Key("SK").begins_with("KEY#"),
        }
        while True:
            response = self.table.query(**kwargs)
            for item in response.get("Items", []):
                pairs[item["SK"][len("KEY#"):]] = item.get("value")
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return pairs
            kwargs["ExclusiveStartKey"] = last_key

    def load(self) -> SiteSettings:
        """Load settings merged over their defaults.

        Stored keys outside the allow-list are ignored.
        """
        return SiteSettings.from_pairs(self.load_pairs())

    def save(self, values: dict[str, Any]) -> None:
        """Write validated settings, one item per field name.

        Args:
            values: Mapping of SiteSettings field names to values.
        """
        now = to_iso(utc_now())
        with self.table.batch_writer() as batch:
            for key, value in values.items():
                batch.put_item(
                    Item={
                        "PK": "SETTINGS",
                        "SK": f"KEY#{key}",
                        "value": value,
                        "updated_at": now,
                    }
                )
        logger.info("Site settings saved", keys=sorted(values))
