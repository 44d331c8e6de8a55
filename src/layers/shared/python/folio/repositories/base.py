"""Shared DynamoDB access for tracking records."""

import os
from typing import Any, Generic, TypeVar

import boto3
import structlog
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

from folio.models.base import BaseModel
from folio.utils.exceptions import ConflictError

logger = structlog.get_logger()

T = TypeVar("T", bound=BaseModel)

# Key attribute names per index
_INDEX_KEYS = {
    None: ("PK", "SK"),
    "GSI1": ("GSI1PK", "GSI1SK"),
    "GSI2": ("GSI2PK", "GSI2SK"),
}


def get_table(table_name: str | None = None):
    """Build a DynamoDB Table handle.

    Called once per invocation by handlers; the handle is then passed to
    every repository the invocation needs.

    Args:
        table_name: DynamoDB table name. Defaults to TABLE_NAME env var.
    """
    name = table_name or os.environ.get("TABLE_NAME", "folio-dev")
    return boto3.resource("dynamodb").Table(name)


def is_conditional_check_failure(exc: ClientError) -> bool:
    """Return True if a ClientError is a failed condition expression."""
    return exc.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException"


class BaseRepository(Generic[T]):
    """Base repository for DynamoDB single-table design.

    Provides common CRUD operations with optimistic locking support.
    """

    def __init__(self, model_class: type[T], table):
        """Initialize repository.

        Args:
            model_class: The Pydantic model class for this repository.
            table: DynamoDB Table resource shared by the invocation.
        """
        self.model_class = model_class
        self.table = table

    def _to_item(self, item: T) -> dict[str, Any]:
        """Serialize a model with its primary and index keys."""
        db_item = item.to_dynamodb()
        db_item.update(item.get_keys())
        gsi_keys = item.get_gsi_keys()
        if gsi_keys:
            db_item.update(gsi_keys)
        return db_item

    def get(self, pk: str, sk: str) -> T | None:
        """Get a record by primary key, or None if absent."""
        try:
            item = self.table.get_item(Key={"PK": pk, "SK": sk}).get("Item")
        except ClientError as e:
            logger.error("DynamoDB get_item failed", error=str(e), pk=pk, sk=sk)
            raise

        return self.model_class.from_dynamodb(item) if item else None

    def create(self, item: T) -> T:
        """Insert a record whose primary key must not exist yet.

        Raises:
            ConflictError: If a record with the same key is already stored.
        """
        item.touch()
        db_item = self._to_item(item)
        try:
            self.table.put_item(Item=db_item, ConditionExpression="attribute_not_exists(PK)")
        except ClientError as e:
            if is_conditional_check_failure(e):
                raise ConflictError(f"{self.model_class.__name__} already exists")
            logger.error("DynamoDB put_item failed", error=str(e), pk=db_item["PK"])
            raise

        logger.debug("Record created", pk=db_item["PK"], sk=db_item["SK"], model=self.model_class.__name__)
        return item

    def update(self, item: T) -> T:
        """Replace a stored record, guarded by its version.

        Raises:
            ConflictError: If the record changed since it was read.
        """
        expected = item.version
        item.bump_version()
        item.touch()
        db_item = self._to_item(item)
        try:
            self.table.put_item(
                Item=db_item,
                ConditionExpression="version = :expected",
                ExpressionAttributeValues={":expected": expected},
            )
        except ClientError as e:
            if is_conditional_check_failure(e):
                raise ConflictError(f"{self.model_class.__name__} was modified concurrently")
            logger.error("DynamoDB update failed", error=str(e), pk=db_item["PK"])
            raise

        logger.debug("Record updated", pk=db_item["PK"], sk=db_item["SK"], version=item.version)
        return item

    def query(
        self,
        pk: str,
        sk_begins_with: str | None = None,
        sk_between: tuple[str, str] | None = None,
        index_name: str | None = None,
        limit: int | None = None,
        scan_forward: bool = True,
        filter_condition=None,
        last_key: dict | None = None,
    ) -> tuple[list[T], dict | None]:
        """Query one page of items by partition key.

        Args:
            pk: Partition key value (of the index, if index_name is set).
            sk_begins_with: Sort key prefix for begins_with condition.
            sk_between: Inclusive (low, high) sort key range.
            index_name: Optional GSI name (GSI1 or GSI2).
            limit: Maximum items to evaluate.
            scan_forward: Sort direction (True = ascending).
            filter_condition: Optional boto3 Attr condition.
            last_key: Last evaluated key for pagination.

        Returns:
            Tuple of (items, last_evaluated_key).
        """
        pk_name, sk_name = _INDEX_KEYS[index_name]

        key_condition = Key(pk_name).eq(pk)
        if sk_between:
            key_condition = key_condition & Key(sk_name).between(*sk_between)
        elif sk_begins_with:
            key_condition = key_condition & Key(sk_name).begins_with(sk_begins_with)

        kwargs: dict[str, Any] = {
            "KeyConditionExpression": key_condition,
            "ScanIndexForward": scan_forward,
        }
        if index_name:
            kwargs["IndexName"] = index_name
        if limit:
            kwargs["Limit"] = limit
        if filter_condition is not None:
            kwargs["FilterExpression"] = filter_condition
        if last_key:
            kwargs["ExclusiveStartKey"] = last_key

        try:
            response = self.table.query(**kwargs)
        except ClientError as e:
            logger.error("DynamoDB query failed", error=str(e), pk=pk, index=index_name)
            raise

        items = [self.model_class.from_dynamodb(item) for item in response.get("Items", [])]
        return items, response.get("LastEvaluatedKey")

    def query_all(
        self,
        pk: str,
        max_items: int,
        sk_begins_with: str | None = None,
        sk_between: tuple[str, str] | None = None,
        index_name: str | None = None,
        scan_forward: bool = True,
        filter_condition=None,
    ) -> tuple[list[T], bool]:
        """Query every page for a partition, stopping at max_items.

        Returns:
            Tuple of (items, truncated). truncated is True when more
            matching rows existed beyond the cap.
        """
        items: list[T] = []
        last_key = None

        while True:
            page, last_key = self.query(
                pk=pk,
                sk_begins_with=sk_begins_with,
                sk_between=sk_between,
                index_name=index_name,
                limit=max_items - len(items) if filter_condition is None else None,
                scan_forward=scan_forward,
                filter_condition=filter_condition,
                last_key=last_key,
            )
            items.extend(page)

            if len(items) >= max_items:
                truncated = len(items) > max_items or last_key is not None
                return items[:max_items], truncated
            if not last_key:
                return items, False

    def batch_write(self, items: list[T]) -> None:
        """Batch write multiple items.

        Args:
            items: List of model instances to save.
        """
        if not items:
            return

        try:
            with self.table.batch_writer() as batch:
                for item in items:
                    item.touch()
                    batch.put_item(Item=self._to_item(item))

            logger.debug("Batch write completed", count=len(items), model=self.model_class.__name__)

        except ClientError as e:
            logger.error("DynamoDB batch_write failed", error=str(e))
            raise
