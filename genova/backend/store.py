"""
File-backed record store.

Each table is a JSON array in ``<data_dir>/<table>.json``. Every write
publishes a ChangeEvent so that views subscribed to the table can
re-fetch.
"""

import json
import logging
import threading
import uuid
from pathlib import Path
from typing import Optional, Union

from ..errors import BackendError, NotFoundError
from .changes import ChangeEvent, ChangeFeed, ChangeKind

logger = logging.getLogger(__name__)

TABLES = frozenset({
    "profiles",
    "inquiries",
    "reviews",
    "availability",
    "project_milestones",
    "project_files",
    "project_messages",
    "projects",
    "forum_categories",
    "saved_experts",
    "analytics_events",
    "moderation_items",
})


def _sort_key(column: str, descending: bool = False):
    # Rows missing the column sort last in either direction
    def key(row: dict):
        value = row.get(column)
        missing = value is None
        return (not missing if descending else missing, value if not missing else "")
    return key


class RecordStore:
    """Table-like collections supporting filtered select, insert, update and delete."""

    def __init__(self, data_dir: Path, feed: Optional[ChangeFeed] = None):
        """Initialize the store with a data directory and optional change feed."""
        self.data_dir = Path(data_dir)
        self.feed = feed or ChangeFeed()
        self._lock = threading.RLock()
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _table_file(self, table: str) -> Path:
        if table not in TABLES:
            raise BackendError(f"Unknown table: {table}")
        return self.data_dir / f"{table}.json"

    def _load(self, table: str) -> list[dict]:
        """Load all rows of a table."""
        path = self._table_file(table)
        if not path.exists():
            return []
        try:
            with open(path, "r") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to read table %s: %s", table, e)
            raise BackendError(f"Failed to read table {table}", cause=e) from e

    def _save(self, table: str, rows: list[dict]) -> None:
        """Persist all rows of a table."""
        path = self._table_file(table)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            with open(tmp_path, "w") as f:
                json.dump(rows, f, indent=2)
            tmp_path.replace(path)
        except OSError as e:
            logger.error("Failed to write table %s: %s", table, e)
            raise BackendError(f"Failed to write table {table}", cause=e) from e

    @staticmethod
    def _matches(row: dict, filters: Optional[dict]) -> bool:
        if not filters:
            return True
        # A None filter value means "column is unset"
        return all(row.get(column) == value for column, value in filters.items())

    def select(
        self,
        table: str,
        filters: Optional[dict] = None,
        order_by: Union[str, list[str], None] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict]:
        """
        Return rows matching all equality filters.

        Args:
            table: Table name
            filters: Column -> value; None matches rows where the column is unset
            order_by: Column or list of columns, applied left to right
            descending: Reverse the ordering
            limit: Maximum number of rows

        Returns:
            Copies of the matching rows
        """
        with self._lock:
            rows = [dict(r) for r in self._load(table) if self._matches(r, filters)]

        if order_by:
            columns = [order_by] if isinstance(order_by, str) else list(order_by)
            # Stable sort: apply the least significant column first
            for column in reversed(columns):
                rows.sort(key=_sort_key(column, descending), reverse=descending)

        if limit is not None:
            rows = rows[:limit]
        return rows

    def get(self, table: str, record_id: str) -> Optional[dict]:
        """Get a row by id."""
        rows = self.select(table, {"id": record_id}, limit=1)
        return rows[0] if rows else None

    def insert(self, table: str, record: dict) -> dict:
        """Insert a row, assigning an id when it has none."""
        row = dict(record)
        row.setdefault("id", str(uuid.uuid4()))

        with self._lock:
            rows = self._load(table)
            if any(r.get("id") == row["id"] for r in rows):
                raise BackendError(f"Duplicate id {row['id']} in {table}")
            rows.append(row)
            self._save(table, rows)

        logger.debug("Inserted %s into %s", row["id"], table)
        self.feed.publish(ChangeEvent(table, ChangeKind.INSERT, new=dict(row)))
        return dict(row)

    def update(
        self,
        table: str,
        record_id: str,
        changes: dict,
        expect: Optional[dict] = None,
    ) -> Optional[dict]:
        """
        Apply changes to a row.

        When ``expect`` is given the update only happens if every expected
        column still holds the expected value (compare-and-swap). Returns
        the updated row, or None when the expectation did not hold.
        Raises NotFoundError when the row does not exist.
        """
        with self._lock:
            rows = self._load(table)
            for index, row in enumerate(rows):
                if row.get("id") != record_id:
                    continue
                if expect and not self._matches(row, expect):
                    logger.info(
                        "Conditional update on %s/%s skipped: expected %s", table, record_id, expect
                    )
                    return None
                old = dict(row)
                row.update(changes)
                rows[index] = row
                self._save(table, rows)
                break
            else:
                raise NotFoundError(f"{table} record not found: {record_id}")

        self.feed.publish(ChangeEvent(table, ChangeKind.UPDATE, new=dict(row), old=old))
        return dict(row)

    def delete(self, table: str, record_id: str) -> bool:
        """Delete a row by id. Returns False if it did not exist."""
        with self._lock:
            rows = self._load(table)
            remaining = [r for r in rows if r.get("id") != record_id]
            if len(remaining) == len(rows):
                return False
            removed = next(r for r in rows if r.get("id") == record_id)
            self._save(table, remaining)

        self.feed.publish(ChangeEvent(table, ChangeKind.DELETE, old=removed))
        return True
