"""Record store interface and an in-memory implementation.

The store is list based: each list holds items keyed by integer ids, and
each item carries a dict of string-named fields. Items are returned in the
``{"id": "<id>", "fields": {...}}`` shape.

Filters are expressions of ``fields/<Name> <op> '<value>'`` clauses joined
by ``and``, where ``op`` is one of ``eq``, ``ne``, ``ge``, ``gt``, ``le``,
``lt``.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

logger = logging.getLogger(__name__)

_CLAUSE_RE = re.compile(r"^fields/(\w+)\s+(eq|ne|ge|gt|le|lt)\s+'([^']*)'$")


class StoreError(Exception):
    """Raised when the store rejects an operation."""


@dataclass
class BatchResult:
    """Outcome of one item of a batch update."""

    id: int
    success: bool
    error: Optional[str] = None


class RecordStore(ABC):
    """Abstract base class for the external record store."""

    @abstractmethod
    def get_items(self, list_name: str, filter: Optional[str] = None) -> list[dict]:
        """Read items of a list, optionally filtered."""
        pass

    @abstractmethod
    def create_item(self, list_name: str, fields: dict) -> int:
        """Create an item and return its new id.

        Raises:
            StoreError: If the store rejects the item.
        """
        pass

    @abstractmethod
    def update_item(self, list_name: str, item_id: int, fields: dict) -> dict:
        """Merge fields into an existing item and return it.

        Raises:
            StoreError: If the item does not exist or is rejected.
        """
        pass

    def batch_update(
        self,
        list_name: str,
        updates: Sequence[tuple[int, dict]],
    ) -> list[BatchResult]:
        """Update several items, reporting the outcome of each one.

        A failing item does not stop the rest of the batch.
        """
        results = []
        for item_id, fields in updates:
            try:
                self.update_item(list_name, item_id, fields)
                results.append(BatchResult(item_id, True))
            except StoreError as exc:
                results.append(BatchResult(item_id, False, str(exc)))
        return results


def _comparable(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    text = str(value)
    candidate = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        return text
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _compare(actual: Any, op: str, literal: str) -> bool:
    if actual is None:
        return op == "ne"
    if op in ("eq", "ne"):
        equal = str(actual) == literal
        return equal if op == "eq" else not equal
    left = _comparable(actual)
    right = _comparable(literal)
    if isinstance(left, (int, float)):
        try:
            right = float(literal)
        except ValueError:
            return False
    elif type(left) is not type(right):
        left, right = str(actual), literal
    if op == "ge":
        return left >= right
    if op == "gt":
        return left > right
    if op == "le":
        return left <= right
    return left < right


def matches_filter(fields: dict, expression: Optional[str]) -> bool:
    """Evaluate a filter expression against an item's fields.

    Raises:
        StoreError: If the expression cannot be parsed.
    """
    if not expression:
        return True
    for clause in expression.split(" and "):
        match = _CLAUSE_RE.match(clause.strip())
        if match is None:
            raise StoreError(f"Unsupported filter clause: {clause!r}")
        name, op, literal = match.groups()
        if not _compare(fields.get(name), op, literal):
            return False
    return True


class InMemoryRecordStore(RecordStore):
    """Dict-backed record store with sequential ids.

    Failure injection for tests:
        fail_creates: Every create raises StoreError.
        fail_update_ids: Updates of these ids raise StoreError.
    """

    def __init__(self):
        self.lists: dict[str, dict[int, dict]] = {}
        self._next_id = 1
        self.fail_creates = False
        self.fail_update_ids: set[int] = set()

    def seed(self, list_name: str, items: Sequence[dict]) -> list[int]:
        """Insert raw field dicts, returning their ids."""
        return [self.create_item(list_name, dict(fields)) for fields in items]

    def get_items(self, list_name: str, filter: Optional[str] = None) -> list[dict]:
        items = self.lists.get(list_name, {})
        return [
            {"id": str(item_id), "fields": dict(fields)}
            for item_id, fields in sorted(items.items())
            if matches_filter(fields, filter)
        ]

    def create_item(self, list_name: str, fields: dict) -> int:
        if self.fail_creates:
            raise StoreError(f"Create rejected by {list_name}")
        item_id = self._next_id
        self._next_id += 1
        self.lists.setdefault(list_name, {})[item_id] = dict(fields)
        logger.debug("Created %s item %d", list_name, item_id)
        return item_id

    def update_item(self, list_name: str, item_id: int, fields: dict) -> dict:
        items = self.lists.get(list_name, {})
        if item_id not in items:
            raise StoreError(f"Item {item_id} not found in {list_name}")
        if item_id in self.fail_update_ids:
            raise StoreError(f"Update of item {item_id} rejected by {list_name}")
        items[item_id].update(fields)
        return {"id": str(item_id), "fields": dict(items[item_id])}
