"""
Record store contract and the in-memory backend used by tests and demos.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable

import structlog

logger = structlog.get_logger(__name__)


class RecordStore(ABC):
    """Narrow read contract over the operational records"""

    @abstractmethod
    def get_all(self, entity: str) -> list[dict]:
        """Return every record of the given entity, unfiltered"""
        pass


class InMemoryRecordStore(RecordStore):
    """Dict-of-lists record store"""

    def __init__(self, records: dict[str, list[dict]] | None = None):
        self._records: dict[str, list[dict]] = {
            entity: list(rows) for entity, rows in (records or {}).items()
        }

    def get_all(self, entity: str) -> list[dict]:
        return [dict(row) for row in self._records.get(entity, [])]

    def add(self, entity: str, record: dict) -> None:
        self._records.setdefault(entity, []).append(dict(record))

    def extend(self, entity: str, records: Iterable[dict]) -> None:
        for record in records:
            self.add(entity, record)

    def clear(self) -> None:
        self._records.clear()
        logger.debug("In-memory record store cleared")
