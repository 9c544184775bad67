from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Literal, Sequence

from portal.errors import InvalidQueryError

# Largest value set an "in" filter may carry.
MAX_IN_FILTER_SIZE = 30

SUBMISSIONS = "submissions"
ANNOUNCEMENTS = "announcements"
COMPETITION_META = "competition_meta"
CURATED_WINNERS = "curated_winners"

FilterOp = Literal["==", "in"]


@dataclass(frozen=True)
class FieldFilter:
    field: str
    op: FilterOp
    value: Any

    def __post_init__(self):
        if self.op == "in":
            if not isinstance(self.value, (list, tuple, set, frozenset)):
                raise InvalidQueryError(f"'in' filter on {self.field} needs a sequence")
            if len(self.value) > MAX_IN_FILTER_SIZE:
                raise InvalidQueryError(
                    f"'in' filter on {self.field} has {len(self.value)} values (max {MAX_IN_FILTER_SIZE})"
                )


def eq(field_name: str, value: Any) -> FieldFilter:
    return FieldFilter(field_name, "==", value)


def in_(field_name: str, values: Sequence[Any]) -> FieldFilter:
    return FieldFilter(field_name, "in", list(values))


@dataclass(frozen=True)
class OrderBy:
    field: str
    descending: bool = False


@dataclass
class Document:
    id: str
    data: dict[str, Any]


@dataclass(frozen=True)
class WriteOp:
    kind: Literal["set", "update", "delete"]
    collection: str
    doc_id: str
    data: dict[str, Any] | None = None


@dataclass
class WriteBatch:
    """Collects writes to be committed together by DocumentStore.commit."""
    ops: list[WriteOp] = field(default_factory=list)

    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> "WriteBatch":
        self.ops.append(WriteOp("set", collection, doc_id, dict(data)))
        return self

    def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> "WriteBatch":
        self.ops.append(WriteOp("update", collection, doc_id, dict(fields)))
        return self

    def delete(self, collection: str, doc_id: str) -> "WriteBatch":
        self.ops.append(WriteOp("delete", collection, doc_id))
        return self

    def __len__(self) -> int:
        return len(self.ops)


class DocumentStore(ABC):
    """
    Narrow contract over a collection/document database.

    Values must be JSON-compatible; callers serialize datetimes before writing.
    Every failure is raised as a portal.errors.StoreError subclass.
    """

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Document | None: ...

    @abstractmethod
    async def add(self, collection: str, data: dict[str, Any]) -> str: ...

    @abstractmethod
    async def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None: ...

    @abstractmethod
    async def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None: ...

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None: ...

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: OrderBy | None = None,
        limit: int | None = None,
    ) -> list[Document]: ...

    def batch(self) -> WriteBatch:
        return WriteBatch()

    @abstractmethod
    async def commit(self, batch: WriteBatch) -> None:
        """Apply every op in the batch, or none of them."""
