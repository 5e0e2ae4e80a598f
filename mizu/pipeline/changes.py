"""
Result log model for mizu.

A ResultLog is the ordered list of object changes returned by a single
transaction submission. Records are immutable once received; stages only
ever read them.

Built from the ``objectChanges`` array of a Sui transaction block response:

    [
        {"type": "published", "packageId": "0x..", ...},
        {"type": "created", "objectType": "0x..::mint::Mint", "objectId": "0x.."},
        {"type": "mutated", "objectType": "0x2::coin::Coin<0x2::sui::SUI>", ...},
    ]
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ChangeKind(str, Enum):
    """Kind of a single object change."""

    CREATED = "created"
    MUTATED = "mutated"
    PUBLISHED = "published"
    OTHER = "other"

    @classmethod
    def from_string(cls, value: str) -> ChangeKind:
        """Map a Sui change type, with fallback to OTHER (transferred, deleted, ...)."""
        try:
            return cls(value.lower())
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True, kw_only=True, slots=True)
class ChangeRecord:
    """
    One entry of a result log.

    ``identifier`` is set exactly for created objects with a declared type.
    ``package_id`` is only set on published records.
    """

    kind: ChangeKind
    declared_type: str | None = None
    identifier: str | None = None
    package_id: str | None = None

    def __post_init__(self) -> None:
        has_identity = self.kind is ChangeKind.CREATED and self.declared_type is not None
        if (self.identifier is not None) != has_identity:
            raise ValueError(
                f"identifier must be set iff kind is created with a declared type "
                f"(kind={self.kind.value}, declared_type={self.declared_type!r})"
            )
        if self.package_id is not None and self.kind is not ChangeKind.PUBLISHED:
            raise ValueError("package_id is only valid on published records")

    @classmethod
    def created(cls, declared_type: str, identifier: str) -> ChangeRecord:
        return cls(kind=ChangeKind.CREATED, declared_type=declared_type, identifier=identifier)

    @classmethod
    def from_object_change(cls, change: Mapping[str, Any]) -> ChangeRecord:
        """Convert one raw ``objectChanges`` entry."""
        kind = ChangeKind.from_string(str(change.get("type", "")))
        declared_type = change.get("objectType")

        if kind is ChangeKind.PUBLISHED:
            return cls(kind=kind, package_id=change.get("packageId"))
        if kind is ChangeKind.CREATED and declared_type is not None:
            return cls(kind=kind, declared_type=declared_type, identifier=change.get("objectId"))
        return cls(kind=kind, declared_type=declared_type)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"kind": self.kind.value}
        if self.declared_type is not None:
            data["declared_type"] = self.declared_type
        if self.identifier is not None:
            data["identifier"] = self.identifier
        if self.package_id is not None:
            data["package_id"] = self.package_id
        return data


@dataclass(frozen=True, slots=True)
class ResultLog:
    """Ordered, immutable change records from one submission."""

    records: tuple[ChangeRecord, ...] = ()
    digest: str | None = field(default=None, kw_only=True)

    def __post_init__(self) -> None:
        # Accept any iterable but always store a tuple
        if not isinstance(self.records, tuple):
            object.__setattr__(self, "records", tuple(self.records))

    @classmethod
    def from_object_changes(
        cls,
        changes: Iterable[Mapping[str, Any]],
        digest: str | None = None,
    ) -> ResultLog:
        return cls(
            tuple(ChangeRecord.from_object_change(c) for c in changes),
            digest=digest,
        )

    def __iter__(self) -> Iterator[ChangeRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    @property
    def created(self) -> list[ChangeRecord]:
        """Created records in log order."""
        return [r for r in self.records if r.kind is ChangeKind.CREATED]

    def to_dict(self) -> dict[str, Any]:
        return {
            "digest": self.digest,
            "records": [r.to_dict() for r in self.records],
        }
