"""
Type-indexed lookup over a ResultLog.

Types are fully-qualified Move type strings including generic parameters,
e.g. ``0x2::transfer_policy::TransferPolicy<0xabc::mizu_nft::MizuNFT>``.
Matching is exact string equality; the first created record wins.
"""

from __future__ import annotations

import string
from collections.abc import Mapping
from typing import Any

from .changes import ChangeKind, ResultLog
from .errors import UnresolvedDependency

#: Marker for a write that takes the id of the package published by the stage
PUBLISHED_PACKAGE = "<published-package>"

ExpectedType = str

_formatter = string.Formatter()


def find_one_by_type(log: ResultLog, type_: str) -> str | None:
    """Return the identifier of the first created object of ``type_``, or None."""
    for record in log:
        if record.kind is ChangeKind.CREATED and record.declared_type == type_:
            return record.identifier
    return None


def find_published(log: ResultLog) -> str | None:
    """Return the package id of the first published record, or None."""
    for record in log:
        if record.kind is ChangeKind.PUBLISHED:
            return record.package_id
    return None


def template_fields(expected: ExpectedType) -> list[str]:
    """Placeholder names used by an expected-type template."""
    return [name for _, name, _, _ in _formatter.parse(expected) if name]


def resolve_expected_type(expected: ExpectedType, values: Mapping[str, Any]) -> str:
    """
    Fill ``{placeholders}`` in an expected type from resolved values.

    Placeholders name store keys, so dotted keys are looked up verbatim:
    ``"{packageId}::mint::Mint"`` or ``"{water_cooler.policy}"``.

    Raises:
        UnresolvedDependency: if a placeholder has no value
    """
    parts: list[str] = []
    for literal, name, _, _ in _formatter.parse(expected):
        parts.append(literal)
        if name is None:
            continue
        if name not in values:
            raise UnresolvedDependency(name)
        parts.append(str(values[name]))
    return "".join(parts)
