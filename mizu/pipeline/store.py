"""
State stores for mizu.

A StateStore maps dotted symbolic keys ("packageId", "mint.mint_cap") to
scalars. Stages read their inputs from it and commit discovered object ids
back to it as one batch, then flush.

Implementations:
    MemoryStateStore: In-process only (tests, dry runs)
    JsonFileStateStore: Nested JSON snapshot, replaced atomically on flush

Stores can be layered: a user store falls back to the admin deployment
store for package-level ids, without ever writing to it.

Usage:
    deployment = JsonFileStateStore("state/deployed_objects.json")
    user = JsonFileStateStore("state/user1_objects.json", fallback=deployment)

    package_id = user.read("packageId")      # served by the fallback
    user.write_many({"water_cooler": "0x.."})
    user.flush()
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from .errors import MissingKey, StoreFlushFailed, StoreKeyConflict

logger = logging.getLogger(__name__)

_MISSING = object()


def _split(key: str) -> list[str]:
    parts = key.split(".")
    if not key or any(not p for p in parts):
        raise ValueError(f"Invalid store key: {key!r}")
    return parts


def get_path(data: Mapping[str, Any], key: str) -> Any:
    """Look up a dotted key in nested data, returning _MISSING when absent."""
    node: Any = data
    for part in _split(key):
        if not isinstance(node, Mapping) or part not in node:
            return _MISSING
        node = node[part]
    return node


def set_path(data: dict[str, Any], key: str, value: Any) -> None:
    """
    Set a dotted key in nested data, creating intermediate records.

    Raises:
        StoreKeyConflict: a scalar sits where a record is needed, or the
            value would turn a record into a scalar or a scalar into a record
    """
    parts = _split(key)
    node = data
    for depth, part in enumerate(parts[:-1]):
        child = node.get(part)
        if child is None:
            child = {}
            node[part] = child
        elif not isinstance(child, dict):
            raise StoreKeyConflict(key, ".".join(parts[: depth + 1]))
        node = child

    existing = node.get(parts[-1])
    if existing is not None and isinstance(existing, dict) != isinstance(value, Mapping):
        raise StoreKeyConflict(key, key)
    if isinstance(value, Mapping):
        value = copy.deepcopy(dict(value))
    node[parts[-1]] = value


def flatten(data: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten nested records into dotted keys."""
    flat: dict[str, Any] = {}
    for name, value in data.items():
        key = f"{prefix}{name}"
        if isinstance(value, Mapping):
            flat.update(flatten(value, prefix=f"{key}."))
        else:
            flat[key] = value
    return flat


class StateStore:
    """
    In-memory state with a read fallback chain.

    read() order: own data, then the fallback store, then static defaults.
    Subclasses override _persist()/_load() to make flush()/reload() durable.
    """

    def __init__(
        self,
        *,
        name: str = "store",
        fallback: StateStore | None = None,
        defaults: Mapping[str, Any] | None = None,
        initial: Mapping[str, Any] | None = None,
    ):
        self.name = name
        self.fallback = fallback
        self._defaults = dict(defaults or {})
        self._data: dict[str, Any] = {}
        for key, value in flatten(initial or {}).items():
            set_path(self._data, key, value)

    def read(self, key: str) -> Any:
        """
        Read a value.

        Raises:
            MissingKey: if no layer has the key
        """
        value = get_path(self._data, key)
        if value is not _MISSING:
            return copy.deepcopy(value)
        if self.fallback is not None:
            try:
                return self.fallback.read(key)
            except MissingKey:
                pass
        if key in self._defaults:
            return self._defaults[key]
        raise MissingKey(key)

    def get(self, key: str, default: Any = None) -> Any:
        try:
            return self.read(key)
        except MissingKey:
            return default

    def __contains__(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def write(self, key: str, value: Any) -> None:
        """Upsert one key into this store (never the fallback)."""
        set_path(self._data, key, value)

    def write_many(self, values: Mapping[str, Any]) -> None:
        """Apply a batch of writes; on any failure the store is left unchanged."""
        before = copy.deepcopy(self._data)
        try:
            for key, value in values.items():
                set_path(self._data, key, value)
        except Exception:
            self._data = before
            raise

    def snapshot(self) -> dict[str, Any]:
        """Deep copy of this store's own data in nested form."""
        return copy.deepcopy(self._data)

    def restore(self, snapshot: Mapping[str, Any]) -> None:
        self._data = copy.deepcopy(dict(snapshot))

    def flush(self) -> None:
        """Persist the full snapshot."""
        self._persist(self._data)

    def reload(self) -> None:
        """Replace in-memory state with the last persisted snapshot."""
        self._data = self._load()

    def _persist(self, data: dict[str, Any]) -> None:
        pass

    def _load(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class MemoryStateStore(StateStore):
    """
    Store whose flush is a no-op.

    Keeps the last "flushed" snapshot in memory so reload() behaves like a
    process restart would with a file store.
    """

    def __init__(self, **kwargs: Any):
        super().__init__(**kwargs)
        self._flushed: dict[str, Any] = copy.deepcopy(self._data)
        self.flush_count = 0

    def _persist(self, data: dict[str, Any]) -> None:
        self._flushed = copy.deepcopy(data)
        self.flush_count += 1

    def _load(self) -> dict[str, Any]:
        return copy.deepcopy(self._flushed)


class JsonFileStateStore(StateStore):
    """
    Store persisted as a human-readable nested JSON document.

    flush() writes the whole snapshot to a temp file in the same directory,
    fsyncs it and swaps it in with os.replace(), so readers see either the
    previous snapshot or the new one, never a partial file.
    """

    def __init__(self, path: str | os.PathLike[str], **kwargs: Any):
        self.path = Path(path)
        kwargs.setdefault("name", self.path.stem)
        super().__init__(**kwargs)
        if self.path.exists():
            self._data = self._load()
            logger.debug(f"Loaded store '{self.name}' from {self.path}")

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError(f"Store snapshot {self.path} must be a JSON object")
        return data

    def _persist(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=4, sort_keys=False)
                fh.write("\n")
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


def commit(store: StateStore, writes: Mapping[str, Any]) -> None:
    """
    Apply a stage's writes and flush, all or nothing.

    If the flush fails the in-memory state is rolled back to what it was
    before the batch, so the store matches the last durable snapshot.

    Raises:
        StoreFlushFailed: if persisting the snapshot fails
    """
    before = store.snapshot()
    store.write_many(writes)
    try:
        store.flush()
    except Exception as e:
        store.restore(before)
        raise StoreFlushFailed(str(getattr(store, "path", store.name)), e) from e
