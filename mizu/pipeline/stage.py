"""
Stage abstraction for mizu pipelines.

A stage is one read-build-submit-extract-write unit:

    1. read every declared input from the store
    2. build a typed payload from those values (and static parameters)
    3. validate the payload against the declared Move signatures
    4. submit it and get back a ResultLog
    5. find every declared write in the log by its expected type
    6. commit all writes as one batch and flush

A stage that fails at any step leaves the store exactly as it found it.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterable, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from .errors import (
    ExpectedEntityNotFound,
    MissingKey,
    PayloadValidationError,
    SubmissionFailed,
    UnresolvedDependency,
)
from .lookup import (
    PUBLISHED_PACKAGE,
    ExpectedType,
    find_one_by_type,
    find_published,
    resolve_expected_type,
    template_fields,
)
from .store import commit

if TYPE_CHECKING:
    from .changes import ResultLog
    from .context import SessionContext, StageResult
    from .payload import Payload
    from .store import StateStore

logger = logging.getLogger(__name__)

PayloadBuilder = Callable[[dict[str, Any], "SessionContext"], "Payload | Awaitable[Payload]"]


class Stage(ABC):
    """
    Base class for all stages.

    Subclasses declare:
    - name: Unique stage identifier
    - reads: Store keys the payload builder needs
    - writes: Store key -> expected Move type of the created object.
      Types may use ``{key}`` placeholders naming reads or earlier writes,
      or PUBLISHED_PACKAGE for the id of the package the stage publishes.
    - build(): turn the read values into a payload
    """

    reads: frozenset[str] = frozenset()
    writes: Mapping[str, ExpectedType] = MappingProxyType({})

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique name for this stage, used in logging and failures."""
        ...

    @abstractmethod
    async def build(self, values: dict[str, Any], ctx: SessionContext) -> Payload:
        """
        Build the outbound payload.

        Args:
            values: The stage's declared reads, keyed by store key
            ctx: Session context (static parameters, signer address)
        """
        ...

    def template_keys(self) -> set[str]:
        """Store keys referenced by the write type templates."""
        keys: set[str] = set()
        for expected in self.writes.values():
            if expected != PUBLISHED_PACKAGE:
                keys.update(template_fields(expected))
        return keys

    def write_order(self) -> list[str]:
        """
        Write keys ordered so every key comes after the sibling writes its
        type template names. Declaration order is kept otherwise.

        Raises:
            ValueError: if write templates reference each other in a cycle
        """
        depends: dict[str, set[str]] = {}
        for key, expected in self.writes.items():
            if expected == PUBLISHED_PACKAGE:
                depends[key] = set()
            else:
                depends[key] = set(template_fields(expected)) & set(self.writes)

        ordered: list[str] = []
        visiting: list[str] = []

        def visit(key: str) -> None:
            if key in ordered:
                return
            if key in visiting:
                cycle = " -> ".join([*visiting[visiting.index(key):], key])
                raise ValueError(f"Stage '{self.name}' write types form a cycle: {cycle}")
            visiting.append(key)
            for dep in sorted(depends[key]):
                visit(dep)
            visiting.pop()
            ordered.append(key)

        for key in self.writes:
            visit(key)
        return ordered

    def read_inputs(self, store: StateStore) -> dict[str, Any]:
        """
        Read every declared input.

        Raises:
            UnresolvedDependency: for the first key the store cannot serve
        """
        values: dict[str, Any] = {}
        for key in sorted(self.reads):
            try:
                values[key] = store.read(key)
            except MissingKey as e:
                raise UnresolvedDependency(key, stage=self.name) from e
        return values

    def extract(self, log: ResultLog, values: Mapping[str, Any]) -> dict[str, Any]:
        """
        Resolve every declared write from the result log.

        Writes resolve in write_order(), so a type template can name a
        sibling write (the publish stage names its own types by the new
        package id).

        Raises:
            ExpectedEntityNotFound: if any write has no matching record
            UnresolvedDependency: if a type template has no value
        """
        found: dict[str, Any] = {}

        for key in self.write_order():
            expected = self.writes[key]
            if expected == PUBLISHED_PACKAGE:
                identifier = find_published(log)
                type_name = "published package"
            else:
                try:
                    type_name = resolve_expected_type(expected, {**values, **found})
                except UnresolvedDependency as e:
                    raise UnresolvedDependency(e.key, stage=self.name) from e
                identifier = find_one_by_type(log, type_name)

            if identifier is None:
                raise ExpectedEntityNotFound(type_name, key=key, stage=self.name)
            found[key] = identifier

        return found

    async def submit(self, payload: Payload, ctx: SessionContext) -> ResultLog:
        """Submit the payload, mapping every failure to SubmissionFailed."""
        try:
            log = await ctx.submitter.submit(payload, ctx.signer)
        except SubmissionFailed as e:
            e.stage = e.stage or self.name
            raise
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise SubmissionFailed(e, stage=self.name) from e

        if log is None:
            raise SubmissionFailed("no result log returned", stage=self.name)
        return log

    async def run(self, ctx: SessionContext) -> StageResult:
        """
        Execute the stage against the session store.

        Returns:
            StageResult with the result log and committed writes

        Raises:
            StageError: any stage failure; the store is left unmodified
        """
        from .context import StageResult

        start = time.perf_counter()
        if ctx.logger:
            ctx.logger.stage_started(self.name, sorted(self.reads))

        values = self.read_inputs(ctx.store)
        payload = await self.build(values, ctx)
        try:
            payload.validate()
        except PayloadValidationError as e:
            e.stage = self.name
            raise

        logger.info(f"Stage '{self.name}' submitting {payload.describe()}")
        log = await self.submit(payload, ctx)

        writes = self.extract(log, values)
        commit(ctx.store, writes)

        duration_ms = (time.perf_counter() - start) * 1000
        ctx.record_timing(self.name, duration_ms)
        if ctx.logger:
            ctx.logger.stage_completed(self.name, duration_ms, log.digest, sorted(writes))

        return StageResult(stage=self.name, log=log, writes=writes, duration_ms=duration_ms)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}')"


class FunctionStage(Stage):
    """
    Stage whose payload builder is a plain (sync or async) callable.

    Example:
        stage = FunctionStage(
            "create_whitelist_ticket",
            reads={"packageId", "MintAdminCap", "MintWarehouse"},
            writes={"WhitelistTicket": "{packageId}::mint::WhitelistTicket"},
            builder=lambda v, ctx: Transaction.of(CREATE_WL_TICKET.call(...)),
        )
    """

    def __init__(
        self,
        name: str,
        builder: PayloadBuilder,
        *,
        reads: Iterable[str] = (),
        writes: Mapping[str, ExpectedType] | None = None,
    ):
        self._name = name
        self._builder = builder
        self.reads = frozenset(reads)
        self.writes = MappingProxyType(dict(writes or {}))

    @property
    def name(self) -> str:
        return self._name

    async def build(self, values: dict[str, Any], ctx: SessionContext) -> Payload:
        payload = self._builder(values, ctx)
        if inspect.isawaitable(payload):
            payload = await payload
        return payload


