"""PackagingOrchestrator — sequence one packaging request end to end.

ARCHITECTURE
────────────
::

    PackageRequest
      │
      ├── EXTRACTING_NAME    describe_project()         → ProjectDescriptor
      │                      platform_for(os)           → PlatformStrategy
      │
      ├── COMPOSING_RUNTIME  ┌ runtime.compose(inner) ─┐  started together,
      │                      └ strategy.compose_final(outer) ┘  neither cancelled
      │
      ├── DRAINING_RUNTIME   inner.finalize(); inner.drain() → bytes
      ├── COMPOSING_FINAL    await the outer composition
      ├── EMBEDDING_PAYLOAD  strategy.embed_runtime(outer, bytes)
      ├── FINALIZING         outer.finalize()
      │
      └── DONE               ExecutablePackage(outer stream)

Any failure moves the run to ``FAILED``, discards both archives and
re-raises the first error. The target is resolved before either archive is
touched, so an unsupported OS writes nothing.

The two compositions share nothing but the read-only resource store. The
inner archive is finalized and drained completely before a single byte of
it reaches the outer archive.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime

from snapp.core.errors import SnappError
from snapp.core.logging import LogContext, get_logger
from snapp.core.settings import SnappSettings
from snapp.packaging.archive import ArchiveBuilder
from snapp.packaging.models import (
    ExecutablePackage,
    PackageRequest,
    PackagingState,
    validate_packaging_transition,
)
from snapp.packaging.platforms import FinalPackageComposer, PlatformContext
from snapp.packaging.project import describe_project
from snapp.packaging.resources import ResourceStore
from snapp.packaging.runtime import RuntimePackageComposer

logger = get_logger(__name__)


@dataclass
class PackagingRun:
    """Mutable record of one orchestrator run.

    Callers may pass their own instance to
    :meth:`PackagingOrchestrator.package` to observe the state history.
    """

    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    state: PackagingState = PackagingState.IDLE
    history: list[PackagingState] = field(default_factory=lambda: [PackagingState.IDLE])
    project_name: str | None = None
    error: Exception | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    completed_at: datetime | None = None

    def transition_to(self, target: PackagingState) -> None:
        """Validate and apply a state transition.

        Raises:
            InvalidTransitionError: If *self.state → target* is illegal.
        """
        validate_packaging_transition(self.state, target)
        logger.debug("packaging.state_changed", previous=self.state.value, state=target.value)
        self.state = target
        self.history.append(target)
        if target.is_terminal:
            self.completed_at = datetime.now(UTC)

    @property
    def duration_seconds(self) -> float | None:
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()


class PackagingOrchestrator:
    """Turn a :class:`PackageRequest` into an :class:`ExecutablePackage`."""

    def __init__(self, store: ResourceStore, settings: SnappSettings) -> None:
        self._store = store
        self._settings = settings
        self._runtime = RuntimePackageComposer(store)
        self._final = FinalPackageComposer(store, settings)

    @classmethod
    def from_settings(cls, settings: SnappSettings) -> PackagingOrchestrator:
        return cls(ResourceStore.from_settings(settings), settings)

    def _new_archive(self, label: str) -> ArchiveBuilder:
        return ArchiveBuilder(
            label,
            compression=self._settings.compression,
            spool_max_size=self._settings.spool_max_size,
        )

    async def package(self, request: PackageRequest, *, run: PackagingRun | None = None) -> ExecutablePackage:
        """Run the full pipeline for *request*.

        Raises:
            XmlParseError, MissingProjectNameError: the project document has
                no usable name.
            InvalidOperatingSystemError: ``request.os`` is not a supported
                target. No entry is written.
            ResourceReadError: a required resource could not be read.
            StreamError: an archive could not be written or finalized.
        """
        run = run or PackagingRun()
        os_label = getattr(request.os, "value", str(request.os))
        archives: list[ArchiveBuilder] = []
        tasks: list[asyncio.Future] = []

        with LogContext(request_id=run.request_id, os=os_label, filename=request.filename):
            logger.info("packaging.started", variant=request.variant.value, resolution=str(request.resolution))
            try:
                run.transition_to(PackagingState.EXTRACTING_NAME)
                project = describe_project(request.project_xml, chunk_size=self._settings.read_chunk_size)
                run.project_name = project.name
                strategy, target = self._final.platform_for(request.os)
                ctx = PlatformContext(target, project.name, request.filename)

                inner = self._new_archive("runtime")
                outer = self._new_archive("final")
                archives += [inner, outer]

                run.transition_to(PackagingState.COMPOSING_RUNTIME)
                runtime_task = asyncio.ensure_future(self._runtime.compose(inner, project, request))
                final_task = asyncio.ensure_future(strategy.compose_final(outer, ctx))
                tasks += [runtime_task, final_task]
                await _runtime_done(runtime_task, final_task)

                run.transition_to(PackagingState.DRAINING_RUNTIME)
                await inner.finalize()
                payload = await inner.drain(self._settings.read_chunk_size)
                logger.debug("packaging.runtime_drained", size=len(payload))

                run.transition_to(PackagingState.COMPOSING_FINAL)
                await final_task

                run.transition_to(PackagingState.EMBEDDING_PAYLOAD)
                await strategy.embed_runtime(outer, payload, ctx)

                run.transition_to(PackagingState.FINALIZING)
                await outer.finalize()
                package = ExecutablePackage(
                    outer.open_stream(),
                    request_id=run.request_id,
                    project_name=project.name,
                    filename=request.filename,
                    os=target.value,
                    size=outer.size,
                    entry_names=outer.entry_names,
                )
                run.transition_to(PackagingState.DONE)
            except Exception as exc:
                self._fail(run, exc, archives, tasks, os_label, request.filename)
                raise

            logger.info(
                "packaging.completed",
                project_name=project.name,
                entries=len(package.entry_names),
                size=package.size,
                duration_seconds=run.duration_seconds,
            )
            return package

    def _fail(
        self,
        run: PackagingRun,
        error: Exception,
        archives: list[ArchiveBuilder],
        tasks: list[asyncio.Future],
        os_label: str,
        filename: str,
    ) -> None:
        failed_in = run.state
        if not run.state.is_terminal:
            run.transition_to(PackagingState.FAILED)
        run.error = error
        for task in tasks:
            if task.done():
                _log_orphan_outcome(task)
            else:
                task.add_done_callback(_log_orphan_outcome)
        for archive in archives:
            archive.discard()

        if not isinstance(error, SnappError):
            logger.exception("packaging.failed", state=failed_in.value, error_type=type(error).__name__)
            return
        error.with_context(
            request_id=run.request_id,
            os=error.context.os or os_label,
            filename=error.context.filename or filename,
            project_name=run.project_name,
            state=failed_in.value,
        )
        logger.error("packaging.failed", **error.to_dict())


async def _runtime_done(runtime_task: asyncio.Future, final_task: asyncio.Future) -> None:
    """Wait for the runtime composition, failing early if the final one fails first."""
    done, _ = await asyncio.wait({runtime_task, final_task}, return_when=asyncio.FIRST_COMPLETED)
    if runtime_task not in done:
        final_task.result()
        await runtime_task
    runtime_task.result()


def _log_orphan_outcome(task: asyncio.Future) -> None:
    """Consume the outcome of a composition left running after a failure."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("packaging.sibling_failed", error_type=type(exc).__name__, error=str(exc))


__all__ = ["PackagingOrchestrator", "PackagingRun"]
