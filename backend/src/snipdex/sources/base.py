"""Base source adapter interface."""

import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from snipdex.catalog.models import BuildIssue, IssueKind, RawRecord
from snipdex.errors import EntryParseError, ExtractionError

logger = logging.getLogger(__name__)


@dataclass
class SourceBatch:
    """Everything one adapter run produced: records plus non-fatal issues."""

    source: str
    records: list[RawRecord] = field(default_factory=list)
    issues: list[BuildIssue] = field(default_factory=list)

    def skip_entry(self, error: EntryParseError) -> None:
        """Record a definition that could not be parsed."""
        self.issues.append(
            BuildIssue(IssueKind.ENTRY_PARSE, self.source, error.location, error.detail)
        )

    def skip_bundle(self, error: ExtractionError) -> None:
        """Record a bundle that could not be extracted."""
        self.issues.append(
            BuildIssue(IssueKind.EXTRACTION, self.source, error.location, error.detail)
        )


class SourceAdapter(ABC):
    """Abstract base class for snippet sources.

    Adapters are read-only and restart from scratch on every call to
    load(). The blocking work happens in read(), which load() runs on a
    worker thread so the event loop stays responsive. A worker thread
    cannot be interrupted, so a cancelled load() sets the cancel event
    and waits for read() to return before it finishes.
    """

    #: Whether this source's categories win merge conflicts and its
    #: failures abort the build.
    is_primary: bool = False

    @property
    @abstractmethod
    def name(self) -> str:
        """Provenance tag attached to every snippet from this source."""
        pass

    @abstractmethod
    def read(self, cancel: threading.Event | None = None) -> SourceBatch:
        """Enumerate records synchronously.

        Args:
            cancel: Set when the caller has stopped waiting. Long reads check
                it between units of work and return what they have so far.

        Returns:
            SourceBatch with the records found and any skipped entries.

        Raises:
            SourceUnavailable: Primary sources only, when the backing store
                cannot be opened or queried.
        """
        pass

    async def load(self) -> SourceBatch:
        """Enumerate records without blocking the event loop."""
        cancel = threading.Event()
        worker = asyncio.ensure_future(asyncio.to_thread(self.read, cancel))
        try:
            return await asyncio.shield(worker)
        except asyncio.CancelledError:
            cancel.set()
            await asyncio.wait([worker])
            if not worker.cancelled() and worker.exception() is not None:
                logger.debug(
                    f"{self.name} failed after its load was cancelled: {worker.exception()}"
                )
            raise

    async def records(self) -> list[RawRecord]:
        """Just the records from a fresh load()."""
        return (await self.load()).records

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
