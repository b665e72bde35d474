"""Journal transactor - serialized access to one sealed journal.

All reads and read-modify-write updates against a :class:`SealedStore` go
through a single FIFO ``asyncio.Queue`` drained by one background task:

- an **update** runs alone: it waits for every earlier read to finish,
  then unseals, applies the mutator and seals the result before the next
  queued job is looked at;
- **reads** are released as soon as they reach the head of the queue and
  may overlap with each other, but never with an update, so a read always
  observes every update submitted before it.

Every job carries its own ``asyncio.Future``. A failing job resolves only
its own future; the consumer moves on to the next job regardless, so one
bad transaction never poisons the ones queued behind it. Callers await
their future through ``asyncio.shield``: once admitted, a job runs to
completion even if the caller gives up waiting.
"""

from __future__ import annotations

import asyncio
import inspect
import itertools
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from loguru import logger

from sealjournal.core.exceptions import NotFoundError, SealJournalError, StoreNotFoundError
from sealjournal.core.storage import SealedStore, Unsealed
from sealjournal.journal.models import (
    DEFAULT_TITLE,
    Day,
    Entry,
    Journal,
    new_entry_id,
    now_timestamp,
    parse_timestamp,
    require_password,
    require_text,
    validate_date,
)

Mutator = Callable[[Journal], Any]
"""``(journal) -> result``; may mutate ``journal`` in place and may return an awaitable."""

_SENTINEL = object()


class JobKind(StrEnum):
    READ = "read"
    UPDATE = "update"
    INIT = "init"


@dataclass
class _Job:
    id: int
    kind: JobKind
    password: str
    future: asyncio.Future
    mutator: Mutator | None = None


class JournalTransactor:
    """Serialized read and read-modify-write access to one journal file pair.

    Each instance owns its queue, so independent journals (for example one
    per test) never wait on each other. Concurrent access to the same file
    pair from another process is not coordinated.

    Args:
        store: The sealed file pair backing the journal.
        title: Title given to the journal when the store is first created.
    """

    def __init__(self, store: SealedStore, title: str = DEFAULT_TITLE):
        self.store = store
        self.title = title
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[Any] | None = None
        self._consumer_task: asyncio.Task | None = None
        self._active_reads: set[asyncio.Task] = set()
        self._job_ids = itertools.count(1)

    # ── Lifecycle ──────────────────────────────────────────────────

    def start(self) -> None:
        """Create the background consumer task.

        Called implicitly by the first submitted job; must run inside an
        event loop.
        """
        loop = asyncio.get_running_loop()
        if self._loop is not loop:
            # Queues and tasks are bound to the loop that created them
            self._loop = loop
            self._queue = asyncio.Queue()
            self._consumer_task = None
            self._active_reads = set()
        if self._consumer_task and not self._consumer_task.done():
            return
        self._consumer_task = loop.create_task(self._consume_loop(), name="journal-transactor")
        logger.debug(f"Transactor started for {self.store.data_path}")

    async def stop(self) -> None:
        """Finish every admitted job, then shut the consumer down."""
        if not self._consumer_task or self._consumer_task.done():
            return
        await self._queue.put(_SENTINEL)
        await self._consumer_task
        self._consumer_task = None
        logger.debug(f"Transactor stopped for {self.store.data_path}")

    async def __aenter__(self) -> JournalTransactor:
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    @property
    def pending(self) -> int:
        """Jobs admitted but not yet picked up by the consumer."""
        return self._queue.qsize() if self._queue else 0

    # ── Generic operations ─────────────────────────────────────────

    async def read(self, password: str) -> Journal:
        """Return the journal as of every update submitted before this call.

        A store that was never written reads as an empty journal.
        """
        unsealed = await self._submit(JobKind.READ, password)
        if unsealed is None:
            return Journal.empty(self.title)
        return Journal.from_dict(unsealed.payload)

    async def read_unsealed(self, password: str) -> Unsealed:
        """Like :meth:`read` but return the raw payload and signing key.

        Raises:
            StoreNotFoundError: if nothing has been sealed yet.
        """
        unsealed = await self._submit(JobKind.READ, password)
        if unsealed is None:
            raise StoreNotFoundError(f"Sealed store not found: {self.store.data_path}")
        return unsealed

    async def update(self, password: str, mutator: Mutator) -> Any:
        """Run ``mutator`` on the current journal and seal the result.

        Returns once the new file pair is on disk. The return value is the
        mutator's result. If the mutator raises, nothing is written and the
        error propagates to this caller only.
        """
        return await self._submit(JobKind.UPDATE, password, mutator)

    async def ensure_initialized(self, password: str) -> bool:
        """Seal an empty journal if no store exists. Returns True if one was created."""
        return await self._submit(JobKind.INIT, password)

    # ── Typed entry operations ─────────────────────────────────────

    async def get_day(self, password: str, day: str) -> Day:
        """Return the recorded day, or an empty one."""
        validate_date(day)
        journal = await self.read(password)
        return journal.get_day(day)

    async def append_entry(self, password: str, day: str, content: str) -> Entry:
        """Append a new entry to ``day``, creating the day if needed."""
        validate_date(day)
        require_text(content, "Content")

        def mutate(journal: Journal) -> Entry:
            target = journal.ensure_day(day)
            existing = journal.entry_ids()
            entry_id = new_entry_id()
            while entry_id in existing:
                entry_id = new_entry_id()

            entry = Entry(id=entry_id, timestamp=now_timestamp(), content=content)
            target.entries.append(entry)
            return entry

        return await self.update(password, mutate)

    async def edit_entry(
        self,
        password: str,
        entry_id: str,
        content: str,
        timestamp: str | None = None,
    ) -> Entry:
        """Replace an entry's content (and optionally timestamp) in place.

        Raises:
            ValidationError: empty content or an unparseable timestamp.
            NotFoundError: no entry with ``entry_id`` in any day.
        """
        require_text(entry_id, "Entry id")
        require_text(content, "Content")
        new_timestamp = parse_timestamp(timestamp) if timestamp is not None else None

        def mutate(journal: Journal) -> Entry:
            found = journal.find_entry(entry_id)
            if found is None:
                raise NotFoundError(f"Entry not found: {entry_id}")
            _, entry = found
            entry.content = content
            if new_timestamp is not None:
                entry.timestamp = new_timestamp
            return entry

        return await self.update(password, mutate)

    async def set_summary(self, password: str, day: str, summary: str) -> Day:
        """Replace the summary of ``day``, creating the day if needed."""
        validate_date(day)
        require_text(summary, "Summary")

        def mutate(journal: Journal) -> Day:
            target = journal.ensure_day(day)
            target.summary = summary
            return target

        return await self.update(password, mutate)

    # ── Internal ───────────────────────────────────────────────────

    async def _submit(self, kind: JobKind, password: str, mutator: Mutator | None = None) -> Any:
        password = require_password(password)
        self.start()
        job = _Job(
            id=next(self._job_ids),
            kind=kind,
            password=password,
            future=self._loop.create_future(),
            mutator=mutator,
        )
        self._queue.put_nowait(job)
        logger.debug(f"Queued {kind.value} #{job.id} ({self._queue.qsize()} pending)")
        return await asyncio.shield(job.future)

    async def _consume_loop(self) -> None:
        """Pull jobs in submission order; updates run exclusively."""
        while True:
            job = await self._queue.get()
            try:
                if job is _SENTINEL:
                    await self._drain_reads()
                    break
                if job.kind is JobKind.READ:
                    task = asyncio.create_task(self._run(job, self._do_read))
                    self._active_reads.add(task)
                    task.add_done_callback(self._active_reads.discard)
                else:
                    await self._drain_reads()
                    await self._run(job, self._do_update if job.kind is JobKind.UPDATE else self._do_init)
            except Exception:
                logger.exception("Unhandled error in journal transactor")
            finally:
                self._queue.task_done()

    async def _drain_reads(self) -> None:
        if self._active_reads:
            await asyncio.wait(set(self._active_reads))

    async def _run(self, job: _Job, handler: Callable[[_Job], Awaitable[Any]]) -> None:
        """Execute one job and settle its future; never raises."""
        try:
            result = await handler(job)
        except Exception as exc:
            if isinstance(exc, SealJournalError):
                logger.debug(f"{job.kind.value} #{job.id} failed: {type(exc).__name__}: {exc}")
            else:
                logger.opt(exception=exc).error(f"{job.kind.value} #{job.id} failed with unexpected {type(exc).__name__}")
            if not job.future.done():
                job.future.set_exception(exc)
            return
        logger.debug(f"{job.kind.value} #{job.id} done")
        if not job.future.done():
            job.future.set_result(result)

    async def _load(self, password: str) -> Unsealed | None:
        if not await self.store.exists():
            return None
        return await self.store.unseal(password)

    async def _do_read(self, job: _Job) -> Unsealed | None:
        return await self._load(job.password)

    async def _do_update(self, job: _Job) -> Any:
        unsealed = await self._load(job.password)
        journal = Journal.empty(self.title) if unsealed is None else Journal.from_dict(unsealed.payload)

        result = job.mutator(journal)
        if inspect.isawaitable(result):
            result = await result

        await self.store.seal(job.password, journal.to_dict())
        return result

    async def _do_init(self, job: _Job) -> bool:
        if await self.store.exists():
            return False
        await self.store.seal(job.password, Journal.empty(self.title).to_dict())
        logger.info(f"Created empty journal at {self.store.data_path}")
        return True
