"""Session controller: owns the list state and decides when to reconcile.

Everything runs on one asyncio event loop. The only suspension points are the
CSV fetch and the entry post, so "concurrency" here means overlapping
operations, not threads:

- A background tick is skipped (not delayed) while a submission is in flight,
  so a refresh never reconciles a snapshot older than the row just inserted
  optimistically.
- Overlapping refreshes are not serialized. Each reconciles against the list
  as it stands when its fetch resolves; the last one to finish wins.
- In-flight fetches are never cancelled. A late, stale snapshot still merges
  in; fingerprint reconciliation keeps that from duplicating rows.

The list is replaced wholesale by reconciliation or grown by one optimistic
prepend; records are never edited in place.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from types import TracebackType
from typing import Protocol, TypeAlias

import httpx

from .config import DEFAULT_REFRESH_INTERVAL, DEFAULT_RESYNC_DELAY
from .errors import PotluckError, SubmissionValidationError
from .grouping import project
from .logging_setup import get_logger
from .models import ItemGroup, SignupForm, SignupRecord
from .normalizers import utc_now_iso
from .reconcile import reconcile
from .remote import READ_ERROR_MESSAGE, WRITE_ERROR_MESSAGE

VALIDATION_MESSAGE = "Nom et objet sont obligatoires."

_logger = get_logger("potluck.sync")


class SheetSource(Protocol):
    """What the controller needs from the remote side (see ``SheetClient``)."""

    async def fetch_records(self) -> list[SignupRecord]: ...

    async def post_entry(self, form: SignupForm) -> None: ...

    async def aclose(self) -> None: ...


Listener: TypeAlias = Callable[["SyncController"], None]


def validate_submission(form: SignupForm) -> None:
    """Raise ``SubmissionValidationError`` unless name and item are filled."""

    missing = form.missing_required()
    if missing:
        _logger.debug("submission rejected, missing: %s", ", ".join(missing))
        raise SubmissionValidationError(VALIDATION_MESSAGE)


class SyncController:
    """Owns the reconciled list, the form and the status flags of a session.

    ``loading``, ``refreshing`` and ``submitting`` are independent flags.
    ``error`` is a single message slot, cleared at the start of every
    operation; failures never raise out of :meth:`refresh` or :meth:`submit`.
    Listeners are called with the controller after each state change.
    """

    def __init__(
        self,
        client: SheetSource,
        *,
        refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
        resync_delay: float = DEFAULT_RESYNC_DELAY,
        listeners: Iterable[Listener] = (),
    ) -> None:
        self._client = client
        self.refresh_interval = refresh_interval
        self.resync_delay = resync_delay
        self._listeners: list[Listener] = list(listeners)
        self._records: tuple[SignupRecord, ...] = ()
        self._pending: set[asyncio.Task[None]] = set()

        self.form = SignupForm()
        self.loading = True
        self.refreshing = False
        self.submitting = False
        self.error = ""

    # ---- State views ---------------------------------------------------------

    @property
    def records(self) -> tuple[SignupRecord, ...]:
        return self._records

    @property
    def grouped(self) -> tuple[ItemGroup, ...]:
        return project(self._records)

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # ---- Operations ----------------------------------------------------------

    async def refresh(self, show_spinner: bool = False) -> bool:
        """Fetch the sheet, reconcile it into the list, and report success.

        On failure the message lands in ``error`` and the list is untouched.
        """

        self.error = ""
        if show_spinner:
            self.refreshing = True
        if not self._records:
            self.loading = True
        self._notify()

        try:
            incoming = await self._client.fetch_records()
        except (PotluckError, httpx.HTTPError) as exc:
            self.error = str(exc) or READ_ERROR_MESSAGE
            _logger.warning("refresh failed: %s", self.error)
            return False
        else:
            # Merge against the list as it is now, not as it was when the
            # fetch started; a submission may have landed meanwhile.
            self._records = reconcile(self._records, incoming)
            _logger.debug("refreshed: %d incoming, %d listed", len(incoming), len(self._records))
            return True
        finally:
            if show_spinner:
                self.refreshing = False
            self.loading = False
            self._notify()

    async def submit(self, form: SignupForm | None = None) -> bool:
        """Validate and send an entry, then insert it optimistically.

        Returns ``True`` when the endpoint acknowledged the entry. On success
        the form keeps only the name and a refresh is scheduled after
        ``resync_delay`` seconds.
        """

        if form is not None:
            self.form = form
        form = self.form
        self.error = ""

        try:
            validate_submission(form)
        except SubmissionValidationError as exc:
            self.error = str(exc)
            self._notify()
            return False

        self.submitting = True
        self._notify()
        try:
            await self._client.post_entry(form)
            record = form.to_record(utc_now_iso())
            self._records = (record, *self._records)
            self.form = form.cleared()
            _logger.info("added %r for %r", record.item, record.name)
            self._schedule_resync()
            return True
        except (PotluckError, httpx.HTTPError) as exc:
            self.error = str(exc) or WRITE_ERROR_MESSAGE
            _logger.warning("submission failed: %s", self.error)
            return False
        finally:
            self.submitting = False
            self._notify()

    async def tick(self) -> bool:
        """One periodic step; skipped while a submission is in flight."""

        if self.submitting:
            _logger.debug("tick skipped: submission in flight")
            return False
        return await self.refresh()

    async def run(self, stop_event: asyncio.Event | None = None) -> None:
        """Initial refresh, then a tick every ``refresh_interval`` seconds."""

        stop = stop_event or asyncio.Event()
        await self.refresh()
        while not stop.is_set():
            try:
                await asyncio.wait_for(stop.wait(), timeout=self.refresh_interval)
            except TimeoutError:
                await self.tick()

    # ---- Delayed re-sync -----------------------------------------------------

    def _schedule_resync(self) -> None:
        task = asyncio.create_task(self._delayed_refresh())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _delayed_refresh(self) -> None:
        await asyncio.sleep(self.resync_delay)
        await self.refresh()

    async def wait_pending(self) -> None:
        """Wait for scheduled re-syncs to finish.

        Used by tests and by callers that want the post-submission refresh
        applied before shutting down; ``close`` cancels them instead.
        """

        while self._pending:
            await asyncio.gather(*list(self._pending))

    # ---- Lifecycle -----------------------------------------------------------

    async def close(self) -> None:
        for task in list(self._pending):
            task.cancel()
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
        await self._client.aclose()

    async def __aenter__(self) -> SyncController:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()


__all__ = [
    "VALIDATION_MESSAGE",
    "SheetSource",
    "SyncController",
    "validate_submission",
]
