# region Docstring
"""
clipkeep_services.history
The clipboard history store: single writer, published snapshot, and observers.
Overview:
- Owns the repository, the retention engine, the deduplication resolver, and the capture
    adapter, and wires them into one write pipeline:
        capture -> dedup (insert or touch) -> retention sweep -> publish snapshot
- Every mutation runs on one store-owned writer thread. Callers block until their job
    has finished, except update_config() which returns a Future for its re-sweep.
- Readers get the last published tuple of items; a new tuple replaces it after every
    write, so a reader sees either the state before or after a write, never a mix.
Contents:
- Enums:
    - StoreState: UNINITIALIZED -> READY -> CLOSED
- Service Classes:
    - ClipboardStore:
        open(), close(), items, policy, subscribe(callback), ingest(item),
        capture(event), capture_text(text), capture_image(data), update_item(),
        set_pinned(), set_sticky(), set_keywords(), add_keyword(), get(), resolve_id(),
        search(query), sweep(), update_config(policy), clear()
Design Notes:
- A retention sweep follows every mutation, so unpinning or un-sticking an item applies
    the capacity and age policies to it right away.
- Observers are called on the writer thread with the new snapshot. An observer that
    raises is logged and skipped. Mutations issued from an observer run inline instead
    of being queued behind the job that is notifying it.
- There is no global settings object; the RetentionPolicy is passed in at construction
    and replaced through update_config().

Example:
    >>> store = ClipboardStore.from_settings(logger).open()
    >>> store.capture_text("hello")
    >>> [item.content for item in store.items]
    ['hello']
    >>> store.close()
"""
# endregion
# region Imports
import enum
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from logging import Logger
from typing import Callable, Optional, Union

from clipkeep.config import (
    DatabaseSettings,
    HistorySettings,
    RetentionPolicy,
    get_settings,
)
from clipkeep.database import DatabaseSessionGenerator
from clipkeep.errors import ItemNotFound, StoreNotReady
from clipkeep.models import ClipboardItem
from clipkeep.repository import ClipboardRepository
from clipkeep.utils import get_time

from clipkeep_services.capture import CaptureAdapter, CaptureEvent
from clipkeep_services.dedup import DedupOutcome, DeduplicationResolver
from clipkeep_services.retention import RetentionEngine, SweepResult
from clipkeep_services.search import search_items

# endregion
# region Types

Snapshot = tuple[ClipboardItem, ...]
Observer = Callable[[Snapshot], None]


class StoreState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    CLOSED = "closed"


# endregion
# region Store


class ClipboardStore:
    """
    Durable, bounded clipboard history with a single writer.
    """

    def __init__(
        self,
        db: DatabaseSessionGenerator,
        policy: RetentionPolicy,
        logger: Logger,
        clock: Callable[[], datetime] = get_time,
    ):
        """
        Args:
            db (DatabaseSessionGenerator): Session source for the history database.
            policy (RetentionPolicy): Retention window and regular-item capacity.
            logger (Logger): Parent logger; components log through child loggers.
            clock (Callable[[], datetime]): Source of the current time, used for capture
                timestamps and the age policy.
        """
        self.db = db
        self.clock = clock
        self.logger = logger.getChild("ClipboardStore")
        self.repository = ClipboardRepository(db, logger)
        self.retention = RetentionEngine(self.repository, policy, logger)
        self.resolver = DeduplicationResolver(self.repository, logger)
        self.adapter = CaptureAdapter(self.ingest, logger, clock)
        self.state = StoreState.UNINITIALIZED

        self._items: Snapshot = ()
        self._observers: list[Observer] = []
        self._observers_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._writer_ident: Optional[int] = None

    @classmethod
    def from_settings(
        cls,
        logger: Logger,
        history: Optional[HistorySettings] = None,
        database: Optional[DatabaseSettings] = None,
        clock: Callable[[], datetime] = get_time,
    ) -> "ClipboardStore":
        """Store built from the cached HistorySettings and DatabaseSettings."""
        history = history or get_settings(HistorySettings)
        database = database or get_settings(DatabaseSettings)
        return cls(DatabaseSessionGenerator(database), history.policy, logger, clock)

    # region Lifecycle
    def open(self) -> "ClipboardStore":
        """
        Create or migrate the schema, run the startup sweep, and publish the first
        snapshot.

        Raises:
            StoreNotReady: If the store was already opened or closed.
            StorageUnavailable: If the database cannot be opened or migrated.
        """
        with self._state_lock:
            if self.state != StoreState.UNINITIALIZED:
                raise StoreNotReady(f"Cannot open a store that is {self.state.value}")
            self._executor = ThreadPoolExecutor(
                max_workers=1,
                thread_name_prefix="clipkeep-writer",
                initializer=self._mark_writer,
            )
            try:
                self._executor.submit(self._startup).result()
            except Exception:
                self._executor.shutdown(wait=True)
                self._executor = None
                self._writer_ident = None
                raise
            self.state = StoreState.READY
        return self

    def close(self) -> None:
        """
        Drain the writer and release the database engine. Safe to call twice.

        When called from an observer the writer cannot join itself; it stops once the
        current job and any already queued ones have finished.
        """
        with self._state_lock:
            if self.state == StoreState.CLOSED:
                return
            self.state = StoreState.CLOSED
            executor, self._executor = self._executor, None
        if executor is not None:
            on_writer = threading.get_ident() == self._writer_ident
            executor.shutdown(wait=not on_writer)
        self._writer_ident = None
        self.db.dispose()
        self.logger.info("History store closed")

    def __enter__(self) -> "ClipboardStore":
        if self.state == StoreState.UNINITIALIZED:
            self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _mark_writer(self) -> None:
        self._writer_ident = threading.get_ident()

    def _startup(self) -> None:
        self.repository.initialize()
        self.retention.sweep(self.clock())
        self._publish()
        self.logger.info(
            f"History store ready at {self.db.engine.url} with {len(self._items)} items"
        )

    def _require_ready(self) -> None:
        if self.state != StoreState.READY:
            raise StoreNotReady(f"History store is {self.state.value}")

    # endregion
    # region Writer
    def _submit(self, func: Callable, *args) -> Future:
        """Queue `func` on the writer thread, or run it inline when already there."""
        if threading.get_ident() == self._writer_ident:
            future: Future = Future()
            try:
                future.set_result(func(*args))
            except Exception as e:
                future.set_exception(e)
            return future
        with self._state_lock:
            self._require_ready()
            return self._executor.submit(func, *args)

    def _call(self, func: Callable, *args):
        return self._submit(func, *args).result()

    def _mutate(self, func: Callable, *args):
        """Writer job: apply a mutation, sweep, and publish the new snapshot."""
        result = func(*args)
        self.retention.sweep(self.clock())
        self._publish()
        return result

    def _publish(self) -> None:
        self._items = tuple(self.retention.load(self.clock()))
        with self._observers_lock:
            observers = list(self._observers)
        for observer in observers:
            try:
                observer(self._items)
            except Exception:
                self.logger.exception(f"Observer {observer!r} failed")

    # endregion
    # region Reads
    @property
    def items(self) -> Snapshot:
        """Ordered view: pinned first, then the rest, newest first within each group."""
        return self._items

    @property
    def policy(self) -> RetentionPolicy:
        return self.retention.policy

    def subscribe(self, callback: Observer) -> Callable[[], None]:
        """
        Register `callback` to receive every newly published snapshot.

        Returns:
            Callable[[], None]: Removes the registration when called.
        """
        with self._observers_lock:
            self._observers.append(callback)

        def unsubscribe() -> None:
            with self._observers_lock:
                if callback in self._observers:
                    self._observers.remove(callback)

        return unsubscribe

    def search(self, query: str) -> list[ClipboardItem]:
        """Items of the current view whose content or keywords contain `query`."""
        self._require_ready()
        return search_items(self._items, query)

    def get(self, item_id: str) -> ClipboardItem:
        self._require_ready()
        return self.repository.get(item_id)

    def resolve_id(self, prefix: str) -> str:
        """
        Full id of the one item in the current view whose id starts with `prefix`.

        Raises:
            ItemNotFound: If no item matches.
            ValueError: If more than one item matches.
        """
        self._require_ready()
        needle = prefix.strip().lower()
        matches = [item.id for item in self._items if item.id.lower().startswith(needle)]
        if not needle or not matches:
            raise ItemNotFound(prefix)
        if len(matches) > 1:
            raise ValueError(f"Id prefix {prefix!r} matches {len(matches)} items")
        return matches[0]

    # endregion
    # region Capture
    def ingest(self, item: ClipboardItem) -> DedupOutcome:
        """Run a captured item through dedup, persistence, and retention."""
        outcome = self._call(self._mutate, self.resolver.resolve, item)
        self.logger.debug(
            f"{'Touched' if outcome.touched else 'Inserted'} item {outcome.item_id}"
        )
        return outcome

    def capture(self, event: CaptureEvent) -> Optional[DedupOutcome]:
        self._require_ready()
        return self.adapter.on_capture(event)

    def capture_text(self, text: str) -> Optional[DedupOutcome]:
        return self.capture(CaptureEvent(text=text))

    def capture_image(self, data: bytes) -> Optional[DedupOutcome]:
        return self.capture(CaptureEvent(image=data))

    # endregion
    # region Edits
    def update_item(
        self,
        item_id: str,
        pinned: Optional[bool] = None,
        sticky: Optional[bool] = None,
        keywords: Optional[list[str]] = None,
    ) -> None:
        """
        Change the flags and/or replace the keywords of one item.

        Raises:
            ItemNotFound: If `item_id` is unknown; nothing is changed.
            ValueError: If a keyword contains a comma.
        """
        self._call(
            self._mutate, self.repository.update_flags, item_id, pinned, sticky, keywords
        )

    def set_pinned(self, item_id: str, pinned: bool) -> None:
        self.update_item(item_id, pinned=pinned)

    def set_sticky(self, item_id: str, sticky: bool) -> None:
        self.update_item(item_id, sticky=sticky)

    def set_keywords(self, item_id: str, keywords: list[str]) -> None:
        self.update_item(item_id, keywords=keywords)

    def add_keyword(self, item_id: str, keyword: str) -> None:
        """Append `keyword` to the item's keywords unless it is already present."""
        self._call(self._mutate, self._add_keyword, item_id, keyword)

    def _add_keyword(self, item_id: str, keyword: str) -> None:
        item = self.repository.get(item_id)
        self.repository.update_flags(item_id, keywords=item.with_keyword(keyword))

    def clear(self) -> int:
        """Delete every item, pinned and sticky ones included."""
        return self._call(self._mutate, self.repository.clear_all)

    # endregion
    # region Policy
    def sweep(self) -> SweepResult:
        """Apply both retention policies now."""
        return self._call(self._sweep)

    def _sweep(self) -> SweepResult:
        result = self.retention.sweep(self.clock())
        self._publish()
        return result

    def update_config(
        self, policy: Union[RetentionPolicy, dict]
    ) -> "Future[SweepResult]":
        """
        Replace the retention policy and schedule a re-sweep.

        The policy is validated before anything is queued. Observers are notified once
        the re-sweep has finished.

        Returns:
            Future[SweepResult]: Completes with the re-sweep result.

        Raises:
            pydantic.ValidationError: If `policy` is invalid.
        """
        policy = RetentionPolicy.model_validate(policy)
        return self._submit(self._apply_policy, policy)

    def _apply_policy(self, policy: RetentionPolicy) -> SweepResult:
        self.retention = self.retention.with_policy(policy)
        self.logger.info(
            f"Retention policy set to {policy.retention_days} days, "
            f"{policy.max_items} items"
        )
        return self._sweep()

    # endregion


# endregion
__all__ = ["ClipboardStore", "Observer", "Snapshot", "StoreState"]
