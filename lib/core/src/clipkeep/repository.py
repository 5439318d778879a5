# region Docstring
"""
clipkeep.repository
Typed persistence operations for the clipboard history table.
Overview:
- Wraps a DatabaseSessionGenerator and exposes the operations the history store needs:
    insert, touch, flag updates, payload lookup, ordered loading, age and capacity
    deletion, and clearing.
- Applies additive schema migrations at startup so databases created by older versions
    keep their rows.
Contents:
- Decorators:
    - _retry_on_lock: Retries an operation a bounded number of times while SQLite
        reports the database as locked or busy, then raises LockContention. Any other
        SQLAlchemy error is logged and raised as QueryFailure.
- Service Classes:
    - ClipboardRepository:
        initialize(), migrate(), insert(), touch(), update_flags(), find_by_payload(),
        get(), count(), load_ordered(), delete_expired(), delete_beyond_capacity(),
        clear_all().
Design Notes:
- Every mutation runs inside a single `session.begin()` block so it commits or rolls
    back as a unit.
- Ties on the capture timestamp are broken by SQLite's rowid (insertion order), newest
    insertion first, both for presentation and for capacity eviction.
- "Regular" rows are those neither pinned nor sticky; NULL flags from migrated rows
    count as false.
"""
# endregion
# region Imports
import time
from datetime import datetime
from functools import wraps
from logging import Logger
from typing import Callable, Optional, TypeVar, Union

from sqlalchemy import (
    and_,
    delete,
    func,
    literal_column,
    or_,
    select,
    text,
    update,
)
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from clipkeep.constants import ADDITIVE_COLUMNS, TABLE_NAME, ItemKind
from clipkeep.database import DatabaseSessionGenerator
from clipkeep.errors import (
    ItemNotFound,
    LockContention,
    MigrationNoop,
    QueryFailure,
    StorageUnavailable,
)
from clipkeep.models import (
    ClipboardItem,
    ClipboardItemEntity,
    join_keywords,
    normalize_keywords,
)
from clipkeep.utils import to_epoch

# endregion
# region Helpers
T = TypeVar("T")

_ROWID = literal_column(f"{TABLE_NAME}.rowid")
_E = ClipboardItemEntity
_REGULAR = and_(_E.is_pinned.is_not(True), _E.is_sticky.is_not(True))


def _is_lock_error(error: OperationalError) -> bool:
    message = str(error.orig).lower()
    return "locked" in message or "busy" in message


def _retry_on_lock(operation: str):
    """Decorator applying the bounded lock-contention retry to a repository method."""

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(self: "ClipboardRepository", *args, **kwargs) -> T:
            attempt = 0
            while True:
                try:
                    return func(self, *args, **kwargs)
                except OperationalError as e:
                    if not _is_lock_error(e):
                        self.logger.error(f"{operation} failed: {e}")
                        raise QueryFailure(f"{operation} failed: {e.orig}") from e
                    if attempt >= self.retry_attempts:
                        self.logger.error(
                            f"{operation} gave up after {attempt + 1} attempts: database locked"
                        )
                        raise LockContention(
                            f"{operation} failed: database locked after {attempt + 1} attempts"
                        ) from e
                    attempt += 1
                    self.logger.warning(
                        f"{operation} hit a locked database, retry {attempt}/{self.retry_attempts}"
                    )
                    time.sleep(self.retry_delay)
                except SQLAlchemyError as e:
                    self.logger.error(f"{operation} failed: {e}")
                    raise QueryFailure(f"{operation} failed: {e}") from e

        return wrapper

    return decorator


# endregion
# region Repository


class ClipboardRepository:
    """
    Persistence layer for clipboard items.
    """

    def __init__(self, db: DatabaseSessionGenerator, logger: Logger):
        """
        Initializes the repository with a database session generator and logger.

        Args:
            db (DatabaseSessionGenerator): The database session generator.
            logger (Logger): The logger instance for logging.
        """
        self.db = db
        self.logger = logger.getChild("ClipboardRepository")
        self.retry_attempts = db.settings.lock_retry_attempts
        self.retry_delay = db.settings.lock_retry_delay

    # region Schema
    def initialize(self) -> None:
        """
        Create the table when missing, then apply additive migrations and indexes.

        Raises:
            StorageUnavailable: If the database cannot be opened or migrated.
        """
        self.db.init_db()
        try:
            self.migrate()
        except QueryFailure as e:
            raise StorageUnavailable(f"Cannot migrate database: {e}") from e

    def migrate(self) -> None:
        """Add optional columns and indexes that older databases lack."""
        for column, ddl in ADDITIVE_COLUMNS:
            try:
                self._add_column(column, ddl)
                self.logger.info(f"Added column {TABLE_NAME}.{column}")
            except MigrationNoop as e:
                self.logger.debug(str(e))
        for index in _E.__table__.indexes:
            self._create_index(index)

    @_retry_on_lock("add column")
    def _add_column(self, column: str, ddl: str) -> None:
        try:
            with self.db.engine.begin() as conn:
                conn.execute(
                    text(f"ALTER TABLE {TABLE_NAME} ADD COLUMN {column} {ddl}")
                )
        except OperationalError as e:
            if "duplicate column" in str(e.orig).lower():
                raise MigrationNoop(f"Column {TABLE_NAME}.{column} already exists") from e
            raise

    @_retry_on_lock("create index")
    def _create_index(self, index) -> None:
        with self.db.engine.begin() as conn:
            index.create(bind=conn, checkfirst=True)

    # endregion
    # region Mutations
    @_retry_on_lock("insert")
    def insert(self, item: ClipboardItem) -> None:
        """
        Insert a new row for `item`.

        Raises:
            QueryFailure: If the row cannot be written (e.g. a duplicate id).
        """
        with self.db.get_session() as session, session.begin():
            session.add(item.entity)
        self.logger.debug(f"Inserted {item.kind.value} item {item.id}")

    @_retry_on_lock("touch")
    def touch(self, item_id: str, new_timestamp: datetime) -> None:
        """
        Refresh the capture timestamp of an existing row.

        Raises:
            ItemNotFound: If no row has `item_id`.
        """
        with self.db.get_session() as session, session.begin():
            result = session.execute(
                update(_E)
                .where(_E.id == item_id)
                .values(timestamp=to_epoch(new_timestamp))
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise ItemNotFound(item_id)
        self.logger.debug(f"Touched item {item_id}")

    @_retry_on_lock("update flags")
    def update_flags(
        self,
        item_id: str,
        pinned: Optional[bool] = None,
        sticky: Optional[bool] = None,
        keywords: Optional[list[str]] = None,
    ) -> None:
        """
        Update any of the policy flags and the keyword list of a row.

        Arguments left as None are not changed. `keywords` replaces the whole list.

        Raises:
            ItemNotFound: If no row has `item_id`.
            ValueError: If a keyword contains a comma.
        """
        values: dict = {}
        if pinned is not None:
            values["is_pinned"] = pinned
        if sticky is not None:
            values["is_sticky"] = sticky
        if keywords is not None:
            values["keywords"] = join_keywords(normalize_keywords(keywords))

        with self.db.get_session() as session, session.begin():
            if not values:
                if session.get(_E, item_id) is None:
                    raise ItemNotFound(item_id)
                return
            result = session.execute(
                update(_E)
                .where(_E.id == item_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise ItemNotFound(item_id)
        self.logger.debug(f"Updated {sorted(values)} of item {item_id}")

    @_retry_on_lock("delete expired")
    def delete_expired(self, cutoff: datetime) -> int:
        """
        Delete regular rows captured before `cutoff`.

        Returns:
            int: Number of rows deleted.
        """
        with self.db.get_session() as session, session.begin():
            result = session.execute(
                delete(_E)
                .where(_REGULAR, _E.timestamp < to_epoch(cutoff))
                .execution_options(synchronize_session=False)
            )
        return result.rowcount

    @_retry_on_lock("delete beyond capacity")
    def delete_beyond_capacity(self, max_regular: int) -> int:
        """
        Delete regular rows beyond the `max_regular` most recent readable ones.

        Unreadable rows neither take a slot nor get deleted here; load_ordered skips
        them the same way.

        Returns:
            int: Number of rows deleted.
        """
        stmt = select(_E).where(_REGULAR).order_by(_E.timestamp.desc(), _ROWID.desc())
        with self.db.get_session() as session, session.begin():
            readable = 0
            evict: list[str] = []
            for entity in session.scalars(stmt):
                try:
                    entity.model
                except (ValueError, TypeError):
                    continue
                readable += 1
                if readable > max_regular:
                    evict.append(entity.id)
            if not evict:
                return 0
            result = session.execute(
                delete(_E)
                .where(_E.id.in_(evict))
                .execution_options(synchronize_session=False)
            )
        return result.rowcount

    @_retry_on_lock("clear")
    def clear_all(self) -> int:
        """Delete every row. Returns the number of rows deleted."""
        with self.db.get_session() as session, session.begin():
            result = session.execute(
                delete(_E).execution_options(synchronize_session=False)
            )
        self.logger.info(f"Cleared {result.rowcount} items")
        return result.rowcount

    # endregion
    # region Queries
    @_retry_on_lock("find by payload")
    def find_by_payload(
        self, kind: ItemKind, payload: Union[str, bytes]
    ) -> Optional[str]:
        """
        Id of the row holding a byte-identical payload of the same kind, if any.
        """
        kind = ItemKind(kind)
        if kind == ItemKind.IMAGE:
            condition = _E.image_data == bytes(payload)
        else:
            if isinstance(payload, bytes):
                payload = payload.decode("utf-8")
            condition = _E.content == payload
        stmt = select(_E.id).where(_E.type == kind.value, condition).limit(1)
        with self.db.get_session() as session:
            return session.scalar(stmt)

    @_retry_on_lock("get")
    def get(self, item_id: str) -> ClipboardItem:
        """
        Load a single item.

        Raises:
            ItemNotFound: If no row has `item_id`.
        """
        with self.db.get_session() as session:
            entity = session.get(_E, item_id)
            if entity is None:
                raise ItemNotFound(item_id)
            return entity.model

    @_retry_on_lock("count")
    def count(self) -> int:
        with self.db.get_session() as session:
            return session.scalar(select(func.count()).select_from(_E))

    @_retry_on_lock("load")
    def load_ordered(
        self, retention_cutoff: datetime, max_regular: int
    ) -> list[ClipboardItem]:
        """
        Items surviving both policies, in presentation order.

        Pinned and sticky rows are always included. Regular rows are included when
        captured at or after `retention_cutoff`, up to `max_regular` of them. The
        result lists pinned items first, then everything else, each group by
        descending capture time. Rows that cannot be converted into a ClipboardItem
        are logged and skipped.
        """
        stmt = (
            select(_E)
            .where(
                or_(
                    _E.is_pinned.is_(True),
                    _E.is_sticky.is_(True),
                    _E.timestamp >= to_epoch(retention_cutoff),
                )
            )
            .order_by(_E.is_pinned.desc(), _E.timestamp.desc(), _ROWID.desc())
        )
        items: list[ClipboardItem] = []
        regular = 0
        with self.db.get_session() as session:
            for entity in session.scalars(stmt):
                try:
                    item = entity.model
                except (ValueError, TypeError) as e:
                    self.logger.warning(f"Skipping unreadable row {entity.id!r}: {e}")
                    continue
                if item.is_regular:
                    if regular >= max_regular:
                        continue
                    regular += 1
                items.append(item)
        return items

    # endregion


# endregion
__all__ = ["ClipboardRepository"]
