"""Persisted, reactive store of solved problems and goal settings."""

from collections.abc import Callable, Mapping
from datetime import date, datetime
from typing import Any

import structlog
from pydantic import ValidationError

from algo_grind import analytics
from algo_grind.models.catalog import GOAL_CATEGORIES, GoalCategory, default_ledger
from algo_grind.models.practice import (
    GoalProgress,
    GoalSettings,
    Ledger,
    NewProblemRecord,
    SolvedProblemRecord,
)
from algo_grind.storage.migrations import backfill, migrate
from algo_grind.storage.slot import StorageSlot

logger = structlog.get_logger()

LedgerListener = Callable[[Ledger], None]


class LedgerError(Exception):
    """Base class for ledger usage errors."""


class LedgerNotInitializedError(LedgerError):
    """A mutation was attempted before the stored ledger was loaded."""


class LedgerAlreadyLoadedError(LedgerError):
    """load() was called a second time."""


class PracticeLedger:
    """Owns the canonical Ledger value and keeps its storage slot in sync.

    The ledger starts out holding defaults with ``initialized`` False. ``load``
    reads, migrates and backfills whatever the slot holds and flips
    ``initialized`` exactly once; mutations are refused until then so that the
    transient defaults can never overwrite real stored data. Every accepted
    mutation swaps in a new immutable Ledger, writes the whole document back
    to the slot and notifies subscribers.

    Args:
        slot: Durable storage slot holding the serialized ledger.
        catalog: Goal categories used for defaults, backfill and adherence.
    """

    def __init__(self, slot: StorageSlot, catalog: list[GoalCategory] = GOAL_CATEGORIES):
        self._slot = slot
        self._catalog = catalog
        self._ledger: Ledger = default_ledger(catalog)
        self._initialized: bool = False
        self._listeners: list[LedgerListener] = []

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def records(self) -> tuple[SolvedProblemRecord, ...]:
        return self._ledger.records

    @property
    def goal_settings(self) -> GoalSettings:
        return self._ledger.goal_settings

    @property
    def catalog(self) -> list[GoalCategory]:
        return self._catalog

    def subscribe(self, listener: LedgerListener) -> Callable[[], None]:
        """Register a callable invoked with the new Ledger after every change.

        Returns:
            A function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -- loading ---------------------------------------------------------

    def load(self) -> Ledger:
        """Load the stored ledger, falling back to defaults on any problem."""
        if self._initialized:
            raise LedgerAlreadyLoadedError("ledger has already been loaded")

        ledger, repaired = self._read()
        self._ledger = ledger
        self._initialized = True
        logger.info(
            "ledger_loaded",
            slot=repr(self._slot),
            records=len(ledger.records),
            repaired=repaired,
        )
        if repaired:
            self._persist()
        self._notify()
        return ledger

    def _read(self) -> tuple[Ledger, bool]:
        try:
            document = self._slot.read()
        except (OSError, ValueError):
            logger.warning("ledger_load_failed", slot=repr(self._slot), reason="unreadable", exc_info=True)
            return default_ledger(self._catalog), False

        if document is None:
            return default_ledger(self._catalog), False
        if not isinstance(document, dict):
            logger.warning("ledger_load_failed", slot=repr(self._slot), reason="not_an_object")
            return default_ledger(self._catalog), False

        document, changed = backfill(migrate(document), self._catalog)
        try:
            return Ledger.model_validate(document), changed
        except ValidationError as exc:
            logger.warning(
                "ledger_load_failed",
                slot=repr(self._slot),
                reason="invalid_shape",
                errors=exc.error_count(),
            )
            return default_ledger(self._catalog), False

    # -- mutations -------------------------------------------------------

    def add_record(self, data: NewProblemRecord | Mapping[str, Any]) -> SolvedProblemRecord:
        """Append a new solved problem with a freshly generated id.

        Raises:
            pydantic.ValidationError: If ``data`` is not a valid problem entry.
        """
        self._require_initialized()
        if not isinstance(data, NewProblemRecord):
            data = NewProblemRecord.model_validate(data)

        record = SolvedProblemRecord.create(data)
        self._commit(self._ledger.model_copy(update={"records": self._ledger.records + (record,)}))
        logger.info("record_added", record_id=record.id, category=record.category.value)
        return record

    def update_record(
        self, record: SolvedProblemRecord | Mapping[str, Any]
    ) -> SolvedProblemRecord | None:
        """Replace the stored record with the same id, keeping its position.

        Returns:
            The stored record, or None when no record has that id.
        """
        self._require_initialized()
        if not isinstance(record, SolvedProblemRecord):
            record = SolvedProblemRecord.model_validate(record)

        index = self._index_of(record.id)
        if index is None:
            logger.warning("record_not_found", operation="update", record_id=record.id)
            self._persist()
            return None

        records = list(self._ledger.records)
        records[index] = record
        self._commit(self._ledger.model_copy(update={"records": tuple(records)}))
        logger.info("record_updated", record_id=record.id)
        return record

    def remove_record(self, record_id: str) -> bool:
        """Remove the record with ``record_id``. Returns False if there was none."""
        self._require_initialized()
        remaining = tuple(r for r in self._ledger.records if r.id != record_id)
        if len(remaining) == len(self._ledger.records):
            logger.warning("record_not_found", operation="remove", record_id=record_id)
            self._persist()
            return False

        self._commit(self._ledger.model_copy(update={"records": remaining}))
        logger.info("record_removed", record_id=record_id)
        return True

    def toggle_review(self, record_id: str) -> SolvedProblemRecord | None:
        """Flip the review mark on a record. Returns the new record, or None."""
        self._require_initialized()
        index = self._index_of(record_id)
        if index is None:
            logger.warning("record_not_found", operation="toggle_review", record_id=record_id)
            self._persist()
            return None

        records = list(self._ledger.records)
        current = records[index]
        records[index] = current.model_copy(
            update={"marked_for_review": not current.marked_for_review}
        )
        self._commit(self._ledger.model_copy(update={"records": tuple(records)}))
        return records[index]

    def update_goal_settings(
        self, changes: Mapping[str, Any] | None = None, **fields: Any
    ) -> GoalSettings:
        """Shallow-merge the given fields into the current goal settings.

        Keys may use either the Python or the stored (camelCase) spelling.
        Goal entries are kept as given, even for ids the catalog does not know.

        Raises:
            pydantic.ValidationError: If a provided field has an invalid value.
        """
        self._require_initialized()
        provided = {**(changes or {}), **fields}
        merged = self._ledger.goal_settings.model_dump()
        names_by_alias = {
            (info.alias or name): name for name, info in GoalSettings.model_fields.items()
        }
        for key, value in provided.items():
            merged[names_by_alias.get(key, key)] = value

        settings = GoalSettings.model_validate(merged)
        self._commit(self._ledger.model_copy(update={"goal_settings": settings}))
        logger.info("goal_settings_updated", fields=sorted(provided))
        return settings

    # -- queries ---------------------------------------------------------

    def get_record(self, record_id: str) -> SolvedProblemRecord | None:
        index = self._index_of(record_id)
        return None if index is None else self._ledger.records[index]

    def goal_adherence(self, now: date | datetime | None = None) -> list[GoalProgress]:
        """Progress towards every goal category in the period containing ``now``."""
        return analytics.goal_adherence(
            self._ledger.records, self._ledger.goal_settings, now, self._catalog
        )

    def unmet_goals(self, now: date | datetime | None = None) -> list[GoalProgress]:
        return [p for p in self.goal_adherence(now) if p.remaining > 0]

    # -- internals -------------------------------------------------------

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise LedgerNotInitializedError("load() must complete before the ledger accepts changes")

    def _index_of(self, record_id: str) -> int | None:
        for i, record in enumerate(self._ledger.records):
            if record.id == record_id:
                return i
        return None

    def _commit(self, ledger: Ledger) -> None:
        self._ledger = ledger
        self._persist()
        self._notify()

    def _persist(self) -> None:
        try:
            self._slot.write(self._ledger.to_document())
        except OSError:
            logger.exception("ledger_persist_failed", slot=repr(self._slot))

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._ledger)
            except Exception:
                logger.exception("ledger_listener_failed")
