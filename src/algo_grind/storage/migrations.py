"""Schema migration and backfill of stored ledger documents.

Documents written before ``schemaVersion`` existed use the legacy wire
shape (``solvedProblems``, ``type``, ``url``, ``isForReview`` and a list of
goals). ``migrate`` renames those keys, then ``backfill`` repairs whatever the
current shape is missing without discarding anything it does not recognise.
Both work on plain dicts so that pydantic only ever sees the repaired shape.
"""

from typing import Any

import structlog

from algo_grind.models.catalog import DEFAULT_CODING_LANGUAGE, GoalCategory, default_goal_settings
from algo_grind.models.practice import LEDGER_SCHEMA_VERSION, GoalPeriod, new_record_id

logger = structlog.get_logger()

LEGACY_RECORD_KEYS: dict[str, str] = {
    "type": "category",
    "url": "referenceUrl",
    "isForReview": "markedForReview",
}


def _rename_keys(record: dict, renames: dict[str, str]) -> dict:
    renamed = {}
    for key, value in record.items():
        new_key = renames.get(key, key)
        # An already-current key wins over its legacy spelling
        if new_key != key and new_key in record:
            continue
        renamed[new_key] = value
    return renamed


def _goals_by_category(goals: list) -> dict[str, Any]:
    return {
        goal["categoryId"]: goal
        for goal in goals
        if isinstance(goal, dict) and goal.get("categoryId")
    }


def migrate(document: dict) -> dict:
    """Bring an unversioned document to the current key layout."""
    if document.get("schemaVersion") is not None:
        return document

    migrated = dict(document)
    if "records" not in migrated and "solvedProblems" in migrated:
        migrated["records"] = migrated.pop("solvedProblems")

    records = migrated.get("records")
    if isinstance(records, list):
        migrated["records"] = [
            _rename_keys(r, LEGACY_RECORD_KEYS) if isinstance(r, dict) else r
            for r in records
        ]

    settings = migrated.get("goalSettings")
    if isinstance(settings, dict) and isinstance(settings.get("goals"), list):
        migrated["goalSettings"] = {**settings, "goals": _goals_by_category(settings["goals"])}

    logger.info("ledger_migrated", from_version=0, to_version=LEDGER_SCHEMA_VERSION)
    return migrated


def _backfill_goal_settings(settings: Any, catalog: list[GoalCategory]) -> tuple[dict, bool]:
    goals = settings.get("goals") if isinstance(settings, dict) else None
    if not isinstance(goals, dict) or not goals:
        return default_goal_settings(catalog).model_dump(mode="json", by_alias=True), True

    changed = False
    goals = dict(goals)
    for category in catalog:
        if category.id not in goals:
            goals[category.id] = {"categoryId": category.id, "target": category.default_target}
            changed = True

    repaired = {**settings, "goals": goals}
    if not repaired.get("period"):
        repaired["period"] = GoalPeriod.DAILY.value
        changed = True
    if "defaultCodingLanguage" not in repaired:
        repaired["defaultCodingLanguage"] = DEFAULT_CODING_LANGUAGE
        changed = True
    return repaired, changed


def _backfill_records(records: Any) -> tuple[list, bool]:
    if not isinstance(records, list):
        return [], True

    changed = False
    repaired = []
    for record in records:
        if isinstance(record, dict):
            if record.get("markedForReview") is None:
                record = {**record, "markedForReview": False}
                changed = True
            if not record.get("id"):
                record = {**record, "id": new_record_id()}
                changed = True
        repaired.append(record)
    return repaired, changed


def backfill(document: dict, catalog: list[GoalCategory]) -> tuple[dict, bool]:
    """Additively repair a document to the current shape.

    Returns the repaired document and whether anything was changed. A
    document already in canonical shape comes back unchanged.
    """
    settings, settings_changed = _backfill_goal_settings(document.get("goalSettings"), catalog)
    records, records_changed = _backfill_records(document.get("records"))

    repaired = {**document, "goalSettings": settings, "records": records}
    version_changed = repaired.get("schemaVersion") != LEDGER_SCHEMA_VERSION
    repaired["schemaVersion"] = LEDGER_SCHEMA_VERSION
    return repaired, settings_changed or records_changed or version_changed
