"""Tests for the JSON storage slot and document migration."""

import json

import pytest

from algo_grind.models.catalog import GOAL_CATEGORIES
from algo_grind.storage.migrations import backfill, migrate
from algo_grind.storage.slot import JsonFileSlot


class TestJsonFileSlot:
    def test_missing_file_reads_none(self, tmp_path):
        assert JsonFileSlot(tmp_path / "ledger.json").read() is None

    def test_write_then_read(self, tmp_path):
        slot = JsonFileSlot(tmp_path / "nested" / "ledger.json")
        slot.write({"records": [], "schemaVersion": 1})
        assert slot.read() == {"records": [], "schemaVersion": 1}

    def test_write_overwrites_wholesale(self, tmp_path):
        slot = JsonFileSlot(tmp_path / "ledger.json")
        slot.write({"a": 1})
        slot.write({"b": 2})
        assert slot.read() == {"b": 2}

    def test_write_leaves_no_temp_files(self, tmp_path):
        slot = JsonFileSlot(tmp_path / "ledger.json")
        slot.write({"a": 1})
        assert [p.name for p in tmp_path.iterdir()] == ["ledger.json"]

    def test_failed_write_keeps_previous_file_and_no_temp(self, tmp_path):
        slot = JsonFileSlot(tmp_path / "ledger.json")
        slot.write({"a": 1})
        with pytest.raises(TypeError):
            slot.write({"bad": object()})
        assert slot.read() == {"a": 1}
        assert [p.name for p in tmp_path.iterdir()] == ["ledger.json"]

    def test_malformed_content_raises(self, tmp_path):
        path = tmp_path / "ledger.json"
        path.write_text("{oops")
        with pytest.raises(json.JSONDecodeError):
            JsonFileSlot(path).read()

    def test_repr_names_path(self, tmp_path):
        assert "ledger.json" in repr(JsonFileSlot(tmp_path / "ledger.json"))


class TestMigrate:
    def test_versioned_document_untouched(self):
        document = {"schemaVersion": 1, "records": [{"type": "kept as is"}]}
        assert migrate(document) is document

    def test_legacy_keys_renamed(self):
        migrated = migrate({
            "solvedProblems": [
                {"id": "1", "type": "dp", "url": "https://a", "isForReview": True}
            ],
            "goalSettings": {
                "period": "weekly",
                "goals": [{"categoryId": "array", "target": 3}],
            },
        })
        assert "solvedProblems" not in migrated
        assert migrated["records"] == [
            {"id": "1", "category": "dp", "referenceUrl": "https://a", "markedForReview": True}
        ]
        assert migrated["goalSettings"]["goals"] == {
            "array": {"categoryId": "array", "target": 3}
        }

    def test_null_review_flag_backfilled(self):
        repaired, changed = backfill(
            {"schemaVersion": 1, "records": [{"id": "r1", "markedForReview": None}]},
            GOAL_CATEGORIES,
        )
        assert changed is True
        assert repaired["records"] == [{"id": "r1", "markedForReview": False}]

    def test_current_key_wins_over_legacy_spelling(self):
        migrated = migrate({"records": [{"category": "tree", "type": "dp"}]})
        assert migrated["records"] == [{"category": "tree"}]

    def test_input_not_mutated(self):
        document = {"solvedProblems": [{"type": "dp"}]}
        migrate(document)
        assert document == {"solvedProblems": [{"type": "dp"}]}


class TestBackfill:
    def test_empty_document_gets_defaults(self):
        repaired, changed = backfill({}, GOAL_CATEGORIES)
        assert changed is True
        assert repaired["records"] == []
        assert repaired["schemaVersion"] == 1
        assert len(repaired["goalSettings"]["goals"]) == len(GOAL_CATEGORIES)

    def test_empty_goals_replaced(self):
        repaired, changed = backfill(
            {"schemaVersion": 1, "records": [], "goalSettings": {"period": "weekly", "goals": {}}},
            GOAL_CATEGORIES,
        )
        assert changed is True
        assert repaired["goalSettings"]["period"] == "daily"

    def test_missing_period_and_language_filled(self):
        goals = {c.id: {"categoryId": c.id, "target": 1} for c in GOAL_CATEGORIES}
        repaired, changed = backfill(
            {"schemaVersion": 1, "records": [], "goalSettings": {"goals": goals}},
            GOAL_CATEGORIES,
        )
        assert changed is True
        assert repaired["goalSettings"]["period"] == "daily"
        assert repaired["goalSettings"]["defaultCodingLanguage"] == "javascript"
        assert repaired["goalSettings"]["goals"] == goals

    def test_explicit_null_language_is_kept(self):
        goals = {c.id: {"categoryId": c.id, "target": 1} for c in GOAL_CATEGORIES}
        settings = {"period": "daily", "goals": goals, "defaultCodingLanguage": None}
        repaired, changed = backfill(
            {"schemaVersion": 1, "records": [], "goalSettings": settings}, GOAL_CATEGORIES
        )
        assert changed is False
        assert repaired["goalSettings"]["defaultCodingLanguage"] is None

    def test_records_missing_id_get_one(self):
        repaired, changed = backfill({"records": [{"title": "x"}]}, GOAL_CATEGORIES)
        assert changed is True
        assert repaired["records"][0]["id"]
        assert repaired["records"][0]["markedForReview"] is False

    def test_non_list_records_reset(self):
        repaired, changed = backfill({"records": "nope"}, GOAL_CATEGORIES)
        assert changed is True
        assert repaired["records"] == []

    def test_unknown_top_level_keys_preserved(self):
        repaired, _ = backfill({"theme": "dark"}, GOAL_CATEGORIES)
        assert repaired["theme"] == "dark"
