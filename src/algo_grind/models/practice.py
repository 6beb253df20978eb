"""Practice ledger data models."""

import uuid
from datetime import date
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

LEDGER_SCHEMA_VERSION = 1


class ProblemCategory(StrEnum):
    """Closed set of problem categories a solved problem can be filed under."""

    ARRAY = "array"
    STRING = "string"
    SLIDING_WINDOW = "sliding window"
    PREFIX_SUM = "prefix sum"
    DP = "dp"
    TREE = "tree"
    RECURSION = "recursion"
    BACKTRACKING = "backtracking"


class Difficulty(StrEnum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class GoalPeriod(StrEnum):
    """Calendar period a goal target applies to."""

    DAILY = "daily"
    WEEKLY = "weekly"


class _CamelModel(BaseModel):
    """Immutable model persisted with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        str_strip_whitespace=True,
    )


def new_record_id() -> str:
    return str(uuid.uuid4())


class NewProblemRecord(_CamelModel):
    """A solved problem as entered by the user, before an id is assigned."""

    title: str = Field(min_length=1)
    category: ProblemCategory
    difficulty: Difficulty
    reference_url: str = ""
    date_solved: date
    marked_for_review: bool = False

    @field_validator("marked_for_review", mode="before")
    @classmethod
    def _review_flag_defaults_false(cls, value: Any) -> Any:
        """A null review flag means not marked."""
        return False if value is None else value


class SolvedProblemRecord(NewProblemRecord):
    """A solved problem stored in the ledger."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(min_length=1)

    @classmethod
    def create(cls, data: NewProblemRecord) -> "SolvedProblemRecord":
        """Build a stored record from user input, assigning a fresh id."""
        return cls(id=new_record_id(), **data.model_dump(exclude={"id"}))


class Goal(_CamelModel):
    category_id: str
    target: int = Field(ge=0)


class GoalSettings(_CamelModel):
    """Per-category targets plus the period they are measured over."""

    model_config = ConfigDict(extra="allow")

    period: GoalPeriod = GoalPeriod.DAILY
    goals: dict[str, Goal] = Field(default_factory=dict)
    default_coding_language: str | None = "javascript"

    @field_validator("goals", mode="before")
    @classmethod
    def _goals_from_list(cls, value: Any) -> Any:
        """Accept a list of goals and key it by category id."""
        if isinstance(value, list):
            keyed = {}
            for goal in value:
                if isinstance(goal, Goal):
                    keyed[goal.category_id] = goal
                elif isinstance(goal, dict):
                    keyed[goal.get("categoryId", goal.get("category_id"))] = goal
            return keyed
        return value

    def target_for(self, category_id: str) -> int:
        goal = self.goals.get(category_id)
        return goal.target if goal else 0


class Ledger(_CamelModel):
    """Aggregate root: every solved problem plus goal configuration."""

    model_config = ConfigDict(extra="allow")

    schema_version: int = LEDGER_SCHEMA_VERSION
    records: tuple[SolvedProblemRecord, ...] = ()
    goal_settings: GoalSettings = Field(default_factory=GoalSettings)

    def to_document(self) -> dict:
        """JSON-compatible document written to the storage slot."""
        return self.model_dump(mode="json", by_alias=True)


class GoalProgress(BaseModel):
    """How a goal category is tracking within the current period."""

    category_id: str
    label: str
    target: int
    solved_in_period: int
    remaining: int
