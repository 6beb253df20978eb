"""Static reference data: problem categories, goal categories and defaults."""

from pydantic import BaseModel, Field

from algo_grind.models.practice import (
    Difficulty,
    Goal,
    GoalPeriod,
    GoalSettings,
    Ledger,
    ProblemCategory,
)

STRIVER_SHEET_URL = "https://takeuforward.org/strivers-a2z-dsa-course/strivers-a2z-dsa-course-sheet-2/"

DEFAULT_CODING_LANGUAGE = "javascript"

PROBLEM_CATEGORY_LABELS: dict[ProblemCategory, str] = {
    ProblemCategory.ARRAY: "Array",
    ProblemCategory.STRING: "String",
    ProblemCategory.SLIDING_WINDOW: "Sliding Window",
    ProblemCategory.PREFIX_SUM: "Prefix Sum",
    ProblemCategory.DP: "Dynamic Programming",
    ProblemCategory.TREE: "Tree",
    ProblemCategory.RECURSION: "Recursion",
    ProblemCategory.BACKTRACKING: "Backtracking",
}

DIFFICULTY_LABELS: dict[Difficulty, str] = {
    Difficulty.EASY: "Easy",
    Difficulty.MEDIUM: "Medium",
    Difficulty.HARD: "Hard",
}

CODING_LANGUAGES: list[str] = [
    "javascript",
    "python",
    "java",
    "cpp",
    "csharp",
    "go",
    "typescript",
]


class GoalCategory(BaseModel, frozen=True):
    """Grouping of problem categories that share one goal target."""

    id: str
    label: str
    default_target: int = Field(ge=0)
    covered_categories: frozenset[ProblemCategory]

    def covers(self, category: ProblemCategory) -> bool:
        return category in self.covered_categories


GOAL_CATEGORIES: list[GoalCategory] = [
    GoalCategory(
        id="array",
        label="Array",
        default_target=12,
        covered_categories=frozenset({ProblemCategory.ARRAY}),
    ),
    GoalCategory(
        id="string",
        label="String",
        default_target=12,
        covered_categories=frozenset({ProblemCategory.STRING}),
    ),
    GoalCategory(
        id="sliding_window",
        label="Sliding Window",
        default_target=12,
        covered_categories=frozenset({ProblemCategory.SLIDING_WINDOW}),
    ),
    GoalCategory(
        id="prefix_sum",
        label="Prefix Sum",
        default_target=12,
        covered_categories=frozenset({ProblemCategory.PREFIX_SUM}),
    ),
    GoalCategory(
        id="dp_or_tree",
        label="DP or Tree",
        default_target=11,
        covered_categories=frozenset({ProblemCategory.DP, ProblemCategory.TREE}),
    ),
    GoalCategory(
        id="recursion_or_backtracking",
        label="Recursion or Backtracking",
        default_target=11,
        covered_categories=frozenset({ProblemCategory.RECURSION, ProblemCategory.BACKTRACKING}),
    ),
]


def default_goals(catalog: list[GoalCategory] = GOAL_CATEGORIES) -> dict[str, Goal]:
    return {c.id: Goal(category_id=c.id, target=c.default_target) for c in catalog}


def default_goal_settings(catalog: list[GoalCategory] = GOAL_CATEGORIES) -> GoalSettings:
    """Fresh goal settings derived from the catalog defaults."""
    return GoalSettings(
        period=GoalPeriod.DAILY,
        goals=default_goals(catalog),
        default_coding_language=DEFAULT_CODING_LANGUAGE,
    )


def default_ledger(catalog: list[GoalCategory] = GOAL_CATEGORIES) -> Ledger:
    """Empty ledger used when nothing usable is stored."""
    return Ledger(records=(), goal_settings=default_goal_settings(catalog))
