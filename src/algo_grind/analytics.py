"""Read-only progress views derived from ledger records."""

from collections import Counter
from collections.abc import Iterable
from datetime import date, datetime, timedelta

from algo_grind.models.catalog import GOAL_CATEGORIES, GoalCategory
from algo_grind.models.practice import (
    GoalPeriod,
    GoalProgress,
    GoalSettings,
    ProblemCategory,
    SolvedProblemRecord,
)


def as_date(reference: date | datetime | None) -> date:
    """Calendar day of a reference instant (today when None)."""
    if reference is None:
        return date.today()
    if isinstance(reference, datetime):
        return reference.date()
    return reference


def period_interval(period: GoalPeriod, reference: date | datetime | None = None) -> tuple[date, date]:
    """Inclusive first and last day of the period containing ``reference``.

    Weekly periods run Monday to Sunday.
    """
    day = as_date(reference)
    if period == GoalPeriod.WEEKLY:
        start = day - timedelta(days=day.weekday())
        return start, start + timedelta(days=6)
    return day, day


def goal_adherence(
    records: Iterable[SolvedProblemRecord],
    settings: GoalSettings,
    reference: date | datetime | None = None,
    catalog: list[GoalCategory] = GOAL_CATEGORIES,
) -> list[GoalProgress]:
    """Per goal category: target, problems solved in the current period, and what is left."""
    start, end = period_interval(settings.period, reference)
    in_period = [r for r in records if start <= r.date_solved <= end]

    progress = []
    for category in catalog:
        solved = sum(1 for r in in_period if category.covers(r.category))
        target = settings.target_for(category.id)
        progress.append(GoalProgress(
            category_id=category.id,
            label=category.label,
            target=target,
            solved_in_period=solved,
            remaining=max(0, target - solved),
        ))
    return progress


def solved_by_category(records: Iterable[SolvedProblemRecord]) -> dict[str, int]:
    """Total solved per problem category, omitting categories with none."""
    counts = Counter(r.category for r in records)
    return {c.value: counts[c] for c in ProblemCategory if counts[c] > 0}


def weekly_progress(
    records: Iterable[SolvedProblemRecord],
    reference: date | datetime | None = None,
    weeks: int = 8,
) -> list[dict]:
    """Problems solved per Monday-Sunday week, oldest week first."""
    records = list(records)
    this_week_start, _ = period_interval(GoalPeriod.WEEKLY, reference)

    data = []
    for offset in range(weeks - 1, -1, -1):
        start = this_week_start - timedelta(weeks=offset)
        end = start + timedelta(days=6)
        iso_year, iso_week, _ = start.isocalendar()
        data.append({
            "label": f"W{iso_week}",
            "year": iso_year,
            "start": start.isoformat(),
            "solved": sum(1 for r in records if start <= r.date_solved <= end),
        })
    return data


def sorted_log(records: Iterable[SolvedProblemRecord]) -> list[SolvedProblemRecord]:
    """Records newest first, as shown in the problem log."""
    return sorted(records, key=lambda r: r.date_solved, reverse=True)


def review_queue(records: Iterable[SolvedProblemRecord]) -> list[SolvedProblemRecord]:
    return [r for r in sorted_log(records) if r.marked_for_review]
