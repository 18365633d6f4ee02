"""Progress statistics over a week, month or trailing year.

Everything here is a pure function of the supplied habits, completions and
``today``; callers own fetching and caching.
"""

from __future__ import annotations

from calendar import monthrange
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Any, Iterable

from ..constants.categories import UNKNOWN_CATEGORY, category_color, normalize_category
from .completions import CompletionIndex, field_value, to_day
from .habits import frequency_target, habit_streak, start_of_week
from .metrics import percent, round_half_up

ONE_DAY = timedelta(days=1)
RECENT_ACTIVITY_LIMIT = 5
YEAR_DAYS = 365
YEAR_BUCKETS = 12
UNKNOWN_HABIT_TITLE = "Unknown Habit"
CATEGORY_WINDOW_WEEKS = 4


class Timeframe(str, Enum):
    """Supported reporting windows."""

    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    NEUTRAL = "neutral"


@dataclass(frozen=True, slots=True)
class DateRange:
    """Inclusive calendar-day range."""

    start: date
    end: date

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end

    def previous(self) -> "DateRange":
        """Return the range of equal length immediately before this one."""

        return DateRange(self.start - timedelta(days=self.days), self.start - ONE_DAY)


@dataclass(frozen=True, slots=True)
class CategoryCount:
    name: str
    value: int

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "value": self.value, "color": category_color(self.name)}


@dataclass(frozen=True, slots=True)
class CategoryTrend:
    direction: TrendDirection
    percentage: int


@dataclass(frozen=True, slots=True)
class CategoryProgress:
    """Weekly completion-rate series for one category plus its summary."""

    name: str
    series: list[dict[str, Any]]
    latest: int
    trend: CategoryTrend

    def to_dict(self) -> dict[str, Any]:
        # category series report no change as "stable"
        direction = self.trend.direction
        return {
            "name": self.name,
            "color": category_color(self.name),
            "series": self.series,
            "latest": self.latest,
            "trend": "stable" if direction is TrendDirection.NEUTRAL else direction.value,
            "trendPercentage": self.trend.percentage,
        }


@dataclass(frozen=True, slots=True)
class ActivityItem:
    habit_id: str
    habit_title: str
    category: str
    date: date
    completed: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "habitId": self.habit_id,
            "habitTitle": self.habit_title,
            "category": self.category,
            "date": self.date.isoformat(),
            "completed": self.completed,
        }


@dataclass(frozen=True, slots=True)
class ProgressPoint:
    """One chart point: a day (week/month views) or a month (year view)."""

    label: str
    total_habits: int
    completed_count: int
    rate_percent: int
    is_today: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "totalHabits": self.total_habits,
            "completedCount": self.completed_count,
            "ratePercent": self.rate_percent,
            "isToday": self.is_today,
        }


@dataclass(slots=True)
class ProgressStats:
    timeframe: Timeframe
    start_date: date
    end_date: date
    total_habits: int = 0
    active_habits: int = 0
    completion_rate: int = 0
    streak_count: int = 0
    max_streak: int = 0
    trend_direction: TrendDirection = TrendDirection.NEUTRAL
    trend_percentage: int = 0
    category_breakdown: list[CategoryCount] = field(default_factory=list)
    recent_activity: list[ActivityItem] = field(default_factory=list)
    daily_progress: list[ProgressPoint] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timeframe": self.timeframe.value,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "totalHabits": self.total_habits,
            "activeHabits": self.active_habits,
            "completionRate": self.completion_rate,
            "streakCount": self.streak_count,
            "maxStreak": self.max_streak,
            "trendDirection": self.trend_direction.value,
            "trendPercentage": self.trend_percentage,
            "categoryBreakdown": [item.to_dict() for item in self.category_breakdown],
            "recentActivity": [item.to_dict() for item in self.recent_activity],
            "dailyProgress": [point.to_dict() for point in self.daily_progress],
        }


def resolve_range(timeframe: Timeframe | str, today: Any, *, week_starts_on: int = 0) -> DateRange:
    """Return the inclusive date range a timeframe covers around ``today``."""

    timeframe = Timeframe(timeframe)
    today = to_day(today)
    if timeframe is Timeframe.WEEK:
        start = start_of_week(today, week_starts_on=week_starts_on)
        return DateRange(start, start + timedelta(days=6))
    if timeframe is Timeframe.MONTH:
        last_day = monthrange(today.year, today.month)[1]
        return DateRange(today.replace(day=1), today.replace(day=last_day))
    return DateRange(today - timedelta(days=YEAR_DAYS - 1), today)


def _habits_by_id(habits: Iterable[Any]) -> dict[str, Any]:
    return {str(field_value(habit, "id")): habit for habit in habits}


def _created_floor(habit: Any) -> date | None:
    created_at = field_value(habit, "created_at")
    if created_at is None:
        return None
    try:
        return to_day(created_at)
    except ValueError:
        return None


def _completed_days_in(
    index: CompletionIndex, habits_by_id: dict[str, Any], window: DateRange
) -> dict[str, set[date]]:
    """Completed days per known habit inside ``window``, never before creation."""

    result: dict[str, set[date]] = {}
    for habit_id, habit in habits_by_id.items():
        floor = _created_floor(habit)
        days = {
            day
            for day in index.completed_days(habit_id)
            if day in window and (floor is None or day >= floor)
        }
        if days:
            result[habit_id] = days
    return result


def _rate(completed_days: dict[str, set[date]], habit_count: int, window: DateRange) -> int:
    completed = sum(len(days) for days in completed_days.values())
    return percent(completed, habit_count * window.days)


def _trend(current: int, previous: int) -> tuple[TrendDirection, int]:
    if current > previous:
        direction = TrendDirection.UP
    elif current < previous:
        direction = TrendDirection.DOWN
    else:
        direction = TrendDirection.NEUTRAL
    if previous == 0:
        return direction, 0
    return direction, round_half_up((current - previous) / previous * 100)


def _category_breakdown(habits_by_id: dict[str, Any]) -> list[CategoryCount]:
    counts: Counter[str] = Counter()
    for habit in habits_by_id.values():
        counts[normalize_category(field_value(habit, "category"))] += 1
    return [CategoryCount(name=name, value=value) for name, value in counts.items()]


def _recent_activity(
    index: CompletionIndex, habits_by_id: dict[str, Any], window: DateRange
) -> list[ActivityItem]:
    in_range = [(key, record) for key, record in index.items() if key[1] in window]
    in_range.sort(key=lambda item: item[0][1], reverse=True)

    activity: list[ActivityItem] = []
    for (habit_id, day), record in in_range[:RECENT_ACTIVITY_LIMIT]:
        habit = habits_by_id.get(habit_id)
        if habit is None:
            title, category = UNKNOWN_HABIT_TITLE, UNKNOWN_CATEGORY
        else:
            title = field_value(habit, "title") or UNKNOWN_HABIT_TITLE
            category = normalize_category(field_value(habit, "category"))
        activity.append(
            ActivityItem(
                habit_id=habit_id,
                habit_title=title,
                category=category,
                date=day,
                completed=bool(field_value(record, "completed", False)),
            )
        )
    return activity


def _month_starts(today: date, count: int) -> list[date]:
    year, month = today.year, today.month
    starts: list[date] = []
    for _ in range(count):
        starts.append(date(year, month, 1))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    starts.reverse()
    return starts


def _daily_progress(
    timeframe: Timeframe,
    window: DateRange,
    completed_days: dict[str, set[date]],
    habit_count: int,
    today: date,
) -> list[ProgressPoint]:
    per_day: Counter[date] = Counter(day for days in completed_days.values() for day in days)

    if timeframe is not Timeframe.YEAR:
        points = []
        for offset in range(window.days):
            day = window.start + timedelta(days=offset)
            completed = per_day.get(day, 0)
            points.append(
                ProgressPoint(
                    label=f"{day.day} {day:%b}",
                    total_habits=habit_count,
                    completed_count=completed,
                    rate_percent=percent(completed, habit_count),
                    is_today=day == today,
                )
            )
        return points

    points = []
    for month_start in _month_starts(window.end, YEAR_BUCKETS):
        month_end = month_start.replace(day=monthrange(month_start.year, month_start.month)[1])
        bucket = DateRange(max(month_start, window.start), min(month_end, window.end))
        completed = sum(count for day, count in per_day.items() if day in bucket)
        points.append(
            ProgressPoint(
                label=f"{month_start:%b}",
                total_habits=habit_count,
                completed_count=completed,
                rate_percent=percent(completed, habit_count * bucket.days),
                is_today=today in bucket,
            )
        )
    return points


def compute_stats(
    habits: Iterable[Any],
    completions: CompletionIndex | Iterable[Any],
    timeframe: Timeframe | str,
    *,
    today: Any,
    week_starts_on: int = 0,
    grace_today: bool = True,
) -> ProgressStats:
    """Aggregate completion statistics for the requested timeframe.

    Every field is populated even for empty input; ratios with a zero
    denominator are reported as 0.
    """

    timeframe = Timeframe(timeframe)
    today = to_day(today)
    index = CompletionIndex.coerce(completions)
    habits_by_id = _habits_by_id(habits)
    habit_count = len(habits_by_id)
    window = resolve_range(timeframe, today, week_starts_on=week_starts_on)

    current_days = _completed_days_in(index, habits_by_id, window)
    previous_days = _completed_days_in(index, habits_by_id, window.previous())
    completion_rate = _rate(current_days, habit_count, window)
    previous_rate = _rate(previous_days, habit_count, window.previous())
    direction, trend_percentage = _trend(completion_rate, previous_rate)

    streaks = [
        habit_streak(habit, index, today, grace_today=grace_today)
        for habit in habits_by_id.values()
    ]

    return ProgressStats(
        timeframe=timeframe,
        start_date=window.start,
        end_date=window.end,
        total_habits=habit_count,
        active_habits=len(current_days),
        completion_rate=completion_rate,
        streak_count=sum(1 for streak in streaks if streak > 0),
        max_streak=max(streaks, default=0),
        trend_direction=direction,
        trend_percentage=trend_percentage,
        category_breakdown=_category_breakdown(habits_by_id),
        recent_activity=_recent_activity(index, habits_by_id, window),
        daily_progress=_daily_progress(timeframe, window, current_days, habit_count, today),
    )


def completion_rate_by_category(
    habits: Iterable[Any],
    completions: CompletionIndex | Iterable[Any],
    start: Any,
    end: Any,
    *,
    week_starts_on: int = 0,
) -> dict[str, list[dict[str, Any]]]:
    """Weekly completion rate per category between ``start`` and ``end``.

    Each habit is expected ``min(weekly target, days in the bucket)`` times per
    weekly bucket; completions beyond that do not raise the rate past 100.
    """

    index = CompletionIndex.coerce(completions)
    start, end = to_day(start), to_day(end)

    buckets: list[DateRange] = []
    cursor = start
    while cursor <= end:
        bucket_end = min(
            start_of_week(cursor, week_starts_on=week_starts_on) + timedelta(days=6), end
        )
        buckets.append(DateRange(cursor, bucket_end))
        cursor = bucket_end + ONE_DAY

    by_category: dict[str, list[Any]] = {}
    for habit in habits:
        by_category.setdefault(normalize_category(field_value(habit, "category")), []).append(habit)

    results: dict[str, list[dict[str, Any]]] = {}
    for category, members in by_category.items():
        series = []
        for bucket in buckets:
            required = 0
            completed = 0
            for habit in members:
                expected = min(frequency_target(field_value(habit, "frequency")), bucket.days)
                floor = _created_floor(habit)
                done = sum(
                    1
                    for day in index.completed_days(field_value(habit, "id"))
                    if day in bucket and (floor is None or day >= floor)
                )
                required += expected
                completed += min(done, expected)
            series.append({"date": bucket.start.isoformat(), "value": percent(completed, required)})
        results[category] = series
    return results



def category_trend(series: list[dict[str, Any]]) -> CategoryTrend:
    """Direction and size of change from the first to the last point of ``series``.

    The change is relative to the first value, floored at 1 so a series
    starting at zero still reports growth; fewer than two points is no change.
    """

    if len(series) < 2:
        return CategoryTrend(TrendDirection.NEUTRAL, 0)
    first, last = series[0]["value"], series[-1]["value"]
    change = round_half_up((last - first) / max(first, 1) * 100)
    if change > 0:
        direction = TrendDirection.UP
    elif change < 0:
        direction = TrendDirection.DOWN
    else:
        direction = TrendDirection.NEUTRAL
    return CategoryTrend(direction, abs(change))


def latest_category_rates(rates: dict[str, list[dict[str, Any]]]) -> list[CategoryCount]:
    """Most recent weekly rate per category, 0 for an empty series."""

    return [
        CategoryCount(name=name, value=series[-1]["value"] if series else 0)
        for name, series in rates.items()
    ]


def category_window(end: Any) -> DateRange:
    """The default category-progress window: the four weeks ending on ``end``."""

    end = to_day(end)
    return DateRange(end - timedelta(weeks=CATEGORY_WINDOW_WEEKS), end)


def category_progress(
    habits: Iterable[Any],
    completions: CompletionIndex | Iterable[Any],
    start: Any,
    end: Any,
    *,
    week_starts_on: int = 0,
) -> list[CategoryProgress]:
    rates = completion_rate_by_category(
        habits, completions, start, end, week_starts_on=week_starts_on
    )
    latest = {item.name: item.value for item in latest_category_rates(rates)}
    return [
        CategoryProgress(
            name=name, series=series, latest=latest[name], trend=category_trend(series)
        )
        for name, series in rates.items()
    ]


__all__ = [
    "ActivityItem",
    "CategoryCount",
    "CategoryProgress",
    "CategoryTrend",
    "DateRange",
    "ProgressPoint",
    "ProgressStats",
    "Timeframe",
    "TrendDirection",
    "category_progress",
    "category_trend",
    "category_window",
    "completion_rate_by_category",
    "compute_stats",
    "latest_category_rates",
    "resolve_range",
]
