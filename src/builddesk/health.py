"""Summary: Project health scoring across schedule, budget, safety, team and progress.

Importance: Turns raw project metrics into comparable 0-100 scores and status buckets.
Alternatives: Show raw metrics and let users judge project health themselves.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Iterable, Mapping, Sequence

from builddesk.errors import DivisionByZero, InvalidInput, UndefinedAggregate
from builddesk.models import (
    AggregateHealthResult,
    DimensionName,
    HealthDimensionResult,
    HealthStatus,
    Trend,
)

SAFETY_WINDOW = timedelta(days=30)
TEAM_ACTIVITY_WINDOW = timedelta(days=7)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _naive_utc(value: datetime) -> datetime:
    """Drop the offset from an aware datetime after converting it to UTC."""

    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _parse_datetime(value: Any) -> datetime:
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return _naive_utc(datetime.fromisoformat(text))


@dataclass(frozen=True)
class ScheduleInputs:
    """Summary: Actual versus expected completion percentage.

    Importance: Variance between the two drives the schedule bucket.
    Alternatives: Compare milestone dates instead of percentages.
    """

    actual_progress_pct: float
    expected_progress_pct: float

    @property
    def variance(self) -> float:
        return self.actual_progress_pct - self.expected_progress_pct

    @staticmethod
    def from_dates(
        start: date, end: date, completion_pct: float | None, as_of: date
    ) -> "ScheduleInputs":
        """Summary: Derive expected progress from elapsed versus planned days.

        Importance: Matches how dashboards compute schedule position from project dates.
        Alternatives: Require callers to compute expected progress themselves.
        """

        total_days = (end - start).total_seconds() / 86400
        if total_days <= 0:
            raise DivisionByZero(f"Planned duration must be positive, got {total_days} days")
        elapsed_days = (as_of - start).total_seconds() / 86400
        return ScheduleInputs(
            actual_progress_pct=float(completion_pct or 0),
            expected_progress_pct=elapsed_days / total_days * 100,
        )


@dataclass(frozen=True)
class BudgetInputs:
    total_budget: float
    actual_cost: float

    @staticmethod
    def from_expenses(total_budget: float, amounts: Iterable[float]) -> "BudgetInputs":
        return BudgetInputs(total_budget=total_budget, actual_cost=float(sum(amounts)))


@dataclass(frozen=True)
class SafetyIncident:
    severity: str
    occurred_at: datetime


@dataclass(frozen=True)
class SafetyInputs:
    """Summary: Safety incidents and the moment the 30-day window ends.

    Importance: Only recent incidents affect the safety score.
    Alternatives: Score the project's whole incident history.
    """

    incidents: tuple[SafetyIncident, ...]
    as_of: datetime

    def recent(self) -> list[SafetyIncident]:
        cutoff = self.as_of - SAFETY_WINDOW
        return [
            incident for incident in self.incidents if cutoff <= incident.occurred_at <= self.as_of
        ]


@dataclass(frozen=True)
class TimeEntry:
    worker_id: str
    clock_in: datetime


@dataclass(frozen=True)
class TeamInputs:
    """Summary: Assigned team size and recent time entries.

    Importance: Utilization compares workers who logged time to workers assigned.
    Alternatives: Use scheduled shifts instead of logged time.
    """

    assigned_team_size: int
    time_entries: tuple[TimeEntry, ...]
    as_of: datetime

    def active_workers(self) -> int:
        cutoff = self.as_of - TEAM_ACTIVITY_WINDOW
        return len(
            {
                entry.worker_id
                for entry in self.time_entries
                if cutoff <= entry.clock_in <= self.as_of
            }
        )


@dataclass(frozen=True)
class ProgressInputs:
    completion_pct: float


@dataclass(frozen=True)
class ProjectSnapshot:
    """Summary: All inputs needed to score one project across every dimension.

    Importance: Lets a caller gather data once and score every dimension independently.
    Alternatives: Let each scorer query the datastore itself.
    """

    schedule: ScheduleInputs
    budget: BudgetInputs
    safety: SafetyInputs
    team: TeamInputs
    progress: ProgressInputs

    @staticmethod
    def from_mapping(data: Mapping[str, Any], as_of: datetime) -> "ProjectSnapshot":
        """Summary: Build a snapshot from a JSON-like project payload.

        Importance: Validates raw project rows at the ingestion boundary.
        Alternatives: Accept pre-built input dataclasses only.
        """

        try:
            start = _parse_datetime(data["start_date"])
            end = _parse_datetime(data.get("expected_completion_date") or data["end_date"])
            completion = float(data.get("completion_percentage") or 0)
            incidents = tuple(
                SafetyIncident(
                    severity=str(item.get("severity", "minor")),
                    occurred_at=_parse_datetime(item["occurred_at"]),
                )
                for item in data.get("incidents", [])
            )
            entries = tuple(
                TimeEntry(
                    worker_id=str(item["worker_id"]),
                    clock_in=_parse_datetime(item["clock_in"]),
                )
                for item in data.get("time_entries", [])
            )
            budget = BudgetInputs.from_expenses(
                float(data["total_budget"]),
                (float(amount) for amount in data.get("expenses", [])),
            )
            team_size = int(data.get("assigned_team_size", 0))
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidInput(f"Invalid project payload: {exc}") from exc
        # Payload dates and as_of are compared as naive UTC.
        as_of = _naive_utc(as_of)
        return ProjectSnapshot(
            schedule=ScheduleInputs.from_dates(start, end, completion, as_of),
            budget=budget,
            safety=SafetyInputs(incidents=incidents, as_of=as_of),
            team=TeamInputs(assigned_team_size=team_size, time_entries=entries, as_of=as_of),
            progress=ProgressInputs(completion_pct=completion),
        )


def score_schedule(inputs: ScheduleInputs) -> HealthDimensionResult:
    """Summary: Score schedule variance (actual minus expected progress).

    Importance: Boundaries are inclusive: 10 is excellent, 0 is on schedule, -10 is warning.
    Alternatives: Use earned-value schedule performance index.
    """

    variance = inputs.variance
    if variance >= 10:
        return HealthDimensionResult(
            DimensionName.SCHEDULE,
            100,
            HealthStatus.EXCELLENT,
            Trend.UP,
            f"{_round_half_up(variance)}% ahead of schedule",
        )
    if variance >= 0:
        return HealthDimensionResult(
            DimensionName.SCHEDULE, 85, HealthStatus.GOOD, Trend.STABLE, "On schedule"
        )
    behind = abs(_round_half_up(variance))
    if variance >= -10:
        return HealthDimensionResult(
            DimensionName.SCHEDULE,
            60,
            HealthStatus.WARNING,
            Trend.DOWN,
            f"{behind}% behind schedule",
        )
    return HealthDimensionResult(
        DimensionName.SCHEDULE,
        30,
        HealthStatus.CRITICAL,
        Trend.DOWN,
        f"{behind}% behind schedule - Critical",
    )


def score_budget(inputs: BudgetInputs) -> HealthDimensionResult:
    """Summary: Score remaining budget as a percentage of the total budget.

    Importance: A zero budget has no defined variance and raises instead of scoring.
    Alternatives: Treat missing budgets as on budget.
    """

    if inputs.total_budget < 0:
        raise InvalidInput(f"Budget cannot be negative: {inputs.total_budget}")
    if inputs.total_budget == 0:
        raise DivisionByZero("Budget variance is undefined for a zero budget")
    variance = (inputs.total_budget - inputs.actual_cost) / inputs.total_budget * 100
    if variance > 20:
        return HealthDimensionResult(
            DimensionName.BUDGET,
            100,
            HealthStatus.EXCELLENT,
            Trend.STABLE,
            f"{_round_half_up(variance)}% under budget",
        )
    if variance > 10:
        return HealthDimensionResult(
            DimensionName.BUDGET,
            85,
            HealthStatus.GOOD,
            Trend.STABLE,
            f"{_round_half_up(variance)}% under budget",
        )
    # Spending exactly the budget counts as on budget.
    if variance >= 0:
        return HealthDimensionResult(
            DimensionName.BUDGET, 70, HealthStatus.GOOD, Trend.STABLE, "On budget"
        )
    over = abs(_round_half_up(variance))
    if variance > -10:
        return HealthDimensionResult(
            DimensionName.BUDGET, 50, HealthStatus.WARNING, Trend.DOWN, f"{over}% over budget"
        )
    return HealthDimensionResult(
        DimensionName.BUDGET,
        25,
        HealthStatus.CRITICAL,
        Trend.DOWN,
        f"{over}% over budget - Critical",
    )


def score_safety(inputs: SafetyInputs) -> HealthDimensionResult:
    """Summary: Score incidents reported in the last 30 days.

    Importance: Any critical incident dominates the incident count.
    Alternatives: Weight incidents by severity.
    """

    recent = inputs.recent()
    critical = sum(1 for incident in recent if incident.severity.lower() == "critical")
    if critical > 0:
        return HealthDimensionResult(
            DimensionName.SAFETY,
            20,
            HealthStatus.CRITICAL,
            Trend.DOWN,
            f"{critical} critical incident(s) in last 30 days",
        )
    if not recent:
        return HealthDimensionResult(
            DimensionName.SAFETY,
            100,
            HealthStatus.EXCELLENT,
            Trend.UP,
            "No incidents in last 30 days",
        )
    if len(recent) <= 2:
        return HealthDimensionResult(
            DimensionName.SAFETY,
            75,
            HealthStatus.GOOD,
            Trend.STABLE,
            f"{len(recent)} minor incident(s) in last 30 days",
        )
    return HealthDimensionResult(
        DimensionName.SAFETY,
        45,
        HealthStatus.WARNING,
        Trend.DOWN,
        f"{len(recent)} incidents in last 30 days",
    )


def score_team(inputs: TeamInputs) -> HealthDimensionResult:
    """Summary: Score team utilization over the last 7 days.

    Importance: A project with nobody assigned is critical regardless of activity.
    Alternatives: Compare logged hours to planned hours.
    """

    if inputs.assigned_team_size < 0:
        raise InvalidInput(f"Team size cannot be negative: {inputs.assigned_team_size}")
    if inputs.assigned_team_size == 0:
        return HealthDimensionResult(
            DimensionName.TEAM, 30, HealthStatus.CRITICAL, Trend.STABLE, "No team assigned"
        )
    utilization = inputs.active_workers() / inputs.assigned_team_size * 100
    label = f"{_round_half_up(utilization)}% team utilization"
    if utilization >= 80:
        return HealthDimensionResult(
            DimensionName.TEAM, 100, HealthStatus.EXCELLENT, Trend.STABLE, label
        )
    if utilization >= 60:
        return HealthDimensionResult(DimensionName.TEAM, 75, HealthStatus.GOOD, Trend.STABLE, label)
    if utilization >= 40:
        return HealthDimensionResult(
            DimensionName.TEAM, 50, HealthStatus.WARNING, Trend.DOWN, f"{label} - Low"
        )
    return HealthDimensionResult(
        DimensionName.TEAM, 30, HealthStatus.CRITICAL, Trend.DOWN, f"{label} - Critical"
    )


def score_progress(inputs: ProgressInputs) -> HealthDimensionResult:
    """Summary: Use completion percentage directly as the progress score."""

    completion = inputs.completion_pct
    if not 0 <= completion <= 100:
        raise InvalidInput(f"Completion must be between 0 and 100, got {completion}")
    rounded = _round_half_up(completion)
    if completion >= 90:
        status, details = HealthStatus.EXCELLENT, f"{rounded}% complete - Nearly done"
    elif completion >= 70:
        status, details = HealthStatus.GOOD, f"{rounded}% complete"
    elif completion >= 40:
        status, details = HealthStatus.GOOD, f"{rounded}% complete"
    elif completion >= 20:
        status, details = HealthStatus.WARNING, f"{rounded}% complete - Early stages"
    else:
        status, details = HealthStatus.WARNING, f"{rounded}% complete - Just started"
    return HealthDimensionResult(DimensionName.PROGRESS, completion, status, Trend.UP, details)


_SCORERS: dict[DimensionName, tuple[type, Callable[[Any], HealthDimensionResult]]] = {
    DimensionName.SCHEDULE: (ScheduleInputs, score_schedule),
    DimensionName.BUDGET: (BudgetInputs, score_budget),
    DimensionName.SAFETY: (SafetyInputs, score_safety),
    DimensionName.TEAM: (TeamInputs, score_team),
    DimensionName.PROGRESS: (ProgressInputs, score_progress),
}


def score_dimension(name: DimensionName | str, inputs: object) -> HealthDimensionResult:
    """Summary: Score one named dimension with its own formula.

    Importance: Single entry point for callers that select dimensions by name.
    Alternatives: Call the per-dimension functions directly.
    """

    try:
        dimension = DimensionName(name)
    except ValueError as exc:
        raise InvalidInput(f"Unknown health dimension: {name!r}") from exc
    input_type, scorer = _SCORERS[dimension]
    if not isinstance(inputs, input_type):
        raise InvalidInput(
            f"{dimension.value} expects {input_type.__name__}, got {type(inputs).__name__}"
        )
    return scorer(inputs)


def overall_status(score: float) -> HealthStatus:
    if score >= 85:
        return HealthStatus.EXCELLENT
    if score >= 70:
        return HealthStatus.GOOD
    if score >= 50:
        return HealthStatus.WARNING
    return HealthStatus.CRITICAL


def aggregate(results: Sequence[HealthDimensionResult]) -> AggregateHealthResult:
    """Summary: Average dimension scores into one overall score and status.

    Importance: Unweighted mean; an empty list has no mean and raises.
    Alternatives: Weight dimensions or report the minimum score.
    """

    dimensions = tuple(results)
    if not dimensions:
        raise UndefinedAggregate("Cannot aggregate an empty list of health dimensions")
    overall = sum(dimension.score for dimension in dimensions) / len(dimensions)
    return AggregateHealthResult(
        overall_score=overall,
        overall_status=overall_status(overall),
        dimensions=dimensions,
    )


def score_project(snapshot: ProjectSnapshot) -> AggregateHealthResult:
    """Summary: Score every dimension of a project and aggregate the results.

    Importance: Produces the full project health view in one call.
    Alternatives: Score dimensions lazily as dashboards request them.
    """

    return aggregate(
        [
            score_dimension(DimensionName.SCHEDULE, snapshot.schedule),
            score_dimension(DimensionName.BUDGET, snapshot.budget),
            score_dimension(DimensionName.SAFETY, snapshot.safety),
            score_dimension(DimensionName.TEAM, snapshot.team),
            score_dimension(DimensionName.PROGRESS, snapshot.progress),
        ]
    )
