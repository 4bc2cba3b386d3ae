"""Fitness (CTL), fatigue (ATL) and form (TSB) projection.

Both loads are single-pole exponentially weighted averages of daily training
stress:

    ctl += (load - ctl) / 42
    atl += (load - atl) / 7
    tsb  = ctl - atl

The update depends on the previous day, so days are always processed in
date order.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from ..config import config
from ..db.records import FitnessDay, SessionRecord

logger = logging.getLogger(__name__)

RACE_FORM_OPTIMAL = "optimal"
RACE_FORM_LOW = "low"
RACE_FORM_HIGH = "high"


@dataclass
class PlannedDay:
    """One day of a plan as seen by the projection."""

    date: date
    target_load: float = 0.0
    actual_load: Optional[float] = None
    completed: bool = False
    skipped: bool = False


@dataclass
class CalendarEvent:
    date: date
    name: str
    priority: str = "B"


@dataclass
class ProjectedFitness:
    """Projected state at the end of a day, rounded to one decimal."""

    date: date
    ctl: float
    atl: float
    tsb: float
    load: float
    is_event_day: bool = False
    event_name: Optional[str] = None
    event_priority: Optional[str] = None
    is_completed: bool = False
    is_skipped: bool = False


@dataclass
class EventForm:
    date: date
    name: str
    tsb: float
    status: str


@dataclass
class ProjectionSummary:
    peak_ctl: float = 0.0
    peak_ctl_date: Optional[date] = None
    end_ctl: float = 0.0
    average_load: int = 0
    total_load: float = 0.0
    events: List[EventForm] = field(default_factory=list)


def step_fitness(ctl: float, atl: float, load: float):
    """Advance CTL and ATL by one day of `load`. Returns (ctl, atl, tsb)."""
    ctl = ctl + (load - ctl) / config.CTL_TIME_CONSTANT
    atl = atl + (load - atl) / config.ATL_TIME_CONSTANT
    return ctl, atl, ctl - atl


def _day_load(day: Optional[PlannedDay]) -> float:
    if day is None:
        return 0.0
    # Completed wins over skipped
    if day.completed and day.actual_load is not None:
        return float(day.actual_load)
    if day.skipped and not day.completed:
        return 0.0
    return float(day.target_load or 0.0)


def project_fitness(
    current_ctl: float,
    current_atl: float,
    reference_date: date,
    planned_days: Sequence[PlannedDay],
    events: Iterable[CalendarEvent] = (),
) -> List[ProjectedFitness]:
    """Project CTL/ATL/TSB day by day through a plan.

    Args:
        current_ctl: CTL at the start of the reference date
        current_atl: ATL at the start of the reference date
        reference_date: Today, or the date the current values belong to
        planned_days: Plan days with target and, when done, actual loads
        events: Calendar events to flag in the output

    Returns:
        One record per calendar day from min(reference date, first plan day)
        to the last plan day, with no gaps. Empty when the plan is empty.
    """
    if not planned_days:
        return []

    days_by_date: Dict[date, PlannedDay] = {day.date: day for day in planned_days}
    events_by_date: Dict[date, CalendarEvent] = {event.date: event for event in events}

    start = min(reference_date, min(days_by_date))
    end = max(days_by_date)

    ctl, atl = float(current_ctl), float(current_atl)
    projections = []
    current = start
    while current <= end:
        day = days_by_date.get(current)
        event = events_by_date.get(current)
        load = _day_load(day)

        ctl, atl, tsb = step_fitness(ctl, atl, load)

        projections.append(ProjectedFitness(
            date=current,
            ctl=round(ctl, 1),
            atl=round(atl, 1),
            tsb=round(tsb, 1),
            load=load,
            is_event_day=event is not None,
            event_name=event.name if event else None,
            event_priority=event.priority if event else None,
            is_completed=bool(day and day.completed),
            is_skipped=bool(day and day.skipped),
        ))
        current += timedelta(days=1)

    logger.debug("Projected %d days from %s to %s", len(projections), start, end)
    return projections


def race_form_status(tsb: float) -> str:
    """Classify race-day form. 5-25 is the usual peak window."""
    if 5 <= tsb <= 25:
        return RACE_FORM_OPTIMAL
    if tsb < 5:
        return RACE_FORM_LOW  # still fatigued
    return RACE_FORM_HIGH  # fitness starting to fade


def projection_on(projections: Sequence[ProjectedFitness], on: date) -> Optional[ProjectedFitness]:
    return next((p for p in projections if p.date == on), None)


def event_day_projections(projections: Sequence[ProjectedFitness]) -> List[ProjectedFitness]:
    return [p for p in projections if p.is_event_day]


def projection_summary(projections: Sequence[ProjectedFitness]) -> ProjectionSummary:
    """Peak and end fitness, load totals and race-day form per event."""
    if not projections:
        return ProjectionSummary()

    summary = ProjectionSummary()
    for p in projections:
        if p.ctl > summary.peak_ctl:
            summary.peak_ctl = p.ctl
            summary.peak_ctl_date = p.date
        summary.total_load += p.load
        if p.is_event_day and p.event_name:
            summary.events.append(EventForm(p.date, p.event_name, p.tsb, race_form_status(p.tsb)))

    summary.end_ctl = projections[-1].ctl
    summary.average_load = int(round(summary.total_load / len(projections)))
    return summary


def compute_fitness_history(
    daily_loads: pd.Series,
    start_ctl: float = 0.0,
    start_atl: float = 0.0,
) -> pd.DataFrame:
    """Apply the CTL/ATL recurrence to a daily load series.

    Args:
        daily_loads: Loads indexed by day. Missing days are filled with 0.
        start_ctl: CTL on the day before the first index entry
        start_atl: ATL on the day before the first index entry

    Returns:
        DataFrame with date, load, ctl, atl and tsb columns (full precision)
    """
    if daily_loads.empty:
        return pd.DataFrame(columns=["date", "load", "ctl", "atl", "tsb"])

    index = pd.date_range(start=daily_loads.index.min(), end=daily_loads.index.max(), freq="D", normalize=True)
    loads = daily_loads.groupby(pd.DatetimeIndex(daily_loads.index).normalize()).sum()
    loads = loads.reindex(index, fill_value=0.0).astype(float).values

    ctl = np.zeros(len(loads))
    atl = np.zeros(len(loads))
    prev_ctl, prev_atl = float(start_ctl), float(start_atl)
    for i, load in enumerate(loads):
        prev_ctl, prev_atl, _ = step_fitness(prev_ctl, prev_atl, load)
        ctl[i] = prev_ctl
        atl[i] = prev_atl

    return pd.DataFrame({
        "date": index.date,
        "load": loads,
        "ctl": ctl,
        "atl": atl,
        "tsb": ctl - atl,
    })


def daily_loads_from_sessions(sessions: Iterable[SessionRecord], start: date, end: date) -> pd.Series:
    """Sum session loads per day over [start, end]."""
    index = pd.date_range(start=start, end=end, freq="D", normalize=True)
    daily_loads = pd.Series(index=index, data=0.0)
    for session in sessions:
        if not session.load:
            continue
        day = pd.Timestamp(session.date)
        if day in daily_loads.index:
            daily_loads[day] += session.load
    return daily_loads


def rebuild_fitness_history(
    athlete_id: str,
    sessions: Iterable[SessionRecord],
    fitness_store,
    start: date,
    end: date,
    start_ctl: float = 0.0,
    start_atl: float = 0.0,
) -> List[FitnessDay]:
    """Recompute fitness history from sessions and write it to the store.

    `fitness_store` must provide `save_fitness(athlete_id, days)`.

    Returns:
        The fitness days that were written
    """
    frame = compute_fitness_history(daily_loads_from_sessions(sessions, start, end), start_ctl, start_atl)
    days = [
        FitnessDay(
            date=row.date,
            ctl=float(row.ctl),
            atl=float(row.atl),
            tsb=float(row.tsb),
            daily_load=float(row.load),
        )
        for row in frame.itertuples(index=False)
    ]
    written = fitness_store.save_fitness(athlete_id, days)
    logger.info("Rebuilt %d fitness days for %s (%s to %s)", written, athlete_id, start, end)
    return days
