"""
Report Services

Aggregations that turn planting schedules, watering schedules and
environment readings into chart series and summary tables for the reports
pages. Inputs may be records or raw mappings; they are never modified, and
empty or missing input always produces an empty-shaped result.
"""

import math
from collections import Counter
from datetime import datetime, time, timedelta, timezone

from greenhouse.services.records import (
    EnvironmentReading, PlantingSchedule, PlantingStatus, WateringSchedule, WateringStatus,
    utcnow,
)


STATUS_COLORS = {
    PlantingStatus.SEEDED: '#eab308',     # yellow
    PlantingStatus.GROWING: '#22c55e',    # green
    PlantingStatus.HARVESTED: '#3b82f6',  # blue
}

ACTIVE_STATUSES = (PlantingStatus.SEEDED, PlantingStatus.GROWING)

UPCOMING_HARVEST_DAYS = 7


def _plantings(schedules):
    return [s if isinstance(s, PlantingSchedule) else PlantingSchedule.from_mapping(s)
            for s in schedules or []]


def _waterings(schedules):
    return [s if isinstance(s, WateringSchedule) else WateringSchedule.from_mapping(s)
            for s in schedules or []]


def _readings(readings):
    return [r if isinstance(r, EnvironmentReading) else EnvironmentReading.from_mapping(r)
            for r in readings or []]


def _field_values(records, field):
    values = []
    for record in records or []:
        if isinstance(record, dict):
            value = record.get(field)
        else:
            value = getattr(record, field, None)
        values.append(value or 0)
    return values


def _epoch_millis(day):
    return int(datetime.combine(day, time.min, tzinfo=timezone.utc).timestamp() * 1000)


def _group_count(values):
    return dict(Counter(values))


# ---------------------------------------------------------------------------
# Crop status distribution
# ---------------------------------------------------------------------------

def aggregate_by_status(schedules):
    """Count schedules per status. ``total`` is always the input length."""
    plantings = _plantings(schedules)
    counts = Counter(s.status for s in plantings)
    return {
        'seeded': counts[PlantingStatus.SEEDED],
        'growing': counts[PlantingStatus.GROWING],
        'harvested': counts[PlantingStatus.HARVESTED],
        'total': len(plantings),
    }


def status_pie_series(schedules):
    """Pie slices per status, leaving out empty slices."""
    counts = aggregate_by_status(schedules)
    series = [
        {
            'name': status.value.capitalize(),
            'value': counts[status.value],
            'count': counts[status.value],
            'color': STATUS_COLORS[status],
        }
        for status in PlantingStatus
    ]
    return [item for item in series if item['value'] > 0]


def status_bar_series(schedules):
    """Bar per status, zero counts included."""
    counts = aggregate_by_status(schedules)
    return [{'status': status.value.capitalize(), 'count': counts[status.value]}
            for status in PlantingStatus]


def growth_timeline(schedules):
    """Cumulative count of crops that entered an active state, by planted date.

    Only seeded and growing schedules contribute; harvested schedules never
    decrement the running count.
    """
    added = Counter(
        s.planted_date for s in _plantings(schedules)
        if s.planted_date is not None and s.status in ACTIVE_STATUSES
    )

    timeline = []
    active = 0
    for day in sorted(added):
        active += added[day]
        timeline.append({
            'date': day.isoformat(),
            'active_crops': active,
            'formatted_date': f'{day:%b} {day.day}',
        })
    return timeline


def planting_harvest_scatter(schedules):
    """Planted date vs. days to harvest, one point per fully dated schedule."""
    points = []
    for s in _plantings(schedules):
        if s.planted_date is None or s.harvest_date is None:
            continue
        days_to_harvest = (s.harvest_date - s.planted_date).days
        x = _epoch_millis(s.planted_date)
        points.append({
            'planted_date': s.planted_date.isoformat(),
            'days_to_harvest': days_to_harvest,
            'crop': s.crop,
            'zone': s.zone,
            'x': x,
            'y': days_to_harvest,
        })

    points.sort(key=lambda point: point['x'])
    return points


def counts_by_zone(schedules):
    """Schedule counts per zone, labelled 'Zone X' and sorted by label."""
    counts = Counter(s.zone for s in _plantings(schedules))
    rows = [{'zone': f'Zone {zone}', 'count': count} for zone, count in counts.items()]
    rows.sort(key=lambda row: row['zone'])
    return rows


# ---------------------------------------------------------------------------
# Plant summary
# ---------------------------------------------------------------------------

def compute_plant_summary(schedules, today=None):
    """Summary cards, per-crop counts and table rows for the plants page."""
    plantings = _plantings(schedules)
    today = today or utcnow().date()
    horizon = today + timedelta(days=UPCOMING_HARVEST_DAYS)

    by_status = aggregate_by_status(plantings)

    upcoming = sum(
        1 for s in plantings
        if s.harvest_date is not None and s.status != PlantingStatus.HARVESTED
        and today <= s.harvest_date <= horizon
    )

    table_data = []
    for s in plantings:
        days_remaining = None
        if s.harvest_date is not None and s.status != PlantingStatus.HARVESTED:
            days_remaining = (s.harvest_date - today).days
        table_data.append({
            'id': s.id,
            'crop_name': s.crop,
            'zone': s.zone,
            'status': s.status.value,
            'planted_date': s.planted_date.isoformat() if s.planted_date else None,
            'harvest_date': s.harvest_date.isoformat() if s.harvest_date else None,
            'days_remaining': days_remaining,
        })

    return {
        'total_plants': len(plantings),
        'growing_plants': by_status['growing'],
        'harvested_plants': by_status['harvested'],
        'seeded_plants': by_status['seeded'],
        'upcoming_harvests': upcoming,
        'by_status': {
            'seeded': by_status['seeded'],
            'growing': by_status['growing'],
            'harvested': by_status['harvested'],
        },
        'by_crop': _group_count(s.crop for s in plantings),
        'table_data': table_data,
    }


def chart_bundle(schedules):
    """Every planting chart series for the reports page in one payload."""
    plantings = _plantings(schedules)
    return {
        'status_counts': aggregate_by_status(plantings),
        'pie': status_pie_series(plantings),
        'bar': status_bar_series(plantings),
        'timeline': growth_timeline(plantings),
        'scatter': planting_harvest_scatter(plantings),
        'zones': counts_by_zone(plantings),
    }


# ---------------------------------------------------------------------------
# Environment statistics and periodic reports
# ---------------------------------------------------------------------------

def calculate_average(records, field):
    """Mean of ``field`` rounded to one decimal; 0 for empty input."""
    values = _field_values(records, field)
    if not values:
        return 0
    return round(sum(values) / len(values), 1)


def calculate_min_max(records, field):
    """Range of ``field``; ``{'min': 0, 'max': 0}`` for empty input."""
    values = _field_values(records, field)
    if not values:
        return {'min': 0, 'max': 0}
    return {'min': min(values), 'max': max(values)}


def _environment_summary(readings):
    return {
        'avg_temperature': calculate_average(readings, 'temperature'),
        'avg_humidity': calculate_average(readings, 'humidity'),
        'avg_moisture': calculate_average(readings, 'soil_moisture'),
        'temp_range': calculate_min_max(readings, 'temperature'),
        'humidity_range': calculate_min_max(readings, 'humidity'),
        'moisture_range': calculate_min_max(readings, 'soil_moisture'),
    }


def _watering_summary(schedules):
    return {
        'total_sessions': len(schedules),
        'completed_sessions': sum(1 for s in schedules if s.status == WateringStatus.COMPLETED),
        'pending_sessions': sum(1 for s in schedules if s.status == WateringStatus.PENDING),
    }


def _planting_summary(schedules):
    counts = aggregate_by_status(schedules)
    return {
        'total_plantings': len(schedules),
        'by_status': {
            'seeded': counts['seeded'],
            'growing': counts['growing'],
            'harvested': counts['harvested'],
        },
        'by_crop': _group_count(s.crop for s in schedules),
    }


def _window(environment_data, watering_schedules, planting_schedules, days, now):
    now = now or utcnow()
    cutoff = now - timedelta(days=days)

    readings = [r for r in _readings(environment_data) if r.timestamp >= cutoff]
    watering = [s for s in _waterings(watering_schedules)
                if s.time is not None and s.time >= cutoff]
    planting = [s for s in _plantings(planting_schedules)
                if s.planted_date is not None and s.planted_date >= cutoff.date()]
    return readings, watering, planting


def weekly_report(environment_data, watering_schedules, planting_schedules, now=None):
    """Report over the trailing 7 days."""
    readings, watering, planting = _window(
        environment_data, watering_schedules, planting_schedules, 7, now)

    return {
        'period': 'Last 7 days',
        'environment': _environment_summary(readings),
        'watering': _watering_summary(watering),
        'planting': _planting_summary(planting),
    }


def monthly_report(environment_data, watering_schedules, planting_schedules, now=None):
    """Report over the trailing 30 days, with weekly averages and zones."""
    readings, watering, planting = _window(
        environment_data, watering_schedules, planting_schedules, 30, now)

    watering_summary = _watering_summary(watering)
    # rounds half up
    watering_summary['avg_sessions_per_week'] = math.floor(len(watering) / 4 + 0.5)

    planting_summary = _planting_summary(planting)
    planting_summary['by_zone'] = _group_count(s.zone for s in planting)

    return {
        'period': 'Last 30 days',
        'environment': _environment_summary(readings),
        'watering': watering_summary,
        'planting': planting_summary,
    }


def watering_sessions_by_day(schedules, days=7, now=None):
    """Number of watering sessions on each of the last ``days`` days."""
    now = now or utcnow()
    per_day = Counter(s.time.date() for s in _waterings(schedules) if s.time is not None)

    rows = []
    for offset in range(days - 1, -1, -1):
        day = (now - timedelta(days=offset)).date()
        rows.append({'day': f'{day:%a}', 'date': day.isoformat(), 'sessions': per_day[day]})
    return rows
