"""
Services Package

Exports the pure greenhouse services for easy importing. The repository and
the background monitor need an application and are imported from their
modules directly.
"""

from greenhouse.services.alert_rules import evaluate_alerts, evaluate_thresholds
from greenhouse.services.alert_store import AlertStore
from greenhouse.services.simulation import (
    generate_alert_seed,
    generate_environment_reading,
    generate_historical_series,
    generate_planting_schedules,
    generate_watering_schedules,
)

__all__ = [
    'evaluate_alerts',
    'evaluate_thresholds',
    'AlertStore',
    'generate_alert_seed',
    'generate_environment_reading',
    'generate_historical_series',
    'generate_planting_schedules',
    'generate_watering_schedules',
]
