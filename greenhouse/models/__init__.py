"""
Models Package

Exports all models for easy importing.
"""

from greenhouse.models.user import User
from greenhouse.models.reading import EnvironmentReading, Settings
from greenhouse.models.schedule import WateringSchedule, PlantingSchedule
from greenhouse.models.alert import AlertRecord

__all__ = ['User', 'EnvironmentReading', 'Settings', 'WateringSchedule', 'PlantingSchedule', 'AlertRecord']
