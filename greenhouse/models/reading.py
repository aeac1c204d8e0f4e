"""
Environment Reading and Settings Models
"""

from datetime import datetime, timezone

from greenhouse.extensions import db
from greenhouse.services.records import (
    DEFAULT_HUMIDITY_LIMIT, DEFAULT_MOISTURE_LIMIT, DEFAULT_TEMP_LIMIT,
)


class EnvironmentReading(db.Model):
    """Greenhouse sensor reading"""
    __tablename__ = 'environment_readings'

    id = db.Column(db.Integer, primary_key=True)
    zone = db.Column(db.String(20), default='A', nullable=False)
    timestamp = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)
    temperature = db.Column(db.Float, nullable=False)    # degC
    humidity = db.Column(db.Float, nullable=False)       # %
    soil_moisture = db.Column(db.Float, nullable=False)  # %

    def __repr__(self):
        return f'<EnvironmentReading Zone:{self.zone} T:{self.temperature} at {self.timestamp}>'


class Settings(db.Model):
    """Application settings model (alert thresholds)"""
    __tablename__ = 'settings'

    id = db.Column(db.Integer, primary_key=True)
    temp_limit = db.Column(db.Float, default=DEFAULT_TEMP_LIMIT, nullable=False)
    humidity_limit = db.Column(db.Float, default=DEFAULT_HUMIDITY_LIMIT, nullable=False)
    moisture_limit = db.Column(db.Float, default=DEFAULT_MOISTURE_LIMIT, nullable=False)
    notifications = db.Column(db.Boolean, default=True, nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f'<Settings T:{self.temp_limit} H:{self.humidity_limit} M:{self.moisture_limit}>'
