"""
Watering and Planting Schedule Models
"""

import uuid
from datetime import datetime, timezone

from greenhouse.extensions import db


def _new_id():
    return uuid.uuid4().hex


class WateringSchedule(db.Model):
    """A watering session for one zone"""
    __tablename__ = 'watering_schedules'

    id = db.Column(db.String(64), primary_key=True, default=_new_id)
    zone = db.Column(db.String(20), nullable=False)
    time = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    duration = db.Column(db.String(20), default='15min')
    status = db.Column(db.String(20), default='pending', nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f'<WateringSchedule Zone:{self.zone} {self.time} {self.status}>'


class PlantingSchedule(db.Model):
    """A crop batch planted in one zone"""
    __tablename__ = 'planting_schedules'

    id = db.Column(db.String(64), primary_key=True, default=_new_id)
    crop = db.Column(db.String(100), nullable=False)
    zone = db.Column(db.String(20))
    planted_date = db.Column(db.Date, index=True)
    harvest_date = db.Column(db.Date)
    status = db.Column(db.String(20), default='seeded', nullable=False)
    quantity = db.Column(db.Integer, default=0)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f'<PlantingSchedule {self.crop} Zone:{self.zone} {self.status}>'
