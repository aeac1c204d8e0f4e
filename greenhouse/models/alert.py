"""
Alert Model
"""

from datetime import datetime, timezone

from greenhouse.extensions import db


class AlertRecord(db.Model):
    """Persisted alert history"""
    __tablename__ = 'alerts'

    id = db.Column(db.String(64), primary_key=True)
    type = db.Column(db.String(50), nullable=False)
    message = db.Column(db.String(255), nullable=False)
    severity = db.Column(db.String(10), nullable=False)
    timestamp = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)
    read = db.Column(db.Boolean, default=False, nullable=False)

    def __repr__(self):
        return f'<AlertRecord {self.type} read={self.read}>'
