# models/notification.py

from extensions import db
from sqlalchemy import CheckConstraint

NOTIFICATION_TYPES = ('announcement', 'status_change', 'audition_scheduled', 'audition_result')


class Notification(db.Model):
    __tablename__ = 'notifications'
    id = db.Column(db.Integer, primary_key=True)
    participant_id = db.Column(db.Integer, db.ForeignKey('participants.id', ondelete='CASCADE'), nullable=False, index=True)
    type = db.Column(db.String(30), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    is_read = db.Column(db.Boolean, nullable=False, default=False, index=True)
    related_id = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, server_default=db.func.current_timestamp(), index=True)

    __table_args__ = (
        CheckConstraint(
            "type IN ('announcement', 'status_change', 'audition_scheduled', 'audition_result')",
            name="check_notification_type"
        ),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'type': self.type,
            'title': self.title,
            'message': self.message,
            'is_read': self.is_read,
            'related_id': self.related_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
