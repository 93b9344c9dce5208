# models/audition.py

from datetime import datetime

from extensions import db
from sqlalchemy import CheckConstraint, UniqueConstraint

AUDITION_RESULTS = ('pending', 'qualified', 'not_qualified')


class Audition(db.Model):
    __tablename__ = 'auditions'
    id = db.Column(db.Integer, primary_key=True)
    participant_id = db.Column(db.Integer, db.ForeignKey('participants.id', ondelete='CASCADE'), nullable=False)
    category_id = db.Column(db.Integer, db.ForeignKey('categories.id'), nullable=False)
    scheduled_date = db.Column(db.DateTime, nullable=True)
    venue = db.Column(db.String(200), nullable=False, default='')
    result = db.Column(db.String(20), nullable=False, default='pending')
    admin_notes = db.Column(db.Text, nullable=False, default='')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = db.relationship('Category')

    __table_args__ = (
        UniqueConstraint('participant_id', name='unique_audition_per_participant'),
        CheckConstraint("result IN ('pending', 'qualified', 'not_qualified')", name="check_audition_result"),
    )
