# models/final_performance.py

from datetime import datetime

from extensions import db


class FinalPerformance(db.Model):
    __tablename__ = 'final_performances'
    id = db.Column(db.Integer, primary_key=True)
    participant_id = db.Column(db.Integer, db.ForeignKey('participants.id', ondelete='CASCADE'), nullable=False, index=True)
    # Copied from the participant when the performance is created
    category_id = db.Column(db.Integer, db.ForeignKey('categories.id'), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    image_url = db.Column(db.String(500), nullable=True)
    display_order = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    category = db.relationship('Category')
    votes = db.relationship('Vote', backref='performance', lazy=True, cascade="all, delete-orphan")
