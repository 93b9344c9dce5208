# models/announcement.py

from datetime import datetime

from extensions import db


class Announcement(db.Model):
    __tablename__ = 'announcements'
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text, nullable=False)
    # NULL means the announcement goes to every category
    category_id = db.Column(db.Integer, db.ForeignKey('categories.id'), nullable=True)
    created_by = db.Column(db.Integer, db.ForeignKey('admins.id'), nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = db.relationship('Category')
