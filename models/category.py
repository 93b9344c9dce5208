# models/category.py

from extensions import db
from sqlalchemy import CheckConstraint

CATEGORY_KINDS = ('singing', 'dancing')


class Category(db.Model):
    __tablename__ = 'categories'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    kind = db.Column(db.String(20), nullable=False)
    is_group = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, server_default=db.func.current_timestamp())

    participants = db.relationship('Participant', backref='category', lazy=True)

    __table_args__ = (
        CheckConstraint("kind IN ('singing', 'dancing')", name="check_category_kind"),
    )

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'kind': self.kind, 'is_group': self.is_group}
