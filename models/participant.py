# models/participant.py

from datetime import datetime

from extensions import db
from sqlalchemy import CheckConstraint
from werkzeug.security import generate_password_hash, check_password_hash

PARTICIPANT_STATUSES = ('pending', 'audition_scheduled', 'selected', 'not_selected')

STATUS_LABELS = {
    'pending': 'Pending',
    'audition_scheduled': 'Audition Scheduled',
    'selected': 'Selected for Finals',
    'not_selected': 'Not Selected',
}


class Participant(db.Model):
    __tablename__ = 'participants'
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(150), nullable=False, index=True)
    student_id = db.Column(db.String(50), unique=True, nullable=False)
    phone_number = db.Column(db.String(30), nullable=False)
    category_id = db.Column(db.Integer, db.ForeignKey('categories.id'), nullable=False)
    team_name = db.Column(db.String(150), nullable=True)
    team_size = db.Column(db.Integer, nullable=True)
    status = db.Column(db.String(30), nullable=False, default='pending')
    registration_date = db.Column(db.DateTime, default=datetime.utcnow)

    audition = db.relationship('Audition', backref='participant', uselist=False, cascade="all, delete-orphan")
    notifications = db.relationship('Notification', backref='participant', lazy=True, cascade="all, delete-orphan")
    performances = db.relationship('FinalPerformance', backref='participant', lazy=True, cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'audition_scheduled', 'selected', 'not_selected')",
            name="check_participant_status"
        ),
        CheckConstraint("team_size IS NULL OR team_size > 0", name="check_team_size"),
    )

    @property
    def display_name(self):
        # Group entries are shown by team name on the public pages
        return self.team_name or self.full_name

    @property
    def status_label(self):
        return STATUS_LABELS.get(self.status, self.status)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)
