# models/vote.py

from datetime import datetime

from extensions import db
from sqlalchemy import UniqueConstraint


class Vote(db.Model):
    __tablename__ = 'votes'
    id = db.Column(db.Integer, primary_key=True)
    performance_id = db.Column(db.Integer, db.ForeignKey('final_performances.id', ondelete='CASCADE'), nullable=False, index=True)
    # Opaque token generated and stored by the voter's browser, not an identity
    voter_token = db.Column(db.String(128), nullable=False, index=True)
    fingerprint = db.Column(db.String(512), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint('performance_id', 'voter_token', name='unique_vote_per_voter'),
    )
