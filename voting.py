# voting.py
"""
Public finals voting: vote recording and vote-count aggregation.

A voter is identified only by an opaque token that the browser generates
once and keeps in local storage. Clearing storage yields a new token, so
one person can vote again; the token is a usability device, not an
identity check. The one hard guarantee is the storage-level uniqueness of
(performance, voter token).
"""

import logging
import secrets
import time
from collections import OrderedDict
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Iterable, List, Optional

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from extensions import db
from models import Category, FinalPerformance, Participant, Vote, in_id_range

logger = logging.getLogger(__name__)


class VoteOutcome(str, Enum):
    RECORDED = 'recorded'
    ALREADY_VOTED = 'already_voted'
    INVALID = 'invalid'
    NOT_FOUND = 'not_found'
    FAILED = 'failed'


@dataclass
class VoteResult:
    outcome: VoteOutcome
    message: str
    field: Optional[str] = None

    @property
    def ok(self):
        return self.outcome is VoteOutcome.RECORDED


@dataclass
class PerformanceTally:
    performance_id: int
    title: str
    image_url: Optional[str]
    display_order: int
    participant_name: str
    category_name: str
    vote_count: int
    has_voted: bool = False
    is_active: bool = True

    def to_dict(self):
        return asdict(self)


def generate_voter_token():
    return f'voter_{int(time.time() * 1000)}_{secrets.token_hex(5)}'


def _clean_voter_token(voter_token):
    if not isinstance(voter_token, str) or not voter_token.strip():
        return None
    return voter_token.strip()


def record_vote(performance_id, voter_token, fingerprint=None):
    """
    Store one vote for (performance, voter token).

    A repeat of the same pair is reported as ALREADY_VOTED and leaves the
    stored votes unchanged. The performance must exist and be active at
    the moment of the insert.
    """
    token = _clean_voter_token(voter_token)
    if token is None:
        return VoteResult(VoteOutcome.INVALID, 'A voter token is required.', field='voter_token')
    if len(token) > current_app.config['VOTER_TOKEN_MAX_LENGTH']:
        return VoteResult(VoteOutcome.INVALID, 'The voter token is too long.', field='voter_token')
    if fingerprint is not None and not isinstance(fingerprint, str):
        return VoteResult(VoteOutcome.INVALID, 'The fingerprint must be a string.', field='fingerprint')
    if fingerprint:
        fingerprint = fingerprint[:current_app.config['FINGERPRINT_MAX_LENGTH']]

    if not in_id_range(performance_id):
        return VoteResult(VoteOutcome.NOT_FOUND, 'This performance is not open for voting.')

    try:
        performance = db.session.get(FinalPerformance, performance_id)
        if performance is None or not performance.is_active:
            return VoteResult(VoteOutcome.NOT_FOUND, 'This performance is not open for voting.')

        db.session.add(Vote(performance_id=performance.id, voter_token=token, fingerprint=fingerprint or None))
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        if has_voted(performance_id, token):
            logger.info("Duplicate vote rejected for performance %s", performance_id)
            return VoteResult(VoteOutcome.ALREADY_VOTED, 'You have already voted for this performance!')
        logger.exception("Vote insert for performance %s violated a constraint", performance_id)
        return VoteResult(VoteOutcome.FAILED, 'Failed to submit vote. Please try again.')
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Vote insert for performance %s failed", performance_id)
        return VoteResult(VoteOutcome.FAILED, 'Failed to submit vote. Please try again.')

    logger.info("Vote recorded for performance %s", performance_id)
    return VoteResult(VoteOutcome.RECORDED, 'Thank you for voting!')


def has_voted(performance_id, voter_token):
    return db.session.query(
        Vote.query.filter_by(performance_id=performance_id, voter_token=voter_token).exists()
    ).scalar()


# --- Read path: counts only, never vote rows ---

def _tally_query():
    return db.session.query(
        FinalPerformance,
        Participant.full_name,
        Participant.team_name,
        Category.name,
        func.count(Vote.id),
    ).join(Participant, FinalPerformance.participant_id == Participant.id) \
     .join(Category, FinalPerformance.category_id == Category.id) \
     .outerjoin(Vote, Vote.performance_id == FinalPerformance.id) \
     .group_by(FinalPerformance.id, Participant.full_name, Participant.team_name, Category.name) \
     .order_by(FinalPerformance.display_order, FinalPerformance.id)


def _to_tallies(rows, voted_ids):
    voted = set(voted_ids or ())
    return [
        PerformanceTally(
            performance_id=performance.id,
            title=performance.title,
            image_url=performance.image_url,
            display_order=performance.display_order,
            participant_name=team_name or full_name,
            category_name=category_name,
            vote_count=count,
            has_voted=performance.id in voted,
            is_active=performance.is_active,
        )
        for performance, full_name, team_name, category_name, count in rows
    ]


def list_votable_performances(voted_ids: Iterable[int] = ()) -> List[PerformanceTally]:
    """
    Active performances in display order with their vote counts.

    voted_ids is the caller's own list of performances it has voted for;
    has_voted is derived from it only and is advisory.
    """
    rows = _tally_query().filter(FinalPerformance.is_active.is_(True)).all()
    return _to_tallies(rows, voted_ids)


def list_all_tallies() -> List[PerformanceTally]:
    return _to_tallies(_tally_query().all(), ())


def vote_counts():
    rows = db.session.query(FinalPerformance.id, func.count(Vote.id)) \
        .outerjoin(Vote, Vote.performance_id == FinalPerformance.id) \
        .group_by(FinalPerformance.id).all()
    return {performance_id: count for performance_id, count in rows}


def vote_count_for(performance_id):
    """Vote count for one performance, or None if it does not exist."""
    if not in_id_range(performance_id) or db.session.get(FinalPerformance, performance_id) is None:
        return None
    return Vote.query.filter_by(performance_id=performance_id).count()


def top_performance_per_category(tallies):
    """Most-voted tally in each category; earlier entries win ties."""
    grouped = OrderedDict()
    for tally in tallies:
        grouped.setdefault(tally.category_name, []).append(tally)
    return OrderedDict(
        (category, sorted(group, key=lambda t: t.vote_count, reverse=True)[0])
        for category, group in grouped.items()
    )


def raw_votes(performance_id=None):
    """Individual vote rows. Only the admin policy reaches this."""
    query = Vote.query.order_by(Vote.created_at.desc(), Vote.id.desc())
    if performance_id is not None:
        if not in_id_range(performance_id):
            return []
        query = query.filter_by(performance_id=performance_id)
    return query.all()


def parse_voted_ids(raw):
    """'3,5,x,7' -> {3, 5, 7}; junk entries are dropped."""
    ids = set()
    for part in (raw or '').split(','):
        try:
            ids.add(int(part.strip()))
        except ValueError:
            continue
    return ids
