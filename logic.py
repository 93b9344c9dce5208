# logic.py
# Domain transitions for registration, auditions, announcements and finals curation.
# Routes call these; every mutation that participants should hear about publishes an event.

import logging
import re
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

import events
from events import bus
from extensions import db
from models import Admin, Announcement, Audition, Category, FinalPerformance, Participant, Vote
from models.audition import AUDITION_RESULTS
from models.participant import PARTICIPANT_STATUSES

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
MIN_PASSWORD_LENGTH = 6

RESULT_TO_STATUS = {
    'qualified': 'selected',
    'not_qualified': 'not_selected',
}


class ValidationError(ValueError):
    """Rejected input; nothing was written."""

    def __init__(self, message, field=None):
        super().__init__(message)
        self.field = field


def _required(data, name, label):
    value = (data.get(name) or '').strip()
    if not value:
        raise ValidationError(f'{label} is required.', field=name)
    return value


def _as_int(value, name, label):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{label} must be a whole number.', field=name)


def _get_or_fail(model, object_id, label, field=None):
    obj = None
    if object_id not in (None, ''):
        obj = db.session.get(model, _as_int(object_id, field, label))
    if obj is None:
        raise ValidationError(f'{label} not found.', field=field)
    return obj


# --- Registration & status ---

def register_participant(data):
    email = _required(data, 'email', 'Email').lower()
    if not EMAIL_RE.match(email):
        raise ValidationError('Enter a valid email address.', field='email')
    password = data.get('password') or ''
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters.', field='password')
    full_name = _required(data, 'full_name', 'Full name')
    student_id = _required(data, 'student_id', 'Student ID')
    phone_number = _required(data, 'phone_number', 'Phone number')

    category_id = _as_int(data.get('category_id'), 'category_id', 'Category')
    category = db.session.get(Category, category_id)
    if category is None:
        raise ValidationError('Choose a valid category.', field='category_id')

    team_name, team_size = None, None
    if category.is_group:
        team_name = _required(data, 'team_name', 'Team name')
        team_size = _as_int(data.get('team_size'), 'team_size', 'Team size')
        if team_size < 1:
            raise ValidationError('Team size must be at least 1.', field='team_size')

    participant = Participant(
        email=email,
        full_name=full_name,
        student_id=student_id,
        phone_number=phone_number,
        category_id=category.id,
        team_name=team_name,
        team_size=team_size,
        status='pending',
    )
    participant.set_password(password)
    db.session.add(participant)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ValidationError('A participant with this email or student ID is already registered.', field='email')

    logger.info("Participant %s registered in category '%s'", participant.id, category.name)
    return participant


def change_participant_status(participant_id, new_status):
    if new_status not in PARTICIPANT_STATUSES:
        raise ValidationError(f'Unknown status "{new_status}".', field='status')
    participant = _get_or_fail(Participant, participant_id, 'Participant', 'participant_id')

    old_status = participant.status
    if old_status == new_status:
        return participant

    participant.status = new_status
    db.session.commit()
    logger.info("Participant %s status %s -> %s", participant.id, old_status, new_status)
    bus.publish(events.participant_status_changed(participant.id, old_status, new_status))
    return participant


def selected_candidates():
    return Participant.query.filter_by(status='selected').order_by(Participant.full_name).all()


# --- Auditions ---

def parse_schedule(date_str, time_str):
    """'2025-11-03', '14:30' -> datetime; the form sends them separately."""
    if not date_str or not time_str:
        raise ValidationError('Date and time are required.', field='scheduled_date')
    try:
        return datetime.strptime(f'{date_str} {time_str}', '%Y-%m-%d %H:%M')
    except ValueError:
        raise ValidationError('Invalid date or time format.', field='scheduled_date')


def schedule_audition(participant_id, scheduled_date, venue):
    participant = _get_or_fail(Participant, participant_id, 'Participant', 'participant_id')
    venue = (venue or '').strip()
    if scheduled_date is None:
        raise ValidationError('Date and time are required.', field='scheduled_date')
    if not venue:
        raise ValidationError('Venue is required.', field='venue')
    if participant.audition is not None:
        raise ValidationError(
            f'{participant.full_name} already has an audition. Edit it instead of scheduling a new one.',
            field='participant_id'
        )

    audition = Audition(
        participant_id=participant.id,
        category_id=participant.category_id,
        scheduled_date=scheduled_date,
        venue=venue,
        result='pending',
    )
    db.session.add(audition)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ValidationError('This participant already has an audition.', field='participant_id')

    bus.publish(events.audition_scheduled(audition.id, participant.id, scheduled_date, venue))
    change_participant_status(participant.id, 'audition_scheduled')
    return audition


def update_audition(audition_id, scheduled_date=None, venue=None, admin_notes=None):
    audition = _get_or_fail(Audition, audition_id, 'Audition', 'audition_id')

    if venue is not None:
        venue = venue.strip()
        if not venue:
            raise ValidationError('Venue is required.', field='venue')

    moved = (
        (scheduled_date is not None and scheduled_date != audition.scheduled_date)
        or (venue is not None and venue != audition.venue)
    )
    if venue is not None:
        audition.venue = venue
    if scheduled_date is not None:
        audition.scheduled_date = scheduled_date
    if admin_notes is not None:
        audition.admin_notes = admin_notes.strip()
    db.session.commit()

    if moved:
        bus.publish(events.audition_scheduled(
            audition.id, audition.participant_id, audition.scheduled_date, audition.venue
        ))
    return audition


def record_audition_result(audition_id, result):
    if result not in AUDITION_RESULTS:
        raise ValidationError(f'Unknown result "{result}".', field='result')
    audition = _get_or_fail(Audition, audition_id, 'Audition', 'audition_id')

    old_result = audition.result
    if old_result == result:
        return audition

    audition.result = result
    db.session.commit()
    logger.info("Audition %s result %s -> %s", audition.id, old_result, result)

    if result != 'pending':
        bus.publish(events.audition_result_recorded(audition.id, audition.participant_id, result))
        change_participant_status(audition.participant_id, RESULT_TO_STATUS[result])
    return audition


# --- Announcements ---

def _announcement_scope(category_id):
    if category_id in (None, ''):
        return None
    category_id = _as_int(category_id, 'category_id', 'Category')
    return _get_or_fail(Category, category_id, 'Category', 'category_id').id


def create_announcement(title, content, author_id, category_id=None, is_active=True):
    title = (title or '').strip()
    content = (content or '').strip()
    if not title:
        raise ValidationError('Title is required.', field='title')
    if not content:
        raise ValidationError('Content is required.', field='content')
    _get_or_fail(Admin, author_id, 'Admin', 'created_by')

    announcement = Announcement(
        title=title,
        content=content,
        category_id=_announcement_scope(category_id),
        created_by=author_id,
        is_active=bool(is_active),
    )
    db.session.add(announcement)
    db.session.commit()

    if announcement.is_active:
        _publish_announcement(announcement)
    return announcement


def update_announcement(announcement_id, title, content, category_id=None):
    announcement = _get_or_fail(Announcement, announcement_id, 'Announcement', 'announcement_id')
    title = (title or '').strip()
    content = (content or '').strip()
    if not title or not content:
        raise ValidationError('Title and content are required.', field='title' if not title else 'content')
    scope = _announcement_scope(category_id)

    announcement.title = title
    announcement.content = content
    announcement.category_id = scope
    db.session.commit()
    return announcement


def toggle_announcement(announcement_id):
    announcement = _get_or_fail(Announcement, announcement_id, 'Announcement', 'announcement_id')
    announcement.is_active = not announcement.is_active
    db.session.commit()

    if announcement.is_active:
        _publish_announcement(announcement)
    return announcement


def delete_announcement(announcement_id):
    announcement = _get_or_fail(Announcement, announcement_id, 'Announcement', 'announcement_id')
    db.session.delete(announcement)
    db.session.commit()


def _publish_announcement(announcement):
    bus.publish(events.announcement_activated(
        announcement.id, announcement.title, announcement.content, announcement.category_id
    ))


def visible_announcements(category_id=None):
    """Active announcements for everyone plus those scoped to category_id."""
    query = Announcement.query.filter(Announcement.is_active.is_(True))
    if category_id is None:
        query = query.filter(Announcement.category_id.is_(None))
    else:
        query = query.filter(db.or_(Announcement.category_id.is_(None), Announcement.category_id == category_id))
    return query.order_by(Announcement.created_at.desc(), Announcement.id.desc()).all()


# --- Finals curation ---

def next_display_order():
    return (db.session.query(func.count(FinalPerformance.id)).scalar() or 0) + 1


def create_final_performance(participant_id, title, image_url=None, display_order=None):
    participant = _get_or_fail(Participant, participant_id, 'Participant', 'participant_id')
    if participant.status != 'selected':
        raise ValidationError('Only participants selected for the finals can perform.', field='participant_id')
    title = (title or '').strip()
    if not title:
        raise ValidationError('Performance title is required.', field='title')

    if display_order in (None, ''):
        display_order = next_display_order()
    else:
        display_order = _as_int(display_order, 'display_order', 'Order')

    performance = FinalPerformance(
        participant_id=participant.id,
        category_id=participant.category_id,
        title=title,
        image_url=(image_url or '').strip() or None,
        display_order=display_order,
        is_active=True,
    )
    db.session.add(performance)
    db.session.commit()
    logger.info("Final performance %s '%s' created for participant %s", performance.id, title, participant.id)
    return performance


def toggle_final_performance(performance_id):
    performance = _get_or_fail(FinalPerformance, performance_id, 'Performance', 'performance_id')
    performance.is_active = not performance.is_active
    db.session.commit()
    return performance


def delete_final_performance(performance_id, confirmed=False):
    """
    Remove a performance together with every vote cast for it.
    This cannot be undone, so the caller has to pass confirmed=True.
    """
    performance = _get_or_fail(FinalPerformance, performance_id, 'Performance', 'performance_id')
    if not confirmed:
        raise ValidationError(
            'Deleting a performance removes all of its votes. Confirm the deletion to continue.',
            field='confirm'
        )

    removed_votes = Vote.query.filter_by(performance_id=performance.id).count()
    db.session.delete(performance)
    db.session.commit()
    logger.warning("Final performance %s deleted together with %d votes", performance_id, removed_votes)
    return removed_votes
