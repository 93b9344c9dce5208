# notifications.py
# Notification writer: turns domain events into notification rows and pushes them to Socket.IO rooms

import logging

from flask import session
from flask_socketio import join_room
from sqlalchemy.exc import SQLAlchemyError

from events import bus, EventType
from extensions import db, socketio
from models import Participant, Notification
from models.participant import STATUS_LABELS

logger = logging.getLogger(__name__)

RESULT_MESSAGES = {
    'qualified': 'Congratulations! You have qualified for the finals.',
    'not_qualified': 'Thank you for participating. Unfortunately, you did not qualify this time.',
}


def participant_room(participant_id):
    return f'participant_{participant_id}'


def push_notification(notification):
    """Best-effort realtime delivery; the row is already stored."""
    try:
        socketio.emit('notification', notification.to_dict(), to=participant_room(notification.participant_id))
    except Exception:
        logger.warning("Realtime push failed for notification %s", notification.id, exc_info=True)


def _store(notifications):
    if not notifications:
        return []
    try:
        db.session.add_all(notifications)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
    for n in notifications:
        push_notification(n)
    return notifications


@bus.subscribe(EventType.ANNOUNCEMENT_ACTIVATED)
def on_announcement_activated(event):
    data = event.payload
    query = Participant.query
    if data['category_id'] is not None:
        query = query.filter_by(category_id=data['category_id'])
    recipient_ids = [row.id for row in query.with_entities(Participant.id).all()]

    created = _store([
        Notification(
            participant_id=pid,
            type='announcement',
            title=f"New Announcement: {data['title']}",
            message=data['content'],
            related_id=data['announcement_id'],
        )
        for pid in recipient_ids
    ])
    logger.info("Announcement %s fanned out to %d participants", data['announcement_id'], len(created))


@bus.subscribe(EventType.PARTICIPANT_STATUS_CHANGED)
def on_participant_status_changed(event):
    data = event.payload
    label = STATUS_LABELS.get(data['new_status'], data['new_status'])
    _store([Notification(
        participant_id=data['participant_id'],
        type='status_change',
        title='Status Updated',
        message=f'Your registration status has been updated to: {label}',
    )])


@bus.subscribe(EventType.AUDITION_SCHEDULED)
def on_audition_scheduled(event):
    data = event.payload
    when = data['scheduled_date'].strftime('%A, %B %d, %Y at %I:%M %p')
    _store([Notification(
        participant_id=data['participant_id'],
        type='audition_scheduled',
        title='Audition Scheduled',
        message=f"Your audition has been scheduled for {when} at {data['venue'] or 'TBA'}",
        related_id=data['audition_id'],
    )])


@bus.subscribe(EventType.AUDITION_RESULT_RECORDED)
def on_audition_result_recorded(event):
    data = event.payload
    _store([Notification(
        participant_id=data['participant_id'],
        type='audition_result',
        title='Audition Result Available',
        message=f"Your audition result is now available: {RESULT_MESSAGES[data['result']]}",
        related_id=data['audition_id'],
    )])


# --- Recipient-side operations ---

def unread_count(participant_id):
    return Notification.query.filter_by(participant_id=participant_id, is_read=False).count()


def mark_read(notification):
    if not notification.is_read:
        notification.is_read = True
        db.session.commit()
    return notification


def mark_all_read(participant_id):
    updated = Notification.query.filter_by(participant_id=participant_id, is_read=False) \
        .update({'is_read': True}, synchronize_session=False)
    db.session.commit()
    return updated


@socketio.on('connect')
def handle_connect(auth=None):
    # Only logged-in participants get a notification room
    if session.get('user_role') != 'participant':
        return False
    join_room(participant_room(session['user_id']))
    return True
