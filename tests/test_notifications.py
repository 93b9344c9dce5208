"""Tests for event-driven notification fan-out."""

from datetime import datetime

import logic
import notifications
from events import EventBus, EventType, DomainEvent, participant_status_changed
from models import Notification


def notes_for(participant, type_=None):
    query = Notification.query.filter_by(participant_id=participant.id)
    if type_:
        query = query.filter_by(type=type_)
    return query.order_by(Notification.id).all()


def test_announcement_reaches_every_participant(app, admin, make_participant):
    singers = [make_participant(category_name='Solo Singing') for _ in range(2)]
    dancer = make_participant(category_name='Solo Dancing')

    announcement = logic.create_announcement('Rehearsal', 'Be at the hall at 5pm.', admin.id)

    for participant in singers + [dancer]:
        [note] = notes_for(participant, 'announcement')
        assert note.title == 'New Announcement: Rehearsal'
        assert note.message == 'Be at the hall at 5pm.'
        assert note.related_id == announcement.id
        assert note.is_read is False


def test_scoped_announcement_reaches_only_its_category(app, admin, make_participant, category):
    singer = make_participant(category_name='Solo Singing')
    dancer = make_participant(category_name='Solo Dancing')

    logic.create_announcement('Mic check', 'Singers only.', admin.id, category_id=category('Solo Singing').id)

    assert len(notes_for(singer, 'announcement')) == 1
    assert notes_for(dancer, 'announcement') == []


def test_hidden_announcement_notifies_when_activated(app, admin, make_participant):
    participant = make_participant()
    announcement = logic.create_announcement('Draft', 'Later.', admin.id, is_active=False)
    assert notes_for(participant) == []

    logic.toggle_announcement(announcement.id)   # -> active
    logic.toggle_announcement(announcement.id)   # -> hidden, no new row

    assert len(notes_for(participant, 'announcement')) == 1


def test_status_change_notifies_only_on_real_change(app, make_participant):
    participant = make_participant()

    logic.change_participant_status(participant.id, 'pending')
    assert notes_for(participant) == []

    logic.change_participant_status(participant.id, 'selected')
    [note] = notes_for(participant, 'status_change')
    assert note.title == 'Status Updated'
    assert note.message == 'Your registration status has been updated to: Selected for Finals'


def test_scheduling_notifies_audition_and_status(app, make_participant):
    participant = make_participant()

    audition = logic.schedule_audition(participant.id, datetime(2025, 11, 3, 14, 30), 'Main Hall')

    [scheduled] = notes_for(participant, 'audition_scheduled')
    assert scheduled.related_id == audition.id
    assert scheduled.message == (
        'Your audition has been scheduled for Monday, November 03, 2025 at 02:30 PM at Main Hall'
    )
    assert len(notes_for(participant, 'status_change')) == 1


def test_rescheduling_notifies_again(app, make_participant):
    participant = make_participant()
    audition = logic.schedule_audition(participant.id, datetime(2025, 11, 3, 9, 0), 'Room A')

    logic.update_audition(audition.id, admin_notes='Bring backing track')
    assert len(notes_for(participant, 'audition_scheduled')) == 1

    logic.update_audition(audition.id, scheduled_date=datetime(2025, 11, 4, 9, 0))
    assert len(notes_for(participant, 'audition_scheduled')) == 2


def test_result_notification_only_when_leaving_pending(app, make_participant):
    participant = make_participant()
    audition = logic.schedule_audition(participant.id, datetime(2025, 11, 3, 9, 0), 'Room A')

    logic.record_audition_result(audition.id, 'pending')
    assert notes_for(participant, 'audition_result') == []

    logic.record_audition_result(audition.id, 'qualified')
    [note] = notes_for(participant, 'audition_result')
    assert note.title == 'Audition Result Available'
    assert 'qualified for the finals' in note.message


def test_mark_read_and_unread_count(app, make_participant):
    participant = make_participant()
    logic.change_participant_status(participant.id, 'audition_scheduled')
    logic.change_participant_status(participant.id, 'selected')
    assert notifications.unread_count(participant.id) == 2

    notifications.mark_read(notes_for(participant)[0])
    assert notifications.unread_count(participant.id) == 1

    assert notifications.mark_all_read(participant.id) == 1
    assert notifications.unread_count(participant.id) == 0


def test_failing_handler_does_not_stop_others():
    bus = EventBus()
    seen = []

    @bus.subscribe(EventType.PARTICIPANT_STATUS_CHANGED)
    def broken(event):
        raise RuntimeError('boom')

    @bus.subscribe(EventType.PARTICIPANT_STATUS_CHANGED)
    def working(event):
        seen.append(event.payload['new_status'])

    delivered = bus.publish(participant_status_changed(1, 'pending', 'selected'))

    assert delivered == 1
    assert seen == ['selected']


def test_subscribe_is_idempotent():
    bus = EventBus()
    seen = []

    def handler(event):
        seen.append(event.type)

    bus.subscribe(EventType.AUDITION_SCHEDULED)(handler)
    bus.subscribe(EventType.AUDITION_SCHEDULED)(handler)

    assert bus.publish(DomainEvent(EventType.AUDITION_SCHEDULED)) == 1
    assert seen == [EventType.AUDITION_SCHEDULED]
    assert bus.publish(DomainEvent(EventType.ANNOUNCEMENT_ACTIVATED)) == 0


def test_venue_change_notifies(app, make_participant):
    participant = make_participant()
    audition = logic.schedule_audition(participant.id, datetime(2025, 11, 3, 9, 0), 'Room A')

    logic.update_audition(audition.id, venue='Room A')
    logic.update_audition(audition.id, venue='Auditorium')

    latest = notes_for(participant, 'audition_scheduled')
    assert len(latest) == 2
    assert latest[-1].message.endswith('at Auditorium')
