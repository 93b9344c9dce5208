"""Tests for the table-level access policy and its enforcement on routes."""

import pytest

import logic
import voting
from access import ANONYMOUS, POLICIES, Principal, authorize, is_allowed, AccessDenied
from extensions import db
from models import FinalPerformance, Notification

ADMIN = Principal(user_id=1, role='admin')
OWNER = Principal(user_id=7, role='participant')
STRANGER = Principal(user_id=8, role='participant')


@pytest.mark.parametrize('principal', [ANONYMOUS, OWNER, ADMIN])
def test_public_tables_are_readable_by_everyone(principal):
    for table in ('categories', 'announcements', 'final_performances', 'vote_counts'):
        assert is_allowed(principal, table, 'select')
    assert is_allowed(principal, 'votes', 'insert')
    assert is_allowed(principal, 'participants', 'insert')


@pytest.mark.parametrize('principal, allowed', [(ANONYMOUS, False), (OWNER, False), (ADMIN, True)])
def test_raw_votes_are_admin_only(principal, allowed):
    assert is_allowed(principal, 'votes', 'select') is allowed


@pytest.mark.parametrize('action', ['update', 'delete'])
def test_votes_are_immutable_for_everyone(action):
    for principal in (ANONYMOUS, OWNER, ADMIN):
        assert not is_allowed(principal, 'votes', action)


def test_notifications_belong_to_their_owner():
    assert is_allowed(OWNER, 'notifications', 'select', owner_id=7)
    assert is_allowed(OWNER, 'notifications', 'update', owner_id=7)
    assert not is_allowed(STRANGER, 'notifications', 'update', owner_id=7)
    assert not is_allowed(ADMIN, 'notifications', 'select', owner_id=7)
    assert not is_allowed(OWNER, 'notifications', 'select')


def test_participant_rows_are_owner_or_admin():
    assert is_allowed(OWNER, 'participants', 'select', owner_id=7)
    assert is_allowed(ADMIN, 'participants', 'select', owner_id=7)
    assert not is_allowed(STRANGER, 'participants', 'select', owner_id=7)
    assert not is_allowed(ANONYMOUS, 'participants', 'select', owner_id=7)


def test_admin_role_without_user_is_not_admin():
    assert not is_allowed(Principal(role='admin'), 'votes', 'select')


def test_curation_writes_are_admin_only():
    for table in ('final_performances', 'announcements', 'auditions'):
        for action in ('insert', 'update', 'delete'):
            assert is_allowed(ADMIN, table, action)
            assert not is_allowed(OWNER, table, action)
            assert not is_allowed(ANONYMOUS, table, action)


def test_unknown_tables_and_actions_are_closed():
    assert not is_allowed(ADMIN, 'secrets', 'select')
    assert not is_allowed(ADMIN, 'votes', 'truncate')
    assert 'secrets' not in POLICIES


def test_authorize_raises_with_context():
    with pytest.raises(AccessDenied) as err:
        authorize('votes', 'select', principal=OWNER)
    assert err.value.code == 403
    assert (err.value.table, err.value.action) == ('votes', 'select')
    assert authorize('votes', 'select', principal=ADMIN) is ADMIN


# --- Enforcement on routes ---

def test_raw_votes_api_rejects_anonymous(client):
    response = client.get('/admin/api/votes')
    assert response.status_code == 403
    assert response.get_json()['success'] is False


def test_raw_votes_api_rejects_participants(app, login, make_participant):
    participant = make_participant()
    response = login(participant.id).get('/admin/api/votes')
    assert response.status_code == 403


def test_raw_votes_api_serves_admin(app, admin_client, make_performance):
    performance = make_performance('Echoes')
    voting.record_vote(performance.id, 'abc123', fingerprint='UA')

    response = admin_client.get('/admin/api/votes')

    assert response.status_code == 200
    [vote] = response.get_json()['votes']
    assert vote['voter_token'] == 'abc123'
    assert vote['performance_id'] == performance.id
    assert response.get_json()['counts'] == {str(performance.id): 1}


def test_public_listing_never_exposes_voters(app, client, make_performance):
    performance = make_performance('Echoes')
    voting.record_vote(performance.id, 'abc123', fingerprint='UA')

    response = client.get('/api/performances')

    assert response.status_code == 200
    [item] = response.get_json()['performances']
    assert item['vote_count'] == 1
    assert 'voter_token' not in item and 'fingerprint' not in item
    assert b'abc123' not in response.data


@pytest.mark.parametrize('path', ['/admin/participants', '/admin/performances', '/admin/votes', '/admin/popular'])
def test_admin_pages_redirect_anonymous_to_login(client, path):
    response = client.get(path)
    assert response.status_code == 302
    assert '/login' in response.headers['Location']


def test_participant_cannot_curate(app, login, make_participant):
    participant = make_participant(status='selected')
    response = login(participant.id).post('/admin/performances', data={
        'participant_id': participant.id,
        'title': 'Sneaky',
    })
    assert response.status_code == 302
    assert FinalPerformance.query.count() == 0


def test_notification_of_another_participant_cannot_be_marked(app, login, make_participant):
    owner = make_participant()
    intruder = make_participant()
    logic.change_participant_status(owner.id, 'selected')
    note = Notification.query.filter_by(participant_id=owner.id).one()

    response = login(intruder.id).post(f'/notifications/{note.id}/read', json={})

    assert response.status_code == 403
    assert db.session.get(Notification, note.id).is_read is False


def test_missing_and_foreign_notifications_look_the_same(app, login, make_participant):
    owner = make_participant()
    intruder = make_participant()
    logic.change_participant_status(owner.id, 'selected')
    note = Notification.query.filter_by(participant_id=owner.id).one()
    client = login(intruder.id)

    foreign = client.post(f'/notifications/{note.id}/read', json={})
    missing = client.post('/notifications/424242/read', json={})

    assert foreign.status_code == missing.status_code == 403
    assert foreign.get_json() == missing.get_json()
