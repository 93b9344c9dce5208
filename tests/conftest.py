"""Pytest configuration and fixtures."""

import pytest

from app import create_app
from config import TestingConfig
from extensions import db
from models import Category, FinalPerformance, Participant
from seed_data import seed_admin, seed_categories


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
        seed_categories()
        seed_admin()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin(app):
    from models import Admin
    return Admin.query.filter_by(email=app.config['ADMIN_EMAIL']).one()


def login_as(client, user_id, role):
    with client.session_transaction() as sess:
        sess['user_id'] = user_id
        sess['user_role'] = role


@pytest.fixture
def login(client):
    def _login(user_id, role='participant'):
        login_as(client, user_id, role)
        return client
    return _login


@pytest.fixture
def admin_client(client, admin):
    login_as(client, admin.id, 'admin')
    return client


@pytest.fixture
def category():
    def _get(name):
        return Category.query.filter_by(name=name).one()
    return _get


@pytest.fixture
def make_participant(category):
    counter = {'n': 0}

    def _make(full_name=None, category_name='Solo Singing', status='pending', team_name=None, team_size=None):
        counter['n'] += 1
        n = counter['n']
        participant = Participant(
            email=f'student{n}@uni.test',
            full_name=full_name or f'Student {n}',
            student_id=f'STU{n:04d}',
            phone_number='0771234567',
            category_id=category(category_name).id,
            team_name=team_name,
            team_size=team_size,
            status=status,
        )
        participant.set_password('password1')
        db.session.add(participant)
        db.session.commit()
        return participant
    return _make


@pytest.fixture
def make_performance(make_participant):
    def _make(title, category_name='Solo Singing', display_order=1, is_active=True, participant=None):
        participant = participant or make_participant(category_name=category_name, status='selected')
        performance = FinalPerformance(
            participant_id=participant.id,
            category_id=participant.category_id,
            title=title,
            display_order=display_order,
            is_active=is_active,
        )
        db.session.add(performance)
        db.session.commit()
        return performance
    return _make
