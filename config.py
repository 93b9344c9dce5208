# config.py
# Flask application configuration

import os


class Config:
    BASE_DIR = os.path.abspath(os.path.dirname(__file__))
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'DATABASE_URL',
        f'sqlite:///{os.path.join(BASE_DIR, "instance", "nadanu.db")}'
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = os.environ.get('SECRET_KEY', 'change-me-in-production')

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Bootstrap admin account, created by seed_data.py
    ADMIN_EMAIL = os.environ.get('ADMIN_EMAIL', 'admin@example.com')
    ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD', 'admin123')
    ADMIN_FULL_NAME = os.environ.get('ADMIN_FULL_NAME', 'Event Administrator')

    # Public voting
    VOTER_TOKEN_MAX_LENGTH = 128
    FINGERPRINT_MAX_LENGTH = 512

    SOCKETIO_ASYNC_MODE = os.environ.get('SOCKETIO_ASYNC_MODE', 'threading')


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SECRET_KEY = 'testing'
    LOG_LEVEL = 'WARNING'
    ADMIN_EMAIL = 'admin@test.local'
    ADMIN_PASSWORD = 'secret-admin'
