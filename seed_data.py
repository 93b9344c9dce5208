# seed_data.py
# Fills reference data: the four competition categories and the bootstrap admin.
# Safe to run repeatedly; existing rows are left alone.

import logging

from flask import current_app

from extensions import db
from models import Admin, Category

logger = logging.getLogger(__name__)

CATEGORIES = [
    # name, kind, is_group
    ('Solo Singing', 'singing', False),
    ('Group Singing', 'singing', True),
    ('Solo Dancing', 'dancing', False),
    ('Group Dancing', 'dancing', True),
]


def seed_categories():
    existing = {c.name for c in Category.query.all()}
    created = [
        Category(name=name, kind=kind, is_group=is_group)
        for name, kind, is_group in CATEGORIES
        if name not in existing
    ]
    if created:
        db.session.add_all(created)
        db.session.commit()
    logger.info("Categories seeded: %d new, %d already present", len(created), len(existing))
    return created


def seed_admin(email=None, password=None, full_name=None):
    email = (email or current_app.config['ADMIN_EMAIL']).strip().lower()
    admin = Admin.query.filter_by(email=email).first()
    if admin:
        return admin

    admin = Admin(email=email, full_name=full_name or current_app.config['ADMIN_FULL_NAME'])
    admin.set_password(password or current_app.config['ADMIN_PASSWORD'])
    db.session.add(admin)
    db.session.commit()
    logger.info("Admin account %s created", email)
    return admin


if __name__ == '__main__':
    from app import create_app

    app = create_app()
    with app.app_context():
        db.create_all()
        seed_categories()
        seed_admin()
        print("Reference data is in place.")
