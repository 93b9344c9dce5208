# app.py
# Flask application built with the Application Factory pattern

import logging

from flask import Flask, flash, jsonify, redirect, request, url_for
from config import Config
from extensions import db, migrate, socketio
from access import AccessDenied

# Models must be imported before Migrate sees the metadata
from models import Admin, Category, Participant, Audition, Announcement, Notification, FinalPerformance, Vote


def configure_logging(app):
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
    )
    app.logger.setLevel(level)


def wants_json():
    return request.path.startswith(('/api/', '/admin/api/')) or request.is_json


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    configure_logging(app)

    @app.context_processor
    def inject_display_maps():
        from models.participant import STATUS_LABELS
        RESULT_LABELS = {
            'pending': 'Pending',
            'qualified': 'Qualified',
            'not_qualified': 'Not Qualified',
        }
        return dict(STATUS_LABELS=STATUS_LABELS, RESULT_LABELS=RESULT_LABELS)

    # --- Extensions ---
    db.init_app(app)
    migrate.init_app(app, db)
    socketio.init_app(app, async_mode=app.config['SOCKETIO_ASYNC_MODE'])

    # Subscribes the notification writer to domain events
    import notifications  # noqa: F401

    # --- Blueprints ---
    from routes.auth import auth_bp
    from routes.main import main_bp
    from routes.admin import admin_bp
    from routes.voting import voting_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(main_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(voting_bp)

    @app.cli.command('seed')
    def seed_command():
        """Create tables, the category catalog and the bootstrap admin."""
        from seed_data import seed_categories, seed_admin
        db.create_all()
        seed_categories()
        seed_admin()
        print("Reference data is in place.")

    @app.errorhandler(AccessDenied)
    def handle_access_denied(error):
        app.logger.info("Access denied: %s %s on %s", error.action, error.table, request.path)
        if wants_json():
            return jsonify({'success': False, 'message': error.description}), 403
        flash('You do not have permission to access this page.', 'error')
        return redirect(url_for('auth.login'))

    return app


if __name__ == '__main__':
    application = create_app()
    socketio.run(application, debug=True)
