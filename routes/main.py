# routes/main.py
# Participant-facing pages: registration, dashboard, notifications

from functools import wraps

from flask import Blueprint, render_template, session, redirect, url_for, flash, request, jsonify

import logic
import notifications
from access import AccessDenied, authorize
from extensions import db
from models import Category, Participant, Notification, in_id_range

main_bp = Blueprint('main', __name__)


def participant_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if session.get('user_role') != 'participant':
            flash('Please log in to access this page.', 'error')
            return redirect(url_for('auth.login'))
        return f(*args, **kwargs)
    return decorated_function


def _current_participant():
    participant = db.session.get(Participant, session['user_id'])
    if participant is None:
        session.clear()
    return participant


@main_bp.route('/')
def index():
    return redirect(url_for('voting.vote_page'))


@main_bp.route('/register', methods=['GET', 'POST'])
def register():
    categories = Category.query.order_by(Category.name).all()

    if request.method == 'POST':
        authorize('participants', 'insert')
        try:
            participant = logic.register_participant(request.form)
        except logic.ValidationError as e:
            flash(str(e), 'error')
            return render_template('register.html', categories=categories, form=request.form), 400

        flash(f'Registration successful, {participant.full_name}! You can now log in.', 'success')
        return redirect(url_for('auth.login'))

    return render_template('register.html', categories=categories, form={})


@main_bp.route('/dashboard')
@participant_required
def dashboard():
    participant = _current_participant()
    if participant is None:
        flash('Something went wrong. Please log in again.', 'error')
        return redirect(url_for('auth.login'))
    authorize('participants', 'select', owner_id=participant.id)

    announcements = logic.visible_announcements(participant.category_id)
    return render_template(
        'dashboard.html',
        participant=participant,
        audition=participant.audition,
        announcements=announcements,
        unread=notifications.unread_count(participant.id),
    )


@main_bp.route('/notifications')
@participant_required
def list_notifications():
    participant_id = session['user_id']
    authorize('notifications', 'select', owner_id=participant_id)
    items = Notification.query.filter_by(participant_id=participant_id) \
        .order_by(Notification.created_at.desc(), Notification.id.desc()).all()
    return render_template('notifications.html', notifications=items)


@main_bp.route('/notifications/<int:notification_id>/read', methods=['POST'])
@participant_required
def mark_notification_read(notification_id):
    participant_id = session['user_id']
    notification = None
    if in_id_range(notification_id):
        notification = Notification.query.filter_by(id=notification_id, participant_id=participant_id).first()
    # Someone else's notification and a missing one look the same
    if notification is None:
        raise AccessDenied('notifications', 'update')
    authorize('notifications', 'update', owner_id=notification.participant_id)
    notifications.mark_read(notification)
    if request.is_json:
        return jsonify({'success': True, 'notification': notification.to_dict()})
    return redirect(url_for('main.list_notifications'))


@main_bp.route('/notifications/read-all', methods=['POST'])
@participant_required
def mark_all_notifications_read():
    participant_id = session['user_id']
    authorize('notifications', 'update', owner_id=participant_id)
    updated = notifications.mark_all_read(participant_id)
    if request.is_json:
        return jsonify({'success': True, 'updated': updated})
    flash('All notifications marked as read.', 'success')
    return redirect(url_for('main.list_notifications'))


# Polling fallback for clients without a Socket.IO connection
@main_bp.route('/api/notifications')
@participant_required
def notifications_feed():
    participant_id = session['user_id']
    authorize('notifications', 'select', owner_id=participant_id)
    items = Notification.query.filter_by(participant_id=participant_id) \
        .order_by(Notification.created_at.desc(), Notification.id.desc()).limit(50).all()
    return jsonify({
        'unread': notifications.unread_count(participant_id),
        'notifications': [n.to_dict() for n in items],
    })


@main_bp.route('/api/notifications/unread-count')
@participant_required
def notifications_unread_count():
    participant_id = session['user_id']
    authorize('notifications', 'select', owner_id=participant_id)
    return jsonify({'unread': notifications.unread_count(participant_id)})
