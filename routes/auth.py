# routes/auth.py
# Login and logout for participants and admins

import logging

from flask import Blueprint, render_template, request, redirect, url_for, session, flash
from models import Admin, Participant

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


def _start_session(user_id, role):
    session.clear()
    session['user_id'] = user_id
    session['user_role'] = role


def _home_for(role):
    return url_for('admin.manage_participants') if role == 'admin' else url_for('main.dashboard')


@auth_bp.route('/login', methods=['GET', 'POST'])
def login():
    if 'user_id' in session:
        return redirect(_home_for(session.get('user_role')))

    if request.method == 'POST':
        email = (request.form.get('email') or '').strip().lower()
        password = request.form.get('password') or ''
        if not email or not password:
            flash('Please enter your email and password.', 'error')
            return redirect(url_for('auth.login'))

        participant = Participant.query.filter_by(email=email).first()
        if participant and participant.check_password(password):
            _start_session(participant.id, 'participant')
            flash('Logged in successfully.', 'success')
            return redirect(url_for('main.dashboard'))

        logger.info("Failed participant login for %s", email)
        flash('Invalid email or password.', 'error')
        return redirect(url_for('auth.login'))

    return render_template('login.html', admin=False)


@auth_bp.route('/admin/login', methods=['GET', 'POST'])
def admin_login():
    if session.get('user_role') == 'admin':
        return redirect(_home_for('admin'))

    if request.method == 'POST':
        email = (request.form.get('email') or '').strip().lower()
        password = request.form.get('password') or ''

        admin = Admin.query.filter_by(email=email).first() if email else None
        if admin and admin.check_password(password):
            _start_session(admin.id, 'admin')
            flash('Welcome back.', 'success')
            return redirect(_home_for('admin'))

        logger.warning("Failed admin login for %s", email or '<empty>')
        flash('Invalid email or password.', 'error')
        return redirect(url_for('auth.admin_login'))

    return render_template('login.html', admin=True)


@auth_bp.route('/logout')
def logout():
    session.clear()
    flash('You have been logged out.', 'success')
    return redirect(url_for('auth.login'))
