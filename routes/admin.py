# routes/admin.py

import logging

from flask import Blueprint, render_template, request, redirect, url_for, session, flash, jsonify
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

import logic
import voting
from access import guarded
from extensions import db
from models import Announcement, Audition, Category, FinalPerformance, Participant
from models.audition import AUDITION_RESULTS
from models.participant import PARTICIPANT_STATUSES

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__, url_prefix='/admin')


def _db_failure(action):
    db.session.rollback()
    logger.exception("Database error while trying to %s", action)
    flash(f'Could not {action} because of a database error. Please try again.', 'error')


# --- Participants ---
@admin_bp.route('/participants')
@guarded('participants', 'select')
def manage_participants():
    status = request.args.get('status') or None
    category_id = request.args.get('category_id', type=int)
    search = (request.args.get('q') or '').strip()

    query = Participant.query.options(joinedload(Participant.category))
    if status in PARTICIPANT_STATUSES:
        query = query.filter_by(status=status)
    if category_id:
        query = query.filter_by(category_id=category_id)
    if search:
        pattern = f'%{search}%'
        query = query.filter(or_(
            Participant.full_name.ilike(pattern),
            Participant.email.ilike(pattern),
            Participant.student_id.ilike(pattern),
        ))
    participants = query.order_by(Participant.registration_date.desc(), Participant.id.desc()).all()

    return render_template(
        'admin/participants.html',
        participants=participants,
        categories=Category.query.order_by(Category.name).all(),
        statuses=PARTICIPANT_STATUSES,
        current_status=status,
        current_category_id=category_id,
        search=search,
    )


@admin_bp.route('/participant/<int:participant_id>/status', methods=['POST'])
@guarded('participants', 'update')
def update_participant_status(participant_id):
    Participant.query.get_or_404(participant_id)
    try:
        participant = logic.change_participant_status(participant_id, request.form.get('status'))
        flash(f'Status of {participant.full_name} set to {participant.status_label}.', 'success')
    except logic.ValidationError as e:
        flash(str(e), 'error')
    except SQLAlchemyError:
        _db_failure('update the status')
    return redirect(url_for('admin.manage_participants'))


# --- Auditions ---
@admin_bp.route('/auditions', methods=['GET', 'POST'])
@guarded('auditions', 'select')
def manage_auditions():
    if request.method == 'POST':
        return _schedule_audition()

    auditions = Audition.query.options(
        joinedload(Audition.participant), joinedload(Audition.category)
    ).order_by(Audition.scheduled_date.asc()).all()
    # Only participants without an audition can be scheduled
    unscheduled = Participant.query.filter(~Participant.audition.has()) \
        .order_by(Participant.full_name).all()
    return render_template(
        'admin/auditions.html',
        auditions=auditions,
        unscheduled=unscheduled,
        results=AUDITION_RESULTS,
    )


@guarded('auditions', 'insert')
def _schedule_audition():
    try:
        scheduled_date = logic.parse_schedule(request.form.get('date'), request.form.get('time'))
        audition = logic.schedule_audition(
            request.form.get('participant_id', type=int),
            scheduled_date,
            request.form.get('venue'),
        )
        flash(f'Audition scheduled for {audition.participant.full_name}.', 'success')
    except logic.ValidationError as e:
        flash(str(e), 'error')
    except SQLAlchemyError:
        _db_failure('schedule the audition')
    return redirect(url_for('admin.manage_auditions'))


@admin_bp.route('/audition/<int:audition_id>/edit', methods=['GET', 'POST'])
@guarded('auditions', 'update')
def edit_audition(audition_id):
    audition = Audition.query.get_or_404(audition_id)

    if request.method == 'POST':
        try:
            scheduled_date = None
            if request.form.get('date') or request.form.get('time'):
                scheduled_date = logic.parse_schedule(request.form.get('date'), request.form.get('time'))
            logic.update_audition(
                audition.id,
                scheduled_date=scheduled_date,
                venue=request.form.get('venue'),
                admin_notes=request.form.get('admin_notes'),
            )
            flash('Audition updated.', 'success')
            return redirect(url_for('admin.manage_auditions'))
        except logic.ValidationError as e:
            db.session.rollback()
            flash(str(e), 'error')
        except SQLAlchemyError:
            _db_failure('update the audition')
        return redirect(url_for('admin.edit_audition', audition_id=audition.id))

    return render_template('admin/edit_audition.html', audition=audition)


@admin_bp.route('/audition/<int:audition_id>/result', methods=['POST'])
@guarded('auditions', 'update')
def record_audition_result(audition_id):
    Audition.query.get_or_404(audition_id)
    try:
        logic.record_audition_result(audition_id, request.form.get('result'))
        flash('Audition result saved.', 'success')
    except logic.ValidationError as e:
        flash(str(e), 'error')
    except SQLAlchemyError:
        _db_failure('save the result')
    return redirect(url_for('admin.manage_auditions'))


# --- Announcements ---
@admin_bp.route('/announcements', methods=['GET', 'POST'])
@guarded('announcements', 'select_inactive')
def manage_announcements():
    if request.method == 'POST':
        return _create_announcement()

    announcements = Announcement.query.options(joinedload(Announcement.category)) \
        .order_by(Announcement.created_at.desc(), Announcement.id.desc()).all()
    categories = Category.query.order_by(Category.name).all()
    return render_template('admin/announcements.html', announcements=announcements, categories=categories)


@guarded('announcements', 'insert')
def _create_announcement():
    try:
        announcement = logic.create_announcement(
            request.form.get('title'),
            request.form.get('content'),
            author_id=session['user_id'],
            category_id=request.form.get('category_id'),
            is_active=request.form.get('is_active', 'on') == 'on',
        )
        flash(f'Announcement "{announcement.title}" published.', 'success')
    except logic.ValidationError as e:
        flash(str(e), 'error')
    except SQLAlchemyError:
        _db_failure('publish the announcement')
    return redirect(url_for('admin.manage_announcements'))


@admin_bp.route('/announcement/<int:announcement_id>/edit', methods=['GET', 'POST'])
@guarded('announcements', 'update')
def edit_announcement(announcement_id):
    announcement = Announcement.query.get_or_404(announcement_id)

    if request.method == 'POST':
        try:
            logic.update_announcement(
                announcement.id,
                request.form.get('title'),
                request.form.get('content'),
                category_id=request.form.get('category_id'),
            )
            flash('Announcement updated.', 'success')
            return redirect(url_for('admin.manage_announcements'))
        except logic.ValidationError as e:
            flash(str(e), 'error')
        except SQLAlchemyError:
            _db_failure('update the announcement')
        return redirect(url_for('admin.edit_announcement', announcement_id=announcement.id))

    categories = Category.query.order_by(Category.name).all()
    return render_template('admin/edit_announcement.html', announcement=announcement, categories=categories)


@admin_bp.route('/announcement/<int:announcement_id>/toggle', methods=['POST'])
@guarded('announcements', 'update')
def toggle_announcement(announcement_id):
    Announcement.query.get_or_404(announcement_id)
    try:
        announcement = logic.toggle_announcement(announcement_id)
        state = 'visible' if announcement.is_active else 'hidden'
        flash(f'Announcement "{announcement.title}" is now {state}.', 'success')
    except SQLAlchemyError:
        _db_failure('change the announcement')
    return redirect(url_for('admin.manage_announcements'))


@admin_bp.route('/announcement/<int:announcement_id>/delete', methods=['POST'])
@guarded('announcements', 'delete')
def delete_announcement(announcement_id):
    Announcement.query.get_or_404(announcement_id)
    try:
        logic.delete_announcement(announcement_id)
        flash('Announcement deleted.', 'success')
    except SQLAlchemyError:
        _db_failure('delete the announcement')
    return redirect(url_for('admin.manage_announcements'))


# --- Finals & voting ---
@admin_bp.route('/performances', methods=['GET', 'POST'])
@guarded('final_performances', 'select_inactive')
def manage_performances():
    if request.method == 'POST':
        return _create_performance()

    return render_template(
        'admin/performances.html',
        tallies=voting.list_all_tallies(),
        candidates=logic.selected_candidates(),
        next_order=logic.next_display_order(),
        voting_url=url_for('voting.vote_page', _external=True),
    )


@guarded('final_performances', 'insert')
def _create_performance():
    try:
        performance = logic.create_final_performance(
            request.form.get('participant_id', type=int),
            request.form.get('title'),
            image_url=request.form.get('image_url'),
            display_order=request.form.get('display_order'),
        )
        flash(f'Performance "{performance.title}" added to the finals.', 'success')
    except logic.ValidationError as e:
        flash(str(e), 'error')
    except SQLAlchemyError:
        _db_failure('add the performance')
    return redirect(url_for('admin.manage_performances'))


@admin_bp.route('/performance/<int:performance_id>/toggle', methods=['POST'])
@guarded('final_performances', 'update')
def toggle_performance(performance_id):
    FinalPerformance.query.get_or_404(performance_id)
    try:
        performance = logic.toggle_final_performance(performance_id)
        state = 'open for voting' if performance.is_active else 'hidden from voting'
        flash(f'"{performance.title}" is now {state}.', 'success')
    except SQLAlchemyError:
        _db_failure('change the performance')
    return redirect(url_for('admin.manage_performances'))


@admin_bp.route('/performance/<int:performance_id>/delete', methods=['POST'])
@guarded('final_performances', 'delete')
def delete_performance(performance_id):
    performance = FinalPerformance.query.get_or_404(performance_id)
    title = performance.title
    try:
        removed = logic.delete_final_performance(performance_id, confirmed=request.form.get('confirm') == 'yes')
        flash(f'Performance "{title}" deleted together with {removed} votes.', 'success')
    except logic.ValidationError as e:
        flash(str(e), 'error')
    except SQLAlchemyError:
        _db_failure('delete the performance')
    return redirect(url_for('admin.manage_performances'))


@admin_bp.route('/popular')
@guarded('final_performances', 'select_inactive')
def popular_performances():
    top = voting.top_performance_per_category(voting.list_all_tallies())
    return render_template('admin/popular.html', top=top)


@admin_bp.route('/votes')
@guarded('votes', 'select')
def raw_votes():
    performance_id = request.args.get('performance_id', type=int)
    votes = voting.raw_votes(performance_id)
    return render_template('admin/votes.html', votes=votes, performance_id=performance_id)


@admin_bp.route('/api/votes')
@guarded('votes', 'select')
def raw_votes_api():
    performance_id = request.args.get('performance_id', type=int)
    counts = voting.vote_counts()
    return jsonify({
        'counts': {str(pid): count for pid, count in counts.items()},
        'votes': [
            {
                'id': v.id,
                'performance_id': v.performance_id,
                'voter_token': v.voter_token,
                'fingerprint': v.fingerprint,
                'created_at': v.created_at.isoformat() if v.created_at else None,
            }
            for v in voting.raw_votes(performance_id)
        ],
    })
