# routes/voting.py
# Public finals voting: no login, voter identified by a browser-held token

from flask import Blueprint, render_template, request, jsonify

import voting
from access import guarded
from models import Category
from voting import VoteOutcome

voting_bp = Blueprint('voting', __name__)

STATUS_CODES = {
    VoteOutcome.RECORDED: 201,
    VoteOutcome.ALREADY_VOTED: 409,
    VoteOutcome.INVALID: 400,
    VoteOutcome.NOT_FOUND: 404,
    VoteOutcome.FAILED: 503,
}


@voting_bp.route('/vote')
@guarded('vote_counts', 'select')
def vote_page():
    performances = voting.list_votable_performances()
    categories = sorted({p.category_name for p in performances})
    # Offered to browsers with no token in local storage yet; they keep their own once stored
    return render_template(
        'vote.html',
        performances=performances,
        categories=categories,
        suggested_token=voting.generate_voter_token(),
    )


@voting_bp.route('/api/performances')
@guarded('vote_counts', 'select')
def list_performances():
    voted_ids = voting.parse_voted_ids(request.args.get('voted'))
    tallies = voting.list_votable_performances(voted_ids)
    return jsonify({'performances': [t.to_dict() for t in tallies]})


@voting_bp.route('/api/performances/<int:performance_id>/vote', methods=['POST'])
@guarded('votes', 'insert')
def cast_vote(performance_id):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = request.form
    fingerprint = data.get('fingerprint') or request.headers.get('User-Agent')

    result = voting.record_vote(performance_id, data.get('voter_token'), fingerprint)
    body = {
        'success': result.ok,
        'outcome': result.outcome.value,
        'message': result.message,
        'performance_id': performance_id,
    }
    if result.field:
        body['field'] = result.field
    if result.outcome in (VoteOutcome.RECORDED, VoteOutcome.ALREADY_VOTED):
        body['vote_count'] = voting.vote_count_for(performance_id)
    return jsonify(body), STATUS_CODES[result.outcome]


@voting_bp.route('/api/categories')
@guarded('categories', 'select')
def list_categories():
    categories = Category.query.order_by(Category.name).all()
    return jsonify({'categories': [c.to_dict() for c in categories]})
