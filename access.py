# access.py
"""
Table-level access policy.

Every table maps each action to one Rule. Views call authorize() (or use
the guarded() decorator) before reading or writing; the caller is built
from the Flask session.
"""

from dataclasses import dataclass
from enum import Enum
from functools import wraps
from typing import Optional

from flask import session
from werkzeug.exceptions import Forbidden


class Rule(Enum):
    PUBLIC = 'public'
    OWNER = 'owner'
    ADMIN = 'admin'
    OWNER_OR_ADMIN = 'owner_or_admin'
    NOBODY = 'nobody'


P, O, A, OA, N = Rule.PUBLIC, Rule.OWNER, Rule.ADMIN, Rule.OWNER_OR_ADMIN, Rule.NOBODY

POLICIES = {
    #                     select  insert  update  delete
    'categories':         dict(select=P,  insert=A, update=A,  delete=N),
    'participants':       dict(select=OA, insert=P, update=OA, delete=N),
    'auditions':          dict(select=OA, insert=A, update=A,  delete=A),
    'announcements':      dict(select=P,  insert=A, update=A,  delete=A, select_inactive=A),
    'notifications':      dict(select=O,  insert=N, update=O,  delete=N),
    'final_performances': dict(select=P,  insert=A, update=A,  delete=A, select_inactive=A),
    'votes':              dict(select=A,  insert=P, update=N,  delete=N),
    'vote_counts':        dict(select=P,  insert=N, update=N,  delete=N),
}


class AccessDenied(Forbidden):
    description = 'You do not have permission to perform this action.'

    def __init__(self, table, action, description=None):
        super().__init__(description)
        self.table = table
        self.action = action


@dataclass(frozen=True)
class Principal:
    user_id: Optional[int] = None
    role: Optional[str] = None

    @property
    def is_admin(self):
        return self.role == 'admin' and self.user_id is not None

    @property
    def participant_id(self):
        return self.user_id if self.role == 'participant' else None


ANONYMOUS = Principal()


def current_principal():
    if 'user_id' not in session:
        return ANONYMOUS
    return Principal(user_id=session['user_id'], role=session.get('user_role'))


def is_allowed(principal, table, action, owner_id=None):
    try:
        rule = POLICIES[table][action]
    except KeyError:
        # Unknown tables and actions are closed
        return False

    if rule is Rule.PUBLIC:
        return True
    if rule is Rule.ADMIN:
        return principal.is_admin
    if rule is Rule.OWNER:
        return owner_id is not None and principal.participant_id == owner_id
    if rule is Rule.OWNER_OR_ADMIN:
        return principal.is_admin or (owner_id is not None and principal.participant_id == owner_id)
    return False


def authorize(table, action, owner_id=None, principal=None):
    principal = principal or current_principal()
    if not is_allowed(principal, table, action, owner_id):
        raise AccessDenied(table, action)
    return principal


def guarded(table, action):
    """Route decorator for rules that do not depend on a row owner."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            authorize(table, action)
            return f(*args, **kwargs)
        return decorated_function
    return decorator
