"""Middleware for authentication and role checks."""
from functools import wraps
from flask import session, g, current_app
from lumberdesk.database import get_session
from lumberdesk.exceptions import UnauthorizedError, PermissionDeniedError
from lumberdesk.models import AppUser
from lumberdesk.services.access import Caller


def load_user():
    """
    Load the current user into g (Flask's per-request global).

    Sets g.user and g.caller when the session cookie names an active user.
    """
    g.user = None
    g.caller = None

    user_id = session.get('user_id')
    if not user_id:
        return

    db_session = get_session()
    user = db_session.query(AppUser).filter_by(id=user_id, active=True).first()
    if user:
        g.user = user
        g.caller = Caller.from_user(user)
    else:
        # Account deleted or deactivated since login
        session.pop('user_id', None)


def require_login(f):
    """Decorator: require a logged-in user (401 otherwise)."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('user') is None:
            raise UnauthorizedError()
        return f(*args, **kwargs)
    return decorated_function


def require_role(*allowed_roles):
    """
    Decorator: restrict a view to the given roles.

    Usage:
        @require_role('admin')
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if g.get('user') is None:
                raise UnauthorizedError()
            if g.user.role not in allowed_roles:
                current_app.logger.warning(f"User {g.user.email} ({g.user.role}) denied access to {f.__name__}")
                raise PermissionDeniedError('Você não tem permissão para acessar esta função.')
            return f(*args, **kwargs)
        return decorated_function
    return decorator
