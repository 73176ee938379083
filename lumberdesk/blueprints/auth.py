"""
Authentication blueprint.
Local email + password login stored in the Flask session cookie.
"""

from flask import Blueprint, jsonify, session, g, current_app
from sqlalchemy import func
from lumberdesk.database import get_session
from lumberdesk.exceptions import UnauthorizedError
from lumberdesk.forms.auth_forms import LoginForm
from lumberdesk.forms.validation import validate_or_raise
from lumberdesk.middleware import require_login
from lumberdesk.models import AppUser

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')


@auth_bp.route('/login', methods=['POST'])
def login():
    """Validate email + password and open a session."""
    data = validate_or_raise(LoginForm())
    email = data['email'].strip().lower()

    db_session = get_session()
    user = db_session.query(AppUser).filter(func.lower(AppUser.email) == email).first()

    if not user or not user.active or not user.check_password(data['password']):
        current_app.logger.warning(f"Failed login for {email}")
        raise UnauthorizedError('E-mail ou senha incorretos.')

    session.clear()
    session['user_id'] = user.id
    session.permanent = True

    current_app.logger.info(f"User {user.email} logged in")
    return jsonify({'status': 'ok', 'user': user.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    session.clear()
    return jsonify({'status': 'ok'})


@auth_bp.route('/me')
@require_login
def me():
    """Current user, as the order editor needs it (role and seller link)."""
    return jsonify({'user': g.user.to_dict()})
