"""
User management blueprint.
Only administrators can list accounts, create them and change roles.
"""

from flask import Blueprint, jsonify, g, current_app
from sqlalchemy import func
from lumberdesk.database import get_session, commit_or_raise, flush_or_raise
from lumberdesk.exceptions import ValidationError, NotFoundError
from lumberdesk.forms.auth_forms import UserForm, UserRoleForm
from lumberdesk.forms.validation import validate_or_raise
from lumberdesk.middleware import require_role
from lumberdesk.models import AppUser, Seller, UserRole, AuditAction
from lumberdesk.services.audit_service import log_action, snapshot, USERS

users_bp = Blueprint('users', __name__, url_prefix='/users')


def _check_seller(db_session, seller_id):
    if seller_id and not db_session.get(Seller, seller_id):
        raise ValidationError('Vendedor não encontrado.')


@users_bp.route('/')
@require_role(UserRole.ADMIN.value)
def list_users():
    db_session = get_session()
    users = db_session.query(AppUser).order_by(AppUser.role, AppUser.email).all()
    return jsonify({'users': [u.to_dict() for u in users]})


@users_bp.route('/', methods=['POST'])
@require_role(UserRole.ADMIN.value)
def create_user():
    """Create a staff account (sales accounts may be linked to a seller)."""
    data = validate_or_raise(UserForm())
    db_session = get_session()

    email = data['email'].strip().lower()
    if db_session.query(AppUser).filter(func.lower(AppUser.email) == email).first():
        raise ValidationError('Este e-mail já está cadastrado.')
    seller_id = data.get('seller_id') or None
    _check_seller(db_session, seller_id)

    user = AppUser(email=email, name=data['name'].strip(), role=data['role'], seller_id=seller_id, active=True)
    user.set_password(data['password'])
    db_session.add(user)
    flush_or_raise(db_session, 'Erro ao criar usuário')

    log_action(db_session, g.caller, AuditAction.INSERT, USERS, user.id, after=snapshot(user))
    commit_or_raise(db_session, 'Erro ao criar usuário')

    current_app.logger.info(f"User {email} created by {g.user.email} with role {user.role}")
    return jsonify({'status': 'ok', 'user': user.to_dict()}), 201


@users_bp.route('/<user_id>/role', methods=['POST'])
@require_role(UserRole.ADMIN.value)
def change_role(user_id):
    data = validate_or_raise(UserRoleForm())
    db_session = get_session()

    user = db_session.get(AppUser, user_id)
    if not user:
        raise NotFoundError('Usuário não encontrado.')
    if user.id == g.user.id and data['role'] != UserRole.ADMIN.value:
        raise ValidationError('Você não pode remover seu próprio acesso de administrador.')

    seller_id = data.get('seller_id') or None
    _check_seller(db_session, seller_id)

    before = snapshot(user)
    user.role = data['role']
    user.seller_id = seller_id
    log_action(db_session, g.caller, AuditAction.UPDATE, USERS, user.id, before=before, after=snapshot(user))
    commit_or_raise(db_session, 'Erro ao alterar perfil')

    current_app.logger.info(f"User {user.email} role changed to {user.role} by {g.user.email}")
    return jsonify({'status': 'ok', 'user': user.to_dict()})
