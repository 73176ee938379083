"""
Flask CLI commands.

Commands:
- flask init-db: Create all tables
- flask create-user: Create a staff account (admin or sales)
"""

import click
import re
from sqlalchemy.exc import SQLAlchemyError
from lumberdesk.database import create_all, get_session
from lumberdesk.models import AppUser, Seller, UserRole


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create every table that does not exist yet."""
        create_all(app)
        click.echo(click.style('✅ Tabelas criadas.', fg='green'))

    @app.cli.command('create-user')
    @click.option('--email', prompt=True, help='User email address')
    @click.option('--name', prompt=True, help='Display name')
    @click.option('--role', type=click.Choice([r.value for r in UserRole]), default=UserRole.SALES.value,
                  show_default=True, help='admin or sales')
    @click.option('--seller-id', default=None, help='Seller this sales account acts as')
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
    def create_user(email, name, role, seller_id, password):
        """Create a staff account."""
        email = email.strip().lower()

        email_pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        if not re.match(email_pattern, email):
            click.echo(click.style('❌ E-mail inválido. Use o formato: usuario@exemplo.com', fg='red'))
            return

        if len(password) < 6:
            click.echo(click.style('❌ A senha deve ter pelo menos 6 caracteres.', fg='red'))
            return

        db_session = get_session()
        if db_session.query(AppUser).filter_by(email=email).first():
            click.echo(click.style(f'❌ Já existe um usuário com o e-mail: {email}', fg='red'))
            return

        if seller_id and not db_session.get(Seller, seller_id):
            click.echo(click.style(f'❌ Vendedor não encontrado: {seller_id}', fg='red'))
            return

        try:
            user = AppUser(email=email, name=name, role=role, seller_id=seller_id, active=True)
            user.set_password(password)
            db_session.add(user)
            db_session.commit()
        except SQLAlchemyError as e:
            db_session.rollback()
            click.echo(click.style(f'❌ Erro ao criar usuário: {e}', fg='red'))
            raise SystemExit(1)

        click.echo(click.style('\n✅ Usuário criado com sucesso!', fg='green', bold=True))
        click.echo(f'   E-mail: {email}')
        click.echo(f'   Perfil: {role}')
        click.echo(f'   ID: {user.id}')
