"""Login and user administration forms."""
from flask_wtf import FlaskForm
from wtforms import StringField, PasswordField, SelectField
from wtforms.validators import DataRequired, Length, Optional, Regexp

from lumberdesk.models import UserRole

EMAIL_PATTERN = r'^[^@\s]+@[^@\s]+\.[^@\s]+$'
ROLE_CHOICES = [(UserRole.ADMIN.value, 'Administrador'), (UserRole.SALES.value, 'Vendedor')]


class LoginForm(FlaskForm):
    email = StringField('E-mail', validators=[DataRequired(message='Informe o e-mail'), Regexp(EMAIL_PATTERN, message='E-mail inválido')])
    password = PasswordField('Senha', validators=[DataRequired(message='Informe a senha')])


class UserForm(FlaskForm):
    """Admin creates a staff account."""

    email = StringField('E-mail', validators=[DataRequired(), Regexp(EMAIL_PATTERN, message='E-mail inválido'), Length(max=255)])
    name = StringField('Nome', validators=[DataRequired(), Length(max=200)])
    password = PasswordField(
        'Senha',
        validators=[DataRequired(), Length(min=6, message='A senha deve ter pelo menos 6 caracteres')]
    )
    role = SelectField('Perfil', choices=ROLE_CHOICES, default=UserRole.SALES.value)
    seller_id = StringField('Vendedor', validators=[Optional(), Length(max=36)])


class UserRoleForm(FlaskForm):
    """Change role / linked seller of an existing account."""

    role = SelectField('Perfil', choices=ROLE_CHOICES)
    seller_id = StringField('Vendedor', validators=[Optional(), Length(max=36)])
