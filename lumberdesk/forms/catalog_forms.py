"""
Forms for clients, products and sellers.

FlaskForm reads request.form, or the JSON body when the request is JSON.
"""
from flask_wtf import FlaskForm
from wtforms import StringField, TextAreaField, SelectField, BooleanField, DecimalField
from wtforms.validators import DataRequired, Length, Optional, Regexp

from lumberdesk.models import ClientType, ProductUnit
from lumberdesk.utils.number_format import parse_br_number

EMAIL_PATTERN = r'^[^@\s]+@[^@\s]+\.[^@\s]+$'


class BrDecimalField(DecimalField):
    """DecimalField that also accepts Brazilian notation (1.234,56)."""

    def process_formdata(self, valuelist):
        if not valuelist or valuelist[0] in (None, ''):
            self.data = None
            return
        try:
            self.data = parse_br_number(valuelist[0])
        except ValueError as e:
            self.data = None
            raise ValueError(str(e))


class ClientForm(FlaskForm):
    """Create/edit a client."""

    id = StringField(validators=[Optional(), Length(max=36)])
    name = StringField(
        'Nome',
        validators=[DataRequired(message='O nome é obrigatório'), Length(max=200)]
    )
    document = StringField('CPF/CNPJ', validators=[Optional(), Length(max=32)])
    phone = StringField('WhatsApp', validators=[Optional(), Length(max=50)])
    email = StringField('E-mail', validators=[Optional(), Regexp(EMAIL_PATTERN, message='E-mail inválido'), Length(max=255)])
    address = TextAreaField('Endereço', validators=[Optional()])
    type = SelectField(
        'Tipo',
        choices=[(ClientType.PF.value, 'Pessoa Física'), (ClientType.PJ.value, 'Pessoa Jurídica')],
        default=ClientType.PF.value
    )
    internal_notes = TextAreaField('Observações internas', validators=[Optional()])


class ProductForm(FlaskForm):
    """Create/edit a catalog product. ``price`` is the legacy name of price_bruto."""

    id = StringField(validators=[Optional(), Length(max=36)])
    code = StringField(
        'Código',
        validators=[DataRequired(message='O código é obrigatório'), Length(max=64)]
    )
    name = StringField(
        'Nome',
        validators=[DataRequired(message='O nome é obrigatório'), Length(max=200)]
    )
    category = StringField('Categoria', validators=[Optional(), Length(max=120)])
    unit = SelectField(
        'Unidade',
        choices=[(unit.value, unit.value) for unit in ProductUnit],
        default=ProductUnit.COUNT.value
    )
    price_bruto = BrDecimalField('Preço bruto', validators=[Optional()])
    price = BrDecimalField('Preço', validators=[Optional()])
    price_benef = BrDecimalField('Preço beneficiado', validators=[Optional()])
    cost = BrDecimalField('Custo', validators=[Optional()])


class SellerForm(FlaskForm):
    """Create/edit a seller."""

    id = StringField(validators=[Optional(), Length(max=36)])
    name = StringField(
        'Nome',
        validators=[DataRequired(message='O nome é obrigatório'), Length(max=200)]
    )
    whatsapp = StringField('Telefone / WhatsApp', validators=[Optional(), Length(max=50)])
    is_active = BooleanField('Ativo', default=True, false_values=(False, 'false', 'False', '0', 'off', ''))
