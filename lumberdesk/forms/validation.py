"""Turn WTForms validation failures into ValidationError."""
from lumberdesk.exceptions import ValidationError


def validate_or_raise(form):
    """
    Validate a submitted form and return its data.

    Raises:
        ValidationError: first field message, all of them in the payload
    """
    if form.validate_on_submit():
        return form.data
    errors = dict(form.errors)
    messages = next(iter(errors.values()), None)
    message = messages[0] if messages else 'Formulário inválido.'
    raise ValidationError(message, payload={'errors': errors})
