"""Custom exceptions for the lumberdesk application."""

class LumberdeskError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="Ocorreu um erro interno", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv

class ValidationError(LumberdeskError):
    """Raised when user input is rejected before it reaches the data store."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)

class MissingDimensionError(ValidationError):
    """Raised when a dimensional unit is priced without the dimension it needs."""
    def __init__(self, description, dimension='comprimento'):
        label = description or 'item'
        message = f"Informe o {dimension} para {label}: unidade ML exige comprimento."
        super().__init__(message, payload={'field': dimension})

class NotFoundError(LumberdeskError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Registro não encontrado", payload=None):
        super().__init__(message, 404, payload)

class PermissionDeniedError(LumberdeskError):
    """Raised when the caller may not act on a resource (e.g. a foreign order)."""
    def __init__(self, message="Permissão negada"):
        super().__init__(message, 403)

class PersistenceError(LumberdeskError):
    """Raised when the database rejects a write; the caller decides whether to retry."""
    def __init__(self, message="Falha ao gravar no banco de dados", payload=None):
        super().__init__(message, 503, payload)

class UnauthorizedError(LumberdeskError):
    """Raised when no valid login is present or credentials are wrong."""
    def __init__(self, message="Faça login para continuar."):
        super().__init__(message, 401)
