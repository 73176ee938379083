"""JSON encoding for API responses: ISO dates, Decimals as strings."""
from datetime import date, datetime
from decimal import Decimal

from flask.json.provider import DefaultJSONProvider


class LumberdeskJSONProvider(DefaultJSONProvider):
    """Money stays exact (string), dates use ISO 8601 instead of HTTP dates."""

    sort_keys = False

    @staticmethod
    def default(o):
        if isinstance(o, Decimal):
            return str(o)
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        return DefaultJSONProvider.default(o)
