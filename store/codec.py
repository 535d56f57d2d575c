"""
JSON codec for stored field values.

Values land in a JSONB column.  Types JSON cannot express natively are
wrapped as {"__type__": ..., "value": ...} and restored on read.
"""

import json
import uuid
from datetime import date, datetime
from decimal import Decimal


class _JSONEncoder(json.JSONEncoder):
    """Handles datetime, date, Decimal and UUID values."""

    def default(self, obj):
        if isinstance(obj, datetime):
            return {"__type__": "datetime", "value": obj.isoformat()}
        if isinstance(obj, date):
            return {"__type__": "date", "value": obj.isoformat()}
        if isinstance(obj, Decimal):
            return {"__type__": "Decimal", "value": str(obj)}
        if isinstance(obj, uuid.UUID):
            return {"__type__": "UUID", "value": str(obj)}
        if isinstance(obj, (set, frozenset, tuple)):
            return list(obj)
        return super().default(obj)


def _json_decoder_hook(d):
    if "__type__" in d:
        t = d["__type__"]
        v = d["value"]
        if t == "datetime":
            return datetime.fromisoformat(v)
        if t == "date":
            return date.fromisoformat(v)
        if t == "Decimal":
            return Decimal(v)
        if t == "UUID":
            return uuid.UUID(v)
    return d


def encode_value(value) -> str:
    return json.dumps(value, cls=_JSONEncoder)


def decode_value(text: str):
    """Parse stored JSON, restoring datetime, date, Decimal and UUID values.

    Sets and tuples were written as lists and come back as lists.
    """
    return json.loads(text, object_hook=_json_decoder_hook)
