"""JSON serialization of response models.

Dataclass field names are emitted in camelCase to match the dashboard's
JSON contract. Decimal values are emitted as strings so no precision is
lost on the way to the browser. Raw upstream payloads pass through with
their own keys.
"""

from dataclasses import fields, is_dataclass
from decimal import Decimal
from enum import Enum
from typing import Any


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def to_jsonable(obj: Any) -> Any:
    """Recursively convert models, Decimals and enums into JSON-safe values."""
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, Enum):
        return obj.value
    if is_dataclass(obj) and not isinstance(obj, type):
        return {_camel(f.name): to_jsonable(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, dict):
        return {k: to_jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_jsonable(item) for item in obj]
    return obj
