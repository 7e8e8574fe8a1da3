"""
Session Data Container

A change-tracked key/value store holding one session's data for the
current request.

The container keeps two snapshots: the current (mutable) mapping and a deep
copy of the data it was constructed with. Change detection compares the two
structurally, so restoring a mutated key to its original value makes the
container unchanged again.

Values stored through set() are restricted to the JSON data model. Scalars and
None are kept as-is; anything else goes through a JSON round trip, which turns
tuples into lists, models and dataclasses into plain dicts, and collapses
values JSON cannot represent into None.
"""

import copy
import dataclasses
import json
from collections.abc import Mapping
from typing import Any, Optional, Union

from pydantic import BaseModel

# JSON data model accepted as session values
SessionValue = Union[
    None, bool, int, float, str, list["SessionValue"], dict[str, "SessionValue"]
]

_SCALAR_TYPES = (str, int, float, bool)


def _json_default(value: Any) -> Any:
    """Flatten non-JSON containers and objects into JSON-compatible values."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, (set, frozenset)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def normalize_value(value: Any) -> SessionValue:
    """
    Convert a value into the JSON data model.

    Args:
        value: Any Python value.

    Returns:
        The value unchanged if it is a scalar or None, its JSON round-tripped
        form otherwise, or None when it cannot be represented.
    """
    if value is None or isinstance(value, _SCALAR_TYPES):
        return value
    try:
        return json.loads(json.dumps(value, default=_json_default, allow_nan=False))
    except (TypeError, ValueError, RecursionError):
        return None


def values_equal(left: Any, right: Any) -> bool:
    """
    Compare two JSON-model values structurally.

    Mapping key order is irrelevant. Booleans never equal numbers, so
    replacing True with 1 counts as a change.
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, dict) and isinstance(right, dict):
        return left.keys() == right.keys() and all(
            values_equal(left[key], right[key]) for key in left
        )
    if isinstance(left, list) and isinstance(right, list):
        return len(left) == len(right) and all(map(values_equal, left, right))
    return left == right


class DataContainer:
    """
    Change-tracked session data.

    Example:
        >>> container = DataContainer({"user": "joe"})
        >>> container.set("cart", (1, 2, 3))
        >>> container.get("cart")
        [1, 2, 3]
        >>> container.has_changed()
        True
    """

    def __init__(self, data: Optional[Mapping[str, Any]] = None) -> None:
        """
        Initialize the container.

        Args:
            data: Session data read at open time; None means empty.
        """
        self._data: dict[str, Any] = dict(data) if data else {}
        self._original: dict[str, Any] = copy.deepcopy(self._data)

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under key, or default when absent."""
        return self._data.get(key, default)

    def has(self, key: str) -> bool:
        """Check if key is present (a stored None counts as present)."""
        return key in self._data

    def set(self, key: str, value: Any) -> None:
        """Store a value, normalized to the JSON data model."""
        self._data[key] = normalize_value(value)

    def unset(self, key: str) -> None:
        """Remove key if present."""
        self._data.pop(key, None)

    def clear(self) -> None:
        """Remove all keys."""
        self._data = {}

    def to_array(self) -> dict[str, Any]:
        """Return the current session data."""
        return self._data

    def has_changed(self) -> bool:
        """Check if the current data differs structurally from the original."""
        return not values_equal(self._data, self._original)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"DataContainer(keys={sorted(self._data)!r}, changed={self.has_changed()})"
