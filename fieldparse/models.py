"""
Core data models for compiled templates and match results.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from dataclasses_json import dataclass_json


class ValueKind(Enum):
    """Kinds of converted field values."""
    INTEGER = "integer"
    FLOAT = "float"
    TEXT = "text"
    DATE = "date"
    TIME = "time"
    DATETIME = "datetime"
    CUSTOM = "custom"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def of_value(cls, value: Any) -> 'ValueKind':
        """Classify a converted value."""
        # bool is an int subclass and datetime a date subclass, so check
        # exact types before falling back to CUSTOM
        value_type = type(value)
        return _KIND_BY_TYPE.get(value_type, cls.CUSTOM)

    @classmethod
    def of_type(cls, value_type: type) -> 'ValueKind':
        """Map a requested Python type to the kind it denotes."""
        return _KIND_BY_TYPE.get(value_type, cls.CUSTOM)


_KIND_BY_TYPE = {
    int: ValueKind.INTEGER,
    float: ValueKind.FLOAT,
    str: ValueKind.TEXT,
    date: ValueKind.DATE,
    time: ValueKind.TIME,
    datetime: ValueKind.DATETIME,
}


@dataclass(frozen=True)
class TypedValue:
    """A converted field value tagged with its kind."""
    kind: ValueKind
    value: Any

    @classmethod
    def wrap(cls, value: Any) -> 'TypedValue':
        return cls(kind=ValueKind.of_value(value), value=value)

    def matches(self, expected_type: Optional[type]) -> bool:
        """Check whether this value can be handed out as ``expected_type``."""
        if expected_type is None:
            return True
        expected_kind = ValueKind.of_type(expected_type)
        if expected_kind is not ValueKind.CUSTOM:
            return self.kind is expected_kind
        return self.kind is ValueKind.CUSTOM and isinstance(self.value, expected_type)

    def to_json_value(self) -> Any:
        """Return a JSON-friendly rendering of the value."""
        if self.kind in (ValueKind.DATE, ValueKind.TIME, ValueKind.DATETIME):
            return self.value.isoformat()
        if self.kind is ValueKind.CUSTOM:
            return str(self.value)
        return self.value


def normalize_field_name(name: str) -> str:
    """
    Flatten a dotted or indexed field name into a single token.

    ``user.name`` becomes ``user__name`` and ``array[0]`` becomes ``array__0``.
    """
    return name.replace('.', '__').replace('[', '__').replace(']', '')


@dataclass_json
@dataclass(frozen=True)
class FieldSpec:
    """A single placeholder declared in a template."""
    identifier: str  # flattened name, or the ordinal for anonymous fields
    group_index: int  # 1-based capture group
    type_tag: Optional[str] = None
    original_name: Optional[str] = None  # name as written, None if anonymous

    @property
    def is_anonymous(self) -> bool:
        return self.original_name is None

    def __str__(self) -> str:
        if self.type_tag:
            return f"{self.identifier}:{self.type_tag}@{self.group_index}"
        return f"{self.identifier}@{self.group_index}"


@dataclass_json
@dataclass
class CompiledPattern:
    """Regular expressions and field table produced from one template."""
    exact_regex: str
    search_regex: str
    fields: List[FieldSpec] = field(default_factory=list)
    name_index: Dict[str, int] = field(default_factory=dict)


class MatchResult:
    """
    Snapshot of one successful match.

    Values are addressed either by position (0-based declaration order of
    the fields) or by name (explicit identifier, or the ordinal string for
    anonymous fields). Typed lookups return None when the stored value is
    of a different kind than requested.
    """

    def __init__(self,
                 fields: List[FieldSpec],
                 raw: Tuple[str, ...],
                 converted: Tuple[TypedValue, ...],
                 spans: Tuple[Tuple[int, int], ...]):
        self._fields = tuple(fields)
        self.raw = tuple(raw)
        self.converted = tuple(converted)
        self.spans = tuple(spans)
        self._positions = {spec.identifier: i for i, spec in enumerate(self._fields)}

    @property
    def fields(self) -> Tuple[FieldSpec, ...]:
        return self._fields

    @property
    def named_raw(self) -> Dict[str, str]:
        """Mapping of identifier to raw captured substring."""
        return {spec.identifier: self.raw[i] for i, spec in enumerate(self._fields)}

    @property
    def values(self) -> List[Any]:
        """Converted values in declaration order."""
        return [tv.value for tv in self.converted]

    def get(self, index: int, expected_type: Optional[type] = None) -> Any:
        """Return the value at ``index`` if it is of ``expected_type``."""
        if not 0 <= index < len(self.converted):
            return None
        typed = self.converted[index]
        return typed.value if typed.matches(expected_type) else None

    def named(self, name: str, expected_type: Optional[type] = None) -> Any:
        """Return the value of field ``name`` if it is of ``expected_type``."""
        position = self._position_of(name)
        if position is None:
            return None
        return self.get(position, expected_type)

    def kind(self, key) -> Optional[ValueKind]:
        """Return the kind of the value at a position or name."""
        position = key if isinstance(key, int) else self._position_of(key)
        if position is None or not 0 <= position < len(self.converted):
            return None
        return self.converted[position].kind

    def raw_value(self, key) -> Optional[str]:
        position = key if isinstance(key, int) else self._position_of(key)
        if position is None or not 0 <= position < len(self.raw):
            return None
        return self.raw[position]

    def span(self, key) -> Optional[Tuple[int, int]]:
        position = key if isinstance(key, int) else self._position_of(key)
        if position is None or not 0 <= position < len(self.spans):
            return None
        return self.spans[position]

    def _position_of(self, name: str) -> Optional[int]:
        if not isinstance(name, str):
            return None
        position = self._positions.get(name)
        if position is None:
            position = self._positions.get(normalize_field_name(name))
        return position

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly mapping of identifier to converted value."""
        return {
            spec.identifier: self.converted[i].to_json_value()
            for i, spec in enumerate(self._fields)
        }

    def __getitem__(self, key) -> Any:
        if isinstance(key, int):
            return self.converted[key].value
        position = self._position_of(key)
        if position is None:
            raise KeyError(key)
        return self.converted[position].value

    def __contains__(self, name) -> bool:
        return self._position_of(name) is not None

    def __len__(self) -> int:
        return len(self.converted)

    def __repr__(self) -> str:
        return f"<MatchResult {self.values!r}>"
