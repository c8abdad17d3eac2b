"""
Type converters for typed template fields.

Each converter pairs a regex fragment describing the text it accepts with
a function turning the matched text into a typed value. Built-ins cover
integers, floats, words and a family of date/time layouts. DateConverter
and TimeConverter are left for callers to register under their own tags.
"""

import re
from abc import ABC, abstractmethod
from datetime import date, datetime, time, timezone
from typing import Any, Callable, Dict, List, Optional

from .errors import TypeConversionFailed


INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

_DATE_DIRECTIVES = ('%d', '%m', '%Y', '%y', '%b', '%B', '%a', '%A')
_TIME_DIRECTIVES = ('%H', '%I', '%M', '%S', '%p', '%f', '%z')


class TypeConverter(ABC):
    """Base class for field type converters."""

    @abstractmethod
    def convert(self, text: str) -> Any:
        """
        Convert matched text into a typed value.

        Raises:
            TypeConversionFailed: if the text cannot be converted
        """
        pass

    def get_pattern(self) -> Optional[str]:
        """Regex fragment for this type, or None for the default field pattern."""
        return None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class IntConverter(TypeConverter):
    """Signed 64-bit integers: ``{:d}``."""

    def convert(self, text: str) -> int:
        try:
            value = int(text)
        except ValueError:
            raise TypeConversionFailed(text, 'd', "not an integer")
        if not INT64_MIN <= value <= INT64_MAX:
            raise TypeConversionFailed(text, 'd', "outside the 64-bit range")
        return value

    def get_pattern(self) -> Optional[str]:
        return r'[-+]?\d+'


class FloatConverter(TypeConverter):
    """Floating point numbers: ``{:f}``."""

    def convert(self, text: str) -> float:
        try:
            return float(text)
        except ValueError:
            raise TypeConversionFailed(text, 'f', "not a number")

    def get_pattern(self) -> Optional[str]:
        return r'[-+]?(?:\d+\.\d+|\.\d+|\d+)(?:[eE][-+]?\d+)?'


class WordConverter(TypeConverter):
    """Runs of word characters: ``{:w}``."""

    def convert(self, text: str) -> str:
        return text

    def get_pattern(self) -> Optional[str]:
        return r'\w+'


_CLOCK = r'\d{1,2}:\d{2}(?::\d{2})?(?:\s*(?:AM|PM))?'

# Candidate layouts per date/time tag, tried in order
DATETIME_LAYOUTS: Dict[str, List[str]] = {
    # Generic, day-first
    'tg': [
        '%d/%m/%Y %H:%M:%S',     # 27/12/2024 19:57:55
        '%d/%m/%Y %H:%M',        # 27/12/2024 19:57
        '%d/%m/%Y %I:%M:%S %p',  # 27/12/2024 07:57:55 PM
        '%d/%m/%Y %I:%M %p',     # 27/12/2024 07:57 PM
        '%d/%m/%Y %I:%M:%S%p',
        '%d/%m/%Y %I:%M%p',
        '%Y/%m/%d %H:%M:%S',     # 2024/12/27 19:57:55
        '%Y/%m/%d %H:%M',
        '%Y/%m/%d %I:%M:%S %p',
        '%Y/%m/%d %I:%M %p',
        '%Y/%m/%d %I:%M:%S%p',
        '%Y/%m/%d %I:%M%p',
        '%d/%m/%Y',              # 27/12/2024
        '%Y/%m/%d',              # 2024/12/27
        '%H:%M:%S',              # 19:57:55
        '%H:%M',
        '%I:%M:%S %p',           # 07:57:55 PM
        '%I:%M %p',
        '%I:%M:%S%p',
        '%I:%M%p',
    ],
    # US, month-first
    'ta': [
        '%m/%d/%Y %I:%M:%S %p',  # 12/27/2024 07:57:55 PM
        '%m/%d/%Y %I:%M %p',
        '%m/%d/%Y %I:%M:%S%p',
        '%m/%d/%Y %I:%M%p',
        '%m/%d/%Y %H:%M:%S',     # 12/27/2024 19:57:55
        '%m/%d/%Y %H:%M',
        '%m/%d/%Y',              # 12/27/2024
    ],
    # Email (RFC 2822)
    'te': [
        '%a, %d %b %Y %H:%M:%S %z',  # Fri, 27 Dec 2024 19:57:55 +0000
        '%d %b %Y %H:%M:%S %z',      # 27 Dec 2024 19:57:55 +0000
        '%d %b %Y',                  # 27 Dec 2024
    ],
    # HTTP access log
    'th': [
        '%d/%b/%Y:%H:%M:%S %z',  # 27/Dec/2024:19:57:55 +0000
    ],
    # Syslog
    'ts': [
        '%b %d %Y %H:%M:%S',  # Dec 27 2024 19:57:55
    ],
    # ISO 8601
    'ti': [
        '%Y-%m-%dT%H:%M:%S.%f%z',  # 2024-12-27T19:57:55.000+00:00
        '%Y-%m-%dT%H:%M:%S%z',     # 2024-12-27T19:57:55+00:00
        '%Y-%m-%dT%H:%M:%S.%f',    # 2024-12-27T19:57:55.000
        '%Y-%m-%dT%H:%M:%S',       # 2024-12-27T19:57:55
        '%Y-%m-%d',                # 2024-12-27
    ],
}

DATETIME_PATTERNS: Dict[str, str] = {
    'tg': (
        r'\d{1,2}/\d{1,2}/\d{4}(?:\s+' + _CLOCK + r')?'
        r'|\d{4}/\d{1,2}/\d{1,2}(?:\s+' + _CLOCK + r')?'
        r'|' + _CLOCK
    ),
    'ta': r'\d{1,2}/\d{1,2}/\d{4}(?:\s+' + _CLOCK + r')?',
    'te': (
        r'(?:[A-Za-z]{3},\s+)?\d{1,2}\s+[A-Za-z]{3}\s+\d{4}'
        r'(?:\s+\d{2}:\d{2}:\d{2}\s+[-+]\d{4})?'
    ),
    'th': r'\d{2}/[A-Za-z]{3}/\d{4}:\d{2}:\d{2}:\d{2}\s+[-+]\d{4}',
    'ts': r'[A-Za-z]{3}\s+\d{1,2}\s+\d{4}\s+\d{2}:\d{2}:\d{2}',
    'ti': (
        r'\d{4}-\d{1,2}-\d{1,2}'
        r'(?:T\d{2}:\d{2}:\d{2}(?:\.\d{1,6})?(?:Z|[+-]\d{2}:?\d{2})?)?'
    ),
}


def _has_any(layout: str, directives) -> bool:
    return any(d in layout for d in directives)


def _first_fit(text: str, layouts: List[str]) -> Optional[datetime]:
    """Parse ``text`` with the first layout that fits, or return None."""
    for layout in layouts:
        try:
            return datetime.strptime(text, layout)
        except ValueError:
            continue
    return None


class DateTimeConverter(TypeConverter):
    """
    One member of the date/time family (``tg``, ``ta``, ``te``, ``th``,
    ``ts``, ``ti``).

    Layouts carrying both date and time directives are tried first and
    yield a ``datetime``; if none fits, the date-only layouts are tried
    (yielding a ``date``), then the time-only ones (yielding a ``time``).
    Offset-aware timestamps are normalized to naive UTC.
    """

    def __init__(self, format_type: str):
        if format_type not in DATETIME_LAYOUTS:
            raise ValueError(f"unknown date/time format type: {format_type!r}")
        self.format_type = format_type
        layouts = DATETIME_LAYOUTS[format_type]
        self.datetime_layouts = [
            l for l in layouts
            if _has_any(l, _DATE_DIRECTIVES) and _has_any(l, _TIME_DIRECTIVES)
        ]
        self.date_layouts = [
            l for l in layouts
            if _has_any(l, _DATE_DIRECTIVES) and not _has_any(l, _TIME_DIRECTIVES)
        ]
        self.time_layouts = [
            l for l in layouts
            if _has_any(l, _TIME_DIRECTIVES) and not _has_any(l, _DATE_DIRECTIVES)
        ]

    def convert(self, text: str) -> Any:
        # fragments allow any run of whitespace between components
        candidate = ' '.join(text.split())

        parsed = _first_fit(candidate, self.datetime_layouts)
        if parsed is not None:
            if parsed.tzinfo is not None:
                parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
            return parsed

        parsed = _first_fit(candidate, self.date_layouts)
        if parsed is not None:
            return parsed.date()

        parsed = _first_fit(candidate, self.time_layouts)
        if parsed is not None:
            return parsed.time()

        raise TypeConversionFailed(text, self.format_type, "no layout fits")

    def get_pattern(self) -> Optional[str]:
        return DATETIME_PATTERNS[self.format_type]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.format_type!r})"


_MONTH = (
    r'(?:Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|June?|July?'
    r'|Aug(?:ust)?|Sep(?:tember)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)'
)

DATE_LAYOUTS = [
    '%Y-%m-%d',    # 2024-12-27
    '%Y/%m/%d',    # 2024/12/27
    '%d/%m/%Y',    # 27/12/2024
    '%d-%m-%Y',    # 27-12-2024
    '%m/%d/%Y',    # 12/27/2024
    '%m-%d-%Y',    # 12-27-2024
    '%d %b %Y',    # 27 Dec 2024
    '%d %B %Y',    # 27 December 2024
    '%b %d, %Y',   # Dec 27, 2024
    '%B %d, %Y',   # December 27, 2024
    '%d-%b-%Y',    # 27-Dec-2024
    '%Y%m%d',      # 20241227
]

DATE_PATTERN = (
    r'\d{4}[-/]\d{1,2}[-/]\d{1,2}'
    r'|\d{1,2}[-/]\d{1,2}[-/]\d{4}'
    r'|\d{1,2}(?:\s+|-)' + _MONTH + r'(?:\s+|-)\d{4}'
    r'|' + _MONTH + r'\s+\d{1,2},\s+\d{4}'
    r'|\d{8}'
)

TIME_LAYOUTS = [
    '%H:%M:%S',        # 19:57:55
    '%H:%M',           # 19:57
    '%I:%M:%S %p',     # 07:57:55 PM
    '%I:%M %p',        # 07:57 PM
    '%H:%M:%S %z',     # 19:57:55 +0000
    '%H:%M %z',
    '%I:%M:%S %p %z',  # 07:57:55 PM +0000
    '%I:%M %p %z',
]

TIME_PATTERN = (
    r'(?:[01]?\d|2[0-3]):[0-5]\d(?::[0-5]\d)?'
    r'(?:\s+[AaPp][Mm])?(?:\s+[-+]\d{2}:?\d{2})?'
)


class DateConverter(TypeConverter):
    """
    Calendar dates in numeric and month-name layouts, returned as ``date``.

    Not part of the built-in set; register it under a tag of your choice:

        >>> compile_with_types("{when:date}", extra_converters={'date': DateConverter()})
    """

    def convert(self, text: str) -> date:
        parsed = _first_fit(' '.join(text.split()), DATE_LAYOUTS)
        if parsed is None:
            raise TypeConversionFailed(text, reason="no date layout fits")
        return parsed.date()

    def get_pattern(self) -> Optional[str]:
        return DATE_PATTERN


class TimeConverter(TypeConverter):
    """
    Clock times, returned as naive ``time``.

    A trailing UTC offset is accepted and dropped, leaving the wall-clock
    time as written.
    """

    def convert(self, text: str) -> time:
        parsed = _first_fit(' '.join(text.split()), TIME_LAYOUTS)
        if parsed is None:
            raise TypeConversionFailed(text, reason="no time layout fits")
        return parsed.time()

    def get_pattern(self) -> Optional[str]:
        return TIME_PATTERN


class FunctionConverter(TypeConverter):
    """
    Adapts a plain callable into a converter.

    The regex fragment is taken from the callable's ``pattern`` attribute
    if it has one (see ``with_pattern``). ValueError and TypeError raised
    by the callable count as conversion failures.
    """

    def __init__(self, func: Callable[[str], Any], pattern: Optional[str] = None,
                 type_tag: Optional[str] = None):
        self.func = func
        self.pattern = pattern if pattern is not None else getattr(func, 'pattern', None)
        self.type_tag = type_tag

    def convert(self, text: str) -> Any:
        try:
            return self.func(text)
        except TypeConversionFailed:
            raise
        except (ValueError, TypeError) as e:
            raise TypeConversionFailed(text, self.type_tag, str(e))

    def get_pattern(self) -> Optional[str]:
        return self.pattern

    def __repr__(self) -> str:
        name = getattr(self.func, '__name__', repr(self.func))
        return f"{self.__class__.__name__}({name}, pattern={self.pattern!r})"


def with_pattern(pattern: str):
    """
    Attach a regex fragment to a conversion function.

        >>> @with_pattern(r'[yn]')
        ... def yes_no(text):
        ...     return text.lower() == 'y'
    """
    def decorator(func):
        func.pattern = pattern
        return func
    return decorator


def as_converter(obj: Any, type_tag: Optional[str] = None) -> TypeConverter:
    """Return ``obj`` as a TypeConverter, wrapping plain callables."""
    if isinstance(obj, TypeConverter):
        return obj
    if callable(obj):
        return FunctionConverter(obj, type_tag=type_tag)
    raise TypeError(f"converter for {type_tag!r} must be a TypeConverter or callable, "
                    f"got {type(obj).__name__}")


def builtin_converters() -> Dict[str, TypeConverter]:
    """Fresh instances of every built-in converter, keyed by type tag."""
    converters: Dict[str, TypeConverter] = {
        'd': IntConverter(),
        'f': FloatConverter(),
        'w': WordConverter(),
    }
    for format_type in DATETIME_LAYOUTS:
        converters[format_type] = DateTimeConverter(format_type)
    return converters
