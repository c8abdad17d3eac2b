"""
Exceptions raised while compiling templates and extracting fields.
"""

from typing import Optional


class FieldParseError(ValueError):
    """Base class for all fieldparse errors."""
    pass


class InvalidFormat(FieldParseError):
    """A template is malformed or names an unknown type tag."""

    def __init__(self, message: str, template: Optional[str] = None,
                 position: Optional[int] = None):
        self.template = template
        self.position = position
        if position is not None:
            message = f"{message} (at position {position})"
        super().__init__(message)


class NoMatch(FieldParseError):
    """The text does not satisfy the template."""

    def __init__(self, text: str):
        self.text = text
        preview = text if len(text) <= 40 else text[:37] + "..."
        super().__init__(f"no match found for {preview!r}")


class TypeConversionFailed(FieldParseError):
    """A field matched syntactically but its converter rejected the value."""

    def __init__(self, value: str, type_tag: Optional[str] = None,
                 reason: Optional[str] = None):
        self.value = value
        self.type_tag = type_tag
        message = f"cannot convert {value!r}"
        if type_tag:
            message += f" as type {type_tag!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
