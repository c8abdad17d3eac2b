"""
Template compiler.

Turns a template such as ``"Name: {name:w}, Age: {age:d}"`` into an
anchored and an unanchored regular expression plus a field table.
"""

import logging
import re
from typing import Dict, List, Optional

from .errors import InvalidFormat
from .models import CompiledPattern, FieldSpec, normalize_field_name
from .registry import ConverterRegistry, default_registry

logger = logging.getLogger(__name__)


class TemplateCompiler:
    """
    Compiles templates against a converter registry.

    Template syntax:
        {}            anonymous field, default type
        {name}        named field, default type
        {:type}       anonymous typed field
        {name:type}   named typed field
        {{ and }}     literal braces
        {a.b}, {a[0]} dotted/indexed names, flattened to a__b, a__0

    Anonymous fields are named by their position, so an explicit numeric
    name such as {1} collides with the anonymous field at that position.
    Untyped fields match any run of characters up to a line break, the
    empty run included.
    """

    # non-greedy catch-all for untyped fields
    DEFAULT_FIELD_PATTERN = r'.*?'

    # literal delimiters that tolerate surrounding whitespace
    SPACED_DELIMITERS = frozenset(',=+-')

    GROUP_PREFIX = '_field_'

    def __init__(self, registry: Optional[ConverterRegistry] = None):
        self.registry = registry if registry is not None else default_registry()

    def compile(self, template: str) -> CompiledPattern:
        """
        Compile a template.

        Args:
            template: Template string

        Returns:
            CompiledPattern with exact and search expressions and the field table

        Raises:
            InvalidFormat: on unbalanced braces, repeated names or unknown types
        """
        parts: List[str] = []
        fields: List[FieldSpec] = []
        name_index: Dict[str, int] = {}

        in_field = False
        in_type = False
        field_start = 0
        name_chars: List[str] = []
        type_chars: List[str] = []

        i = 0
        length = len(template)
        while i < length:
            char = template[i]
            following = template[i + 1] if i + 1 < length else ''

            if char == '{':
                if in_field:
                    raise InvalidFormat("nested '{' inside a field", template, i)
                if following == '{':
                    parts.append(re.escape('{'))
                    i += 2
                    continue
                in_field = True
                in_type = False
                field_start = i
                name_chars = []
                type_chars = []

            elif char == '}':
                if in_field:
                    spec, expression = self._close_field(
                        template, field_start, ''.join(name_chars),
                        ''.join(type_chars) if in_type else None,
                        len(fields), name_index
                    )
                    fields.append(spec)
                    name_index[spec.identifier] = spec.group_index
                    parts.append(expression)
                    in_field = False
                    in_type = False
                elif following == '}':
                    parts.append(re.escape('}'))
                    i += 2
                    continue
                else:
                    raise InvalidFormat("unmatched '}'", template, i)

            elif in_field:
                if char == ':' and not in_type:
                    in_type = True
                elif in_type:
                    type_chars.append(char)
                else:
                    name_chars.append(char)

            else:
                parts.append(self._literal(char))

            i += 1

        if in_field:
            raise InvalidFormat("unterminated field", template, field_start)

        expression = ''.join(parts)
        logger.debug("template %r -> %r", template, expression)

        return CompiledPattern(
            exact_regex=r'\A(?:%s)\Z' % expression,
            search_regex=expression,
            fields=fields,
            name_index=name_index,
        )

    def _close_field(self, template: str, position: int, name: str,
                     type_tag: Optional[str], ordinal: int,
                     name_index: Dict[str, int]):
        """Build the field spec and capture group for one closed field."""
        if name:
            identifier = normalize_field_name(name)
        else:
            identifier = str(ordinal)

        if identifier in name_index:
            if name.isdigit() or not name:
                raise InvalidFormat(
                    f"field {identifier!r} declared twice (anonymous fields are named by position)",
                    template, position)
            raise InvalidFormat(f"field {identifier!r} declared twice", template, position)

        if type_tag:
            fragment = self._type_pattern(template, position, type_tag)
        else:
            type_tag = None
            fragment = self.DEFAULT_FIELD_PATTERN

        spec = FieldSpec(
            identifier=identifier,
            group_index=ordinal + 1,
            type_tag=type_tag,
            original_name=name or None,
        )
        expression = '(?P<%s%d>(?:%s))' % (self.GROUP_PREFIX, spec.group_index, fragment)
        return spec, expression

    def _type_pattern(self, template: str, position: int, type_tag: str) -> str:
        converter = self.registry.lookup(type_tag)
        if converter is None:
            raise InvalidFormat(f"unknown type {type_tag!r}", template, position)

        fragment = converter.get_pattern()
        if not fragment:
            return self.DEFAULT_FIELD_PATTERN

        try:
            re.compile(fragment)
        except re.error as e:
            raise InvalidFormat(f"bad pattern for type {type_tag!r}: {e}", template, position)
        return fragment

    def _literal(self, char: str) -> str:
        escaped = re.escape(char)
        if char in self.SPACED_DELIMITERS:
            return r'\s*' + escaped + r'\s*'
        return escaped

    @classmethod
    def group_name(cls, group_index: int) -> str:
        """Regex group name carrying the field with this index."""
        return '%s%d' % (cls.GROUP_PREFIX, group_index)
