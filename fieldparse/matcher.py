"""
Compiled, reusable matcher for one template.
"""

import copy
import logging
import re
from typing import Any, Iterator, List, Mapping, Optional

from .compiler import TemplateCompiler
from .errors import InvalidFormat, NoMatch, TypeConversionFailed
from .models import CompiledPattern, FieldSpec, MatchResult, TypedValue
from .registry import ConverterRegistry, build_registry, default_registry

logger = logging.getLogger(__name__)


class Matcher:
    """
    Pairs the compiled expressions of a template with its field table and
    converter registry.

    A Matcher is immutable once built and can be reused for any number of
    parse/search/find_all calls, from several threads if the custom
    converters it holds are themselves free of shared mutable state.
    """

    def __init__(self, template: str, case_sensitive: bool = False,
                 registry: Optional[ConverterRegistry] = None):
        self._template = template
        self._case_sensitive = case_sensitive
        self._registry = registry if registry is not None else default_registry()
        self._pattern = TemplateCompiler(self._registry).compile(template)

        flags = 0 if case_sensitive else re.IGNORECASE

        try:
            self._exact_re = re.compile(self._pattern.exact_regex, flags)
            self._search_re = re.compile(self._pattern.search_regex, flags)
        except re.error as e:
            raise InvalidFormat(f"template does not compile to a valid expression: {e}",
                                template)

    @property
    def template(self) -> str:
        return self._template

    @property
    def case_sensitive(self) -> bool:
        return self._case_sensitive

    @property
    def pattern(self) -> CompiledPattern:
        """A copy of the compiled expressions and field table."""
        return copy.deepcopy(self._pattern)

    @property
    def registry(self) -> ConverterRegistry:
        return self._registry

    @property
    def fields(self) -> List[FieldSpec]:
        return list(self._pattern.fields)

    @property
    def field_names(self) -> List[str]:
        return [spec.identifier for spec in self._pattern.fields]

    def parse(self, text: str) -> Optional[MatchResult]:
        """
        Match the whole text against the template.

        Returns:
            MatchResult, or None if the text does not match or a field
            cannot be converted
        """
        m = self._exact_re.match(text)
        if m is None:
            return None
        try:
            return self._evaluate(m)
        except TypeConversionFailed:
            return None

    def search(self, text: str, pos: int = 0, endpos: Optional[int] = None) -> Optional[MatchResult]:
        """
        Find the first occurrence of the template anywhere in the text.

        Returns:
            MatchResult, or None if nothing matches or a field of the first
            occurrence cannot be converted
        """
        if endpos is None:
            endpos = len(text)
        m = self._search_re.search(text, pos, endpos)
        if m is None:
            return None
        try:
            return self._evaluate(m)
        except TypeConversionFailed:
            return None

    def parse_or_raise(self, text: str) -> MatchResult:
        """Like parse(), but raise NoMatch or TypeConversionFailed."""
        m = self._exact_re.match(text)
        if m is None:
            raise NoMatch(text)
        return self._evaluate(m)

    def search_or_raise(self, text: str, pos: int = 0, endpos: Optional[int] = None) -> MatchResult:
        """Like search(), but raise NoMatch or TypeConversionFailed."""
        if endpos is None:
            endpos = len(text)
        m = self._search_re.search(text, pos, endpos)
        if m is None:
            raise NoMatch(text)
        return self._evaluate(m)

    def find_all(self, text: str, pos: int = 0, endpos: Optional[int] = None) -> Iterator[MatchResult]:
        """
        Yield every non-overlapping occurrence, left to right.

        Each scan resumes at the end of the previous occurrence. Occurrences
        whose fields cannot be converted are skipped.
        """
        if endpos is None:
            endpos = len(text)
        for m in self._search_re.finditer(text, pos, endpos):
            try:
                yield self._evaluate(m)
            except TypeConversionFailed as e:
                logger.debug("Skipping match at %d-%d: %s", m.start(), m.end(), e)

    # alias for callers used to the re module spelling
    findall = find_all

    def _evaluate(self, m: re.Match) -> MatchResult:
        """Convert every field of a regex match, all or nothing."""
        raw = []
        converted = []
        spans = []

        for spec in self._pattern.fields:
            group = TemplateCompiler.group_name(spec.group_index)
            value = m.group(group)
            raw.append(value)
            spans.append(m.span(group))
            converted.append(TypedValue.wrap(self._convert(spec, value)))

        return MatchResult(
            fields=self._pattern.fields,
            raw=tuple(raw),
            converted=tuple(converted),
            spans=tuple(spans),
        )

    def _convert(self, spec: FieldSpec, value: str) -> Any:
        if spec.type_tag is None:
            return value
        converter = self._registry[spec.type_tag]
        try:
            return converter.convert(value)
        except TypeConversionFailed:
            raise
        except (ValueError, TypeError, OverflowError) as e:
            raise TypeConversionFailed(value, spec.type_tag, str(e))

    def __repr__(self) -> str:
        if len(self._template) > 20:
            return '<%s %r>' % (self.__class__.__name__, self._template[:17] + '...')
        return '<%s %r>' % (self.__class__.__name__, self._template)


def compile(template: str, case_sensitive: bool = False) -> Matcher:
    """
    Compile a template against the built-in converters.

    Raises:
        InvalidFormat: if the template is malformed
    """
    return Matcher(template, case_sensitive=case_sensitive)


def compile_with_types(template: str, case_sensitive: bool = False,
                       extra_converters: Optional[Mapping[str, Any]] = None) -> Matcher:
    """
    Compile a template with caller converters merged over the built-ins.

    Raises:
        InvalidFormat: if the template is malformed or names an unknown type
    """
    return Matcher(template, case_sensitive=case_sensitive,
                   registry=build_registry(extra_converters))
