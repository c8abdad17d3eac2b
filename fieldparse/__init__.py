"""
Typed Field Extraction from Templates

A Python library for describing the shape of expected text with a compact
template of literal text and typed placeholder fields, compiling it once
and extracting typed values from strings that conform to it.

    >>> from fieldparse import parse
    >>> result = parse("Name: {name:w}, Age: {age:d}", "Name: Alice, Age: 25")
    >>> result.named("age", int)
    25
"""

from typing import Any, List, Mapping, Optional

__version__ = "1.0.0"
__author__ = "fieldparse contributors"

from .errors import FieldParseError, InvalidFormat, NoMatch, TypeConversionFailed
from .models import FieldSpec, CompiledPattern, MatchResult, TypedValue, ValueKind
from .converters import (
    TypeConverter, IntConverter, FloatConverter, WordConverter,
    DateTimeConverter, DateConverter, TimeConverter, FunctionConverter, with_pattern
)
from .registry import ConverterRegistry, build_registry, default_registry
from .compiler import TemplateCompiler
from .matcher import Matcher, compile, compile_with_types

__all__ = [
    "FieldParseError",
    "InvalidFormat",
    "NoMatch",
    "TypeConversionFailed",
    "FieldSpec",
    "CompiledPattern",
    "MatchResult",
    "TypedValue",
    "ValueKind",
    "TypeConverter",
    "IntConverter",
    "FloatConverter",
    "WordConverter",
    "DateTimeConverter",
    "DateConverter",
    "TimeConverter",
    "FunctionConverter",
    "with_pattern",
    "ConverterRegistry",
    "build_registry",
    "default_registry",
    "TemplateCompiler",
    "Matcher",
    "compile",
    "compile_with_types",
    "parse",
    "search",
    "find_all",
    "parse_with_types",
    "search_with_types",
    "find_all_with_types",
]


def parse(template: str, text: str, case_sensitive: bool = False) -> Optional[MatchResult]:
    """Match ``text`` exactly against ``template``; None on any failure."""
    return parse_with_types(template, text, None, case_sensitive)


def search(template: str, text: str, case_sensitive: bool = False) -> Optional[MatchResult]:
    """Find the first occurrence of ``template`` in ``text``; None on any failure."""
    return search_with_types(template, text, None, case_sensitive)


def find_all(template: str, text: str, case_sensitive: bool = False) -> List[MatchResult]:
    """All non-overlapping occurrences of ``template`` in ``text``."""
    return find_all_with_types(template, text, None, case_sensitive)


def parse_with_types(template: str, text: str,
                     extra_converters: Optional[Mapping[str, Any]],
                     case_sensitive: bool = False) -> Optional[MatchResult]:
    try:
        matcher = compile_with_types(template, case_sensitive, extra_converters)
    except InvalidFormat:
        return None
    return matcher.parse(text)


def search_with_types(template: str, text: str,
                      extra_converters: Optional[Mapping[str, Any]],
                      case_sensitive: bool = False) -> Optional[MatchResult]:
    try:
        matcher = compile_with_types(template, case_sensitive, extra_converters)
    except InvalidFormat:
        return None
    return matcher.search(text)


def find_all_with_types(template: str, text: str,
                        extra_converters: Optional[Mapping[str, Any]],
                        case_sensitive: bool = False) -> List[MatchResult]:
    try:
        matcher = compile_with_types(template, case_sensitive, extra_converters)
    except InvalidFormat:
        return []
    return list(matcher.find_all(text))
