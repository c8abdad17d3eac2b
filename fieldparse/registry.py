"""
Converter registry: an immutable mapping of type tag to converter.
"""

import logging
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional

from .converters import TypeConverter, as_converter, builtin_converters

logger = logging.getLogger(__name__)


class ConverterRegistry(Mapping):
    """
    Read-only mapping of type tag to TypeConverter.

    Built with ``build_registry``; never mutated afterwards, so a single
    instance can be shared by any number of matchers.
    """

    def __init__(self, converters: Mapping[str, TypeConverter]):
        self._converters = MappingProxyType(dict(converters))

    def __getitem__(self, type_tag: str) -> TypeConverter:
        return self._converters[type_tag]

    def __iter__(self) -> Iterator[str]:
        return iter(self._converters)

    def __len__(self) -> int:
        return len(self._converters)

    def lookup(self, type_tag: str) -> Optional[TypeConverter]:
        return self._converters.get(type_tag)

    def __repr__(self) -> str:
        return f"<ConverterRegistry {sorted(self._converters)}>"


def build_registry(extra_converters: Optional[Mapping[str, Any]] = None) -> ConverterRegistry:
    """
    Merge caller converters over the built-in set.

    Every built-in stays present unless a caller converter with the same
    tag replaces it. Plain callables are wrapped into converters.

    Args:
        extra_converters: type tag to TypeConverter (or callable)

    Returns:
        A new immutable ConverterRegistry
    """
    converters: Dict[str, TypeConverter] = builtin_converters()

    for type_tag, converter in (extra_converters or {}).items():
        if not type_tag or ':' in type_tag or '{' in type_tag or '}' in type_tag:
            raise ValueError(f"invalid type tag: {type_tag!r}")
        if type_tag in converters:
            logger.debug("Overriding built-in converter for type %r", type_tag)
        converters[type_tag] = as_converter(converter, type_tag)

    return ConverterRegistry(converters)


_DEFAULT_REGISTRY = build_registry()


def default_registry() -> ConverterRegistry:
    """The registry holding only the built-in converters."""
    return _DEFAULT_REGISTRY
