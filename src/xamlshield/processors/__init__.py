"""Markup processors.

Classes:
    MarkupTypeExtractor: Extracts the types markup files bind to by name
    NamespaceAlias: An ``xmlns`` alias declared in one markup file
"""

from xamlshield.processors.markup_extractor import (
    MarkupTypeExtractor,
    NamespaceAlias,
    collect_alias_usages,
    collect_aliases,
    scan_code_behind,
)

__all__ = [
    "MarkupTypeExtractor",
    "NamespaceAlias",
    "collect_alias_usages",
    "collect_aliases",
    "scan_code_behind",
]
