"""
Utility functions for common patterns across the drug extraction system.
"""

import re
from datetime import datetime
from typing import Any, Dict, Optional

from .interfaces import NodeInterface


class StringUtils:
    """Utility methods for string validation and processing."""

    # Cached regex patterns for performance
    _regex_cache = {
        'field_separators': re.compile(r'[^0-9A-Za-z]+'),
        'whitespace': re.compile(r'\s+')
    }

    @staticmethod
    def safe_string_check(value: Any) -> bool:
        """
        Standardized string validation.

        Args:
            value: Value to check

        Returns:
            True if value is a non-empty string after stripping whitespace
        """
        return value is not None and str(value).strip() != ''

    @staticmethod
    def blank_to_none(value: Optional[str]) -> Optional[str]:
        """Map None, '' and whitespace-only strings to None; pass anything else through."""
        return value if StringUtils.safe_string_check(value) else None

    @staticmethod
    def to_field_name(tag: str) -> str:
        """
        Convert an XML tag or attribute name to an output field name.

        Examples:
            'cas-number' -> 'cas_number'
            'drugbank-id' -> 'drugbank_id'
        """
        return StringUtils._regex_cache['field_separators'].sub('_', tag).strip('_').lower()

    @staticmethod
    def unique_field_name(record: Dict[str, Any], name: str) -> str:
        """
        Return name, or name with the first free numeric suffix if record already has it.

        Examples:
            {'link': ..} + 'link' -> 'link_2'
        """
        if name not in record:
            return name
        suffix = 2
        while f"{name}_{suffix}" in record:
            suffix += 1
        return f"{name}_{suffix}"

    @staticmethod
    def normalize_whitespace(value: Any) -> str:
        """
        Normalize whitespace in string values.

        Args:
            value: Input value

        Returns:
            String with normalized whitespace
        """
        if value is None:
            return ''
        return StringUtils._regex_cache['whitespace'].sub(' ', str(value).strip())


class NodeUtils:
    """Utility methods for reading values off parsed nodes."""

    @staticmethod
    def child_text(node: NodeInterface, tag: str) -> Optional[str]:
        """Text of the first child with tag, or None when the child is absent or blank."""
        child = node.child(tag)
        if child is None:
            return None
        return StringUtils.blank_to_none(child.text())

    @staticmethod
    def path_text(node: NodeInterface, path: str) -> Optional[str]:
        """
        Text at a slash-separated child path, e.g. 'left-element/drugbank-id'.

        Each step takes the first matching child; any missing step yields None.
        """
        current = node
        for tag in path.split('/'):
            current = current.child(tag)
            if current is None:
                return None
        return StringUtils.blank_to_none(current.text())


def resolve_drug_key(node: NodeInterface, key_tag: str) -> Optional[str]:
    """
    Compute the DrugKey of a parent node.

    Args:
        node: Parent (drug) node
        key_tag: Child tag holding the key; the first match in document order is used

    Returns:
        Key text, or None when the key child is absent
    """
    return NodeUtils.child_text(node, key_tag)


class ValidationUtils:
    """Utility methods for validation patterns."""

    @staticmethod
    def normalize_date(value: str, date_format: str) -> str:
        """
        Parse value with date_format and return it in ISO form (YYYY-MM-DD).

        Raises:
            ValueError: If value does not match date_format
        """
        return datetime.strptime(value, date_format).date().isoformat()
