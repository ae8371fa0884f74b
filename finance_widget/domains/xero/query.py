"""
Builder for Xero ``where``/``order`` query parameters.

All literal values pass through here, so escaping lives in one place. The
resulting dict is handed to httpx as ``params``, which percent-encodes each
value exactly once.
"""

from typing import Self
from uuid import UUID


def escape_string_literal(value: str) -> str:
    """Escape a value for use inside a double-quoted Xero filter literal."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def normalize_guid(value: str) -> str:
    """
    Return the canonical form of a GUID.

    Raises:
        ValueError: If the value is not a GUID
    """
    return str(UUID(value.strip()))


class XeroQuery:
    """Fluent builder producing the query parameters for a Xero list call."""

    def __init__(self) -> None:
        self._conditions: list[str] = []
        self._order: str | None = None
        self._page: int | None = None

    def equals(self, field: str, value: str) -> Self:
        self._conditions.append(f'{field}=="{escape_string_literal(value)}"')
        return self

    def not_equals(self, field: str, value: str) -> Self:
        self._conditions.append(f'{field}!="{escape_string_literal(value)}"')
        return self

    def guid_equals(self, field: str, value: str) -> Self:
        self._conditions.append(f'{field}==Guid("{normalize_guid(value)}")')
        return self

    def order_by(self, field: str, descending: bool = False) -> Self:
        self._order = f"{field} DESC" if descending else field
        return self

    def page(self, page: int) -> Self:
        self._page = page
        return self

    @property
    def where(self) -> str | None:
        if not self._conditions:
            return None
        return " AND ".join(self._conditions)

    def to_params(self) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.where:
            params["where"] = self.where
        if self._order:
            params["order"] = self._order
        if self._page is not None:
            params["page"] = str(self._page)
        return params
