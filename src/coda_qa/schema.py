from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator


@dataclass(slots=True)
class DocumentRef:
    """Document identifier plus the optional page name taken from a URL."""

    document_id: str
    page_name: str = ""


@dataclass(slots=True)
class Page:
    """Entry of a document page listing."""

    page_id: str
    name: str
    browser_link: str = ""

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Page:
        return cls(
            page_id=payload["id"],
            name=payload.get("name") or "",
            browser_link=payload.get("browserLink") or "",
        )


@dataclass(slots=True)
class TableRef:
    """Table listed under a document, with the id of its parent page."""

    table_id: str
    name: str = ""
    parent_id: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> TableRef:
        parent = payload.get("parent") or {}
        return cls(
            table_id=payload["id"],
            name=payload.get("name") or "",
            parent_id=parent.get("id"),
        )


@dataclass(slots=True)
class ColumnMap:
    """Column id to column name mapping in the order the API declared them."""

    names: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, items: list[dict[str, Any]]) -> ColumnMap:
        return cls(names={item["id"]: item.get("name") or item["id"] for item in items})

    def ids(self) -> list[str]:
        return list(self.names)

    def name_for(self, column_id: str) -> str:
        return self.names.get(column_id, column_id)

    def find(self, fragment: str, among: list[str] | None = None) -> str | None:
        """Return the first column id whose name contains `fragment`, ignoring case.

        Args:
            fragment: Substring to look for in column names.
            among: Optional restriction to these column ids, searched in their order.

        Returns:
            Matching column id, or `None` when no column name matches.
        """
        needle = fragment.lower()
        candidates = among if among is not None else self.ids()
        for column_id in candidates:
            name = self.names.get(column_id)
            if isinstance(name, str) and needle in name.lower():
                return column_id
        return None

    def __len__(self) -> int:
        return len(self.names)


@dataclass(slots=True)
class TableRow:
    """Single table row whose cell order is pinned to the declared column order."""

    row_id: str
    cells: dict[str, Any]

    @classmethod
    def from_payload(cls, payload: dict[str, Any], columns: ColumnMap) -> TableRow:
        values = payload.get("values") or {}
        ordered = {column_id: values[column_id] for column_id in columns.ids() if column_id in values}
        for column_id, value in values.items():
            ordered.setdefault(column_id, value)
        return cls(row_id=payload.get("id", ""), cells=ordered)

    def column_ids(self) -> list[str]:
        return list(self.cells)

    def value(self, column_id: str) -> Any:
        return self.cells.get(column_id)

    def text(self, column_id: str) -> str | None:
        value = self.cells.get(column_id)
        return value if isinstance(value, str) else None


@dataclass(slots=True)
class RowBatch:
    """One page of rows from the rows endpoint plus its continuation token."""

    rows: list[TableRow]
    next_page_token: str | None = None

    def __iter__(self) -> Iterator[TableRow]:
        return iter(self.rows)

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def has_more(self) -> bool:
        return bool(self.next_page_token)


@dataclass(slots=True)
class InputParameter:
    """Declared action input, as registered with the plugin host."""

    key: str
    name: str
    description: str = ""
    type: str = "string"
    required: bool = True


@dataclass(slots=True)
class OutputParameter:
    """Declared action output, as registered with the plugin host."""

    key: str
    name: str
    description: str = ""
    type: str = "string"
    required: bool = True
