"""Coda plugin actions that read document tables and answer questions about them."""

from .plugin import CodaPlugin, setup_plugin
from .schema import ColumnMap, DocumentRef, RowBatch, TableRow

__all__ = ["CodaPlugin", "setup_plugin", "DocumentRef", "ColumnMap", "TableRow", "RowBatch"]
