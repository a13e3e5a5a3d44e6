from __future__ import annotations

import logging
import re

from .coda_client import CodaClient
from .errors import InvalidUrlError, PageNotFoundError
from .rendering import RowRenderer
from .schema import DocumentRef, Page, TableRef

logger = logging.getLogger(__name__)

NO_ROWS_NOTE = "No rows found in the table."


def normalize_name(value: str) -> str:
    return re.sub(r"[^a-z0-9]", "", value.lower())


def find_page(pages: list[Page], page_name: str) -> Page:
    """Pick the page matching a page name taken from a Coda URL.

    URL page segments carry a ``_su<id>`` suffix, so only the part before the
    first underscore is compared by normalized name.  A page whose browser link
    contains the raw segment also matches.  The first match wins.

    Raises:
        PageNotFoundError: No page matches.
    """
    wanted = normalize_name(page_name.split("_")[0])
    for page in pages:
        if normalize_name(page.name) == wanted or page_name in page.browser_link:
            return page
    raise PageNotFoundError(page_name)


class CodaReader:
    """Walk a document's tables and assemble their rows into one transcript."""

    def __init__(self, client: CodaClient) -> None:
        self.client = client

    def resolve_tables(self, ref: DocumentRef) -> list[TableRef]:
        if not ref.document_id:
            raise InvalidUrlError("Document ID is empty")
        if not ref.page_name:
            return self.client.list_tables(ref.document_id)

        page = find_page(self.client.list_pages(ref.document_id), ref.page_name)
        details = self.client.get_page(ref.document_id, page.page_id)
        logger.info("Reading page %s (%s)", page.page_id, details.get("name", page.name))
        return self.client.list_tables(ref.document_id, page_id=page.page_id)

    def read_table(self, document_id: str, table: TableRef, renderer: RowRenderer) -> list[str]:
        columns = self.client.list_columns(document_id, table.table_id)
        blocks: list[str] = []
        row_count = 0
        for batch in self.client.iter_rows(document_id, table.table_id, columns):
            row_count += len(batch)
            blocks.extend(renderer.render_batch(batch, columns))
        if row_count == 0:
            logger.info("No rows found in table %s", table.table_id)
        logger.debug("Table %s: %d rows, %d rendered", table.table_id, row_count, len(blocks))
        return blocks

    def read(self, ref: DocumentRef, renderer: RowRenderer, table_id: str | None = None) -> str:
        """Return the trimmed transcript of the referenced tables.

        Args:
            ref: Document and optional page to read.
            renderer: Strategy used to turn each row batch into text blocks.
            table_id: Read only this table, skipping page and table lookup.

        Returns:
            Rendered row blocks separated by blank lines.
        """
        if table_id:
            if not ref.document_id:
                raise InvalidUrlError("Document ID is empty")
            tables = [TableRef(table_id=table_id)]
        else:
            tables = self.resolve_tables(ref)
        logger.info("Reading %d table(s) from document %s", len(tables), ref.document_id)

        parts: list[str] = []
        for table in tables:
            parts.extend(self.read_table(ref.document_id, table, renderer))
            # Checked against the whole transcript, so only the first empty table adds the note.
            if not parts:
                parts.append(NO_ROWS_NOTE)
        return "\n\n".join(parts).strip()
