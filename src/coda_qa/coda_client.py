"""Thin client over the Coda REST API endpoints used to read tables."""
from __future__ import annotations

import logging
from typing import Any, Iterator

import requests

from .errors import CodaApiError
from .schema import ColumnMap, Page, RowBatch, TableRef, TableRow
from .settings import CodaSettings

logger = logging.getLogger(__name__)

UNAUTHORIZED_MESSAGE = "Unauthorized: Please check your API key or document permissions."


class CodaClient:
    """Sequential, authenticated GET access to documents, pages, tables and rows.

    Each call is issued once; failures surface as :class:`CodaApiError` with
    the upstream cause in the message.
    """

    def __init__(
        self,
        api_key: str,
        settings: CodaSettings | None = None,
        *,
        session: requests.Session | None = None,
    ) -> None:
        self.settings = settings or CodaSettings()
        self._api_key = api_key
        self._session = session or requests.Session()

    def _get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        url = f"{self.settings.api_base_url}{path}"
        logger.info("Coda API request: GET %s params=%s", path, params or {})
        try:
            response = self._session.get(
                url,
                headers={"Authorization": f"Bearer {self._api_key}"},
                params=params,
                timeout=self.settings.request_timeout,
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            status = getattr(exc.response, "status_code", None)
            logger.error("Coda API error: GET %s -> %s", path, status)
            if status == 401:
                raise CodaApiError(UNAUTHORIZED_MESSAGE, status_code=401) from exc
            raise CodaApiError(f"Coda API request failed ({path}): {exc}", status_code=status) from exc
        except requests.RequestException as exc:
            logger.error("Coda API error: GET %s -> %s", path, exc)
            raise CodaApiError(f"Coda API request failed ({path}): {exc}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise CodaApiError(f"Coda API returned invalid JSON ({path})") from exc

    def list_pages(self, document_id: str) -> list[Page]:
        data = self._get(f"/docs/{document_id}/pages")
        return [Page.from_payload(item) for item in data.get("items", [])]

    def get_page(self, document_id: str, page_id: str) -> dict[str, Any]:
        return self._get(f"/docs/{document_id}/pages/{page_id}")

    def list_tables(self, document_id: str, page_id: str | None = None) -> list[TableRef]:
        """List tables of a document, keeping only those whose parent is `page_id` when given."""
        params = {"pageId": page_id} if page_id else None
        data = self._get(f"/docs/{document_id}/tables", params=params)
        tables = [TableRef.from_payload(item) for item in data.get("items", [])]
        if page_id:
            tables = [table for table in tables if table.parent_id == page_id]
        return tables

    def list_columns(self, document_id: str, table_id: str) -> ColumnMap:
        data = self._get(f"/docs/{document_id}/tables/{table_id}/columns")
        return ColumnMap.from_payload(data.get("items", []))

    def fetch_rows(
        self,
        document_id: str,
        table_id: str,
        columns: ColumnMap,
        page_token: str | None = None,
    ) -> RowBatch:
        params: dict[str, Any] = {"limit": self.settings.rows_page_size}
        if page_token:
            params["pageToken"] = page_token
        data = self._get(f"/docs/{document_id}/tables/{table_id}/rows", params=params)
        rows = [TableRow.from_payload(item, columns) for item in data.get("items", [])]
        return RowBatch(rows=rows, next_page_token=data.get("nextPageToken") or None)

    def iter_rows(self, document_id: str, table_id: str, columns: ColumnMap) -> Iterator[RowBatch]:
        """Yield row batches, following continuation tokens until none is returned."""
        page_token: str | None = None
        while True:
            batch = self.fetch_rows(document_id, table_id, columns, page_token=page_token)
            yield batch
            if not batch.has_more:
                return
            page_token = batch.next_page_token
