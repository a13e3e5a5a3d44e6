"""Shared pytest fixtures for coda_qa unit tests.

Coda API access is faked with a MagicMock session whose ``get`` routes on the
request path (and ``pageToken`` query parameter) to canned JSON payloads.
"""
from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest
import requests

from coda_qa.schema import ColumnMap, RowBatch, TableRow
from coda_qa.settings import DEFAULT_CODA_API_BASE_URL

DOC_ID = "AbCdEf123"
PAGE_ID = "canvas-faq"
TABLE_ID = "grid-qa"


def make_response(payload: Any, status_code: int = 200) -> MagicMock:
    """Build a fake ``requests.Response`` with a JSON body."""
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(
            f"{status_code} Client Error", response=response
        )
    return response


def make_session(routes: dict[str, Any]) -> MagicMock:
    """Fake session; unknown paths answer 404.

    Route keys are API paths such as ``/docs/X/pages``; continuation pages use
    ``/docs/X/tables/T/rows?pageToken=<token>``.  A value that is already a
    MagicMock (e.g. from :func:`make_response`) is returned as-is.
    """
    session = MagicMock()

    def _get(url, headers=None, params=None, timeout=None):
        path = url[len(DEFAULT_CODA_API_BASE_URL):]
        token = (params or {}).get("pageToken")
        key = f"{path}?pageToken={token}" if token else path
        if key not in routes:
            return make_response({"message": "Not Found"}, status_code=404)
        value = routes[key]
        if isinstance(value, MagicMock):
            return value
        return make_response(value)

    session.get.side_effect = _get
    return session


def qa_routes(rows: list[dict], columns: list[dict] | None = None) -> dict[str, Any]:
    """Routes for a document with one FAQ page holding one table."""
    return {
        f"/docs/{DOC_ID}/pages": {
            "items": [
                {"id": "canvas-intro", "name": "Intro", "browserLink": f"https://coda.io/d/_d{DOC_ID}/Intro_suAAA"},
                {"id": PAGE_ID, "name": "FAQ", "browserLink": f"https://coda.io/d/_d{DOC_ID}/FAQ_suBBB"},
            ]
        },
        f"/docs/{DOC_ID}/pages/{PAGE_ID}": {"id": PAGE_ID, "name": "FAQ"},
        f"/docs/{DOC_ID}/tables": {
            "items": [
                {"id": TABLE_ID, "name": "Questions", "parent": {"id": PAGE_ID}},
                {"id": "grid-other", "name": "Other", "parent": {"id": "canvas-intro"}},
            ]
        },
        f"/docs/{DOC_ID}/tables/{TABLE_ID}/columns": {
            "items": columns
            if columns is not None
            else [{"id": "c1", "name": "Question"}, {"id": "c2", "name": "Answer"}]
        },
        f"/docs/{DOC_ID}/tables/{TABLE_ID}/rows": {"items": rows},
    }


@pytest.fixture()
def faq_url() -> str:
    return f"https://coda.io/d/Team-Handbook_d{DOC_ID}/FAQ_suBBB"


@pytest.fixture()
def qa_session() -> MagicMock:
    return make_session(
        qa_routes(
            [
                {"id": "i-1", "values": {"c1": "What is X?", "c2": "X is Y."}},
            ]
        )
    )


@pytest.fixture()
def qa_columns() -> ColumnMap:
    return ColumnMap(names={"c1": "Question", "c2": "Answer", "c3": "Owner"})


@pytest.fixture()
def qa_batch(qa_columns) -> RowBatch:
    return RowBatch(
        rows=[
            TableRow.from_payload(
                {"id": "i-1", "values": {"c1": "What is VPN?", "c2": "A secure tunnel.", "c3": "IT"}},
                qa_columns,
            ),
            TableRow.from_payload(
                {"id": "i-2", "values": {"c1": "Who approves travel?", "c2": "Your manager.", "c3": "HR"}},
                qa_columns,
            ),
        ]
    )


@pytest.fixture()
def mem_exporter():
    """Fresh InMemorySpanExporter and a configured global TracerProvider."""
    from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

    from coda_qa.tracing import configure_tracing

    exporter = InMemorySpanExporter()
    configure_tracing(exporter=exporter, service_name="test-service")
    return exporter
