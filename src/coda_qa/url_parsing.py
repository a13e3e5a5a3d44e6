from __future__ import annotations

import logging
from urllib.parse import urlparse

from .errors import InvalidUrlError
from .schema import DocumentRef

logger = logging.getLogger(__name__)

DOC_PATH_MARKER = "d"


def parse_coda_url(url: str) -> DocumentRef:
    """Extract the document id and optional page name from a Coda page URL.

    Coda URLs look like ``https://coda.io/d/<Doc-Title>_d<docId>/<Page-Name>_su<id>``.
    The document id is the last underscore-delimited piece of the second path
    segment, with its single leading ``d`` removed.

    Args:
        url: Full Coda page or document URL.

    Returns:
        DocumentRef with the document id and the raw third path segment, if any.

    Raises:
        InvalidUrlError: The path does not follow the ``/d/<token>_d<id>`` shape.
    """
    path_parts = [part for part in urlparse(url).path.split("/") if part]
    logger.debug("Parsing Coda URL %s into path parts %s", url, path_parts)

    if len(path_parts) < 2 or path_parts[0] != DOC_PATH_MARKER:
        raise InvalidUrlError("Invalid Coda URL format")

    doc_id_parts = path_parts[1].split("_")
    if len(doc_id_parts) < 2:
        raise InvalidUrlError("Unable to extract Doc ID from the provided URL")

    document_id = doc_id_parts[-1]
    if document_id.startswith("d"):
        document_id = document_id[1:]
    if not document_id:
        raise InvalidUrlError("Unable to extract Doc ID from the provided URL")

    page_name = path_parts[2] if len(path_parts) > 2 else ""
    logger.info("Resolved Coda document %s (page=%r)", document_id, page_name)
    return DocumentRef(document_id=document_id, page_name=page_name)


def resolve_document_ref(value: str) -> DocumentRef:
    """Accept either a Coda URL or a bare document id."""
    candidate = (value or "").strip()
    if not candidate:
        raise InvalidUrlError("A Coda URL or document ID is required")
    if "://" in candidate:
        return parse_coda_url(candidate)
    return DocumentRef(document_id=candidate)
