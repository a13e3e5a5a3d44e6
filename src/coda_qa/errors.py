"""Exception types raised along the Coda read and answer pipeline.

Every error raised by a pipeline step derives from :class:`CodaQAError`.  The
action boundary in :mod:`coda_qa.action` converts whatever reaches it into a
single :class:`ActionError` so the plugin host sees one uniform failure shape.
"""
from __future__ import annotations


class CodaQAError(RuntimeError):
    """Base class for failures raised by this package."""


class InvalidUrlError(CodaQAError):
    """The supplied Coda URL or document ID cannot be parsed."""


class PageNotFoundError(CodaQAError):
    """No page of the document matches the requested page name."""

    def __init__(self, page_name: str) -> None:
        super().__init__(f'Page "{page_name}" not found in the document')
        self.page_name = page_name


class CodaApiError(CodaQAError):
    """A Coda REST API call failed at the transport or HTTP level."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SynthesisError(CodaQAError):
    """The chat-completion call failed or returned nothing usable."""


class InsufficientContentError(CodaQAError):
    """The extracted transcript is too short to answer from."""


class ConfigurationError(CodaQAError):
    """Settings or action inputs select an unsupported configuration."""


class MissingInputError(CodaQAError):
    """A required action input parameter is absent or blank."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Missing required input parameter: {key}")
        self.key = key


class ActionError(CodaQAError):
    """Uniform failure returned to the plugin host."""


class ActionNotFoundError(CodaQAError):
    """The plugin has no action registered under the requested key."""
