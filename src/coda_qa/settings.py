from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable

from dotenv import load_dotenv

from .errors import ConfigurationError

DEFAULT_CODA_API_BASE_URL = "https://coda.io/apis/v1"
DEFAULT_CHAT_MODEL = "gpt-4o-mini"


@dataclass(slots=True)
class CodaSettings:
    """Coda REST API access and transcript shaping options.

    The three `fixed_*` fields describe a single known table and its question
    and answer column ids, used by the fixed-schema document action.
    """

    api_base_url: str = DEFAULT_CODA_API_BASE_URL
    rows_page_size: int = 100
    max_columns: int = 10
    request_timeout: float = 30.0
    fixed_table_id: str = ""
    fixed_question_column: str = ""
    fixed_answer_column: str = ""


@dataclass(slots=True)
class OpenAISettings:
    """Runtime model configuration for answer generation."""

    chat_model: str = DEFAULT_CHAT_MODEL


def _env_number(name: str, default: str, cast: Callable[[str], int | float]) -> int | float:
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc


def load_settings() -> tuple[CodaSettings, OpenAISettings]:
    """Load environment-backed settings and return typed config objects.

    API keys are deliberately absent: they arrive with every action request.

    Returns:
        Tuple containing Coda access settings and OpenAI model settings.

    Raises:
        ConfigurationError: A numeric variable does not parse.
    """
    load_dotenv()
    return (
        CodaSettings(
            api_base_url=os.getenv("CODA_API_BASE_URL", DEFAULT_CODA_API_BASE_URL).rstrip("/"),
            rows_page_size=_env_number("CODA_ROWS_PAGE_SIZE", "100", int),
            max_columns=_env_number("CODA_MAX_COLUMNS", "10", int),
            request_timeout=_env_number("CODA_REQUEST_TIMEOUT", "30", float),
            fixed_table_id=os.getenv("CODA_FIXED_TABLE_ID", ""),
            fixed_question_column=os.getenv("CODA_FIXED_QUESTION_COLUMN", ""),
            fixed_answer_column=os.getenv("CODA_FIXED_ANSWER_COLUMN", ""),
        ),
        OpenAISettings(
            chat_model=os.getenv("OPENAI_CHAT_MODEL", DEFAULT_CHAT_MODEL),
        ),
    )
