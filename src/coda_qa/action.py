"""Plugin actions: parameter schemas and request handlers.

Every handler runs the same linear pipeline (resolve document, read tables,
format, optionally answer) and differs only in inputs and render strategy.
:meth:`ActionDefinition.invoke` is the single place where failures are turned
into the uniform ``Failed to process the request: ...`` error.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

import requests

from .coda_client import CodaClient
from .errors import ActionError, ConfigurationError, InsufficientContentError, MissingInputError
from .reader import NO_ROWS_NOTE, CodaReader
from .rendering import RowRenderer, apply_instructions, build_renderer
from .schema import DocumentRef, InputParameter, OutputParameter
from .settings import CodaSettings, OpenAISettings
from .synthesizer import answer_question
from .tracing import ATTR_ACTION_KEY, ATTR_OUTPUT_VALUE, get_tracer, traced_read, traced_synthesis
from .url_parsing import parse_coda_url, resolve_document_ref

logger = logging.getLogger(__name__)

TEXT_RESPONSE = "textResponse"
MIN_CONTENT_LENGTH = 5
FAILURE_PREFIX = "Failed to process the request: "


@dataclass
class ActionContext:
    """Inputs of one action invocation plus the collaborators it may use."""

    input: dict[str, Any]
    coda_settings: CodaSettings = field(default_factory=CodaSettings)
    openai_settings: OpenAISettings = field(default_factory=OpenAISettings)
    session: requests.Session | None = None
    openai_client: Any | None = None

    def get(self, key: str) -> str:
        value = self.input.get(key)
        if value is None:
            return ""
        return str(value).strip()

    def raw(self, key: str) -> str:
        """Input value exactly as sent, for free text whose whitespace matters."""
        value = self.input.get(key)
        return "" if value is None else str(value)


@dataclass
class ActionDefinition:
    """Action as registered with the plugin host."""

    key: str
    name: str
    description: str
    handler: Callable[[ActionContext], str]
    input_parameters: list[InputParameter]
    output_parameters: list[OutputParameter]
    type: str = "read"

    def describe(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "name": self.name,
            "description": self.description,
            "type": self.type,
            "inputParameters": [_describe_parameter(p) for p in self.input_parameters],
            "outputParameters": [_describe_parameter(p) for p in self.output_parameters],
        }

    def validate(self, context: ActionContext) -> None:
        for parameter in self.input_parameters:
            if parameter.required and not context.get(parameter.key):
                raise MissingInputError(parameter.key)

    def run(self, context: ActionContext) -> dict[str, str]:
        return self.invoke(lambda: context)

    def invoke(self, build_context: Callable[[], ActionContext]) -> dict[str, str]:
        """Build the context and run the handler, turning any failure into one ActionError.

        Context building happens inside the boundary so that configuration
        errors reach the host in the same shape as pipeline errors.
        """
        tracer = get_tracer(__name__)
        with tracer.start_as_current_span("coda-action") as span:
            span.set_attribute(ATTR_ACTION_KEY, self.key)
            try:
                context = build_context()
                self.validate(context)
                text = self.handler(context)
            except Exception as exc:
                logger.error("Action %s failed: %s", self.key, exc)
                raise ActionError(f"{FAILURE_PREFIX}{exc}") from exc
            span.set_attribute(ATTR_OUTPUT_VALUE, text[:500])
        return {TEXT_RESPONSE: text}


def _describe_parameter(parameter: InputParameter | OutputParameter) -> dict[str, Any]:
    return {
        "key": parameter.key,
        "name": parameter.name,
        "description": parameter.description,
        "type": parameter.type,
        "validation": {"required": parameter.required},
    }


def read_transcript(
    context: ActionContext,
    ref: DocumentRef,
    renderer: RowRenderer,
    table_id: str | None = None,
) -> str:
    client = CodaClient(context.get("codaApiKey"), context.coda_settings, session=context.session)
    read = traced_read(CodaReader(client).read, get_tracer(__name__))
    return read(ref, renderer, table_id=table_id)


def synthesize_answer(
    context: ActionContext,
    transcript: str,
    question: str,
    api_key_param: str,
    model_param: str,
    *,
    require_answer: bool = False,
) -> str:
    model = context.get(model_param) or context.openai_settings.chat_model
    answer = traced_synthesis(answer_question, get_tracer(__name__), model_name=model)
    return answer(
        transcript,
        question,
        context.get(api_key_param),
        model,
        client=context.openai_client,
        require_answer=require_answer,
    )


def ask_coda_table(context: ActionContext) -> str:
    ref = parse_coda_url(context.get("codaUrl"))
    transcript = read_transcript(context, ref, build_renderer("qa"))
    return synthesize_answer(context, transcript, context.get("userQuestion"), "openAiApiKey", "openAiModel")


def ask_coda_document(context: ActionContext) -> str:
    settings = context.coda_settings
    ref = resolve_document_ref(context.get("codaDocumentId"))
    table_id = context.get("tableId") or settings.fixed_table_id
    if not table_id:
        raise ConfigurationError("No Coda table configured for document questions (set CODA_FIXED_TABLE_ID)")
    renderer = build_renderer(
        "fixed",
        question_column_id=context.get("questionColumnId") or settings.fixed_question_column,
        answer_column_id=context.get("answerColumnId") or settings.fixed_answer_column,
    )

    transcript = read_transcript(context, ref, renderer, table_id=table_id)
    if len(transcript) < MIN_CONTENT_LENGTH or transcript == NO_ROWS_NOTE:
        raise InsufficientContentError("The extracted content is too short or insufficient.")
    return synthesize_answer(
        context,
        transcript,
        context.get("question"),
        "openaiApiKey",
        "openaiModel",
        require_answer=True,
    )


def get_coda_content(context: ActionContext) -> str:
    ref = resolve_document_ref(context.get("codaUrl"))
    renderer = build_renderer(
        context.get("renderMode") or "auto",
        max_columns=context.coda_settings.max_columns,
    )
    transcript = read_transcript(context, ref, renderer)
    return apply_instructions(transcript, context.raw("instructions"))


_CODA_API_KEY = InputParameter(
    key="codaApiKey",
    name="Coda API Key",
    description="Your Coda API key",
)
_OPENAI_API_KEY = InputParameter(
    key="openAiApiKey",
    name="OpenAI API Key",
    description="Your OpenAI API key without any restrictions",
)
_OPENAI_MODEL = InputParameter(
    key="openAiModel",
    name="OpenAI Model",
    description="The OpenAI model to use (e.g., gpt-4o-mini). Defaults to OPENAI_CHAT_MODEL.",
    required=False,
)

ASK_CODA_TABLE = ActionDefinition(
    key="askCodaTable",
    name="Ask Coda Table",
    description=(
        "Answer questions from a table in a Coda document with question and answer columns."
    ),
    handler=ask_coda_table,
    input_parameters=[
        InputParameter(
            key="codaUrl",
            name="Coda Page URL",
            description="The full URL of the Coda page containing the Q&A table",
        ),
        _CODA_API_KEY,
        _OPENAI_API_KEY,
        _OPENAI_MODEL,
        InputParameter(
            key="userQuestion",
            name="User Question",
            description="The question to be answered based on the Coda Q&A table",
        ),
    ],
    output_parameters=[
        OutputParameter(
            key=TEXT_RESPONSE,
            name="Text Response",
            description="The answer to the user question based on the Coda Q&A table",
        )
    ],
)

ASK_CODA_DOCUMENT = ActionDefinition(
    key="askCodaDocument",
    name="Ask Coda Document",
    description=(
        "Answer questions from a knowledge base table in a private Coda document, "
        "addressed by document ID and a configured table and column layout."
    ),
    handler=ask_coda_document,
    input_parameters=[
        InputParameter(
            key="codaDocumentId",
            name="Coda Document ID",
            description="The ID of the private Coda document to fetch knowledge content from.",
        ),
        _CODA_API_KEY,
        InputParameter(
            key="openaiApiKey",
            name="OpenAI API Key",
            description="Your OpenAI API key without any restrictions",
        ),
        InputParameter(
            key="openaiModel",
            name="OpenAI Model",
            description="The OpenAI model to use (e.g., gpt-4o-mini). Defaults to OPENAI_CHAT_MODEL.",
            required=False,
        ),
        InputParameter(
            key="question",
            name="User Question",
            description="The question asked by the user about the particular knowledge base.",
        ),
        InputParameter(
            key="tableId",
            name="Table ID",
            description="Knowledge base table. Defaults to CODA_FIXED_TABLE_ID.",
            required=False,
        ),
        InputParameter(
            key="questionColumnId",
            name="Question Column ID",
            description="Column holding questions. Defaults to CODA_FIXED_QUESTION_COLUMN.",
            required=False,
        ),
        InputParameter(
            key="answerColumnId",
            name="Answer Column ID",
            description="Column holding answers. Defaults to CODA_FIXED_ANSWER_COLUMN.",
            required=False,
        ),
    ],
    output_parameters=[OutputParameter(key=TEXT_RESPONSE, name="Text response")],
)

GET_CODA_CONTENT = ActionDefinition(
    key="getCodaContent",
    name="Get Coda Content",
    description="Return the table content of a Coda page as text, optionally prefixed with processing instructions.",
    handler=get_coda_content,
    input_parameters=[
        InputParameter(
            key="codaUrl",
            name="Coda Page URL or Document ID",
            description="The URL of the Coda page, or a document ID to read every table of the document",
        ),
        _CODA_API_KEY,
        InputParameter(
            key="instructions",
            name="Instructions",
            description="Optional instructions on how the content should be processed",
            required=False,
        ),
        InputParameter(
            key="renderMode",
            name="Render Mode",
            description=(
                "'auto' (default) for question/answer pairs when the table has question and answer "
                "columns and column/value lines otherwise, 'table' for column/value lines, "
                "or 'qa' for question/answer pairs"
            ),
            required=False,
        ),
    ],
    output_parameters=[
        OutputParameter(
            key=TEXT_RESPONSE,
            name="Text Response",
            description="The table content of the Coda page",
        )
    ],
)

DEFAULT_ACTIONS = (ASK_CODA_TABLE, ASK_CODA_DOCUMENT, GET_CODA_CONTENT)
