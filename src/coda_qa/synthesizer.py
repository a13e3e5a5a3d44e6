from __future__ import annotations

import logging
from typing import Any

from openai import OpenAI, OpenAIError

from .errors import SynthesisError

logger = logging.getLogger(__name__)

INSUFFICIENT_INFORMATION_REPLY = "I don't have enough information to answer that question"
NO_RESPONSE_FALLBACK = "No response generated"

SYSTEM_PROMPT = (
    "You are a helpful assistant that answers questions based strictly on the provided "
    "Q&A content source document. Only use the information explicitly provided in the "
    "document to answer questions. If the answer is not available in the content, respond "
    f"with: '{INSUFFICIENT_INFORMATION_REPLY}'. Ensure you include all relevant details and "
    "nuances from the content. Do not omit important information, such as further details "
    "or links, which should be properly formatted in your response. If the content contains "
    "links, display them clearly in your answer. For longer responses, improve readability "
    "by organizing your answers into clear paragraphs."
)


def build_messages(content: str, question: str) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": f"Q&A Content:\n{content}\n\nQuestion: {question}"},
    ]


def answer_question(
    content: str,
    question: str,
    api_key: str,
    model: str,
    *,
    client: Any | None = None,
    require_answer: bool = False,
) -> str:
    """Answer `question` from `content` with a single chat-completion call.

    Args:
        content: Transcript the model must answer from.
        question: User question.
        api_key: OpenAI API key supplied with the request.
        model: Chat model name.
        client: Pre-built OpenAI client; a new one is created from `api_key` when omitted.
        require_answer: Raise instead of returning the fallback text on an empty reply.

    Returns:
        Trimmed text of the first completion choice.

    Raises:
        SynthesisError: The API call failed, or the reply is empty and `require_answer` is set.
    """
    client = client or OpenAI(api_key=api_key)
    logger.info("Requesting answer from %s (%d content chars)", model, len(content))
    try:
        completion = client.chat.completions.create(model=model, messages=build_messages(content, question))
    except OpenAIError as exc:
        raise SynthesisError(f"Failed to get OpenAI answer: {exc}") from exc

    text = ""
    if completion.choices:
        text = (completion.choices[0].message.content or "").strip()
    if text:
        return text
    if require_answer:
        raise SynthesisError("OpenAI response is empty.")
    logger.warning("Model %s returned an empty completion", model)
    return NO_RESPONSE_FALLBACK
