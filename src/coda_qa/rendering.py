"""Row rendering strategies and the instruction-prefix formatter.

A renderer turns one :class:`~coda_qa.schema.RowBatch` into text blocks, one
block per row.  Four strategies exist:

- ``table``: ``"<column>: <value>"`` lines for the leading columns of the batch
- ``qa``: ``"Q: ...\\nA: ..."`` pairs from question/answer columns, detected by name
- ``fixed``: ``"Q: ...\\nA: ..."`` pairs from two configured column ids
- ``auto``: ``qa`` when question and answer columns are both named, ``table`` otherwise
"""
from __future__ import annotations

import logging
from typing import Protocol

from .errors import ConfigurationError
from .schema import ColumnMap, RowBatch

logger = logging.getLogger(__name__)

INSTRUCTIONS_PREFIX = "Instructions for the following content: "
RENDER_MODES = ("auto", "table", "qa", "fixed")


class RowRenderer(Protocol):
    def render_batch(self, batch: RowBatch, columns: ColumnMap) -> list[str]: ...


def format_qa_pair(question: str, answer: str) -> str:
    return f"Q: {question}\nA: {answer}"


class TableDumpRenderer:
    """Render the first `max_columns` columns of each row as labelled lines."""

    def __init__(self, max_columns: int = 10) -> None:
        if max_columns < 1:
            raise ConfigurationError("max_columns must be at least 1")
        self.max_columns = max_columns

    def render_batch(self, batch: RowBatch, columns: ColumnMap) -> list[str]:
        if not batch.rows:
            return []
        column_ids = batch.rows[0].column_ids()[: self.max_columns]

        blocks: list[str] = []
        for row in batch:
            lines = []
            for column_id in column_ids:
                value = row.text(column_id)
                if value is None:
                    continue
                lines.append(f"{columns.name_for(column_id)}: {value}")
            if lines:
                blocks.append("\n".join(lines))
            else:
                logger.debug("Skipped row %s: no text values", row.row_id)
        return blocks


class QuestionAnswerRenderer:
    """Render question/answer pairs, locating the columns by name.

    Columns whose names contain ``question`` and ``answer`` (any case) are
    used when both exist; otherwise the first two columns of the row are.
    """

    def render_batch(self, batch: RowBatch, columns: ColumnMap) -> list[str]:
        if not batch.rows:
            return []
        row_columns = batch.rows[0].column_ids()
        question_column = columns.find("question", among=row_columns)
        answer_column = columns.find("answer", among=row_columns)

        if question_column is None or answer_column is None:
            logger.info("Could not identify question and answer columns. Using first two columns as fallback.")
            if len(row_columns) < 2:
                logger.info("Rows carry fewer than two columns; nothing to render")
                return []
            question_column, answer_column = row_columns[0], row_columns[1]

        blocks: list[str] = []
        for row in batch:
            question = row.text(question_column)
            answer = row.text(answer_column)
            if question is None or answer is None:
                logger.debug("Skipped row %s: invalid question or answer type", row.row_id)
                continue
            blocks.append(format_qa_pair(question, answer))
        return blocks


class FixedColumnsRenderer:
    """Render question/answer pairs from two known column ids."""

    def __init__(self, question_column_id: str, answer_column_id: str) -> None:
        if not question_column_id or not answer_column_id:
            raise ConfigurationError("Fixed rendering needs both a question and an answer column id")
        self.question_column_id = question_column_id
        self.answer_column_id = answer_column_id

    def render_batch(self, batch: RowBatch, columns: ColumnMap) -> list[str]:
        blocks: list[str] = []
        for row in batch:
            question = row.value(self.question_column_id)
            answer = row.value(self.answer_column_id)
            if question and answer:
                blocks.append(format_qa_pair(str(question), str(answer)))
        return blocks


class AutoRenderer:
    """Render question/answer pairs when the columns are named that way, labelled lines otherwise."""

    def __init__(self, max_columns: int = 10) -> None:
        self.table = TableDumpRenderer(max_columns=max_columns)
        self.qa = QuestionAnswerRenderer()

    def render_batch(self, batch: RowBatch, columns: ColumnMap) -> list[str]:
        if not batch.rows:
            return []
        row_columns = batch.rows[0].column_ids()
        if columns.find("question", among=row_columns) and columns.find("answer", among=row_columns):
            return self.qa.render_batch(batch, columns)
        return self.table.render_batch(batch, columns)


def build_renderer(
    mode: str,
    *,
    max_columns: int = 10,
    question_column_id: str = "",
    answer_column_id: str = "",
) -> RowRenderer:
    """Select a row renderer by mode name.

    Args:
        mode: One of ``auto``, ``table``, ``qa`` or ``fixed``.
        max_columns: Column cap for the ``table`` and ``auto`` modes.
        question_column_id: Question column for the ``fixed`` mode.
        answer_column_id: Answer column for the ``fixed`` mode.

    Returns:
        Renderer instance for the requested mode.

    Raises:
        ConfigurationError: Unknown mode or incomplete fixed-mode columns.
    """
    if mode == "auto":
        return AutoRenderer(max_columns=max_columns)
    if mode == "table":
        return TableDumpRenderer(max_columns=max_columns)
    if mode == "qa":
        return QuestionAnswerRenderer()
    if mode == "fixed":
        return FixedColumnsRenderer(question_column_id, answer_column_id)
    raise ConfigurationError(f"Unknown render mode '{mode}'. Expected one of {RENDER_MODES}")


def apply_instructions(transcript: str, instructions: str | None = None) -> str:
    if instructions and instructions.strip():
        return f"{INSTRUCTIONS_PREFIX}{instructions}\n\n{transcript}"
    return transcript
