"""Tests for plugin.py — action registry, dispatch and process setup."""
from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from coda_qa.action import TEXT_RESPONSE
from coda_qa.errors import ActionError, ActionNotFoundError, ConfigurationError
from coda_qa.plugin import CodaPlugin, setup_plugin


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "CODA_API_BASE_URL",
        "CODA_ROWS_PAGE_SIZE",
        "CODA_MAX_COLUMNS",
        "CODA_REQUEST_TIMEOUT",
        "CODA_FIXED_TABLE_ID",
        "CODA_FIXED_QUESTION_COLUMN",
        "CODA_FIXED_ANSWER_COLUMN",
        "OPENAI_CHAT_MODEL",
    ):
        monkeypatch.delenv(name, raising=False)


class TestCodaPlugin:
    def test_registers_all_actions(self):
        keys = [action.key for action in CodaPlugin().actions]
        assert keys == ["askCodaTable", "askCodaDocument", "getCodaContent"]

    def test_describe(self):
        described = CodaPlugin().describe()
        assert described["name"] == "Coda"
        assert len(described["actions"]) == 3

    def test_unknown_action(self):
        with pytest.raises(ActionNotFoundError, match="Unknown action 'deleteDoc'"):
            CodaPlugin().get_action("deleteDoc")

    def test_run_action_end_to_end(self, faq_url, qa_session):
        result = CodaPlugin().run_action(
            "getCodaContent",
            {"codaUrl": faq_url, "codaApiKey": "key", "renderMode": "qa"},
            session=qa_session,
        )
        assert result == {TEXT_RESPONSE: "Q: What is X?\nA: X is Y."}

    def test_run_action_uses_environment_settings(self, monkeypatch, faq_url, qa_session):
        monkeypatch.setenv("CODA_ROWS_PAGE_SIZE", "50")
        CodaPlugin().run_action("getCodaContent", {"codaUrl": faq_url, "codaApiKey": "key"}, session=qa_session)
        rows_call = qa_session.get.call_args_list[-1]
        assert rows_call.kwargs["params"] == {"limit": 50}

    def test_run_action_failure_is_uniform(self):
        session = MagicMock()
        with pytest.raises(ActionError) as excinfo:
            CodaPlugin().run_action("getCodaContent", {"codaUrl": "https://coda.io/foo", "codaApiKey": "k"}, session=session)
        assert str(excinfo.value).startswith("Failed to process the request: ")
        assert "Invalid Coda URL format" in str(excinfo.value)

    def test_bad_environment_setting_is_wrapped(self, monkeypatch, faq_url, qa_session):
        monkeypatch.setenv("CODA_ROWS_PAGE_SIZE", "abc")
        with pytest.raises(ActionError) as excinfo:
            CodaPlugin().run_action("getCodaContent", {"codaUrl": faq_url, "codaApiKey": "key"}, session=qa_session)
        assert str(excinfo.value) == "Failed to process the request: CODA_ROWS_PAGE_SIZE must be a number, got 'abc'"
        assert isinstance(excinfo.value.__cause__, ConfigurationError)
        qa_session.get.assert_not_called()


class TestSetupPlugin:
    @patch("coda_qa.plugin.configure_tracing")
    @patch("coda_qa.plugin.configure_logging")
    def test_configures_logging(self, mock_logging, mock_tracing):
        plugin = setup_plugin(log_level="DEBUG")
        assert isinstance(plugin, CodaPlugin)
        mock_logging.assert_called_once_with("DEBUG")
        mock_tracing.assert_not_called()

    @patch("coda_qa.plugin.configure_tracing")
    @patch("coda_qa.plugin.configure_logging")
    def test_configures_tracing_when_endpoint_given(self, mock_logging, mock_tracing):
        setup_plugin(log_level=None, tracing_endpoint="http://localhost:4318/v1/traces")
        mock_logging.assert_not_called()
        mock_tracing.assert_called_once_with(endpoint="http://localhost:4318/v1/traces")
