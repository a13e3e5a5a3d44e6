from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import requests

from .action import DEFAULT_ACTIONS, ActionContext, ActionDefinition
from .errors import ActionNotFoundError
from .logging_config import configure_logging
from .settings import load_settings
from .tracing import configure_tracing


@dataclass
class CodaPlugin:
    """Registry of Coda actions exposed to a plugin host."""

    name: str = "Coda"
    description: str = "Plugin for Coda"
    actions: list[ActionDefinition] = field(default_factory=lambda: list(DEFAULT_ACTIONS))

    def get_action(self, key: str) -> ActionDefinition:
        for action in self.actions:
            if action.key == key:
                return action
        raise ActionNotFoundError(f"Unknown action '{key}'. Available: {[a.key for a in self.actions]}")

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "actions": [action.describe() for action in self.actions],
        }

    def run_action(
        self,
        key: str,
        inputs: dict[str, Any],
        *,
        session: requests.Session | None = None,
        openai_client: Any | None = None,
    ) -> dict[str, str]:
        """Run one action with settings freshly loaded from the environment.

        Args:
            key: Action key, e.g. ``askCodaTable``.
            inputs: Named text parameters sent by the host.
            session: Optional HTTP session used for Coda API calls.
            openai_client: Optional pre-built OpenAI client.

        Returns:
            Mapping with the single ``textResponse`` output.

        Raises:
            ActionNotFoundError: No action is registered under ``key``.
            ActionError: Settings, inputs or the pipeline failed.
        """
        action = self.get_action(key)

        def build_context() -> ActionContext:
            coda_settings, openai_settings = load_settings()
            return ActionContext(
                input=dict(inputs),
                coda_settings=coda_settings,
                openai_settings=openai_settings,
                session=session,
                openai_client=openai_client,
            )

        return action.invoke(build_context)


def setup_plugin(log_level: str | None = "INFO", tracing_endpoint: str | None = None) -> CodaPlugin:
    """Configure process-wide logging and, when an endpoint is given, tracing."""
    if log_level:
        configure_logging(log_level)
    if tracing_endpoint:
        configure_tracing(endpoint=tracing_endpoint)
    return CodaPlugin()
