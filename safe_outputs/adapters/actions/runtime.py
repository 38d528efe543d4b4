"""GitHub Actions runtime: step outputs, step summary and failure status."""

import logging
import os
import uuid
from collections.abc import Mapping
from typing import Any

logger = logging.getLogger(__name__)


class ActionsRuntime:
    """Writes to the files the runner exposes through ``GITHUB_OUTPUT`` and
    ``GITHUB_STEP_SUMMARY``.

    Outputs are also kept in :attr:`outputs` so callers (and tests) can read
    back what a step produced. :meth:`set_failed` only records the failure;
    the CLI turns :attr:`exit_code` into the process status.
    """

    def __init__(self, env: Mapping[str, str] | None = None):
        env = os.environ if env is None else env
        self._output_path = env.get("GITHUB_OUTPUT") or None
        self._summary_path = env.get("GITHUB_STEP_SUMMARY") or None
        self.outputs: dict[str, str] = {}
        self.summary: list[str] = []
        self.failures: list[str] = []

    @property
    def failed(self) -> bool:
        return bool(self.failures)

    @property
    def exit_code(self) -> int:
        return 1 if self.failures else 0

    def set_output(self, name: str, value: Any) -> None:
        text = value if isinstance(value, str) else _output_value(value)
        self.outputs[name] = text
        if not self._output_path:
            logger.debug("Output %s=%s (GITHUB_OUTPUT not set)", name, text)
            return
        with open(self._output_path, "a", encoding="utf-8") as handle:
            if "\n" in text:
                delimiter = f"ghadelimiter_{uuid.uuid4()}"
                handle.write(f"{name}<<{delimiter}\n{text}\n{delimiter}\n")
            else:
                handle.write(f"{name}={text}\n")

    def write_summary(self, markdown: str) -> None:
        self.summary.append(markdown)
        if not self._summary_path:
            logger.debug("Step summary not written (GITHUB_STEP_SUMMARY not set)")
            return
        with open(self._summary_path, "a", encoding="utf-8") as handle:
            handle.write(markdown)
            if not markdown.endswith("\n"):
                handle.write("\n")

    def set_failed(self, message: str) -> None:
        """Mark the step as failed and emit an error annotation."""
        self.failures.append(message)
        logger.error(message)


def _output_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)
