"""Reusable logging filters, the Actions annotation formatter and setup helpers."""

from __future__ import annotations

import logging
import re
import sys
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

REDACTED = "[REDACTED_SECRET]"

#: Built-in credential patterns redacted from every log record.
BUILT_IN_SECRET_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    ("GitHub Personal Access Token (classic)", re.compile(r"ghp_[0-9a-zA-Z]{36}")),
    ("GitHub Server-to-Server Token", re.compile(r"ghs_[0-9a-zA-Z]{36}")),
    ("GitHub OAuth Access Token", re.compile(r"gho_[0-9a-zA-Z]{36}")),
    ("GitHub User Access Token", re.compile(r"ghu_[0-9a-zA-Z]{36}")),
    ("GitHub Fine-grained PAT", re.compile(r"github_pat_[0-9a-zA-Z_]{82}")),
    ("GitHub Refresh Token", re.compile(r"ghr_[0-9a-zA-Z]{36}")),
    ("Azure SAS Token", re.compile(r"\?sv=[0-9-]+&s[rts]=[\w\-]+&sig=[A-Za-z0-9%+/=]+")),
    ("Google API Key", re.compile(r"AIzaSy[0-9A-Za-z_-]{33}")),
    ("Google OAuth Access Token", re.compile(r"ya29\.[0-9A-Za-z_-]+")),
    ("AWS Access Key ID", re.compile(r"AKIA[0-9A-Z]{16}")),
    ("Anthropic API Key", re.compile(r"sk-ant-api03-[a-zA-Z0-9_-]{95}")),
    ("OpenAI Project API Key", re.compile(r"sk-proj-[a-zA-Z0-9]{48,64}")),
    ("OpenAI API Key", re.compile(r"sk-[a-zA-Z0-9]{48}")),
]


class _RedactingFilter(logging.Filter, ABC):
    """Apply ``_redact_text`` to a record's message and args, recursively."""

    @abstractmethod
    def _redact_text(self, text: str) -> str:
        """Return ``text`` with sensitive values replaced."""

    def _redact(self, value: Any) -> Any:
        if isinstance(value, str):
            return self._redact_text(value)
        if isinstance(value, tuple):
            return tuple(self._redact(item) for item in value)
        if isinstance(value, list):
            return [self._redact(item) for item in value]
        if isinstance(value, dict):
            return {key: self._redact(item) for key, item in value.items()}
        return value

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = self._redact(record.msg)
        if isinstance(record.args, dict):
            record.args = self._redact(record.args)
        elif record.args:
            record.args = tuple(self._redact(_stringify(arg)) for arg in record.args)
        return True


class SecretRedactingFilter(_RedactingFilter):
    """Redact exact secret values (e.g. the token in use) from log records."""

    def __init__(self, secrets: Iterable[str]):
        super().__init__()
        # Longest first so a secret that contains another is fully replaced.
        self._secrets = sorted({str(secret) for secret in secrets if str(secret)}, key=len, reverse=True)

    def _redact_text(self, text: str) -> str:
        for secret in self._secrets:
            text = text.replace(secret, REDACTED)
        return text


class PatternRedactingFilter(_RedactingFilter):
    """Redact anything that looks like a well-known credential."""

    def __init__(self, patterns: Iterable[tuple[str, re.Pattern[str]]] | None = None):
        super().__init__()
        self._patterns = list(BUILT_IN_SECRET_PATTERNS if patterns is None else patterns)

    def _redact_text(self, text: str) -> str:
        for _name, pattern in self._patterns:
            text = pattern.sub(REDACTED, text)
        return text


class GitHubActionsFormatter(logging.Formatter):
    """Render records as GitHub Actions workflow commands.

    WARNING and above become ``::warning::``/``::error::`` annotations,
    DEBUG becomes ``::debug::`` (only shown when step debugging is on),
    INFO is printed as-is.
    """

    def __init__(self, fmt: str = "%(message)s"):
        super().__init__(fmt)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno >= logging.ERROR:
            return f"::error::{_escape_command_data(message)}"
        if record.levelno >= logging.WARNING:
            return f"::warning::{_escape_command_data(message)}"
        if record.levelno <= logging.DEBUG:
            return f"::debug::{_escape_command_data(message)}"
        return message


def install_secret_redaction(secrets: Iterable[str], target_logger: logging.Logger | None = None) -> None:
    """Attach secret redaction filter to all handlers of target logger."""
    logger = target_logger or logging.getLogger()
    redaction_filter = SecretRedactingFilter(secrets)
    for handler in logger.handlers:
        handler.addFilter(redaction_filter)


def configure_logging(
    level: int = logging.INFO,
    secrets: Iterable[str] = (),
    stream: Any = None,
) -> logging.Handler:
    """Install a single Actions-formatted, redacting handler on the root logger."""
    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, "_safe_outputs_handler", False):
            root.removeHandler(existing)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(GitHubActionsFormatter())
    handler.addFilter(PatternRedactingFilter())
    handler._safe_outputs_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level)

    secret_values = [secret for secret in secrets if secret]
    if secret_values:
        install_secret_redaction(secret_values, root)
    return handler


def _stringify(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, (list, tuple, dict)):
        return value
    return str(value)


def _escape_command_data(message: str) -> str:
    return message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
