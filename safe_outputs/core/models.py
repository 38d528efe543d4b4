"""Core data models for safe-output processing."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SarifLevel(Enum):
    """SARIF result levels accepted by code scanning."""

    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"


#: Agent-facing severity strings mapped onto SARIF levels.
SEVERITY_TO_SARIF_LEVEL: dict[str, SarifLevel] = {
    "error": SarifLevel.ERROR,
    "warning": SarifLevel.WARNING,
    "info": SarifLevel.NOTE,
    "note": SarifLevel.NOTE,
}


@dataclass(frozen=True)
class SafeOutputMessage:
    """A single agent-emitted mutation request.

    ``fields`` holds the raw, untrusted payload (including ``type``).
    """

    type: str
    fields: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "SafeOutputMessage":
        message_type = raw.get("type")
        if not isinstance(message_type, str) or not message_type.strip():
            message_type = ""
        return cls(type=message_type.strip(), fields=dict(raw))

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)

    def has(self, key: str) -> bool:
        return key in self.fields and self.fields[key] is not None


@dataclass(frozen=True)
class ProcessingResult:
    """Outcome of handling one message.

    ``data`` carries type-specific fields used to build the run summary.
    """

    success: bool
    error: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, **data: Any) -> "ProcessingResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, **data: Any) -> "ProcessingResult":
        return cls(success=False, error=error, data=data)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": self.success}
        if self.error is not None:
            payload["error"] = self.error
        payload.update(self.data)
        return payload


@dataclass(frozen=True)
class RepoRef:
    """An ``owner/name`` repository reference."""

    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @classmethod
    def parse(cls, slug: str) -> "RepoRef":
        owner, _, name = slug.strip().partition("/")
        if not owner or not name or "/" in name:
            raise ValueError(f"Invalid repository slug: {slug!r}")
        return cls(owner=owner, name=name)

    def __str__(self) -> str:
        return self.full_name


@dataclass(frozen=True)
class CodeScanningFinding:
    """A validated security finding destined for the SARIF report."""

    file: str
    line: int
    column: int
    severity: str
    sarif_level: SarifLevel
    message: str
    rule_id_suffix: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "severity": self.severity,
            "sarif_level": self.sarif_level.value,
            "message": self.message,
            "rule_id_suffix": self.rule_id_suffix,
        }


@dataclass
class RunSummary:
    """Aggregated per-message results for one dispatch run."""

    results: list[tuple[str, ProcessingResult]] = field(default_factory=list)

    def add(self, message_type: str, result: ProcessingResult) -> None:
        self.results.append((message_type, result))

    @property
    def success_count(self) -> int:
        return sum(1 for _, result in self.results if result.success)

    @property
    def failure_count(self) -> int:
        return len(self.results) - self.success_count

    @property
    def success(self) -> bool:
        return self.failure_count == 0

    def to_markdown(self) -> str:
        lines = [
            "## Safe Outputs",
            "",
            f"Processed {len(self.results)} message(s): "
            f"{self.success_count} succeeded, {self.failure_count} failed.",
        ]
        if not self.results:
            return "\n".join(lines) + "\n"
        lines += ["", "| # | Type | Status | Details |", "|---|---|---|---|"]
        for index, (message_type, result) in enumerate(self.results, start=1):
            status = "✅" if result.success else "❌"
            details = result.error or _summarize_data(result.data)
            details = details.replace("|", "\\|").replace("\n", " ")
            lines.append(f"| {index} | `{message_type}` | {status} | {details} |")
        return "\n".join(lines) + "\n"


def _summarize_data(data: dict[str, Any]) -> str:
    for key in ("url", "repo", "number", "workflow_name", "message"):
        value = data.get(key)
        if value:
            return str(value)
    return ""
