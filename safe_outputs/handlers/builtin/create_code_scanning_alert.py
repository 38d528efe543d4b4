"""Built-in handler: collect security findings into a SARIF report."""

import json
import logging
import os
import re
from typing import Any

from safe_outputs.core.errors import ValidationError
from safe_outputs.core.models import (
    SEVERITY_TO_SARIF_LEVEL,
    CodeScanningFinding,
    ProcessingResult,
    SafeOutputMessage,
)
from safe_outputs.core.paths import validate_path_within_base
from safe_outputs.core.validation import parse_leading_int
from safe_outputs.handlers.base import ResolvedIds, SafeOutputHandler

logger = logging.getLogger(__name__)

SARIF_SCHEMA = "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/master/Schemata/sarif-schema-2.1.0.json"
SARIF_VERSION = "2.1.0"
DEFAULT_DRIVER = "GitHub Agentic Workflows Security Scanner"
DEFAULT_SARIF_FILE = "code-scanning-alert.sarif"

_RULE_ID_SUFFIX = re.compile(r"^[a-zA-Z0-9_-]+$")


def build_sarif(findings: list[CodeScanningFinding], driver: str, workflow_filename: str) -> dict[str, Any]:
    """Render findings as a single-run SARIF 2.1.0 document."""
    results = []
    for index, finding in enumerate(findings, start=1):
        if finding.rule_id_suffix:
            rule_id = f"{workflow_filename}-{finding.rule_id_suffix}"
        else:
            rule_id = f"{workflow_filename}-security-finding-{index}"
        results.append(
            {
                "ruleId": rule_id,
                "message": {"text": finding.message},
                "level": finding.sarif_level.value,
                "locations": [
                    {
                        "physicalLocation": {
                            "artifactLocation": {"uri": finding.file},
                            "region": {"startLine": finding.line, "startColumn": finding.column},
                        }
                    }
                ],
            }
        )
    return {
        "$schema": SARIF_SCHEMA,
        "version": SARIF_VERSION,
        "runs": [
            {
                "tool": {
                    "driver": {
                        "name": driver,
                        "version": "1.0.0",
                        "informationUri": "https://github.com/github/gh-aw",
                    }
                },
                "results": results,
            }
        ],
    }


def parse_finding(message: SafeOutputMessage) -> CodeScanningFinding:
    """Validate one alert message; raises :class:`ValidationError`."""
    file = message.get("file")
    if not isinstance(file, str) or not file.strip():
        raise ValidationError('Missing required field "file"')

    raw_line = message.get("line")
    if isinstance(raw_line, bool) or not isinstance(raw_line, (int, str)) or raw_line in ("", 0):
        raise ValidationError('Missing or invalid required field "line"')

    severity = message.get("severity")
    if not isinstance(severity, str) or not severity:
        raise ValidationError('Missing or invalid required field "severity"')

    text = message.get("message")
    if not isinstance(text, str) or not text:
        raise ValidationError('Missing or invalid required field "message"')

    line = parse_leading_int(raw_line)
    if line is None or line <= 0:
        raise ValidationError(f"Invalid line number: {raw_line}")

    column = 1
    if message.has("column"):
        raw_column = message.get("column")
        if isinstance(raw_column, bool) or not isinstance(raw_column, (int, str)):
            raise ValidationError('Invalid field "column" (must be number or string)')
        parsed_column = parse_leading_int(raw_column)
        if parsed_column is None or parsed_column <= 0:
            raise ValidationError(f"Invalid column number: {raw_column}")
        column = parsed_column

    rule_id_suffix = None
    if message.has("ruleIdSuffix"):
        raw_suffix = message.get("ruleIdSuffix")
        if not isinstance(raw_suffix, str):
            raise ValidationError('Invalid field "ruleIdSuffix" (must be string)')
        suffix = raw_suffix.strip()
        if not suffix:
            raise ValidationError('Invalid field "ruleIdSuffix" (cannot be empty)')
        if not _RULE_ID_SUFFIX.match(suffix):
            raise ValidationError(
                f'Invalid ruleIdSuffix "{suffix}" '
                "(must contain only alphanumeric characters, hyphens, and underscores)"
            )
        rule_id_suffix = suffix

    normalized = severity.lower()
    level = SEVERITY_TO_SARIF_LEVEL.get(normalized)
    if level is None:
        raise ValidationError(f"Invalid severity level: {severity} (must be error, warning, info, or note)")

    return CodeScanningFinding(
        file=file.strip(),
        line=line,
        column=column,
        severity=normalized,
        sarif_level=level,
        message=text.strip(),
        rule_id_suffix=rule_id_suffix,
    )


class CreateCodeScanningAlertHandler(SafeOutputHandler):
    """Accumulate findings and rewrite the SARIF file after each valid one.

    Config: ``max`` (``0``, the default, means unlimited), ``driver``,
    ``workflow_filename``, ``output_dir`` (defaults to the working
    directory) and ``sarif_file``. The SARIF path must stay inside
    ``output_dir``; a path that escapes it fails handler construction.
    """

    handler_type = "create_code_scanning_alert"
    default_max = 0
    zero_is_unlimited = True
    count_attempts = False

    def __init__(self, config, runtime):
        super().__init__(config, runtime)
        self.driver = str(self.config.get("driver") or DEFAULT_DRIVER)
        self.workflow_filename = str(self.config.get("workflow_filename") or "workflow")
        base_dir = str(self.config.get("output_dir") or os.getcwd())
        sarif_name = str(self.config.get("sarif_file") or DEFAULT_SARIF_FILE)
        self.sarif_path = validate_path_within_base(
            os.path.join(base_dir, sarif_name), base_dir, "SARIF output file"
        )
        self.findings: list[CodeScanningFinding] = []
        logger.info("Driver name: %s", self.driver)
        logger.info("Workflow filename for rule ID prefix: %s", self.workflow_filename)

    def write_sarif(self) -> None:
        document = build_sarif(self.findings, self.driver, self.workflow_filename)
        os.makedirs(os.path.dirname(self.sarif_path), exist_ok=True)
        with open(self.sarif_path, "w", encoding="utf-8") as handle:
            json.dump(document, handle, indent=2)
        logger.info("Updated SARIF file with %d finding(s): %s", len(self.findings), self.sarif_path)

    async def handle(self, message: SafeOutputMessage, resolved_ids: ResolvedIds) -> ProcessingResult:
        finding = parse_finding(message)
        self.findings.append(finding)
        logger.info(
            "Added security finding %d: %s in %s:%d",
            len(self.findings),
            finding.severity,
            finding.file,
            finding.line,
        )

        try:
            self.write_sarif()
        except OSError as exc:
            self.findings.pop()
            logger.error("Failed to write SARIF file: %s", exc)
            return ProcessingResult.fail(f"Failed to write SARIF file: {exc}")

        actions = self.runtime.actions
        actions.set_output("sarif_file", self.sarif_path)
        actions.set_output("findings_count", len(self.findings))
        actions.set_output("artifact_uploaded", "pending")
        actions.set_output("codeql_uploaded", "pending")

        return ProcessingResult.ok(
            finding=finding.to_dict(),
            findings_count=len(self.findings),
            sarif_file=self.sarif_path,
        )


def register_handlers(registry) -> None:
    """Register the built-in create_code_scanning_alert handler in a HandlerRegistry."""
    registry.register_factory(
        name="create_code_scanning_alert",
        version="0.1.0",
        factory=CreateCodeScanningAlertHandler,
        description="Accumulate security findings into a SARIF 2.1.0 report",
    )
