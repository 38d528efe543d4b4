import json
from unittest.mock import patch

import pytest

from safe_outputs.core.errors import SecurityError, ValidationError
from safe_outputs.core.models import SafeOutputMessage, SarifLevel
from safe_outputs.handlers.builtin.create_code_scanning_alert import (
    SARIF_VERSION,
    CreateCodeScanningAlertHandler,
    parse_finding,
)


def _alert(**fields):
    message = {
        "type": "create_code_scanning_alert",
        "file": "src/app.py",
        "line": 10,
        "severity": "error",
        "message": "SQL injection",
    }
    message.update(fields)
    return message


class TestParseFinding:
    def test_defaults(self):
        finding = parse_finding(SafeOutputMessage.from_dict(_alert(severity="Info", line="12")))
        assert finding.line == 12
        assert finding.column == 1
        assert finding.severity == "info"
        assert finding.sarif_level is SarifLevel.NOTE

    @pytest.mark.parametrize(
        "fields, error",
        [
            ({"file": ""}, 'Missing required field "file"'),
            ({"line": 0}, 'Missing or invalid required field "line"'),
            ({"line": "abc"}, "Invalid line number: abc"),
            ({"severity": None}, 'Missing or invalid required field "severity"'),
            ({"severity": "critical"}, "Invalid severity level: critical (must be error, warning, info, or note)"),
            ({"message": ""}, 'Missing or invalid required field "message"'),
            ({"column": -1}, "Invalid column number: -1"),
            ({"column": [1]}, 'Invalid field "column" (must be number or string)'),
            ({"ruleIdSuffix": 5}, 'Invalid field "ruleIdSuffix" (must be string)'),
            ({"ruleIdSuffix": "  "}, 'Invalid field "ruleIdSuffix" (cannot be empty)'),
        ],
    )
    def test_invalid_fields(self, fields, error):
        with pytest.raises(ValidationError) as exc_info:
            parse_finding(SafeOutputMessage.from_dict(_alert(**fields)))
        assert str(exc_info.value) == error

    def test_rule_id_suffix_characters(self):
        with pytest.raises(ValidationError, match="must contain only alphanumeric characters"):
            parse_finding(SafeOutputMessage.from_dict(_alert(ruleIdSuffix="a b")))


class TestCreateCodeScanningAlertHandler:
    @pytest.mark.asyncio
    async def test_writes_sarif_after_each_finding(self, tmp_path, runtime):
        config = {"output_dir": str(tmp_path), "workflow_filename": "security-scan"}
        handler = CreateCodeScanningAlertHandler(config, runtime)

        first = await handler(_alert(ruleIdSuffix="sql-injection"))
        second = await handler(_alert(file="src/b.py", line=3, column=7, severity="warning"))

        assert first.success and second.success
        sarif = json.loads((tmp_path / "code-scanning-alert.sarif").read_text())
        assert sarif["version"] == SARIF_VERSION
        results = sarif["runs"][0]["results"]
        assert [result["ruleId"] for result in results] == [
            "security-scan-sql-injection",
            "security-scan-security-finding-2",
        ]
        assert results[1]["level"] == "warning"
        assert results[1]["locations"][0]["physicalLocation"]["region"] == {"startLine": 3, "startColumn": 7}
        assert runtime.actions.outputs["findings_count"] == "2"
        assert runtime.actions.outputs["codeql_uploaded"] == "pending"

    @pytest.mark.asyncio
    async def test_invalid_findings_do_not_consume_budget(self, tmp_path, runtime):
        handler = CreateCodeScanningAlertHandler({"output_dir": str(tmp_path), "max": 1}, runtime)

        invalid = await handler(_alert(severity="bogus"))
        valid = await handler(_alert())
        over = await handler(_alert())

        assert not invalid.success
        assert valid.success
        assert over.error == "Max count of 1 reached"

    @pytest.mark.asyncio
    async def test_failed_write_drops_finding(self, tmp_path, runtime):
        handler = CreateCodeScanningAlertHandler({"output_dir": str(tmp_path), "max": 1}, runtime)
        real_write = handler.write_sarif
        attempts = []

        def flaky_write():
            attempts.append(True)
            if len(attempts) == 1:
                raise OSError("disk full")
            real_write()

        with patch.object(handler, "write_sarif", side_effect=flaky_write):
            failed = await handler(_alert(file="src/lost.py"))
            written = await handler(_alert())
            over = await handler(_alert())

        assert failed.error == "Failed to write SARIF file: disk full"
        assert written.success
        assert over.error == "Max count of 1 reached"
        results = json.loads((tmp_path / "code-scanning-alert.sarif").read_text())["runs"][0]["results"]
        assert len(results) == 1
        assert results[0]["ruleId"] == "workflow-security-finding-1"
        assert results[0]["locations"][0]["physicalLocation"]["artifactLocation"]["uri"] == "src/app.py"

    @pytest.mark.asyncio
    async def test_unlimited_by_default(self, tmp_path, runtime):
        handler = CreateCodeScanningAlertHandler({"output_dir": str(tmp_path)}, runtime)
        for _ in range(5):
            assert (await handler(_alert())).success
        assert handler.processed_count == 5

    def test_sarif_file_must_stay_in_output_dir(self, tmp_path, runtime):
        with pytest.raises(SecurityError, match="SARIF output file must be within"):
            CreateCodeScanningAlertHandler({"output_dir": str(tmp_path), "sarif_file": "../escape.sarif"}, runtime)
