"""Tests for config loading, agent output parsing and the action context."""

import json

import pytest

from safe_outputs.core.agent_output import MAX_LOG_CONTENT_LENGTH, load_agent_output, truncate_for_logging
from safe_outputs.core.config import (
    HANDLER_CONFIG_ENV,
    load_handler_config,
    load_safe_outputs_config,
    normalize_type_name,
    parse_int_templatable,
)
from safe_outputs.core.context import ActionContext
from safe_outputs.core.errors import ConfigurationError


class TestLoadConfig:
    def test_missing_file_returns_empty(self, tmp_path):
        assert load_safe_outputs_config(tmp_path / "missing.json") == {}

    def test_json_keys_are_normalized(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"close-issue": {"max": 2}, "noop": True, "junk": 3}))
        assert load_safe_outputs_config(path) == {"close_issue": {"max": 2}, "noop": {}}

    def test_yaml_config(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("remove_labels:\n  allowed:\n    - bug\n    - triage\n")
        assert load_safe_outputs_config(path) == {"remove_labels": {"allowed": ["bug", "triage"]}}

    def test_invalid_json_returns_empty(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        assert load_safe_outputs_config(path) == {}

    def test_env_overrides_are_merged(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"close_issue": {"max": 2, "required_labels": ["stale"]}}))
        env = {HANDLER_CONFIG_ENV: json.dumps({"close-issue": {"max": 5}, "add_comment": {}})}

        config = load_handler_config(path, env)

        assert config == {
            "close_issue": {"max": 5, "required_labels": ["stale"]},
            "add_comment": {},
        }

    @pytest.mark.parametrize("raw", ["{oops", "[1, 2]"])
    def test_bad_env_config_raises(self, tmp_path, raw):
        with pytest.raises(ConfigurationError):
            load_handler_config(tmp_path / "missing.json", {HANDLER_CONFIG_ENV: raw})


def test_normalize_type_name():
    assert normalize_type_name(" Close-Issue ") == "close_issue"


def test_parse_int_templatable():
    assert parse_int_templatable("12") == 12
    assert parse_int_templatable("x", default=4) == 4


class TestLoadAgentOutput:
    def test_missing_env_is_not_an_error(self):
        output = load_agent_output({})
        assert not output.success
        assert output.error is None

    def test_missing_file_reports_read_error(self, tmp_path):
        output = load_agent_output({"GH_AW_AGENT_OUTPUT": str(tmp_path / "nope.json")})
        assert not output.success
        assert output.error.startswith("Error reading agent output file")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "out.json"
        path.write_text("  \n")
        output = load_agent_output({"GH_AW_AGENT_OUTPUT": str(path)})
        assert not output.success
        assert output.error is None

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "out.json"
        path.write_text("{broken")
        output = load_agent_output({"GH_AW_AGENT_OUTPUT": str(path)})
        assert output.error.startswith("Error parsing agent output JSON")

    def test_items_must_be_a_list(self, tmp_path):
        path = tmp_path / "out.json"
        path.write_text(json.dumps({"items": {"type": "noop"}}))
        output = load_agent_output({"GH_AW_AGENT_OUTPUT": str(path)})
        assert not output.success
        assert output.error is None

    def test_valid_items(self, tmp_path):
        path = tmp_path / "out.json"
        path.write_text(json.dumps({"items": [{"type": "noop", "message": "hi"}, "junk"]}))
        output = load_agent_output({"GH_AW_AGENT_OUTPUT": str(path)})
        assert output.success
        assert output.items == [{"type": "noop", "message": "hi"}]


def test_truncate_for_logging():
    content = "x" * (MAX_LOG_CONTENT_LENGTH + 5)
    truncated = truncate_for_logging(content)
    assert truncated.endswith(f"(truncated, total length: {len(content)})")
    assert truncate_for_logging("short") == "short"


class TestActionContext:
    def test_from_env(self, tmp_path):
        event = tmp_path / "event.json"
        event.write_text(
            json.dumps(
                {
                    "issue": {"number": 12, "user": {"login": "alice", "type": "User"}},
                    "comment": {"user": {"login": "deploy-bot", "type": "Bot"}},
                    "repository": {"default_branch": "trunk"},
                }
            )
        )
        context = ActionContext.from_env(
            {
                "GITHUB_REPOSITORY": "octo/repo",
                "GITHUB_EVENT_NAME": "issue_comment",
                "GITHUB_RUN_ID": "99",
                "GITHUB_EVENT_PATH": str(event),
            }
        )

        assert context.owner == "octo"
        assert context.repo == "repo"
        assert context.issue_number == 12
        assert context.default_branch == "trunk"
        assert context.known_authors() == ["alice"]
        assert context.run_url == "https://github.com/octo/repo/actions/runs/99"

    def test_pull_request_number(self, context):
        pr_context = ActionContext(repository=context.repository, payload={"pull_request": {"number": 3}})
        assert pr_context.issue_number == 3

    def test_missing_repository_raises(self):
        with pytest.raises(ConfigurationError, match="GITHUB_REPOSITORY"):
            ActionContext.from_env({})
