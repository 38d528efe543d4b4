import pytest

from safe_outputs.core.context import ActionContext
from safe_outputs.core.errors import ConfigurationError
from safe_outputs.handlers.base import HandlerRuntime
from safe_outputs.handlers.builtin.close_issue import CloseIssueHandler


class TestCloseIssueHandler:
    @pytest.mark.asyncio
    async def test_closes_issue_as_completed(self, gateway, runtime):
        gateway.add_issue(7)
        handler = CloseIssueHandler({}, runtime)

        result = await handler({"type": "close_issue", "body": "Fixed in #8"})

        assert result.success
        assert result.data["number"] == 7
        assert result.data["repo"] == "octo/repo"
        assert result.data["comment_url"].endswith("#issuecomment-101")
        assert gateway.calls_to("create_comment") == [("create_comment", "octo", "repo", 7, "Fixed in #8")]
        assert gateway.calls_to("update_issue") == [("update_issue", "octo", "repo", 7, "closed", "completed")]

    @pytest.mark.asyncio
    async def test_budget_of_two(self, gateway, runtime):
        for number in (1, 2, 3):
            gateway.add_issue(number)
        handler = CloseIssueHandler({"max": 2}, runtime)

        results = [await handler({"type": "close_issue", "item_number": number}) for number in (1, 2, 3)]

        assert [result.success for result in results] == [True, True, False]
        assert results[2].error == "Max count of 2 reached"
        assert len(gateway.calls_to("update_issue")) == 2
        assert handler.processed_count == 2

    def test_env_override_takes_precedence_over_config(self, runtime):
        runtime.env = {"GH_AW_CLOSE_ISSUE_MAX": "5"}
        assert CloseIssueHandler({"max": 2}, runtime).budget.max_count == 5

        runtime.env = {}
        assert CloseIssueHandler({"max": 2}, runtime).budget.max_count == 2
        assert CloseIssueHandler({}, runtime).budget.max_count == CloseIssueHandler.default_max

    @pytest.mark.parametrize("raw", ["0", "many"])
    def test_invalid_env_override_is_a_configuration_error(self, runtime, raw):
        runtime.env = {"GH_AW_CLOSE_ISSUE_MAX": raw}
        with pytest.raises(ConfigurationError, match=f"GH_AW_CLOSE_ISSUE_MAX: Invalid max value: {raw}"):
            CloseIssueHandler({}, runtime)

    @pytest.mark.asyncio
    async def test_failed_attempts_count_against_budget(self, gateway, runtime):
        gateway.add_issue(2)
        handler = CloseIssueHandler({"max": 1}, runtime)

        first = await handler({"type": "close_issue", "item_number": 99})
        second = await handler({"type": "close_issue", "item_number": 2})

        assert not first.success
        assert first.error == "Not Found"
        assert second.error == "Max count of 1 reached"

    @pytest.mark.asyncio
    async def test_already_closed_issue_is_not_closed_again(self, gateway, runtime):
        gateway.add_issue(7, state="closed")
        handler = CloseIssueHandler({"comment": "Closing as stale"}, runtime)

        result = await handler({"type": "close_issue"})

        assert result.success
        assert result.data["already_closed"] is True
        assert gateway.calls_to("update_issue") == []
        assert len(gateway.calls_to("create_comment")) == 1
        assert gateway.calls_to("create_comment")[0][4] == "Closing as stale"

    @pytest.mark.asyncio
    async def test_required_labels(self, gateway, runtime):
        gateway.add_issue(7, labels=["stale"])
        handler = CloseIssueHandler({"required_labels": ["stale", "wontfix"]}, runtime)

        result = await handler({"type": "close_issue"})

        assert not result.success
        assert result.error == "Missing required labels: wontfix"
        assert gateway.calls_to("update_issue") == []

    @pytest.mark.asyncio
    async def test_required_title_prefix(self, gateway, runtime):
        gateway.add_issue(7, title="Something else")
        handler = CloseIssueHandler({"required_title_prefix": "[bot]"}, runtime)

        result = await handler({"type": "close_issue"})

        assert result.error == 'Title doesn\'t start with "[bot]"'

    @pytest.mark.asyncio
    async def test_resolves_temporary_id(self, gateway, runtime):
        gateway.add_issue(42)
        handler = CloseIssueHandler({}, runtime)

        result = await handler(
            {"type": "close_issue", "issue_number": "aw_ABC123"},
            {"aw_abc123": {"repo": "octo/repo", "number": 42}},
        )

        assert result.success
        assert result.data["number"] == 42

    @pytest.mark.asyncio
    async def test_invalid_issue_number(self, runtime):
        handler = CloseIssueHandler({}, runtime)
        result = await handler({"type": "close_issue", "issue_number": "abc"})
        assert result.error == "Invalid issue number: abc"

    @pytest.mark.asyncio
    async def test_cross_repo_requires_allow_list(self, gateway, runtime):
        gateway.add_issue(7)
        handler = CloseIssueHandler({"allowed_repos": ["octo/docs"]}, runtime)

        rejected = await handler({"type": "close_issue", "repo": "evil/repo"})
        allowed = await handler({"type": "close_issue", "repo": "docs"})

        assert rejected.error == "Repository 'evil/repo' is not in the allowed-repos list"
        assert allowed.success
        assert allowed.data["repo"] == "octo/docs"

    @pytest.mark.asyncio
    async def test_pull_request_event_has_no_issue(self, gateway, context):
        pr_context = ActionContext(repository=context.repository, payload={"pull_request": {"number": 5}})
        handler = CloseIssueHandler({}, HandlerRuntime(gateway=gateway, context=pr_context))

        result = await handler({"type": "close_issue"})

        assert result.error == "No issue number available"
