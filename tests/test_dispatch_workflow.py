import pytest

from safe_outputs.core.budget import DEFAULT_DISPATCH_INTERVAL_SECONDS
from safe_outputs.core.context import ActionContext
from safe_outputs.core.errors import GatewayError
from safe_outputs.core.models import RepoRef
from safe_outputs.handlers.base import HandlerRuntime
from safe_outputs.handlers.builtin.dispatch_workflow import DispatchWorkflowHandler, stringify_inputs

CONFIG = {
    "max": 3,
    "workflows": ["deploy", "test"],
    "workflow_files": {"deploy": ".lock.yml", "test": ".yml"},
}


def _runtime(gateway, clock, **context_kwargs):
    context = ActionContext(repository=RepoRef("octo", "repo"), **context_kwargs)
    return HandlerRuntime(gateway=gateway, context=context, clock=clock, sleep=clock.sleep)


def test_stringify_inputs():
    assert stringify_inputs({"a": 1, "b": True, "c": None, "d": {"x": [1, 2]}}) == {
        "a": "1",
        "b": "true",
        "c": "",
        "d": '{"x":[1,2]}',
    }
    assert stringify_inputs("nope") == {}


class TestDispatchWorkflowHandler:
    @pytest.mark.asyncio
    async def test_dispatches_with_head_ref(self, gateway, clock):
        handler = DispatchWorkflowHandler(CONFIG, _runtime(gateway, clock, head_ref="feature/x"))

        result = await handler({"type": "dispatch_workflow", "workflow_name": "deploy", "inputs": {"env": "prod"}})

        assert result.success
        assert gateway.calls_to("create_workflow_dispatch") == [
            ("create_workflow_dispatch", "octo", "repo", "deploy.lock.yml", "refs/heads/feature/x", {"env": "prod"})
        ]

    @pytest.mark.asyncio
    async def test_falls_back_to_repository_default_branch(self, gateway, clock):
        gateway.default_branch = "trunk"
        handler = DispatchWorkflowHandler(CONFIG, _runtime(gateway, clock))

        result = await handler({"type": "dispatch_workflow", "workflow_name": "test"})

        assert result.data["ref"] == "refs/heads/trunk"
        assert result.data["workflow_file"] == "test.yml"

    @pytest.mark.asyncio
    async def test_falls_back_to_main_when_lookup_fails(self, gateway, clock):
        gateway.errors["get_repository"] = GatewayError("boom", status=500)
        handler = DispatchWorkflowHandler(CONFIG, _runtime(gateway, clock))

        result = await handler({"type": "dispatch_workflow", "workflow_name": "test"})

        assert result.data["ref"] == "refs/heads/main"

    @pytest.mark.asyncio
    async def test_consecutive_dispatches_are_spaced(self, gateway, clock):
        handler = DispatchWorkflowHandler(CONFIG, _runtime(gateway, clock, ref="refs/heads/main"))
        dispatch_times = []
        original = gateway.create_workflow_dispatch

        async def timed_dispatch(*args):
            dispatch_times.append(clock.now)
            await original(*args)

        gateway.create_workflow_dispatch = timed_dispatch

        await handler({"type": "dispatch_workflow", "workflow_name": "deploy"})
        clock.advance(1.0)
        await handler({"type": "dispatch_workflow", "workflow_name": "test"})

        assert len(dispatch_times) == 2
        assert dispatch_times[1] - dispatch_times[0] >= DEFAULT_DISPATCH_INTERVAL_SECONDS
        assert clock.sleeps == [pytest.approx(DEFAULT_DISPATCH_INTERVAL_SECONDS - 1.0)]

    @pytest.mark.asyncio
    async def test_rejects_unlisted_workflow(self, gateway, clock):
        handler = DispatchWorkflowHandler(CONFIG, _runtime(gateway, clock))

        result = await handler({"type": "dispatch_workflow", "workflow_name": "nuke"})

        assert result.error == 'Workflow "nuke" is not in the allowed workflows list: deploy, test'
        assert gateway.calls_to("create_workflow_dispatch") == []

    @pytest.mark.asyncio
    async def test_missing_file_extension(self, gateway, clock):
        config = {"workflows": ["deploy"], "workflow_files": {}}
        handler = DispatchWorkflowHandler(config, _runtime(gateway, clock))

        result = await handler({"type": "dispatch_workflow", "workflow_name": "deploy"})

        assert result.error.startswith('Workflow "deploy" file extension not found in configuration.')

    @pytest.mark.asyncio
    async def test_empty_workflow_name(self, gateway, clock):
        handler = DispatchWorkflowHandler(CONFIG, _runtime(gateway, clock))
        result = await handler({"type": "dispatch_workflow", "workflow_name": " "})
        assert result.error == "Workflow name is empty"

    @pytest.mark.asyncio
    async def test_dispatch_failure(self, gateway, clock):
        gateway.errors["create_workflow_dispatch"] = GatewayError("Workflow does not have 'workflow_dispatch' trigger")
        handler = DispatchWorkflowHandler(CONFIG, _runtime(gateway, clock, ref="refs/heads/main"))

        result = await handler({"type": "dispatch_workflow", "workflow_name": "deploy"})

        assert result.error == (
            'Failed to dispatch workflow "deploy": Workflow does not have \'workflow_dispatch\' trigger'
        )
