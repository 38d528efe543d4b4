"""Shared fakes for handler and script tests."""

import pytest

from safe_outputs.adapters.actions.runtime import ActionsRuntime
from safe_outputs.adapters.github.base import Comment, Discussion, GitHubGateway, GitHubUser, Issue, Repository
from safe_outputs.core.context import ActionContext
from safe_outputs.core.errors import GatewayError
from safe_outputs.core.models import RepoRef
from safe_outputs.handlers.base import HandlerRuntime


class FakeGateway(GitHubGateway):
    """In-memory GitHub with call recording.

    Set ``errors[method_name]`` to make a method raise.
    """

    def __init__(self):
        self.issues: dict[int, Issue] = {}
        self.calls: list[tuple] = []
        self.errors: dict[str, Exception] = {}
        self.label_errors: dict[str, GatewayError] = {}
        self.collaborators: list[GitHubUser] = []
        self.users: dict[str, GitHubUser] = {}
        self.permissions: dict[str, str] = {}
        self.search_results: list[Issue] = []
        self.discussion_results: list[Discussion] = []
        self.assignable: set[str] | None = None
        self.default_branch = "main"
        self._next_comment_id = 100

    def add_issue(self, number: int, **kwargs) -> Issue:
        issue = Issue(
            number=number,
            title=kwargs.pop("title", f"Issue {number}"),
            body=kwargs.pop("body", ""),
            state=kwargs.pop("state", "open"),
            url=f"https://github.com/octo/repo/issues/{number}",
            **kwargs,
        )
        self.issues[number] = issue
        return issue

    def calls_to(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.errors:
            raise self.errors[name]

    async def get_issue(self, owner, repo, number):
        self._record("get_issue", owner, repo, number)
        if number not in self.issues:
            raise GatewayError("Not Found", status=404)
        return self.issues[number]

    async def update_issue(self, owner, repo, number, *, state=None, state_reason=None, title=None, body=None):
        self._record("update_issue", owner, repo, number, state, state_reason)
        issue = self.issues.get(number) or self.add_issue(number)
        if state:
            issue.state = state
        return issue

    async def create_comment(self, owner, repo, number, body):
        self._record("create_comment", owner, repo, number, body)
        self._next_comment_id += 1
        return Comment(
            id=self._next_comment_id,
            body=body,
            url=f"https://github.com/{owner}/{repo}/issues/{number}#issuecomment-{self._next_comment_id}",
        )

    async def add_labels(self, owner, repo, number, labels):
        self._record("add_labels", owner, repo, number, list(labels))
        issue = self.issues.get(number)
        if issue is None:
            return list(labels)
        issue.labels.extend(label for label in labels if label not in issue.labels)
        return list(issue.labels)

    async def remove_label(self, owner, repo, number, label):
        self._record("remove_label", owner, repo, number, label)
        if label in self.label_errors:
            raise self.label_errors[label]
        issue = self.issues.get(number)
        if issue is None or label not in issue.labels:
            raise GatewayError("Label does not exist", status=404)
        issue.labels.remove(label)

    async def add_assignees(self, owner, repo, number, assignees):
        self._record("add_assignees", owner, repo, number, list(assignees))
        accepted = [login for login in assignees if self.assignable is None or login in self.assignable]
        issue = self.issues.get(number)
        if issue is None:
            return accepted
        issue.assignees.extend(login for login in accepted if login not in issue.assignees)
        return list(issue.assignees)

    async def lock_issue(self, owner, repo, number, lock_reason=None):
        self._record("lock_issue", owner, repo, number)
        self.issues[number].locked = True

    async def unlock_issue(self, owner, repo, number):
        self._record("unlock_issue", owner, repo, number)
        self.issues[number].locked = False

    async def get_repository(self, owner, repo):
        self._record("get_repository", owner, repo)
        return Repository(full_name=f"{owner}/{repo}", default_branch=self.default_branch)

    async def create_workflow_dispatch(self, owner, repo, workflow_id, ref, inputs):
        self._record("create_workflow_dispatch", owner, repo, workflow_id, ref, dict(inputs))

    async def list_collaborators(self, owner, repo, affiliation="direct", per_page=30):
        self._record("list_collaborators", owner, repo, affiliation, per_page)
        return list(self.collaborators[:per_page])

    async def get_user(self, username):
        self._record("get_user", username)
        user = self.users.get(username.lower())
        if user is None:
            raise GatewayError("Not Found", status=404)
        return user

    async def get_collaborator_permission(self, owner, repo, username):
        self._record("get_collaborator_permission", owner, repo, username)
        return self.permissions.get(username.lower(), "none")

    async def search_issues(self, query, per_page=50):
        self._record("search_issues", query, per_page)
        return list(self.search_results)

    async def search_discussions(self, query, per_page=50):
        self._record("search_discussions", query, per_page)
        return list(self.discussion_results)

    async def add_discussion_comment(self, discussion_id, body):
        self._record("add_discussion_comment", discussion_id, body)
        return f"https://github.com/octo/repo/discussions/1#discussioncomment-{discussion_id}"

    async def close_discussion(self, discussion_id, reason="OUTDATED"):
        self._record("close_discussion", discussion_id, reason)


class FakeClock:
    """Monotonic clock whose ``sleep`` advances time instantly."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def context():
    return ActionContext(
        repository=RepoRef("octo", "repo"),
        event_name="issues",
        actor="alice",
        run_id="42",
        payload={"issue": {"number": 7, "user": {"login": "alice", "type": "User"}}},
    )


@pytest.fixture
def runtime(gateway, context, clock):
    return HandlerRuntime(
        gateway=gateway,
        context=context,
        actions=ActionsRuntime(env={}),
        clock=clock,
        sleep=clock.sleep,
    )
