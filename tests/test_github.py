#tests\test_github.py

"""Test GitHub notifier and config loader."""

import asyncio
import json

import httpx
import pytest

from stack_orchestrator.core.errors import ConfigurationError, NotificationError
from stack_orchestrator.core.models import Event, EventKind
from stack_orchestrator.infrastructure.github.client import GitHubClient
from stack_orchestrator.infrastructure.github.config_loader import GitHubConfigLoader
from stack_orchestrator.infrastructure.github.notifier import GitHubNotifier

CONFIG_YAML = """
trigger:
  status: success
  issuers:
    - continuous-integration/travis-ci/pr
branches:
  only:
    - /^feature-.*/
notify:
  onCreate: true
stack:
  imageRepo: acme/web
  innerPort: 80
  outerPortRangeMin: 8000
  template:
    name: web
    target_num_containers: 1
"""


class FakeGitHub:
    """Records requests and answers from a route table."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key not in self.routes:
            return httpx.Response(404, json={"message": "Not Found"})
        return self.routes[key]

    def client(self) -> GitHubClient:
        return GitHubClient(token="token", transport=httpx.MockTransport(self.handler))


def make_event(pr_number=None, sha="abc123"):
    return Event(
        kind=EventKind.STATUS_CHANGE,
        branch_name="feature-x",
        repository="acme/web",
        issuer_key="ci/pr",
        state="success",
        commit_sha=sha,
        pull_request_number=pr_number,
    )


class TestNotifier:

    def test_comments_on_known_pull_request(self):
        github = FakeGitHub({
            ("POST", "/repos/acme/web/issues/7/comments"): httpx.Response(201, json={"id": 1}),
        })

        posted = asyncio.run(GitHubNotifier(github.client()).notify(make_event(pr_number=7), "hello"))

        assert posted
        assert len(github.requests) == 1
        assert json.loads(github.requests[0].content) == {"body": "hello"}
        assert github.requests[0].headers["Authorization"] == "Bearer token"

    def test_searches_pull_request_by_branch_and_sha(self):
        github = FakeGitHub({
            ("GET", "/search/issues"): httpx.Response(200, json={"items": [{"number": 12}]}),
            ("POST", "/repos/acme/web/issues/12/comments"): httpx.Response(201, json={"id": 1}),
        })

        posted = asyncio.run(GitHubNotifier(github.client()).notify(make_event(), "hello"))

        assert posted
        query = github.requests[0].url.params["q"]
        assert query == "repo:acme/web head:feature-x is:pr abc123"

    def test_falls_back_to_commit_comment(self):
        github = FakeGitHub({
            ("GET", "/search/issues"): httpx.Response(200, json={"items": []}),
            ("POST", "/repos/acme/web/commits/abc123/comments"): httpx.Response(201, json={"id": 1}),
        })

        posted = asyncio.run(GitHubNotifier(github.client()).notify(make_event(), "hello"))

        assert posted
        assert github.requests[-1].url.path == "/repos/acme/web/commits/abc123/comments"

    def test_no_target_is_a_logged_no_op(self):
        github = FakeGitHub({
            ("GET", "/search/issues"): httpx.Response(200, json={"items": []}),
        })

        posted = asyncio.run(GitHubNotifier(github.client()).notify(make_event(sha=None), "hello"))

        assert not posted
        assert [r.method for r in github.requests] == ["GET"]

    def test_failed_comment_raises(self):
        github = FakeGitHub({
            ("POST", "/repos/acme/web/issues/7/comments"): httpx.Response(403, json={"message": "Forbidden"}),
        })

        with pytest.raises(NotificationError) as exc_info:
            asyncio.run(GitHubNotifier(github.client()).notify(make_event(pr_number=7), "hello"))

        assert exc_info.value.status_code == 403
        assert exc_info.value.detail == {"message": "Forbidden"}


    def test_unreachable_github_raises_notification_error(self):
        def refuse(request):
            raise httpx.ConnectError("down", request=request)

        client = GitHubClient(token="token", transport=httpx.MockTransport(refuse))

        with pytest.raises(NotificationError):
            asyncio.run(GitHubNotifier(client).notify(make_event(pr_number=7), "hello"))

        with pytest.raises(NotificationError):
            asyncio.run(GitHubNotifier(client).notify(make_event(), "hello"))


class TestConfigLoader:

    def test_loads_yaml_config(self):
        github = FakeGitHub({
            ("GET", "/repos/acme/web/contents/.github/docker-cloud-config.yml"): httpx.Response(
                200, text=CONFIG_YAML
            ),
        })

        config = asyncio.run(GitHubConfigLoader(github.client()).load("acme/web"))

        assert config.trigger.expected_state == "success"
        assert config.trigger.allowed_issuers == ["continuous-integration/travis-ci/pr"]
        assert config.trigger.branches.only == ["/^feature-.*/"]
        assert config.notify.on_create
        assert config.stack.outer_port_range_min == 8000
        assert config.stack.template == {"name": "web", "target_num_containers": 1}
        assert github.requests[0].headers["Accept"] == "application/vnd.github.raw"

    def test_missing_file_uses_defaults(self):
        github = FakeGitHub({})

        config = asyncio.run(GitHubConfigLoader(github.client()).load("acme/web"))

        assert config.trigger.allowed_issuers == []
        assert config.stack is None

    def test_server_error_propagates(self):
        github = FakeGitHub({
            ("GET", "/repos/acme/web/contents/.github/docker-cloud-config.yml"): httpx.Response(
                500, text="oops"
            ),
        })

        with pytest.raises(ConfigurationError):
            asyncio.run(GitHubConfigLoader(github.client()).load("acme/web"))

    def test_invalid_yaml_raises(self):
        github = FakeGitHub({
            ("GET", "/repos/acme/web/contents/.github/docker-cloud-config.yml"): httpx.Response(
                200, text="trigger: [unclosed"
            ),
        })

        with pytest.raises(ConfigurationError):
            asyncio.run(GitHubConfigLoader(github.client()).load("acme/web"))

    def test_unreachable_github_raises_configuration_error(self):
        def refuse(request):
            raise httpx.ConnectError("down", request=request)

        client = GitHubClient(token="token", transport=httpx.MockTransport(refuse))

        with pytest.raises(ConfigurationError):
            asyncio.run(GitHubConfigLoader(client).load("acme/web"))
