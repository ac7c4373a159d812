"""
Tests for the GitHub integration plugin.
"""

import asyncio
import time

import pytest
from unittest.mock import MagicMock, Mock, patch

from devpanel.config import Settings
from devpanel.errors import ActionDispatchError
from devpanel.integrations import GitHubPlugin


def _records(*payloads):
    return [Mock(raw_data=payload) for payload in payloads]


class TestOfflineMode:
    """Test cases for the plugin without credentials."""

    def setup_method(self):
        self.plugin = GitHubPlugin(Settings())

    def test_request_timeout_defaults_to_env_settings(self):
        assert GitHubPlugin(Settings(github_timeout=2.0)).request_timeout == 2.0
        assert self.plugin.request_timeout == 10.0

    def test_request_timeout_setting_overrides_env(self):
        plugin = GitHubPlugin(Settings(github_timeout=2.0))
        plugin.update_settings({"requestTimeout": 4.5})

        assert plugin.request_timeout == 4.5

    @pytest.mark.asyncio
    async def test_activate_without_token_stays_offline(self):
        await self.plugin.activate()

        assert self.plugin.is_active is True
        assert self.plugin.client is None

    @pytest.mark.asyncio
    async def test_commits_fall_back_to_mock_data(self):
        await self.plugin.activate()

        commits = await self.plugin.get_commits("octo", "demo")

        assert len(commits) == 3
        assert commits[0]["commit"]["message"] == "Fix plugin system integration"
        assert commits[0]["commit"]["author"]["name"] == "Developer"
        assert len(self.plugin.cache.entries) == 0

    @pytest.mark.asyncio
    async def test_issues_fall_back_to_mock_data(self):
        issues = await self.plugin.get_issues("octo", "demo")

        assert [issue["number"] for issue in issues] == [123, 124]

    @pytest.mark.asyncio
    async def test_repository_falls_back_to_mock_data(self):
        repository = await self.plugin.get_repository("octo", "demo")

        assert repository["full_name"] == "octo/demo"

    @pytest.mark.asyncio
    async def test_pull_requests_require_client(self):
        with pytest.raises(ActionDispatchError):
            await self.plugin.execute_action("getPullRequests", {"owner": "octo", "repo": "demo"})

    @pytest.mark.asyncio
    async def test_search_requires_client(self):
        with pytest.raises(RuntimeError):
            await self.plugin.search_repositories("plugins")

    @pytest.mark.asyncio
    async def test_commits_action_requires_repository(self):
        with pytest.raises(ActionDispatchError):
            await self.plugin.execute_action("getCommits", {})

    @pytest.mark.asyncio
    async def test_set_repo_is_used_as_default_target(self):
        assert await self.plugin.execute_action("setRepo", {"owner": "octo", "repo": "demo"}) == {"success": True}

        commits = await self.plugin.execute_action("getCommits", {})

        assert len(commits) == 3
        assert self.plugin.get_settings()["currentRepo"] == {"owner": "octo", "repo": "demo"}

    @pytest.mark.asyncio
    async def test_unknown_action_returns_none(self):
        assert await self.plugin.execute_action("getBranches", {}) is None


@patch("devpanel.integrations.github_plugin.Github")
class TestWithClient:
    """Test cases with a mocked PyGithub client."""

    def _activated_plugin(self, github_cls):
        self.client = MagicMock()
        self.repository = MagicMock()
        self.client.get_repo.return_value = self.repository
        github_cls.return_value = self.client

        plugin = GitHubPlugin(Settings(github_token="secret"))
        asyncio.run(plugin.activate())
        return plugin

    def test_activate_builds_client_from_env_token(self, github_cls):
        plugin = self._activated_plugin(github_cls)

        assert plugin.client is self.client
        github_cls.assert_called_once()

    def test_activate_survives_client_failure(self, github_cls):
        github_cls.side_effect = RuntimeError("bad token")
        plugin = GitHubPlugin(Settings(github_token="secret"))

        asyncio.run(plugin.activate())

        assert plugin.is_active is True
        assert plugin.client is None

    def test_commits_are_cached(self, github_cls):
        plugin = self._activated_plugin(github_cls)
        self.repository.get_commits.return_value = _records({"sha": "a"}, {"sha": "b"})

        first = asyncio.run(plugin.get_commits("octo", "demo", {"limit": 5}))
        second = asyncio.run(plugin.get_commits("octo", "demo", {"limit": 5}))

        assert first == [{"sha": "a"}, {"sha": "b"}]
        assert second == first
        self.client.get_repo.assert_called_once_with("octo/demo")
        assert plugin.cache.stats.hits == 1

    def test_different_options_use_different_cache_entries(self, github_cls):
        plugin = self._activated_plugin(github_cls)
        self.repository.get_commits.return_value = _records({"sha": "a"})

        asyncio.run(plugin.get_commits("octo", "demo", {"limit": 1}))
        asyncio.run(plugin.get_commits("octo", "demo", {"limit": 2}))

        assert self.client.get_repo.call_count == 2

    def test_clear_cache_forces_refetch(self, github_cls):
        plugin = self._activated_plugin(github_cls)
        self.repository.get_commits.return_value = _records({"sha": "a"})

        asyncio.run(plugin.get_commits("octo", "demo"))
        assert asyncio.run(plugin.execute_action("clearCache", {})) == {"success": True}
        asyncio.run(plugin.get_commits("octo", "demo"))

        assert self.client.get_repo.call_count == 2

    def test_commit_date_filters_are_parsed(self, github_cls):
        plugin = self._activated_plugin(github_cls)
        self.repository.get_commits.return_value = []

        asyncio.run(plugin.get_commits("octo", "demo", {"since": "2024-01-01T00:00:00"}))

        kwargs = self.repository.get_commits.call_args.kwargs
        assert kwargs["since"].year == 2024
        assert "until" not in kwargs

    def test_remote_failure_falls_back_and_is_not_cached(self, github_cls):
        plugin = self._activated_plugin(github_cls)
        self.client.get_repo.side_effect = RuntimeError("rate limited")

        commits = asyncio.run(plugin.get_commits("octo", "demo"))

        assert len(commits) == 3
        assert len(plugin.cache.entries) == 0

    def test_issues_from_client(self, github_cls):
        plugin = self._activated_plugin(github_cls)
        self.repository.get_issues.return_value = _records({"number": 1, "title": "Bug", "state": "closed"})

        issues = asyncio.run(plugin.execute_action("getIssues", {
            "owner": "octo", "repo": "demo", "options": {"state": "closed"}
        }))

        assert issues == [{"number": 1, "title": "Bug", "state": "closed"}]
        self.repository.get_issues.assert_called_once_with(state="closed")

    def test_pull_requests_failure_is_dispatch_error(self, github_cls):
        plugin = self._activated_plugin(github_cls)
        self.repository.get_pulls.side_effect = RuntimeError("boom")

        with pytest.raises(ActionDispatchError):
            asyncio.run(plugin.execute_action("getPullRequests", {"owner": "octo", "repo": "demo"}))

    def test_search_repositories(self, github_cls):
        plugin = self._activated_plugin(github_cls)
        self.client.search_repositories.return_value = _records({"full_name": "a/b"}, {"full_name": "c/d"})

        results = asyncio.run(plugin.execute_action("searchRepos", {
            "query": "plugins", "options": {"limit": 1}
        }))

        assert results == [{"full_name": "a/b"}]
        self.client.search_repositories.assert_called_once_with("plugins", sort="stars", order="desc")

    def test_slow_request_times_out_to_fallback(self, github_cls):
        plugin = self._activated_plugin(github_cls)
        plugin.update_settings({"requestTimeout": 0.01})

        def slow_get_repo(name):
            time.sleep(0.2)
            return self.repository

        self.client.get_repo.side_effect = slow_get_repo

        issues = asyncio.run(plugin.get_issues("octo", "demo"))

        assert [issue["number"] for issue in issues] == [123, 124]

    def test_set_token_rebuilds_client(self, github_cls):
        plugin = GitHubPlugin(Settings())

        asyncio.run(plugin.execute_action("setToken", {"token": "new"}))

        assert plugin.client is github_cls.return_value
        assert plugin.get_settings()["token"] == "new"

    def test_set_token_closes_previous_client(self, github_cls):
        plugin = self._activated_plugin(github_cls)
        replacement = MagicMock()
        github_cls.return_value = replacement

        plugin.set_token("rotated")

        self.client.close.assert_called_once()
        assert plugin.client is replacement

    def test_clearing_token_closes_client(self, github_cls):
        plugin = self._activated_plugin(github_cls)

        plugin.set_token("")

        self.client.close.assert_called_once()
        assert plugin.client is None

    def test_client_timeout_comes_from_env_settings(self, github_cls):
        GitHubPlugin(Settings(github_token="secret", github_timeout=3.0)).set_token("secret")

        assert github_cls.call_args.kwargs["timeout"] == 3

    def test_deactivate_closes_client(self, github_cls):
        plugin = self._activated_plugin(github_cls)

        asyncio.run(plugin.deactivate())

        self.client.close.assert_called_once()
        assert plugin.client is None
        assert plugin.is_active is False
