"""
GitHub integration plugin: commits, issues, pull requests and repository data.
"""

import asyncio
import logging
from typing import Dict, List, Optional, Any, Callable
from datetime import datetime

from github import Auth, Github

from devpanel.cache import ResponseCache, make_cache_key
from devpanel.config import Settings, get_default_settings
from devpanel.plugins.plugin_interface import BasePlugin, ActionHandler, require_fields

logger = logging.getLogger(__name__)


class GitHubPlugin(BasePlugin):
    """Reads repository data from GitHub through PyGithub.

    Repository metadata and commit lists are cached per
    ``(operation, owner, repo, options)``. Commit, issue and repository reads
    fall back to a fixed set of mock records when no authenticated client is
    configured or the remote call fails. Pull requests, branches and search
    have no fallback and raise instead.
    """

    def __init__(self, settings: Optional[Settings] = None):
        super().__init__(
            plugin_id="github",
            name="GitHub Integration",
            version="1.0.0",
            description="Access GitHub commits, issues, and repository data",
            icon="Github",
            category="version-control",
            settings=get_default_settings("github")
        )
        self.env = settings or Settings.from_env()
        self.settings["requestTimeout"] = self.env.github_timeout
        self.client: Optional[Github] = None
        self.current_repo: Optional[Dict[str, str]] = None
        self.cache = ResponseCache(default_ttl=self.settings["cacheTimeout"])

    @property
    def request_timeout(self) -> float:
        return float(self.settings["requestTimeout"])

    def _build_client(self, token: str) -> Github:
        return Github(auth=Auth.Token(token), timeout=max(1, int(self.request_timeout)))

    async def activate(self):
        await super().activate()

        token = self.settings.get("token") or self.env.github_token
        if not token:
            logger.info("GitHub plugin activated in offline mode (no token configured)")
            return

        try:
            self.client = self._build_client(token)
        except Exception as e:
            self.client = None
            logger.warning("GitHub plugin activated in offline mode: %s", e)

    async def deactivate(self):
        if self.client is not None:
            self.client.close()
            self.client = None
        await super().deactivate()

    def set_token(self, token: str):
        self.update_settings({"token": token})
        if self.client is not None:
            self.client.close()
        self.client = self._build_client(token) if token else None

    def set_repository(self, owner: str, repo: str):
        self.current_repo = {"owner": owner, "repo": repo}
        self.update_settings({"currentRepo": dict(self.current_repo)})

    def clear_cache(self):
        logger.debug("Clearing GitHub response cache: %s", self.cache.stats.to_dict())
        self.cache.clear()

    async def _call(self, func: Callable[..., Any], *args) -> Any:
        """Run a blocking PyGithub call in a worker thread with a deadline."""
        return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=self.request_timeout)

    def _require_client(self) -> Github:
        if self.client is None:
            raise RuntimeError("GitHub client is not configured; set a token first")
        return self.client

    async def get_repository(self, owner: str, repo: str) -> Dict[str, Any]:
        key = make_cache_key("repo", owner, repo)
        hit, cached = self.cache.lookup(key)
        if hit:
            return cached

        if self.client is None:
            return self.get_mock_repository(owner, repo)

        try:
            data = await self._call(self._fetch_repository, owner, repo)
        except Exception as e:
            logger.warning("Error fetching repository %s/%s, using mock data: %s", owner, repo, e)
            return self.get_mock_repository(owner, repo)

        self.cache.set(key, data, ttl=self.settings.get("cacheTimeout"))
        return data

    async def get_commits(self, owner: str, repo: str,
                          options: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        options = options or {}
        key = make_cache_key("commits", owner, repo, options)
        hit, cached = self.cache.lookup(key)
        if hit:
            return cached

        if self.client is None:
            return self.get_mock_commits()

        limit = min(int(options.get("limit", 10)), self.settings.get("maxCommits", 50))
        try:
            data = await self._call(self._fetch_commits, owner, repo, limit,
                                    options.get("since"), options.get("until"))
        except Exception as e:
            logger.warning("Error fetching commits for %s/%s, using mock data: %s", owner, repo, e)
            return self.get_mock_commits()

        self.cache.set(key, data, ttl=self.settings.get("cacheTimeout"))
        return data

    async def get_issues(self, owner: str, repo: str,
                         options: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        options = options or {}
        if self.client is None:
            return self.get_mock_issues()

        limit = min(int(options.get("limit", 10)), self.settings.get("maxIssues", 50))
        try:
            return await self._call(self._fetch_issues, owner, repo,
                                    options.get("state", "open"), limit)
        except Exception as e:
            logger.warning("Error fetching issues for %s/%s, using mock data: %s", owner, repo, e)
            return self.get_mock_issues()

    async def get_pull_requests(self, owner: str, repo: str,
                                options: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        options = options or {}
        self._require_client()
        return await self._call(self._fetch_pull_requests, owner, repo,
                                options.get("state", "open"), int(options.get("limit", 10)))

    async def get_branches(self, owner: str, repo: str) -> List[Dict[str, Any]]:
        self._require_client()
        return await self._call(self._fetch_branches, owner, repo)

    async def search_repositories(self, query: str,
                                  options: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        options = options or {}
        self._require_client()
        return await self._call(self._search_repositories, query,
                                options.get("sort", "stars"), options.get("order", "desc"),
                                int(options.get("limit", 10)))

    # Blocking PyGithub calls, executed in a worker thread

    def _fetch_repository(self, owner: str, repo: str) -> Dict[str, Any]:
        return self._require_client().get_repo(f"{owner}/{repo}").raw_data

    def _fetch_commits(self, owner: str, repo: str, limit: int,
                       since: Optional[str], until: Optional[str]) -> List[Dict[str, Any]]:
        kwargs = {}
        if since:
            kwargs["since"] = datetime.fromisoformat(since)
        if until:
            kwargs["until"] = datetime.fromisoformat(until)

        repository = self._require_client().get_repo(f"{owner}/{repo}")
        return [commit.raw_data for commit in repository.get_commits(**kwargs)[:limit]]

    def _fetch_issues(self, owner: str, repo: str, state: str, limit: int) -> List[Dict[str, Any]]:
        repository = self._require_client().get_repo(f"{owner}/{repo}")
        return [issue.raw_data for issue in repository.get_issues(state=state)[:limit]]

    def _fetch_pull_requests(self, owner: str, repo: str, state: str,
                             limit: int) -> List[Dict[str, Any]]:
        repository = self._require_client().get_repo(f"{owner}/{repo}")
        return [pr.raw_data for pr in repository.get_pulls(state=state)[:limit]]

    def _fetch_branches(self, owner: str, repo: str) -> List[Dict[str, Any]]:
        repository = self._require_client().get_repo(f"{owner}/{repo}")
        return [branch.raw_data for branch in repository.get_branches()]

    def _search_repositories(self, query: str, sort: str, order: str,
                             limit: int) -> List[Dict[str, Any]]:
        results = self._require_client().search_repositories(query, sort=sort, order=order)
        return [repository.raw_data for repository in results[:limit]]

    # Fallback records

    def get_mock_repository(self, owner: str, repo: str) -> Dict[str, Any]:
        return {
            "name": repo,
            "full_name": f"{owner}/{repo}",
            "owner": {"login": owner},
            "description": "Repository data unavailable (offline mode)",
            "stargazers_count": 0,
            "open_issues_count": len(self.get_mock_issues()),
            "default_branch": "main",
        }

    def get_mock_commits(self) -> List[Dict[str, Any]]:
        now = datetime.now().isoformat()
        messages = [
            "Fix plugin system integration",
            "Add ESLint support",
            "Update testing framework",
        ]
        return [
            {"commit": {"message": message, "author": {"name": "Developer", "date": now}}}
            for message in messages
        ]

    def get_mock_issues(self) -> List[Dict[str, Any]]:
        return [
            {"title": "Plugin system not loading", "number": 123, "state": "open"},
            {"title": "ESLint integration needed", "number": 124, "state": "closed"},
        ]

    def _target(self, payload: Dict[str, Any]) -> tuple:
        current = self.current_repo or {}
        owner = payload.get("owner") or current.get("owner")
        repo = payload.get("repo") or current.get("repo")
        if not owner or not repo:
            raise ValueError("owner and repo are required when no repository is selected")
        return owner, repo

    async def _set_token_action(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.set_token(payload.get("token", ""))
        return {"success": True}

    async def _set_repo_action(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        require_fields(payload, "owner", "repo")
        self.set_repository(payload["owner"], payload["repo"])
        return {"success": True}

    async def _get_commits_action(self, payload: Dict[str, Any]):
        return await self.get_commits(*self._target(payload), payload.get("options"))

    async def _get_issues_action(self, payload: Dict[str, Any]):
        return await self.get_issues(*self._target(payload), payload.get("options"))

    async def _get_pull_requests_action(self, payload: Dict[str, Any]):
        return await self.get_pull_requests(*self._target(payload), payload.get("options"))

    async def _search_repos_action(self, payload: Dict[str, Any]):
        require_fields(payload, "query")
        return await self.search_repositories(payload["query"], payload.get("options"))

    async def _clear_cache_action(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.clear_cache()
        return {"success": True}

    def get_actions(self) -> Dict[str, ActionHandler]:
        return {
            "setToken": self._set_token_action,
            "setRepo": self._set_repo_action,
            "getCommits": self._get_commits_action,
            "getIssues": self._get_issues_action,
            "getPullRequests": self._get_pull_requests_action,
            "searchRepos": self._search_repos_action,
            "clearCache": self._clear_cache_action,
        }
