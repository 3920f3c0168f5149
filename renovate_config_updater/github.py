"""GitHub API client using PyGithub, plus the capability protocol the core depends on."""

import logging
import time
from typing import Protocol

from github import Auth, Github, GithubException, RateLimitExceededException

from .exceptions import RateLimitExhausted
from .generic_client import GenericGitHubClient, snapshot_from_headers
from .models import PAGE_SIZE, ConfigContent, PullRequestRequest, RateLimitSnapshot, RepoPage, Repository
from .settings import get_settings

logging.getLogger("github").setLevel(logging.ERROR)
logging.getLogger("github.Requester").setLevel(logging.ERROR)
logging.getLogger("urllib3").setLevel(logging.ERROR)
logging.getLogger("httpx").setLevel(logging.WARNING)


class GitHubApi(Protocol):
    """What the crawler and the update workflow need from GitHub."""

    def list_org_repos(self, org: str, page: int = 1) -> RepoPage: ...

    def get_file_content(self, owner: str, repo: str, path: str) -> ConfigContent: ...

    def get_repository(self, owner: str, repo: str) -> Repository: ...

    def create_pull_request(self, request: PullRequestRequest) -> str: ...

    @property
    def rate_limit(self) -> RateLimitSnapshot | None: ...


def _is_rate_limit_error(e: GithubException) -> bool:
    if isinstance(e, RateLimitExceededException):
        return True
    return e.status in (403, 429) and "rate limit" in str(e).lower()


class GitHubClient:
    """GitHub API client using PyGithub.

    PyGithub's own retry is disabled so rate-limit waits only ever happen
    in the RateLimiter, where they are logged and the operation retried.
    """

    def __init__(self, token: str | None = None, rest: GenericGitHubClient | None = None):
        self._token = token
        self._github: Github | None = None
        self._rest = rest

    def _resolve_token(self) -> str:
        token = self._token or get_settings().github_token
        if not token:
            raise RuntimeError("GITHUB_TOKEN is not set")
        return token

    @property
    def github(self) -> Github:
        """Lazy-initialize the GitHub client."""
        if self._github is None:
            auth = Auth.Token(self._resolve_token())
            self._github = Github(auth=auth, retry=None, per_page=PAGE_SIZE)
        return self._github

    @property
    def rest(self) -> GenericGitHubClient:
        if self._rest is None:
            self._rest = GenericGitHubClient(self._resolve_token())
        return self._rest

    @property
    def rate_limit(self) -> RateLimitSnapshot | None:
        """Rate-limit state reported by the most recent PyGithub response."""
        remaining, limit = self.github.rate_limiting
        if remaining < 0:
            return None
        return RateLimitSnapshot(
            remaining=remaining,
            limit=limit,
            reset_at=float(self.github.rate_limiting_resettime),
        )

    def _exhausted(self, e: GithubException) -> RateLimitExhausted:
        snapshot = snapshot_from_headers(e.headers)
        if snapshot is None or snapshot.remaining > 0:
            reset_at = self.github.rate_limiting_resettime or (time.time() + 60)
            snapshot = RateLimitSnapshot(remaining=0, limit=0, reset_at=float(reset_at))
        return RateLimitExhausted(snapshot, str(e))

    def list_org_repos(self, org: str, page: int = 1) -> RepoPage:
        return self.rest.list_org_repos(org, page)

    def get_file_content(self, owner: str, repo: str, path: str) -> ConfigContent:
        """Get the stored representation of a file.

        Raises FileNotFoundError on 404 (or when the path is a directory)
        and RateLimitExhausted when the quota is spent.
        """
        try:
            repo_obj = self.github.get_repo(f"{owner}/{repo}", lazy=True)
            contents = repo_obj.get_contents(path)
        except GithubException as e:
            if _is_rate_limit_error(e):
                raise self._exhausted(e) from e
            if e.status == 404:
                raise FileNotFoundError(f"File not found: {owner}/{repo}/{path}") from e
            raise

        if isinstance(contents, list):
            raise FileNotFoundError(f"Path is a directory: {path}")

        return ConfigContent(
            path=contents.path,
            content=contents.content or "",
            encoding=contents.encoding or "base64",
            sha=contents.sha,
        )

    def get_repository(self, owner: str, repo: str) -> Repository:
        try:
            repo_obj = self.github.get_repo(f"{owner}/{repo}")
        except GithubException as e:
            if _is_rate_limit_error(e):
                raise self._exhausted(e) from e
            raise
        return Repository(
            owner=repo_obj.owner.login,
            name=repo_obj.name,
            default_branch=repo_obj.default_branch,
        )

    def create_pull_request(self, request: PullRequestRequest) -> str:
        """Open a pull request and return its URL."""
        repo_obj = self.github.get_repo(request.repository.full_name, lazy=True)
        try:
            pull = repo_obj.create_pull(
                base=request.base,
                head=request.head,
                title=request.title,
                body=request.body,
            )
        except GithubException as e:
            if _is_rate_limit_error(e):
                raise self._exhausted(e) from e
            raise
        return pull.html_url

    def close(self):
        if self._rest is not None:
            self._rest.close()
        if self._github is not None:
            self._github.close()
