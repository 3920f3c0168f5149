"""Per-repository update workflow: fetch, decide, publish, open a pull request."""

import base64
import logging
from collections.abc import Callable
from enum import Enum
from typing import TypeVar

from github import GithubException

from ..exceptions import ExternalExecutorError, RateLimitExhausted, WorkflowAborted
from ..github import GitHubApi
from ..models import (
    CANDIDATE_PATHS,
    NEW_MARKER,
    OLD_MARKER,
    CommitRequest,
    ConfigContent,
    OutcomeStatus,
    PullRequestRequest,
    RepoOutcome,
    Repository,
    UpdateDecision,
)
from ..rate_limit import RateLimiter
from .commit_publisher import CommitPublisher

API_ERRORS = (GithubException, RateLimitExhausted, OSError)

T = TypeVar("T")


class WorkflowState(str, Enum):
    FETCHING = "fetching"
    DECODING = "decoding"
    DECIDING = "deciding"
    NO_OP = "no_op"
    DRY_RUN_NO_OP = "dry_run_no_op"
    PUBLISHING = "publishing"
    RESOLVING_DEFAULT_BRANCH = "resolving_default_branch"
    OPENING_PR = "opening_pr"
    DONE = "done"
    ABORTED = "aborted"


def decode_content(content: ConfigContent) -> str:
    """Decode the stored representation into text.

    Raises ValueError for bad base64, non-UTF-8 bytes or an unknown encoding.
    """
    if content.encoding == "base64":
        raw = base64.b64decode(content.content, validate=False)
    elif content.encoding in ("", "utf-8"):
        raw = content.content.encode()
    else:
        raise ValueError(f"unsupported encoding: {content.encoding}")
    return raw.decode("utf-8")


def rewrite_config(text: str) -> str:
    return text.replace(OLD_MARKER, NEW_MARKER)


def decide(text: str, dry_run: bool) -> UpdateDecision:
    if OLD_MARKER not in text:
        return UpdateDecision.NO_MATCH
    if dry_run:
        return UpdateDecision.DRY_RUN_MATCH
    return UpdateDecision.MATCH_AND_PUBLISH


class UpdateWorkflow:
    """Runs the update state machine for one repository at a time.

    Holds no per-repository state between runs; ``run`` raises
    WorkflowAborted on failure and ``process`` turns every run into a
    RepoOutcome.
    """

    def __init__(
        self,
        client: GitHubApi,
        publisher: CommitPublisher,
        dry_run: bool = False,
        signing_key: str | None = None,
        logger: logging.Logger | None = None,
        limiter: RateLimiter | None = None,
    ):
        self.client = client
        self.publisher = publisher
        self.dry_run = dry_run
        self.signing_key = signing_key
        self.logger = logger or logging.getLogger(__name__)
        self.limiter = limiter or RateLimiter(logger=self.logger)

    def _call(self, label: str, func: Callable[..., T], *args) -> T:
        """Make one API call, waiting out an exhausted window and retrying it once.

        A second refusal propagates and aborts the workflow.
        """
        try:
            result = func(*args)
        except RateLimitExhausted as e:
            self.limiter.wait_for_reset(e.snapshot, context=f"while {label}")
            result = func(*args)
        decision = self.limiter.observe(self.client.rate_limit)
        self.limiter.wait(decision, context=f"after {label}")
        return result

    def fetch_repository(self, owner: str, name: str) -> Repository:
        return self._call("getting repository info", self.client.get_repository, owner, name)

    def _fetch(self, repo: Repository, path: str | None) -> ConfigContent:
        paths = (path,) if path else CANDIDATE_PATHS
        missing: FileNotFoundError | None = None
        for candidate in paths:
            try:
                return self._call(
                    "getting renovate.json content",
                    self.client.get_file_content,
                    repo.owner,
                    repo.name,
                    candidate,
                )
            except FileNotFoundError as e:
                missing = e
        raise missing or FileNotFoundError(f"renovate.json not found in {repo.full_name}")

    def run(self, repo: Repository, path: str | None = None) -> RepoOutcome:
        self.logger.info("Starting to check and update renovate config for repository: %s", repo.full_name)

        state = WorkflowState.FETCHING
        try:
            self.logger.info("Getting renovate.json content")
            content = self._fetch(repo, path)
            self.logger.info("Successfully retrieved renovate.json content")

            state = WorkflowState.DECODING
            text = decode_content(content)
            self.logger.info("Content decoded successfully")

            state = WorkflowState.DECIDING
            decision = decide(text, self.dry_run)
            if decision is UpdateDecision.NO_MATCH:
                self.logger.info("No need to update - content does not contain '%s'", OLD_MARKER)
                return RepoOutcome(repo, OutcomeStatus.NO_OP, WorkflowState.NO_OP.value)
            self.logger.info("Content contains '%s' - proceeding with update", OLD_MARKER)

            new_text = rewrite_config(text)
            if decision is UpdateDecision.DRY_RUN_MATCH:
                self.logger.info("[DRY RUN] Would update %s in %s", content.path, repo.full_name)
                return RepoOutcome(repo, OutcomeStatus.DRY_RUN, WorkflowState.DRY_RUN_NO_OP.value)

            state = WorkflowState.PUBLISHING
            self.publisher.publish(
                CommitRequest(
                    repository=repo,
                    content=new_text.encode("utf-8"),
                    signing_key=self.signing_key,
                    path=content.path,
                )
            )
            self.logger.info("Signed commit created successfully")

            state = WorkflowState.RESOLVING_DEFAULT_BRANCH
            metadata = self._call("getting repository info", self.client.get_repository, repo.owner, repo.name)
            default_branch = metadata.default_branch
            if not default_branch:
                raise ValueError(f"{repo.full_name} reports no default branch")
            self.logger.info("Default branch is: %s", default_branch)

            state = WorkflowState.OPENING_PR
            url = self._call(
                "creating pull request",
                self.client.create_pull_request,
                PullRequestRequest(repository=repo, base=default_branch),
            )
            self.logger.info("Pull request created successfully: %s", url)
        except (*API_ERRORS, ValueError, ExternalExecutorError) as e:
            raise WorkflowAborted(state.value, _describe(state, e)) from e

        return RepoOutcome(repo, OutcomeStatus.PR_OPENED, WorkflowState.DONE.value, pull_request_url=url)

    def process(self, repo: Repository, path: str | None = None) -> RepoOutcome:
        """Run the workflow, containing any failure to this repository."""
        try:
            return self.run(repo, path)
        except WorkflowAborted as e:
            self.logger.error("Error processing repository %s: %s", repo.full_name, e)
            return RepoOutcome(repo, OutcomeStatus.ERROR, WorkflowState.ABORTED.value, reason=str(e))


def _describe(state: WorkflowState, e: Exception) -> str:
    prefix = {
        WorkflowState.FETCHING: "error getting renovate.json content",
        WorkflowState.DECODING: "error decoding content",
        WorkflowState.PUBLISHING: "error creating signed commit",
        WorkflowState.RESOLVING_DEFAULT_BRANCH: "error getting repository info",
        WorkflowState.OPENING_PR: "error creating PR",
    }.get(state, "error")
    return f"{prefix}: {e}"
