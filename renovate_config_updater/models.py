"""Data models and constants for the Renovate config updater."""

from dataclasses import dataclass
from enum import Enum

CONFIG_FILE_NAME = "renovate.json"
CANDIDATE_PATHS = (CONFIG_FILE_NAME, f".github/{CONFIG_FILE_NAME}")

OLD_MARKER = "github>MyOrg/"
NEW_MARKER = "github>MyOtherOrg/"

BRANCH_NAME = "update-renovate-config"
COMMIT_MESSAGE = "Update renovate.json to use MyOtherOrg"
PR_TITLE = "@JiraIssue-xx | Update renovate.json to use MyOtherOrg"
PR_BODY = (
    "This PR updates the renovate.json configuration to use the MyOtherOrg "
    "organization instead of MyOrg. (changes `github>MyOrg` to `github>MyOtherOrg`)"
)

PAGE_SIZE = 100  # GitHub REST maximum per_page
LOW_WATER_MARK = 100


@dataclass(frozen=True)
class Repository:
    owner: str
    name: str
    default_branch: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True)
class RateLimitSnapshot:
    """Rate-limit metadata reported by a single API response."""

    remaining: int
    limit: int
    reset_at: float  # unix timestamp


@dataclass
class RepoPage:
    """One page of an organization's repository listing."""

    repositories: list[Repository]
    rate: RateLimitSnapshot | None
    next_page: int = 0  # 0 when the server reports no further page


@dataclass(frozen=True)
class ConfigContent:
    """Stored representation of a config file as returned by the contents API."""

    path: str
    content: str  # base64 unless encoding says otherwise
    encoding: str = "base64"
    sha: str | None = None


class ProbeStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    TRANSIENT_ERROR = "transient_error"
    PERMANENT_ERROR = "permanent_error"


@dataclass(frozen=True)
class ProbeResult:
    status: ProbeStatus
    path: str | None = None
    reason: str | None = None
    content: ConfigContent | None = None

    @property
    def found(self) -> bool:
        return self.status is ProbeStatus.FOUND


class UpdateDecision(str, Enum):
    NO_MATCH = "no_match"
    DRY_RUN_MATCH = "dry_run_match"
    MATCH_AND_PUBLISH = "match_and_publish"


@dataclass(frozen=True)
class CommitRequest:
    repository: Repository
    content: bytes
    signing_key: str | None = None
    branch: str = BRANCH_NAME
    message: str = COMMIT_MESSAGE
    path: str = CONFIG_FILE_NAME


@dataclass(frozen=True)
class PullRequestRequest:
    repository: Repository
    base: str
    head: str = BRANCH_NAME
    title: str = PR_TITLE
    body: str = PR_BODY


class OutcomeStatus(str, Enum):
    PR_OPENED = "pr_opened"
    NO_OP = "no_op"
    DRY_RUN = "dry_run"
    ERROR = "error"


@dataclass
class RepoOutcome:
    """Structured result of running the update workflow on one repository."""

    repository: Repository
    status: OutcomeStatus
    state: str
    reason: str | None = None
    pull_request_url: str | None = None
