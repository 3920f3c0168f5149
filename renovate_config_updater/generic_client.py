"""Raw GitHub REST client (httpx) for the paginated organization listing.

PyGithub hides the Link header and per-response rate metadata behind its
PaginatedList, and the crawler needs both to retry a page in place.
"""

import time

import httpx

from .exceptions import GitHubApiError, RateLimitExhausted
from .models import PAGE_SIZE, RateLimitSnapshot, RepoPage, Repository

API_BASE = "https://api.github.com"
DEFAULT_RETRY_AFTER = 60


def snapshot_from_headers(headers) -> RateLimitSnapshot | None:
    """Build a snapshot from ``X-RateLimit-*`` headers, if present."""
    if not headers:
        return None
    lowered = {str(k).lower(): v for k, v in headers.items()}
    try:
        return RateLimitSnapshot(
            remaining=int(lowered["x-ratelimit-remaining"]),
            limit=int(lowered["x-ratelimit-limit"]),
            reset_at=float(lowered["x-ratelimit-reset"]),
        )
    except (KeyError, TypeError, ValueError):
        return None


def parse_next_page(link_header: str | None) -> int:
    """Return the page number of the ``rel="next"`` link, or 0."""
    if not link_header:
        return 0
    for part in link_header.split(","):
        segments = part.split(";")
        url = segments[0].strip().strip("<>")
        if not any(s.strip() == 'rel="next"' for s in segments[1:]):
            continue
        page = httpx.URL(url).params.get("page")
        try:
            return int(page) if page else 0
        except ValueError:
            return 0
    return 0


def _parse_retry_after(resp: httpx.Response) -> float | None:
    val = resp.headers.get("retry-after")
    if val is None:
        return None
    try:
        return float(val)
    except ValueError:
        return None


def _is_rate_limited(resp: httpx.Response, snapshot: RateLimitSnapshot | None) -> bool:
    if resp.status_code == 429:
        return True
    if resp.status_code != 403:
        return False
    if snapshot is not None and snapshot.remaining == 0:
        return True
    return "rate limit" in resp.text.lower()


class GenericGitHubClient:
    """Thin client for the REST endpoints PyGithub does not expose page-wise."""

    def __init__(self, token: str, base_url: str = API_BASE, transport: httpx.BaseTransport | None = None):
        if not token:
            raise RuntimeError("GITHUB_TOKEN is not set")
        self._client = httpx.Client(
            base_url=base_url,
            headers={
                "Authorization": f"bearer {token}",
                "Accept": "application/vnd.github+json",
            },
            timeout=30.0,
            transport=transport,
        )

    def list_org_repos(self, org: str, page: int = 1) -> RepoPage:
        """Fetch one page of an organization's repositories.

        Raises RateLimitExhausted when the server refuses the request for
        quota reasons; the caller decides whether to wait and retry.
        """
        resp = self._client.get(
            f"/orgs/{org}/repos",
            params={"type": "all", "per_page": PAGE_SIZE, "page": page},
        )
        snapshot = snapshot_from_headers(resp.headers)

        if _is_rate_limited(resp, snapshot):
            if snapshot is None or snapshot.remaining > 0:
                wait = _parse_retry_after(resp) or DEFAULT_RETRY_AFTER
                snapshot = RateLimitSnapshot(remaining=0, limit=0, reset_at=time.time() + wait)
            raise RateLimitExhausted(snapshot, f"Rate limited listing {org} (page {page})")

        if not 200 <= resp.status_code < 300:
            raise GitHubApiError(resp.status_code, resp.text[:200])

        repositories = [
            Repository(
                owner=item["owner"]["login"],
                name=item["name"],
                default_branch=item.get("default_branch"),
            )
            for item in resp.json()
        ]
        return RepoPage(
            repositories=repositories,
            rate=snapshot,
            next_page=parse_next_page(resp.headers.get("link")),
        )

    def close(self):
        self._client.close()
