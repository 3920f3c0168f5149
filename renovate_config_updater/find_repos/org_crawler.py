"""Scan an organization for repositories that carry a Renovate config."""

import logging

from ..exceptions import RateLimitExhausted
from ..github import GitHubApi
from ..models import ProbeResult, ProbeStatus, Repository
from ..rate_limit import RateLimiter
from .config_probe import ConfigProbe


class OrgCrawler:
    """Pages through an organization's repositories and probes each one.

    A page that comes back with an exhausted rate limit is requested again
    after the wait, never skipped.
    """

    def __init__(
        self,
        client: GitHubApi,
        limiter: RateLimiter,
        probe: ConfigProbe | None = None,
        logger: logging.Logger | None = None,
    ):
        self.client = client
        self.limiter = limiter
        self.logger = logger or logging.getLogger(__name__)
        self.probe = probe or ConfigProbe(client, limiter, logger=self.logger)
        self.pages_fetched = 0
        self.skipped: dict[str, ProbeResult] = {}
        self.locations: dict[str, str] = {}

    def find_repos_with_config(self, org: str) -> list[Repository]:
        self.logger.info("Finding repositories with renovate.json for org: %s", org)

        found: list[Repository] = []
        seen: set[str] = set()
        page = 1

        while True:
            try:
                result = self.client.list_org_repos(org, page)
            except RateLimitExhausted as e:
                self.pages_fetched += 1
                self.limiter.wait_for_reset(e.snapshot, context=f"listing page {page}")
                continue
            self.pages_fetched += 1

            self.logger.info("Found %d repositories in org (page %d)", len(result.repositories), page)
            if result.rate is not None:
                self.logger.info("Rate limit: %d/%d remaining", result.rate.remaining, result.rate.limit)
            decision = self.limiter.observe(result.rate)
            if decision.suspend and decision.wait_seconds > 0:
                self.limiter.wait(decision, context=f"listing page {page}")
                continue  # same page again

            for repo in result.repositories:
                if repo.full_name in seen:
                    continue
                seen.add(repo.full_name)
                probe_result = self.probe.probe(repo)
                if probe_result.found:
                    found.append(repo)
                    self.locations[repo.full_name] = probe_result.path
                elif probe_result.status is not ProbeStatus.NOT_FOUND:
                    self.skipped[repo.full_name] = probe_result

            if not result.next_page:
                break
            page = result.next_page

        self.logger.info("Total repositories with renovate.json found: %d", len(found))
        return found
