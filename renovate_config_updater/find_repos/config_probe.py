"""Locate the Renovate config file in a repository."""

import logging

from github import GithubException

from ..exceptions import RateLimitExhausted
from ..github import GitHubApi
from ..models import CANDIDATE_PATHS, ConfigContent, ProbeResult, ProbeStatus, Repository
from ..rate_limit import RateLimiter

API_ERRORS = (GithubException, OSError)


class _TransientProbeError(Exception):
    pass


class ConfigProbe:
    """Checks candidate paths in order and stops at the first hit."""

    def __init__(
        self,
        client: GitHubApi,
        limiter: RateLimiter,
        logger: logging.Logger | None = None,
        paths: tuple[str, ...] = CANDIDATE_PATHS,
    ):
        self.client = client
        self.limiter = limiter
        self.logger = logger or logging.getLogger(__name__)
        self.paths = paths

    def _fetch(self, repo: Repository, path: str) -> ConfigContent:
        content = self.client.get_file_content(repo.owner, repo.name, path)
        # The call succeeded; an exhausted window only delays the next one.
        decision = self.limiter.observe(self.client.rate_limit)
        self.limiter.wait(decision, context="after checking files")
        return content

    def _fetch_after_wait(self, repo: Repository, path: str, exc: RateLimitExhausted) -> ConfigContent | None:
        """Wait out the window and retry the same path once.

        Returns None when the path is absent. A second exhaustion or any
        other failure becomes a transient error for the whole repository.
        """
        self.limiter.wait_for_reset(exc.snapshot, context="while checking files")
        try:
            return self._fetch(repo, path)
        except FileNotFoundError:
            return None
        except (RateLimitExhausted, *API_ERRORS) as e:
            raise _TransientProbeError(str(e)) from e

    def probe(self, repo: Repository) -> ProbeResult:
        errors: list[str] = []
        for path in self.paths:
            try:
                content = self._fetch(repo, path)
            except FileNotFoundError:
                continue
            except RateLimitExhausted as e:
                try:
                    content = self._fetch_after_wait(repo, path, e)
                except _TransientProbeError as retry_error:
                    reason = f"rate limited checking {path}, retry failed: {retry_error}"
                    self.logger.warning("Skipping %s: %s", repo.full_name, reason)
                    return ProbeResult(ProbeStatus.TRANSIENT_ERROR, reason=reason)
                if content is None:
                    continue
            except API_ERRORS as e:
                self.logger.error("Error checking %s in %s: %s", path, repo.full_name, e)
                errors.append(f"{path}: {e}")
                continue

            self.logger.info("Found renovate.json in %s at %s", repo.full_name, path)
            return ProbeResult(ProbeStatus.FOUND, path=path, content=content)

        if errors and len(errors) == len(self.paths):
            return ProbeResult(ProbeStatus.PERMANENT_ERROR, reason="; ".join(errors))
        return ProbeResult(ProbeStatus.NOT_FOUND)
