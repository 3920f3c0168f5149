"""Drive the update workflow over an organization or a single repository."""

import logging
from collections import Counter

from ..find_repos import OrgCrawler
from ..models import OutcomeStatus, RepoOutcome
from .update_workflow import UpdateWorkflow


def update_organization(
    org: str,
    crawler: OrgCrawler,
    workflow: UpdateWorkflow,
    logger: logging.Logger | None = None,
) -> list[RepoOutcome]:
    """Update every repository in ``org`` that has a Renovate config.

    One repository's failure never stops the others.
    """
    logger = logger or logging.getLogger(__name__)
    repos = crawler.find_repos_with_config(org)
    logger.info("Found %d repositories with renovate.json", len(repos))

    outcomes = []
    for repo in repos:
        logger.info("Processing repository: %s", repo.full_name)
        outcomes.append(workflow.process(repo, crawler.locations.get(repo.full_name)))
    return outcomes


def update_repository(
    org: str,
    name: str,
    workflow: UpdateWorkflow,
    logger: logging.Logger | None = None,
) -> RepoOutcome:
    """Update a single named repository. Errors propagate to the caller."""
    logger = logger or logging.getLogger(__name__)
    repo = workflow.fetch_repository(org, name)
    logger.info("Processing single repository: %s", repo.full_name)
    return workflow.run(repo)


def summarize(outcomes: list[RepoOutcome], logger: logging.Logger | None = None) -> Counter:
    logger = logger or logging.getLogger(__name__)
    counts = Counter(outcome.status for outcome in outcomes)
    logger.info(
        "Summary: %d pull requests opened, %d already up to date, %d dry run, %d errors",
        counts[OutcomeStatus.PR_OPENED],
        counts[OutcomeStatus.NO_OP],
        counts[OutcomeStatus.DRY_RUN],
        counts[OutcomeStatus.ERROR],
    )
    for outcome in outcomes:
        if outcome.status is OutcomeStatus.ERROR:
            logger.info("  %s: %s", outcome.repository.full_name, outcome.reason)
    return counts
