"""Command-line entry point for the Renovate config updater."""

import argparse
import sys
from pathlib import Path

import httpx
from github import GithubException

from .exceptions import GitHubApiError, RateLimitExhausted, WorkflowAborted
from .find_repos import OrgCrawler
from .github import GitHubClient
from .log import run_log
from .rate_limit import RateLimiter
from .settings import get_settings
from .update_config import CommitPublisher, UpdateWorkflow, summarize, update_organization, update_repository


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Point Renovate configs at MyOtherOrg and open pull requests",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--org",
        default=settings.github_org,
        help=f"GitHub organization name (default: {settings.github_org})",
    )
    parser.add_argument(
        "--repo",
        default=None,
        help="Specific repository name (optional, if not provided will scan entire org)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run in dry-run mode (no PRs will be created)",
    )
    parser.add_argument(
        "--token",
        default=settings.github_token,
        help="GitHub personal access token (required, or set GITHUB_TOKEN)",
    )
    parser.add_argument(
        "--gpg-key",
        default=settings.gpg_key_id,
        help="GPG key ID for signing commits (optional)",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=settings.log_dir,
        help="Directory for run logs (default: logs)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.token:
        print("GitHub token is required. Please provide it using the --token flag", file=sys.stderr)
        return 1

    with run_log(args.log_dir) as logger:
        client = GitHubClient(token=args.token)
        limiter = RateLimiter(logger=logger)
        publisher = CommitPublisher(host=get_settings().git_host, logger=logger)
        workflow = UpdateWorkflow(
            client,
            publisher,
            dry_run=args.dry_run,
            signing_key=args.gpg_key,
            logger=logger,
            limiter=limiter,
        )
        try:
            if args.repo:
                try:
                    outcome = update_repository(args.org, args.repo, workflow, logger=logger)
                except (WorkflowAborted, GithubException, RateLimitExhausted, OSError) as e:
                    logger.error("Error processing repository %s/%s: %s", args.org, args.repo, e)
                    return 1
                summarize([outcome], logger=logger)
            else:
                crawler = OrgCrawler(client, limiter, logger=logger)
                try:
                    outcomes = update_organization(args.org, crawler, workflow, logger=logger)
                except (GitHubApiError, RateLimitExhausted, httpx.HTTPError, OSError) as e:
                    logger.error("Error finding repositories: %s", e)
                    return 1
                summarize(outcomes, logger=logger)
        finally:
            client.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
