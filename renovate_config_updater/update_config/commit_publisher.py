"""Publish a changed config file as a commit on a new branch, using the git CLI."""

import logging
import shutil
import subprocess
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from ..exceptions import ExternalExecutorError
from ..models import CommitRequest

GIT_TIMEOUT = 300
TEMP_PREFIX = "renovate-config-updater-"


@dataclass(frozen=True)
class ExecResult:
    returncode: int
    output: str  # stdout and stderr combined


class Executor(Protocol):
    def __call__(self, args: Sequence[str], cwd: Path | None = None) -> ExecResult: ...


class GitExecutor:
    """Runs git as a subprocess and captures its combined output."""

    def __init__(self, git: str = "git", timeout: float = GIT_TIMEOUT):
        self.git = git
        self.timeout = timeout

    def __call__(self, args: Sequence[str], cwd: Path | None = None) -> ExecResult:
        result = subprocess.run(
            [self.git, *args],
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            timeout=self.timeout,
            check=False,
        )
        return ExecResult(returncode=result.returncode, output=result.stdout or "")


class CommitPublisher:
    """Clones a repository, commits one file on a fresh branch and pushes it.

    The clone lives in a private temp directory that is removed when
    ``publish`` returns, whichever step failed.
    """

    def __init__(
        self,
        executor: Executor | None = None,
        host: str = "github.com",
        logger: logging.Logger | None = None,
    ):
        self.executor = executor or GitExecutor()
        self.host = host
        self.logger = logger or logging.getLogger(__name__)

    def clone_url(self, request: CommitRequest) -> str:
        repo = request.repository
        return f"git@{self.host}:{repo.owner}/{repo.name}.git"

    def _run(self, step: str, args: list[str], cwd: Path | None) -> None:
        try:
            result = self.executor(args, cwd=cwd)
        except (OSError, subprocess.SubprocessError) as e:
            raise ExternalExecutorError(step, str(e)) from e
        if result.returncode != 0:
            raise ExternalExecutorError(step, result.output, result.returncode)

    def publish(self, request: CommitRequest) -> None:
        repo = request.repository
        self.logger.info("Starting to create signed commit for repository: %s", repo.full_name)

        workdir = Path(tempfile.mkdtemp(prefix=TEMP_PREFIX))
        try:
            self.logger.info("Created temporary directory: %s", workdir)
            self._publish_in(workdir, request)
        finally:
            shutil.rmtree(workdir, ignore_errors=True)

    def _publish_in(self, workdir: Path, request: CommitRequest) -> None:
        url = self.clone_url(request)
        self.logger.info("Cloning repository: %s", url)
        self._run("cloning repository", ["clone", url, str(workdir)], cwd=None)

        self.logger.info("Creating and checking out branch: %s", request.branch)
        self._run("creating branch", ["checkout", "-b", request.branch], cwd=workdir)

        target = workdir / request.path
        self.logger.info("Writing %s to: %s", request.path, target)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(request.content)
        except OSError as e:
            raise ExternalExecutorError(f"writing {request.path}", str(e)) from e

        self.logger.info("Adding %s to git", request.path)
        self._run("adding file", ["add", request.path], cwd=workdir)

        commit_args = ["commit", "-m", request.message]
        if request.signing_key:
            self.logger.info("Configuring git for signing with key: %s", request.signing_key)
            self._run(
                "configuring signing key",
                ["config", "user.signingkey", request.signing_key],
                cwd=workdir,
            )
            commit_args.append("-S")

        self.logger.info("Creating commit with command: git %s", " ".join(commit_args))
        self._run("creating commit", commit_args, cwd=workdir)

        self.logger.info("Pushing branch to remote")
        self._run("pushing branch", ["push", "origin", request.branch], cwd=workdir)
        self.logger.info("Branch pushed successfully")
