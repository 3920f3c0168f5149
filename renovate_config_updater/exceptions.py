"""Exceptions raised while crawling and updating repositories."""

from .models import RateLimitSnapshot


class RateLimitExhausted(Exception):
    """The API reported zero remaining requests for the current window."""

    def __init__(self, snapshot: RateLimitSnapshot, message: str = "API rate limit exhausted"):
        super().__init__(message)
        self.snapshot = snapshot


class GitHubApiError(Exception):
    """Non-success response from a raw REST call."""

    def __init__(self, status: int, message: str):
        super().__init__(f"GitHub API error {status}: {message}")
        self.status = status


class ExternalExecutorError(Exception):
    """A version-control command failed while publishing a commit."""

    def __init__(self, step: str, output: str, returncode: int | None = None):
        detail = f"error {step}"
        if returncode is not None:
            detail += f" (exit status {returncode})"
        super().__init__(f"{detail}, output: {output}")
        self.step = step
        self.output = output
        self.returncode = returncode


class WorkflowAborted(Exception):
    """The per-repository update workflow stopped before completing."""

    def __init__(self, state: str, reason: str):
        super().__init__(f"{state}: {reason}")
        self.state = state
        self.reason = reason
