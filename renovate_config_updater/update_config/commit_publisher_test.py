"""Unit tests for CommitPublisher with a recording executor."""

import subprocess
from pathlib import Path

import pytest

from ..exceptions import ExternalExecutorError
from ..models import CommitRequest, Repository
from .commit_publisher import CommitPublisher, ExecResult, GitExecutor

REPO = Repository("Acme", "B", "main")
NEW_CONTENT = b'{"extends": ["github>MyOtherOrg/lib"]}\n'


class RecordingExecutor:
    """Pretends to be git; fails on the named subcommand."""

    def __init__(self, fail_on=None, on_clone=None):
        self.fail_on = fail_on
        self.on_clone = on_clone
        self.calls = []
        self.workdir = None
        self.files_at_commit = {}

    def __call__(self, args, cwd=None):
        args = list(args)
        self.calls.append((args, cwd))
        if args[0] == "clone":
            self.workdir = Path(args[2])
            if self.on_clone:
                self.on_clone(self.workdir)
        if args[0] == "commit" and self.workdir is not None:
            self.files_at_commit = {
                str(p.relative_to(self.workdir)): p.read_bytes() for p in self.workdir.rglob("*") if p.is_file()
            }
        if args[0] == self.fail_on:
            return ExecResult(returncode=128, output=f"fatal: {args[0]} went wrong")
        return ExecResult(returncode=0, output="")


def describe_CommitPublisher():
    @pytest.fixture
    def request_():
        return CommitRequest(repository=REPO, content=NEW_CONTENT)

    def it_runs_the_git_steps_in_order(request_):
        executor = RecordingExecutor()

        CommitPublisher(executor).publish(request_)

        commands = [args for args, _ in executor.calls]
        assert commands == [
            ["clone", "git@github.com:Acme/B.git", str(executor.workdir)],
            ["checkout", "-b", "update-renovate-config"],
            ["add", "renovate.json"],
            ["commit", "-m", "Update renovate.json to use MyOtherOrg"],
            ["push", "origin", "update-renovate-config"],
        ]
        assert executor.calls[0][1] is None
        assert all(cwd == executor.workdir for _, cwd in executor.calls[1:])

    def it_writes_the_new_content_before_committing(request_):
        executor = RecordingExecutor()

        CommitPublisher(executor).publish(request_)

        assert executor.files_at_commit == {"renovate.json": NEW_CONTENT}

    def it_writes_nested_paths():
        executor = RecordingExecutor()
        request_ = CommitRequest(repository=REPO, content=NEW_CONTENT, path=".github/renovate.json")

        CommitPublisher(executor).publish(request_)

        assert executor.files_at_commit == {".github/renovate.json": NEW_CONTENT}
        assert ["add", ".github/renovate.json"] in [args for args, _ in executor.calls]

    def it_signs_when_a_key_is_given():
        executor = RecordingExecutor()
        request_ = CommitRequest(repository=REPO, content=NEW_CONTENT, signing_key="ABCD1234")

        CommitPublisher(executor).publish(request_)

        commands = [args for args, _ in executor.calls]
        assert ["config", "user.signingkey", "ABCD1234"] in commands
        assert ["commit", "-m", "Update renovate.json to use MyOtherOrg", "-S"] in commands
        assert commands.index(["config", "user.signingkey", "ABCD1234"]) < commands.index(
            ["commit", "-m", "Update renovate.json to use MyOtherOrg", "-S"]
        )

    def it_uses_the_configured_host(request_):
        executor = RecordingExecutor()

        CommitPublisher(executor, host="github.example.com").publish(request_)

        assert executor.calls[0][0][1] == "git@github.example.com:Acme/B.git"

    def it_removes_the_workspace_after_success(request_):
        executor = RecordingExecutor()

        CommitPublisher(executor).publish(request_)

        assert executor.workdir is not None
        assert not executor.workdir.exists()

    @pytest.mark.parametrize(
        "subcommand, step",
        [
            ("clone", "cloning repository"),
            ("checkout", "creating branch"),
            ("add", "adding file"),
            ("config", "configuring signing key"),
            ("commit", "creating commit"),
            ("push", "pushing branch"),
        ],
    )
    def it_reports_the_failing_step_and_cleans_up(subcommand, step):
        executor = RecordingExecutor(fail_on=subcommand)
        request_ = CommitRequest(repository=REPO, content=NEW_CONTENT, signing_key="ABCD1234")

        with pytest.raises(ExternalExecutorError) as exc:
            CommitPublisher(executor).publish(request_)

        assert exc.value.step == step
        assert exc.value.returncode == 128
        assert f"fatal: {subcommand} went wrong" in str(exc.value)
        assert not executor.workdir.exists()
        assert executor.calls[-1][0][0] == subcommand

    def it_reports_write_failures_and_cleans_up(request_):
        executor = RecordingExecutor(on_clone=lambda workdir: (workdir / "renovate.json").mkdir())

        with pytest.raises(ExternalExecutorError) as exc:
            CommitPublisher(executor).publish(request_)

        assert exc.value.step == "writing renovate.json"
        assert not executor.workdir.exists()
        assert [args[0] for args, _ in executor.calls] == ["clone", "checkout"]

    def it_wraps_executor_crashes():
        def executor(args, cwd=None):
            raise FileNotFoundError("git: command not found")

        with pytest.raises(ExternalExecutorError, match="command not found") as exc:
            CommitPublisher(executor).publish(CommitRequest(repository=REPO, content=NEW_CONTENT))

        assert exc.value.step == "cloning repository"


def describe_GitExecutor():
    def it_merges_stderr_into_the_output(tmp_path, monkeypatch):
        captured = {}

        def fake_run(cmd, **kwargs):
            captured["cmd"] = cmd
            captured.update(kwargs)
            return subprocess.CompletedProcess(cmd, 1, stdout="error: pathspec did not match\n")

        monkeypatch.setattr(subprocess, "run", fake_run)

        result = GitExecutor()(["add", "renovate.json"], cwd=tmp_path)

        assert result == ExecResult(returncode=1, output="error: pathspec did not match\n")
        assert captured["cmd"] == ["git", "add", "renovate.json"]
        assert captured["cwd"] == tmp_path
        assert captured["stderr"] is subprocess.STDOUT
