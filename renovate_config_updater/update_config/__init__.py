from .commit_publisher import CommitPublisher, ExecResult, GitExecutor
from .runner import summarize, update_organization, update_repository
from .update_workflow import UpdateWorkflow, WorkflowState

__all__ = [
    "CommitPublisher",
    "ExecResult",
    "GitExecutor",
    "UpdateWorkflow",
    "WorkflowState",
    "summarize",
    "update_organization",
    "update_repository",
]
