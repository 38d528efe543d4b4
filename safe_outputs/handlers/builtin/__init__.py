"""Built-in safe-output handlers shipped with safe-outputs."""

from safe_outputs.handlers.builtin.add_comment import (
    AddCommentHandler,
    register_handlers as register_add_comment_handlers,
)
from safe_outputs.handlers.builtin.add_labels import (
    AddLabelsHandler,
    register_handlers as register_add_labels_handlers,
)
from safe_outputs.handlers.builtin.assign_to_user import (
    AssignToUserHandler,
    register_handlers as register_assign_to_user_handlers,
)
from safe_outputs.handlers.builtin.close_issue import (
    CloseIssueHandler,
    register_handlers as register_close_issue_handlers,
)
from safe_outputs.handlers.builtin.create_code_scanning_alert import (
    CreateCodeScanningAlertHandler,
    register_handlers as register_code_scanning_handlers,
)
from safe_outputs.handlers.builtin.dispatch_workflow import (
    DispatchWorkflowHandler,
    register_handlers as register_dispatch_workflow_handlers,
)
from safe_outputs.handlers.builtin.record import (
    MissingDataHandler,
    MissingToolHandler,
    NoopHandler,
    register_handlers as register_record_handlers,
)
from safe_outputs.handlers.builtin.remove_labels import (
    RemoveLabelsHandler,
    register_handlers as register_remove_labels_handlers,
)


def register_builtin_handlers(registry) -> None:
    """Register every built-in handler in a HandlerRegistry."""
    register_add_comment_handlers(registry)
    register_add_labels_handlers(registry)
    register_assign_to_user_handlers(registry)
    register_close_issue_handlers(registry)
    register_code_scanning_handlers(registry)
    register_dispatch_workflow_handlers(registry)
    register_record_handlers(registry)
    register_remove_labels_handlers(registry)


__all__ = [
    "AddCommentHandler",
    "AddLabelsHandler",
    "AssignToUserHandler",
    "CloseIssueHandler",
    "CreateCodeScanningAlertHandler",
    "DispatchWorkflowHandler",
    "MissingDataHandler",
    "MissingToolHandler",
    "NoopHandler",
    "RemoveLabelsHandler",
    "register_builtin_handlers",
]
