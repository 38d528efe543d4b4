"""Core validation, budgeting and dispatch components."""

from safe_outputs.core.budget import DispatchThrottle, MessageBudget
from safe_outputs.core.errors import (
    BudgetExceededError,
    ConfigurationError,
    GatewayError,
    SafeOutputError,
    SecurityError,
    ValidationError,
)
from safe_outputs.core.models import (
    CodeScanningFinding,
    ProcessingResult,
    RepoRef,
    RunSummary,
    SafeOutputMessage,
    SarifLevel,
)
from safe_outputs.core.paths import (
    safe_join,
    validate_and_normalize_path,
    validate_directory,
    validate_path_within_base,
)
from safe_outputs.core.validation import (
    ValidationResult,
    sanitize_label_content,
    validate_body,
    validate_labels,
    validate_max_count,
    validate_title,
)

__all__ = [
    "BudgetExceededError",
    "CodeScanningFinding",
    "ConfigurationError",
    "DispatchThrottle",
    "GatewayError",
    "MessageBudget",
    "ProcessingResult",
    "RepoRef",
    "RunSummary",
    "SafeOutputError",
    "SafeOutputMessage",
    "SarifLevel",
    "SecurityError",
    "ValidationError",
    "ValidationResult",
    "safe_join",
    "sanitize_label_content",
    "validate_and_normalize_path",
    "validate_body",
    "validate_directory",
    "validate_labels",
    "validate_max_count",
    "validate_path_within_base",
    "validate_title",
]
