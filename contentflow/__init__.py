"""Contentflow: multi-phase AI report generation with review and translation fan-out."""

from .config import ContentflowConfig, load_config
from .contracts import ApprovalResult, Completion, JobView, PhaseDefinition, WorkflowView
from .dispatch import TranslationDispatcher
from .errors import (
    ConfigurationError,
    ContentflowError,
    GatewayError,
    GatewayTimeoutError,
    NotFoundError,
    WorkflowValidationError,
)
from .gateway import CompletionGateway, get_gateway
from .orchestrator import WorkflowOrchestrator
from .persistence import get_repository
from .phases import PHASE_CATALOG, definition_for
from .usage import UsageLedger

__version__ = "0.1.0"
__all__ = [
    "ApprovalResult",
    "Completion",
    "CompletionGateway",
    "ConfigurationError",
    "ContentflowConfig",
    "ContentflowError",
    "GatewayError",
    "GatewayTimeoutError",
    "JobView",
    "NotFoundError",
    "PHASE_CATALOG",
    "PhaseDefinition",
    "TranslationDispatcher",
    "UsageLedger",
    "WorkflowOrchestrator",
    "WorkflowValidationError",
    "WorkflowView",
    "definition_for",
    "get_gateway",
    "get_repository",
    "load_config",
]
