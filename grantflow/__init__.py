"""grantflow: publish, register and index grant applications."""

from .config import GrantflowConfig, load_config
from .contracts import (
    ApplicationInput,
    StepStatus,
    WorkflowOutcome,
    WorkflowStep,
)
from .errors import (
    GrantflowError,
    IndexTimeoutError,
    PublishError,
    RegistrationError,
    WorkflowError,
)
from .indexing import IndexConfirmer
from .orchestrator import ApplicationOrchestrator
from .publisher import MetadataPublisher
from .registration import RegistrationSubmitter
from .tracker import StepEvent, StepTracker

__version__ = "0.1.0"
__all__ = [
    "ApplicationInput",
    "ApplicationOrchestrator",
    "GrantflowConfig",
    "GrantflowError",
    "IndexConfirmer",
    "IndexTimeoutError",
    "MetadataPublisher",
    "PublishError",
    "RegistrationError",
    "RegistrationSubmitter",
    "StepEvent",
    "StepStatus",
    "StepTracker",
    "WorkflowError",
    "WorkflowOutcome",
    "WorkflowStep",
    "load_config",
]
