"""Data contracts exchanged between grantflow workflow stages."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .constants import (
    DEFAULT_EVENT_NAME,
    POOL_TARGET,
    RECIPIENT_ID_ARG,
    REGISTERED_EVENT_TOPIC,
    STORAGE_TARGET,
)


class StepStatus(str, Enum):
    """Lifecycle of a single workflow step."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (StepStatus.SUCCESS, StepStatus.ERROR)


class ImageFailurePolicy(str, Enum):
    """What to do when the standalone image publish fails."""

    CONTINUE = "continue"  # keep the raw payload in the record
    ABORT = "abort"


class WorkflowStep(BaseModel):
    """One observable phase of the application workflow."""

    id: int
    description: str
    target: str = ""
    href: str = ""
    status: StepStatus = StepStatus.NOT_STARTED


def default_steps() -> List[WorkflowStep]:
    """Return a fresh copy of the publish / register / index steps."""
    return [
        WorkflowStep(
            id=0, description="Saving your application to ", target=STORAGE_TARGET
        ),
        WorkflowStep(
            id=1, description="Registering your application on ", target=POOL_TARGET
        ),
        WorkflowStep(id=2, description="Indexing your application"),
    ]


class ApplicationInput(BaseModel):
    """Application record supplied by the caller."""

    model_config = ConfigDict(frozen=True)

    name: str
    website: str = ""
    description: str = ""
    email: str = ""
    image: Optional[str] = None
    profile_owner: str = ""
    recipient_address: str
    requested_amount: int = Field(ge=0)


class PublishedMetadata(BaseModel):
    """Metadata record as pinned to storage."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    website: str = ""
    description: str = ""
    email: str = ""
    image: Optional[str] = Field(default=None, alias="base64Image")
    profile_owner: str = Field(default="", alias="profileOwner")

    @classmethod
    def from_application(cls, application: ApplicationInput) -> "PublishedMetadata":
        return cls(
            name=application.name,
            website=application.website,
            description=application.description,
            email=application.email,
            image=application.image,
            profile_owner=application.profile_owner,
        )

    def to_record(self) -> Dict[str, Any]:
        """Serialize using the storage wire keys."""
        return self.model_dump(by_alias=True)


class PublishResult(BaseModel):
    pointer: str
    metadata: PublishedMetadata
    image_published: bool = False


class PinResult(BaseModel):
    content_hash: str


class ChainInfo(BaseModel):
    id: int
    name: str
    explorer_base_url: str

    def transaction_url(self, tx_hash: str) -> str:
        return f"{self.explorer_base_url.rstrip('/')}/tx/{tx_hash}"


class MetadataReference(BaseModel):
    """Protocol-tagged pointer handed to the registration strategy."""

    protocol: int
    pointer: str


class RegisterPayload(BaseModel):
    to: str
    data: str


class TransactionRequest(BaseModel):
    to: str
    data: str
    value: int = 0


class RawLog(BaseModel):
    address: str = ""
    topics: List[str] = Field(default_factory=list)
    data: str = "0x"


class TransactionReceipt(BaseModel):
    transaction_hash: str
    status: Optional[int] = None
    logs: List[RawLog] = Field(default_factory=list)

    @property
    def reverted(self) -> bool:
        return self.status == 0


class EventArgument(BaseModel):
    name: str
    type: str = "address"


class EventSchema(BaseModel):
    """Event layout used to decode receipt logs.

    ``topic`` is the event signature hash matched against the first topic of
    every log. Logs emitted for any other event are rejected.
    """

    name: str = DEFAULT_EVENT_NAME
    topic: Optional[str] = REGISTERED_EVENT_TOPIC
    indexed: List[EventArgument] = Field(
        default_factory=lambda: [EventArgument(name=RECIPIENT_ID_ARG)]
    )


class DecodedEvent(BaseModel):
    event_name: str
    args: Dict[str, Any] = Field(default_factory=dict)


class RegistrationResult(BaseModel):
    transaction_hash: str
    recipient_id: Optional[str] = None


class IndexQueryParams(BaseModel):
    chain_id: int
    pool_id: int
    recipient_id: str
    entity: str


class WorkflowOutcome(BaseModel):
    """Result of one application workflow run."""

    run_id: str
    recipient_id: Optional[str] = None
    steps: List[WorkflowStep] = Field(default_factory=list)
    pointer: Optional[str] = None
    transaction_hash: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.recipient_id is not None and all(
            step.status == StepStatus.SUCCESS for step in self.steps
        )

    @property
    def failed_step(self) -> Optional[WorkflowStep]:
        return next((s for s in self.steps if s.status == StepStatus.ERROR), None)
