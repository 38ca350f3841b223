"""Exception hierarchy for grantflow."""

from __future__ import annotations


class GrantflowError(Exception):
    """Base class for all grantflow errors."""


class ConfigError(GrantflowError):
    """Invalid configuration or import string."""


class UnknownChainError(ConfigError):
    """Raised when a chain id has no entry in the chain directory."""

    def __init__(self, chain_id: int) -> None:
        super().__init__(f"Unknown chain id: {chain_id}")
        self.chain_id = chain_id


class StepTransitionError(GrantflowError):
    """A step status change that the workflow state machine does not allow."""


# Collaborator failures ------------------------------------------------------


class ServiceError(GrantflowError):
    """Failure reported by an external collaborator."""


class StorageError(ServiceError):
    """Pinning a record to content-addressed storage failed."""


class TransactionError(ServiceError):
    """Submitting a transaction or waiting for its receipt failed."""


class EventDecodeError(ServiceError):
    """A log entry did not match the expected event schema."""


class IndexQueryError(ServiceError):
    """The indexer query could not be executed."""


# Stage failures -------------------------------------------------------------


class WorkflowError(GrantflowError):
    """A workflow stage failed; recorded on the step tracker."""


class PublishError(WorkflowError):
    """Image or metadata publication failed."""


class RegistrationError(WorkflowError):
    """Building, submitting or decoding the registration transaction failed."""


class InconsistentReceiptError(RegistrationError):
    """The receipt carried no decodable event with a recipient id."""


class IndexTimeoutError(WorkflowError):
    """The indexer never reported the recipient within the polling budget."""
