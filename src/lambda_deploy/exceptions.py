"""
lambda_deploy.exceptions — Deployment failure taxonomy.

Every error is fatal to the current run.  Each carries the target
function name, the phase that failed and the steps that completed before
it, so callers can tell exactly how far execution progressed.

Exception Hierarchy:
    DeploymentError (base)
    ├── PreconditionError
    │   ├── TargetNotFoundError      - code-only deploy to a missing function
    │   ├── UnrecognizedIntentError  - intent outside DeploymentIntent
    │   ├── ArchiveUnreadableError   - local zip cannot be read
    │   └── InvalidCodeSourceError   - code source is not a usable archive
    ├── ConfigurationError           - invalid settings or KEY=VALUE input
    ├── ExistenceCheckError          - lookup transport failure (strict policy)
    ├── RoleResolutionError          - role name could not be resolved to an ARN
    └── RemoteOperationError
        ├── CreateFailedError
        ├── UpdateConfigurationFailedError
        ├── ConfigurationNotSettledError - waiter gave up after config update
        └── UpdateCodeFailedError
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lambda_deploy.models import DeploymentStep


class DeploymentError(Exception):
    """
    Base exception for all deployment errors.

    Attributes:
        message:         Human-readable error description.
        function_name:   Target function, when known.
        phase:           Step that failed (e.g. "update-code"), when known.
        completed_steps: Steps that finished before the failure, in order.
        original_error:  Underlying SDK exception, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        function_name: str | None = None,
        phase: DeploymentStep | None = None,
        completed_steps: Sequence[DeploymentStep] = (),
        original_error: BaseException | None = None,
    ) -> None:
        self.message = message
        self.function_name = function_name
        self.phase = phase
        self.completed_steps = tuple(completed_steps)
        self.original_error = original_error

        details = []
        if function_name:
            details.append(f"function={function_name}")
        if phase:
            details.append(f"phase={phase}")
        full_message = f"{message} [{', '.join(details)}]" if details else message
        if original_error is not None:
            full_message += f": {original_error}"
        super().__init__(full_message)

    @property
    def last_completed_step(self) -> DeploymentStep | None:
        return self.completed_steps[-1] if self.completed_steps else None


class PreconditionError(DeploymentError):
    """Raised when the run cannot start or proceed because of caller input."""


class TargetNotFoundError(PreconditionError):
    """Raised for a code-only deployment when the function does not exist.

    Code-only intent never auto-creates the function.
    """


class UnrecognizedIntentError(PreconditionError):
    """Raised when the deployment intent is not a DeploymentIntent member."""


class ArchiveUnreadableError(PreconditionError):
    """Raised when a LocalArchive path cannot be opened or read."""


class InvalidCodeSourceError(PreconditionError):
    """Raised when the code source is not a LocalArchive or RemoteArchive, or
    a RemoteArchive is missing its bucket or key."""


class ConfigurationError(DeploymentError):
    """Raised when settings or KEY=VALUE input are invalid."""


class ExistenceCheckError(DeploymentError):
    """Raised under ExistencePolicy.STRICT when the lookup fails for a reason
    other than the function being absent."""


class RoleResolutionError(DeploymentError):
    """Raised when an IAM role name cannot be resolved to its ARN."""


class RemoteOperationError(DeploymentError):
    """Raised when a create/update call against the Lambda API fails.

    No compensation is attempted: after a failed code update the
    configuration update that preceded it stays applied.
    """


class CreateFailedError(RemoteOperationError):
    pass


class UpdateConfigurationFailedError(RemoteOperationError):
    pass


class ConfigurationNotSettledError(RemoteOperationError):
    """Raised when Lambda accepted a configuration update but did not report
    it as applied in time.

    The configuration change may already be live.  completed_steps ends
    with update-configuration and the code update was not attempted.
    """


class UpdateCodeFailedError(RemoteOperationError):
    pass
