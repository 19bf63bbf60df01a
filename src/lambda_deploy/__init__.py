"""
lambda_deploy — Create-or-update deployment of AWS Lambda functions.

Given a function name and an intent (code only, or code and configuration)
the orchestrator checks whether the function exists, builds the matching
create/update requests and reports the resulting function ARN.

Usage:
    from lambda_deploy import (
        DeploymentIntent, DeploymentTarget, FunctionConfig, RemoteArchive, deploy_function,
    )

    result = deploy_function(
        DeploymentTarget("orders-fn", publish=True),
        DeploymentIntent.CODE_AND_CONFIG,
        RemoteArchive(bucket="artifacts", key="orders-fn.zip"),
        FunctionConfig(handler="app.handler", role="svc-role", runtime="python3.12"),
    )
    print(result.function_arn)
"""

from lambda_deploy.client import (
    LambdaDeployClient,
    LookupOutcome,
    LookupResult,
    RemoteExecutionClient,
)
from lambda_deploy.credentials import AwsConnection, resolve_connection
from lambda_deploy.exceptions import (
    ArchiveUnreadableError,
    ConfigurationError,
    ConfigurationNotSettledError,
    CreateFailedError,
    DeploymentError,
    ExistenceCheckError,
    InvalidCodeSourceError,
    PreconditionError,
    RemoteOperationError,
    RoleResolutionError,
    TargetNotFoundError,
    UnrecognizedIntentError,
    UpdateCodeFailedError,
    UpdateConfigurationFailedError,
)
from lambda_deploy.models import (
    DeploymentIntent,
    DeploymentPath,
    DeploymentResult,
    DeploymentStep,
    DeploymentTarget,
    ExistencePolicy,
    FunctionConfig,
    LocalArchive,
    RemoteArchive,
    TracingMode,
    VpcAttachment,
    parse_key_value_pairs,
)
from lambda_deploy.orchestrator import DeploymentOrchestrator, deploy_function
from lambda_deploy.settings import DeploySettings

__all__ = [
    # Models
    "DeploymentIntent",
    "DeploymentPath",
    "DeploymentResult",
    "DeploymentStep",
    "DeploymentTarget",
    "ExistencePolicy",
    "FunctionConfig",
    "LocalArchive",
    "RemoteArchive",
    "TracingMode",
    "VpcAttachment",
    "parse_key_value_pairs",
    # Orchestration
    "DeploymentOrchestrator",
    "deploy_function",
    "DeploySettings",
    # Remote client
    "AwsConnection",
    "LambdaDeployClient",
    "LookupOutcome",
    "LookupResult",
    "RemoteExecutionClient",
    "resolve_connection",
    # Exceptions
    "DeploymentError",
    "PreconditionError",
    "TargetNotFoundError",
    "UnrecognizedIntentError",
    "ArchiveUnreadableError",
    "InvalidCodeSourceError",
    "ConfigurationError",
    "ExistenceCheckError",
    "RoleResolutionError",
    "RemoteOperationError",
    "CreateFailedError",
    "UpdateConfigurationFailedError",
    "ConfigurationNotSettledError",
    "UpdateCodeFailedError",
]
