"""
lambda_deploy.client — Remote Execution Client for the Lambda and IAM APIs.

The orchestrator depends only on the RemoteExecutionClient protocol.
LambdaDeployClient is the boto3-backed implementation; it raises the SDK's
own ClientError/BotoCoreError and leaves wrapping to the orchestrator,
except for a failed wait after an accepted configuration update.
Retries are whatever the boto3 client's retry configuration does.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Protocol

import boto3
from aws_lambda_powertools import Logger
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, WaiterError

from lambda_deploy.assembler import (
    CreateFunctionRequest,
    UpdateCodeRequest,
    UpdateConfigurationRequest,
    is_role_arn,
)
from lambda_deploy.credentials import AwsConnection, create_session
from lambda_deploy.exceptions import ConfigurationNotSettledError

logger = Logger(service="lambda-deploy")

_NOT_FOUND_CODES = frozenset({"ResourceNotFoundException", "404"})
_SDK_RETRY_CONFIG = Config(retries={"max_attempts": 5, "mode": "standard"})


class LookupOutcome(StrEnum):
    FOUND = "found"
    NOT_FOUND = "not-found"
    TRANSPORT_ERROR = "transport-error"


@dataclass(frozen=True)
class LookupResult:
    outcome: LookupOutcome
    error: BaseException | None = None

    @property
    def found(self) -> bool:
        return self.outcome is LookupOutcome.FOUND


class RemoteExecutionClient(Protocol):
    def lookup(self, function_name: str) -> LookupResult: ...

    def create(self, request: CreateFunctionRequest) -> str: ...

    def update_configuration(self, request: UpdateConfigurationRequest) -> None: ...

    def update_code(self, request: UpdateCodeRequest) -> str: ...

    def resolve_role_arn(self, role: str) -> str: ...


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


class LambdaDeployClient:
    """
    boto3 implementation of RemoteExecutionClient.

    update_configuration() blocks on the function_updated waiter when
    wait_for_updates is set: Lambda rejects a code update while the
    configuration change is still InProgress.  A waiter that gives up raises
    ConfigurationNotSettledError rather than a raw WaiterError.
    """

    def __init__(
        self,
        lambda_client: Any,
        iam_client: Any,
        *,
        wait_for_updates: bool = True,
    ) -> None:
        self._lambda: Any = lambda_client
        self._iam: Any = iam_client
        self._wait_for_updates = wait_for_updates

    @classmethod
    def from_connection(
        cls,
        connection: AwsConnection,
        *,
        wait_for_updates: bool = True,
        session: boto3.Session | None = None,
    ) -> LambdaDeployClient:
        session = session or create_session(connection)
        return cls(
            session.client("lambda", region_name=connection.region, config=_SDK_RETRY_CONFIG),
            session.client("iam", config=_SDK_RETRY_CONFIG),
            wait_for_updates=wait_for_updates,
        )

    def lookup(self, function_name: str) -> LookupResult:
        try:
            self._lambda.get_function(FunctionName=function_name)
        except ClientError as exc:
            if _error_code(exc) in _NOT_FOUND_CODES:
                return LookupResult(LookupOutcome.NOT_FOUND, exc)
            return LookupResult(LookupOutcome.TRANSPORT_ERROR, exc)
        except BotoCoreError as exc:
            return LookupResult(LookupOutcome.TRANSPORT_ERROR, exc)
        return LookupResult(LookupOutcome.FOUND)

    def create(self, request: CreateFunctionRequest) -> str:
        response = self._lambda.create_function(**request.to_api_params())
        return response["FunctionArn"]

    def update_configuration(self, request: UpdateConfigurationRequest) -> None:
        self._lambda.update_function_configuration(**request.to_api_params())
        if self._wait_for_updates:
            logger.debug(
                "Waiting for configuration update to settle",
                function_name=request.function_name,
            )
            waiter = self._lambda.get_waiter("function_updated")
            try:
                waiter.wait(FunctionName=request.function_name)
            except WaiterError as exc:
                raise ConfigurationNotSettledError(
                    "Configuration update was accepted but did not finish applying",
                    function_name=request.function_name,
                    original_error=exc,
                ) from exc

    def update_code(self, request: UpdateCodeRequest) -> str:
        response = self._lambda.update_function_code(**request.to_api_params())
        return response["FunctionArn"]

    def resolve_role_arn(self, role: str) -> str:
        """Return role unchanged if it is an ARN, else look the name up in IAM."""
        if is_role_arn(role):
            return role
        response = self._iam.get_role(RoleName=role)
        return response["Role"]["Arn"]
