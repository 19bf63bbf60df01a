"""
lambda_deploy.orchestrator — Decide create vs update and run the calls in order.

State machine:

    Start → CheckExistence → CreatePath              → Done(arn)
                           → UpdateCodeOnlyPath      → Done(arn)
                           → UpdateCodeAndConfigPath → Done(arn)
          (any step)                                 → raise DeploymentError

    CodeOnly       + existing → update-code
    CodeOnly       + absent   → TargetNotFoundError (never auto-creates)
    CodeAndConfig  + absent   → role-resolution, create
    CodeAndConfig  + existing → role-resolution, update-configuration, update-code

Configuration is always updated before code: Lambda cannot change both in
one call and Publish is only accepted on the code update.  Calls are
strictly sequential, nothing is retried here, and a failed code update
after a successful configuration update is not rolled back.  The
existence check is a single point-in-time lookup.

If the configuration update is accepted but the function_updated waiter
gives up, the run stops with ConfigurationNotSettledError: completed_steps
ends with update-configuration and update-code is never sent.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeVar

from aws_lambda_powertools import Logger

from lambda_deploy.assembler import (
    build_create_request,
    build_update_code_request,
    build_update_config_request,
)
from lambda_deploy.client import LambdaDeployClient, LookupOutcome, RemoteExecutionClient
from lambda_deploy.credentials import AwsConnection, resolve_connection
from lambda_deploy.exceptions import (
    CreateFailedError,
    DeploymentError,
    ConfigurationNotSettledError,
    ExistenceCheckError,
    PreconditionError,
    RoleResolutionError,
    TargetNotFoundError,
    UnrecognizedIntentError,
    UpdateCodeFailedError,
    UpdateConfigurationFailedError,
)
from lambda_deploy.models import (
    CodeSource,
    DeploymentIntent,
    DeploymentPath,
    DeploymentResult,
    DeploymentStep,
    DeploymentTarget,
    ExistencePolicy,
    FunctionConfig,
)
from lambda_deploy.settings import DeploySettings

logger = Logger(service="lambda-deploy")

T = TypeVar("T")


class DeploymentOrchestrator:
    """
    Runs one deployment per deploy() call.  Holds no state between runs
    apart from its client and policy.

    existence_policy: LENIENT treats any failed lookup as "absent";
                      STRICT only treats NotFound as "absent".
    output_variable:  when set, the resulting ARN is also logged against
                      this name for the caller to publish.
    """

    def __init__(
        self,
        client: RemoteExecutionClient,
        *,
        existence_policy: ExistencePolicy = ExistencePolicy.LENIENT,
        output_variable: str | None = None,
    ) -> None:
        self._client = client
        self._existence_policy = existence_policy
        self._output_variable = output_variable

    def deploy(
        self,
        target: DeploymentTarget,
        intent: DeploymentIntent | str,
        source: CodeSource,
        config: FunctionConfig | None = None,
    ) -> DeploymentResult:
        """
        Run one deployment and return the function ARN with the steps taken.

        intent is a DeploymentIntent or its value: "codeonly" or
        "codeandconfiguration", matched case-insensitively ("CodeOnly" and
        "CodeAndConfig" are accepted).  Anything else raises
        UnrecognizedIntentError before any remote call.  config is required
        for code-and-configuration runs and ignored for code-only runs.
        """
        function_name = target.function_name
        try:
            intent = DeploymentIntent(intent)
        except ValueError as exc:
            raise UnrecognizedIntentError(
                f"Unrecognized deployment mode {intent!r}", function_name=function_name
            ) from exc
        if intent is DeploymentIntent.CODE_AND_CONFIG and config is None:
            raise PreconditionError(
                "Function configuration is required to deploy code and configuration",
                function_name=function_name,
            )

        steps: list[DeploymentStep] = []
        exists = self._check_existence(function_name, steps)

        if intent is DeploymentIntent.CODE_ONLY:
            if not exists:
                raise TargetNotFoundError(
                    "Function not found; code-only deployment requires an existing function",
                    function_name=function_name,
                    phase=DeploymentStep.EXISTENCE_CHECK,
                    completed_steps=steps,
                )
            path = DeploymentPath.UPDATE_CODE_ONLY
            function_arn = self._update_code_only(target, source, steps)
        elif exists:
            path = DeploymentPath.UPDATE_CODE_AND_CONFIG
            function_arn = self._update_code_and_config(target, config, source, steps)
        else:
            path = DeploymentPath.CREATE
            function_arn = self._create(target, config, source, steps)

        if self._output_variable:
            logger.info(
                "Setting output variable",
                output_variable=self._output_variable,
                function_arn=function_arn,
            )
        logger.info(
            "Deployment completed",
            function_name=function_name,
            function_arn=function_arn,
            path=str(path),
        )
        return DeploymentResult(
            function_name=function_name,
            function_arn=function_arn,
            path=path,
            completed_steps=tuple(steps),
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _check_existence(self, function_name: str, steps: list[DeploymentStep]) -> bool:
        try:
            result = self._client.lookup(function_name)
            outcome, error = result.outcome, result.error
        except Exception as exc:
            outcome, error = LookupOutcome.TRANSPORT_ERROR, exc

        if outcome is LookupOutcome.TRANSPORT_ERROR:
            if self._existence_policy is ExistencePolicy.STRICT:
                logger.error(
                    "Existence check failed", function_name=function_name, error=str(error)
                )
                raise ExistenceCheckError(
                    "Unable to determine whether function exists",
                    function_name=function_name,
                    phase=DeploymentStep.EXISTENCE_CHECK,
                    completed_steps=steps,
                    original_error=error,
                )
            logger.warning(
                "Existence check failed; treating function as absent",
                function_name=function_name,
                error=str(error),
            )

        steps.append(DeploymentStep.EXISTENCE_CHECK)
        exists = outcome is LookupOutcome.FOUND
        logger.debug("Existence check complete", function_name=function_name, exists=exists)
        return exists

    def _update_code_only(
        self, target: DeploymentTarget, source: CodeSource, steps: list[DeploymentStep]
    ) -> str:
        request = self._build(
            target,
            DeploymentStep.UPDATE_CODE,
            steps,
            lambda: build_update_code_request(target, source),
        )
        logger.info("Updating function code", function_name=target.function_name)
        return self._call(
            target,
            DeploymentStep.UPDATE_CODE,
            steps,
            UpdateCodeFailedError,
            "Error while updating function code",
            lambda: self._client.update_code(request),
        )

    def _update_code_and_config(
        self,
        target: DeploymentTarget,
        config: FunctionConfig,
        source: CodeSource,
        steps: list[DeploymentStep],
    ) -> str:
        role_arn = self._resolve_role(target, config, steps)
        config_request = self._build(
            target,
            DeploymentStep.UPDATE_CONFIGURATION,
            steps,
            lambda: build_update_config_request(target, config, role_arn=role_arn),
        )
        # Read the archive before mutating anything remote.
        code_request = self._build(
            target,
            DeploymentStep.UPDATE_CODE,
            steps,
            lambda: build_update_code_request(target, source),
        )
        logger.info("Updating function configuration", function_name=target.function_name)
        try:
            self._call(
                target,
                DeploymentStep.UPDATE_CONFIGURATION,
                steps,
                UpdateConfigurationFailedError,
                "Error while updating function configuration",
                lambda: self._client.update_configuration(config_request),
            )
        except ConfigurationNotSettledError as exc:
            # The update call itself succeeded; only the wait for it failed.
            steps.append(DeploymentStep.UPDATE_CONFIGURATION)
            logger.error(
                "Configuration update did not settle; skipping code update",
                function_name=target.function_name,
                error=str(exc.original_error or exc),
            )
            raise ConfigurationNotSettledError(
                exc.message,
                function_name=target.function_name,
                phase=DeploymentStep.UPDATE_CODE,
                completed_steps=steps,
                original_error=exc.original_error,
            ) from exc
        logger.info("Updating function code", function_name=target.function_name)
        return self._call(
            target,
            DeploymentStep.UPDATE_CODE,
            steps,
            UpdateCodeFailedError,
            "Error while updating function code",
            lambda: self._client.update_code(code_request),
        )

    def _create(
        self,
        target: DeploymentTarget,
        config: FunctionConfig,
        source: CodeSource,
        steps: list[DeploymentStep],
    ) -> str:
        role_arn = self._resolve_role(target, config, steps)
        request = self._build(
            target,
            DeploymentStep.CREATE,
            steps,
            lambda: build_create_request(target, config, source, role_arn=role_arn),
        )
        logger.info("Creating function", function_name=target.function_name)
        return self._call(
            target,
            DeploymentStep.CREATE,
            steps,
            CreateFailedError,
            "Failed to create function",
            lambda: self._client.create(request),
        )

    def _resolve_role(
        self, target: DeploymentTarget, config: FunctionConfig, steps: list[DeploymentStep]
    ) -> str:
        role_arn = self._call(
            target,
            DeploymentStep.ROLE_RESOLUTION,
            steps,
            RoleResolutionError,
            f"Unable to resolve role {config.role!r}",
            lambda: self._client.resolve_role_arn(config.role),
        )
        if not role_arn:
            raise RoleResolutionError(
                f"Role {config.role!r} resolved to an empty ARN",
                function_name=target.function_name,
                phase=DeploymentStep.ROLE_RESOLUTION,
                completed_steps=steps[:-1],
            )
        return role_arn

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _build(
        self,
        target: DeploymentTarget,
        step: DeploymentStep,
        steps: list[DeploymentStep],
        builder: Callable[[], T],
    ) -> T:
        """Run a request builder, stamping any failure with run context."""
        try:
            return builder()
        except DeploymentError as exc:
            logger.error(
                "Failed to build request",
                function_name=target.function_name,
                phase=str(exc.phase or step),
                error=exc.message,
            )
            raise type(exc)(
                exc.message,
                function_name=target.function_name,
                phase=exc.phase or step,
                completed_steps=steps,
                original_error=exc.original_error,
            ) from exc

    def _call(
        self,
        target: DeploymentTarget,
        step: DeploymentStep,
        steps: list[DeploymentStep],
        error_cls: type[DeploymentError],
        message: str,
        call: Callable[[], T],
    ) -> T:
        """Invoke one remote operation; on failure raise error_cls tagged with step."""
        try:
            value = call()
        except DeploymentError:
            raise
        except Exception as exc:
            logger.exception(message, function_name=target.function_name, phase=str(step))
            raise error_cls(
                message,
                function_name=target.function_name,
                phase=step,
                completed_steps=steps,
                original_error=exc,
            ) from exc
        steps.append(step)
        return value


def deploy_function(
    target: DeploymentTarget,
    intent: DeploymentIntent | str,
    source: CodeSource,
    config: FunctionConfig | None = None,
    *,
    connection: AwsConnection | None = None,
    settings: DeploySettings | None = None,
    client: RemoteExecutionClient | None = None,
) -> DeploymentResult:
    """Deploy one function with settings and credentials taken from the environment
    unless given explicitly."""
    settings = settings or DeploySettings.from_env()
    if client is None:
        client = LambdaDeployClient.from_connection(
            connection or resolve_connection(),
            wait_for_updates=settings.wait_for_updates,
        )
    orchestrator = DeploymentOrchestrator(
        client,
        existence_policy=settings.existence_policy,
        output_variable=settings.output_variable,
    )
    return orchestrator.deploy(target, intent, source, config)
