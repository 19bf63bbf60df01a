"""
lambda_deploy.assembler — Build Lambda create/update request payloads.

Builders are deterministic: identical inputs give equal request objects
and equal boto3 keyword arguments.  The only I/O is reading a
LocalArchive zip, which is opened, fully read and closed before the
request is returned.

Optional blocks are modelled as None-able fields on the request
dataclasses; to_api_params() leaves unset blocks out entirely rather than
sending them as null.  TracingConfig is only sent when the mode differs
from the provider default (PassThrough), so account-level defaults are
not overridden.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from lambda_deploy.exceptions import (
    ArchiveUnreadableError,
    InvalidCodeSourceError,
    RoleResolutionError,
)
from lambda_deploy.models import (
    CodeSource,
    DeploymentStep,
    DeploymentTarget,
    FunctionConfig,
    LocalArchive,
    RemoteArchive,
    TracingMode,
    VpcAttachment,
)

_ARN_PREFIX = "arn:"


def is_role_arn(role: str) -> bool:
    return role.startswith(_ARN_PREFIX)


# ---------------------------------------------------------------------------
# Code location — ZipFile XOR S3Bucket/S3Key[/S3ObjectVersion]
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CodeLocation:
    zip_file: bytes | None = None
    s3_bucket: str | None = None
    s3_key: str | None = None
    s3_object_version: str | None = None

    def __post_init__(self) -> None:
        inline = self.zip_file is not None
        remote = self.s3_bucket is not None or self.s3_key is not None
        if inline == remote:
            raise InvalidCodeSourceError(
                "Code location needs exactly one of zip_file or s3_bucket/s3_key"
            )
        if remote and not (self.s3_bucket and self.s3_key):
            raise InvalidCodeSourceError("S3 code location needs both s3_bucket and s3_key")

    def to_api_params(self) -> dict[str, Any]:
        if self.zip_file is not None:
            return {"ZipFile": self.zip_file}
        params: dict[str, Any] = {"S3Bucket": self.s3_bucket, "S3Key": self.s3_key}
        if self.s3_object_version:
            params["S3ObjectVersion"] = self.s3_object_version
        return params


def read_archive(path: Path | str, *, function_name: str | None = None) -> bytes:
    """Return the bytes of a local deployment package."""
    try:
        with open(path, "rb") as fh:
            return fh.read()
    except OSError as exc:
        raise ArchiveUnreadableError(
            f"Cannot read deployment package {str(path)!r}",
            function_name=function_name,
            original_error=exc,
        ) from exc


def code_location_for(source: CodeSource, *, function_name: str | None = None) -> CodeLocation:
    if isinstance(source, LocalArchive):
        return CodeLocation(zip_file=read_archive(source.path, function_name=function_name))
    if isinstance(source, RemoteArchive):
        if not (source.bucket and source.key):
            raise InvalidCodeSourceError(
                "Remote archive needs both bucket and key", function_name=function_name
            )
        return CodeLocation(
            s3_bucket=source.bucket,
            s3_key=source.key,
            s3_object_version=source.version,
        )
    raise InvalidCodeSourceError(
        f"Unsupported code source: {type(source).__name__}", function_name=function_name
    )


# ---------------------------------------------------------------------------
# Shared optional configuration blocks
# ---------------------------------------------------------------------------


def _optional_config_params(
    *,
    dead_letter_target_arn: str | None,
    kms_key_arn: str | None,
    environment: Mapping[str, str] | None,
    vpc: VpcAttachment | None,
    tracing_mode: TracingMode,
) -> dict[str, Any]:
    params: dict[str, Any] = {}
    if dead_letter_target_arn:
        params["DeadLetterConfig"] = {"TargetArn": dead_letter_target_arn}
    if kms_key_arn:
        params["KMSKeyArn"] = kms_key_arn
    if environment:
        params["Environment"] = {"Variables": dict(environment)}
    if vpc is not None and vpc.security_group_ids:
        params["VpcConfig"] = {
            "SecurityGroupIds": list(vpc.security_group_ids),
            "SubnetIds": list(vpc.subnet_ids),
        }
    if tracing_mode != TracingMode.PASS_THROUGH:
        params["TracingConfig"] = {"Mode": str(tracing_mode)}
    return params


# ---------------------------------------------------------------------------
# Request shapes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CreateFunctionRequest:
    function_name: str
    handler: str
    description: str
    role: str
    memory_size: int
    timeout: int
    runtime: str
    publish: bool
    code: CodeLocation
    dead_letter_target_arn: str | None = None
    kms_key_arn: str | None = None
    environment: Mapping[str, str] | None = None
    tags: Mapping[str, str] | None = None
    vpc: VpcAttachment | None = None
    tracing_mode: TracingMode = TracingMode.PASS_THROUGH

    def to_api_params(self) -> dict[str, Any]:
        """Keyword arguments for lambda_client.create_function()."""
        params: dict[str, Any] = {
            "FunctionName": self.function_name,
            "Handler": self.handler,
            "Description": self.description,
            "Role": self.role,
            "MemorySize": self.memory_size,
            "Timeout": self.timeout,
            "Runtime": self.runtime,
            "Publish": self.publish,
            "Code": self.code.to_api_params(),
        }
        params.update(
            _optional_config_params(
                dead_letter_target_arn=self.dead_letter_target_arn,
                kms_key_arn=self.kms_key_arn,
                environment=self.environment,
                vpc=self.vpc,
                tracing_mode=self.tracing_mode,
            )
        )
        if self.tags:
            params["Tags"] = dict(self.tags)
        return params


@dataclass(frozen=True)
class UpdateConfigurationRequest:
    """No Code, Tags or Publish: those are not accepted by UpdateFunctionConfiguration."""

    function_name: str
    handler: str
    description: str
    role: str
    memory_size: int
    timeout: int
    runtime: str
    dead_letter_target_arn: str | None = None
    kms_key_arn: str | None = None
    environment: Mapping[str, str] | None = None
    vpc: VpcAttachment | None = None
    tracing_mode: TracingMode = TracingMode.PASS_THROUGH

    def to_api_params(self) -> dict[str, Any]:
        """Keyword arguments for lambda_client.update_function_configuration()."""
        params: dict[str, Any] = {
            "FunctionName": self.function_name,
            "Handler": self.handler,
            "Description": self.description,
            "Role": self.role,
            "MemorySize": self.memory_size,
            "Timeout": self.timeout,
            "Runtime": self.runtime,
        }
        params.update(
            _optional_config_params(
                dead_letter_target_arn=self.dead_letter_target_arn,
                kms_key_arn=self.kms_key_arn,
                environment=self.environment,
                vpc=self.vpc,
                tracing_mode=self.tracing_mode,
            )
        )
        return params


@dataclass(frozen=True)
class UpdateCodeRequest:
    function_name: str
    publish: bool
    code: CodeLocation

    def to_api_params(self) -> dict[str, Any]:
        """Keyword arguments for lambda_client.update_function_code()."""
        return {
            "FunctionName": self.function_name,
            "Publish": self.publish,
            **self.code.to_api_params(),
        }


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def _require_role_arn(config: FunctionConfig, role_arn: str | None, function_name: str) -> str:
    role = role_arn or config.role
    if not is_role_arn(role):
        raise RoleResolutionError(
            f"Role {role!r} must be resolved to an ARN before building a request",
            function_name=function_name,
            phase=DeploymentStep.ROLE_RESOLUTION,
        )
    return role


def build_create_request(
    target: DeploymentTarget,
    config: FunctionConfig,
    source: CodeSource,
    *,
    role_arn: str | None = None,
) -> CreateFunctionRequest:
    """Build a CreateFunction request.

    role_arn is the resolved ARN of config.role; it may be omitted only when
    config.role is already an ARN.
    """
    role = _require_role_arn(config, role_arn, target.function_name)
    return CreateFunctionRequest(
        function_name=target.function_name,
        handler=config.handler,
        description=config.description,
        role=role,
        memory_size=config.memory_size,
        timeout=config.timeout_seconds,
        runtime=config.runtime,
        publish=target.publish,
        code=code_location_for(source, function_name=target.function_name),
        dead_letter_target_arn=config.dead_letter_target_arn,
        kms_key_arn=config.kms_key_arn,
        environment=dict(config.environment) if config.environment else None,
        tags=dict(config.tags) if config.tags else None,
        vpc=config.vpc if config.vpc and config.vpc.security_group_ids else None,
        tracing_mode=config.tracing_mode,
    )


def build_update_config_request(
    target: DeploymentTarget,
    config: FunctionConfig,
    *,
    role_arn: str | None = None,
) -> UpdateConfigurationRequest:
    role = _require_role_arn(config, role_arn, target.function_name)
    return UpdateConfigurationRequest(
        function_name=target.function_name,
        handler=config.handler,
        description=config.description,
        role=role,
        memory_size=config.memory_size,
        timeout=config.timeout_seconds,
        runtime=config.runtime,
        dead_letter_target_arn=config.dead_letter_target_arn,
        kms_key_arn=config.kms_key_arn,
        environment=dict(config.environment) if config.environment else None,
        vpc=config.vpc if config.vpc and config.vpc.security_group_ids else None,
        tracing_mode=config.tracing_mode,
    )


def build_update_code_request(
    target: DeploymentTarget,
    source: CodeSource,
    publish: bool | None = None,
) -> UpdateCodeRequest:
    """Build an UpdateFunctionCode request; publish defaults to target.publish."""
    return UpdateCodeRequest(
        function_name=target.function_name,
        publish=target.publish if publish is None else publish,
        code=code_location_for(source, function_name=target.function_name),
    )
