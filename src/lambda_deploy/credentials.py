"""
lambda_deploy.credentials — Explicit AWS connection settings.

Credentials and region are resolved once into an AwsConnection and handed
to the client factory.  Nothing here writes to os.environ; a field left as
None means "inherit from the ambient boto3 credential chain".
"""

from __future__ import annotations

import os
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import boto3
from aws_lambda_powertools import Logger
from botocore.exceptions import BotoCoreError, ClientError

from lambda_deploy.exceptions import ConfigurationError

logger = Logger(service="lambda-deploy")

ASSUME_ROLE_DURATION_SECONDS = 3600


@dataclass(frozen=True)
class AwsConnection:
    access_key_id: str | None = None
    secret_access_key: str | None = None
    session_token: str | None = None
    role_arn: str | None = None
    region: str | None = None

    def __repr__(self) -> str:
        # Keep secrets out of logs and tracebacks.
        return (
            f"AwsConnection(access_key_id={self.access_key_id!r}, "
            f"role_arn={self.role_arn!r}, region={self.region!r})"
        )


def _env(environ: Mapping[str, str], *names: str) -> str | None:
    for name in names:
        value = environ.get(name, "").strip()
        if value:
            return value
    return None


def resolve_connection(
    environ: Mapping[str, str] | None = None,
    **overrides: str | None,
) -> AwsConnection:
    """Resolve an AwsConnection from explicit overrides, then environment.

    Recognised overrides match the AwsConnection field names.  Static keys
    must be supplied as a pair.
    """
    env = os.environ if environ is None else environ
    unknown = set(overrides) - set(AwsConnection.__dataclass_fields__)
    if unknown:
        raise ConfigurationError(f"Unknown connection settings: {sorted(unknown)}")

    def pick(field_name: str, *env_names: str) -> str | None:
        value = overrides.get(field_name)
        return value if value else _env(env, *env_names)

    connection = AwsConnection(
        access_key_id=pick("access_key_id", "AWS_ACCESS_KEY_ID"),
        secret_access_key=pick("secret_access_key", "AWS_SECRET_ACCESS_KEY"),
        session_token=pick("session_token", "AWS_SESSION_TOKEN"),
        role_arn=pick("role_arn", "AWS_ROLE_ARN"),
        region=pick("region", "AWS_REGION", "AWS_DEFAULT_REGION"),
    )
    if bool(connection.access_key_id) != bool(connection.secret_access_key):
        raise ConfigurationError(
            "AWS access key id and secret access key must be supplied together"
        )
    return connection


def create_session(connection: AwsConnection, *, sts_client: Any = None) -> boto3.Session:
    """Build a boto3 Session for the connection, assuming role_arn if set."""
    base = boto3.Session(
        aws_access_key_id=connection.access_key_id,
        aws_secret_access_key=connection.secret_access_key,
        aws_session_token=connection.session_token,
        region_name=connection.region,
    )
    if not connection.role_arn:
        return base

    sts = sts_client or base.client("sts")
    try:
        response = sts.assume_role(
            RoleArn=connection.role_arn,
            RoleSessionName=f"lambda-deploy-{int(time.time())}",
            DurationSeconds=ASSUME_ROLE_DURATION_SECONDS,
        )
    except (ClientError, BotoCoreError) as exc:
        logger.exception("Failed to assume deployment role", role_arn=connection.role_arn)
        raise ConfigurationError(
            f"Unable to assume role {connection.role_arn!r}", original_error=exc
        ) from exc

    credentials = response["Credentials"]
    logger.debug("Assumed deployment role", role_arn=connection.role_arn)
    return boto3.Session(
        aws_access_key_id=credentials["AccessKeyId"],
        aws_secret_access_key=credentials["SecretAccessKey"],
        aws_session_token=credentials["SessionToken"],
        region_name=connection.region,
    )
