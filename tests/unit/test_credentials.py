"""Unit tests for lambda_deploy.credentials (connection resolution + role assumption)."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError
from lambda_deploy import AwsConnection, ConfigurationError, LambdaDeployClient, resolve_connection
from lambda_deploy.credentials import create_session
from moto import mock_aws

_REGION = "eu-west-2"


def test_resolve_connection_reads_environment() -> None:
    connection = resolve_connection(
        {
            "AWS_ACCESS_KEY_ID": "AKIAEXAMPLE",
            "AWS_SECRET_ACCESS_KEY": "secret",  # pragma: allowlist secret
            "AWS_SESSION_TOKEN": "token",
            "AWS_ROLE_ARN": "arn:aws:iam::123456789012:role/deployer",
            "AWS_DEFAULT_REGION": _REGION,
        }
    )
    assert connection == AwsConnection(
        access_key_id="AKIAEXAMPLE",
        secret_access_key="secret",  # pragma: allowlist secret
        session_token="token",
        role_arn="arn:aws:iam::123456789012:role/deployer",
        region=_REGION,
    )


def test_resolve_connection_empty_environment_inherits_everything() -> None:
    assert resolve_connection({}) == AwsConnection()


def test_aws_region_preferred_over_default_region() -> None:
    connection = resolve_connection({"AWS_REGION": "us-east-1", "AWS_DEFAULT_REGION": _REGION})
    assert connection.region == "us-east-1"


def test_explicit_overrides_win() -> None:
    connection = resolve_connection({"AWS_REGION": "us-east-1"}, region=_REGION)
    assert connection.region == _REGION


def test_unknown_override_rejected() -> None:
    with pytest.raises(ConfigurationError):
        resolve_connection({}, profile="default")


def test_access_key_without_secret_rejected() -> None:
    with pytest.raises(ConfigurationError):
        resolve_connection({"AWS_ACCESS_KEY_ID": "AKIAEXAMPLE"})


def test_repr_hides_secrets() -> None:
    connection = AwsConnection(
        access_key_id="AKIAEXAMPLE",
        secret_access_key="very-secret",  # pragma: allowlist secret
        session_token="very-token",
    )
    assert "very-secret" not in repr(connection)
    assert "very-token" not in repr(connection)


def test_create_session_without_role_uses_static_keys() -> None:
    session = create_session(
        AwsConnection(
            access_key_id="AKIAEXAMPLE",
            secret_access_key="secret",  # pragma: allowlist secret
            region=_REGION,
        )
    )
    assert session.region_name == _REGION
    assert session.get_credentials().access_key == "AKIAEXAMPLE"


@mock_aws
def test_create_session_assumes_role() -> None:
    connection = AwsConnection(
        access_key_id="testing",
        secret_access_key="testing",  # pragma: allowlist secret
        role_arn="arn:aws:iam::123456789012:role/deployer",
        region=_REGION,
    )
    session = create_session(connection)
    credentials = session.get_credentials()
    assert credentials.access_key != "testing"
    assert credentials.token


def test_create_session_role_failure_is_configuration_error() -> None:
    sts = MagicMock()
    sts.assume_role.side_effect = ClientError(
        {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "AssumeRole"
    )
    with pytest.raises(ConfigurationError) as exc_info:
        create_session(
            AwsConnection(role_arn="arn:aws:iam::123456789012:role/deployer", region=_REGION),
            sts_client=sts,
        )
    assert isinstance(exc_info.value.original_error, ClientError)


def test_client_factory_builds_from_connection() -> None:
    session = MagicMock()
    client = LambdaDeployClient.from_connection(
        AwsConnection(region=_REGION), wait_for_updates=False, session=session
    )
    services = [call.args[0] for call in session.client.call_args_list]
    assert services == ["lambda", "iam"]
    assert isinstance(client, LambdaDeployClient)
