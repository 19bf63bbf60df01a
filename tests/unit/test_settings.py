"""Unit tests for lambda_deploy.settings."""

from __future__ import annotations

import pytest
from lambda_deploy import ConfigurationError, DeploySettings, ExistencePolicy


def test_defaults_when_environment_empty() -> None:
    settings = DeploySettings.from_env({})
    assert settings.existence_policy is ExistencePolicy.LENIENT
    assert settings.wait_for_updates is True
    assert settings.output_variable is None


def test_reads_all_variables() -> None:
    settings = DeploySettings.from_env(
        {
            "LAMBDA_DEPLOY_EXISTENCE_POLICY": "STRICT",
            "LAMBDA_DEPLOY_WAIT_FOR_UPDATES": "false",
            "LAMBDA_DEPLOY_OUTPUT_VARIABLE": "FUNCTION_ARN",
        }
    )
    assert settings == DeploySettings(
        existence_policy=ExistencePolicy.STRICT,
        wait_for_updates=False,
        output_variable="FUNCTION_ARN",
    )


def test_reads_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LAMBDA_DEPLOY_EXISTENCE_POLICY", "strict")
    assert DeploySettings.from_env().existence_policy is ExistencePolicy.STRICT


def test_invalid_policy_rejected() -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        DeploySettings.from_env({"LAMBDA_DEPLOY_EXISTENCE_POLICY": "paranoid"})
    assert "paranoid" in str(exc_info.value)


def test_invalid_bool_rejected() -> None:
    with pytest.raises(ConfigurationError):
        DeploySettings.from_env({"LAMBDA_DEPLOY_WAIT_FOR_UPDATES": "maybe"})
