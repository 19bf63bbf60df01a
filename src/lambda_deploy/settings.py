"""
lambda_deploy.settings — Environment-driven deployment settings.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from lambda_deploy.exceptions import ConfigurationError
from lambda_deploy.models import ExistencePolicy

EXISTENCE_POLICY_ENV = "LAMBDA_DEPLOY_EXISTENCE_POLICY"
WAIT_FOR_UPDATES_ENV = "LAMBDA_DEPLOY_WAIT_FOR_UPDATES"
OUTPUT_VARIABLE_ENV = "LAMBDA_DEPLOY_OUTPUT_VARIABLE"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name} must be true or false, got {raw!r}")


@dataclass(frozen=True)
class DeploySettings:
    existence_policy: ExistencePolicy = ExistencePolicy.LENIENT
    wait_for_updates: bool = True
    output_variable: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> DeploySettings:
        env = os.environ if environ is None else environ

        raw_policy = env.get(EXISTENCE_POLICY_ENV, "").strip().lower()
        try:
            policy = ExistencePolicy(raw_policy) if raw_policy else ExistencePolicy.LENIENT
        except ValueError as exc:
            raise ConfigurationError(
                f"{EXISTENCE_POLICY_ENV} must be one of "
                f"{[p.value for p in ExistencePolicy]}, got {raw_policy!r}"
            ) from exc

        raw_wait = env.get(WAIT_FOR_UPDATES_ENV, "")
        wait = _parse_bool(WAIT_FOR_UPDATES_ENV, raw_wait) if raw_wait.strip() else True

        output_variable = env.get(OUTPUT_VARIABLE_ENV, "").strip() or None
        return cls(existence_policy=policy, wait_for_updates=wait, output_variable=output_variable)
