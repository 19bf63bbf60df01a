"""
lambda_deploy.models — Deployment inputs and results as Python dataclasses.

All entities are built once per deployment run from caller-supplied
parameters and are never persisted.

    DeploymentIntent  — code only, or code plus configuration
    CodeSource        — LocalArchive | RemoteArchive (exactly one per run)
    FunctionConfig    — handler/role/memory/... plus optional blocks
    DeploymentTarget  — function name + publish flag
    DeploymentResult  — function ARN + how far the run progressed
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from lambda_deploy.exceptions import ConfigurationError

# ---------------------------------------------------------------------------
# Enums — constrained vocabulary
# ---------------------------------------------------------------------------


class DeploymentIntent(StrEnum):
    """What a run may change.

    Values are "codeonly" and "codeandconfiguration".  Lookup by value is
    case-insensitive and also accepts "CodeAndConfig", so "CodeOnly" and
    "CODEANDCONFIGURATION" resolve too.
    """

    CODE_ONLY = "codeonly"
    CODE_AND_CONFIG = "codeandconfiguration"

    @classmethod
    def _missing_(cls, value: object) -> DeploymentIntent | None:
        if not isinstance(value, str):
            return None
        normalized = value.strip().lower()
        if normalized == "codeandconfig":
            return cls.CODE_AND_CONFIG
        for member in cls:
            if member.value == normalized:
                return member
        return None


class TracingMode(StrEnum):
    """X-Ray tracing modes accepted by Lambda. PASS_THROUGH is the provider default."""

    PASS_THROUGH = "PassThrough"
    ACTIVE = "Active"


class ExistencePolicy(StrEnum):
    """How a failed existence lookup is interpreted.

    LENIENT: NotFound and transport errors both mean "absent".
    STRICT:  only NotFound means "absent"; transport errors are fatal.
    """

    LENIENT = "lenient"
    STRICT = "strict"


class DeploymentStep(StrEnum):
    EXISTENCE_CHECK = "existence-check"
    ROLE_RESOLUTION = "role-resolution"
    CREATE = "create"
    UPDATE_CONFIGURATION = "update-configuration"
    UPDATE_CODE = "update-code"


class DeploymentPath(StrEnum):
    CREATE = "create"
    UPDATE_CODE_ONLY = "update-code-only"
    UPDATE_CODE_AND_CONFIG = "update-code-and-config"


# ---------------------------------------------------------------------------
# Code sources
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LocalArchive:
    """Deployment package zip on the local filesystem, uploaded inline."""

    path: Path | str


@dataclass(frozen=True)
class RemoteArchive:
    """Deployment package already uploaded to S3."""

    bucket: str
    key: str
    version: str | None = None


CodeSource = LocalArchive | RemoteArchive


# ---------------------------------------------------------------------------
# Function configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VpcAttachment:
    security_group_ids: tuple[str, ...]
    subnet_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class FunctionConfig:
    """Configuration applied on create or update-configuration.

    role may be a bare IAM role name or a full role ARN; names are resolved
    to ARNs before any request is built.  Optional blocks left as None (or
    empty) are omitted from the outgoing request.
    """

    handler: str
    role: str
    runtime: str
    description: str = ""
    memory_size: int = 128
    timeout_seconds: int = 3
    kms_key_arn: str | None = None
    dead_letter_target_arn: str | None = None
    environment: Mapping[str, str] | None = None
    tags: Mapping[str, str] | None = None
    vpc: VpcAttachment | None = None
    tracing_mode: TracingMode = TracingMode.PASS_THROUGH


@dataclass(frozen=True)
class DeploymentTarget:
    function_name: str
    publish: bool = False


@dataclass(frozen=True)
class DeploymentResult:
    function_name: str
    function_arn: str
    path: DeploymentPath
    completed_steps: tuple[DeploymentStep, ...] = field(default_factory=tuple)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def parse_key_value_pairs(pairs: Iterable[str]) -> dict[str, str]:
    """Turn ["KEY=VALUE", ...] into a dict.

    Only the first '=' splits; values may contain '='.  Blank entries are
    skipped.  Raises ConfigurationError on a missing '=', an empty key or a
    duplicated key.
    """
    result: dict[str, str] = {}
    for raw in pairs:
        entry = raw.strip()
        if not entry:
            continue
        if "=" not in entry:
            raise ConfigurationError(f"Expected KEY=VALUE, got {entry!r}")
        key, value = entry.split("=", 1)
        key = key.strip()
        if not key:
            raise ConfigurationError(f"Empty key in {entry!r}")
        if key in result:
            raise ConfigurationError(f"Duplicate key {key!r}")
        result[key] = value.strip()
    return result
