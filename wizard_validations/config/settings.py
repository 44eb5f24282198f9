"""Env-backed settings for step-gated validation.

Defaults come from the ``validations`` section of config.yaml; environment
variables take precedence.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .loader import get_config

ENV_PREFIX = "WIZARD_VALIDATIONS_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _get_bool(name: str, default: bool) -> bool:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None or str(raw).strip() == "":
        return default
    value = str(raw).strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    return default


def _get_str(name: str, default: str) -> str:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None:
        return default
    s = str(raw).strip()
    return s if s else default


@dataclass(frozen=True)
class ValidationSettings:
    """Package-wide defaults. ``WizardConfig`` values win over these per class."""
    unknown_step_policy: str = "empty"
    strict_steps_provider: bool = False
    reject_duplicate_steps: bool = True

    @classmethod
    def from_sources(cls, section: Optional[Mapping[str, Any]] = None) -> "ValidationSettings":
        section = section if section is not None else get_config("validations")
        base = cls(
            unknown_step_policy=str(section.get("unknown_step_policy", cls.unknown_step_policy)),
            strict_steps_provider=bool(section.get("strict_steps_provider", cls.strict_steps_provider)),
            reject_duplicate_steps=bool(section.get("reject_duplicate_steps", cls.reject_duplicate_steps)),
        )
        return cls(
            unknown_step_policy=_get_str("UNKNOWN_STEP_POLICY", base.unknown_step_policy).lower(),
            strict_steps_provider=_get_bool("STRICT_STEPS_PROVIDER", base.strict_steps_provider),
            reject_duplicate_steps=_get_bool("REJECT_DUPLICATE_STEPS", base.reject_duplicate_steps),
        )


def get_settings() -> ValidationSettings:
    """Build settings from the cached config file and the current environment.

    The YAML is read once (see ``reload_config``); environment overrides are
    re-read on every call so hosts and tests can flip them at runtime.
    """
    return ValidationSettings.from_sources()
