"""Step ordering and provider resolution for wizard-backed models."""

from .types import StepName, UnknownStepPolicy, WizardConfig, normalize_step
from .sequence import (
    find_duplicate_steps,
    previous_steps,
    current_and_previous_steps,
)
from .providers import (
    get_wizard_config,
    resolve_unknown_step_policy,
    all_wizard_steps,
    resolve_current_step,
    find_step_hook,
    load_step_rules,
)

__all__ = [
    # Types
    "StepName",
    "UnknownStepPolicy",
    "WizardConfig",
    "normalize_step",
    # Sequence helpers
    "find_duplicate_steps",
    "previous_steps",
    "current_and_previous_steps",
    # Providers
    "get_wizard_config",
    "resolve_unknown_step_policy",
    "all_wizard_steps",
    "resolve_current_step",
    "find_step_hook",
    "load_step_rules",
]
