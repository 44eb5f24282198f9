"""Type definitions for wizard steps.

Defines the canonical step identifier, the unknown-step policy and the
per-model wizard configuration.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Optional, Union

# Step identifiers are plain strings; enums and other tokens normalize to them
StepName = str

StepsProvider = Union[str, Callable[[], Iterable[Any]]]
CurrentStepProvider = Union[str, Callable[[Any], Any]]
StepHook = Callable[[], Mapping[str, Mapping[str, Any]]]


class UnknownStepPolicy(str, Enum):
    """What previous-step lookup does with a step outside the sequence."""
    EMPTY = "empty"  # No previous steps
    RAISE = "raise"  # StepNotFound


def normalize_step(step: Any) -> Optional[StepName]:
    """Convert a step token to its canonical string form.

    ``None`` stays ``None`` so callers can tell "no step yet" apart from an
    unknown step.
    """
    if step is None:
        return None
    if isinstance(step, Enum):
        return normalize_step(step.value)
    if isinstance(step, str):
        return step.strip()
    return str(step)


@dataclass
class WizardConfig:
    """Per-model wizard configuration.

    Assign to the model's ``wizard_config`` class attribute, or pass to
    ``setup_validations(config=...)``.
    """
    # Zero-argument callable, or name of a callable class attribute.
    # None falls back to the conventional ``wizard_steps``.
    steps_provider: Optional[StepsProvider] = None

    # Callable taking the instance, or name of an instance attribute.
    # None falls back to the conventional ``current_step``.
    current_step_provider: Optional[CurrentStepProvider] = None

    # Explicit step -> hook table, consulted before ``<step>_validations``
    step_validations: Optional[Mapping[str, StepHook]] = None

    # None defers to the package settings
    unknown_step_policy: Optional[UnknownStepPolicy] = None
