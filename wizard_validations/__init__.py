"""Step-gated validations for multi-step (wizard) models.

Field rules declared per wizard step only apply once an instance has reached
that step or moved past it.
"""

__version__ = "0.1.0"

from .model import StepGate, WizardModel, WizardValidationsMixin, with_step_validations
from .steps import StepName, UnknownStepPolicy, WizardConfig, normalize_step
from .utils.error_handling import (
    ErrorContext,
    InvalidConfiguration,
    StepNotFound,
    WizardValidationError,
)
from .validation import FieldValidation, RecordErrors, RecordInvalid, ValidationResult

__all__ = [
    "__version__",
    # Models
    "WizardValidationsMixin",
    "WizardModel",
    "StepGate",
    "with_step_validations",
    # Steps
    "StepName",
    "UnknownStepPolicy",
    "WizardConfig",
    "normalize_step",
    # Validation
    "FieldValidation",
    "RecordErrors",
    "RecordInvalid",
    "ValidationResult",
    # Errors
    "ErrorContext",
    "WizardValidationError",
    "InvalidConfiguration",
    "StepNotFound",
]
