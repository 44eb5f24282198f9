"""Exception types raised by wizard_validations.

Configuration problems surface as ``InvalidConfiguration``; step lookups
under the strict policy surface as ``StepNotFound``.
"""

from .handlers import (
    ErrorContext,
    WizardValidationError,
    InvalidConfiguration,
    StepNotFound,
)

__all__ = [
    "ErrorContext",
    "WizardValidationError",
    "InvalidConfiguration",
    "StepNotFound",
]
