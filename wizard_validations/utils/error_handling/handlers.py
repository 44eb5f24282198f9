"""Error types for step-gated validation.

Errors carry an optional ``ErrorContext`` naming the model, step and field
involved so a failure during class setup points at the offending declaration.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence


@dataclass
class ErrorContext:
    """Context information attached to an error."""
    operation: str
    model: Optional[str] = None
    step: Optional[str] = None
    field: Optional[str] = None

    def describe(self) -> str:
        parts = [self.operation]
        if self.model:
            parts.append(f"model={self.model}")
        if self.step:
            parts.append(f"step={self.step}")
        if self.field:
            parts.append(f"field={self.field}")
        return " | ".join(parts)


class WizardValidationError(Exception):
    """Base class for all wizard_validations errors."""

    def __init__(self, message: str, context: Optional[ErrorContext] = None):
        self.message = message
        self.context = context
        super().__init__(message)

    def __str__(self) -> str:
        if self.context is None:
            return self.message
        return f"[{self.context.describe()}] {self.message}"


class InvalidConfiguration(WizardValidationError):
    """Raised when a provider, hook or rule is declared incorrectly."""
    pass


class StepNotFound(WizardValidationError):
    """Raised when a step is looked up that the step sequence does not contain."""

    def __init__(
        self,
        step: Any,
        steps: Sequence[str],
        context: Optional[ErrorContext] = None,
    ):
        self.step = step
        self.steps: List[str] = list(steps)
        super().__init__(
            f"Step {step!r} is not one of the wizard steps {self.steps}",
            context=context,
        )
