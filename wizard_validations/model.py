"""Step-gated validations for wizard-backed models.

A model lists its wizard steps and, per step, the field rules that become
active once an instance has reached that step::

    @with_step_validations
    class Signup(WizardModel):
        first_name: Optional[str] = None
        email: Optional[str] = None

        @classmethod
        def wizard_steps(cls):
            return ["basic_details", "contact"]

        @classmethod
        def basic_details_validations(cls):
            return {"first_name": {"presence": True}}

        @classmethod
        def contact_validations(cls):
            return {"email": {"presence": True, "format": r"@"}}

    Signup(current_step="basic_details").is_valid()  # first_name enforced, email not
"""

from typing import Any, ClassVar, List, Optional, TypeVar

from pydantic import BaseModel, PrivateAttr

from wizard_validations.config import get_settings
from wizard_validations.steps import (
    StepName,
    WizardConfig,
    all_wizard_steps,
    current_and_previous_steps,
    find_duplicate_steps,
    load_step_rules,
    normalize_step,
    previous_steps,
    resolve_current_step,
    resolve_unknown_step_policy,
)
from wizard_validations.utils.error_handling import ErrorContext, InvalidConfiguration
from wizard_validations.utils.logging import get_logger
from wizard_validations.validation import (
    FieldValidation,
    RecordErrors,
    RecordInvalid,
    ValidationResult,
    build_field_validation,
    register_validation,
    run_validations,
)

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=type)


class StepGate:
    """Condition that holds once a record has reached or passed ``step``."""

    def __init__(self, step: StepName):
        self.step = normalize_step(step)

    def __call__(self, record: Any) -> bool:
        return self.step in record.current_and_previous_wizard_steps()

    def __repr__(self) -> str:
        return f"StepGate({self.step!r})"


def _as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    return list(value) if isinstance(value, (list, tuple)) else [value]


class WizardValidationsMixin:
    """Adds step enumeration, current-step resolution and gated validations.

    Works with any class; ``WizardModel`` combines it with pydantic.
    """

    wizard_config: ClassVar[Optional[WizardConfig]] = None

    # Class-level API

    @classmethod
    def validates(cls, field_name: str, **spec: Any) -> FieldValidation:
        """Register rules on ``field_name``. Conditions go under ``"if"``/``"unless"``."""
        validation = build_field_validation(field_name, spec, model=cls.__name__)
        register_validation(cls, validation)
        return validation

    @classmethod
    def all_wizard_steps(cls) -> List[StepName]:
        """Ordered wizard steps for this model; empty when it declares none."""
        return all_wizard_steps(cls)

    @classmethod
    def previous_wizard_steps(cls, step: Any) -> List[StepName]:
        """Steps strictly before ``step``.

        Raises:
            StepNotFound: If ``step`` is unknown and the policy is RAISE
        """
        return previous_steps(
            cls.all_wizard_steps(),
            step,
            policy=resolve_unknown_step_policy(cls),
            model=cls.__name__,
        )

    @classmethod
    def setup_validations(cls, config: Optional[WizardConfig] = None) -> List[FieldValidation]:
        """Register each step's validations, gated on the instance having reached that step.

        Each ``<step>_validations`` hook (or ``WizardConfig.step_validations``
        entry) returns ``{field: rules}``. Steps without a hook are skipped.
        Calling this twice registers every rule twice.

        Args:
            config: Stored as the model's ``wizard_config`` before setup

        Returns:
            The validations registered by this call

        Raises:
            InvalidConfiguration: For misconfigured providers, duplicate steps
                or malformed hook results
        """
        if config is not None:
            cls.wizard_config = config

        steps = cls.all_wizard_steps()
        duplicates = find_duplicate_steps(steps)
        if duplicates and get_settings().reject_duplicate_steps:
            raise InvalidConfiguration(
                f"wizard steps must be unique, duplicated: {duplicates}",
                context=ErrorContext(operation="setup_validations", model=cls.__name__),
            )

        registered: List[FieldValidation] = []
        for step in steps:
            rules = load_step_rules(cls, step)
            if rules is None:
                continue
            for field_name, spec in rules.items():
                conditions = _as_list(spec.pop("if", None)) + _as_list(spec.pop("if_", None))
                # Gate first, so hook conditions only run once the step is reached
                spec["if"] = [StepGate(step)] + conditions
                registered.append(cls.validates(field_name, **spec))

        logger.debug(
            f"{cls.__name__}: set up {len(registered)} step-gated validations across {len(steps)} steps"
        )
        return registered

    # Instance-level API

    def current_wizard_step(self) -> Optional[StepName]:
        """The step this instance is on, via the configured provider or ``current_step``."""
        return resolve_current_step(self)

    def previous_steps(self) -> List[StepName]:
        """Steps before this instance's current step."""
        current = self.current_wizard_step()
        if current is None:
            return []
        return type(self).previous_wizard_steps(current)

    def current_and_previous_wizard_steps(self) -> List[StepName]:
        """Steps up to and including the current one; empty before the wizard starts."""
        cls = type(self)
        return current_and_previous_steps(
            cls.all_wizard_steps(),
            self.current_wizard_step(),
            policy=resolve_unknown_step_policy(cls),
            model=cls.__name__,
        )

    def run_validations(self) -> ValidationResult:
        errors = run_validations(self)
        self._wizard_errors = errors
        return ValidationResult.from_errors(errors)

    def is_valid(self) -> bool:
        return self.run_validations().is_valid

    @property
    def errors(self) -> RecordErrors:
        """Errors from the last validation pass."""
        errors = getattr(self, "_wizard_errors", None)
        return errors if errors is not None else RecordErrors()

    def validate_or_raise(self) -> None:
        result = self.run_validations()
        if not result.is_valid:
            raise RecordInvalid(self, result.errors)


class WizardModel(WizardValidationsMixin, BaseModel):
    """Pydantic model with step-gated validations.

    ``current_step`` is the conventional source of the instance's step.
    """

    wizard_config: ClassVar[Optional[WizardConfig]] = None

    current_step: Optional[str] = None

    _wizard_errors: Optional[RecordErrors] = PrivateAttr(default=None)


def with_step_validations(cls: ModelT) -> ModelT:
    """Class decorator: run ``setup_validations()`` once the class body is complete."""
    cls.setup_validations()
    return cls
