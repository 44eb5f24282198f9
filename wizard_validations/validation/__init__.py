"""Field-rule validation for model instances.

Rules are registered per class with ``validates`` and evaluated against an
instance on demand, collecting messages into ``RecordErrors``.
"""

from .result import RecordErrors, ValidationResult, RecordInvalid, humanize
from .rules import RULE_BUILDERS, compile_rule, is_blank, normalize_rule_options
from .registry import (
    FieldValidation,
    build_field_validation,
    register_validation,
    validations_for,
    run_validations,
    evaluate_condition,
)

__all__ = [
    # Results
    "RecordErrors",
    "ValidationResult",
    "RecordInvalid",
    "humanize",
    # Rules
    "RULE_BUILDERS",
    "compile_rule",
    "is_blank",
    "normalize_rule_options",
    # Registry
    "FieldValidation",
    "build_field_validation",
    "register_validation",
    "validations_for",
    "run_validations",
    "evaluate_condition",
]
