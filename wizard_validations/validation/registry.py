"""Per-class registration and evaluation of field validations."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .result import RecordErrors
from .rules import COMMON_OPTIONS, RuleCheck, compile_rule, is_blank, normalize_rule_options
from wizard_validations.utils.error_handling import ErrorContext, InvalidConfiguration
from wizard_validations.utils.logging import get_logger

logger = get_logger(__name__)

Condition = Union[str, Callable[[Any], Any]]

# pydantic ignores dunder class attributes
REGISTRY_ATTR = "__wizard_validations__"

SPEC_OPTIONS = {"if", "if_", "unless", "allow_none", "allow_blank", "message"}


def evaluate_condition(record: Any, condition: Condition) -> bool:
    """Evaluate an ``if``/``unless`` condition against ``record``.

    A string names a record attribute; methods are called with no arguments.
    """
    if isinstance(condition, str):
        value = getattr(record, condition)
        return bool(value() if callable(value) else value)
    return bool(condition(record))


def _as_conditions(value: Any, key: str, context: ErrorContext) -> List[Condition]:
    if value is None:
        return []
    items = list(value) if isinstance(value, (list, tuple)) else [value]
    for item in items:
        if not (isinstance(item, str) or callable(item)):
            raise InvalidConfiguration(
                f"'{key}' conditions must be callables or attribute names, got {type(item).__name__}",
                context=context,
            )
    return items


_KNOWN_RULE_OPTIONS = {
    "acceptance": {"accept"},
    "length": {"minimum", "maximum", "is", "in"},
    "format": {"with", "without"},
    "inclusion": {"in"},
    "exclusion": {"in"},
    "numericality": {
        "only_integer",
        "greater_than",
        "greater_than_or_equal_to",
        "equal_to",
        "less_than",
        "less_than_or_equal_to",
        "other_than",
        "odd",
        "even",
    },
    "validator": {"call"},
}


@dataclass
class FieldValidation:
    """A set of rules on one field, applied when its conditions hold."""
    field: str
    rules: Dict[str, Dict[str, Any]]
    conditions: List[Condition] = field(default_factory=list)
    unless: List[Condition] = field(default_factory=list)
    allow_none: bool = False
    allow_blank: bool = False
    message: Optional[str] = None
    checks: Dict[str, RuleCheck] = field(default_factory=dict, repr=False)

    def applies_to(self, record: Any) -> bool:
        if not all(evaluate_condition(record, c) for c in self.conditions):
            return False
        return not any(evaluate_condition(record, c) for c in self.unless)

    def validate(self, record: Any, errors: RecordErrors) -> None:
        if not self.applies_to(record):
            return

        value = getattr(record, self.field, None)
        for kind, options in self.rules.items():
            if value is None and options.get("allow_none", self.allow_none):
                continue
            if is_blank(value) and options.get("allow_blank", self.allow_blank):
                continue
            for message in self.checks[kind](record, self.field, value):
                errors.add(self.field, message)


def build_field_validation(
    field_name: str,
    spec: Mapping[str, Any],
    model: Optional[str] = None,
) -> FieldValidation:
    """Build a FieldValidation from a declaration such as
    ``{"presence": True, "length": {"maximum": 40}, "if": "is_company"}``.

    Raises:
        InvalidConfiguration: For unknown rule kinds, malformed options or
            a declaration without any rule
    """
    context = ErrorContext(operation="validates", model=model, field=field_name)
    conditions = _as_conditions(spec.get("if", spec.get("if_")), "if", context)
    unless = _as_conditions(spec.get("unless"), "unless", context)

    rules: Dict[str, Dict[str, Any]] = {}
    checks: Dict[str, RuleCheck] = {}
    declared = 0
    for kind, raw in spec.items():
        if kind in SPEC_OPTIONS:
            continue
        declared += 1
        options = normalize_rule_options(kind, raw, field_name=field_name, model=model)
        if options is None:
            continue
        unknown = set(options) - COMMON_OPTIONS - _KNOWN_RULE_OPTIONS.get(kind, set())
        if unknown:
            raise InvalidConfiguration(
                f"Unknown options for '{kind}': {sorted(unknown)}", context=context
            )
        if spec.get("message") and "message" not in options:
            options["message"] = spec["message"]
        rules[kind] = options
        checks[kind] = compile_rule(kind, options, context)

    if declared == 0:
        raise InvalidConfiguration("You need to supply at least one validation", context=context)

    return FieldValidation(
        field=field_name,
        rules=rules,
        conditions=conditions,
        unless=unless,
        allow_none=bool(spec.get("allow_none", False)),
        allow_blank=bool(spec.get("allow_blank", False)),
        message=spec.get("message"),
        checks=checks,
    )


def register_validation(model_cls: type, validation: FieldValidation) -> None:
    """Append ``validation`` to the class's own registry.

    Registration is not deduplicated; registering the same rule twice runs it twice.
    """
    own = model_cls.__dict__.get(REGISTRY_ATTR)
    if own is None:
        own = []
        setattr(model_cls, REGISTRY_ATTR, own)
    own.append(validation)
    logger.debug(
        f"{model_cls.__name__}: registered {sorted(validation.rules)} on '{validation.field}'"
    )


def validations_for(model_cls: type) -> List[FieldValidation]:
    """All validations for ``model_cls``, base classes first."""
    collected: List[FieldValidation] = []
    for klass in reversed(model_cls.__mro__):
        collected.extend(klass.__dict__.get(REGISTRY_ATTR, ()))
    return collected


def run_validations(record: Any) -> RecordErrors:
    """Run every registered validation against ``record``."""
    errors = RecordErrors()
    for validation in validations_for(type(record)):
        validation.validate(record, errors)
    return errors
