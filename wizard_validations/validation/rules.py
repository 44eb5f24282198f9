"""Built-in rule kinds.

Each rule kind compiles its declared options once, at registration, into a
check ``(record, field, value) -> messages``. Length, format and numeric
checks are pydantic ``TypeAdapter``s over ``Field`` constraints; inclusion,
exclusion, acceptance and the numeric extras are ``AfterValidator`` steps.
"""

from decimal import Decimal
from typing import Annotated, Any, Callable, Dict, List, Optional

from pydantic import AfterValidator, Field, StrictStr, TypeAdapter, ValidationError
from pydantic_core import PydanticCustomError, SchemaError

from wizard_validations.utils.error_handling import ErrorContext, InvalidConfiguration

RuleCheck = Callable[[Any, str, Any], List[str]]

# Options understood by every rule kind
COMMON_OPTIONS = {"message", "allow_none", "allow_blank"}

ACCEPTED_VALUES = (True, 1, "1", "true", "yes", "on")

_COLLECTIONS = (list, tuple, set, frozenset, dict)

_NUMBER = TypeAdapter(Annotated[Decimal, Field(allow_inf_nan=False)])
_INTEGER = TypeAdapter(int)

_BOUND_MESSAGES = {
    "greater_than": ("gt", "must be greater than {}"),
    "greater_than_equal": ("ge", "must be greater than or equal to {}"),
    "less_than": ("lt", "must be less than {}"),
    "less_than_equal": ("le", "must be less than or equal to {}"),
}


def is_blank(value: Any) -> bool:
    """None, whitespace-only strings and empty collections are blank."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, _COLLECTIONS):
        return len(value) == 0
    return False


def _accepts(adapter: TypeAdapter, value: Any) -> bool:
    try:
        adapter.validate_python(value)
    except ValidationError:
        return False
    return True


def _error_messages(
    exc: ValidationError,
    options: Dict[str, Any],
    translate: Callable[[Dict[str, Any]], str] = lambda error: error["msg"],
) -> List[str]:
    if options.get("message"):
        return [options["message"]]
    return [translate(error) for error in exc.errors()]


def _custom_check(code: str, message: str, passes: Callable[[Any], bool], **ctx: Any) -> AfterValidator:
    def check(value: Any) -> Any:
        if not passes(value):
            raise PydanticCustomError(code, message, ctx or None)
        return value
    return AfterValidator(check)


def _adapter_check(adapter: TypeAdapter, options: Dict[str, Any]) -> RuleCheck:
    def check(record, field_name, value):
        try:
            adapter.validate_python(value)
        except ValidationError as exc:
            return _error_messages(exc, options)
        return []
    return check


def build_presence(options, context):
    def check(record, field_name, value):
        return [options.get("message") or "can't be blank"] if is_blank(value) else []
    return check


def build_absence(options, context):
    def check(record, field_name, value):
        return [] if is_blank(value) else [options.get("message") or "must be blank"]
    return check


def build_confirmation(options, context):
    def check(record, field_name, value):
        confirmation = getattr(record, f"{field_name}_confirmation", None)
        if confirmation is None or confirmation == value:
            return []
        label = field_name.replace("_", " ").capitalize()
        return [options.get("message") or f"doesn't match {label}"]
    return check


def build_validator(options, context):
    call = options["call"]

    def check(record, field_name, value):
        outcome = call(record, field_name, value)
        if not outcome:
            return []
        if isinstance(outcome, str):
            return [options.get("message") or outcome]
        return [options.get("message") or str(m) for m in outcome]
    return check


def build_acceptance(options, context):
    accepted = options.get("accept", ACCEPTED_VALUES)
    if not isinstance(accepted, (list, tuple, set, frozenset)):
        accepted = (accepted,)
    adapter = TypeAdapter(
        Annotated[Any, _custom_check("acceptance", "must be accepted", lambda v: v in accepted)]
    )
    return _adapter_check(adapter, options)


def build_inclusion(options, context):
    allowed = options["in"]
    adapter = TypeAdapter(
        Annotated[Any, _custom_check("inclusion", "is not included in the list", lambda v: v in allowed)]
    )
    return _adapter_check(adapter, options)


def build_exclusion(options, context):
    reserved = options["in"]
    adapter = TypeAdapter(
        Annotated[Any, _custom_check("exclusion", "is reserved", lambda v: v not in reserved)]
    )
    return _adapter_check(adapter, options)


def build_length(options, context):
    if "is" in options:
        minimum = maximum = options["is"]
    elif "in" in options:
        minimum, maximum = options["in"]
    else:
        minimum, maximum = options.get("minimum"), options.get("maximum")

    text = TypeAdapter(Annotated[StrictStr, Field(min_length=minimum, max_length=maximum)])
    items = TypeAdapter(Annotated[List[Any], Field(min_length=minimum, max_length=maximum)])

    def translate(error):
        if "is" in options:
            return f"is the wrong length (should be {options['is']} characters)"
        if error["type"] in ("string_too_short", "too_short"):
            return f"is too short (minimum is {error['ctx']['min_length']} characters)"
        return f"is too long (maximum is {error['ctx']['max_length']} characters)"

    def check(record, field_name, value):
        if isinstance(value, _COLLECTIONS):
            adapter, subject = items, list(value)
        else:
            adapter, subject = text, "" if value is None else str(value)
        try:
            adapter.validate_python(subject)
        except ValidationError as exc:
            return _error_messages(exc, options, translate)
        return []
    return check


def _pattern_adapter(pattern: str, context: ErrorContext) -> TypeAdapter:
    try:
        return TypeAdapter(Annotated[str, Field(pattern=pattern)])
    except (SchemaError, ValueError) as exc:
        raise InvalidConfiguration(f"format pattern {pattern!r} is not supported: {exc}", context=context)


def build_format(options, context):
    required = _pattern_adapter(options["with"], context) if "with" in options else None
    forbidden = _pattern_adapter(options["without"], context) if "without" in options else None

    def check(record, field_name, value):
        text = "" if value is None else str(value)
        if required is not None and not _accepts(required, text):
            return [options.get("message") or "is invalid"]
        if forbidden is not None and _accepts(forbidden, text):
            return [options.get("message") or "is invalid"]
        return []
    return check


def build_numericality(options, context):
    only_integer = bool(options.get("only_integer"))
    extras = []
    if "equal_to" in options:
        target = options["equal_to"]
        extras.append(_custom_check(
            "equal_to", "must be equal to {equal_to}", lambda n: n == target, equal_to=target
        ))
    if "other_than" in options:
        excluded = options["other_than"]
        extras.append(_custom_check(
            "other_than", "must be other than {other_than}", lambda n: n != excluded, other_than=excluded
        ))
    if options.get("odd"):
        extras.append(_custom_check("odd", "must be odd", lambda n: int(n) % 2 == 1))

    bounds = TypeAdapter(Annotated[(
        Decimal,
        Field(
            gt=options.get("greater_than"),
            ge=options.get("greater_than_or_equal_to"),
            lt=options.get("less_than"),
            le=options.get("less_than_or_equal_to"),
            multiple_of=2 if options.get("even") else None,
        ),
        *extras,
    )])

    def translate(error):
        if error["type"] in _BOUND_MESSAGES:
            key, template = _BOUND_MESSAGES[error["type"]]
            return template.format(error["ctx"][key])
        if error["type"] == "multiple_of":
            return "must be even"
        return error["msg"]

    def check(record, field_name, value):
        message = options.get("message")
        if isinstance(value, bool):
            return [message or "is not a number"]
        try:
            number = _NUMBER.validate_python(value)
        except ValidationError:
            return [message or "is not a number"]
        if only_integer and not _accepts(_INTEGER, value):
            return [message or "must be an integer"]
        try:
            bounds.validate_python(number)
        except ValidationError as exc:
            return _error_messages(exc, options, translate)
        return []
    return check


RULE_BUILDERS: Dict[str, Callable[[Dict[str, Any], ErrorContext], RuleCheck]] = {
    "presence": build_presence,
    "absence": build_absence,
    "acceptance": build_acceptance,
    "confirmation": build_confirmation,
    "length": build_length,
    "format": build_format,
    "inclusion": build_inclusion,
    "exclusion": build_exclusion,
    "numericality": build_numericality,
    "validator": build_validator,
}


_NUMERIC_BOUNDS = {
    "greater_than",
    "greater_than_or_equal_to",
    "equal_to",
    "less_than",
    "less_than_or_equal_to",
    "other_than",
}


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _check_length_options(options: Dict[str, Any], context: ErrorContext) -> None:
    if not {"minimum", "maximum", "is", "in"} & options.keys():
        raise InvalidConfiguration("length needs one of minimum, maximum, is or in", context=context)
    for key in ("minimum", "maximum", "is"):
        if key in options and not _is_count(options[key]):
            raise InvalidConfiguration(
                f"length {key} must be a non-negative integer, got {options[key]!r}", context=context
            )
    if "in" in options:
        span = options["in"]
        try:
            bounds = list(span)
        except TypeError:
            raise InvalidConfiguration(
                f"length in must be a range or collection of integers, got {type(span).__name__}",
                context=context,
            )
        if not bounds or not all(_is_count(b) for b in bounds):
            raise InvalidConfiguration(
                "length in must be a non-empty range or collection of non-negative integers",
                context=context,
            )
        options["in"] = (min(bounds), max(bounds))


def normalize_rule_options(
    kind: str,
    raw: Any,
    field_name: Optional[str] = None,
    model: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """Turn a rule declaration into the options dict its builder expects.

    Args:
        kind: Rule kind, a key of RULE_BUILDERS
        raw: The declared value, e.g. ``True`` or ``{"minimum": 2}``

    Returns:
        Options dict, or None when the rule is switched off (``False``/``None``)

    Raises:
        InvalidConfiguration: For unknown rule kinds or malformed options
    """
    context = ErrorContext(operation="validates", model=model, field=field_name)
    if kind not in RULE_BUILDERS:
        raise InvalidConfiguration(f"Unknown validation rule '{kind}'", context=context)

    if raw is None or raw is False:
        return None

    if kind == "validator":
        if callable(raw):
            return {"call": raw}
        if isinstance(raw, dict) and callable(raw.get("call")):
            return dict(raw)
        raise InvalidConfiguration("validator rule needs a callable", context=context)

    if kind in ("inclusion", "exclusion") and isinstance(raw, (list, tuple, set, frozenset, range)):
        raw = {"in": raw}
    if kind == "format" and isinstance(raw, str):
        raw = {"with": raw}

    if raw is True:
        options: Dict[str, Any] = {}
    elif isinstance(raw, dict):
        options = dict(raw)
    else:
        raise InvalidConfiguration(
            f"'{kind}' expects True or a dict of options, got {type(raw).__name__}",
            context=context,
        )

    if kind == "length":
        _check_length_options(options, context)
    elif kind == "format":
        if not {"with", "without"} & options.keys():
            raise InvalidConfiguration("format needs with or without", context=context)
        for key in ("with", "without"):
            if key in options and not isinstance(options[key], str):
                raise InvalidConfiguration(f"format {key} must be a pattern string", context=context)
    elif kind in ("inclusion", "exclusion"):
        if "in" not in options:
            raise InvalidConfiguration(f"{kind} needs an 'in' collection", context=context)
    elif kind == "numericality":
        for key, bound in options.items():
            if key in _NUMERIC_BOUNDS and not _is_number(bound):
                raise InvalidConfiguration(f"numericality {key} must be a number, got {bound!r}", context=context)

    return options


def compile_rule(kind: str, options: Dict[str, Any], context: ErrorContext) -> RuleCheck:
    """Build the check for one normalized rule."""
    return RULE_BUILDERS[kind](options, context)
