"""Provider resolution for step sequences, current steps and per-step hooks.

A model either configures providers through ``WizardConfig`` or relies on the
conventional names: a ``wizard_steps`` classmethod, a ``current_step``
attribute and ``<step>_validations`` classmethods.
"""

from typing import Any, Callable, Dict, List, Mapping, Optional

from .types import StepName, UnknownStepPolicy, WizardConfig, normalize_step
from wizard_validations.config import get_settings
from wizard_validations.utils.error_handling import ErrorContext, InvalidConfiguration
from wizard_validations.utils.logging import get_logger

logger = get_logger(__name__)

CONVENTIONAL_STEPS_PROVIDER = "wizard_steps"
CONVENTIONAL_CURRENT_STEP = "current_step"
HOOK_SUFFIX = "_validations"


def _is_unset(provider: Any) -> bool:
    return provider is None or (isinstance(provider, str) and provider.strip() == "")


def get_wizard_config(model_cls: type) -> WizardConfig:
    """Return the model's ``wizard_config``, or an empty config."""
    config = getattr(model_cls, "wizard_config", None)
    if config is None:
        return WizardConfig()
    if not isinstance(config, WizardConfig):
        raise InvalidConfiguration(
            f"wizard_config must be a WizardConfig, got {type(config).__name__}",
            context=ErrorContext(operation="get_wizard_config", model=model_cls.__name__),
        )
    return config


def resolve_unknown_step_policy(model_cls: type) -> UnknownStepPolicy:
    """Per-model policy, falling back to the package settings."""
    configured = get_wizard_config(model_cls).unknown_step_policy
    value = configured if configured is not None else get_settings().unknown_step_policy
    try:
        return UnknownStepPolicy(value)
    except ValueError:
        raise InvalidConfiguration(
            f"unknown_step_policy must be one of {[p.value for p in UnknownStepPolicy]}, got {value!r}",
            context=ErrorContext(operation="resolve_unknown_step_policy", model=model_cls.__name__),
        )


def _normalize_sequence(result: Any, context: ErrorContext) -> List[StepName]:
    if result is None:
        return []
    if isinstance(result, (str, bytes)) or not hasattr(result, "__iter__"):
        raise InvalidConfiguration(
            f"step provider must return a sequence of steps, got {type(result).__name__}",
            context=context,
        )
    return [normalize_step(step) for step in result]


def all_wizard_steps(model_cls: type) -> List[StepName]:
    """Return the ordered step sequence for ``model_cls``.

    A configured ``steps_provider`` must be a callable or the name of a
    callable class attribute; anything else raises ``InvalidConfiguration``.
    Without one, the conventional ``wizard_steps`` is used; when it is missing
    the model simply has no steps.

    Raises:
        InvalidConfiguration: If the configured provider is not callable
    """
    config = get_wizard_config(model_cls)
    provider = config.steps_provider
    context = ErrorContext(operation="all_wizard_steps", model=model_cls.__name__)

    if not _is_unset(provider):
        if isinstance(provider, str):
            target = getattr(model_cls, provider, None)
            if not callable(target):
                raise InvalidConfiguration(
                    f"steps_provider {provider!r} must name a callable class attribute",
                    context=context,
                )
            return _normalize_sequence(target(), context)
        if callable(provider):
            return _normalize_sequence(provider(), context)
        raise InvalidConfiguration(
            "steps_provider accepts only a callable or the name of a class method, "
            f"got {type(provider).__name__}",
            context=context,
        )

    fallback = getattr(model_cls, CONVENTIONAL_STEPS_PROVIDER, None)
    if fallback is None:
        return []

    try:
        result = fallback() if callable(fallback) else fallback
        return _normalize_sequence(result, context)
    except Exception:
        if get_settings().strict_steps_provider:
            raise
        logger.warning(
            f"{model_cls.__name__}.{CONVENTIONAL_STEPS_PROVIDER} failed; treating model as having no steps",
            exc_info=True,
        )
        return []


def resolve_current_step(record: Any) -> Optional[StepName]:
    """Return the normalized current step of ``record``.

    Raises:
        InvalidConfiguration: If the configured provider is not usable
        AttributeError: If no provider is configured and ``current_step`` is missing
    """
    model_cls = type(record)
    provider = get_wizard_config(model_cls).current_step_provider
    context = ErrorContext(operation="current_wizard_step", model=model_cls.__name__)

    if _is_unset(provider):
        value = getattr(record, CONVENTIONAL_CURRENT_STEP)
        return normalize_step(value() if callable(value) else value)

    if isinstance(provider, str):
        try:
            value = getattr(record, provider)
        except AttributeError:
            raise InvalidConfiguration(
                f"current_step_provider {provider!r} is not an attribute of {model_cls.__name__}",
                context=context,
            )
        return normalize_step(value() if callable(value) else value)

    if callable(provider):
        return normalize_step(provider(record))

    raise InvalidConfiguration(
        "current_step_provider accepts only a callable or the name of an instance method, "
        f"got {type(provider).__name__}",
        context=context,
    )


def find_step_hook(model_cls: type, step: StepName) -> Optional[Callable[[], Any]]:
    """Return the validation hook for ``step``, or None if the step has none.

    The explicit ``step_validations`` table wins over ``<step>_validations``.
    """
    table = get_wizard_config(model_cls).step_validations or {}
    if step in table:
        hook = table[step]
        if not callable(hook):
            raise InvalidConfiguration(
                f"step_validations entry must be callable, got {type(hook).__name__}",
                context=ErrorContext(operation="find_step_hook", model=model_cls.__name__, step=step),
            )
        return hook

    hook = getattr(model_cls, f"{step}{HOOK_SUFFIX}", None)
    return hook if callable(hook) else None


def load_step_rules(model_cls: type, step: StepName) -> Optional[Dict[str, Dict[str, Any]]]:
    """Call the hook for ``step`` and return a copy of its field -> rules mapping.

    Returns:
        None when the step has no hook

    Raises:
        InvalidConfiguration: If the hook returns something other than a mapping
            of mappings. Errors raised by the hook itself propagate unchanged.
    """
    hook = find_step_hook(model_cls, step)
    if hook is None:
        logger.debug(f"{model_cls.__name__}: no validations declared for step '{step}'")
        return None

    rules = hook()
    if not isinstance(rules, Mapping):
        raise InvalidConfiguration(
            f"validation hook must return a mapping of field -> rules, got {type(rules).__name__}",
            context=ErrorContext(operation="setup_validations", model=model_cls.__name__, step=step),
        )

    result: Dict[str, Dict[str, Any]] = {}
    for field_name, spec in rules.items():
        if not isinstance(spec, Mapping):
            raise InvalidConfiguration(
                f"rules for field must be a mapping, got {type(spec).__name__}",
                context=ErrorContext(
                    operation="setup_validations",
                    model=model_cls.__name__,
                    step=step,
                    field=str(field_name),
                ),
            )
        result[str(field_name)] = dict(spec)
    return result
