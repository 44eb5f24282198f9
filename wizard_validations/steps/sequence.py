"""Pure helpers over an ordered step sequence."""

from typing import Any, List, Optional, Sequence

from .types import StepName, UnknownStepPolicy, normalize_step
from wizard_validations.utils.error_handling import ErrorContext, StepNotFound


def find_duplicate_steps(steps: Sequence[StepName]) -> List[StepName]:
    """Return identifiers that occur more than once, in first-seen order."""
    seen = set()
    duplicates: List[StepName] = []
    for step in steps:
        if step in seen and step not in duplicates:
            duplicates.append(step)
        seen.add(step)
    return duplicates


def previous_steps(
    steps: Sequence[StepName],
    step: Any,
    policy: UnknownStepPolicy = UnknownStepPolicy.EMPTY,
    model: Optional[str] = None,
) -> List[StepName]:
    """Return the steps strictly before ``step``, in sequence order.
    
    Args:
        steps: Full ordered step sequence
        step: Step to look up (string or enum member)
        policy: Behavior when ``step`` is not in ``steps``
        model: Model name for error context
        
    Returns:
        List of preceding steps (empty for the first step, or for ``None``)
        
    Raises:
        StepNotFound: If ``step`` is unknown and policy is RAISE
    """
    step = normalize_step(step)
    if step is None:
        return []

    ordered = list(steps)
    if step not in ordered:
        if UnknownStepPolicy(policy) is UnknownStepPolicy.RAISE:
            raise StepNotFound(
                step,
                ordered,
                context=ErrorContext(operation="previous_steps", model=model, step=step),
            )
        return []

    return ordered[:ordered.index(step)]


def current_and_previous_steps(
    steps: Sequence[StepName],
    current: Any,
    policy: UnknownStepPolicy = UnknownStepPolicy.EMPTY,
    model: Optional[str] = None,
) -> List[StepName]:
    """Return the previous steps of ``current`` with ``current`` appended.
    
    An unknown current step under the EMPTY policy yields ``[current]``.
    """
    current = normalize_step(current)
    if current is None:
        return []
    result = previous_steps(steps, current, policy=policy, model=model)
    result.append(current)
    return result
