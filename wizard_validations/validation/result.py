"""Validation result types."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Tuple

from wizard_validations.utils.error_handling import WizardValidationError


def humanize(field_name: str) -> str:
    """``first_name`` -> ``First name``."""
    text = field_name.replace("_", " ").strip()
    return text[:1].upper() + text[1:]


@dataclass
class RecordErrors:
    """Error messages collected during a validation pass, keyed by field."""
    messages: Dict[str, List[str]] = field(default_factory=dict)

    def add(self, field_name: str, message: str) -> None:
        self.messages.setdefault(field_name, []).append(message)

    def __getitem__(self, field_name: str) -> List[str]:
        return list(self.messages.get(field_name, []))

    def __contains__(self, field_name: object) -> bool:
        return bool(self.messages.get(field_name))  # type: ignore[arg-type]

    def __iter__(self) -> Iterator[Tuple[str, str]]:
        for field_name, messages in self.messages.items():
            for message in messages:
                yield field_name, message

    def __len__(self) -> int:
        return sum(len(messages) for messages in self.messages.values())

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    def full_messages(self) -> List[str]:
        return [f"{humanize(field_name)} {message}" for field_name, message in self]

    def to_dict(self) -> Dict[str, List[str]]:
        return {k: list(v) for k, v in self.messages.items()}


@dataclass
class ValidationResult:
    is_valid: bool
    errors: RecordErrors

    @classmethod
    def from_errors(cls, errors: RecordErrors) -> "ValidationResult":
        return cls(is_valid=errors.is_empty, errors=errors)


class RecordInvalid(WizardValidationError):
    """Raised by ``validate_or_raise`` when a record fails validation."""

    def __init__(self, record: Any, errors: RecordErrors):
        self.record = record
        self.errors = errors
        summary = "; ".join(errors.full_messages())
        super().__init__(f"Validation failed: {summary}")
