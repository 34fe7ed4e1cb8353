"""
Status vocabulary for a board: the ordered columns, their labels and the
optional drop-validation predicate attached to each column.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple, Union

from kanban.board.results import DropValidation
from kanban.exceptions import InvalidStatusError

# Column id used by the UI for records without a status
NO_STATUS = "null"
NO_STATUS_LABEL = "No status"

Label = Union[str, Mapping[str, str]]
DropValidator = Callable[..., Any]


def is_unset_status(status: Optional[str]) -> bool:
    return status is None or status == '' or status == NO_STATUS


def translate_label(label: Label, language: str = "en") -> str:
    """Pick the label for ``language``, falling back to English then any label."""
    if isinstance(label, str):
        return label
    if language in label:
        return label[language]
    if "en" in label:
        return label["en"]
    return next(iter(label.values()), "")


def coerce_validation(result: Any) -> Optional[DropValidation]:
    """
    Normalise whatever a drop-validation predicate returned.

    Predicates may return a DropValidation, a mapping with ``drop_able`` (or
    ``dropAble``) and ``message``, a bare bool, or None (no opinion).
    """
    if result is None:
        return None
    if isinstance(result, DropValidation):
        return result
    if isinstance(result, bool):
        return DropValidation(drop_able=result)
    if isinstance(result, Mapping):
        drop_able = result.get('drop_able', result.get('dropAble', False))
        return DropValidation(drop_able=bool(drop_able), message=result.get('message'))
    raise TypeError(f"Unsupported drop validation result: {result!r}")


@dataclass(frozen=True)
class StatusOption:
    value: str
    label: Label
    drop_validation: Optional[DropValidator] = None

    def validate_drop(self, data: Mapping[str, Any], user: Any) -> DropValidation:
        """Run the predicate; columns without one accept every drop."""
        if self.drop_validation is None:
            return DropValidation(drop_able=True)
        result = coerce_validation(self.drop_validation(data=data, user=user))
        return result if result is not None else DropValidation(drop_able=True)

    def to_dict(self, language: str = "en") -> Dict[str, Any]:
        return {
            'value': self.value,
            'label': translate_label(self.label, language),
            'has_drop_validation': self.drop_validation is not None,
        }


@dataclass(frozen=True)
class StatusVocabulary:
    options: Tuple[StatusOption, ...]
    default_status: Optional[str] = None
    hide_no_status_column: bool = False

    @classmethod
    def build(cls, options: Iterable[Union[StatusOption, Mapping[str, Any]]],
              default_status: Optional[str] = None,
              hide_no_status_column: bool = False) -> "StatusVocabulary":
        built = []
        for option in options:
            if isinstance(option, StatusOption):
                built.append(option)
            else:
                built.append(StatusOption(
                    value=option['value'],
                    label=option.get('label', option['value']),
                    drop_validation=option.get('drop_validation', option.get('dropValidation')),
                ))

        values = [option.value for option in built]
        if len(set(values)) != len(values):
            raise ValueError(f"Duplicate status values: {values}")
        if NO_STATUS in values:
            raise ValueError(f"'{NO_STATUS}' is reserved for the no-status column")
        if default_status is not None and default_status not in values:
            raise InvalidStatusError(f"Invalid default status: {default_status}")

        return cls(tuple(built), default_status, hide_no_status_column)

    @property
    def values(self) -> Tuple[str, ...]:
        return tuple(option.value for option in self.options)

    def get(self, value: Optional[str]) -> Optional[StatusOption]:
        for option in self.options:
            if option.value == value:
                return option
        return None

    def validate_status(self, value: Optional[str]) -> Optional[str]:
        """
        Normalise a status written to a record.

        Returns:
            None for the no-status column, the value otherwise

        Raises:
            InvalidStatusError: If the value is not part of the vocabulary
        """
        if is_unset_status(value):
            return None
        if self.get(value) is None:
            raise InvalidStatusError(f"Invalid status: {value}")
        return value

    def to_list(self, language: str = "en"):
        return [option.to_dict(language) for option in self.options]
