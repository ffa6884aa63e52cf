"""Immutable-field transition rules for reconciled records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from ..constants import KIND_BUCKET, KIND_USER
from ..utils.errors import ImmutableFieldError


def _always(desired: Any) -> bool:
    return True


@dataclass(frozen=True)
class ImmutableField:
    """A record attribute that may not change once the entity exists.

    ``applies`` decides from the desired record whether the rule is checked.
    """

    field: str
    applies: Callable[[Any], bool] = _always


def _placement_declared(desired: Any) -> bool:
    return desired.placement_rule is not None


def _placement_and_owner_declared(desired: Any) -> bool:
    # An undeclared owner is unknown, not a request to clear it
    return desired.placement_rule is not None and desired.owner is not None


BUCKET_TRANSITIONS: tuple[ImmutableField, ...] = (
    ImmutableField("name"),
    ImmutableField("placement_rule", _placement_declared),
    ImmutableField("owner", _placement_and_owner_declared),
)

USER_TRANSITIONS: tuple[ImmutableField, ...] = (
    ImmutableField("id"),
)

TRANSITIONS: dict[str, tuple[ImmutableField, ...]] = {
    KIND_BUCKET: BUCKET_TRANSITIONS,
    KIND_USER: USER_TRANSITIONS,
}


def validate_transition(
    kind: str,
    state: Any,
    desired: Any,
    rules: tuple[ImmutableField, ...] | None = None,
) -> None:
    """Check that moving from ``state`` to ``desired`` keeps immutable fields.

    Rules are checked in order and the first violation is raised.

    Args:
        kind: Resource kind, used for the rule lookup and the error message
        state: Last tracked record
        desired: Desired record
        rules: Rules to apply (defaults to the table entry for ``kind``)

    Raises:
        ImmutableFieldError: If an immutable field would change
    """
    for rule in rules if rules is not None else TRANSITIONS[kind]:
        if not rule.applies(desired):
            continue
        current = getattr(state, rule.field)
        wanted = getattr(desired, rule.field)
        if current != wanted:
            raise ImmutableFieldError(kind, rule.field, current, wanted)
