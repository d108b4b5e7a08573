"""Report merge policy.

Printers (P1/A1 series in particular) only report what changed, so the
client folds every delta into a cumulative state. The policy is applied
generically to every report model field:

- a nested model is merged recursively, never replaced wholesale;
- a leaf from the delta wins unless it holds the "absent" value of its
  type (``None``, ``""``, ``0``, ``False``, empty list/dict), in which case
  the previous value is kept.

A field legitimately reset to zero is indistinguishable from a field that
was not reported; that is a limitation of the report protocol. The merge is
order-sensitive: the later delta wins for every field both deltas set.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel

from pybambu.models.report import PrinterState

M = TypeVar("M", bound=BaseModel)


def is_absent(value: Any) -> bool:
    """Return ``True`` when *value* means "not reported"."""
    if value is None:
        return True
    if isinstance(value, bool):
        return not value
    if isinstance(value, (int, float)):
        return value == 0
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) == 0
    return False


def merge_models(previous: M | None, delta: M | None) -> M | None:
    """Fold *delta* into *previous*, field by field.

    Both arguments are left untouched; a new instance is returned when a
    merge actually happens.
    """
    if previous is None:
        return delta
    if delta is None:
        return previous

    updates: dict[str, Any] = {}
    for name in type(previous).model_fields:
        old = getattr(previous, name)
        new = getattr(delta, name)
        if isinstance(old, BaseModel) or isinstance(new, BaseModel):
            merged = merge_models(old, new)
            if merged is not old:
                updates[name] = merged
        elif not is_absent(new):
            updates[name] = new
    if not updates:
        return previous
    return previous.model_copy(update=updates)


def merge_state(previous: PrinterState | None, delta: PrinterState | None) -> PrinterState | None:
    return merge_models(previous, delta)
