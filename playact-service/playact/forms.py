"""
State handling for the demo form: a checkbox, a text field and an
autocomplete over a fixed list of fruits.
"""

from __future__ import annotations

import unicodedata
from typing import Iterable, List, Optional, Union

from . import config
from .schema import FRUIT_OPTIONS, FormState, FormView, Fruit

NO_OPTIONS_TEXT = "No options"

FIELDS = ("accepted", "name", "fruit")


def _parse_flag(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in config.TRUE_VALUES
    return bool(value)


def _fold(text: str) -> str:
    """Lower-case and strip diacritics so 'é' matches 'e'."""
    decomposed = unicodedata.normalize("NFD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.lower()


def filter_options(query: Optional[str], options: Iterable[str] = FRUIT_OPTIONS) -> List[str]:
    """
    Return the options containing `query`, ignoring case and accents.

    Option order is preserved. An empty or missing query returns every option.
    """
    labels = list(options)
    if not query:
        return labels
    needle = _fold(query)
    return [label for label in labels if needle in _fold(label)]


def parse_fruit(value: Union[str, Fruit, None]) -> Optional[Fruit]:
    """
    Resolve an autocomplete value to a Fruit; empty values clear the selection.

    Raises ValueError for labels that are not one of the options.
    """
    if value is None or isinstance(value, Fruit):
        return value
    value = value.strip()
    if not value:
        return None
    for fruit in Fruit:
        if fruit.value.lower() == value.lower():
            return fruit
    raise ValueError(f"Unknown option: {value!r}")


def apply_change(state: FormState, field: str, value) -> FormState:
    """
    Return a copy of `state` with one field replaced by the latest input.
    """
    if field not in FIELDS:
        raise ValueError(f"Unknown form field: {field!r}")
    if field == "accepted":
        new_value = _parse_flag(value)
    elif field == "name":
        new_value = "" if value is None else str(value)
    else:
        new_value = parse_fruit(value)
    data = state.dict()
    data[field] = new_value
    return FormState.parse_obj(data)


def render_view(state: FormState) -> FormView:
    """
    Compute the text the page shows for `state`.
    """
    return FormView(
        checkbox_status=state.checkbox_status,
        helper_text=state.helper_text,
        character_count=state.character_count,
        greeting=state.greeting,
        selection_message=state.selection_message,
    )
