"""Tests for the demo form state and autocomplete filtering."""

import pytest

from playact.forms import NO_OPTIONS_TEXT, apply_change, filter_options, parse_fruit, render_view
from playact.schema import FRUIT_OPTIONS, FormState, Fruit


class TestFormState:
    def test_initial_state(self):
        state = FormState()
        assert state.accepted is False
        assert state.name == ""
        assert state.fruit is None

    def test_initial_outputs(self):
        view = render_view(FormState())
        assert view.checkbox_status == "Status: Not Accepted"
        assert view.helper_text == "Character count: 0"
        assert view.character_count == 0
        assert view.greeting is None
        assert view.selection_message is None

    def test_accepted_status(self):
        assert FormState(accepted=True).checkbox_status == "Status: Accepted"

    def test_greeting_and_count(self):
        state = FormState(name="John Doe")
        assert state.greeting == "Hello, John Doe!"
        assert state.helper_text == "Character count: 8"

    def test_character_count_uses_utf16_units(self):
        assert FormState(name="Jos\u00e9").character_count == 4
        assert FormState(name="\U0001F600").helper_text == "Character count: 2"
        assert apply_change(FormState(), "name", "Jos\u00e9 \U0001F34E").character_count == 7

    def test_whitespace_name_still_greets(self):
        state = FormState(name="   ")
        assert state.character_count == 3
        assert state.greeting == "Hello,    !"

    def test_selection_message(self):
        assert FormState(fruit=Fruit.CHERRY).selection_message == "You selected: Cherry"


class TestApplyChange:
    def test_toggle_checkbox(self):
        state = apply_change(FormState(), "accepted", True)
        assert state.accepted is True
        state = apply_change(state, "accepted", False)
        assert state.checkbox_status == "Status: Not Accepted"

    @pytest.mark.parametrize("value, expected", [("true", True), ("On", True), ("false", False), ("0", False), ("", False)])
    def test_checkbox_from_text(self, value, expected):
        assert apply_change(FormState(accepted=not expected), "accepted", value).accepted is expected

    def test_fields_are_independent(self):
        state = FormState()
        state = apply_change(state, "accepted", True)
        state = apply_change(state, "name", "Ada")
        state = apply_change(state, "fruit", "Banana")
        assert state == FormState(accepted=True, name="Ada", fruit=Fruit.BANANA)

        state = apply_change(state, "name", "")
        assert state.accepted is True
        assert state.fruit == Fruit.BANANA
        assert state.greeting is None

    def test_original_state_unchanged(self):
        original = FormState()
        apply_change(original, "name", "Ada")
        assert original.name == ""

    def test_latest_input_wins(self):
        state = FormState()
        for text in ("J", "Jo", "Joh", "John"):
            state = apply_change(state, "name", text)
        assert state.helper_text == "Character count: 4"
        assert state.greeting == "Hello, John!"

    def test_clear_fruit(self):
        state = apply_change(FormState(fruit=Fruit.FIG), "fruit", None)
        assert state.fruit is None
        assert state.selection_message is None

    def test_change_fruit(self):
        state = apply_change(FormState(fruit=Fruit.APPLE), "fruit", "Grape")
        assert state.selection_message == "You selected: Grape"

    def test_unknown_field(self):
        with pytest.raises(ValueError):
            apply_change(FormState(), "email", "a@b.c")

    def test_unknown_fruit(self):
        with pytest.raises(ValueError):
            apply_change(FormState(), "fruit", "Mango")


class TestParseFruit:
    @pytest.mark.parametrize("value", ["Apple", "apple", " APPLE "])
    def test_case_insensitive(self, value):
        assert parse_fruit(value) == Fruit.APPLE

    @pytest.mark.parametrize("value", [None, "", "  "])
    def test_empty_clears(self, value):
        assert parse_fruit(value) is None

    def test_enum_passthrough(self):
        assert parse_fruit(Fruit.DATE) is Fruit.DATE

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown option"):
            parse_fruit("Kiwi")


class TestFilterOptions:
    def test_all_options_in_order(self):
        assert filter_options("") == FRUIT_OPTIONS
        assert filter_options(None) == FRUIT_OPTIONS
        assert FRUIT_OPTIONS == [
            "Apple",
            "Banana",
            "Cherry",
            "Date",
            "Elderberry",
            "Fig",
            "Grape",
            "Honeydew",
        ]

    def test_substring_match_preserves_order(self):
        assert filter_options("an") == ["Banana"]
        assert filter_options("e") == ["Apple", "Cherry", "Date", "Elderberry", "Grape", "Honeydew"]

    def test_case_insensitive(self):
        assert filter_options("APP") == ["Apple"]
        assert filter_options("cHeR") == ["Cherry"]

    def test_accent_insensitive(self):
        assert filter_options("Gräpe") == ["Grape"]
        assert filter_options("dâte") == ["Date"]

    def test_no_match(self):
        assert filter_options("xyz") == []
        assert NO_OPTIONS_TEXT == "No options"

    def test_custom_options(self):
        assert filter_options("ra", ["Grape", "Orange", "Fig"]) == ["Grape", "Orange"]
