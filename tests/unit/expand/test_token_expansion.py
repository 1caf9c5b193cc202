from __future__ import annotations

from runtime_class import expand, generate_runtime_class
from runtime_class.expand import expand_tokens


def test_flattened_order_is_key_order_then_split_order() -> None:
    result = expand({"default": "p-4 bg-white", "md": "p-6", "lg": "p-8 bg-gray-100"})

    assert result.flattened == "p-4 bg-white md:p-6 lg:p-8 lg:bg-gray-100"


def test_empty_value_emits_no_stray_separator() -> None:
    assert expand({"default": "", "sm": "x"}).flattened == "sm:x"
    assert expand({"sm": "x", "md": ""}).flattened == "sm:x"


def test_whitespace_runs_collapse() -> None:
    result = expand({"default": "  a   b  ", "md": "\tc\n  d"})

    assert result.flattened == "a b md:c md:d"


def test_expansion_is_idempotent() -> None:
    mapping = {"default": "flex gap-2", "sm": "grid", "xl": "hidden"}

    first = expand(mapping)
    second = expand(mapping)

    assert first == second
    assert first.flattened.encode("utf-8") == second.flattened.encode("utf-8")


def test_to_dict_keeps_original_entries_and_appends_flattened_field() -> None:
    result = expand({"default": "p-4", "md": "p-6"})

    payload = result.to_dict()

    assert payload == {"default": "p-4", "md": "p-6", "runtimeClass": "p-4 md:p-6"}
    assert list(payload) == ["default", "md", "runtimeClass"]


def test_custom_default_key_and_field_name() -> None:
    result = expand({"base": "a", "default": "b"}, default_key="base", flattened_field="cls")

    assert result.to_dict() == {"base": "a", "default": "b", "cls": "a default:b"}


def test_has_tokens_is_false_for_all_empty_values() -> None:
    assert expand({}).has_tokens is False
    assert expand({"default": "   "}).has_tokens is False
    assert expand({"default": "x"}).has_tokens is True


def test_consumer_helper_matches_expand() -> None:
    mapping = {"default": "text-sm", "lg": "text-lg"}

    assert generate_runtime_class(mapping) == expand(mapping).to_dict()
    assert generate_runtime_class(mapping)["runtimeClass"] == "text-sm lg:text-lg"


def test_expand_tokens_lists_prefixed_tokens() -> None:
    assert expand_tokens({"default": "a", "md": "b c"}) == ["a", "md:b", "md:c"]
