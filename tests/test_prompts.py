"""Tests for prompt normalization and system prompt assembly"""

import pytest

from ai_engine.models import ConfigurationError
from ai_engine.prompts import PromptParams, build_system_prompt


class TestPromptParams:
    """Test normalization of caller prompt input"""

    def test_bare_string_becomes_input(self):
        params = PromptParams.coerce("summarize this")
        assert params == PromptParams(input="summarize this")
        assert params.role is None

    def test_none_becomes_empty_params(self):
        assert PromptParams.coerce(None) == PromptParams()

    def test_mapping_is_used_as_is(self):
        params = PromptParams.coerce({"role": "Editor", "input": "text"})
        assert params.role == "Editor"
        assert params.input == "text"

    def test_mapping_without_input(self):
        """Missing or None input becomes an empty string"""
        assert PromptParams.coerce({"goal": "g"}).input == ""
        assert PromptParams.coerce({"input": None}).input == ""

    def test_extra_fields_ignored(self):
        """Keys other than the prompt fields are dropped, not rejected"""
        params = PromptParams.coerce({"input": "hi", "title": "x", "tone": "friendly"})
        assert params == PromptParams(input="hi")

    def test_wrong_type_rejected(self):
        with pytest.raises(ConfigurationError):
            PromptParams.coerce(42)

    def test_with_input_keeps_other_fields(self):
        params = PromptParams(role="r", goal="g", input="a")
        updated = params.with_input("b")
        assert updated.input == "b"
        assert updated.role == "r" and updated.goal == "g"
        assert params.input == "a"


class TestBuildSystemPrompt:
    """Test system prompt assembly"""

    def test_all_sections_in_order(self):
        params = PromptParams(
            role="R", goal="G", steps="S", output="O", example="E", input="ignored"
        )
        assert build_system_prompt(params) == (
            "# Role\nR\n\n# Goal\nG\n\n# Instructions\nS\n\n# Output Format\nO\n\n# Example\nE"
        )

    def test_empty_params_give_empty_prompt(self):
        assert build_system_prompt(PromptParams()) == ""
        assert build_system_prompt(PromptParams(input="only input")) == ""

    def test_blank_sections_skipped(self):
        params = PromptParams(role="  ", goal="Fix grammar", output="\n\t")
        assert build_system_prompt(params) == "# Goal\nFix grammar"

    def test_values_are_trimmed(self):
        params = PromptParams(role="  Editor \n", example="\nfoo\n")
        assert build_system_prompt(params) == "# Role\nEditor\n\n# Example\nfoo"

    def test_order_independent_of_construction(self):
        """Sections follow the fixed order regardless of which are present"""
        params = PromptParams.coerce({"example": "E", "role": "R"})
        assert build_system_prompt(params) == "# Role\nR\n\n# Example\nE"

    def test_internal_newlines_preserved(self):
        params = PromptParams(steps="1. one\n2. two")
        assert build_system_prompt(params) == "# Instructions\n1. one\n2. two"
