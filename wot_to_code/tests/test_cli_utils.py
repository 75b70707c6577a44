#!/usr/bin/env python3

import click
import pytest

from wot_to_code.cli_utils import reconstruct_command_line
from wot_to_code.wot_to_code import wot_to_code

DEFAULT_PARAMS = {
    "package": None,
    "config": None,
    "enum_placement": None,
    "naming_policy": None,
    "dsl": None,
    "suspend_dsl": False,
    "lenient_references": False,
    "verbose": False,
    "model_url": "https://example.org/lamp.tm.jsonld",
    "output_dir": "/nonexistent/out",
}


def reconstruct(**params):
    ctx = click.Context(wot_to_code)
    ctx.params = {**DEFAULT_PARAMS, **params}
    with ctx:
        return reconstruct_command_line(wot_to_code)


class TestCliUtils:
    """Test cases for CLI utilities"""

    def test_reconstruct_command_line_without_context(self):
        """Test command reconstruction without active Click context (fallback)"""
        assert reconstruct_command_line(wot_to_code) == "wot_to_code"

    def test_reconstruct_arguments_only(self):
        assert reconstruct() == "wot_to_code https://example.org/lamp.tm.jsonld /nonexistent/out"

    def test_reconstruct_options(self):
        result = reconstruct(package="lamp", enum_placement="separate", suspend_dsl=True)
        assert result == (
            "wot_to_code https://example.org/lamp.tm.jsonld /nonexistent/out --package lamp --enum-placement separate --suspend-dsl"
        )

    def test_reconstruct_boolean_flag(self):
        assert reconstruct(dsl=True).endswith(" --dsl")

    def test_local_paths_are_shortened(self, tmp_path):
        model = tmp_path / "lamp.tm.jsonld"
        model.write_text("{}", encoding="utf-8")
        result = reconstruct(model_url=str(model), output_dir=str(tmp_path))
        assert result == f"wot_to_code lamp.tm.jsonld {tmp_path.name}"


if __name__ == "__main__":
    pytest.main([__file__])
