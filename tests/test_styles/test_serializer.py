"""Unit tests for configuration serialization (bundle_service.styles.serializer).

Tests cover:
- serialize_config leaves transforms as live expressions
- ordinary strings that look like require() stay quoted
- unquote_transforms with escaped options
- build_program reassembly and re-evaluation
"""

from __future__ import annotations

import json

import pytest

from bundle_service.styles.program import ConfigSandbox
from bundle_service.styles.serializer import build_program, serialize_config, unquote_transforms
from bundle_service.styles.transforms import NamedTransform, require


class TestSerializeConfig:
    @pytest.mark.unit
    def test_plain_config_is_json(self):
        config = {"darkMode": ["class"], "theme": {"extend": {}}}
        assert json.loads(serialize_config(config)) == config

    @pytest.mark.unit
    def test_transform_unquoted(self):
        text = serialize_config({"plugins": [require("tailwindcss-animate")]})
        assert 'require("tailwindcss-animate")' in text
        assert '"require(\\"tailwindcss-animate\\")"' not in text

    @pytest.mark.unit
    def test_lookalike_string_stays_quoted(self):
        text = serialize_config(
            {"note": 'require("tailwindcss-animate")', "plugins": [require("@tailwindcss/forms")]}
        )
        assert '"note": "require(\\"tailwindcss-animate\\")"' in text

    @pytest.mark.unit
    def test_configured_transform(self):
        plugin = require("@tailwindcss/typography").configure({"className": 'say "hi"'})
        text = serialize_config({"plugins": [plugin]})
        assert plugin.source in text

    @pytest.mark.unit
    def test_non_serializable_value(self):
        with pytest.raises(TypeError):
            serialize_config({"bad": object()})


class TestUnquoteTransforms:
    @pytest.mark.unit
    def test_no_sources_is_identity(self):
        assert unquote_transforms('{"a": "b"}', set()) == '{"a": "b"}'


class TestBuildProgram:
    @pytest.mark.unit
    def test_round_trip_through_sandbox(self):
        config = {
            "theme": {"extend": {"colors": {"brand": "#123456"}}},
            "plugins": [require("tailwindcss-animate"), require("@tailwindcss/forms").configure({"strategy": "class"})],
        }
        program = build_program('const unused = "x";', serialize_config(config), "")
        assert program.startswith('const unused = "x";\nmodule.exports = {')

        result = ConfigSandbox().run(program)
        assert result["theme"] == config["theme"]
        assert all(isinstance(p, NamedTransform) for p in result["plugins"])
        assert result["plugins"] == config["plugins"]

    @pytest.mark.unit
    def test_empty_parts_skipped(self):
        assert build_program("", "{}", "  ") == "module.exports = {};\n"
