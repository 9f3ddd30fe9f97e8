"""
Unit tests for building the template context from a description.
"""

import logging

import pytest

from sdkgen.adapters.context import ContextBuilder
from sdkgen.description import load_description
from sdkgen.errors import CodegenError, UnresolvableReferenceError

SCHEMA_ROOT = ("components", "schemas")


def openapi(schemas):
    return {
        "openapi": "3.0.3",
        "info": {"title": "Graph", "version": "1.0"},
        "paths": {},
        "components": {"schemas": schemas},
    }


def builder_for(write_description, schemas) -> ContextBuilder:
    return ContextBuilder(load_description(write_description(openapi(schemas))), SCHEMA_ROOT)


def field_names(model):
    return sorted(f.wire_name for f in model.fields)


class TestReferences:

    def test_external_ref_is_a_codegen_error(self, write_description):
        builder = builder_for(write_description, {
            "Pet": {"type": "object", "properties": {"owner": {"$ref": "common.yaml#/Owner"}}},
        })
        with pytest.raises(UnresolvableReferenceError) as exc_info:
            builder.build_models()

        error = exc_info.value
        assert isinstance(error, CodegenError)
        assert error.ref == "common.yaml#/Owner"
        assert error.description_path.endswith("openapi.yaml")
        assert "common.yaml#/Owner" in str(error)

    def test_schema_ref_escapes_names(self, write_description):
        builder = builder_for(write_description, {})
        assert builder.parser.schema_ref("Pet") == "#/components/schemas/Pet"
        assert builder.parser.schema_ref("a/b~c") == "#/components/schemas/a~1b~0c"

    def test_local_ref_to_model(self, write_description):
        builder = builder_for(write_description, {
            "Owner": {"type": "object", "properties": {"name": {"type": "string"}}},
            "Pet": {"type": "object", "properties": {"owner": {"$ref": "#/components/schemas/Owner"}}},
        })
        models = {m.name: m for m in builder.build_models()}
        assert models["Pet"].fields[0].type.model == "Owner"


class TestAllOf:

    def test_self_reference_stops(self, write_description, caplog):
        builder = builder_for(write_description, {
            "Node": {"allOf": [{"$ref": "#/components/schemas/Node"}]},
        })
        with caplog.at_level(logging.WARNING):
            models = builder.build_models()

        assert [m.name for m in models] == ["Node"]
        assert models[0].fields == []
        assert "circular allOf reference #/components/schemas/Node" in caplog.text

    def test_mutual_cycle_keeps_both_property_sets(self, write_description):
        builder = builder_for(write_description, {
            "Alpha": {"allOf": [
                {"$ref": "#/components/schemas/Beta"},
                {"properties": {"a": {"type": "string"}}},
            ]},
            "Beta": {"allOf": [
                {"$ref": "#/components/schemas/Alpha"},
                {"properties": {"b": {"type": "integer"}}},
            ]},
        })
        models = {m.name: m for m in builder.build_models()}
        assert field_names(models["Alpha"]) == ["a", "b"]
        assert field_names(models["Beta"]) == ["a", "b"]

    def test_shared_parent_is_not_a_cycle(self, write_description, caplog):
        builder = builder_for(write_description, {
            "Base": {"type": "object", "required": ["id"], "properties": {"id": {"type": "integer"}}},
            "Left": {"allOf": [{"$ref": "#/components/schemas/Base"}, {"properties": {"left": {"type": "string"}}}]},
            "Right": {"allOf": [{"$ref": "#/components/schemas/Base"}, {"properties": {"right": {"type": "string"}}}]},
            "Both": {"allOf": [{"$ref": "#/components/schemas/Left"}, {"$ref": "#/components/schemas/Right"}]},
        })
        with caplog.at_level(logging.WARNING):
            models = {m.name: m for m in builder.build_models()}

        assert field_names(models["Both"]) == ["id", "left", "right"]
        assert models["Both"].fields[0].required
        assert "circular" not in caplog.text
