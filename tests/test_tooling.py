"""Tests for argument validation and schema derivation."""

from typing import Any, Dict, List, Optional, Union

import pytest
from pydantic import Field

from mcp_ckan_server.errors import ToolArgumentError
from mcp_ckan_server.tooling import (
    Count,
    Offset,
    ToolDefinition,
    ToolParameters,
    error_result,
    input_schema,
    is_envelope,
    text_result,
)


class SampleParams(ToolParameters):
    id: str = Field(description="Identifier")
    rows: Optional[Count] = Field(None, description="Rows")
    start: Optional[Offset] = None
    fq: Optional[Union[str, List[str]]] = None
    filters: Optional[Dict[str, Any]] = None
    flag: Optional[bool] = None
    facet_field: Optional[List[str]] = Field(None, alias="facetField")


async def _noop(client, params):
    return text_result({})


SAMPLE = ToolDefinition("sample", "Sample tool", SampleParams, _noop)


class TestInputSchema:
    def test_closed_object_with_required_fields(self) -> None:
        schema = input_schema(SampleParams)

        assert schema["type"] == "object"
        assert schema["additionalProperties"] is False
        assert schema["required"] == ["id"]
        assert "title" not in schema

    def test_optional_fields_drop_null(self) -> None:
        properties = input_schema(SampleParams)["properties"]

        assert properties["id"] == {"type": "string", "description": "Identifier"}
        assert properties["rows"] == {"type": "integer", "exclusiveMinimum": 0, "description": "Rows"}
        assert properties["flag"] == {"type": "boolean"}

    def test_unions_and_free_form_objects(self) -> None:
        properties = input_schema(SampleParams)["properties"]

        assert properties["fq"]["anyOf"] == [
            {"type": "string"},
            {"type": "array", "items": {"type": "string"}},
        ]
        assert properties["filters"]["type"] == "object"
        assert properties["filters"].get("additionalProperties", True) is True

    def test_aliases_are_advertised(self) -> None:
        properties = input_schema(SampleParams)["properties"]

        assert "facetField" in properties
        assert "facet_field" not in properties

    def test_empty_model(self) -> None:
        class Empty(ToolParameters):
            pass

        schema = input_schema(Empty)
        assert schema["properties"] == {}
        assert schema["additionalProperties"] is False


class TestValidate:
    def test_defaults_and_coercion(self) -> None:
        params = SAMPLE.validate({"id": "x", "rows": "10", "flag": "true"})

        assert params.id == "x"
        assert params.rows == 10
        assert params.flag is True
        assert params.fq is None

    def test_integer_fields_reject_booleans(self) -> None:
        with pytest.raises(ToolArgumentError) as excinfo:
            SAMPLE.validate({"id": "x", "rows": True})

        assert "rows" in excinfo.value.details
        assert SAMPLE.validate({"id": "x", "start": "0"}).start == 0

    def test_none_arguments_treated_as_empty(self) -> None:
        with pytest.raises(ToolArgumentError, match="id: Field required"):
            SAMPLE.validate(None)

    def test_unknown_keys_rejected(self) -> None:
        with pytest.raises(ToolArgumentError) as excinfo:
            SAMPLE.validate({"id": "x", "bogus": 1})

        assert excinfo.value.tool == "sample"
        assert "bogus" in excinfo.value.details
        assert str(excinfo.value).startswith("Invalid arguments for sample: ")

    @pytest.mark.parametrize("arguments", [{"id": 5}, {"id": "x", "rows": 0}, {"id": "x", "rows": -1},
                                           {"id": "x", "rows": 1.5}, {"id": "x", "fq": 3},
                                           {"id": "x", "rows": True}, {"id": "x", "start": False}])
    def test_constraint_violations(self, arguments) -> None:
        with pytest.raises(ToolArgumentError):
            SAMPLE.validate(arguments)

    def test_union_accepts_either_shape(self) -> None:
        assert SAMPLE.validate({"id": "x", "fq": "a:b"}).fq == "a:b"
        assert SAMPLE.validate({"id": "x", "fq": ["a:b", "c:d"]}).fq == ["a:b", "c:d"]

    def test_alias_and_field_name_both_accepted(self) -> None:
        assert SAMPLE.validate({"id": "x", "facetField": ["tags"]}).facet_field == ["tags"]
        assert SAMPLE.validate({"id": "x", "facet_field": ["tags"]}).facet_field == ["tags"]

    def test_nested_free_form_object(self) -> None:
        params = SAMPLE.validate({"id": "x", "filters": {"city": ["Bern", "Zug"], "n": {"deep": 1}}})
        assert params.filters == {"city": ["Bern", "Zug"], "n": {"deep": 1}}


class TestEnvelopes:
    def test_text_result_serializes_json(self) -> None:
        result = text_result({"success": True, "result": "ü"})

        assert result["isError"] is False
        assert result["content"] == [{"type": "text", "text": '{\n  "success": true,\n  "result": "ü"\n}'}]

    def test_error_result(self) -> None:
        assert error_result("nope") == {"content": [{"type": "text", "text": "nope"}], "isError": True}

    @pytest.mark.parametrize(
        "value, expected",
        [
            ({"content": []}, True),
            ({"content": [], "isError": True}, True),
            ({"content": "text"}, False),
            ({"content": [], "isError": "yes"}, False),
            ({"result": 1}, False),
            (None, False),
            ("text", False),
        ],
    )
    def test_is_envelope(self, value, expected) -> None:
        assert is_envelope(value) is expected

    def test_descriptor(self) -> None:
        descriptor = SAMPLE.descriptor()

        assert descriptor["name"] == "sample"
        assert descriptor["description"] == "Sample tool"
        assert descriptor["inputSchema"] == input_schema(SampleParams)
