"""Tool definitions, argument validation and result envelopes.

Each tool declares one pydantic model. The same model validates incoming
arguments and, through :func:`input_schema`, produces the JSON Schema that is
advertised to MCP clients, so the two can never drift apart.
"""

import functools
import json
import logging
from dataclasses import dataclass
from typing import Annotated, Any, Awaitable, Callable, Dict, Optional, Type

from pydantic import BaseModel, BeforeValidator, ConfigDict, NonNegativeInt, PositiveInt, ValidationError

from mcp_ckan_server.config import LOGGER_NAME
from mcp_ckan_server.errors import CKANError, ToolArgumentError

logger = logging.getLogger(LOGGER_NAME)

Envelope = Dict[str, Any]
Handler = Callable[[Any, "ToolParameters"], Awaitable[Envelope]]


class ToolParameters(BaseModel):
    """Base schema for tool arguments; unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


def _reject_bool(value: Any) -> Any:
    if isinstance(value, bool):
        raise ValueError("Input should be a valid integer, not a boolean")
    return value


# Integer counts and offsets; numeric strings still coerce, booleans do not
Count = Annotated[PositiveInt, BeforeValidator(_reject_bool)]
Offset = Annotated[NonNegativeInt, BeforeValidator(_reject_bool)]


def text_result(data: Any) -> Envelope:
    text = data if isinstance(data, str) else json.dumps(data, indent=2, ensure_ascii=False)
    return {"content": [{"type": "text", "text": text}], "isError": False}


def error_result(message: str) -> Envelope:
    return {"content": [{"type": "text", "text": message}], "isError": True}


def is_envelope(result: Any) -> bool:
    """Check the ``{content: [...], isError?: bool}`` result shape"""
    if not isinstance(result, dict) or not isinstance(result.get("content"), list):
        return False
    return isinstance(result.get("isError", False), bool)


def format_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "arguments"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


def _clean_schema(node: Any, in_properties: bool = False) -> Any:
    if isinstance(node, list):
        return [_clean_schema(item) for item in node]
    if not isinstance(node, dict):
        return node
    if in_properties:
        # keys are field names here, not schema keywords
        return {name: _clean_schema(value) for name, value in node.items()}

    cleaned = {}
    for key, value in node.items():
        if key == "title" or (key == "default" and value is None):
            continue
        cleaned[key] = _clean_schema(value, in_properties=(key == "properties"))

    # Optional[X] is rendered as anyOf [X, null]; absent and null mean the same here
    options = cleaned.get("anyOf")
    if isinstance(options, list) and {"type": "null"} in options:
        options = [option for option in options if option != {"type": "null"}]
        del cleaned["anyOf"]
        if len(options) == 1:
            cleaned = {**options[0], **cleaned}
        else:
            cleaned["anyOf"] = options
    return cleaned


def input_schema(model: Type[BaseModel]) -> Dict[str, Any]:
    """Derive the advertised MCP ``inputSchema`` from a parameters model"""
    schema = _clean_schema(model.model_json_schema())
    schema.setdefault("properties", {})
    schema["type"] = "object"
    return schema


@dataclass(frozen=True)
class ToolDefinition:
    """A named tool: its argument model and the coroutine that serves it.

    Attributes:
        name: Unique tool name, equal to the CKAN action it fronts.
        description: Human-readable purpose shown to MCP clients.
        parameters_model: Pydantic model validating the tool arguments.
        handler: ``async (client, params) -> envelope``.
    """

    name: str
    description: str
    parameters_model: Type[ToolParameters]
    handler: Handler

    def validate(self, arguments: Optional[Dict[str, Any]]) -> ToolParameters:
        """Validate and coerce caller arguments.

        Raises:
            ToolArgumentError: If the arguments violate the schema.
        """
        try:
            return self.parameters_model.model_validate(arguments if arguments is not None else {})
        except ValidationError as error:
            raise ToolArgumentError(self.name, format_validation_error(error)) from error

    def descriptor(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": input_schema(self.parameters_model),
        }


def ckan_handler(func: Callable[[Any, Any], Awaitable[Any]]) -> Handler:
    """Wrap a client call so CKAN data or CKAN failures become envelopes."""

    @functools.wraps(func)
    async def wrapper(client, params):
        try:
            data = await func(client, params)
        except CKANError as e:
            logger.warning(f"{e.error_type.value}: {e}")
            return error_result(str(e))
        return text_result(data)

    return wrapper
