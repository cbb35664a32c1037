"""
Handler adapter.

Turns a typed handler function into a uniform tool invoker plus the input
schema advertised by ``tools/list``.

A handler takes one argument, a pydantic model or a dataclass, and either

- returns ``ToolResult`` / ``Optional[ToolResult]`` and raises on failure, or
- returns a pair ``Tuple[Optional[ToolResult], Optional[Exception]]``.

The shape is checked once, at registration time. Everything that goes wrong
after that (bad arguments, handler exceptions, unexpected return values)
surfaces from the invoker as ``ToolExecutionError``.
"""

import dataclasses
import inspect
import json
import logging
import types
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional, Tuple, Union, get_args, get_origin, get_type_hints

from pydantic import BaseModel, TypeAdapter

from .errors import (
    HandlerArgNotStruct,
    HandlerNotFunction,
    HandlerWrongArgs,
    HandlerWrongReturns,
    ToolExecutionError,
)
from .protocol import ToolResult


logger = logging.getLogger(__name__)

RETURN_MISMATCH = "handler must return (ToolResult, error)"

_UNION_TYPES = tuple(t for t in (Union, getattr(types, "UnionType", None)) if t is not None)
_ARRAY_TYPES = (list, tuple, set, frozenset)


def _strip_optional(annotation: Any) -> Any:
    """Unwrap one level of ``Optional[X]``."""
    if get_origin(annotation) in _UNION_TYPES:
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) == 1 and len(args) != len(get_args(annotation)):
            return args[0]
    return annotation


def _is_optional(annotation: Any) -> bool:
    return get_origin(annotation) in _UNION_TYPES and type(None) in get_args(annotation)


def is_struct(annotation: Any) -> bool:
    """True for pydantic model classes and dataclass types."""
    if not inspect.isclass(annotation):
        return False
    return issubclass(annotation, BaseModel) or dataclasses.is_dataclass(annotation)


def struct_fields(model: type) -> List[Tuple[str, Any, bool]]:
    """List ``(key, annotation, has_default)`` in declaration order."""
    if issubclass(model, BaseModel):
        return [
            (info.alias or name, info.annotation, not info.is_required())
            for name, info in model.model_fields.items()
        ]

    try:
        hints = get_type_hints(model)
    except (NameError, TypeError):
        hints = {}
    fields = []
    for f in dataclasses.fields(model):
        if not f.init:
            continue
        has_default = (
            f.default is not dataclasses.MISSING
            or f.default_factory is not dataclasses.MISSING
        )
        fields.append((f.name, hints.get(f.name, f.type), has_default))
    return fields


def kind_of(annotation: Any) -> str:
    """Name the primitive kind of a field annotation."""
    annotation = _strip_optional(annotation)
    origin = get_origin(annotation) or annotation

    if not inspect.isclass(origin):
        return "any"
    if issubclass(origin, bool):
        return "bool"
    if issubclass(origin, str):
        return "string"
    if issubclass(origin, int):
        return "int"
    if issubclass(origin, float):
        return "float"
    if issubclass(origin, (bytes, bytearray)):
        return "bytes"
    if issubclass(origin, _ARRAY_TYPES):
        return "array"
    if issubclass(origin, Mapping) or is_struct(origin):
        return "object"
    return "any"


def generate_schema(model: type) -> Dict[str, Any]:
    """Build the shallow input schema of a struct-like type.

    Every field becomes a property typed by its primitive kind and is listed
    as required, in declaration order.
    """
    properties = {}
    required = []

    for key, annotation, _ in struct_fields(model):
        properties[key] = {"type": kind_of(annotation)}
        required.append(key)

    return {
        "type": "object",
        "properties": properties,
        "required": required,
    }


def zero_value(annotation: Any) -> Any:
    """Zero value used for a field missing from the argument bag."""
    if _is_optional(annotation):
        return None

    origin = get_origin(annotation) or annotation
    if is_struct(origin):
        return zero_arguments(origin)
    if not inspect.isclass(origin):
        return None
    if issubclass(origin, bool):
        return False
    if issubclass(origin, str):
        return ""
    if issubclass(origin, int):
        return 0
    if issubclass(origin, float):
        return 0.0
    if issubclass(origin, (bytes, bytearray)):
        return ""
    if issubclass(origin, _ARRAY_TYPES):
        return []
    if issubclass(origin, Mapping):
        return {}
    return None


def zero_arguments(model: type) -> Dict[str, Any]:
    return {
        key: zero_value(annotation)
        for key, annotation, has_default in struct_fields(model)
        if not has_default
    }


def _type_hints(handler: Callable) -> Dict[str, Any]:
    target = handler if inspect.isroutine(handler) else type(handler).__call__
    try:
        return get_type_hints(target)
    except (NameError, TypeError):
        return {}


def _check_returns(annotation: Any) -> bool:
    """Validate the declared outputs. Returns True for the pair form."""
    if annotation is inspect.Signature.empty:
        raise HandlerWrongReturns("missing return annotation")

    if _strip_optional(annotation) is ToolResult:
        return False

    if get_origin(annotation) in (tuple, Tuple):
        args = get_args(annotation)
        if len(args) != 2 or Ellipsis in args:
            raise HandlerWrongReturns(f"expected 2 return values, got {len(args)}")
        if _strip_optional(args[0]) is not ToolResult:
            raise HandlerWrongReturns(f"first return value must be ToolResult, got {args[0]!r}")
        second = _strip_optional(args[1])
        if not (inspect.isclass(second) and issubclass(second, BaseException)):
            raise HandlerWrongReturns(f"second return value must be an exception, got {args[1]!r}")
        return True

    raise HandlerWrongReturns(f"first return value must be ToolResult, got {annotation!r}")


class HandlerAdapter:
    """
    Uniform invoker built around a typed handler.

    Calling the adapter with an argument bag decodes it into the handler's
    input type, calls the handler and returns its ``ToolResult`` (or None).
    """

    def __init__(self, handler: Callable, name: str = ""):
        if not callable(handler) or inspect.isclass(handler):
            raise HandlerNotFunction(handler)

        try:
            signature = inspect.signature(handler)
        except (TypeError, ValueError):
            raise HandlerNotFunction(handler)

        params = list(signature.parameters.values())
        if len(params) != 1 or params[0].kind not in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            raise HandlerWrongArgs(len(params))

        hints = _type_hints(handler)
        param = params[0]
        annotation = hints.get(param.name, param.annotation)
        input_type = _strip_optional(annotation)
        if not is_struct(input_type):
            raise HandlerArgNotStruct(annotation)

        self.dual = _check_returns(hints.get("return", signature.return_annotation))
        self.handler = handler
        self.name = name or getattr(handler, "__name__", "")
        self.input_type = input_type
        self.schema = generate_schema(input_type)
        self._decoder = TypeAdapter(input_type)
        self._nullable = {
            key for key, field_type, _ in struct_fields(input_type)
            if _is_optional(field_type)
        }

    def decode(self, arguments: Optional[Mapping]) -> Any:
        """Decode an argument bag into a fresh input instance.

        The bag goes through JSON and is validated strictly, so values are
        never coerced across types. Unknown keys are ignored; missing keys,
        and nulls for non-optional fields, take their zero value.
        """
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, Mapping):
            raise ToolExecutionError(
                self.name,
                f"failed to decode arguments: expected object, got {type(arguments).__name__}",
            )

        values = zero_arguments(self.input_type)
        values.update(
            (key, value) for key, value in arguments.items()
            if value is not None or key in self._nullable
        )
        try:
            return self._decoder.validate_json(json.dumps(values), strict=True)
        except (TypeError, ValueError) as e:
            raise ToolExecutionError(self.name, f"failed to decode arguments: {e}") from e

    def __call__(self, arguments: Optional[Mapping]) -> Optional[ToolResult]:
        value = self.decode(arguments)

        try:
            returned = self.handler(value)
        except Exception as e:
            logger.debug(f"Tool {self.name} raised {type(e).__name__}: {e}")
            raise ToolExecutionError(self.name, str(e) or type(e).__name__) from e

        if self.dual:
            if not isinstance(returned, tuple) or len(returned) != 2:
                raise ToolExecutionError(self.name, RETURN_MISMATCH)
            result, err = returned
            if err is not None:
                if not isinstance(err, BaseException):
                    raise ToolExecutionError(self.name, RETURN_MISMATCH)
                raise ToolExecutionError(self.name, str(err) or type(err).__name__) from err
        else:
            result = returned

        if result is not None and not isinstance(result, ToolResult):
            raise ToolExecutionError(self.name, RETURN_MISMATCH)

        return result
