# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Return value conversion and type variable substitution.

Dispatchers return untyped results. Before a forwarded call hands its result
back, the value is converted to the member's declared result type with a
pydantic ``TypeAdapter``, built once per declared type.
"""

from __future__ import annotations

import dataclasses
import threading
from typing import Any, TypeVar, get_origin, is_typeddict

import structlog
from pydantic import BaseModel, ConfigDict, PydanticUserError, TypeAdapter, ValidationError

from pyintercept.kernel.exceptions import ReturnConversionException

logger = structlog.get_logger("pyintercept.proxy.conversion")

_ARBITRARY_TYPES = ConfigDict(arbitrary_types_allowed=True)

_adapters: dict[Any, TypeAdapter[Any] | None] = {}
_adapters_lock = threading.Lock()


def substitute(annotation: Any, env: dict[Any, Any]) -> Any:
    """Replace type variables in *annotation* using *env*.

    ``substitute(list[T], {T: int})`` gives ``list[int]``.
    """
    if not env:
        return annotation
    if isinstance(annotation, TypeVar):
        return env.get(annotation, annotation)
    parameters = getattr(annotation, "__parameters__", ())
    if parameters and get_origin(annotation) is not None:
        return annotation[tuple(env.get(p, p) for p in parameters)]
    return annotation


def is_concrete(declared: Any) -> bool:
    """Return True when *declared* is a type values can be converted to."""
    if declared is Any or declared is object or declared is None:
        return False
    if isinstance(declared, (str, TypeVar)):
        return False
    if _is_static_protocol(declared):
        return False
    return not (get_origin(declared) is not None and getattr(declared, "__parameters__", ()))


def convert(value: Any, declared: Any) -> Any:
    """Convert *value* to *declared*.

    ``None``, already-matching instances and non-concrete declarations
    (``Any``, open type variables, unresolved string annotations, protocols
    that are not ``@runtime_checkable``) pass through unchanged.

    Raises:
        ReturnConversionException: *value* does not validate as *declared*.
    """
    if value is None or not is_concrete(declared):
        return value
    if _is_instance(value, declared):
        return value

    adapter = _adapter_for(declared)
    if adapter is None:
        return value
    try:
        return adapter.validate_python(value)
    except (ValidationError, TypeError) as exc:
        raise ReturnConversionException(
            f"Cannot convert {type(value).__name__} result to {declared!r}",
            code="RETURN_CONVERSION",
            context={"declared": repr(declared), "value_type": type(value).__name__},
        ) from exc


def _adapter_for(declared: Any) -> TypeAdapter[Any] | None:
    with _adapters_lock:
        if declared in _adapters:
            return _adapters[declared]

    adapter: TypeAdapter[Any] | None
    try:
        if _has_own_config(declared):
            adapter = TypeAdapter(declared)
        else:
            adapter = TypeAdapter(declared, config=_ARBITRARY_TYPES)
    except PydanticUserError as exc:
        logger.debug("return_conversion_disabled", declared=repr(declared), reason=str(exc))
        adapter = None

    with _adapters_lock:
        return _adapters.setdefault(declared, adapter)


def _has_own_config(declared: Any) -> bool:
    # pydantic rejects an adapter config for types that carry their own.
    if not isinstance(declared, type):
        return False
    return issubclass(declared, BaseModel) or dataclasses.is_dataclass(declared) or is_typeddict(declared)


def _is_static_protocol(declared: Any) -> bool:
    # isinstance() against a protocol without @runtime_checkable raises TypeError.
    origin = get_origin(declared) or declared
    return (
        isinstance(origin, type)
        and getattr(origin, "_is_protocol", False)
        and not getattr(origin, "_is_runtime_protocol", False)
    )


def _is_instance(value: Any, declared: Any) -> bool:
    if not isinstance(declared, type) or get_origin(declared) is not None:
        return False
    try:
        return isinstance(value, declared)
    except TypeError:
        return False
