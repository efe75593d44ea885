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
"""Proxy data model: Out holders, member and contract descriptors."""

from __future__ import annotations

import dataclasses
import enum
import inspect
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any, Generic, NamedTuple, TypeVar, get_origin

from pyintercept.proxy.conversion import convert, substitute

T = TypeVar("T")

INTERCEPTORS_ATTR = "__pyintercept_interceptors__"

_EMPTY = inspect.Parameter.empty


class Out(Generic[T]):
    """Holder for an output parameter.

    Annotate a contract parameter as ``Out[str]`` and pass an ``Out()`` when
    calling the proxy. Once the call returns, ``value`` holds whatever the
    dispatcher left in that parameter's slot of the argument vector::

        value = Out[str]()
        if store.try_get_value(value):
            print(value.value)
    """

    def __init__(self, value: T | None = None) -> None:
        self.value = value

    def __repr__(self) -> str:
        return f"Out({self.value!r})"


def is_out_annotation(annotation: Any) -> bool:
    """Return True when *annotation* marks an output parameter."""
    if isinstance(annotation, str):
        return annotation == "Out" or annotation.startswith("Out[")
    return annotation is Out or get_origin(annotation) is Out


class ParameterDirection(enum.Enum):
    BY_VALUE = "by_value"
    OUT = "out"


class ReturnShape(enum.Enum):
    VOID = "void"
    VALUE = "value"
    FUTURE = "future"


class MemberKind(enum.Enum):
    METHOD = "method"
    PROPERTY_GET = "property_get"
    PROPERTY_SET = "property_set"


@dataclass(frozen=True)
class ParameterDescriptor:
    """One declared parameter of a contract member (``self`` excluded)."""

    name: str
    annotation: Any
    kind: inspect._ParameterKind = inspect.Parameter.POSITIONAL_OR_KEYWORD
    direction: ParameterDirection = ParameterDirection.BY_VALUE
    default: Any = _EMPTY


class MemberKey(NamedTuple):
    """Stable member identity: name, parameter types and generic arity."""

    name: str
    parameter_types: tuple[str, ...]
    generic_arity: int

    def __str__(self) -> str:
        arity = f"`{self.generic_arity}" if self.generic_arity else ""
        return f"{self.name}{arity}({', '.join(self.parameter_types)})"


def type_identity(annotation: Any) -> str:
    """Render *annotation* as a stable string for member identity keys."""
    if annotation is _EMPTY:
        return "Any"
    if isinstance(annotation, TypeVar):
        return f"~{annotation.__name__}"
    if isinstance(annotation, type) and get_origin(annotation) is None:
        return f"{annotation.__module__}.{annotation.__qualname__}"
    return repr(annotation) if not isinstance(annotation, str) else annotation


@dataclass(frozen=True, eq=False)
class MemberDescriptor:
    """Static description of one contract member.

    Methods keep their own name. Property accessors are named ``get_<prop>``
    and ``set_<prop>`` and carry the property name in ``property_name``.

    ``signature`` is the member's call signature including ``self``; the
    generated forwarding code binds caller arguments against it to build
    the argument vector.
    """

    name: str
    kind: MemberKind
    parameters: tuple[ParameterDescriptor, ...]
    return_shape: ReturnShape
    result_type: Any
    signature: inspect.Signature = field(repr=False)
    declaring_contract: type | None = None
    property_name: str | None = None
    generic_parameters: tuple[Any, ...] = ()
    type_arguments: tuple[Any, ...] = ()
    interceptors: tuple[Callable[[], Any], ...] = ()
    doc: str | None = field(default=None, repr=False)

    @cached_property
    def key(self) -> MemberKey:
        return MemberKey(
            self.name,
            tuple(type_identity(p.annotation) for p in self.parameters),
            len(self.generic_parameters),
        )

    @property
    def is_async(self) -> bool:
        return self.return_shape is ReturnShape.FUTURE

    @property
    def is_generic_definition(self) -> bool:
        return bool(self.generic_parameters) and not self.type_arguments

    @property
    def out_indexes(self) -> tuple[int, ...]:
        return tuple(i for i, p in enumerate(self.parameters) if p.direction is ParameterDirection.OUT)

    # ------------------------------------------------------------------
    # Argument vector handling
    # ------------------------------------------------------------------

    def pack(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> tuple[list[Any], dict[int, Out[Any]]]:
        """Bind caller arguments into a positional argument vector.

        Returns the vector and the caller's ``Out`` holders keyed by slot.
        Variadic parameters occupy one slot each (a tuple or a dict).
        """
        bound = self.signature.bind(None, *args, **kwargs)
        bound.apply_defaults()

        arguments: list[Any] = []
        holders: dict[int, Out[Any]] = {}
        for index, parameter in enumerate(self.parameters):
            value = bound.arguments.get(parameter.name)
            if parameter.direction is ParameterDirection.OUT:
                if not isinstance(value, Out):
                    raise TypeError(
                        f"{self.name}() argument '{parameter.name}' is an output parameter and must be an Out holder"
                    )
                holders[index] = value
                value = value.value
            arguments.append(value)
        return arguments, holders

    def copy_out(self, arguments: list[Any], holders: dict[int, Out[Any]]) -> None:
        """Write final argument-vector slots back into the caller's holders."""
        for index, holder in holders.items():
            holder.value = arguments[index]

    def unpack(self, arguments: list[Any]) -> tuple[list[Any], dict[str, Any], dict[int, Out[Any]]]:
        """Rebuild ``(args, kwargs)`` for calling a real implementation.

        Output slots are handed to the implementation as fresh ``Out``
        holders, returned keyed by slot so the caller can copy them back.
        """
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        holders: dict[int, Out[Any]] = {}
        for index, (parameter, value) in enumerate(zip(self.parameters, arguments)):
            if parameter.direction is ParameterDirection.OUT:
                value = holders[index] = Out(value)
            if parameter.kind is inspect.Parameter.VAR_POSITIONAL:
                args.extend(value)
            elif parameter.kind is inspect.Parameter.VAR_KEYWORD:
                kwargs.update(value)
            elif parameter.kind is inspect.Parameter.KEYWORD_ONLY:
                kwargs[parameter.name] = value
            else:
                args.append(value)
        return args, kwargs, holders

    def collect_out(self, arguments: list[Any], holders: dict[int, Out[Any]]) -> None:
        """Copy values an implementation wrote into ``Out`` holders onto the vector."""
        for index, holder in holders.items():
            arguments[index] = holder.value

    # ------------------------------------------------------------------
    # Generic members
    # ------------------------------------------------------------------

    def make_generic(self, *type_arguments: Any) -> MemberDescriptor:
        """Close a generic member definition over *type_arguments*."""
        if not self.generic_parameters:
            raise TypeError(f"{self.name} is not a generic member")
        if len(type_arguments) != len(self.generic_parameters):
            raise TypeError(
                f"{self.name} expects {len(self.generic_parameters)} type argument(s), got {len(type_arguments)}"
            )
        env = dict(zip(self.generic_parameters, type_arguments))
        return dataclasses.replace(
            self,
            type_arguments=tuple(type_arguments),
            result_type=substitute(self.result_type, env),
        )

    def close(self, arguments: list[Any]) -> MemberDescriptor:
        """Bind the type arguments of a generic definition from runtime arguments.

        A type variable is bound to the type of the first non-``None``
        argument declared with exactly that type variable. Unbound type
        variables stay open.
        """
        if not self.is_generic_definition:
            return self
        inferred: dict[Any, type] = {}
        for parameter, value in zip(self.parameters, arguments):
            annotation = parameter.annotation
            if annotation in self.generic_parameters and annotation not in inferred and value is not None:
                inferred[annotation] = type(value)
        return self.make_generic(*(inferred.get(p, p) for p in self.generic_parameters))

    def convert_result(self, value: Any) -> Any:
        """Convert an untyped dispatch result to the declared result type."""
        if self.return_shape is ReturnShape.VOID:
            return None
        return convert(value, self.result_type)


@dataclass(frozen=True)
class ContractDescriptor:
    """Flattened description of a contract and its ancestor contracts."""

    contract: Any
    origin: type
    members: tuple[MemberDescriptor, ...]
    parents: tuple[type, ...] = ()
    interceptors: tuple[Callable[[], Any], ...] = ()

    def __iter__(self) -> Iterator[MemberDescriptor]:
        return iter(self.members)

    def __len__(self) -> int:
        return len(self.members)

    @property
    def name(self) -> str:
        return self.origin.__name__

    def member(self, name: str) -> MemberDescriptor:
        for member in self.members:
            if member.name == name:
                return member
        raise KeyError(f"{self.name} has no member named '{name}'")

    @property
    def methods(self) -> tuple[MemberDescriptor, ...]:
        return tuple(m for m in self.members if m.kind is MemberKind.METHOD)

    @cached_property
    def properties(self) -> dict[str, tuple[MemberDescriptor | None, MemberDescriptor | None]]:
        """Accessor pairs ``(getter, setter)`` keyed by property name."""
        accessors: dict[str, tuple[MemberDescriptor | None, MemberDescriptor | None]] = {}
        for member in self.members:
            if member.property_name is None:
                continue
            getter, setter = accessors.get(member.property_name, (None, None))
            if member.kind is MemberKind.PROPERTY_GET:
                getter = member
            else:
                setter = member
            accessors[member.property_name] = (getter, setter)
        return accessors
