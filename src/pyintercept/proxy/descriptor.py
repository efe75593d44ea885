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
"""Contract introspection: derives ContractDescriptors from interface types.

A contract is an interface: a ``typing.Protocol`` class, or an ABC whose
public members are all abstract. Descriptors are derived once per contract
and kept for the life of the process.
"""

from __future__ import annotations

import collections.abc
import inspect
import threading
import typing
from typing import Any, ClassVar, TypeVar, get_args, get_origin

import structlog

from pyintercept.kernel.exceptions import ContractNotInterfaceException
from pyintercept.proxy.conversion import substitute
from pyintercept.proxy.types import (
    INTERCEPTORS_ATTR,
    ContractDescriptor,
    MemberDescriptor,
    MemberKind,
    ParameterDescriptor,
    ParameterDirection,
    ReturnShape,
    is_out_annotation,
)

logger = structlog.get_logger("pyintercept.proxy.descriptor")

_INFRASTRUCTURE_MODULES = frozenset({"builtins", "typing", "typing_extensions", "abc", "collections.abc"})

_GETTER_SIGNATURE = inspect.Signature([inspect.Parameter("self", inspect.Parameter.POSITIONAL_ONLY)])

_descriptors: dict[Any, ContractDescriptor] = {}
_descriptors_lock = threading.Lock()


def contract_origin(contract: Any) -> type | None:
    """Return the class behind *contract*, unwrapping ``Store[str]`` aliases."""
    origin = get_origin(contract) or contract
    return origin if isinstance(origin, type) else None


def is_interface(contract: Any) -> bool:
    """Return True when *contract* can be proxied as an interface."""
    origin = contract_origin(contract)
    if origin is None:
        return False
    if getattr(origin, "_is_protocol", False):
        return True
    if not inspect.isabstract(origin):
        return False
    for klass in _contract_classes(origin):
        for name, value in vars(klass).items():
            if name.startswith("_"):
                continue
            if _is_member(value) and not getattr(value, "__isabstractmethod__", False):
                return False
    return True


def describe_contract(contract: Any) -> ContractDescriptor:
    """Return the (memoised) descriptor for *contract*.

    Raises:
        ContractNotInterfaceException: *contract* is not an interface.
    """
    with _descriptors_lock:
        cached = _descriptors.get(contract)
    if cached is not None:
        return cached

    if not is_interface(contract):
        raise ContractNotInterfaceException(
            f"{contract!r} is not an interface; only Protocol classes and fully abstract ABCs can be proxied",
            code="PROXY_CONTRACT",
            context={"contract": repr(contract)},
        )

    descriptor = _derive(contract)
    with _descriptors_lock:
        return _descriptors.setdefault(contract, descriptor)


# ---------------------------------------------------------------------------
# Derivation
# ---------------------------------------------------------------------------


def _derive(contract: Any) -> ContractDescriptor:
    origin = contract_origin(contract)
    assert origin is not None
    bindings = _generic_bindings(contract)
    classes = _contract_classes(origin)

    members: dict[str, MemberDescriptor] = {}
    for klass in classes:
        env = bindings.get(klass, {})
        for member in _describe_class(klass, env):
            members.setdefault(member.name, member)

    descriptor = ContractDescriptor(
        contract=contract,
        origin=origin,
        members=tuple(members.values()),
        parents=tuple(classes[1:]),
        interceptors=tuple(vars(origin).get(INTERCEPTORS_ATTR, ())),
    )
    logger.debug(
        "contract_described",
        contract=descriptor.name,
        members=[m.name for m in descriptor.members],
        parents=[p.__name__ for p in descriptor.parents],
    )
    return descriptor


def _contract_classes(origin: type) -> list[type]:
    return [k for k in origin.__mro__ if k.__module__ not in _INFRASTRUCTURE_MODULES]


def _is_member(value: Any) -> bool:
    return inspect.isfunction(value) or isinstance(value, property)


def _generic_bindings(contract: Any) -> dict[type, dict[Any, Any]]:
    """Map each generic class in the contract's hierarchy to its bound type variables."""
    bindings: dict[type, dict[Any, Any]] = {}

    def visit(tp: Any, env: dict[Any, Any]) -> None:
        origin = get_origin(tp) or tp
        if not isinstance(origin, type) or origin in bindings:
            return
        parameters = getattr(origin, "__parameters__", ())
        arguments = tuple(substitute(a, env) for a in get_args(tp))
        local = dict(zip(parameters, arguments))
        bindings[origin] = local
        for base in vars(origin).get("__orig_bases__", ()):
            visit(base, local)

    visit(contract, {})
    return bindings


def _describe_class(klass: type, env: dict[Any, Any]) -> list[MemberDescriptor]:
    class_parameters = tuple(getattr(klass, "__parameters__", ()))
    described: list[MemberDescriptor] = []

    for name, value in vars(klass).items():
        if name.startswith("_"):
            continue
        if inspect.isfunction(value):
            described.append(_describe_method(klass, name, value, env, class_parameters))
        elif isinstance(value, property):
            described.extend(_describe_property(klass, name, value, env))

    # Bare attribute declarations (``name: str``) become get/set accessor pairs.
    for name, annotation in _own_annotations(klass).items():
        if name.startswith("_") or name in vars(klass) or _is_class_var(annotation):
            continue
        described.extend(_describe_attribute(klass, name, substitute(annotation, env)))

    return described


def _describe_method(
    klass: type,
    name: str,
    function: Any,
    env: dict[Any, Any],
    class_parameters: tuple[Any, ...],
) -> MemberDescriptor:
    hints = _resolve_hints(function, klass)
    signature = inspect.signature(function)

    parameters: list[ParameterDescriptor] = []
    for parameter in list(signature.parameters.values())[1:]:
        annotation = substitute(hints.get(parameter.name, parameter.annotation), env)
        parameters.append(
            ParameterDescriptor(
                name=parameter.name,
                annotation=annotation,
                kind=parameter.kind,
                direction=ParameterDirection.OUT if is_out_annotation(annotation) else ParameterDirection.BY_VALUE,
                default=parameter.default,
            )
        )

    declared = substitute(hints.get("return", signature.return_annotation), env)
    shape, result_type = _return_shape(function, declared)

    generic_parameters = tuple(getattr(function, "__type_params__", ()))
    if not generic_parameters:
        found: list[Any] = []
        for annotation in [p.annotation for p in parameters] + [result_type]:
            for variable in _type_variables(annotation):
                if variable not in class_parameters and variable not in found:
                    found.append(variable)
        generic_parameters = tuple(found)

    return MemberDescriptor(
        name=name,
        kind=MemberKind.METHOD,
        parameters=tuple(parameters),
        return_shape=shape,
        result_type=result_type,
        signature=signature,
        declaring_contract=klass,
        generic_parameters=generic_parameters,
        interceptors=tuple(getattr(function, INTERCEPTORS_ATTR, ())),
        doc=inspect.getdoc(function),
    )


def _describe_property(klass: type, name: str, prop: property, env: dict[Any, Any]) -> list[MemberDescriptor]:
    accessors: list[MemberDescriptor] = []
    value_type: Any = Any

    if prop.fget is not None:
        hints = _resolve_hints(prop.fget, klass)
        declared = substitute(hints.get("return", Any), env)
        shape, value_type = _return_shape(prop.fget, declared)
        accessors.append(
            MemberDescriptor(
                name=f"get_{name}",
                kind=MemberKind.PROPERTY_GET,
                parameters=(),
                return_shape=shape,
                result_type=value_type,
                signature=_GETTER_SIGNATURE,
                declaring_contract=klass,
                property_name=name,
                interceptors=tuple(getattr(prop.fget, INTERCEPTORS_ATTR, ())),
                doc=prop.__doc__,
            )
        )

    if prop.fset is not None:
        hints = _resolve_hints(prop.fset, klass)
        signature = inspect.signature(prop.fset)
        value_name = list(signature.parameters)[1]
        annotation = substitute(hints.get(value_name, value_type), env)
        accessors.append(
            MemberDescriptor(
                name=f"set_{name}",
                kind=MemberKind.PROPERTY_SET,
                parameters=(ParameterDescriptor(name=value_name, annotation=annotation),),
                return_shape=ReturnShape.VOID,
                result_type=None,
                signature=signature,
                declaring_contract=klass,
                property_name=name,
                interceptors=tuple(getattr(prop.fset, INTERCEPTORS_ATTR, ())),
            )
        )

    return accessors


def _describe_attribute(klass: type, name: str, annotation: Any) -> list[MemberDescriptor]:
    setter_signature = inspect.Signature(
        [
            inspect.Parameter("self", inspect.Parameter.POSITIONAL_ONLY),
            inspect.Parameter("value", inspect.Parameter.POSITIONAL_OR_KEYWORD, annotation=annotation),
        ]
    )
    return [
        MemberDescriptor(
            name=f"get_{name}",
            kind=MemberKind.PROPERTY_GET,
            parameters=(),
            return_shape=ReturnShape.VALUE,
            result_type=annotation,
            signature=_GETTER_SIGNATURE,
            declaring_contract=klass,
            property_name=name,
        ),
        MemberDescriptor(
            name=f"set_{name}",
            kind=MemberKind.PROPERTY_SET,
            parameters=(ParameterDescriptor(name="value", annotation=annotation),),
            return_shape=ReturnShape.VOID,
            result_type=None,
            signature=setter_signature,
            declaring_contract=klass,
            property_name=name,
        ),
    ]


def _return_shape(function: Any, declared: Any) -> tuple[ReturnShape, Any]:
    if declared is inspect.Signature.empty:
        declared = Any
    if inspect.iscoroutinefunction(function):
        return ReturnShape.FUTURE, declared
    if get_origin(declared) in (collections.abc.Awaitable, collections.abc.Coroutine):
        arguments = get_args(declared)
        return ReturnShape.FUTURE, arguments[-1] if arguments else Any
    if declared is None or declared is type(None) or declared == "None":
        return ReturnShape.VOID, None
    return ReturnShape.VALUE, declared


def _type_variables(annotation: Any) -> tuple[Any, ...]:
    if isinstance(annotation, TypeVar):
        return (annotation,)
    if get_origin(annotation) is None:
        return ()
    return tuple(getattr(annotation, "__parameters__", ()))


def _resolve_hints(function: Any, klass: type | None = None) -> dict[str, Any]:
    # PEP 695 type parameters are not module globals.
    scope = {p.__name__: p for p in getattr(klass, "__type_params__", ())}
    scope.update((p.__name__, p) for p in getattr(function, "__type_params__", ()))
    try:
        return typing.get_type_hints(function, localns=scope or None, include_extras=True)
    except (NameError, TypeError) as exc:
        logger.debug("annotations_unresolved", member=function.__qualname__, error=str(exc))
        return dict(getattr(function, "__annotations__", {}))


def _own_annotations(klass: type) -> dict[str, Any]:
    try:
        scope = dict(vars(klass))
        scope.update((p.__name__, p) for p in getattr(klass, "__type_params__", ()))
        return inspect.get_annotations(klass, locals=scope, eval_str=True)
    except (NameError, TypeError):
        return inspect.get_annotations(klass)


def _is_class_var(annotation: Any) -> bool:
    if isinstance(annotation, str):
        return annotation.startswith(("ClassVar", "typing.ClassVar"))
    return annotation is ClassVar or get_origin(annotation) is ClassVar
