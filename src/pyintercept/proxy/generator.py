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
"""ProxyTypeGenerator: synthesizes forwarding types for interface contracts.

For a contract such as::

    class Calculator(Protocol):
        def add(self, first: int, second: int) -> int: ...

the generator builds (once per cache key) a class deriving from
``Calculator`` whose ``add`` packs its arguments into a vector, calls the
held dispatcher's ``invoke`` and converts the result back to ``int``.
Members returning an awaitable go through :class:`AsyncTaskExecutor`,
properties forward through their accessor members, and ``Out`` holders are
written back once the dispatcher returns.
"""

from __future__ import annotations

import types
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, get_args

import structlog

from pyintercept.core.config import Config
from pyintercept.kernel.exceptions import (
    ContractNotInterfaceException,
    DispatcherContractException,
    InvalidProxyBaseException,
    ProxyConfigurationException,
)
from pyintercept.proxy.cache import ProxyTypeKey, TypeCache, default_type_cache
from pyintercept.proxy.descriptor import contract_origin, describe_contract, is_interface
from pyintercept.proxy.dispatcher import ProxiedObject, satisfies_dispatcher
from pyintercept.proxy.executor import AsyncTaskExecutor
from pyintercept.proxy.properties import ProxyProperties
from pyintercept.proxy.types import ContractDescriptor, MemberDescriptor, ReturnShape

logger = structlog.get_logger("pyintercept.proxy.generator")

TARGET_ATTRIBUTE = "_proxy_target"


@dataclass(frozen=True)
class ProxyOptions:
    """Per-request generation options.

    Attributes:
        type_name: Explicit (optionally dotted) name for the generated type.
            A distinct name forces a distinct type for the same contract.
        mixins: Extra marker classes the generated type derives from.
    """

    type_name: str | None = None
    mixins: tuple[type, ...] = ()


@dataclass
class ProxyBuilderContext:
    """State of a proxy type under construction, handed to ``customize`` hooks.

    Hooks may append to ``bases`` or add entries to ``namespace``. Contract
    members are installed after the hook runs and take precedence.
    """

    contract: Any
    descriptor: ContractDescriptor | None
    base: type | None
    type_name: str
    bases: list[type] = field(default_factory=list)
    namespace: dict[str, Any] = field(default_factory=dict)
    target_attribute: str = TARGET_ATTRIBUTE

    def implements(self, interface: type) -> bool:
        """Return True when one of the current bases derives from *interface*."""
        return any(isinstance(b, type) and issubclass(b, interface) for b in self.bases)


class ProxyTypeGenerator:
    """Generates and caches proxy types."""

    def __init__(self, properties: ProxyProperties | None = None, cache: TypeCache | None = None) -> None:
        self._properties = properties or ProxyProperties()
        self._cache = cache if cache is not None else default_type_cache

    @classmethod
    def from_config(cls, config: Config, cache: TypeCache | None = None) -> ProxyTypeGenerator:
        return cls(config.bind(ProxyProperties), cache)

    @property
    def properties(self) -> ProxyProperties:
        return self._properties

    def type_name(self, contract: Any) -> str:
        """Default dotted name of the proxy type for *contract*."""
        origin = contract_origin(contract)
        base_name = origin.__name__ if origin is not None else repr(contract)
        name = f"{base_name}{self._properties.type_suffix}"
        arguments = get_args(contract)
        if arguments:
            name += "[" + ", ".join(_argument_name(a) for a in arguments) + "]"
        return f"{self._properties.namespace}.{name}"

    def create_proxy(
        self,
        contract: Any,
        implementation: Any,
        base: type | None = None,
        customize: Callable[[ProxyBuilderContext], None] | None = None,
        options: ProxyOptions | None = None,
    ) -> Any:
        """Return an instance of the proxy type for *contract* forwarding to *implementation*.

        Raises:
            ProxyConfigurationException: *implementation* is ``None``, or the
                contract, base or dispatcher type is invalid.
        """
        if implementation is None:
            raise ProxyConfigurationException(
                "A proxy needs a dispatcher instance, got None",
                code="PROXY_TARGET_MISSING",
            )
        proxy_type = self.generate_type(contract, type(implementation), base, customize, options)
        return proxy_type(implementation)

    def generate_type(
        self,
        contract: Any,
        target_type: type,
        base: type | None = None,
        customize: Callable[[ProxyBuilderContext], None] | None = None,
        options: ProxyOptions | None = None,
    ) -> type:
        """Return the proxy type for *contract*, generating it on first request."""
        options = options or ProxyOptions()
        self._validate(contract, target_type, base)

        type_name = options.type_name or self.type_name(contract)
        key = ProxyTypeKey(contract, base, type_name)
        return self._cache.get_or_create(key, lambda: self._generate(contract, base, type_name, customize, options))

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def _validate(self, contract: Any, target_type: type, base: type | None) -> None:
        if base is not None and (not isinstance(base, type) or is_interface(base)):
            raise InvalidProxyBaseException(
                f"{base!r} cannot be used as a proxy base; it must be a concrete class",
                code="PROXY_BASE",
                context={"base": repr(base)},
            )
        if contract is not base and not is_interface(contract):
            raise ContractNotInterfaceException(
                f"{contract!r} is not an interface",
                code="PROXY_CONTRACT",
                context={"contract": repr(contract)},
            )
        if not satisfies_dispatcher(target_type):
            raise DispatcherContractException(
                f"{target_type.__name__} does not implement the Dispatcher contract (invoke, invoke_async)",
                code="PROXY_DISPATCHER",
                context={"target_type": target_type.__qualname__},
            )

    def _generate(
        self,
        contract: Any,
        base: type | None,
        type_name: str,
        customize: Callable[[ProxyBuilderContext], None] | None,
        options: ProxyOptions,
    ) -> type:
        descriptor = describe_contract(contract) if contract is not base else None
        module, _, class_name = type_name.rpartition(".")

        bases: list[type] = []
        if base is not None:
            bases.append(base)
        if descriptor is not None:
            bases.append(contract)
        bases.extend(options.mixins)
        bases.append(ProxiedObject)

        context = ProxyBuilderContext(
            contract=contract,
            descriptor=descriptor,
            base=base,
            type_name=type_name,
            bases=bases,
            namespace={
                "__module__": module or self._properties.namespace,
                "__qualname__": class_name,
                "__doc__": f"Generated proxy for {getattr(contract_origin(contract), '__name__', contract)!s}.",
            },
        )

        if customize is not None:
            customize(context)

        if descriptor is not None:
            self._implement_contract(context, descriptor)
        self._emit_constructor(context)
        self._emit_proxied_object(context)

        namespace = context.namespace
        proxy_type = types.new_class(class_name, tuple(context.bases), exec_body=lambda ns: ns.update(namespace))
        logger.debug(
            "proxy_type_generated",
            type_name=type_name,
            contract=repr(contract),
            members=len(descriptor) if descriptor is not None else 0,
        )
        return proxy_type

    def _implement_contract(self, context: ProxyBuilderContext, descriptor: ContractDescriptor) -> None:
        qualname = context.namespace["__qualname__"]
        for member in descriptor.methods:
            context.namespace[member.name] = _forwarding_function(member, qualname, context.target_attribute)

        for name, (getter, setter) in descriptor.properties.items():
            context.namespace[name] = property(
                _forwarding_function(getter, qualname, context.target_attribute) if getter is not None else None,
                _forwarding_function(setter, qualname, context.target_attribute) if setter is not None else None,
                doc=getter.doc if getter is not None else None,
            )

    def _emit_constructor(self, context: ProxyBuilderContext) -> None:
        attribute = context.target_attribute

        def __init__(self: Any, target: Any) -> None:
            object.__setattr__(self, attribute, target)

        def __repr__(self: Any) -> str:
            return f"<{type(self).__qualname__} -> {getattr(self, attribute)!r}>"

        __init__.__qualname__ = f"{context.namespace['__qualname__']}.__init__"
        context.namespace["__init__"] = __init__
        context.namespace.setdefault("__repr__", __repr__)

    def _emit_proxied_object(self, context: ProxyBuilderContext) -> None:
        attribute = context.target_attribute

        def proxied_object(self: Any) -> Any:
            return getattr(self, attribute)

        context.namespace["proxied_object"] = property(proxied_object, doc="The dispatcher this proxy forwards to.")


def _argument_name(argument: Any) -> str:
    name = getattr(argument, "__name__", None)
    return name if isinstance(name, str) else repr(argument).replace(".", "_")


def _forwarding_function(member: MemberDescriptor, qualname: str, attribute: str) -> Callable[..., Any]:
    if member.return_shape is ReturnShape.FUTURE:

        async def forward(self: Any, *args: Any, **kwargs: Any) -> Any:
            arguments, holders = member.pack(args, kwargs)
            resolved = member.close(arguments)
            executor: AsyncTaskExecutor[Any] = AsyncTaskExecutor(getattr(self, attribute), resolved, arguments)
            result = await executor.execute()
            member.copy_out(arguments, holders)
            return result

    else:

        def forward(self: Any, *args: Any, **kwargs: Any) -> Any:
            arguments, holders = member.pack(args, kwargs)
            resolved = member.close(arguments)
            result = getattr(self, attribute).invoke(resolved, arguments)
            member.copy_out(arguments, holders)
            return resolved.convert_result(result)

    forward.__name__ = member.property_name or member.name
    forward.__qualname__ = f"{qualname}.{forward.__name__}"
    forward.__doc__ = member.doc
    forward.__signature__ = member.signature  # type: ignore[attr-defined]
    return forward


default_generator = ProxyTypeGenerator()


def create_proxy(
    contract: Any,
    implementation: Any,
    base: type | None = None,
    customize: Callable[[ProxyBuilderContext], None] | None = None,
    options: ProxyOptions | None = None,
) -> Any:
    """Create a proxy for *contract* on the default generator."""
    return default_generator.create_proxy(contract, implementation, base, customize, options)
