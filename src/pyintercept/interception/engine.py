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
"""Interceptor: dispatcher that runs before/after hooks around a real implementation.

Per call the engine resolves the interceptor factories bound to the member
(contract-level first, then member-level, de-duplicated), creates fresh
interceptor instances, runs every ``before`` hook, times the real call, then
runs every ``after`` hook in the same order. Members with no interceptors go
straight to the implementation without allocating any context.

Exceptions from hooks or from the implementation propagate unchanged and stop
the remaining hooks of that phase.
"""

from __future__ import annotations

import inspect
import threading
import time
from datetime import timedelta
from typing import Any, Generic, TypeVar

import structlog

from pyintercept.interception.context import InterceptedContext, InterceptingContext
from pyintercept.interception.registry import InterceptorRegistry
from pyintercept.interception.types import InterceptorFactory, MethodInterceptor
from pyintercept.kernel.exceptions import (
    ContractNotInterfaceException,
    InterceptorContractException,
    ProxyConfigurationException,
)
from pyintercept.proxy.descriptor import describe_contract, is_interface
from pyintercept.proxy.dispatcher import ProxiedObject
from pyintercept.proxy.generator import ProxyTypeGenerator, default_generator
from pyintercept.proxy.types import MemberDescriptor, MemberKey, MemberKind

logger = structlog.get_logger("pyintercept.interception.engine")

T = TypeVar("T")


class Interceptor(ProxiedObject, Generic[T]):
    """Wraps *instance* in a proxy for *contract* with interception applied.

    Usage::

        accounts: Accounts = Interceptor(Accounts, AccountService()).build()
        accounts.transfer("a", "b", 10)

    Args:
        contract: Interface type to expose.
        instance: Real implementation the calls end up on.
        registry: Explicit bindings added to the ``@intercepted_by`` ones.
        generator: Proxy type generator; defaults to the shared one.
    """

    def __init__(
        self,
        contract: Any,
        instance: T,
        registry: InterceptorRegistry | None = None,
        generator: ProxyTypeGenerator | None = None,
    ) -> None:
        if instance is None:
            raise ProxyConfigurationException(
                "Interceptor needs an instance to intercept, got None", code="INTERCEPTOR_INSTANCE"
            )
        if not is_interface(contract):
            raise ContractNotInterfaceException(
                f"Only interface types can be intercepted, got {contract!r}",
                code="PROXY_CONTRACT",
                context={"contract": repr(contract)},
            )

        self._contract = contract
        self._instance = instance
        self._registry = registry if registry is not None else InterceptorRegistry()

        declared = describe_contract(contract).interceptors
        registered = self._registry.contract_factories(contract)
        self._contract_factories: tuple[InterceptorFactory, ...] = declared + registered
        self._member_factories: dict[MemberKey, tuple[InterceptorFactory, ...]] = {}
        self._lock = threading.Lock()

        self._proxy: T = (generator or default_generator).create_proxy(contract, self)

    def build(self) -> T:
        """Return the intercepting proxy."""
        return self._proxy

    @property
    def contract(self) -> Any:
        return self._contract

    @property
    def proxied_object(self) -> T:
        return self._instance

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def interceptors_for(self, member: MemberDescriptor) -> tuple[InterceptorFactory, ...]:
        """Return the de-duplicated factories for *member*, memoised by member key."""
        key = member.key
        with self._lock:
            factories = self._member_factories.get(key)
        if factories is not None:
            return factories

        member_level = member.interceptors + self._registry.member_factories(self._contract, member)
        factories = tuple(dict.fromkeys(self._contract_factories + member_level))
        with self._lock:
            factories = self._member_factories.setdefault(key, factories)
        logger.debug(
            "interceptors_resolved",
            contract=repr(self._contract),
            member=str(key),
            interceptors=[getattr(f, "__qualname__", repr(f)) for f in factories],
        )
        return factories

    # ------------------------------------------------------------------
    # Dispatcher contract
    # ------------------------------------------------------------------

    def invoke(self, member: MemberDescriptor, arguments: list[Any]) -> Any:
        factories = self.interceptors_for(member)
        if not factories:
            return self._call(member, arguments)

        intercepting = InterceptingContext(member, arguments)
        interceptors: list[MethodInterceptor] = []
        for factory in factories:
            interceptor = _instantiate(factory)
            interceptors.append(interceptor)
            interceptor.before(intercepting)

        started = time.perf_counter()
        result = self._call(member, arguments)
        elapsed = timedelta(seconds=time.perf_counter() - started)

        intercepted = InterceptedContext(member, arguments, result, elapsed, intercepting.properties)
        for interceptor in interceptors:
            interceptor.after(intercepted)
        return result

    async def invoke_async(self, member: MemberDescriptor, arguments: list[Any]) -> Any:
        factories = self.interceptors_for(member)
        if not factories:
            return await self._call_async(member, arguments)

        intercepting = InterceptingContext(member, arguments)
        interceptors: list[MethodInterceptor] = []
        for factory in factories:
            interceptor = _instantiate(factory)
            interceptors.append(interceptor)
            await interceptor.before_async(intercepting)

        started = time.perf_counter()
        result = await self._call_async(member, arguments)
        elapsed = timedelta(seconds=time.perf_counter() - started)

        intercepted = InterceptedContext(member, arguments, result, elapsed, intercepting.properties)
        for interceptor in interceptors:
            await interceptor.after_async(intercepted)
        return result

    # ------------------------------------------------------------------
    # Real call
    # ------------------------------------------------------------------

    def _call(self, member: MemberDescriptor, arguments: list[Any]) -> Any:
        if member.kind is MemberKind.PROPERTY_GET:
            return getattr(self._instance, member.property_name)  # type: ignore[arg-type]
        if member.kind is MemberKind.PROPERTY_SET:
            setattr(self._instance, member.property_name, arguments[0])  # type: ignore[arg-type]
            return None

        args, kwargs, holders = member.unpack(arguments)
        result = getattr(self._instance, member.name)(*args, **kwargs)
        member.collect_out(arguments, holders)
        return result

    async def _call_async(self, member: MemberDescriptor, arguments: list[Any]) -> Any:
        if member.kind is not MemberKind.METHOD:
            result = self._call(member, arguments)
            return await result if inspect.isawaitable(result) else result

        args, kwargs, holders = member.unpack(arguments)
        result = getattr(self._instance, member.name)(*args, **kwargs)
        if inspect.isawaitable(result):
            result = await result
        member.collect_out(arguments, holders)
        return result


def _instantiate(factory: InterceptorFactory) -> MethodInterceptor:
    interceptor = factory()
    if not isinstance(interceptor, MethodInterceptor):
        raise InterceptorContractException(
            f"{factory!r} produced {type(interceptor).__name__}, which is not a method interceptor",
            code="INTERCEPTOR_CONTRACT",
        )
    return interceptor
