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
"""Dispatcher contract: the single entry point every proxy member calls.

Generated proxies never talk to an implementation directly. Each member packs
its arguments into a vector and calls ``invoke`` (sync members) or
``invoke_async`` (members returning an awaitable) on the dispatcher the proxy
holds. :class:`HandlerDispatcher` forwards to plain functions; the
interception engine decorates the same contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any, Protocol, runtime_checkable

from pyintercept.kernel.exceptions import UnsupportedOperationException
from pyintercept.proxy.types import MemberDescriptor

Handler = Callable[[MemberDescriptor, list[Any]], Any]
AsyncHandler = Callable[[MemberDescriptor, list[Any]], Awaitable[Any]]


@runtime_checkable
class Dispatcher(Protocol):
    """Invocation point behind every generated proxy."""

    def invoke(self, member: MemberDescriptor, arguments: list[Any]) -> Any: ...

    def invoke_async(self, member: MemberDescriptor, arguments: list[Any]) -> Awaitable[Any]: ...


def satisfies_dispatcher(target_type: type) -> bool:
    """Return True when instances of *target_type* can back a proxy."""
    return all(callable(getattr(target_type, name, None)) for name in ("invoke", "invoke_async"))


class ProxiedObject(ABC):
    """Introspection capability implemented by every generated proxy."""

    @property
    @abstractmethod
    def proxied_object(self) -> Any:
        """The object this one forwards to."""


def unwrap(obj: Any) -> Any:
    """Follow ``proxied_object`` links down to the backing implementation."""
    seen: set[int] = set()
    while isinstance(obj, ProxiedObject) and id(obj) not in seen:
        seen.add(id(obj))
        obj = obj.proxied_object
    return obj


class HandlerDispatcher:
    """Pass-through dispatcher that hands every call to a handler function.

    Usage::

        def handle(member, arguments):
            return sum(arguments)

        calc = create_proxy(Calculator, HandlerDispatcher(handle))
        calc.add(40, 60)  # 100
    """

    def __init__(self, handler: Handler, async_handler: AsyncHandler | None = None) -> None:
        self._handler = handler
        self._async_handler = async_handler

    def invoke(self, member: MemberDescriptor, arguments: list[Any]) -> Any:
        return self._handler(member, arguments)

    async def invoke_async(self, member: MemberDescriptor, arguments: list[Any]) -> Any:
        if self._async_handler is None:
            raise UnsupportedOperationException(
                f"{type(self).__name__} has no async handler for '{member.name}'",
                code="DISPATCH_ASYNC_UNSUPPORTED",
                context={"member": member.name},
            )
        return await self._async_handler(member, arguments)
