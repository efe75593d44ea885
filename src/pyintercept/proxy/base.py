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
"""Proxy[T]: base class for hand-written dispatchers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Generic, TypeVar, get_args, get_origin

from pyintercept.kernel.exceptions import ProxyConfigurationException, UnsupportedOperationException
from pyintercept.proxy.conversion import substitute
from pyintercept.proxy.generator import ProxyTypeGenerator, default_generator
from pyintercept.proxy.types import MemberDescriptor

T = TypeVar("T")


class Proxy(ABC, Generic[T]):
    """Dispatcher whose subclasses name their contract in the ``Proxy[...]`` base.

    Usage::

        class CalculatorProxy(Proxy[Calculator]):
            def invoke(self, member, arguments):
                if member.name == "add":
                    return arguments[0] + arguments[1]
                raise NotImplementedError(member.name)

        calc = CalculatorProxy().get_proxy_object()

    Generic subclasses resolve their contract per instantiation, so
    ``StoreProxy[str]().get_proxy_object()`` implements ``Store[str]``.
    """

    __pyintercept_contract__: ClassVar[Any] = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        for base in cls.__dict__.get("__orig_bases__", ()):
            if get_origin(base) is Proxy:
                cls.__pyintercept_contract__ = get_args(base)[0]
                break

    @abstractmethod
    def invoke(self, member: MemberDescriptor, arguments: list[Any]) -> Any:
        """Handle a call to a synchronous member."""

    async def invoke_async(self, member: MemberDescriptor, arguments: list[Any]) -> Any:
        """Handle a call to a member returning an awaitable.

        Subclasses that proxy async members override this.
        """
        raise UnsupportedOperationException(
            f"{type(self).__name__} does not implement invoke_async (member '{member.name}')",
            code="DISPATCH_ASYNC_UNSUPPORTED",
            context={"member": member.name},
        )

    def get_proxy_object(self) -> T:
        """Build the proxy instance that forwards to this dispatcher."""
        return self.get_proxy_type_generator().create_proxy(self.contract, self)

    def get_proxy_type_generator(self) -> ProxyTypeGenerator:
        return default_generator

    @property
    def contract(self) -> Any:
        contract = type(self).__pyintercept_contract__
        if contract is None:
            raise ProxyConfigurationException(
                f"{type(self).__name__} must derive from Proxy[Contract]",
                code="PROXY_CONTRACT_MISSING",
            )
        orig_class = getattr(self, "__orig_class__", None)
        if orig_class is not None:
            parameters = getattr(get_origin(orig_class), "__parameters__", ())
            contract = substitute(contract, dict(zip(parameters, get_args(orig_class))))
        return contract
