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
"""InterceptorRegistry: explicit interceptor bindings built at startup."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any

from pyintercept.interception.types import InterceptorFactory, validate_factory
from pyintercept.proxy.descriptor import contract_origin
from pyintercept.proxy.types import MemberDescriptor


@dataclass(frozen=True)
class InterceptorBinding:
    """Interceptor factories bound to a contract or to one of its members.

    Attributes:
        contract: The contract class (or closed generic alias) bound.
        member: Member name, property name or accessor name (``get_total``);
            ``None`` for a contract-level binding.
        factories: Interceptor factories in registration order.
    """

    contract: Any
    member: str | None
    factories: tuple[InterceptorFactory, ...]


class InterceptorRegistry:
    """Registry of explicit interceptor bindings.

    Complements ``@intercepted_by`` for contracts that cannot be edited::

        registry = InterceptorRegistry()
        registry.register(Accounts, AuditInterceptor)
        registry.register(Accounts, TimingInterceptor, member="transfer")

        accounts = Interceptor(Accounts, AccountService(), registry).build()

    A binding on a generic contract class (``Store``) also applies to its
    closed aliases (``Store[str]``).
    """

    def __init__(self) -> None:
        self._bindings: list[InterceptorBinding] = []
        self._lock = threading.Lock()

    def register(self, contract: Any, *factories: Any, member: str | None = None) -> InterceptorBinding:
        for factory in factories:
            validate_factory(factory)
        binding = InterceptorBinding(contract=contract, member=member, factories=tuple(factories))
        with self._lock:
            self._bindings.append(binding)
        return binding

    def get_all_bindings(self) -> list[InterceptorBinding]:
        with self._lock:
            return list(self._bindings)

    def contract_factories(self, contract: Any) -> tuple[InterceptorFactory, ...]:
        """Factories bound to *contract* as a whole, in registration order."""
        return tuple(
            factory
            for binding in self.get_all_bindings()
            if binding.member is None and _matches(binding.contract, contract)
            for factory in binding.factories
        )

    def member_factories(self, contract: Any, member: MemberDescriptor) -> tuple[InterceptorFactory, ...]:
        """Factories bound to *member*, either through *contract* or its declaring ancestor."""
        names = {member.name, member.property_name} - {None}
        return tuple(
            factory
            for binding in self.get_all_bindings()
            if binding.member is not None
            and binding.member in names
            and (_matches(binding.contract, contract) or binding.contract is member.declaring_contract)
            for factory in binding.factories
        )


def _matches(registered: Any, contract: Any) -> bool:
    return registered == contract or registered is contract_origin(contract)
