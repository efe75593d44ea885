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
"""@intercepted_by: declarative interceptor bindings on contracts and members."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from pyintercept.interception.types import validate_factory
from pyintercept.kernel.exceptions import InterceptorContractException
from pyintercept.proxy.types import INTERCEPTORS_ATTR

T = TypeVar("T")


def intercepted_by(*factories: Any) -> Callable[[T], T]:
    """Bind interceptor factories to a contract class or one of its members.

    On a contract class the interceptors apply to every member; on a method
    they apply to that method only. For properties, decorate the getter or
    setter function beneath ``@property``::

        @intercepted_by(AuditInterceptor)
        class Accounts(Protocol):
            @intercepted_by(TimingInterceptor)
            def transfer(self, source: str, target: str, amount: int) -> None: ...

            @property
            @intercepted_by(CachingInterceptor)
            def balance(self) -> int: ...

    Class-level bindings cover the decorated contract only. A contract that
    derives from it does not inherit them; decorate the derived contract or
    register it in an :class:`InterceptorRegistry`. Member-level bindings
    stay with their member and so reach derived contracts too.

    Stacked decorators keep top-to-bottom order. Sets
    ``__pyintercept_interceptors__`` on the decorated object.
    """
    if not factories:
        raise InterceptorContractException(
            "intercepted_by() needs at least one interceptor", code="INTERCEPTOR_CONTRACT"
        )
    for factory in factories:
        validate_factory(factory)

    def decorator(target: T) -> T:
        if isinstance(target, property):
            raise InterceptorContractException(
                "intercepted_by() cannot decorate a property object; decorate its getter or setter function",
                code="INTERCEPTOR_CONTRACT",
            )
        if isinstance(target, type):
            existing = target.__dict__.get(INTERCEPTORS_ATTR, ())
        else:
            existing = getattr(target, INTERCEPTORS_ATTR, ())
        setattr(target, INTERCEPTORS_ATTR, tuple(factories) + tuple(existing))
        return target

    return decorator
