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
"""Interceptor types: the hook capability set and a convenience base class."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, runtime_checkable

from pyintercept.interception.context import InterceptedContext, InterceptingContext
from pyintercept.kernel.exceptions import InterceptorContractException

InterceptorFactory = Callable[[], "MethodInterceptor"]


@runtime_checkable
class MethodInterceptor(Protocol):
    """Before/after hooks run around a dispatched call.

    Synchronous members run ``before``/``after``; members returning an
    awaitable run ``before_async``/``after_async`` and each is awaited.
    """

    def before(self, context: InterceptingContext) -> None: ...

    def after(self, context: InterceptedContext) -> None: ...

    def before_async(self, context: InterceptingContext) -> Awaitable[None]: ...

    def after_async(self, context: InterceptedContext) -> Awaitable[None]: ...


class BaseInterceptor:
    """No-op interceptor to subclass.

    The async hooks fall back to the sync ones, so an interceptor that only
    overrides ``before``/``after`` also applies to async members.
    """

    def before(self, context: InterceptingContext) -> None:
        pass

    def after(self, context: InterceptedContext) -> None:
        pass

    async def before_async(self, context: InterceptingContext) -> None:
        self.before(context)

    async def after_async(self, context: InterceptedContext) -> None:
        self.after(context)


def validate_factory(factory: Any) -> InterceptorFactory:
    """Check that *factory* can produce interceptors.

    Classes must provide the full hook set; other callables are checked when
    they are first called.
    """
    if isinstance(factory, type):
        if not issubclass(factory, MethodInterceptor):
            raise InterceptorContractException(
                f"{factory.__qualname__} does not implement before, after, before_async and after_async",
                code="INTERCEPTOR_CONTRACT",
                context={"factory": factory.__qualname__},
            )
    elif not callable(factory):
        raise InterceptorContractException(
            f"{factory!r} is not an interceptor class or factory",
            code="INTERCEPTOR_CONTRACT",
        )
    return factory
