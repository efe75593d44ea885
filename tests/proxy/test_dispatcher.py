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
"""Tests for the Dispatcher contract, HandlerDispatcher and AsyncTaskExecutor."""

from __future__ import annotations

from typing import Protocol

import pytest

from pyintercept.kernel.exceptions import UnsupportedOperationException
from pyintercept.proxy.descriptor import describe_contract
from pyintercept.proxy.dispatcher import Dispatcher, HandlerDispatcher, ProxiedObject, satisfies_dispatcher, unwrap
from pyintercept.proxy.executor import AsyncTaskExecutor


class Counter(Protocol):
    def increment(self, by: int) -> int: ...

    async def count_async(self) -> int: ...


class SyncOnly:
    def invoke(self, member, arguments):
        return None


class Wrapper(ProxiedObject):
    def __init__(self, inner: object) -> None:
        self._inner = inner

    @property
    def proxied_object(self) -> object:
        return self._inner


class TestDispatcherContract:
    def test_handler_dispatcher_satisfies(self) -> None:
        assert satisfies_dispatcher(HandlerDispatcher)
        assert isinstance(HandlerDispatcher(lambda m, a: None), Dispatcher)

    def test_missing_async_entry_point(self) -> None:
        assert not satisfies_dispatcher(SyncOnly)


class TestHandlerDispatcher:
    def test_invoke_calls_handler(self) -> None:
        member = describe_contract(Counter).member("increment")
        dispatcher = HandlerDispatcher(lambda m, arguments: (m.name, arguments[0]))

        assert dispatcher.invoke(member, [2]) == ("increment", 2)

    @pytest.mark.asyncio
    async def test_invoke_async_calls_async_handler(self) -> None:
        member = describe_contract(Counter).member("count_async")

        async def handle(m, arguments):
            return 9

        dispatcher = HandlerDispatcher(lambda m, a: None, handle)
        assert await dispatcher.invoke_async(member, []) == 9

    @pytest.mark.asyncio
    async def test_invoke_async_without_handler(self) -> None:
        member = describe_contract(Counter).member("count_async")
        dispatcher = HandlerDispatcher(lambda m, a: None)

        with pytest.raises(UnsupportedOperationException) as exc_info:
            await dispatcher.invoke_async(member, [])
        assert exc_info.value.code == "DISPATCH_ASYNC_UNSUPPORTED"


class TestUnwrap:
    def test_follows_chain(self) -> None:
        inner = object()
        assert unwrap(Wrapper(Wrapper(inner))) is inner

    def test_plain_object(self) -> None:
        inner = object()
        assert unwrap(inner) is inner


class TestAsyncTaskExecutor:
    @pytest.mark.asyncio
    async def test_awaits_and_converts(self) -> None:
        member = describe_contract(Counter).member("count_async")
        seen = []

        async def handle(m, arguments):
            seen.append(arguments)
            return "7"

        executor: AsyncTaskExecutor[int] = AsyncTaskExecutor(HandlerDispatcher(lambda m, a: None, handle), member, [])

        assert await executor.execute() == 7
        assert seen == [[]]

    @pytest.mark.asyncio
    async def test_dispatcher_errors_propagate(self) -> None:
        member = describe_contract(Counter).member("count_async")

        async def handle(m, arguments):
            raise RuntimeError("boom")

        executor: AsyncTaskExecutor[int] = AsyncTaskExecutor(HandlerDispatcher(lambda m, a: None, handle), member, [])

        with pytest.raises(RuntimeError, match="boom"):
            await executor.execute()
