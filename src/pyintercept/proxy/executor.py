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
"""AsyncTaskExecutor: typed awaitable for members returning a future."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pyintercept.proxy.dispatcher import Dispatcher
from pyintercept.proxy.types import MemberDescriptor

TReturn = TypeVar("TReturn")


class AsyncTaskExecutor(Generic[TReturn]):
    """Runs one asynchronous member call through a dispatcher.

    Created per call by the generated forwarding code, so every async member
    is forwarded the same way regardless of its result type.
    """

    __slots__ = ("_dispatcher", "_member", "_arguments")

    def __init__(self, dispatcher: Dispatcher, member: MemberDescriptor, arguments: list[Any]) -> None:
        self._dispatcher = dispatcher
        self._member = member
        self._arguments = arguments

    async def execute(self) -> TReturn:
        """Await the dispatcher's async entry point and convert its result."""
        result = await self._dispatcher.invoke_async(self._member, self._arguments)
        return self._member.convert_result(result)
