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
"""Per-call interception contexts."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import timedelta
from types import MappingProxyType
from typing import Any

from pyintercept.proxy.types import MemberDescriptor

_EMPTY_PROPERTIES: Mapping[str, Any] = MappingProxyType({})


class InterceptingContext:
    """Context handed to ``before`` hooks.

    ``arguments`` is the live argument vector: changes made here are seen by
    the real call. Values stored with ``context[key] = value`` are carried
    over to the :class:`InterceptedContext` the ``after`` hooks receive.
    """

    __slots__ = ("member", "arguments", "_properties")

    def __init__(self, member: MemberDescriptor, arguments: list[Any]) -> None:
        self.member = member
        self.arguments = arguments
        self._properties: dict[str, Any] | None = None

    @property
    def name(self) -> str:
        return self.member.name

    @property
    def properties(self) -> dict[str, Any] | None:
        """The property bag, or ``None`` until the first value is stored."""
        return self._properties

    def get(self, key: str, default: Any = None) -> Any:
        if self._properties is None:
            return default
        return self._properties.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        if self._properties is None:
            self._properties = {}
        self._properties[key] = value

    def __repr__(self) -> str:
        return f"InterceptingContext(member={self.member.name!r}, arguments={self.arguments!r})"


class InterceptedContext:
    """Context handed to ``after`` hooks.

    Attributes:
        member: The member that was called.
        arguments: The argument vector after the real call.
        return_value: The untyped result of the real call.
        time_taken: Duration of the real call alone.
    """

    __slots__ = ("member", "arguments", "return_value", "time_taken", "_properties")

    def __init__(
        self,
        member: MemberDescriptor,
        arguments: list[Any],
        return_value: Any,
        time_taken: timedelta,
        properties: dict[str, Any] | None = None,
    ) -> None:
        self.member = member
        self.arguments = arguments
        self.return_value = return_value
        self.time_taken = time_taken
        self._properties: Mapping[str, Any] = (
            MappingProxyType(properties) if properties is not None else _EMPTY_PROPERTIES
        )

    @property
    def name(self) -> str:
        return self.member.name

    @property
    def properties(self) -> Mapping[str, Any]:
        """Read-only view of the property bag filled by ``before`` hooks."""
        return self._properties

    def get(self, key: str, default: Any = None) -> Any:
        return self._properties.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self._properties.get(key)

    def __repr__(self) -> str:
        return (
            f"InterceptedContext(member={self.member.name!r}, return_value={self.return_value!r}, "
            f"time_taken={self.time_taken!r})"
        )
