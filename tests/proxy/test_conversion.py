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
"""Tests for return value conversion."""

from __future__ import annotations

from typing import Any, Protocol, TypeVar, runtime_checkable

import pytest
from pydantic import BaseModel

from pyintercept.kernel.exceptions import ReturnConversionException
from pyintercept.proxy.conversion import convert, is_concrete, substitute

T = TypeVar("T")


class Account(BaseModel):
    name: str
    balance: int = 0


class Handle:
    pass


class Session(Protocol):
    def close(self) -> None: ...


@runtime_checkable
class Closeable(Protocol):
    def close(self) -> None: ...


class RealSession:
    def close(self) -> None:
        pass


class TestSubstitute:
    def test_type_variable(self) -> None:
        assert substitute(T, {T: int}) is int

    def test_generic_alias(self) -> None:
        assert substitute(list[T], {T: int}) == list[int]

    def test_unbound_left_alone(self) -> None:
        assert substitute(T, {}) is T
        assert substitute(int, {T: str}) is int


class TestIsConcrete:
    def test_concrete(self) -> None:
        assert is_concrete(int)
        assert is_concrete(list[int])

    def test_not_concrete(self) -> None:
        assert not is_concrete(Any)
        assert not is_concrete(T)
        assert not is_concrete(list[T])
        assert not is_concrete("Unresolved")
        assert not is_concrete(Session)


class TestConvert:
    def test_none_passes_through(self) -> None:
        assert convert(None, int) is None

    def test_matching_instance_returned_as_is(self) -> None:
        handle = Handle()
        assert convert(handle, Handle) is handle

    def test_lax_scalar_conversion(self) -> None:
        assert convert("5", int) == 5

    def test_container_conversion(self) -> None:
        assert convert(("1", "2"), list[int]) == [1, 2]

    def test_model_from_mapping(self) -> None:
        account = convert({"name": "alice", "balance": "10"}, Account)
        assert account == Account(name="alice", balance=10)

    def test_open_declaration_passes_through(self) -> None:
        assert convert("x", T) == "x"
        assert convert("x", Any) == "x"

    def test_invalid_value_raises(self) -> None:
        with pytest.raises(ReturnConversionException) as exc_info:
            convert("abc", int)
        assert exc_info.value.code == "RETURN_CONVERSION"

    def test_arbitrary_type_mismatch_raises(self) -> None:
        with pytest.raises(ReturnConversionException):
            convert(object(), Handle)

    def test_static_protocol_passes_through(self) -> None:
        session = RealSession()
        assert convert(session, Session) is session

    def test_runtime_checkable_protocol_instance(self) -> None:
        session = RealSession()
        assert convert(session, Closeable) is session
