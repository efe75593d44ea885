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
"""Tests for the interception engine."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from typing import Any, Protocol

import pytest

from pyintercept.interception import engine
from pyintercept.interception.context import InterceptedContext, InterceptingContext
from pyintercept.interception.decorators import intercepted_by
from pyintercept.interception.engine import Interceptor
from pyintercept.interception.registry import InterceptorRegistry
from pyintercept.interception.types import BaseInterceptor
from pyintercept.kernel.exceptions import (
    ContractNotInterfaceException,
    InterceptorContractException,
    ProxyConfigurationException,
)
from pyintercept.proxy.descriptor import describe_contract
from pyintercept.proxy.dispatcher import unwrap
from pyintercept.proxy.types import Out

# ---------------------------------------------------------------------------
# Contract and implementation
# ---------------------------------------------------------------------------


class Accounts(Protocol):
    def transfer(self, source: str, target: str, amount: int) -> int: ...

    def try_find(self, name: str, balance: Out[int]) -> bool: ...

    @property
    def owner(self) -> str: ...

    @owner.setter
    def owner(self, value: str) -> None: ...

    async def audit_async(self, note: str) -> str: ...


class AccountService:
    def __init__(self, events: list[str] | None = None) -> None:
        self.owner = "alice"
        self.balances = {"alice": 10}
        self.events = events if events is not None else []

    def transfer(self, source: str, target: str, amount: int) -> int:
        self.events.append("call")
        return amount

    def try_find(self, name: str, balance: Out[int]) -> bool:
        if name in self.balances:
            balance.value = self.balances[name]
            return True
        return False

    async def audit_async(self, note: str) -> str:
        await asyncio.sleep(0)
        self.events.append("call")
        return f"audited:{note}"


class FailingService(AccountService):
    def transfer(self, source: str, target: str, amount: int) -> int:
        raise ValueError("insufficient funds")


def recording(label: str, events: list[str]) -> type[BaseInterceptor]:
    class Recording(BaseInterceptor):
        def before(self, context: InterceptingContext) -> None:
            events.append(f"{label}.before")

        def after(self, context: InterceptedContext) -> None:
            events.append(f"{label}.after")

    Recording.__qualname__ = f"Recording[{label}]"
    return Recording


def async_recording(label: str, events: list[str]) -> type[BaseInterceptor]:
    class AsyncRecording(BaseInterceptor):
        async def before_async(self, context: InterceptingContext) -> None:
            await asyncio.sleep(0)
            events.append(f"{label}.before_async")

        async def after_async(self, context: InterceptedContext) -> None:
            await asyncio.sleep(0)
            events.append(f"{label}.after_async")

    return AsyncRecording


def build(registry: InterceptorRegistry, events: list[str] | None = None, service: Any = None) -> Any:
    return Interceptor(Accounts, service or AccountService(events), registry).build()


# ---------------------------------------------------------------------------
# Ordering and lifecycle
# ---------------------------------------------------------------------------


class TestHookOrdering:
    def test_before_hooks_then_call_then_after_hooks(self) -> None:
        events: list[str] = []
        registry = InterceptorRegistry()
        registry.register(Accounts, recording("A", events), recording("B", events), member="transfer")

        result = build(registry, events).transfer("alice", "bob", 5)

        assert result == 5
        assert events == ["A.before", "B.before", "call", "A.after", "B.after"]

    def test_contract_level_runs_before_member_level(self) -> None:
        events: list[str] = []
        registry = InterceptorRegistry()
        registry.register(Accounts, recording("member", events), member="transfer")
        registry.register(Accounts, recording("contract", events))

        build(registry, events).transfer("alice", "bob", 5)

        assert events == ["contract.before", "member.before", "call", "contract.after", "member.after"]

    def test_duplicate_factory_runs_once(self) -> None:
        events: list[str] = []
        shared = recording("A", events)
        registry = InterceptorRegistry()
        registry.register(Accounts, shared)
        registry.register(Accounts, shared, member="transfer")

        build(registry, events).transfer("alice", "bob", 5)

        assert events == ["A.before", "call", "A.after"]

    def test_fresh_instance_per_call_shared_across_phases(self) -> None:
        created: list[BaseInterceptor] = []
        pairs: list[bool] = []

        class Tracking(BaseInterceptor):
            def __init__(self) -> None:
                created.append(self)
                self.saw_before = False

            def before(self, context: InterceptingContext) -> None:
                self.saw_before = True

            def after(self, context: InterceptedContext) -> None:
                pairs.append(self.saw_before)

        registry = InterceptorRegistry()
        registry.register(Accounts, Tracking)
        accounts = build(registry)

        accounts.transfer("a", "b", 1)
        accounts.transfer("a", "b", 2)

        assert len(created) == 2
        assert created[0] is not created[1]
        assert pairs == [True, True]


class TestContexts:
    def test_property_bag_carried_to_after(self) -> None:
        seen: list[Any] = []

        class Stamping(BaseInterceptor):
            def before(self, context: InterceptingContext) -> None:
                context["request_id"] = "r-1"

            def after(self, context: InterceptedContext) -> None:
                seen.append(context["request_id"])

        registry = InterceptorRegistry()
        registry.register(Accounts, Stamping)
        build(registry).transfer("a", "b", 1)

        assert seen == ["r-1"]

    def test_after_context_has_result_and_duration(self) -> None:
        seen: list[InterceptedContext] = []

        class Capturing(BaseInterceptor):
            def after(self, context: InterceptedContext) -> None:
                seen.append(context)

        registry = InterceptorRegistry()
        registry.register(Accounts, Capturing)
        build(registry).transfer("a", "b", 7)

        context = seen[0]
        assert context.name == "transfer"
        assert context.return_value == 7
        assert context.arguments == ["a", "b", 7]
        assert isinstance(context.time_taken, timedelta)
        assert context.time_taken >= timedelta(0)
        assert dict(context.properties) == {}

    def test_before_hook_can_rewrite_arguments(self) -> None:
        class Doubling(BaseInterceptor):
            def before(self, context: InterceptingContext) -> None:
                context.arguments[2] *= 2

        registry = InterceptorRegistry()
        registry.register(Accounts, Doubling, member="transfer")

        assert build(registry).transfer("a", "b", 4) == 8


class TestFailures:
    def test_before_failure_stops_call(self) -> None:
        events: list[str] = []

        class Rejecting(BaseInterceptor):
            def before(self, context: InterceptingContext) -> None:
                raise PermissionError("denied")

        registry = InterceptorRegistry()
        registry.register(Accounts, Rejecting, recording("B", events))

        with pytest.raises(PermissionError, match="denied"):
            build(registry, events).transfer("a", "b", 1)
        assert events == []

    def test_implementation_failure_skips_after_hooks(self) -> None:
        events: list[str] = []
        registry = InterceptorRegistry()
        registry.register(Accounts, recording("A", events))

        with pytest.raises(ValueError, match="insufficient funds"):
            build(registry, service=FailingService(events)).transfer("a", "b", 1)
        assert events == ["A.before"]

    def test_after_failure_stops_remaining_after_hooks(self) -> None:
        events: list[str] = []

        class Exploding(BaseInterceptor):
            def after(self, context: InterceptedContext) -> None:
                raise RuntimeError("after failed")

        registry = InterceptorRegistry()
        registry.register(Accounts, Exploding, recording("B", events))

        with pytest.raises(RuntimeError, match="after failed"):
            build(registry, events).transfer("a", "b", 1)
        assert events == ["B.before", "call"]

    def test_factory_must_produce_interceptor(self) -> None:
        registry = InterceptorRegistry()
        registry.register(Accounts, lambda: object())

        with pytest.raises(InterceptorContractException):
            build(registry).transfer("a", "b", 1)


class TestResolution:
    def test_no_interceptors_skips_contexts(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def forbidden(*args: Any, **kwargs: Any) -> None:
            raise AssertionError("context allocated")

        monkeypatch.setattr(engine, "InterceptingContext", forbidden)
        monkeypatch.setattr(engine, "InterceptedContext", forbidden)

        assert build(InterceptorRegistry()).transfer("a", "b", 3) == 3

    def test_resolution_memoised_per_member(self) -> None:
        events: list[str] = []
        registry = InterceptorRegistry()
        registry.register(Accounts, recording("A", events))
        interceptor = Interceptor(Accounts, AccountService(), registry)
        member = describe_contract(Accounts).member("transfer")

        first = interceptor.interceptors_for(member)
        registry.register(Accounts, recording("late", events))
        second = interceptor.interceptors_for(member)

        assert first is second
        assert len(first) == 1

    def test_unwrap_reaches_instance(self) -> None:
        service = AccountService()
        interceptor = Interceptor(Accounts, service)
        accounts = interceptor.build()

        assert accounts.proxied_object is interceptor
        assert unwrap(accounts) is service
        assert interceptor.contract is Accounts

    def test_rejects_non_interface(self) -> None:
        with pytest.raises(ContractNotInterfaceException):
            Interceptor(AccountService, AccountService())

    def test_rejects_missing_instance(self) -> None:
        with pytest.raises(ProxyConfigurationException):
            Interceptor(Accounts, None)


class TestMemberShapes:
    def test_out_parameter_reaches_caller(self) -> None:
        registry = InterceptorRegistry()
        registry.register(Accounts, BaseInterceptor)
        accounts = build(registry)

        balance = Out[int]()
        assert accounts.try_find("alice", balance) is True
        assert balance.value == 10

    def test_out_parameter_visible_to_after_hooks(self) -> None:
        seen: list[Any] = []

        class Peeking(BaseInterceptor):
            def after(self, context: InterceptedContext) -> None:
                seen.append(context.arguments[1])

        registry = InterceptorRegistry()
        registry.register(Accounts, Peeking, member="try_find")
        build(registry).try_find("alice", Out[int]())

        assert seen == [10]

    def test_property_accessors(self) -> None:
        events: list[str] = []
        registry = InterceptorRegistry()
        registry.register(Accounts, recording("P", events), member="owner")
        service = AccountService()
        accounts = build(registry, service=service)

        accounts.owner = "bob"

        assert service.owner == "bob"
        assert accounts.owner == "bob"
        assert events == ["P.before", "P.after", "P.before", "P.after"]

    @pytest.mark.asyncio
    async def test_async_hooks_awaited_in_order(self) -> None:
        events: list[str] = []
        registry = InterceptorRegistry()
        registry.register(Accounts, async_recording("A", events), async_recording("B", events))

        result = await build(registry, events).audit_async("q3")

        assert result == "audited:q3"
        assert events == ["A.before_async", "B.before_async", "call", "A.after_async", "B.after_async"]

    @pytest.mark.asyncio
    async def test_sync_hooks_apply_to_async_members(self) -> None:
        events: list[str] = []
        registry = InterceptorRegistry()
        registry.register(Accounts, recording("S", events), member="audit_async")

        assert await build(registry, events).audit_async("x") == "audited:x"
        assert events == ["S.before", "call", "S.after"]


# ---------------------------------------------------------------------------
# Declarative bindings
# ---------------------------------------------------------------------------

DECLARED: list[str] = []


class Outer(BaseInterceptor):
    def before(self, context: InterceptingContext) -> None:
        DECLARED.append(f"outer.before:{context.name}")

    def after(self, context: InterceptedContext) -> None:
        DECLARED.append(f"outer.after:{context.name}")


class Inner(BaseInterceptor):
    def before(self, context: InterceptingContext) -> None:
        DECLARED.append(f"inner.before:{context.name}")

    def after(self, context: InterceptedContext) -> None:
        DECLARED.append(f"inner.after:{context.name}")


@intercepted_by(Outer)
class Greeter(Protocol):
    @intercepted_by(Inner)
    def greet(self, name: str) -> str: ...

    def wave(self) -> str: ...


class FriendlyGreeter:
    def greet(self, name: str) -> str:
        DECLARED.append("call")
        return f"hello {name}"

    def wave(self) -> str:
        return "wave"


class TestDeclaredInterceptors:
    @pytest.fixture(autouse=True)
    def _reset(self) -> None:
        DECLARED.clear()

    def test_class_and_member_declarations(self) -> None:
        greeter = Interceptor(Greeter, FriendlyGreeter()).build()

        assert greeter.greet("ada") == "hello ada"
        assert DECLARED == [
            "outer.before:greet",
            "inner.before:greet",
            "call",
            "outer.after:greet",
            "inner.after:greet",
        ]

    def test_class_declaration_covers_every_member(self) -> None:
        greeter = Interceptor(Greeter, FriendlyGreeter()).build()

        assert greeter.wave() == "wave"
        assert DECLARED == ["outer.before:wave", "outer.after:wave"]

    def test_derived_contract_keeps_member_declarations_only(self) -> None:
        class LoudGreeter(Greeter, Protocol):
            def shout(self) -> str: ...

        class LoudFriendlyGreeter(FriendlyGreeter):
            def shout(self) -> str:
                return "HELLO"

        greeter = Interceptor(LoudGreeter, LoudFriendlyGreeter()).build()

        assert greeter.wave() == "wave"
        assert greeter.shout() == "HELLO"
        assert DECLARED == []

        assert greeter.greet("ada") == "hello ada"
        assert DECLARED == ["inner.before:greet", "call", "inner.after:greet"]
