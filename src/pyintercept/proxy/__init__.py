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
"""Runtime proxy synthesis for interface contracts."""

from pyintercept.proxy.base import Proxy
from pyintercept.proxy.cache import ProxyTypeKey, TypeCache, default_type_cache
from pyintercept.proxy.descriptor import contract_origin, describe_contract, is_interface
from pyintercept.proxy.dispatcher import Dispatcher, HandlerDispatcher, ProxiedObject, satisfies_dispatcher, unwrap
from pyintercept.proxy.executor import AsyncTaskExecutor
from pyintercept.proxy.generator import (
    ProxyBuilderContext,
    ProxyOptions,
    ProxyTypeGenerator,
    create_proxy,
    default_generator,
)
from pyintercept.proxy.properties import ProxyProperties
from pyintercept.proxy.types import (
    ContractDescriptor,
    MemberDescriptor,
    MemberKey,
    MemberKind,
    Out,
    ParameterDescriptor,
    ParameterDirection,
    ReturnShape,
)

__all__ = [
    "AsyncTaskExecutor",
    "ContractDescriptor",
    "Dispatcher",
    "HandlerDispatcher",
    "MemberDescriptor",
    "MemberKey",
    "MemberKind",
    "Out",
    "ParameterDescriptor",
    "ParameterDirection",
    "ProxiedObject",
    "Proxy",
    "ProxyBuilderContext",
    "ProxyOptions",
    "ProxyProperties",
    "ProxyTypeGenerator",
    "ProxyTypeKey",
    "ReturnShape",
    "TypeCache",
    "contract_origin",
    "create_proxy",
    "default_generator",
    "default_type_cache",
    "describe_contract",
    "is_interface",
    "satisfies_dispatcher",
    "unwrap",
]
