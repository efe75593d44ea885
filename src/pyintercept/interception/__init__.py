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
"""Before/after interception layered onto proxy dispatch."""

from pyintercept.interception.context import InterceptedContext, InterceptingContext
from pyintercept.interception.decorators import intercepted_by
from pyintercept.interception.engine import Interceptor
from pyintercept.interception.registry import InterceptorBinding, InterceptorRegistry
from pyintercept.interception.types import BaseInterceptor, InterceptorFactory, MethodInterceptor, validate_factory

__all__ = [
    "BaseInterceptor",
    "InterceptedContext",
    "InterceptingContext",
    "Interceptor",
    "InterceptorBinding",
    "InterceptorFactory",
    "InterceptorRegistry",
    "MethodInterceptor",
    "intercepted_by",
    "validate_factory",
]
