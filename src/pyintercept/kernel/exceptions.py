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
"""Unified exception hierarchy for pyintercept.

All library exceptions inherit from PyInterceptException so callers can catch
one type for every failure raised by the proxy layer itself. Failures raised
by a backing implementation or an interceptor hook are never wrapped.

Categories:
- ProxyConfigurationException: invalid contracts, bases, dispatchers or
  interceptor bindings, raised at generation or construction time
- UnsupportedOperationException: an entry point a dispatcher does not provide
- ReturnConversionException: a dispatched result that does not fit the
  declared return type
"""

from __future__ import annotations


class PyInterceptException(Exception):
    """Base exception for all pyintercept errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "PROXY_CONTRACT").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ProxyConfigurationException(PyInterceptException):
    """A proxy or interceptor was configured with invalid inputs."""


class ContractNotInterfaceException(ProxyConfigurationException):
    """The type requested as a contract is not an interface."""


class InvalidProxyBaseException(ProxyConfigurationException):
    """The type requested as a concrete base cannot be inherited from."""


class DispatcherContractException(ProxyConfigurationException):
    """The proxy target does not provide ``invoke`` and ``invoke_async``."""


class InterceptorContractException(ProxyConfigurationException):
    """An interceptor factory does not produce a method interceptor."""


# =============================================================================
# Dispatch Exceptions
# =============================================================================


class UnsupportedOperationException(PyInterceptException):
    """The dispatcher does not implement the requested entry point."""


class ReturnConversionException(PyInterceptException):
    """A dispatched result could not be converted to the declared return type."""
