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
"""InterceptionRuntime: configuration, logging and generation in one place.

Loads configuration (packaged defaults, an optional YAML file and its
profile overlays), configures logging from ``pyintercept.logging`` and
builds a :class:`ProxyTypeGenerator` bound to ``pyintercept.proxy``::

    runtime = InterceptionRuntime("config/pyintercept.yaml", active_profiles=["dev"])
    accounts = runtime.intercept(Accounts, AccountService())
"""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pyintercept.core.config import Config
from pyintercept.interception.engine import Interceptor
from pyintercept.interception.registry import InterceptorRegistry
from pyintercept.logging.port import LoggingPort
from pyintercept.logging.structlog_adapter import StructlogAdapter
from pyintercept.proxy.cache import TypeCache
from pyintercept.proxy.generator import ProxyBuilderContext, ProxyOptions, ProxyTypeGenerator

PROFILES_ENV = "PYINTERCEPT_PROFILES_ACTIVE"


class InterceptionRuntime:
    """Configured entry point for proxy generation and interception.

    Args:
        config_path: YAML file merged over the packaged defaults. Without
            it only the defaults (and env overrides) apply.
        active_profiles: Profile overlays to merge; defaults to the
            comma-separated ``PYINTERCEPT_PROFILES_ACTIVE`` env var.
        logging_port: Logging backend; defaults to :class:`StructlogAdapter`.
        cache: Type cache for the generator; defaults to the shared one.
    """

    def __init__(
        self,
        config_path: str | Path | None = None,
        active_profiles: list[str] | None = None,
        logging_port: LoggingPort | None = None,
        cache: TypeCache | None = None,
    ) -> None:
        if active_profiles is None:
            active_profiles = _profiles_from_env()
        self.active_profiles = active_profiles

        if config_path is not None:
            self.config = Config.from_file(config_path, active_profiles=active_profiles)
        else:
            self.config = Config(Config._load_defaults())
            self.config._loaded_sources = ["pyintercept-defaults.yaml (library defaults)"]

        self._logging = logging_port or StructlogAdapter()
        self._logging.configure(self.config)
        self._logger = self._logging.get_logger("pyintercept.runtime")

        self.generator = ProxyTypeGenerator.from_config(self.config, cache)

        if active_profiles:
            self._logger.info("active_profiles", profiles=active_profiles)
        for source in self.config.loaded_sources:
            self._logger.info("loaded_config", source=source)

    @property
    def logging(self) -> LoggingPort:
        return self._logging

    def create_proxy(
        self,
        contract: Any,
        implementation: Any,
        base: type | None = None,
        customize: Callable[[ProxyBuilderContext], None] | None = None,
        options: ProxyOptions | None = None,
    ) -> Any:
        """Create a proxy for *contract* forwarding to the dispatcher *implementation*."""
        return self.generator.create_proxy(contract, implementation, base, customize, options)

    def intercept(self, contract: Any, instance: Any, registry: InterceptorRegistry | None = None) -> Any:
        """Wrap *instance* in an intercepting proxy for *contract*."""
        return Interceptor(contract, instance, registry, self.generator).build()


def _profiles_from_env() -> list[str]:
    env_profiles = os.environ.get(PROFILES_ENV, "")
    return [p.strip() for p in env_profiles.split(",") if p.strip()]
