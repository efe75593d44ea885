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
"""StructlogAdapter: default LoggingPort backed by structlog."""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from pyintercept.core.config import Config
from pyintercept.logging.properties import RENDERERS, LoggingProperties


class StructlogAdapter:
    """Routes structlog through the stdlib ``logging`` tree.

    Proxy generation and interceptor resolution log at ``DEBUG`` under
    ``pyintercept.proxy.*`` and ``pyintercept.interception.*``; raise those
    loggers' levels in ``pyintercept.logging.level`` to see them.
    """

    def __init__(self, stream: Any = None) -> None:
        self._stream = stream or sys.stdout
        self._properties = LoggingProperties()

    @property
    def properties(self) -> LoggingProperties:
        return self._properties

    def configure(self, config: Config) -> None:
        properties = config.bind(LoggingProperties)
        if properties.format.lower() not in RENDERERS:
            raise ValueError(
                f"Unknown pyintercept.logging.format '{properties.format}'; expected one of {', '.join(RENDERERS)}"
            )
        self._properties = properties

        structlog.configure(
            processors=self._processors(properties.format.lower()),
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        logging.basicConfig(
            format="%(message)s",
            stream=self._stream,
            level=getattr(logging, properties.root_level, logging.INFO),
            force=True,
        )
        for name, level in properties.logger_levels.items():
            self.set_level(name, level)

    def get_logger(self, name: str) -> Any:
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        logging.getLogger(name).setLevel(getattr(logging, level.upper(), logging.INFO))

    @staticmethod
    def _processors(renderer: str) -> list[structlog.types.Processor]:
        processors: list[structlog.types.Processor] = [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
        ]
        if renderer == "json":
            processors.append(structlog.processors.JSONRenderer())
        else:
            processors.append(structlog.dev.ConsoleRenderer(colors=False))
        return processors
