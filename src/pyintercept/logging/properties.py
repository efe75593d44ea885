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
"""Configuration properties for library logging."""

from __future__ import annotations

from dataclasses import dataclass, field

from pyintercept.core.config import config_properties

RENDERERS = ("console", "json")


@config_properties(prefix="pyintercept.logging")
@dataclass
class LoggingProperties:
    """``pyintercept.logging`` section.

    ``level`` maps ``root`` and logger names to level names::

        pyintercept:
          logging:
            format: json
            level:
              root: WARNING
              pyintercept.interception: DEBUG
    """

    format: str = "console"
    level: dict[str, str] = field(default_factory=lambda: {"root": "INFO"})

    @property
    def root_level(self) -> str:
        return str(self.level.get("root", "INFO")).upper()

    @property
    def logger_levels(self) -> dict[str, str]:
        return {name: str(value).upper() for name, value in self.level.items() if name != "root"}
