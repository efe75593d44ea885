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
"""Process-wide cache of generated proxy types."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any, NamedTuple


class ProxyTypeKey(NamedTuple):
    """Identity of a generated proxy type."""

    contract: Any
    base: type | None
    type_name: str


class TypeCache:
    """Maps a :class:`ProxyTypeKey` to the proxy type generated for it.

    Lookups and inserts share one lock. Generation itself runs outside the
    lock, so two threads racing on a new key may both build a type; the
    first insert wins and both callers receive it.
    """

    def __init__(self) -> None:
        self._types: dict[ProxyTypeKey, type] = {}
        self._lock = threading.Lock()

    def get(self, key: ProxyTypeKey) -> type | None:
        with self._lock:
            return self._types.get(key)

    def get_or_create(self, key: ProxyTypeKey, factory: Callable[[], type]) -> type:
        """Return the cached type for *key*, calling *factory* on a miss."""
        cached = self.get(key)
        if cached is not None:
            return cached
        created = factory()
        with self._lock:
            return self._types.setdefault(key, created)

    def clear(self) -> None:
        with self._lock:
            self._types.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._types

    def __len__(self) -> int:
        with self._lock:
            return len(self._types)


default_type_cache = TypeCache()
