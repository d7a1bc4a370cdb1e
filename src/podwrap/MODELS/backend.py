# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
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

"""
Attributes reported by a container runtime about itself.
"""
from collections.abc import Mapping
from types import MappingProxyType
from typing import Dict, Iterator


class BackendAttributes(Mapping):
    """
    A read-only mapping of attribute name to value, as parsed from the output of
    '<executable> version'. Keys iterate in sorted order.
    """

    def __init__(self, attributes: Dict[str, str]):
        self._attributes = MappingProxyType(dict(sorted(attributes.items())))

    def __getitem__(self, key: str) -> str:
        return self._attributes[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._attributes)

    def __len__(self) -> int:
        return len(self._attributes)

    def __repr__(self) -> str:
        return f"BackendAttributes({dict(self._attributes)!r})"
