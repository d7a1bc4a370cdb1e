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
Binds an executable configuration to command builders and to the capability probe.
"""
from typing import Optional

from ..BUILDERS.info_builder import InfoBuilder
from ..BUILDERS.run_builder import RunBuilder
from ..MODELS.backend import BackendAttributes
from ..MODELS.configuration import ExecutableConfiguration
from ..MODELS.errors import InvalidArgument
from ..RUNNERS.probe import probe


class Executable:
    """
    A runtime executable. Each call hands out a fresh, single-use builder.
    """
    def __init__(self, configuration: ExecutableConfiguration):
        if configuration is None:
            raise InvalidArgument("'configuration' must not be None")
        self.configuration = configuration

    def info(self) -> InfoBuilder:
        return InfoBuilder(self.configuration)

    def run(self) -> RunBuilder:
        return RunBuilder(self.configuration)


class NativeExecutables:
    """
    Factory for the native runtime executable found on the host.
    """

    def is_supported(self, configuration: ExecutableConfiguration) -> Optional[BackendAttributes]:
        """
        Probes the runtime named by the configuration.

        :param configuration: The executable configuration.
        :return: The reported attributes, or None if the runtime could not be started.
        """
        if configuration is None:
            raise InvalidArgument("'configuration' must not be None")
        return probe(configuration)

    def create_executable(self, configuration: ExecutableConfiguration) -> Executable:
        return Executable(configuration)
