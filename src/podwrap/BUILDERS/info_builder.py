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
Builder for 'podman info' invocations.
"""
from ..MODELS.configuration import ExecutableConfiguration
from ..MODELS.errors import BuilderFinalized
from ..RUNNERS.process_runner import ProcessRunner
from .command import CommandFactory, PodmanCommand


class InfoBuilder:
    """
    Produces the 'info' command. It has no options.
    """

    def __init__(self, configuration: ExecutableConfiguration):
        self._commands = CommandFactory(configuration)
        self._finalized = False

    def build(self) -> PodmanCommand:
        if self._finalized:
            raise BuilderFinalized("This info builder has already been built")
        command = self._commands.create(["info"])
        self._finalized = True
        return command

    def execute(self) -> ProcessRunner:
        return self.build().execute()
