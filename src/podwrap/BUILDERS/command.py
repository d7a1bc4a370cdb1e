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
Construction of launchable container runtime commands.
"""
import logging
import shlex
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from ..MODELS.configuration import ExecutableConfiguration
from ..MODELS.errors import InvalidArgument
from ..RUNNERS.process_runner import ProcessRunner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PodmanCommand:
    """
    A fully specified, unexecuted runtime command.

    Attributes:
        executable: The runtime executable, taken from the configuration.
        arguments: The subcommand and its arguments, without the executable.
    """
    executable: str
    arguments: Tuple[str, ...]

    @property
    def argv(self) -> List[str]:
        """The complete argument vector with the executable at index 0."""
        return [self.executable, *self.arguments]

    def execute(self,
                stdin_enabled: bool = False,
                capture: bool = True,
                merge_stderr: bool = False) -> ProcessRunner:
        """
        Starts the command and returns the running process.

        :param stdin_enabled: Pipe stdin instead of inheriting it.
        :param capture: Pipe stdout and stderr instead of inheriting them.
        :param merge_stderr: Send stderr into the stdout pipe.
        :raises OSError: If the executable cannot be started.
        """
        runner = ProcessRunner(self.arguments[0] if self.arguments else self.executable)
        return runner.start(self.argv, stdin_enabled=stdin_enabled,
                            capture=capture, merge_stderr=merge_stderr)

    def __str__(self) -> str:
        return shlex.join(self.argv)


class CommandFactory:
    """
    Prepends the configured executable to argument lists. Shared by all builders.
    """
    def __init__(self, configuration: ExecutableConfiguration):
        if configuration is None:
            raise InvalidArgument("'configuration' must not be None")
        self.configuration = configuration

    def create(self, arguments: Sequence[str]) -> PodmanCommand:
        command = PodmanCommand(self.configuration.executable, tuple(arguments))
        logger.debug("Execute: %s", command.argv)
        return command
