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
Models for the container runtime executable configuration.
"""
from pydantic import BaseModel, ConfigDict, Field

from .errors import require_text

DEFAULT_EXECUTABLE = "podman"


class ExecutableConfiguration(BaseModel):
    """
    The container runtime executable to invoke. Immutable once built.
    """
    model_config = ConfigDict(frozen=True)

    executable: str = Field(default=DEFAULT_EXECUTABLE, min_length=1)

    def __init__(self, **data):
        # raise InvalidArgument, not a pydantic ValidationError
        if "executable" in data:
            require_text(data["executable"], "executable")
        super().__init__(**data)

    @classmethod
    def builder(cls) -> "ExecutableConfigurationBuilder":
        """Returns a new mutable builder, initialised with the default executable."""
        return ExecutableConfigurationBuilder()


class ExecutableConfigurationBuilder:
    """
    A mutable builder for configurations.
    """
    def __init__(self):
        self.executable = DEFAULT_EXECUTABLE

    def set_executable(self, name: str) -> "ExecutableConfigurationBuilder":
        """
        Sets the runtime executable name or path.

        :param name: The executable, e.g. 'podman' or '/usr/local/bin/podman'.
        :return: This builder.
        """
        self.executable = require_text(name, "name")
        return self

    def build(self) -> ExecutableConfiguration:
        return ExecutableConfiguration(executable=self.executable)
