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
Errors raised while describing and launching container runtime commands.
"""
from typing import List, Optional, Sequence


class PodwrapError(Exception):
    """Base class for all podwrap errors."""


class InvalidArgument(PodwrapError, ValueError):
    """
    A required constructor or setter parameter was absent or empty.
    """


class MissingRequiredField(PodwrapError):
    """
    A builder was finalized without a field that has no meaningful default.
    """

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"No value was specified for '{field}'.")


class BuilderFinalized(PodwrapError):
    """
    A builder was used again after build() had already been called on it.
    """


class ExternalProcessFailure(PodwrapError):
    """
    The external process exceeded its wait timeout or exited non-zero.

    Attributes:
        command: The full argument vector that was executed.
        exit_code: The exit code, or None if the process did not terminate in time.
        stderr: Captured standard error lines, if any.
    """

    def __init__(self,
                 command: Sequence[str],
                 exit_code: Optional[int],
                 stderr: Optional[List[str]] = None):
        self.command = list(command)
        self.exit_code = exit_code
        self.stderr = stderr or []
        if exit_code is None:
            reason = "did not terminate before the timeout elapsed"
        else:
            reason = f"exited with code {exit_code}"
        super().__init__(f"Command {self.command} {reason}")


def require_text(value: Optional[str], name: str) -> str:
    """
    Returns value unchanged, raising InvalidArgument if it is None or empty.
    """
    if value is None or not isinstance(value, str) or value == "":
        raise InvalidArgument(f"'{name}' must be a non-empty string")
    return value
