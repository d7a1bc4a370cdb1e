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
Builder for 'podman run' invocations.

Arguments are emitted in a fixed order: the subcommand, boolean options, environment
variables (sorted by name), volume mounts, tmpfs mounts, --name, --pod, the image,
and finally the container arguments in the order they were added.
"""
import os
from typing import Dict, List, Optional

from ..MODELS.configuration import ExecutableConfiguration
from ..MODELS.errors import BuilderFinalized, InvalidArgument, MissingRequiredField, require_text
from ..MODELS.image import ImageReference
from ..MODELS.mounts import (
    HostPath,
    NamedVolume,
    TmpFsFlag,
    TmpFsMount,
    VolumeFlag,
    VolumeMount,
    join_flags,
)
from ..RUNNERS.process_runner import ProcessRunner
from .command import CommandFactory, PodmanCommand


def volume_spec(mount: VolumeMount) -> str:
    """
    Renders a volume mount as SOURCE:CONTAINER_PATH[:FLAGS].
    """
    source = mount.source
    if isinstance(source, HostPath):
        rendered = os.path.abspath(os.path.expanduser(str(source.path)))
    elif isinstance(source, NamedVolume):
        rendered = source.name
    else:
        raise TypeError(f"Unsupported mount source: {source!r}")

    spec = f"{rendered}:{mount.container_path}"
    if mount.options:
        spec += ":" + join_flags(VolumeFlag, mount.options)
    return spec


def tmpfs_spec(mount: TmpFsMount) -> str:
    """
    Renders a tmpfs mount as CONTAINER_PATH[:FLAGS].
    """
    spec = mount.container_path
    if mount.options:
        spec += ":" + join_flags(TmpFsFlag, mount.options)
    return spec


class RunBuilder:
    """
    Accumulates the options of a single container invocation.

    Every setter returns the builder so calls can be chained. A builder is
    single-use: once build() has been called, further calls raise BuilderFinalized.
    """

    def __init__(self, configuration: ExecutableConfiguration):
        self._commands = CommandFactory(configuration)
        self._finalized = False

        self.interactive = False
        self.tty = False
        self.remove = False
        self.read_only = False
        self.environment: Dict[str, str] = {}
        self.container_arguments: List[str] = []
        self.volumes: List[VolumeMount] = []
        self.tmpfs: List[TmpFsMount] = []
        self.container_name: Optional[str] = None
        self.image: Optional[ImageReference] = None
        self.pod_name: Optional[str] = None

    def set_interactive(self, interactive: bool) -> "RunBuilder":
        """Keep stdin open (--interactive)."""
        self._check_open()
        self.interactive = bool(interactive)
        return self

    def set_tty(self, tty: bool) -> "RunBuilder":
        """Allocate a pseudo-TTY (--tty)."""
        self._check_open()
        self.tty = bool(tty)
        return self

    def set_remove_after_exit(self, remove: bool) -> "RunBuilder":
        """Remove the container when it exits (--rm)."""
        self._check_open()
        self.remove = bool(remove)
        return self

    def set_root_read_only(self, read_only: bool) -> "RunBuilder":
        """Mount the container's root filesystem read-only (--read-only)."""
        self._check_open()
        self.read_only = bool(read_only)
        return self

    def add_environment_variable(self, name: str, value: str) -> "RunBuilder":
        """
        Sets an environment variable (--env). A later call with the same name wins.
        """
        self._check_open()
        require_text(name, "name")
        if value is None:
            raise InvalidArgument("'value' must not be None")
        if "=" in name:
            raise InvalidArgument(f"Environment variable name '{name}' contains '='")
        self.environment[name] = value
        return self

    def set_container_name(self, name: str) -> "RunBuilder":
        """Name the container (--name)."""
        self._check_open()
        self.container_name = require_text(name, "name")
        return self

    def set_image(self, image: ImageReference) -> "RunBuilder":
        self._check_open()
        if not isinstance(image, ImageReference):
            raise InvalidArgument(f"'image' must be an ImageReference, not {image!r}")
        self.image = image
        return self

    def add_argument(self, argument: str) -> "RunBuilder":
        """
        Appends an argument passed to the container's command.
        """
        self._check_open()
        if argument is None:
            raise InvalidArgument("'argument' must not be None")
        self.container_arguments.append(argument)
        return self

    def add_volume(self, mount: VolumeMount) -> "RunBuilder":
        """Adds a volume mount (--volume)."""
        self._check_open()
        if not isinstance(mount, VolumeMount):
            raise InvalidArgument(f"'mount' must be a VolumeMount, not {mount!r}")
        self.volumes.append(mount)
        return self

    def add_tmpfs(self, mount: TmpFsMount) -> "RunBuilder":
        """Adds a tmpfs mount (--tmpfs)."""
        self._check_open()
        if not isinstance(mount, TmpFsMount):
            raise InvalidArgument(f"'mount' must be a TmpFsMount, not {mount!r}")
        self.tmpfs.append(mount)
        return self

    def set_pod(self, pod: str) -> "RunBuilder":
        """Run the container inside an existing pod (--pod)."""
        self._check_open()
        self.pod_name = require_text(pod, "pod")
        return self

    def build(self) -> PodmanCommand:
        """
        Validates the accumulated options and produces the command.

        :raises MissingRequiredField: If no image was set.
        :raises BuilderFinalized: If build() was already called.
        """
        self._check_open()
        if self.image is None:
            raise MissingRequiredField("image", "No container image was specified.")

        arguments = ["run"]
        arguments.extend(self._option_arguments())

        for name, value in sorted(self.environment.items()):
            arguments.extend(["--env", f"{name}={value}"])
        for mount in self.volumes:
            arguments.extend(["--volume", volume_spec(mount)])
        for mount in self.tmpfs:
            arguments.extend(["--tmpfs", tmpfs_spec(mount)])

        if self.container_name is not None:
            arguments.extend(["--name", self.container_name])
        if self.pod_name is not None:
            arguments.extend(["--pod", self.pod_name])

        arguments.append(self.image.full_name)
        arguments.extend(self.container_arguments)

        command = self._commands.create(arguments)
        self._finalized = True
        return command

    def execute(self) -> ProcessRunner:
        """Builds the command and starts it, piping stdin when interactive."""
        return self.build().execute(stdin_enabled=self.interactive)

    def _option_arguments(self) -> List[str]:
        options = []
        if self.interactive:
            options.append("--interactive")
        if self.tty:
            options.append("--tty")
        if self.remove:
            options.append("--rm")
        if self.read_only:
            options.append("--read-only")
        return options

    def _check_open(self):
        if self._finalized:
            raise BuilderFinalized("This run builder has already been built")
