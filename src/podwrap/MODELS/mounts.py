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
Models for volume and tmpfs mounts, and the option flags they carry.
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import FrozenSet, Iterable, List, Type, TypeVar, Union

from .errors import InvalidArgument, require_text

FlagT = TypeVar("FlagT", bound=Enum)


class VolumeFlag(str, Enum):
    """
    Volume mount options. The value is the tag as it appears on the command line.
    """
    READ_WRITE = "rw"
    READ_ONLY = "ro"
    SELINUX_LABEL_SHARED = "z"
    SELINUX_LABEL_PRIVATE = "Z"
    MOUNT_AS_OVERLAY = "O"
    COPY = "copy"
    NO_COPY = "nocopy"
    DEVICES = "dev"
    NO_DEVICES = "nodev"
    EXECUTABLE = "exec"
    NO_EXECUTABLE = "noexec"
    SETUID = "suid"
    NO_SETUID = "nosuid"
    MAP_HOST_UID_GID = "U"

    @property
    def tag(self) -> str:
        return self.value


class TmpFsFlag(str, Enum):
    """
    Tmpfs mount options.
    """
    READ_WRITE = "rw"
    READ_ONLY = "ro"
    DEVICES = "dev"
    NO_DEVICES = "nodev"
    EXECUTABLE = "exec"
    NO_EXECUTABLE = "noexec"
    SETUID = "suid"
    NO_SETUID = "nosuid"
    TMP_COPY_UP = "tmpcopyup"
    NO_TMP_COPY_UP = "notmpcopyup"

    @property
    def tag(self) -> str:
        return self.value


def canonical_flags(flag_type: Type[FlagT], flags: Iterable[FlagT]) -> List[FlagT]:
    """
    Orders a set of flags by declaration order so that generated commands are reproducible.
    """
    present = set(flags)
    return [flag for flag in flag_type if flag in present]


def join_flags(flag_type: Type[FlagT], flags: Iterable[FlagT]) -> str:
    return ",".join(flag.value for flag in canonical_flags(flag_type, flags))


def _parse_flags(flag_type: Type[FlagT], text: str) -> FrozenSet[FlagT]:
    flags = set()
    for tag in text.split(","):
        try:
            flags.add(flag_type(tag))
        except ValueError:
            raise InvalidArgument(f"Unknown {flag_type.__name__} '{tag}'") from None
    return frozenset(flags)


def _coerce_flags(flag_type: Type[FlagT], flags: Iterable) -> FrozenSet[FlagT]:
    if flags is None:
        raise InvalidArgument("'options' must not be None")
    result = set()
    for flag in flags:
        if not isinstance(flag, flag_type):
            raise InvalidArgument(f"{flag!r} is not a {flag_type.__name__}")
        result.add(flag)
    return frozenset(result)


@dataclass(frozen=True)
class HostPath:
    """
    A file or directory on the host. Made absolute when a command is built.
    """
    path: Path

    def __post_init__(self):
        if self.path is None or str(self.path) == "":
            raise InvalidArgument("'path' must not be empty")
        object.__setattr__(self, "path", Path(self.path))


@dataclass(frozen=True)
class NamedVolume:
    """
    A named volume managed by the container runtime.
    """
    name: str

    def __post_init__(self):
        require_text(self.name, "name")


MountSource = Union[HostPath, NamedVolume]


def _is_host_path(source: str) -> bool:
    return source.startswith(("/", ".", "~"))


@dataclass(frozen=True)
class VolumeMount:
    """
    Mount a host file, directory, or named volume at the given location in the container.
    """
    source: MountSource
    container_path: str
    options: FrozenSet[VolumeFlag] = field(default_factory=frozenset)

    def __post_init__(self):
        if not isinstance(self.source, (HostPath, NamedVolume)):
            raise InvalidArgument(f"'source' must be a HostPath or NamedVolume, not {self.source!r}")
        require_text(self.container_path, "container_path")
        object.__setattr__(self, "options", _coerce_flags(VolumeFlag, self.options))

    @classmethod
    def parse(cls, spec: str) -> "VolumeMount":
        """
        Parses a mount spec of the form SOURCE:CONTAINER_PATH[:FLAGS].

        Sources starting with '/', '.' or '~' are host paths, anything else is a named volume.
        """
        parts = require_text(spec, "spec").split(":")
        if len(parts) not in (2, 3) or not parts[0] or not parts[1]:
            raise InvalidArgument(f"Invalid volume spec '{spec}'")

        source: MountSource
        if _is_host_path(parts[0]):
            source = HostPath(Path(parts[0]))
        else:
            source = NamedVolume(parts[0])

        options: FrozenSet[VolumeFlag] = frozenset()
        if len(parts) == 3 and parts[2]:
            options = _parse_flags(VolumeFlag, parts[2])
        return cls(source=source, container_path=parts[1], options=options)


@dataclass(frozen=True)
class TmpFsMount:
    """
    Mount a tmpfs filesystem at the given location in the container.
    """
    container_path: str
    options: FrozenSet[TmpFsFlag] = field(default_factory=frozenset)

    def __post_init__(self):
        require_text(self.container_path, "container_path")
        object.__setattr__(self, "options", _coerce_flags(TmpFsFlag, self.options))

    @classmethod
    def parse(cls, spec: str) -> "TmpFsMount":
        """Parses a tmpfs spec of the form CONTAINER_PATH[:FLAGS]."""
        path, _, flags = require_text(spec, "spec").partition(":")
        options: FrozenSet[TmpFsFlag] = frozenset()
        if flags:
            options = _parse_flags(TmpFsFlag, flags)
        return cls(container_path=path, options=options)
