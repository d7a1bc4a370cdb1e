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
podwrap - typed command construction for the podman CLI

Builds exact 'podman run' and 'podman info' argument vectors from validated
image and mount descriptions, launches them, and probes the runtime for the
attributes it reports about itself.
"""

from .BUILDERS.command import PodmanCommand
from .BUILDERS.info_builder import InfoBuilder
from .BUILDERS.run_builder import RunBuilder
from .MANAGERS.executable_factory import Executable, NativeExecutables
from .MODELS.backend import BackendAttributes
from .MODELS.configuration import ExecutableConfiguration
from .MODELS.errors import (
    BuilderFinalized,
    ExternalProcessFailure,
    InvalidArgument,
    MissingRequiredField,
    PodwrapError,
)
from .MODELS.image import ImageReference
from .MODELS.mounts import HostPath, NamedVolume, TmpFsFlag, TmpFsMount, VolumeFlag, VolumeMount
from .RUNNERS.probe import probe

__version__ = "0.1.0"
__author__ = "Michael Maillet, Damien Davison, Sacha Davison"
__license__ = "Apache-2.0"
