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
Image reference parsing and handling.
Renders references like 'quay.io/prometheus/busybox:latest@sha256:...' exactly as
the container runtime expects them on its command line.
"""

from typing import Optional
from dataclasses import dataclass

from .errors import InvalidArgument, require_text


@dataclass(frozen=True)
class ImageReference:
    """
    A reference to a container image.

    Examples:
        - ImageReference("quay.io", "prometheus/busybox", "latest")
          -> quay.io/prometheus/busybox:latest
        - ImageReference("quay.io", "io7mcom/idstore", "1.0.0", "sha256:ab38fabce3")
          -> quay.io/io7mcom/idstore:1.0.0@sha256:ab38fabce3
    """

    registry: str
    name: str
    tag: str
    hash: Optional[str] = None

    DEFAULT_REGISTRY = "docker.io"
    DEFAULT_TAG = "latest"

    def __post_init__(self):
        require_text(self.registry, "registry")
        require_text(self.name, "name")
        require_text(self.tag, "tag")
        if self.hash is not None:
            require_text(self.hash, "hash")

    @classmethod
    def parse(cls, reference: str) -> "ImageReference":
        """
        Parse an image reference string.

        Args:
            reference: Image reference string (e.g., 'nginx:latest', 'quay.io/user/image:v1')

        Returns:
            Parsed ImageReference object.
        """
        if not reference:
            raise InvalidArgument("Empty image reference")

        # Handle hash format (image@sha256:...)
        image_hash = None
        if "@" in reference:
            reference, image_hash = reference.rsplit("@", 1)
            if not reference or not image_hash:
                raise InvalidArgument(f"Invalid image reference '{reference}@{image_hash}'")

        # Handle tag format (image:tag)
        tag = cls.DEFAULT_TAG
        if ":" in reference:
            # The colon may belong to a registry port (e.g., localhost:5000/image)
            last_colon = reference.rfind(":")
            after_colon = reference[last_colon + 1 :]
            if "/" not in after_colon:
                tag = after_colon
                reference = reference[:last_colon]

        parts = reference.split("/")
        if not all(parts):
            raise InvalidArgument(f"Empty path component in image reference '{reference}'")

        if len(parts) == 1:
            # Just image name: nginx -> docker.io/library/nginx
            registry = cls.DEFAULT_REGISTRY
            name = f"library/{parts[0]}"
        else:
            first_part = parts[0]
            if "." in first_part or ":" in first_part or first_part == "localhost":
                registry = first_part
                name = "/".join(parts[1:])
            else:
                # user/image format
                registry = cls.DEFAULT_REGISTRY
                name = reference

        return cls(registry=registry, name=name, tag=tag, hash=image_hash)

    @property
    def full_name(self) -> str:
        """Get the canonical rendering: registry/name:tag[@hash]."""
        name = f"{self.registry}/{self.name}:{self.tag}"
        if self.hash is not None:
            return f"{name}@{self.hash}"
        return name

    def __str__(self) -> str:
        return self.full_name
