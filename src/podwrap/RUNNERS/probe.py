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
Capability detection for the container runtime.

Runs '<executable> version' and parses its 'Key: value' lines into BackendAttributes.
A runtime that cannot be started at all is reported as None, never as an error.
"""
import logging
import subprocess
from typing import Iterable, Optional

from ..MODELS.backend import BackendAttributes
from ..MODELS.configuration import ExecutableConfiguration
from .process_runner import ProcessRunner, decode_lines

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 5.0
STOP_TIMEOUT = 1.0


def parse_version_output(lines: Iterable[str]) -> BackendAttributes:
    """
    Extracts attributes from lines of the form 'Key: value'.

    Only the first colon splits a line. Values are stripped of surrounding whitespace,
    lines without a colon are skipped, and a repeated key keeps its last value.
    """
    attributes = {}
    for line in lines:
        key, separator, value = line.partition(":")
        if separator:
            attributes[key] = value.strip()
    return BackendAttributes(attributes)


def probe(configuration: ExecutableConfiguration,
          timeout: float = PROBE_TIMEOUT) -> Optional[BackendAttributes]:
    """
    Checks whether the configured runtime is usable.

    Args:
        configuration: The runtime executable configuration.
        timeout: Seconds to wait for the version command to finish.

    Returns:
        The parsed attributes if the runtime could be started, otherwise None.
    """
    runner = ProcessRunner("version")
    try:
        runner.start([configuration.executable, "version"], new_session=True)
    except OSError as e:
        logger.debug("Failed to run %s: %s", configuration.executable, e)
        return None

    try:
        output, errors = runner.communicate(timeout=timeout)
        code = runner.get_exit_code()
    except subprocess.TimeoutExpired:
        logger.error("%s version did not finish within %ss", configuration.executable, timeout)
        runner.stop(timeout=STOP_TIMEOUT)
        try:
            output, errors = runner.communicate(timeout=STOP_TIMEOUT)
        except subprocess.TimeoutExpired as e:
            # a process outside the group still holds the pipes
            runner.kill()
            output, errors = decode_lines(e.output), decode_lines(e.stderr)
        code = None

    if code != 0:
        for line in errors:
            logger.error("%s", line)

    return parse_version_output(output)
