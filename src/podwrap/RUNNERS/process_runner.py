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
Execution of container runtime processes with piped standard streams.
"""
import logging
import os
import signal
import subprocess
from typing import IO, List, Optional, Sequence, Tuple

from ..MODELS.errors import ExternalProcessFailure

logger = logging.getLogger(__name__)


def decode_lines(data) -> List[str]:
    """
    Splits process output into lines, decoding bytes leniently.
    """
    if not data:
        return []
    if isinstance(data, bytes):
        data = data.decode("utf-8", errors="replace")
    return data.splitlines()


class ProcessRunner:
    """
    Manages the execution of a single runtime process.
    """
    def __init__(self, name: str):
        """
        Initializes the process runner.

        Args:
            name (str): Identifier for the process, used in log messages.
        """
        self.name = name
        self.command: List[str] = []
        self.process: Optional[subprocess.Popen] = None
        self.new_session = False

    def start(self,
              command: Sequence[str],
              stdin_enabled: bool = False,
              capture: bool = True,
              merge_stderr: bool = False,
              new_session: bool = False):
        """
        Starts the process.

        Args:
            command (Sequence[str]): Executable and arguments to execute.
            stdin_enabled (bool): Whether to pipe stdin; otherwise it is inherited.
            capture (bool): Whether to pipe stdout and stderr; otherwise they are inherited.
            merge_stderr (bool): Send stderr into the stdout pipe.
            new_session (bool): Start the process in its own session so that stop()
                reaches every process it spawned.

        Raises:
            OSError: If the executable cannot be found or executed.
        """
        self.command = list(command)
        self.new_session = new_session and hasattr(os, "killpg")
        logger.debug("[%s] Starting command: %s", self.name, self.command)

        stdout = subprocess.PIPE if capture else None
        if not capture:
            stderr = None
        elif merge_stderr:
            stderr = subprocess.STDOUT
        else:
            stderr = subprocess.PIPE

        try:
            self.process = subprocess.Popen(
                self.command,
                stdin=subprocess.PIPE if stdin_enabled else None,
                stdout=stdout,
                stderr=stderr,
                encoding="utf-8",
                errors="replace",
                start_new_session=self.new_session,
                shell=False,
            )
        except OSError as e:
            logger.debug("[%s] Failed to start: %s", self.name, e)
            raise
        return self

    @property
    def stdin(self) -> Optional[IO[str]]:
        return self._require_process().stdin

    @property
    def stdout(self) -> Optional[IO[str]]:
        return self._require_process().stdout

    @property
    def stderr(self) -> Optional[IO[str]]:
        return self._require_process().stderr

    def communicate(self, timeout: Optional[float] = None) -> Tuple[List[str], List[str]]:
        """
        Reads stdout and stderr to the end and waits for the process to exit.

        Args:
            timeout (Optional[float]): Seconds to wait before giving up.

        Returns:
            Tuple[List[str], List[str]]: The stdout and stderr lines.

        Raises:
            subprocess.TimeoutExpired: If the process did not exit in time. The
                exception carries the output read so far; see decode_lines().
        """
        out, err = self._require_process().communicate(timeout=timeout)
        return decode_lines(out), decode_lines(err)

    def wait(self, timeout: Optional[float] = None) -> Optional[int]:
        """
        Waits for the process to exit.

        Args:
            timeout (Optional[float]): Seconds to wait; None waits forever.

        Returns:
            Optional[int]: Exit code, or None if the process is still running after the timeout.
        """
        try:
            return self._require_process().wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            return None

    def check(self, timeout: Optional[float] = None) -> int:
        """
        Waits for the process and raises if it timed out or exited non-zero.

        Returns:
            int: The exit code, which is always 0.

        Raises:
            ExternalProcessFailure: If the process timed out or failed.
        """
        try:
            _, errors = self.communicate(timeout=timeout)
        except subprocess.TimeoutExpired as e:
            raise ExternalProcessFailure(self.command, None, decode_lines(e.stderr)) from None
        code = self.get_exit_code()
        if code != 0:
            raise ExternalProcessFailure(self.command, code, errors)
        return code

    def stop(self, timeout: int = 10):
        """
        Stops the process by sending SIGTERM, followed by SIGKILL if it doesn't stop.
        A process started in its own session is signalled as a whole process group.

        Args:
            timeout (int): Seconds to wait for termination before killing.
        """
        if not self.process:
            return
        if self.process.poll() is None:
            logger.info("[%s] Stopping process...", self.name)
        elif not self.new_session:
            return

        self._signal(signal.SIGTERM)
        try:
            self.process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            logger.warning("[%s] Process did not terminate, killing...", self.name)
            self.kill()
            self.process.wait()

    def kill(self):
        """Sends SIGKILL to the process, or to its process group."""
        if self.process:
            self._signal(getattr(signal, "SIGKILL", signal.SIGTERM))

    def is_running(self) -> bool:
        """
        Checks if the process is currently running.

        Returns:
            bool: True if running, False otherwise.
        """
        return self.process is not None and self.process.poll() is None

    def get_exit_code(self) -> Optional[int]:
        """
        Gets the exit code of the process.

        Returns:
            Optional[int]: Exit code if process finished, None otherwise.
        """
        if self.process:
            return self.process.poll()
        return None

    def _signal(self, signum: int):
        try:
            if self.new_session:
                os.killpg(self.process.pid, signum)
            elif signum == signal.SIGTERM:
                self.process.terminate()
            else:
                self.process.kill()
        except ProcessLookupError:
            # already exited
            pass

    def _require_process(self) -> subprocess.Popen:
        if self.process is None:
            raise RuntimeError(f"[{self.name}] Process has not been started")
        return self.process
