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
Unit tests for the capability probe.
"""
import logging
import shutil
import stat
import sys
import time

import pytest
from podwrap.MODELS.backend import BackendAttributes
from podwrap.MODELS.configuration import ExecutableConfiguration
from podwrap.RUNNERS.probe import parse_version_output, probe

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="uses shell scripts as fake runtimes")


def fake_runtime(tmp_path, body: str) -> ExecutableConfiguration:
    """Writes an executable shell script standing in for the runtime."""
    script = tmp_path / "fake-podman"
    script.write_text("#!/bin/sh\n" + body)
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return ExecutableConfiguration(executable=str(script))


class TestParseVersionOutput:
    """Tests for parse_version_output."""

    def test_single_pair(self):
        attributes = parse_version_output(["Version: 4.3.1", "not a pair line"])
        assert dict(attributes) == {"Version": "4.3.1"}

    def test_splits_on_first_colon(self):
        attributes = parse_version_output(["Built:  Thu Jan  1 00:00:00 1970", "Go Version: go1.19"])
        assert attributes["Built"] == "\ufffd\ufffd"
        assert attributes["Go Version"] == "go1.19"

    def test_url_value_keeps_colons(self):
        attributes = parse_version_output(["Docs: https://podman.io/"])
        assert attributes["Docs"] == "https://podman.io/"

    def test_duplicate_key_last_wins(self):
        attributes = parse_version_output(["Version: 1", "Version: 2"])
        assert attributes["Version"] == "2"
        assert len(attributes) == 1

    def test_blank_and_empty_values(self):
        attributes = parse_version_output(["", "   ", "Empty:"])
        assert dict(attributes) == {"Empty": ""}

    def test_keys_sorted(self):
        attributes = parse_version_output(["b: 2", "a: 1"])
        assert list(attributes) == ["a", "b"]


class TestBackendAttributes:
    """Tests for BackendAttributes."""

    def test_read_only(self):
        attributes = BackendAttributes({"Version": "4.3.1"})
        with pytest.raises(TypeError):
            attributes["Version"] = "5"

    def test_copy_of_input(self):
        source = {"Version": "4.3.1"}
        attributes = BackendAttributes(source)
        source["Version"] = "changed"
        assert attributes["Version"] == "4.3.1"

    def test_mapping_equality(self):
        assert BackendAttributes({"a": "1"}) == {"a": "1"}


class TestProbe:
    """Tests for probe() against fake runtimes."""

    def test_missing_executable(self):
        configuration = ExecutableConfiguration(executable="podwrap-no-such-runtime-7c1e")
        assert probe(configuration) is None

    @posix_only
    def test_not_executable(self, tmp_path):
        script = tmp_path / "not-executable"
        script.write_text("#!/bin/sh\necho 'Version: 1'\n")
        assert probe(ExecutableConfiguration(executable=str(script))) is None

    @posix_only
    def test_parses_stdout(self, tmp_path):
        configuration = fake_runtime(tmp_path, (
            'test "$1" = version || exit 2\n'
            "echo 'Client:       Podman Engine'\n"
            "echo 'Version:      4.3.1'\n"
            "echo 'API Version:  4.3.1'\n"
            "echo\n"
            "echo 'not a pair line'\n"
        ))
        attributes = probe(configuration)
        assert dict(attributes) == {
            "API Version": "4.3.1",
            "Client": "Podman Engine",
            "Version": "4.3.1",
        }

    @posix_only
    def test_nonzero_exit_keeps_attributes(self, tmp_path, caplog):
        configuration = fake_runtime(tmp_path, (
            "echo 'Version: 4.3.1'\n"
            "echo 'cannot connect to socket' >&2\n"
            "exit 125\n"
        ))
        with caplog.at_level(logging.ERROR, logger="podwrap.RUNNERS.probe"):
            attributes = probe(configuration)
        assert dict(attributes) == {"Version": "4.3.1"}
        assert "cannot connect to socket" in caplog.text

    @posix_only
    def test_stderr_not_logged_on_success(self, tmp_path, caplog):
        configuration = fake_runtime(tmp_path, "echo 'warning: noise' >&2\necho 'Version: 1'\n")
        with caplog.at_level(logging.ERROR, logger="podwrap.RUNNERS.probe"):
            attributes = probe(configuration)
        assert attributes["Version"] == "1"
        assert "noise" not in caplog.text


    @posix_only
    def test_invalid_utf8_output(self, tmp_path):
        configuration = fake_runtime(tmp_path, r"printf 'Version: 4.3.1\nBuilt: \377\376\n'" + "\n")
        attributes = probe(configuration)
        assert attributes["Version"] == "4.3.1"
        assert attributes["Built"] == "\ufffd\ufffd"

    @posix_only
    def test_timeout_stops_child_processes(self, tmp_path):
        configuration = fake_runtime(tmp_path, "echo 'Version: 1'\nsleep 8\necho 'Late: yes'\n")
        started = time.monotonic()
        attributes = probe(configuration, timeout=0.5)
        elapsed = time.monotonic() - started
        assert elapsed < 4
        assert attributes["Version"] == "1"
        assert "Late" not in attributes

    @posix_only
    @pytest.mark.skipif(shutil.which("setsid") is None, reason="needs setsid")
    def test_timeout_with_escaped_child(self, tmp_path):
        configuration = fake_runtime(tmp_path, "echo 'Version: 1'\nsetsid sleep 6\n")
        started = time.monotonic()
        attributes = probe(configuration, timeout=0.5)
        elapsed = time.monotonic() - started
        assert elapsed < 5
        assert attributes["Version"] == "1"
