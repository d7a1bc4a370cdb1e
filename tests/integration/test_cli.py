import json
import stat
import sys

import pytest
import yaml
from click.testing import CliRunner
from podwrap.CLI.main import cli

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="uses shell scripts as fake runtimes")


@pytest.fixture
def fake_podman(tmp_path):
    script = tmp_path / "fake-podman"
    script.write_text(
        "#!/bin/sh\n"
        'if [ "$1" = version ]; then\n'
        "  echo 'Version:      4.3.1'\n"
        "  echo 'OS/Arch:      linux/amd64'\n"
        "  exit 0\n"
        "fi\n"
        'echo "args: $*"\n'
        "exit 7\n"
    )
    script.chmod(script.stat().st_mode | stat.S_IXUSR)
    return str(script)


def test_cli_help():
    runner = CliRunner()
    result = runner.invoke(cli, ['--help'])
    assert result.exit_code == 0
    assert 'build and run podman commands' in result.output


def test_cli_run_help():
    runner = CliRunner()
    result = runner.invoke(cli, ['run', '--help'])
    assert result.exit_code == 0
    assert '--volume' in result.output


def test_cli_run_dry_run(tmp_path):
    runner = CliRunner()
    result = runner.invoke(cli, [
        'run', '--dry-run', '-i', '-t', '-e', 'FOO=bar',
        '-v', f'{tmp_path}:/z:Z,ro',
        'quay.io/prometheus/busybox:latest', 'uname', '-a',
    ])
    assert result.exit_code == 0
    assert result.output.strip() == (
        f"podman run --interactive --tty --env FOO=bar --volume {tmp_path}:/z:ro,Z "
        "quay.io/prometheus/busybox:latest uname -a"
    )


def test_cli_run_env_file_overridden_by_env(tmp_path):
    env_file = tmp_path / "app.env"
    env_file.write_text("FOO=from-file\nBAR=keep\n")
    runner = CliRunner()
    result = runner.invoke(cli, [
        '--executable', 'docker', 'run', '--dry-run',
        '--env-file', str(env_file), '-e', 'FOO=explicit',
        '--tmpfs', '/tmp:noexec', '--name', 'box', '--pod', 'web', '--rm', '--read-only',
        'nginx',
    ])
    assert result.exit_code == 0
    assert result.output.strip() == (
        "docker run --rm --read-only --env BAR=keep --env FOO=explicit --tmpfs /tmp:noexec "
        "--name box --pod web docker.io/library/nginx:latest"
    )


def test_cli_run_executable_from_environment():
    runner = CliRunner()
    result = runner.invoke(cli, ['run', '--dry-run', 'nginx'], env={'PODWRAP_EXECUTABLE': 'podman-remote'})
    assert result.exit_code == 0
    assert result.output.startswith("podman-remote run ")


def test_cli_run_bad_volume():
    runner = CliRunner()
    result = runner.invoke(cli, ['run', '--dry-run', '-v', 'cache:/c:bogus', 'nginx'])
    assert result.exit_code == 2
    assert 'Unknown VolumeFlag' in result.output


def test_cli_run_bad_env():
    runner = CliRunner()
    result = runner.invoke(cli, ['run', '--dry-run', '-e', 'NOVALUE', 'nginx'])
    assert result.exit_code == 2


def test_cli_info_dry_run():
    runner = CliRunner()
    result = runner.invoke(cli, ['info', '--dry-run'])
    assert result.exit_code == 0
    assert result.output.strip() == "podman info"


def test_cli_probe_missing_runtime():
    runner = CliRunner()
    result = runner.invoke(cli, ['-x', 'podwrap-no-such-runtime-7c1e', 'probe'])
    assert result.exit_code == 1
    assert 'is not available' in result.output


def test_cli_run_missing_runtime():
    runner = CliRunner()
    result = runner.invoke(cli, ['-x', 'podwrap-no-such-runtime-7c1e', 'run', 'nginx'])
    assert result.exit_code == 127


@posix_only
def test_cli_probe_formats(fake_podman):
    runner = CliRunner()

    result = runner.invoke(cli, ['-x', fake_podman, 'probe'])
    assert result.exit_code == 0
    assert 'Version' in result.output and '4.3.1' in result.output

    result = runner.invoke(cli, ['-x', fake_podman, 'probe', '--format', 'json'])
    assert json.loads(result.output) == {"OS/Arch": "linux/amd64", "Version": "4.3.1"}

    result = runner.invoke(cli, ['-x', fake_podman, 'probe', '--format', 'yaml'])
    assert yaml.safe_load(result.output) == {"OS/Arch": "linux/amd64", "Version": "4.3.1"}


@posix_only
def test_cli_run_propagates_exit_code(fake_podman):
    runner = CliRunner()
    result = runner.invoke(cli, ['-x', fake_podman, 'run', 'nginx', 'echo', 'hi'])
    assert result.exit_code == 7
    assert 'args: run docker.io/library/nginx:latest echo hi' in result.output


@posix_only
def test_cli_run_relays_stderr(tmp_path):
    script = tmp_path / "noisy-podman"
    script.write_text("#!/bin/sh\necho 'to stdout'\necho 'to stderr' >&2\nexit 3\n")
    script.chmod(script.stat().st_mode | stat.S_IXUSR)
    runner = CliRunner()
    result = runner.invoke(cli, ['-x', str(script), 'run', 'nginx'])
    assert result.exit_code == 3
    assert 'to stdout' in result.output
    assert 'to stderr' in result.output


@posix_only
def test_cli_run_attached_inherits_terminal(tmp_path):
    record = tmp_path / "args.txt"
    script = tmp_path / "recording-podman"
    script.write_text(f"#!/bin/sh\necho \"$*\" > '{record}'\nexit 4\n")
    script.chmod(script.stat().st_mode | stat.S_IXUSR)
    runner = CliRunner()
    result = runner.invoke(cli, ['-x', str(script), 'run', '-i', '-t', 'nginx', 'sh'])
    assert result.exit_code == 4
    assert record.read_text().strip() == "run --interactive --tty docker.io/library/nginx:latest sh"
