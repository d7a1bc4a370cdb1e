"""
Tests against a real podman installation. Skipped when podman is not available.
"""
import logging

import pytest
from podwrap.MANAGERS.executable_factory import NativeExecutables
from podwrap.MODELS.configuration import ExecutableConfiguration
from podwrap.MODELS.image import ImageReference
from podwrap.MODELS.mounts import HostPath, VolumeFlag, VolumeMount

logger = logging.getLogger(__name__)

BUSYBOX = ImageReference(
    "quay.io",
    "prometheus/busybox",
    "latest",
    "sha256:b2273588d9afbfb580e4421c6b41ded2a3e25b889ed002e7bab64e9119835c45",
)


@pytest.fixture
def executables():
    return NativeExecutables()


@pytest.fixture
def configuration():
    return ExecutableConfiguration.builder().build()


@pytest.fixture
def supported(executables, configuration):
    attributes = executables.is_supported(configuration)
    if attributes is None:
        pytest.skip("podman is not available")
    return attributes


def test_is_supported(executables, configuration):
    attributes = executables.is_supported(configuration)
    if attributes is not None:
        for key, value in attributes.items():
            logger.info("%-24s %s", key, value)


def test_info(supported, executables, configuration):
    runner = executables.create_executable(configuration).info().execute()
    output, _ = runner.communicate(timeout=30)
    logger.debug("%s", "\n".join(output))
    assert runner.get_exit_code() == 0


def test_run(supported, executables, configuration, tmp_path):
    runner = (
        executables.create_executable(configuration)
        .run()
        .set_image(BUSYBOX)
        .set_remove_after_exit(True)
        .add_volume(VolumeMount(
            HostPath(tmp_path),
            "/z",
            {VolumeFlag.READ_ONLY, VolumeFlag.SELINUX_LABEL_PRIVATE},
        ))
        .add_argument("uname")
        .add_argument("-a")
        .execute()
    )
    output, _ = runner.communicate(timeout=120)
    logger.debug("%s", "\n".join(output))
    assert runner.get_exit_code() == 0
