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
Command Line Interface for podwrap.
"""
import json
import logging

import click
import yaml
from dotenv import dotenv_values

from ..MANAGERS.executable_factory import NativeExecutables
from ..MODELS.configuration import DEFAULT_EXECUTABLE, ExecutableConfiguration
from ..MODELS.errors import PodwrapError
from ..MODELS.image import ImageReference
from ..MODELS.mounts import TmpFsMount, VolumeMount


def _parse_env(ctx, param, values):
    env = {}
    for item in values:
        name, separator, value = item.partition("=")
        if not separator or not name:
            raise click.BadParameter(f"expected NAME=VALUE, got '{item}'")
        env[name] = value
    return env


@click.group()
@click.option('--executable', '-x', default=DEFAULT_EXECUTABLE, envvar='PODWRAP_EXECUTABLE',
              show_default=True, help='Container runtime executable')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, executable, verbose):
    """
    podwrap - build and run podman commands.
    """
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")
    ctx.ensure_object(dict)
    ctx.obj['configuration'] = ExecutableConfiguration.builder().set_executable(executable).build()
    ctx.obj['executables'] = NativeExecutables()


@cli.command()
@click.option('--format', '-f', 'output_format', type=click.Choice(['table', 'json', 'yaml']),
              default='table')
@click.pass_context
def probe(ctx, output_format):
    """Report whether the runtime is available and what it says about itself."""
    configuration = ctx.obj['configuration']
    attributes = ctx.obj['executables'].is_supported(configuration)
    if attributes is None:
        click.echo(f"Error: {configuration.executable} is not available.", err=True)
        ctx.exit(1)

    if output_format == 'json':
        click.echo(json.dumps(dict(attributes), indent=2))
    elif output_format == 'yaml':
        click.echo(yaml.safe_dump(dict(attributes), default_flow_style=False), nl=False)
    else:
        for key, value in attributes.items():
            click.echo(f"{key:24} {value}")


@cli.command()
@click.option('--dry-run', is_flag=True, help='Print the command instead of running it')
@click.pass_context
def info(ctx, dry_run):
    """Show runtime system information."""
    builder = ctx.obj['executables'].create_executable(ctx.obj['configuration']).info()
    _execute(ctx, builder.build(), dry_run)


@cli.command(context_settings={'ignore_unknown_options': True,
                               'allow_interspersed_args': False})
@click.option('--interactive', '-i', is_flag=True, help='Keep stdin open')
@click.option('--tty', '-t', is_flag=True, help='Allocate a pseudo-TTY')
@click.option('--rm', 'remove', is_flag=True, help='Remove the container after exit')
@click.option('--read-only', is_flag=True, help='Mount the root filesystem read-only')
@click.option('--env', '-e', 'env', multiple=True, callback=_parse_env, help='NAME=VALUE')
@click.option('--env-file', multiple=True, type=click.Path(exists=True, dir_okay=False),
              help='Read environment variables from a .env file')
@click.option('--volume', '-v', 'volumes', multiple=True, help='SOURCE:CONTAINER_PATH[:FLAGS]')
@click.option('--tmpfs', 'tmpfs', multiple=True, help='CONTAINER_PATH[:FLAGS]')
@click.option('--name', help='Container name')
@click.option('--pod', help='Pod to join')
@click.option('--dry-run', is_flag=True, help='Print the command instead of running it')
@click.argument('image')
@click.argument('arguments', nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def run(ctx, interactive, tty, remove, read_only, env, env_file, volumes, tmpfs,
        name, pod, dry_run, image, arguments):
    """Run IMAGE with ARGUMENTS in a new container."""
    builder = ctx.obj['executables'].create_executable(ctx.obj['configuration']).run()
    try:
        builder.set_image(ImageReference.parse(image))
        builder.set_interactive(interactive)
        builder.set_tty(tty)
        builder.set_remove_after_exit(remove)
        builder.set_root_read_only(read_only)

        # Explicit --env values override env files
        merged_env = {}
        for path in env_file:
            merged_env.update({k: v for k, v in dotenv_values(path).items() if v is not None})
        merged_env.update(env)
        for key, value in merged_env.items():
            builder.add_environment_variable(key, value)

        for spec in volumes:
            builder.add_volume(VolumeMount.parse(spec))
        for spec in tmpfs:
            builder.add_tmpfs(TmpFsMount.parse(spec))
        if name:
            builder.set_container_name(name)
        if pod:
            builder.set_pod(pod)
        for argument in arguments:
            builder.add_argument(argument)

        command = builder.build()
    except PodwrapError as e:
        raise click.UsageError(str(e))

    _execute(ctx, command, dry_run, attach=interactive or tty)


def _execute(ctx, command, dry_run, attach=False):
    """
    Runs the command and exits with its exit code.

    Attached runs (-i or -t) hand this terminal to the runtime. Otherwise stdout and
    stderr are merged and relayed line by line as they arrive.
    """
    if dry_run:
        click.echo(str(command))
        return

    try:
        runner = command.execute(capture=not attach, merge_stderr=True)
    except OSError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(127)

    if not attach:
        for line in runner.stdout:
            click.echo(line.rstrip("\n"))
    ctx.exit(runner.wait())


def main():
    """
    Main entry point for the CLI.
    """
    cli(obj={})


if __name__ == '__main__':
    main()
