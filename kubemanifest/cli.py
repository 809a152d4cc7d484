import asyncio
import dataclasses
import functools
from typing import IO, Any, Awaitable, Callable, Optional, TypeVar

import click
import yaml

from kubemanifest._cogs.clients import auth, errors
from kubemanifest._cogs.configs import configuration
from kubemanifest._cogs.helpers import errors as reconciliation_errors
from kubemanifest._cogs.structs import bodies, credentials
from kubemanifest._core.actions import loggers
from kubemanifest._core.intents import piggybacking
from kubemanifest._core.reactor import reconciling

_T = TypeVar('_T')


@dataclasses.dataclass()
class CLIControls:
    """ The controls of the CLI runs, which are impossible to pass via CLI. """
    settings: Optional[configuration.ReconcilerSettings] = None
    connection_info: Optional[credentials.ConnectionInfo] = None
    stop_flag: Optional[asyncio.Event] = None


class LogFormatParamType(click.Choice):

    def __init__(self) -> None:
        super().__init__(choices=[v.name.lower() for v in loggers.LogFormat])

    def convert(self, value: Any, param: Any, ctx: Any) -> loggers.LogFormat:
        name: str = super().convert(value, param, ctx)
        return loggers.LogFormat[name.upper()]


def logging_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """ A decorator to configure logging in all commands the same way."""
    @click.option('-v', '--verbose', is_flag=True)
    @click.option('-d', '--debug', is_flag=True)
    @click.option('-q', '--quiet', is_flag=True)
    @click.option('--log-format', type=LogFormatParamType(), default='full')
    @click.option('--log-refkey', type=str)
    @click.option('--log-prefix/--no-log-prefix', default=None)
    @functools.wraps(fn)  # to preserve other opts/args
    def wrapper(verbose: bool, quiet: bool, debug: bool,
                log_format: loggers.LogFormat = loggers.LogFormat.FULL,
                log_prefix: Optional[bool] = None,
                log_refkey: Optional[str] = None,
                *args: Any, **kwargs: Any) -> Any:
        loggers.configure(debug=debug, verbose=verbose, quiet=quiet,
                          log_format=log_format, log_refkey=log_refkey, log_prefix=log_prefix)
        return fn(*args, **kwargs)

    return wrapper


def connection_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """ A decorator to connect to the cluster in all commands the same way."""
    @click.option('--kubeconfig', type=str, default=None)
    @click.make_pass_decorator(CLIControls, ensure=True)
    @functools.wraps(fn)  # to preserve other opts/args
    def wrapper(__controls: CLIControls, kubeconfig: Optional[str], *args: Any, **kwargs: Any) -> Any:
        def run(factory: Callable[[configuration.ReconcilerSettings], Awaitable[_T]]) -> _T:
            return _run(factory, controls=__controls, kubeconfig=kubeconfig)
        return fn(run, __controls, *args, **kwargs)

    return wrapper


def _run(
        factory: Callable[[configuration.ReconcilerSettings], Awaitable[_T]],
        *,
        controls: CLIControls,
        kubeconfig: Optional[str],
) -> _T:
    settings = controls.settings if controls.settings is not None else configuration.ReconcilerSettings()

    async def main() -> _T:
        async with auth.connected(info):
            return await factory(settings)

    try:
        info = controls.connection_info or piggybacking.login(kubeconfig)
        return asyncio.run(main())
    except (credentials.LoginError, errors.ResourceNoMatchError, errors.APIError) as e:
        raise click.ClickException(str(e)) from e
    except reconciliation_errors.ReconciliationError as e:
        suffix = f" (key: {e.key})" if e.key else ""
        raise click.ClickException(f"{e}{suffix}") from e


def _echo_body(body: bodies.Body) -> None:
    click.echo(yaml.safe_dump(body.raw, sort_keys=False), nl=False)


@click.version_option(prog_name='kubemanifest')
@click.group(name='kubemanifest', context_settings=dict(
    auto_envvar_prefix='KUBEMANIFEST',
))
def main() -> None:
    pass


@main.command()
@logging_options
@connection_options
@click.option('-n', '--namespace', type=str, default=None)
@click.option('-t', '--timeout', type=float, default=None)
@click.argument('file', type=click.File('r', encoding='utf-8'))
def create(
        run: Callable[..., Any],
        __controls: CLIControls,
        file: IO[str],
        namespace: Optional[str],
        timeout: Optional[float],
) -> None:
    """ Create an object from the manifest FILE and print its tracking key. """
    content = file.read()
    key = run(lambda settings: reconciling.create(
        content, namespace=namespace, timeout=timeout,
        settings=settings, stop=__controls.stop_flag))
    click.echo(key)


@main.command()
@logging_options
@connection_options
@click.argument('key', type=str)
def read(
        run: Callable[..., Any],
        __controls: CLIControls,
        key: str,
) -> None:
    """ Print the object by its tracking KEY as YAML. """
    body = run(lambda settings: reconciling.read(key, settings=settings))
    if body is None:
        raise click.ClickException(f"The object {key!r} does not exist.")
    _echo_body(body)


@main.command()
@logging_options
@connection_options
@click.option('--original', 'original_file', type=click.File('r', encoding='utf-8'), required=True)
@click.option('--target', 'target_file', type=click.File('r', encoding='utf-8'), required=True)
@click.option('-t', '--timeout', type=float, default=None)
@click.argument('key', type=str)
def update(
        run: Callable[..., Any],
        __controls: CLIControls,
        key: str,
        original_file: IO[str],
        target_file: IO[str],
        timeout: Optional[float],
) -> None:
    """ Patch the object by its tracking KEY from the original manifest to the target one. """
    original_content = original_file.read()
    target_content = target_file.read()
    new_key = run(lambda settings: reconciling.update(
        key, original_content, target_content, timeout=timeout,
        settings=settings, stop=__controls.stop_flag))
    click.echo(new_key)


@main.command()
@logging_options
@connection_options
@click.option('--cascade', is_flag=True)
@click.option('-t', '--timeout', type=float, default=None)
@click.argument('key', type=str)
def delete(
        run: Callable[..., Any],
        __controls: CLIControls,
        key: str,
        cascade: bool,
        timeout: Optional[float],
) -> None:
    """ Delete the object by its tracking KEY and wait until it is gone. """
    run(lambda settings: reconciling.delete(
        key, cascade=cascade, timeout=timeout,
        settings=settings, stop=__controls.stop_flag))


@main.command(name='import')
@logging_options
@connection_options
@click.argument('key', type=str)
def import_(
        run: Callable[..., Any],
        __controls: CLIControls,
        key: str,
) -> None:
    """ Print the existing object by its tracking KEY; fail if it is absent. """
    body = run(lambda settings: reconciling.import_(key, settings=settings))
    _echo_body(body)
