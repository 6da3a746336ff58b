"""
CLI Entry Point.

Click command group for tomcatctl. With a command, runs it once and exits
with its status; without one, starts the interactive shell, which dispatches
each input line back through this same group.

Usage:
    tomcatctl                         # interactive shell
    tomcatctl list
    tomcatctl start /app /other##2
    tomcatctl deploy build/app.war /app
    tomcatctl expire /app 30
    tomcatctl kill -9
    tomcatctl log catalina.out
"""

from collections.abc import Callable
from functools import partial
from pathlib import Path

import click
import structlog

from tomcatctl.cli import manager, process
from tomcatctl.cli.commands import usage_text
from tomcatctl.cli.output import print_error
from tomcatctl.cli.session import CliSession
from tomcatctl.cli.shell import run_shell
from tomcatctl.core.config import load_config
from tomcatctl.core.exceptions import TomcatctlError
from tomcatctl.core.logging import get_logger, log_with_source, setup_logging

logger = get_logger(__name__)

PROG_NAME = "tomcatctl"

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def _finish(operation: Callable[[], int]) -> None:
    """Run an operation and exit the current click context with its status."""
    ctx = click.get_current_context()
    try:
        status = operation()
    except TomcatctlError as e:
        log_with_source(logger, "cli", "debug", "Command failed", command=ctx.info_name, error=str(e))
        print_error(str(e))
        status = 1
    ctx.exit(status)


def _create_session(
    config_file: Path | None,
    url: str | None,
    user: str | None,
    password: str | None,
    verbose: bool,
    debug_logging: bool,
) -> CliSession:
    """Set up logging and build the session from configuration. Exits on configuration errors."""
    if debug_logging:
        flag_level = "DEBUG"
    elif verbose:
        flag_level = "INFO"
    else:
        flag_level = None

    setup_logging(level=flag_level or "WARNING")

    try:
        config = load_config(
            config_file=config_file,
            overrides={"manager": {"url": url, "username": user, "password": password}},
        )
        setup_logging(
            level=flag_level or config.logging.level,
            format_type=config.logging.format,
            log_file=config.logging.file,
        )
    except (TomcatctlError, ValueError) as e:
        print_error(f"Configuration error: {e}")
        raise click.exceptions.Exit(1) from e

    structlog.contextvars.bind_contextvars(source="cli")
    logger.debug("Configuration loaded", url=config.manager.url, server_home=str(config.server.home))
    return CliSession.from_config(config)


def dispatch(session: CliSession, args: list[str]) -> int:
    """
    Run one command line against an existing session.

    Used by the interactive shell; usage errors are printed rather than
    ending the process.

    Returns:
        Exit status of the command
    """
    try:
        result = main.main(args=args, prog_name=PROG_NAME, standalone_mode=False, obj=session)
    except click.ClickException as e:
        e.show()
        return e.exit_code
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        return 1
    return result if isinstance(result, int) else 0


@click.group(invoke_without_command=True, context_settings=CONTEXT_SETTINGS)
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="YAML configuration file (default: $TOMCATCTL_CONFIG or ~/.config/tomcatctl/config.yaml).",
)
@click.option("--url", help="Manager text interface URL, e.g. http://localhost:8080/manager/text.")
@click.option("--user", help="Manager username.")
@click.option("--password", help="Manager password.")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output (INFO level logging).")
@click.option("--debug", "-d", "debug_logging", is_flag=True, help="Enable debug output (DEBUG level logging).")
@click.pass_context
def main(
    ctx: click.Context,
    config_file: Path | None,
    url: str | None,
    user: str | None,
    password: str | None,
    verbose: bool,
    debug_logging: bool,
) -> None:
    """Tomcat manager client. Without a command, starts an interactive shell."""
    if ctx.obj is None:
        ctx.obj = _create_session(config_file, url, user, password, verbose, debug_logging)
        ctx.call_on_close(ctx.obj.close)

    if ctx.invoked_subcommand is None:
        session = ctx.obj
        ctx.exit(run_shell(session, partial(dispatch, session)))


# =============================================================================
# Manager commands
# =============================================================================


@main.command("list")
@click.pass_obj
def list_command(session: CliSession) -> None:
    """List deployed applications."""
    _finish(lambda: manager.list_applications(session.client))


@main.command()
@click.argument("contexts", nargs=-1, required=True)
@click.pass_obj
def start(session: CliSession, contexts: tuple[str, ...]) -> None:
    """Start applications."""
    _finish(lambda: manager.run_context_command(session.client, "start", contexts))


@main.command()
@click.argument("contexts", nargs=-1, required=True)
@click.pass_obj
def stop(session: CliSession, contexts: tuple[str, ...]) -> None:
    """Stop applications."""
    _finish(lambda: manager.run_context_command(session.client, "stop", contexts))


@main.command()
@click.argument("contexts", nargs=-1, required=True)
@click.pass_obj
def reload(session: CliSession, contexts: tuple[str, ...]) -> None:
    """Reload applications."""
    _finish(lambda: manager.run_context_command(session.client, "reload", contexts))


@main.command()
@click.argument("contexts", nargs=-1, required=True)
@click.pass_obj
def undeploy(session: CliSession, contexts: tuple[str, ...]) -> None:
    """Undeploy applications."""
    _finish(lambda: manager.run_context_command(session.client, "undeploy", contexts))


@main.command()
@click.argument("archive", type=click.Path(dir_okay=False, path_type=Path))
@click.argument("path", required=False)
@click.pass_obj
def deploy(session: CliSession, archive: Path, path: str | None) -> None:
    """Upload and deploy ARCHIVE at PATH (default: /<archive name without .war>)."""
    _finish(lambda: manager.deploy(session.client, archive, path))


@main.command()
@click.pass_obj
def resources(session: CliSession) -> None:
    """List global JNDI resources."""
    _finish(lambda: manager.resources(session.client))


@main.command()
@click.pass_obj
def serverinfo(session: CliSession) -> None:
    """Show server, JVM and OS information."""
    _finish(lambda: manager.serverinfo(session.client))


@main.command()
@click.argument("context")
@click.argument("idle", type=click.IntRange(min=0), required=False)
@click.pass_obj
def expire(session: CliSession, context: str, idle: int | None) -> None:
    """Show session idle times for CONTEXT, or expire sessions idle IDLE minutes or more."""
    _finish(lambda: manager.expire(session.client, context, idle))


# =============================================================================
# Server process commands
# =============================================================================


@main.command()
@click.pass_obj
def startup(session: CliSession) -> None:
    """Start the local server."""
    _finish(lambda: process.startup(session.config.server))


@main.command("debug")
@click.pass_obj
def debug_command(session: CliSession) -> None:
    """Start the local server with the JPDA debugger."""
    _finish(lambda: process.debug(session.config.server))


@main.command()
@click.pass_obj
def shutdown(session: CliSession) -> None:
    """Stop the local server."""
    _finish(lambda: process.shutdown(session.config.server))


@main.command()
@click.pass_obj
def restart(session: CliSession) -> None:
    """Stop then start the local server."""
    _finish(lambda: process.restart(session.config.server))


@main.command("version")
@click.pass_obj
def version_command(session: CliSession) -> None:
    """Show the server version."""
    _finish(lambda: process.version(session.config.server))


@main.command("kill", context_settings={"ignore_unknown_options": True})
@click.argument("signal_spec", metavar="[SIGNAL]", required=False)
@click.pass_obj
def kill_command(session: CliSession, signal_spec: str | None) -> None:
    """Send SIGNAL (default TERM) to the server process, e.g. kill -9 or kill HUP."""
    try:
        sig = process.parse_signal(signal_spec)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="SIGNAL") from e
    _finish(lambda: process.kill(session.config.server, sig))


@main.command("ps")
@click.pass_obj
def ps_command(session: CliSession) -> None:
    """Show the server process."""
    _finish(lambda: process.ps(session.config.server))


@main.command("log")
@click.argument("names", nargs=-1)
@click.pass_obj
def log_command(session: CliSession, names: tuple[str, ...]) -> None:
    """Follow log files (all files in the log directory by default)."""
    _finish(lambda: process.tail_logs(session.config.server, list(names)))


@main.command("help")
def help_command() -> None:
    """Show a summary of all commands."""
    click.echo(usage_text())


if __name__ == "__main__":
    main()
