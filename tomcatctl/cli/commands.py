"""
Command Table.

Static description of every tomcatctl command: its synopsis for the usage
summary and the kind of argument the interactive shell completes for it.
"""

from dataclasses import dataclass
from enum import Enum


class ArgumentKind(Enum):
    """What a command's arguments refer to, for tab completion."""

    NONE = "none"
    CONTEXT = "context"
    LOG_FILE = "log_file"
    LOCAL_FILE = "local_file"


@dataclass(frozen=True)
class CommandSpec:
    name: str
    synopsis: str
    summary: str
    completes: ArgumentKind = ArgumentKind.NONE
    # Only the first argument is completed (e.g. expire's idle minutes are not)
    first_argument_only: bool = False


_MANAGER_COMMANDS = (
    CommandSpec("list", "list", "List deployed applications"),
    CommandSpec("start", "start CONTEXT...", "Start applications", ArgumentKind.CONTEXT),
    CommandSpec("stop", "stop CONTEXT...", "Stop applications", ArgumentKind.CONTEXT),
    CommandSpec("reload", "reload CONTEXT...", "Reload applications", ArgumentKind.CONTEXT),
    CommandSpec(
        "deploy",
        "deploy ARCHIVE [PATH]",
        "Upload and deploy a WAR file (PATH defaults to /<archive name>)",
        ArgumentKind.LOCAL_FILE,
        first_argument_only=True,
    ),
    CommandSpec("undeploy", "undeploy CONTEXT...", "Undeploy applications", ArgumentKind.CONTEXT),
    CommandSpec("resources", "resources", "List global JNDI resources"),
    CommandSpec("serverinfo", "serverinfo", "Show server, JVM and OS information"),
    CommandSpec(
        "expire",
        "expire CONTEXT [IDLE]",
        "Show session idle times, or expire sessions idle IDLE minutes or more",
        ArgumentKind.CONTEXT,
        first_argument_only=True,
    ),
)

_PROCESS_COMMANDS = (
    CommandSpec("startup", "startup", "Start the local server"),
    CommandSpec("debug", "debug", "Start the local server with the JPDA debugger"),
    CommandSpec("shutdown", "shutdown", "Stop the local server"),
    CommandSpec("restart", "restart", "Stop then start the local server"),
    CommandSpec("kill", "kill [SIGNAL]", "Signal the server process (default TERM)"),
    CommandSpec("ps", "ps", "Show the server process"),
    CommandSpec("log", "log [FILE...]", "Follow server log files (all files by default)", ArgumentKind.LOG_FILE),
    CommandSpec("version", "version", "Show the server version"),
)

COMMANDS: dict[str, CommandSpec] = {
    spec.name: spec
    for spec in (
        *_MANAGER_COMMANDS,
        *_PROCESS_COMMANDS,
        CommandSpec("help", "help", "Show this summary"),
    )
}


def _section(title: str, specs: tuple[CommandSpec, ...]) -> list[str]:
    width = max(len(spec.synopsis) for spec in specs)
    return [title] + [f"  {spec.synopsis:<{width}}  {spec.summary}" for spec in specs]


def usage_text() -> str:
    """Static usage summary of all commands."""
    lines = [
        "Usage: tomcatctl [OPTIONS] [COMMAND [ARGS]...]",
        "",
        "Without a command, tomcatctl starts an interactive shell.",
        "CONTEXT is a context path, optionally with a version: /app or /app##2.",
        "",
        *_section("Manager commands:", _MANAGER_COMMANDS),
        "",
        *_section("Server process commands:", _PROCESS_COMMANDS),
        "",
        "Run 'tomcatctl --help' for global options.",
    ]
    return "\n".join(lines)
