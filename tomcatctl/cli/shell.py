"""
Interactive Shell.

A cmd.Cmd loop exposing every tomcatctl command by name. Each input line is
tokenized with shlex and handed to the same dispatcher as a one-shot
invocation.

Completion:
    Candidates are fetched fresh on every completion request: context paths
    come from a live list request to the manager, log files from a listing
    of the log directory. Nothing is cached, so applications deployed or
    undeployed between commands show up immediately.
"""

import cmd
import glob
import os
import shlex
from collections.abc import Callable, Iterable
from pathlib import Path

import click
import httpx

from tomcatctl.cli import manager, process
from tomcatctl.cli.commands import COMMANDS, ArgumentKind, usage_text
from tomcatctl.cli.output import print_error
from tomcatctl.cli.session import CliSession
from tomcatctl.core.exceptions import ShellSetupError, TomcatctlError
from tomcatctl.core.logging import get_logger, log_with_source

logger = get_logger(__name__)

HISTORY_FILE = Path("~/.tomcatctl_history")
EXIT_COMMANDS = ("exit", "quit")


def complete_argument(text: str, candidates: Iterable[str]) -> list[str]:
    """Candidates starting with the partial input, sorted and de-duplicated."""
    return sorted({c for c in candidates if c.startswith(text)})


def complete_local_path(text: str) -> list[str]:
    """Local filesystem paths starting with text; directories get a trailing slash."""
    matches = []
    for match in glob.glob(glob.escape(os.path.expanduser(text)) + "*"):
        matches.append(match + "/" if os.path.isdir(match) else match)
    return sorted(matches)


class ManagerShell(cmd.Cmd):
    """Interactive shell for the manager and server process commands."""

    intro = 'tomcatctl interactive shell. Type "help" for commands, "exit" to quit.'
    prompt = "tomcat> "

    def __init__(
        self,
        session: CliSession,
        dispatch: Callable[[list[str]], int],
        history_file: Path | None = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.session = session
        self.dispatch = dispatch
        self.history_file = (history_file or HISTORY_FILE).expanduser()
        self._readline = None
        self.last_status = 0

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def prepare(self) -> None:
        """
        Configure readline completion and history.

        Raises:
            ShellSetupError: If the history file cannot be created or read
        """
        try:
            import readline
        except ImportError:
            return

        readline.set_completer_delims(" \t\n")
        try:
            self.history_file.touch(exist_ok=True)
            readline.read_history_file(self.history_file)
        except OSError as e:
            raise ShellSetupError(f"Cannot use history file {self.history_file}: {e}") from e
        self._readline = readline

    def save_history(self) -> None:
        if self._readline is None:
            return
        try:
            self._readline.write_history_file(self.history_file)
        except OSError as e:
            log_with_source(logger, "shell", "warning", "Cannot save history", error=str(e))

    # =========================================================================
    # Dispatch
    # =========================================================================

    def emptyline(self) -> bool:
        return False

    def default(self, line: str) -> bool:
        try:
            tokens = shlex.split(line)
        except ValueError as e:
            print_error(f"Cannot parse command line: {e}")
            self.last_status = 2
            return False

        if not tokens:
            return False
        if tokens[0] not in COMMANDS:
            print_error(f"Unknown command: {tokens[0]}. Type 'help' for a list of commands.")
            self.last_status = 127
            return False

        self.last_status = self.dispatch(tokens)
        return False

    def do_help(self, arg: str) -> bool:
        """Show the command summary."""
        spec = COMMANDS.get(arg.strip())
        if spec is not None and spec.name != "help":
            click.echo(f"{spec.synopsis}\n  {spec.summary}")
        else:
            click.echo(usage_text())
        self.last_status = 0
        return False

    def do_exit(self, arg: str) -> bool:
        """Leave the shell."""
        return True

    do_quit = do_exit

    def do_EOF(self, arg: str) -> bool:
        click.echo()
        return True

    # =========================================================================
    # Completion
    # =========================================================================

    def completenames(self, text: str, *ignored) -> list[str]:
        return complete_argument(text, [*COMMANDS, *EXIT_COMMANDS])

    def complete_help(self, text: str, line: str, begidx: int, endidx: int) -> list[str]:
        return complete_argument(text, COMMANDS)

    def completedefault(self, text: str, line: str, begidx: int, endidx: int) -> list[str]:
        words = line[:begidx].split()
        if not words:
            return []
        spec = COMMANDS.get(words[0])
        if spec is None:
            return []
        if spec.first_argument_only and len(words) > 1:
            return []

        if spec.completes is ArgumentKind.CONTEXT:
            return complete_argument(text, self.context_candidates())
        if spec.completes is ArgumentKind.LOG_FILE:
            return complete_argument(text, self.log_file_candidates())
        if spec.completes is ArgumentKind.LOCAL_FILE:
            return complete_local_path(text)
        return []

    def context_candidates(self) -> list[str]:
        """Context paths currently deployed, fetched from the server on every call."""
        try:
            return manager.list_contexts(self.session.client)
        except httpx.HTTPError as e:
            log_with_source(logger, "shell", "warning", "Cannot fetch contexts for completion", error=str(e))
            return []

    def log_file_candidates(self) -> list[str]:
        """Files currently in the log directory, listed on every call."""
        try:
            return process.list_log_files(self.session.config.server)
        except TomcatctlError as e:
            log_with_source(logger, "shell", "warning", "Cannot list log files for completion", error=str(e))
            return []


def run_shell(
    session: CliSession,
    dispatch: Callable[[list[str]], int],
    history_file: Path | None = None,
) -> int:
    """
    Run the interactive shell until end of input or exit.

    Returns:
        Exit status of the last command run in the shell, or 1 if the shell
        could not be set up
    """
    shell = ManagerShell(session, dispatch, history_file=history_file)
    try:
        shell.prepare()
    except ShellSetupError as e:
        print_error(str(e))
        return 1

    log_with_source(logger, "shell", "debug", "Interactive shell started")
    try:
        while True:
            try:
                shell.cmdloop()
                break
            except KeyboardInterrupt:
                click.echo("^C")
                shell.intro = ""
    finally:
        shell.save_history()
    return shell.last_status
