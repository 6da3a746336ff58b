"""
Local Process Control.

Operations on the local server process that do not use the manager API:
running the server's control script, signalling and listing the server
process, and following its log files.

The server process is recognised by its bootstrap class appearing on the
command line (ServerSettings.bootstrap_class).
"""

import os
import signal
import subprocess
from datetime import datetime
from pathlib import Path

import click
import psutil

from tomcatctl.cli.output import print_error, print_warning
from tomcatctl.core.config import ServerSettings
from tomcatctl.core.exceptions import ConfigurationError, ProcessControlError
from tomcatctl.core.logging import get_logger, log_with_source

logger = get_logger(__name__)

DEFAULT_SIGNAL = signal.SIGTERM

_PROCESS_ATTRS = ["pid", "ppid", "username", "create_time", "cmdline"]


# =============================================================================
# Control script
# =============================================================================


def control_script(server: ServerSettings) -> Path:
    """
    Locate the server's control script.

    Raises:
        ConfigurationError: If the server home is unset or the script is missing or not executable
    """
    script = server.control_script_path
    if not script.is_file() or not os.access(script, os.X_OK):
        raise ConfigurationError(
            f"Control script {script} not found or not executable; "
            "check that CATALINA_HOME points to the server installation"
        )
    return script


def run_control_script(server: ServerSettings, *args: str) -> int:
    """
    Run the control script with the given arguments, inheriting the terminal.

    Returns:
        The script's exit status

    Raises:
        ConfigurationError: If the script cannot be located or started
    """
    script = control_script(server)
    env = dict(os.environ)
    env["CATALINA_HOME"] = str(server.home)
    if server.base is not None:
        env["CATALINA_BASE"] = str(server.base)

    log_with_source(logger, "process", "info", "Running control script", script=str(script), args=list(args))
    try:
        result = subprocess.run([str(script), *args], env=env, check=False)
    except OSError as e:
        raise ConfigurationError(f"Cannot run control script {script}: {e}") from e
    return result.returncode


def startup(server: ServerSettings) -> int:
    return run_control_script(server, "start")


def debug(server: ServerSettings) -> int:
    """Start the server with the JPDA debugger agent enabled."""
    return run_control_script(server, "jpda", "start")


def shutdown(server: ServerSettings) -> int:
    return run_control_script(server, "stop")


def version(server: ServerSettings) -> int:
    return run_control_script(server, "version")


def restart(server: ServerSettings) -> int:
    """Stop then start the server. Returns the start step's exit status."""
    stop_status = shutdown(server)
    if stop_status != 0:
        print_warning(f"Shutdown exited with status {stop_status}; starting anyway")
    return startup(server)


# =============================================================================
# Signals and process listing
# =============================================================================


def parse_signal(spec: str | None) -> signal.Signals:
    """
    Parse a kill-style signal argument.

    Accepts "9", "-9", "KILL", "-KILL", "SIGKILL", "-sigkill". None means SIGTERM.

    Raises:
        ValueError: If the signal is unknown
    """
    if spec is None:
        return DEFAULT_SIGNAL

    name = spec.lstrip("-").strip()
    if name.isdigit():
        return signal.Signals(int(name))

    name = name.upper()
    if not name.startswith("SIG"):
        name = "SIG" + name
    try:
        return signal.Signals[name]
    except KeyError:
        raise ValueError(f"Unknown signal: {spec}") from None


def find_server_processes(server: ServerSettings) -> list[psutil.Process]:
    """Local processes whose command line contains the bootstrap class, excluding this process."""
    own_pid = os.getpid()
    matches = []
    for proc in psutil.process_iter(_PROCESS_ATTRS):
        cmdline = proc.info.get("cmdline") or []
        if proc.info["pid"] != own_pid and server.bootstrap_class in " ".join(cmdline):
            matches.append(proc)
    return matches


def kill(server: ServerSettings, sig: signal.Signals = DEFAULT_SIGNAL) -> int:
    """
    Send a signal to every running server process.

    Returns:
        0 if every matching process was signalled, 1 if none matched or any could not be signalled
    """
    processes = find_server_processes(server)
    if not processes:
        print_warning(f"No process matching {server.bootstrap_class} is running")
        return 1

    status = 0
    for proc in processes:
        try:
            proc.send_signal(sig)
            log_with_source(logger, "process", "info", "Signal sent", pid=proc.pid, signal=sig.name)
        except psutil.NoSuchProcess:
            log_with_source(logger, "process", "info", "Process exited before signal", pid=proc.pid)
        except psutil.AccessDenied:
            print_error(f"Access denied sending {sig.name} to PID {proc.pid}")
            status = 1
    return status


def format_process(info: dict) -> str:
    """One ps -f style line: UID PID PPID STIME CMD."""
    started = datetime.fromtimestamp(info.get("create_time") or 0).strftime("%H:%M")
    cmdline = " ".join(info.get("cmdline") or [])
    return (
        f"{(info.get('username') or '?'):<10} {info['pid']:>7} {info.get('ppid') or 0:>7} "
        f"{started:>5} {cmdline}"
    )


def ps(server: ServerSettings) -> int:
    """List running server processes in full format. Returns 1 when none is running."""
    processes = find_server_processes(server)
    if not processes:
        print_warning(f"No process matching {server.bootstrap_class} is running")
        return 1

    click.echo(f"{'UID':<10} {'PID':>7} {'PPID':>7} {'STIME':>5} CMD")
    for proc in processes:
        click.echo(format_process(proc.info))
    return 0


# =============================================================================
# Log files
# =============================================================================


def list_log_files(server: ServerSettings) -> list[str]:
    """
    Names of the files in the server's log directory, sorted.

    Raises:
        ConfigurationError: If the log directory is not configured or does not exist
    """
    log_dir = server.log_dir
    if not log_dir.is_dir():
        raise ConfigurationError(f"Log directory {log_dir} does not exist")
    return sorted(p.name for p in log_dir.iterdir() if p.is_file())


def tail_logs(server: ServerSettings, names: list[str] | None = None) -> int:
    """
    Follow log files until interrupted.

    Args:
        server: Server settings
        names: File names relative to the log directory. All files if empty.

    Returns:
        Exit status of tail, or 0 when interrupted by the user

    Raises:
        ConfigurationError: If the log directory is missing
        ProcessControlError: If tail cannot be run
    """
    log_dir = server.log_dir
    if names:
        paths = [log_dir / name for name in names]
        missing = [str(p) for p in paths if not p.is_file()]
        if missing:
            print_error(f"Log file not found: {', '.join(missing)}")
            return 1
    else:
        paths = [log_dir / name for name in list_log_files(server)]
        if not paths:
            print_warning(f"No log files in {log_dir}")
            return 1

    log_with_source(logger, "process", "debug", "Following logs", files=[str(p) for p in paths])
    try:
        result = subprocess.run(["tail", "-F", *[str(p) for p in paths]], check=False)
    except FileNotFoundError as e:
        raise ProcessControlError("tail is not available on this system") from e
    except KeyboardInterrupt:
        return 0
    return result.returncode
