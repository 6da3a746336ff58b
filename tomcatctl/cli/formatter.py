"""
Response Formatting.

Turns manager text responses into terminal output.

Modes:
- Tabular: the application list as an aligned, sorted table
- Passthrough: the raw response text
- Context enumeration: deployed context paths on one line, for completion

List response format:
    OK - Listed applications for virtual host [localhost]
    /manager:running:0:manager
    /examples:stopped:0:/opt/tomcat/webapps/examples
"""

from dataclasses import dataclass

from tomcatctl.core.logging import get_logger

logger = get_logger(__name__)

FAIL_PREFIX = "FAIL"

PATH_WIDTH = 32
STATUS_WIDTH = 8
SESSIONS_WIDTH = 8


@dataclass(frozen=True)
class Application:
    """One deployed application from a list response."""

    path: str
    status: str
    sessions: str
    docbase: str

    def format_row(self) -> str:
        return _format_columns(self.path, self.status, self.sessions, self.docbase)


def _format_columns(path: str, status: str, sessions: str, docbase: str) -> str:
    return (
        f"{path:<{PATH_WIDTH}} {status:<{STATUS_WIDTH}} "
        f"{sessions:>{SESSIONS_WIDTH}}  {docbase}"
    ).rstrip()


TABLE_HEADER = _format_columns("Context Path", "Status", "Sessions", "Document Base")
TABLE_SEPARATOR = _format_columns(
    "-" * PATH_WIDTH, "-" * STATUS_WIDTH, "-" * SESSIONS_WIDTH, "-" * len("Document Base")
)


def is_failure(text: str) -> bool:
    """True when the response's first line reports a manager failure."""
    return text.startswith(FAIL_PREFIX)


def parse_applications(text: str) -> list[Application]:
    """
    Parse the records of a successful list response.

    The first line is the status line and is skipped. Each further non-blank
    line is split at its first three colons, so a document base containing a
    colon (e.g. a Windows drive letter) stays intact.

    Args:
        text: Raw list response

    Returns:
        Application records in response order
    """
    applications = []
    for line in text.splitlines()[1:]:
        if not line.strip():
            continue
        parts = line.split(":", 3)
        if len(parts) != 4:
            logger.warning("Skipping malformed list record", line=line)
            continue
        applications.append(Application(*parts))
    return applications


def format_table(text: str) -> str:
    """
    Render a list response as a table.

    A FAIL response is returned as its first line only, without a header.

    Args:
        text: Raw list response

    Returns:
        Header line, separator line and one row per application sorted by row text
    """
    if is_failure(text):
        return text.splitlines()[0]

    rows = sorted(app.format_row() for app in parse_applications(text))
    return "\n".join([TABLE_HEADER, TABLE_SEPARATOR, *rows])


def format_contexts(text: str) -> str:
    """Context paths of a list response, space-separated. Empty for a FAIL response."""
    if is_failure(text):
        return ""
    return " ".join(app.path for app in parse_applications(text))


def passthrough(text: str) -> str:
    """Raw response text, unmodified."""
    return text
