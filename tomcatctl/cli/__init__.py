"""
CLI Client Module.

Command-line client built with Click for the server's manager text
interface, plus local server process control.

Architecture:
- CLI is a thin presentation layer over the manager text API
- Manager calls go over HTTP (httpx) with basic authentication
- Responses are printed as received, except the application list
- Without a command, an interactive shell exposes the same commands

Usage:
    tomcatctl --help
    tomcatctl list
    tomcatctl deploy app.war
    tomcatctl  # Interactive mode
"""
