"""
tomcatctl.

Command-line and interactive client for the Tomcat manager text interface,
plus local helpers for controlling the server process.
"""

__version__ = "1.0.0"
