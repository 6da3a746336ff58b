"""
Core Module.

Configuration, logging and error types shared by the CLI.
"""
