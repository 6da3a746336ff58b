"""
tomcatctl Entry Script.

Runs the CLI from a source checkout without installing the package.

Usage:
    python cli.py --help
    python cli.py list
    python cli.py stop /app
    python cli.py           # interactive shell
"""

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from tomcatctl.cli.app import main  # noqa: E402

if __name__ == "__main__":
    main(prog_name="tomcatctl")
