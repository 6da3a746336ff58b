"""Entry point for `python -m tomcatctl`."""

from tomcatctl.cli.app import main

if __name__ == "__main__":
    main(prog_name="tomcatctl")
