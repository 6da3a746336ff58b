"""
CLI Session.

State shared by every command in one tomcatctl process: the configuration
and the manager client built from it. Created once at startup.
"""

from dataclasses import dataclass

from tomcatctl.cli.client import ManagerClient
from tomcatctl.core.config import Config


@dataclass
class CliSession:
    config: Config
    client: ManagerClient

    @classmethod
    def from_config(cls, config: Config) -> "CliSession":
        return cls(config=config, client=ManagerClient(config.manager))

    def close(self) -> None:
        self.client.close()
