"""
Integration Tests for Manager Workflows.

Drives sequences of commands through the dispatcher and checks that the
server state and the interactive shell's completion follow along.
"""

from tomcatctl.cli.shell import ManagerShell


def listed_paths(output: str) -> list[str]:
    """Context paths from the rows of a printed application table."""
    return [line.split()[0] for line in output.splitlines()[2:] if line.strip()]


class TestDeploymentLifecycle:

    def test_deploy_stop_start_undeploy(self, run, tomcat, capsys, tmp_path):
        archive = tmp_path / "shop.war"
        archive.write_bytes(b"PK\x03\x04 war contents")

        assert run(["deploy", str(archive)]) == 0
        assert "Deployed application at context path [/shop]" in capsys.readouterr().out
        assert tomcat.uploads["/shop"] == b"PK\x03\x04 war contents"

        assert run(["stop", "/shop"]) == 0
        capsys.readouterr()
        assert run(["list"]) == 0
        table = capsys.readouterr().out
        row = next(line for line in table.splitlines() if line.startswith("/shop"))
        assert row.split()[1] == "stopped"

        assert run(["start", "/shop"]) == 0
        assert tomcat.apps["/shop"] == "running"

        assert run(["undeploy", "/shop"]) == 0
        capsys.readouterr()
        run(["list"])
        assert listed_paths(capsys.readouterr().out) == ["/manager"]

    def test_deploy_twice_reports_failure_but_exits_zero(self, run, capsys, tmp_path):
        archive = tmp_path / "shop.war"
        archive.write_bytes(b"war")
        run(["deploy", str(archive)])
        capsys.readouterr()

        assert run(["deploy", str(archive)]) == 0
        assert "FAIL - Application already exists at path [/shop]" in capsys.readouterr().out

    def test_deploy_at_explicit_path(self, run, tomcat, tmp_path):
        archive = tmp_path / "build-1.2.war"
        archive.write_bytes(b"war")

        assert run(["deploy", str(archive), "/store"]) == 0
        assert "/store" in tomcat.apps

    def test_several_contexts_in_one_command(self, run, tomcat, capsys):
        tomcat.apps.update({"/a": "running", "/b": "running"})

        assert run(["stop", "/a", "/b"]) == 0

        out = capsys.readouterr().out
        assert "Stopped application at context path [/a]" in out
        assert "Stopped application at context path [/b]" in out
        assert tomcat.apps["/a"] == tomcat.apps["/b"] == "stopped"

    def test_expire_sessions(self, run, tomcat, capsys):
        tomcat.apps["/shop"] = "running"
        tomcat.sessions["/shop"] = 4

        assert run(["expire", "/shop", "0"]) == 0

        assert "4 sessions were expired" in capsys.readouterr().out
        assert "/shop" not in tomcat.sessions


class TestShellFollowsServerState:

    def test_completion_sees_new_deployments(self, live_session, run, tomcat, tmp_path):
        shell = ManagerShell(live_session, run)
        archive = tmp_path / "blog.war"
        archive.write_bytes(b"war")

        assert shell.completedefault("", "start ", 6, 6) == ["/manager"]

        shell.onecmd(f"deploy {archive}")

        assert shell.last_status == 0
        assert shell.completedefault("/b", "undeploy /b", 9, 11) == ["/blog"]

        shell.onecmd("undeploy /blog")

        assert shell.completedefault("/b", "undeploy /b", 9, 11) == []

    def test_shell_reports_last_status(self, live_session, run, capsys):
        shell = ManagerShell(live_session, run)

        shell.onecmd("expire")
        assert shell.last_status == 2

        shell.onecmd("list")
        assert shell.last_status == 0
        assert "/manager" in capsys.readouterr().out
