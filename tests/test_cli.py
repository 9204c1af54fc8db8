"""
Command line surface.
"""

from __future__ import annotations

from unittest.mock import Mock, patch

import pytest
from click.testing import CliRunner

from stackdeploy.cli import cli
from stackdeploy.secrets import KeePassDB, SecretStoreError


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def open_db(vault):
    with patch("stackdeploy.cli.KeePassDB.open_with_password", return_value=KeePassDB(vault)) as opener:
        yield opener


class TestGetSecret:
    def test_prints_value(self, runner, open_db):
        result = runner.invoke(cli, ["--kdbx", "s.kdbx", "--password", "pw", "get-secret", "vault/svc/creds/token"])
        assert result.exit_code == 0
        assert result.output.strip() == "abc123"
        open_db.assert_called_once_with("s.kdbx", "pw")

    def test_password_from_environment(self, runner, open_db):
        result = runner.invoke(
            cli,
            ["--kdbx", "s.kdbx", "get-secret", "Vault/svc/creds/token"],
            env={"STACK_KDBX_PASS": "from-env"},
        )
        assert result.exit_code == 0
        open_db.assert_called_once_with("s.kdbx", "from-env")

    def test_interactive_prompt(self, runner, open_db):
        result = runner.invoke(
            cli,
            ["--kdbx", "s.kdbx", "--interactive", "get-secret", "Vault/svc/creds/token"],
            input="typed\n",
            env={"STACK_KDBX_PASS": ""},
        )
        assert result.exit_code == 0
        open_db.assert_called_once_with("s.kdbx", "typed")

    def test_not_found(self, runner, open_db):
        result = runner.invoke(cli, ["--kdbx", "s.kdbx", "--password", "pw", "get-secret", "Vault/svc/creds"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_missing_password(self, runner, open_db):
        result = runner.invoke(cli, ["--kdbx", "s.kdbx", "get-secret", "x"], env={"STACK_KDBX_PASS": ""})
        assert result.exit_code == 1
        assert "--interactive is not set" in result.output
        open_db.assert_not_called()

    def test_missing_kdbx(self, runner, open_db):
        result = runner.invoke(cli, ["--password", "pw", "get-secret", "x"])
        assert result.exit_code == 1
        assert "no --kdbx file was specified" in result.output


class TestStackCommands:
    def _chain(self, write_manifest):
        return [
            write_manifest("a", 'name = "A"\nruns_on = ["*"]\n'),
            write_manifest("b", 'name = "B"\ndepends_on = ["A"]\nruns_on = ["*"]\n'),
            write_manifest("c", 'name = "C"\ndepends_on = ["B"]\nruns_on = ["box"]\n'),
        ]

    def test_deploy_in_dependency_order(self, runner, open_db, write_manifest, tmp_path):
        paths = self._chain(write_manifest)
        with patch("stackdeploy.runner.subprocess.run", return_value=Mock(returncode=0)) as run:
            result = runner.invoke(cli, [
                "--kdbx", "s.kdbx", "--password", "pw", "--hostname", "box",
                "stack-deploy", "--root", str(tmp_path),
            ])
        assert result.exit_code == 0, result.output
        assert [c.kwargs["cwd"] for c in run.call_args_list] == [str(p.parent) for p in paths]
        assert "RESULTS" in result.output

    def test_stop_in_reverse_without_database(self, runner, write_manifest, tmp_path):
        paths = self._chain(write_manifest)
        with patch("stackdeploy.runner.subprocess.run", return_value=Mock(returncode=0)) as run:
            result = runner.invoke(cli, ["--hostname", "box", "stack-stop", "--root", str(tmp_path)])
        assert result.exit_code == 0, result.output
        assert [c.kwargs["cwd"] for c in run.call_args_list] == [str(p.parent) for p in reversed(paths)]

    def test_other_host_and_explicit_files(self, runner, write_manifest):
        paths = self._chain(write_manifest)
        with patch("stackdeploy.runner.subprocess.run", return_value=Mock(returncode=0)) as run:
            result = runner.invoke(cli, [
                "--hostname", "elsewhere", "stack-stop",
                "--file", str(paths[0]), "--file", str(paths[1]),
            ])
        assert result.exit_code == 0, result.output
        assert run.call_count == 2

    def test_structural_error_touches_nothing(self, runner, write_manifest, tmp_path):
        write_manifest("a", 'name = "A"\ndepends_on = ["B"]\nruns_on = ["*"]\n')
        write_manifest("b", 'name = "B"\ndepends_on = ["A"]\nruns_on = ["*"]\n')
        with patch("stackdeploy.runner.subprocess.run") as run:
            result = runner.invoke(cli, ["stack-stop", "--root", str(tmp_path)])
        assert result.exit_code == 1
        assert "Dependency cycle detected" in result.output
        run.assert_not_called()

    def test_failed_stack_sets_exit_code(self, runner, open_db, write_manifest, tmp_path):
        self._chain(write_manifest)
        with patch("stackdeploy.runner.subprocess.run", side_effect=[Mock(returncode=0), Mock(returncode=1)]):
            result = runner.invoke(cli, [
                "--password", "pw", "--kdbx", "s.kdbx", "--hostname", "other",
                "stack-deploy", "--root", str(tmp_path),
            ])
        assert result.exit_code == 1
        assert "B: FAILED" in result.output


class TestRunCommand:
    def test_single_run_without_url(self, runner, tmp_path):
        with patch("stackdeploy.poller.run_deploy", return_value=[]) as deploy:
            result = runner.invoke(cli, [
                "--password", "pw", "--hostname", "h1",
                "run", "--repo-dir", str(tmp_path), "--poll-interval", "0",
            ])
        assert result.exit_code == 0, result.output
        deploy.assert_called_once_with(str(tmp_path), "pw", hostname="h1")

    def test_poll_interval_from_environment(self, runner, tmp_path):
        with patch("stackdeploy.poller.run_deploy", return_value=[]) as deploy:
            result = runner.invoke(
                cli,
                ["--password", "pw", "run", "--repo-dir", str(tmp_path)],
                env={"POLL_INTERVAL": "0"},
            )
        assert result.exit_code == 0, result.output
        deploy.assert_called_once()

    def test_bad_poll_interval_is_a_usage_error(self, runner, tmp_path):
        result = runner.invoke(
            cli,
            ["--password", "pw", "run", "--repo-dir", str(tmp_path)],
            env={"POLL_INTERVAL": "soon"},
        )
        assert result.exit_code == 2

    def test_unexpected_poller_error_is_reported(self, runner, tmp_path):
        with patch("stackdeploy.cli.Poller.run", side_effect=ValueError("boom")):
            result = runner.invoke(cli, ["--password", "pw", "run", "--repo-dir", str(tmp_path)])
        assert result.exit_code == 1
        assert "Poller failed" in result.output
        assert "boom" in result.output
        assert "Traceback" not in result.output


class TestErrorReporting:
    def test_other_commands_ignore_bad_poll_interval(self, runner, open_db):
        result = runner.invoke(
            cli,
            ["--kdbx", "s.kdbx", "--password", "pw", "get-secret", "Vault/svc/creds/token"],
            env={"POLL_INTERVAL": "soon"},
        )
        assert result.exit_code == 0
        assert result.output.strip() == "abc123"

    def test_corrupt_database(self, runner):
        error = SecretStoreError("failed to open kdbx file s.kdbx: Not a KeePass database")
        with patch("stackdeploy.cli.KeePassDB.open_with_password", side_effect=error):
            result = runner.invoke(cli, ["--kdbx", "s.kdbx", "--password", "pw", "get-secret", "x"])
        assert result.exit_code == 1
        assert "Not a KeePass database" in result.output
        assert "Traceback" not in result.output

    def test_unexpected_error_while_opening_database(self, runner):
        with patch("stackdeploy.cli.KeePassDB.open_with_password", side_effect=ValueError("weird")):
            result = runner.invoke(cli, ["--kdbx", "s.kdbx", "--password", "pw", "get-secret", "x"])
        assert result.exit_code == 1
        assert "Unexpected error opening database" in result.output

    def test_unexpected_error_while_stopping(self, runner, write_manifest, tmp_path):
        write_manifest("a", 'name = "A"\nruns_on = ["*"]\n')
        with patch("stackdeploy.cli.stop_stacks", side_effect=ValueError("boom")):
            result = runner.invoke(cli, ["stack-stop", "--root", str(tmp_path)])
        assert result.exit_code == 1
        assert "Stop failed" in result.output
        assert "boom" in result.output
