"""Tests for the payroll CLI."""

from uuid import uuid4

import pytest

from hrms_payroll.cli import PayrollCli, parse_uuid


class TestPayrollCli:
    """Test argument parsing and dispatch."""

    def test_no_command_prints_help(self, capsys):
        assert PayrollCli().run([]) == 1
        assert "Payroll operational tools" in capsys.readouterr().out

    def test_parse_process(self):
        tenant_id = uuid4()

        args = PayrollCli().parser.parse_args(
            ["process", "--tenant-id", str(tenant_id), "--month", "3", "--year", "2026"]
        )

        assert args.command == "process"
        assert args.tenant_id == tenant_id
        assert (args.month, args.year) == (3, 2026)
        assert args.user_id is None

    def test_bad_uuid_is_rejected(self):
        with pytest.raises(SystemExit):
            PayrollCli().parser.parse_args(["list-runs", "--tenant-id", "nope"])

    def test_parse_uuid(self):
        value = uuid4()
        assert parse_uuid(str(value)) == value

    def test_end_to_end_on_sqlite(self, tmp_path, capsys):
        url = f"sqlite+aiosqlite:///{tmp_path / 'cli.db'}"
        tenant_id = str(uuid4())
        cli = PayrollCli()

        assert cli.run(["--database-url", url, "init-db"]) == 0
        assert cli.run(["--database-url", url, "list-runs", "--tenant-id", tenant_id]) == 0
        assert "No payroll runs." in capsys.readouterr().out

        assert cli.run(
            ["--database-url", url, "process", "--tenant-id", tenant_id,
             "--month", "13", "--year", "2026"]
        ) == 1
        assert "VALIDATION_ERROR" in capsys.readouterr().err
