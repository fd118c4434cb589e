"""Tests for the command-line front end."""

import re

import pytest

from inventory_kernel.cli import build_parser, main

UUID_RE = r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"


@pytest.fixture
def run(tmp_path, capsys):
    """Invoke the CLI against a throwaway SQLite database."""
    url = f"sqlite:///{tmp_path / 'cli.db'}"

    def _run(*args: str, actor: str = "tester", role: str = "admin"):
        code = main(["--database-url", url, "--actor", actor, "--role", role, *args])
        captured = capsys.readouterr()
        return code, captured.out, captured.err

    code, _, _ = _run("init-db")
    assert code == 0
    return _run


@pytest.fixture
def expected_csv(tmp_path):
    path = tmp_path / "expected.csv"
    path.write_text(
        "primary_key,location_code,room,description\n"
        "A1,L1,R1,Plasma\n"
        "A2,L1,R1,Serum\n"
        "A3,L2,R2,Buffer\n",
        encoding="utf-8",
    )
    return path


def _cycle_id(out: str) -> str:
    return re.search(UUID_RE, out).group(0)


class TestCli:

    def test_full_cycle(self, run, expected_csv):
        code, out, _ = run("create-cycle")
        assert code == 0
        cycle_id = _cycle_id(out)

        code, out, _ = run("import", cycle_id, str(expected_csv))
        assert "Imported 3 items" in out

        assert "OK:" in run("scan", cycle_id, "L1", "A1")[1]
        assert "WRONG_LOCATION:" in run("scan", cycle_id, "L2", "A2")[1]
        assert "OK:" in run("scan", cycle_id, "L2", "A3")[1]

        code, out, _ = run("locations", cycle_id)
        assert "1/2" in out and "1/1" in out

        code, out, _ = run("confirm-location", cycle_id, "L1")
        assert "Missing: A2" in out
        run("confirm-location", cycle_id, "L2")

        code, out, _ = run("readiness", cycle_id)
        assert "Not ready to close" in out
        assert "2 discrepancies are not confirmed yet" in out

        code, out, _ = run("discrepancies", cycle_id)
        ids = re.findall(rf"^({UUID_RE})", out, flags=re.MULTILINE)
        assert len(ids) == 2
        for discrepancy_id in ids:
            code, out, _ = run("confirm", discrepancy_id, "--comment", "checked")
            assert code == 0

        code, out, _ = run("close", cycle_id)
        assert code == 0
        assert "closed" in out

        code, out, _ = run("audit", "--cycle", cycle_id, "--action", "cycle_closed")
        assert "cycle_closed" in out
        assert "tester" in out

    def test_kernel_error_exit_code(self, run):
        run("create-cycle")
        code, _, err = run("create-cycle")
        assert code == 1
        assert "OPEN_CYCLE_EXISTS" in err

    def test_duplicate_scan_reported(self, run, expected_csv):
        cycle_id = _cycle_id(run("create-cycle")[1])
        run("import", cycle_id, str(expected_csv))
        run("scan", cycle_id, "L1", "A1")
        code, _, err = run("scan", cycle_id, "L1", "A1")
        assert code == 1
        assert "DUPLICATE_SCAN" in err

    def test_cycles_listing_shows_counts(self, run, expected_csv):
        cycle_id = _cycle_id(run("create-cycle")[1])
        run("import", cycle_id, str(expected_csv))
        run("scan", cycle_id, "L1", "A1")
        run("scan", cycle_id, "L1", "B9")

        code, out, _ = run("cycles")

        assert code == 0
        assert cycle_id in out
        assert "open" in out
        assert "expected 3  scanned 2 (1 ok)" in out

    def test_unsupported_import_file(self, run, tmp_path):
        cycle_id = _cycle_id(run("create-cycle")[1])
        bad = tmp_path / "expected.txt"
        bad.write_text("nope")
        code, _, err = run("import", cycle_id, str(bad))
        assert code == 1
        assert "Unsupported" in err

    def test_parser_requires_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])
