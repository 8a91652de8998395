"""Tests for the command line entry point"""
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import main as cli
from techtimes.job_storage import JobStorage
from techtimes.models import Job


def write_jobs_csv(path):
    path.write_text(
        "createdAt,wipNumber,vehicleReg,aw\n"
        "2024-03-04 09:00,10001,AB12CDE,210\n"
        "2024-03-12 10:00,10002,AB12CDE,210\n"
        "2024-04-01 08:00,10003,AB12CDE,50\n",
        encoding="utf-8",
    )


class TestMain:

    def setup_method(self):
        self._setup_logging = cli.setup_logging
        cli.setup_logging = lambda level: None

    def teardown_method(self):
        cli.setup_logging = self._setup_logging

    def test_summary_from_file(self, tmp_path, capsys):
        jobs_csv = tmp_path / "jobs.csv"
        write_jobs_csv(jobs_csv)

        code = cli.main(['--month', '2024-03', '--data-dir', str(tmp_path / "data"),
                         '--jobs', str(jobs_csv), '--target', '180'])

        out = capsys.readouterr().out
        assert code == 0
        assert "Loaded 2 jobs for 2024-03" in out
        assert "Sold Hours: 35.00" in out
        assert "Efficiency: 20% (Poor)" in out
        assert "145.00 hours still to sell" in out

    def test_summary_from_storage_with_exports(self, tmp_path, capsys):
        storage = JobStorage(str(tmp_path / "data"))
        storage.add_job(Job(wip_number="10001", vehicle_reg="AB12CDE", aw=120, created_at="2024-03-04T09:00:00"))
        storage.set_monthly_target(5)

        xlsx = tmp_path / "out" / "report.xlsx"
        csv = tmp_path / "out" / "jobs.csv"
        code = cli.main(['--month', '2024-03', '--data-dir', str(tmp_path / "data"),
                         '--output', str(xlsx), '--csv', str(csv)])

        out = capsys.readouterr().out
        assert code == 0
        assert "Target beaten by 5.00 hours" in out
        assert xlsx.exists()
        assert csv.exists()

    def test_invalid_month(self, tmp_path, capsys):
        code = cli.main(['--month', '2024-13', '--data-dir', str(tmp_path / "data")])
        assert code == 1
        assert "Error:" in capsys.readouterr().out

    def test_non_numeric_aw_in_file(self, tmp_path, capsys):
        jobs_csv = tmp_path / "jobs.csv"
        jobs_csv.write_text("createdAt,wipNumber,vehicleReg,aw\n2024-03-04 09:00,10001,AB12CDE,lots\n",
                            encoding="utf-8")

        code = cli.main(['--month', '2024-03', '--data-dir', str(tmp_path / "data"), '--jobs', str(jobs_csv)])

        assert code == 1
        assert "Error: aw:" in capsys.readouterr().out

    def test_missing_input_file(self, tmp_path, capsys):
        missing = tmp_path / "nowhere.csv"
        code = cli.main(['--month', '2024-03', '--data-dir', str(tmp_path / "data"), '--absences', str(missing)])

        assert code == 1
        assert "file not found" in capsys.readouterr().out
