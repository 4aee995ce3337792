"""Tests for vadbatch CLI commands."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

from typer.testing import CliRunner

from tests.conftest import NON_UTF8_NAME, needs_byte_names
from vadbatch import __version__
from vadbatch.cli import app
from vadbatch.client import VadClient

runner = CliRunner()


class TestVersion:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestRunCommand:
    def test_scenario_summary(self, scenario_tree) -> None:
        input_dir, output_dir = scenario_tree
        with patch.object(VadClient, "submit", return_value=200) as submit:
            result = runner.invoke(
                app, ["run", str(input_dir), str(output_dir), "--addr-api", "vad1:8000/vad"]
            )

        assert result.exit_code == 0
        assert "VAD complete: 1 files processed, 2 skipped." in result.output
        assert submit.call_count == 1
        endpoint, job = submit.call_args.args
        assert endpoint == "vad1:8000/vad"
        assert Path(job.input_file).name == "a.wav"

    def test_no_endpoints_aborts(self, tmp_path: Path, make_wav) -> None:
        make_wav(tmp_path / "in" / "a.wav")
        output_dir = tmp_path / "out"

        result = runner.invoke(app, ["run", str(tmp_path / "in"), str(output_dir)])

        assert result.exit_code == 1
        assert "At least one API address" in result.output
        assert "VAD complete" not in result.output
        assert not output_dir.exists()

    def test_blank_endpoint_list_aborts(self, tmp_path: Path) -> None:
        (tmp_path / "in").mkdir()
        result = runner.invoke(
            app, ["run", str(tmp_path / "in"), str(tmp_path / "out"), "--addr-api", ","]
        )
        assert result.exit_code == 1
        assert not (tmp_path / "out").exists()

    def test_missing_input_dir_aborts(self, tmp_path: Path) -> None:
        result = runner.invoke(
            app, ["run", str(tmp_path / "missing"), str(tmp_path / "out"), "-a", "vad1"]
        )
        assert result.exit_code == 1
        assert "input directory" in result.output
        assert "VAD complete" not in result.output

    def test_per_file_failures_keep_exit_zero(self, dirs, make_wav) -> None:
        from vadbatch.exceptions import EndpointError

        input_dir, output_dir = dirs
        make_wav(input_dir / "a.wav")
        error = EndpointError("vad1", "API returned status 500", status=500)
        with patch.object(VadClient, "submit", side_effect=error):
            result = runner.invoke(app, ["run", str(input_dir), str(output_dir), "-a", "vad1"])

        assert result.exit_code == 0
        assert "VAD complete: 0 files processed, 1 skipped." in result.output

    def test_multiple_endpoints_round_robin(self, dirs, make_wav) -> None:
        input_dir, output_dir = dirs
        for i in range(6):
            make_wav(input_dir / f"f{i}.wav")
        with patch.object(VadClient, "submit", return_value=200) as submit:
            result = runner.invoke(
                app,
                [
                    "run",
                    str(input_dir),
                    str(output_dir),
                    "--addr-api",
                    "a,b",
                    "--addr-api",
                    "c",
                    "--workers",
                    "1",
                ],
            )

        assert result.exit_code == 0
        endpoints = sorted(call.args[0] for call in submit.call_args_list)
        assert endpoints == ["a", "a", "b", "b", "c", "c"]

    def test_model_passed_through(self, dirs, make_wav) -> None:
        input_dir, output_dir = dirs
        make_wav(input_dir / "a.wav")
        with patch.object(VadClient, "submit", return_value=200) as submit:
            runner.invoke(
                app, ["run", str(input_dir), str(output_dir), "-a", "vad1", "--model", "silero"]
            )
        _, job = submit.call_args.args
        assert job.model == "silero"

    def test_dry_run(self, scenario_tree) -> None:
        input_dir, output_dir = scenario_tree
        with patch.object(VadClient, "submit") as submit:
            result = runner.invoke(
                app, ["run", str(input_dir), str(output_dir), "-a", "vad1", "--dry-run"]
            )

        assert result.exit_code == 0
        assert "1 file(s) would be dispatched" in result.output
        assert "VAD complete: 0 files processed, 3 skipped." in result.output
        submit.assert_not_called()

    def test_report_written(self, scenario_tree, tmp_path: Path) -> None:
        input_dir, output_dir = scenario_tree
        report = tmp_path / "report.json"
        with patch.object(VadClient, "submit", return_value=200):
            result = runner.invoke(
                app,
                ["run", str(input_dir), str(output_dir), "-a", "vad1", "--report", str(report)],
            )

        assert result.exit_code == 0
        data = json.loads(report.read_text())
        assert data["processed"] == 1
        assert data["skipped"] == 2
        assert len(data["files"]) == 3

    def test_config_file_endpoints(self, scenario_tree, tmp_path: Path) -> None:
        input_dir, output_dir = scenario_tree
        config_file = tmp_path / "vadbatch.yaml"
        config_file.write_text("endpoints:\n  - http://vad9/vad\n")
        with patch.object(VadClient, "submit", return_value=200) as submit:
            result = runner.invoke(
                app, ["run", str(input_dir), str(output_dir), "--config", str(config_file)]
            )

        assert result.exit_code == 0
        assert submit.call_args.args[0] == "http://vad9/vad"

    def test_blocked_report_path_keeps_summary(self, dirs, make_wav, tmp_path: Path) -> None:
        input_dir, output_dir = dirs
        make_wav(input_dir / "a.wav")
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        with patch.object(VadClient, "submit", return_value=200) as submit:
            result = runner.invoke(
                app,
                [
                    "run",
                    str(input_dir),
                    str(output_dir),
                    "-a",
                    "vad1",
                    "--report",
                    str(blocker / "r.json"),
                ],
            )

        assert result.exit_code == 0
        assert "VAD complete: 1 files processed, 0 skipped." in result.output
        assert "Could not write report" in result.output
        assert submit.call_count == 1
        assert blocker.read_text() == "not a directory"

    def test_unserializable_report_keeps_summary(self, scenario_tree, tmp_path: Path) -> None:
        input_dir, output_dir = scenario_tree
        report = tmp_path / "report.json"
        with (
            patch.object(VadClient, "submit", return_value=200),
            patch("vadbatch.io.write_json", side_effect=ValueError("unserializable")),
        ):
            result = runner.invoke(
                app,
                ["run", str(input_dir), str(output_dir), "-a", "vad1", "--report", str(report)],
            )

        assert result.exit_code == 0
        assert "VAD complete: 1 files processed, 2 skipped." in result.output
        assert "Could not write report" in result.output
        assert "unserializable" in result.output
        assert not report.exists()

    @needs_byte_names
    def test_non_utf8_filename_dispatched_and_reported(
        self, dirs, make_wav, tmp_path: Path
    ) -> None:
        input_dir, output_dir = dirs
        make_wav(input_dir / NON_UTF8_NAME)
        report = tmp_path / "report.json"
        with patch.object(VadClient, "submit", return_value=200) as submit:
            result = runner.invoke(
                app,
                ["run", str(input_dir), str(output_dir), "-a", "vad1", "--report", str(report)],
            )

        assert result.exit_code == 0
        assert "VAD complete: 1 files processed, 0 skipped." in result.output
        _, job = submit.call_args.args
        assert job.input_file.endswith("caf\ufffd.wav")
        data = json.loads(report.read_text(encoding="utf-8"))
        assert data["processed"] == 1
        assert data["files"][0]["path"].endswith("caf\ufffd.wav")
        assert (output_dir.resolve() / NON_UTF8_NAME).is_dir()


class TestScanCommand:
    def test_scan_counts(self, scenario_tree) -> None:
        input_dir, _ = scenario_tree
        (input_dir / "junk.wav").write_bytes(b"junk")
        result = runner.invoke(app, ["scan", str(input_dir)])
        assert result.exit_code == 0
        assert "4 candidate(s): 2 accepted, 1 rejected, 1 unreadable" in result.output

    def test_scan_missing_dir(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["scan", str(tmp_path / "missing")])
        assert result.exit_code == 1


class TestDoctorCommand:
    def test_requires_endpoints(self) -> None:
        result = runner.invoke(app, ["doctor"])
        assert result.exit_code == 1
        assert "At least one API address" in result.output

    def test_all_reachable(self) -> None:
        ok = {"address": "vad1", "reachable": True, "status": 405, "error": None}
        with patch("vadbatch.client.check_endpoint", return_value=ok):
            result = runner.invoke(app, ["doctor", "-a", "vad1"])
        assert result.exit_code == 0
        assert "All endpoints reachable" in result.output

    def test_unreachable_fails(self) -> None:
        down = {"address": "vad1", "reachable": False, "status": None, "error": "refused"}
        with patch("vadbatch.client.check_endpoint", return_value=down):
            result = runner.invoke(app, ["doctor", "-a", "vad1"])
        assert result.exit_code == 1
        assert "unreachable" in result.output
