"""Tests for the compose, inspect and plan CLIs."""

from unittest.mock import patch

import pytest

from clipcollage import cli, inspect_cli, plan_cli
from clipcollage.normalize import ProbeResult, Reencode, ReencodeError


def _touch(tmp_path, name):
    path = tmp_path / name
    path.write_bytes(b"")
    return str(path)


@pytest.fixture
def fake_manifest(tmp_path, write_manifest):
    """Manifest over three empty placeholder sources (never decoded)."""
    paths = [_touch(tmp_path, f"c{i}.mp4") for i in range(3)]
    return write_manifest({
        "clips": [
            {"path": p, "start": 0, "end": 2 + i} for i, p in enumerate(paths)
        ],
    })


class TestTerminalConfirm:
    @pytest.mark.parametrize("answer, expected", [
        ("y", True), ("YES", True), (" y ", True), ("", False), ("n", False),
    ])
    def test_answers(self, answer, expected):
        with patch("builtins.input", return_value=answer):
            assert cli.terminal_confirm("big file") is expected


class TestComposeDryRun:
    def test_prints_ffmpeg_command(self, fake_manifest, capsys):
        cli.main(["--manifest", fake_manifest, "--dry-run", "--skip-normalize"])
        out = capsys.readouterr().out
        assert "Collage: 3 clips, 540x960, desktop" in out
        assert "-filter_complex" in out
        assert "color=c=black:s=540x960:d=2[bg]" in out
        assert "amix=inputs=3:duration=longest" in out
        assert "collage.mp4" in out

    def test_writes_preview(self, fake_manifest, tmp_path):
        preview = tmp_path / "layout.png"
        cli.main([
            "--manifest", fake_manifest, "--dry-run", "--skip-normalize",
            "--preview", str(preview),
        ])
        assert preview.exists()

    def test_output_required_without_dry_run(self, fake_manifest):
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--manifest", fake_manifest])
        assert exc_info.value.code == 2

    def test_missing_source_exits(self, tmp_path, write_manifest, capsys):
        manifest = write_manifest({
            "clips": [{"path": str(tmp_path / "gone.mp4"), "start": 0, "end": 1}],
        })
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--manifest", manifest, "--dry-run"])
        assert exc_info.value.code == 1
        assert "gone.mp4" in capsys.readouterr().err

    def test_bad_range_exits(self, tmp_path, write_manifest, capsys):
        src = _touch(tmp_path, "a.mp4")
        manifest = write_manifest({"clips": [{"path": src, "start": 3, "end": 1}]})
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--manifest", manifest, "--dry-run"])
        assert exc_info.value.code == 1
        assert "Select a time range" in capsys.readouterr().err


class TestComposeNormalization:
    @patch("clipcollage.normalize.probe_source")
    def test_passthrough_sources_used_as_is(self, mock_probe, fake_manifest, capsys):
        mock_probe.return_value = ProbeResult(640, 480, "h264", "aac", 10.0)
        cli.main(["--manifest", fake_manifest, "--dry-run"])
        out = capsys.readouterr().out
        assert "Normalized 3 sources" in out
        assert "OPT" not in out

    @patch("clipcollage.normalize.execute_reencode")
    @patch("clipcollage.normalize.probe_source")
    def test_oversized_source_swapped(self, mock_probe, mock_exec, fake_manifest,
                                      tmp_path, capsys):
        mock_probe.side_effect = lambda p: ProbeResult(
            4000 if p.endswith("c1.mp4") else 640, 2000, "h264", "aac", 10.0,
        )
        mock_exec.side_effect = lambda plan, cancel: plan.planned_output_path
        work = tmp_path / "work"
        cli.main(["--manifest", fake_manifest, "--dry-run", "--yes",
                  "--work-dir", str(work)])
        out = capsys.readouterr().out
        assert "AUTO" in out
        assert f"-> {work / 'c1_normalized.mp4'}" in out
        assert str(work / "c1_normalized.mp4") in out.splitlines()[-1]

    @patch("clipcollage.normalize.probe_source")
    def test_video_only_source_leaves_mix(self, mock_probe, fake_manifest, capsys):
        mock_probe.side_effect = lambda p: ProbeResult(
            640, 480, "h264", None if p.endswith("c1.mp4") else "aac", 10.0,
        )
        cli.main(["--manifest", fake_manifest, "--dry-run"])
        out = capsys.readouterr().out
        assert "MUTE   [1]" in out
        command = out.splitlines()[-1]
        assert "amix=inputs=2" in command
        assert "[0:a]" in command
        assert "[1:a]" not in command

    @patch("clipcollage.normalize.probe_source")
    def test_declined_source_aborts(self, mock_probe, fake_manifest, capsys):
        mock_probe.return_value = ProbeResult(4000, 2000, "h264", "aac", 10.0)
        with patch("builtins.input", return_value="n"):
            with pytest.raises(SystemExit) as exc_info:
                cli.main(["--manifest", fake_manifest, "--dry-run"])
        assert exc_info.value.code == 1
        assert "--skip-failed" in capsys.readouterr().err

    @patch("clipcollage.normalize.execute_reencode")
    @patch("clipcollage.normalize.probe_source")
    def test_skip_failed_drops_source(self, mock_probe, mock_exec, fake_manifest, capsys):
        mock_probe.side_effect = lambda p: ProbeResult(
            4000 if p.endswith("c0.mp4") else 640, 480, "h264", "aac", 10.0,
        )
        mock_exec.side_effect = ReencodeError("c0.mp4", 1, "encoder exploded")
        cli.main(["--manifest", fake_manifest, "--dry-run", "--yes", "--skip-failed"])
        captured = capsys.readouterr()
        assert "SKIP   [0]" in captured.out
        assert "encoder exploded" in captured.err
        assert "amix=inputs=2" in captured.out


class TestInspectCli:
    @patch("clipcollage.normalize.probe_source")
    def test_plan_only_does_not_prompt_or_run(self, mock_probe, capsys):
        mock_probe.return_value = ProbeResult(4000, 2000, "h264", "aac", 10.0)
        with patch("clipcollage.inspect_cli.execute_reencode") as mock_exec, \
                patch("builtins.input") as mock_input:
            inspect_cli.main(["big.mp4", "--plan-only"])
        mock_exec.assert_not_called()
        mock_input.assert_not_called()
        assert "re-encode -> big_normalized.mp4" in capsys.readouterr().out

    @patch("clipcollage.normalize.probe_source")
    def test_reencode_runs_when_accepted(self, mock_probe, capsys):
        mock_probe.return_value = ProbeResult(4000, 2000, "h264", "aac", 10.0)
        with patch("clipcollage.inspect_cli.execute_reencode",
                   return_value="big_normalized.mp4") as mock_exec:
            inspect_cli.main(["big.mp4", "--yes"])
        plan = mock_exec.call_args[0][0]
        assert isinstance(plan, Reencode)
        assert "DONE   big_normalized.mp4" in capsys.readouterr().out

    @patch("clipcollage.normalize.probe_source")
    def test_failure_exits_nonzero(self, mock_probe):
        mock_probe.return_value = ProbeResult(4000, 2000, "h264", "aac", 10.0)
        with patch("clipcollage.inspect_cli.execute_reencode",
                   side_effect=ReencodeError("big.mp4", 1, "")):
            with pytest.raises(SystemExit) as exc_info:
                inspect_cli.main(["big.mp4", "--yes"])
        assert exc_info.value.code == 1

    @patch("clipcollage.normalize.probe_source")
    def test_decline_exits_nonzero(self, mock_probe, capsys):
        mock_probe.return_value = ProbeResult(4000, 2000, "h264", "aac", 10.0)
        with patch("clipcollage.inspect_cli.execute_reencode") as mock_exec, \
                patch("builtins.input", return_value="n"):
            with pytest.raises(SystemExit) as exc_info:
                inspect_cli.main(["big.mp4"])
        assert exc_info.value.code == 1
        mock_exec.assert_not_called()
        captured = capsys.readouterr()
        assert "big.mp4: declined" in captured.out
        assert "FAIL   big.mp4" in captured.err

    @patch("clipcollage.normalize.probe_source", return_value=None)
    def test_unknown_reported(self, _, capsys):
        inspect_cli.main(["weird.bin"])
        assert "pass-through (probe: probe failed)" in capsys.readouterr().out


class TestPlanCli:
    def test_five_clips(self, capsys):
        plan_cli.main(["--count", "5"])
        out = capsys.readouterr().out
        assert "grid 540x816 at (0, 72)" in out
        assert "4: row 2 col 0  500x376 @ (20, 492)  (spans)" in out

    def test_manifest_count(self, fake_manifest, capsys):
        plan_cli.main(["--manifest", fake_manifest])
        assert "2: row 1 col 0  500x376" in capsys.readouterr().out

    def test_count_required(self):
        with pytest.raises(SystemExit):
            plan_cli.main([])

    def test_preview(self, tmp_path):
        out = tmp_path / "plan.png"
        plan_cli.main(["--count", "3", "--preview", str(out)])
        assert out.exists()
