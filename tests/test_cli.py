"""Tests for the command line entry point."""

import soundfile as sf

from beatmarker.cli import main
from tests.conftest import SR, generate_clicks


def _write_clicks(path, times=(0.5, 1.5), duration=2.5):
    sf.write(str(path), generate_clicks(list(times), duration, n_channels=2).T, SR)
    return path


def test_analyze_prints_markers(tmp_path, capsys):
    wav = _write_clicks(tmp_path / "song.wav")
    assert main(["analyze", str(wav), "--sensitivity", "0.5"]) == 0
    out = capsys.readouterr().out
    assert "song.wav: 2 markers" in out
    assert "00:00:00:1" in out
    assert "Beat 2" in out


def test_analyze_writes_export(tmp_path, capsys):
    wav = _write_clicks(tmp_path / "song.wav")
    out_path = tmp_path / "markers.fcpxml"
    assert main(["analyze", str(wav), "--format", "fcpxml", "-o", str(out_path)]) == 0
    text = out_path.read_text(encoding="utf-8")
    assert text.count("<marker ") == 2
    assert f"Wrote {out_path}" in capsys.readouterr().out


def test_analyze_default_export_path(tmp_path):
    wav = _write_clicks(tmp_path / "song.wav")
    assert main(["analyze", str(wav), "--format", "premiere_xml"]) == 0
    assert "<marker>" in (tmp_path / "song_markers.xml").read_text(encoding="utf-8")


def test_analyze_undecodable_file(tmp_path, capsys):
    bad = tmp_path / "bad.wav"
    bad.write_bytes(b"not audio")
    assert main(["analyze", str(bad)]) == 1
    assert "Error:" in capsys.readouterr().err
