from pathlib import Path

import pytest
from PIL import Image

from c64_map.cli import list_images, main, output_path, resolve_metrics
from c64_map.core_types import METRICS


@pytest.fixture
def photo(tmp_path):
    path = tmp_path / "photo.png"
    Image.new("RGB", (64, 40), (200, 40, 40)).save(path)
    return path


def test_output_path_naming(tmp_path):
    src = tmp_path / "holiday.jpeg"

    assert output_path(src, "cie2000", None) == tmp_path / "c64_holiday_CIE2000.png"
    assert output_path(src, "rgb", Path("out")) == Path("out") / "c64_holiday_RGB.png"


def test_resolve_metrics():
    assert resolve_metrics("all") == METRICS
    assert resolve_metrics("cie76") == ("cie76",)


def test_single_file_writes_every_metric(photo, capsys):
    assert main([str(photo), "--workers", "2"]) == 0

    for metric in METRICS:
        out = photo.with_name(f"c64_photo_{metric.upper()}.png")
        assert out.exists()
        with Image.open(out) as im:
            assert im.size == (320, 200)
    assert "Wrote c64_photo_RGB.png" in capsys.readouterr().out


def test_single_metric_into_outdir(photo, tmp_path):
    outdir = tmp_path / "converted"

    assert main([str(photo), "--metric", "CIE94", "--outdir", str(outdir)]) == 0

    assert sorted(p.name for p in outdir.iterdir()) == ["c64_photo_CIE94.png"]


def test_missing_source_exits_2(tmp_path, capsys):
    assert main([str(tmp_path / "nope.png")]) == 2
    assert "not found" in capsys.readouterr().err


def test_unknown_metric_is_rejected(photo):
    with pytest.raises(SystemExit):
        main([str(photo), "--metric", "hsv"])


def test_folder_reports_failures_and_skips_outputs(tmp_path, capsys):
    Image.new("RGB", (30, 20), (0, 0, 0)).save(tmp_path / "a.png")
    Image.new("RGB", (30, 20), (255, 255, 255)).save(tmp_path / "c64_old.png")
    (tmp_path / "broken.png").write_bytes(b"nope")
    (tmp_path / "notes.txt").write_text("hello")

    assert [p.name for p in list_images(tmp_path)] == ["a.png", "broken.png"]
    assert main([str(tmp_path), "--metric", "rgb", "--jobs", "2"]) == 1

    assert (tmp_path / "c64_a_RGB.png").exists()
    assert not (tmp_path / "c64_c64_old_RGB.png").exists()
    captured = capsys.readouterr()
    assert "broken.png" in captured.err
    assert "1 of 2 image(s) failed" in captured.out


def test_empty_folder_is_not_an_error(tmp_path, capsys):
    assert main([str(tmp_path)]) == 0
    assert "no images" in capsys.readouterr().out


def test_debug_prints_colour_usage(photo, capsys):
    assert main([str(photo), "--metric", "rgb", "--debug"]) == 0

    out = capsys.readouterr().out
    assert "[debug]" in out
    assert "Light Red" in out or "Red" in out


def test_oversized_image_does_not_stop_folder(tmp_path, monkeypatch, capsys):
    Image.new("RGB", (64, 40)).save(tmp_path / "big.png")
    Image.new("RGB", (20, 10)).save(tmp_path / "small.png")
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)

    assert main([str(tmp_path), "--metric", "rgb"]) == 1

    assert (tmp_path / "c64_small_RGB.png").exists()
    assert not (tmp_path / "c64_big_RGB.png").exists()
    assert "big.png" in capsys.readouterr().err


def test_parallel_jobs_keep_each_file_log_together(tmp_path, capsys):
    for name in ("a", "b", "c", "d"):
        Image.new("RGB", (30, 20)).save(tmp_path / f"{name}.png")

    assert main([str(tmp_path), "--metric", "rgb", "--jobs", "4"]) == 0

    out = capsys.readouterr().out
    for name in ("a", "b", "c", "d"):
        banner = out.index(f"=== {name}.png ===")
        wrote = out.index(f"Wrote c64_{name}_RGB.png")
        assert banner < wrote
        # no other file's banner between this file's banner and its output
        assert "===" not in out[banner + len(f"=== {name}.png ===") : wrote]
