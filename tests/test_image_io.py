import numpy as np
import pytest
from PIL import Image

from c64_map.errors import ImageDecodeError, UnsupportedLayoutError
from c64_map.image_io import (
    check_layout,
    decode_image_bytes,
    encode_png_bytes,
    is_image_file,
    load_image_rgba,
    save_image_rgba,
)


def test_png_round_trip(tmp_path, random_grid):
    path = save_image_rgba(tmp_path / "out.png", random_grid)

    loaded = load_image_rgba(path)

    np.testing.assert_array_equal(loaded, random_grid)


def test_save_forces_png_suffix(tmp_path, make_grid):
    path = save_image_rgba(tmp_path / "out.jpg", make_grid(3, 2))

    assert path.name == "out.png"
    assert path.exists()
    assert not (tmp_path / "out.jpg").exists()
    with Image.open(path) as im:
        assert im.format == "PNG"
        assert im.mode == "RGBA"


def test_rgb_and_palette_images_load_as_rgba(tmp_path):
    Image.new("RGB", (5, 3), (1, 2, 3)).save(tmp_path / "rgb.png")
    Image.new("P", (4, 2)).save(tmp_path / "pal.gif")

    rgb = load_image_rgba(tmp_path / "rgb.png")
    pal = load_image_rgba(tmp_path / "pal.gif")

    assert rgb.shape == (3, 5, 4)
    assert tuple(rgb[0, 0]) == (1, 2, 3, 255)
    assert pal.shape == (2, 4, 4)
    check_layout(pal)


def test_garbage_file_raises_decode_error(tmp_path):
    bad = tmp_path / "bad.png"
    bad.write_bytes(b"definitely not an image")

    with pytest.raises(ImageDecodeError):
        load_image_rgba(bad)
    assert not is_image_file(bad)


def test_missing_file_is_not_wrapped(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_image_rgba(tmp_path / "missing.png")


def test_bytes_round_trip(random_grid):
    data = encode_png_bytes(random_grid)

    assert data[:8] == b"\x89PNG\r\n\x1a\n"
    np.testing.assert_array_equal(decode_image_bytes(data), random_grid)


def test_decode_garbage_bytes():
    with pytest.raises(ImageDecodeError):
        decode_image_bytes(b"\x00\x01\x02")


def test_encode_rejects_bad_layout():
    with pytest.raises(UnsupportedLayoutError):
        encode_png_bytes(np.zeros((2, 2, 3), dtype=np.uint8))


def test_is_image_file(tmp_path, make_grid):
    path = save_image_rgba(tmp_path / "ok.png", make_grid(2, 2))

    assert is_image_file(path)


def test_oversized_image_raises_decode_error(tmp_path, monkeypatch):
    path = tmp_path / "huge.png"
    Image.new("RGB", (64, 40)).save(path)
    data = path.read_bytes()
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)

    with pytest.raises(ImageDecodeError):
        load_image_rgba(path)
    with pytest.raises(ImageDecodeError):
        decode_image_bytes(data)
