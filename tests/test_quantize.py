import math

import numpy as np
import pytest

from c64_map.colour_convert import rgb_to_lab
from c64_map.core_types import METRICS, BlockRect, BlockSample
from c64_map.errors import DegenerateBlockError, UnsupportedLayoutError
from c64_map.palette_data import c64_palette
from c64_map.quantize import (
    block_geometry,
    block_rect,
    closest_palette_index,
    convert_all,
    convert_image,
    convert_image_indices,
    paint_indices,
    target_size,
)


@pytest.mark.parametrize(
    "width, height", [(640, 400), (331, 97), (1, 1), (1000, 7), (50, 120)]
)
def test_target_size(width, height):
    assert target_size(width, height) == (320, math.ceil(320 / (width / height)))


def test_target_size_common_case():
    assert target_size(640, 400) == (320, 200)


def test_target_size_rejects_empty_source():
    with pytest.raises(DegenerateBlockError):
        target_size(0, 10)


def test_block_geometry_uses_inset_rectangles():
    geom = block_geometry(640, 400)

    assert (geom.block_width, geom.block_height) == (4, 2)
    assert geom.cells == 160
    assert block_rect(geom, 0, 0) == BlockRect(0, 0, 3, 1)
    assert block_rect(geom, 159, 199) == BlockRect(636, 398, 639, 399)


@pytest.mark.parametrize("width, height", [(1, 1), (3, 2), (1000, 7), (50, 120)])
def test_block_geometry_small_sources_stay_inside(width, height):
    geom = block_geometry(width, height)

    assert np.all(geom.x1 > geom.x0)
    assert np.all(geom.y1 > geom.y0)
    assert geom.x0.min() >= 0 and geom.x1.max() <= width
    assert geom.y0.min() >= 0 and geom.y1.max() <= height


@pytest.mark.parametrize("metric", METRICS)
def test_output_shape_and_pixel_doubling(random_grid, metric):
    out = convert_image(random_grid, metric)

    assert out.shape == (94, 320, 4)
    assert out.dtype == np.uint8
    assert np.all(out[..., 3] == 255)
    np.testing.assert_array_equal(out[:, 0::2], out[:, 1::2])


@pytest.mark.parametrize("metric", METRICS)
def test_output_uses_only_palette_colours(random_grid, metric):
    out = convert_image(random_grid, metric)
    pal = c64_palette()

    colours = {tuple(int(c) for c in px) for px in out[..., :3].reshape(-1, 3)}
    assert colours <= {item.rgb for item in pal.items}


@pytest.mark.parametrize("metric", METRICS)
@pytest.mark.parametrize("size", [(640, 400), (3, 2), (1, 1), (1000, 7), (50, 120)])
@pytest.mark.parametrize("colour", [(200, 40, 40), (0x6F, 0xA3, 0xB1), (10, 10, 10)])
def test_uniform_source_maps_to_one_colour(make_grid, metric, size, colour):
    width, height = size
    grid = make_grid(width, height, colour)
    pal = c64_palette()
    expected = closest_palette_index(
        BlockSample(lab=rgb_to_lab(colour), rgb=colour), metric, pal
    )

    out = convert_image(grid, metric, pal)

    assert out.shape == (math.ceil(320 / (width / height)), 320, 4)
    assert np.all(out[..., :3] == np.array(pal.colour(expected), dtype=np.uint8))


def test_palette_colour_source_is_reproduced(make_grid):
    grid = make_grid(64, 40, (0x6F, 0x3C, 0x85))

    for metric in METRICS:
        out = convert_image(grid, metric)
        assert tuple(int(c) for c in out[0, 0, :3]) == (0x6F, 0x3C, 0x85)


def test_indices_and_paint(random_grid):
    indices = convert_image_indices(random_grid, "cie94")

    assert indices.shape == (94, 160)
    assert indices.dtype == np.uint8
    assert indices.max() <= 15
    np.testing.assert_array_equal(
        paint_indices(indices), convert_image(random_grid, "cie94")
    )


def test_convert_all_matches_single_conversions(random_grid):
    before = random_grid.copy()

    outputs = convert_all(random_grid, workers=4)

    assert list(outputs) == list(METRICS)
    for metric in METRICS:
        np.testing.assert_array_equal(outputs[metric], convert_image(random_grid, metric))
    np.testing.assert_array_equal(random_grid, before)


def test_convert_all_subset(random_grid):
    outputs = convert_all(random_grid, ["cie2000", "rgb"])

    assert list(outputs) == ["cie2000", "rgb"]


def test_threaded_lab_gives_same_result():
    rng = np.random.default_rng(42)
    grid = rng.integers(0, 256, size=(300, 40, 4), dtype=np.uint8)

    np.testing.assert_array_equal(
        convert_image(grid, "cie76", workers=4), convert_image(grid, "cie76")
    )


def test_rejects_padded_grid(make_grid):
    padded = make_grid(6, 4)[:, :5]

    with pytest.raises(UnsupportedLayoutError):
        convert_image(padded, "rgb")


@pytest.mark.parametrize(
    "grid",
    [
        np.zeros((4, 4, 3), dtype=np.uint8),
        np.zeros((4, 4, 4), dtype=np.float32),
        np.zeros((0, 4, 4), dtype=np.uint8),
    ],
)
def test_rejects_unsupported_layouts(grid):
    with pytest.raises(UnsupportedLayoutError):
        convert_all(grid)
