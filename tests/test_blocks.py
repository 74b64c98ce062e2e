import numpy as np
import pytest

from c64_map.blocks import average_block, average_blocks, summed_area
from c64_map.colour_convert import rgb_to_lab, rgb_to_lab_array
from c64_map.core_types import BlockRect
from c64_map.errors import ConversionError, DegenerateBlockError, OutOfBoundsError
from c64_map.quantize import block_geometry, block_rect


def test_uniform_block_mean(make_grid):
    grid = make_grid(8, 6, (10, 200, 30))

    sample = average_block(grid, BlockRect(1, 1, 5, 4))

    assert sample.rgb == (10, 200, 30)
    assert sample.lab == pytest.approx(rgb_to_lab((10, 200, 30)))


def test_rgb_mean_truncates(make_grid):
    grid = make_grid(2, 1)
    grid[0, 0, :3] = (0, 0, 0)
    grid[0, 1, :3] = (1, 3, 255)

    sample = average_block(grid, BlockRect(0, 0, 2, 1))

    assert sample.rgb == (0, 1, 127)


def test_lab_mean_is_mean_of_pixel_labs(make_grid):
    grid = make_grid(2, 1)
    grid[0, 1, :3] = (255, 255, 255)

    sample = average_block(grid, BlockRect(0, 0, 2, 1))

    assert sample.lab[0] == pytest.approx(50.0, abs=1e-4)


def test_empty_block_raises(make_grid):
    grid = make_grid(4, 4)

    with pytest.raises(DegenerateBlockError):
        average_block(grid, BlockRect(2, 2, 2, 4))
    with pytest.raises(DegenerateBlockError):
        average_block(grid, BlockRect(3, 0, 1, 4))


def test_block_outside_grid_raises(make_grid):
    grid = make_grid(4, 4)

    with pytest.raises(OutOfBoundsError):
        average_block(grid, BlockRect(0, 0, 5, 4))
    with pytest.raises(ConversionError):
        average_block(grid, BlockRect(-1, 0, 2, 2))


def test_summed_area_corners():
    values = np.arange(12, dtype=np.uint8).reshape(3, 4)

    integ = summed_area(values)

    assert integ.shape == (4, 5)
    assert integ.dtype == np.int64
    assert integ[0].sum() == 0
    assert integ[3, 4] == values.sum()
    assert integ[2, 3] == values[:2, :3].sum()


def test_average_blocks_matches_scalar(random_grid):
    height, width = random_grid.shape[:2]
    geom = block_geometry(width, height)
    lab_image = rgb_to_lab_array(random_grid)

    lab, rgb = average_blocks(
        random_grid, geom.x0, geom.x1, geom.y0, geom.y1, lab_image=lab_image
    )

    assert lab.shape == (geom.target_height, geom.cells, 3)
    assert rgb.dtype == np.uint8
    for j in range(0, geom.target_height, 17):
        for i in range(0, geom.cells, 13):
            sample = average_block(random_grid, block_rect(geom, i, j), lab_image)
            assert tuple(int(v) for v in rgb[j, i]) == sample.rgb
            np.testing.assert_allclose(lab[j, i], sample.lab, rtol=1e-9, atol=1e-9)


def test_average_blocks_rejects_bad_edges(make_grid):
    grid = make_grid(4, 4)

    with pytest.raises(DegenerateBlockError):
        average_blocks(grid, [0, 2], [2, 2], [0], [4])
    with pytest.raises(OutOfBoundsError):
        average_blocks(grid, [0], [5], [0], [4])
