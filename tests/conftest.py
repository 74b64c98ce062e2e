import numpy as np
import pytest


@pytest.fixture
def make_grid():
    def _make(width, height, colour=(0, 0, 0)):
        grid = np.empty((height, width, 4), dtype=np.uint8)
        grid[..., :3] = colour
        grid[..., 3] = 255
        return grid

    return _make


@pytest.fixture
def random_grid():
    rng = np.random.default_rng(1234)
    grid = rng.integers(0, 256, size=(97, 331, 4), dtype=np.uint8)
    grid[..., 3] = 255
    return grid
