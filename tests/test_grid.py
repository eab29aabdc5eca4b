import numpy as np
import pytest

from mcam_recorder.grid import grid_columns, grid_shape, tile_grid

from conftest import HEIGHT, WIDTH, solid_frame


@pytest.mark.parametrize("n", range(1, 8))
def test_dimensions(n):
    frames = [solid_frame(i + 1) for i in range(n)]
    grid = tile_grid(frames, WIDTH, HEIGHT)
    cols = -(-n // 2)
    assert grid.shape == (2 * HEIGHT, cols * WIDTH, 3)
    assert grid.shape[:2] == grid_shape(n, WIDTH, HEIGHT)


def test_empty_is_one_blank_cell():
    grid = tile_grid([], WIDTH, HEIGHT)
    assert grid.shape == (HEIGHT, WIDTH, 3)
    assert not grid.any()


def test_single_frame_is_unmodified_top_cell():
    frame = np.random.default_rng(0).integers(0, 255, (HEIGHT, WIDTH, 3), dtype=np.uint8)
    grid = tile_grid([frame], WIDTH, HEIGHT)

    assert np.array_equal(grid[:HEIGHT], frame)
    assert not grid[HEIGHT:].any()


def test_cell_placement_row_major():
    frames = [solid_frame(v) for v in (10, 20, 30, 40, 50)]
    grid = tile_grid(frames, WIDTH, HEIGHT)
    cols = grid_columns(5)

    for idx, value in enumerate((10, 20, 30, 40, 50)):
        r, c = divmod(idx, cols)
        cell = grid[r * HEIGHT:(r + 1) * HEIGHT, c * WIDTH:(c + 1) * WIDTH]
        assert (cell == value).all()

    assert not grid[HEIGHT:, 2 * WIDTH:].any()


def test_inputs_not_modified():
    frames = [solid_frame(7), solid_frame(8)]
    tile_grid(frames, WIDTH, HEIGHT)
    assert (frames[0] == 7).all() and (frames[1] == 8).all()
