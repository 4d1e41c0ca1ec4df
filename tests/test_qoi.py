import numpy as np
import pytest

from qoicodec import PixelGrid, decode, encode

SIZES = [(1, 1), (1, 9), (13, 1), (17, 11), (64, 48)]


def noise(width, height, seed):
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)


def palette(width, height, seed):
    """Few colors with long repeats, to exercise runs and the color index."""
    rng = np.random.default_rng(seed)
    colors = rng.integers(0, 256, size=(5, 4), dtype=np.uint8)
    choice = np.repeat(rng.integers(0, 5, size=width * height // 3 + 1), 3)
    return colors[choice[: width * height]].reshape(height, width, 4)


def gradient(width, height, seed):
    """Small steps between neighbours, to exercise DIFF and LUMA."""
    rng = np.random.default_rng(seed)
    steps = rng.integers(-20, 21, size=(height * width, 4))
    steps[:, 3] = np.where(rng.random(height * width) < 0.1, steps[:, 3], 0)
    return (np.cumsum(steps, axis=0) % 256).astype(np.uint8).reshape(height, width, 4)


@pytest.mark.parametrize("width, height", SIZES)
@pytest.mark.parametrize("make", [noise, palette, gradient])
def test_round_trip(make, width, height):
    pixel_data = make(width, height, seed=width * 1000 + height)
    grid = PixelGrid.from_array(pixel_data)

    decoded = decode(encode(grid))

    assert decoded == grid
    assert np.array_equal(decoded.to_array(), pixel_data)


@pytest.mark.parametrize("seed", range(5))
def test_round_trip_random_sizes(seed):
    rng = np.random.default_rng(seed)
    width, height = rng.integers(1, 40, size=2)
    pixel_data = palette(int(width), int(height), seed)
    assert np.array_equal(decode(encode(pixel_data)).to_array(), pixel_data)


def test_compresses_flat_image():
    pixel_data = np.full((100, 100, 4), 128, dtype=np.uint8)
    assert len(encode(pixel_data)) < 14 + 8 + 200


@pytest.mark.parametrize("make", [noise, palette, gradient])
def test_matches_official_qoi(make):
    """Verify that our QOI implementation is byte-exact with the reference one."""
    OfficialQOI = pytest.importorskip("qoi")
    pixel_data = make(37, 23, seed=7)

    encoded = OfficialQOI.encode(pixel_data)
    our_encoded = encode(pixel_data)
    assert encoded == our_encoded, "Encoded data mismatch!"

    decoded = OfficialQOI.decode(our_encoded)
    our_decoded = decode(encoded)
    assert np.array_equal(decoded, our_decoded.to_array()), "Decoded data mismatch!"
