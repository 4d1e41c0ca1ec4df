import numpy as np
import pytest
from PIL import Image

from qoicodec import (
    InvalidChannelCount,
    InvalidDimensions,
    Op,
    PixelGrid,
    QOIEncoder,
    decode,
    encode,
)

END = b"\x00\x00\x00\x00\x00\x00\x00\x01"


def header(width, height):
    return b"qoif" + width.to_bytes(4, "big") + height.to_bytes(4, "big") + b"\x04\x00"


def row(*pixels):
    return np.array([pixels], dtype=np.uint8)


def payload(data):
    assert data.endswith(END)
    return data[14 : -len(END)]


def test_two_start_pixels_make_one_run():
    encoded = encode(row((0, 0, 0, 255), (0, 0, 0, 255)))
    assert encoded == header(2, 1) + b"\xc1" + END
    assert list(decode(encoded).iter_pixels()) == [(0, 0, 0, 255)] * 2


def test_repeated_pixel():
    encoded = encode(row((10, 20, 30, 255), (10, 20, 30, 255)))
    assert encoded == header(2, 1) + b"\xfe\x0a\x14\x1e" + b"\xc0" + END
    assert list(decode(encoded).iter_pixels()) == [(10, 20, 30, 255)] * 2


def test_run_of_62_then_new_pixel():
    pixels = [(0, 0, 0, 255)] * 62 + [(1, 0, 0, 255)]
    assert payload(encode(row(*pixels))) == b"\xfd" + b"\x7a"


def test_run_of_63_splits():
    pixels = [(0, 0, 0, 255)] * 63 + [(1, 0, 0, 255)]
    assert payload(encode(row(*pixels))) == b"\xfd" + b"\xc0" + b"\x7a"


def test_run_flushed_at_last_pixel():
    pixels = [(5, 5, 5, 5)] + [(5, 5, 5, 5)] * 10
    data = payload(encode(row(*pixels)))
    assert data == b"\xff\x05\x05\x05\x05" + bytes([0xC0 | 9])


def test_run_spanning_rows():
    grid = PixelGrid(4, 3)
    grid.array[...] = (0, 0, 0, 255)
    assert payload(encode(grid)) == bytes([0xC0 | 11])


def test_index_hit_after_literal():
    p = (10, 20, 30, 128)
    q = (200, 100, 50, 255)
    data = payload(encode(row(p, q, p)))
    assert data == (
        b"\xff\x0a\x14\x1e\x80"  # RGBA p
        + b"\xff\xc8\x64\x32\xff"  # RGBA q
        + b"\x14"  # INDEX 20
    )


def test_index_hit_after_run():
    p = (10, 20, 30, 255)
    q = (40, 40, 40, 255)
    data = payload(encode(row(p, p, p, q, p)))
    assert data[:5] == b"\xfe\x0a\x14\x1e" + b"\xc1"
    assert data[-1:] == b"\x09"


def test_diff():
    assert payload(encode(row((1, 0, 0, 255)))) == b"\x7a"
    assert payload(encode(row((254, 1, 0, 255)))) == bytes([0x40 | 0 << 4 | 3 << 2 | 2])


def test_luma():
    assert payload(encode(row((7, 10, 17, 255)))) == b"\xaa\x5f"


def test_rgb_and_rgba():
    assert payload(encode(row((100, 0, 0, 255)))) == b"\xfe\x64\x00\x00"
    assert payload(encode(row((100, 0, 0, 254)))) == b"\xff\x64\x00\x00\xfe"


def test_alpha_change_forces_rgba():
    # a one-step change that DIFF would cover, but alpha differs
    data = payload(encode(row((1, 0, 0, 255), (2, 0, 0, 0))))
    assert data == b"\x7a" + b"\xff\x02\x00\x00\x00"


def test_wraparound():
    encoded = encode(row((255, 0, 0, 255), (0, 0, 0, 255)))
    assert payload(encoded) == b"\x5a\x7a"
    assert list(decode(encoded).iter_pixels()) == [(255, 0, 0, 255), (0, 0, 0, 255)]


def test_luma_wraparound():
    encoded = encode(row((216, 224, 231, 255)))
    assert payload(encoded) == b"\x80\x0f"


def test_header_always_rgba_srgb():
    encoded = encode(np.zeros((3, 5, 3), dtype=np.uint8))
    assert encoded[:14] == header(5, 3)


def test_rgb_input_is_opaque():
    rgb = np.arange(2 * 3 * 3, dtype=np.uint8).reshape(2, 3, 3)
    grid = decode(encode(rgb))
    assert np.array_equal(grid.to_array(3), rgb)
    assert (grid.array[..., 3] == 255).all()


def test_raw_bytes_input():
    raw = bytes([1, 2, 3, 4, 5, 6, 7, 8])
    assert encode(raw, 2, 1) == encode(row((1, 2, 3, 4), (5, 6, 7, 8)))
    assert encode(raw[:6], 2, 1) == encode(row((1, 2, 3, 255), (4, 5, 6, 255)))


def test_flat_array_input():
    flat = np.array([[9, 9, 9, 9]] * 6, dtype=np.uint8)
    assert encode(flat, 3, 2) == encode(np.full((2, 3, 4), 9, dtype=np.uint8))


def test_raw_bytes_need_dimensions():
    with pytest.raises(InvalidDimensions):
        encode(bytes(8))
    with pytest.raises(InvalidDimensions):
        encode(bytes(8), 0, 2)


def test_raw_bytes_length_mismatch():
    with pytest.raises(InvalidDimensions):
        encode(bytes(7), 2, 1)
    with pytest.raises(InvalidChannelCount):
        encode(bytes(10), 2, 1)


def test_dimension_mismatch():
    with pytest.raises(InvalidDimensions):
        encode(np.zeros((2, 2, 4), dtype=np.uint8), 3, 2)


def test_empty_image():
    with pytest.raises(InvalidDimensions):
        encode(np.zeros((0, 4, 4), dtype=np.uint8))


def test_max_pixels():
    with pytest.raises(InvalidDimensions):
        QOIEncoder(PixelGrid(4, 4), max_pixels=15)


def test_op_counts():
    grid = PixelGrid.from_array(row((1, 0, 0, 255), (1, 0, 0, 255), (100, 0, 0, 255)))
    encoder = QOIEncoder(grid)
    encoder.encode()
    assert encoder.ops[Op.DIFF] == 1
    assert encoder.ops[Op.RUN] == 1
    assert encoder.ops[Op.RGB] == 1
    assert encoder.ops[Op.INDEX] == 0


def test_out_of_range_values_rejected():
    with pytest.raises(ValueError):
        encode(np.full((1, 2, 4), 300, dtype=np.int64))
    with pytest.raises(ValueError):
        encode(np.full((2, 4), -5, dtype=np.int32), 2, 1)


def test_wide_integer_array_is_lossless():
    pixel_data = np.array([[[0, 128, 255, 7], [1, 2, 3, 4]]], dtype=np.int64)
    assert np.array_equal(decode(encode(pixel_data)).to_array(), pixel_data)


def test_pillow_image_input():
    rgba = np.array([[[1, 2, 3, 4], [5, 6, 7, 8]]], dtype=np.uint8)
    assert encode(Image.fromarray(rgba)) == encode(rgba)

    rgb = rgba[..., :3].copy()
    assert encode(Image.fromarray(rgb)) == encode(rgb)


def test_pillow_grayscale_input():
    gray = Image.fromarray(np.array([[10, 200]], dtype=np.uint8))
    grid = decode(encode(gray))
    assert list(grid.iter_pixels()) == [(10, 10, 10, 255), (200, 200, 200, 255)]


def test_pillow_luminance_alpha_input():
    la = Image.new("LA", (1, 1), (50, 60))
    assert decode(encode(la)).get(0, 0) == (50, 50, 50, 60)
