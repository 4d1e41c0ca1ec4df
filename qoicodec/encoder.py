import logging
from collections import Counter

import numpy as np
from PIL import Image

from .cache import ColorCache
from .constants import (
    QOI_END_MARKER,
    QOI_OP_DIFF,
    QOI_OP_INDEX,
    QOI_OP_LUMA,
    QOI_OP_RGB,
    QOI_OP_RGBA,
    QOI_OP_RUN,
    QOI_PIXELS_MAX,
    QOI_RUN_MAX,
    QOI_START_PIXEL,
    Op,
)
from .errors import InvalidChannelCount, InvalidDimensions
from .grid import PixelGrid, as_uint8
from .header import Header, serialize_header

logger = logging.getLogger(__name__)


def _signed(delta: int) -> int:
    # Byte-wrapped difference shifted to -128..127
    delta &= 0xFF
    return delta - 256 if delta > 127 else delta


class QOIEncoder:
    """
    Encodes one PixelGrid into a QOI stream.

    Holds the per-image state (color index, previous pixel, pending run), so
    a fresh instance is needed for every image.
    """

    def __init__(self, grid: PixelGrid, max_pixels: int = QOI_PIXELS_MAX):
        if grid.width * grid.height > max_pixels:
            raise InvalidDimensions(
                f"QOI.encode: {grid.width}x{grid.height} exceeds {max_pixels} pixels"
            )
        self.grid = grid
        self.header = Header(grid.width, grid.height)

        self.result = bytearray()
        self.index = ColorCache()
        self.prev = QOI_START_PIXEL
        self.run = 0
        self.ops = Counter()

    def flush_run(self) -> None:
        # -1 because a run value of 0 is a single pixel
        self.result.append(QOI_OP_RUN | (self.run - 1))
        self.ops[Op.RUN] += 1
        self.run = 0

    def write_pixel(self, px: tuple, last: bool = False) -> None:
        """Emit the operations for the next pixel in row-major order."""
        if px == self.prev:
            self.run += 1
            # If we hit max run length (62) or it's the very last pixel
            if self.run == QOI_RUN_MAX or last:
                self.flush_run()
            return

        # If we were in a run, end it before processing the new pixel
        if self.run > 0:
            self.flush_run()

        result = self.result
        r, g, b, a = px

        if self.index.contains(px):
            result.append(QOI_OP_INDEX | self.index.index(px))
            self.ops[Op.INDEX] += 1
            self.prev = px
            return

        self.index.add(px)
        prev_r, prev_g, prev_b, prev_a = self.prev

        if a == prev_a:
            vr = _signed(r - prev_r)
            vg = _signed(g - prev_g)
            vb = _signed(b - prev_b)

            vg_r = vr - vg
            vg_b = vb - vg

            if -2 <= vr <= 1 and -2 <= vg <= 1 and -2 <= vb <= 1:
                result.append(QOI_OP_DIFF | (vr + 2) << 4 | (vg + 2) << 2 | (vb + 2))
                self.ops[Op.DIFF] += 1

            elif -32 <= vg <= 31 and -8 <= vg_r <= 7 and -8 <= vg_b <= 7:
                result.append(QOI_OP_LUMA | (vg + 32))
                result.append((vg_r + 8) << 4 | (vg_b + 8))
                self.ops[Op.LUMA] += 1

            else:
                result.append(QOI_OP_RGB)
                result.extend((r, g, b))
                self.ops[Op.RGB] += 1
        else:
            result.append(QOI_OP_RGBA)
            result.extend((r, g, b, a))
            self.ops[Op.RGBA] += 1

        self.prev = px

    def encode(self) -> bytes:
        self.result.extend(serialize_header(self.header))

        last = self.header.pixel_count - 1
        for i, px in enumerate(self.grid.iter_pixels()):
            self.write_pixel(px, last=i == last)

        self.result.extend(QOI_END_MARKER)

        logger.debug(
            "encoded %dx%d image to %d bytes: %s",
            self.header.width,
            self.header.height,
            len(self.result),
            ", ".join(f"{op.name}={count}" for op, count in self.ops.items()),
        )
        return bytes(self.result)


def as_grid(pixels, width: int = None, height: int = None) -> PixelGrid:
    """
    Wrap encoder input into a PixelGrid.

    :param pixels: PixelGrid, Pillow image, numpy array of shape (h, w, 3|4)
                   or (h * w, 3|4), or raw interleaved RGB/RGBA bytes.
    :param width: Image width, required for flat input.
    :param height: Image height, required for flat input.
    """
    if isinstance(pixels, PixelGrid):
        grid = pixels
    elif isinstance(pixels, Image.Image):
        if pixels.mode not in ("RGB", "RGBA"):
            has_alpha = "A" in pixels.getbands() or "transparency" in pixels.info
            pixels = pixels.convert("RGBA" if has_alpha else "RGB")
        grid = PixelGrid.from_array(np.asarray(pixels))
    elif isinstance(pixels, np.ndarray) and pixels.ndim == 3:
        grid = PixelGrid.from_array(pixels)
    else:
        if width is None or height is None:
            raise InvalidDimensions(
                "QOI.encode: width and height are required for flat pixel data"
            )
        if width <= 0 or height <= 0:
            raise InvalidDimensions(
                f"QOI.encode: Invalid image dimensions {width}x{height}"
            )

        if isinstance(pixels, np.ndarray):
            flat = as_uint8(pixels).reshape(-1)
        else:
            flat = np.frombuffer(bytes(pixels), dtype=np.uint8)

        pixel_count = width * height
        if flat.size % pixel_count:
            raise InvalidDimensions("QOI.encode: The length of the pixel data is incorrect")
        channels = flat.size // pixel_count
        if channels not in (3, 4):
            raise InvalidChannelCount(
                "QOI.encode: Pixel data must have 3 or 4 channels, "
                f"got {flat.size} bytes for {width}x{height}"
            )
        grid = PixelGrid.from_array(flat.reshape(height, width, channels))

    if (width is not None and width != grid.width) or (
        height is not None and height != grid.height
    ):
        raise InvalidDimensions(
            f"QOI.encode: Pixel data is {grid.width}x{grid.height}, "
            f"not {width}x{height}"
        )
    if grid.width == 0 or grid.height == 0:
        raise InvalidDimensions(
            f"QOI.encode: Invalid image dimensions {grid.width}x{grid.height}"
        )
    return grid


def encode(pixels, width: int = None, height: int = None) -> bytes:
    """
    Encode pixels into a QOI file.

    The header always declares 4 channels and the sRGB colorspace.

    :param pixels: PixelGrid, Pillow image, numpy array or raw RGB/RGBA bytes.
    :param width: Image width (required for raw bytes).
    :param height: Image height (required for raw bytes).
    :return: bytes object containing the QOI file content.
    """
    return QOIEncoder(as_grid(pixels, width, height)).encode()
