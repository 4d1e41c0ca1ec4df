import os

import numpy as np
from PIL import Image

from .constants import QOI_SRGB
from .decoder import DecodeSettings, decode
from .encoder import encode
from .grid import PixelGrid

RAW_EXTENSIONS = ("dng", "cr2", "nef", "arw", "raw")


def load_image(filepath) -> tuple[np.ndarray, dict]:
    """Load an image and return pixel data as numpy array + description."""

    filepath = os.fspath(filepath)
    ext = filepath.lower().split(".")[-1]

    if ext in RAW_EXTENSIONS:
        # RAW formats - requires rawpy
        import rawpy

        with rawpy.imread(filepath) as raw:
            rgb = raw.postprocess()
        img = Image.fromarray(rgb)
    else:
        # Standard formats (PNG, JPEG, etc.)
        img = Image.open(filepath)

    # Convert to RGB or RGBA, keeping transparency where the source has any
    if img.mode == "RGBA":
        channels = 4
    elif img.mode in ("LA", "PA") or "transparency" in img.info:
        img = img.convert("RGBA")
        channels = 4
    else:
        img = img.convert("RGB")
        channels = 3

    return np.array(img), {
        "width": img.size[0],
        "height": img.size[1],
        "channels": channels,
        "colorspace": QOI_SRGB,
    }


def to_image(grid: PixelGrid, channels: int = 4) -> Image.Image:
    """Convert a PixelGrid to a Pillow image in RGBA (or RGB) mode."""
    return Image.fromarray(grid.to_array(channels))


def read(filepath, settings: DecodeSettings = None, **overrides) -> PixelGrid:
    """Decode the QOI file at filepath."""
    with open(filepath, "rb") as f:
        return decode(f, settings, **overrides)


def write(filepath, pixels, width: int = None, height: int = None) -> int:
    """Encode pixels into a QOI file at filepath and return the number of bytes written."""
    encoded = encode(pixels, width, height)
    with open(filepath, "wb") as f:
        f.write(encoded)
    return len(encoded)
