import numpy as np


def as_uint8(pixel_data) -> np.ndarray:
    """Convert channel values to uint8, rejecting values that do not fit a byte."""
    pixel_data = np.asarray(pixel_data)
    if pixel_data.dtype == np.uint8:
        return pixel_data

    if pixel_data.dtype != np.bool_ and not np.issubdtype(pixel_data.dtype, np.number):
        raise ValueError(f"PixelGrid: unsupported pixel dtype {pixel_data.dtype}")
    if pixel_data.size and (pixel_data.min() < 0 or pixel_data.max() > 255):
        raise ValueError("PixelGrid: channel values must lie in 0..255")
    if np.issubdtype(pixel_data.dtype, np.inexact) and np.any(
        pixel_data != np.round(pixel_data)
    ):
        raise ValueError("PixelGrid: channel values must be whole numbers")
    return pixel_data.astype(np.uint8)


class PixelGrid:
    """
    RGBA pixel buffer addressed by (x, y), with (0, 0) at the top-left.

    The pixels live in a numpy uint8 array of shape (height, width, 4).
    """

    def __init__(self, width: int, height: int, array: np.ndarray = None):
        if array is None:
            array = np.zeros((height, width, 4), dtype=np.uint8)
        elif array.shape != (height, width, 4) or array.dtype != np.uint8:
            raise ValueError(
                f"PixelGrid: expected uint8 array of shape {(height, width, 4)}, "
                f"got {array.dtype} {array.shape}"
            )
        self._array = array

    @classmethod
    def from_array(cls, pixel_data) -> "PixelGrid":
        """
        Build a grid from a (height, width, 3|4) array.

        RGB input gets an opaque alpha channel.
        """
        pixel_data = as_uint8(pixel_data)
        if pixel_data.ndim != 3 or pixel_data.shape[2] not in (3, 4):
            raise ValueError(
                f"PixelGrid: expected (height, width, 3|4) array, got {pixel_data.shape}"
            )

        height, width, channels = pixel_data.shape
        if channels == 3:
            alpha = np.full((height, width, 1), 255, dtype=np.uint8)
            pixel_data = np.concatenate((pixel_data, alpha), axis=2)
        return cls(width, height, np.ascontiguousarray(pixel_data))

    @classmethod
    def from_bytes(cls, data, width: int, height: int) -> "PixelGrid":
        """
        Build a grid from width * height RGBA quadruples.

        A bytearray is used in place, without copying.
        """
        if not isinstance(data, bytearray):
            data = bytearray(data)
        array = np.frombuffer(data, dtype=np.uint8).reshape(height, width, 4)
        return cls(width, height, array)

    @property
    def width(self) -> int:
        return self._array.shape[1]

    @property
    def height(self) -> int:
        return self._array.shape[0]

    @property
    def array(self) -> np.ndarray:
        return self._array

    def _check(self, x, y):
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(
                f"PixelGrid: ({x}, {y}) outside {self.width}x{self.height} image"
            )

    def get(self, x: int, y: int) -> tuple:
        self._check(x, y)
        return tuple(int(c) for c in self._array[y, x])

    def set(self, x: int, y: int, pixel) -> None:
        self._check(x, y)
        self._array[y, x] = pixel

    def iter_pixels(self):
        """Yield pixels as (r, g, b, a) tuples in row-major order."""
        for pixel in self._array.reshape(-1, 4).tolist():
            yield tuple(pixel)

    def to_array(self, channels: int = 4) -> np.ndarray:
        if channels not in (3, 4):
            raise ValueError("PixelGrid: channels must be 3 or 4")
        return self._array[..., :channels].copy()

    def to_bytes(self) -> bytes:
        return self._array.tobytes()

    def __eq__(self, other):
        if not isinstance(other, PixelGrid):
            return NotImplemented
        return np.array_equal(self._array, other._array)

    def __repr__(self):
        return f"PixelGrid({self.width}x{self.height})"
