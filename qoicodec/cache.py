from .constants import QOI_INDEX_SIZE


def color_hash(pixel) -> int:
    """Calculates the index position for the color array."""
    r, g, b, a = pixel
    return (r * 3 + g * 5 + b * 7 + a * 11) % QOI_INDEX_SIZE


class ColorCache:
    """
    The 64-slot table of previously seen pixels.

    Collisions overwrite the previous slot content; there is no chaining.
    """

    def __init__(self):
        # Storing as tuples (r, g, b, a) for easier comparison.
        self._slots = [(0, 0, 0, 0)] * QOI_INDEX_SIZE

    index = staticmethod(color_hash)

    @staticmethod
    def _check(index):
        if not 0 <= index < QOI_INDEX_SIZE:
            raise IndexError(f"ColorCache: slot {index} outside 0..{QOI_INDEX_SIZE - 1}")

    def get(self, index: int) -> tuple:
        self._check(index)
        return self._slots[index]

    def set(self, index: int, pixel) -> None:
        self._check(index)
        self._slots[index] = tuple(pixel)

    def add(self, pixel) -> int:
        """Store pixel at its own hash slot and return the slot."""
        index = color_hash(pixel)
        self._slots[index] = tuple(pixel)
        return index

    def contains(self, pixel) -> bool:
        return self._slots[color_hash(pixel)] == tuple(pixel)

    def __len__(self):
        return QOI_INDEX_SIZE
