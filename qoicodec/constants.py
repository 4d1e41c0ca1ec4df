from enum import Enum

# Chunk tags
QOI_OP_INDEX = 0x00  # 00xxxxxx
QOI_OP_DIFF = 0x40  # 01xxxxxx
QOI_OP_LUMA = 0x80  # 10xxxxxx
QOI_OP_RUN = 0xC0  # 11xxxxxx
QOI_OP_RGB = 0xFE  # 11111110
QOI_OP_RGBA = 0xFF  # 11111111

QOI_MASK_2 = 0xC0  # 11000000

QOI_MAGIC = b"qoif"
QOI_HEADER_SIZE = 14
QOI_END_MARKER = b"\x00\x00\x00\x00\x00\x00\x00\x01"

QOI_SRGB = 0
QOI_LINEAR = 1

QOI_INDEX_SIZE = 64
QOI_RUN_MAX = 62
QOI_PIXELS_MAX = 400000000  # Safety limit (400MP)

# Opaque black, the predecessor of the first pixel
QOI_START_PIXEL = (0, 0, 0, 255)


class Op(Enum):
    """Pixel operation selected by an opcode byte."""

    RGB = QOI_OP_RGB
    RGBA = QOI_OP_RGBA
    INDEX = QOI_OP_INDEX
    DIFF = QOI_OP_DIFF
    LUMA = QOI_OP_LUMA
    RUN = QOI_OP_RUN
