import logging
import struct
from dataclasses import dataclass

from .constants import QOI_HEADER_SIZE, QOI_LINEAR, QOI_MAGIC, QOI_SRGB
from .errors import (
    InvalidChannelCount,
    InvalidColorspace,
    InvalidDimensions,
    InvalidMagic,
    UnexpectedEndOfStream,
)

logger = logging.getLogger(__name__)

# > : Big Endian
# 4s: 4-byte string (magic)
# I : unsigned int (4 bytes)
# B : unsigned char (1 byte)
HEADER_STRUCT = struct.Struct(">4sIIBB")


@dataclass(frozen=True)
class Header:
    """
    QOI file header.

    channels and colorspace are informational only; decoded pixels are
    always RGBA.
    """

    width: int
    height: int
    channels: int = 4
    colorspace: int = QOI_SRGB

    @property
    def pixel_count(self) -> int:
        return self.width * self.height


def parse_header(
    data, strict_colorspace: bool = True, logger: logging.Logger = logger
) -> Header:
    """
    Parse and validate the 14-byte header at the start of data.

    :param data: Bytes-like object starting with a QOI header.
    :param strict_colorspace: Reject colorspace values other than 0 and 1.
    :param logger: Receives the warning for an accepted unknown colorspace.
    :return: The parsed Header.
    """
    if len(data) < QOI_HEADER_SIZE:
        raise UnexpectedEndOfStream("QOI.decode: File too short for header")

    magic, width, height, channels, colorspace = HEADER_STRUCT.unpack_from(data)

    if magic != QOI_MAGIC:
        raise InvalidMagic("QOI.decode: The signature of the QOI file is invalid")

    if width == 0 or height == 0:
        raise InvalidDimensions(
            f"QOI.decode: Invalid image dimensions {width}x{height}"
        )

    if channels not in (3, 4):
        raise InvalidChannelCount(
            "QOI.decode: The number of channels declared in the file is invalid"
        )

    if colorspace not in (QOI_SRGB, QOI_LINEAR):
        if strict_colorspace:
            raise InvalidColorspace(
                "QOI.decode: The colorspace declared in the file is invalid"
            )
        logger.warning("ignoring unknown colorspace value %d", colorspace)

    logger.debug(
        "parsed header %dx%d channels=%d colorspace=%d",
        width,
        height,
        channels,
        colorspace,
    )
    return Header(width, height, channels, colorspace)


def serialize_header(header: Header) -> bytes:
    return HEADER_STRUCT.pack(
        QOI_MAGIC, header.width, header.height, header.channels, header.colorspace
    )


def peek_dimensions(source, strict_colorspace: bool = True) -> tuple:
    """Read only the header of a QOI byte string or binary file and return (width, height)."""
    if hasattr(source, "read"):
        source = source.read(QOI_HEADER_SIZE)
    header = parse_header(source, strict_colorspace=strict_colorspace)
    return header.width, header.height
