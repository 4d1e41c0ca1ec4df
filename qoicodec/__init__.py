from .cache import ColorCache, color_hash
from .constants import Op
from .decoder import DecodeSettings, QOIDecoder, classify, decode
from .encoder import QOIEncoder, encode
from .errors import (
    InvalidChannelCount,
    InvalidColorspace,
    InvalidDimensions,
    InvalidEndMarker,
    InvalidMagic,
    InvalidOpcode,
    QOIError,
    UnexpectedEndOfStream,
)
from .grid import PixelGrid
from .header import Header, parse_header, peek_dimensions, serialize_header
from .utils import load_image, read, to_image, write

__all__ = [
    "ColorCache",
    "DecodeSettings",
    "Header",
    "InvalidChannelCount",
    "InvalidColorspace",
    "InvalidDimensions",
    "InvalidEndMarker",
    "InvalidMagic",
    "InvalidOpcode",
    "Op",
    "PixelGrid",
    "QOIDecoder",
    "QOIEncoder",
    "QOIError",
    "UnexpectedEndOfStream",
    "classify",
    "color_hash",
    "decode",
    "encode",
    "load_image",
    "parse_header",
    "peek_dimensions",
    "read",
    "serialize_header",
    "to_image",
    "write",
]
