import logging
from dataclasses import dataclass, replace

from .cache import ColorCache
from .constants import (
    QOI_END_MARKER,
    QOI_HEADER_SIZE,
    QOI_MASK_2,
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
from .errors import (
    InvalidDimensions,
    InvalidEndMarker,
    InvalidOpcode,
    PixelDataError,
    UnexpectedEndOfStream,
)
from .grid import PixelGrid
from .header import Header, parse_header

_PREFIX_OPS = {
    QOI_OP_INDEX: Op.INDEX,
    QOI_OP_DIFF: Op.DIFF,
    QOI_OP_LUMA: Op.LUMA,
    QOI_OP_RUN: Op.RUN,
}


@dataclass(frozen=True)
class DecodeSettings:
    """Settings for decoding QOI streams

    strict_colorspace: if set to True, reject colorspace values above 1,
        otherwise log warning

    strict_end_marker: if set to True, require the 8-byte end marker after
        the last pixel, otherwise log warning when missing or damaged

    max_pixels: largest width * height accepted
    """

    strict_colorspace: bool = True
    strict_end_marker: bool = True
    max_pixels: int = QOI_PIXELS_MAX
    logger: logging.Logger = logging.getLogger(__name__)


def classify(tag: int) -> Op:
    """Map an opcode byte to its operation. 8-bit tags take precedence over 2-bit ones."""
    if tag == QOI_OP_RGB:
        return Op.RGB
    if tag == QOI_OP_RGBA:
        return Op.RGBA
    return _PREFIX_OPS[tag & QOI_MASK_2]


class QOIDecoder:
    """
    Decodes one QOI stream into a PixelGrid.

    Holds the per-image state (color index, previous pixel, pending run), so
    a fresh instance is needed for every stream.
    """

    def __init__(self, data, settings: DecodeSettings = None):
        if hasattr(data, "read"):
            data = data.read()
        self.data = bytes(data)
        self.settings = settings or DecodeSettings()
        self.header = None

        self.index = ColorCache()
        self.pixel = QOI_START_PIXEL
        self.run = 0
        self.read_pos = QOI_HEADER_SIZE

    def read_header(self) -> Header:
        header = parse_header(
            self.data,
            strict_colorspace=self.settings.strict_colorspace,
            logger=self.settings.logger,
        )
        if header.pixel_count > self.settings.max_pixels:
            raise InvalidDimensions(
                f"QOI.decode: {header.width}x{header.height} exceeds "
                f"{self.settings.max_pixels} pixels"
            )

        # One operation byte yields at most a full run
        payload_size = len(self.data) - QOI_HEADER_SIZE
        if header.pixel_count > payload_size * QOI_RUN_MAX:
            raise UnexpectedEndOfStream(
                f"QOI.decode: {payload_size} bytes cannot hold "
                f"{header.width}x{header.height} pixels"
            )
        self.header = header
        return header

    def _read(self, count: int) -> bytes:
        end = self.read_pos + count
        if end > len(self.data):
            raise UnexpectedEndOfStream(
                f"QOI.decode: Unexpected end of stream at byte {len(self.data)}"
            )
        chunk = self.data[self.read_pos : end]
        self.read_pos = end
        return chunk

    def next_pixel(self) -> tuple:
        """Produce the next pixel, reading an operation unless a run is pending."""
        if self.run > 0:
            self.run -= 1
            return self.pixel

        tag = self._read(1)[0]
        op = classify(tag)
        r, g, b, a = self.pixel

        if op is Op.RGB:
            r, g, b = self._read(3)

        elif op is Op.RGBA:
            r, g, b, a = self._read(4)

        elif op is Op.INDEX:
            r, g, b, a = self.index.get(tag & ~QOI_MASK_2)

        elif op is Op.DIFF:
            # 2-bit differences with a bias of 2
            r = (r + ((tag >> 4) & 0x03) - 2) & 0xFF
            g = (g + ((tag >> 2) & 0x03) - 2) & 0xFF
            b = (b + (tag & 0x03) - 2) & 0xFF

        elif op is Op.LUMA:
            (diffs,) = self._read(1)
            dg = (tag & ~QOI_MASK_2) - 32
            r = (r + dg - 8 + ((diffs >> 4) & 0x0F)) & 0xFF
            g = (g + dg) & 0xFF
            b = (b + dg - 8 + (diffs & 0x0F)) & 0xFF

        elif op is Op.RUN:
            # This pixel is the first of the run
            self.run = tag & ~QOI_MASK_2

        else:
            raise InvalidOpcode(f"QOI.decode: Invalid operation 0x{tag:02x}")

        self.pixel = (r, g, b, a)
        self.index.add(self.pixel)
        return self.pixel

    def check_end_marker(self) -> None:
        marker = self.data[self.read_pos : self.read_pos + len(QOI_END_MARKER)]
        if marker == QOI_END_MARKER:
            return

        if len(marker) < len(QOI_END_MARKER):
            error = UnexpectedEndOfStream("QOI.decode: Missing end marker")
        else:
            error = InvalidEndMarker(f"QOI.decode: Invalid end marker {marker.hex()}")

        if self.settings.strict_end_marker:
            raise error
        self.settings.logger.warning("%s", error)

    def decode(self) -> PixelGrid:
        header = self.read_header()
        result = bytearray(header.pixel_count * 4)

        try:
            for write_pos in range(0, len(result), 4):
                result[write_pos : write_pos + 4] = self.next_pixel()
            self.check_end_marker()
        except PixelDataError as exc:
            exc.partial = PixelGrid.from_bytes(result, header.width, header.height)
            raise

        self.settings.logger.debug(
            "decoded %dx%d image from %d bytes",
            header.width,
            header.height,
            self.read_pos,
        )
        return PixelGrid.from_bytes(result, header.width, header.height)


def decode(data, settings: DecodeSettings = None, **overrides) -> PixelGrid:
    """
    Decode a QOI image.

    :param data: bytes, bytearray, memoryview or binary file object holding a QOI file.
    :param settings: DecodeSettings, defaults to strict decoding.
    :param overrides: Individual DecodeSettings fields to change.
    :return: PixelGrid with the RGBA pixels.
    """
    settings = replace(settings or DecodeSettings(), **overrides)
    return QOIDecoder(data, settings).decode()
