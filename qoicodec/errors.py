class QOIError(ValueError):
    """Base class for every QOI encode/decode failure."""


class InvalidMagic(QOIError):
    pass


class InvalidDimensions(QOIError):
    pass


class InvalidChannelCount(QOIError):
    pass


class InvalidColorspace(QOIError):
    pass


class PixelDataError(QOIError):
    """
    Failure while reading pixel data.

    :param message: Error description.
    :param partial: The PixelGrid filled up to the failing pixel, if any.
    """

    def __init__(self, message, partial=None):
        super().__init__(message)
        self.partial = partial


class InvalidOpcode(PixelDataError):
    pass


class UnexpectedEndOfStream(PixelDataError):
    pass


class InvalidEndMarker(PixelDataError):
    pass
