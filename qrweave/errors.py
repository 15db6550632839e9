"""Error taxonomy shared by the render pipeline and its surfaces."""


class QRWeaveError(Exception):
    """Base class for every error raised by qrweave."""


class EncodingError(QRWeaveError):
    """Content could not be encoded into a QR matrix at the requested level."""


class ConfigError(QRWeaveError):
    """A style parameter lies outside its documented domain."""


class ExportError(QRWeaveError):
    """A scene could not be exported in the requested format."""


class RasterError(ExportError):
    """The vector form of a scene could not be decoded into pixels."""
