"""Exception types raised by the bulletin OCR pipeline."""


class BulletinOCRError(Exception):
    """Base class for all pipeline errors."""


class EncodingError(BulletinOCRError):
    """The uploaded document could not be read or encoded for the model."""


class ResponseParseError(BulletinOCRError):
    """A model response is not the JSON object the prompt asked for."""
