from typing import Optional


class BleHubError(Exception):
    """Base error. Carries the failing operation and the underlying cause."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None, detail: str = ""):
        self.operation = operation
        self.cause = cause
        self.detail = detail
        super().__init__(str(self))

    def __str__(self) -> str:
        msg = f"{self.operation} failed"
        if self.detail:
            msg += f": {self.detail}"
        if self.cause is not None:
            msg += f" ({type(self.cause).__name__}: {self.cause})"
        return msg


class ScanSessionError(BleHubError):
    """The advertisement source could not enumerate devices. Fatal to the run."""


class AttributeReadError(BleHubError):
    """Attributes of a single device could not be read during one poll."""


class EncodingError(BleHubError):
    """Accumulated rows could not be converted into a columnar batch."""


class ExportError(BleHubError):
    pass


class SerializationError(ExportError):
    """Writing the binary container failed."""


class UploadError(ExportError):
    """Transmitting the container to the object store failed or was not acknowledged."""
