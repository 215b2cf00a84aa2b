from datetime import datetime, timezone
from typing import Optional


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2025-01-01T10:00:00.000Z"""
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


class UploadError(Exception):
    """Terminal failure of an upload request, rendered as a JSON error body."""

    status_code = 500
    error = 'Upload failed'
    headers = None

    def __init__(self, error: Optional[str] = None, message: Optional[str] = None):
        self.error = error or self.error
        self.message = message
        super().__init__(message or self.error)

    def to_dict(self) -> dict:
        body = {'error': self.error}
        if self.message:
            body['message'] = self.message
        body['timestamp'] = utc_timestamp()
        return body


class RequestShapeError(UploadError):
    status_code = 400
    error = 'Invalid request'


class PayloadTooSmall(UploadError):
    status_code = 400
    error = 'File too small'


class PayloadTooLarge(UploadError):
    status_code = 413
    error = 'File too large'


class RemoteFetchError(UploadError):
    status_code = 400
    error = 'Failed to download image from provided URL'


class ConfigurationError(UploadError):
    status_code = 500


class StorageUploadError(UploadError):
    status_code = 500


class MethodNotAllowed(UploadError):
    status_code = 405
    error = 'Method not allowed'
    headers = {'Allow': 'POST, OPTIONS'}
