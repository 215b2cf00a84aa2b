"""Models for uploader app.

Transport - which request body encoding carried the upload
UploadPayload - canonical, transport independent record of a stored upload
FieldError / ValidationResult - outcome of checking a payload against the schema
NormalizedUpload - bytes and metadata extracted from a request, ready for storage
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


class Transport(str, Enum):
    JSON = 'json'
    FORMDATA = 'formdata'
    STREAM = 'stream'

    @classmethod
    def from_content_type(cls, content_type: Optional[str]) -> 'Transport':
        content_type = (content_type or '').lower()
        if 'application/json' in content_type:
            return cls.JSON
        if 'multipart/form-data' in content_type:
            return cls.FORMDATA
        return cls.STREAM


@dataclass(frozen=True)
class UploadPayload:
    name: Any
    size: Any
    cid: Any
    filecoin_url: Any
    is_selfie: Any
    user_id: Optional[Any] = None
    height: Optional[Any] = None
    width: Optional[Any] = None

    def to_dict(self) -> dict:
        # absent optional fields are left out, not sent as null
        data = {
            'name': self.name,
            'size': self.size,
            'cid': self.cid,
            'filecoin_url': self.filecoin_url,
            'is_selfie': self.is_selfie,
        }
        for key in ('user_id', 'height', 'width'):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str
    received: Any = None


@dataclass(frozen=True)
class ValidationResult:
    errors: List[FieldError] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class JsonUploadReference:
    """The external image a JSON upload points at."""
    event_id: Any
    image_url: str
    fotoowl_image_id: Any
    name: Optional[str] = None


@dataclass
class NormalizedUpload:
    data: bytes
    file_name: str
    user_id: Optional[str]
    is_selfie: bool
    height: Optional[int] = None
    width: Optional[int] = None
    reference: Optional[JsonUploadReference] = None

    @property
    def file_size(self) -> int:
        return len(self.data)
