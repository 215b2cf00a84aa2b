import re
from dataclasses import dataclass
from typing import Any, Optional, Pattern, Tuple

from pydantic import BaseModel, ConfigDict

MIN_FILE_SIZE = 127
MAX_FILE_SIZE = 200 * 1024 * 1024  # 200MB
MAX_IMAGE_DIMENSION = 10000


@dataclass(frozen=True)
class StringRule:
    field: str
    description: str
    required: bool = True
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[Pattern] = None
    type: str = 'string'


@dataclass(frozen=True)
class NumberRule:
    field: str
    description: str
    required: bool = True
    min: Optional[int] = None
    max: Optional[int] = None
    type: str = 'number'


@dataclass(frozen=True)
class BoolRule:
    field: str
    description: str
    required: bool = True
    type: str = 'boolean'


# Order matters: errors are reported in this order.
UPLOAD_PAYLOAD_SCHEMA: Tuple[Any, ...] = (
    StringRule(
        'name',
        'File name must be a valid filename without prohibited characters',
        min_length=1,
        max_length=255,
        pattern=re.compile(r'[^<>:"/\\|?*\x00-\x1f]+\Z'),
    ),
    NumberRule(
        'size',
        'File size must be between 127 bytes and 200MB',
        min=MIN_FILE_SIZE,
        max=MAX_FILE_SIZE,
    ),
    StringRule(
        'cid',
        'CID must be a valid Filecoin piece CID',
        min_length=10,
        pattern=re.compile(r'[a-zA-Z0-9]+\Z'),
    ),
    StringRule(
        'filecoin_url',
        'Filecoin URL must be a valid HTTP/HTTPS URL',
        # prefix match: anything may follow the first character after //
        pattern=re.compile(r'https?://.'),
    ),
    StringRule(
        'user_id',
        'User ID must be provided and within length limits',
        min_length=1,
        max_length=128,
    ),
    BoolRule(
        'is_selfie',
        'Whether the image is a selfie (true) or regular image (false)',
    ),
    NumberRule(
        'height',
        'Image height in pixels (optional)',
        required=False,
        min=1,
        max=MAX_IMAGE_DIMENSION,
    ),
    NumberRule(
        'width',
        'Image width in pixels (optional)',
        required=False,
        min=1,
        max=MAX_IMAGE_DIMENSION,
    ),
)


class JsonUploadRequest(BaseModel):
    """Body of an ``application/json`` upload.

    Fields are checked for presence by the normalizer rather than by pydantic
    so a missing reference gets the same error whichever field it is.
    """
    model_config = ConfigDict(extra='allow')

    event_id: Any = None
    image_url: Any = None
    fotoowl_image_id: Any = None
    name: Any = None
    height: Any = None
    width: Any = None

    def has_reference(self) -> bool:
        return bool(self.event_id and self.image_url and self.fotoowl_image_id)
