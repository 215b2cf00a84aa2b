"""Turn the three upload transports into bytes plus metadata.

json     - body references a remote image that is downloaded here
formdata - multipart body with a ``file`` part and optional ``height``/``width`` parts
stream   - the raw body is the file, metadata travels in ``x-*`` headers
"""
import json
import logging
import re
from typing import Optional
from urllib.parse import unquote

from pydantic import ValidationError
from starlette.datastructures import UploadFile
from starlette.requests import Request

from apps.uploader.models import JsonUploadReference, NormalizedUpload, Transport
from apps.uploader.schema import JsonUploadRequest
from apps.uploader.services import download_image
from utils.exceptions import RequestShapeError
from utils.files import sanitize_filename

logger = logging.getLogger(__name__)

DEFAULT_FILE_NAME = 'uploaded-file'
SELFIE_IMAGE_TYPE = 'selfie'

_LEADING_INT = re.compile(r'\s*([+-]?\d+)')


def parse_dimension(value) -> Optional[int]:
    """Lenient integer parsing: ``"512px"`` gives 512, ``"abc"`` or ``None`` give None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def _parse_if_truthy(value, fallback: Optional[int]) -> Optional[int]:
    # empty strings and 0 in a body do not override header values
    if not value:
        return fallback
    return parse_dimension(value)


def decode_file_name(raw) -> str:
    """URL-decode and sanitize a client supplied name; absent gives ``"untitled"``."""
    decoded = unquote(raw) if isinstance(raw, str) and raw else None
    return sanitize_filename(decoded) or DEFAULT_FILE_NAME


async def normalize_request(request: Request, transport: Transport, user_id: Optional[str]) -> NormalizedUpload:
    headers = request.headers
    is_selfie = headers.get('x-image-type') == SELFIE_IMAGE_TYPE
    height = parse_dimension(headers.get('x-image-height'))
    width = parse_dimension(headers.get('x-image-width'))
    logger.info('Image type: %s, is_selfie: %s', headers.get('x-image-type') or 'not specified', is_selfie)

    if transport == Transport.JSON:
        upload = await _from_json(request, height, width)
    elif transport == Transport.FORMDATA:
        upload = await _from_form(request, height, width)
    else:
        upload = await _from_stream(request, height, width)

    upload.user_id = user_id or None
    upload.is_selfie = is_selfie
    logger.info('Image dimensions: height=%s, width=%s',
                upload.height or 'not specified', upload.width or 'not specified')
    return upload


async def _from_json(request: Request, height, width) -> NormalizedUpload:
    try:
        body = JsonUploadRequest.model_validate(await request.json())
    except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as exc:
        logger.error('JSON parsing failed: %s', exc)
        raise RequestShapeError('Invalid JSON format', str(exc)) from exc

    if not body.has_reference():
        raise RequestShapeError(
            'Missing required fields. JSON must contain: event_id, image_url, fotoowl_image_id')

    reference = JsonUploadReference(
        event_id=body.event_id,
        image_url=body.image_url,
        fotoowl_image_id=body.fotoowl_image_id,
        name=body.name,
    )
    logger.info('JSON upload: event_id=%s, image_url=%s, fotoowl_image_id=%s',
                reference.event_id, reference.image_url, reference.fotoowl_image_id)

    data = await download_image(reference.image_url)
    file_name = decode_file_name(reference.name)
    logger.info('Downloaded image: %s, Size: %d bytes', file_name, len(data))

    return NormalizedUpload(
        data=data,
        file_name=file_name,
        user_id=None,
        is_selfie=False,
        height=_parse_if_truthy(body.height, height),
        width=_parse_if_truthy(body.width, width),
        reference=reference,
    )


async def _from_form(request: Request, height, width) -> NormalizedUpload:
    # spooled upload files are closed when the block exits
    async with request.form() as form:
        file = form.get('file')
        if not isinstance(file, UploadFile):
            raise RequestShapeError('No file provided in form data')

        data = await file.read()
        return NormalizedUpload(
            data=data,
            file_name=decode_file_name(file.filename),
            user_id=None,
            is_selfie=False,
            height=_parse_if_truthy(form.get('height'), height),
            width=_parse_if_truthy(form.get('width'), width),
        )


async def _from_stream(request: Request, height, width) -> NormalizedUpload:
    headers = request.headers
    file_name = decode_file_name(headers.get('x-file-name'))
    data = await request.body()

    expected_size = headers.get('x-file-size')
    if expected_size and parse_dimension(expected_size) != len(data):
        logger.warning('File size mismatch: expected %s, got %d', expected_size, len(data))

    logger.info('Stream upload: %s, method: %s', file_name, headers.get('x-upload-method') or 'stream')
    return NormalizedUpload(data=data, file_name=file_name, user_id=None, is_selfie=False,
                            height=height, width=width)
