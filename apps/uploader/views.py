import logging

from fastapi import BackgroundTasks, Request, Response

from apps.uploader.models import Transport
from apps.uploader.normalizer import normalize_request
from apps.uploader.services import pick_storage, store_bytes, drain_upload, filecoin_url_for, notify_backend, \
    backend_notifications_enabled
from apps.uploader.validation import build_upload_payload, validate_upload_payload, check_file_size, \
    log_validation_result
from config.middleware import CORS_PREFLIGHT_HEADERS
from utils.exceptions import MethodNotAllowed, RequestShapeError, utc_timestamp
from utils.files import format_file_size

logger = logging.getLogger(__name__)


async def preflight(request: Request):
    return Response(status_code=200, headers=CORS_PREFLIGHT_HEADERS)


async def method_not_allowed(request: Request):
    raise MethodNotAllowed(message=f'{request.method} is not supported, use POST')


async def create_upload(request: Request, background_tasks: BackgroundTasks):
    transport = Transport.from_content_type(request.headers.get('content-type'))
    user_id = request.headers.get('user-id')

    # checked before the body is read
    if transport != Transport.JSON and not user_id:
        raise RequestShapeError('Missing user-id header (required for stream and formdata uploads)')

    storage = pick_storage()
    upload = await normalize_request(request, transport, user_id)

    logger.info('Processing %s upload: %s, Size: %s',
                transport.value, upload.file_name, format_file_size(upload.file_size))
    check_file_size(upload.file_size)

    logger.info('Uploading to Filecoin...')
    piece_cid, pending_upload = await store_bytes(storage, upload.data)
    background_tasks.add_task(drain_upload, pending_upload)

    payload = build_upload_payload(
        upload.file_name,
        upload.file_size,
        piece_cid,
        filecoin_url_for(piece_cid),
        upload.user_id,
        upload.is_selfie,
        upload.height,
        upload.width,
    )
    # observability only, an invalid payload is still delivered
    log_validation_result(validate_upload_payload(payload, transport), transport)

    reference = upload.reference
    if backend_notifications_enabled():
        body = payload.to_dict()
        if reference:
            body.update({
                'event_id': reference.event_id,
                'fotoowl_image_id': reference.fotoowl_image_id,
                'original_image_url': reference.image_url,
                'filecoin_cid': piece_cid,
            })
        background_tasks.add_task(notify_backend, body)

    response = {'success': True, **payload.to_dict(), 'timestamp': utc_timestamp()}
    if reference:
        response.update({
            'event_id': reference.event_id,
            'fotoowl_image_id': reference.fotoowl_image_id,
            'original_image_url': reference.image_url,
        })
    return response
