import asyncio
import base64
import hashlib
import hmac
import logging
import os
from typing import Callable, Protocol, Tuple

import httpx

from config.settings import STORAGE_BACKEND, LOCAL_STORAGE_PATH, FILECOIN_PRIVATE_KEY, FILECOIN_NETWORK, \
    PDP_SERVICE_URL, THCLOUD_API_BASE, BACKEND_API_URL, BACKEND_API_KEY, BACKEND_NOTIFY_PATH, HTTP_TIMEOUT
from utils.exceptions import ConfigurationError, RemoteFetchError, StorageUploadError

logger = logging.getLogger(__name__)

UploadCompleteCallback = Callable[[str], None]


class StorageInterface(Protocol):
    async def upload(self, data: bytes, on_upload_complete: UploadCompleteCallback) -> None:
        """Store ``data`` and call ``on_upload_complete(piece_cid)`` once the bytes are accepted.

        The coroutine may keep running after the callback fired.
        """
        ...


def piece_id_for(data: bytes) -> str:
    digest = hashlib.sha256(data).digest()
    return 'baga' + base64.b32encode(digest).decode('ascii').lower().rstrip('=')


class LocalStorage:
    def __init__(self, base_path: str):
        self.base_path = base_path
        os.makedirs(self.base_path, exist_ok=True)

    async def upload(self, data: bytes, on_upload_complete: UploadCompleteCallback) -> None:
        piece_cid = piece_id_for(data)
        path = os.path.join(self.base_path, piece_cid)
        with open(path, 'wb') as f:
            f.write(data)
        on_upload_complete(piece_cid)


class PDPHTTPStorage:
    """Upload to a Filecoin PDP storage provider over HTTP.

    Requests are signed with an HMAC of the payload hash keyed by the wallet
    private key; the key itself never leaves the process.
    """

    def __init__(self, endpoint: str, private_key: str, network: str = 'calibration'):
        self.endpoint = endpoint.rstrip('/')
        self.private_key = private_key
        self.network = network

    def _sign(self, payload_hash: str) -> str:
        return hmac.new(self.private_key.encode('utf-8'), payload_hash.encode('utf-8'), hashlib.sha256).hexdigest()

    def _headers(self, payload: bytes = b'') -> dict:
        payload_hash = hashlib.sha256(payload).hexdigest()
        return {
            'x-pdp-content-sha256': payload_hash,
            'x-pdp-signature': self._sign(payload_hash),
            'x-filecoin-network': self.network,
        }

    async def upload(self, data: bytes, on_upload_complete: UploadCompleteCallback) -> None:
        headers = self._headers(data)
        headers['Content-Type'] = 'application/octet-stream'

        async with httpx.AsyncClient(timeout=HTTP_TIMEOUT) as client:
            resp = await client.post(f'{self.endpoint}/pdp/piece/uploads', content=data, headers=headers)
            if resp.status_code not in (200, 201):
                raise RuntimeError(f'PDP upload failed: {resp.status_code} {resp.text}')
            piece_cid = resp.json().get('pieceCid')
            if not piece_cid:
                raise RuntimeError('PDP upload response did not contain a pieceCid')

            on_upload_complete(piece_cid)

            # the provider may still be indexing the piece at this point
            check = await client.get(f'{self.endpoint}/pdp/piece/{piece_cid}', headers=self._headers())
            if check.status_code != 200:
                raise RuntimeError(f'PDP piece confirmation failed: {check.status_code} {check.text}')


def pick_storage() -> StorageInterface:
    """Pick storage implementation based on environment variables.

    ``local`` writes to LOCAL_STORAGE_PATH, anything else talks to the PDP provider.
    """
    storage_type = STORAGE_BACKEND.lower()
    if storage_type == 'local':
        return LocalStorage(LOCAL_STORAGE_PATH)
    if not FILECOIN_PRIVATE_KEY:
        raise ConfigurationError(message='FILECOIN_PRIVATE_KEY not configured')
    return PDPHTTPStorage(endpoint=PDP_SERVICE_URL, private_key=FILECOIN_PRIVATE_KEY, network=FILECOIN_NETWORK)


async def store_bytes(storage: StorageInterface, data: bytes) -> Tuple[str, asyncio.Task]:
    """Start an upload and return as soon as the storage client reports completion.

    Returns the piece CID and the still-running upload task, which the caller
    must keep alive (see ``drain_upload``). Fails with ``StorageUploadError``
    when the upload ends before the completion callback fired.
    """
    loop = asyncio.get_running_loop()
    completed: asyncio.Future = loop.create_future()

    def _on_upload_complete(piece_cid) -> None:
        logger.info('Upload completed! Piece CID: %s', piece_cid)
        if not completed.done():
            completed.set_result(str(piece_cid))

    task = asyncio.create_task(storage.upload(data, on_upload_complete=_on_upload_complete))
    await asyncio.wait({completed, task}, return_when=asyncio.FIRST_COMPLETED)

    if completed.done():
        return completed.result(), task

    exc = task.exception()
    if exc is not None:
        logger.error('Filecoin upload failed: %s', exc)
        raise StorageUploadError(message=f'Filecoin upload failed: {exc}') from exc
    raise StorageUploadError(message='Filecoin upload finished without reporting a piece CID')


async def drain_upload(task: asyncio.Task) -> None:
    """Wait for the rest of an upload whose response was already sent."""
    try:
        await task
    except Exception as exc:
        logger.error('Upload bookkeeping failed after completion: %s', exc)


def filecoin_url_for(piece_cid: str) -> str:
    return f'{THCLOUD_API_BASE.rstrip("/")}/piece/{piece_cid}'


async def download_image(url: str) -> bytes:
    try:
        async with httpx.AsyncClient(timeout=HTTP_TIMEOUT, follow_redirects=True) as client:
            resp = await client.get(str(url))
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise RemoteFetchError(message=str(exc) or exc.__class__.__name__) from exc
    if not 200 <= resp.status_code < 300:
        raise RemoteFetchError(message=f'Failed to download image: {resp.status_code} {resp.reason_phrase}')
    return resp.content


async def notify_backend(body: dict) -> None:
    """POST an upload payload to the backend API. Failures are only logged."""
    url = BACKEND_API_URL + BACKEND_NOTIFY_PATH
    headers = {'Content-Type': 'application/json'}
    if BACKEND_API_KEY:
        headers['Authorization'] = f'Basic {BACKEND_API_KEY}'

    logger.info('Notifying backend API at %s', url)
    try:
        async with httpx.AsyncClient(timeout=HTTP_TIMEOUT) as client:
            resp = await client.post(url, json=body, headers=headers)
    except Exception as exc:
        logger.error('Backend API notification error: %s', exc)
        return
    if not 200 <= resp.status_code < 300:
        logger.error('Backend API notification failed: %s', resp.status_code)
    else:
        logger.info('Backend API notified successfully')


def backend_notifications_enabled() -> bool:
    return bool(BACKEND_API_URL)
