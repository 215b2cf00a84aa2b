import functools
import logging

from fastapi.responses import JSONResponse

from utils.exceptions import UploadError, utc_timestamp

logger = logging.getLogger(__name__)


def response_wrapper(view):
    """Render exceptions raised by an upload view as JSON error responses.

    ``UploadError`` subclasses carry their own status code and body; anything
    else becomes a 500 ``Upload failed`` response.
    """

    @functools.wraps(view)
    async def wrapper(*args, **kwargs):
        try:
            return await view(*args, **kwargs)
        except UploadError as exc:
            logger.warning('Upload rejected (%s): %s', exc.status_code, exc)
            return JSONResponse(exc.to_dict(), status_code=exc.status_code, headers=exc.headers)
        except Exception as exc:
            logger.exception('Upload failed: %s', exc)
            return JSONResponse(
                {'error': 'Upload failed', 'message': str(exc), 'timestamp': utc_timestamp()},
                status_code=500,
            )

    return wrapper
