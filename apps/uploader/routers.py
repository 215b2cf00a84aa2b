
# uploader/routers.py
from fastapi import APIRouter
from utils.response_wrapper import response_wrapper
from .views import create_upload, method_not_allowed, preflight

router = APIRouter()

router.post("/")(response_wrapper(create_upload))
router.options("/")(preflight)
router.api_route("/", methods=["GET", "HEAD", "PUT", "PATCH", "DELETE"], include_in_schema=False)(
    response_wrapper(method_not_allowed))
