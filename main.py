from fastapi import FastAPI

from apps.uploader.routers import router as uploader_router
from config.log import setup_logging
from config.middleware import CORSHeaderMiddleware

setup_logging()

app = FastAPI(title="Piece Upload Gateway")
app.add_middleware(CORSHeaderMiddleware)
app.include_router(uploader_router)


@app.get("/healthz")
async def healthz():
    return {"ok": True, "service": "piece-upload-gateway"}
