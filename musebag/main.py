# Run from project root: uvicorn musebag.main:app --reload

import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from musebag.api.routes import router
from musebag.api.session import session_middleware
from musebag.core.config import TMP_DIR, TMP_URL
from musebag.core.errors import MuseBagError

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


app = FastAPI(title="MuseBag Query Gateway")
app.middleware("http")(session_middleware)
app.include_router(router)

# Originals of distributed query items are served from local temporary storage
Path(TMP_DIR).mkdir(parents=True, exist_ok=True)
app.mount(TMP_URL, StaticFiles(directory=TMP_DIR), name="tmp")


@app.exception_handler(MuseBagError)
async def musebag_error_handler(request: Request, exc: MuseBagError) -> JSONResponse:
    logger.warning("[api] %s %s -> %d %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
