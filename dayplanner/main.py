import logging
import os

from fastapi import FastAPI, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from dayplanner.api.auth_routes import router as auth_router
from dayplanner.api.task_routes import router as task_router
from dayplanner.api.web_routes import router as web_router
from dayplanner.api.zoho_oauth import router as zoho_oauth_router
from dayplanner.config import API_PREFIX, APP_DEBUG, APP_NAME, STORAGE_DIR
from dayplanner.core.responses import http_exception_handler, request_validation_handler
from dayplanner.database import Base, engine
from dayplanner.models import password_reset, revoked_token, task, user  # noqa: F401 register tables

logging.basicConfig(level=logging.DEBUG if APP_DEBUG else logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(title=APP_NAME, version="1.0.0", description="Task scheduling API", debug=APP_DEBUG)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)

# Create tables if they do not exist
Base.metadata.create_all(bind=engine)

app.include_router(auth_router, prefix=API_PREFIX, tags=["Auth"])
app.include_router(task_router, prefix=API_PREFIX)
app.include_router(web_router)
app.include_router(zoho_oauth_router)

os.makedirs(STORAGE_DIR, exist_ok=True)
app.mount("/storage", StaticFiles(directory=STORAGE_DIR), name="storage")

@app.get("/favicon.ico", include_in_schema=False)
async def favicon():
    return Response(status_code=204)

logger.info("%s started (api prefix %r)", APP_NAME, API_PREFIX)
