import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

import database
from config import ALLOWED_ORIGINS, LOG_LEVEL, PORT, is_development
from responses import error_envelope
from routers import auth, bookings, notifications, reviews, services, users

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# App and CORS
app = FastAPI(title="FixIt API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(services.router)
app.include_router(bookings.router)
app.include_router(reviews.router)
app.include_router(notifications.router)


# Error envelopes
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        field = ".".join(loc[1:]) or ".".join(loc)
        errors.append({"field": field, "message": err.get("msg", "Invalid value")})
    return JSONResponse(status_code=400, content=error_envelope("Validation failed.", errors))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    extra = {}
    if is_development():
        extra["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=500, content=error_envelope("Internal Server Error", **extra))


# Utility endpoints
@app.get("/")
def root():
    return {"success": True, "message": "FixIt API running"}


@app.get("/api/health")
def health():
    status = "not configured"
    if database.db is not None:
        try:
            database.db.command("ping")
            status = "connected"
        except PyMongoError as e:
            status = f"error: {str(e)[:80]}"
    return {"status": "OK", "message": "FixIt API is running", "database": status}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=PORT)
