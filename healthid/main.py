from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from healthid.api.routes import router, close_dispatchers
from healthid.api.admin_routes import router as admin_router
from healthid.observability.logging import log
from healthid.settings import settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    close_dispatchers()


app = FastAPI(title="Health ID Registration Flows", lifespan=lifespan)

origins = [x.strip() for x in settings.CORS_ORIGINS.split(",") if x.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router)
app.include_router(admin_router)


@app.get("/health")
def health():
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Callers drive the flow from the response body; anything that escapes a route
# still comes back in the flow-result shape.
# ---------------------------------------------------------------------------
@app.exception_handler(Exception)
async def universal_exception_handler(request: Request, exc: Exception):
    log(event="unhandled_exception", path=request.url.path, errorType=type(exc).__name__, error=str(exc)[:500])
    message = f"Internal error: {exc}"
    return JSONResponse(
        status_code=500,
        content={
            "message": message,
            "data": None,
            "nextStep": None,
            "nextStepHint": None,
            "nextStepPayloadShape": None,
            "error": message,
        },
    )


if not settings.API_URL:
    log(event="boot_warning", reason="API_URL is not set; remote step calls will fail")
