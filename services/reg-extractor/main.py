"""FastAPI reg/VIN extractor — relays an image to a vision model and
returns the UK registration plates and VINs it reads.

Images are handled in-memory only and never logged; only byte counts are.
Run with ``uvicorn main:create_app --factory`` or ``python main.py``.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.datastructures import Headers

from config import Settings, settings
from extraction import MalformedReplyError, ReplyParseError, extract_from_image
from models import ErrorResponse, ExtractionResponse, ExtractRequest
from openrouter_client import OpenRouterClient, UpstreamRejection, UpstreamUnavailable

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "Server misconfiguration: missing API key"
MISSING_IMAGE_MESSAGE = "Missing 'image' field (expected a data URL)"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


class BodySizeLimitMiddleware:
    """Reject request bodies larger than max_bytes with 413.

    The declared Content-Length is checked first; the bytes actually received
    are counted as well, so chunked uploads are bounded too. The buffered body
    is replayed to the app unchanged.
    """

    def __init__(self, app, max_bytes: int):
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        declared = Headers(scope=scope).get("content-length")
        if declared and declared.isdigit() and int(declared) > self.max_bytes:
            await self._reject(scope, receive, send)
            return

        chunks: list[bytes] = []
        received = 0
        more_body = True
        while more_body:
            message = await receive()
            if message["type"] == "http.disconnect":
                return
            chunk = message.get("body", b"")
            received += len(chunk)
            if received > self.max_bytes:
                await self._reject(scope, receive, send)
                return
            chunks.append(chunk)
            more_body = message.get("more_body", False)

        body = b"".join(chunks)
        replayed = False

        async def replay():
            nonlocal replayed
            if not replayed:
                replayed = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        await self.app(scope, replay, send)

    async def _reject(self, scope, receive, send):
        logger.info("Rejected request body over %d bytes", self.max_bytes)
        response = _error(413, f"Request body exceeds {self.max_bytes} bytes")
        await response(scope, receive, send)


def create_app(
    app_settings: Settings | None = None,
    client: OpenRouterClient | None = None,
) -> FastAPI:
    """Build the app around one immutable settings value and one upstream client.

    A client passed in stays owned by the caller; one built here is closed on shutdown.
    """
    app_settings = app_settings or settings
    configured = bool(app_settings.OPENROUTER_API_KEY)
    owned_client: OpenRouterClient | None = None

    if client is None and configured:
        owned_client = client = OpenRouterClient(
            api_key=app_settings.OPENROUTER_API_KEY,
            url=app_settings.OPENROUTER_URL,
            model=app_settings.MODEL_ID,
            max_tokens=app_settings.MAX_TOKENS,
            app_title=app_settings.APP_TITLE,
            timeout=app_settings.UPSTREAM_TIMEOUT_SECONDS,
            connect_timeout=app_settings.UPSTREAM_CONNECT_TIMEOUT,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if configured:
            logger.info("Upstream configured: %s", app_settings.MODEL_ID)
        else:
            logger.warning("OPENROUTER_API_KEY is not set, extraction requests will fail with 500")

        yield

        if owned_client is not None:
            owned_client.close()

    app = FastAPI(title=app_settings.APP_TITLE, version="1.0.0", lifespan=lifespan)
    app.add_middleware(BodySizeLimitMiddleware, max_bytes=app_settings.MAX_BODY_BYTES)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Report unreadable bodies as 400 with the usual error shape."""
        logger.info("Rejected request body: %s", exc.errors())
        return _error(400, "Invalid request body (expected JSON with an 'image' field)")

    @app.get("/health")
    def health():
        """Liveness plus whether an upstream credential is present."""
        return {"ok": True, "upstream_configured": configured}

    @app.post(
        "/api/extract",
        response_model=ExtractionResponse,
        responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse},
                   500: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    )
    def extract(body: ExtractRequest):
        """Extract UK registration plates and VINs from a data-URL image."""
        if not configured or client is None:
            return _error(500, MISSING_KEY_MESSAGE)

        if not body.image:
            return _error(400, MISSING_IMAGE_MESSAGE)

        logger.info("Processing extraction: image=%d bytes", len(body.image))

        try:
            results = extract_from_image(body.image, client)
        except UpstreamRejection as e:
            return _error(502, str(e))
        except ReplyParseError as e:
            return _error(502, str(e))
        except (MalformedReplyError, UpstreamUnavailable) as e:
            logger.error("Extraction failed: %s", e)
            return _error(500, str(e) or "Unknown error")
        except Exception as e:
            logger.exception("Unexpected extraction failure")
            return _error(500, str(e) or "Unknown error")

        return ExtractionResponse(results=results)

    public_dir = Path(app_settings.PUBLIC_DIR)
    if public_dir.is_dir():
        logger.info("Serving static files from: %s", public_dir)
        app.mount("/", StaticFiles(directory=public_dir, html=True), name="public")
    else:
        logger.info("No static directory at %s, static serving disabled", public_dir)

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host=settings.HOST, port=settings.PORT)
