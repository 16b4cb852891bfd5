"""ASGI middleware wrapped around the routers.

``AuthMiddleware`` answers 401 before routing or body parsing happen.
``AccessLogMiddleware`` writes one line per request, observing the body as
it streams to the application: the first chunks are peeked and replayed.
``UploadLimitMiddleware`` stops oversize upload bodies before they are spooled.
"""
from fastapi import HTTPException, Request
from fastapi.responses import PlainTextResponse

from fileshare import config
from fileshare.logger_config import setup_logger
from fileshare.services.authenticator import Authenticator
from fileshare.services.upload_receiver import TooLarge

logger = setup_logger()


class AuthMiddleware:
    def __init__(self, app, authenticator: Authenticator):
        self.app = app
        self.authenticator = authenticator

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope)
        if self.authenticator.check(request.headers.get("authorization")):
            await self.app(scope, receive, send)
            return

        client = request.client.host if request.client else "-"
        logger.warning(f"Unauthorized {request.method} {request.url.path} from {client}")
        response = PlainTextResponse(
            "Unauthorized",
            status_code=401,
            headers={"WWW-Authenticate": f'Basic realm="{config.AUTH_REALM}"'},
        )
        await response(scope, receive, send)


def body_preview(body: bytes, truncated: bool) -> str:
    """Printable rendition of a request body prefix for the access log."""
    text = body.decode("utf-8", errors="replace")
    text = "".join(c if c.isprintable() else "." for c in text)
    return text + "..." if truncated else text


class AccessLogMiddleware:
    def __init__(self, app, preview_limit: int = config.BODY_PREVIEW_LIMIT):
        self.app = app
        self.preview_limit = preview_limit

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        status_code = 500
        preview = bytearray()
        truncated = False
        buffered = []

        if scope["method"] == "POST":
            # Peek at the start of the body, the app gets the same messages replayed
            while len(preview) <= self.preview_limit:
                message = await receive()
                buffered.append(message)
                if message["type"] != "http.request":
                    break
                preview.extend(message.get("body", b""))
                if not message.get("more_body", False):
                    break
            if len(preview) > self.preview_limit:
                truncated = True
                del preview[self.preview_limit:]

        async def receive_wrapper():
            if buffered:
                return buffered.pop(0)
            return await receive()

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive_wrapper, send_wrapper)
        finally:
            client = scope.get("client")
            remote = client[0] if client else "-"
            full_path = scope["path"]
            if scope.get("query_string"):
                full_path += "?" + scope["query_string"].decode("latin-1")
            logger.info(
                f'{remote} - - "{scope["method"]} {full_path} HTTP/{scope.get("http_version", "1.1")}" {status_code} -'
            )
            if scope["method"] == "POST" and preview:
                logger.info(f"POST data: {body_preview(bytes(preview), truncated)}")


class UploadLimitMiddleware:
    """Refuse upload bodies larger than the file limit plus multipart framing.

    A declared ``Content-Length`` over the limit is answered with 413 before
    any byte is read. Otherwise the body is counted as it streams and parsing
    aborts with 413 once the count passes the limit, so an oversize upload is
    never spooled in full. The exact per-file boundary is checked again by
    the upload receiver.
    """

    def __init__(self, app, max_upload_bytes: int, path: str = "/upload"):
        self.app = app
        self.max_body_bytes = max_upload_bytes + config.UPLOAD_OVERHEAD_ALLOWANCE
        self.path = path

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http" or scope["method"] != "POST" or scope["path"] != self.path:
            await self.app(scope, receive, send)
            return

        declared = Request(scope).headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > self.max_body_bytes:
            logger.info(f"Upload refused, declared body of {declared} bytes is over the limit")
            response = PlainTextResponse(TooLarge.detail, status_code=TooLarge.status_code)
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive():
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    logger.info(f"Upload aborted after {received} bytes, over the limit")
                    raise HTTPException(status_code=TooLarge.status_code, detail=TooLarge.detail)
            return message

        await self.app(scope, limited_receive, send)
