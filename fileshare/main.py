import argparse
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from fileshare import config
from fileshare.logger_config import setup_logger
from fileshare.middleware import AccessLogMiddleware, AuthMiddleware, UploadLimitMiddleware
from fileshare.models.server_config import ConfigError, ServeMode, ServerConfig
from fileshare.routes import browse_routes, static_routes
from fileshare.routes.common import fallback_router
from fileshare.services.authenticator import Authenticator
from fileshare.startup import is_port_free, print_banner

# Logger setup
logger = setup_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    server_config = app.state.server_config
    if not server_config.root_path.is_dir():
        raise RuntimeError(f"Root directory is missing: {server_config.root_path}")
    logger.info(f"Serving {server_config.root_path} in {server_config.mode.value} mode")
    yield


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Every error leaves the server as a short plain-text body."""
    return PlainTextResponse(
        str(exc.detail),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Invalid request to {request.url.path}: {exc.errors()}")
    return PlainTextResponse("Invalid request", status_code=400)


def create_app(server_config: ServerConfig) -> FastAPI:
    """Build the application for the configured mode."""
    # No docs routes, they would shadow files named docs or openapi.json
    app = FastAPI(
        title="fileshare",
        version=config.VERSION,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.server_config = server_config
    app.state.authenticator = Authenticator(server_config)

    # Added last runs first: access log, then authentication, then the upload limit
    if server_config.mode == ServeMode.BROWSE_UPLOAD:
        app.add_middleware(UploadLimitMiddleware, max_upload_bytes=server_config.max_upload_bytes)
    app.add_middleware(AuthMiddleware, authenticator=app.state.authenticator)
    app.add_middleware(AccessLogMiddleware)

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    if server_config.mode == ServeMode.STATIC_ROOT:
        app.include_router(static_routes.router)
    else:
        app.include_router(browse_routes.router)
    app.include_router(fallback_router)
    return app


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="fileshare",
        description="HTTP file sharing server with browse/upload and static site modes.",
    )
    parser.add_argument("-p", "--port", type=int, help="Port to listen on (default: 80 for HTTP, 443 for HTTPS)")
    parser.add_argument("-i", "--index", metavar="DIR_PATH",
                        help="Serve static files from a directory. `index.html` is the default page.")
    parser.add_argument("--pass", dest="password", metavar="PASSWORD",
                        help=f"Enable HTTP Basic authentication (username is '{config.AUTH_USERNAME}')")
    parser.add_argument("-s", "--ssl", action="store_true", help="Enable HTTPS mode")
    parser.add_argument("-c", "--cert", metavar="CERT_PATH", help="Path to SSL certificate file (required for --ssl)")
    parser.add_argument("-k", "--key", metavar="KEY_PATH", help="Path to SSL private key file (required for --ssl)")
    parser.add_argument("--host", default=config.DEFAULT_HOST, help=f"Address to bind (default: {config.DEFAULT_HOST})")
    return parser.parse_args(argv)


def build_config(args) -> ServerConfig:
    return ServerConfig.build(
        index_dir=args.index,
        password=args.password,
        port=args.port,
        host=args.host,
        use_ssl=args.ssl,
        certfile=args.cert,
        keyfile=args.key,
    )


def run(server_config: ServerConfig):
    """Listen on the configured host and port until interrupted."""
    uvicorn.run(
        create_app(server_config),
        host=server_config.host,
        port=server_config.port,
        ssl_certfile=str(server_config.ssl_certfile) if server_config.ssl_certfile else None,
        ssl_keyfile=str(server_config.ssl_keyfile) if server_config.ssl_keyfile else None,
        access_log=False,
        log_level="warning",
    )


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        server_config = build_config(args)
    except ConfigError as e:
        logger.error(f"Error: {e}")
        return 1

    if not is_port_free(server_config.port, server_config.host):
        logger.error(f"Error: Port {server_config.port} is already in use.")
        return 1

    print_banner(server_config)
    run(server_config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
