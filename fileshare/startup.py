import socket
from typing import List

from fileshare import config
from fileshare.logger_config import setup_logger
from fileshare.models.server_config import ServeMode, ServerConfig

logger = setup_logger()


def is_port_free(port: int, host: str = config.DEFAULT_HOST) -> bool:
    """Check if a port is free by attempting to bind it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
        except OSError:
            return False
    return True


def local_addresses() -> List[str]:
    """IPv4 addresses this host is reachable on, loopback first."""
    addresses = {"127.0.0.1"}
    try:
        for info in socket.getaddrinfo(socket.gethostname(), None, socket.AF_INET):
            addresses.add(info[4][0])
    except socket.gaierror:
        pass
    return sorted(addresses, key=lambda a: (a != "127.0.0.1", a))


def print_banner(server_config: ServerConfig):
    scheme = server_config.scheme
    logger.info(f"Starting {scheme.upper()} server v{config.VERSION} on port {server_config.port}")
    if server_config.mode == ServeMode.STATIC_ROOT:
        logger.info(f"Serving static files from web root: {server_config.root_path}")
    else:
        logger.info(f"Running in file browser/upload mode in: {server_config.root_path}")
        logger.info(f"Maximum upload size: {server_config.max_upload_bytes / (1024*1024):.2f} MB")
    if server_config.require_auth:
        logger.info(f"HTTP Basic authentication enabled for user '{config.AUTH_USERNAME}'")

    if server_config.host in ("0.0.0.0", ""):
        hosts = local_addresses()
    else:
        hosts = [server_config.host]
    for host in hosts:
        logger.info(f"  {scheme}://{host}:{server_config.port}/")
