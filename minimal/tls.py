# ==============================================================================
# SERVER START - Plain HTTP or TLS
# ==============================================================================
# Runs the application under uvicorn. In AUTO_TLS mode certificates are
# read from an ACME client's cache (certbot layout) and only the
# whitelisted domains are served; issuing certificates is the ACME
# client's job.
# ==============================================================================

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Tuple

import uvicorn
from fastapi import FastAPI
from starlette.middleware.trustedhost import TrustedHostMiddleware

from minimal.core.exceptions import ConfigurationError
from minimal.core.settings import Config

logger = logging.getLogger(__name__)

CERT_CHAIN_FILE = "fullchain.pem"
PRIVATE_KEY_FILE = "privkey.pem"


def resolve_certificates(config: Config) -> Tuple[str, str]:
    """
    Find the certificate chain and private key to serve.

    Explicit ``CERT_KEY_PATH``/``CERT_PRIVATE_KEY_PATH`` win; otherwise
    ``CERT_CACHE_DIR/<domain>/`` is searched for each domain in order.

    Raises:
        ConfigurationError: If no complete pair exists
    """
    if config.CERT_KEY_PATH and config.CERT_PRIVATE_KEY_PATH:
        return config.CERT_KEY_PATH, config.CERT_PRIVATE_KEY_PATH

    cache = Path(config.CERT_CACHE_DIR)
    for domain in config.DOMAINS:
        chain = cache / domain / CERT_CHAIN_FILE
        key = cache / domain / PRIVATE_KEY_FILE
        if chain.is_file() and key.is_file():
            return str(chain), str(key)

    raise ConfigurationError(
        "No TLS certificate found",
        details={"cache_dir": str(cache), "domains": list(config.DOMAINS)},
    )


def server_options(config: Config) -> Dict[str, Any]:
    """uvicorn options shared by both modes."""
    return {
        "host": config.HOST,
        "port": config.HTTP_PORT,
        "log_level": config.LOG_LEVEL.lower(),
        # The request logger middleware replaces uvicorn's access log.
        "access_log": False,
        "server_header": False,
        "timeout_keep_alive": config.READ_TIMEOUT,
    }


def start(app: FastAPI, config: Config) -> None:
    """Serve ``app`` until interrupted."""
    if config.AUTO_TLS:
        start_auto_tls(app, config)
        return

    start_insecure(app, config)


def start_insecure(app: FastAPI, config: Config) -> None:
    logger.info(f"Starting server on http://{config.HOST}:{config.HTTP_PORT}")
    uvicorn.run(app, **server_options(config))


def start_auto_tls(app: FastAPI, config: Config) -> None:
    if not config.DOMAINS:
        raise ConfigurationError("AUTO_TLS requires at least one domain in DOMAINS")

    certfile, keyfile = resolve_certificates(config)
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=list(config.DOMAINS))

    logger.info(
        f"Starting server on https://{config.HOST}:{config.HTTP_PORT} "
        f"for {', '.join(config.DOMAINS)}"
    )
    uvicorn.run(
        app,
        ssl_certfile=certfile,
        ssl_keyfile=keyfile,
        **server_options(config),
    )
