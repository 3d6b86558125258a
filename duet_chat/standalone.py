"""Standalone chat server.

Usage::

    poetry run duet-chat

    # Custom port / HTTPS with a self-signed certificate:
    PORT=9000 poetry run duet-chat
    HTTPS=1 poetry run duet-chat

Environment variables:
    MONGO_URI           — MongoDB connection string (required unless CHAT_STORE=memory)
    MONGO_DB            — Database name (default: duet_chat)
    CHAT_STORE          — mongodb | memory
    GEMINI_API_KEY      — Key for the Gemini assistant (LLM_PROVIDER=google)
    OPENAI_API_KEY      — Key for the OpenAI assistant (LLM_PROVIDER=openai)
    LLM_PROVIDER        — google (default) | openai
    ASSISTANT_MODEL     — Model answering the AI peer (provider default if unset)
    AI_HISTORY_LIMIT    — Messages of context sent to the LLM (default: 10)
    CORS_ORIGINS        — Comma separated browser origins (default: *)
    PORT                — Server port (default: 5000)
    HTTPS               — Enable HTTPS with a self-signed cert (default: 0)
    SSL_CERTFILE        — Path to TLS certificate (auto-generated if missing)
    SSL_KEYFILE         — Path to TLS private key (auto-generated if missing)
    CHAT_UI             — Mount the NiceGUI chat page at / (default: 1)

Loads .env from the current working directory or any parent directory.
"""

import ipaddress
import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

logger = logging.getLogger(__name__)


# ── Self-signed certificate generation ───────────────────────────

def _ensure_self_signed_cert(cert_path: Path, key_path: Path) -> None:
    """Generate a self-signed TLS certificate if files don't exist."""
    if cert_path.exists() and key_path.exists():
        return

    from cryptography import x509
    from cryptography.x509.oid import NameOID
    from cryptography.hazmat.primitives import hashes, serialization
    from cryptography.hazmat.primitives.asymmetric import rsa
    import datetime

    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)

    subject = issuer = x509.Name([
        x509.NameAttribute(NameOID.COMMON_NAME, "localhost"),
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, "duet-chat dev"),
    ])

    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + datetime.timedelta(days=365))
        .add_extension(
            x509.SubjectAlternativeName([
                x509.DNSName("localhost"),
                x509.IPAddress(ipaddress.ip_address("127.0.0.1")),
            ]),
            critical=False,
        )
        .sign(key, hashes.SHA256())
    )

    key_path.parent.mkdir(parents=True, exist_ok=True)
    key_path.write_bytes(key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.TraditionalOpenSSL,
        serialization.NoEncryption(),
    ))
    cert_path.write_bytes(cert.public_bytes(serialization.Encoding.PEM))
    logger.info(f"Generated self-signed certificate: {cert_path}")


# ── FastAPI app factory ──────────────────────────────────────────

def create_app(config=None, services=None):
    """Create the FastAPI application.

    Called without arguments by uvicorn (factory=True): the configuration is
    then read from the environment after loading .env.

    :param config: ChatServerConfig to use instead of the environment
    :param services: Prebuilt ChatServices (tests inject in-memory stores and fake LLM clients)
    """
    from dotenv import load_dotenv, find_dotenv
    load_dotenv(find_dotenv(usecwd=True))

    from fastapi import FastAPI
    from fastapi.middleware.cors import CORSMiddleware

    from duet_chat.config import ChatServerConfig
    from duet_chat.server import build_http_router, build_services

    if services is not None:
        config = services.config
    elif config is None:
        config = ChatServerConfig.from_env()
    if services is None:
        services = build_services(config)

    @asynccontextmanager
    async def lifespan(_a):
        yield
        logger.info("[SERVER] Shutting down, closing store")
        services.close()

    _app = FastAPI(title="duet-chat", docs_url=None, redoc_url=None, lifespan=lifespan)
    _app.state.services = services

    _app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    _app.include_router(build_http_router())

    if config.enable_ui:
        from duet_chat.chat_page import ChatPage
        ChatPage(services).attach(_app, storage_secret=config.ui_storage_secret)

    return _app


# ── Entry point ──────────────────────────────────────────────────

def main():
    """Load .env, validate the configuration and start the server."""
    # find_dotenv() searches upward through parent directories
    from dotenv import load_dotenv, find_dotenv
    load_dotenv(find_dotenv(usecwd=True))

    import uvicorn

    from duet_chat.config import ChatServerConfig, ConfigError
    from duet_chat.llm_provider_manager import LLMManager

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = ChatServerConfig.from_env()
        if config.llm_provider not in LLMManager().providers:
            raise ConfigError(f"No API key configured for LLM provider '{config.llm_provider}'")
    except ConfigError as e:
        logger.critical(f"FATAL ERROR: {e}")
        sys.exit(1)

    ssl_kwargs = {}
    if config.https:
        cert_dir = Path.home() / ".duet-chat" / "certs"
        cert_path = Path(config.ssl_certfile or str(cert_dir / "localhost.pem"))
        key_path = Path(config.ssl_keyfile or str(cert_dir / "localhost-key.pem"))
        _ensure_self_signed_cert(cert_path, key_path)
        ssl_kwargs = {"ssl_certfile": str(cert_path), "ssl_keyfile": str(key_path)}
        proto = "https"
    else:
        proto = "http"

    print(f"\n  duet-chat → {proto}://localhost:{config.port}\n")
    uvicorn.run(
        "duet_chat.standalone:create_app",
        factory=True,
        host="0.0.0.0",
        port=config.port,
        **ssl_kwargs,
    )


if __name__ == "__main__":
    main()
