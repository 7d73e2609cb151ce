from __future__ import annotations

import argparse
import asyncio
import json
import logging
from typing import List, Optional

from . import __version__
from .config import Settings, ensure_scripts_dir, load_settings
from .errors import ConfigError
from .opener import forward
from .scripts_dir import ScriptCatalog

logger = logging.getLogger("milan")

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(message)s"
LOG_DATEFMT = "%H:%M:%S"

_RESET = "\033[0m"
_LEVEL_STYLES = {
    logging.DEBUG: ("DEBUG", "\033[36m"),
    logging.INFO: ("INFO", "\033[32m"),
    logging.WARNING: ("WARN", "\033[33m"),
    logging.ERROR: ("ERROR", "\033[31m"),
    logging.CRITICAL: ("ERROR", "\033[31m"),
}


class ColorFormatter(logging.Formatter):
    """Colour-coded ``INFO`` / ``WARN`` / ``ERROR`` prefix after the timestamp."""

    def format(self, record: logging.LogRecord) -> str:
        label, color = _LEVEL_STYLES.get(record.levelno, (record.levelname, ""))
        original = record.levelname
        record.levelname = f"{color}{label}{_RESET}" if color else label
        try:
            return super().format(record)
        finally:
            record.levelname = original


def configure_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(ColorFormatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=[handler],
    )


def _settings_from_args(args: argparse.Namespace) -> Settings:
    return load_settings(
        args.config,
        host=getattr(args, "host", None),
        port=getattr(args, "port", None),
        scripts_dir=getattr(args, "scripts_dir", None),
    )


def _log_banner(settings: Settings) -> None:
    allowed = ", ".join(settings.allowed_ips) or "(loopback only)"
    logger.info("Milan v%s", __version__)
    logger.info("Port:        %s", settings.port)
    logger.info("Scripts:     %s", settings.scripts_dir)
    logger.info("Allowed IPs: %s", allowed)
    logger.info("Endpoints:")
    logger.info("  GET /                 Status (JSON)")
    logger.info("  GET /health           Health check")
    logger.info("  GET /list             Available scripts")
    logger.info("  GET /<script>         Run script")
    logger.info("  GET /<script>/<arg>   Run script with argument")


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from .main import create_app

    try:
        settings = _settings_from_args(args)
        configure_logging(settings.log_level)
        app = create_app(settings)
    except ConfigError as e:
        configure_logging()
        logger.error("Fatal: %s", e)
        return 1

    _log_banner(settings)
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        access_log=False,
    )
    logger.info("Milan stopped.")
    return 0


def _cmd_list(args: argparse.Namespace) -> int:
    try:
        settings = _settings_from_args(args)
        catalog = ScriptCatalog(
            ensure_scripts_dir(settings),
            settings.script_extension,
            require_executable=not settings.interpreter,
        )
    except ConfigError as e:
        configure_logging()
        logger.error("Fatal: %s", e)
        return 1
    print(json.dumps({"scripts": catalog.list_names()}, indent=2))
    return 0


def _cmd_open(args: argparse.Namespace) -> int:
    configure_logging()
    asyncio.run(forward(args.url, port=args.port))
    # Fire and forget: the caller never sees the outcome
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="milan",
        description="Run local scripts on HTTP request from allowed IPs.",
    )
    p.add_argument("--version", action="version", version=f"milan {__version__}")
    sp = p.add_subparsers(dest="command", required=True)

    serve_p = sp.add_parser("serve", help="Start the agent")
    serve_p.add_argument("--config", help="YAML config file (default: ./config.yaml if present)")
    serve_p.add_argument("--host", help="Bind address (default: 0.0.0.0)")
    serve_p.add_argument("--port", type=int, help="Port (default: 8080)")
    serve_p.add_argument("--scripts-dir", help="Scripts directory (default: ./scripts)")
    serve_p.set_defaults(func=_cmd_serve)

    list_p = sp.add_parser("list", help="Print installed scripts as JSON")
    list_p.add_argument("--config", help="YAML config file")
    list_p.add_argument("--scripts-dir", help="Scripts directory")
    list_p.set_defaults(func=_cmd_list)

    open_p = sp.add_parser("open", help="Forward a milan:// URL to the local agent")
    open_p.add_argument("url")
    open_p.add_argument("--port", type=int, default=8080, help="Agent port (default: 8080)")
    open_p.set_defaults(func=_cmd_open)

    return p


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
