from __future__ import annotations

import argparse
import os
import sys
from typing import Sequence

from libs.core import logging as core_logging
from services.imagegen.imagegen_core import (
    ConfigError,
    ImageGenerationService,
    load_config,
)

LOGGER = core_logging.get_logger("imagegen")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="civitai-imagegen",
        description="Civitai image generation MCP server",
    )
    parser.add_argument(
        "-e",
        dest="env",
        nargs=2,
        action="append",
        metavar=("KEY", "VALUE"),
        default=[],
        help="configuration override, takes precedence over the environment",
    )
    parser.add_argument("--transport", choices=("stdio", "http"), default="stdio")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args_list = list(sys.argv[1:] if argv is None else argv)
    args, _unknown = build_parser().parse_known_args(args_list)
    overrides = {key: value for key, value in args.env}

    try:
        config = load_config(overrides, os.environ)
    except ConfigError as exc:
        core_logging.configure_logging("imagegen")
        LOGGER.error("imagegen_config_invalid", error=exc.detail)
        return 1

    core_logging.configure_logging("imagegen", config.log_level)
    service = ImageGenerationService(config)

    if args.transport == "http":
        import uvicorn

        from services.imagegen.app.main import create_app

        LOGGER.info("imagegen_server_running", transport="http", host=args.host, port=args.port)
        uvicorn.run(create_app(config, service), host=args.host, port=args.port)
        return 0

    from services.imagegen.app.mcp import create_mcp_server

    server = create_mcp_server(service)
    LOGGER.info(
        "imagegen_server_running",
        transport="stdio",
        model=config.model,
        persist=config.output_dir is not None,
    )
    server.run(transport="stdio")
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
