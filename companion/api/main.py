"""
Companion API server entry point.

Run with:
    python -m companion.api.main

Or with uvicorn directly:
    uvicorn companion.api.main:get_app --factory --reload --port 8000
"""

import argparse
import os

import uvicorn

from ..config import configure_logging, load_config
from .server import create_app


def main():
    """Main entry point for the companion API server."""
    parser = argparse.ArgumentParser(description="Companion Pet API Server")
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind to (default: 8000)",
    )
    parser.add_argument(
        "--data-dir",
        default=None,
        help="Directory for pet files and interaction logs",
    )
    parser.add_argument(
        "--catalog",
        default=None,
        help="Path to a YAML species catalog",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    # Hand CLI choices to the factory through the same env vars config reads
    if args.data_dir:
        os.environ["COMPANION_DATA_DIR"] = args.data_dir
    if args.catalog:
        os.environ["COMPANION_CATALOG"] = args.catalog
    if args.debug:
        os.environ["COMPANION_LOG_LEVEL"] = "DEBUG"

    config = load_config(os.environ.get("COMPANION_DATA_DIR", "data"))
    configure_logging(config["log_level"])

    print("Starting Companion API Server")
    print(f"  Host: {args.host}")
    print(f"  Port: {args.port}")
    print(f"  Data: {config['data_dir']}")
    print(f"  Catalog: {config['catalog_path']}")
    print()

    uvicorn.run(
        "companion.api.main:get_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=config["log_level"].lower(),
    )


def get_app():
    """Factory function for creating the FastAPI app."""
    config = load_config(os.environ.get("COMPANION_DATA_DIR", "data"))
    return create_app(
        data_dir=config["data_dir"],
        catalog_path=config["catalog_path"],
    )


if __name__ == "__main__":
    main()
