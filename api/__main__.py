import argparse
import os
from typing import List, Optional

import uvicorn


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Serve the Last.fm embed widget")
    parser.add_argument("--host", default=os.getenv("EMBED_HOST", "127.0.0.1"))
    parser.add_argument("--port", type=int, default=int(os.getenv("EMBED_PORT", "8000")))
    parser.add_argument("--reload", action="store_true", help="Auto-reload on code changes (development)")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Run the embed API under uvicorn."""
    args = build_parser().parse_args(argv)
    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )


if __name__ == "__main__":
    main()
