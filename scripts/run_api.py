from __future__ import annotations

import argparse
import os

import uvicorn


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the orderbridge API locally")
    parser.add_argument("--host", default=os.getenv("ORDERBRIDGE_HOST", "127.0.0.1"))
    parser.add_argument("--port", type=int, default=int(os.getenv("ORDERBRIDGE_PORT", "8000")))
    parser.add_argument("--reload", action="store_true")
    args = parser.parse_args()

    # Logging is configured by the app on startup.
    uvicorn.run(
        "services.api.app.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
