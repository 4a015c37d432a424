"""
CLI entrypoint for the API server.

Usage:
    python -m bucket_versioning
"""
import uvicorn

from bucket_versioning.config import settings


def main() -> None:
    uvicorn.run(
        "bucket_versioning.main:app",
        host=settings.app_host,
        port=settings.app_port,
        log_config=None,  # structlog owns the root logger
    )


if __name__ == "__main__":
    main()
