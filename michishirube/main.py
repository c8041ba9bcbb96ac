"""
Main entry point for Michishirube.
"""

from .api import app  # noqa: F401

if __name__ == "__main__":
    import uvicorn

    from .config import get_settings

    settings = get_settings()
    uvicorn.run(
        "michishirube.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
