"""ASGI entry point: ``uvicorn ppd.app_factory:app``."""
import os

from ppd.app import create_app

app = create_app()

__all__ = ["app", "create_app"]


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=os.getenv("HOST", "127.0.0.1"), port=int(os.getenv("PORT", "8000")))
