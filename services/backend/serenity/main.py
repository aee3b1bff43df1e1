import uvicorn

from serenity.core.app import create_app
from serenity.core.config import get_settings

app = create_app()


def run() -> None:
    """Entrypoint for the `serenity-api` script."""
    settings = get_settings()
    uvicorn.run(
        "serenity.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
