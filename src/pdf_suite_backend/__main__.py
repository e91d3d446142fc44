import uvicorn

from .configuration import get_settings


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        "pdf_suite_backend.main:app",
        host=str(settings.server.host),
        port=int(settings.server.port),
    )


if __name__ == "__main__":
    run()
