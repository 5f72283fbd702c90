import uvicorn

from consultation_service.config import load_settings


def main() -> None:
    settings = load_settings()
    uvicorn.run("consultation_service.main:app", host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
