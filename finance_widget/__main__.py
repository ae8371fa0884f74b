import uvicorn

from finance_widget.core.settings import settings


def main() -> None:
    uvicorn.run(
        "finance_widget.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
