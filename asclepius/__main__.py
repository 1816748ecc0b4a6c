"""Run the API server with ``python -m asclepius``."""

import uvicorn

from asclepius.config import settings


def main() -> None:
    uvicorn.run(
        "asclepius.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,  # keep the handlers installed by setup_logging
    )


if __name__ == "__main__":
    main()
