import logging

from api.app import create_app
from db.config import settings

logging.basicConfig(
    format="%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s",
    level=settings.logging_level,
)

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api.main:app", host="0.0.0.0", port=8000)
