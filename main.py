import uvicorn

from vmrunner.config import load_settings
from vmrunner.server import configure_logging, create_app

settings = load_settings()
configure_logging(settings)

app = create_app(settings)


if __name__ == "__main__":
    uvicorn.run(app, host="127.0.0.1", port=8000)
