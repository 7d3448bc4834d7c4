"""Run the relay server with uvicorn: ``python -m relay``."""

import uvicorn

from relay.settings import app_settings

if __name__ == "__main__":
    uvicorn.run(
        "relay:application",
        factory=True,
        host=app_settings.HOST,
        port=app_settings.PORT,
    )
