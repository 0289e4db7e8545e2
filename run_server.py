"""
Run the chat relay with uvicorn.

Host and port come from the HOST and PORT settings (default 0.0.0.0:8080).
"""

import logging

import uvicorn

from relay.settings import app_settings
from relay.uvicorn_filters import ExcludeMetricsFilter

if __name__ == "__main__":
    logging.getLogger("uvicorn.access").addFilter(ExcludeMetricsFilter())

    uvicorn.run(
        "relay:application",
        factory=True,
        host=app_settings.HOST,
        port=app_settings.PORT,
    )
