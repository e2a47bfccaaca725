"""
Entry point for the times-tables HTTP server.

Run with:
    uvicorn times_tables.api.main:app --reload --port 3000
    python main.py
"""
import uvicorn

from times_tables.config import get_settings
from times_tables.log_config import configure_logging

settings = get_settings()

if __name__ == "__main__":
    configure_logging(settings.log_level, settings.log_file)
    uvicorn.run(
        "times_tables.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
        log_level=settings.log_level.lower(),
    )
