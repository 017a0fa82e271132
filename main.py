"""
Main Entry Point

Run the FinSight API with uvicorn.
"""

import uvicorn

from finsight.config import settings
from finsight.ingest.database import init_database
from finsight.logging_config import setup_logging

if __name__ == "__main__":
    setup_logging(settings.log_level)
    init_database()
    uvicorn.run(
        "finsight.api.app:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
