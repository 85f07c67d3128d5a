#!/usr/bin/env python3
"""
Run script for the Growth Path API proxy
"""
import uvicorn

from growthpath.config.settings import settings
from growthpath.main import app

if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port, reload=settings.debug)
