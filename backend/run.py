#!/usr/bin/env python3
# backend/run.py
"""
Development server runner.

Runs the API with a single worker and the in-process broadcaster, so no
Redis is needed locally. Production runs uvicorn directly with
BROADCAST_URL pointing at Redis.
"""
import os
from pathlib import Path
import sys

# Add backend to path
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))
os.chdir(backend_dir)

os.environ.setdefault("BROADCAST_URL", "memory://")
os.environ.setdefault("ENVIRONMENT", "development")

import uvicorn

if __name__ == "__main__":
    print("Starting Groupo messaging API (single worker, memory broadcast)")
    print("Access at: http://localhost:8000")
    print("Live transport: ws://localhost:8000/api/v1/ws?token=<jwt>")

    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
