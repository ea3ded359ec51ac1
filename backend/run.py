#!/usr/bin/env python3
# backend/run.py
"""
Development server runner.
For local development only - creates the SQLite tables on startup.
"""
import os
import sys
from pathlib import Path

# Add backend to path
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))
os.chdir(backend_dir)

os.environ.setdefault("AUTO_CREATE_TABLES", "true")

import uvicorn

if __name__ == "__main__":
    print("Starting Sito payments API")
    print("Access at: http://localhost:8000")
    print("API Docs: http://localhost:8000/docs")

    uvicorn.run("sitopay.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
