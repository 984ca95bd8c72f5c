"""Run the CV intake API from project root. Use: python run_api.py"""
import os

import uvicorn

from cv_intake_ai.api import create_app

host = os.getenv("HOST", "127.0.0.1")
port = int(os.getenv("PORT", "8000"))
uvicorn.run(create_app(), host=host, port=port)
