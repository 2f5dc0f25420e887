"""
ASGI entry point.

Used by uvicorn / gunicorn:
    uvicorn server.asgi:app --app-dir backend
"""

from dotenv import load_dotenv

load_dotenv()

from server.app import create_app  # pylint: disable=wrong-import-position

app = create_app()
