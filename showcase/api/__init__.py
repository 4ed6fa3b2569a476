"""HTTP surface — FastAPI app, REST resources and the WebSocket echo."""

from showcase.api.app import app
from showcase.api.deps import configure

__all__ = ["app", "configure"]
