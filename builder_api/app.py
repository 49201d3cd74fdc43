from __future__ import annotations

import os

from fastapi import FastAPI

from builder_api.routes import router
from conditions.clipboard import ClipboardRegistry
from config import configure_logging, get_builder_config


config = get_builder_config()
configure_logging(config.logging)

app = FastAPI(title="Condition Builder", docs_url=None, redoc_url=None)

# One clipboard per editor scope (builder session / node), never process-wide.
app.state.clipboards = ClipboardRegistry(max_scopes=config.clipboard.max_scopes)
app.state.builder_config = config
app.state.expose_metadata = str(os.environ.get("CONDITION_BUILDER_EXPOSE_METADATA", "true")).lower() in ("1", "true", "yes")

app.include_router(router)
