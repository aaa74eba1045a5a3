"""Runtime settings read from the environment.

Entry points call ``load_dotenv()`` before importing this module so a local
``.env`` file is honoured.
"""
from __future__ import annotations

import os

WORKER_URL = os.environ.get("WORKER_URL", "http://localhost:8787").rstrip("/")
MANIFEST_URL = f"{WORKER_URL}/api/pdf-manifest"

# Rendered pages are held as decoded images, so keep only a small window.
PDF_CACHE_MAX_SIZE = int(os.environ.get("PDF_CACHE_MAX_SIZE", "10"))

RENDER_SCALE = float(os.environ.get("RENDER_SCALE", "2"))
JPEG_QUALITY = int(os.environ.get("JPEG_QUALITY", "85"))

PREFETCH_AHEAD = int(os.environ.get("PREFETCH_AHEAD", "5"))
PREFETCH_STAGGER_SECONDS = float(os.environ.get("PREFETCH_STAGGER_SECONDS", "0.1"))
PREFETCH_PREV_DELAY_SECONDS = float(os.environ.get("PREFETCH_PREV_DELAY_SECONDS", "0.6"))

HTTP_TIMEOUT_SECONDS = float(os.environ.get("HTTP_TIMEOUT_SECONDS", "60"))
