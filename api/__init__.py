# =============================================================================
# api/__init__.py
# =============================================================================
# HTTP surface: the FastAPI app (server.py) and the SSE encoder (streamer.py).
# =============================================================================
