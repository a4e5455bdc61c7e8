# =============================================================================
# core/__init__.py
# =============================================================================
# Framework-free building blocks: data models, the mock weather lookup, the
# session store, settings, logging and the error taxonomy.
#
# Nothing in this package imports FastAPI, FastMCP or LiteLLM.
# =============================================================================
