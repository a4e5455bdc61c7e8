# =============================================================================
# core/log.py  —  Logging setup shared by the API server and the tool server
# =============================================================================
#
# Everything logs to STDERR.  The tool server may also be run over stdio by
# MCP clients, where stdout is the protocol channel and must stay clean.
#
# ANSI COLOR CODES:
#     - CYAN for incoming tool requests (tool name + parameters)
#     - GREEN for tool responses (compact JSON)
#     - YELLOW for intermediate status messages
# =============================================================================

import json
import logging
import sys

_CYAN = "\033[36m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_RESET = "\033[0m"

_configured = False


def configure_logging(level: str = "INFO", tag: str = "%(name)s") -> None:
    """Configure the root logger once; later calls only change the level."""
    global _configured
    if _configured:
        logging.getLogger().setLevel(level)
        return
    logging.basicConfig(
        level=level,
        format=f"%(asctime)s [{tag}] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
    _configured = True


def log_request(logger: logging.Logger, tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items())
    logger.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def log_status(logger: logging.Logger, message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logger.info(f"{_YELLOW}  → {message}{_RESET}")


def log_response(logger: logging.Logger, tool_name: str, result: dict) -> dict:
    """Log the tool response as compact JSON in GREEN, then return it."""
    logger.info(
        f"{_GREEN}  ← {tool_name} response: "
        f"{json.dumps(result, separators=(',', ':'))}{_RESET}"
    )
    return result
