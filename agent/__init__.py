# =============================================================================
# agent/__init__.py
# =============================================================================
# The "brain": the orchestrator loop, the model adapter and the system prompt.
#
# ARCHITECTURAL ROLE:
#   agent/ decides WHEN to call a tool and turns results into an answer.
#   It holds no weather logic (core/) and no MCP wire details (tools/).
#
#   orchestrator.py  bounded model ⇄ tool loop, emits StreamEvents
#   model.py         LiteLLM streaming → TextDelta / ToolCallRequest
#   prompt.py        system prompt with today's date
# =============================================================================
