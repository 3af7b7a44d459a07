"""
Engine — run sequencing and cancellation.

Import the orchestrator from ``homestack.core.engine.orchestrator``.
"""
