"""
Services — per-service lifecycle, ordering, rendering and recovery.

Each module owns one concern; the orchestrator composes them.
"""
