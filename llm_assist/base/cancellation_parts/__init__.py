"""Cancellation implementation parts; import from ``llm_assist.base.cancellation``."""
