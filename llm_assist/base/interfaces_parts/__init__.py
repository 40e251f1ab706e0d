"""Interface parts; import from ``llm_assist.base.interfaces``."""
