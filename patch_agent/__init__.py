"""patch_agent — apply LLM-proposed SEARCH/REPLACE edits to a codebase."""

__version__ = "0.1.0"
