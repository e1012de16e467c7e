"""
Structured logging package for the planning poker server.

All imports should use explicit paths like
'from planning_poker.structured_logging.enhanced_logging_config import get_logger'.

The directory is named 'structured_logging' rather than 'logging' to avoid
shadowing Python's standard library logging module.
"""

__all__: list[str] = []
