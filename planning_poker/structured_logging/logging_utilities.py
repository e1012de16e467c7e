"""
Utility functions for logging configuration.
"""

import os
import sys

VALID_ENVIRONMENTS = ["local", "unit_test", "e2e_test", "production"]


def detect_environment() -> str:
    """
    Detect the current environment based on various indicators.

    Returns:
        Environment name: "e2e_test", "unit_test", "local", or "production"
    """
    # Check if running under pytest (unit tests)
    if "pytest" in sys.modules or "pytest" in sys.argv[0]:
        return "unit_test"

    env = os.getenv("PLANNING_POKER_ENV")
    if env and env in VALID_ENVIRONMENTS:
        return env

    logging_env = os.getenv("LOGGING_ENVIRONMENT", "")
    if logging_env in VALID_ENVIRONMENTS:
        return logging_env

    return "local"
