"""
Execution service for running code on a remote Piston-style sandbox.
"""

from .languages import LANGUAGE_ALIASES, resolve_language
from .piston_client import PistonClient
from .piston_execution import ExecutionResult, PistonExecutor, UnsupportedLanguageError
from .runtime_cache import RuntimeCache, RuntimeDescriptor
from .test_validator import TestCase, TestCaseResult, outputs_match, summarize_results

__all__ = [
    "LANGUAGE_ALIASES",
    "resolve_language",
    "PistonClient",
    "PistonExecutor",
    "ExecutionResult",
    "UnsupportedLanguageError",
    "RuntimeCache",
    "RuntimeDescriptor",
    "TestCase",
    "TestCaseResult",
    "outputs_match",
    "summarize_results",
]
