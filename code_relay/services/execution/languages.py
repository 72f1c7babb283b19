"""
Language label resolution for the execution service.
"""

from types import MappingProxyType

# Human-facing label -> execution service language identifier
LANGUAGE_ALIASES = MappingProxyType({
    "C": "c",
    "C++": "c++",
    "Python": "python",
    "Java": "java",
})


def resolve_language(label: str) -> str:
    """
    Map a language label to the identifier the execution service expects.

    Unknown labels fall back to their lower-cased form; whether the service
    actually supports that identifier is decided later against the runtime
    directory.
    """
    return LANGUAGE_ALIASES.get(label) or label.lower()
