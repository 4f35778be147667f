# File: shipwright/utils.py
"""
Shipwright - Utility Functions & Helpers
=========================================
Naming/inflection, file I/O, import-block assembly and timing helpers used
throughout the generation pipeline.

Naming strategy:
- ALL string-conversion functions are decorated with ``@lru_cache(maxsize=None)``
  because every emitter asks for the same handful of names over and over.
- Every emitter derives resource names through these functions only, so the
  table name in the migration, the class name in the entity and the URL
  prefix in the controller can never drift apart.
- No external dependencies beyond the Python standard library.
"""

from __future__ import annotations

import functools
import hashlib
import logging
import os
import re
import tempfile
import time
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("shipwright.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns (compiled once at module load)
# ---------------------------------------------------------------------------

_CAMEL_TO_SNAKE_RE1: re.Pattern[str] = re.compile(r"([A-Z]+)([A-Z][a-z])")
_CAMEL_TO_SNAKE_RE2: re.Pattern[str] = re.compile(r"([a-z0-9])([A-Z])")
_NON_ALPHANUM_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z0-9]")
_MULTI_UNDERSCORE_RE: re.Pattern[str] = re.compile(r"_{2,}")
_LEADING_TRAILING_UNDERSCORE_RE: re.Pattern[str] = re.compile(r"^_+|_+$")
_SPLIT_WORDS_RE: re.Pattern[str] = re.compile(
    r"[A-Z]?[a-z]+|[A-Z]+(?=[A-Z][a-z]|\d|\b)|[A-Z]|\d+"
)

# Python keywords that cannot be used as identifiers
PYTHON_KEYWORDS: FrozenSet[str] = frozenset({
    "False", "None", "True", "and", "as", "assert", "async", "await",
    "break", "class", "continue", "def", "del", "elif", "else",
    "except", "finally", "for", "from", "global", "if", "import",
    "in", "is", "lambda", "nonlocal", "not", "or", "pass", "raise",
    "return", "try", "while", "with", "yield",
})

# Irregular nouns that show up in table names
_IRREGULAR_PLURALS: Dict[str, str] = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "mouse": "mice",
    "goose": "geese",
    "tooth": "teeth",
    "foot": "feet",
    "datum": "data",
    "index": "indices",
    "matrix": "matrices",
    "vertex": "vertices",
    "axis": "axes",
    "crisis": "crises",
    "analysis": "analyses",
    "status": "statuses",
    "address": "addresses",
}
_IRREGULAR_SINGULARS: Dict[str, str] = {v: k for k, v in _IRREGULAR_PLURALS.items()}


def _match_case(template: str, word: str) -> str:
    """Give *word* the leading capitalisation of *template*."""
    if template[0].isupper():
        return word[0].upper() + word[1:]
    return word


# ---------------------------------------------------------------------------
# Cached string transformation functions
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def to_snake_case(name: str) -> str:
    """
    Convert any string to snake_case.

    Examples:
        >>> to_snake_case("BlogPost")
        'blog_post'
        >>> to_snake_case("getHTTPResponse")
        'get_http_response'
        >>> to_snake_case("blog-post")
        'blog_post'
    """
    if not name:
        return ""
    s: str = _CAMEL_TO_SNAKE_RE1.sub(r"\1_\2", name)
    s = _CAMEL_TO_SNAKE_RE2.sub(r"\1_\2", s)
    s = _NON_ALPHANUM_RE.sub("_", s)
    s = _MULTI_UNDERSCORE_RE.sub("_", s)
    s = _LEADING_TRAILING_UNDERSCORE_RE.sub("", s)
    return s.lower()


@functools.lru_cache(maxsize=None)
def to_pascal_case(name: str) -> str:
    """
    Convert any string to PascalCase (the "class case" of generated code).

    Examples:
        >>> to_pascal_case("blog_post")
        'BlogPost'
        >>> to_pascal_case("user")
        'User'
    """
    if not name:
        return ""
    words: Tuple[str, ...] = _extract_words(name)
    return "".join(word.capitalize() for word in words)


@functools.lru_cache(maxsize=None)
def to_title_human(name: str) -> str:
    """
    Convert identifier to human-readable title.

    Examples:
        >>> to_title_human("blog_posts")
        'Blog Posts'
    """
    if not name:
        return ""
    words: Tuple[str, ...] = _extract_words(name)
    return " ".join(w.capitalize() for w in words)


@functools.lru_cache(maxsize=None)
def to_plural(name: str) -> str:
    """
    Naive English pluralisation sufficient for table names.

    Only the last word of a snake_case name is inflected
    (``blog_post`` → ``blog_posts``).
    """
    if not name:
        return ""

    lower: str = name.lower()

    if lower in _IRREGULAR_PLURALS:
        return _match_case(name, _IRREGULAR_PLURALS[lower])

    # Already plural-looking (very naive)
    if lower in _IRREGULAR_SINGULARS:
        return name
    if lower.endswith("s") and not lower.endswith(("ss", "us", "is")):
        return name

    # Rules ordered by specificity
    if lower.endswith(("sh", "ch", "x", "z", "ss", "us")):
        return name + "es"
    if lower.endswith("y") and len(name) > 1 and lower[-2] not in "aeiou":
        return name[:-1] + "ies"
    if lower.endswith("fe"):
        return name[:-2] + "ves"
    if lower.endswith("f") and not lower.endswith("ff"):
        return name[:-1] + "ves"
    if lower.endswith("o") and len(name) > 1 and lower[-2] not in "aeiou":
        return name + "es"

    return name + "s"


@functools.lru_cache(maxsize=None)
def to_singular(name: str) -> str:
    """Naive English singularisation (reverse of to_plural)."""
    if not name:
        return ""

    lower: str = name.lower()

    if lower in _IRREGULAR_SINGULARS:
        return _match_case(name, _IRREGULAR_SINGULARS[lower])

    # Already singular
    if lower in _IRREGULAR_PLURALS:
        return name
    if lower.endswith(("ss", "us", "is")):
        return name

    # Rules in reverse order of pluralisation
    if lower.endswith("ies") and len(name) > 3:
        return name[:-3] + "y"
    if lower.endswith("ves") and len(name) > 3:
        return name[:-3] + "f"
    if lower.endswith("oes") and len(name) > 3:
        return name[:-2]
    if lower.endswith(("ses", "xes", "zes", "ches", "shes")):
        return name[:-2]
    if lower.endswith("s"):
        return name[:-1]

    return name


@functools.lru_cache(maxsize=None)
def _extract_words(name: str) -> Tuple[str, ...]:
    """
    Extract individual words from any casing style.

    Returns a tuple (hashable for LRU cache) of lowercase word strings.
    """
    cleaned: str = _NON_ALPHANUM_RE.sub(" ", name)
    words: List[str] = _SPLIT_WORDS_RE.findall(cleaned)
    return tuple(w.lower() for w in words if w)


def is_identifier(name: str) -> bool:
    """True when *name* is usable as-is as a Python attribute and SQL column."""
    return name.isidentifier() and name.isascii() and name not in PYTHON_KEYWORDS


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    """Create directory (and parents) if it doesn't exist."""
    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)


def write_file(path: Path, content: str, atomic: bool = True) -> int:
    """
    Write *content* to *path*.

    When *atomic* is True, writes to a temporary file in the same directory
    first and then renames it over the target.

    Returns the number of bytes written.
    """
    ensure_directory(path.parent)

    encoded: bytes = content.encode("utf-8")

    if atomic:
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(encoded)
            os.replace(tmp_path, str(path))
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
    else:
        path.write_bytes(encoded)

    logger.debug("Wrote %d bytes to %s", len(encoded), path)
    return len(encoded)


def read_file(path: Path) -> str:
    """Read a file and return its content as a string."""
    return path.read_text(encoding="utf-8")


# ---------------------------------------------------------------------------
# Checksum & metrics
# ---------------------------------------------------------------------------


def sha256_hex(content: str) -> str:
    """Return SHA-256 hex digest of a string."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def count_lines(content: str) -> int:
    """Count the number of lines in a string."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Simple context-manager timer for profiling generation steps.

    Usage:
        with Timer("render blueprints") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Import statement builder
# ---------------------------------------------------------------------------

# Maps Python type names used in generated annotations to their modules
PYTHON_TYPE_IMPORTS: Dict[str, Tuple[str, str]] = {
    "Optional": ("typing", "Optional"),
    "Any": ("typing", "Any"),
    "date": ("datetime", "date"),
    "datetime": ("datetime", "datetime"),
    "Decimal": ("decimal", "Decimal"),
    "UUID": ("uuid", "UUID"),
}

_TYPE_TOKEN_RE: re.Pattern[str] = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def build_import_block(imports: Dict[str, Set[str]]) -> str:
    """
    Build a sorted, de-duplicated import block from a mapping of
    module → set of names.

    Example:
        >>> build_import_block({"typing": {"Optional", "Any"}, "uuid": {"UUID"}})
        'from typing import Any, Optional\\nfrom uuid import UUID'
    """
    lines: List[str] = []
    for module in sorted(imports.keys()):
        names: List[str] = sorted(imports[module])
        if names:
            lines.append(f"from {module} import {', '.join(names)}")
        else:
            lines.append(f"import {module}")
    return "\n".join(lines)


def merge_import_dicts(*dicts: Dict[str, Set[str]]) -> Dict[str, Set[str]]:
    """Merge multiple import dictionaries into one, unifying sets."""
    result: Dict[str, Set[str]] = {}
    for d in dicts:
        for module, names in d.items():
            result.setdefault(module, set()).update(names)
    return result


def collect_type_imports(type_names: Iterable[str]) -> Dict[str, Set[str]]:
    """
    Return the imports needed by a set of generated type annotations.

    ``["Optional[UUID]", "datetime"]`` →
    ``{"typing": {"Optional"}, "uuid": {"UUID"}, "datetime": {"datetime"}}``
    """
    result: Dict[str, Set[str]] = {}
    for type_name in type_names:
        for token in _TYPE_TOKEN_RE.findall(type_name):
            if token in PYTHON_TYPE_IMPORTS:
                module, name = PYTHON_TYPE_IMPORTS[token]
                result.setdefault(module, set()).add(name)
    return result


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "PYTHON_KEYWORDS",
    "to_snake_case",
    "to_pascal_case",
    "to_title_human",
    "to_plural",
    "to_singular",
    "is_identifier",
    "ensure_directory",
    "write_file",
    "read_file",
    "sha256_hex",
    "count_lines",
    "Timer",
    "PYTHON_TYPE_IMPORTS",
    "build_import_block",
    "merge_import_dicts",
    "collect_type_imports",
]

logger.debug("shipwright.utils loaded — %d public symbols.", len(__all__))
