"""File selection with approximate glob matching.

Patterns support ``**`` (any sequence of path segments), ``*`` (anything
within one segment), ``?`` (one character within a segment) and ``[...]``
character classes, negated with ``[!...]``. A pattern whose class does not
compile, such as ``[z-a]`` or an unclosed ``[``, is matched as a plain
substring with the wildcards removed.

Matching is deliberately approximate: the translated pattern may match
anywhere in the path, so ``vendor/**`` excludes ``src/vendor/lib.py`` as well.
Exclusion is always checked first and wins over inclusion.

Example:
    >>> matches_pattern('src/app/test_views.py', '**/test_*.py')
    True
    >>> is_path_selected('src/app/views.py', ['**/*.py'], ['**/test_*.py'])
    True
"""

from __future__ import annotations

from functools import lru_cache
import logging
from pathlib import PurePath
import re
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Iterable
    from os import PathLike

    from pytest_hotpath.config import HotpathConfig


logger = logging.getLogger(__name__)


@lru_cache(maxsize=256)
def _compile_pattern(pattern: str) -> re.Pattern[str] | None:
    """Translate a glob-like pattern to a regular expression.

    Returns:
        The compiled expression, or None if the pattern cannot be compiled.
    """
    parts: list[str] = []
    i = 0
    while i < len(pattern):
        if pattern.startswith('**/', i):
            parts.append('(?:.*/)?')
            i += 3
        elif pattern.startswith('**', i):
            parts.append('.*')
            i += 2
        elif pattern[i] == '*':
            parts.append('[^/]*')
            i += 1
        elif pattern[i] == '?':
            parts.append('[^/]')
            i += 1
        elif pattern[i] == '[':
            end = pattern.find(']', i + 2)
            if end == -1:
                # Left unterminated so compilation fails.
                parts.append(pattern[i:])
                break
            body = pattern[i + 1 : end]
            if body.startswith('!'):
                body = '^' + body[1:]
            parts.append(f'[{body}]')
            i = end + 1
        else:
            parts.append(re.escape(pattern[i]))
            i += 1
    try:
        return re.compile('(?:^|/)' + ''.join(parts) + '$')
    except re.error:
        logger.debug('Pattern %r could not be compiled, falling back to substring match', pattern)
        return None


def matches_pattern(path: str, pattern: str) -> bool:
    """Return True if ``path`` approximately matches ``pattern``.

    Args:
        path: File path, any separator style.
        pattern: Glob-like pattern.

    Returns:
        True on a match. Patterns that fail to compile degrade to a substring
        test with the wildcards removed.
    """
    posix_path = path.replace('\\', '/')
    compiled = _compile_pattern(pattern)
    if compiled is None:
        fragment = pattern.replace('**/', '').replace('*', '')
        return bool(fragment) and fragment in posix_path
    return compiled.search(posix_path) is not None


def is_path_selected(path: str, include_patterns: Iterable[str], exclude_patterns: Iterable[str]) -> bool:
    """Decide whether a file takes part in instrumentation.

    Args:
        path: File path.
        include_patterns: Patterns of which one must match. Empty means all.
        exclude_patterns: Patterns of which none may match.

    Returns:
        True if the file should be instrumented.
    """
    if any(matches_pattern(path, pattern) for pattern in exclude_patterns):
        return False
    includes = list(include_patterns)
    if not includes:
        return True
    return any(matches_pattern(path, pattern) for pattern in includes)


def should_instrument(path: str | PathLike[str], config: HotpathConfig) -> bool:
    """Return True if ``path`` should be instrumented under ``config``."""
    if not config.enabled:
        return False
    return is_path_selected(PurePath(path).as_posix(), config.include_patterns, config.exclude_patterns)
