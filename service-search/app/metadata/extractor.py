"""Metadata extraction from module source text.

Modules published to the index are plain Python files that carry their
metadata loosely: ``# meta`` comments near the top, a ``strings`` dict with a
``"name"`` entry and a class docstring on the ``loader.Module`` subclass.
Two parsers are provided:

- ``parse_comment_metadata``: the older comment-header convention
  (``# Name:``, ``# Description:``)
- ``parse_module_info``: name from the ``strings`` dict, description from the
  class docstring (default)

Both are pure functions of the source text so they can be tested without
network access.
"""

import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

NO_DESCRIPTION = "No description available"

MODULE_BASE_MARKER = "loader.Module"

BANNER_MARKER = "# meta banner:"
DEVELOPER_MARKER = "# meta developer:"
NAME_MARKER = "# Name:"
DESCRIPTION_MARKER = "# Description:"

TRIPLE_QUOTES = ('"""', "'''")

_NAME_PATTERN = re.compile(r"""["']name["']\s*:\s*["']([^"'\n]*)["']""")


@dataclass
class ModuleInfo:
    """Metadata scraped from a module's source."""
    name: Optional[str] = None
    description: Optional[str] = None
    banner: Optional[str] = None
    developer: Optional[str] = None


def _normalize(source: str) -> List[str]:
    return source.replace("\r", "").split("\n")


def _marker_value(line: str, marker: str, current: Optional[str]) -> Optional[str]:
    """Return the value after the first colon of a marker line.

    The first non-empty value wins; empty values keep ``current``.
    """
    if current or not line.startswith(marker):
        return current
    value = line[line.index(":") + 1:].strip()
    return value or current


def parse_comment_metadata(source: str) -> ModuleInfo:
    """Parse the comment-header convention.

    Lines are matched as-is (not stripped), so indented markers are ignored.
    """
    info = ModuleInfo()
    for line in _normalize(source):
        info.name = _marker_value(line, NAME_MARKER, info.name)
        info.description = _marker_value(line, DESCRIPTION_MARKER, info.description)
        info.banner = _marker_value(line, BANNER_MARKER, info.banner)
        info.developer = _marker_value(line, DEVELOPER_MARKER, info.developer)
    return info


def extract_name(source: str) -> Optional[str]:
    """Return the first ``"name": "<value>"`` fragment found in ``source``."""
    match = _NAME_PATTERN.search(source)
    if match is None:
        return None
    return match.group(1).strip() or None


def extract_docstring(lines: List[str]) -> Optional[str]:
    """Find the docstring of the first ``loader.Module`` subclass.

    ``lines`` are expected to be stripped already. The first non-blank line
    after the class declaration must open a triple-quoted literal.
    """
    in_class = False
    quote: Optional[str] = None
    parts: List[str] = []

    for line in lines:
        if quote is not None:
            if quote in line:
                parts.append(line[:line.index(quote)].strip())
                return " ".join(part for part in parts if part) or None
            parts.append(line)
            continue

        if not in_class:
            if line.startswith("class ") and MODULE_BASE_MARKER in line:
                in_class = True
            continue

        if not line or line.startswith("#"):
            continue

        opening = next((q for q in TRIPLE_QUOTES if line.startswith(q)), None)
        if opening is None:
            # Class body starts with something other than a docstring.
            return None

        rest = line[len(opening):]
        if opening in rest:
            return rest[:rest.index(opening)].strip() or None

        quote = opening
        parts.append(rest.strip())

    # Unterminated literal
    return None


def parse_module_info(source: str) -> ModuleInfo:
    """Parse name, description, banner and developer from a module source.

    ``description`` always carries a value, falling back to
    ``NO_DESCRIPTION`` when the module has no class docstring.
    """
    lines = [line.strip() for line in _normalize(source)]

    info = ModuleInfo()
    for line in lines:
        info.banner = _marker_value(line, BANNER_MARKER, info.banner)
        info.developer = _marker_value(line, DEVELOPER_MARKER, info.developer)

    info.name = extract_name(source.replace("\r", ""))
    info.description = extract_docstring(lines) or NO_DESCRIPTION
    return info


MetadataParser = Callable[[str], ModuleInfo]


def create_metadata_parser(parser: str = "docstring") -> MetadataParser:
    """Select a metadata parser by name (``docstring`` or ``comments``)."""
    parsers: Dict[str, MetadataParser] = {
        "docstring": parse_module_info,
        "comments": parse_comment_metadata,
    }
    if parser not in parsers:
        raise ValueError(f"Unknown metadata parser: {parser}")
    return parsers[parser]
