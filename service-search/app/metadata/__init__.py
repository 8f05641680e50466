"""Module metadata extraction.

Turns raw module source text into ``ModuleInfo`` records.
"""

from .extractor import (
    NO_DESCRIPTION,
    ModuleInfo,
    create_metadata_parser,
    parse_comment_metadata,
    parse_module_info,
)
