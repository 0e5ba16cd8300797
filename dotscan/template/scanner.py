"""
Scanner for runtime template tags.

Splits a template, whose compile-time tags have already been expanded,
into a flat list of tag and literal text tokens.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional

from .tokens import DotTag, DotToken

logger = logging.getLogger(__name__)

# Evaluation is a separate alternative because its body may end in extra closing braces
SCAN_PATTERN = re.compile(r"\{\{([^=!#?~][\s\S]*?\}*)\}\}|\{\{(=|!|\?\??|~)\s*([\s\S]*?)\}\}")

# Iteration body: expr : value [: index]; names are ASCII word characters
ITERATE_PATTERN = re.compile(r"^([\s\S]+?)\s*:\s*([\w$]+)\s*(?::\s*([\w$]+))?\s*\Z", re.ASCII)


def scan_dot(text: str, ignore_text: bool = False) -> List[DotToken]:
    """
    Convert a runtime template into a list of tokens.

    The tokens cover the whole input in order. Tags that do not parse
    (an iteration body without a value name) stay part of the
    surrounding literal text.

    Args:
        text: Template text without compile-time tags
        ignore_text: Omit literal text tokens

    Returns:
        List of tokens
    """
    tokens: List[DotToken] = []
    prev_index = 0
    for match in SCAN_PATTERN.finditer(text):
        if match.group(1):
            token = _make_token(DotTag.EVALUATE, match.group(1))
        else:
            token = _make_token(DotTag(match.group(2)), match.group(3))

        if token is None:
            logger.debug("Treating unrecognized tag at %d as text: %r", match.start(), match.group(0))
            continue

        if not ignore_text and prev_index < match.start():
            tokens.append(DotToken(DotTag.TEXT, text=text[prev_index:match.start()]))
        prev_index = match.end()

        token.i = match.start()
        tokens.append(token)

    if not ignore_text and prev_index < len(text):
        tokens.append(DotToken(DotTag.TEXT, text=text[prev_index:]))

    logger.debug("Scanned %d runtime tokens", len(tokens))
    return tokens


def _make_token(tag: DotTag, body: str) -> Optional[DotToken]:
    if tag is not DotTag.ITERATE:
        return DotToken(tag, expr=body or None)

    if not body:
        # end of iteration
        return DotToken(tag)
    body_match = ITERATE_PATTERN.match(body)
    if body_match is None:
        return None
    expr, value, index = body_match.groups()
    return DotToken(tag, expr=expr, value=value, index=index)


__all__ = ["scan_dot", "SCAN_PATTERN", "ITERATE_PATTERN"]
