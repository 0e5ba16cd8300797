"""
Tree builder for runtime template tokens.

Nests the flat token list produced by scan_dot: every opening tag gets
the tokens up to its matching closing tag as `nodes` and the closing
tag's offset as `end`. Closing tags are dropped. Opening and closing
tags must match strictly.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import List, Optional, Sequence

from ..errors import MismatchedTagError, MissingCloserError, UnmatchedCloserError
from .tokens import DotTag, DotToken

logger = logging.getLogger(__name__)


class TreeBuilder:
    """
    Builds the tag tree with a read cursor and an explicit opener stack.

    The input tokens are never modified; openers in the result are copies
    carrying `nodes` and `end`.

    A `{{??}}` tag closes the current conditional branch and then opens
    the next one: after closing, the cursor stays on it and the token is
    read again as an opener.
    """

    def __init__(self, tokens: Sequence[DotToken]):
        self._tokens = tuple(tokens)
        self._position = 0
        self._stack: List[DotToken] = []
        # cursor position of an else tag re-read as an opener
        self._reopened: Optional[int] = None

    def build(self) -> List[DotToken]:
        """
        Returns:
            Top-level tokens with nested tokens attached to their openers

        Raises:
            UnmatchedCloserError: A closing tag has no opening tag
            MismatchedTagError: A closing tag does not match the innermost opening tag
            MissingCloserError: An opening tag is never closed
        """
        self._position = 0
        self._stack = []
        self._reopened = None
        result = self._collect()
        logger.debug("Built tag tree with %d top-level tokens", len(result))
        return result

    def _collect(self) -> List[DotToken]:
        result: List[DotToken] = []
        while self._position < len(self._tokens):
            token = self._tokens[self._position]

            if token.tag.is_block:
                reopened = self._reopened == self._position
                if self._is_closer(token) and not reopened:
                    self._close(token)
                    if token.tag is DotTag.ELSE:
                        # read again as the opener of the next branch
                        self._reopened = self._position
                    else:
                        self._position += 1
                    return result

                if token.expr or token.tag is DotTag.ELSE:
                    self._position += 1
                    self._reopened = None
                    opener = dataclasses.replace(token, nodes=None, end=None)
                    self._stack.append(opener)
                    opener.nodes = self._collect()
                    result.append(opener)
                    continue

            self._position += 1
            result.append(token)

        if self._stack:
            opener = self._stack.pop()
            raise MissingCloserError(opener.tag.value, opener.i)
        return result

    @staticmethod
    def _is_closer(token: DotToken) -> bool:
        return not token.expr or token.tag is DotTag.ELSE

    def _close(self, token: DotToken) -> None:
        if not self._stack:
            raise UnmatchedCloserError(token.tag.value, token.i)
        opener = self._stack.pop()
        if token.tag.family != opener.tag.family:
            raise MismatchedTagError(token.tag.value, token.i, opener.tag.value, opener.i)
        opener.end = token.i


def parse_dot(tokens: Sequence[DotToken]) -> List[DotToken]:
    """
    Convert a flat list of runtime tokens into a tree of tokens.

    Args:
        tokens: Tokens produced by scan_dot

    Returns:
        Top-level tokens; opening tags carry `nodes` and `end`
    """
    return TreeBuilder(tokens).build()


__all__ = ["TreeBuilder", "parse_dot"]
