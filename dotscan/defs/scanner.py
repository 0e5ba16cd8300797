"""
Scanner for compile-time tags.

Recognizes defines (`{{##name:value#}}`, `{{##name=code#}}`) and
compile-time evaluations (`{{#code}}`) independently of the runtime
dialect. Evaluation bodies are split further into code fragments and
parameterized define references (`def.name:arg`).
"""

from __future__ import annotations

import logging
import re
from typing import List

from .tokens import DefTag, DefToken

logger = logging.getLogger(__name__)

# define or evaluation tag; \w matches ASCII word characters only, as in JavaScript
SCAN_PATTERN = re.compile(r"\{\{##\s*([\w.$]+)\s*(:|=)([\s\S]+?)#\}\}|\{\{#([\s\S]+?)\}\}", re.ASCII)

# optional parameter of a template string define: param:value
DEFINE_PARAM_PATTERN = re.compile(r"^\s*([\w$]+):([\s\S]+)", re.ASCII)

# parameterized define reference inside an evaluation: def.name:arg or def['name']:arg
USE_PARAM_PATTERN = re.compile(
    r"(^|[^\w$])def(?:\.|\[['\"])([\w$.]+)(?:['\"]\])?\s*:\s*([\w$.]+|\"[^\"]+\"|'[^']+'|\{[^}]+\})",
    re.ASCII,
)

DEF_PREFIX = "def."

# "{{#" precedes the evaluation body
_EVALUATE_OPEN_LENGTH = 3


def scan_defs(text: str, ignore_def_text: bool = False) -> List[DefToken]:
    """
    Convert a template into a list of compile-time tokens.

    Args:
        text: Template text
        ignore_def_text: Omit literal text tokens

    Returns:
        List of define, evaluation and literal text tokens
    """
    tokens: List[DefToken] = []
    prev_index = 0
    for match in SCAN_PATTERN.finditer(text):
        if not ignore_def_text and prev_index < match.start():
            tokens.append(DefToken(DefTag.TEXT, text=text[prev_index:match.start()]))
        prev_index = match.end()

        if match.group(1):
            token = _make_define(match.group(1), match.group(2), match.group(3))
        else:
            nodes = scan_params(match.group(4), match.start() + _EVALUATE_OPEN_LENGTH)
            token = DefToken(DefTag.EVALUATE, nodes=nodes)
        token.i = match.start()
        tokens.append(token)

    if not ignore_def_text and prev_index < len(text):
        tokens.append(DefToken(DefTag.TEXT, text=text[prev_index:]))

    logger.debug("Scanned %d compile-time tokens", len(tokens))
    return tokens


def _make_define(name: str, assign: str, expr: str) -> DefToken:
    if name.startswith(DEF_PREFIX):
        name = name[len(DEF_PREFIX):]
    token = DefToken(DefTag.DEFINE, name=name, assign=assign)
    if assign == ":":
        param_match = DEFINE_PARAM_PATTERN.match(expr)
        if param_match:
            token.param = param_match.group(1)
            token.value = param_match.group(2)
        else:
            token.value = expr
    else:
        token.code = expr
    return token


def scan_params(code: str, base_index: int = 0) -> List[DefToken]:
    """
    Split an evaluation body into code fragments and parameterized references.

    Args:
        code: Evaluation body
        base_index: Input offset of the body

    Returns:
        Code fragment and parameter reference tokens in source order
    """
    tokens: List[DefToken] = []
    prev_index = 0
    for match in USE_PARAM_PATTERN.finditer(code):
        prefix, def_name, arg = match.groups()

        expr_index = match.start() + len(prefix)
        if prev_index < expr_index:
            tokens.append(DefToken(DefTag.CODE, code=code[prev_index:expr_index], i=base_index + prev_index))
        prev_index = match.end()

        tokens.append(DefToken(DefTag.PARAM, def_name=def_name, arg=arg, i=base_index + expr_index))

    if prev_index < len(code):
        tokens.append(DefToken(DefTag.CODE, code=code[prev_index:], i=base_index + prev_index))
    return tokens


__all__ = ["scan_defs", "scan_params", "SCAN_PATTERN", "DEFINE_PARAM_PATTERN", "USE_PARAM_PATTERN"]
