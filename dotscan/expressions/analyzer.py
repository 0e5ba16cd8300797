"""
Type and usage analysis of tag expressions against a Scope.

The analyzer resolves the variables and member paths an expression
references, creating their records on first use, and infers types from
the way they are used. The record returned for a plain reference is the
live entry in the scope, so callers can merge usage flags onto it; any
other expression yields a detached record carrying only a type.

Expressions are parsed with tree-sitter. Function parameters and
declarations inside function bodies are local to a nested scope;
callbacks of array methods see the array's elements record as their
first parameter.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence, Union

from tree_sitter import Node

from ..analysis.scope import Scope, VariableInfo
from ..analysis.types import ARRAY, NUMBER, OBJECT, STRING, UNKNOWN, InferredType, TypeKind, array_of
from .syntax import (
    ExpressionSyntaxError,
    flatten_sequence,
    node_text,
    parse_expression,
    significant_children,
    string_value,
    template_parts,
)

logger = logging.getLogger(__name__)

_ARITHMETIC = {"-", "*", "/", "%", "**", "&", "|", "^", "<<", ">>", ">>>"}
_FUNCTION_TYPES = ("arrow_function", "function_expression", "function", "generator_function")

# Standard globals are not template variables
JS_GLOBALS = frozenset({
    "Array", "Boolean", "Date", "Error", "Infinity", "Intl", "JSON", "Map", "Math", "NaN",
    "Number", "Object", "Promise", "RegExp", "Set", "String", "Symbol", "console",
    "decodeURI", "decodeURIComponent", "encodeURI", "encodeURIComponent", "globalThis",
    "isFinite", "isNaN", "parseFloat", "parseInt", "undefined",
})

# Result types of methods; "owner" is the owner's type, "elements" the elements record
_STRING_METHODS: Dict[str, InferredType] = {
    "toUpperCase": STRING, "toLowerCase": STRING, "toLocaleUpperCase": STRING,
    "toLocaleLowerCase": STRING, "trim": STRING, "trimStart": STRING, "trimEnd": STRING,
    "charAt": STRING, "substring": STRING, "substr": STRING, "padStart": STRING,
    "padEnd": STRING, "repeat": STRING, "replace": STRING, "replaceAll": STRING,
    "normalize": STRING, "slice": STRING, "concat": STRING, "at": STRING,
    "split": array_of(STRING), "charCodeAt": NUMBER, "codePointAt": NUMBER,
    "search": NUMBER, "localeCompare": NUMBER, "indexOf": NUMBER, "lastIndexOf": NUMBER,
    "startsWith": UNKNOWN, "endsWith": UNKNOWN, "includes": UNKNOWN, "match": UNKNOWN,
}
_ARRAY_METHODS: Dict[str, Union[InferredType, str]] = {
    "map": ARRAY, "flatMap": ARRAY, "flat": ARRAY, "filter": "owner", "slice": "owner",
    "concat": "owner", "reverse": "owner", "sort": "owner", "splice": "owner", "fill": "owner",
    "join": STRING, "indexOf": NUMBER, "lastIndexOf": NUMBER, "findIndex": NUMBER,
    "findLastIndex": NUMBER, "push": NUMBER, "unshift": NUMBER, "find": "elements",
    "findLast": "elements", "at": "elements", "pop": "elements", "shift": "elements",
    "some": UNKNOWN, "every": UNKNOWN, "includes": UNKNOWN, "forEach": UNKNOWN,
    "reduce": UNKNOWN, "reduceRight": UNKNOWN,
}
_NUMBER_METHODS = {"toFixed", "toPrecision", "toExponential"}
_COMMON_METHODS: Dict[str, InferredType] = {
    "toString": STRING, "toLocaleString": STRING, "valueOf": UNKNOWN, "hasOwnProperty": UNKNOWN,
}
_ELEMENT_CALLBACKS = {
    "map", "flatMap", "filter", "forEach", "some", "every", "find", "findIndex",
    "findLast", "findLastIndex",
}


class ExpressionAnalysisError(Exception):
    """An expression parsed but could not be analyzed."""
    pass


def _elements_of(owner: VariableInfo) -> VariableInfo:
    """Live record for the elements of an array, typed from the array type."""
    if owner.elements is None:
        owner.elements = VariableInfo()
    if owner.elements.type.is_unknown:
        owner.elements.type = owner.type.element_type
    return owner.elements


def _is_statement(node: Node) -> bool:
    return node.type.endswith("statement") or node.type.endswith("declaration") or node.type in (
        "statement_block",
        "else_clause",
    )


class ExpressionAnalyzer:
    """
    Default expression analysis capability.

    Parses the expression of a tag body and analyzes it against the
    given scope. Unresolved names other than standard globals are
    created in the root scope.
    """

    def analyze(self, expr: str, scope: Scope) -> VariableInfo:
        """
        Analyze an expression string.

        Args:
            expr: Expression text as written in the tag
            scope: Scope used for name resolution

        Returns:
            The referenced record, or a detached record with the inferred type

        Raises:
            ExpressionSyntaxError: When the expression cannot be parsed
            ExpressionAnalysisError: When the expression cannot be analyzed
        """
        _doc, node = parse_expression(expr)
        return self.analyze_node(node, scope)

    def analyze_node(self, node: Node, scope: Scope) -> VariableInfo:
        node_type = node.type

        if node_type == "identifier":
            return self._analyze_identifier(node_text(node), scope)
        elif node_type == "member_expression":
            return self._analyze_member(node, scope)
        elif node_type == "subscript_expression":
            return self._analyze_subscript(node, scope)
        elif node_type == "call_expression":
            return self._analyze_call(node, scope)
        elif node_type == "new_expression":
            self.analyze_node(node.child_by_field_name("constructor"), scope)
            self._analyze_arguments(node.child_by_field_name("arguments"), scope)
            return VariableInfo(type=OBJECT)
        elif node_type in ("string", "template_string"):
            if node_type == "template_string":
                for part in template_parts(node):
                    if not isinstance(part, str):
                        self.analyze_node(part, scope)
            return VariableInfo(type=STRING)
        elif node_type == "number":
            return VariableInfo(type=NUMBER)
        elif node_type in ("regex", "object"):
            if node_type == "object":
                self._analyze_object(node, scope)
            return VariableInfo(type=OBJECT)
        elif node_type in ("true", "false", "null", "undefined", "this", "super"):
            return VariableInfo()
        elif node_type == "unary_expression":
            return self._analyze_unary(node, scope)
        elif node_type == "update_expression":
            target = self.analyze_node(node.child_by_field_name("argument"), scope)
            if target.type.is_unknown:
                target.type = NUMBER
            return VariableInfo(type=NUMBER)
        elif node_type == "binary_expression":
            return self._analyze_binary(node, scope)
        elif node_type == "ternary_expression":
            self.analyze_node(node.child_by_field_name("condition"), scope)
            consequence = self.analyze_node(node.child_by_field_name("consequence"), scope)
            alternative = self.analyze_node(node.child_by_field_name("alternative"), scope)
            return VariableInfo(type=consequence.type.join(alternative.type))
        elif node_type in ("assignment_expression", "augmented_assignment_expression"):
            return self._analyze_assignment(node, scope)
        elif node_type in ("sequence_expression", "parenthesized_expression"):
            result = VariableInfo()
            for expression in flatten_sequence(node):
                result = self.analyze_node(expression, scope)
            return result
        elif node_type == "array":
            return self._analyze_array(node, scope)
        elif node_type in _FUNCTION_TYPES:
            return self._analyze_function(node, scope)
        elif node_type == "ERROR":
            raise ExpressionAnalysisError(f"Unparsed input: {node_text(node)}")
        else:
            # spread, await, yield and other wrappers
            for child in significant_children(node):
                self.analyze_node(child, scope)
            return VariableInfo()

    @staticmethod
    def _analyze_identifier(name: str, scope: Scope) -> VariableInfo:
        info = scope.find_member(name)
        if info is None:
            if name in JS_GLOBALS:
                return VariableInfo(type=NUMBER if name in ("NaN", "Infinity") else UNKNOWN)
            logger.debug("Adding unresolved name '%s' to the root scope", name)
            info = scope.get_root().add_own_member(name)
        return info

    def _analyze_member(self, node: Node, scope: Scope) -> VariableInfo:
        owner = self.analyze_node(node.child_by_field_name("object"), scope)
        return self._static_member(owner, node_text(node.child_by_field_name("property")))

    @staticmethod
    def _static_member(owner: VariableInfo, name: str) -> VariableInfo:
        if owner.type.is_unknown:
            owner.type = OBJECT
        return owner.ensure_member(name)

    def _analyze_subscript(self, node: Node, scope: Scope) -> VariableInfo:
        owner = self.analyze_node(node.child_by_field_name("object"), scope)
        index = node.child_by_field_name("index")
        if index.type == "string":
            return self._static_member(owner, string_value(index))

        self.analyze_node(index, scope)
        if owner.type.kind is TypeKind.STRING:
            return VariableInfo(type=STRING)
        # computed index: the owner is used as an array
        if owner.type.is_unknown:
            owner.type = ARRAY
        if owner.type.is_array:
            return _elements_of(owner)
        return VariableInfo()

    def _analyze_call(self, node: Node, scope: Scope) -> VariableInfo:
        callee = node.child_by_field_name("function")
        arguments = node.child_by_field_name("arguments")

        if callee.type == "member_expression":
            owner = self.analyze_node(callee.child_by_field_name("object"), scope)
            method = node_text(callee.child_by_field_name("property"))
            result = self._analyze_method(owner, method, arguments, scope)
            if result is not None:
                return result
            self._static_member(owner, method)
        else:
            self.analyze_node(callee, scope)

        self._analyze_arguments(arguments, scope)
        return VariableInfo()

    def _analyze_method(
        self,
        owner: VariableInfo,
        method: str,
        arguments: Optional[Node],
        scope: Scope,
    ) -> Optional[VariableInfo]:
        """Calls of standard methods; None when the method is not a known one."""
        in_string = method in _STRING_METHODS
        in_array = method in _ARRAY_METHODS
        if owner.type.kind in (TypeKind.UNKNOWN, TypeKind.OBJECT):
            if in_array and not in_string:
                owner.type = ARRAY
            elif in_string and not in_array:
                owner.type = STRING
            elif method in _NUMBER_METHODS and owner.type.is_unknown:
                owner.type = NUMBER

        kind = owner.type.kind
        if kind is TypeKind.ARRAY and in_array:
            elements = _elements_of(owner)
            self._analyze_arguments(arguments, scope, self._callback_bindings(method, elements))
            result = _ARRAY_METHODS[method]
            if isinstance(result, InferredType):
                return VariableInfo(type=result)
            if result == "elements":
                return elements
            return VariableInfo(type=owner.type)
        if kind is TypeKind.STRING and in_string:
            self._analyze_arguments(arguments, scope)
            return VariableInfo(type=_STRING_METHODS[method])
        if kind is TypeKind.NUMBER and method in _NUMBER_METHODS:
            self._analyze_arguments(arguments, scope)
            return VariableInfo(type=STRING)
        if method in _COMMON_METHODS or in_string or in_array:
            self._analyze_arguments(arguments, scope)
            return VariableInfo(type=_COMMON_METHODS.get(method, UNKNOWN))
        return None

    @staticmethod
    def _callback_bindings(method: str, elements: VariableInfo) -> Sequence[Optional[VariableInfo]]:
        if method in _ELEMENT_CALLBACKS:
            return elements, VariableInfo(type=NUMBER)
        if method in ("reduce", "reduceRight"):
            return None, elements, VariableInfo(type=NUMBER)
        if method == "sort":
            return elements, elements
        return ()

    def _analyze_arguments(
        self,
        arguments: Optional[Node],
        scope: Scope,
        bindings: Sequence[Optional[VariableInfo]] = (),
    ) -> None:
        if arguments is None:
            return
        if arguments.type != "arguments":
            # tagged template
            self.analyze_node(arguments, scope)
            return
        for argument in significant_children(arguments):
            if argument.type in _FUNCTION_TYPES and bindings:
                self._analyze_function(argument, scope, bindings)
            else:
                self.analyze_node(argument, scope)

    def _analyze_function(
        self,
        node: Node,
        scope: Scope,
        bindings: Sequence[Optional[VariableInfo]] = (),
    ) -> VariableInfo:
        nested = scope.create_nested()
        parameter = node.child_by_field_name("parameter")
        if parameter is not None:
            parameters = [parameter]
        else:
            parameters_node = node.child_by_field_name("parameters")
            parameters = significant_children(parameters_node) if parameters_node is not None else []
        for index, pattern in enumerate(parameters):
            self._bind_pattern(pattern, nested, bindings[index] if index < len(bindings) else None)

        body = node.child_by_field_name("body")
        if body is not None:
            if body.type == "statement_block":
                self._analyze_statements(body, nested)
            else:
                self.analyze_node(body, nested)
        return VariableInfo()

    def _bind_pattern(self, pattern: Node, scope: Scope, info: Optional[VariableInfo]) -> None:
        """Declare the names of a binding pattern in scope, linked to info where known."""
        pattern_type = pattern.type
        if pattern_type in ("identifier", "shorthand_property_identifier_pattern"):
            name = node_text(pattern)
            scope.add_own_member(name, info if info is not None else VariableInfo(name=name))
        elif pattern_type in ("assignment_pattern", "object_assignment_pattern"):
            default = self.analyze_node(pattern.child_by_field_name("right"), scope)
            if info is None:
                info = VariableInfo(type=default.type)
            else:
                info.merge_type(default.type)
            self._bind_pattern(pattern.child_by_field_name("left"), scope, info)
        elif pattern_type == "rest_pattern":
            for child in significant_children(pattern):
                self._bind_pattern(child, scope, None)
        elif pattern_type == "object_pattern":
            for child in significant_children(pattern):
                member: Optional[VariableInfo] = None
                if child.type == "pair_pattern":
                    key = child.child_by_field_name("key")
                    if info is not None and key.type in ("property_identifier", "string"):
                        name = string_value(key) if key.type == "string" else node_text(key)
                        member = self._static_member(info, name)
                    self._bind_pattern(child.child_by_field_name("value"), scope, member)
                    continue
                if info is not None and child.type != "rest_pattern":
                    name_node = child
                    if child.type == "object_assignment_pattern":
                        name_node = child.child_by_field_name("left")
                    member = self._static_member(info, node_text(name_node))
                self._bind_pattern(child, scope, member)
        elif pattern_type == "array_pattern":
            element: Optional[VariableInfo] = None
            if info is not None:
                if info.type.is_unknown:
                    info.type = ARRAY
                if info.type.is_array:
                    element = _elements_of(info)
            for child in significant_children(pattern):
                self._bind_pattern(child, scope, None if child.type == "rest_pattern" else element)
        else:
            self.analyze_node(pattern, scope)

    def _analyze_statements(self, block: Node, scope: Scope) -> None:
        for statement in significant_children(block):
            self._analyze_statement(statement, scope)

    def _analyze_statement(self, node: Node, scope: Scope) -> None:
        if node.type in ("lexical_declaration", "variable_declaration"):
            for declarator in significant_children(node):
                value = declarator.child_by_field_name("value")
                info = self.analyze_node(value, scope) if value is not None else None
                self._bind_pattern(declarator.child_by_field_name("name"), scope, info)
        elif node.type == "function_declaration":
            name = node.child_by_field_name("name")
            if name is not None:
                scope.add_own_member(node_text(name), VariableInfo())
            self._analyze_function(node, scope)
        elif node.type == "statement_block":
            self._analyze_statements(node, scope.create_nested())
        else:
            for child in significant_children(node):
                if _is_statement(child):
                    self._analyze_statement(child, scope)
                else:
                    self.analyze_node(child, scope)

    def _analyze_unary(self, node: Node, scope: Scope) -> VariableInfo:
        operator = node_text(node.child_by_field_name("operator"))
        self.analyze_node(node.child_by_field_name("argument"), scope)
        if operator in ("-", "+", "~"):
            return VariableInfo(type=NUMBER)
        if operator == "typeof":
            return VariableInfo(type=STRING)
        return VariableInfo()

    def _analyze_binary(self, node: Node, scope: Scope) -> VariableInfo:
        operator = node_text(node.child_by_field_name("operator"))
        left = self.analyze_node(node.child_by_field_name("left"), scope)
        right = self.analyze_node(node.child_by_field_name("right"), scope)

        if operator in ("&&", "||", "??"):
            return VariableInfo(type=left.type.join(right.type))

        if operator == "+":
            if TypeKind.STRING in (left.type.kind, right.type.kind):
                return VariableInfo(type=STRING)
            if left.type.kind is TypeKind.NUMBER and right.type.kind is TypeKind.NUMBER:
                return VariableInfo(type=NUMBER)
            return VariableInfo()

        if operator in _ARITHMETIC:
            for operand in (left, right):
                if operand.type.is_unknown:
                    operand.type = NUMBER
            return VariableInfo(type=NUMBER)

        # comparisons, equality, in, instanceof
        return VariableInfo()

    def _analyze_assignment(self, node: Node, scope: Scope) -> VariableInfo:
        value = self.analyze_node(node.child_by_field_name("right"), scope)
        left = node.child_by_field_name("left")
        if left.type in ("object_pattern", "array_pattern"):
            # destructuring assignment binds into existing names
            self._bind_pattern(left, scope.create_nested(), value)
            return value

        target = self.analyze_node(left, scope)
        value_type: InferredType = value.type
        if node.type == "augmented_assignment_expression":
            operator = node_text(node.child_by_field_name("operator"))
            if operator[:-1] in _ARITHMETIC:
                value_type = NUMBER
        target.merge_type(value_type)
        return target

    def _analyze_array(self, node: Node, scope: Scope) -> VariableInfo:
        element = UNKNOWN
        for child in significant_children(node):
            if child.type == "spread_element":
                spread = VariableInfo()
                for inner in significant_children(child):
                    spread = self.analyze_node(inner, scope)
                element = element.join(spread.type.element_type)
            else:
                element = element.join(self.analyze_node(child, scope).type)
        return VariableInfo(type=array_of(element))

    def _analyze_object(self, node: Node, scope: Scope) -> None:
        for child in significant_children(node):
            if child.type == "pair":
                key = child.child_by_field_name("key")
                if key.type == "computed_property_name":
                    self.analyze_node(key, scope)
                value = child.child_by_field_name("value")
                if value.type in _FUNCTION_TYPES:
                    self._analyze_function(value, scope)
                else:
                    self.analyze_node(value, scope)
            elif child.type == "shorthand_property_identifier":
                self._analyze_identifier(node_text(child), scope)
            elif child.type == "method_definition":
                self._analyze_function(child, scope)
            else:
                self.analyze_node(child, scope)


def analyze_expression(expr: str, scope: Scope) -> VariableInfo:
    """Convenience wrapper around ExpressionAnalyzer.analyze()."""
    return ExpressionAnalyzer().analyze(expr, scope)


__all__ = [
    "ExpressionAnalyzer",
    "ExpressionAnalysisError",
    "ExpressionSyntaxError",
    "JS_GLOBALS",
    "analyze_expression",
]
