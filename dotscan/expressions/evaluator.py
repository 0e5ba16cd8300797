"""
Sandboxed evaluator for compile-time code.

Compile-time code is parsed as a JavaScript script with tree-sitter and
interpreted with JavaScript value semantics. The result is the
completion value of the script, as with a script run in a VM context.
Besides the built-ins, the only name visible to the code is `def`, bound
to a deep copy of the value bag, so evaluation cannot change anything
outside of it. Every evaluation runs against a deadline and fails with
EvaluationTimeoutError once the deadline has passed.
"""

from __future__ import annotations

import copy
import math
import time
from typing import Any, Dict, List, Mapping, Optional

from tree_sitter import Node

from .builtins import delete_member, get_member, has_property, instance_of, make_globals, set_member
from .syntax import (
    ExpressionSyntaxError,
    flatten_sequence,
    has_optional_chain,
    node_text,
    parse_number,
    parse_script,
    significant_children,
    string_value,
    template_parts,
)
from .values import (
    UNDEFINED,
    EvaluationError,
    EvaluationTimeoutError,
    JSCallable,
    JSRegExp,
    arithmetic,
    is_nullish,
    is_truthy,
    js_typeof,
    loose_equals,
    strict_equals,
    to_int32,
    to_js_string,
    to_number,
    to_primitive,
    to_property_key,
    to_uint32,
)

_EMPTY = object()

_FUNCTION_TYPES = ("arrow_function", "function_expression", "function")
_BITWISE = ("&", "|", "^", "<<", ">>", ">>>")


class _Return(Exception):
    def __init__(self, value: Any):
        super().__init__()
        self.value = value


class _Environment:
    """Lexical environment: bindings plus a link to the enclosing one."""

    def __init__(self, parent: Optional[_Environment] = None):
        self.parent = parent
        self.bindings: Dict[str, Any] = {}

    def _find(self, name: str) -> Optional[_Environment]:
        env: Optional[_Environment] = self
        while env is not None:
            if name in env.bindings:
                return env
            env = env.parent
        return None

    def has(self, name: str) -> bool:
        return self._find(name) is not None

    def get(self, name: str) -> Any:
        env = self._find(name)
        if env is None:
            raise EvaluationError(f"{name} is not defined")
        return env.bindings[name]

    def declare(self, name: str, value: Any) -> None:
        self.bindings[name] = value

    def assign(self, name: str, value: Any) -> None:
        env = self._find(name)
        if env is None:
            # sloppy-mode scripts create a global
            env = self
            while env.parent is not None:
                env = env.parent
        env.bindings[name] = value


class ScriptFunction(JSCallable):
    """Arrow function or function expression closed over its environment."""

    def __init__(self, node: Node, env: _Environment, interpreter: _Interpreter):
        name_node = node.child_by_field_name("name")
        self.name = node_text(name_node) if name_node is not None else ""
        self.node = node
        self.env = env
        self.interpreter = interpreter

    def call(self, args: List[Any]) -> Any:
        return self.interpreter.call_function(self, args)


class _Interpreter:
    """Executes one parsed script against a deadline."""

    def __init__(self, deadline: float):
        self.deadline = deadline
        self._function_depth = 0

    def _check_deadline(self) -> None:
        if time.monotonic() > self.deadline:
            raise EvaluationTimeoutError("Script execution timed out")

    # Statements

    def run(self, program: Node, env: _Environment) -> Any:
        result = self._execute_statements(significant_children(program), env)
        return UNDEFINED if result is _EMPTY else result

    def _execute_statements(self, statements: List[Node], env: _Environment) -> Any:
        result: Any = _EMPTY
        for statement in statements:
            value = self.execute(statement, env)
            if value is not _EMPTY:
                result = value
        return result

    def execute(self, node: Node, env: _Environment) -> Any:
        """Run one statement, returning its completion value or _EMPTY."""
        self._check_deadline()
        node_type = node.type

        if node_type == "expression_statement":
            return self._evaluate_all(significant_children(node), env)
        elif node_type in ("lexical_declaration", "variable_declaration"):
            for declarator in significant_children(node):
                value_node = declarator.child_by_field_name("value")
                value = self.evaluate(value_node, env) if value_node is not None else UNDEFINED
                self._bind_pattern(declarator.child_by_field_name("name"), value, env)
            return _EMPTY
        elif node_type == "if_statement":
            condition = self.evaluate(node.child_by_field_name("condition"), env)
            if is_truthy(condition):
                return self.execute(node.child_by_field_name("consequence"), env)
            alternative = node.child_by_field_name("alternative")
            if alternative is None:
                return _EMPTY
            return self._execute_statements(significant_children(alternative), env)
        elif node_type == "statement_block":
            return self._execute_statements(significant_children(node), _Environment(env))
        elif node_type == "return_statement":
            if self._function_depth == 0:
                raise EvaluationError("SyntaxError: Illegal return statement")
            values = significant_children(node)
            raise _Return(self._evaluate_all(values, env) if values else UNDEFINED)
        elif node_type == "function_declaration":
            function = ScriptFunction(node, env, self)
            env.declare(function.name, function)
            return _EMPTY
        elif node_type == "empty_statement":
            return _EMPTY
        else:
            raise EvaluationError(f"Unsupported syntax: {node_type}")

    def _evaluate_all(self, nodes: List[Node], env: _Environment) -> Any:
        result: Any = UNDEFINED
        for expression in nodes:
            result = self.evaluate(expression, env)
        return result

    # Functions

    def call_function(self, function: ScriptFunction, args: List[Any]) -> Any:
        env = _Environment(function.env)
        node = function.node
        parameter = node.child_by_field_name("parameter")
        if parameter is not None:
            parameters = [parameter]
        else:
            parameters = significant_children(node.child_by_field_name("parameters"))
        for index, pattern in enumerate(parameters):
            if pattern.type == "rest_pattern":
                self._bind_pattern(significant_children(pattern)[0], list(args[index:]), env)
                break
            self._bind_pattern(pattern, args[index] if index < len(args) else UNDEFINED, env)

        body = node.child_by_field_name("body")
        self._function_depth += 1
        try:
            if body.type != "statement_block":
                return self.evaluate(body, env)
            self._execute_statements(significant_children(body), env)
            return UNDEFINED
        except _Return as result:
            return result.value
        finally:
            self._function_depth -= 1

    def _bind_pattern(self, pattern: Node, value: Any, env: _Environment, declare: bool = True) -> None:
        pattern_type = pattern.type
        if pattern_type in ("identifier", "shorthand_property_identifier_pattern"):
            name = node_text(pattern)
            if declare:
                env.declare(name, value)
            else:
                env.assign(name, value)
        elif pattern_type in ("assignment_pattern", "object_assignment_pattern"):
            if value is UNDEFINED:
                value = self.evaluate(pattern.child_by_field_name("right"), env)
            self._bind_pattern(pattern.child_by_field_name("left"), value, env, declare)
        elif pattern_type == "object_pattern":
            used: List[str] = []
            for child in significant_children(pattern):
                if child.type == "rest_pattern":
                    rest = {}
                    if isinstance(value, dict):
                        rest = {key: item for key, item in value.items() if key not in used}
                    self._bind_pattern(significant_children(child)[0], rest, env, declare)
                    continue
                if child.type == "pair_pattern":
                    key = self._property_key(child.child_by_field_name("key"), env)
                    target = child.child_by_field_name("value")
                else:
                    target = child
                    name_node = child.child_by_field_name("left") if child.type == "object_assignment_pattern" else child
                    key = node_text(name_node)
                used.append(key)
                self._bind_pattern(target, get_member(value, key), env, declare)
        elif pattern_type == "array_pattern":
            items = value if isinstance(value, list) else list(value) if isinstance(value, str) else []
            for index, child in enumerate(significant_children(pattern)):
                if child.type == "rest_pattern":
                    self._bind_pattern(significant_children(child)[0], list(items[index:]), env, declare)
                    break
                self._bind_pattern(child, items[index] if index < len(items) else UNDEFINED, env, declare)
        elif pattern_type in ("member_expression", "subscript_expression") and not declare:
            self._assign(pattern, value, env)
        else:
            raise EvaluationError(f"Unsupported syntax: {pattern_type}")

    # Expressions

    def evaluate(self, node: Node, env: _Environment) -> Any:
        self._check_deadline()
        node_type = node.type

        if node_type == "parenthesized_expression":
            return self._evaluate_all(significant_children(node), env)
        elif node_type == "sequence_expression":
            return self._evaluate_all(flatten_sequence(node), env)
        elif node_type == "identifier":
            return env.get(node_text(node))
        elif node_type == "undefined":
            return UNDEFINED
        elif node_type == "null":
            return None
        elif node_type == "true":
            return True
        elif node_type == "false":
            return False
        elif node_type == "number":
            return parse_number(node_text(node))
        elif node_type == "string":
            return string_value(node)
        elif node_type == "template_string":
            return self._evaluate_template(node, env)
        elif node_type == "regex":
            flags = node.child_by_field_name("flags")
            return JSRegExp(node_text(node.child_by_field_name("pattern")), node_text(flags) if flags else "")
        elif node_type == "this":
            return UNDEFINED
        elif node_type in ("member_expression", "subscript_expression"):
            owner = self.evaluate(node.child_by_field_name("object"), env)
            if has_optional_chain(node) and is_nullish(owner):
                return UNDEFINED
            return get_member(owner, self._member_key(node, env))
        elif node_type == "call_expression":
            return self._evaluate_call(node, env)
        elif node_type == "new_expression":
            constructor = node.child_by_field_name("constructor")
            self.evaluate(constructor, env)
            raise EvaluationError(f"{node_text(constructor)} is not a constructor")
        elif node_type == "unary_expression":
            return self._evaluate_unary(node, env)
        elif node_type == "update_expression":
            return self._evaluate_update(node, env)
        elif node_type == "binary_expression":
            return self._evaluate_binary(node, env)
        elif node_type == "ternary_expression":
            if is_truthy(self.evaluate(node.child_by_field_name("condition"), env)):
                return self.evaluate(node.child_by_field_name("consequence"), env)
            return self.evaluate(node.child_by_field_name("alternative"), env)
        elif node_type == "assignment_expression":
            value = self.evaluate(node.child_by_field_name("right"), env)
            self._bind_pattern(node.child_by_field_name("left"), value, env, declare=False)
            return value
        elif node_type == "augmented_assignment_expression":
            return self._evaluate_augmented(node, env)
        elif node_type == "array":
            return self._evaluate_list(significant_children(node), env)
        elif node_type == "object":
            return self._evaluate_object(node, env)
        elif node_type in _FUNCTION_TYPES:
            return ScriptFunction(node, env, self)
        else:
            raise EvaluationError(f"Unsupported syntax: {node_type}")

    def _evaluate_template(self, node: Node, env: _Environment) -> str:
        chunks: List[str] = []
        for part in template_parts(node):
            if isinstance(part, str):
                chunks.append(part)
            else:
                chunks.append(to_js_string(self.evaluate(part, env)))
        return "".join(chunks)

    def _member_key(self, node: Node, env: _Environment) -> str:
        if node.type == "member_expression":
            return node_text(node.child_by_field_name("property"))
        return to_property_key(self.evaluate(node.child_by_field_name("index"), env))

    def _property_key(self, node: Node, env: _Environment) -> str:
        if node.type == "string":
            return string_value(node)
        if node.type == "number":
            return to_property_key(parse_number(node_text(node)))
        if node.type == "computed_property_name":
            return to_property_key(self._evaluate_all(significant_children(node), env))
        return node_text(node)

    def _evaluate_list(self, nodes: List[Node], env: _Environment) -> List[Any]:
        result: List[Any] = []
        for element in nodes:
            if element.type == "spread_element":
                spread = self._evaluate_all(significant_children(element), env)
                if isinstance(spread, str):
                    result.extend(spread)
                elif isinstance(spread, list):
                    result.extend(spread)
                else:
                    raise EvaluationError(f"{node_text(element)[3:]} is not iterable")
            else:
                result.append(self.evaluate(element, env))
        return result

    def _evaluate_object(self, node: Node, env: _Environment) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        for child in significant_children(node):
            if child.type == "pair":
                key = self._property_key(child.child_by_field_name("key"), env)
                result[key] = self.evaluate(child.child_by_field_name("value"), env)
            elif child.type == "shorthand_property_identifier":
                name = node_text(child)
                result[name] = env.get(name)
            elif child.type == "spread_element":
                spread = self._evaluate_all(significant_children(child), env)
                if isinstance(spread, dict):
                    result.update(spread)
                elif isinstance(spread, (list, str)):
                    result.update({str(index): item for index, item in enumerate(spread)})
            elif child.type == "method_definition":
                key = self._property_key(child.child_by_field_name("name"), env)
                result[key] = ScriptFunction(child, env, self)
            else:
                raise EvaluationError(f"Unsupported syntax: {child.type}")
        return result

    def _evaluate_call(self, node: Node, env: _Environment) -> Any:
        callee = node.child_by_field_name("function")
        arguments = node.child_by_field_name("arguments")
        if arguments is None or arguments.type != "arguments":
            raise EvaluationError("Unsupported syntax: tagged template")

        if callee.type in ("member_expression", "subscript_expression"):
            owner = self.evaluate(callee.child_by_field_name("object"), env)
            if has_optional_chain(callee) and is_nullish(owner):
                return UNDEFINED
            function = get_member(owner, self._member_key(callee, env))
        else:
            function = self.evaluate(callee, env)

        if has_optional_chain(node) and is_nullish(function):
            return UNDEFINED
        if not isinstance(function, JSCallable):
            raise EvaluationError(f"{node_text(callee)} is not a function")
        return function.call(self._evaluate_list(significant_children(arguments), env))

    def _evaluate_unary(self, node: Node, env: _Environment) -> Any:
        operator = node_text(node.child_by_field_name("operator"))
        argument = node.child_by_field_name("argument")

        if operator == "typeof" and argument.type == "identifier" and not env.has(node_text(argument)):
            return "undefined"
        if operator == "delete":
            if argument.type in ("member_expression", "subscript_expression"):
                owner = self.evaluate(argument.child_by_field_name("object"), env)
                return delete_member(owner, self._member_key(argument, env))
            return True

        operand = self.evaluate(argument, env)
        if operator == "!":
            return not is_truthy(operand)
        if operator == "-":
            return -to_number(operand)
        if operator == "+":
            return to_number(operand)
        if operator == "~":
            return float(~to_int32(to_number(operand)))
        if operator == "typeof":
            return js_typeof(operand)
        if operator == "void":
            return UNDEFINED
        raise EvaluationError(f"Unsupported unary operator '{operator}'")

    def _evaluate_update(self, node: Node, env: _Environment) -> float:
        argument = node.child_by_field_name("argument")
        operator = node_text(node.child_by_field_name("operator"))
        old = to_number(self.evaluate(argument, env))
        new = old + 1 if operator == "++" else old - 1
        self._assign(argument, new, env)
        prefix = node.children[0].type in ("++", "--")
        return new if prefix else old

    def _evaluate_binary(self, node: Node, env: _Environment) -> Any:
        operator = node_text(node.child_by_field_name("operator"))
        left = self.evaluate(node.child_by_field_name("left"), env)
        right_node = node.child_by_field_name("right")

        if operator == "&&":
            return self.evaluate(right_node, env) if is_truthy(left) else left
        if operator == "||":
            return left if is_truthy(left) else self.evaluate(right_node, env)
        if operator == "??":
            return self.evaluate(right_node, env) if is_nullish(left) else left
        return self._apply_binary(operator, left, self.evaluate(right_node, env))

    def _evaluate_augmented(self, node: Node, env: _Environment) -> Any:
        target = node.child_by_field_name("left")
        operator = node_text(node.child_by_field_name("operator"))[:-1]
        current = self.evaluate(target, env)
        right_node = node.child_by_field_name("right")

        if operator == "&&":
            if not is_truthy(current):
                return current
            value = self.evaluate(right_node, env)
        elif operator == "||":
            if is_truthy(current):
                return current
            value = self.evaluate(right_node, env)
        elif operator == "??":
            if not is_nullish(current):
                return current
            value = self.evaluate(right_node, env)
        else:
            value = self._apply_binary(operator, current, self.evaluate(right_node, env))
        self._assign(target, value, env)
        return value

    def _assign(self, target: Node, value: Any, env: _Environment) -> None:
        if target.type == "identifier":
            env.assign(node_text(target), value)
        elif target.type in ("member_expression", "subscript_expression"):
            owner = self.evaluate(target.child_by_field_name("object"), env)
            set_member(owner, self._member_key(target, env), value)
        elif target.type == "parenthesized_expression":
            self._assign(significant_children(target)[-1], value, env)
        else:
            raise EvaluationError("Invalid left-hand side in assignment")

    @staticmethod
    def _apply_binary(operator: str, left: Any, right: Any) -> Any:
        if operator == "+":
            left, right = to_primitive(left), to_primitive(right)
            if isinstance(left, str) or isinstance(right, str):
                return to_js_string(left) + to_js_string(right)
            return to_number(left) + to_number(right)
        if operator in ("-", "*", "/", "%", "**"):
            return arithmetic(operator, to_number(left), to_number(right))
        if operator in _BITWISE:
            return _bitwise(operator, to_number(left), to_number(right))
        if operator == "===":
            return strict_equals(left, right)
        if operator == "!==":
            return not strict_equals(left, right)
        if operator == "==":
            return loose_equals(left, right)
        if operator == "!=":
            return not loose_equals(left, right)
        if operator in ("<", ">", "<=", ">="):
            left, right = to_primitive(left), to_primitive(right)
            if not (isinstance(left, str) and isinstance(right, str)):
                left, right = to_number(left), to_number(right)
                if math.isnan(left) or math.isnan(right):
                    return False
            if operator == "<":
                return left < right
            if operator == ">":
                return left > right
            if operator == "<=":
                return left <= right
            return left >= right
        if operator == "in":
            return has_property(right, to_property_key(left))
        if operator == "instanceof":
            return instance_of(left, right)
        raise EvaluationError(f"Unsupported operator '{operator}'")


def _bitwise(operator: str, left: float, right: float) -> float:
    if operator == "&":
        return float(to_int32(left) & to_int32(right))
    if operator == "|":
        return float(to_int32(left) | to_int32(right))
    if operator == "^":
        return float(to_int32(left) ^ to_int32(right))
    shift = to_uint32(right) & 31
    if operator == "<<":
        return float(to_int32(float(to_int32(left) << shift)))
    if operator == ">>":
        return float(to_int32(left) >> shift)
    return float(to_uint32(left) >> shift)


class SandboxEvaluator:
    """
    Default sandboxed evaluation capability.

    Args:
        timeout: Seconds allowed per evaluation
    """

    def __init__(self, timeout: float = 1.0):
        self.timeout = timeout

    def __call__(self, code: str, values: Mapping[str, Any]) -> Any:
        """
        Run code with `def` bound to a copy of the value bag.

        Returns:
            Completion value of the script

        Raises:
            EvaluationError: On syntax errors, runtime errors and timeouts
        """
        try:
            doc = parse_script(code)
        except ExpressionSyntaxError as e:
            raise EvaluationError(f"SyntaxError: {e}") from e

        env = _Environment()
        for name, value in make_globals().items():
            env.declare(name, value)
        env.declare("def", copy.deepcopy(dict(values)))

        interpreter = _Interpreter(time.monotonic() + self.timeout)
        try:
            return interpreter.run(doc.root_node, env)
        except RecursionError as e:
            raise EvaluationError("Maximum call stack size exceeded") from e


__all__ = [
    "EvaluationError",
    "EvaluationTimeoutError",
    "SandboxEvaluator",
    "ScriptFunction",
]
