"""
Constraint evaluation over the form value bag.

A constraint is a small boolean expression tree:

    {"operator": "ne", "arg0": {"prop": "method"}, "arg1": "static"}
    {"operator": "and",
     "arg0": {"operator": "n", "arg0": {"prop": "address"}},
     "arg1": {"operator": "eq", "arg0": {"prop": "method"}, "arg1": "static"}}

Each argument is a literal, a field reference ``{"prop": "name"}`` (dotted
paths allowed) or a nested expression. Evaluation is pure and total: a
malformed expression is logged and evaluates to False.
"""

import logging
import re
from typing import Any, Callable, Dict, List, Optional

from pyqt_formpage.exceptions import EvaluationError
from pyqt_formpage.services.token_formatter import get_path

logger = logging.getLogger(__name__)

ConstraintExpr = Dict[str, Any]


def is_empty(value: Any) -> bool:
    """None, empty string and empty collections count as empty."""
    if value is None:
        return True
    if isinstance(value, (str, list, tuple, dict, set)):
        return len(value) == 0
    return False


def is_constraint(value: Any) -> bool:
    return isinstance(value, dict) and "operator" in value


def _regex(value: Any, pattern: Any) -> bool:
    if value is None:
        return False
    return re.search(str(pattern), str(value)) is not None


class ConstraintService:
    """
    Stateless constraint evaluator.

    Examples:
        ConstraintService.test(
            {"operator": "eq", "arg0": {"prop": "method"}, "arg1": "static"},
            {"method": "static"},
        )  # True
    """

    _BINARY: Dict[str, Callable[[Any, Any], bool]] = {
        "eq": lambda a, b: a == b,
        "ne": lambda a, b: a != b,
        "lt": lambda a, b: a < b,
        "le": lambda a, b: a <= b,
        "gt": lambda a, b: a > b,
        "ge": lambda a, b: a >= b,
        "in": lambda a, b: a in b,
        "notin": lambda a, b: a not in b,
        "startsWith": lambda a, b: isinstance(a, str) and a.startswith(str(b)),
        "endsWith": lambda a, b: isinstance(a, str) and a.endswith(str(b)),
        "contains": lambda a, b: a is not None and b in a,
        "regex": _regex,
    }

    _UNARY: Dict[str, Callable[[Any], bool]] = {
        "z": is_empty,
        "n": lambda a: not is_empty(a),
        "truthy": bool,
        "falsy": lambda a: not a,
    }

    @classmethod
    def test(cls, expr: ConstraintExpr, values: Optional[Dict[str, Any]]) -> bool:
        """Evaluate a constraint expression against the value bag."""
        try:
            return cls._evaluate(expr, values or {})
        except (EvaluationError, TypeError, ValueError, re.error) as e:
            logger.warning(f"Constraint evaluation failed, treating as False: {e} (expr={expr!r})")
            return False

    @classmethod
    def _evaluate(cls, expr: ConstraintExpr, values: Dict[str, Any]) -> bool:
        if not is_constraint(expr):
            raise EvaluationError(f"Not a constraint expression: {expr!r}")
        operator = expr["operator"]

        # Logical combinators short-circuit
        if operator == "and":
            return cls._truth(expr.get("arg0"), values) and cls._truth(expr.get("arg1"), values)
        if operator == "or":
            return cls._truth(expr.get("arg0"), values) or cls._truth(expr.get("arg1"), values)
        if operator == "not":
            return not cls._truth(expr.get("arg0"), values)

        if operator in cls._UNARY:
            return bool(cls._UNARY[operator](cls._resolve(expr.get("arg0"), values)))
        if operator in cls._BINARY:
            arg0 = cls._resolve(expr.get("arg0"), values)
            arg1 = cls._resolve(expr.get("arg1"), values)
            return bool(cls._BINARY[operator](arg0, arg1))

        raise EvaluationError(f"Unknown constraint operator '{operator}'")

    @classmethod
    def _truth(cls, arg: Any, values: Dict[str, Any]) -> bool:
        if is_constraint(arg):
            return cls._evaluate(arg, values)
        return bool(cls._resolve(arg, values))

    @classmethod
    def _resolve(cls, arg: Any, values: Dict[str, Any]) -> Any:
        if is_constraint(arg):
            return cls._evaluate(arg, values)
        if isinstance(arg, dict) and "prop" in arg:
            return get_path(values, str(arg["prop"]))
        return arg

    @classmethod
    def get_props(cls, expr: Any) -> List[str]:
        """List the field names referenced by an expression, in order of appearance."""
        props: List[str] = []
        if isinstance(expr, dict):
            if "prop" in expr and not is_constraint(expr):
                props.append(str(expr["prop"]))
            for key in ("arg0", "arg1"):
                for prop in cls.get_props(expr.get(key)):
                    if prop not in props:
                        props.append(prop)
        return props
