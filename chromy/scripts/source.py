"""Translate function descriptions into source text for the remote page.

Nothing in here talks to the browser. Each builder takes a ``JSFunction`` (or raw
source text) and returns the string that will later be handed to Runtime.evaluate.
"""

import json
import re
from typing import Any, Iterable, List, Mapping, Optional, Union

from ..types import InjectedFunction, JSFunction

FunctionLike = Union[JSFunction, str]
Definition = Union[FunctionLike, Mapping[str, FunctionLike], Iterable[FunctionLike]]


def to_js_literal(value: Any) -> str:
    """
    Encode ``value`` as a JavaScript literal.

    The output is JSON with every non-ASCII character escaped (this covers U+2028 and
    U+2029, which JSON allows but older engines reject inside string literals) and with
    ``</`` broken up so the literal cannot close an enclosing script element.
    """
    return json.dumps(value, ensure_ascii=True).replace("</", "<\\/")


def function_to_source(func: FunctionLike, replacements: Optional[Mapping[str, Any]] = None) -> str:
    """
    Render ``func`` as a function declaration or expression.

    Each key of ``replacements`` found in the rendered text is replaced by the JS literal of
    its value. Substitution is a single pass, so a substituted value is never scanned again.
    """
    if isinstance(func, JSFunction):
        name = f" {func.name}" if func.name else ""
        source = f"function{name} ({', '.join(func.params)}) {{\n{func.body}\n}}"
    else:
        source = func.strip()

    if not replacements:
        return source

    pattern = re.compile(
        "|".join(re.escape(key) for key in sorted(replacements, key=len, reverse=True))
    )
    return pattern.sub(lambda m: to_js_literal(replacements[m.group(0)]), source)


def function_to_evaluating_source(
    func: FunctionLike,
    replacements: Optional[Mapping[str, Any]] = None,
) -> str:
    """Wrap ``func`` in an immediately invoked expression."""
    return f"({function_to_source(func, replacements)})()"


def module_to_function_sources(module: Mapping[str, FunctionLike]) -> List[InjectedFunction]:
    """One top-level declaration per entry, forwarding every call argument in order."""
    result = []
    for func_name, func in module.items():
        if not func_name.isidentifier():
            raise ValueError(f"not a valid function name: {func_name!r}")
        src = f"function {func_name} () {{ return ({function_to_source(func)})(...arguments) }}"
        result.append(InjectedFunction(name=func_name, source=src))
    return result


def definition_to_functions(definition: Definition) -> List[InjectedFunction]:
    """Normalise a single function, a name->function mapping or a list into declarations."""
    if isinstance(definition, (JSFunction, str)):
        items: List[FunctionLike] = [definition]
    elif isinstance(definition, Mapping):
        return module_to_function_sources(definition)
    else:
        items = list(definition)

    functions = []
    for item in items:
        name = None
        if isinstance(item, JSFunction):
            # An anonymous function statement is a SyntaxError in the page
            if item.name is None:
                raise ValueError("function declarations need a name")
            name = item.name
        functions.append(InjectedFunction(name=name, source=function_to_source(item)))
    return functions
