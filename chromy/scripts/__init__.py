"""Remote script construction and injection."""

from .source import (
    to_js_literal,
    function_to_source,
    function_to_evaluating_source,
    module_to_function_sources,
    definition_to_functions,
)
from .injector import ScriptInjector

__all__ = [
    "to_js_literal",
    "function_to_source",
    "function_to_evaluating_source",
    "module_to_function_sources",
    "definition_to_functions",
    "ScriptInjector",
]
