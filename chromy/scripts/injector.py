"""Declare functions inside the remote page."""

from typing import List, TYPE_CHECKING

from ..utils.logger import ChromyLogger
from .source import Definition, definition_to_functions

if TYPE_CHECKING:
    from ..cdp import Connection
    from ..types import InjectedFunction


class ScriptInjector:
    """
    Submits function declarations to the page, one at a time and in order.

    Each declaration is awaited before the next is sent, so later declarations may call
    earlier ones. Nothing is remembered about what was installed; declaring the same name
    again simply overwrites it in the page.
    """

    def __init__(self, connection: 'Connection', logger: ChromyLogger):
        self._connection = connection
        self._logger = logger

    async def define(self, definition: Definition) -> List['InjectedFunction']:
        functions = definition_to_functions(definition)
        for func in functions:
            response = await self._connection.evaluate(func.source)
            details = (response or {}).get("exceptionDetails")
            if details:
                self._logger.warn(
                    "injector:define",
                    "Declaration raised in page",
                    function=func.name,
                    text=details.get("text"),
                )
            else:
                self._logger.debug("injector:define", "Function declared", function=func.name)
        return functions
