"""Fluent, immutable procedure builder.

Each builder call returns a *new* builder; intermediate builders can be
shared and extended independently::

    authed = procedure.use(load_org)
    get_user = (
        authed.input(GetUserInput)
        .use(audit)
        .handler(lambda input, ctx: {"id": input.id, "org": ctx["org"]})
    )

``input()`` may be called more than once; the last schema wins. Schemas are
stored as given and only checked when the procedure executes.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from .types import HandlerFn, MiddlewareFn, Procedure, Router


@dataclass(frozen=True)
class ProcedureBuilder:
    """Accumulates an input schema and middleware until ``handler()`` is called."""

    schema: Any = None
    middlewares: tuple[MiddlewareFn, ...] = ()

    def input(self, schema: Any) -> ProcedureBuilder:
        """Attach the input validator (replaces any earlier one)."""
        return dataclasses.replace(self, schema=schema)

    def use(self, middleware: MiddlewareFn) -> ProcedureBuilder:
        """Append one middleware step; earlier steps are kept in order."""
        return dataclasses.replace(self, middlewares=(*self.middlewares, middleware))

    def handler(self, fn: HandlerFn) -> Procedure:
        """Terminal step: freeze the schema, middleware chain and ``fn`` into a Procedure."""
        return Procedure(input=self.schema, middlewares=self.middlewares, handler=fn)


procedure = ProcedureBuilder()


def create_router(
    procedures: Mapping[str, Procedure] | None = None,
    /,
    **named: Procedure,
) -> Router:
    """Create a read-only name -> Procedure table.

    Accepts a mapping, keyword arguments, or both. Names must be unique.
    """
    table: dict[str, Procedure] = dict(procedures or {})
    for name, proc in named.items():
        if name in table:
            raise ValueError(f"Duplicate procedure name: {name}")
        table[name] = proc

    for name, proc in table.items():
        if not isinstance(name, str) or not name:
            raise ValueError(f"Procedure names must be non-empty strings, got {name!r}")
        if not isinstance(proc, Procedure):
            raise TypeError(f"Router entry {name!r} is not a Procedure")

    return MappingProxyType(table)
