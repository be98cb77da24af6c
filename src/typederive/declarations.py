"""Top-level declarations and their final normalization."""

from __future__ import annotations

from dataclasses import dataclass, replace

from .expressions import Expr, Lambda, Pattern, Var, is_simple, render, render_pattern, substitute
from .simplify import simplify
from .types import ResolvedType, render_type


@dataclass(frozen=True)
class Declaration:
    """A named top-level definition: ``name params = body``."""

    name: str
    body: Expr
    params: tuple[Pattern, ...] = ()
    annotation: ResolvedType | None = None

    @property
    def is_function(self) -> bool:
        """Evaluating the declaration does not evaluate its body."""
        return bool(self.params) or isinstance(self.body, Lambda)

    def render(self) -> str:
        lines = []
        if self.annotation is not None:
            lines.append(f"{self.name} : {render_type(self.annotation)}")
        head = " ".join([self.name, *(render_pattern(p, nested=True) for p in self.params)])
        lines.append(f"{head} =")
        lines.append(f"    {render(self.body)}")
        return "\n".join(lines)


def normalize(declaration: Declaration) -> Declaration:
    """Simplify the body and fold a wrapping lambda into the parameter list.

    - no formal parameters: the lambda's parameters become the parameters
    - matching simple parameters: the lambda's names are renamed to the
      formal ones and the lambda is dropped
    - anything else is left as is
    """
    body = simplify(declaration.body)
    if not isinstance(body, Lambda):
        return replace(declaration, body=body)

    if not declaration.params:
        return replace(declaration, params=body.params, body=body.body)

    if (
        len(declaration.params) == len(body.params)
        and is_simple(declaration.params)
        and is_simple(body.params)
    ):
        renames = {
            inner.name: Var(outer.name)  # type: ignore[attr-defined]
            for inner, outer in zip(body.params, declaration.params, strict=True)
        }
        return replace(declaration, body=substitute(body.body, renames))

    return replace(declaration, body=body)
