"""Recursion handling for emitted declarations.

Recursive types become declarations that refer to themselves, directly or
through other declarations. That is fine for functions, whose bodies are only
evaluated when called, but under strict evaluation a *value* declaration
(``decodeTree = oneOf [...]``) that eagerly needs its own value never
terminates.

This module finds eager cycles and either defers the references along them
with the generator's lambda-breaker (``lazy (\\_ -> decodeTree)``) or, when
the generator has none, refuses with UnbrokenRecursionError.

A reference is eager when it is not under a lambda, in a declaration without
formal parameters.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from .declarations import Declaration
from .errors import UnbrokenRecursionError
from .expressions import Expr, Lambda, Ref, children, map_children
from .resolvers import LambdaBreaker


def eager_refs(expr: Expr) -> frozenset[str]:
    """Local declarations referenced by ``expr`` outside any lambda."""
    if isinstance(expr, Ref):
        return frozenset({expr.name}) if not expr.module else frozenset()
    if isinstance(expr, Lambda):
        return frozenset()
    names: set[str] = set()
    for child in children(expr):
        names |= eager_refs(child)
    return frozenset(names)


def eager_cycles(declarations: Sequence[Declaration]) -> list[list[str]]:
    """Strongly connected components of the eager-reference graph that loop.

    Components are returned in declaration order, each listing its members in
    declaration order.
    """
    order = {d.name: i for i, d in enumerate(declarations)}
    graph: dict[str, list[str]] = {}
    for declaration in declarations:
        if declaration.params:
            graph[declaration.name] = []
            continue
        targets = eager_refs(declaration.body)
        graph[declaration.name] = sorted((t for t in targets if t in order), key=order.__getitem__)

    cycles = []
    for component in _strongly_connected(graph, [d.name for d in declarations]):
        if len(component) > 1 or component[0] in graph[component[0]]:
            cycles.append(sorted(component, key=order.__getitem__))
    cycles.sort(key=lambda c: order[c[0]])
    return cycles


def _strongly_connected(graph: dict[str, list[str]], nodes: list[str]) -> list[list[str]]:
    """Tarjan's algorithm, iterative so deep declaration chains do not hit the stack limit."""
    index: dict[str, int] = {}
    lowlink: dict[str, int] = {}
    on_stack: set[str] = set()
    stack: list[str] = []
    components: list[list[str]] = []
    counter = 0

    for root in nodes:
        if root in index:
            continue
        work = [(root, 0)]
        while work:
            node, position = work.pop()
            if position == 0:
                index[node] = lowlink[node] = counter
                counter += 1
                stack.append(node)
                on_stack.add(node)
            successors = graph[node]
            if position < len(successors):
                work.append((node, position + 1))
                successor = successors[position]
                if successor not in index:
                    work.append((successor, 0))
                elif successor in on_stack:
                    lowlink[node] = min(lowlink[node], index[successor])
                continue
            if lowlink[node] == index[node]:
                component = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == node:
                        break
                components.append(component)
            if work:
                parent = work[-1][0]
                lowlink[parent] = min(lowlink[parent], lowlink[node])
    return components


def break_references(expr: Expr, names: frozenset[str], breaker: LambdaBreaker) -> Expr:
    """Wrap eager references to ``names`` with ``breaker``."""
    if isinstance(expr, Ref):
        if not expr.module and expr.name in names:
            return breaker.wrap(expr)
        return expr
    if isinstance(expr, Lambda):
        return expr
    return map_children(expr, lambda child: break_references(child, names, breaker))


def resolve_recursion(
    declarations: Sequence[Declaration],
    breaker: LambdaBreaker | None,
    generator_id: str,
) -> list[Declaration]:
    """Defer every eager cycle, or fail if nothing can defer it.

    Raises:
        UnbrokenRecursionError: If a cycle exists and ``breaker`` is None
    """
    cycles = eager_cycles(declarations)
    if not cycles:
        return list(declarations)
    if breaker is None:
        raise UnbrokenRecursionError(cycles[0], generator_id)

    members = {name: frozenset(cycle) for cycle in cycles for name in cycle}
    result = []
    for declaration in declarations:
        cycle = members.get(declaration.name)
        if cycle is None:
            result.append(declaration)
        else:
            result.append(
                replace(declaration, body=break_references(declaration.body, cycle, breaker))
            )
    return result
