"""Type description files.

typederive does not parse source code. The CLI reads resolved types from a
JSON description instead:

    {
      "types": {
        "Main.Tree": {
          "kind": "custom",
          "constructors": [
            {"name": "Leaf", "args": []},
            {"name": "Node", "args": [{"ref": "Main.Tree"}, {"ref": "Main.Tree"}]}
          ]
        },
        "Main.Person": {
          "kind": "alias",
          "type": {"record": {"name": "String.String", "age": "Basics.Int"}}
        }
      }
    }

Type expressions:
    "Basics.Int"                                  opaque type without arguments
    {"opaque": "List.List", "args": [...]}        opaque type with arguments
    {"ref": "Main.Tree"}                          named type from "types"
    {"record": {"field": <type>, ...}}            record, fields in file order
    {"tuple": [<type>, ...]}                      tuple
    {"function": [<arg>, <result>]}               function
    {"var": "a"}                                  generic variable

Named types may refer to themselves and to each other.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .types import (
    Constructor,
    CustomType,
    FunctionType,
    GenericVar,
    NamedType,
    Opaque,
    QualifiedName,
    Record,
    ResolvedType,
    TupleType,
    TypeAlias,
)


class TypeSchema:
    """Named types from a description, resolved on demand.

    Each named type is built once; later references share the instance.
    """

    def __init__(self, definitions: dict[str, Any]):
        self._definitions = {QualifiedName.parse(k): v for k, v in definitions.items()}
        self._named: dict[QualifiedName, NamedType] = {}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TypeSchema:
        types = data.get("types")
        if not isinstance(types, dict):
            raise ValueError("Type description needs a 'types' object")
        return cls(types)

    @classmethod
    def load(cls, path: Path) -> TypeSchema:
        """Read a description file.

        Raises:
            FileNotFoundError: If ``path`` does not exist
            ValueError: If the file is not a valid description
        """
        if not path.exists():
            raise FileNotFoundError(f"Type description not found: {path}")
        try:
            data = json.loads(path.read_text())
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e
        return cls.from_dict(data)

    @property
    def names(self) -> list[QualifiedName]:
        return list(self._definitions)

    def named(self, name: str | QualifiedName) -> NamedType:
        """The named type ``name``.

        Raises:
            ValueError: If ``name`` is not described or its description is invalid
        """
        ref = QualifiedName.parse(name) if isinstance(name, str) else name
        if ref in self._named:
            return self._named[ref]
        definition = self._definitions.get(ref)
        if definition is None:
            raise ValueError(f"Unknown type: {ref}")

        kind = definition.get("kind")
        params = tuple(definition.get("params", ()))
        if kind == "custom":
            return CustomType.recursive(
                ref, lambda instance: self._constructors(ref, instance, definition), params
            )
        if kind == "alias":
            return TypeAlias.recursive(
                ref, lambda instance: self._aliased(ref, instance, definition), params
            )
        raise ValueError(f"Unknown kind for {ref}: {kind!r}")

    def _constructors(
        self, ref: QualifiedName, instance: CustomType, definition: dict[str, Any]
    ) -> list[Constructor]:
        self._named[ref] = instance
        return [
            Constructor(
                QualifiedName(ref.module, c["name"]),
                tuple(self.parse(a) for a in c.get("args", ())),
            )
            for c in definition.get("constructors", ())
        ]

    def _aliased(
        self, ref: QualifiedName, instance: TypeAlias, definition: dict[str, Any]
    ) -> ResolvedType:
        self._named[ref] = instance
        if "type" not in definition:
            raise ValueError(f"Alias {ref} has no 'type'")
        return self.parse(definition["type"])

    def parse(self, data: Any) -> ResolvedType:
        """Resolve one type expression.

        Raises:
            ValueError: On an unknown reference or expression kind
        """
        if isinstance(data, str):
            return Opaque(QualifiedName.parse(data))
        if not isinstance(data, dict):
            raise ValueError(f"Not a type expression: {data!r}")
        if "ref" in data:
            return self.named(data["ref"])
        if "opaque" in data:
            args = tuple(self.parse(a) for a in data.get("args", ()))
            return Opaque(QualifiedName.parse(data["opaque"]), args)
        if "record" in data:
            return Record(tuple((name, self.parse(t)) for name, t in data["record"].items()))
        if "tuple" in data:
            return TupleType(tuple(self.parse(t) for t in data["tuple"]))
        if "function" in data:
            arg, result = data["function"]
            return FunctionType(self.parse(arg), self.parse(result))
        if "var" in data:
            return GenericVar(data["var"])
        raise ValueError(f"Unknown type expression: {data!r}")
