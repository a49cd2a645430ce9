from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Mapping, Optional


class FieldMap:
    """Multi-valued Solr document: field name -> ordered list of strings.

    A field is only present while it holds at least one non-blank value.
    Values are stripped on the way in and kept in insertion order; nothing
    is de-duplicated.
    """

    def __init__(self, fields: Optional[Mapping[str, Iterable[str]]] = None):
        self._fields: Dict[str, List[str]] = {}
        if fields:
            for name, values in fields.items():
                if isinstance(values, str):
                    values = [values]
                self.extend(name, values)

    def add(self, name: str, value: Optional[str]) -> None:
        text = (value or "").strip()
        if not text:
            return
        self._fields.setdefault(name, []).append(text)

    def extend(self, name: str, values: Iterable[str]) -> None:
        for value in values:
            self.add(name, value)

    def set(self, name: str, values) -> None:
        """Replace the values of ``name``; blank input removes the field."""
        self._fields.pop(name, None)
        if isinstance(values, str):
            values = [values]
        self.extend(name, values or [])

    def combine(self, other: "FieldMap") -> None:
        """Append every value of ``other`` after the values already held."""
        for name, values in other.items():
            self.extend(name, values)

    def get(self, name: str) -> List[str]:
        return list(self._fields.get(name, []))

    def first(self, name: str) -> Optional[str]:
        values = self._fields.get(name)
        return values[0] if values else None

    def copy(self) -> "FieldMap":
        return FieldMap(self._fields)

    def items(self) -> Iterator:
        return ((name, list(values)) for name, values in self._fields.items())

    def keys(self):
        return self._fields.keys()

    def to_dict(self) -> Dict[str, List[str]]:
        return {name: list(values) for name, values in self._fields.items()}

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __getitem__(self, name: str) -> List[str]:
        return list(self._fields[name])

    def __len__(self) -> int:
        return len(self._fields)

    def __iter__(self):
        return iter(self._fields)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FieldMap):
            return self._fields == other._fields
        if isinstance(other, Mapping):
            return self._fields == {k: list(v) for k, v in other.items()}
        return NotImplemented

    def __repr__(self) -> str:
        return f"FieldMap({self._fields!r})"
