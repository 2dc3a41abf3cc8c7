from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional


@dataclass
class Node:
    """One box of the rendered visual tree.

    ``kind`` picks how the painter lays the box out (``page``, ``row``,
    ``stack``, ``grid``, ``band``, ``text``, ``bullet``, ``split``, ``bar``,
    ``image``, ``inline``, ``contact``). ``name`` tags semantic boxes such as
    ``section:skills`` so callers and tests can find them without knowing the
    layout shape.
    """

    kind: str
    text: str = ""
    name: str = ""
    style: Dict[str, Any] = field(default_factory=dict)
    children: List["Node"] = field(default_factory=list)

    def walk(self) -> Iterator["Node"]:
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, name: str) -> Optional["Node"]:
        for node in self.walk():
            if node.name == name:
                return node
        return None

    def find_all(self, kind: str) -> List["Node"]:
        return [node for node in self.walk() if node.kind == kind]

    def texts(self) -> List[str]:
        return [node.text for node in self.walk() if node.text]

    def section_names(self) -> List[str]:
        return [node.name.split(":", 1)[1] for node in self.walk() if node.name.startswith("section:")]

    def to_dict(self) -> dict:
        out: dict = {"kind": self.kind}
        if self.name:
            out["name"] = self.name
        if self.text:
            out["text"] = self.text
        if self.style:
            out["style"] = dict(self.style)
        if self.children:
            out["children"] = [child.to_dict() for child in self.children]
        return out
