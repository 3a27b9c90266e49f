from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Literal, Optional

from pathfinder.domain.models import ClassDeclaration


NodeType = Literal["controller", "class"]
EdgeType = Literal["EXTENDS"]


@dataclass(frozen=True)
class ClassNode:
    id: str
    index: int  # declaration position in the scanned set
    decl: ClassDeclaration

    @property
    def type(self) -> NodeType:
        return "controller" if self.decl.exposed else "class"

    @property
    def label(self) -> str:
        return f"{self.decl.name} [{self.decl.language}]"


@dataclass(frozen=True)
class ExtendsEdge:
    src: int  # child index
    dst: int  # parent index
    reference: str  # base reference as written on the child
    type: EdgeType = "EXTENDS"


@dataclass
class ClassGraph:
    """
    Inheritance forest over every scanned class.

    Nodes are keyed by declaration index: two units may declare the same
    qualified name. Each node has at most one parent edge.
    """

    nodes: list[ClassNode] = field(default_factory=list)
    edges: dict[int, ExtendsEdge] = field(default_factory=dict)
    _name_counts: dict[str, int] = field(default_factory=dict, repr=False)

    def add_node(self, decl: ClassDeclaration) -> ClassNode:
        node_id = f"class:{decl.name}"
        taken = self._name_counts.get(decl.name, 0)
        self._name_counts[decl.name] = taken + 1
        if taken:
            node_id = f"{node_id}#{taken}"
        node = ClassNode(id=node_id, index=len(self.nodes), decl=decl)
        self.nodes.append(node)
        return node

    def add_edge(self, edge: ExtendsEdge) -> None:
        self.edges[edge.src] = edge

    def drop_edge(self, child: int) -> Optional[ExtendsEdge]:
        return self.edges.pop(child, None)

    def parent(self, index: int) -> Optional[int]:
        edge = self.edges.get(index)
        return edge.dst if edge else None

    def children(self, index: int) -> list[int]:
        return sorted(e.src for e in self.edges.values() if e.dst == index)

    def roots(self) -> list[int]:
        return [n.index for n in self.nodes if n.index not in self.edges]

    def chain(self, index: int) -> Iterator[ClassNode]:
        """Yield the class itself, then each ancestor up to its root."""
        seen: set[int] = set()
        current: Optional[int] = index
        while current is not None and current not in seen:
            seen.add(current)
            yield self.nodes[current]
            current = self.parent(current)

    def exposed(self) -> list[ClassNode]:
        return [n for n in self.nodes if n.decl.exposed]
