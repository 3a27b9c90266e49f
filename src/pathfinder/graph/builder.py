from __future__ import annotations

import logging
import re
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Literal

from pathfinder.domain.models import ClassDeclaration, simple_name
from pathfinder.graph.model import ClassGraph, ClassNode, ExtendsEdge

logger = logging.getLogger(__name__)

DiagnosticKind = Literal["cycle", "ambiguous_base", "unresolved_base"]
Severity = Literal["warning", "info"]

# Framework and JDK base names that are expected to live outside the scan.
# Project-style names (BaseController, BaseService, ...) are not listed: a
# missing one is more likely an unscanned unit than a library class.
KNOWN_LIBRARY_BASES = frozenset(
    {
        "Object", "Exception", "RuntimeException", "Throwable",
        "Enum", "Record", "Number", "String",
        "AbstractAggregateRoot",
        "JpaRepository", "CrudRepository", "Repository", "PagingAndSortingRepository",
        "Controller", "RestController", "Component", "Service",
        "Configuration", "ConfigurationProperties",
        "EntityListener", "AbstractEntityListener", "Auditable",
        "Persistable", "AbstractAuditable", "AbstractPersistable",
        "ResponseEntity", "HttpEntity", "RequestEntity",
        "Page", "Pageable", "Sort", "Slice",
        "AbstractController",
    }
)

_GENERIC_ARGS = re.compile(r"<.*$")
_CTOR_CALL = re.compile(r"\(.*$")


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    class_name: str
    message: str
    severity: Severity = "warning"
    candidates: tuple[str, ...] = ()


@dataclass(frozen=True)
class ClassGraphResult:
    graph: ClassGraph
    diagnostics: tuple[Diagnostic, ...]


def clean_reference(reference: str) -> str:
    # "BaseController()" / "Base<T>" / " com.x.Base " -> "BaseController" / "Base" / "com.x.Base"
    ref = _GENERIC_ARGS.sub("", reference.strip().lstrip(":").strip())
    return _CTOR_CALL.sub("", ref).strip()


class _Index:
    """Name lookups over the complete declaration set."""

    def __init__(self, nodes: list[ClassNode]) -> None:
        self.by_qualified: dict[str, list[int]] = defaultdict(list)
        self.by_simple: dict[str, list[int]] = defaultdict(list)
        for n in nodes:
            self.by_qualified[n.decl.name].append(n.index)
            self.by_simple[n.decl.simple_name].append(n.index)

    def candidates(self, node: ClassNode, ref: str) -> list[int]:
        # Tier 1: exact qualified name, or the reference read relative to the
        # child's own package (how an unqualified same-package name resolves).
        exact = [i for i in self.by_qualified.get(ref, ()) if i != node.index]
        if exact:
            return exact
        pkg = node.decl.package
        if pkg and "." not in ref:
            local = [i for i in self.by_qualified.get(f"{pkg}.{ref}", ()) if i != node.index]
            if local:
                return local

        # Tier 2: simple name anywhere in the scan (cross-language fallback).
        return [i for i in self.by_simple.get(simple_name(ref), ()) if i != node.index]


def _resolve_bases(
    graph: ClassGraph,
    ignored_bases: frozenset[str],
    diagnostics: list[Diagnostic],
) -> None:
    index = _Index(graph.nodes)

    for node in graph.nodes:
        if not node.decl.base:
            continue
        ref = clean_reference(node.decl.base)
        if not ref:
            continue

        found = index.candidates(node, ref)
        if not found:
            if simple_name(ref) in ignored_bases:
                logger.debug("%s extends library class %s", node.decl.name, ref)
                continue
            diagnostics.append(
                Diagnostic(
                    kind="unresolved_base",
                    class_name=node.decl.name,
                    message=f"base class {ref} of {node.decl.name} is not in the scanned set; treated as root",
                    severity="info",
                )
            )
            continue

        target = found[0]
        if len(found) > 1:
            diagnostics.append(
                Diagnostic(
                    kind="ambiguous_base",
                    class_name=node.decl.name,
                    message=(
                        f"base class {ref} of {node.decl.name} matches {len(found)} classes; "
                        f"using {graph.nodes[target].id}"
                    ),
                    candidates=tuple(graph.nodes[i].id for i in found),
                )
            )

        graph.add_edge(ExtendsEdge(src=node.index, dst=target, reference=ref))


def _break_cycles(graph: ClassGraph, diagnostics: list[Diagnostic]) -> None:
    """
    Walk parent edges from every node in declaration order. An edge that leads
    back onto the current path is dropped and its source becomes a root.
    """
    done: set[int] = set()

    for start in range(len(graph.nodes)):
        if start in done:
            continue

        path: list[int] = []
        on_path: set[int] = set()
        current = start
        while True:
            path.append(current)
            on_path.add(current)
            parent = graph.parent(current)
            if parent is None or parent in done:
                break
            if parent in on_path:
                edge = graph.drop_edge(current)
                cycle = path[path.index(parent):]
                names = " -> ".join(graph.nodes[i].decl.name for i in cycle + [parent])
                diagnostics.append(
                    Diagnostic(
                        kind="cycle",
                        class_name=graph.nodes[current].decl.name,
                        message=(
                            f"inheritance cycle {names}; dropped edge to "
                            f"{edge.reference if edge else '?'} and made "
                            f"{graph.nodes[current].decl.name} a root"
                        ),
                        candidates=tuple(graph.nodes[i].id for i in cycle),
                    )
                )
                break
            current = parent

        done.update(path)


def build_class_graph(
    classes: Iterable[ClassDeclaration],
    ignored_bases: Iterable[str] = KNOWN_LIBRARY_BASES,
) -> ClassGraphResult:
    """
    Build the inheritance forest over the complete declaration set.

    Must see every class of the scan before anything is resolved against it:
    an ancestor may come from a unit listed after its descendant.
    Never raises on structure problems; they are returned as diagnostics.
    """
    graph = ClassGraph()
    for decl in classes:
        graph.add_node(decl)

    diagnostics: list[Diagnostic] = []
    _resolve_bases(graph, frozenset(ignored_bases), diagnostics)
    _break_cycles(graph, diagnostics)

    for d in diagnostics:
        logger.debug("%s: %s", d.kind, d.message)
    logger.info(
        "Class graph: %d classes, %d extends edges, %d roots, %d diagnostics",
        len(graph.nodes),
        len(graph.edges),
        len(graph.roots()),
        len(diagnostics),
    )
    return ClassGraphResult(graph=graph, diagnostics=tuple(diagnostics))
