from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass
from typing import Any, Iterable, Optional

from pathfinder.domain.models import Parameter
from pathfinder.graph.model import ClassGraph, ClassNode
from pathfinder.mapping.normalize import ANY, RawMapping, normalize_mapping

logger = logging.getLogger(__name__)

DEFAULT_ANY_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS")

_MULTI_SLASH = re.compile(r"/{2,}")


@dataclass(frozen=True)
class ResolvedRoute:
    class_name: str  # exposed controller that serves the route
    method_name: str
    http_method: str
    path: str
    headers: tuple[str, ...] = ()
    # (class index, ancestor depth, method, mapping, path, verb) positions
    order: tuple[int, ...] = ()
    owner: str = ""  # graph node id of the serving class; unique even when names collide

    declaring_class: str = ""  # where the handler method is written
    language: str = ""
    file_path: str = ""
    line_range: Optional[tuple[int, int]] = None
    parameters: tuple[Parameter, ...] = ()

    @property
    def header_set(self) -> frozenset[str]:
        return frozenset(self.headers)

    @property
    def handler(self) -> tuple[str, str]:
        return (self.class_name, self.method_name)

    @property
    def handler_key(self) -> tuple[str, str]:
        return (self.owner or self.class_name, self.method_name)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["order"] = list(self.order)
        d["headers"] = list(self.headers)
        d["line_range"] = list(self.line_range) if self.line_range else None
        d["parameters"] = [p.model_dump() for p in self.parameters]
        return d


def compose_path(prefix: str, path: str) -> str:
    """
    prefix + "/" + path with repeated slashes collapsed. An empty path adds no
    trailing slash; a declared one is kept as written.
    Never returns an empty string: the empty composition is "/".
    """
    p = _MULTI_SLASH.sub("/", f"{prefix}/{path}" if path else prefix)
    if not p.startswith("/"):
        p = "/" + p
    return p


def expand_methods(methods: Iterable[str], any_methods: Iterable[str] = DEFAULT_ANY_METHODS) -> list[str]:
    out: list[str] = []
    for m in methods:
        for verb in (tuple(any_methods) if m == ANY else (m,)):
            if verb not in out:
                out.append(verb)
    return out


def _merge_headers(class_headers: tuple[str, ...], own: tuple[str, ...]) -> tuple[str, ...]:
    out: list[str] = []
    for h in (*class_headers, *own):
        if h not in out:
            out.append(h)
    return tuple(out)


def class_prefix(graph: ClassGraph, node: ClassNode) -> Optional[RawMapping]:
    """
    First class-level mapping on the chain, starting at the class itself and
    moving toward the root. None when no class on the chain is mapped.
    """
    for level in graph.chain(node.index):
        if level.decl.mappings:
            return normalize_mapping(level.decl.mappings[0])
    return None


def resolve_controller(
    graph: ClassGraph,
    node: ClassNode,
    any_methods: Iterable[str] = DEFAULT_ANY_METHODS,
) -> list[ResolvedRoute]:
    """Resolve every route one exposed controller serves, in declaration order."""
    verbs_any = tuple(any_methods)
    prefix_mapping = class_prefix(graph, node)
    prefix = prefix_mapping.paths[0] if prefix_mapping else ""
    class_headers = prefix_mapping.headers if prefix_mapping else ()

    routes: list[ResolvedRoute] = []
    shadowed: set[str] = set()

    for depth, level in enumerate(graph.chain(node.index)):
        decl = level.decl
        declared_here: set[str] = set()

        for m_idx, method in enumerate(decl.methods):
            declared_here.add(method.name)
            # a more-derived declaration replaces the ancestor's mappings entirely
            if method.name in shadowed:
                continue

            for r_idx, annotation in enumerate(method.mappings):
                raw = normalize_mapping(annotation)
                headers = _merge_headers(class_headers, raw.headers)
                verbs = expand_methods(raw.methods, verbs_any)

                for p_idx, method_path in enumerate(raw.paths):
                    full_path = compose_path(prefix, method_path)
                    for v_idx, verb in enumerate(verbs):
                        routes.append(
                            ResolvedRoute(
                                class_name=node.decl.name,
                                method_name=method.name,
                                http_method=verb,
                                path=full_path,
                                headers=headers,
                                order=(node.index, depth, m_idx, r_idx, p_idx, v_idx),
                                owner=node.id,
                                declaring_class=decl.name,
                                language=decl.language,
                                file_path=decl.file_path,
                                line_range=method.line_range,
                                parameters=method.parameters,
                            )
                        )

        shadowed |= declared_here

    logger.debug("%s: %d routes (prefix=%r)", node.decl.name, len(routes), prefix)
    return routes


def resolve_routes(
    graph: ClassGraph,
    any_methods: Iterable[str] = DEFAULT_ANY_METHODS,
) -> list[ResolvedRoute]:
    """
    Resolve all exposed controllers of a completed graph.

    Output order: controllers in declaration order; within one, most-derived
    class first, then methods, mappings, paths and verbs in source order.
    """
    verbs_any = tuple(any_methods)
    routes: list[ResolvedRoute] = []
    for node in graph.exposed():
        routes.extend(resolve_controller(graph, node, verbs_any))
    routes.sort(key=lambda r: r.order)
    return routes
