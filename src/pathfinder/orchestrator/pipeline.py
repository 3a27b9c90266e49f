from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from pathfinder.config import Settings, get_settings
from pathfinder.domain.loader import load_symbol_model
from pathfinder.domain.models import ClassDeclaration
from pathfinder.graph.builder import ClassGraphResult, Diagnostic, build_class_graph
from pathfinder.resolver.conflicts import ConflictReport, detect_conflicts
from pathfinder.resolver.routes import ResolvedRoute, resolve_controller, resolve_routes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisResult:
    graph: ClassGraphResult
    routes: list[ResolvedRoute]
    conflicts: list[ConflictReport]

    @property
    def diagnostics(self) -> tuple[Diagnostic, ...]:
        return self.graph.diagnostics

    @property
    def controllers(self) -> int:
        return len(self.graph.graph.exposed())


def _resolve_all(result: ClassGraphResult, any_methods: tuple[str, ...], workers: int) -> list[ResolvedRoute]:
    graph = result.graph
    controllers = graph.exposed()

    if workers <= 1 or len(controllers) <= 1:
        return resolve_routes(graph, any_methods)

    routes: list[ResolvedRoute] = []
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [executor.submit(resolve_controller, graph, node, any_methods) for node in controllers]
        for future in as_completed(futures):
            routes.extend(future.result())
    # re-sort into declaration order after the parallel pass
    routes.sort(key=lambda r: r.order)
    return routes


def run_analysis(
    classes: Iterable[ClassDeclaration],
    settings: Optional[Settings] = None,
) -> AnalysisResult:
    """
    Build, then resolve, then detect.

    The graph is built from the complete declaration set before any
    controller is resolved against it.
    """
    settings = settings or get_settings()
    decls = list(classes)

    graph = build_class_graph(decls, ignored_bases=settings.ignored_base_classes)
    routes = _resolve_all(graph, settings.any_methods, settings.workers)
    conflicts = detect_conflicts(routes)

    logger.info(
        "Analysis: %d classes, %d controllers, %d routes, %d conflicts",
        len(decls),
        len(graph.graph.exposed()),
        len(routes),
        len(conflicts),
    )
    return AnalysisResult(graph=graph, routes=routes, conflicts=conflicts)


def analyze_file(path: Path, settings: Optional[Settings] = None) -> AnalysisResult:
    model = load_symbol_model(path)
    return run_analysis(model.classes, settings=settings)
