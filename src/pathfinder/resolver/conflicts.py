from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable

from pathfinder.resolver.routes import ResolvedRoute

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConflictReport:
    http_method: str
    path: str
    headers: tuple[str, ...]  # sorted header tokens of the signature
    handlers: tuple[tuple[str, str], ...]  # (class, method), first-seen order
    routes: tuple[ResolvedRoute, ...] = ()
    owners: tuple[str, ...] = ()  # node id per handler, same order

    @property
    def signature(self) -> tuple[str, str, frozenset[str]]:
        return (self.http_method, self.path, frozenset(self.headers))

    def to_dict(self) -> dict[str, Any]:
        return {
            "http_method": self.http_method,
            "path": self.path,
            "headers": list(self.headers),
            "handlers": [
                {"class_name": c, "method_name": m, "owner": owner}
                for (c, m), owner in zip(self.handlers, self.owners or [""] * len(self.handlers))
            ],
        }


def detect_conflicts(routes: Iterable[ResolvedRoute]) -> list[ConflictReport]:
    """
    Flag registrations that collide on (method, path, header-token set).

    Two routes on the same method and path are disjoint as soon as their
    header token sets differ; tokens are compared for equality only.
    A group is reported when it holds at least two distinct handlers.
    Reports come out in the order their first route was seen.
    """
    by_endpoint: dict[tuple[str, str], dict[frozenset[str], list[ResolvedRoute]]] = {}
    for r in routes:
        by_endpoint.setdefault((r.http_method, r.path), {}).setdefault(r.header_set, []).append(r)

    reports: list[ConflictReport] = []
    for (http_method, path), by_headers in by_endpoint.items():
        for header_set, group in by_headers.items():
            # same-named declarations from different units are different handlers
            seen: list[tuple[str, str]] = []
            handlers: list[tuple[str, str]] = []
            owners: list[str] = []
            for r in group:
                if r.handler_key not in seen:
                    seen.append(r.handler_key)
                    handlers.append(r.handler)
                    owners.append(r.owner)
            if len(handlers) < 2:
                continue
            reports.append(
                ConflictReport(
                    http_method=http_method,
                    path=path,
                    headers=tuple(sorted(header_set)),
                    handlers=tuple(handlers),
                    routes=tuple(group),
                    owners=tuple(owners),
                )
            )

    logger.debug("Conflict detection: %d endpoint groups, %d conflicts", len(by_endpoint), len(reports))
    return reports
