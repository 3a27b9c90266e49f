from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pathfinder.domain.models import AttrValue, MappingAnnotation

ANY = "ANY"

# Shorthand annotation kind -> the single verb it binds.
SHORTHAND_METHODS = {
    "GetMapping": "GET",
    "PostMapping": "POST",
    "PutMapping": "PUT",
    "DeleteMapping": "DELETE",
    "PatchMapping": "PATCH",
}


@dataclass(frozen=True)
class RawMapping:
    """
    Canonical mapping: every attribute is an array, paths and methods never empty.
    """

    kind: str
    methods: tuple[str, ...]
    paths: tuple[str, ...]
    headers: tuple[str, ...] = ()

    @property
    def is_shorthand(self) -> bool:
        return self.kind in SHORTHAND_METHODS


def as_list(value: AttrValue) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


def annotation_kind(kind: str) -> str:
    # "@org.springframework.web.bind.annotation.GetMapping" -> "GetMapping"
    return kind.strip().lstrip("@").rpartition(".")[2]


def normalize_http_method(token: str) -> str:
    # RequestMethod.POST / post / "PUT" -> POST / POST / PUT
    t = token.strip().strip('"').rpartition(".")[2].strip().upper()
    return t or ANY


def _path_literal(p: str) -> str:
    p = p.strip()
    if len(p) >= 2 and p.startswith('"') and p.endswith('"'):
        p = p[1:-1]
    return p


def _paths(value: AttrValue, path: AttrValue) -> tuple[str, ...]:
    out = as_list(value) or as_list(path)
    if not out:
        return ("",)
    return tuple(_path_literal(p) for p in out)


def _methods(method: AttrValue) -> tuple[str, ...]:
    seen: list[str] = []
    for token in as_list(method):
        m = normalize_http_method(token)
        if m not in seen:
            seen.append(m)
    return tuple(seen) or (ANY,)


def normalize_mapping(annotation: MappingAnnotation, kind: Optional[str] = None) -> RawMapping:
    """
    Turn one extracted annotation into a RawMapping.

    Total by construction: missing value/path -> one empty path, missing method
    on the generic annotation -> ANY, missing headers -> none. Header tokens are
    copied verbatim and never interpreted.
    """
    k = annotation_kind(kind or annotation.kind)
    headers = tuple(as_list(annotation.headers))
    paths = _paths(annotation.value, annotation.path)

    shorthand = SHORTHAND_METHODS.get(k)
    if shorthand is not None:
        return RawMapping(kind=k, methods=(shorthand,), paths=paths, headers=headers)

    return RawMapping(kind=k, methods=_methods(annotation.method), paths=paths, headers=headers)

