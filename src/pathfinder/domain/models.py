from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# A single annotation attribute as the extractor saw it: absent, scalar, or array.
AttrValue = Optional[str | tuple[str, ...]]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class Parameter(_Frozen):
    name: str
    type: str = "unknown"
    annotation: str = ""  # PathVariable / RequestBody / RequestParam / ""


class MappingAnnotation(_Frozen):
    """One mapping annotation occurrence, attributes exactly as extracted."""

    kind: str  # GetMapping, RequestMapping, ...
    value: AttrValue = None
    path: AttrValue = None
    method: AttrValue = None
    headers: AttrValue = None


class MethodDeclaration(_Frozen):
    name: str
    mappings: tuple[MappingAnnotation, ...] = ()
    parameters: tuple[Parameter, ...] = ()
    line_range: Optional[tuple[int, int]] = None


class ClassDeclaration(_Frozen):
    name: str  # best-available qualified name
    language: str = "unknown"  # java | kotlin | ...
    base: Optional[str] = None
    file_path: str = ""
    mappings: tuple[MappingAnnotation, ...] = ()
    methods: tuple[MethodDeclaration, ...] = ()
    exposed: bool = Field(default=False, alias="isExposedController")

    @property
    def simple_name(self) -> str:
        return simple_name(self.name)

    @property
    def package(self) -> str:
        return self.name.rpartition(".")[0]


class SymbolModel(_Frozen):
    classes: tuple[ClassDeclaration, ...] = ()


def simple_name(reference: str) -> str:
    return reference.rpartition(".")[2]
