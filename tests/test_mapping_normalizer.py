from pathfinder.domain.models import MappingAnnotation
from pathfinder.mapping.normalize import ANY, normalize_http_method, normalize_mapping


def test_shorthand_without_value_maps_one_empty_path():
    raw = normalize_mapping(MappingAnnotation(kind="GetMapping"))
    assert raw.methods == ("GET",)
    assert raw.paths == ("",)
    assert raw.headers == ()
    assert raw.is_shorthand


def test_shorthand_scalar_and_array_values_become_arrays():
    scalar = normalize_mapping(MappingAnnotation(kind="PostMapping", value="/users"))
    array = normalize_mapping(MappingAnnotation(kind="PostMapping", value=("/a", "/b")))
    assert scalar.paths == ("/users",)
    assert array.paths == ("/a", "/b")
    assert array.methods == ("POST",)


def test_shorthand_ignores_method_attribute():
    raw = normalize_mapping(MappingAnnotation(kind="DeleteMapping", value="/x", method="GET"))
    assert raw.methods == ("DELETE",)


def test_generic_mapping_defaults_to_any_method():
    raw = normalize_mapping(MappingAnnotation(kind="RequestMapping", value="/api"))
    assert raw.methods == (ANY,)
    assert raw.paths == ("/api",)
    assert not raw.is_shorthand


def test_generic_mapping_accepts_enum_and_bare_method_tokens():
    raw = normalize_mapping(
        MappingAnnotation(kind="RequestMapping", value=("/{id}",), method=("RequestMethod.POST", "PUT", "post"))
    )
    assert raw.methods == ("POST", "PUT")


def test_path_attribute_used_when_value_missing():
    raw = normalize_mapping(MappingAnnotation(kind="RequestMapping", path=("/p1", "/p2")))
    assert raw.paths == ("/p1", "/p2")

    both = normalize_mapping(MappingAnnotation(kind="RequestMapping", value="/v", path="/p"))
    assert both.paths == ("/v",)


def test_empty_value_array_falls_back_to_empty_path():
    raw = normalize_mapping(MappingAnnotation(kind="GetMapping", value=()))
    assert raw.paths == ("",)


def test_headers_are_copied_verbatim():
    raw = normalize_mapping(
        MappingAnnotation(kind="GetMapping", value="/{id}", headers=("X-Version=2", "!X-Legacy", "XCustomHeader"))
    )
    assert raw.headers == ("X-Version=2", "!X-Legacy", "XCustomHeader")


def test_quoted_path_literals_are_unwrapped():
    raw = normalize_mapping(MappingAnnotation(kind="GetMapping", value=' "/quoted" '))
    assert raw.paths == ("/quoted",)


def test_qualified_and_at_prefixed_kinds():
    raw = normalize_mapping(
        MappingAnnotation(kind="@org.springframework.web.bind.annotation.PatchMapping", value="/x")
    )
    assert raw.kind == "PatchMapping"
    assert raw.methods == ("PATCH",)


def test_unknown_kind_is_treated_as_generic_mapping():
    raw = normalize_mapping(MappingAnnotation(kind="CustomMapping"))
    assert raw.methods == (ANY,)
    assert raw.paths == ("",)


def test_normalize_http_method_forms():
    assert normalize_http_method("RequestMethod.GET") == "GET"
    assert normalize_http_method("org.springframework.web.bind.annotation.RequestMethod.HEAD") == "HEAD"
    assert normalize_http_method(" options ") == "OPTIONS"
    assert normalize_http_method("") == ANY
