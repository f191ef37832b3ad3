"""Tests for schema discovery and the schema registry."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Annotated, Dict, List, Optional, Sequence, Set, Tuple

import pytest

from xmlbind import (
    AnyAttribute, AnyElement, Array, Attribute, DuplicatedRole, Element, NodePosition,
    RawAttribute, RawElement, SchemaMisannotation, SchemaRegistry, SourcePosition, Text,
)
from xmlbind.kernel.roles import RoleKind, ValueKind
from xmlbind.kernel.schema import build_schema

from sample_models import Config, Holder, Inner, NamedList, Person, Plain, Sample, Thing


def test_thing_schema_roles():
    schema = build_schema(Thing)
    assert set(schema.attribute_roles) == {"id"}
    assert set(schema.element_roles) == {"name"}
    assert schema.array_roles == {}
    assert schema.text_role is None
    assert schema.wildcard_attribute_role is None
    assert schema.wildcard_element_role.field == "extra"
    assert schema.element_roles["name"].position_field == "name_at"
    assert schema.attribute_roles["id"].value_type is int


def test_binding_name_override_and_default():
    schema = build_schema(Sample)
    assert "attr1" in schema.attribute_roles  # field name
    assert "attr2" in schema.attribute_roles  # explicit name
    assert schema.element_roles["nested"].field == "inner"
    assert schema.element_roles["nested"].value_kind is ValueKind.COMPLEX
    assert schema.element_roles["nested"].value_type is Inner


def test_array_item_name_explicit():
    schema = build_schema(Holder)
    role = schema.array_roles["Items"]
    assert role.role is RoleKind.ARRAY
    assert role.item_name == "item"
    assert role.collection_type is list
    assert role.value_kind is ValueKind.STRING


def test_array_item_name_defaults_to_item_type_name():
    role = build_schema(NamedList).array_roles["entries"]
    assert role.item_name == "Named"


def test_node_position_field():
    assert build_schema(Inner).node_position_field == "at"
    assert build_schema(Config).node_position_field == "at"


def test_pydantic_and_plain_classes_are_supported():
    person = build_schema(Person)
    assert set(person.attribute_roles) == {"id"}
    assert set(person.element_roles) == {"name"}
    assert person.node_position_field == "at"

    plain = build_schema(Plain)
    assert set(plain.attribute_roles) == {"code"}
    assert plain.text_role.field == "label"


def test_abstract_sequence_falls_back_to_list():
    @dataclass
    class Bag:
        names: Annotated[Optional[Sequence[str]], Element("name")] = None

    role = build_schema(Bag).element_roles["name"]
    assert role.collection_type is list


def test_schema_roles_listing_is_stable():
    schema = build_schema(Sample)
    fields = [role.field for role in schema.roles]
    assert fields == [
        "attr1", "attr2", "elem1", "elem2", "inner", "foos", "inners", "attrs", "elems",
    ]


# --- misannotations (fail fast, no document involved) ---

@dataclass
class TwoElementBags:
    first: Annotated[Optional[List[RawElement]], AnyElement()] = None
    second: Annotated[Optional[List[RawElement]], AnyElement()] = None


@dataclass
class TwoAttributeBags:
    first: Annotated[Optional[List[RawAttribute]], AnyAttribute()] = None
    second: Annotated[Optional[List[RawAttribute]], AnyAttribute()] = None


@dataclass
class TwoTexts:
    first: Annotated[Optional[str], Text()] = None
    second: Annotated[Optional[str], Text()] = None


@dataclass
class TwoNodePositions:
    first: Annotated[Optional[SourcePosition], NodePosition()] = None
    second: Annotated[Optional[SourcePosition], NodePosition()] = None


def test_two_wildcard_element_bags_rejected():
    with pytest.raises(DuplicatedRole, match="any_element"):
        build_schema(TwoElementBags)


@pytest.mark.parametrize("cls", [TwoAttributeBags, TwoTexts, TwoNodePositions])
def test_duplicate_singleton_roles_rejected(cls):
    with pytest.raises(SchemaMisannotation):
        build_schema(cls)


def test_registry_rejects_duplicate_bags_on_every_request(registry):
    for _ in range(2):
        with pytest.raises(SchemaMisannotation):
            registry.schema_for(TwoElementBags)
    assert TwoElementBags not in registry


def test_wildcard_bag_of_wrong_item_type_rejected():
    @dataclass
    class WrongElementBag:
        extra: Annotated[Optional[List[str]], AnyElement()] = None

    @dataclass
    class WrongAttributeBag:
        extra: Annotated[Optional[List[RawElement]], AnyAttribute()] = None

    with pytest.raises(SchemaMisannotation, match="collection of RawElement"):
        build_schema(WrongElementBag)
    with pytest.raises(SchemaMisannotation, match="collection of RawAttribute"):
        build_schema(WrongAttributeBag)


def test_wildcard_bag_must_be_collection():
    @dataclass
    class SingleBag:
        extra: Annotated[Optional[RawElement], AnyElement()] = None

    with pytest.raises(SchemaMisannotation):
        build_schema(SingleBag)


def test_unsupported_scalar_kind_rejected():
    @dataclass
    class Blob:
        data: Annotated[Optional[bytes], Attribute()] = None

    with pytest.raises(SchemaMisannotation, match="Unsupported scalar kind"):
        build_schema(Blob)


def test_collection_without_append_rejected():
    @dataclass
    class Tags:
        tags: Annotated[Optional[Set[str]], Element("tag")] = None

    @dataclass
    class Pairs:
        pairs: Annotated[Optional[Tuple[str, ...]], Element("pair")] = None

    with pytest.raises(SchemaMisannotation, match="does not support append"):
        build_schema(Tags)
    with pytest.raises(SchemaMisannotation, match="does not support append"):
        build_schema(Pairs)


def test_mapping_field_rejected():
    @dataclass
    class Mapped:
        values: Annotated[Optional[Dict[str, str]], Element()] = None

    with pytest.raises(SchemaMisannotation):
        build_schema(Mapped)


def test_array_role_must_be_collection():
    @dataclass
    class NotAList:
        items: Annotated[Optional[str], Array("items", item="item")] = None

    with pytest.raises(SchemaMisannotation, match="must be a collection"):
        build_schema(NotAList)


def test_attribute_role_must_be_scalar():
    @dataclass
    class ComplexAttribute:
        inner: Annotated[Optional[Inner], Attribute()] = None

    @dataclass
    class ListAttribute:
        values: Annotated[Optional[List[int]], Attribute()] = None

    with pytest.raises(SchemaMisannotation):
        build_schema(ComplexAttribute)
    with pytest.raises(SchemaMisannotation):
        build_schema(ListAttribute)


def test_duplicate_element_names_rejected():
    @dataclass
    class Clash:
        first: Annotated[Optional[str], Element("x")] = None
        second: Annotated[Optional[List[str]], Array("x", item="y")] = None

    with pytest.raises(DuplicatedRole, match="element 'x'"):
        build_schema(Clash)


def test_duplicate_attribute_names_rejected():
    @dataclass
    class Clash:
        first: Annotated[Optional[str], Attribute("x")] = None
        second: Annotated[Optional[str], Attribute("x")] = None

    with pytest.raises(DuplicatedRole, match="attribute 'x'"):
        build_schema(Clash)


def test_attribute_and_element_may_share_a_name():
    @dataclass
    class Shared:
        attr: Annotated[Optional[str], Attribute("x")] = None
        elem: Annotated[Optional[str], Element("x")] = None

    schema = build_schema(Shared)
    assert schema.attribute_roles["x"].field == "attr"
    assert schema.element_roles["x"].field == "elem"


def test_field_with_two_roles_rejected():
    @dataclass
    class TwoRoles:
        value: Annotated[Optional[str], Attribute(), Element()] = None

    with pytest.raises(SchemaMisannotation, match="more than one role"):
        build_schema(TwoRoles)


def test_position_sink_must_exist():
    @dataclass
    class MissingSink:
        name: Annotated[Optional[str], Element(position="nowhere")] = None

    with pytest.raises(SchemaMisannotation, match="nowhere"):
        build_schema(MissingSink)


def test_position_sink_must_be_source_position():
    @dataclass
    class WrongSink:
        name: Annotated[Optional[str], Element(position="name_at")] = None
        name_at: Optional[str] = None

    with pytest.raises(SchemaMisannotation, match="must be a SourcePosition"):
        build_schema(WrongSink)


def test_position_sink_cannot_be_a_role_field():
    @dataclass
    class SinkIsRole:
        name: Annotated[Optional[str], Element(position="other")] = None
        other: Annotated[Optional[str], Attribute()] = None

    with pytest.raises(SchemaMisannotation, match="already bound"):
        build_schema(SinkIsRole)


def test_frozen_dataclass_rejected():
    @dataclass(frozen=True)
    class Frozen:
        value: Annotated[Optional[str], Attribute()] = None

    with pytest.raises(SchemaMisannotation, match="frozen"):
        build_schema(Frozen)


def test_non_class_target_rejected():
    with pytest.raises(SchemaMisannotation):
        build_schema("Thing")


def test_union_types_rejected():
    @dataclass
    class Either:
        value: Annotated[Optional[int | str], Attribute()] = None

    with pytest.raises(SchemaMisannotation, match="union"):
        build_schema(Either)


# --- registry memoization ---

def test_schema_for_is_memoized(registry):
    first = registry.schema_for(Thing)
    second = registry.schema_for(Thing)
    assert first is second
    assert Thing in registry
    assert len(registry) == 1


def test_nested_schemas_are_discovered_lazily(registry):
    registry.schema_for(Sample)
    assert Inner not in registry


def test_module_level_schema_for_uses_default_registry():
    from xmlbind.kernel.schema import default_registry, schema_for

    schema = schema_for(Holder)
    assert default_registry.schema_for(Holder) is schema


def test_concurrent_first_access_discovers_once():
    calls = []
    lock = threading.Lock()

    def slow_builder(cls):
        with lock:
            calls.append(cls)
        time.sleep(0.05)
        return build_schema(cls)

    registry = SchemaRegistry(builder=slow_builder)
    barrier = threading.Barrier(8)

    def request():
        barrier.wait()
        return registry.schema_for(Thing)

    with ThreadPoolExecutor(max_workers=8) as pool:
        schemas = list(pool.map(lambda _: request(), range(8)))

    assert calls == [Thing]
    assert all(schema is schemas[0] for schema in schemas)
