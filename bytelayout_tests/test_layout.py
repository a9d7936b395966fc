# Copyright 2025 Hathor Labs
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from dataclasses import InitVar, dataclass, field
from enum import Enum, IntEnum
from typing import Annotated, Any, Optional, TypeVar

import pytest
from structlog.testing import capture_logs

from bytelayout import ByteOrder, decode_bytes, encode_bytes, get_layout_record, layout, pod
from bytelayout.endian import BOOL
from bytelayout.exceptions import (
    GenerationError,
    MissingByteOrderError,
    PodRejectedError,
    RecursiveLayoutError,
    UnsupportedFieldTypeError,
)
from bytelayout.layout import ArrayType, CompositeType, EnumType, FixedBytesType, PrimitiveType, build_layout, get_record
from bytelayout.types import Array, Be, Bytes, Check, EnumRepr, Le, Native, Skip, bool8, f32, u8, u16, u32
from bytelayout_tests.fixtures import Color, Defaults, Header, LayoutHeader, Record

T = TypeVar('T')


def test_fields_in_declaration_order() -> None:
    type_layout = get_layout_record(Record).layout
    assert [f.name for f in type_layout.fields] == ['header', 'color', 'flag', 'name', 'samples', 'checked', 'colors']
    assert [f.ordinal for f in type_layout.fields] == list(range(7))
    assert [(p.field.name, p.offset) for p in type_layout.placements()] == [
        ('header', 0),
        ('color', 7),
        ('flag', 8),
        ('name', 9),
        ('samples', 13),
        ('checked', 21),
        ('colors', 25),
    ]
    assert type_layout.size == 29


def test_field_types() -> None:
    fields = {f.name: f for f in get_layout_record(Record).layout.fields}
    assert isinstance(fields['header'].type, CompositeType)
    assert fields['header'].type.pod
    assert isinstance(fields['color'].type, EnumType)
    assert fields['flag'].type == PrimitiveType(BOOL, None)
    assert fields['name'].type == FixedBytesType(4)
    assert isinstance(fields['samples'].type, ArrayType)
    assert fields['samples'].type.describe() == '[i16 big; 3]'
    assert fields['checked'].skip == 2
    assert len(fields['checked'].checks) == 1
    assert fields['colors'].type.describe() == '[Color(u16 big); 2]'
    assert fields['name'].byte_order is None


def test_single_byte_fields_have_no_byte_order() -> None:
    fields = {f.name: f for f in get_layout_record(Header).layout.fields}
    assert fields['magic'].byte_order is ByteOrder.BIG
    assert fields['version'].byte_order is None
    assert fields['length'].byte_order is ByteOrder.LITTLE


def test_class_default_byte_order() -> None:
    fields = {f.name: f for f in get_layout_record(Defaults).layout.fields}
    assert fields['a'].byte_order is ByteOrder.LITTLE
    assert fields['b'].byte_order is ByteOrder.BIG
    assert fields['c'].byte_order is ByteOrder.LITTLE


def test_layout_is_not_inherited() -> None:
    class Derived(LayoutHeader):
        pass

    assert get_record(LayoutHeader) is not None
    assert get_record(Derived) is None
    with pytest.raises(TypeError):
        get_layout_record(Derived)


def test_layout_built_is_logged() -> None:
    with capture_logs() as logs:
        @layout
        @dataclass
        class Small:
            value: Be[u16]

    events = [log['event'] for log in logs]
    assert 'layout built' in events
    assert 'codec generated' in events
    built = next(log for log in logs if log['event'] == 'layout built')
    assert built['size'] == 2


@pytest.mark.parametrize(
    'annotation',
    [
        int,
        str,
        bytes,
        object,
        Any,
        T,
        list[int],
        Optional[u8],
        Color,
        Annotated[int, 'not a layout'],
        Be[Le[u16]],
        Be[Bytes[4]],
        Le[Header],
        Array[Annotated[u8, Skip(1)], 2],
        EnumRepr[Color, Be[f32]],
        EnumRepr[Color, bool8],
    ]
)
def test_unsupported_field_types(annotation) -> None:
    with pytest.raises(UnsupportedFieldTypeError):
        @layout
        @dataclass
        class Invalid:
            value: annotation


def test_enum_value_out_of_range() -> None:
    class Wide(IntEnum):
        SMALL = 1
        LARGE = 300

    with pytest.raises(UnsupportedFieldTypeError):
        @layout
        @dataclass
        class Invalid:
            value: EnumRepr[Wide, u8]


def test_enum_with_non_int_values() -> None:
    class Named(Enum):
        A = 'a'

    with pytest.raises(UnsupportedFieldTypeError):
        @layout
        @dataclass
        class Invalid:
            value: EnumRepr[Named, u8]


@pytest.mark.parametrize('annotation', [u16, u32, f32, Array[u16, 2], EnumRepr[Color, u16]])
def test_missing_byte_order(annotation) -> None:
    with pytest.raises(MissingByteOrderError):
        @layout
        @dataclass
        class Invalid:
            value: annotation


def test_byte_order_for_nested_array_elements() -> None:
    @layout
    @dataclass
    class Matrix:
        rows: Le[Array[Array[u16, 2], 2]]
        native: Native[u32]

    fields = get_layout_record(Matrix).layout.fields
    assert fields[0].type.describe() == '[[u16 little; 2]; 2]'
    assert fields[1].type.describe() == 'u32 native'


def test_not_a_dataclass() -> None:
    with pytest.raises(UnsupportedFieldTypeError):
        @layout
        class Plain:
            value: u8


def test_init_false_field() -> None:
    with pytest.raises(UnsupportedFieldTypeError):
        @layout
        @dataclass
        class Invalid:
            value: u8
            derived: u8 = field(default=0, init=False)


def test_required_init_only_parameter() -> None:
    with pytest.raises(UnsupportedFieldTypeError, match='init-only parameter has no default'):
        @layout
        @dataclass
        class Invalid:
            value: u8
            scale: InitVar[int]

    @layout
    @dataclass
    class Scaled:
        value: u8
        scale: InitVar[int] = 1

        def __post_init__(self, scale: int) -> None:
            self.value *= scale

    assert [f.name for f in get_layout_record(Scaled).layout.fields] == ['value']
    assert decode_bytes(Scaled, b'\x07') == Scaled(7)


def test_nested_dataclass_must_be_declared() -> None:
    @dataclass
    class Undeclared:
        value: u8

    with pytest.raises(UnsupportedFieldTypeError):
        @layout
        @dataclass
        class Outer:
            inner: Undeclared


def test_unresolvable_forward_reference() -> None:
    with pytest.raises(UnsupportedFieldTypeError):
        @layout
        @dataclass
        class Invalid:
            value: 'DoesNotExist'  # noqa: F821


def test_forward_references_to_local_classes() -> None:
    @pod
    @dataclass
    class Inner:
        value: u8

    @layout
    @dataclass
    class Outer:
        first: 'Inner'
        items: Array['Inner', 2]
        order: Be[Array['u16', 1]]

    fields = {f.name: f.type for f in get_layout_record(Outer).layout.fields}
    assert isinstance(fields['first'], CompositeType) and fields['first'].cls is Inner and fields['first'].pod
    assert fields['items'].element == fields['first']
    assert encode_bytes(Outer(Inner(1), (Inner(2), Inner(3)), (4,))) == b'\x01\x02\x03\x00\x04'


def test_direct_self_reference() -> None:
    with pytest.raises(RecursiveLayoutError):
        @layout
        @dataclass
        class Node:
            value: u8
            next: 'Node'


def test_self_reference_through_array() -> None:
    with pytest.raises(RecursiveLayoutError):
        @layout
        @dataclass
        class Tree:
            value: u8
            children: Array['Tree', 2]


def test_generation_errors_share_a_base() -> None:
    for error in (UnsupportedFieldTypeError, MissingByteOrderError, RecursiveLayoutError, PodRejectedError):
        assert issubclass(error, GenerationError)


def _is_small(value: int) -> bool:
    return value < 10


class _Mode(IntEnum):
    A = 0


@pytest.mark.parametrize(
    'annotation',
    [
        bool8,
        EnumRepr[_Mode, u8],
        Annotated[u8, Skip(1)],
        Annotated[u8, Check(_is_small)],
        LayoutHeader,
        Array[bool8, 2],
    ]
)
def test_pod_rejected(annotation) -> None:
    with pytest.raises(PodRejectedError):
        @pod
        @dataclass
        class Invalid:
            value: annotation


def test_pod_rejects_validate_hook() -> None:
    with pytest.raises(PodRejectedError):
        @pod
        @dataclass
        class Invalid:
            value: u8

            def validate(self) -> None:
                pass


def test_same_annotation_accepted_by_layout() -> None:
    @layout
    @dataclass
    class Valid:
        flag: bool8
        mode: EnumRepr[_Mode, u8]
        value: Annotated[u8, Skip(1), Check(_is_small)]
        header: LayoutHeader

    record = get_layout_record(Valid)
    assert not record.pod
    assert record.layout.size == 1 + 1 + 2 + 7
    assert build_layout(Valid).size == record.layout.size
