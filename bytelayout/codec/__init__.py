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

from typing import Any

from bytelayout.codec.array_codec import ArrayCodec
from bytelayout.codec.codec import Codec
from bytelayout.codec.enum_codec import EnumCodec
from bytelayout.codec.fixed_bytes_codec import FixedBytesCodec
from bytelayout.codec.primitive_codec import PrimitiveCodec
from bytelayout.codec.struct_codec import StructCodec
from bytelayout.layout import (
    ArrayType,
    CompositeType,
    EnumType,
    FieldType,
    FixedBytesType,
    PrimitiveType,
    get_record,
    resolve_annotation,
)

__all__ = [
    'ArrayCodec',
    'Codec',
    'EnumCodec',
    'FixedBytesCodec',
    'PrimitiveCodec',
    'StructCodec',
    'codec_for',
    'codec_for_field_type',
]


def codec_for_field_type(field_type: FieldType) -> Codec[Any]:
    """Build the codec of a resolved field type, composites share the codec attached to their class."""
    match field_type:
        case PrimitiveType():
            return PrimitiveCodec(field_type)
        case EnumType():
            return EnumCodec(field_type)
        case FixedBytesType(length=length):
            return FixedBytesCodec(length)
        case ArrayType(element=element, length=length):
            return ArrayCodec(codec_for_field_type(element), length)
        case CompositeType(cls=cls):
            record = get_record(cls)
            assert record is not None
            return record.codec
        case _:
            raise TypeError(f'unexpected field type {field_type!r}')


def codec_for(type_: Any, /) -> Codec[Any]:
    """ Return the codec of a `@layout`/`@pod` class or of a field annotation.

    >>> from bytelayout.types import Be, Array, u16
    >>> codec = codec_for(Be[Array[u16, 2]])
    >>> codec.size, codec.is_pod
    (4, True)
    >>> codec.to_bytes((1, 2)).hex()
    '00010002'
    """
    record = get_record(type_)
    if record is not None:
        return record.codec
    return codec_for_field_type(resolve_annotation(type_).type)
