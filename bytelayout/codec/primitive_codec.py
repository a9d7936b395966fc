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

from __future__ import annotations

import struct

from typing_extensions import override

from bytelayout.codec.codec import Codec
from bytelayout.endian import PrimitiveKind, check_primitive_value
from bytelayout.layout import PrimitiveType
from bytelayout.serialization import Deserializer, Serializer
from bytelayout.serialization.encoding.bool import decode_bool, encode_bool
from bytelayout.serialization.encoding.float import decode_float, encode_float
from bytelayout.serialization.encoding.int import decode_int, encode_int
from bytelayout.serialization.types import Buffer


class PrimitiveCodec(Codec[int | float | bool]):
    """ Codec of a fixed-width integer, float or `bool8`, in the byte order of its `PrimitiveType`.

    >>> from bytelayout.endian import U16, ByteOrder
    >>> codec = PrimitiveCodec(PrimitiveType(U16, ByteOrder.LITTLE))
    >>> codec.to_bytes(0x0102).hex()
    '0201'
    >>> codec.from_bytes(b'\\x02\\x01') == 0x0102
    True
    """

    __slots__ = ('_type', '_struct')

    _type: PrimitiveType
    _struct: struct.Struct

    def __init__(self, type_: PrimitiveType) -> None:
        self._type = type_
        self._struct = struct.Struct(type_.struct_format())

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self._type.describe()})'

    @property
    @override
    def size(self) -> int:
        return self._type.size

    @property
    @override
    def is_pod(self) -> bool:
        return self._type.is_pod

    @override
    def _check_value(self, value: int | float | bool, /, *, deep: bool) -> None:
        check_primitive_value(value, self._type.primitive)

    @override
    def _serialize(self, serializer: Serializer, value: int | float | bool, /) -> None:
        primitive = self._type.primitive
        match primitive.kind:
            case PrimitiveKind.BOOL:
                encode_bool(serializer, value)
            case PrimitiveKind.FLOAT:
                encode_float(serializer, value, length=primitive.size, byte_order=self._type.effective_byte_order)
            case kind:
                encode_int(serializer, value, length=primitive.size, signed=kind is PrimitiveKind.SIGNED,
                           byte_order=self._type.effective_byte_order)

    @override
    def _deserialize(self, deserializer: Deserializer, /) -> int | float | bool:
        primitive = self._type.primitive
        match primitive.kind:
            case PrimitiveKind.BOOL:
                return decode_bool(deserializer)
            case PrimitiveKind.FLOAT:
                return decode_float(deserializer, length=primitive.size, byte_order=self._type.effective_byte_order)
            case kind:
                return decode_int(deserializer, length=primitive.size, signed=kind is PrimitiveKind.SIGNED,
                                  byte_order=self._type.effective_byte_order)

    @override
    def _pack_into(self, buffer: bytearray | memoryview, offset: int, value: int | float | bool, /) -> None:
        self._struct.pack_into(buffer, offset, value)

    @override
    def _unpack_from(self, buffer: Buffer, offset: int, /) -> int | float | bool:
        value, = self._struct.unpack_from(buffer, offset)
        return value

    @override
    def _json_to_value(self, json_value: Codec.Json, /) -> int | float | bool:
        expected = self._type.primitive.python_type
        if expected is float and isinstance(json_value, int) and not isinstance(json_value, bool):
            return float(json_value)
        if not isinstance(json_value, expected) or (expected is int and isinstance(json_value, bool)):
            raise ValueError(f'expected {expected.__name__}')
        return json_value

    @override
    def _value_to_json(self, value: int | float | bool, /) -> Codec.Json:
        return value
