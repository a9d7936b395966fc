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
from enum import Enum

from typing_extensions import override

from bytelayout.codec.codec import Codec
from bytelayout.layout import EnumType
from bytelayout.runtime import enum_from_value, enum_to_value, pack_value
from bytelayout.serialization import Deserializer, Serializer


class EnumCodec(Codec[Enum]):
    """ Codec of an enum member, encoded as its value with the representation primitive.

    Not every bit pattern is a member, so enums are never POD.
    """

    __slots__ = ('_type', '_struct')

    _type: EnumType
    _struct: struct.Struct

    def __init__(self, type_: EnumType) -> None:
        self._type = type_
        self._struct = struct.Struct(type_.representation.struct_format())

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self._type.describe()})'

    @property
    @override
    def size(self) -> int:
        return self._type.size

    @property
    @override
    def is_pod(self) -> bool:
        return False

    @override
    def _check_value(self, value: Enum, /, *, deep: bool) -> None:
        enum_to_value(value, self._type.enum_type, self._type.representation.primitive)

    @override
    def _serialize(self, serializer: Serializer, value: Enum, /) -> None:
        raw = enum_to_value(value, self._type.enum_type, self._type.representation.primitive)
        serializer.write_bytes(pack_value(self._struct, raw))

    @override
    def _deserialize(self, deserializer: Deserializer, /) -> Enum:
        raw, = self._struct.unpack(deserializer.read_bytes(self.size))
        return enum_from_value(self._type.enum_type, raw)

    @override
    def _json_to_value(self, json_value: Codec.Json, /) -> Enum:
        if isinstance(json_value, str):
            try:
                return self._type.enum_type[json_value]
            except KeyError:
                raise ValueError(f'{json_value!r} is not a member of {self._type.enum_type.__qualname__}')
        if isinstance(json_value, bool) or not isinstance(json_value, int):
            raise ValueError('expected member name or value')
        try:
            return self._type.enum_type(json_value)
        except ValueError:
            raise ValueError(f'{json_value} is not a valid {self._type.enum_type.__qualname__}')

    @override
    def _value_to_json(self, value: Enum, /) -> Codec.Json:
        return value.name
