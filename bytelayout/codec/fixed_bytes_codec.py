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
from bytelayout.runtime import check_fixed_bytes
from bytelayout.serialization import Deserializer, Serializer
from bytelayout.serialization.encoding.fixed_bytes import decode_fixed_bytes, encode_fixed_bytes
from bytelayout.serialization.types import Buffer


class FixedBytesCodec(Codec[bytes]):
    """ Codec of exactly `length` raw bytes, JSON values are hex strings.

    >>> codec = FixedBytesCodec(4)
    >>> codec.value_to_json(b'RIFF')
    '52494646'
    >>> codec.json_to_value('52494646')
    b'RIFF'
    """

    __slots__ = ('_length', '_struct')

    _length: int
    _struct: struct.Struct

    def __init__(self, length: int) -> None:
        self._length = length
        self._struct = struct.Struct(f'{length}s')

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self._length})'

    @property
    @override
    def size(self) -> int:
        return self._length

    @property
    @override
    def is_pod(self) -> bool:
        return True

    @override
    def _check_value(self, value: bytes, /, *, deep: bool) -> None:
        check_fixed_bytes(value, self._length)

    @override
    def _serialize(self, serializer: Serializer, value: bytes, /) -> None:
        encode_fixed_bytes(serializer, value, length=self._length)

    @override
    def _deserialize(self, deserializer: Deserializer, /) -> bytes:
        return decode_fixed_bytes(deserializer, length=self._length)

    @override
    def _pack_into(self, buffer: bytearray | memoryview, offset: int, value: bytes, /) -> None:
        self._struct.pack_into(buffer, offset, bytes(value))

    @override
    def _unpack_from(self, buffer: Buffer, offset: int, /) -> bytes:
        value, = self._struct.unpack_from(buffer, offset)
        return value

    @override
    def _json_to_value(self, json_value: Codec.Json, /) -> bytes:
        if not isinstance(json_value, str):
            raise ValueError('expected hex string')
        return bytes.fromhex(json_value)

    @override
    def _value_to_json(self, value: bytes, /) -> Codec.Json:
        return bytes(value).hex()
