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

from typing import Any, Sequence

from typing_extensions import override

from bytelayout.codec.codec import Codec
from bytelayout.runtime import check_array
from bytelayout.serialization import Deserializer, Serializer
from bytelayout.serialization.compound_encoding.array import decode_array, encode_array
from bytelayout.serialization.types import Buffer


class ArrayCodec(Codec[tuple]):
    """ Codec of `Array[T, n]`: `n` values of the element codec, in index order, decoded as a tuple.
    """

    __slots__ = ('_element', '_length')

    _element: Codec[Any]
    _length: int

    def __init__(self, element: Codec[Any], length: int) -> None:
        self._element = element
        self._length = length

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self._element!r}, {self._length})'

    @property
    @override
    def size(self) -> int:
        return self._element.size * self._length

    @property
    @override
    def is_pod(self) -> bool:
        return self._element.is_pod

    @override
    def _check_value(self, value: Sequence[Any], /, *, deep: bool) -> None:
        check_array(value, self._length)
        if deep:
            for element in value:
                self._element._check_value(element, deep=True)

    @override
    def _serialize(self, serializer: Serializer, value: Sequence[Any], /) -> None:
        encode_array(serializer, value, self._element.serialize, length=self._length)

    @override
    def _deserialize(self, deserializer: Deserializer, /) -> tuple:
        return decode_array(deserializer, self._element.deserialize, length=self._length)

    @override
    def _pack_into(self, buffer: bytearray | memoryview, offset: int, value: Sequence[Any], /) -> None:
        step = self._element.size
        for i, element in enumerate(value):
            self._element.pack_into(buffer, offset + i * step, element)

    @override
    def _unpack_from(self, buffer: Buffer, offset: int, /) -> tuple:
        step = self._element.size
        return tuple(self._element.unpack_from(buffer, offset + i * step) for i in range(self._length))

    @override
    def _json_to_value(self, json_value: Codec.Json, /) -> tuple:
        if not isinstance(json_value, list):
            raise ValueError('expected list')
        return tuple(self._element.json_to_value(i) for i in json_value)

    @override
    def _value_to_json(self, value: Sequence[Any], /) -> Codec.Json:
        return [self._element.value_to_json(i) for i in value]
