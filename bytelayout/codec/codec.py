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

from abc import ABC, abstractmethod
from typing import Generic, TypeAlias, TypeVar, final

from bytelayout.exceptions import NotPodError
from bytelayout.runtime import check_available, packing
from bytelayout.serialization import Deserializer, Serializer
from bytelayout.serialization.types import Buffer

T = TypeVar('T')


class Codec(ABC, Generic[T]):
    """ This class is used to model a layout type with a static size and how its values are (de)serialized.

    There is one codec for each resolved field type: the closure backend composes them to build the procedures of a
    composite, the source backend does not need them. They are also what `codec_for()` returns for direct use, for
    example to encode a single `Be[u32]` or to convert values to and from JSON.

    POD codecs also implement `pack_into`/`unpack_from`, which read and write a value at a static offset of a buffer.
    """

    # These are all the values that can be observed when parsing a JSON with the builtin json module
    Json: TypeAlias = dict | list | str | int | float | bool | None

    # XXX: subclasses must override this if they need any properties
    __slots__ = ()

    @property
    @abstractmethod
    def size(self) -> int:
        """Number of bytes of every encoded value."""
        raise NotImplementedError

    @property
    @abstractmethod
    def is_pod(self) -> bool:
        raise NotImplementedError

    @final
    def check_value(self, value: T, /) -> None:
        """ Raise an `EncodeValueError` if the value cannot be encoded, compound values are checked recursively.
        """
        # XXX: subclasses must implement Codec._check_value, not Codec.check_value
        self._check_value(value, deep=True)

    @final
    def serialize(self, serializer: Serializer, value: T, /) -> None:
        """ Serialize a value, checking it while it is serialized, so calling check_value before is not needed.
        """
        # XXX: subclasses must implement Codec._serialize, not Codec.serialize
        self._check_value(value, deep=False)
        self._serialize(serializer, value)

    @final
    def deserialize(self, deserializer: Deserializer, /) -> T:
        """ Deserialize a value, consuming exactly `size` bytes on success.
        """
        return self._deserialize(deserializer)

    @final
    def to_bytes(self, value: T, /) -> bytes:
        """ Shortcut to quickly convert a value T to `bytes` and avoid using the serialization system.
        """
        serializer = Serializer.build_bytes_serializer()
        self.serialize(serializer, value)
        return bytes(serializer.finalize())

    @final
    def from_bytes(self, data: Buffer, /) -> T:
        """ Shortcut to quickly parse a value T from `bytes`, all of the bytes must be consumed.
        """
        deserializer = Deserializer.build_bytes_deserializer(data)
        value = self.deserialize(deserializer)
        deserializer.finalize()
        return value

    @final
    def pack(self, value: T, /) -> bytes:
        """ Reinterpret a POD value as exactly `size` bytes.
        """
        buffer = bytearray(self.size)
        self.pack_into(buffer, 0, value)
        return bytes(buffer)

    @final
    def pack_into(self, buffer: bytearray | memoryview, offset: int, value: T, /) -> None:
        if not self.is_pod:
            raise NotPodError(f'{self!r} is not POD')
        check_available(buffer, offset, self.size)
        self._check_value(value, deep=False)
        with packing():
            self._pack_into(buffer, offset, value)

    @final
    def unpack_from(self, buffer: Buffer, offset: int = 0, /) -> T:
        """ Reinterpret `size` bytes of `buffer`, starting at `offset`, as a POD value.
        """
        if not self.is_pod:
            raise NotPodError(f'{self!r} is not POD')
        check_available(buffer, offset, self.size)
        return self._unpack_from(buffer, offset)

    @final
    def json_to_value(self, json_value: Json, /) -> T:
        """ Use this to convert a value that comes out from `json.load` into the value that this class expects.

        Will raise a ValueError if the given `json_value` is not compatible.
        """
        # XXX: subclasses must implement Codec._json_to_value, not Codec.json_to_value
        value = self._json_to_value(json_value)
        self._check_value(value, deep=False)
        return value

    @final
    def value_to_json(self, value: T, /) -> Json:
        """ Use this to convert a value to an object compatible with `json.dump`.
        """
        # XXX: subclasses must implement Codec._value_to_json, not Codec.value_to_json
        self._check_value(value, deep=False)
        return self._value_to_json(value)

    @abstractmethod
    def _check_value(self, value: T, /, *, deep: bool) -> None:
        """ Inner implementation of `Codec.check_value`.

        Compound values should use `Codec._check_value` on the inner codecs and pass the appropriate deep argument.
        """
        raise NotImplementedError

    @abstractmethod
    def _serialize(self, serializer: Serializer, value: T, /) -> None:
        """ Inner implementation of `serialize`, you can assume that the given value has been "shallow checked".

        Compound codecs should pass `Codec.serialize` of the inner codecs as an `Encoder`, so the inner values are
        checked too.
        """
        raise NotImplementedError

    @abstractmethod
    def _deserialize(self, deserializer: Deserializer, /) -> T:
        raise NotImplementedError

    @abstractmethod
    def _json_to_value(self, json_value: Json, /) -> T:
        raise NotImplementedError

    @abstractmethod
    def _value_to_json(self, value: T, /) -> Json:
        raise NotImplementedError

    # these are only implemented by POD codecs

    def _pack_into(self, buffer: bytearray | memoryview, offset: int, value: T, /) -> None:
        raise NotPodError(f'{self!r} is not POD')

    def _unpack_from(self, buffer: Buffer, offset: int, /) -> T:
        raise NotPodError(f'{self!r} is not POD')
