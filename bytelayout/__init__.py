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

"""
Endian-explicit binary layouts for dataclasses.

Declare a dataclass with `@layout` (or `@pod`), annotating each field with its width and byte order, and the
encode/decode procedures of the class are generated right away:

>>> from dataclasses import dataclass
>>> from bytelayout import layout, decode_bytes, encode_bytes
>>> from bytelayout.types import Be, Le, u8, u16, u32
>>> @layout
... @dataclass
... class Header:
...     magic: Be[u32]
...     version: u8
...     length: Le[u16]
>>> encode_bytes(Header(0x01020304, 0xff, 0x0a0b)).hex()
'01020304ff0b0a'
>>> decode_bytes(Header, bytes.fromhex('01020304ff0b0a'))
Header(magic=16909060, version=255, length=2571)
"""

from typing import Any, BinaryIO, Iterator, Optional, TypeVar

from bytelayout.codec import Codec, codec_for
from bytelayout.conf.get_settings import get_global_settings
from bytelayout.decorators import LayoutRecord, get_layout_record, layout, pod
from bytelayout.endian import ByteOrder, EndianValue
from bytelayout.reinterpret import as_bytes, as_bytes_mut, from_bytes, into_vec, is_pod, sizeof, to_vec
from bytelayout.serialization import Deserializer, Serializer
from bytelayout.serialization.types import Buffer

__version__ = '0.1.0'

__all__ = [
    'ByteOrder',
    'Codec',
    'EndianValue',
    'LayoutRecord',
    'as_bytes',
    'as_bytes_mut',
    'codec_for',
    'decode',
    'decode_bytes',
    'decode_stream',
    'encode',
    'encode_bytes',
    'from_bytes',
    'get_layout_record',
    'into_vec',
    'is_pod',
    'layout',
    'pod',
    'sizeof',
    'to_vec',
]

T = TypeVar('T')


def encode(value: Any, serializer: Serializer) -> None:
    """Encode an instance of a `@layout`/`@pod` class, the first failure propagates and written bytes stay written."""
    get_layout_record(type(value)).codec.serialize(serializer, value)


def decode(cls: type[T], deserializer: Deserializer) -> T:
    """Decode one value of `cls`, reading exactly `sizeof(cls)` bytes on success."""
    return get_layout_record(cls).codec.deserialize(deserializer)


def encode_bytes(value: Any) -> bytes:
    return get_layout_record(type(value)).codec.to_bytes(value)


def decode_bytes(cls: type[T], data: Buffer) -> T:
    """Decode one value of `cls` from exactly `sizeof(cls)` bytes, left over bytes raise `TrailingDataError`."""
    return get_layout_record(cls).codec.from_bytes(data)


def decode_stream(cls: type[T], stream: BinaryIO, *, count: Optional[int] = None,
                  max_bytes: Optional[int] = None) -> Iterator[T]:
    """ Decode consecutive values of `cls` from a binary stream.

    Stops after `count` values, or when the stream ends right after a value; a stream ending in the middle of a value
    raises `UnexpectedEofError`. At most `max_bytes` are read, `DEFAULT_MAX_BYTES` from the settings when not given.
    """
    codec = get_layout_record(cls).codec
    if max_bytes is None:
        max_bytes = get_global_settings().DEFAULT_MAX_BYTES
    deserializer = Deserializer.build_stream_deserializer(stream).with_optional_max_bytes(max_bytes)
    decoded = 0
    while count is None or decoded < count:
        if count is None and deserializer.is_empty():
            return
        yield codec.deserialize(deserializer)
        decoded += 1
