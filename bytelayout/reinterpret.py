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
Byte reinterpretation of plain-old-data values.

A POD value is one for which every bit pattern of the right size is a legal value: integers and floats with an explicit
byte order, `Bytes[n]`, arrays of those and dataclasses declared with `@pod`. Their byte representation is exactly
`sizeof(type)` bytes, without any padding or metadata.

>>> from dataclasses import dataclass
>>> from bytelayout.decorators import pod
>>> from bytelayout.types import Be, Le, u8, u16, u32
>>> @pod
... @dataclass
... class Header:
...     magic: Be[u32]
...     version: u8
...     length: Le[u16]
>>> header = Header(0x01020304, 0xff, 0x0a0b)
>>> bytes(as_bytes(header)).hex()
'01020304ff0b0a'
>>> from_bytes(Header, bytes.fromhex('01020304ff0b0a')) == header
True
>>> sizeof(Header), is_pod(Header), is_pod(Be[u32])
(7, True, True)
"""

import dataclasses
from contextlib import contextmanager
from typing import Any, Iterator

from bytelayout.codec import Codec, codec_for
from bytelayout.endian import EndianValue
from bytelayout.exceptions import GenerationError, LengthMismatchError, NotPodError
from bytelayout.layout import PrimitiveType
from bytelayout.serialization.types import Buffer

__all__ = [
    'as_bytes',
    'as_bytes_mut',
    'from_bytes',
    'into_vec',
    'is_pod',
    'sizeof',
    'to_vec',
]


def is_pod(type_: Any, /) -> bool:
    """Whether values of a `@layout`/`@pod` class or of an annotation can be reinterpreted as bytes."""
    try:
        return codec_for(type_).is_pod
    except GenerationError:
        return False


def sizeof(type_: Any, /) -> int:
    """Static size in bytes of a `@layout`/`@pod` class or of an annotation, POD or not."""
    return codec_for(type_).size


def as_bytes(value: Any, /) -> memoryview:
    """ A read-only view of the exact byte representation of a POD value.

    `value` is an instance of a `@pod` dataclass or an `EndianValue`. The view has exactly `sizeof(type(value))` bytes.
    """
    if isinstance(value, EndianValue):
        if not PrimitiveType(value.primitive, value.byte_order).is_pod:
            raise NotPodError(f'{value.primitive.name} is not POD')
        return memoryview(value.to_bytes()).toreadonly()
    codec = _pod_codec_of_value(value)
    return memoryview(codec.pack(value)).toreadonly()


@contextmanager
def as_bytes_mut(value: Any, /) -> Iterator[bytearray]:
    """ Expose the byte representation of a mutable `@pod` instance for in-place modification.

    The bytes are written back into `value` when the block exits normally, if the block raises `value` is untouched.
    Resizing the buffer raises `LengthMismatchError`.

    >>> from dataclasses import dataclass
    >>> from bytelayout.decorators import pod
    >>> from bytelayout.types import Be, u16
    >>> @pod
    ... @dataclass
    ... class Counter:
    ...     count: Be[u16]
    >>> counter = Counter(1)
    >>> with as_bytes_mut(counter) as buffer:
    ...     buffer[0] = 0x01
    >>> counter.count
    257
    """
    if isinstance(value, EndianValue):
        raise NotPodError('EndianValue is immutable, build a new one instead')
    codec = _pod_codec_of_value(value)
    if getattr(type(value), '__dataclass_params__').frozen:
        raise NotPodError(f'{type(value).__qualname__} is frozen, its bytes cannot be modified in place')
    buffer = bytearray(codec.pack(value))
    yield buffer
    if len(buffer) != codec.size:
        raise LengthMismatchError(codec.size, len(buffer))
    updated = codec.unpack_from(buffer, 0)
    for field in dataclasses.fields(updated):
        setattr(value, field.name, getattr(updated, field.name))


def from_bytes(type_: Any, buffer: Buffer, /) -> Any:
    """ Copy `buffer` into a new value of a POD type, `len(buffer)` must be exactly `sizeof(type_)`.

    Field checks do not exist on POD types, so no validation happens beyond the size.
    """
    codec = _pod_codec(type_)
    view = memoryview(buffer).cast('B')
    if len(view) != codec.size:
        raise LengthMismatchError(codec.size, len(view))
    return codec.unpack_from(view, 0)


def to_vec(value: Any, /) -> bytearray:
    """An owned, growable copy of `as_bytes(value)`."""
    return bytearray(as_bytes(value))


def into_vec(value: Any, /) -> bytearray:
    """ Same as `to_vec`.

    There is no ownership transfer in Python, `value` stays usable and is not aliased by the result.
    """
    return to_vec(value)


def _pod_codec(type_: Any) -> Codec[Any]:
    codec = codec_for(type_)
    if not codec.is_pod:
        raise NotPodError(f'{type_!r} is not POD')
    return codec


def _pod_codec_of_value(value: Any) -> Codec[Any]:
    cls = type(value)
    if not dataclasses.is_dataclass(cls):
        raise NotPodError(f'{cls.__qualname__} is not POD, only @pod dataclasses and EndianValue are')
    try:
        return _pod_codec(cls)
    except GenerationError as e:
        raise NotPodError(f'{cls.__qualname__} is not declared with @pod') from e
