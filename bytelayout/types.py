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
Annotation vocabulary used to declare the binary layout of a dataclass field.

Every field of a `@layout` dataclass is annotated with one of these, the annotation alone defines the width, the
signedness and the byte order of what goes on the wire:

>>> from dataclasses import dataclass
>>> from typing import Annotated
>>> from bytelayout import layout, encode_bytes
>>> @layout
... @dataclass
... class Entry:
...     tag: Bytes[4]
...     length: Be[u32]
...     flags: Annotated[u8, Skip(1)]
...     samples: Array[Le[i16], 2]
>>> encode_bytes(Entry(b'data', 16, 0x80, (1, -1))).hex()
'646174610000001000800100ffff'

`Be[...]`, `Le[...]` and `Native[...]` can wrap a primitive, an `Array` (the order applies to its elements) or the
representation of an `EnumRepr`. Single-byte primitives do not need an order.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Callable

from bytelayout.endian import BOOL, F32, F64, I8, I16, I32, I64, U8, U16, U32, U64, ByteOrder

__all__ = [
    'u8', 'i8', 'u16', 'i16', 'u32', 'i32', 'u64', 'i64', 'f32', 'f64', 'bool8',
    'Be', 'Le', 'Native', 'Array', 'Bytes', 'EnumRepr', 'Skip', 'Align', 'Check', 'Cond',
    'ArraySpec', 'FixedBytes', 'EnumSpec',
]

u8 = Annotated[int, U8]
i8 = Annotated[int, I8]
u16 = Annotated[int, U16]
i16 = Annotated[int, I16]
u32 = Annotated[int, U32]
i32 = Annotated[int, I32]
u64 = Annotated[int, U64]
i64 = Annotated[int, I64]
f32 = Annotated[float, F32]
f64 = Annotated[float, F64]
bool8 = Annotated[bool, BOOL]


@dataclass(frozen=True, slots=True)
class ArraySpec:
    """Metadata of `Array[element, length]`, the element is kept as an unresolved annotation."""
    element: Any
    length: int

    def __post_init__(self) -> None:
        if isinstance(self.length, bool) or not isinstance(self.length, int) or self.length < 0:
            raise TypeError(f'array length must be a non-negative int, got {self.length!r}')


@dataclass(frozen=True, slots=True)
class FixedBytes:
    """Metadata of `Bytes[length]`."""
    length: int

    def __post_init__(self) -> None:
        if isinstance(self.length, bool) or not isinstance(self.length, int) or self.length < 0:
            raise TypeError(f'bytes length must be a non-negative int, got {self.length!r}')


@dataclass(frozen=True, slots=True)
class EnumSpec:
    """Metadata of `EnumRepr[enum, representation]`."""
    enum_type: type[Enum]
    representation: Any


@dataclass(frozen=True, slots=True)
class Skip:
    """Field option: `count` zero bytes precede the field, they are skipped when decoding.

    Used as `Annotated[Be[u32], Skip(2)]`.
    """
    count: int

    def __post_init__(self) -> None:
        if isinstance(self.count, bool) or not isinstance(self.count, int) or self.count < 0:
            raise TypeError(f'skip count must be a non-negative int, got {self.count!r}')


@dataclass(frozen=True, slots=True)
class Align:
    """Field option: zero bytes precede the field until its offset is a multiple of `alignment`.

    The offset is counted from the start of the enclosing dataclass and the padding comes after the `Skip` bytes, if
    any. Used as `Annotated[Le[u32], Align(4)]`.
    """
    alignment: int

    def __post_init__(self) -> None:
        if isinstance(self.alignment, bool) or not isinstance(self.alignment, int) or self.alignment < 1:
            raise TypeError(f'alignment must be a positive int, got {self.alignment!r}')


@dataclass(frozen=True, slots=True)
class Check:
    """Field option: `predicate(value)` must be true, verified before encoding and after decoding.

    Used as `Annotated[u8, Check(lambda v: v < 10)]`.
    """
    predicate: Callable[[Any], bool]


@dataclass(frozen=True, slots=True)
class Cond:
    """ Field option: the field only holds a value when `predicate` is true.

    When encoding the predicate gets the value being encoded, when decoding it gets a namespace with the fields decoded
    before this one, so it can only look at earlier fields:

    >>> from dataclasses import dataclass
    >>> from bytelayout import layout, decode_bytes, encode_bytes
    >>> @layout
    ... @dataclass
    ... class Reading:
    ...     flags: u8
    ...     level: Annotated[Be[u16], Cond(lambda r: r.flags & 1, default=None)]
    >>> encode_bytes(Reading(1, 0x0102)).hex()
    '010102'
    >>> encode_bytes(Reading(0, 0x0102)).hex()
    '000000'
    >>> decode_bytes(Reading, bytes.fromhex('00ffff'))
    Reading(flags=0, level=None)

    The bytes of the field are always there, so the size of the type does not depend on the predicate: they are
    written as zeros and ignored when decoding, the decoded field is then `default`. The checks of the field only run
    when the predicate is true.
    """
    predicate: Callable[[Any], Any]
    default: Any = None


class _ByteOrderWrapper:
    _byte_order: ByteOrder

    def __init_subclass__(cls, *, byte_order: ByteOrder, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls._byte_order = byte_order

    def __class_getitem__(cls, item: Any) -> Any:
        return Annotated[item, cls._byte_order]


class Be(_ByteOrderWrapper, byte_order=ByteOrder.BIG):
    """`Be[T]`: `T` is encoded most significant byte first."""


class Le(_ByteOrderWrapper, byte_order=ByteOrder.LITTLE):
    """`Le[T]`: `T` is encoded least significant byte first."""


class Native(_ByteOrderWrapper, byte_order=ByteOrder.NATIVE):
    """`Native[T]`: `T` is encoded in the byte order of the running interpreter."""


class Array:
    """`Array[T, n]`: exactly `n` values of `T` in index order, no length prefix. Values are tuples."""

    def __class_getitem__(cls, params: Any) -> Any:
        if not isinstance(params, tuple) or len(params) != 2:
            raise TypeError('expected Array[element, length]')
        element, length = params
        return Annotated[tuple, ArraySpec(element, length)]


class Bytes:
    """`Bytes[n]`: exactly `n` raw bytes, no length prefix. Values are `bytes`."""

    def __class_getitem__(cls, length: int) -> Any:
        return Annotated[bytes, FixedBytes(length)]


class EnumRepr:
    """`EnumRepr[E, repr]`: a member of the enum `E`, encoded as its value with the integer primitive `repr`."""

    def __class_getitem__(cls, params: Any) -> Any:
        if not isinstance(params, tuple) or len(params) != 2:
            raise TypeError('expected EnumRepr[enum, representation]')
        enum_type, representation = params
        if not (isinstance(enum_type, type) and issubclass(enum_type, Enum)):
            raise TypeError(f'{enum_type!r} is not an Enum')
        return Annotated[enum_type, EnumSpec(enum_type, representation)]
