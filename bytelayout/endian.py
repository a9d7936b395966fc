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
Fixed-width primitives and their byte-order explicit encoding.

The byte order is always passed explicitly, there is no default inferred from the platform. `ByteOrder.NATIVE` is an
explicit choice of "whatever this interpreter uses" and is resolved with `sys.byteorder`.

>>> encode_primitive(0x0102, U16, ByteOrder.BIG).hex()
'0102'
>>> encode_primitive(0x0102, U16, ByteOrder.LITTLE).hex()
'0201'
>>> encode_primitive(0xff, U8, ByteOrder.BIG) == encode_primitive(0xff, U8, ByteOrder.LITTLE)
True
>>> decode_primitive(bytes.fromhex('fffe'), I16, ByteOrder.BIG)
-2
>>> EndianValue(1.5, F32, ByteOrder.LITTLE).to_bytes().hex()
'0000c03f'
"""

from __future__ import annotations

import math
import struct
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Literal, TypeVar

from bytelayout.exceptions import LengthMismatchError
from bytelayout.serialization.exceptions import DecodeValueError, EncodeValueError
from bytelayout.serialization.types import Buffer

N = TypeVar('N', int, float, bool)


class ByteOrder(Enum):
    BIG = 'big'
    LITTLE = 'little'
    NATIVE = 'native'

    def resolve(self) -> Literal['big', 'little']:
        """The concrete order, `NATIVE` is resolved to the interpreter's `sys.byteorder`."""
        if self is ByteOrder.BIG:
            return 'big'
        if self is ByteOrder.LITTLE:
            return 'little'
        return sys.byteorder

    @property
    def struct_prefix(self) -> str:
        """Prefix for `struct` formats, all of them use standard sizes and no alignment."""
        return _STRUCT_PREFIXES[self]


_STRUCT_PREFIXES = {
    ByteOrder.BIG: '>',
    ByteOrder.LITTLE: '<',
    ByteOrder.NATIVE: '=',
}


class PrimitiveKind(Enum):
    UNSIGNED = 'unsigned'
    SIGNED = 'signed'
    FLOAT = 'float'
    BOOL = 'bool'


@dataclass(frozen=True, slots=True)
class Primitive:
    """A fixed-width primitive type, identified by its name (`u8`, `i32`, `f64`, ...)."""
    name: str
    size: int
    kind: PrimitiveKind
    struct_char: str

    def __repr__(self) -> str:
        return self.name.upper()

    @property
    def python_type(self) -> type:
        match self.kind:
            case PrimitiveKind.FLOAT:
                return float
            case PrimitiveKind.BOOL:
                return bool
            case _:
                return int

    @property
    def needs_byte_order(self) -> bool:
        return self.size > 1

    @property
    def lower_bound(self) -> int | None:
        match self.kind:
            case PrimitiveKind.UNSIGNED:
                return 0
            case PrimitiveKind.SIGNED:
                return -(2**(self.size * 8 - 1))
            case _:
                return None

    @property
    def upper_bound(self) -> int | None:
        match self.kind:
            case PrimitiveKind.UNSIGNED:
                return 2**(self.size * 8) - 1
            case PrimitiveKind.SIGNED:
                return 2**(self.size * 8 - 1) - 1
            case _:
                return None

    def struct_format(self, byte_order: ByteOrder, count: int = 1) -> str:
        repeat = str(count) if count != 1 else ''
        return f'{byte_order.struct_prefix}{repeat}{self.struct_char}'


U8 = Primitive('u8', 1, PrimitiveKind.UNSIGNED, 'B')
I8 = Primitive('i8', 1, PrimitiveKind.SIGNED, 'b')
U16 = Primitive('u16', 2, PrimitiveKind.UNSIGNED, 'H')
I16 = Primitive('i16', 2, PrimitiveKind.SIGNED, 'h')
U32 = Primitive('u32', 4, PrimitiveKind.UNSIGNED, 'I')
I32 = Primitive('i32', 4, PrimitiveKind.SIGNED, 'i')
U64 = Primitive('u64', 8, PrimitiveKind.UNSIGNED, 'Q')
I64 = Primitive('i64', 8, PrimitiveKind.SIGNED, 'q')
F32 = Primitive('f32', 4, PrimitiveKind.FLOAT, 'f')
F64 = Primitive('f64', 8, PrimitiveKind.FLOAT, 'd')
BOOL = Primitive('bool8', 1, PrimitiveKind.BOOL, '?')

ALL_PRIMITIVES: tuple[Primitive, ...] = (U8, I8, U16, I16, U32, I32, U64, I64, F32, F64, BOOL)


def check_primitive_value(value: object, primitive: Primitive) -> None:
    """Raise `EncodeValueError` if `value` cannot be represented by `primitive`."""
    match primitive.kind:
        case PrimitiveKind.BOOL:
            if not isinstance(value, bool):
                raise EncodeValueError(f'{primitive.name} expects a bool, got {type(value).__name__}')
        case PrimitiveKind.FLOAT:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise EncodeValueError(f'{primitive.name} expects a float, got {type(value).__name__}')
            _check_float_is_exact(value, primitive)
        case _:
            if isinstance(value, bool) or not isinstance(value, int):
                raise EncodeValueError(f'{primitive.name} expects an int, got {type(value).__name__}')
            assert primitive.lower_bound is not None and primitive.upper_bound is not None
            if not primitive.lower_bound <= value <= primitive.upper_bound:
                raise EncodeValueError(
                    f'{value} is out of range for {primitive.name} '
                    f'[{primitive.lower_bound}, {primitive.upper_bound}]'
                )


def _check_float_is_exact(value: int | float, primitive: Primitive) -> None:
    """Only values that decode back to themselves are accepted, NaN included."""
    if isinstance(value, float) and math.isnan(value):
        return
    fmt = primitive.struct_format(ByteOrder.LITTLE)
    try:
        narrowed, = struct.unpack(fmt, struct.pack(fmt, value))
    except (struct.error, OverflowError) as e:
        raise EncodeValueError(f'{value} cannot be encoded as {primitive.name}: {e}') from e
    if narrowed != value:
        raise EncodeValueError(f'{value} is not exactly representable as {primitive.name}')


def encode_primitive(value: N, primitive: Primitive, byte_order: ByteOrder) -> bytes:
    """Encode `value` as exactly `primitive.size` bytes in the given byte order."""
    check_primitive_value(value, primitive)
    match primitive.kind:
        case PrimitiveKind.BOOL:
            return b'\x01' if value else b'\x00'
        case PrimitiveKind.FLOAT:
            try:
                return struct.pack(primitive.struct_format(byte_order), value)
            except (struct.error, OverflowError) as e:
                raise EncodeValueError(f'{value} cannot be encoded as {primitive.name}: {e}') from e
        case kind:
            assert isinstance(value, int)
            return value.to_bytes(primitive.size, byte_order.resolve(), signed=kind is PrimitiveKind.SIGNED)


def decode_primitive(data: Buffer, primitive: Primitive, byte_order: ByteOrder) -> int | float | bool:
    """Decode exactly `primitive.size` bytes in the given byte order."""
    view = memoryview(data).cast('B')
    if len(view) != primitive.size:
        raise LengthMismatchError(primitive.size, len(view))
    match primitive.kind:
        case PrimitiveKind.BOOL:
            return bool_from_byte(view[0])
        case PrimitiveKind.FLOAT:
            value, = struct.unpack(primitive.struct_format(byte_order), view)
            return value
        case kind:
            return int.from_bytes(view, byte_order.resolve(), signed=kind is PrimitiveKind.SIGNED)


def bool_from_byte(byte: int) -> bool:
    if byte == 0:
        return False
    elif byte == 1:
        return True
    else:
        raw = bytes([byte])
        raise DecodeValueError(f'{raw!r} is not a valid boolean')


@dataclass(frozen=True, slots=True)
class EndianValue(Generic[N]):
    """An immutable primitive value paired with its width and an explicit byte order.

    The value is checked when constructed, so an `EndianValue` can always be encoded.
    """
    value: N
    primitive: Primitive
    byte_order: ByteOrder

    def __post_init__(self) -> None:
        check_primitive_value(self.value, self.primitive)

    @property
    def size(self) -> int:
        return self.primitive.size

    def to_bytes(self) -> bytes:
        return encode_primitive(self.value, self.primitive, self.byte_order)

    @classmethod
    def from_bytes(cls, data: Buffer, primitive: Primitive, byte_order: ByteOrder) -> EndianValue:
        return cls(decode_primitive(data, primitive, byte_order), primitive, byte_order)

    def with_byte_order(self, byte_order: ByteOrder) -> EndianValue[N]:
        return EndianValue(self.value, self.primitive, byte_order)
