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

"""Declared types shared by the tests, defined at module level so generated modules can import them by name."""

from dataclasses import dataclass
from enum import IntEnum
from typing import Annotated

from bytelayout import ByteOrder, layout, pod
from bytelayout.types import Align, Array, Be, Bytes, Check, Cond, EnumRepr, Le, Skip, bool8, f32, f64, i16, u8, u16, u32


class Color(IntEnum):
    RED = 1
    GREEN = 2
    BLUE = 3


def is_even(value: int) -> bool:
    return value % 2 == 0


def has_payload(packet) -> bool:
    return bool(packet.flags & 1)


@pod
@dataclass
class Header:
    magic: Be[u32]
    version: u8
    length: Le[u16]


@layout
@dataclass
class LayoutHeader:
    magic: Be[u32]
    version: u8
    length: Le[u16]


@pod(backend='closure')
@dataclass
class ClosureHeader:
    magic: Be[u32]
    version: u8
    length: Le[u16]


@pod
@dataclass(frozen=True)
class Point:
    x: Le[i16]
    y: Le[i16]


@pod
@dataclass
class Polygon:
    points: Array[Point, 3]
    tag: Bytes[2]
    weights: Be[Array[f32, 2]]
    grid: Array[Array[u8, 2], 2]


@layout
@dataclass
class Record:
    header: Header
    color: EnumRepr[Color, u8]
    flag: bool8
    name: Bytes[4]
    samples: Array[Be[i16], 3]
    checked: Annotated[Be[u32], Skip(2), Check(is_even)]
    colors: Array[EnumRepr[Color, Be[u16]], 2]

    def validate(self) -> None:
        if self.flag and self.color is Color.RED:
            raise ValueError('red records cannot be flagged')


@layout
@dataclass
class Packet:
    flags: u8
    length: Annotated[Le[u32], Align(4)]
    payload: Annotated[Bytes[4], Cond(has_payload, default=None)]
    crc: Annotated[Be[u16], Skip(1), Align(4)]


@layout(byte_order=ByteOrder.LITTLE)
@dataclass
class Defaults:
    a: u32
    b: Be[u16]
    c: f64


RECORD_BYTES = bytes.fromhex(
    '00000001 02 0300'  # header
    '02'                # color
    '00'                # flag
    '61626364'          # name
    '0001 fffe 0003'    # samples
    '0000'              # skipped
    '0000000a'          # checked
    '0001 0003'         # colors
)


def make_record(**kwargs) -> Record:
    values = dict(
        header=Header(1, 2, 3),
        color=Color.GREEN,
        flag=False,
        name=b'abcd',
        samples=(1, -2, 3),
        checked=10,
        colors=(Color.RED, Color.BLUE),
    )
    values.update(kwargs)
    return Record(**values)


PACKET_BYTES = bytes.fromhex(
    '01'          # flags
    '000000'      # padding
    '04000000'    # length
    '61626364'    # payload
    '00'          # skipped
    '000000'      # padding
    'beef'        # crc
)
