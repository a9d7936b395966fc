#  Copyright 2025 Hathor Labs
#
#  Licensed under the Apache License, Version 2.0 (the "License");
#  you may not use this file except in compliance with the License.
#  You may obtain a copy of the License at
#
#  http://www.apache.org/licenses/LICENSE-2.0
#
#  Unless required by applicable law or agreed to in writing, software
#  distributed under the License is distributed on an "AS IS" BASIS,
#  WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#  See the License for the specific language governing permissions and
#  limitations under the License.

"""
This module implements encoding of integers with a fixed size, the size, signedness and byte order are parametrized.

There is no default byte order, callers always choose one.

>>> se = Serializer.build_bytes_serializer()
>>> encode_int(se, 0, length=1, signed=True, byte_order=ByteOrder.BIG)  # writes 00
>>> encode_int(se, 255, length=1, signed=False, byte_order=ByteOrder.BIG)  # writes ff
>>> encode_int(se, 1234, length=2, signed=True, byte_order=ByteOrder.BIG)  # writes 04d2
>>> encode_int(se, 1234, length=2, signed=True, byte_order=ByteOrder.LITTLE)  # writes d204
>>> encode_int(se, -1234, length=2, signed=True, byte_order=ByteOrder.BIG)  # writes fb2e
>>> bytes(se.finalize()).hex()
'00ff04d2d204fb2e'

>>> de = Deserializer.build_bytes_deserializer(bytes.fromhex('00ff04d2d204fb2e'))
>>> decode_int(de, length=1, signed=True, byte_order=ByteOrder.BIG)  # reads 00
0
>>> decode_int(de, length=1, signed=False, byte_order=ByteOrder.BIG)  # reads ff
255
>>> decode_int(de, length=2, signed=True, byte_order=ByteOrder.BIG)  # reads 04d2
1234
>>> decode_int(de, length=2, signed=True, byte_order=ByteOrder.LITTLE)  # reads d204
1234
>>> decode_int(de, length=2, signed=True, byte_order=ByteOrder.BIG)  # reads fb2e
-1234
>>> de.finalize()

>>> se = Serializer.build_bytes_serializer()
>>> try:
...     encode_int(se, 256, length=1, signed=False, byte_order=ByteOrder.BIG)
... except EncodeValueError as e:
...     print(*e.args)
256 does not fit in 1 unsigned byte(s)
"""

from bytelayout.endian import ByteOrder
from bytelayout.serialization import Deserializer, EncodeValueError, Serializer


def encode_int(serializer: Serializer, number: int, *, length: int, signed: bool, byte_order: ByteOrder) -> None:
    """ Encode an int using the given byte-length, signedness and byte order.

    This modules's docstring has more details and examples.
    """
    if isinstance(number, bool) or not isinstance(number, int):
        raise EncodeValueError(f'expected int, got {type(number).__name__}')
    try:
        data = int.to_bytes(number, length, byteorder=byte_order.resolve(), signed=signed)
    except OverflowError as e:
        sign = 'signed' if signed else 'unsigned'
        raise EncodeValueError(f'{number} does not fit in {length} {sign} byte(s)') from e
    serializer.write_bytes(data)


def decode_int(deserializer: Deserializer, *, length: int, signed: bool, byte_order: ByteOrder) -> int:
    """ Decode an int using the given byte-length, signedness and byte order.

    This modules's docstring has more details and examples.
    """
    data = deserializer.read_bytes(length)
    return int.from_bytes(data, byteorder=byte_order.resolve(), signed=signed)
