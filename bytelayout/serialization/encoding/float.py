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
This module implements encoding of IEEE 754 binary32/binary64 floats with an explicit byte order.

>>> se = Serializer.build_bytes_serializer()
>>> encode_float(se, 1.0, length=4, byte_order=ByteOrder.BIG)  # writes 3f800000
>>> encode_float(se, -2.5, length=8, byte_order=ByteOrder.LITTLE)  # writes 00000000000004c0
>>> bytes(se.finalize()).hex()
'3f80000000000000000004c0'

>>> de = Deserializer.build_bytes_deserializer(bytes.fromhex('3f80000000000000000004c0'))
>>> decode_float(de, length=4, byte_order=ByteOrder.BIG)
1.0
>>> decode_float(de, length=8, byte_order=ByteOrder.LITTLE)
-2.5
>>> de.finalize()
"""

import struct

from bytelayout.endian import ByteOrder
from bytelayout.serialization import Deserializer, EncodeValueError, Serializer

_FLOAT_CHARS = {4: 'f', 8: 'd'}


def _float_format(length: int, byte_order: ByteOrder) -> str:
    try:
        return byte_order.struct_prefix + _FLOAT_CHARS[length]
    except KeyError:
        raise ValueError(f'unsupported float length: {length}')


def encode_float(serializer: Serializer, value: float, *, length: int, byte_order: ByteOrder) -> None:
    """ Encode a float using 4 (binary32) or 8 (binary64) bytes in the given byte order.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise EncodeValueError(f'expected float, got {type(value).__name__}')
    try:
        data = struct.pack(_float_format(length, byte_order), value)
    except (struct.error, OverflowError) as e:
        raise EncodeValueError(f'{value} cannot be encoded in {length} bytes: {e}') from e
    serializer.write_bytes(data)


def decode_float(deserializer: Deserializer, *, length: int, byte_order: ByteOrder) -> float:
    """ Decode a float of 4 or 8 bytes in the given byte order.
    """
    fmt = _float_format(length, byte_order)
    value, = struct.unpack(fmt, deserializer.read_bytes(length))
    return value
