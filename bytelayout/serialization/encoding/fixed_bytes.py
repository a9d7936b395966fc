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

r"""
This module implements encoding of byte sequences whose length is part of the type, no length prefix is written.

>>> se = Serializer.build_bytes_serializer()
>>> encode_fixed_bytes(se, b'RIFF', length=4)
>>> encode_zeros(se, 2)
>>> bytes(se.finalize())
b'RIFF\x00\x00'

>>> de = Deserializer.build_bytes_deserializer(b'RIFF\x00\x00')
>>> decode_fixed_bytes(de, length=4)
b'RIFF'
>>> skip_bytes(de, 2)
>>> de.finalize()

>>> se = Serializer.build_bytes_serializer()
>>> try:
...     encode_fixed_bytes(se, b'WAVE!', length=4)
... except EncodeValueError as e:
...     print(*e.args)
expected exactly 4 bytes, got 5
"""

from bytelayout.serialization import Deserializer, EncodeValueError, Serializer
from bytelayout.serialization.types import Buffer


def encode_fixed_bytes(serializer: Serializer, data: Buffer, *, length: int) -> None:
    """ Encodes a byte sequence that must have exactly `length` bytes.
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise EncodeValueError(f'expected bytes, got {type(data).__name__}')
    size = memoryview(data).nbytes
    if size != length:
        raise EncodeValueError(f'expected exactly {length} bytes, got {size}')
    serializer.write_bytes(data)


def decode_fixed_bytes(deserializer: Deserializer, *, length: int) -> bytes:
    """ Decodes exactly `length` bytes.
    """
    return bytes(deserializer.read_bytes(length))


def encode_zeros(serializer: Serializer, length: int) -> None:
    """ Writes `length` zero bytes, used for explicitly declared reserved space.
    """
    serializer.write_bytes(bytes(length))


def skip_bytes(deserializer: Deserializer, length: int) -> None:
    """ Consumes `length` bytes without interpreting them.
    """
    deserializer.read_bytes(length)
