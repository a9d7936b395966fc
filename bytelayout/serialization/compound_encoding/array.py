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

r"""
A fixed array has its length as part of its type, so there is no length prefix: the encoding of `Array[T, n]` is just
the `n` encodings of `T` concatenated in index order.

>>> from functools import partial
>>> from bytelayout.endian import ByteOrder
>>> from bytelayout.serialization.encoding.int import encode_int, decode_int
>>> enc_u16 = partial(encode_int, length=2, signed=False, byte_order=ByteOrder.LITTLE)
>>> dec_u16 = partial(decode_int, length=2, signed=False, byte_order=ByteOrder.LITTLE)
>>> se = Serializer.build_bytes_serializer()
>>> encode_array(se, (1, 2, 0x0a0b), enc_u16, length=3)
>>> bytes(se.finalize()).hex()
'010002000b0a'

>>> de = Deserializer.build_bytes_deserializer(bytes.fromhex('010002000b0a'))
>>> decode_array(de, dec_u16, length=3)
(1, 2, 2571)
>>> de.finalize()

>>> se = Serializer.build_bytes_serializer()
>>> try:
...     encode_array(se, (1, 2), enc_u16, length=3)
... except EncodeValueError as e:
...     print(*e.args)
expected exactly 3 elements, got 2
"""

from collections.abc import Sequence
from typing import TypeVar

from bytelayout.serialization import Deserializer, EncodeValueError, Serializer

from . import Decoder, Encoder

T = TypeVar('T')


def encode_array(serializer: Serializer, values: Sequence[T], encoder: Encoder[T], *, length: int) -> None:
    if isinstance(values, (str, bytes, bytearray)) or not isinstance(values, Sequence):
        raise EncodeValueError(f'expected a sequence, got {type(values).__name__}')
    if len(values) != length:
        raise EncodeValueError(f'expected exactly {length} elements, got {len(values)}')
    for value in values:
        encoder(serializer, value)


def decode_array(deserializer: Deserializer, decoder: Decoder[T], *, length: int) -> tuple[T, ...]:
    return tuple(decoder(deserializer) for _ in range(length))
