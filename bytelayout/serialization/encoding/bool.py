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
This module implements `bool8`, a boolean stored in a whole byte.

Only two bit patterns are legal, which is why `bool8` is never POD: `b'\x00'` is `False` and `b'\x01'` is `True`.
Decoding any other byte raises `DecodeValueError` instead of guessing, and encoding only takes real `bool` values, so
`1` or `'yes'` are refused rather than coerced:

>>> se = Serializer.build_bytes_serializer()
>>> for flag in (True, False, True):
...     encode_bool(se, flag)
>>> bytes(se.finalize()).hex()
'010001'

>>> de = Deserializer.build_bytes_deserializer(bytes.fromhex('0100ff'))
>>> decode_bool(de), decode_bool(de)
(True, False)
>>> try:
...     decode_bool(de)
... except DecodeValueError as e:
...     print(*e.args)
b'\xff' is not a valid boolean

>>> se = Serializer.build_bytes_serializer()
>>> try:
...     encode_bool(se, 1)
... except EncodeValueError as e:
...     print(*e.args)
expected bool, got int
"""

from bytelayout.endian import bool_from_byte
from bytelayout.serialization import DecodeValueError, Deserializer, EncodeValueError, Serializer

_FALSE, _TRUE = 0x00, 0x01


def encode_bool(serializer: Serializer, value: bool) -> None:
    if type(value) is not bool:
        raise EncodeValueError(f'expected bool, got {type(value).__name__}')
    serializer.write_byte(_TRUE if value else _FALSE)


def decode_bool(deserializer: Deserializer) -> bool:
    """ Read one byte, which must be 0 or 1.
    """
    return bool_from_byte(deserializer.read_byte())
