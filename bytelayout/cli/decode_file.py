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

import json
from typing import BinaryIO, Optional

from structlog import get_logger

logger = get_logger()


def decode_to_json(cls: type, stream: BinaryIO, *, count: Optional[int] = None,
                   max_bytes: Optional[int] = None) -> list:
    """ Decode consecutive values of `cls` from `stream` and convert each one with its codec's `value_to_json`.
    """
    from bytelayout import decode_stream, get_layout_record

    codec = get_layout_record(cls).codec
    values = [codec.value_to_json(value) for value in decode_stream(cls, stream, count=count, max_bytes=max_bytes)]
    logger.info('decoded values', type=cls.__qualname__, count=len(values))
    return values


def main():
    from bytelayout.cli.util import create_parser, load_type

    parser = create_parser()
    parser.add_argument('type', help='Declared type, as MODULE:TYPE')
    parser.add_argument('file', help='Binary file to decode')
    parser.add_argument('--offset', type=int, default=0, help='Position of the first value in the file')
    parser.add_argument('--count', type=int, default=None, help='Number of values to decode (default: until the end)')
    parser.add_argument('--max-bytes', type=int, default=None, help='Maximum bytes to read (default: DEFAULT_MAX_BYTES)')
    parser.add_argument('--indent', type=int, default=None, help='Number of spaces to use for indentation')
    args = parser.parse_args()

    cls = load_type(args.type)
    with open(args.file, 'rb') as fp:
        fp.seek(args.offset)
        values = decode_to_json(cls, fp, count=args.count, max_bytes=args.max_bytes)
    print(json.dumps(values, indent=args.indent))
