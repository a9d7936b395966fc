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

import sys


def main():
    import argparse

    from bytelayout.cli.util import create_parser, load_type
    from bytelayout.codegen import SourceEmitter

    parser = create_parser()
    parser.add_argument('type', help='Declared type, as MODULE:TYPE')
    parser.add_argument('--output', type=argparse.FileType('w', encoding='UTF-8'), default=sys.stdout,
                        help='Output file where the codec module will be written')
    parser.add_argument('--header', default=None, help='First line of the module (default: GENERATED_SOURCE_HEADER)')
    args = parser.parse_args()

    cls = load_type(args.type)
    args.output.write(SourceEmitter().render_module(cls, header=args.header))
