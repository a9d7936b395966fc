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
from typing import Any

from bytelayout.decorators import LayoutRecord


def layout_to_dict(record: LayoutRecord) -> dict[str, Any]:
    """ Describe a declared type: its fields with their offset and size, its total size and whether it is POD.
    """
    fields = []
    for placement in record.layout.placements():
        field = placement.field
        fields.append({
            'name': field.name,
            'offset': placement.offset,
            'size': field.type.size,
            'skip': field.skip,
            'padding': field.padding,
            'alignment': field.alignment,
            'type': field.type.describe(),
            'byte_order': field.byte_order.value if field.byte_order is not None else None,
            'pod': field.type.is_pod,
            'checks': len(field.checks),
            'conditional': field.condition is not None,
        })
    return {
        'type': record.layout.name,
        'size': record.layout.size,
        'pod': record.pod,
        'backend': record.backend,
        'fields': fields,
    }


def format_layout(description: dict[str, Any]) -> str:
    lines = [f"{description['type']}: {description['size']} bytes, pod={description['pod']}"]
    for field in description['fields']:
        notes = []
        if field['skip']:
            notes.append(f"skip {field['skip']}")
        if field['alignment'] > 1:
            notes.append(f"align {field['alignment']}, padding {field['padding']}")
        if field['conditional']:
            notes.append('conditional')
        suffix = f" ({', '.join(notes)})" if notes else ''
        lines.append(f"  {field['offset']:>6} {field['size']:>6}  {field['name']}: {field['type']}{suffix}")
    return '\n'.join(lines)


def main():
    from bytelayout.cli.util import create_parser, load_type
    from bytelayout.decorators import get_layout_record

    parser = create_parser()
    parser.add_argument('type', help='Declared type, as MODULE:TYPE')
    parser.add_argument('--json', action='store_true', help='Print the description as JSON')
    args = parser.parse_args()

    description = layout_to_dict(get_layout_record(load_type(args.type)))
    if args.json:
        print(json.dumps(description, indent=2))
    else:
        print(format_layout(description))
