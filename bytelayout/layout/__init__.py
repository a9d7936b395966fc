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

from bytelayout.layout.descriptor import (
    ArrayType,
    CompositeType,
    EnumType,
    FieldDescriptor,
    FieldPlacement,
    FieldType,
    FixedBytesType,
    PrimitiveType,
    TypeLayoutDescriptor,
)
from bytelayout.layout.resolver import RECORD_ATTR, build_layout, get_record, resolve_annotation

__all__ = [
    'ArrayType',
    'CompositeType',
    'EnumType',
    'FieldDescriptor',
    'FieldPlacement',
    'FieldType',
    'FixedBytesType',
    'PrimitiveType',
    'RECORD_ATTR',
    'TypeLayoutDescriptor',
    'build_layout',
    'get_record',
    'resolve_annotation',
]
