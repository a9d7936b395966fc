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

from typing import Literal

from pydantic import Field

from bytelayout.utils import pydantic

CodecBackendName = Literal['source', 'closure']


class BytelayoutSettings(pydantic.BaseModel):
    # Which code emitter generates the procedures of `@layout` classes that do not choose one: 'source' compiles
    # generated Python source, 'closure' composes codec objects
    CODEC_BACKEND: CodecBackendName = 'source'

    # Log the Python source of every generated codec at debug level, only used by the 'source' backend
    LOG_GENERATED_SOURCE: bool = False

    # Upper bound of the bytes `decode_stream` (and the `decode_file` command) may read from one stream,
    # None disables it
    DEFAULT_MAX_BYTES: int | None = Field(default=1024 * 1024, gt=0)

    # First line of every rendered codec module
    GENERATED_SOURCE_HEADER: str = '# Generated by bytelayout, do not edit.'
