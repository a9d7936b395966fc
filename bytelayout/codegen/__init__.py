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

from bytelayout.codegen.closure_emitter import ClosureEmitter
from bytelayout.codegen.emitter import CodeEmitter, Procedures
from bytelayout.codegen.source_emitter import Binding, SourceEmitter
from bytelayout.conf.get_settings import get_global_settings

__all__ = [
    'Binding',
    'ClosureEmitter',
    'CodeEmitter',
    'Procedures',
    'SourceEmitter',
    'get_emitter',
]

_EMITTERS: dict[str, type[CodeEmitter]] = {
    SourceEmitter.name: SourceEmitter,
    ClosureEmitter.name: ClosureEmitter,
}


def get_emitter(backend: CodeEmitter | str | None = None) -> CodeEmitter:
    """ Return the emitter for `backend`, which is an emitter, its name, or None for the `CODEC_BACKEND` setting.
    """
    if isinstance(backend, CodeEmitter):
        return backend
    if backend is None:
        backend = get_global_settings().CODEC_BACKEND
    try:
        return _EMITTERS[backend]()
    except KeyError:
        raise ValueError(f'unknown codec backend {backend!r}, expected one of {sorted(_EMITTERS)}')
