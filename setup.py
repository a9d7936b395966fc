#!/usr/bin/env python
"""
Copyright 2025 Hathor Labs

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

   http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

import re
from pathlib import Path

from setuptools import find_packages, setup

# bytelayout/__init__.py imports the runtime dependencies, which are not installed at build time
__version__ = re.search(
    r"^__version__ = '([^']+)'",
    (Path(__file__).parent / 'bytelayout' / '__init__.py').read_text(),
    re.MULTILINE,
).group(1)

setup(
    name='bytelayout',
    version=__version__,
    description='Endian-explicit binary layouts and generated codecs for Python dataclasses',
    author='Hathor Team',
    author_email='contact@hathor.network',
    url='https://hathor.network/',
    license='Apache-2.0',
    python_requires='>=3.11',
    entry_points={
        'console_scripts': ['bytelayout-cli=bytelayout.cli.main:main'],
    },
    classifiers=[
        'Programming Language :: Python :: 3',
        'Operating System :: OS Independent',
        'License :: OSI Approved :: Apache Software License',
    ],
    packages=find_packages(exclude=('bytelayout_tests', 'bytelayout_tests.*')),
    package_data={'bytelayout.conf': ['*.yml']},
    install_requires=[
        'structlog>=22.3',
        'pydantic>=2.0',
        'PyYAML>=6.0',
        'typing_extensions>=4.6',
        'ConfigArgParse>=1.5',
        'colorama>=0.4',
    ],
    extras_require={
        'test': ['pytest>=7.0'],
    },
)
