# Licensed to the Apache Software Foundation (ASF) under one
# or more contributor license agreements.  See the NOTICE file
# distributed with this work for additional information
# regarding copyright ownership.  The ASF licenses this file
# to you under the Apache License, Version 2.0 (the
# "License"); you may not use this file except in compliance
# with the License.  You may obtain a copy of the License at
#
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing,
# software distributed under the License is distributed on an
# "AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY
# KIND, either express or implied.  See the License for the
# specific language governing permissions and limitations
# under the License.

"""Base class for code generators."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

from proto2ts.parser.ast import FieldType, ProtoFile


def identity_path(path: str) -> str:
    return path


@dataclass
class GeneratedFile:
    """A generated source file."""

    path: str
    content: str


@dataclass
class GeneratorOptions:
    """Options for code generation.

    ``path_resolver`` maps the path of an import statement to the path used
    when the generated code refers to the imported file.
    """

    indent_size: int = 2
    path_resolver: Callable[[str], str] = identity_path


class BaseGenerator(ABC):
    """Base class for language-specific code generators."""

    # Override in subclasses
    language_name: str = "base"
    file_extension: str = ".txt"

    def __init__(self, ast: ProtoFile, options: Optional[GeneratorOptions] = None):
        self.ast = ast
        self.options = options or GeneratorOptions()
        if self.options.indent_size < 0:
            raise ValueError(
                f"indent_size must be >= 0, got {self.options.indent_size}"
            )
        self.indent_str = " " * self.options.indent_size

    @abstractmethod
    def generate(self) -> str:
        """Generate code for the whole file."""

    @abstractmethod
    def generate_type(self, field_type: FieldType) -> str:
        """Generate the type string for a field type."""

    def ind(self, level: int) -> str:
        """Indentation prefix for the given nesting level."""
        return self.indent_str * level
