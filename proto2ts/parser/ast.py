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

"""AST node definitions for proto sources.

Every node is an immutable dataclass with a ``position`` and a class-level
``kind`` tag. Children are stored in tuples and belong to exactly one parent.
"""

from dataclasses import dataclass, fields
from enum import Enum as PyEnum
from typing import ClassVar, Iterator, Optional, Tuple, Union

from proto2ts.parser.position import Position


class NodeKind(PyEnum):
    """Closed set of AST node kinds."""

    IDENTIFIER = "identifier"
    STRING_LITERAL = "string_literal"
    NUMBER_LITERAL = "number_literal"
    BOOLEAN_LITERAL = "boolean_literal"
    OPTION = "option"
    TO = "to"
    RESERVED = "reserved"
    FIELD_TYPE = "field_type"
    FIELD_LABEL = "field_label"
    FIELD = "field"
    ONEOF = "oneof"
    ENUM_FIELD = "enum_field"
    ENUM = "enum"
    EXTENSIONS = "extensions"
    EXTEND = "extend"
    MESSAGE = "message"
    RPC_METHOD = "rpc_method"
    SERVICE = "service"
    IMPORT = "import"
    PACKAGE = "package"
    SYNTAX = "syntax"
    PROTO_FILE = "proto_file"


LABELS = ("optional", "required", "repeated")


@dataclass(frozen=True)
class Node:
    """Base class for all AST nodes."""

    kind: ClassVar[NodeKind]
    position: Position


@dataclass(frozen=True)
class Identifier(Node):
    """A plain or dotted name."""

    kind: ClassVar[NodeKind] = NodeKind.IDENTIFIER
    name: str


@dataclass(frozen=True)
class StringLiteral(Node):
    kind: ClassVar[NodeKind] = NodeKind.STRING_LITERAL
    value: str


@dataclass(frozen=True)
class NumberLiteral(Node):
    """A number as written in the source; ``max`` is kept verbatim."""

    kind: ClassVar[NodeKind] = NodeKind.NUMBER_LITERAL
    value: str


@dataclass(frozen=True)
class BooleanLiteral(Node):
    kind: ClassVar[NodeKind] = NodeKind.BOOLEAN_LITERAL
    value: bool


OptionValue = Union[StringLiteral, NumberLiteral, BooleanLiteral]


@dataclass(frozen=True)
class Option(Node):
    """An option statement or a bracketed field option.

    ``value`` is None only when the value failed to parse.
    """

    kind: ClassVar[NodeKind] = NodeKind.OPTION
    name: Identifier
    value: Optional[OptionValue]


@dataclass(frozen=True)
class ToRange(Node):
    """A numeric range such as ``9 to 11``."""

    kind: ClassVar[NodeKind] = NodeKind.TO
    start: NumberLiteral
    end: NumberLiteral


ReservedRange = Union[NumberLiteral, StringLiteral, ToRange]
ExtensionRange = Union[NumberLiteral, ToRange]


@dataclass(frozen=True)
class Reserved(Node):
    kind: ClassVar[NodeKind] = NodeKind.RESERVED
    ranges: Tuple[ReservedRange, ...] = ()


@dataclass(frozen=True)
class Extensions(Node):
    kind: ClassVar[NodeKind] = NodeKind.EXTENSIONS
    ranges: Tuple[ExtensionRange, ...] = ()


@dataclass(frozen=True)
class FieldType(Node):
    """A field type name with optional generic-style arguments (``map<K, V>``)."""

    kind: ClassVar[NodeKind] = NodeKind.FIELD_TYPE
    name: Identifier
    arguments: Tuple["FieldType", ...] = ()


@dataclass(frozen=True)
class FieldLabel(Node):
    kind: ClassVar[NodeKind] = NodeKind.FIELD_LABEL
    value: str

    def __post_init__(self):
        if self.value not in LABELS:
            raise ValueError(f"Invalid field label: {self.value}")


@dataclass(frozen=True)
class Field(Node):
    """A message, oneof or extend field."""

    kind: ClassVar[NodeKind] = NodeKind.FIELD
    label: Optional[FieldLabel]
    field_type: FieldType
    name: Identifier
    number: NumberLiteral
    options: Tuple[Option, ...] = ()

    @property
    def label_value(self) -> Optional[str]:
        return self.label.value if self.label else None


@dataclass(frozen=True)
class Oneof(Node):
    kind: ClassVar[NodeKind] = NodeKind.ONEOF
    name: Identifier
    fields: Tuple[Field, ...] = ()
    options: Tuple[Option, ...] = ()


@dataclass(frozen=True)
class EnumField(Node):
    kind: ClassVar[NodeKind] = NodeKind.ENUM_FIELD
    name: Identifier
    value: NumberLiteral
    options: Tuple[Option, ...] = ()


@dataclass(frozen=True)
class Enum(Node):
    kind: ClassVar[NodeKind] = NodeKind.ENUM
    name: Identifier
    fields: Tuple[EnumField, ...] = ()
    options: Tuple[Option, ...] = ()
    reserved: Tuple[Reserved, ...] = ()


@dataclass(frozen=True)
class Extend(Node):
    """An ``extend Target { ... }`` block; ``name`` is the extended type."""

    kind: ClassVar[NodeKind] = NodeKind.EXTEND
    name: Identifier
    fields: Tuple[Field, ...] = ()


@dataclass(frozen=True)
class Message(Node):
    kind: ClassVar[NodeKind] = NodeKind.MESSAGE
    name: Identifier
    fields: Tuple[Field, ...] = ()
    oneofs: Tuple[Oneof, ...] = ()
    enums: Tuple[Enum, ...] = ()
    messages: Tuple["Message", ...] = ()
    extends: Tuple[Extend, ...] = ()
    reserved: Tuple[Reserved, ...] = ()
    extensions: Optional[Extensions] = None
    options: Tuple[Option, ...] = ()


@dataclass(frozen=True)
class RpcMethod(Node):
    kind: ClassVar[NodeKind] = NodeKind.RPC_METHOD
    name: Identifier
    input_type: FieldType
    output_type: FieldType
    client_streaming: bool = False
    server_streaming: bool = False
    options: Tuple[Option, ...] = ()


@dataclass(frozen=True)
class Service(Node):
    kind: ClassVar[NodeKind] = NodeKind.SERVICE
    name: Identifier
    methods: Tuple[RpcMethod, ...] = ()
    options: Tuple[Option, ...] = ()


@dataclass(frozen=True)
class Import(Node):
    """An import statement. ``modifier`` is ``public``, ``weak`` or None."""

    kind: ClassVar[NodeKind] = NodeKind.IMPORT
    path: StringLiteral
    modifier: Optional[str] = None


@dataclass(frozen=True)
class Package(Node):
    kind: ClassVar[NodeKind] = NodeKind.PACKAGE
    name: Identifier


@dataclass(frozen=True)
class Syntax(Node):
    kind: ClassVar[NodeKind] = NodeKind.SYNTAX
    version: StringLiteral


@dataclass(frozen=True)
class ProtoFile(Node):
    """Root node for one proto source."""

    kind: ClassVar[NodeKind] = NodeKind.PROTO_FILE
    syntax: Optional[Syntax] = None
    package: Optional[Package] = None
    imports: Tuple[Import, ...] = ()
    options: Tuple[Option, ...] = ()
    enums: Tuple[Enum, ...] = ()
    messages: Tuple[Message, ...] = ()
    services: Tuple[Service, ...] = ()
    extends: Tuple[Extend, ...] = ()


def iter_child_nodes(node: Node) -> Iterator[Node]:
    """Yield the direct children of ``node`` in field order."""
    for f in fields(node):
        value = getattr(node, f.name)
        if isinstance(value, Node):
            yield value
        elif isinstance(value, tuple):
            for item in value:
                if isinstance(item, Node):
                    yield item


def walk(node: Node) -> Iterator[Node]:
    """Yield ``node`` and all of its descendants, depth first."""
    yield node
    for child in iter_child_nodes(node):
        yield from walk(child)
