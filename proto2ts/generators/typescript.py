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

"""TypeScript code generator."""

from typing import List, Optional, Sequence, Tuple, Union

from proto2ts.generators.base import BaseGenerator, GeneratorOptions
from proto2ts.parser.ast import (
    Enum,
    Extend,
    Field,
    FieldType,
    Import,
    Message,
    Oneof,
    ProtoFile,
    RpcMethod,
    Service,
)

Declaration = Union[Enum, Message, Extend, Service]
Lineage = Tuple[Message, ...]


def by_position(nodes):
    return sorted(nodes, key=lambda node: node.position.start)


class TypeScriptGenerator(BaseGenerator):
    """Generates TypeScript interfaces, enums and namespaces."""

    language_name = "typescript"
    file_extension = ".ts"

    # Mapping from proto scalar types to TypeScript types
    SCALAR_TYPES = {
        "double": "number",
        "float": "number",
        "int32": "number",
        "int64": "number",
        "uint32": "number",
        "uint64": "number",
        "sint32": "number",
        "sint64": "number",
        "fixed32": "number",
        "fixed64": "number",
        "sfixed32": "number",
        "sfixed64": "number",
        "bool": "boolean",
        "string": "string",
        "bytes": "Uint8Array",
    }

    MAP_TYPE = "Map"

    def generate(self) -> str:
        """Generate TypeScript source for the whole file."""
        sections: List[List[str]] = []

        references = [self.generate_reference(imp) for imp in self.ast.imports]
        if references:
            sections.append(references)

        declarations = by_position(
            [
                *self.ast.enums,
                *self.ast.messages,
                *self.ast.extends,
                *self.ast.services,
            ]
        )
        for decl in declarations:
            sections.append(self.generate_declaration(decl, 0, ()))
            if isinstance(decl, Message):
                # Extensions declared inside messages merge into their targets
                # at file level.
                for extend, scope in self.collect_extends(decl, ()):
                    sections.append(self.generate_extend(extend, 0, scope))

        if not sections:
            return ""
        return "\n\n".join("\n".join(lines) for lines in sections) + "\n"

    def generate_reference(self, imp: Import) -> str:
        path = self.options.path_resolver(imp.path.value)
        return f'/// <reference path="{path}" />'

    def generate_declaration(
        self,
        decl: Declaration,
        level: int,
        lineage: Lineage,
        export: bool = False,
    ) -> List[str]:
        if isinstance(decl, Message):
            return self.generate_message(decl, level, lineage, export)
        if isinstance(decl, Enum):
            return self.generate_enum(decl, level, export)
        if isinstance(decl, Extend):
            return self.generate_extend(decl, level, lineage, export)
        if isinstance(decl, Service):
            return self.generate_service(decl, level, export)
        raise TypeError(f"Unsupported declaration: {decl.kind}")

    def generate_block(self, header: str, body: List[str], level: int) -> List[str]:
        ind = self.ind(level)
        if not body:
            return [f"{ind}{header} {{}}"]
        return [f"{ind}{header} {{", *body, f"{ind}}}"]

    def generate_message(
        self,
        message: Message,
        level: int,
        lineage: Lineage,
        export: bool = False,
    ) -> List[str]:
        """Generate an interface, plus a namespace holding nested types."""
        prefix = "export " if export else ""
        name = message.name.name
        scope = lineage + (message,)

        members: List[str] = []
        for member in by_position([*message.fields, *message.oneofs]):
            if isinstance(member, Oneof):
                members.extend(self.generate_oneof(member, level + 1, scope))
            else:
                members.append(self.generate_field(member, level + 1, scope))
        lines = self.generate_block(f"{prefix}interface {name}", members, level)

        nested = by_position([*message.enums, *message.messages])
        if nested:
            body: List[str] = []
            for decl in nested:
                if body:
                    body.append("")
                body.extend(self.generate_declaration(decl, level + 1, scope, True))
            lines.extend(self.generate_block(f"{prefix}namespace {name}", body, level))
        return lines

    def collect_extends(
        self, message: Message, lineage: Lineage
    ) -> List[Tuple[Extend, Lineage]]:
        """Find the extends declared in ``message`` and its nested messages.

        Each extend is paired with the message path its field types resolve in.
        """
        scope = lineage + (message,)
        found = [(extend, scope) for extend in message.extends]
        for nested in message.messages:
            found.extend(self.collect_extends(nested, scope))
        return sorted(found, key=lambda item: item[0].position.start)

    def generate_oneof(self, oneof: Oneof, level: int, lineage: Lineage) -> List[str]:
        # At most one case is set, so every case is optional.
        return [
            self.generate_field(field, level, lineage, optional=True)
            for field in oneof.fields
        ]

    def generate_field(
        self,
        field: Field,
        level: int,
        lineage: Lineage,
        optional: bool = False,
    ) -> str:
        label = field.label_value
        marker = "?" if optional or label == "optional" else ""
        type_str = self.generate_type(field.field_type, lineage)
        if label == "repeated":
            type_str += "[]"
        return f"{self.ind(level)}{field.name.name}{marker}: {type_str};"

    def generate_enum(self, enum: Enum, level: int, export: bool = False) -> List[str]:
        prefix = "export " if export else ""
        ind = self.ind(level + 1)
        values = [
            f"{ind}{value.name.name} = {value.value.value}," for value in enum.fields
        ]
        return self.generate_block(f"{prefix}enum {enum.name.name}", values, level)

    def generate_extend(
        self,
        extend: Extend,
        level: int,
        lineage: Lineage,
        export: bool = False,
    ) -> List[str]:
        """Generate an interface that merges the extension fields into the target.

        A dotted target such as ``google.protobuf.FieldOptions`` becomes an
        interface inside the matching namespace.
        """
        prefix = "export " if export else ""
        target = self.resolve_type_name(extend.name.name, lineage)
        namespace, _, name = target.rpartition(".")
        inner_level = level + 1 if namespace else level
        members = [
            self.generate_field(field, inner_level + 1, lineage)
            for field in extend.fields
        ]
        if not namespace:
            return self.generate_block(f"{prefix}interface {name}", members, level)
        body = self.generate_block(f"export interface {name}", members, inner_level)
        return self.generate_block(f"{prefix}namespace {namespace}", body, level)

    def generate_service(
        self, service: Service, level: int, export: bool = False
    ) -> List[str]:
        prefix = "export " if export else ""
        methods = [self.generate_rpc(method, level + 1) for method in service.methods]
        header = f"{prefix}interface {service.name.name}"
        return self.generate_block(header, methods, level)

    def generate_rpc(self, method: RpcMethod, level: int) -> str:
        request = self.generate_type(method.input_type)
        response = self.generate_type(method.output_type)
        if method.client_streaming:
            request = f"AsyncIterable<{request}>"
        if method.server_streaming:
            response = f"AsyncIterable<{response}>"
        else:
            response = f"Promise<{response}>"
        return f"{self.ind(level)}{method.name.name}(request: {request}): {response};"

    def generate_type(self, field_type: FieldType, lineage: Lineage = ()) -> str:
        """Map a proto field type to a TypeScript type."""
        name = field_type.name.name
        if name.lower() == "map":
            args = [self.generate_type(arg, lineage) for arg in field_type.arguments]
            if not args:
                args = ["unknown", "unknown"]
            return f"{self.MAP_TYPE}<{', '.join(args)}>"
        if name in self.SCALAR_TYPES:
            return self.SCALAR_TYPES[name]
        resolved = self.resolve_type_name(name, lineage)
        if field_type.arguments:
            args = [self.generate_type(arg, lineage) for arg in field_type.arguments]
            return f"{resolved}<{', '.join(args)}>"
        return resolved

    def resolve_type_name(self, name: str, lineage: Sequence[Message]) -> str:
        """Qualify ``name`` when it refers to a type nested in an enclosing message.

        ``Inner`` used inside ``Outer`` becomes ``Outer.Inner``. A name qualified
        with this file's own package loses the package when the rest names a
        type declared here. Any other name is emitted as written, without a
        leading dot.
        """
        if name.startswith("."):
            return self.strip_package(name[1:])
        first = name.split(".", 1)[0]
        for depth in range(len(lineage), 0, -1):
            owner = lineage[depth - 1]
            nested_names = {m.name.name for m in owner.messages}
            nested_names.update(e.name.name for e in owner.enums)
            if first in nested_names:
                path = [m.name.name for m in lineage[:depth]]
                return ".".join(path + [name])
        return self.strip_package(name)

    def strip_package(self, name: str) -> str:
        if self.ast.package is None:
            return name
        prefix = self.ast.package.name.name + "."
        if not name.startswith(prefix):
            return name
        rest = name[len(prefix) :]
        declared = {m.name.name for m in self.ast.messages}
        declared.update(e.name.name for e in self.ast.enums)
        if rest.split(".", 1)[0] in declared:
            return rest
        return name


def generate(ast: ProtoFile, options: Optional[GeneratorOptions] = None) -> str:
    """Generate TypeScript source for ``ast``."""
    return TypeScriptGenerator(ast, options).generate()
