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

"""Tests for the TypeScript generator."""

import pytest

from proto2ts.generators.base import GeneratorOptions
from proto2ts.generators.typescript import TypeScriptGenerator, generate
from proto2ts.parser import parse, tokenize


def parse_ok(source):
    result = parse(tokenize(source).tokens)
    assert result.errors == []
    return result.ast


def generate_ts(source, **options):
    return TypeScriptGenerator(parse_ok(source), GeneratorOptions(**options)).generate()


class TestMessages:
    """Tests for interface generation."""

    def test_person(self):
        """Test the canonical Person message."""
        source = """
        syntax = "proto3";
        package example;
        message Person {
          string name = 1;
          optional int32 id = 2;
          repeated string tags = 3;
        }
        """
        assert generate_ts(source) == (
            "interface Person {\n"
            "  name: string;\n"
            "  id?: number;\n"
            "  tags: string[];\n"
            "}\n"
        )

    def test_empty_message(self):
        assert generate_ts("message Empty {}") == "interface Empty {}\n"

    def test_user_type_field(self):
        """A non-scalar type name is emitted as written."""
        source = "message M { Foo bar = 1; repeated pkg.Baz baz = 2; .a.B c = 3; }"
        assert generate_ts(source) == (
            "interface M {\n  bar: Foo;\n  baz: pkg.Baz[];\n  c: a.B;\n}\n"
        )

    def test_nested_types(self):
        """Nested types go into a namespace and references are qualified."""
        source = """
        message Outer {
          message Inner { int32 x = 1; Kind kind = 2; }
          enum Kind { A = 0; B = 1; }
          Inner inner = 1;
          Kind kind = 2;
          repeated Outer children = 3;
        }
        """
        assert generate_ts(source) == (
            "interface Outer {\n"
            "  inner: Outer.Inner;\n"
            "  kind: Outer.Kind;\n"
            "  children: Outer[];\n"
            "}\n"
            "namespace Outer {\n"
            "  export interface Inner {\n"
            "    x: number;\n"
            "    kind: Outer.Kind;\n"
            "  }\n"
            "\n"
            "  export enum Kind {\n"
            "    A = 0,\n"
            "    B = 1,\n"
            "  }\n"
            "}\n"
        )

    def test_deep_nesting(self):
        source = "message A { message B { message C { int32 x = 1; } C c = 1; } }"
        assert generate_ts(source) == (
            "interface A {}\n"
            "namespace A {\n"
            "  export interface B {\n"
            "    c: A.B.C;\n"
            "  }\n"
            "  export namespace B {\n"
            "    export interface C {\n"
            "      x: number;\n"
            "    }\n"
            "  }\n"
            "}\n"
        )

    def test_indent_size(self):
        source = "message A { message B { int32 x = 1; } }"
        assert generate_ts(source, indent_size=4) == (
            "interface A {}\n"
            "namespace A {\n"
            "    export interface B {\n"
            "        x: number;\n"
            "    }\n"
            "}\n"
        )

    def test_zero_indent(self):
        assert generate_ts("message M { int32 x = 1; }", indent_size=0) == (
            "interface M {\nx: number;\n}\n"
        )

    def test_negative_indent_rejected(self):
        with pytest.raises(ValueError):
            TypeScriptGenerator(parse_ok(""), GeneratorOptions(indent_size=-1))

    def test_map_field(self):
        source = """
        message M {
          message V { string s = 1; }
          map<string, V> by_name = 1;
          map<int64, bytes> blobs = 2;
        }
        """
        output = generate_ts(source)
        assert "  by_name: Map<string, M.V>;\n" in output
        assert "  blobs: Map<number, Uint8Array>;\n" in output

    def test_map_without_arguments(self):
        output = generate_ts("message M { map m = 1; }")
        assert "  m: Map<unknown, unknown>;\n" in output

    def test_map_keyword_is_case_insensitive(self):
        output = generate_ts("message M { MAP<string, int32> m = 1; }")
        assert "  m: Map<string, number>;\n" in output

    def test_oneof_members_in_source_order(self):
        source = (
            "message M { string a = 1; oneof c { int32 b = 2; bool d = 3; } "
            "string e = 4; }"
        )
        assert generate_ts(source) == (
            "interface M {\n"
            "  a: string;\n"
            "  b?: number;\n"
            "  d?: boolean;\n"
            "  e: string;\n"
            "}\n"
        )

    def test_options_and_reserved_are_ignored(self):
        source = (
            "message M { option deprecated = true; reserved 2 to 5; "
            "extensions 100 to max; int32 a = 1 [deprecated = true]; }"
        )
        assert generate_ts(source) == "interface M {\n  a: number;\n}\n"


SCALARS = [
    ("double", "number"),
    ("float", "number"),
    ("int32", "number"),
    ("int64", "number"),
    ("uint32", "number"),
    ("uint64", "number"),
    ("sint32", "number"),
    ("sint64", "number"),
    ("fixed32", "number"),
    ("fixed64", "number"),
    ("sfixed32", "number"),
    ("sfixed64", "number"),
    ("bool", "boolean"),
    ("string", "string"),
    ("bytes", "Uint8Array"),
]


@pytest.mark.parametrize("proto_type,ts_type", SCALARS)
def test_scalar_mapping(proto_type, ts_type):
    source = (
        f"message M {{ {proto_type} a = 1; optional {proto_type} b = 2; "
        f"repeated {proto_type} c = 3; }}"
    )
    assert generate_ts(source) == (
        "interface M {\n"
        f"  a: {ts_type};\n"
        f"  b?: {ts_type};\n"
        f"  c: {ts_type}[];\n"
        "}\n"
    )


class TestEnums:
    def test_enum(self):
        source = "enum Status { UNKNOWN = 0; ACTIVE = 1; NEGATIVE = -1; }"
        assert generate_ts(source) == (
            "enum Status {\n  UNKNOWN = 0,\n  ACTIVE = 1,\n  NEGATIVE = -1,\n}\n"
        )

    def test_empty_enum(self):
        assert generate_ts("enum E {}") == "enum E {}\n"


class TestServices:
    def test_service(self):
        source = """
        service Api {
          rpc Get(GetRequest) returns (GetResponse);
          rpc Upload(stream Chunk) returns (Summary);
          rpc Watch(Query) returns (stream Event);
          rpc Chat(stream .pkg.Msg) returns (stream .pkg.Msg) {}
        }
        """
        assert generate_ts(source) == (
            "interface Api {\n"
            "  Get(request: GetRequest): Promise<GetResponse>;\n"
            "  Upload(request: AsyncIterable<Chunk>): Promise<Summary>;\n"
            "  Watch(request: Query): AsyncIterable<Event>;\n"
            "  Chat(request: AsyncIterable<pkg.Msg>): AsyncIterable<pkg.Msg>;\n"
            "}\n"
        )

    def test_empty_service(self):
        assert generate_ts("service S {}") == "interface S {}\n"


class TestExtend:
    def test_extend(self):
        assert generate_ts("extend Foo { int32 bar = 100; }") == (
            "interface Foo {\n  bar: number;\n}\n"
        )

    def test_dotted_extend(self):
        source = "extend google.protobuf.FieldOptions { optional string tag = 50000; }"
        assert generate_ts(source) == (
            "namespace google.protobuf {\n"
            "  export interface FieldOptions {\n"
            "    tag?: string;\n"
            "  }\n"
            "}\n"
        )

    def test_nested_extend(self):
        """An extend inside a message is emitted after the message."""
        source = "message M { extend Foo { int32 bar = 100; } }"
        assert generate_ts(source) == (
            "interface M {}\n\ninterface Foo {\n  bar: number;\n}\n"
        )

    def test_nested_extend_field_types_resolve_in_message(self):
        source = "message Outer { message Inner {} extend Foo { Inner x = 100; } }"
        assert generate_ts(source) == (
            "interface Outer {}\n"
            "namespace Outer {\n"
            "  export interface Inner {}\n"
            "}\n"
            "\n"
            "interface Foo {\n"
            "  x: Outer.Inner;\n"
            "}\n"
        )

    def test_deeply_nested_extend_merges_at_file_level(self):
        """An extend two messages deep still augments the target itself."""
        source = """
        message A {
          extend Bar { int32 y = 2; }
          message B {
            enum K { Z = 0; }
            extend Foo { int32 x = 1; K k = 2; }
          }
        }
        message C {}
        """
        assert generate_ts(source) == (
            "interface A {}\n"
            "namespace A {\n"
            "  export interface B {}\n"
            "  export namespace B {\n"
            "    export enum K {\n"
            "      Z = 0,\n"
            "    }\n"
            "  }\n"
            "}\n"
            "\n"
            "interface Bar {\n"
            "  y: number;\n"
            "}\n"
            "\n"
            "interface Foo {\n"
            "  x: number;\n"
            "  k: A.B.K;\n"
            "}\n"
            "\n"
            "interface C {}\n"
        )

    def test_extend_target_in_own_package(self):
        source = (
            "package demo.v1;\nmessage Opts {}\nextend .demo.v1.Opts { int32 x = 1; }"
        )
        assert generate_ts(source) == (
            "interface Opts {}\n\ninterface Opts {\n  x: number;\n}\n"
        )


class TestNameResolution:
    """Tests for names qualified with the file's own package."""

    def test_own_package_prefix_is_dropped(self):
        source = """
        package demo.v1;
        message Outer {
          message Inner {}
          .demo.v1.Outer parent = 1;
          demo.v1.Kind kind = 2;
          .demo.v1.Outer.Inner inner = 3;
        }
        enum Kind { A = 0; }
        """
        output = generate_ts(source)
        assert "  parent: Outer;\n" in output
        assert "  kind: Kind;\n" in output
        assert "  inner: Outer.Inner;\n" in output

    def test_undeclared_or_foreign_names_keep_their_path(self):
        source = """
        package demo.v1;
        message M {
          .demo.v1.Missing missing = 1;
          .other.Thing thing = 2;
          demo.Thing partial = 3;
        }
        """
        output = generate_ts(source)
        assert "  missing: demo.v1.Missing;\n" in output
        assert "  thing: other.Thing;\n" in output
        assert "  partial: demo.Thing;\n" in output

    def test_without_package(self):
        output = generate_ts("message M { .a.M m = 1; }")
        assert "  m: a.M;\n" in output


class TestFileLayout:
    """Tests for references and declaration order."""

    def test_empty_file(self):
        assert generate_ts("") == ""
        assert generate_ts('syntax = "proto3";\npackage foo;') == ""

    def test_references(self):
        source = 'import "a/b.proto";\nimport public "c.proto";\nmessage M {}'
        assert generate_ts(source) == (
            '/// <reference path="a/b.proto" />\n'
            '/// <reference path="c.proto" />\n'
            "\n"
            "interface M {}\n"
        )

    def test_path_resolver(self):
        source = 'import "a/b.proto";'
        output = generate_ts(
            source, path_resolver=lambda path: "./" + path.replace(".proto", ".ts")
        )
        assert output == '/// <reference path="./a/b.ts" />\n'

    def test_declarations_in_source_order(self):
        source = "service S {}\nenum E {}\nextend X {}\nmessage M {}"
        assert generate_ts(source) == (
            "interface S {}\n\nenum E {}\n\ninterface X {}\n\ninterface M {}\n"
        )

    def test_generate_function_uses_default_options(self):
        ast = parse_ok("message M { int32 x = 1; }")
        assert generate(ast) == "interface M {\n  x: number;\n}\n"

    def test_unsupported_declaration(self):
        ast = parse_ok('import "a.proto";')
        generator = TypeScriptGenerator(ast)
        with pytest.raises(TypeError):
            generator.generate_declaration(ast.imports[0], 0, ())
