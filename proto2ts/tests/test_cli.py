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

"""Tests for the proto2ts command line interface."""

from proto2ts.cli import main, make_path_resolver

PERSON_SOURCE = """syntax = "proto3";
message Person {
  string name = 1;
  repeated int32 ids = 2;
}
"""

PERSON_TS = "interface Person {\n  name: string;\n  ids: number[];\n}\n"


def write_proto(directory, name, content):
    path = directory / name
    path.write_text(content)
    return path


class TestCompileCommand:
    def test_writes_typescript_file(self, tmp_path, capsys):
        proto = write_proto(tmp_path, "person.proto", PERSON_SOURCE)
        out_dir = tmp_path / "out"

        assert main(["compile", str(proto), "-o", str(out_dir)]) == 0

        assert (out_dir / "person.ts").read_text() == PERSON_TS
        out = capsys.readouterr().out
        assert f"Compiling {proto}..." in out
        assert "Generated:" in out

    def test_multiple_files(self, tmp_path):
        first = write_proto(tmp_path, "a.proto", "message A {}")
        second = write_proto(tmp_path, "b.proto", "enum B { X = 0; }")
        out_dir = tmp_path / "out"

        assert main(["compile", str(first), str(second), "-o", str(out_dir)]) == 0

        assert (out_dir / "a.ts").read_text() == "interface A {}\n"
        assert (out_dir / "b.ts").read_text() == "enum B {\n  X = 0,\n}\n"

    def test_stdout(self, tmp_path, capsys):
        proto = write_proto(tmp_path, "person.proto", PERSON_SOURCE)

        assert main(["compile", str(proto), "--stdout"]) == 0

        assert capsys.readouterr().out == PERSON_TS

    def test_indent_size(self, tmp_path, capsys):
        proto = write_proto(tmp_path, "m.proto", "message M { int32 x = 1; }")

        assert main(["compile", str(proto), "--stdout", "--indent-size", "4"]) == 0

        assert capsys.readouterr().out == "interface M {\n    x: number;\n}\n"

    def test_negative_indent_size(self, tmp_path, capsys):
        proto = write_proto(tmp_path, "m.proto", "message M {}")

        assert main(["compile", str(proto), "--stdout", "--indent-size=-1"]) == 1
        assert "--indent-size must be >= 0" in capsys.readouterr().err

    def test_import_extension(self, tmp_path, capsys):
        proto = write_proto(tmp_path, "m.proto", 'import "dep/common.proto";')

        assert main(["compile", str(proto), "--stdout"]) == 0
        assert capsys.readouterr().out == (
            '/// <reference path="dep/common.ts" />\n'
        )

        args = ["compile", str(proto), "--stdout", "--import-extension", ".d.ts"]
        assert main(args) == 0
        assert capsys.readouterr().out == (
            '/// <reference path="dep/common.d.ts" />\n'
        )


class TestCliErrors:
    def test_syntax_error(self, tmp_path, capsys):
        proto = write_proto(tmp_path, "bad.proto", "message M { string name = ; }")
        out_dir = tmp_path / "out"

        assert main(["compile", str(proto), "-o", str(out_dir)]) == 1

        err = capsys.readouterr().err
        assert f"{proto}:1:27: Expected field number" in err
        assert not (out_dir / "bad.ts").exists()

    def test_lexical_error(self, tmp_path, capsys):
        proto = write_proto(tmp_path, "bad.proto", 'message M {\n  string s = "x')

        assert main(["compile", str(proto), "--stdout"]) == 1

        captured = capsys.readouterr()
        assert captured.out == ""
        assert f"{proto}:2:14: Unterminated string literal" in captured.err

    def test_missing_file(self, tmp_path, capsys):
        missing = tmp_path / "missing.proto"

        assert main(["compile", str(missing)]) == 1
        assert f"Error: File not found: {missing}" in capsys.readouterr().err

    def test_failure_does_not_stop_other_files(self, tmp_path):
        bad = write_proto(tmp_path, "bad.proto", "message {")
        good = write_proto(tmp_path, "good.proto", "message Good {}")
        out_dir = tmp_path / "out"

        assert main(["compile", str(bad), str(good), "-o", str(out_dir)]) == 1
        assert (out_dir / "good.ts").read_text() == "interface Good {}\n"

    def test_output_name_collision(self, tmp_path, capsys):
        """Two sources with the same stem do not overwrite each other."""
        (tmp_path / "a").mkdir()
        (tmp_path / "b").mkdir()
        first = write_proto(tmp_path / "a", "x.proto", "message First {}")
        second = write_proto(tmp_path / "b", "x.proto", "message Second {}")
        out_dir = tmp_path / "out"

        assert main(["compile", str(first), str(second), "-o", str(out_dir)]) == 1

        assert (out_dir / "x.ts").read_text() == "interface First {}\n"
        err = capsys.readouterr().err
        assert f"Error: {second} and {first} both generate x.ts" in err

    def test_same_stem_allowed_with_stdout(self, tmp_path, capsys):
        (tmp_path / "a").mkdir()
        (tmp_path / "b").mkdir()
        first = write_proto(tmp_path / "a", "x.proto", "message First {}")
        second = write_proto(tmp_path / "b", "x.proto", "message Second {}")

        assert main(["compile", str(first), str(second), "--stdout"]) == 0
        assert capsys.readouterr().out == (
            "interface First {}\ninterface Second {}\n"
        )

    def test_warning_is_reported(self, tmp_path, capsys):
        proto = write_proto(tmp_path, "m.proto", 'syntax = "proto4";\nmessage M {}')

        assert main(["compile", str(proto), "--stdout"]) == 0

        captured = capsys.readouterr()
        assert captured.out == "interface M {}\n"
        assert (
            f"Warning: {proto}: Line 1: unrecognized syntax version 'proto4'"
            in captured.err
        )

    def test_no_command(self, capsys):
        assert main([]) == 1
        assert "Usage: proto2ts <command>" in capsys.readouterr().err


def test_make_path_resolver():
    resolve = make_path_resolver(".js")

    assert resolve("a/b.proto") == "a/b.js"
    assert resolve("a/b.txt") == "a/b.txt"
    assert resolve("proto") == "proto"
