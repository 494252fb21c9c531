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

"""CLI entry point for the proto2ts compiler."""

import argparse
import sys
import warnings
from pathlib import Path
from typing import Callable, Dict, List, Optional

from proto2ts.compiler import compile_proto
from proto2ts.generators.base import GeneratedFile, GeneratorOptions
from proto2ts.generators.typescript import TypeScriptGenerator

PROTO_SUFFIX = ".proto"


def make_path_resolver(extension: str) -> Callable[[str], str]:
    """Build a resolver that swaps a trailing ``.proto`` for ``extension``."""

    def resolve(path: str) -> str:
        if path.endswith(PROTO_SUFFIX):
            return path[: -len(PROTO_SUFFIX)] + extension
        return path

    return resolve


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="proto2ts",
        description="Compile Protocol Buffers definitions to TypeScript",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # compile command
    compile_parser = subparsers.add_parser(
        "compile",
        help="Compile .proto files to TypeScript declarations",
    )

    compile_parser.add_argument(
        "files",
        nargs="+",
        type=Path,
        metavar="FILE",
        help="Proto files to compile",
    )

    compile_parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=Path("./generated"),
        help="Output directory. Default: ./generated",
    )

    compile_parser.add_argument(
        "--indent-size",
        type=int,
        default=2,
        metavar="N",
        help="Spaces per indentation level. Default: 2",
    )

    compile_parser.add_argument(
        "--import-extension",
        type=str,
        default=TypeScriptGenerator.file_extension,
        metavar="EXT",
        help="Replaces '.proto' in referenced import paths. Default: .ts",
    )

    compile_parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print generated code instead of writing files",
    )

    return parser.parse_args(args)


def write_file(file: GeneratedFile, output_dir: Path) -> Path:
    """Write a generated file to disk."""
    path = output_dir / file.path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(file.content)
    return path


def output_name(file_path: Path) -> str:
    """Name of the TypeScript file generated for ``file_path``."""
    return file_path.stem + TypeScriptGenerator.file_extension


def compile_file(
    file_path: Path,
    output_dir: Path,
    options: GeneratorOptions,
    to_stdout: bool = False,
) -> bool:
    """Compile a single proto file.

    Args:
        file_path: Path to the proto file
        output_dir: Directory that receives the generated file
        options: Generator options
        to_stdout: Print the generated code instead of writing it
    """
    if not to_stdout:
        print(f"Compiling {file_path}...")

    try:
        source = file_path.read_text()
    except OSError as e:
        print(f"Error reading {file_path}: {e}", file=sys.stderr)
        return False

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        result = compile_proto(source, options)

    for warning in caught:
        print(f"Warning: {file_path}: {warning.message}", file=sys.stderr)

    if not result.ok:
        for error in result.errors:
            print(f"{file_path}:{error}", file=sys.stderr)
        return False

    if to_stdout:
        sys.stdout.write(result.code)
        return True

    generated = GeneratedFile(path=output_name(file_path), content=result.code)
    path = write_file(generated, output_dir)
    print(f"  Generated: {path}")
    return True


def cmd_compile(args: argparse.Namespace) -> int:
    """Handle the compile command."""
    if args.indent_size < 0:
        print("Error: --indent-size must be >= 0", file=sys.stderr)
        return 1

    options = GeneratorOptions(
        indent_size=args.indent_size,
        path_resolver=make_path_resolver(args.import_extension),
    )

    success = True
    # Generated file name -> the source that produced it
    claimed: Dict[str, Path] = {}
    for file_path in args.files:
        if not file_path.exists():
            print(f"Error: File not found: {file_path}", file=sys.stderr)
            success = False
            continue

        if not args.stdout:
            name = output_name(file_path)
            owner = claimed.setdefault(name, file_path)
            if owner.resolve() != file_path.resolve():
                print(
                    f"Error: {file_path} and {owner} both generate {name}",
                    file=sys.stderr,
                )
                success = False
                continue

        if not compile_file(file_path, args.output, options, args.stdout):
            success = False

    return 0 if success else 1


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parsed = parse_args(args)

    if parsed.command is None:
        print("Usage: proto2ts <command> [options]", file=sys.stderr)
        print("Commands: compile", file=sys.stderr)
        print("Use 'proto2ts <command> --help' for more information", file=sys.stderr)
        return 1

    if parsed.command == "compile":
        return cmd_compile(parsed)

    return 0


if __name__ == "__main__":
    sys.exit(main())
