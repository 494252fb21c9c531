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

"""Compile proto source text to TypeScript: lexer, then parser, then generator."""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from proto2ts.generators.base import GeneratorOptions
from proto2ts.generators.typescript import TypeScriptGenerator
from proto2ts.parser.lexer import Lexer, LexerError
from proto2ts.parser.parser import Parser, ParseError
from proto2ts.parser.position import Position


@dataclass(frozen=True)
class CompileError:
    """An error reported to callers of :func:`compile_proto`.

    ``expected`` lists the token kinds the parser would have accepted, and is
    empty for lexical errors.
    """

    message: str
    position: Position
    expected: Tuple[str, ...] = ()

    @classmethod
    def from_error(cls, error: Union[LexerError, ParseError]) -> "CompileError":
        expected = getattr(error, "expected", ())
        return cls(
            message=error.message,
            position=error.position,
            expected=tuple(token_type.name for token_type in expected),
        )

    def __str__(self) -> str:
        return f"{self.position.line}:{self.position.column}: {self.message}"


@dataclass
class CompileResult:
    """Generated code, or the errors that stopped generation."""

    code: str = ""
    errors: List[CompileError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def compile_proto(
    source: str, options: Optional[GeneratorOptions] = None
) -> CompileResult:
    """Compile proto ``source`` to TypeScript.

    Lexical errors stop the pipeline before parsing, and syntax errors stop it
    before generation. Only the errors of the failing stage are returned, and
    ``code`` is empty whenever ``errors`` is not.
    """
    lexed = Lexer(source).tokenize()
    if lexed.errors:
        return CompileResult(errors=[CompileError.from_error(e) for e in lexed.errors])

    parsed = Parser(lexed.tokens).parse()
    if parsed.errors or parsed.ast is None:
        return CompileResult(
            errors=[CompileError.from_error(e) for e in parsed.errors]
        )

    code = TypeScriptGenerator(parsed.ast, options).generate()
    return CompileResult(code=code)
