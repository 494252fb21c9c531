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

"""Hand-written lexer for proto files."""

from dataclasses import dataclass, field
from typing import List, Optional

from proto2ts.parser.position import Position
from proto2ts.parser.tokens import SYMBOLS, Token, TokenType, lookup_keyword


class LexerError(Exception):
    """Error during lexing."""

    def __init__(self, message: str, position: Position):
        super().__init__(f"Line {position.line}, Column {position.column}: {message}")
        self.message = message
        self.position = position

    @property
    def line(self) -> int:
        return self.position.line

    @property
    def column(self) -> int:
        return self.position.column


@dataclass
class LexResult:
    """Tokens and lexical errors from one scan."""

    tokens: List[Token] = field(default_factory=list)
    errors: List[LexerError] = field(default_factory=list)


ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "\\": "\\",
    '"': '"',
}


def is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def is_ident_start(ch: str) -> bool:
    return ch.isascii() and (ch.isalpha() or ch == "_")


def is_ident_char(ch: str) -> bool:
    return ch.isascii() and (ch.isalnum() or ch == "_")


class Lexer:
    """Hand-written tokenizer for proto2/proto3 sources.

    Errors are collected instead of raised so that one pass reports every
    problem it can find. Comments are kept in the token stream.
    """

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Token] = []
        self.errors: List[LexerError] = []

    def at_end(self) -> bool:
        return self.pos >= len(self.source)

    def peek(self, offset: int = 0) -> str:
        pos = self.pos + offset
        if pos >= len(self.source):
            return "\0"
        return self.source[pos]

    def advance(self) -> str:
        if self.at_end():
            return "\0"
        ch = self.source[self.pos]
        self.pos += 1
        if ch == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def add_token(
        self,
        token_type: TokenType,
        start: int,
        line: int,
        column: int,
        value: Optional[str] = None,
    ) -> None:
        if value is None:
            value = self.source[start : self.pos]
        self.tokens.append(Token(token_type, value, line, column, start, self.pos))

    def add_error(self, message: str, start: int, line: int, column: int) -> None:
        position = Position(line, column, start, start + 1)
        self.errors.append(LexerError(message, position))

    def skip_whitespace(self) -> None:
        while not self.at_end() and self.peek().isspace():
            self.advance()

    def read_line_comment(self) -> None:
        start, line, column = self.pos, self.line, self.column
        self.advance()
        self.advance()
        while not self.at_end() and self.peek() != "\n":
            self.advance()
        self.add_token(TokenType.COMMENT, start, line, column)

    def read_block_comment(self) -> None:
        start, line, column = self.pos, self.line, self.column
        self.advance()
        self.advance()
        while not self.at_end():
            if self.peek() == "*" and self.peek(1) == "/":
                self.advance()
                self.advance()
                self.add_token(TokenType.COMMENT, start, line, column)
                return
            self.advance()
        self.add_error("Unterminated block comment", start, line, column)

    def read_string(self) -> None:
        start, line, column = self.pos, self.line, self.column
        self.advance()  # consume '"'
        result = []
        while not self.at_end():
            ch = self.peek()
            if ch == '"':
                self.advance()
                self.add_token(TokenType.STRING, start, line, column, "".join(result))
                return
            if ch == "\\" and self.pos + 1 < len(self.source):
                self.advance()
                escape_ch = self.advance()
                result.append(ESCAPES.get(escape_ch, escape_ch))
            else:
                result.append(self.advance())
        self.add_error("Unterminated string literal", start, line, column)

    def read_number(self) -> None:
        start, line, column = self.pos, self.line, self.column
        if self.peek() == "-":
            self.advance()
        while is_digit(self.peek()):
            self.advance()
        if self.peek() == ".":
            self.advance()
            while is_digit(self.peek()):
                self.advance()
        self.add_token(TokenType.NUMBER, start, line, column)

    def read_identifier(self) -> None:
        start, line, column = self.pos, self.line, self.column
        while is_ident_char(self.peek()):
            self.advance()
        text = self.source[start : self.pos]
        self.add_token(lookup_keyword(text), start, line, column)

    def tokenize(self) -> LexResult:
        while not self.at_end():
            ch = self.peek()

            if ch.isspace():
                self.skip_whitespace()
            elif ch == "/" and self.peek(1) == "/":
                self.read_line_comment()
            elif ch == "/" and self.peek(1) == "*":
                self.read_block_comment()
            elif ch == '"':
                self.read_string()
            elif is_digit(ch) or (ch == "-" and is_digit(self.peek(1))):
                self.read_number()
            elif is_ident_start(ch):
                self.read_identifier()
            elif ch in SYMBOLS:
                start, line, column = self.pos, self.line, self.column
                self.advance()
                self.add_token(SYMBOLS[ch], start, line, column)
            else:
                self.add_error(
                    f"Unknown character: {ch}", self.pos, self.line, self.column
                )
                self.advance()

        self.add_token(TokenType.EOF, self.pos, self.line, self.column, "")
        return LexResult(tokens=self.tokens, errors=self.errors)


def tokenize(source: str) -> LexResult:
    """Tokenize ``source`` with a fresh lexer."""
    return Lexer(source).tokenize()
