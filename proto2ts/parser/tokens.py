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

"""Token kinds and the keyword/symbol tables used by the lexer."""

from dataclasses import dataclass
from enum import Enum, auto

from proto2ts.parser.position import Position


class TokenType(Enum):
    """Token types for the proto language."""

    # Literals
    IDENT = auto()
    STRING = auto()
    NUMBER = auto()

    # Keywords
    SYNTAX = auto()
    PACKAGE = auto()
    IMPORT = auto()
    PUBLIC = auto()
    WEAK = auto()
    OPTION = auto()
    MESSAGE = auto()
    ENUM = auto()
    ONEOF = auto()
    MAP = auto()
    REPEATED = auto()
    OPTIONAL = auto()
    REQUIRED = auto()
    RESERVED = auto()
    EXTENSIONS = auto()
    EXTEND = auto()
    SERVICE = auto()
    RPC = auto()
    RETURNS = auto()
    STREAM = auto()
    TRUE = auto()
    FALSE = auto()
    TO = auto()
    MAX = auto()

    # Punctuation
    LBRACE = auto()
    RBRACE = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    LPAREN = auto()
    RPAREN = auto()
    LANGLE = auto()
    RANGLE = auto()
    SEMI = auto()
    COMMA = auto()
    EQUALS = auto()
    DOT = auto()
    SLASH = auto()
    STAR = auto()

    COMMENT = auto()
    EOF = auto()


KEYWORDS = {
    "syntax": TokenType.SYNTAX,
    "package": TokenType.PACKAGE,
    "import": TokenType.IMPORT,
    "public": TokenType.PUBLIC,
    "weak": TokenType.WEAK,
    "option": TokenType.OPTION,
    "message": TokenType.MESSAGE,
    "enum": TokenType.ENUM,
    "oneof": TokenType.ONEOF,
    "map": TokenType.MAP,
    "repeated": TokenType.REPEATED,
    "optional": TokenType.OPTIONAL,
    "required": TokenType.REQUIRED,
    "reserved": TokenType.RESERVED,
    "extensions": TokenType.EXTENSIONS,
    "extend": TokenType.EXTEND,
    "service": TokenType.SERVICE,
    "rpc": TokenType.RPC,
    "returns": TokenType.RETURNS,
    "stream": TokenType.STREAM,
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
    "to": TokenType.TO,
    "max": TokenType.MAX,
}

SYMBOLS = {
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "<": TokenType.LANGLE,
    ">": TokenType.RANGLE,
    ";": TokenType.SEMI,
    ",": TokenType.COMMA,
    "=": TokenType.EQUALS,
    ".": TokenType.DOT,
    "/": TokenType.SLASH,
    "*": TokenType.STAR,
}

# Tokens whose text is a valid identifier. Keywords are contextual, so any of
# them may also name a type, field or value.
WORD_TYPES = frozenset([TokenType.IDENT, *KEYWORDS.values()])

LABEL_TYPES = frozenset([TokenType.OPTIONAL, TokenType.REQUIRED, TokenType.REPEATED])


def lookup_keyword(text: str) -> TokenType:
    """Return the keyword kind for ``text`` (case-insensitive), else IDENT."""
    return KEYWORDS.get(text.lower(), TokenType.IDENT)


@dataclass(frozen=True)
class Token:
    """A token produced by the lexer."""

    type: TokenType
    value: str
    line: int
    column: int
    start: int
    end: int

    @property
    def position(self) -> Position:
        return Position(self.line, self.column, self.start, self.end)

    @property
    def is_word(self) -> bool:
        return self.type in WORD_TYPES

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"
