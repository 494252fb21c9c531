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

"""Recursive descent parser for proto files.

The parser never raises on malformed input. Each problem is recorded as a
ParseError and parsing resumes, so a single pass reports every error it can
find. Missing elements become zero-width placeholder nodes, and every body
loop consumes at least one token per iteration.
"""

import warnings
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from proto2ts.parser.ast import (
    BooleanLiteral,
    Enum,
    EnumField,
    Extend,
    Extensions,
    ExtensionRange,
    Field,
    FieldLabel,
    FieldType,
    Identifier,
    Import,
    Message,
    NumberLiteral,
    Oneof,
    Option,
    OptionValue,
    Package,
    ProtoFile,
    Reserved,
    ReservedRange,
    RpcMethod,
    Service,
    StringLiteral,
    Syntax,
    ToRange,
)
from proto2ts.parser.position import Position
from proto2ts.parser.tokens import LABEL_TYPES, Token, TokenType

KNOWN_SYNTAX_VERSIONS = ("proto2", "proto3")

OPTION_VALUE_TYPES = (
    TokenType.STRING,
    TokenType.NUMBER,
    TokenType.TRUE,
    TokenType.FALSE,
)

# Tokens that close a statement or a list; recovery never skips past them.
RECOVERY_STOP_TYPES = (
    TokenType.SEMI,
    TokenType.COMMA,
    TokenType.RBRACKET,
    TokenType.RBRACE,
    TokenType.EOF,
)


class ParseError(Exception):
    """Error during proto parsing."""

    def __init__(
        self,
        message: str,
        position: Position,
        expected: Sequence[TokenType] = (),
    ):
        super().__init__(f"Line {position.line}, Column {position.column}: {message}")
        self.message = message
        self.position = position
        self.expected = tuple(expected)

    @property
    def line(self) -> int:
        return self.position.line

    @property
    def column(self) -> int:
        return self.position.column


@dataclass
class ParseResult:
    """The parsed file and the syntax errors found on the way."""

    ast: ProtoFile
    errors: List[ParseError] = field(default_factory=list)


class Parser:
    """Recursive descent parser for proto2/proto3."""

    def __init__(self, tokens: List[Token]):
        self.tokens = [t for t in tokens if t.type != TokenType.COMMENT]
        if not self.tokens or self.tokens[-1].type != TokenType.EOF:
            last = self.tokens[-1] if self.tokens else None
            end = last.end if last else 0
            line = last.line if last else 1
            column = last.column + (last.end - last.start) if last else 1
            self.tokens.append(Token(TokenType.EOF, "", line, column, end, end))
        self.pos = 0
        self.errors: List[ParseError] = []
        self._recovery_offset = 0

    # Cursor primitives

    def at_end(self) -> bool:
        return self.current().type == TokenType.EOF

    def current(self) -> Token:
        if self.pos >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[self.pos]

    def previous(self) -> Optional[Token]:
        if self.pos == 0:
            return None
        return self.tokens[self.pos - 1]

    def peek(self, count: int = 1) -> Token:
        """Return the ``count``-th token after the current one (EOF past the end)."""
        index = self.pos + count
        if index >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[index]

    def check(self, *types: TokenType) -> bool:
        return self.current().type in types

    def match(self, *types: TokenType) -> bool:
        if self.check(*types):
            self.advance()
            return True
        return False

    def advance(self) -> Token:
        token = self.current()
        if not self.at_end():
            self.pos += 1
        return token

    def consume(self, token_type: TokenType, message: str) -> Optional[Token]:
        """Consume a token of ``token_type`` or record an error and return None."""
        if self.check(token_type):
            return self.advance()
        self.error(message, (token_type,))
        return None

    def error(self, message: str, expected: Sequence[TokenType] = ()) -> None:
        self.errors.append(ParseError(message, self.current().position, expected))

    def skip_unexpected(self, context: str) -> None:
        """Report the current token and step over it."""
        self.error(f"Unexpected token in {context}: {self.current().value}")
        self.advance()

    def skip_bad_value(self) -> None:
        if not self.check(*RECOVERY_STOP_TYPES):
            self.advance()

    def _span(self, start: Token) -> Position:
        """Span from ``start`` to the last consumed token or placeholder."""
        end = start.start
        previous = self.previous()
        if previous is not None:
            end = max(end, previous.end)
        end = max(end, self._recovery_offset)
        return Position(start.line, start.column, start.start, end)

    def _missing(self) -> Position:
        """Zero-width position for a node that failed to parse."""
        token = self.current()
        self._recovery_offset = max(self._recovery_offset, token.start)
        return Position(token.line, token.column, token.start, token.start)

    # Lookahead

    def is_declaration_start(self, token_type: TokenType) -> bool:
        """True for ``<keyword> <name> {``."""
        return (
            self.check(token_type)
            and self.peek(1).is_word
            and self.peek(2).type == TokenType.LBRACE
        )

    def is_extend_start(self) -> bool:
        """True for ``extend <qualified name> {``."""
        if not self.check(TokenType.EXTEND):
            return False
        offset = 1
        if self.peek(offset).type == TokenType.DOT:
            offset += 1
        while self.peek(offset).is_word:
            offset += 1
            if self.peek(offset).type != TokenType.DOT:
                return self.peek(offset).type == TokenType.LBRACE
            offset += 1
        return False

    def is_field_start(self) -> bool:
        if self.check(TokenType.DOT):
            return self.peek().is_word
        return self.current().is_word

    def is_option_start(self) -> bool:
        if not self.check(TokenType.OPTION):
            return False
        following = self.peek(1)
        if following.type == TokenType.LPAREN:
            return True
        return following.is_word and self.peek(2).type in (
            TokenType.EQUALS,
            TokenType.DOT,
        )

    # File level

    def parse(self) -> ParseResult:
        syntax: Optional[Syntax] = None
        package: Optional[Package] = None
        imports: List[Import] = []
        options: List[Option] = []
        enums: List[Enum] = []
        messages: List[Message] = []
        services: List[Service] = []
        extends: List[Extend] = []

        if self.check(TokenType.SYNTAX):
            syntax = self.parse_syntax()

        while not self.at_end():
            if self.check(TokenType.PACKAGE):
                if package is not None:
                    warnings.warn(
                        f"Line {self.current().line}: duplicate package declaration, "
                        "the last one wins",
                        stacklevel=2,
                    )
                package = self.parse_package()
            elif self.check(TokenType.IMPORT):
                imports.append(self.parse_import())
            elif self.check(TokenType.OPTION):
                options.append(self.parse_option_statement())
            elif self.check(TokenType.ENUM):
                enums.append(self.parse_enum())
            elif self.check(TokenType.EXTEND):
                extends.append(self.parse_extend())
            elif self.check(TokenType.MESSAGE):
                messages.append(self.parse_message())
            elif self.check(TokenType.SERVICE):
                services.append(self.parse_service())
            elif self.check(TokenType.SEMI):
                self.advance()
            else:
                self.skip_unexpected("proto file")

        eof = self.current()
        ast = ProtoFile(
            position=Position(1, 1, 0, eof.end),
            syntax=syntax,
            package=package,
            imports=tuple(imports),
            options=tuple(options),
            enums=tuple(enums),
            messages=tuple(messages),
            services=tuple(services),
            extends=tuple(extends),
        )
        return ParseResult(ast=ast, errors=self.errors)

    def parse_syntax(self) -> Syntax:
        start = self.current()
        self.consume(TokenType.SYNTAX, "Expected 'syntax'")
        self.consume(TokenType.EQUALS, "Expected '=' after syntax")
        version = self.parse_string_literal("Expected syntax version string")
        self.consume(TokenType.SEMI, "Expected ';' after syntax declaration")
        if version.value and version.value not in KNOWN_SYNTAX_VERSIONS:
            warnings.warn(
                f"Line {start.line}: unrecognized syntax version '{version.value}'",
                stacklevel=2,
            )
        return Syntax(position=self._span(start), version=version)

    def parse_package(self) -> Package:
        start = self.current()
        self.consume(TokenType.PACKAGE, "Expected 'package'")
        name = self.parse_full_ident("Expected package name")
        self.consume(TokenType.SEMI, "Expected ';' after package declaration")
        return Package(position=self._span(start), name=name)

    def parse_import(self) -> Import:
        """Parse ``import [public|weak] "path";``."""
        start = self.current()
        self.consume(TokenType.IMPORT, "Expected 'import'")
        modifier = None
        if self.check(TokenType.PUBLIC, TokenType.WEAK):
            modifier = self.advance().value.lower()
        path = self.parse_string_literal("Expected import path")
        self.consume(TokenType.SEMI, "Expected ';' after import")
        return Import(position=self._span(start), path=path, modifier=modifier)

    # Names and literals

    def parse_identifier(self, message: str) -> Identifier:
        token = self.current()
        if token.is_word:
            self.advance()
            return Identifier(position=token.position, name=token.value)
        self.error(message, (TokenType.IDENT,))
        return Identifier(position=self._missing(), name="")

    def parse_full_ident(
        self, message: str, allow_leading_dot: bool = False
    ) -> Identifier:
        """Parse a dotted name such as ``google.protobuf.Timestamp``."""
        start = self.current()
        prefix = ""
        if allow_leading_dot and self.match(TokenType.DOT):
            prefix = "."
        parts = [self.parse_identifier(message).name]
        while self.match(TokenType.DOT):
            parts.append(self.parse_identifier("Expected identifier after '.'").name)
        return Identifier(position=self._span(start), name=prefix + ".".join(parts))

    def parse_string_literal(self, message: str) -> StringLiteral:
        token = self.current()
        if self.consume(TokenType.STRING, message) is None:
            return StringLiteral(position=self._missing(), value="")
        return StringLiteral(position=token.position, value=token.value)

    def parse_number_literal(self, message: str) -> NumberLiteral:
        token = self.current()
        if self.consume(TokenType.NUMBER, message) is None:
            return NumberLiteral(position=self._missing(), value="")
        return NumberLiteral(position=token.position, value=token.value)

    def parse_range_end(self) -> NumberLiteral:
        token = self.current()
        if self.match(TokenType.MAX):
            return NumberLiteral(position=token.position, value="max")
        return self.parse_number_literal("Expected number or 'max' after 'to'")

    def parse_to_range(self) -> ToRange:
        start = self.current()
        low = self.parse_number_literal("Expected range start")
        self.consume(TokenType.TO, "Expected 'to' after range start")
        high = self.parse_range_end()
        return ToRange(position=self._span(start), start=low, end=high)

    # Options

    def parse_option_name(self) -> Identifier:
        """Parse ``name.sub`` or ``(extension.name).sub``."""
        start = self.current()
        if self.match(TokenType.LPAREN):
            inner = self.parse_full_ident(
                "Expected option name after '('", allow_leading_dot=True
            )
            self.consume(TokenType.RPAREN, "Expected ')' after extension name")
            name = f"({inner.name})"
        else:
            name = self.parse_full_ident("Expected option name").name
        while self.match(TokenType.DOT):
            name += "." + self.parse_identifier("Expected identifier after '.'").name
        return Identifier(position=self._span(start), name=name)

    def parse_option_value(self) -> Optional[OptionValue]:
        token = self.current()
        if self.match(TokenType.STRING):
            return StringLiteral(position=token.position, value=token.value)
        if self.match(TokenType.NUMBER):
            return NumberLiteral(position=token.position, value=token.value)
        if self.match(TokenType.TRUE, TokenType.FALSE):
            return BooleanLiteral(
                position=token.position, value=token.type == TokenType.TRUE
            )
        self.error(
            "Expected option value (string, number, or boolean)", OPTION_VALUE_TYPES
        )
        self.skip_bad_value()
        return None

    def parse_option_statement(self) -> Option:
        start = self.current()
        self.consume(TokenType.OPTION, "Expected 'option'")
        name = self.parse_option_name()
        self.consume(TokenType.EQUALS, "Expected '=' after option name")
        value = self.parse_option_value()
        self.consume(TokenType.SEMI, "Expected ';' after option")
        return Option(position=self._span(start), name=name, value=value)

    def parse_field_options(self) -> Tuple[Option, ...]:
        """Parse ``[name = value, ...]`` if present."""
        if not self.match(TokenType.LBRACKET):
            return ()
        options: List[Option] = []
        while True:
            start = self.current()
            name = self.parse_option_name()
            self.consume(TokenType.EQUALS, "Expected '=' after option name")
            value = self.parse_option_value()
            options.append(Option(position=self._span(start), name=name, value=value))
            if not self.match(TokenType.COMMA):
                break
        self.consume(TokenType.RBRACKET, "Expected ']' after field options")
        return tuple(options)

    # Ranges

    def parse_reserved(self) -> Reserved:
        """Parse ``reserved 2, 15, 9 to 11;`` or ``reserved "foo", "bar";``."""
        start = self.current()
        self.consume(TokenType.RESERVED, "Expected 'reserved'")
        ranges: List[ReservedRange] = []
        while True:
            if self.check(TokenType.NUMBER):
                if self.peek().type == TokenType.TO:
                    ranges.append(self.parse_to_range())
                else:
                    ranges.append(self.parse_number_literal("Expected number"))
            elif self.check(TokenType.STRING):
                ranges.append(self.parse_string_literal("Expected field name"))
            else:
                self.error(
                    f"Unexpected token in reserved ranges: {self.current().value}",
                    (TokenType.NUMBER, TokenType.STRING),
                )
                self.skip_bad_value()
            if not self.match(TokenType.COMMA):
                break
        self.consume(TokenType.SEMI, "Expected ';' after reserved ranges")
        return Reserved(position=self._span(start), ranges=tuple(ranges))

    def parse_extensions(self) -> Extensions:
        start = self.current()
        self.consume(TokenType.EXTENSIONS, "Expected 'extensions'")
        ranges: List[ExtensionRange] = []
        while True:
            if self.check(TokenType.NUMBER):
                if self.peek().type == TokenType.TO:
                    ranges.append(self.parse_to_range())
                else:
                    ranges.append(self.parse_number_literal("Expected number"))
            else:
                self.error(
                    f"Unexpected token in extensions ranges: {self.current().value}",
                    (TokenType.NUMBER,),
                )
                self.skip_bad_value()
            if not self.match(TokenType.COMMA):
                break
        if self.check(TokenType.LBRACKET):
            # Extension range options carry no type information.
            self.parse_field_options()
        self.consume(TokenType.SEMI, "Expected ';' after extensions ranges")
        return Extensions(position=self._span(start), ranges=tuple(ranges))

    # Enums

    def parse_enum(self) -> Enum:
        start = self.current()
        self.consume(TokenType.ENUM, "Expected 'enum'")
        name = self.parse_identifier("Expected enum name")
        fields: List[EnumField] = []
        options: List[Option] = []
        reserved: List[Reserved] = []

        if self.consume(TokenType.LBRACE, "Expected '{' after enum name"):
            while not self.check(TokenType.RBRACE) and not self.at_end():
                if self.current().is_word and self.peek().type == TokenType.EQUALS:
                    fields.append(self.parse_enum_field())
                elif self.check(TokenType.OPTION):
                    options.append(self.parse_option_statement())
                elif self.check(TokenType.RESERVED):
                    reserved.append(self.parse_reserved())
                elif self.check(TokenType.SEMI):
                    self.advance()
                else:
                    self.skip_unexpected("enum")
            self.consume(TokenType.RBRACE, "Expected '}' after enum")

        return Enum(
            position=self._span(start),
            name=name,
            fields=tuple(fields),
            options=tuple(options),
            reserved=tuple(reserved),
        )

    def parse_enum_field(self) -> EnumField:
        start = self.current()
        name = self.parse_identifier("Expected enum value name")
        self.consume(TokenType.EQUALS, "Expected '=' after enum value name")
        value = self.parse_number_literal("Expected enum value")
        options = self.parse_field_options()
        self.consume(TokenType.SEMI, "Expected ';' after enum value")
        return EnumField(
            position=self._span(start), name=name, value=value, options=options
        )

    # Messages

    def parse_message(self) -> Message:
        start = self.current()
        self.consume(TokenType.MESSAGE, "Expected 'message'")
        name = self.parse_identifier("Expected message name")
        fields: List[Field] = []
        oneofs: List[Oneof] = []
        enums: List[Enum] = []
        messages: List[Message] = []
        extends: List[Extend] = []
        reserved: List[Reserved] = []
        extensions: Optional[Extensions] = None
        options: List[Option] = []

        if self.consume(TokenType.LBRACE, "Expected '{' after message name"):
            while not self.check(TokenType.RBRACE) and not self.at_end():
                if self.is_declaration_start(TokenType.ONEOF):
                    oneofs.append(self.parse_oneof())
                elif self.is_declaration_start(TokenType.ENUM):
                    enums.append(self.parse_enum())
                elif (
                    self.check(TokenType.EXTENSIONS)
                    and self.peek().type == TokenType.NUMBER
                ):
                    extensions = self.merge_extensions(
                        extensions, self.parse_extensions()
                    )
                elif self.is_extend_start():
                    extends.append(self.parse_extend())
                elif self.check(TokenType.RESERVED) and self.peek().type in (
                    TokenType.STRING,
                    TokenType.NUMBER,
                ):
                    reserved.append(self.parse_reserved())
                elif self.is_declaration_start(TokenType.MESSAGE):
                    messages.append(self.parse_message())
                elif self.is_option_start():
                    options.append(self.parse_option_statement())
                elif self.check(TokenType.SEMI):
                    self.advance()
                elif self.is_field_start():
                    fields.append(self.parse_field())
                else:
                    self.skip_unexpected("message")
            self.consume(TokenType.RBRACE, "Expected '}' after message")

        return Message(
            position=self._span(start),
            name=name,
            fields=tuple(fields),
            oneofs=tuple(oneofs),
            enums=tuple(enums),
            messages=tuple(messages),
            extends=tuple(extends),
            reserved=tuple(reserved),
            extensions=extensions,
            options=tuple(options),
        )

    @staticmethod
    def merge_extensions(existing: Optional[Extensions], new: Extensions) -> Extensions:
        """Fold repeated ``extensions`` statements into one range set."""
        if existing is None:
            return new
        first = existing.position
        return Extensions(
            position=Position(first.line, first.column, first.start, new.position.end),
            ranges=existing.ranges + new.ranges,
        )

    def parse_label(self) -> FieldLabel:
        token = self.advance()
        return FieldLabel(position=token.position, value=token.value.lower())

    def parse_field_type(self, message: str = "Expected field type") -> FieldType:
        """Parse a type name with optional ``<T, ...>`` arguments."""
        start = self.current()
        name = self.parse_full_ident(message, allow_leading_dot=True)
        arguments: List[FieldType] = []
        if self.match(TokenType.LANGLE):
            while True:
                arguments.append(self.parse_field_type("Expected type argument"))
                if not self.match(TokenType.COMMA):
                    break
            self.consume(TokenType.RANGLE, "Expected '>' after type arguments")
        return FieldType(
            position=self._span(start), name=name, arguments=tuple(arguments)
        )

    def parse_field(self) -> Field:
        start = self.current()
        label = self.parse_label() if self.check(*LABEL_TYPES) else None
        field_type = self.parse_field_type()
        name = self.parse_identifier("Expected field name")
        self.consume(TokenType.EQUALS, "Expected '=' after field name")
        number = self.parse_number_literal("Expected field number")
        options = self.parse_field_options()
        self.consume(TokenType.SEMI, "Expected ';' after field declaration")
        return Field(
            position=self._span(start),
            label=label,
            field_type=field_type,
            name=name,
            number=number,
            options=options,
        )

    def parse_oneof(self) -> Oneof:
        start = self.current()
        self.consume(TokenType.ONEOF, "Expected 'oneof'")
        name = self.parse_identifier("Expected oneof name")
        fields: List[Field] = []
        options: List[Option] = []

        if self.consume(TokenType.LBRACE, "Expected '{' after oneof name"):
            while not self.check(TokenType.RBRACE) and not self.at_end():
                if self.is_option_start():
                    options.append(self.parse_option_statement())
                elif self.check(TokenType.SEMI):
                    self.advance()
                elif self.is_field_start():
                    fields.append(self.parse_field())
                else:
                    self.skip_unexpected("oneof")
            self.consume(TokenType.RBRACE, "Expected '}' after oneof")

        return Oneof(
            position=self._span(start),
            name=name,
            fields=tuple(fields),
            options=tuple(options),
        )

    def parse_extend(self) -> Extend:
        start = self.current()
        self.consume(TokenType.EXTEND, "Expected 'extend'")
        name = self.parse_full_ident(
            "Expected extended type name", allow_leading_dot=True
        )
        fields: List[Field] = []

        if self.consume(TokenType.LBRACE, "Expected '{' after extend name"):
            while not self.check(TokenType.RBRACE) and not self.at_end():
                if self.check(TokenType.SEMI):
                    self.advance()
                elif self.is_field_start():
                    fields.append(self.parse_field())
                else:
                    self.skip_unexpected("extend")
            self.consume(TokenType.RBRACE, "Expected '}' after extend")

        return Extend(position=self._span(start), name=name, fields=tuple(fields))

    # Services

    def parse_service(self) -> Service:
        start = self.current()
        self.consume(TokenType.SERVICE, "Expected 'service'")
        name = self.parse_identifier("Expected service name")
        methods: List[RpcMethod] = []
        options: List[Option] = []

        if self.consume(TokenType.LBRACE, "Expected '{' after service name"):
            while not self.check(TokenType.RBRACE) and not self.at_end():
                if self.check(TokenType.RPC):
                    methods.append(self.parse_rpc())
                elif self.check(TokenType.OPTION):
                    options.append(self.parse_option_statement())
                elif self.check(TokenType.SEMI):
                    self.advance()
                else:
                    self.skip_unexpected("service")
            self.consume(TokenType.RBRACE, "Expected '}' after service")

        return Service(
            position=self._span(start),
            name=name,
            methods=tuple(methods),
            options=tuple(options),
        )

    def match_stream(self) -> bool:
        # "stream" is only a modifier when a type name follows it.
        following = self.peek()
        if self.check(TokenType.STREAM) and (
            following.is_word or following.type == TokenType.DOT
        ):
            self.advance()
            return True
        return False

    def parse_rpc(self) -> RpcMethod:
        """Parse ``rpc Name ([stream] Req) returns ([stream] Resp) (; | { ... })``."""
        start = self.current()
        self.consume(TokenType.RPC, "Expected 'rpc'")
        name = self.parse_identifier("Expected rpc method name")

        self.consume(TokenType.LPAREN, "Expected '(' after rpc method name")
        client_streaming = self.match_stream()
        input_type = self.parse_field_type("Expected request type")
        self.consume(TokenType.RPAREN, "Expected ')' after request type")

        self.consume(TokenType.RETURNS, "Expected 'returns' after request type")

        self.consume(TokenType.LPAREN, "Expected '(' after 'returns'")
        server_streaming = self.match_stream()
        output_type = self.parse_field_type("Expected response type")
        self.consume(TokenType.RPAREN, "Expected ')' after response type")

        options: List[Option] = []
        if self.match(TokenType.LBRACE):
            while not self.check(TokenType.RBRACE) and not self.at_end():
                if self.check(TokenType.OPTION):
                    options.append(self.parse_option_statement())
                elif self.check(TokenType.SEMI):
                    self.advance()
                else:
                    self.skip_unexpected("rpc body")
            self.consume(TokenType.RBRACE, "Expected '}' after rpc body")
            self.match(TokenType.SEMI)
        else:
            self.consume(TokenType.SEMI, "Expected ';' after rpc method")

        return RpcMethod(
            position=self._span(start),
            name=name,
            input_type=input_type,
            output_type=output_type,
            client_streaming=client_streaming,
            server_streaming=server_streaming,
            options=tuple(options),
        )


def parse(tokens: List[Token]) -> ParseResult:
    """Parse ``tokens`` with a fresh parser."""
    return Parser(tokens).parse()
