"""
VCD scanner.

Turns a binary stream into tokens. The stream is read in chunks of
``buffer_size`` bytes (or in one piece when ``buffer_size`` is None), so
peak memory is one chunk plus the word being assembled.

VCD has no line structure after the header, so the scanner works on
whitespace separated words. Only a string value may span whitespace, when
it is quoted, e.g. ``s"hello world" %``.

Example:
    with open('trace.vcd', 'rb') as f:
        for token in tokenize(f, buffer_size=65536):
            print(token.kind, token.value)
"""

import re
from enum import Enum
from typing import BinaryIO, Iterator, NamedTuple, Optional

from vcdfile.errors import Location, ScanError
from vcdfile.logging import logger

_SPACE = re.compile(rb'\s*')
_WORD = re.compile(rb'\S+')
_WORD_TAIL = re.compile(rb'\S*')

# IEEE 1164 states are accepted next to the classic 0/1/x/z
SCALAR_STATES = frozenset('01xXzZuUwWlLhH-')
_VECTOR = re.compile(r'[01xXzZuUwWlLhH-]+\Z')

DECLARATION_KEYWORDS = frozenset([
    '$var', '$scope', '$upscope', '$timescale', '$enddefinitions', '$date', '$version',
])
SIMULATION_KEYWORDS = frozenset(['$dumpvars', '$dumpall', '$dumpon', '$dumpoff'])
_KEYWORDS = DECLARATION_KEYWORDS | SIMULATION_KEYWORDS | {'$end', '$comment'}


class TokenKind(Enum):
    KEYWORD = 1
    END = 2
    TIMESTAMP = 3
    SCALAR = 4
    VECTOR = 5
    REAL = 6
    STRING = 7
    COMMENT = 8


CHANGE_KINDS = frozenset([TokenKind.SCALAR, TokenKind.VECTOR, TokenKind.REAL, TokenKind.STRING])


class Token(NamedTuple):
    """
    A lexical VCD token.

    Attributes:
        kind: TokenKind
        value: Keyword name, timestamp (int), comment text or decoded value
        id_code: Identifier code of a value change
        body: Words between a declaration keyword and its $end
        location: Where the token starts
    """
    kind: TokenKind
    value: object = None
    id_code: Optional[str] = None
    body: tuple = ()
    location: Optional[Location] = None


class _WordReader:
    """Chunked reader producing (word, location) pairs."""

    def __init__(self, stream: BinaryIO, buffer_size: Optional[int] = None):
        self.stream = stream
        self.buffer_size = buffer_size
        self.buf = b''
        self.pos = 0
        self.base = 0  # absolute offset of buf[0]
        self.line = 1
        self.eof = False

    @property
    def location(self) -> Location:
        return Location(self.line, self.base + self.pos)

    def _advance(self, end: int) -> None:
        self.line += self.buf.count(b'\n', self.pos, end)
        self.pos = end

    def _fill(self) -> bool:
        if self.eof:
            return False
        if self.buffer_size is None:
            chunk = self.stream.read()
        else:
            chunk = self.stream.read(self.buffer_size)
        if not chunk:
            self.eof = True
            return False
        self.base += self.pos
        self.buf = self.buf[self.pos:] + chunk
        self.pos = 0
        return True

    def next_word(self, string_value: bool = False) -> Optional[tuple[str, Location]]:
        """
        Next whitespace separated word.

        With ``string_value`` set, a word starting with s" or S" runs to the
        closing quote, so the string may contain whitespace.
        """
        while True:
            self._advance(_SPACE.match(self.buf, self.pos).end())
            if self.pos == len(self.buf):
                if self._fill():
                    continue
                return None
            end = _WORD.match(self.buf, self.pos).end()
            if string_value and self.buf[self.pos:self.pos + 2] in (b's"', b'S"'):
                close = self.buf.find(b'"', self.pos + 2)
                if close < 0:
                    if self._fill():
                        continue
                    raise ScanError('Unterminated quoted string', self.location)
                end = _WORD_TAIL.match(self.buf, close + 1).end()
            # A word touching the end of the buffer may continue in the next chunk
            if end == len(self.buf) and self._fill():
                continue
            location = self.location
            word = self.buf[self.pos:end].decode('utf-8', errors='replace')
            self._advance(end)
            return word, location


def _take_body(reader: _WordReader, keyword: str, location: Location) -> tuple[str, ...]:
    """Collect the words of a $keyword ... $end block."""
    body = []
    while True:
        item = reader.next_word()
        if item is None:
            raise ScanError(f'Unterminated {keyword} block', location)
        if item[0] == '$end':
            return tuple(body)
        body.append(item[0])


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] == '"' and text[-1] == '"':
        return text[1:-1]
    return text


def tokenize(stream: BinaryIO, buffer_size: Optional[int] = None) -> Iterator[Token]:
    """
    Scan a VCD stream into tokens.

    Args:
        stream: Binary stream, e.g. ``open(path, 'rb')`` or ``io.BytesIO``
        buffer_size: Read size in bytes, None reads everything at once

    Yields:
        Token objects in file order. $comment blocks come out as COMMENT
        tokens, unknown $keyword blocks are skipped.

    Raises:
        ScanError: On malformed or unterminated constructs
    """
    reader = _WordReader(stream, buffer_size)
    count = 0
    while True:
        item = reader.next_word(string_value=True)
        if item is None:
            break
        word, location = item
        lead = word[0]
        count += 1

        if lead == '#':
            digits = word[1:]
            if not (digits.isascii() and digits.isdigit()):
                raise ScanError(f'Malformed timestamp {word!r}', location)
            yield Token(TokenKind.TIMESTAMP, int(digits), location=location)

        elif lead in SCALAR_STATES:
            if len(word) < 2:
                raise ScanError(f'Value change {word!r} is missing its identifier code', location)
            yield Token(TokenKind.SCALAR, lead.lower(), word[1:], location=location)

        elif lead in 'bBrRsS':
            id_item = reader.next_word()
            if id_item is None or id_item[0] in _KEYWORDS:
                raise ScanError(f'Value change {word!r} is missing its identifier code', location)
            id_code = id_item[0]
            value = word[1:]
            if lead in 'bB':
                if not _VECTOR.match(value):
                    raise ScanError(f'Malformed vector value {word!r}', location)
                yield Token(TokenKind.VECTOR, value.lower(), id_code, location=location)
            elif lead in 'rR':
                try:
                    real = float(value)
                except ValueError:
                    raise ScanError(f'Malformed real value {word!r}', location) from None
                yield Token(TokenKind.REAL, real, id_code, location=location)
            else:
                yield Token(TokenKind.STRING, _unquote(value), id_code, location=location)

        elif lead == '$':
            if word == '$end':
                yield Token(TokenKind.END, word, location=location)
            elif word in SIMULATION_KEYWORDS:
                yield Token(TokenKind.KEYWORD, word, location=location)
            else:
                body = _take_body(reader, word, location)
                if word == '$comment':
                    yield Token(TokenKind.COMMENT, ' '.join(body), location=location)
                elif word in DECLARATION_KEYWORDS:
                    yield Token(TokenKind.KEYWORD, word, body=body, location=location)
                else:
                    logger.debug(f'Skipping unknown block {word} at line {location.line}')

        else:
            raise ScanError(f'Unexpected token {word!r}', location)

    logger.debug(f'Scanned {count} words, {reader.line} lines')
