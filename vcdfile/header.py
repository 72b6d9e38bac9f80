"""
VCD header parser.

Consumes tokens up to ``$enddefinitions $end`` and returns a frozen Header
holding the timescale, the scope tree and the identifier code table.
"""

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, Mapping, Optional

from vcdfile.errors import HeaderError
from vcdfile.logging import logger
from vcdfile.model import TIMESCALE_UNITS, Scope, Timescale, Variable
from vcdfile.scanner import SIMULATION_KEYWORDS, Token, TokenKind

_TIMESCALE = re.compile(r'(\d+)\s*([a-zA-Z]+)\Z')
_BIT_INDEX = re.compile(r'\[\s*(-?\d+)\s*(?::\s*(-?\d+)\s*)?\]\Z')
STANDARD_MAGNITUDES = (1, 10, 100)


@dataclass(frozen=True)
class Header:
    """
    Declarations of a VCD file

    Attributes:
        timescale: Timescale or None
        scope: Root of the scope tree
        variable_map: Read-only identifier code -> Variable
        name_map: Read-only full dotted name -> identifier codes
        date: Text of $date
        version: Text of $version
        comments: $comment texts seen in the header
    """
    timescale: Optional[Timescale]
    scope: Scope
    variable_map: Mapping[str, Variable]
    name_map: Mapping[str, tuple[str, ...]]
    date: Optional[str] = None
    version: Optional[str] = None
    comments: tuple[str, ...] = field(default=())


@dataclass
class _ScopeBuilder:
    kind: str
    name: str
    children: list = field(default_factory=list)
    variables: list = field(default_factory=list)

    def freeze(self) -> Scope:
        return Scope(self.kind, self.name,
                     tuple(child.freeze() for child in self.children),
                     tuple(self.variables))


def parse_timescale(text: str) -> Timescale:
    """
    Parse the body of a $timescale declaration.

    Accepts '1ns', '1 ns', '100 fs'.
    """
    m = _TIMESCALE.match(text.strip())
    if m is None:
        raise HeaderError(f'Malformed timescale {text!r}')
    magnitude = int(m.group(1))
    unit = m.group(2)
    if unit not in TIMESCALE_UNITS:
        raise HeaderError(f'Unknown timescale unit {unit!r}. Must be one of: {", ".join(TIMESCALE_UNITS)}')
    if magnitude == 0:
        raise HeaderError('Timescale magnitude must be positive')
    if magnitude not in STANDARD_MAGNITUDES:
        logger.warning(f'Non-standard timescale magnitude {magnitude}')
    return Timescale(magnitude, unit)


def parse_bit_index(text: str) -> None | int | tuple[int, int]:
    if not text:
        return None
    m = _BIT_INDEX.match(text)
    if m is None:
        raise HeaderError(f'Malformed bit range {text!r}')
    if m.group(2) is None:
        return int(m.group(1))
    return (int(m.group(1)), int(m.group(2)))


class HeaderParser:
    """
    Builds a Header from the declaration section of a token stream.

    The parser stops right after $enddefinitions, leaving the rest of the
    token iterator to the value change parser.
    """

    def __init__(self):
        self.root = _ScopeBuilder('root', '')
        self.stack = [self.root]
        self.variable_map = {}
        self.name_map = {}
        self.timescale = None
        self.date = None
        self.version = None
        self.comments = []

    @property
    def scope_path(self) -> tuple[str, ...]:
        return tuple(scope.name for scope in self.stack[1:])

    def parse(self, tokens: Iterator[Token]) -> Header:
        """
        Args:
            tokens: Token iterator, consumed up to and including $enddefinitions

        Returns:
            Frozen Header

        Raises:
            HeaderError: On malformed declarations or a missing $enddefinitions
        """
        for token in tokens:
            if token.kind is TokenKind.COMMENT:
                self.comments.append(token.value)
            elif token.kind is TokenKind.KEYWORD and token.value not in SIMULATION_KEYWORDS:
                try:
                    if self._declaration(token):
                        return self._finish()
                except HeaderError as err:
                    if err.location is None:
                        err.location = token.location
                    raise
            else:
                what = token.value if token.kind is TokenKind.KEYWORD else token.kind.name.lower()
                raise HeaderError(f'Unexpected {what} before $enddefinitions', token.location)
        raise HeaderError('End of input before $enddefinitions')

    def _declaration(self, token: Token) -> bool:
        keyword = token.value
        body = token.body
        if keyword == '$var':
            self._var(body)
        elif keyword == '$scope':
            if len(body) < 2:
                raise HeaderError('$scope needs a kind and a name')
            scope = _ScopeBuilder(body[0], ' '.join(body[1:]))
            self.stack[-1].children.append(scope)
            self.stack.append(scope)
        elif keyword == '$upscope':
            if len(self.stack) == 1:
                raise HeaderError('$upscope without an open scope')
            self.stack.pop()
        elif keyword == '$timescale':
            self.timescale = parse_timescale(' '.join(body))
        elif keyword == '$date':
            self.date = ' '.join(body)
        elif keyword == '$version':
            self.version = ' '.join(body)
        elif keyword == '$enddefinitions':
            return True
        return False

    def _var(self, body: tuple[str, ...]) -> None:
        if len(body) < 3:
            raise HeaderError('$var is missing its identifier code')
        if len(body) < 4:
            raise HeaderError('$var is missing its reference name')
        var_type, width, id_code, name = body[:4]
        try:
            width = int(width)
        except ValueError:
            raise HeaderError(f'Malformed width {width!r} for {name}') from None
        if width < 1:
            raise HeaderError(f'Width of {name} must be positive, got {width}')

        var = Variable(
            scope=self.scope_path,
            name=name,
            width=width,
            var_type=var_type.lower(),
            id_code=id_code,
            bit_index=parse_bit_index(''.join(body[4:])),
        )
        self.stack[-1].variables.append(var)

        if id_code in self.variable_map:
            logger.debug(f'{var.full_name} aliases {self.variable_map[id_code].full_name} (code {id_code})')
        else:
            self.variable_map[id_code] = var
        codes = self.name_map.setdefault(var.full_name, [])
        if id_code not in codes:
            codes.append(id_code)

    def _finish(self) -> Header:
        if len(self.stack) > 1:
            logger.warning(f'Scope {".".join(self.scope_path)} still open at $enddefinitions')
            del self.stack[1:]
        for name, codes in self.name_map.items():
            if len(codes) > 1:
                logger.debug(f'{name} is declared with {len(codes)} identifier codes')
        header = Header(
            timescale=self.timescale,
            scope=self.root.freeze(),
            variable_map=MappingProxyType(self.variable_map),
            name_map=MappingProxyType({k: tuple(v) for k, v in self.name_map.items()}),
            date=self.date,
            version=self.version,
            comments=tuple(self.comments),
        )
        logger.debug(f'Header: {len(self.variable_map)} identifier codes, timescale {self.timescale}')
        return header


def parse_header(tokens: Iterator[Token]) -> Header:
    return HeaderParser().parse(tokens)
