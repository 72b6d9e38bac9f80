"""
Value change section parser.

A two state machine over the tokens following $enddefinitions:

    AWAITING_TIMESTAMP --#n--> AT_TIMESTAMP(n) --#m (m >= n)--> AT_TIMESTAMP(m)

Changes seen before the first timestamp happen at time 0. Changes inside
$dumpvars/$dumpall/$dumpon/$dumpoff blocks happen at the current time.
"""

from enum import Enum
from typing import Iterator, NamedTuple

from vcdfile.errors import StreamError
from vcdfile.header import Header
from vcdfile.logging import logger
from vcdfile.model import Variable
from vcdfile.scanner import CHANGE_KINDS, SIMULATION_KEYWORDS, Token, TokenKind


class State(Enum):
    AWAITING_TIMESTAMP = 1
    AT_TIMESTAMP = 2


class Event(NamedTuple):
    """A decoded value change of one identifier code"""
    id_code: str
    timestamp: int
    value: str | float


def extend_bits(bits: str, width: int) -> str:
    """
    Left-extend a bit string to ``width``.

    A leading x or z is repeated, anything else extends with 0.
    """
    fill = bits[0] if bits[0] in 'xz' else '0'
    return fill * (width - len(bits)) + bits


class ValueChangeParser:
    """
    Turns value change tokens into Events, checking them against the header.

    Args:
        header: Parsed header
        extend_vectors: Extend narrow vectors to the declared width
    """

    def __init__(self, header: Header, extend_vectors: bool = True):
        self.variable_map = header.variable_map
        self.extend_vectors = extend_vectors
        self.state = State.AWAITING_TIMESTAMP
        self._time = None
        self.block = None

    @property
    def timestamp(self) -> int:
        """Time of the next change: the last #n seen, or 0 before any"""
        if self.state is State.AT_TIMESTAMP:
            return self._time
        return 0

    def parse(self, tokens: Iterator[Token]) -> Iterator[Event]:
        """
        Yields:
            Event per value change, in file order

        Raises:
            StreamError: On undeclared codes, over-wide vectors, timestamps
                going backwards and misplaced keywords
        """
        count = 0
        for token in tokens:
            kind = token.kind
            if kind in CHANGE_KINDS and self.state is State.AWAITING_TIMESTAMP and not count:
                logger.debug('Value changes before the first timestamp are placed at #0')
            if kind is TokenKind.TIMESTAMP:
                self._set_time(token)
            elif kind is TokenKind.SCALAR or kind is TokenKind.VECTOR:
                yield Event(token.id_code, self.timestamp, self._bits(token))
                count += 1
            elif kind is TokenKind.REAL or kind is TokenKind.STRING:
                self._lookup(token)
                yield Event(token.id_code, self.timestamp, token.value)
                count += 1
            elif kind is TokenKind.KEYWORD:
                self._keyword(token)
            elif kind is TokenKind.END:
                if self.block is None:
                    raise StreamError('Unexpected $end', token.location)
                self.block = None
        if self.block is not None:
            raise StreamError(f'Unterminated {self.block} block at end of input')
        logger.debug(f'Decoded {count} value changes up to #{self.timestamp}')

    def _set_time(self, token: Token) -> None:
        if self.state is State.AT_TIMESTAMP and token.value < self._time:
            raise StreamError(f'Timestamp #{token.value} goes back from #{self._time}', token.location)
        self._time = token.value
        self.state = State.AT_TIMESTAMP

    def _keyword(self, token: Token) -> None:
        if token.value not in SIMULATION_KEYWORDS:
            raise StreamError(f'{token.value} after $enddefinitions', token.location)
        if self.block is not None:
            raise StreamError(f'{token.value} inside {self.block} block', token.location)
        self.block = token.value

    def _lookup(self, token: Token) -> Variable:
        var = self.variable_map.get(token.id_code)
        if var is None:
            raise StreamError(f'Undeclared identifier code {token.id_code!r}', token.location)
        return var

    def _bits(self, token: Token) -> str:
        var = self._lookup(token)
        bits = token.value
        width = var.width
        if len(bits) > width:
            if bits.count(bits[0]) == len(bits) and bits[0] in 'xz':
                return bits[-width:]
            raise StreamError(
                f'Value b{bits} is wider than {var.full_name} ({width} bits)', token.location)
        if len(bits) < width and self.extend_vectors and var.is_vector:
            return extend_bits(bits, width)
        return bits
