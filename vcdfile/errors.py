"""
Error types raised while loading VCD files.

Each parsing stage raises its own ParseError subclass. The loader converts
them into a single VCDFileError that tags the stage and keeps the position.
"""

from enum import Enum
from typing import TYPE_CHECKING, NamedTuple, Optional

if TYPE_CHECKING:
    from vcdfile.model import VCDFile


class ErrorKind(Enum):
    IO = 'io'
    SCAN = 'scan'
    HEADER = 'header'
    STREAM = 'stream'


class Location(NamedTuple):
    """Position in the input: 1-based line, 0-based byte offset."""

    line: int
    offset: int


class ParseError(Exception):
    """
    Base class for errors detected while reading the VCD text
    """
    kind = None

    def __init__(self, message: str, location: Optional[Location] = None):
        self.message = message
        self.location = location
        super().__init__(message)

    def __str__(self):
        if self.location is None:
            return self.message
        return f'line {self.location.line}: {self.message}'

    def __reduce__(self):
        return (self.__class__, (self.message, self.location))


class ScanError(ParseError):
    """Malformed token or unterminated construct"""
    kind = ErrorKind.SCAN


class HeaderError(ParseError):
    """Malformed declaration section"""
    kind = ErrorKind.HEADER


class StreamError(ParseError):
    """Value change section violates the declared header or time order"""
    kind = ErrorKind.STREAM


class VCDFileError(Exception):
    """
    Exception raised when a VCD file cannot be loaded

    Attributes:
        kind: ErrorKind of the failing stage
        message: Human readable description
        filename: File (or buffer label) being loaded
        location: Location of the offending token, if known
        partial: Model built up to the failure (stream errors only)
    """
    def __init__(self, kind: ErrorKind, message: str, filename: Optional[str] = None,
                 location: Optional[Location] = None, partial: Optional['VCDFile'] = None):
        self.kind = kind
        self.message = message
        self.filename = filename
        self.location = location
        self.partial = partial
        super().__init__(self.message)

    def __str__(self):
        where = self.filename or '<vcd>'
        if self.location is not None:
            where += f':{self.location.line}'
        return f'{where}: {self.kind.value}: {self.message}'

    def __reduce__(self):
        return (self.__class__, (self.kind, self.message, self.filename, self.location, self.partial))

    @classmethod
    def wrap(cls, err: ParseError, filename: Optional[str] = None,
             partial: Optional['VCDFile'] = None) -> 'VCDFileError':
        """Convert a stage error, keeping it as the cause."""
        wrapped = cls(err.kind, err.message, filename, err.location, partial)
        wrapped.__cause__ = err
        return wrapped
