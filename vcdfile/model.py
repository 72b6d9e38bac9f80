"""
In-memory model of a loaded VCD file.

A VCDFile holds two maps keyed by identifier code:

    variable_map: code -> Variable (declaration from the header)
    value_map:    code -> Timeline (ordered list of ValueChange)

Example:
    vcd = load_vcd_by_filename('trace.vcd')
    clk = vcd.timeline('top.clk')
    clk.value_at(42)
"""

import re
from bisect import bisect_right
from dataclasses import dataclass, field
from operator import itemgetter
from typing import TYPE_CHECKING, Iterator, NamedTuple, Optional

import numpy as np
import pandas as pd

from vcdfile import ureg
from vcdfile.errors import VCDFileError

if TYPE_CHECKING:
    from vcdfile.changes import Event
    from vcdfile.errors import ParseError
    from vcdfile.header import Header

TIMESCALE_UNITS = ('s', 'ms', 'us', 'ns', 'ps', 'fs')

REAL_TYPES = frozenset(['real', 'realtime', 'shortreal'])
STRING_TYPES = frozenset(['string'])
_BITS = re.compile(r'[01xzuwlh-]+\Z')


class Timescale(NamedTuple):
    """Length of one simulation tick, e.g. Timescale(10, 'ps')."""

    magnitude: int
    unit: str

    def __str__(self):
        return f'{self.magnitude} {self.unit}'

    @property
    def quantity(self):
        """Tick length as a pint Quantity"""
        return ureg.Quantity(self.magnitude, self.unit)

    @property
    def seconds(self) -> float:
        return self.quantity.to('s').magnitude


@dataclass(frozen=True)
class Variable:
    """
    A signal declared with $var.

    Attributes:
        scope: Scope names from the root down to the declaring scope
        name: Reference name as written in the header
        width: Declared bit width
        var_type: VCD variable type, e.g. 'wire', 'reg', 'real'
        id_code: Identifier code used in the value change section
        bit_index: None, a single index or an (msb, lsb) pair
    """
    scope: tuple[str, ...]
    name: str
    width: int
    var_type: str
    id_code: str
    bit_index: None | int | tuple[int, int] = None

    @property
    def full_name(self) -> str:
        return '.'.join(self.scope + (self.name,))

    @property
    def is_real(self) -> bool:
        return self.var_type in REAL_TYPES

    @property
    def is_string(self) -> bool:
        return self.var_type in STRING_TYPES

    @property
    def is_vector(self) -> bool:
        return not (self.is_real or self.is_string)


@dataclass(frozen=True)
class Scope:
    """
    Node of the scope tree. The root has kind 'root' and an empty name.
    """
    kind: str
    name: str
    children: tuple['Scope', ...] = ()
    variables: tuple[Variable, ...] = ()

    def child(self, name: str) -> Optional['Scope']:
        for scope in self.children:
            if scope.name == name:
                return scope
        return None

    def find(self, path: str | tuple[str, ...]) -> Optional['Scope']:
        """
        Walk down the tree.

        Args:
            path: Dotted name ('top.cpu') or sequence of scope names

        Returns:
            The scope, or None if any step is missing
        """
        if isinstance(path, str):
            path = tuple(path.split('.')) if path else ()
        scope = self
        for name in path:
            scope = scope.child(name)
            if scope is None:
                return None
        return scope

    def walk(self, path: tuple[str, ...] = ()) -> Iterator[tuple[tuple[str, ...], 'Scope']]:
        """Yield (path, scope) for this scope and every descendant, depth first."""
        yield path, self
        for scope in self.children:
            yield from scope.walk(path + (scope.name,))


class ValueChange(NamedTuple):
    timestamp: int
    value: str | float


class Timeline(list):
    """
    Value changes of one signal, ordered by timestamp.

    Writes sharing a timestamp are all kept in file order.
    """

    def value_at(self, timestamp: int) -> Optional[str | float]:
        """
        Value of the signal at a point in time.

        The last change at or before ``timestamp`` wins. Returns None
        before the first change.
        """
        idx = bisect_right(self, timestamp, key=itemgetter(0))
        if idx == 0:
            return None
        return self[idx - 1].value

    def timestamps(self) -> np.ndarray:
        return np.fromiter((c.timestamp for c in self), dtype=np.int64, count=len(self))

    def values(self) -> np.ndarray:
        """Values as an array: float64 for real signals, object otherwise."""
        values = [c.value for c in self]
        if values and all(isinstance(v, float) for v in values):
            return np.array(values, dtype=np.float64)
        return np.array(values, dtype=object)

    def integers(self) -> np.ndarray:
        """
        Bit values as integers. Unknown bits (x, z, ...) count as 0.

        Raises:
            ValueError: If the timeline holds real or string values
        """
        ints = []
        for change in self:
            if not (isinstance(change.value, str) and _BITS.match(change.value)):
                raise ValueError(f'Not a bit value: {change.value!r} at #{change.timestamp}')
            bits = ''.join(b if b in '01' else '0' for b in change.value)
            ints.append(int(bits, 2) if bits else 0)
        if ints and max(ints) >= 2**63:
            return np.array(ints, dtype=object)
        return np.array(ints, dtype=np.int64)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame({'timestamp': self.timestamps(), 'value': list(self.values())})


@dataclass
class VCDFile:
    """
    Parsed VCD file

    Attributes:
        filename: Source file name (or label of an in-memory buffer)
        timescale: Timescale, or None if the header declares none
        scope: Root of the scope tree
        variable_map: Identifier code -> Variable, in declaration order
        value_map: Identifier code -> Timeline, one entry per declared code
        name_map: Full dotted name -> identifier codes declared under it
        date: Text of $date
        version: Text of $version
        comments: Texts of $comment blocks in the header
        end_time: Last timestamp of the file
        error: First stream error if this is a partial model
    """
    filename: str
    timescale: Optional[Timescale]
    scope: Scope
    variable_map: dict[str, Variable]
    value_map: dict[str, Timeline]
    name_map: dict[str, tuple[str, ...]] = field(default_factory=dict)
    date: Optional[str] = None
    version: Optional[str] = None
    comments: tuple[str, ...] = ()
    end_time: int = 0
    error: Optional[VCDFileError] = field(default=None, compare=False, repr=False)

    @property
    def complete(self) -> bool:
        return self.error is None

    def codes_for(self, full_name: str) -> tuple[str, ...]:
        return self.name_map.get(full_name, ())

    def variable(self, full_name: str) -> Variable:
        codes = self.codes_for(full_name)
        if not codes:
            raise KeyError(f'No signal named {full_name} in {self.filename}')
        return self.variable_map[codes[0]]

    def timeline(self, full_name: str) -> Timeline:
        """Timeline of a signal given by its full dotted name"""
        return self.value_map[self.variable(full_name).id_code]

    def signals(self) -> Iterator[tuple[str, Variable]]:
        for name, codes in self.name_map.items():
            yield name, self.variable_map[codes[0]]

    def to_dataframe(self) -> pd.DataFrame:
        """
        All value changes in long format.

        Columns: code, name, timestamp, value. Rows are grouped per code
        in declaration order.
        """
        rows = []
        for code, timeline in self.value_map.items():
            name = self.variable_map[code].full_name
            for change in timeline:
                rows.append((code, name, change.timestamp, change.value))
        return pd.DataFrame(rows, columns=['code', 'name', 'timestamp', 'value'])


class ModelBuilder:
    """
    Accumulates value change events on top of a parsed header.
    """
    def __init__(self, filename: str, header: 'Header'):
        self.filename = filename
        self.header = header
        self.value_map = {code: Timeline() for code in header.variable_map}
        self.error = None
        self.count = 0

    def add(self, event: 'Event') -> None:
        self.value_map[event.id_code].append(ValueChange(event.timestamp, event.value))
        self.count += 1

    def fail(self, error: 'ParseError') -> None:
        """Record a stream error. Only the first one is kept."""
        if self.error is None:
            self.error = error

    def build(self, end_time: int = 0) -> VCDFile:
        header = self.header
        model = VCDFile(
            filename=self.filename,
            timescale=header.timescale,
            scope=header.scope,
            variable_map=dict(header.variable_map),
            value_map=self.value_map,
            name_map=dict(header.name_map),
            date=header.date,
            version=header.version,
            comments=header.comments,
            end_time=end_time,
        )
        if self.error is not None:
            model.error = VCDFileError.wrap(self.error, self.filename, partial=model)
        return model
