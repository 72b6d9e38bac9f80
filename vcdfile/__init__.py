# Units
from pint import UnitRegistry
ureg = UnitRegistry(case_sensitive=True)
Q_ = ureg.Quantity

from vcdfile.logging import logger, set_log_level, add_file_handler
from vcdfile.errors import ErrorKind, Location, ParseError, ScanError, HeaderError, StreamError, VCDFileError
from vcdfile.config import ParserConfig
from vcdfile.model import Timescale, Variable, Scope, ValueChange, Timeline, VCDFile
from vcdfile.changes import Event
from vcdfile.loader import VCDStream, load_vcd, load_vcd_by_filename, stream_vcd, stream_vcd_by_filename
from vcdfile.utils.parallel import load_parallel
