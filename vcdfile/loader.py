"""
Entry points for loading VCD files.

Bulk:
    vcd = load_vcd_by_filename('trace.vcd')
    vcd.variable_map, vcd.value_map

Streaming:
    with stream_vcd_by_filename('trace.vcd') as stream:
        print(stream.variable_map)
        for event in stream:
            ...

Both run the same scanner, header parser and value change parser. The bulk
loader reads the whole input at once and folds every event into the model;
the streaming loader reads ``buffer_size`` bytes at a time and hands events
to the caller as they are decoded.
"""

import io
from pathlib import Path
from typing import BinaryIO, Iterator, Optional

from vcdfile.changes import Event, ValueChangeParser
from vcdfile.config import ParserConfig
from vcdfile.errors import ErrorKind, ParseError, ScanError, StreamError, VCDFileError
from vcdfile.header import parse_header
from vcdfile.logging import logger
from vcdfile.model import ModelBuilder, VCDFile
from vcdfile.scanner import tokenize


def _open(filename: str) -> BinaryIO:
    try:
        return open(filename, 'rb')
    except FileNotFoundError:
        raise VCDFileError(ErrorKind.IO, 'File not found', filename) from None
    except OSError as err:
        raise VCDFileError(ErrorKind.IO, f'Could not open file: {err.strerror}', filename) from err


def _read_error(err: OSError, filename: str) -> VCDFileError:
    return VCDFileError(ErrorKind.IO, f'Could not read file: {err.strerror or err}', filename)


def _read(filename: str) -> bytes:
    with _open(filename) as f:
        try:
            return f.read()
        except OSError as err:
            raise _read_error(err, filename) from err


def _as_bytes(content: bytes | str) -> bytes:
    if isinstance(content, str):
        return content.encode('utf-8')
    return bytes(content)


class VCDStream:
    """
    Incremental reader over one VCD input.

    The header is parsed when the stream is created. Iterating yields Event
    objects on demand. Stopping early is fine: close() (or leaving the
    ``with`` block) releases the input. A stream is forward only; reopen the
    file to start over.

    Attributes:
        filename: Source file name or buffer label
        header: Parsed Header
    """

    def __init__(self, filename: str, stream: BinaryIO, config: Optional[ParserConfig] = None,
                 buffer_size: Optional[int] = None):
        self.filename = filename
        self.config = ParserConfig() if config is None else config
        self._stream = stream
        self._tokens = tokenize(stream, buffer_size)
        try:
            self.header = parse_header(self._tokens)
        except ParseError as err:
            self.close()
            raise VCDFileError.wrap(err, filename) from err
        except OSError as err:
            self.close()
            raise _read_error(err, filename) from err
        self._parser = ValueChangeParser(self.header, extend_vectors=self.config.extend_vectors)
        self._events = self._parser.parse(self._tokens)
        self.closed = False

    @property
    def variable_map(self):
        return self.header.variable_map

    @property
    def timescale(self):
        return self.header.timescale

    @property
    def timestamp(self) -> int:
        """Current simulation time of the parser"""
        return self._parser.timestamp

    def __iter__(self) -> Iterator[Event]:
        return self

    def __next__(self) -> Event:
        try:
            return next(self._events)
        except StopIteration:
            self.close()
            raise
        except ParseError as err:
            self.close()
            raise VCDFileError.wrap(err, self.filename) from err
        except OSError as err:
            self.close()
            raise _read_error(err, self.filename) from err

    def __enter__(self) -> 'VCDStream':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def close(self) -> None:
        events = getattr(self, '_events', None)
        if events is not None:
            events.close()
        self._tokens.close()
        self._stream.close()
        self.closed = True

    def fold(self) -> VCDFile:
        """
        Consume the remaining events into a VCDFile.

        Stream errors stop the fold. In strict mode the VCDFileError is
        raised with the partial model attached as ``partial``; otherwise
        the partial model is returned with ``error`` set. Scan errors are
        always raised.

        Raises:
            VCDFileError
        """
        builder = ModelBuilder(self.filename, self.header)
        try:
            for event in self._events:
                builder.add(event)
        except StreamError as err:
            builder.fail(err)
        except ScanError as err:
            partial = builder.build(self._parser.timestamp)
            raise VCDFileError.wrap(err, self.filename, partial=partial) from err
        except OSError as err:
            raise _read_error(err, self.filename) from err
        finally:
            self.close()

        model = builder.build(self._parser.timestamp)
        logger.debug(f'{self.filename}: {builder.count} value changes in {len(model.value_map)} timelines')
        if model.error is not None:
            if self.config.strict:
                raise model.error
            logger.warning(f'Partial load of {self.filename}: {model.error.message}')
        return model


def stream_vcd(filename: str, content: bytes | str, config: Optional[ParserConfig] = None,
               **kwargs) -> VCDStream:
    """
    Stream an in-memory VCD buffer.

    Args:
        filename: Label used in the model and in errors
        content: VCD text
        config: ParserConfig, overridden by kwargs
    """
    config = ParserConfig.from_kwargs(config, **kwargs)
    return VCDStream(filename, io.BytesIO(_as_bytes(content)), config, config.buffer_size)


def stream_vcd_by_filename(filename: str | Path, config: Optional[ParserConfig] = None,
                           **kwargs) -> VCDStream:
    """
    Open a VCD file for incremental reading.

    The file is read ``config.buffer_size`` bytes at a time.

    Raises:
        VCDFileError: If the file cannot be opened or its header is invalid
    """
    config = ParserConfig.from_kwargs(config, **kwargs)
    filename = str(filename)
    return VCDStream(filename, _open(filename), config, config.buffer_size)


def load_vcd(filename: str, content: bytes | str, config: Optional[ParserConfig] = None,
             **kwargs) -> VCDFile:
    """
    Parse an in-memory VCD buffer.

    Args:
        filename: Label used in the model and in errors
        content: VCD text
        config: ParserConfig, overridden by kwargs

    Returns:
        VCDFile

    Raises:
        VCDFileError
    """
    config = ParserConfig.from_kwargs(config, **kwargs)
    return VCDStream(filename, io.BytesIO(_as_bytes(content)), config).fold()


def load_vcd_by_filename(filename: str | Path, config: Optional[ParserConfig] = None,
                         **kwargs) -> VCDFile:
    """
    Read and parse a whole VCD file.

    Args:
        filename: Path to the VCD file
        config: ParserConfig, overridden by kwargs (strict, extend_vectors)

    Returns:
        VCDFile

    Raises:
        VCDFileError: Kind IO if the file is missing or unreadable, SCAN,
            HEADER or STREAM for invalid content
    """
    filename = str(filename)
    content = _read(filename)
    logger.debug(f'Loading {filename} ({len(content)} bytes)')
    return load_vcd(filename, content, config, **kwargs)
