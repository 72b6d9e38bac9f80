"""
Parser configuration.

Settings come from the keyword arguments of the loader functions, from a
ParserConfig object, or from a YAML file:

    config = ParserConfig.from_yaml('vcd.yaml')
    vcd = load_vcd_by_filename('trace.vcd', config, strict=False)
"""

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG_FILE = Path(__file__).parent / 'data' / 'default.yaml'


@dataclass(frozen=True)
class ParserConfig:
    """
    Attributes:
        buffer_size: Read size in bytes for streaming loads
        strict: Raise on stream errors instead of returning a partial model
        extend_vectors: Left-extend vectors narrower than their declared width
    """
    buffer_size: int = 65536
    strict: bool = True
    extend_vectors: bool = True

    def __post_init__(self):
        if not isinstance(self.buffer_size, int) or self.buffer_size < 1:
            raise ValueError(f'buffer_size must be a positive integer, got {self.buffer_size!r}')

    @classmethod
    def from_dict(cls, settings: dict) -> 'ParserConfig':
        if not isinstance(settings, dict):
            raise ValueError(f'Parser settings must be a mapping, got {type(settings).__name__}')
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = set(settings) - known
        if unknown:
            raise ValueError(f'Unknown parser settings: {", ".join(sorted(unknown))}')
        return cls(**settings)

    @classmethod
    def from_yaml(cls, config_file: Optional[str | Path] = None) -> 'ParserConfig':
        """
        Read settings from a YAML mapping.

        Parameters:
            config_file: Path to the YAML file. Defaults to the packaged
                data/default.yaml
        """
        config_file = DEFAULT_CONFIG_FILE if config_file is None else config_file
        with open(config_file, 'r') as f:
            settings = yaml.safe_load(f)
        return cls.from_dict(settings or {})

    @classmethod
    def from_kwargs(cls, config: Optional['ParserConfig'] = None, **kwargs) -> 'ParserConfig':
        """Start from ``config`` (or the defaults) and override with kwargs"""
        config = cls() if config is None else config
        if not kwargs:
            return config
        return cls.from_dict({**dataclasses.asdict(config), **kwargs})
