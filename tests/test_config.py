import pytest

from vcdfile.config import DEFAULT_CONFIG_FILE, ParserConfig


def test_defaults_match_packaged_file():
    assert DEFAULT_CONFIG_FILE.exists()
    assert ParserConfig.from_yaml() == ParserConfig()


def test_from_yaml(tmp_path):
    path = tmp_path / 'vcd.yaml'
    path.write_text('buffer_size: 4096\nstrict: false\n')
    config = ParserConfig.from_yaml(path)
    assert config == ParserConfig(buffer_size=4096, strict=False, extend_vectors=True)


def test_empty_yaml(tmp_path):
    path = tmp_path / 'empty.yaml'
    path.write_text('')
    assert ParserConfig.from_yaml(path) == ParserConfig()


def test_unknown_setting(tmp_path):
    path = tmp_path / 'vcd.yaml'
    path.write_text('buffer: 10\n')
    with pytest.raises(ValueError, match='Unknown parser settings: buffer'):
        ParserConfig.from_yaml(path)


@pytest.mark.parametrize('size', [0, -1, 2.5])
def test_bad_buffer_size(size):
    with pytest.raises(ValueError):
        ParserConfig(buffer_size=size)


def test_from_kwargs():
    base = ParserConfig(strict=False)
    assert ParserConfig.from_kwargs(base) is base
    assert ParserConfig.from_kwargs(base, buffer_size=10) == ParserConfig(buffer_size=10, strict=False)
    assert ParserConfig.from_kwargs(None, strict=False) == base
