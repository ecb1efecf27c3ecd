import pytest

from srtalign.config_loader import DEFAULT_CONFIG, ConfigLoader
from srtalign.exceptions import ConfigurationError
from srtalign.models import ValidationLimits


def test_no_path_gives_defaults():
    config = ConfigLoader().load_config(None)
    assert config == DEFAULT_CONFIG
    config['max_total_chars'] = 1
    assert DEFAULT_CONFIG['max_total_chars'] == 74


def test_file_values_override_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("max_total_chars: 42\nmin_duration_seconds: 0.8\ncustom: yes\n", encoding="utf-8")
    config = ConfigLoader().load_config(str(path))

    assert config['max_total_chars'] == 42
    assert config['min_duration_seconds'] == 0.8
    assert config['max_line_chars'] == 37
    assert config['custom'] is True


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")
    assert ConfigLoader().load_config(str(path)) == DEFAULT_CONFIG


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        ConfigLoader().load_config(str(tmp_path / "nope.yaml"))


@pytest.mark.parametrize("content", ["- just\n- a list\n", "key: [unclosed\n"])
def test_bad_files_raise_configuration_error(tmp_path, content):
    path = tmp_path / "config.yaml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigurationError):
        ConfigLoader().load_config(str(path))


def test_directory_is_not_a_config_file(tmp_path):
    with pytest.raises(ConfigurationError):
        ConfigLoader().load_config(str(tmp_path))


def test_limits_from_config():
    limits = ValidationLimits.from_config({'max_total_chars': '60', 'min_duration_seconds': 0.5})
    assert limits.max_total_chars == 60
    assert limits.min_duration_seconds == 0.5
    assert limits.max_line_chars == 37


@pytest.mark.parametrize("config", [
    {'max_total_chars': 'many'},
    {'max_line_chars': 0},
    {'min_duration_seconds': 8.0, 'max_duration_seconds': 7.0},
])
def test_invalid_limits_raise(config):
    with pytest.raises(ConfigurationError):
        ValidationLimits.from_config(config)
