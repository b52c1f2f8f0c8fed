import pytest

from managers.config_manager import CONFIG_ENV_VAR, ConfigManager
from models.enums import FramingMode, LogLevel, StripBackend
from models.errors import ConfigError


@pytest.fixture
def write_yaml(tmp_path):
    def _write(text: str, name: str = "config.yaml") -> str:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return str(path)
    return _write


def test_load_full_config(write_yaml):
    path = write_yaml(
        """
server:
  host: 127.0.0.1
  port: 8080
  stream_port: 8081
strip:
  backend: virtual
  led_count: 30
  color_order: rgb
render:
  target_fps: 60
protocol:
  mode: legacy
logging:
  level: debug
  colors: false
"""
    )

    config = ConfigManager(path).load()

    assert config.server.host == "127.0.0.1"
    assert config.server.port == 8080
    assert config.server.stream_port == 8081
    assert config.strip.backend is StripBackend.VIRTUAL
    assert config.strip.led_count == 30
    assert config.render.target_fps == 60
    assert config.protocol.mode is FramingMode.LEGACY
    assert config.logging.level is LogLevel.DEBUG
    assert config.logging.colors is False


def test_missing_keys_keep_defaults(write_yaml):
    config = ConfigManager(write_yaml("strip:\n  led_count: 12\n")).load()

    assert config.strip.led_count == 12
    assert config.strip.backend is StripBackend.AUTO
    assert config.server.port is None
    assert config.render.latency_window == 32
    assert config.protocol.mode is FramingMode.CANONICAL


def test_empty_file_gives_defaults(write_yaml):
    config = ConfigManager(write_yaml("")).load()

    assert config.strip.led_count == 208


def test_missing_file_falls_back_to_factory_defaults(tmp_path):
    manager = ConfigManager(str(tmp_path / "nope.yaml"))
    config = manager.load()

    assert config.server.port == 7200
    assert config.strip.backend is StripBackend.TERMINAL
    assert manager.server.port == 7200


def test_unparsable_file_falls_back_to_factory_defaults(write_yaml):
    config = ConfigManager(write_yaml("server: [unclosed\n")).load()

    assert config.server.port == 7200


def test_non_mapping_file_falls_back_to_factory_defaults(write_yaml):
    config = ConfigManager(write_yaml("- just\n- a list\n")).load()

    assert config.server.port == 7200


def test_env_var_overrides_default_path(write_yaml, monkeypatch):
    monkeypatch.setenv(CONFIG_ENV_VAR, write_yaml("server:\n  port: 9100\n"))

    assert ConfigManager().load().server.port == 9100


def test_explicit_path_beats_env_var(write_yaml, monkeypatch):
    monkeypatch.setenv(CONFIG_ENV_VAR, write_yaml("server:\n  port: 9100\n", "env.yaml"))
    path = write_yaml("server:\n  port: 9200\n")

    assert ConfigManager(path).load().server.port == 9200


def test_unknown_keys_and_sections_ignored(write_yaml):
    config = ConfigManager(
        write_yaml("strip:\n  led_count: 5\n  sparkle: yes\nzones:\n  - a\n")
    ).load()

    assert config.strip.led_count == 5


def test_bad_enum_raises_config_error(write_yaml):
    manager = ConfigManager(write_yaml("strip:\n  backend: plasma\n"))

    with pytest.raises(ConfigError) as exc_info:
        manager.load()

    assert exc_info.value.key == "strip.backend"
    assert "terminal" in exc_info.value.message


def test_out_of_range_value_raises_config_error(write_yaml):
    with pytest.raises(ConfigError) as exc_info:
        ConfigManager(write_yaml("server:\n  port: 70000\n")).load()

    assert exc_info.value.key == "server.port"


def test_section_must_be_mapping():
    with pytest.raises(ConfigError) as exc_info:
        ConfigManager.build({"render": [1, 2]})

    assert exc_info.value.key == "render"


def test_bundled_config_loads():
    config = ConfigManager("config/config.yaml").load()

    assert config.strip.led_count > 0
    assert config.render.target_fps > 0


@pytest.mark.parametrize(
    "data, section",
    [
        ({"strip": {"led_count": "many"}}, "strip"),
        ({"render": {"target_fps": "fast"}}, "render"),
        ({"server": {"port": "eighty"}}, "server"),
        ({"strip": {"color_order": 5}}, "strip"),
    ],
)
def test_wrong_type_raises_config_error(data, section):
    with pytest.raises(ConfigError) as exc_info:
        ConfigManager.build(data)

    assert exc_info.value.key == section


def test_wrong_type_in_file_raises_config_error(write_yaml):
    manager = ConfigManager(write_yaml("strip:\n  led_count: many\n"))

    with pytest.raises(ConfigError):
        manager.load()
