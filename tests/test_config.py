"""Integration tests for configuration module."""

import warnings

import pytest
from pydantic import ValidationError

from store_locator.config import (
    AppConfig,
    ConfigurationError,
    GeocodingConfig,
    SourceConfig,
    load_config,
)
from store_locator.config.duration import DurationParseError, parse_duration, validate_duration_range
from store_locator.config.environment import (
    DEFAULT_DATABASE_URL,
    EnvironmentConfig,
    load_environment_config,
)
from store_locator.config.validators import check_for_warnings


VALID_CONFIG = """
sources:
  - name: indigo
    path: {source_path}
    constants:
      brand: Indigo
    fields:
      name: StoreName
      address: [Address1, Address2]
      city: City
    ignore_values:
      phone: [TBA]
  - name: target
    path: {source_path}
    constants:
      brand: Target
    fields:
      name: Name
    enabled: false

geocoding:
  request_delay: 100ms
  queue_size: 5
  region: ca

export:
  output_path: ./out/stores.json
  indent: 2

logging:
  level: DEBUG
  format: json
"""


@pytest.fixture
def config_file(tmp_path):
    source = tmp_path / "indigo.json"
    source.write_text("[]", encoding="utf-8")
    path = tmp_path / "config.yaml"
    path.write_text(VALID_CONFIG.format(source_path=source), encoding="utf-8")
    return path


def write_config(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestConfigurationLoading:
    """Test configuration loading from YAML files."""

    def test_load_valid_config(self, config_file, mock_env_vars):
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            app_config, env_config = load_config(config_file)

        indigo = app_config.sources[0]
        assert indigo.name == "indigo"
        assert indigo.fields == {
            "name": ["STORENAME"],
            "address": ["ADDRESS1", "ADDRESS2"],
            "city": ["CITY"],
        }
        assert indigo.constants == {"brand": "Indigo"}
        assert indigo.separator == ", "
        assert [s.name for s in app_config.get_enabled_sources()] == ["indigo"]
        assert app_config.get_source_by_name("target").enabled is False
        assert app_config.get_source_by_name("walmart") is None

        assert app_config.geocoding.request_delay_seconds == 0.1
        assert app_config.geocoding.queue_size == 5
        assert app_config.geocoding.region == "ca"
        assert app_config.export.output_path == "./out/stores.json"
        assert app_config.export.indent == 2
        assert app_config.logging.level == "DEBUG"
        assert app_config.logging.format == "json"

        assert env_config.geocode_api_key == "test-api-key"
        assert env_config.database_url == "sqlite:///:memory:"

    def test_defaults_applied(self, tmp_path, mock_env_vars):
        path = write_config(tmp_path, "sources: []\n")

        app_config, _ = load_config(path)

        assert app_config.geocoding.request_delay == "50ms"
        assert app_config.geocoding.request_delay_seconds == 0.05
        assert app_config.geocoding.queue_size == 10
        assert app_config.geocoding.request_timeout == 10
        assert app_config.export.output_path == "./data/results/stores.json"
        assert app_config.export.indent == 4
        assert app_config.logging.level == "INFO"
        assert app_config.logging.format == "key-value"

    def test_disabled_source_warns(self, config_file, mock_env_vars):
        with pytest.warns(UserWarning, match="disabled"):
            load_config(config_file)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path / "nope.yaml")

    def test_fallback_lookup(self, tmp_path, monkeypatch, mock_env_vars):
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "config.yaml").write_text("sources: []\n", encoding="utf-8")
        monkeypatch.chdir(tmp_path)

        app_config, _ = load_config()

        assert app_config.sources == []

    def test_no_config_anywhere(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        with pytest.raises(ConfigurationError) as exc_info:
            load_config()

        assert "Tried: config.yaml" in exc_info.value.errors

    def test_invalid_yaml(self, tmp_path):
        path = write_config(tmp_path, "sources:\n  name: a: b\n")

        with pytest.raises(ConfigurationError, match="parse YAML"):
            load_config(path)

    def test_empty_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="empty"):
            load_config(write_config(tmp_path, ""))

    def test_root_must_be_mapping(self, tmp_path):
        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(write_config(tmp_path, "- a\n- b\n"))

    def test_validation_errors_are_collected(self, tmp_path, mock_env_vars):
        path = write_config(
            tmp_path,
            "sources:\n  - name: indigo\n    fields:\n      name: StoreName\n"
            "geocoding:\n  queue_size: 0\n",
        )

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(path)

        errors = "\n".join(exc_info.value.errors)
        assert "Missing required field: sources[indigo].path" in errors
        assert "geocoding.queue_size" in errors
        assert exc_info.value.config_path == path
        assert any("unique name" in s for s in exc_info.value.suggestions)
        assert any("queue_size is 1 to 1000" in s for s in exc_info.value.suggestions)

    def test_unnamed_source_is_reported_by_position(self, tmp_path, mock_env_vars):
        path = write_config(tmp_path, "sources:\n  - path: a.json\n    constants:\n      brand: A\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(path)

        assert "Missing required field: sources[0].name" in exc_info.value.errors

    def test_unknown_store_field_suggests_valid_fields(self, tmp_path, mock_env_vars):
        path = write_config(
            tmp_path,
            "sources:\n  - name: indigo\n    path: a.json\n    fields:\n      manager: Manager\n",
        )

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(path)

        assert exc_info.value.errors[0].startswith("sources[indigo].fields:")
        assert any(s.startswith("Store fields are: brand, name") for s in exc_info.value.suggestions)

    def test_bad_request_delay_suggests_duration_format(self, tmp_path, mock_env_vars):
        path = write_config(tmp_path, "sources: []\ngeocoding:\n  request_delay: soon\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(path)

        assert exc_info.value.errors[0].startswith("geocoding.request_delay:")
        assert any("'50ms'" in s for s in exc_info.value.suggestions)

    def test_invalid_log_format_is_reported(self, tmp_path, mock_env_vars):
        path = write_config(tmp_path, "sources: []\nlogging:\n  format: xml\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(path)

        assert exc_info.value.errors[0].startswith("Invalid value for 'logging.format'")
        assert any("json or key-value" in s for s in exc_info.value.suggestions)

    def test_error_message_lists_errors_and_suggestions(self):
        error = ConfigurationError("Bad", errors=["one"], suggestions=["fix it"])

        assert "1. one" in str(error)
        assert "- fix it" in str(error)
        assert "Configuration file" not in str(error)

    def test_error_message_names_config_file(self, tmp_path):
        error = ConfigurationError("Bad", config_path=tmp_path / "config.yaml")

        assert f"Configuration file: {tmp_path / 'config.yaml'}" in str(error)


class TestSourceConfig:
    def test_single_key_becomes_upper_cased_list(self):
        source = SourceConfig(name="x", path="x.json", fields={"Name": " storeName "})

        assert source.fields == {"name": ["STORENAME"]}

    def test_unknown_store_field_rejected(self):
        with pytest.raises(ValidationError, match="Unknown store field"):
            SourceConfig(name="x", path="x.json", fields={"manager": "Manager"})

    def test_unknown_constant_field_rejected(self):
        with pytest.raises(ValidationError):
            SourceConfig(name="x", path="x.json", constants={"colour": "red"})

    def test_must_map_something(self):
        with pytest.raises(ValidationError, match="maps no fields"):
            SourceConfig(name="x", path="x.json")

    def test_empty_key_list_rejected(self):
        with pytest.raises(ValidationError):
            SourceConfig(name="x", path="x.json", fields={"name": []})

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            SourceConfig(name="   ", path="x.json", fields={"name": "Name"})

    def test_state_codes_and_require_any_normalized(self):
        source = SourceConfig(
            name="x",
            path="x.json",
            fields={"name": "Name"},
            state_codes={"British  Columbia": " BC "},
            require_any=["sku1", " "],
        )

        assert source.state_codes == {"british columbia": "BC"}
        assert source.require_any == ["SKU1"]

    def test_duplicate_source_names_rejected(self):
        source = {"name": "x", "path": "x.json", "fields": {"name": "Name"}}

        with pytest.raises(ValidationError, match="Duplicate source"):
            AppConfig(sources=[source, source])


class TestGeocodingConfig:
    def test_request_delay_parsed(self):
        assert GeocodingConfig(request_delay="PT1S").request_delay_seconds == 1.0

    @pytest.mark.parametrize("delay", ["fast", "0ms", "2m"])
    def test_invalid_request_delay(self, delay):
        with pytest.raises(ValidationError):
            GeocodingConfig(request_delay=delay)

    def test_queue_size_bounds(self):
        with pytest.raises(ValidationError):
            GeocodingConfig(queue_size=1001)


class TestDurationParsing:
    @pytest.mark.parametrize(
        "text,seconds",
        [
            ("50ms", 0.05),
            ("1s", 1.0),
            ("1m30s", 90.0),
            ("2h", 7200.0),
            ("PT1S", 1.0),
            ("PT0.05S", 0.05),
            ("PT1M", 60.0),
            ("pt1h", 3600.0),
        ],
    )
    def test_valid_durations(self, text, seconds):
        assert parse_duration(text) == pytest.approx(seconds)

    @pytest.mark.parametrize("text", ["", "   ", "10", "1x", "PT", "0s", "PT0S", "1s abc"])
    def test_invalid_durations(self, text):
        with pytest.raises(DurationParseError):
            parse_duration(text)

    def test_non_string_rejected(self):
        with pytest.raises(DurationParseError):
            parse_duration(5)

    def test_range_validation(self):
        validate_duration_range(0.05, min_seconds=0.001, max_seconds=60)

        with pytest.raises(DurationParseError, match="too short"):
            validate_duration_range(0.0005, min_seconds=0.001)
        with pytest.raises(DurationParseError, match="too long"):
            validate_duration_range(61)


class TestWarnings:
    def test_missing_source_file_warns(self, tmp_path):
        config = {"sources": [{"name": "indigo", "path": "missing.json"}]}

        messages = check_for_warnings(config, base_dir=tmp_path)

        assert any("does not exist" in m for m in messages)

    def test_short_request_delay_warns(self):
        messages = check_for_warnings({"geocoding": {"request_delay": "5ms"}})

        assert any("request_delay" in m for m in messages)

    def test_clean_config_has_no_warnings(self, tmp_path):
        (tmp_path / "indigo.json").write_text("[]")
        config = {
            "sources": [{"name": "indigo", "path": "indigo.json"}],
            "geocoding": {"request_delay": "50ms"},
        }

        assert check_for_warnings(config, base_dir=tmp_path) == []


class TestEnvironment:
    def test_defaults(self, monkeypatch):
        for name in ("GEOCODE_API_KEY", "LOG_LEVEL", "DATABASE_URL"):
            monkeypatch.delenv(name, raising=False)

        env = load_environment_config()

        assert env.geocode_api_key is None
        assert env.log_level is None
        assert env.database_url == DEFAULT_DATABASE_URL

    def test_values_are_normalized(self, monkeypatch):
        monkeypatch.setenv("GEOCODE_API_KEY", "  key  ")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("DATABASE_URL", "sqlite:///tmp/x.db")

        env = load_environment_config()

        assert env.geocode_api_key == "key"
        assert env.log_level == "DEBUG"
        assert env.database_url == "sqlite:///tmp/x.db"

    def test_invalid_values_collected(self, monkeypatch):
        monkeypatch.setenv("GEOCODE_API_KEY", "   ")
        monkeypatch.setenv("LOG_LEVEL", "LOUD")
        monkeypatch.setenv("DATABASE_URL", "stores.db")

        with pytest.raises(ConfigurationError) as exc_info:
            load_environment_config()

        assert len(exc_info.value.errors) == 3

    def test_api_key_required_lazily(self):
        env = EnvironmentConfig()

        with pytest.raises(ConfigurationError, match="GEOCODE_API_KEY"):
            env.require_geocode_api_key()

        assert EnvironmentConfig(geocode_api_key="k").require_geocode_api_key() == "k"
