"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from store_locator.domain.models import CORE_FIELDS

from .duration import DurationParseError, parse_duration, validate_duration_range


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


def _check_field_names(names, what: str) -> None:
    unknown = sorted(set(names) - set(CORE_FIELDS))
    if unknown:
        raise ValueError(
            f"Unknown store field(s) in {what}: {', '.join(unknown)}. "
            f"Valid fields: {', '.join(CORE_FIELDS)}"
        )


class SourceConfig(BaseModel):
    """Configuration for a single brand source file.

    ``fields`` maps a store field to one upstream key, or to a list of keys
    whose values are joined with ``separator``. Upstream keys are matched
    case-insensitively because the normalizer upper-cases them.
    """

    name: str = Field(..., min_length=1, description="Source identifier, e.g. 'walmart'")
    path: str = Field(..., min_length=1, description="Path to the JSON source file")
    fields: Dict[str, Union[str, List[str]]] = Field(
        default_factory=dict, description="Store field -> upstream key(s)"
    )
    separator: str = Field(", ", description="Separator used when joining multiple keys")
    constants: Dict[str, str] = Field(
        default_factory=dict, description="Store field -> fixed value (brand, website)"
    )
    ignore_values: Dict[str, List[str]] = Field(
        default_factory=dict, description="Store field -> placeholder values treated as absent"
    )
    closed_markers: List[str] = Field(
        default_factory=list, description="Mapped values marking a closed store"
    )
    state_codes: Dict[str, str] = Field(
        default_factory=dict, description="Lower-cased state name -> state code"
    )
    require_any: List[str] = Field(
        default_factory=list,
        description="Upstream keys of which at least one must hold a usable value",
    )
    missing_marker: Optional[str] = Field(
        None, description="Upstream value meaning 'not present' for require_any"
    )
    enabled: bool = Field(True, description="Whether to ingest this source")

    @field_validator("name", "path")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Field cannot be empty or whitespace-only")
        return stripped

    @field_validator("fields")
    @classmethod
    def validate_fields(cls, v: Dict[str, Union[str, List[str]]]) -> Dict[str, List[str]]:
        """Validate field names and normalise every mapping to a list of upper-cased keys."""
        normalized: Dict[str, List[str]] = {}
        for field_name, keys in v.items():
            field_name = field_name.strip().lower()
            key_list = [keys] if isinstance(keys, str) else list(keys)
            key_list = [key.strip().upper() for key in key_list if key and key.strip()]
            if not key_list:
                raise ValueError(f"Field '{field_name}' must map to at least one upstream key")
            normalized[field_name] = key_list
        _check_field_names(normalized, "fields")
        return normalized

    @field_validator("constants", "ignore_values")
    @classmethod
    def validate_field_keyed(cls, v: dict) -> dict:
        normalized = {key.strip().lower(): value for key, value in v.items()}
        _check_field_names(normalized, "constants/ignore_values")
        return normalized

    @field_validator("state_codes")
    @classmethod
    def normalize_state_codes(cls, v: Dict[str, str]) -> Dict[str, str]:
        return {" ".join(name.lower().split()): code.strip() for name, code in v.items()}

    @field_validator("require_any")
    @classmethod
    def normalize_require_any(cls, v: List[str]) -> List[str]:
        return [key.strip().upper() for key in v if key.strip()]

    @model_validator(mode="after")
    def validate_mapping(self):
        """A source must produce at least one field."""
        if not self.fields and not self.constants:
            raise ValueError(f"Source '{self.name}' maps no fields and sets no constants")
        return self


class GeocodingConfig(BaseModel):
    """Geocode provider and rate-limit settings."""

    endpoint: str = Field(
        "https://maps.googleapis.com/maps/api/geocode/json",
        min_length=1,
        description="Geocoding API endpoint",
    )
    request_delay: str = Field("50ms", description="Fixed delay after every provider call")
    queue_size: int = Field(10, ge=1, le=1000, description="Bounded queue capacity")
    request_timeout: int = Field(10, ge=1, le=300, description="HTTP timeout (seconds)")
    region: Optional[str] = Field(None, description="Optional region bias (ccTLD, e.g. 'ca')")

    # Computed field
    request_delay_seconds: Optional[float] = None

    @field_validator("request_delay")
    @classmethod
    def validate_request_delay(cls, v: str) -> str:
        try:
            validate_duration_range(parse_duration(v), min_seconds=0.001, max_seconds=60)
            return v
        except DurationParseError as e:
            raise ValueError(str(e)) from e

    @model_validator(mode="after")
    def compute_delay_seconds(self):
        self.request_delay_seconds = parse_duration(self.request_delay)
        return self


class ExportConfig(BaseModel):
    """Export output settings."""

    output_path: str = Field(
        "./data/results/stores.json", min_length=1, description="Where exported JSON is written"
    )
    indent: int = Field(4, ge=0, le=8, description="JSON indentation width")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object for the store locator."""

    sources: List[SourceConfig] = Field(
        default_factory=list, description="Brand source files to ingest"
    )
    geocoding: GeocodingConfig = Field(default_factory=GeocodingConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def validate_sources(self):
        """Reject duplicate source names."""
        seen = set()
        for source in self.sources:
            if source.name in seen:
                raise ValueError(f"Duplicate source: {source.name} appears multiple times")
            seen.add(source.name)
        return self

    def get_enabled_sources(self) -> List[SourceConfig]:
        """Get list of enabled sources."""
        return [source for source in self.sources if source.enabled]

    def get_source_by_name(self, name: str) -> Optional[SourceConfig]:
        """Get a source by its name."""
        for source in self.sources:
            if source.name == name:
                return source
        return None
