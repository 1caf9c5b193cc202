"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import re
import tomllib
from dataclasses import dataclass
from pathlib import Path

CONFIG_FILE_NAME = "runtime_class.toml"
ARTIFACT_SHAPES = ("flattened", "expanded")
MAX_SCAN_WORKERS_CAP = 64
JS_IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*")

DEFAULT_MARKER = "generateRuntimeClass"
DEFAULT_KEY = "default"
DEFAULT_FLATTENED_FIELD = "runtimeClass"
DEFAULT_OUTPUT_PATH = "./vite-plugin-tailwind-runtime-class.json"
DEFAULT_EVENTS_PATH = ".runtime_class/events.jsonl"

DEFAULT_INCLUDE_GLOBS = (
    "**/*.ts",
    "**/*.tsx",
    "**/*.js",
    "**/*.jsx",
    "**/*.mjs",
    "**/*.cjs",
    "**/*.vue",
    "**/*.svelte",
)
DEFAULT_EXCLUDE_GLOBS = ("**/node_modules/**", "**/.git/**", "**/dist/**")


@dataclass(slots=True, frozen=True)
class MarkerConfig:
    """Names the extractor and expander agree on."""

    marker: str = DEFAULT_MARKER
    default_key: str = DEFAULT_KEY
    flattened_field: str = DEFAULT_FLATTENED_FIELD
    import_guard: str | None = None


@dataclass(slots=True, frozen=True)
class DiscoveryConfig:
    """Include/exclude glob filters used to build the scan file list."""

    include_globs: tuple[str, ...] = DEFAULT_INCLUDE_GLOBS
    exclude_globs: tuple[str, ...] = DEFAULT_EXCLUDE_GLOBS


@dataclass(slots=True, frozen=True)
class LoggingConfig:
    """Structured event log settings."""

    enabled: bool = True
    events_path: Path | None = None


@dataclass(slots=True, frozen=True)
class SyncConfig:
    """Fully merged synchronization configuration."""

    project_root: Path
    output_path: Path
    artifact_shape: str
    scan_workers: int
    marker: MarkerConfig
    discovery: DiscoveryConfig
    logging: LoggingConfig

    def to_public_dict(self) -> dict[str, object]:
        """Return serializable config snapshot."""
        return {
            "project_root": str(self.project_root),
            "output_path": str(self.output_path),
            "artifact_shape": self.artifact_shape,
            "scan_workers": self.scan_workers,
            "marker": {
                "marker": self.marker.marker,
                "default_key": self.marker.default_key,
                "flattened_field": self.marker.flattened_field,
                "import_guard": self.marker.import_guard,
            },
            "discovery": {
                "include_globs": list(self.discovery.include_globs),
                "exclude_globs": list(self.discovery.exclude_globs),
            },
            "logging": {
                "enabled": self.logging.enabled,
                "events_path": (
                    str(self.logging.events_path) if self.logging.events_path is not None else None
                ),
            },
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional startup overrides applied at highest precedence."""

    output_path: Path | None = None
    scan_workers: int | None = None
    artifact_shape: str | None = None
    logging_enabled: bool | None = None


def default_config(project_root: Path) -> SyncConfig:
    """Build default config for a given project root."""
    resolved_root = project_root.resolve()
    return SyncConfig(
        project_root=resolved_root,
        output_path=(resolved_root / DEFAULT_OUTPUT_PATH).resolve(),
        artifact_shape="flattened",
        scan_workers=1,
        marker=MarkerConfig(),
        discovery=DiscoveryConfig(),
        logging=LoggingConfig(events_path=resolved_root / DEFAULT_EVENTS_PATH),
    )


def load_project_config_file(project_root: Path) -> dict[str, object]:
    """Load optional runtime_class.toml from project root."""
    config_path = project_root / CONFIG_FILE_NAME
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{CONFIG_FILE_NAME} must contain a top-level table.")
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def _tuple_of_strings(value: object, section: str, field: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"Config field '{section}.{field}' must be a list of strings.")
    output: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"Config field '{section}.{field}' must contain only strings.")
        output.append(item)
    return tuple(output)


def _optional_identifier(value: object, name: str, default: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str) or JS_IDENTIFIER_PATTERN.fullmatch(value) is None:
        raise ValueError(f"Config field '{name}' must be a JavaScript identifier string.")
    return value


def _optional_non_empty_str(value: object, name: str, default: str) -> str:
    if value is None:
        return default
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Config field '{name}' must be a non-empty string.")
    return value


def _optional_bool(value: object, name: str, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValueError(f"Config field '{name}' must be a boolean.")
    return value


def _artifact_shape(value: object, name: str, default: str) -> str:
    if value is None:
        return default
    if value not in ARTIFACT_SHAPES:
        raise ValueError(f"Config field '{name}' must be one of {', '.join(ARTIFACT_SHAPES)}.")
    return str(value)


def merge_config(
    base: SyncConfig, project_payload: dict[str, object], overrides: CliOverrides
) -> SyncConfig:
    """Merge defaults, project config, then CLI/startup overrides."""
    sync_payload = _get_table(project_payload, "sync")
    logging_payload = _get_table(project_payload, "logging")

    include_globs = base.discovery.include_globs
    if "include_globs" in sync_payload:
        include_globs = _tuple_of_strings(sync_payload["include_globs"], "sync", "include_globs")
    exclude_globs = base.discovery.exclude_globs
    if "exclude_globs" in sync_payload:
        exclude_globs = _tuple_of_strings(sync_payload["exclude_globs"], "sync", "exclude_globs")

    output_path = base.output_path
    raw_output = sync_payload.get("output_path")
    if raw_output is not None:
        output_path = (
            base.project_root
            / _optional_non_empty_str(raw_output, "sync.output_path", str(base.output_path))
        ).resolve()

    import_guard = base.marker.import_guard
    if "import_guard" in sync_payload:
        import_guard = _optional_non_empty_str(
            sync_payload["import_guard"], "sync.import_guard", ""
        )

    marker = MarkerConfig(
        marker=_optional_identifier(sync_payload.get("marker"), "sync.marker", base.marker.marker),
        default_key=_optional_non_empty_str(
            sync_payload.get("default_key"), "sync.default_key", base.marker.default_key
        ),
        flattened_field=_optional_non_empty_str(
            sync_payload.get("flattened_field"),
            "sync.flattened_field",
            base.marker.flattened_field,
        ),
        import_guard=import_guard,
    )

    events_path = base.logging.events_path
    raw_events_path = logging_payload.get("events_path")
    if raw_events_path is not None:
        events_path = base.project_root / _optional_non_empty_str(
            raw_events_path, "logging.events_path", ""
        )

    merged = SyncConfig(
        project_root=base.project_root,
        output_path=output_path,
        artifact_shape=_artifact_shape(
            sync_payload.get("artifact_shape"), "sync.artifact_shape", base.artifact_shape
        ),
        scan_workers=_optional_positive_int_with_cap(
            sync_payload.get("scan_workers"),
            "sync.scan_workers",
            base.scan_workers,
            MAX_SCAN_WORKERS_CAP,
        ),
        marker=marker,
        discovery=DiscoveryConfig(include_globs=include_globs, exclude_globs=exclude_globs),
        logging=LoggingConfig(
            enabled=_optional_bool(
                logging_payload.get("enabled"), "logging.enabled", base.logging.enabled
            ),
            events_path=events_path,
        ),
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(config: SyncConfig, overrides: CliOverrides) -> SyncConfig:
    """Apply startup overrides at highest precedence."""
    scan_workers = _optional_positive_int_with_cap(
        overrides.scan_workers,
        "overrides.scan_workers",
        config.scan_workers,
        MAX_SCAN_WORKERS_CAP,
    )
    artifact_shape = _artifact_shape(
        overrides.artifact_shape, "overrides.artifact_shape", config.artifact_shape
    )
    output_path = config.output_path
    if overrides.output_path is not None:
        output_path = (config.project_root / overrides.output_path).resolve()
    logging = config.logging
    if overrides.logging_enabled is not None:
        logging = LoggingConfig(enabled=overrides.logging_enabled, events_path=logging.events_path)
    return SyncConfig(
        project_root=config.project_root,
        output_path=output_path,
        artifact_shape=artifact_shape,
        scan_workers=scan_workers,
        marker=config.marker,
        discovery=config.discovery,
        logging=logging,
    )


def load_effective_config(project_root: Path, overrides: CliOverrides | None = None) -> SyncConfig:
    """Load effective config using merge order defaults -> project config -> overrides."""
    resolved_root = project_root.resolve()
    base = default_config(resolved_root)
    payload = load_project_config_file(resolved_root)
    return merge_config(base, payload, overrides or CliOverrides())


def _optional_positive_int_with_cap(
    value: object,
    name: str,
    default: int,
    cap: int | None,
) -> int:
    if value is None:
        return default
    if not isinstance(value, int) or isinstance(value, bool) or value < 1:
        raise ValueError(f"Config field '{name}' must be a positive integer.")
    if cap is not None and value > cap:
        raise ValueError(f"Config field '{name}' must be <= {cap}.")
    return value
