import os
import re
import logging
import sys
from typing import Optional, List, Dict, Any
from urllib.parse import urlparse

import yaml

from report.formats import AnalysisType


# =============================================================================
# Logging Configuration
# =============================================================================
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT: str = os.getenv(
    "LOG_FORMAT",
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)


def setup_logging():
    """Configure application-wide logging"""
    level = getattr(logging, LOG_LEVEL, logging.INFO)
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    # Reduce noise from third-party libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    v = os.getenv(name)
    if v is None or not v.strip():
        return default
    try:
        return float(v)
    except ValueError:
        # Keep the raw string so validate_settings can name it
        return v  # type: ignore[return-value]


def _split_csv(value: Optional[str]) -> List[str]:
    return [s.strip() for s in (value or "").split(",") if s.strip()]


# =============================================================================
# Analysis Options
# =============================================================================
# Narrative formats, one per member of the report enum
ANALYSIS_TYPES: List[str] = [t.value for t in AnalysisType]

# Control-plane namespaces are skipped unless explicitly configured
IGNORE_NAMESPACES: str = os.getenv("IGNORE_NAMESPACES", "kube-system,kube-public,kube-node-lease")
HEALTH_THRESHOLD: float = _env_float("HEALTH_THRESHOLD", 90.0)
INCLUDE_NODE_INFO: bool = _env_bool("INCLUDE_NODE_INFO", True)
INCLUDE_DEPLOYMENT_DETAILS: bool = _env_bool("INCLUDE_DEPLOYMENT_DETAILS", True)
INCLUDE_RESOURCE_METRICS: bool = _env_bool("INCLUDE_RESOURCE_METRICS", False)
ANALYSIS_TYPE: str = os.getenv("ANALYSIS_TYPE", "standard")
DEBUG_MODE: bool = _env_bool("DEBUG_MODE", False)

# Static cluster descriptors echoed into every report
CLUSTER_NAME: str = os.getenv("CLUSTER_NAME", "local-cluster")
CLUSTER_PLATFORM: str = os.getenv("CLUSTER_PLATFORM", "unknown")
CLUSTER_CPU: str = os.getenv("CLUSTER_CPU", "unknown")
CLUSTER_MEMORY: str = os.getenv("CLUSTER_MEMORY", "unknown")

# Input snapshot and output directories
SNAPSHOT_DIR: str = os.getenv("SNAPSHOT_DIR", "snapshot")
OUTPUT_DIR: str = os.getenv("OUTPUT_DIR", "output")

# =============================================================================
# Metrics Endpoint Configuration
# =============================================================================
# metrics.k8s.io PodMetricsList endpoint, e.g. through `kubectl proxy`:
#   http://localhost:8001/apis/metrics.k8s.io/v1beta1/pods
METRICS_URL: Optional[str] = os.getenv("METRICS_URL") or None
METRICS_TIMEOUT_SECONDS: int = int(os.getenv("METRICS_TIMEOUT_SECONDS", "10"))
METRICS_RETRY_COUNT: int = int(os.getenv("METRICS_RETRY_COUNT", "3"))
METRICS_RETRY_BACKOFF_BASE: int = int(os.getenv("METRICS_RETRY_BACKOFF_BASE", "1"))


def get_settings(config_path: Optional[str] = None,
                 overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Build the effective settings for one analysis run

    Precedence: environment defaults < YAML config file < explicit overrides.
    Keys of the YAML file and of `overrides` are the option names below.
    Values are not validated here; call validate_settings() before running.
    """
    settings: Dict[str, Any] = {
        "ignore_namespaces": _split_csv(IGNORE_NAMESPACES),
        "health_threshold": HEALTH_THRESHOLD,
        "include_node_info": INCLUDE_NODE_INFO,
        "include_deployment_details": INCLUDE_DEPLOYMENT_DETAILS,
        "include_resource_metrics": INCLUDE_RESOURCE_METRICS,
        "analysis_type": ANALYSIS_TYPE,
        "debug_mode": DEBUG_MODE,
        "cluster_name": CLUSTER_NAME,
        "cluster_platform": CLUSTER_PLATFORM,
        "cluster_cpu": CLUSTER_CPU,
        "cluster_memory": CLUSTER_MEMORY,
        "snapshot_dir": SNAPSHOT_DIR,
        "output_dir": OUTPUT_DIR,
        "metrics_url": METRICS_URL,
    }

    if config_path:
        settings.update(load_config_file(config_path))

    if overrides:
        settings.update({k: v for k, v in overrides.items() if v is not None})

    # A comma-separated string is accepted wherever a list is expected
    if isinstance(settings.get("ignore_namespaces"), str):
        settings["ignore_namespaces"] = _split_csv(settings["ignore_namespaces"])

    return settings


def load_config_file(path: str) -> Dict[str, Any]:
    """Load option overrides from a YAML file

    Raises:
        ConfigValidationError: If the file cannot be read or is not a mapping
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigValidationError(f"Cannot read config file {path}: {e}")
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Config file {path} is not valid YAML: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigValidationError(
            f"Config file {path} must contain a mapping of option names, got {type(data).__name__}"
        )

    unknown = sorted(set(data) - set(get_settings_keys()))
    if unknown:
        raise ConfigValidationError(
            f"Config file {path} has unknown options: {unknown} (valid: {sorted(get_settings_keys())})"
        )
    return data


def get_settings_keys() -> List[str]:
    return [
        "ignore_namespaces", "health_threshold", "include_node_info",
        "include_deployment_details", "include_resource_metrics",
        "analysis_type", "debug_mode", "cluster_name", "cluster_platform",
        "cluster_cpu", "cluster_memory", "snapshot_dir", "output_dir",
        "metrics_url",
    ]


__all__ = [
    "ANALYSIS_TYPES",
    "IGNORE_NAMESPACES",
    "HEALTH_THRESHOLD",
    "INCLUDE_NODE_INFO",
    "INCLUDE_DEPLOYMENT_DETAILS",
    "INCLUDE_RESOURCE_METRICS",
    "ANALYSIS_TYPE",
    "DEBUG_MODE",
    "CLUSTER_NAME",
    "CLUSTER_PLATFORM",
    "CLUSTER_CPU",
    "CLUSTER_MEMORY",
    "SNAPSHOT_DIR",
    "OUTPUT_DIR",
    "METRICS_URL",
    "METRICS_TIMEOUT_SECONDS",
    "METRICS_RETRY_COUNT",
    "METRICS_RETRY_BACKOFF_BASE",
    "LOG_LEVEL",
    "LOG_FORMAT",
    "setup_logging",
    "get_settings",
    "load_config_file",
    "validate_settings",
    "validate_config",
    "ConfigValidationError",
]


# =============================================================================
# Configuration Validation
# =============================================================================
class ConfigValidationError(Exception):
    """Raised when configuration validation fails"""
    pass


# RFC 1123 label, the format Kubernetes enforces for namespace names
_NAMESPACE_RE = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")

_BOOL_OPTIONS = (
    "include_node_info",
    "include_deployment_details",
    "include_resource_metrics",
    "debug_mode",
)


def _validate_positive_int(name: str, value: int) -> None:
    if value <= 0:
        raise ConfigValidationError(f"{name} must be positive, got {value}")


def _validate_url(name: str, value: str) -> None:
    try:
        result = urlparse(value)
        if not all([result.scheme, result.netloc]):
            raise ValueError("Missing scheme or netloc")
        if result.scheme not in ('http', 'https'):
            raise ValueError(f"Invalid scheme: {result.scheme}")
    except ValueError as e:
        raise ConfigValidationError(f"{name} is not a valid URL: {value} ({e})")


def _validate_threshold(value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigValidationError(
            f"health_threshold must be a number in (0, 100], got {value!r}"
        )
    if not (0 < value <= 100):
        raise ConfigValidationError(
            f"health_threshold must be in (0, 100], got {value}"
        )


def _validate_analysis_type(value: Any) -> None:
    if value not in ANALYSIS_TYPES:
        raise ConfigValidationError(
            f"analysis_type must be one of {ANALYSIS_TYPES}, got {value!r}"
        )


def _validate_ignore_namespaces(value: Any) -> None:
    if not isinstance(value, (list, tuple, set, frozenset)):
        raise ConfigValidationError(
            f"ignore_namespaces must be a list of namespace names, got {type(value).__name__}"
        )
    bad = [ns for ns in value
           if not isinstance(ns, str) or len(ns) > 63 or not _NAMESPACE_RE.match(ns)]
    if bad:
        raise ConfigValidationError(
            f"ignore_namespaces entries must be RFC 1123 labels "
            f"(lowercase alphanumerics and '-', at most 63 characters), invalid: {bad!r}"
        )


def _settings_errors(settings: Dict[str, Any]) -> List[str]:
    errors = []

    for check, key in (
        (_validate_threshold, "health_threshold"),
        (_validate_analysis_type, "analysis_type"),
        (_validate_ignore_namespaces, "ignore_namespaces"),
    ):
        try:
            check(settings.get(key))
        except ConfigValidationError as e:
            errors.append(str(e))

    for key in _BOOL_OPTIONS:
        if not isinstance(settings.get(key), bool):
            errors.append(f"{key} must be a boolean (true/false), got {settings.get(key)!r}")

    metrics_url = settings.get("metrics_url")
    if metrics_url:
        try:
            _validate_url("metrics_url", metrics_url)
        except ConfigValidationError as e:
            errors.append(str(e))

    return errors


def validate_settings(settings: Dict[str, Any]) -> None:
    """Validate one settings dict before any data is processed

    All problems are collected and reported together.

    Raises:
        ConfigValidationError: If any option is outside its valid domain
    """
    errors = _settings_errors(settings)
    if errors:
        raise ConfigValidationError(
            "Configuration validation failed:\n  - " + "\n  - ".join(errors)
        )


def validate_config() -> None:
    """Validate all configuration values on startup

    Raises:
        ConfigValidationError: If any configuration value is invalid
    """
    errors = []

    try:
        _validate_positive_int("METRICS_TIMEOUT_SECONDS", METRICS_TIMEOUT_SECONDS)
    except ConfigValidationError as e:
        errors.append(str(e))

    try:
        _validate_positive_int("METRICS_RETRY_COUNT", METRICS_RETRY_COUNT)
    except ConfigValidationError as e:
        errors.append(str(e))

    errors.extend(_settings_errors(get_settings()))

    if errors:
        raise ConfigValidationError(
            "Configuration validation failed:\n  - " + "\n  - ".join(errors)
        )
