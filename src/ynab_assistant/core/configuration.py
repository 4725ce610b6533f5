import os
from dataclasses import dataclass
from typing import Literal

from ynab_assistant.core import settings
from ynab_assistant.core.errors import ValidationError
from ynab_assistant.logger import get_logger

ValueType = Literal["string", "int", "float"]

logger = get_logger(__name__)


@dataclass(frozen=True)
class ConfigField:
    key: str
    label: str
    description: str
    category: str
    value_type: ValueType = "string"
    sensitive: bool = False
    options: tuple[str, ...] | None = None
    min_value: float | int | None = None
    max_value: float | int | None = None


CONFIG_FIELDS: tuple[ConfigField, ...] = (
    ConfigField(
        key="YNAB_ACCESS_TOKEN",
        label="YNAB Access Token",
        description="Personal Access Token (Account Settings -> Developer Settings).",
        category="YNAB",
        sensitive=True,
    ),
    ConfigField(
        key="YNAB_API_URL",
        label="YNAB API URL",
        description="Base URL of the YNAB API (no trailing slash).",
        category="YNAB",
    ),
    ConfigField(
        key="YNAB_BUDGET_ID",
        label="Default Budget",
        description="Budget used when a command is given no budget id. Defaults to the first budget.",
        category="YNAB",
    ),
    ConfigField(
        key="YNAB_BUDGETS_TTL",
        label="Budgets Cache TTL",
        description="Seconds to cache the budget list. 0 disables caching.",
        category="YNAB",
        value_type="float",
        min_value=0,
    ),
    ConfigField(
        key="YNAB_TIMEOUT",
        label="Request Timeout",
        description="Seconds to wait for a YNAB API response.",
        category="YNAB",
        value_type="float",
        min_value=0,
    ),
    ConfigField(
        key="TRANSACTIONS_LIMIT",
        label="Transactions Limit",
        description="Number of recent transactions shown by default.",
        category="Output",
        value_type="int",
        min_value=0,
    ),
    ConfigField(
        key="PAYEE_FUZZY_THRESHOLD",
        label="Payee Fuzzy Threshold",
        description="Minimum fuzzy score (0-100) used when no payee name contains the query. 0 disables.",
        category="Output",
        value_type="float",
        min_value=0,
        max_value=100,
    ),
    ConfigField(
        key="LOG_DIR",
        label="Log Directory",
        description="Directory for application logs (app.log).",
        category="Logging",
    ),
    ConfigField(
        key="LOG_LEVEL",
        label="Log Level",
        description="Logging verbosity.",
        category="Logging",
        options=("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"),
    ),
)

CONFIG_TEMPLATE = """# YNAB assistant configuration
# These settings only take effect when the same environment variable is not set.
# Remove the leading "#" to enable a setting here.

# YNAB Personal Access Token (https://app.ynab.com/settings/developer)
# YNAB_ACCESS_TOKEN:

# YNAB API base URL
# YNAB_API_URL:

# Budget used when none is given (defaults to the first budget)
# YNAB_BUDGET_ID:

# Cache TTL for the budget list (seconds, 0 disables caching)
# YNAB_BUDGETS_TTL:

# Request timeout (seconds)
# YNAB_TIMEOUT:

# Number of recent transactions shown by default
# TRANSACTIONS_LIMIT:

# Fuzzy payee search threshold (0-100, 0 disables)
# PAYEE_FUZZY_THRESHOLD:

# Log directory (app.log)
# LOG_DIR:

# Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
# LOG_LEVEL:
"""


def get_field(key: str) -> ConfigField:
    for field in CONFIG_FIELDS:
        if field.key == key:
            return field
    raise ValidationError(f"Unknown setting: {key}")


def get_config_path() -> str:
    config_path = settings.get_config_path()
    if config_path:
        return config_path
    return os.path.join(os.getcwd(), "config", settings.CONFIG_FILENAME)


def describe_configuration() -> list[dict[str, str]]:
    """One row per setting with its masked value and where it came from."""
    file_values = settings.read_config_file(get_config_path())
    rows: list[dict[str, str]] = []
    for field in CONFIG_FIELDS:
        raw_value = os.getenv(field.key)
        if settings.is_env_override(field.key):
            source = "environment"
        elif field.key in file_values:
            source = "config file"
        elif raw_value is not None:
            source = "environment"
        else:
            source = "default"
        if raw_value is None:
            display = "<unset>"
        elif field.sensitive and len(raw_value) <= 4:
            display = "****"
        else:
            display = settings.mask_env_value(field.key, raw_value)
        rows.append(
            {
                "key": field.key,
                "label": field.label,
                "category": field.category,
                "value": display,
                "source": source,
                "description": field.description,
            }
        )
    return rows


def _validate_value(field: ConfigField, raw_value: str) -> tuple[str, str | None]:
    value = raw_value.strip()
    if not value:
        return "", None

    if "\n" in value or "\r" in value:
        return value, "Value must be a single line."

    if field.options:
        normalized = value.upper()
        if normalized not in field.options:
            return value, f"Must be one of: {', '.join(field.options)}."
        return normalized, None

    if field.value_type == "int":
        try:
            parsed = int(value)
        except ValueError:
            return value, "Must be a whole number."
        if field.min_value is not None and parsed < field.min_value:
            return value, f"Must be at least {field.min_value}."
        if field.max_value is not None and parsed > field.max_value:
            return value, f"Must be at most {field.max_value}."
        return str(parsed), None

    if field.value_type == "float":
        try:
            parsed_float = float(value)
        except ValueError:
            return value, "Must be a number."
        if field.min_value is not None and parsed_float < field.min_value:
            return value, f"Must be at least {field.min_value}."
        if field.max_value is not None and parsed_float > field.max_value:
            return value, f"Must be at most {field.max_value}."
        return str(parsed_float), None

    return value, None


def write_config_template(path: str | None = None, *, overwrite: bool = False) -> tuple[str, bool]:
    """Write the commented template. Returns (path, written)."""
    config_path = path or get_config_path()
    if os.path.exists(config_path) and not overwrite:
        return config_path, False
    config_dir = os.path.dirname(config_path)
    if config_dir:
        os.makedirs(config_dir, exist_ok=True)
    with open(config_path, "w", encoding="utf-8") as handle:
        handle.write(CONFIG_TEMPLATE)
    logger.info("[CONFIG] Wrote configuration template to %s.", config_path)
    return config_path, True


def set_config_value(key: str, raw_value: str, path: str | None = None) -> str:
    """Validate and persist one setting. Returns the stored value."""
    field = get_field(key)
    cleaned, error = _validate_value(field, raw_value)
    if error:
        raise ValidationError(f"{key}: {error}")
    config_path = path or get_config_path()
    _write_config_file(config_path, {key: cleaned})
    if settings.is_env_override(key):
        logger.warning("[CONFIG] %s is set in the environment; the file value is ignored.", key)
    return cleaned


def _write_config_file(config_path: str, updates: dict[str, str]) -> None:
    config_dir = os.path.dirname(config_path)
    if config_dir:
        os.makedirs(config_dir, exist_ok=True)
    lines: list[str]
    if os.path.exists(config_path):
        with open(config_path, encoding="utf-8") as handle:
            lines = handle.read().splitlines()
    else:
        lines = [str(line) for line in CONFIG_TEMPLATE.splitlines()]

    key_indexes: dict[str, int] = {}
    for index, line in enumerate(lines):
        stripped = line.strip()
        if not stripped or ":" not in stripped:
            continue
        candidate = stripped
        if candidate.startswith("#"):
            candidate = candidate[1:].lstrip()
        key = candidate.split(":", 1)[0].strip()
        if key in updates and key not in key_indexes:
            key_indexes[key] = index

    for key, value in updates.items():
        formatted = _format_yaml_value(value)
        new_line = f"{key}: {formatted}" if value else f"# {key}:"
        if key in key_indexes:
            lines[key_indexes[key]] = new_line
        else:
            lines.append(new_line)

    with open(config_path, "w", encoding="utf-8") as handle:
        handle.write("\n".join(lines).rstrip("\n") + "\n")
    logger.info("[CONFIG] Updated %s in %s.", ", ".join(updates), config_path)


def _format_yaml_value(value: str) -> str:
    if not value:
        return ""
    needs_quotes = value[:1].isspace() or value[-1:].isspace()
    for marker in (":", "#", '"', "'"):
        if marker in value:
            needs_quotes = True
            break
    if not needs_quotes:
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f"\"{escaped}\""
