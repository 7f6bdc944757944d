"""Configuration Module.

Builds an immutable ``Settings`` object from environment variables (and an
optional ``.env`` file). Settings are loaded once at process start and passed
down to every component.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Dict, Mapping, Optional

from dotenv import load_dotenv

from certgen.errors import ConfigError

PROJECT_ROOT = Path(__file__).resolve().parents[1]

REQUIRED_VARS = ("AIRTABLE_API_KEY", "AIRTABLE_BASE_ID", "AIRTABLE_TABLE_NAME")

NAMING_STRATEGIES = ("record_id", "name")


@dataclass(frozen=True)
class FieldMap:
    """Airtable column names the pipeline reads and writes."""

    status: str = "PDF Status"
    participant: str = "Participant Full Name"
    achievement: str = "Achievement level"
    attachment: str = "PDF Attachment"
    programme: str = "Programme name (from 📺 Programmes)"
    certificate_image: str = "Certificate image (from 📺 Programmes)"
    display_id: str = "RecordID"
    pending_status: str = "Generate PDF"
    done_status: str = "PDF Generated"


@dataclass(frozen=True)
class Settings:
    airtable_api_key: str
    airtable_base_id: str
    airtable_table_name: str
    fields: FieldMap = field(default_factory=FieldMap)
    drive_folder_id: Optional[str] = None
    upload_enabled: bool = False
    service_account_file: str = "service_account.json"
    output_dir: str = "certificates"
    file_naming: str = "record_id"
    poll_interval: float = 60.0
    fetch_timeout: float = 30.0
    margin: int = 80
    font_regular_path: Optional[str] = None
    font_bold_path: Optional[str] = None
    font_size: Optional[int] = None
    text_color: str = "#000000"
    log_level: str = "INFO"
    log_file: Optional[str] = None
    admin_key: str = ""


def as_abs(path_str: str) -> str:
    # Allow Windows-style env var paths (e.g., "out\\certs") even on Linux.
    normalized = (path_str or "").replace("\\", "/")
    p = Path(normalized)
    if not p.is_absolute():
        p = PROJECT_ROOT / p
    return str(p)


def _get(env: Mapping[str, str], name: str, default: str = "") -> str:
    return (env.get(name) or default).strip()


def _number(env: Mapping[str, str], name: str, default: float, cast=float):
    raw = _get(env, name)
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


def _flag(env: Mapping[str, str], name: str) -> Optional[bool]:
    raw = _get(env, name).lower()
    if not raw:
        return None
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"{name} must be a boolean flag, got {raw!r}")


def _field_map(env: Mapping[str, str]) -> FieldMap:
    defaults = FieldMap()
    overrides: Dict[str, str] = {}
    for attr in (f.name for f in fields(FieldMap)):
        if attr.endswith("_status"):
            var = f"AIRTABLE_{attr.upper()}"
        else:
            var = f"AIRTABLE_FIELD_{attr.upper()}"
        value = _get(env, var)
        if value:
            overrides[attr] = value
    return replace(defaults, **overrides)


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Load settings from ``env`` (defaults to the process environment).

    Raises:
        ConfigError: If a required variable is missing or a value is invalid
    """
    if env is None:
        load_dotenv()
        env = os.environ

    missing = [name for name in REQUIRED_VARS if not _get(env, name)]
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

    drive_folder_id = _get(env, "DRIVE_FOLDER_ID") or None
    upload_enabled = _flag(env, "CERT_UPLOAD_ENABLED")
    if upload_enabled is None:
        upload_enabled = drive_folder_id is not None
    if upload_enabled and not drive_folder_id:
        raise ConfigError("CERT_UPLOAD_ENABLED is set but DRIVE_FOLDER_ID is missing")

    naming = _get(env, "CERT_FILE_NAMING", "record_id").lower()
    if naming not in NAMING_STRATEGIES:
        raise ConfigError(f"CERT_FILE_NAMING must be one of {', '.join(NAMING_STRATEGIES)}, got {naming!r}")

    font_size = _get(env, "CERT_FONT_SIZE")

    return Settings(
        airtable_api_key=_get(env, "AIRTABLE_API_KEY"),
        airtable_base_id=_get(env, "AIRTABLE_BASE_ID"),
        airtable_table_name=_get(env, "AIRTABLE_TABLE_NAME"),
        fields=_field_map(env),
        drive_folder_id=drive_folder_id,
        upload_enabled=upload_enabled,
        service_account_file=as_abs(_get(env, "GOOGLE_SERVICE_ACCOUNT_FILE", "service_account.json")),
        output_dir=as_abs(_get(env, "CERT_OUTPUT_DIR", "certificates")),
        file_naming=naming,
        poll_interval=_number(env, "CERT_POLL_INTERVAL", 60.0),
        fetch_timeout=_number(env, "CERT_FETCH_TIMEOUT", 30.0),
        margin=_number(env, "CERT_MARGIN_PX", 80, cast=int),
        font_regular_path=_get(env, "CERT_FONT_REGULAR_PATH") or None,
        font_bold_path=_get(env, "CERT_FONT_BOLD_PATH") or None,
        font_size=_number(env, "CERT_FONT_SIZE", 0, cast=int) if font_size else None,
        text_color=_get(env, "CERT_TEXT_COLOR", "#000000"),
        log_level=_get(env, "LOG_LEVEL", "INFO").upper(),
        log_file=_get(env, "LOG_FILE") or None,
        admin_key=_get(env, "ADMIN_KEY"),
    )
