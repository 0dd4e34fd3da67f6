from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    # Where the availability document lives
    data_file: str = "camp.json"

    host: str = "0.0.0.0"
    port: int = 5000
    log_level: str = "INFO"

    # Fail with AmbiguousLookup instead of picking the first doctor with a shared name.
    strict_lookup: bool = True
    # Mask patient email/mobile in read views.
    redact_patient_info: bool = False


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() not in _FALSE_VALUES


def _int(name: str, default: str) -> int:
    raw = os.getenv(name, default)
    try:
        return int(raw)
    except ValueError as e:
        raise RuntimeError(f"Invalid {name} value: {raw!r}. Expected an integer.") from e


def load_settings(dotenv_path: str | None = None) -> Settings:
    # Prefer .env in repo root; dotenv_path allows overriding in tests.
    load_dotenv(dotenv_path=dotenv_path, override=False)

    port = _int("PORT", "5000")
    if not 0 < port < 65536:
        raise RuntimeError(f"Invalid PORT value: {port}. Expected 1-65535.")

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise RuntimeError(f"Invalid LOG_LEVEL value: {log_level!r}")

    return Settings(
        data_file=os.getenv("DATA_FILE", "camp.json"),
        host=os.getenv("HOST", "0.0.0.0"),
        port=port,
        log_level=log_level,
        strict_lookup=_flag("STRICT_DOCTOR_LOOKUP", "1"),
        redact_patient_info=_flag("REDACT_PATIENT_INFO", "0"),
    )
