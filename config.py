import os
from dataclasses import dataclass
from typing import Any, Optional

from dotenv import load_dotenv

from errors import InvalidInputError, OutputDirectoryError

load_dotenv()

FORMATS = ("json", "html")
DEFAULT_FORMAT = "json"
DEFAULT_CONCURRENCY = 3
DEFAULT_OUTPUT_DIR = "reports"
DEFAULT_LIGHTHOUSE = "lighthouse"
THROTTLING_METHOD = "provided"


@dataclass(frozen=True)
class AuditConfig:
    output_dir: str = DEFAULT_OUTPUT_DIR
    output_path: Optional[str] = None
    output_format: str = DEFAULT_FORMAT
    categories: Optional[str] = None
    chrome_endpoint: Optional[str] = None
    concurrency: int = DEFAULT_CONCURRENCY
    lighthouse_path: str = DEFAULT_LIGHTHOUSE
    timeout: Optional[float] = None
    throttling_method: str = THROTTLING_METHOD


def parse_concurrency(value: Any, default: int = DEFAULT_CONCURRENCY) -> int:
    # Bad values fall back to the default instead of failing the run
    if isinstance(value, bool):
        return default
    try:
        n = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return n if n > 0 else default


def _parse_timeout(value: Any) -> Optional[float]:
    if value is None or str(value).strip() == "":
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Invalid timeout: {value!r} (expected seconds)")
    if seconds <= 0:
        raise InvalidInputError(f"Invalid timeout: {value!r} (must be greater than zero)")
    return seconds


def _clean_categories(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    parts = [c.strip() for c in value.split(",") if c.strip()]
    return ",".join(parts) or None


def config_from_env(**overrides: Any) -> AuditConfig:
    """
    Build the run configuration from the environment (and .env), with explicit
    overrides taking precedence. Overrides that are None are ignored.
    """
    values = {
        "output_dir": os.environ.get("AUDIT_OUTPUT_DIR", DEFAULT_OUTPUT_DIR),
        "output_path": None,
        "output_format": DEFAULT_FORMAT,
        "categories": None,
        "chrome_endpoint": os.environ.get("CHROME_ENDPOINT") or None,
        "concurrency": os.environ.get("AUDIT_CONCURRENCY", DEFAULT_CONCURRENCY),
        "lighthouse_path": os.environ.get("LIGHTHOUSE_PATH", DEFAULT_LIGHTHOUSE),
        "timeout": os.environ.get("AUDIT_TIMEOUT"),
    }
    values.update({k: v for k, v in overrides.items() if v is not None})

    fmt = str(values["output_format"]).strip().lower()
    if fmt not in FORMATS:
        raise InvalidInputError(
            f"Unsupported output format: {values['output_format']!r}",
            remedy=f"Use one of: {', '.join(FORMATS)}",
        )

    output_path = values["output_path"]
    if output_path:
        output_path = os.path.abspath(output_path)

    return AuditConfig(
        output_dir=os.path.abspath(values["output_dir"]),
        output_path=output_path,
        output_format=fmt,
        categories=_clean_categories(values["categories"]),
        chrome_endpoint=values["chrome_endpoint"],
        concurrency=parse_concurrency(values["concurrency"]),
        lighthouse_path=values["lighthouse_path"],
        timeout=_parse_timeout(values["timeout"]),
    )


def prepare_output_dir(config: AuditConfig) -> str:
    """
    Create the directory reports will be written to and check that it is
    writable. Returns the directory.
    """
    out_dir = os.path.dirname(config.output_path) if config.output_path else config.output_dir
    try:
        os.makedirs(out_dir, exist_ok=True)
    except OSError as e:
        raise OutputDirectoryError(
            f"Cannot create output directory {out_dir}: {e.strerror or e}",
            remedy=f"mkdir -p {out_dir} && chmod u+w {out_dir}",
        )

    if not os.path.isdir(out_dir):
        raise OutputDirectoryError(f"Output location is not a directory: {out_dir}")

    if not os.access(out_dir, os.W_OK):
        raise OutputDirectoryError(
            f"Output directory is not writable: {out_dir}",
            remedy=f"sudo chown -R $USER {out_dir} && chmod u+w {out_dir}",
        )
    return out_dir
