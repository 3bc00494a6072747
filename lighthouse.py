import hashlib
import logging
import os
import re
import subprocess
import time
from dataclasses import dataclass
from typing import Callable, List, Optional
from urllib.parse import urlparse

from browser import DEBUG_HOST, DEBUG_PORT, BrowserEndpoint
from config import AuditConfig

logger = logging.getLogger(__name__)

PORT_RE = re.compile(r":(\d+)/")
SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.\-]*://", re.IGNORECASE)
UNSAFE_RE = re.compile(r"[^A-Za-z0-9]")
PLACEHOLDER = "_"
MAX_NAME_LENGTH = 100


@dataclass(frozen=True)
class AuditResult:
    target: str
    succeeded: bool
    output_path: Optional[str] = None
    error: Optional[str] = None
    duration: float = 0.0

    @classmethod
    def ok(cls, target: str, output_path: str, duration: float = 0.0) -> "AuditResult":
        return cls(target=target, succeeded=True, output_path=output_path, duration=duration)

    @classmethod
    def failed(cls, target: str, error: str, duration: float = 0.0) -> "AuditResult":
        return cls(target=target, succeeded=False, error=error or "Unknown error", duration=duration)


def sha8(s: str) -> str:
    return hashlib.sha256(s.encode("utf-8")).hexdigest()[:8]


def report_filename(target: str, output_format: str) -> str:
    """
    Deterministic report file name for a target.

    "https://example.com/a?b=1" -> "example_com_a_b_1_<sha8>.json". The readable
    part drops the scheme and punctuation, so the digest of the full target is
    what keeps "http://a.com" and "https://a.com" in separate files.
    """
    name = UNSAFE_RE.sub(PLACEHOLDER, SCHEME_RE.sub("", target))
    name = name[: MAX_NAME_LENGTH - 9] + PLACEHOLDER + sha8(target)
    return f"{name}.{output_format}"


def report_path(target: str, config: AuditConfig) -> str:
    if config.output_path:
        return config.output_path
    return os.path.join(config.output_dir, report_filename(target, config.output_format))


def debugging_port(address: str) -> int:
    m = PORT_RE.search(address or "")
    return int(m.group(1)) if m else DEBUG_PORT


def debugging_host(address: str) -> str:
    return urlparse(address or "").hostname or DEBUG_HOST


def build_command(target: str, endpoint: BrowserEndpoint, config: AuditConfig, output_path: str) -> List[str]:
    cmd = [
        config.lighthouse_path,
        target,
        f"--output={config.output_format}",
        f"--output-path={output_path}",
        f"--hostname={debugging_host(endpoint.address)}",
        f"--port={debugging_port(endpoint.address)}",
        f"--throttling-method={config.throttling_method}",
        "--chrome-flags=--headless",
    ]
    if config.categories:
        cmd.append(f"--only-categories={config.categories}")
    return cmd


def invoke(
    target: str,
    endpoint: BrowserEndpoint,
    config: AuditConfig,
    run: Callable[..., subprocess.CompletedProcess] = subprocess.run,
) -> AuditResult:
    """
    Run Lighthouse against one target. Every outcome, including a crash while
    spawning the process, comes back as an AuditResult.
    """
    output_path = report_path(target, config)
    cmd = build_command(target, endpoint, config, output_path)
    start = time.perf_counter()

    def elapsed() -> float:
        return round(time.perf_counter() - start, 2)

    # A report left by an earlier run must not pass for this one
    try:
        os.remove(output_path)
    except FileNotFoundError:
        pass
    except OSError as e:
        return AuditResult.failed(target, f"Cannot replace existing report {output_path}: {e}", elapsed())

    logger.info("Running: %s", " ".join(cmd))
    try:
        proc = run(cmd, capture_output=True, text=True, timeout=config.timeout)
    except subprocess.TimeoutExpired as e:
        return AuditResult.failed(target, f"Lighthouse timed out after {e.timeout}s", elapsed())
    except Exception as e:
        return AuditResult.failed(target, f"Failed to run Lighthouse: {e}", elapsed())

    if proc.returncode != 0:
        detail = (proc.stderr or "").strip() or (proc.stdout or "").strip()
        error = f"Lighthouse exited with code {proc.returncode}"
        if detail:
            error = f"{error}: {detail}"
        return AuditResult.failed(target, error, elapsed())

    if not os.path.exists(output_path):
        return AuditResult.failed(target, f"Output file not created: {output_path}", elapsed())

    return AuditResult.ok(target, output_path, elapsed())


def lighthouse_version(path: str, run: Callable[..., subprocess.CompletedProcess] = subprocess.run) -> str:
    cmd = [path, "--version"]
    try:
        proc = run(cmd, capture_output=True, text=True, timeout=60)
    except (OSError, subprocess.TimeoutExpired) as e:
        raise RuntimeError(f"Lighthouse is not runnable ({' '.join(cmd)}): {e}") from e

    if proc.returncode != 0:
        raise RuntimeError(
            "Lighthouse check failed.\n\n"
            f"Command: {' '.join(cmd)}\n\n"
            f"STDOUT:\n{proc.stdout}\n\n"
            f"STDERR:\n{proc.stderr}\n"
        )
    return proc.stdout.strip()
