from __future__ import annotations

import json
import logging
import os
import time
from typing import Any, Callable, Dict, Iterable, List, Optional


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(message)s",
    )


def read_jsonl(path: str) -> List[Dict[str, Any]]:
    """Read one file, or every ``.jsonl`` file of a directory in name order.

    Malformed lines are skipped with a warning.
    """
    if os.path.isdir(path):
        out: List[Dict[str, Any]] = []
        for fn in sorted(os.listdir(path)):
            if fn.lower().endswith(".jsonl"):
                out.extend(read_jsonl(os.path.join(path, fn)))
        return out

    out = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            s = line.strip()
            if not s:
                continue
            try:
                out.append(json.loads(s))
            except json.JSONDecodeError as e:
                logging.warning("Skipping malformed line: %s | %s", s[:120], e)
    return out


def write_jsonl(path: str, rows: Iterable[Dict[str, Any]]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        for row in rows:
            f.write(json.dumps(row, ensure_ascii=False) + "\n")


def getenv_int(key: str, default: int) -> int:
    try:
        return int(os.getenv(key, str(default)))
    except ValueError:
        return default


def getenv_optional_int(key: str) -> Optional[int]:
    raw = os.getenv(key)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def getenv_float(key: str, default: float) -> float:
    try:
        return float(os.getenv(key, str(default)))
    except ValueError:
        return default


def getenv_bool(key: str, default: bool) -> bool:
    raw = os.getenv(key)
    if raw is None:
        return default
    return raw.strip() not in {"", "0", "false", "False", "no"}


def retry_with_backoff(
    max_retries: int = 2,
    initial_delay: float = 0.5,
    backoff_factor: float = 2.0,
    should_retry: Optional[Callable[[Exception], bool]] = None,
):
    """Retry decorator for transient backend errors.

    ``should_retry`` decides whether a failure is worth another attempt; an
    error it rejects is raised at once.
    """
    def decorator(func: Callable):
        def wrapper(*args, **kwargs):
            last_exc: Exception | None = None
            delay = initial_delay
            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except Exception as e:  # noqa: BLE001 - surface backend errors
                    last_exc = e
                    if should_retry is not None and not should_retry(e):
                        raise
                    if attempt < max_retries:
                        logging.warning(
                            "Classifier request failed, retry %d in %.1fs: %s",
                            attempt + 1,
                            delay,
                            str(e),
                        )
                        time.sleep(delay)
                        delay *= backoff_factor
                    else:
                        logging.error("Classifier request exhausted retries: %s", str(e))
            if last_exc is None:
                raise ValueError("max_retries must not be negative")
            raise last_exc
        return wrapper
    return decorator
