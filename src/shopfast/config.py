"""Runtime configuration for shopfast.

Every setting can be overridden via a SHOPFAST_* environment variable.
Latency ranges are written as "min-max" in milliseconds.
"""

import os
import random
from collections.abc import Mapping
from dataclasses import dataclass, field

from .errors import InvalidSettingError

ENV_PREFIX = "SHOPFAST_"

DEFAULT_CORS_ORIGINS = (
    "http://localhost:5173",
    "http://localhost:3000",
    "http://127.0.0.1:5173",
    "http://127.0.0.1:3000",
)


@dataclass(frozen=True)
class LatencyRange:
    """Uniform range of simulated latency, in milliseconds."""

    min_ms: float
    max_ms: float

    def sample_ms(self, rng: random.Random) -> float:
        if self.max_ms <= self.min_ms:
            return self.min_ms
        return rng.uniform(self.min_ms, self.max_ms)

    def sample_seconds(self, rng: random.Random) -> float:
        return self.sample_ms(rng) / 1000.0

    @classmethod
    def parse(cls, name: str, raw: str) -> "LatencyRange":
        """Parse "200-1000" or a single "250"."""
        text = raw.strip()
        try:
            if "-" in text:
                low, high = text.split("-", 1)
                min_ms, max_ms = float(low), float(high)
            else:
                min_ms = max_ms = float(text)
        except ValueError:
            raise InvalidSettingError(name, raw, "expected 'min-max' in milliseconds")
        if min_ms < 0 or max_ms < min_ms:
            raise InvalidSettingError(name, raw, "range must satisfy 0 <= min <= max")
        return cls(min_ms, max_ms)


ZERO_LATENCY = LatencyRange(0, 0)


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off", ""):
        return False
    raise InvalidSettingError(name, raw, "expected a boolean")


LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def _parse_level(name: str, raw: str) -> str:
    level = raw.strip().upper()
    if level not in LOG_LEVELS:
        raise InvalidSettingError(name, raw, "expected one of " + ", ".join(LOG_LEVELS))
    return level


def _parse_ms(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise InvalidSettingError(name, raw, "expected milliseconds")
    if value < 0:
        raise InvalidSettingError(name, raw, "must not be negative")
    return value


@dataclass(frozen=True)
class Settings:
    """Application settings."""

    environment: str = "development"
    log_level: str = "INFO"
    log_json: bool = False
    confirmation_delay_ms: float = 1000
    payment_latency: LatencyRange = LatencyRange(200, 1000)
    processing_display: LatencyRange = LatencyRange(500, 1500)
    totals_latency: LatencyRange = LatencyRange(100, 400)
    featured_latency: LatencyRange = LatencyRange(50, 250)
    cors_origins: tuple[str, ...] = field(default=DEFAULT_CORS_ORIGINS)

    @property
    def confirmation_delay(self) -> float:
        """Confirmation delay in seconds."""
        return self.confirmation_delay_ms / 1000.0

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from the environment, falling back to defaults."""
        env = os.environ if environ is None else environ
        defaults = cls()

        def raw(key: str) -> str | None:
            return env.get(ENV_PREFIX + key)

        def latency(key: str, default: LatencyRange) -> LatencyRange:
            value = raw(key)
            return default if value is None else LatencyRange.parse(ENV_PREFIX + key, value)

        level = raw("LOG_LEVEL")
        log_json = raw("LOG_JSON")
        delay = raw("CONFIRMATION_DELAY_MS")
        origins = raw("CORS_ORIGINS")

        return cls(
            environment=raw("ENV") or defaults.environment,
            log_level=defaults.log_level if not level else _parse_level(ENV_PREFIX + "LOG_LEVEL", level),
            log_json=defaults.log_json if log_json is None else _parse_bool(ENV_PREFIX + "LOG_JSON", log_json),
            confirmation_delay_ms=(
                defaults.confirmation_delay_ms
                if delay is None
                else _parse_ms(ENV_PREFIX + "CONFIRMATION_DELAY_MS", delay)
            ),
            payment_latency=latency("PAYMENT_LATENCY_MS", defaults.payment_latency),
            processing_display=latency("PROCESSING_DISPLAY_MS", defaults.processing_display),
            totals_latency=latency("TOTALS_LATENCY_MS", defaults.totals_latency),
            featured_latency=latency("FEATURED_LATENCY_MS", defaults.featured_latency),
            cors_origins=(
                defaults.cors_origins
                if origins is None
                else tuple(o.strip() for o in origins.split(",") if o.strip())
            ),
        )
