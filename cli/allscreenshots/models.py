"""Request and response types exchanged with the screenshot service."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .errors import InvalidOptionError
from .utils import normalize_url

IMAGE_FORMATS: tuple[str, ...] = ("png", "jpeg", "webp", "pdf")
WAIT_UNTIL_EVENTS: tuple[str, ...] = ("load", "domcontentloaded", "networkidle", "commit")
BLOCK_LEVELS: tuple[str, ...] = ("none", "light", "normal", "pro", "pro_plus", "ultimate")
MAX_DELAY_MS = 30_000


@dataclass(frozen=True, slots=True)
class DevicePreset:
    name: str
    width: int
    height: int
    category: str

    @property
    def resolution(self) -> str:
        return f"{self.width}x{self.height}"


DEVICE_PRESETS: tuple[DevicePreset, ...] = (
    DevicePreset("Desktop HD", 1920, 1080, "Desktop"),
    DevicePreset("Desktop", 1440, 900, "Desktop"),
    DevicePreset("Laptop", 1366, 768, "Desktop"),
    DevicePreset("Tablet Landscape", 1024, 768, "Tablet"),
    DevicePreset("Tablet Portrait", 768, 1024, "Tablet"),
    DevicePreset("iPad Pro 12.9", 1024, 1366, "Tablet"),
    DevicePreset("iPad Pro 11", 834, 1194, "Tablet"),
    DevicePreset("iPad", 820, 1180, "Tablet"),
    DevicePreset("iPad Mini", 744, 1133, "Tablet"),
    DevicePreset("iPhone 14 Pro Max", 430, 932, "Mobile"),
    DevicePreset("iPhone 14 Pro", 393, 852, "Mobile"),
    DevicePreset("iPhone 14", 390, 844, "Mobile"),
    DevicePreset("iPhone SE", 375, 667, "Mobile"),
    DevicePreset("Android Large", 412, 915, "Mobile"),
    DevicePreset("Android Medium", 393, 873, "Mobile"),
    DevicePreset("Android Small", 360, 800, "Mobile"),
)


def find_device(name: str) -> DevicePreset | None:
    wanted = name.strip().lower()
    return next((preset for preset in DEVICE_PRESETS if preset.name.lower() == wanted), None)


def _choice(value: str, choices: tuple[str, ...], label: str, option: str) -> str:
    lowered = value.strip().lower()
    if lowered not in choices:
        raise InvalidOptionError(f"Invalid {label} '{value}'. Use: {', '.join(choices)}", option=option)
    return lowered


def parse_format(value: str, *, allowed: tuple[str, ...] = IMAGE_FORMATS) -> str:
    lowered = value.strip().lower()
    if lowered == "jpg":
        lowered = "jpeg"
    return _choice(lowered, allowed, "format", "--format")


def parse_wait_until(value: str) -> str:
    return _choice(value, WAIT_UNTIL_EVENTS, "wait-until", "--wait-until")


def parse_block_level(value: str) -> str:
    lowered = value.strip().lower().replace("proplus", "pro_plus")
    return _choice(lowered, BLOCK_LEVELS, "block-level", "--block-level")


def validate_quality(quality: int | None) -> int | None:
    if quality is not None and not 1 <= quality <= 100:
        raise InvalidOptionError(f"Quality must be between 1 and 100 (got {quality}).", option="--quality")
    return quality


@dataclass(frozen=True, slots=True)
class CaptureRequest:
    """One screenshot capture, validated on construction."""

    url: str
    device: str | None = None
    width: int | None = None
    height: int | None = None
    format: str = "png"
    quality: int | None = None
    full_page: bool = False
    dark_mode: bool = False
    delay: int | None = None
    wait_until: str | None = None
    wait_for: str | None = None
    selector: str | None = None
    block_ads: bool = False
    block_cookies: bool = False
    block_level: str | None = None
    custom_css: str | None = None

    def __post_init__(self) -> None:
        if self.format not in IMAGE_FORMATS:
            raise InvalidOptionError(f"Invalid format '{self.format}'. Use: {', '.join(IMAGE_FORMATS)}", option="--format")
        validate_quality(self.quality)
        for name in ("width", "height"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise InvalidOptionError(f"--{name} must be a positive number of pixels.", option=f"--{name}")
        if self.device and (self.width is not None or self.height is not None):
            raise InvalidOptionError("Use either --device or --width/--height, not both.", option="--device")
        if self.delay is not None and not 0 <= self.delay <= MAX_DELAY_MS:
            raise InvalidOptionError(f"Delay must be between 0 and {MAX_DELAY_MS} ms.", option="--delay")
        if self.wait_until is not None and self.wait_until not in WAIT_UNTIL_EVENTS:
            raise InvalidOptionError(f"Invalid wait-until '{self.wait_until}'.", option="--wait-until")
        if self.block_level is not None and self.block_level not in BLOCK_LEVELS:
            raise InvalidOptionError(f"Invalid block-level '{self.block_level}'.", option="--block-level")

    @classmethod
    def create(
        cls,
        url: str,
        *,
        format: str = "png",
        device: str | None = None,
        wait_until: str | None = None,
        block_level: str | None = None,
        **options: Any,
    ) -> CaptureRequest:
        """Normalise user-facing values (URL, aliases, casing) and build the request."""
        preset = find_device(device) if device else None
        return cls(
            url=normalize_url(url),
            format=parse_format(format),
            device=preset.name if preset else device,
            wait_until=parse_wait_until(wait_until) if wait_until else None,
            block_level=parse_block_level(block_level) if block_level else None,
            **options,
        )

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"url": self.url, "format": self.format}
        if self.device:
            payload["device"] = self.device
        if self.width is not None or self.height is not None:
            viewport = {"width": self.width, "height": self.height}
            payload["viewport"] = {key: value for key, value in viewport.items() if value is not None}
        optional = {
            "quality": self.quality,
            "delay": self.delay,
            "waitUntil": self.wait_until,
            "waitFor": self.wait_for,
            "selector": self.selector,
            "blockLevel": self.block_level,
            "customCss": self.custom_css,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        flags = {
            "fullPage": self.full_page,
            "darkMode": self.dark_mode,
            "blockAds": self.block_ads,
            "blockCookieBanners": self.block_cookies,
        }
        payload.update({key: True for key, value in flags.items() if value})
        return payload


class JobState(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (JobState.DONE, JobState.FAILED, JobState.CANCELLED)

    @classmethod
    def from_wire(cls, value: str) -> JobState:
        try:
            return _WIRE_STATES[value.strip().upper()]
        except KeyError as exc:
            raise ValueError(f"Unknown job status '{value}'") from exc


_WIRE_STATES = {
    "QUEUED": JobState.QUEUED,
    "PENDING": JobState.QUEUED,
    "PROCESSING": JobState.RUNNING,
    "RUNNING": JobState.RUNNING,
    "COMPLETED": JobState.DONE,
    "DONE": JobState.DONE,
    "FAILED": JobState.FAILED,
    "CANCELLED": JobState.CANCELLED,
    "CANCELED": JobState.CANCELLED,
}


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Job(ApiModel):
    id: str
    status: str
    url: str | None = None
    status_url: str | None = None
    result_url: str | None = None
    error_code: str | None = None
    error_message: str | None = None
    created_at: str | None = None
    started_at: str | None = None
    completed_at: str | None = None
    expires_at: str | None = None

    @property
    def state(self) -> JobState:
        return JobState.from_wire(self.status)


class UsagePeriod(ApiModel):
    period_start: str | None = None
    period_end: str | None = None
    screenshots_count: int = 0
    bandwidth_formatted: str | None = None


class ScreenshotQuota(ApiModel):
    used: int = 0
    limit: int = 0
    remaining: int = 0
    percent_used: float = 0.0


class BandwidthQuota(ApiModel):
    used_bytes: int = 0
    limit_bytes: int = 0
    used_formatted: str | None = None
    limit_formatted: str | None = None
    percent_used: float = 0.0


class Quota(ApiModel):
    screenshots: ScreenshotQuota = Field(default_factory=ScreenshotQuota)
    bandwidth: BandwidthQuota | None = None
    reset_date: str | None = None


class UsageTotals(ApiModel):
    screenshots_count: int = 0
    bandwidth_formatted: str | None = None


class UsageSnapshot(ApiModel):
    tier: str = "unknown"
    current_period: UsagePeriod = Field(default_factory=UsagePeriod)
    quota: Quota | None = None
    totals: UsageTotals | None = None

    @property
    def used(self) -> int:
        if self.quota is not None:
            return self.quota.screenshots.used
        return self.current_period.screenshots_count

    @property
    def limit(self) -> int | None:
        return self.quota.screenshots.limit if self.quota is not None else None

    @property
    def reset_date(self) -> str | None:
        if self.quota is not None and self.quota.reset_date:
            return self.quota.reset_date
        return self.current_period.period_end


class Schedule(ApiModel):
    id: str
    name: str
    url: str
    schedule: str
    schedule_description: str | None = None
    timezone: str | None = None
    status: str = "ACTIVE"
    next_execution_at: str | None = None
    last_executed_at: str | None = None
    execution_count: int | None = None
    success_count: int | None = None
    failure_count: int | None = None
    retention_days: int | None = None
    webhook_url: str | None = None
    created_at: str | None = None


class ScheduleExecution(ApiModel):
    id: str | None = None
    executed_at: str
    status: str
    result_url: str | None = None
    error_message: str | None = None
    render_time_ms: int | None = None


class ScheduleHistory(ApiModel):
    total_executions: int = 0
    executions: list[ScheduleExecution] = Field(default_factory=list)
