"""Error types surfaced by the CLI.

Every error carries a short title and a body; :meth:`CliError.friendly`
renders both as Rich markup with optional hints so the entrypoint can print a
consistent message before exiting non-zero.
"""

from __future__ import annotations

DASHBOARD_KEYS_URL = "https://dashboard.allscreenshots.com/api-keys"
DASHBOARD_BILLING_URL = "https://dashboard.allscreenshots.com/billing"


class CliError(Exception):
    title = "Error!"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def hints(self) -> list[str]:
        return []

    def friendly(self) -> str:
        lines = [f"[bold red]{self.title}[/]", "", f"[yellow]{self.message}[/]"]
        hints = self.hints()
        if hints:
            lines.append("")
            lines.extend(f"  [dim]{hint}[/]" for hint in hints)
        return "\n".join(lines)


class MissingCredentialError(CliError):
    title = "No API key found!"

    def __init__(self, message: str = "You can provide your API key in one of these ways:") -> None:
        super().__init__(message)

    def hints(self) -> list[str]:
        return [
            "1. Pass --api-key <key>",
            "2. Set the ALLSCREENSHOTS_API_KEY environment variable",
            "3. Run: allscreenshots config add-authtoken <your-key>",
            f"Get your API key at: {DASHBOARD_KEYS_URL}",
        ]


class InvalidOptionError(CliError):
    title = "Invalid input!"

    def __init__(self, message: str, *, option: str | None = None) -> None:
        super().__init__(message)
        self.option = option


class ApiError(CliError):
    """A non-2xx response from the screenshot service."""

    def __init__(self, status: int, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.code = code

    @property
    def title(self) -> str:  # type: ignore[override]
        if self.status == 401:
            return "Authentication failed!"
        if self.status == 429:
            return "Rate limit exceeded!"
        if self.status in (400, 422):
            return "Invalid request!"
        if self.status == 404:
            return "Resource not found!"
        return f"API Error (HTTP {self.status})"

    def hints(self) -> list[str]:
        if self.status == 401:
            return [f"Check your key at: {DASHBOARD_KEYS_URL}"]
        if self.status == 429:
            return ["Please wait a moment and try again.", f"Upgrade your plan for higher limits: {DASHBOARD_BILLING_URL}"]
        return []

    def __str__(self) -> str:
        return f"HTTP {self.status}: {self.message}"


class NetworkError(CliError):
    def __init__(self, message: str, *, timeout: bool = False) -> None:
        super().__init__(message)
        self.timeout = timeout

    @property
    def title(self) -> str:  # type: ignore[override]
        return "Request timed out!" if self.timeout else "Connection failed!"

    def hints(self) -> list[str]:
        if self.timeout:
            return ["The server took too long to respond. Try again later."]
        return ["Check your internet connection and try again."]


class FileAccessError(CliError):
    title = "File error!"


class ConfigFileError(CliError):
    title = "Configuration error!"


class RenderError(CliError):
    title = "Failed to display image!"

    def hints(self) -> list[str]:
        return ["Try using --no-display to skip terminal display"]


class JobFailedError(CliError):
    title = "Screenshot job failed!"

    def __init__(self, job_id: str, message: str) -> None:
        super().__init__(message)
        self.job_id = job_id


class JobTimeoutError(CliError):
    title = "Job did not finish in time!"

    def __init__(self, job_id: str, waited: float) -> None:
        super().__init__(f"Job {job_id} still pending after {waited:.0f}s.")
        self.job_id = job_id
        self.waited = waited

    def hints(self) -> list[str]:
        return [f"Check on it later with: allscreenshots jobs get {self.job_id}"]
