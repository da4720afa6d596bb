"""Exception hierarchy for audiobook manifest building.

"Not an audiobook" is never an exception: parsers return None for that.
"""


class ManifestBuildError(Exception):
    """Base exception for all manifest building errors."""


class ResourceError(ManifestBuildError):
    """A resource could not be located or read from its bundle."""

    def __init__(self, message: str, href: str | None = None) -> None:
        super().__init__(message)
        self.href = href


class ExternalToolError(ManifestBuildError):
    """An external subprocess (ffprobe, ffmpeg) failed."""

    def __init__(self, tool: str, exit_code: int, stderr: str) -> None:
        super().__init__(f"{tool} exited with code {exit_code}: {stderr}")
        self.tool = tool
        self.exit_code = exit_code
        self.stderr = stderr
