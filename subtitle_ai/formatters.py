"""SubRip (SRT) rendering for recognized segments."""

from collections.abc import Iterable
from pathlib import Path

from .types import Segment

SRT_EXTENSION = ".srt"


def format_timestamp_srt(seconds: float) -> str:
    """Format seconds as SRT timestamp: HH:MM:SS,mmm (comma for milliseconds).

    Hours are total hours and are not wrapped at 24.
    """
    total_ms = max(0, round(seconds * 1000))
    hours, remainder = divmod(total_ms, 3_600_000)
    minutes, remainder = divmod(remainder, 60_000)
    secs, millis = divmod(remainder, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{millis:03d}"


def format_srt(segments: Iterable[Segment]) -> str:
    """
    Format segments as an SRT (SubRip) document.

    Each entry is four lines (index, time range, text, blank) and every line
    ends with ``\\n``. The text is inserted verbatim. No segments yields an
    empty string.

    Returns:
        SRT formatted string
    """
    lines = []
    for i, segment in enumerate(segments, start=1):
        start_ts = format_timestamp_srt(segment.start)
        end_ts = format_timestamp_srt(segment.end)
        lines.append(str(i))
        lines.append(f"{start_ts} --> {end_ts}")
        lines.append(segment.text)
        lines.append("")  # Blank line between cues
    return "".join(f"{line}\n" for line in lines)


def subtitle_path_for(media_path: Path) -> Path:
    """Return the subtitle path beside ``media_path`` (extension replaced)."""
    return media_path.with_suffix(SRT_EXTENSION)


def write_srt(segments: Iterable[Segment], out_file: Path) -> Path:
    """Render ``segments`` and write them to ``out_file`` as UTF-8."""
    content = format_srt(segments)
    # newline="" keeps "\n" on every platform
    with open(out_file, "w", encoding="utf-8", newline="") as f:
        f.write(content)
    return out_file
