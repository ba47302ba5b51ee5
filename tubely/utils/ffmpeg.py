"""
➡️ But : Isoler les appels aux outils média externes (ffprobe / ffmpeg).

Le reste de l'application ne parle qu'à l'interface MediaToolkit :
  - probe(path)  -> StreamInfo       (dimensions du premier flux vidéo)
  - remux(path)  -> TranscodeResult  (copie "fast start" dans <path>.processing)

FFmpegToolkit en est l'implémentation par sous-processus, avec timeout.
Aucune tentative de relance : un échec remonte directement à l'appelant.
"""

import json
import logging
import os
import subprocess
from dataclasses import dataclass
from enum import Enum
from typing import List, Protocol

from tubely.core.exceptions import MediaProbeError, MediaTranscodeError

logger = logging.getLogger(__name__)

PROCESSING_SUFFIX = ".processing"


class AspectBucket(str, Enum):
    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    OTHER = "other"


@dataclass(frozen=True)
class StreamInfo:
    width: int
    height: int


@dataclass(frozen=True)
class TranscodeResult:
    path: str
    size: int


class MediaToolkit(Protocol):
    def probe(self, path: str) -> StreamInfo: ...

    def remux(self, path: str) -> TranscodeResult: ...


def classify_aspect_ratio(width: int, height: int) -> AspectBucket:
    """
    Égalité entière stricte, pas de tolérance :
    1920x1080 -> landscape, 1080x1920 -> portrait, 1920x1081 -> other.
    """
    if width == 16 * height // 9:  # 16:9
        return AspectBucket.LANDSCAPE
    if height == 16 * width // 9:  # 9:16
        return AspectBucket.PORTRAIT
    return AspectBucket.OTHER


def parse_probe_output(stdout: str, *, path: str) -> StreamInfo:
    try:
        output = json.loads(stdout)
    except json.JSONDecodeError as e:
        raise MediaProbeError("couldn't parse ffprobe output", path=path, cause=e) from e

    streams = output.get("streams") if isinstance(output, dict) else None
    if not isinstance(streams, list):
        raise MediaProbeError("couldn't parse ffprobe output: missing 'streams'", path=path)

    # les flux audio / data n'ont pas de dimensions : on prend le premier qui en a
    for stream in streams:
        if not isinstance(stream, dict):
            continue
        width, height = stream.get("width"), stream.get("height")
        if isinstance(width, int) and isinstance(height, int):
            return StreamInfo(width=width, height=height)
    raise MediaProbeError("no video streams found", path=path)


class FFmpegToolkit:
    """MediaToolkit basé sur les binaires ffprobe / ffmpeg."""

    def __init__(self, *, ffprobe_bin: str = "ffprobe", ffmpeg_bin: str = "ffmpeg", timeout: float = 300.0):
        self.ffprobe_bin = ffprobe_bin
        self.ffmpeg_bin = ffmpeg_bin
        self.timeout = timeout

    def probe_command(self, path: str) -> List[str]:
        return [
            self.ffprobe_bin,
            "-v", "error",
            "-print_format", "json",
            "-show_streams",
            path,
        ]

    def remux_command(self, path: str, output_path: str) -> List[str]:
        return [
            self.ffmpeg_bin,
            "-i", path,
            "-c", "copy",              # copie des flux, pas de ré-encodage
            "-movflags", "faststart",  # index (moov) en tête de fichier
            "-f", "mp4",
            output_path,
        ]

    def probe(self, path: str) -> StreamInfo:
        try:
            result = subprocess.run(
                self.probe_command(path),
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise MediaProbeError(f"ffprobe timed out after {self.timeout}s", path=path, cause=e) from e
        except OSError as e:
            raise MediaProbeError("couldn't run ffprobe", path=path, cause=e) from e

        if result.returncode != 0:
            raise MediaProbeError(
                f"ffprobe exited with status {result.returncode}",
                path=path,
                stderr=result.stderr,
            )
        return parse_probe_output(result.stdout, path=path)

    def remux(self, path: str) -> TranscodeResult:
        output_path = f"{path}{PROCESSING_SUFFIX}"
        logger.info("Beginning fast start encoding", extra={"input": path})
        try:
            result = subprocess.run(
                self.remux_command(path, output_path),
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise MediaTranscodeError(f"ffmpeg timed out after {self.timeout}s", path=path, cause=e) from e
        except OSError as e:
            raise MediaTranscodeError("couldn't run ffmpeg", path=path, cause=e) from e

        if result.returncode != 0:
            raise MediaTranscodeError(
                f"ffmpeg exited with status {result.returncode}",
                path=path,
                stderr=result.stderr,
            )

        try:
            size = os.stat(output_path).st_size
        except OSError as e:
            raise MediaTranscodeError("couldn't stat processed file", path=path, cause=e) from e
        if size == 0:
            raise MediaTranscodeError("processed file is empty", path=path)

        logger.info("Fast start encoding complete", extra={"output": output_path, "bytes": size})
        return TranscodeResult(path=output_path, size=size)
