"""Playback of PCM WAVE sound effects on a background thread."""

from __future__ import annotations

import logging
import struct
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

log = logging.getLogger(__name__)

# Only this much of a file is searched for the header chunks.
_HEADER_LIMIT = 1024 * 1024 * 100
# Frames handed to the sink in one piece.
_CHUNK_FRAMES = 1024

_FMT_LAYOUT = struct.Struct("<IHHIIHH")
_SAMPLE_FORMATS = {8: "U8", 16: "S16_LE", 32: "U32_LE"}


class SoundError(Exception):
    """A sound file cannot be read or is in an unsupported format."""


@dataclass(frozen=True)
class WaveFormat:
    """The format chunk of a WAVE file and where its sample data lies."""

    size: int
    format_tag: int
    channels: int
    samples_per_sec: int
    avg_bytes_per_sec: int
    block_align: int
    bits_per_sample: int
    data_start: int
    data_size: int

    @property
    def samples(self) -> int:
        """Number of frames in the data chunk."""
        return self.data_size // self.block_align

    @property
    def bits_per_frame(self) -> int:
        return self.bits_per_sample * self.channels

    @property
    def sample_format(self) -> str:
        return _SAMPLE_FORMATS[self.bits_per_sample]


def parse_wave(data: bytes) -> WaveFormat:
    """Read the format and data position from the bytes of a WAVE file."""
    if data.find(b"RIFF") < 0:
        raise SoundError("RIFF marker not found")
    if data.find(b"WAVE") < 0:
        raise SoundError("WAVE marker not found")
    pos = data.find(b"fmt")
    if pos < 0:
        raise SoundError("fmt marker not found")
    pos += 4
    if len(data) < pos + _FMT_LAYOUT.size:
        raise SoundError("fmt chunk is truncated")
    size, tag, channels, rate, avg, align, bits = _FMT_LAYOUT.unpack_from(data, pos)

    pos = data.find(b"data", pos)
    if pos < 0:
        raise SoundError("data marker not found")
    pos += 4
    if len(data) < pos + 4:
        raise SoundError("data chunk is truncated")
    (data_size,) = struct.unpack_from("<I", data, pos)

    if bits not in _SAMPLE_FORMATS:
        raise SoundError(f"unsupported format: {bits} bits per sample")
    if align == 0:
        raise SoundError("block alignment is zero")

    return WaveFormat(
        size=size,
        format_tag=tag,
        channels=channels,
        samples_per_sec=rate,
        avg_bytes_per_sec=avg,
        block_align=align,
        bits_per_sample=bits,
        data_start=pos + 4,
        data_size=data_size,
    )


Sink = Callable[[WaveFormat, bytes], None]


class Sound:
    """A sound effect that streams its samples to a sink on its own thread.

    The sink is called with the format and each chunk of raw sample bytes.
    Without a sink the samples are read and dropped.
    """

    def __init__(self, path: str | Path | None = None, sink: Optional[Sink] = None):
        self.path = Path(path) if path is not None else None
        self.sink = sink
        self.format: WaveFormat | None = None
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        if self.path is not None:
            self._load()

    @property
    def loaded(self) -> bool:
        return self.format is not None

    @property
    def playing(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _load(self) -> bool:
        self.format = None
        try:
            with open(self.path, "rb") as fh:
                header = fh.read(_HEADER_LIMIT)
        except OSError as exc:
            log.debug("Cannot open media file %s: %s", self.path, exc)
            return False
        try:
            self.format = parse_wave(header)
        except SoundError as exc:
            log.debug("Cannot load %s: %s", self.path, exc)
            return False
        return True

    def play(self) -> None:
        """Start playing unless there is no file or it is already playing."""
        if self.path is None or self.playing:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Ask a running playback to stop after the current chunk."""
        self._stop.set()

    def wait(self) -> None:
        """Block until the current playback has finished."""
        if self._thread is not None:
            self._thread.join()

    def _run(self) -> None:
        if self.format is None and not self._load():
            return
        fmt = self.format
        chunk_bytes = _CHUNK_FRAMES * fmt.block_align
        try:
            with open(self.path, "rb") as fh:
                fh.seek(fmt.data_start)
                remaining = fmt.data_size
                while remaining > 0 and not self._stop.is_set():
                    chunk = fh.read(min(chunk_bytes, remaining))
                    if not chunk:
                        break
                    remaining -= len(chunk)
                    if self.sink is not None:
                        self.sink(fmt, chunk)
        except OSError as exc:
            log.debug("Cannot read media file %s: %s", self.path, exc)