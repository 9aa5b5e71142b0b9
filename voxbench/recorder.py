"""
Recording capture.

A Recorder owns one AudioDevice for the span of a start()/stop() pair.
Chunks delivered by the device (possibly from its own thread) are kept in
arrival order and joined into a single AudioClip when recording stops.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Protocol

from voxbench.errors import DeviceUnavailable, PermissionDenied, RecorderBusy

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[bytes], None]


@dataclass
class AudioClip:
    """A finished recording."""
    data: bytes
    mime_type: str = "audio/wav"
    chunk_count: int = 0

    def __len__(self) -> int:
        return len(self.data)


class AudioDevice(Protocol):
    """An audio input that pushes encoded chunks to a callback."""

    def open(self, on_chunk: ChunkCallback) -> None:
        """Acquire the device and begin delivering chunks."""

    def close(self) -> None:
        """Stop delivering chunks and release the device."""


class PyAudioDevice:
    """Microphone input through PyAudio (callback mode)."""

    def __init__(self, sample_rate: int = 16000, channels: int = 1, chunk_size: int = 1024):
        self.sample_rate = sample_rate
        self.channels = channels
        self.chunk_size = chunk_size
        self._audio = None
        self._stream = None

    def open(self, on_chunk: ChunkCallback) -> None:
        try:
            import pyaudio
        except ImportError as e:
            raise DeviceUnavailable(
                "PyAudio is not installed; install voxbench[audio] or use --file"
            ) from e

        def _callback(in_data, frame_count, time_info, status):
            on_chunk(in_data)
            return (None, pyaudio.paContinue)

        self._audio = pyaudio.PyAudio()
        try:
            self._stream = self._audio.open(
                format=pyaudio.paInt16,
                channels=self.channels,
                rate=self.sample_rate,
                input=True,
                frames_per_buffer=self.chunk_size,
                stream_callback=_callback,
            )
            self._stream.start_stream()
        except OSError as e:
            self._audio.terminate()
            self._audio = None
            if "permission" in str(e).lower():
                raise PermissionDenied(f"Microphone access denied: {e}") from e
            raise DeviceUnavailable(f"No usable microphone: {e}") from e

    def close(self) -> None:
        if self._stream is not None:
            self._stream.stop_stream()
            self._stream.close()
            self._stream = None
        if self._audio is not None:
            self._audio.terminate()
            self._audio = None


class FileAudioDevice:
    """Replays a file as if it came from a microphone. Delivery is synchronous."""

    def __init__(self, path: str | Path, chunk_size: int = 4096):
        self.path = Path(path)
        self.chunk_size = chunk_size

    def open(self, on_chunk: ChunkCallback) -> None:
        if not self.path.exists():
            raise DeviceUnavailable(f"Audio file not found: {self.path}")
        try:
            with open(self.path, "rb") as f:
                while True:
                    chunk = f.read(self.chunk_size)
                    if not chunk:
                        break
                    on_chunk(chunk)
        except PermissionError as e:
            raise PermissionDenied(f"Cannot read {self.path}: {e}") from e

    def close(self) -> None:
        pass


class Recorder:
    """Single-device recorder. Overlapping start() calls are rejected."""

    def __init__(self, device: AudioDevice, mime_type: str = "audio/wav"):
        self.device = device
        self.mime_type = mime_type
        self._chunks: list[bytes] = []
        self._lock = threading.Lock()
        self._recording = False

    @property
    def is_recording(self) -> bool:
        return self._recording

    def _on_chunk(self, chunk: bytes):
        if not chunk:
            return
        with self._lock:
            if self._recording:
                self._chunks.append(chunk)

    def start(self) -> None:
        """Acquire the device. Raises PermissionDenied / DeviceUnavailable / RecorderBusy."""
        if self._recording:
            raise RecorderBusy("Already recording")

        with self._lock:
            self._chunks = []
            self._recording = True
        try:
            self.device.open(self._on_chunk)
        except (PermissionDenied, DeviceUnavailable):
            self._recording = False
            raise
        except PermissionError as e:
            self._recording = False
            raise PermissionDenied(f"Microphone access denied: {e}") from e
        except OSError as e:
            self._recording = False
            raise DeviceUnavailable(f"Audio device unavailable: {e}") from e
        logger.info("Recording started")

    def stop(self) -> AudioClip | None:
        """Release the device and return the clip. No-op (None) if idle."""
        if not self._recording:
            return None

        with self._lock:
            self._recording = False
            chunks, self._chunks = self._chunks, []
        try:
            self.device.close()
        except Exception as e:
            logger.warning("Error releasing audio device: %s", e)

        clip = AudioClip(data=b"".join(chunks), mime_type=self.mime_type, chunk_count=len(chunks))
        logger.info("Recording stopped: %d chunks, %d bytes", clip.chunk_count, len(clip))
        return clip
