"""Per-channel tee of child process output.

Each StreamTee owns one output channel (stdout or stderr) of the child and
decides, from ``capture`` and ``quiet``, what happens to every chunk:

    capture  quiet   behavior
    -------  -----   ------------------------------------------------
    True     True    decode and accumulate
    True     False   decode, echo colorized text, accumulate raw text
    False    True    nothing (the channel is not connected at all)
    False    False   decode and echo colorized text
"""

from __future__ import annotations

import asyncio
import codecs
import logging
from collections.abc import Callable
from typing import TextIO

__all__ = [
    "CHUNK_SIZE",
    "StreamTee",
]

logger = logging.getLogger(__name__)

CHUNK_SIZE = 4096


class StreamTee:
    """Routes one output channel into a capture buffer and/or a parent stream.

    Chunks are handled strictly in arrival order. Decoding is incremental, so
    a multibyte character split across two chunks is decoded once whole.

    Attributes:
        name: Channel name, used in log messages
        capture: Whether decoded text is accumulated
        display: Whether decoded text is echoed to the parent stream
    """

    def __init__(
        self,
        name: str,
        *,
        capture: bool,
        quiet: bool,
        encoding: str,
        colorize: Callable[[str], str],
        sink: Callable[[], TextIO],
    ) -> None:
        self.name = name
        self.capture = capture
        self.display = not quiet
        self._colorize = colorize
        # resolved per write so redirected sys.stdout/sys.stderr are honored
        self._sink = sink
        self._parts: list[str] | None = [] if capture else None
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")

    @property
    def active(self) -> bool:
        """Whether this channel needs to be connected to a pipe."""
        return self.capture or self.display

    @property
    def text(self) -> str | None:
        """Everything accumulated so far, or None when capture is disabled."""
        if self._parts is None:
            return None
        return "".join(self._parts)

    def feed(self, chunk: bytes, final: bool = False) -> None:
        """Process one raw chunk from the child."""
        if not self.active:
            return
        text = self._decoder.decode(chunk, final)
        if not text:
            return
        if self.display:
            self._write(text)
        if self._parts is not None:
            self._parts.append(text)

    def _write(self, text: str) -> None:
        stream = self._sink()
        try:
            stream.write(self._colorize(text))
            stream.flush()
        except BrokenPipeError:
            # Reader of the parent stream went away: keep draining the child
            logger.debug(f"{self.name} sink closed, echo disabled")
            self.display = False

    def close(self) -> None:
        """Flush any bytes still held by the decoder."""
        self.feed(b"", final=True)

    async def drain(self, reader: asyncio.StreamReader | None) -> None:
        """Feed every chunk from ``reader`` until EOF or cancellation."""
        if reader is None:
            return
        try:
            while True:
                chunk = await reader.read(CHUNK_SIZE)
                if not chunk:
                    break
                self.feed(chunk)
        finally:
            self.close()
        logger.debug(f"{self.name} reached EOF")
