# stream_buffer.py
# Chunked input front-end for jsonmend
#
# Text arrives in chunks (a large file read piece by piece, a socket, an LLM
# token stream). InputBuffer collects the chunks and serves characters by
# absolute offset; StreamRepairer feeds it and hands the complete text to
# jsonmend.repair once the input is closed, so a streamed repair gives
# exactly the same result as repairing the whole text at once.

import logging
from typing import IO

from jsonmend import DEPTH_LIMIT_DEFAULT, repair

log = logging.getLogger(__name__)

CHUNK_SIZE_DEFAULT = 65536   # characters per read in StreamRepairer.feed

_INDEX_OUT_OF_RANGE = "Index out of range, text not received yet"


class InputBuffer:
    """
    Append-only text buffer for input that arrives in chunks.

    The total length is only known once the input is closed; reading text
    that has not been received yet raises IndexError.
    """
    def __init__(self):
        self._chunks = []
        self._current_length = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, chunk: str) -> None:
        self._chunks.append(chunk)
        self._current_length += len(chunk)

    def substring(self, start: int, end: int) -> str:
        if end > self._current_length and not self._closed:
            raise IndexError(f"{_INDEX_OUT_OF_RANGE} (index: {end - 1})")
        if end <= start:
            return ""
        text = "".join(self._chunks)
        self._chunks = [text]
        return text[start:end]

    def length(self) -> int:
        if not self._closed:
            raise ValueError("Cannot get length: input is not yet closed")
        return self._current_length

    def current_length(self) -> int:
        return self._current_length

    def close(self) -> None:
        self._closed = True


class StreamRepairer:
    """
    Collect text chunk by chunk, repair it on close.

        repairer = StreamRepairer()
        for chunk in chunks:
            repairer.push(chunk)
        fixed = repairer.close()
    """
    def __init__(self, chunk_size: int = CHUNK_SIZE_DEFAULT, *, max_depth: int = DEPTH_LIMIT_DEFAULT):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.chunk_size = chunk_size
        self.max_depth = max_depth
        self.buffer = InputBuffer()
        self.chunks = 0

    def push(self, chunk: str) -> None:
        if self.buffer.closed:
            raise ValueError("Cannot push: input is already closed")
        self.buffer.push(chunk)
        self.chunks += 1

    def feed(self, fh: IO[str]) -> None:
        """Push the contents of a text file object, ``chunk_size`` characters at a time."""
        while True:
            chunk = fh.read(self.chunk_size)
            if not chunk:
                break
            self.push(chunk)

    def close(self) -> str:
        self.buffer.close()
        text = self.buffer.substring(0, self.buffer.length())
        log.debug("repairing %d characters received in %d chunks",
                  self.buffer.current_length(), self.chunks)
        return repair(text, max_depth=self.max_depth)
