"""Streaming File Extractor
========================

Turns the model's text stream into generated files as soon as each
file-write block is complete::

    <boltAction type="file" filePath="src/App.tsx">...</boltAction>

The extractor is a two-state machine over a single buffer. Chunk boundaries
never change the result: feeding a text in one piece or one character at a
time yields the same files, each exactly once, and never a partial block.
"""

import logging
import re
from enum import Enum
from typing import Iterable, List, Optional

from sitegen.paths import WORK_DIR
from sitegen.services.generation.models import GeneratedFile

logger = logging.getLogger(__name__)

OPEN_MARKER = '<boltAction'
CLOSE_MARKER = '</boltAction>'

MODEL_MARKER_RE = re.compile(r'^\[Model: (.*?)\]\n\n')
PROVIDER_MARKER_RE = re.compile(r'\[Provider: (.*?)\]\n\n')
ESCAPED_ACTION_RE = re.compile(r'&lt;/?boltAction\b.*?&gt;', re.DOTALL)
CODE_FENCE_RE = re.compile(r'^\s*```[\w-]*\n([\s\S]*?)\n\s*```\s*$')

_TYPE_ATTR_RE = re.compile(r'\btype="([^"]*)"')
_PATH_ATTR_RE = re.compile(r'\bfilePath="([^"]+)"')
_MULTI_SLASH_RE = re.compile(r'/+')


def strip_markers(text: str) -> str:
    """Remove the ``[Model: ..]`` / ``[Provider: ..]`` routing markers."""
    return PROVIDER_MARKER_RE.sub('', MODEL_MARKER_RE.sub('', text, count=1), count=1)


def normalize_file_path(file_path: str) -> str:
    """Absolute path under the work root; absolute input passes through."""
    cleaned = strip_markers(file_path).strip()
    if cleaned.startswith('/'):
        return cleaned
    return _MULTI_SLASH_RE.sub('/', f'{WORK_DIR}/{cleaned}')


def clean_file_content(content: str, file_path: str) -> str:
    """Normalize the body of a file-write block.

    Markers and stray escaped action tags are removed, a single enclosing
    code fence is unwrapped and ``&lt;``/``&gt;`` are unescaped. Markdown
    files are trimmed; every other file ends with exactly one newline.
    """
    text = ESCAPED_ACTION_RE.sub('', strip_markers(content))
    match = CODE_FENCE_RE.match(text)
    if match:
        text = match.group(1)
    text = text.replace('&lt;', '<').replace('&gt;', '>')
    if file_path.endswith('.md'):
        return text.strip()
    return text.strip() + '\n'


class _State(Enum):
    SEEK_OPEN = 'seek_open'
    SEEK_CLOSE = 'seek_close'


class StreamingFileExtractor:
    """Incremental extractor of file-write blocks.

    Usage:
        extractor = StreamingFileExtractor()
        async for chunk in stream:
            for generated in extractor.feed(chunk):
                ...
        extractor.finish()

    ``_scan_from`` remembers where the previous search for a marker stopped,
    so a block arriving in many small chunks is scanned only once.
    """

    def __init__(self) -> None:
        self._buffer = ''
        self._scan_from = 0
        self._state = _State.SEEK_OPEN
        self._open_tag: Optional[str] = None
        self.emitted = 0
        self.skipped = 0

    @property
    def in_block(self) -> bool:
        """True while an opened block is waiting for its close marker."""
        return self._state is _State.SEEK_CLOSE

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    def feed(self, chunk: str) -> List[GeneratedFile]:
        """Append ``chunk`` and return the files completed by it, in order."""
        if chunk:
            self._buffer += chunk
        files: List[GeneratedFile] = []
        while True:
            if self._state is _State.SEEK_OPEN:
                if not self._seek_open():
                    break
            else:
                block_content = self._seek_close()
                if block_content is None:
                    break
                generated = self._build_file(self._open_tag or '', block_content)
                self._open_tag = None
                if generated is not None:
                    self.emitted += 1
                    files.append(generated)
        return files

    def feed_all(self, chunks: Iterable[str]) -> List[GeneratedFile]:
        files: List[GeneratedFile] = []
        for chunk in chunks:
            files.extend(self.feed(chunk))
        return files

    def finish(self) -> None:
        """Signal end of input; an unterminated block is dropped."""
        if self._state is _State.SEEK_CLOSE:
            logger.warning(f"Stream ended inside an unterminated file block "
                           f"({len(self._buffer)} chars dropped)")
        self._buffer = ''
        self._scan_from = 0
        self._state = _State.SEEK_OPEN
        self._open_tag = None

    def _seek_open(self) -> bool:
        """Find the next opening tag; True when it was consumed whole."""
        while True:
            idx = self._buffer.find(OPEN_MARKER, self._scan_from)
            if idx == -1:
                # Only a suffix shorter than the marker can still grow into one.
                keep = len(OPEN_MARKER) - 1
                if len(self._buffer) > keep:
                    self._buffer = self._buffer[-keep:]
                self._scan_from = 0
                return False

            boundary = idx + len(OPEN_MARKER)
            if boundary >= len(self._buffer):
                self._buffer = self._buffer[idx:]
                self._scan_from = 0
                return False
            if not (self._buffer[boundary].isspace() or self._buffer[boundary] == '>'):
                self._scan_from = idx + 1
                continue

            tag_end = self._buffer.find('>', boundary)
            if tag_end == -1:
                self._buffer = self._buffer[idx:]
                self._scan_from = 0
                return False

            self._open_tag = self._buffer[idx:tag_end + 1]
            self._buffer = self._buffer[tag_end + 1:]
            self._scan_from = 0
            self._state = _State.SEEK_CLOSE
            return True

    def _seek_close(self) -> Optional[str]:
        """Return the block body once its close marker has arrived."""
        idx = self._buffer.find(CLOSE_MARKER, self._scan_from)
        if idx == -1:
            self._scan_from = max(0, len(self._buffer) - (len(CLOSE_MARKER) - 1))
            return None
        content = self._buffer[:idx]
        self._buffer = self._buffer[idx + len(CLOSE_MARKER):]
        self._scan_from = 0
        self._state = _State.SEEK_OPEN
        return content

    def _build_file(self, open_tag: str, content: str) -> Optional[GeneratedFile]:
        type_match = _TYPE_ATTR_RE.search(open_tag)
        path_match = _PATH_ATTR_RE.search(open_tag)
        if type_match is None or type_match.group(1) != 'file':
            self.skipped += 1
            return None
        if path_match is None or not strip_markers(path_match.group(1)).strip():
            logger.warning(f"Skipping file block without a path: {open_tag[:120]}")
            self.skipped += 1
            return None

        path = normalize_file_path(path_match.group(1))
        return GeneratedFile(path=path, content=clean_file_content(content, path))


def extract_files(text: str) -> List[GeneratedFile]:
    """Extract every complete file-write block from a finished text."""
    extractor = StreamingFileExtractor()
    files = extractor.feed(text)
    extractor.finish()
    return files


__all__ = [
    'StreamingFileExtractor',
    'clean_file_content',
    'extract_files',
    'normalize_file_path',
    'strip_markers',
]
