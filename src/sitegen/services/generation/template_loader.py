"""Template Loader
===============

Fetches the source files of a selected website template. A packaged zip
archive under ``misc/templates`` is tried first; when it is missing or
unreadable the template's GitHub repository is downloaded as a zipball.

Loading never fails the run: when neither source works the caller gets a
fallback outcome and generation continues from scratch.
"""

import asyncio
import io
import logging
import posixpath
import re
import zipfile
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import aiohttp

from sitegen.paths import TEMPLATE_ARCHIVES_DIR
from sitegen.services.generation.models import PhaseOutcome
from sitegen.services.generation.theme_registry import ThemeDefinition
from sitegen.utils.circuit_breaker import CircuitBreaker, CircuitBreakerConfig, CircuitBreakerOpenError

logger = logging.getLogger(__name__)

GITHUB_API_URL = 'https://api.github.com'
MAX_FILE_SIZE = 100 * 1024
IGNORE_FILE = '.bolt/ignore'

BINARY_EXTENSIONS = frozenset({
    '.png', '.jpg', '.jpeg', '.gif', '.ico', '.webp', '.svg',
    '.woff', '.woff2', '.ttf', '.eot', '.otf',
    '.mp3', '.mp4', '.webm', '.wav', '.ogg',
    '.pdf', '.zip', '.tar', '.gz', '.rar',
})

EXCLUDED_DIRS = ('__MACOSX', '.git', 'node_modules', 'dist', 'build')
EXCLUDED_FILES = frozenset({
    '.DS_Store', 'Thumbs.db', 'package-lock.json', 'yarn.lock', 'pnpm-lock.yaml',
})

# Files the model may read but should not rewrite.
DEFAULT_IGNORE_PATTERNS: Tuple[str, ...] = (
    'vite.config.*',
    'tsconfig*.json',
    'tailwind.config.*',
    'postcss.config.*',
    'eslint.config.*',
    '.prettierrc*',
    '.gitignore',
    'README.md',
    '.github/',
    'src/components/ui/',
    'components/ui/',
    'src/lib/utils.ts',
    'lib/utils.ts',
    'public/',
)

_DRIVE_LETTER = re.compile(r'^[A-Za-z]:')


class TemplateArchiveError(Exception):
    """A template archive could not be turned into a file set."""

    NOT_FOUND = 'NOT_FOUND'
    CORRUPTED = 'CORRUPTED'
    EMPTY = 'EMPTY'
    INVALID_PATH = 'INVALID_PATH'
    READ_ERROR = 'READ_ERROR'

    def __init__(self, message: str, code: str, source: Optional[str] = None):
        super().__init__(message)
        self.code = code
        self.source = source


@dataclass(frozen=True)
class TemplateFile:
    """One text file of a template, path relative to the template root."""
    path: str
    content: str

    @property
    def name(self) -> str:
        return self.path.rsplit('/', 1)[-1]


@dataclass(frozen=True)
class SkippedFile:
    path: str
    reason: str  # binary | oversized | filtered | invalid_path


@dataclass
class ExtractedArchive:
    files: List[TemplateFile]
    skipped: List[SkippedFile] = field(default_factory=list)
    root_folder: Optional[str] = None


@dataclass
class TemplateFileSet:
    """Template files split into what the model may edit and what it may not.

    ``ignored`` files are still shipped to the client; the model only sees
    their paths as read-only context.
    """
    template_name: str
    source: str
    included: List[TemplateFile]
    ignored: List[TemplateFile]
    ignore_content: Optional[str] = None
    skipped: List[SkippedFile] = field(default_factory=list)

    @property
    def all_files(self) -> List[TemplateFile]:
        return list(self.included) + list(self.ignored)

    @property
    def read_only_paths(self) -> List[str]:
        return [f.path for f in self.ignored]

    def __len__(self) -> int:
        return len(self.included) + len(self.ignored)


def slugify_template_name(name: str) -> str:
    """Archive file stem for a template name ("Bamboo Bistro" -> "bamboo-bistro")."""
    slug = re.sub(r'\s+', '-', name.strip().lower())
    return re.sub(r'[^a-z0-9-]', '', slug)


def is_safe_path(path: str) -> bool:
    """Reject absolute paths, drive letters and parent traversal."""
    if not path or path.startswith('/') or _DRIVE_LETTER.match(path):
        return False
    return '..' not in path.split('/')


def _is_excluded(path: str) -> bool:
    parts = path.split('/')
    if any(part in EXCLUDED_DIRS for part in parts[:-1]):
        return True
    return parts[-1] in EXCLUDED_FILES or parts[-1] in EXCLUDED_DIRS


def _is_binary(path: str) -> bool:
    return posixpath.splitext(path)[1].lower() in BINARY_EXTENSIONS


def _common_root(names: Sequence[str]) -> Optional[str]:
    """The single top-level folder every entry lives in, if there is one."""
    roots = set()
    for name in names:
        if '/' not in name.rstrip('/'):
            # A top-level file means there is no wrapper folder.
            if not name.endswith('/'):
                return None
        roots.add(name.split('/', 1)[0])
        if len(roots) > 1:
            return None
    return roots.pop() if roots else None


def extract_archive(source: Union[Path, bytes], max_file_size: int = MAX_FILE_SIZE,
                    strip_root_folder: bool = True) -> ExtractedArchive:
    """Read the text files out of a template zip.

    ``source`` is a path to a ``.zip`` file or the raw archive bytes (a
    GitHub zipball). A single enclosing folder is stripped from every path.

    Raises:
        TemplateArchiveError: the archive is missing, unreadable or holds no
            usable files.
    """
    label = str(source) if isinstance(source, Path) else '<bytes>'
    if isinstance(source, Path):
        if not source.is_file():
            raise TemplateArchiveError(f"Template archive not found: {source}",
                                       TemplateArchiveError.NOT_FOUND, label)
        try:
            data = source.read_bytes()
        except OSError as e:
            raise TemplateArchiveError(f"Failed to read template archive: {e}",
                                       TemplateArchiveError.READ_ERROR, label) from e
    else:
        data = source

    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except zipfile.BadZipFile as e:
        raise TemplateArchiveError(f"Invalid or corrupted zip file: {e}",
                                   TemplateArchiveError.CORRUPTED, label) from e

    files: List[TemplateFile] = []
    skipped: List[SkippedFile] = []
    with archive:
        names = [info.filename.replace('\\', '/') for info in archive.infolist()]
        root = _common_root(names) if strip_root_folder else None
        if root:
            logger.debug(f"Stripping root folder '{root}' from {label}")

        for info, name in zip(archive.infolist(), names):
            if info.is_dir():
                continue
            path = name[len(root) + 1:] if root and name.startswith(root + '/') else name
            if not path:
                continue
            if not is_safe_path(path):
                logger.warning(f"Skipping unsafe archive path: {name}")
                skipped.append(SkippedFile(name, 'invalid_path'))
                continue
            if _is_excluded(path):
                skipped.append(SkippedFile(path, 'filtered'))
                continue
            if _is_binary(path):
                skipped.append(SkippedFile(path, 'binary'))
                continue
            if info.file_size > max_file_size:
                skipped.append(SkippedFile(path, 'oversized'))
                continue
            try:
                raw = archive.read(info)
            except (zipfile.BadZipFile, OSError, RuntimeError) as e:
                raise TemplateArchiveError(f"Failed to read {path}: {e}",
                                           TemplateArchiveError.READ_ERROR, label) from e
            try:
                content = raw.decode('utf-8')
            except UnicodeDecodeError:
                skipped.append(SkippedFile(path, 'binary'))
                continue
            files.append(TemplateFile(path=path, content=content))

    if not files:
        raise TemplateArchiveError(f"No usable files in template archive {label}",
                                   TemplateArchiveError.EMPTY, label)

    logger.info(f"Extracted {len(files)} files from {label} ({len(skipped)} skipped)")
    return ExtractedArchive(files=files, skipped=skipped, root_folder=root)


def _pattern_matches(pattern: str, path: str) -> bool:
    dir_only = pattern.endswith('/')
    pattern = pattern.rstrip('/')
    anchored = '/' in pattern
    pattern = pattern.lstrip('/')

    parts = path.split('/')
    targets = ['/'.join(parts[:i]) for i in range(1, len(parts))]
    if not dir_only:
        targets.append(path)

    for target in targets:
        candidate = target if anchored else target.rsplit('/', 1)[-1]
        if fnmatchcase(candidate, pattern):
            return True
    return False


def is_ignored(path: str, patterns: Iterable[str]) -> bool:
    """Gitignore-style match; the last matching pattern wins, ``!`` negates."""
    ignored = False
    for pattern in patterns:
        pattern = pattern.strip()
        if not pattern or pattern.startswith('#'):
            continue
        negate = pattern.startswith('!')
        if negate:
            pattern = pattern[1:]
        if pattern and _pattern_matches(pattern, path):
            ignored = not negate
    return ignored


def apply_ignore_patterns(files: Sequence[TemplateFile], template_name: str = '',
                          source: str = 'archive') -> TemplateFileSet:
    """Split template files into editable and read-only sets.

    ``.git*`` files are dropped. A ``.bolt/ignore`` file in the template
    supplies the patterns, otherwise :data:`DEFAULT_IGNORE_PATTERNS` apply;
    ``.bolt`` files themselves are dropped afterwards.
    """
    files = [f for f in files if not f.path.startswith('.git')]
    ignore_file = next((f for f in files if f.path == IGNORE_FILE), None)
    files = [f for f in files if not f.path.startswith('.bolt')]

    ignore_content = ignore_file.content if ignore_file else None
    if ignore_content is not None:
        patterns = [line.strip() for line in ignore_content.splitlines() if line.strip()]
    else:
        patterns = list(DEFAULT_IGNORE_PATTERNS)

    included: List[TemplateFile] = []
    ignored: List[TemplateFile] = []
    for template_file in files:
        (ignored if is_ignored(template_file.path, patterns) else included).append(template_file)

    logger.debug(f"Ignore split: {len(included)} included, {len(ignored)} read-only "
                 f"({'template' if ignore_content is not None else 'default'} patterns)")
    return TemplateFileSet(
        template_name=template_name,
        source=source,
        included=included,
        ignored=ignored,
        ignore_content=ignore_content,
    )


_github_breaker: Optional[CircuitBreaker] = None


def get_github_breaker() -> CircuitBreaker:
    """Get the shared GitHub template download circuit breaker."""
    global _github_breaker
    if _github_breaker is None:
        _github_breaker = CircuitBreaker(
            name="github-templates",
            config=CircuitBreakerConfig(failure_threshold=3, recovery_timeout=120.0, success_threshold=1),
        )
    return _github_breaker


async def download_github_zipball(repo: str, token: Optional[str] = None, timeout: int = 60) -> bytes:
    """Download the default branch of ``owner/repo`` as a zipball.

    Raises:
        CircuitBreakerOpenError: GitHub has been failing recently.
        TemplateArchiveError: the repository or its archive is unavailable.
    """
    breaker = get_github_breaker()
    if not breaker.allow_request():
        raise CircuitBreakerOpenError(f"GitHub circuit open, retry in {breaker.retry_after():.0f}s")

    headers = {
        'Accept': 'application/vnd.github.v3+json',
        'User-Agent': 'website-agent',
    }
    if token:
        headers['Authorization'] = f'Bearer {token}'

    logger.info(f"Fetching zipball for: {repo}")
    try:
        async with aiohttp.ClientSession(headers=headers,
                                         timeout=aiohttp.ClientTimeout(total=timeout)) as session:
            async with session.get(f'{GITHUB_API_URL}/repos/{repo}') as response:
                if response.status != 200:
                    if response.status >= 500:
                        breaker.record_failure()
                    raise TemplateArchiveError(f"Repository not found: {repo} ({response.status})",
                                               TemplateArchiveError.NOT_FOUND, repo)
                repo_data = await response.json()

            branch = repo_data.get('default_branch') or 'main'
            logger.debug(f"Default branch of {repo}: {branch}")

            async with session.get(f'{GITHUB_API_URL}/repos/{repo}/zipball/{branch}') as response:
                if response.status != 200:
                    if response.status >= 500:
                        breaker.record_failure()
                    raise TemplateArchiveError(f"Failed to fetch zipball: {response.status}",
                                               TemplateArchiveError.READ_ERROR, repo)
                data = await response.read()
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        breaker.record_failure(e)
        raise TemplateArchiveError(f"GitHub download failed: {e}",
                                   TemplateArchiveError.READ_ERROR, repo) from e

    breaker.record_success()
    return data


class TemplateLoader:
    """Loads template files for a theme, archive first then GitHub."""

    def __init__(self, archives_dir: Optional[Path] = None, github_token: Optional[str] = None,
                 allow_remote: bool = True):
        self.archives_dir = archives_dir or TEMPLATE_ARCHIVES_DIR
        self.github_token = github_token
        self.allow_remote = allow_remote

    def archive_path(self, theme: ThemeDefinition) -> Path:
        return self.archives_dir / f"{slugify_template_name(theme.name)}.zip"

    def load_from_archive(self, theme: ThemeDefinition) -> TemplateFileSet:
        extracted = extract_archive(self.archive_path(theme))
        file_set = apply_ignore_patterns(extracted.files, theme.name, source='archive')
        file_set.skipped = extracted.skipped
        return file_set

    async def load_from_github(self, theme: ThemeDefinition) -> TemplateFileSet:
        data = await download_github_zipball(theme.github_repo, self.github_token)
        extracted = extract_archive(data)
        file_set = apply_ignore_patterns(extracted.files, theme.name, source='github')
        file_set.skipped = extracted.skipped
        return file_set

    async def load(self, theme: Optional[ThemeDefinition]) -> PhaseOutcome[Optional[TemplateFileSet]]:
        """Load a theme's files; never raises."""
        if theme is None:
            return PhaseOutcome.fallback(None, "no theme selected")

        try:
            file_set = self.load_from_archive(theme)
            logger.info(f"✅ Loaded {len(file_set)} files for {theme.name} from local archive")
            return PhaseOutcome.ok(file_set)
        except TemplateArchiveError as e:
            archive_reason = f"archive {e.code}: {e}"
            if e.code == TemplateArchiveError.NOT_FOUND:
                logger.info(f"No local archive for {theme.name}, trying GitHub")
            else:
                logger.warning(f"Local archive for {theme.name} unusable ({e.code}): {e}")

        if not self.allow_remote or not theme.github_repo:
            return PhaseOutcome.fallback(None, archive_reason)

        try:
            file_set = await self.load_from_github(theme)
        except (TemplateArchiveError, CircuitBreakerOpenError) as e:
            logger.warning(f"Template fetch for {theme.name} failed: {e}")
            return PhaseOutcome.fallback(None, f"{archive_reason}; github: {e}")
        except Exception as e:
            logger.exception(f"Unexpected error fetching template {theme.name}")
            return PhaseOutcome.fallback(None, f"{archive_reason}; github: {type(e).__name__}: {e}")

        logger.info(f"✅ Loaded {len(file_set)} files for {theme.name} from {theme.github_repo}")
        return PhaseOutcome.ok(file_set)


__all__ = [
    'DEFAULT_IGNORE_PATTERNS',
    'ExtractedArchive',
    'SkippedFile',
    'TemplateArchiveError',
    'TemplateFile',
    'TemplateFileSet',
    'TemplateLoader',
    'apply_ignore_patterns',
    'download_github_zipball',
    'extract_archive',
    'is_ignored',
    'slugify_template_name',
]
