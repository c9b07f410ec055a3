"""Remote-vs-local checksum verification.

Confirms a file transfer completed by hashing every regular file on both
sides and diffing the results:

    verifier = ChecksumVerifier(executor)
    report = verifier.verify("sites/mysite/wp-content", "./wp-content")
    if not report.is_clean:
        ...

The remote side runs a single command built from a sanitized root:

    cd <root> && find . -type f -exec md5sum {} \\;
"""

from __future__ import annotations

import os
import stat
import string
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from stax_security.checksum.digest import Digest, MD5Digest, get_digest
from stax_security.checksum.models import ChecksumEntry, ChecksumReport, FileMismatch
from stax_security.exceptions import ChecksumComputationError
from stax_security.logging import Loggers
from stax_security.sanitize.sanitizer import sanitize_for_shell
from stax_security.sanitize.validators import sanitize_path

if TYPE_CHECKING:
    from stax_security.config import StaxSettings

_HEX_DIGITS = frozenset(string.hexdigits)


@runtime_checkable
class RemoteExecutor(Protocol):
    """Runs an already sanitized command on a trust-verified connection."""

    def execute_command(self, command: str) -> str:
        """Return stdout; raise on failure."""
        ...


def build_checksum_command(remote_root: str, digest: Digest) -> str:
    """Build the remote hashing command for remote_root.

    Raises:
        ValidationError: If remote_root traverses or has unsafe characters.
    """
    safe_root = sanitize_for_shell(sanitize_path(remote_root))
    return f"cd {safe_root} && find . -type f -exec {digest.remote_tool} {{}} \\;"


def _unescape_sum_path(path: str) -> str:
    # coreutils *sum escapes "\" and newline in names and flags the line with "\"
    out = []
    i = 0
    while i < len(path):
        char = path[i]
        if char == "\\" and i + 1 < len(path):
            nxt = path[i + 1]
            out.append("\n" if nxt == "n" else nxt)
            i += 2
            continue
        out.append(char)
        i += 1
    return "".join(out)


def parse_checksum_line(line: str) -> ChecksumEntry | None:
    """Parse one ``digest  path`` line, or return None if it is unparsable."""
    escaped = line.startswith("\\")
    if escaped:
        line = line[1:]

    parts = line.split(None, 1)
    if len(parts) < 2:
        return None

    digest, path = parts[0], parts[1]
    if not all(c in _HEX_DIGITS for c in digest):
        return None

    # Binary-mode marker
    if path.startswith("*./"):
        path = path[1:]
    if escaped:
        path = _unescape_sum_path(path)
    if path.startswith("./"):
        path = path[2:]
    if not path:
        return None

    return ChecksumEntry(relative_path=path, digest=digest.lower())


def parse_checksum_output(output: str) -> dict[str, str]:
    """Parse ``*sum`` output into ``{relative_path: digest}``.

    Unparsable lines are skipped with a warning.
    """
    logger = Loggers.checksum()
    checksums: dict[str, str] = {}
    for lineno, raw in enumerate(output.split("\n"), start=1):
        line = raw.rstrip("\r")
        if not line.strip():
            continue
        entry = parse_checksum_line(line)
        if entry is None:
            logger.warning("checksum_line_skipped", line=lineno, content=line[:200])
            continue
        checksums[entry.relative_path] = entry.digest
    return checksums


def generate_local_checksums(local_root: str | Path, digest: Digest) -> dict[str, str]:
    """Hash every regular file under local_root.

    Keys are POSIX paths relative to local_root, so they line up with the
    remote listing. Directories, symlinks and special files are skipped,
    matching ``find -type f``.

    Raises:
        ChecksumComputationError: If the root is missing or a file cannot be read.
    """
    root = Path(local_root)
    if not root.is_dir():
        raise ChecksumComputationError(
            f"local path does not exist or is not a directory: {root}",
            side="local",
            path=str(root),
        )

    def _raise(err: OSError) -> None:
        raise err

    checksums: dict[str, str] = {}
    try:
        for dirpath, _dirnames, filenames in os.walk(root, onerror=_raise):
            for name in filenames:
                full_path = Path(dirpath) / name
                if not stat.S_ISREG(os.lstat(full_path).st_mode):
                    continue
                relative = full_path.relative_to(root).as_posix()
                try:
                    checksums[relative] = digest.hash_file(full_path)
                except OSError as e:
                    raise ChecksumComputationError(
                        f"failed to calculate checksum for {relative}: {e}",
                        side="local",
                        path=relative,
                    ) from e
    except OSError as e:
        raise ChecksumComputationError(
            f"failed to walk local directory: {e}", side="local", path=str(root)
        ) from e

    return checksums


def compare_checksums(
    remote: dict[str, str],
    local: dict[str, str],
    algorithm: str = "md5",
) -> ChecksumReport:
    """Diff two ``{relative_path: digest}`` maps.

    Remote paths are classified as matched, mismatched or missing locally;
    a second pass collects local-only paths as missing remotely. Lists are
    sorted for stable output.
    """
    report = ChecksumReport(algorithm=algorithm)

    for path, remote_digest in remote.items():
        local_digest = local.get(path)
        if local_digest is None:
            report.missing_local.append(path)
        elif local_digest != remote_digest:
            report.mismatched.append(
                FileMismatch(
                    relative_path=path,
                    remote_digest=remote_digest,
                    local_digest=local_digest,
                )
            )
        else:
            report.matched.append(path)

    for path in local:
        if path not in remote:
            report.missing_remote.append(path)

    report.matched.sort()
    report.mismatched.sort(key=lambda m: m.relative_path)
    report.missing_local.sort()
    report.missing_remote.sort()
    return report


class ChecksumVerifier:
    """Computes and diffs remote and local digests.

    Args:
        executor: Remote command capability on a trust-verified connection.
        digest: Hash to use on both sides (MD5 by default).
        parallel: Compute the remote and local sides concurrently.
        timeout: Deadline in seconds for one verify() call (None = no limit).
    """

    def __init__(
        self,
        executor: RemoteExecutor,
        digest: Digest | None = None,
        parallel: bool = False,
        timeout: float | None = None,
    ):
        self.executor = executor
        self.digest = digest or MD5Digest()
        self.parallel = parallel
        self.timeout = timeout
        self._logger = Loggers.checksum()

    @classmethod
    def from_settings(
        cls,
        executor: RemoteExecutor,
        settings: StaxSettings | None = None,
    ) -> ChecksumVerifier:
        """Build a verifier from settings (the current settings by default)."""
        if settings is None:
            from stax_security.config import get_settings

            settings = get_settings()
        return cls(
            executor,
            digest=get_digest(settings.checksum_algorithm),
            parallel=settings.checksum_parallel,
            timeout=settings.checksum_timeout,
        )

    def remote_digests(self, remote_root: str) -> dict[str, str]:
        """Hash every regular file under remote_root on the remote host.

        Raises:
            ValidationError: If remote_root is unsafe.
            ChecksumComputationError: If the remote command fails.
        """
        command = build_checksum_command(remote_root, self.digest)
        try:
            output = self.executor.execute_command(command)
        except Exception as e:
            raise ChecksumComputationError(
                f"failed to generate remote checksums: {e}",
                side="remote",
                path=remote_root,
            ) from e

        checksums = parse_checksum_output(output)
        self._logger.debug("remote_checksums", root=remote_root, files=len(checksums))
        return checksums

    def local_digests(self, local_root: str | Path) -> dict[str, str]:
        """Hash every regular file under local_root."""
        checksums = generate_local_checksums(local_root, self.digest)
        self._logger.debug("local_checksums", root=str(local_root), files=len(checksums))
        return checksums

    def diff(self, remote: dict[str, str], local: dict[str, str]) -> ChecksumReport:
        return compare_checksums(remote, local, algorithm=self.digest.name)

    def verify(self, remote_root: str, local_root: str | Path) -> ChecksumReport:
        """Compare the remote tree at remote_root with local_root.

        Raises:
            ValidationError: If remote_root is unsafe.
            ChecksumComputationError: If either side fails or the deadline passes.
        """
        # Reject a bad root before any work starts
        build_checksum_command(remote_root, self.digest)

        if self.parallel or self.timeout is not None:
            remote, local = self._compute_in_pool(remote_root, local_root)
        else:
            remote = self.remote_digests(remote_root)
            local = self.local_digests(local_root)

        report = self.diff(remote, local)
        self._logger.info(
            "checksum_verification_complete",
            remote_root=remote_root,
            local_root=str(local_root),
            algorithm=report.algorithm,
            total=report.total_files,
            matched=report.matched_count,
            mismatched=report.mismatched_count,
            missing_local=report.missing_local_count,
            missing_remote=report.missing_remote_count,
        )
        return report

    def _compute_in_pool(
        self, remote_root: str, local_root: str | Path
    ) -> tuple[dict[str, str], dict[str, str]]:
        deadline = None if self.timeout is None else time.monotonic() + self.timeout

        def remaining() -> float | None:
            if deadline is None:
                return None
            return max(0.0, deadline - time.monotonic())

        pool = ThreadPoolExecutor(
            max_workers=2 if self.parallel else 1,
            thread_name_prefix="stax-checksum",
        )
        try:
            remote_future = pool.submit(self.remote_digests, remote_root)
            local_future = pool.submit(self.local_digests, local_root)
            remote = remote_future.result(timeout=remaining())
            local = local_future.result(timeout=remaining())
        except FutureTimeoutError as e:
            raise ChecksumComputationError(
                f"checksum verification timed out after {self.timeout}s",
                path=remote_root,
            ) from e
        finally:
            # A stalled worker is abandoned, not joined
            pool.shutdown(wait=False, cancel_futures=True)

        return remote, local
