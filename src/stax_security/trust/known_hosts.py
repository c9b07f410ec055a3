"""Trust-On-First-Use host-key store.

The store gates every remote connection. An unknown host is trusted only
after the operator confirms its fingerprint; a host whose key changed is
treated as a possible man-in-the-middle and needs a second, explicit
confirmation before the stored key is replaced.

File format, one record per line:

    hostname keyType base64(key)

Blank lines and ``#`` comments are ignored on read and kept on rewrite.
Malformed lines are skipped with a warning. Hostnames match exactly; there
are no wildcard or hashed entries.

Every rewrite goes to a temporary file in the same directory which is then
renamed over the original, so a crash mid-write leaves the previous file
intact. Two processes updating the same file concurrently can still lose
one update.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable

from stax_security.exceptions import (
    HostNotFoundError,
    InvalidHostnameError,
    TrustIOError,
    TrustRejected,
)
from stax_security.logging import Loggers
from stax_security.trust.confirm import Confirmer, ConsoleConfirmer, confirmer_for_policy
from stax_security.trust.models import HostKey, HostKeyRecord, TrustDecision, TrustPrompt

if TYPE_CHECKING:
    from stax_security.config import StaxSettings

HostKeyCallback = Callable[[str, Any, HostKey], None]


def normalize_hostname(hostname: str) -> str:
    """Strip a port from hostname.

    Handles ``host:22`` and the bracketed ``[host]:2222`` form used by
    OpenSSH and paramiko. Bare IPv6 addresses are returned unchanged.
    """
    hostname = hostname.strip()
    if hostname.startswith("["):
        end = hostname.find("]")
        if end != -1 and hostname[end + 1 : end + 2] == ":":
            return hostname[1:end]
        return hostname
    if hostname.count(":") == 1:
        return hostname.split(":", 1)[0]
    return hostname


def _checked_hostname(hostname: str) -> str:
    """Normalize hostname and refuse names that cannot be one record field."""
    host = normalize_hostname(hostname)
    if (
        not host
        or host.startswith("#")
        or any(c.isspace() or not c.isprintable() for c in host)
    ):
        raise InvalidHostnameError(
            f"invalid hostname for known hosts: {host!r}", hostname=host
        )
    return host


def _is_content_line(line: str) -> bool:
    stripped = line.strip()
    return bool(stripped) and not stripped.startswith("#")


class TrustStore:
    """TOFU manager for one known_hosts file.

    A single lock covers reads and writes, and it is held for the full
    prompt-and-persist sequence, so two trust decisions never interleave
    within a process. There is no cross-process locking.

    Example:
        store = TrustStore("~/.stax/known_hosts", ConsoleConfirmer())
        store.verify_host_key("ssh.example.net:22", HostKey.from_blob(blob))

    Args:
        known_hosts_file: Path to the store (created on first write).
        confirmer: Capability that asks the operator; defaults to a console
            prompt.
    """

    def __init__(self, known_hosts_file: Path | str, confirmer: Confirmer | None = None):
        self._path = Path(known_hosts_file).expanduser()
        self._confirmer = confirmer or ConsoleConfirmer()
        self._lock = threading.RLock()
        self._logger = Loggers.trust()

    @classmethod
    def from_settings(
        cls,
        settings: StaxSettings | None = None,
        confirmer: Confirmer | None = None,
    ) -> TrustStore:
        """Build a store from settings (the current settings by default).

        The confirmer defaults to the one named by ``trust_policy``.
        """
        if settings is None:
            from stax_security.config import get_settings

            settings = get_settings()
        if confirmer is None:
            confirmer = confirmer_for_policy(settings.trust_policy)
        return cls(settings.known_hosts_file, confirmer)

    @property
    def known_hosts_file(self) -> Path:
        return self._path

    # ── Verification ────────────────────────────────────────────────────

    def verify_host_key(
        self, hostname: str, key: HostKey, address: Any = None
    ) -> TrustDecision:
        """Verify a server's host key, prompting when needed.

        Args:
            hostname: Host as dialed; a port suffix is stripped.
            key: Key presented during the handshake.
            address: Remote address, for logging only.

        Returns:
            TRUSTED when the stored key matches, FIRST_USE when an unknown
            host was accepted, MISMATCH when a changed key was accepted.

        Raises:
            TrustRejected: If the operator declined. Abort the connection.
            InvalidHostnameError: If hostname cannot be stored in the file.
            TrustIOError: If the store cannot be read or written.
        """
        host = _checked_hostname(hostname)
        with self._lock:
            lines = self._read_lines()
            record = self._find_record(lines, host)

            if record is None:
                return self._handle_first_connection(host, key, lines)

            if record.key_bytes != key.blob:
                return self._handle_key_mismatch(host, key, record, lines)

            self._logger.debug(
                "host_key_trusted",
                hostname=host,
                fingerprint=key.fingerprint,
                address=str(address) if address is not None else None,
            )
            return TrustDecision.TRUSTED

    def classify(self, hostname: str, key: HostKey) -> TrustDecision:
        """Compare a key against the store without prompting or writing."""
        host = _checked_hostname(hostname)
        with self._lock:
            record = self._find_record(self._read_lines(), host)
        if record is None:
            return TrustDecision.FIRST_USE
        if record.key_bytes != key.blob:
            return TrustDecision.MISMATCH
        return TrustDecision.TRUSTED

    def host_key_callback(self) -> HostKeyCallback:
        """Return a ``(hostname, address, key)`` callback for a transport layer.

        The callback returns None on success and raises TrustRejected or
        TrustIOError otherwise.
        """

        def callback(hostname: str, address: Any, key: HostKey) -> None:
            self.verify_host_key(hostname, key, address=address)

        return callback

    def _handle_first_connection(
        self, hostname: str, key: HostKey, lines: list[str]
    ) -> TrustDecision:
        prompt = TrustPrompt(
            decision=TrustDecision.FIRST_USE,
            hostname=hostname,
            key_type=key.key_type,
            fingerprint=key.fingerprint,
            known_hosts_file=self._path,
        )
        if not self._confirmer.confirm(prompt):
            self._logger.warning(
                "host_key_rejected", hostname=hostname, fingerprint=key.fingerprint
            )
            raise TrustRejected(
                "host key verification failed: user rejected host key",
                hostname=hostname,
                decision=TrustDecision.REJECTED,
                previous=TrustDecision.FIRST_USE,
            )

        record = HostKeyRecord.for_key(hostname, key)
        self._write_lines([*lines, record.to_line()])
        self._logger.info(
            "host_key_added",
            hostname=hostname,
            key_type=key.key_type,
            fingerprint=key.fingerprint,
        )
        return TrustDecision.FIRST_USE

    def _handle_key_mismatch(
        self,
        hostname: str,
        key: HostKey,
        stored: HostKeyRecord,
        lines: list[str],
    ) -> TrustDecision:
        self._logger.warning(
            "host_key_mismatch",
            hostname=hostname,
            stored_fingerprint=stored.fingerprint,
            presented_fingerprint=key.fingerprint,
        )
        prompt = TrustPrompt(
            decision=TrustDecision.MISMATCH,
            hostname=hostname,
            key_type=key.key_type,
            fingerprint=key.fingerprint,
            known_hosts_file=self._path,
            previous_fingerprint=stored.fingerprint,
        )
        if not self._confirmer.confirm(prompt):
            raise TrustRejected(
                "host key verification failed: key mismatch",
                hostname=hostname,
                decision=TrustDecision.REJECTED,
                previous=TrustDecision.MISMATCH,
            )

        kept = self._without_host(lines, hostname)
        self._write_lines([*kept, HostKeyRecord.for_key(hostname, key).to_line()])
        self._logger.info(
            "host_key_updated",
            hostname=hostname,
            key_type=key.key_type,
            fingerprint=key.fingerprint,
        )
        return TrustDecision.MISMATCH

    # ── Management ──────────────────────────────────────────────────────

    def get_host_key(self, hostname: str) -> HostKeyRecord | None:
        """Return the stored record for hostname, if any."""
        host = _checked_hostname(hostname)
        with self._lock:
            return self._find_record(self._read_lines(), host)

    def list_known_hosts(self) -> list[str]:
        """Hostnames with a valid record, in file order."""
        with self._lock:
            return [record.hostname for record in self._records(self._read_lines())]

    def remove_host_key(self, hostname: str) -> None:
        """Delete every record for hostname.

        Raises:
            HostNotFoundError: If the host has no record.
            InvalidHostnameError: If hostname is malformed.
        """
        host = _checked_hostname(hostname)
        with self._lock:
            lines = self._read_lines()
            kept = self._without_host(lines, host)
            if len(kept) == len(lines):
                raise HostNotFoundError(
                    f"host not found in known hosts: {host}", hostname=host
                )
            self._write_lines(kept)
        self._logger.info("host_key_removed", hostname=host)

    # ── File access ─────────────────────────────────────────────────────

    def _records(self, lines: list[str]) -> list[HostKeyRecord]:
        records = []
        for lineno, line in enumerate(lines, start=1):
            if not _is_content_line(line):
                continue
            try:
                records.append(HostKeyRecord.from_line(line))
            except ValueError as e:
                self._logger.warning(
                    "known_hosts_line_skipped",
                    path=str(self._path),
                    line=lineno,
                    reason=str(e),
                )
        return records

    def _find_record(self, lines: list[str], hostname: str) -> HostKeyRecord | None:
        for record in self._records(lines):
            if record.hostname == hostname:
                return record
        return None

    @staticmethod
    def _without_host(lines: list[str], hostname: str) -> list[str]:
        kept = []
        for line in lines:
            parts = line.split()
            if _is_content_line(line) and parts[0] == hostname:
                continue
            kept.append(line)
        return kept

    def _read_lines(self) -> list[str]:
        try:
            return self._path.read_text(encoding="utf-8").splitlines()
        except FileNotFoundError:
            return []
        except OSError as e:
            raise TrustIOError(
                f"failed to read known hosts file: {e}", path=str(self._path)
            ) from e

    def _write_lines(self, lines: list[str]) -> None:
        content = "".join(f"{line}\n" for line in lines)
        parent = self._path.parent
        try:
            parent.mkdir(mode=0o700, parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=parent, prefix=f".{self._path.name}.", suffix=".tmp"
            )
        except OSError as e:
            raise TrustIOError(
                f"failed to open known hosts file: {e}", path=str(self._path)
            ) from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self._path)
        except OSError as e:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise TrustIOError(
                f"failed to write known hosts file: {e}", path=str(self._path)
            ) from e
