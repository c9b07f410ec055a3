"""Checksum verification of synced file trees.

Usage:
    from stax_security.checksum import ChecksumVerifier

    verifier = ChecksumVerifier(executor, parallel=True, timeout=600)
    report = verifier.verify("sites/mysite/wp-content/uploads", "./uploads")
    print(report.to_dict())

Digests detect drift. They do not prove authenticity against a hostile
remote.
"""

from stax_security.checksum.digest import (
    Digest,
    HashlibDigest,
    MD5Digest,
    SHA256Digest,
    get_digest,
)
from stax_security.checksum.models import ChecksumEntry, ChecksumReport, FileMismatch
from stax_security.checksum.verifier import (
    ChecksumVerifier,
    RemoteExecutor,
    build_checksum_command,
    compare_checksums,
    generate_local_checksums,
    parse_checksum_line,
    parse_checksum_output,
)
from stax_security.exceptions import ChecksumComputationError

__all__ = [
    # Verifier
    "ChecksumVerifier",
    "RemoteExecutor",
    "build_checksum_command",
    "compare_checksums",
    "generate_local_checksums",
    "parse_checksum_line",
    "parse_checksum_output",
    # Digests
    "Digest",
    "HashlibDigest",
    "MD5Digest",
    "SHA256Digest",
    "get_digest",
    # Models
    "ChecksumEntry",
    "ChecksumReport",
    "FileMismatch",
    # Errors
    "ChecksumComputationError",
]
