"""paramiko glue for the trust store and the checksum verifier.

Nothing here speaks SSH itself. TrustStorePolicy routes paramiko's host-key
check into a TrustStore, and ParamikoExecutor exposes an already connected
client as the ``execute_command`` capability the checksum verifier needs.

Usage:
    client = trusted_client(store)
    client.connect("ssh.example.net", username="install", key_filename=...)
    verifier = ChecksumVerifier(ParamikoExecutor(client))
"""

from __future__ import annotations

import paramiko

from stax_security.exceptions import RemoteCommandError
from stax_security.logging import Loggers
from stax_security.trust.known_hosts import TrustStore
from stax_security.trust.models import HostKey


def host_key_from_paramiko(key: paramiko.PKey) -> HostKey:
    """Convert a paramiko key into a HostKey."""
    return HostKey(key_type=key.get_name(), blob=key.asbytes())


class TrustStorePolicy(paramiko.MissingHostKeyPolicy):
    """Delegates paramiko's unknown-host decision to a TrustStore.

    paramiko only consults the policy for hosts missing from the client's
    own HostKeys, so the client must not load any other known_hosts file.
    Use :func:`trusted_client` to get a client set up that way.
    """

    def __init__(self, store: TrustStore):
        self._store = store

    def missing_host_key(
        self, client: paramiko.SSHClient, hostname: str, key: paramiko.PKey
    ) -> None:
        # TrustRejected propagates out of SSHClient.connect and aborts it
        self._store.verify_host_key(hostname, host_key_from_paramiko(key))


def trusted_client(store: TrustStore) -> paramiko.SSHClient:
    """Create an SSHClient whose host keys are checked only by store."""
    client = paramiko.SSHClient()
    client.set_missing_host_key_policy(TrustStorePolicy(store))
    return client


class ParamikoExecutor:
    """Runs one command per call on a connected paramiko client.

    Args:
        client: Connected SSHClient.
        timeout: Channel timeout in seconds (None = block).
    """

    def __init__(self, client: paramiko.SSHClient, timeout: float | None = None):
        self._client = client
        self._timeout = timeout
        self._logger = Loggers.checksum()

    def execute_command(self, command: str) -> str:
        """Run command and return its stdout.

        Raises:
            RemoteCommandError: If the command exits non-zero.
        """
        self._logger.debug("remote_command", command=command)
        _stdin, stdout, stderr = self._client.exec_command(command, timeout=self._timeout)
        out = stdout.read().decode("utf-8", errors="replace")
        err = stderr.read().decode("utf-8", errors="replace")
        status = stdout.channel.recv_exit_status()

        if status != 0:
            raise RemoteCommandError(
                f"command failed with exit status {status}: {err.strip()}",
                returncode=status,
                stderr=err,
            )
        return out
