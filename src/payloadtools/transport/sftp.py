"""
SFTP upload sink.

Every call opens its own session from the ``SFTPConfig`` it is handed and
closes it before returning; nothing is cached between calls.
"""

from __future__ import annotations

import io
import logging
import posixpath
import socket
from contextlib import contextmanager
from typing import Iterator

import paramiko

from payloadtools.errors import UploadError
from payloadtools.schemas.models import SFTPConfig

log = logging.getLogger(__name__)


def remote_file_path(config: SFTPConfig, filename: str) -> str:
    if "/" in filename or filename in ("", ".", ".."):
        raise ValueError(f"Upload filename must be a bare name, got {filename!r}")
    return posixpath.join(config.remote_path or ".", filename)


def _load_key(path: str) -> paramiko.PKey:
    # try the key types paramiko ships, RSA last for older keys
    last_exc: Exception = paramiko.SSHException(f"Unsupported key: {path}")
    for cls in (paramiko.Ed25519Key, paramiko.ECDSAKey, paramiko.RSAKey):
        try:
            return cls.from_private_key_file(path)
        except paramiko.SSHException as e:
            last_exc = e
    raise last_exc


@contextmanager
def sftp_session(config: SFTPConfig) -> Iterator[paramiko.SFTPClient]:
    transport = paramiko.Transport((config.host, config.port))
    transport.banner_timeout = config.timeout
    sftp = None
    try:
        pkey = _load_key(config.private_key_path) if config.private_key_path else None
        transport.connect(username=config.username, password=config.password, pkey=pkey)
        sftp = paramiko.SFTPClient.from_transport(transport)
        yield sftp
    finally:
        if sftp is not None:
            sftp.close()
        transport.close()


def upload(content: str, filename: str, config: SFTPConfig) -> str:
    """
    Write ``content`` (UTF-8) to ``<remote_path>/<filename>``.

    Returns the remote path. Any SSH or socket failure surfaces as
    ``UploadError`` with the original exception chained.
    """
    remote = remote_file_path(config, filename)
    data = content.encode("utf-8")
    log.info("Uploading %s (%d bytes) to %s:%s", filename, len(data), config.host, remote)
    try:
        with sftp_session(config) as sftp:
            sftp.putfo(io.BytesIO(data), remote)
    except (paramiko.SSHException, socket.error, EOFError) as e:
        raise UploadError(f"Upload of {filename} to {config.host} failed: {e}") from e
    return remote


def check_connection(config: SFTPConfig) -> bool:
    try:
        with sftp_session(config) as sftp:
            sftp.listdir(config.remote_path or ".")
    except (paramiko.SSHException, socket.error, EOFError) as e:
        raise UploadError(f"Cannot reach {config.host}:{config.port}: {e}") from e
    return True
