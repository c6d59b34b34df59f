import paramiko
import pytest

from payloadtools.errors import UploadError
from payloadtools.schemas.models import SFTPConfig
from payloadtools.transport import sftp as sftp_mod


class FakeSFTP:
    def __init__(self, store):
        self.store = store
        self.closed = False

    def putfo(self, fo, remote):
        self.store[remote] = fo.read()

    def listdir(self, path):
        return list(self.store)

    def close(self):
        self.closed = True


class FakeTransport:
    instances = []
    fail_with = None

    def __init__(self, addr):
        self.addr = addr
        self.closed = False
        self.auth = None
        FakeTransport.instances.append(self)

    def connect(self, username=None, password=None, pkey=None):
        if FakeTransport.fail_with is not None:
            raise FakeTransport.fail_with
        self.auth = (username, password, pkey)

    def close(self):
        self.closed = True


@pytest.fixture
def store(monkeypatch):
    files = {}
    FakeTransport.instances = []
    FakeTransport.fail_with = None
    monkeypatch.setattr(sftp_mod.paramiko, "Transport", FakeTransport)
    monkeypatch.setattr(sftp_mod.paramiko.SFTPClient, "from_transport", lambda t: FakeSFTP(files))
    return files


def _cfg(**kw):
    base = {"host": "files.example.com", "port": 2222, "username": "u", "password": "pw", "remote_path": "/in"}
    base.update(kw)
    return SFTPConfig(**base)


def test_upload_writes_utf8_and_closes(store):
    remote = sftp_mod.upload('{"name": "José"}', "a.json", _cfg())
    assert remote == "/in/a.json"
    assert store["/in/a.json"] == '{"name": "José"}'.encode("utf-8")
    t = FakeTransport.instances[0]
    assert t.addr == ("files.example.com", 2222)
    assert t.auth == ("u", "pw", None)
    assert t.closed


def test_each_upload_opens_its_own_session(store):
    sftp_mod.upload("{}", "a.json", _cfg())
    sftp_mod.upload("{}", "b.json", _cfg(remote_path="/other"))
    assert len(FakeTransport.instances) == 2
    assert set(store) == {"/in/a.json", "/other/b.json"}


def test_auth_failure_is_upload_error(store):
    FakeTransport.fail_with = paramiko.AuthenticationException("denied")
    with pytest.raises(UploadError, match="denied") as exc:
        sftp_mod.upload("{}", "a.json", _cfg())
    assert isinstance(exc.value.__cause__, paramiko.AuthenticationException)
    assert FakeTransport.instances[0].closed


@pytest.mark.parametrize("name", ["", ".", "..", "sub/a.json"])
def test_remote_file_path_rejects_non_bare_names(name):
    with pytest.raises(ValueError):
        sftp_mod.remote_file_path(_cfg(), name)


def test_check_connection(store):
    assert sftp_mod.check_connection(_cfg()) is True
    FakeTransport.fail_with = OSError("refused")
    with pytest.raises(UploadError, match="refused"):
        sftp_mod.check_connection(_cfg())
