import pytest

from initunlock import luks
from initunlock.errors import KeyContainerError
from initunlock.model import UnlockConfig


@pytest.fixture(autouse=True)
def _no_mappings(monkeypatch):
    monkeypatch.setattr(luks, "mapping_exists", lambda name: False)
    monkeypatch.setattr(luks, "udev_settle", lambda dry_run=False: None)


def test_unlock_success(monkeypatch, recorder, capsys):
    monkeypatch.setattr(luks, "run", recorder)
    assert luks.unlock("/dev/nvme0n1", "sn-ABC123", "/dev/mapper/key") is True
    assert recorder.calls == [["cryptsetup", "luksOpen", "/dev/nvme0n1", "--key-file", "/dev/mapper/key", "sn-ABC123"]]
    assert "/dev/mapper/sn-ABC123  SUCCESS" in capsys.readouterr().out


def test_unlock_failure_is_reported_not_raised(monkeypatch, recorder, capsys):
    recorder.add(["cryptsetup"], rc=2, err="No key available with this passphrase.")
    monkeypatch.setattr(luks, "run", recorder)
    assert luks.unlock("/dev/nvme0n1", "sn-ABC123", "/dev/mapper/key") is False
    assert "/dev/mapper/sn-ABC123  FAILED" in capsys.readouterr().out


def test_unlock_skips_existing_mapping(monkeypatch, recorder):
    monkeypatch.setattr(luks, "mapping_exists", lambda name: True)
    monkeypatch.setattr(luks, "run", recorder)
    assert luks.unlock("/dev/nvme0n1", "sn-ABC123", "/dev/mapper/key") is True
    assert recorder.calls == []


def test_open_key_container_is_interactive_and_read_only(monkeypatch, recorder, capsys):
    monkeypatch.setattr(luks, "run", recorder)
    luks.open_key_container(UnlockConfig())
    assert recorder.calls == [["cryptsetup", "luksOpen", "--readonly", "/root/loop.crypt", "key"]]
    assert recorder.kwargs[0]["interactive"] is True
    assert capsys.readouterr().out == " * opening keyfile, need password: "


def test_open_key_container_failure_raises(monkeypatch, recorder):
    recorder.add(["cryptsetup"], rc=2)
    monkeypatch.setattr(luks, "run", recorder)
    with pytest.raises(KeyContainerError):
        luks.open_key_container(UnlockConfig())


def test_close_key_container(monkeypatch, recorder, capsys):
    monkeypatch.setattr(luks, "run", recorder)
    assert luks.close_key_container("key") is True
    assert recorder.calls == [["cryptsetup", "luksClose", "/dev/mapper/key"]]

    recorder.add(["cryptsetup"], rc=4, err="Device key is still in use.")
    assert luks.close_key_container("key") is False
    assert "still in use" in capsys.readouterr().out


def test_open_key_container_already_open_skips_prompt(monkeypatch, recorder, capsys):
    monkeypatch.setattr(luks, "mapping_exists", lambda name: True)
    monkeypatch.setattr(luks, "run", recorder)
    luks.open_key_container(UnlockConfig())
    assert recorder.calls == []
    out = capsys.readouterr().out
    assert "need password" not in out
    assert out == " * keyfile already open as /dev/mapper/key\n"
