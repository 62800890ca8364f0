from __future__ import annotations

import os

import pytest

from ipa_client.models import TransportConfig, ensure_ca_file

PEM = """-----BEGIN CERTIFICATE-----
MIIBszCCAVmgAwIBAgIUQ2VydGlmaWNhdGVGb3JUZXN0czAKBggqhkjOPQQDAjAV
-----END CERTIFICATE-----"""


def test_ca_file_is_stable():
    p1 = ensure_ca_file(PEM)
    p2 = ensure_ca_file(PEM.replace("\n", "\r\n") + "\n")
    assert p1 == p2
    assert os.path.isfile(p1)
    with open(p1, encoding="utf-8") as f:
        assert f.read().strip() == PEM


def test_ca_file_rejects_garbage():
    with pytest.raises(ValueError):
        ensure_ca_file("hello")


def test_empty_pem():
    assert ensure_ca_file("  ") == ""


def test_resolved_verify():
    assert TransportConfig().resolved_verify() is True
    assert TransportConfig(verify="/etc/ipa/ca.crt").resolved_verify() == "/etc/ipa/ca.crt"
    assert TransportConfig(verify=False, ca_pem=PEM).resolved_verify() is False
    assert TransportConfig(ca_pem=PEM).resolved_verify() == ensure_ca_file(PEM)


def test_ca_file_replaces_partial_write(tmp_path, monkeypatch):
    monkeypatch.setattr("ipa_client.models.tempfile.gettempdir", lambda: str(tmp_path))
    path = ensure_ca_file(PEM)
    assert os.path.dirname(path) == str(tmp_path)

    # a bundle cut short by a crashed writer is rewritten as a whole
    with open(path, "w", encoding="utf-8") as f:
        f.write(PEM[:40])
    assert ensure_ca_file(PEM) == path
    with open(path, encoding="utf-8") as f:
        assert f.read() == PEM + "\n"
    assert os.stat(path).st_mode & 0o777 == 0o600
    assert sorted(os.listdir(tmp_path)) == [os.path.basename(path)]
