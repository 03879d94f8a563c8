import bcrypt

from synergy.auth import current_user, verify_password


def test_verify_password():
    stored = bcrypt.hashpw(b"arise", bcrypt.gensalt()).decode()
    assert verify_password("arise", stored)
    assert not verify_password("wrong", stored)


def test_malformed_hash_never_matches():
    assert not verify_password("arise", "not-a-bcrypt-hash")


def test_open_app_without_password(monkeypatch):
    monkeypatch.delenv("APP_PASSWORD", raising=False)
    monkeypatch.setenv("APP_USER", "jin")
    assert current_user() == "jin"
