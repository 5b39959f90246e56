from __future__ import annotations

from importlib import metadata

from notifly import version


def test_build_version_env_wins(monkeypatch) -> None:
    monkeypatch.setenv("BUILD_VERSION", " 2.1.0-rc1 ")
    assert version.get_version() == "2.1.0-rc1"


def test_falls_back_when_not_installed(monkeypatch) -> None:
    monkeypatch.delenv("BUILD_VERSION", raising=False)

    def missing(name: str) -> str:
        raise metadata.PackageNotFoundError(name)

    monkeypatch.setattr(version.metadata, "version", missing)
    assert version.get_version() == "unknown"


def test_installed_metadata_is_used(monkeypatch) -> None:
    monkeypatch.delenv("BUILD_VERSION", raising=False)
    monkeypatch.setattr(version.metadata, "version", lambda name: "1.0.0")
    assert version.get_version() == "1.0.0"
