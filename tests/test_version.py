from __future__ import annotations

from clearride.infra import version


def test_version_prefers_env(monkeypatch) -> None:
    monkeypatch.setenv("APP_VERSION", " 1.2.3 ")
    monkeypatch.setenv("GIT_SHA", "deadbeef")

    assert version.resolve_app_version() == "1.2.3"


def test_version_falls_back_to_unknown(monkeypatch) -> None:
    for key in ("APP_VERSION", "GIT_SHA", "BUILD_ID"):
        monkeypatch.delenv(key, raising=False)

    def missing(name: str) -> str:
        raise version.metadata.PackageNotFoundError(name)

    monkeypatch.setattr(version.metadata, "version", missing)

    assert version.resolve_app_version() == "unknown"
