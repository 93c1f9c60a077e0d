from __future__ import annotations

import pytest

from dbsync.core.config import Settings, get_settings, validate_settings
from dbsync.infrastructure.external.s3_dynamo_sync.sync_config import table_sync_config_from_settings
from dbsync.shared.exceptions.sync import SyncConfigError


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Evita leer un .env real y limpia las variables del job."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "RESOURCE_JSON_BUCKET",
        "RESOURCE_SEARCH_TABLE",
        "AWS_REGION",
        "SYNC_BATCH_SIZE",
        "SYNC_MAX_KEYS",
        "SYNC_WRITE_SECTIONS",
        "SYNC_SWEEP_ORPHANS",
        "SYNC_INITIAL_BACKOFF_MS",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    settings = Settings(RESOURCE_JSON_BUCKET="b", RESOURCE_SEARCH_TABLE="t")
    assert settings.SYNC_MAX_KEYS == 50
    assert settings.SYNC_BATCH_SIZE == 20
    assert settings.SYNC_INITIAL_BACKOFF_MS == 1500
    assert settings.initial_backoff_s == 1.5
    assert settings.SYNC_MAX_ATTEMPTS == 20
    assert settings.SYNC_WRITE_SECTIONS is True
    assert settings.SYNC_SWEEP_ORPHANS is False
    assert settings.SYNC_INDEX_DOCUMENT == "index.json"


def test_get_settings_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("RESOURCE_JSON_BUCKET", "json-bucket")
    monkeypatch.setenv("RESOURCE_SEARCH_TABLE", "search-table")
    monkeypatch.setenv("SYNC_BATCH_SIZE", "10")
    monkeypatch.setenv("SYNC_SWEEP_ORPHANS", "true")

    settings = get_settings()

    assert settings.RESOURCE_JSON_BUCKET == "json-bucket"
    assert settings.SYNC_BATCH_SIZE == 10
    assert settings.SYNC_SWEEP_ORPHANS is True


def test_missing_bucket_is_config_error() -> None:
    with pytest.raises(SyncConfigError) as exc:
        get_settings()
    assert exc.value.details == {"setting": "RESOURCE_JSON_BUCKET"}
    assert exc.value.error_code == "CONFIG_ERROR"


def test_missing_table_is_config_error() -> None:
    with pytest.raises(SyncConfigError) as exc:
        validate_settings(Settings(RESOURCE_JSON_BUCKET="b"))
    assert "RESOURCE_SEARCH_TABLE" in exc.value.message


@pytest.mark.parametrize("size", [0, 26])
def test_batch_size_must_fit_batch_write_limit(size) -> None:
    with pytest.raises(SyncConfigError):
        validate_settings(Settings(RESOURCE_JSON_BUCKET="b", RESOURCE_SEARCH_TABLE="t", SYNC_BATCH_SIZE=size))


def test_index_document_must_be_a_filename() -> None:
    with pytest.raises(SyncConfigError):
        validate_settings(
            Settings(RESOURCE_JSON_BUCKET="b", RESOURCE_SEARCH_TABLE="t", SYNC_INDEX_DOCUMENT="a/index.json")
        )


def test_table_sync_config_from_settings() -> None:
    settings = Settings(
        RESOURCE_JSON_BUCKET="b",
        RESOURCE_SEARCH_TABLE="t",
        SYNC_PREFIX="posts/",
        SYNC_WRITE_SECTIONS=False,
    )
    config = table_sync_config_from_settings(settings)
    assert config.bucket == "b"
    assert config.table_name == "t"
    assert config.prefix == "posts/"
    assert config.batch_size == 20
    assert config.write_sections is False
    assert config.sweep_orphans is False
