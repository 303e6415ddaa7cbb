import json

import pytest

from character_vault.config import VaultConfig
from character_vault.data import LocalStore, ManifestEntry, SnapshotRepository, read_payload_files
from character_vault.manifest import build_manifest, main as manifest_main


def _write(path, payload):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


@pytest.fixture
def site(tmp_path):
    data_dir = tmp_path / "data"
    _write(data_dir / "actors" / "ayla.json", {"actor": {"name": "Ayla"}})
    _write(data_dir / "actors" / "zed.json", {"data": {"actor": {"name": "Zed"}}})
    (data_dir / "actors" / "broken.json").write_text("{not json", encoding="utf-8")
    (data_dir / "actors" / "notes.txt").write_text("ignore me", encoding="utf-8")
    _write(data_dir / "actors" / "nameless.json", {"actor": {}})
    return data_dir


def test_build_manifest(site):
    entries = build_manifest(site / "actors")
    assert entries == [
        {"name": "Ayla", "file": "./data/actors/ayla.json"},
        {"name": "nameless", "file": "./data/actors/nameless.json"},
        {"name": "Zed", "file": "./data/actors/zed.json"},
    ]


def test_manifest_cli(site):
    out_file = site / "manifest.json"
    assert manifest_main([str(site / "actors"), str(out_file)]) == 0
    written = json.loads(out_file.read_text(encoding="utf-8"))
    assert [entry["name"] for entry in written] == ["Ayla", "nameless", "Zed"]


def test_manifest_cli_rejects_missing_directory(tmp_path):
    assert manifest_main([str(tmp_path / "nope"), str(tmp_path / "manifest.json")]) == 1


def test_repository_loads_manifest_entries(site):
    manifest = [
        {"name": "Ayla", "file": "./data/actors/ayla.json"},
        {"name": "Zed", "file": "actors/zed.json"},
        {"name": "Gone", "file": "./data/actors/gone.json"},
        {"name": "Bad", "file": "./data/actors/broken.json"},
        {"name": "No file"},
    ]
    _write(site / "manifest.json", manifest)
    repository = SnapshotRepository(site)
    assert [entry.name for entry in repository.manifest()] == ["Ayla", "Zed", "Gone", "Bad"]
    payloads = repository.load_all()
    assert payloads == [{"actor": {"name": "Ayla"}}, {"data": {"actor": {"name": "Zed"}}}]


def test_repository_without_manifest(site):
    assert SnapshotRepository(site).load_all() == []


def test_repository_with_non_list_manifest(site):
    _write(site / "manifest.json", {"file": "x"})
    assert SnapshotRepository(site).manifest() == []


def test_repository_requires_directory(tmp_path):
    with pytest.raises(FileNotFoundError):
        SnapshotRepository(tmp_path / "missing")


def test_manifest_entry_from_raw():
    assert ManifestEntry.from_raw({"file": "a.json", "name": 3}) == ManifestEntry(name="", file="a.json")
    assert ManifestEntry.from_raw("a.json") is None


def test_local_store_round_trip(tmp_path):
    store = LocalStore(tmp_path / "store" / "payloads.json")
    assert store.load() == []
    assert store.append([{"actor": {"name": "A"}}]) == 1
    assert store.append([]) == 0
    store.append([{"actor": {"name": "B"}}])
    assert [payload["actor"]["name"] for payload in store.load()] == ["A", "B"]
    store.clear()
    assert store.load() == []


def test_local_store_ignores_corrupt_file(tmp_path):
    path = tmp_path / "payloads.json"
    path.write_text("[oops", encoding="utf-8")
    assert LocalStore(path).load() == []
    path.write_text('{"not": "a list"}', encoding="utf-8")
    assert LocalStore(path).load() == []


def test_read_payload_files_skips_bad_json(site):
    actors = site / "actors"
    payloads = read_payload_files([actors / "ayla.json", actors / "broken.json", actors / "missing.json"])
    assert payloads == [{"actor": {"name": "Ayla"}}]


def test_config_from_env(tmp_path):
    config = VaultConfig.from_env(
        {"CHARACTER_VAULT_DATA_DIR": str(tmp_path / "site"), "CHARACTER_VAULT_STORE": str(tmp_path / "s.json")}
    )
    assert config.data_dir == tmp_path / "site"
    assert config.local_store == tmp_path / "s.json"


def test_config_defaults():
    config = VaultConfig.from_env({})
    assert config.data_dir.name == "data"
    assert config.local_store.name == "local_actor_payloads_v1.json"
