import json
from types import SimpleNamespace

import pytest

pytest.importorskip("PySide6")

from character_vault.config import VaultConfig  # noqa: E402
from character_vault.state import VaultViewModel  # noqa: E402


@pytest.fixture
def viewmodel(tmp_path, fighter_payload, make_actor):
    data_dir = tmp_path / "data"
    actors = data_dir / "actors"
    actors.mkdir(parents=True)
    (actors / "brienne.json").write_text(json.dumps(fighter_payload), encoding="utf-8")
    (data_dir / "manifest.json").write_text(
        json.dumps([{"name": "Brienne Tarth", "file": "./data/actors/brienne.json"}]), encoding="utf-8"
    )
    extra = tmp_path / "ayla.json"
    extra.write_text(json.dumps({"actor": make_actor(name="Ayla", actor_id="actor0002")}), encoding="utf-8")
    config = VaultConfig(data_dir=data_dir, local_store=tmp_path / "store.json")
    model = VaultViewModel(config)
    messages = []
    model.messageEmitted.connect(messages.append)
    return SimpleNamespace(model=model, messages=messages, extra_file=extra)


def test_reload_reads_manifest(viewmodel):
    viewmodel.model.reload()
    assert [entry.name for entry in viewmodel.model.entries] == ["Brienne Tarth"]
    assert viewmodel.messages[-1] == "1 character(s) loaded."


def test_import_adds_to_local_store(viewmodel, tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text("{", encoding="utf-8")
    model = viewmodel.model
    assert model.import_files([viewmodel.extra_file, bad]) == 1
    assert [entry.name for entry in model.entries] == ["Ayla", "Brienne Tarth"]
    assert model.store.path.exists()


def test_query_and_selection(viewmodel):
    model = viewmodel.model
    model.import_files([viewmodel.extra_file])
    selections = []
    model.selectionChanged.connect(lambda: selections.append(model.selected_id))

    model.select("actor0001")
    assert model.selected_entry().name == "Brienne Tarth"

    model.set_query("ayla")
    assert [entry.name for entry in model.visible_entries()] == ["Ayla"]
    assert model.selected_id is None
    assert selections == ["actor0001", None]

    model.select("not-there")
    assert model.selected_id is None


def test_missing_data_dir_is_not_fatal(tmp_path):
    model = VaultViewModel(VaultConfig(data_dir=tmp_path / "absent", local_store=tmp_path / "store.json"))
    messages = []
    model.messageEmitted.connect(messages.append)
    model.reload()
    assert model.entries == []
    assert messages[-1] == "No data loaded – import JSON to begin."


def test_clear_imported_drops_local_snapshots(viewmodel):
    model = viewmodel.model
    model.import_files([viewmodel.extra_file])
    model.clear_imported()
    assert [entry.name for entry in model.entries] == ["Brienne Tarth"]
    assert not model.store.path.exists()
