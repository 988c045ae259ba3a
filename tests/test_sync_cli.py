import json

import sync as sync_module

from conftest import make_candidate


class FakeProvider:
    def __init__(self, access_token=None, settings=None):
        self.access_token = access_token

    def search_track(self, track):
        if "One" in track.title:
            return [make_candidate(track.title, track.artist)]
        return []


def test_sync_export_all_pages(tmp_path, monkeypatch, settings, export_csv):
    monkeypatch.setattr(sync_module, "SoundCloudProvider", FakeProvider)
    csv_path = tmp_path / "export.csv"
    csv_path.write_text(export_csv, encoding="utf-8")
    output = tmp_path / "results.json"

    ok = sync_module.sync_export(str(csv_path), all_pages=True, access_token="token",
                                 output=str(output), settings=settings)

    assert ok
    data = json.loads(output.read_text(encoding="utf-8"))
    assert [r["source_track"]["track_key"] for r in data["matched"]] == ["k1"]
    assert [r["status"] for r in data["needs_review"]] == ["no_match", "no_match"]


def test_sync_export_single_page(tmp_path, monkeypatch, settings, export_csv):
    monkeypatch.setattr(sync_module, "SoundCloudProvider", FakeProvider)
    csv_path = tmp_path / "export.csv"
    csv_path.write_text(export_csv, encoding="utf-8")
    output = tmp_path / "results.json"

    sync_module.sync_export(str(csv_path), page=2, access_token="token", output=str(output), settings=settings)

    data = json.loads(output.read_text(encoding="utf-8"))
    assert data["matched"] == []
    assert [r["source_track"]["track_key"] for r in data["needs_review"]] == ["k3"]


def test_bad_header_fails(tmp_path, settings):
    csv_path = tmp_path / "export.csv"
    csv_path.write_text("meta\nnot,the,header\n", encoding="utf-8")
    assert sync_module.sync_export(str(csv_path), access_token="token", settings=settings) is False


def test_main_missing_file(tmp_path):
    assert sync_module.main([str(tmp_path / "missing.csv")]) == 1
