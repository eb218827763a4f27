"""Tests for the guildsmith-check command."""

import json

from guildsmith.cli import EXIT_INVALID, EXIT_OK, EXIT_UNREADABLE, main, summarize


def _write(tmp_path, content):
    path = tmp_path / "blueprint.json"
    path.write_text(content, encoding="utf-8")
    return str(path)


class TestMain:

    def test_valid_file(self, tmp_path, capsys, canonical_blueprint):
        path = _write(tmp_path, json.dumps(canonical_blueprint))

        assert main([path]) == EXIT_OK
        out = capsys.readouterr().out
        assert f"{path}: OK" in out
        assert "roles: 3" in out
        assert "channels: 2" in out
        assert "presets: public-readonly=1" in out

    def test_preview_flag(self, tmp_path, capsys, canonical_blueprint):
        path = _write(tmp_path, json.dumps(canonical_blueprint))
        assert main([path, "--preview"]) == EXIT_OK
        assert "Categories & Channels:" in capsys.readouterr().out

    def test_invalid_blueprint(self, tmp_path, capsys):
        path = _write(tmp_path, json.dumps({"roles": [], "categories": {}}))

        assert main([path]) == EXIT_INVALID
        err = capsys.readouterr().err
        assert "validation error(s)" in err
        assert "roles" in err

    def test_malformed_json(self, tmp_path, capsys):
        assert main([_write(tmp_path, "{not json")]) == EXIT_UNREADABLE
        assert "Cannot read" in capsys.readouterr().err

    def test_missing_file(self, tmp_path):
        assert main([str(tmp_path / "nope.json")]) == EXIT_UNREADABLE


def test_summarize_counts_category_privacy():
    blueprint = {
        "roles": [{"name": "Admin"}],
        "categories": {"STAFF": [{"name": "logs", "private": True}], "INFO": [{"name": "news", "readOnly": True}]},
        "categoryPrivacy": {"STAFF": "staff-private"},
    }
    summary = summarize(blueprint)
    assert summary["categories"] == 2
    assert summary["channels"] == 2
    assert summary["presets"] == {"staff-private": 1}
