"""Tests for the MCP tool layer

Run with pytest from project root:
    pytest tests/test_tools.py -v
"""

import base64
import zipfile

import pytest

from managers.defaults_manager import DefaultsManager
from managers.emoji_store import EmojiStore
from managers.export_manager import ExportManager
from tools.configuration import register_configuration_tools
from tools.emoji import register_emoji_tools
from tools.export import register_export_tools
from upload_client import UploadError, UploadResult


class FakeUploadClient:
    def __init__(self, upload_url):
        self.upload_url = upload_url
        self.uploads = []

    def upload(self, archive, filename="emojis.zip"):
        self.uploads.append((filename, archive))
        return UploadResult(file_id="abc", command="/emojis update abc")


class FailingUploadClient(FakeUploadClient):
    def upload(self, archive, filename="emojis.zip"):
        raise UploadError("host unreachable")


@pytest.fixture
def store(sequential_names):
    return EmojiStore(fallback_name_generator=sequential_names)


@pytest.fixture
def defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("MCEMOJI_DEFAULT_ASCENT", raising=False)
    monkeypatch.delenv("MCEMOJI_DEFAULT_HEIGHT", raising=False)
    monkeypatch.delenv("MCEMOJI_FORMAT_VARIANT", raising=False)
    monkeypatch.setenv("MCEMOJI_OUTPUT_DIR", str(tmp_path / "out"))
    return DefaultsManager(config_file=tmp_path / "config.json")


@pytest.fixture
def tools(fake_mcp, store, defaults):
    register_emoji_tools(fake_mcp, store, defaults)
    register_export_tools(fake_mcp, ExportManager(store), defaults, upload_client_factory=FakeUploadClient)
    register_configuration_tools(fake_mcp, defaults)
    return fake_mcp.tools


class TestEmojiTools:
    """Tests for emoji editing tools"""

    def test_add_emoji_files(self, tools, tmp_path, png_bytes):
        (tmp_path / "smile.png").write_bytes(png_bytes)
        (tmp_path / "readme.md").write_text("x")

        result = tools["add_emoji_files"]([str(tmp_path / "smile.png"), str(tmp_path / "readme.md")])

        assert [emoji["name"] for emoji in result["added"]] == ["smile"]
        assert result["added"][0]["ascent"] == 8
        assert result["added"][0]["height"] == 9
        assert result["errors"] == ["Cannot load readme.md. Invalid extension."]

    def test_add_emoji_files_uses_configured_metrics(self, tools, tmp_path, png_bytes):
        tools["set_defaults"]({"ascent": 7, "height": 7})
        (tmp_path / "smile.png").write_bytes(png_bytes)

        result = tools["add_emoji_files"]([str(tmp_path / "smile.png")])
        assert result["added"][0]["ascent"] == 7
        assert result["added"][0]["height"] == 7

    def test_add_emoji_base64(self, tools, png_bytes):
        encoded = base64.b64encode(png_bytes).decode("ascii")
        result = tools["add_emoji"]("grin", encoded, permission="emojis.vip")

        assert result["index"] == 0
        assert result["name"] == "grin"
        assert result["permission"] == "emojis.vip"
        assert result["image_bytes"] == len(png_bytes)

    def test_add_emoji_rejects_non_png(self, tools):
        encoded = base64.b64encode(b"not an image at all").decode("ascii")
        result = tools["add_emoji"]("grin", encoded)
        assert result["error_code"] == "IMAGE_REJECTED"

    def test_add_emoji_collision(self, tools, png_bytes):
        encoded = base64.b64encode(png_bytes).decode("ascii")
        tools["add_emoji"]("grin", encoded)
        result = tools["add_emoji"]("grin", encoded)
        assert result["name"] == "fallback_a"

    def test_update_emoji(self, tools, store):
        store.add("smile", b"x")

        result = tools["update_emoji"](0, "ascent", "11")
        assert result["ascent"] == 11

        rejected = tools["update_emoji"](0, "name", "sm1le")
        assert rejected["error_code"] == "VALIDATION_REJECTED"
        assert store.get(0).name == "smile"

    def test_update_emoji_oversized_metric(self, tools, store):
        store.add("smile", b"x")
        result = tools["update_emoji"](0, "height", "9" * 5000)
        assert result["error_code"] == "VALIDATION_REJECTED"
        assert store.get(0).height == 9

    def test_update_missing_emoji(self, tools):
        result = tools["update_emoji"](3, "ascent", 1)
        assert result["error_code"] == "EMOJI_NOT_FOUND"

    def test_remove_and_list(self, tools, store):
        store.add("a", b"x")
        store.add("b", b"x")

        assert tools["remove_emoji"](0)["success"] is True
        assert tools["remove_emoji"](0)["success"] is True

        listing = tools["list_emojis"]()
        assert listing["count"] == 1
        assert listing["emojis"][0]["index"] == 1
        assert listing["emojis"][0]["filename"] == "b.mcemoji"


class TestExportTools:
    """Tests for export tools"""

    def test_save_without_emojis(self, tools):
        result = tools["save_emojis"]()
        assert result["error_code"] == "NO_EMOJIS"
        assert result["error"] == "No emojis to save, first add some emojis!"

    def test_upload_without_emojis(self, tools):
        result = tools["upload_emojis"]()
        assert result["error_code"] == "NO_EMOJIS"
        assert result["error"] == "No emojis to upload, first add some emojis!"

    def test_save_emojis(self, tools, store, tmp_path):
        store.add("smile", b"x")

        result = tools["save_emojis"]()

        assert result["entries"] == ["smile.mcemoji"]
        with zipfile.ZipFile(tmp_path / "out" / "emojis.zip") as zf:
            assert zf.namelist() == ["smile.mcemoji"]

    def test_save_emojis_invalid_filename(self, tools, store):
        store.add("smile", b"x")
        result = tools["save_emojis"](filename="../up.zip")
        assert result["error_code"] == "SAVE_FAILED"

    def test_save_emojis_export_failure(self, tools, store):
        store.add("huge", b"\x00" * 70000)
        result = tools["save_emojis"]()
        assert result["error_code"] == "EXPORT_FAILED"
        assert result["name"] == "huge"
        assert result["index"] == 0

    def test_upload_emojis(self, tools, store):
        store.add("smile", b"x")
        store.add("sad", b"y")

        result = tools["upload_emojis"]()

        assert result["id"] == "abc"
        assert result["command"] == "/emojis update abc"
        assert result["entry_count"] == 2

    def test_upload_failure(self, fake_mcp, store, defaults):
        register_export_tools(fake_mcp, ExportManager(store), defaults, upload_client_factory=FailingUploadClient)
        store.add("smile", b"x")

        result = fake_mcp.tools["upload_emojis"]()
        assert result["error_code"] == "UPLOAD_FAILED"
        assert store.get(0).name == "smile"

    def test_preview_export(self, tools, store):
        store.add("smile", b"x" * 10)
        store.add("sad", b"x" * 5)

        result = tools["preview_export"]()

        assert result["format_variant"] == "current"
        assert result["entries"] == [
            {"filename": "smile.mcemoji", "sort_key": 32767, "bytes_size": 29},
            {"filename": "sad.mcemoji", "sort_key": 32766, "bytes_size": 20},
        ]

    def test_preview_export_legacy(self, tools, store):
        store.add("smile", b"x" * 10)
        result = tools["preview_export"]("legacy")
        assert result["entries"][0]["bytes_size"] == 48

    def test_preview_export_unknown_variant(self, tools):
        result = tools["preview_export"]("ancient")
        assert result["error_code"] == "VALIDATION_REJECTED"


class TestConfigurationTools:
    """Tests for configuration tools"""

    def test_set_defaults_errors(self, tools):
        result = tools["set_defaults"]({"height": "tall"})
        assert result["success"] is False
        assert tools["get_defaults"]()["height"] == 9

    def test_set_defaults_persist(self, tools, tmp_path):
        result = tools["set_defaults"]({"height": 7}, persist=True)
        assert result["success"] is True
        assert (tmp_path / "config.json").exists()
