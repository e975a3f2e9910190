import pytest

from fieldgallery.core.config import ConfigError, load_settings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("FIELDGALLERY_API_URL", "FIELDGALLERY_LOG_LEVEL", "FIELDGALLERY_CONFIG"):
        monkeypatch.delenv(name, raising=False)


def write(tmp_path, text):
    p = tmp_path / "fieldgallery.toml"
    p.write_text(text, encoding="utf-8")
    return p


def test_defaults_without_a_file(tmp_path):
    s = load_settings(tmp_path / "missing.toml")
    assert s.api_url == "http://localhost:8000"
    assert s.default_view == "grid"
    assert s.thumb_height == 220
    assert s.logs_dir is None
    assert s.max_upload_bytes == 25 * 1024 * 1024
    assert ".jpg" in s.image_ext and ".mov" in s.video_ext


def test_file_values_and_relative_paths(tmp_path):
    p = write(tmp_path, """
[api]
base_url = "https://files.example.org/"
timeout = 5

[gallery]
default_view = "LIST"

[logging]
logs_dir = "logs"
json = true

[dev]
data_dir = "store"

[ext]
image = ["JPG", ".Png", ""]
""")
    s = load_settings(p)
    assert s.api_url == "https://files.example.org"
    assert s.timeout == 5.0
    assert s.default_view == "list"
    assert s.logs_dir.resolve() == (tmp_path / "logs").resolve()
    assert s.json_logs is True
    assert s.data_dir == (tmp_path / "store").resolve()
    assert s.db_path == s.data_dir / "db" / "files.sqlite3"
    assert s.image_ext == {".jpg", ".png"}


def test_overrides_win_over_file(tmp_path):
    p = write(tmp_path, '[api]\nbase_url = "http://a"\ntimeout = 9\n')
    s = load_settings(p, overrides={"api": {"base_url": "http://b"}})
    assert s.api_url == "http://b"
    assert s.timeout == 9.0


def test_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("FIELDGALLERY_API_URL", "http://env:1234")
    monkeypatch.setenv("FIELDGALLERY_LOG_LEVEL", "debug")
    s = load_settings(tmp_path / "missing.toml")
    assert s.api_url == "http://env:1234"
    assert s.log_level == "DEBUG"


@pytest.mark.parametrize("section,values", [
    ("api", {"base_url": "ftp://x"}),
    ("api", {"timeout": 0}),
    ("api", {"timeout": "soon"}),
    ("gallery", {"default_view": "carousel"}),
    ("gallery", {"thumb_height": 8}),
    ("gallery", {"thumb_height": "tall"}),
    ("logging", {"level": "LOUD"}),
    ("dev", {"max_upload_mb": "lots"}),
])
def test_bad_values_raise(tmp_path, section, values):
    with pytest.raises(ConfigError):
        load_settings(tmp_path / "missing.toml", overrides={section: values})
