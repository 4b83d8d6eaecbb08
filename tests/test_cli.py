import asyncio
import logging
import os
import signal
import sys
from unittest.mock import patch

import pytest

from asset_pipeline.domain.exceptions import (
    ConfigurationError,
    ResolutionError,
    SourceRootNotFoundError,
    WatchError,
    WriteError,
)
from asset_pipeline.infrastructure.config import get_settings
from asset_pipeline.infrastructure.minifiers import JsMinifier
from asset_pipeline.interface import cli
from asset_pipeline.interface.error_handlers import exit_code_for
from asset_pipeline.interface.schemas import BuildRequest
from conftest import snapshot, write_tree

PROJECT = {
    "src/index.html": "<html>\n  <body>\n    <p>Hi</p>\n  </body>\n</html>\n",
    "src/css/site.css": "body {\n  color: red;\n}\n",
    "src/js/app.js": "console.log('boot');\nconst total = 1 + 2;\nwindow.total = total;\n",
}


@pytest.fixture
def project(tmp_path, monkeypatch):
    for key in list(os.environ):
        if key.startswith("ASSET_PIPELINE_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)
    write_tree(tmp_path, PROJECT)
    get_settings.cache_clear()
    yield tmp_path
    get_settings.cache_clear()


def test_default_environment_is_staging_mirror(project):
    assert cli.main([]) == 0

    out = snapshot(project / "dist" / "staging")
    assert out == {k.removeprefix("src/"): v.encode() for k, v in PROJECT.items()}


def test_production_writes_minified_tree_to_prod(project):
    assert cli.main(["--env=production"]) == 0

    out_root = project / "dist" / "prod"
    js = (out_root / "js" / "app.js").read_text()
    assert "console.log" not in js
    assert js.startswith("(()=>{")
    assert len((out_root / "css" / "site.css").read_text()) < len(PROJECT["src/css/site.css"])
    assert not (project / "dist" / "production").exists()


def test_custom_environment_and_source(project):
    write_tree(project, {"assets/a.css": "a {}"})

    assert cli.main(["--env", "qa", "--src", "assets"]) == 0

    assert snapshot(project / "dist" / "qa") == {"a.css": b"a {}"}


def test_missing_source_root_exits_non_zero(project, caplog):
    with caplog.at_level(logging.ERROR):
        assert cli.main(["--src", "missing"]) == 1

    assert not (project / "dist").exists()
    assert any("does not exist" in r.getMessage() for r in caplog.records)


def test_invalid_environment_is_usage_error(project):
    assert cli.main(["--env", "../escape"]) == 2
    assert not (project / "dist").exists()


def test_minifier_failure_keeps_exit_code_zero(project, caplog):
    with patch.object(JsMinifier, "minify", side_effect=ValueError("Unexpected token")):
        with caplog.at_level(logging.WARNING):
            assert cli.main(["--env", "production"]) == 0

    assert (project / "dist" / "prod" / "js" / "app.js").read_text() == PROJECT["src/js/app.js"]
    assert any("1 with failures" in r.getMessage() for r in caplog.records)


def test_settings_environment_overrides(project, monkeypatch):
    monkeypatch.setenv("ASSET_PIPELINE_DEFAULT_ENV", "preview")
    monkeypatch.setenv("ASSET_PIPELINE_INCLUDE_PATTERNS", '["**/*.css"]')
    get_settings.cache_clear()

    assert cli.main([]) == 0

    assert snapshot(project / "dist" / "preview") == {"css/site.css": PROJECT["src/css/site.css"].encode()}


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
def test_sigterm_ends_watch_session_cleanly(project):
    request = BuildRequest(env="staging", watch=True, src="src")

    async def _go():
        loop = asyncio.get_running_loop()
        loop.call_later(1.0, os.kill, os.getpid(), signal.SIGTERM)
        return await asyncio.wait_for(cli.run_session(request, get_settings()), timeout=15)

    assert asyncio.run(_go()) == 0
    assert (project / "dist" / "staging" / "index.html").exists()


def test_clean_removes_dist(project):
    write_tree(project, {"dist/prod/a.js": "x", "dist/staging/b.js": "y"})

    assert cli.clean([]) == 0

    assert not (project / "dist").exists()


def test_clean_without_artifacts(project, caplog):
    with caplog.at_level(logging.INFO):
        assert cli.clean([]) == 0

    assert any("No build artifacts to clean" in r.getMessage() for r in caplog.records)


@pytest.mark.parametrize(
    ("exc", "code"),
    [
        (ConfigurationError("bad"), 2),
        (SourceRootNotFoundError("gone"), 1),
        (ResolutionError("pattern"), 1),
        (WriteError("disk"), 1),
        (WatchError("observer"), 1),
        (RuntimeError("boom"), 1),
    ],
)
def test_exit_code_mapping(exc, code):
    assert exit_code_for(exc) == code


def test_build_request_validation():
    assert BuildRequest(env=" production ", src=" src ").environment.output_dir_name == "prod"
    with pytest.raises(ValueError):
        BuildRequest(env="", src="src")
    with pytest.raises(ValueError):
        BuildRequest(env="staging", src="   ")
