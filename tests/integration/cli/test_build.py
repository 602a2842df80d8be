"""Integration tests for the build and init commands"""

from mdfolio.cli.cli import app


def test_build_cmd_writes_site(runner, site):
    """build renders every document into _site and reports per-document status."""
    result = runner.invoke(app, ["build"])

    assert result.exit_code == 0, result.output
    assert "created: about.md" in result.output
    assert "Build complete - 5 created, 0 updated, 0 unchanged, 0 removed, 1 static file(s) copied" in result.output
    assert (site / "_site/about/index.html").is_file()
    assert (site / "_site/site.json").is_file()


def test_build_cmd_second_run_is_unchanged(runner, site):
    runner.invoke(app, ["build"])
    result = runner.invoke(app, ["build"])
    assert result.exit_code == 0, result.output
    assert "0 created, 0 updated, 5 unchanged, 0 removed, 0 static" in result.output


def test_build_cmd_force(runner, site):
    runner.invoke(app, ["build"])
    result = runner.invoke(app, ["build", "--force"])
    assert "5 updated" in result.output


def test_build_cmd_out_dir_and_path(runner, site, tmp_path):
    result = runner.invoke(app, ["build", str(site), "--out-dir", str(tmp_path / "dist")])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "dist/2021/03/04/endianness/index.html").is_file()


def test_build_cmd_uses_config_file(runner, site):
    (site / "config.yaml").write_text("site_title: My Blog\noutput_dir: public\n")
    result = runner.invoke(app, ["build"])
    assert result.exit_code == 0, result.output
    assert "<title>About | My Blog</title>" in (site / "public/about/index.html").read_text()
    assert not (site / "public/config.yaml").exists()


def test_build_cmd_fails_on_unknown_layout(runner, site):
    (site / "about.md").write_text("---\nlayout: fancy\n---\n")
    result = runner.invoke(app, ["build"])
    assert result.exit_code == 1
    assert "Error:" in result.output
    assert "Unknown layout 'fancy'" in result.output


def test_build_cmd_invalid_config(runner, site):
    (site / "config.yaml").write_text("log_level: LOUD\n")
    result = runner.invoke(app, ["build"])
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


def test_init_cmd(runner, site, tmp_path):
    result = runner.invoke(app, ["init"])
    assert result.exit_code == 0, result.output
    assert f"Manifest initialized at: sqlite:///{tmp_path}/test.db" in result.output
    assert (tmp_path / "test.db").is_file()


def test_init_cmd_reset_forgets_builds(runner, site):
    runner.invoke(app, ["build"])
    result = runner.invoke(app, ["init", "--reset"])
    assert "Existing build records cleared." in result.output
    result = runner.invoke(app, ["build"])
    assert "0 created, 5 updated" not in result.output
    assert "5 created" in result.output
