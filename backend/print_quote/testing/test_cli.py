# testing/test_cli.py

import json

import pytest
from typer.testing import CliRunner

from print_quote.main_cli import app

runner = CliRunner()
WIDE = {"COLUMNS": "200"}

@pytest.fixture
def cube_file(tmp_path, cube_stl):
    path = tmp_path / "cube.stl"
    path.write_bytes(cube_stl)
    return path

def test_list_materials():
    result = runner.invoke(app, ["list-materials"], env=WIDE)
    assert result.exit_code == 0, result.output
    assert "nylon-pa12" in result.output
    assert "pla" in result.output

def test_analyze(cube_file, tmp_path):
    output = tmp_path / "out" / "analysis.json"
    result = runner.invoke(app, ["analyze", str(cube_file), "--output", str(output)], env=WIDE)
    assert result.exit_code == 0, result.output
    assert "1.00 cm³" in result.output
    assert json.loads(output.read_text())["triangle_count"] == 12

def test_analyze_broken_file(tmp_path):
    path = tmp_path / "broken.stl"
    path.write_bytes(b"\0" * 30)
    result = runner.invoke(app, ["analyze", str(path)], env=WIDE)
    assert result.exit_code == 1
    assert "FAILED" in result.output

def test_quote(cube_file, tmp_path):
    output = tmp_path / "quote.json"
    result = runner.invoke(
        app,
        ["quote", str(cube_file), "pla", "--quantity", "2", "-p", "sanding", "-p", "sanding", "--output", str(output)],
        env=WIDE,
    )
    assert result.exit_code == 0, result.output
    assert "Total:" in result.output
    saved = json.loads(output.read_text())
    assert saved["pricing"]["post_processing_fee"] == pytest.approx(80.0)
    assert saved["configuration"]["post_processing"] == ["sanding", "sanding"]

def test_quote_unknown_post_processing_warns(cube_file):
    result = runner.invoke(app, ["quote", str(cube_file), "pla", "-p", "gilding"], env=WIDE)
    assert result.exit_code == 0, result.output
    assert "gilding" in result.output

def test_quote_invalid_configuration(cube_file):
    result = runner.invoke(app, ["quote", str(cube_file), "pla", "--quantity", "0"], env=WIDE)
    assert result.exit_code == 1
    assert "Invalid print configuration" in result.output

def test_quote_unknown_material(cube_file):
    result = runner.invoke(app, ["quote", str(cube_file), "unobtainium"], env=WIDE)
    assert result.exit_code == 1
    assert "Quote Generation Failed" in result.output

def test_quote_unavailable_color(cube_file):
    result = runner.invoke(app, ["quote", str(cube_file), "petg", "--color", "Red"], env=WIDE)
    assert result.exit_code == 1
    assert "not available" in result.output
