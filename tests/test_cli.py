#!/usr/bin/env python3
"""
Test the contractsync command line:
1. Report findings and exit status
2. Fix files in place
3. Write the JSON report
"""

import json
import textwrap

import pytest

from contractsync.cli import check_file, main
from contractsync.core.config import ContractSettings


UNCHECKED = textwrap.dedent('''
    from contractsync import NotNull, contract

    def greet(name: NotNull[str]) -> NotNull[str]:
        return "Hello " + name
''')

CHECKED = textwrap.dedent('''
    from contractsync import NotNull, contract

    def greet(name: NotNull[str]) -> NotNull[str]:
        contract.requires(name is not None)
        contract.ensures(contract.result(str) is not None)
        return "Hello " + name
''')


@pytest.fixture
def no_config(tmp_path):
    return ["--config", str(tmp_path / "missing.toml")]


def test_findings_exit_with_one(tmp_path, no_config, capsys):
    path = tmp_path / "greet.py"
    path.write_text(UNCHECKED, encoding="utf-8")

    assert main([str(path)] + no_config) == 1

    out = capsys.readouterr().out
    assert "Missing precondition" in out
    assert "Missing postcondition" in out
    assert path.read_text(encoding="utf-8") == UNCHECKED


def test_clean_file_exits_with_zero(tmp_path, no_config):
    path = tmp_path / "greet.py"
    path.write_text(CHECKED, encoding="utf-8")

    assert main([str(path)] + no_config) == 0


def test_fix_rewrites_file(tmp_path, no_config, capsys):
    path = tmp_path / "greet.py"
    path.write_text(UNCHECKED, encoding="utf-8")

    assert main([str(path), "--fix"] + no_config) == 0

    assert path.read_text(encoding="utf-8") == CHECKED
    assert "Fixed: 2" in capsys.readouterr().out


def test_directories_are_searched(tmp_path, no_config):
    package = tmp_path / "pkg"
    (package / "sub").mkdir(parents=True)
    (package / "clean.py").write_text(CHECKED, encoding="utf-8")
    (package / "sub" / "dirty.py").write_text(UNCHECKED, encoding="utf-8")
    (package / "notes.txt").write_text("not python", encoding="utf-8")

    report = tmp_path / "report.json"
    assert main([str(package), "--json", str(report), "--jobs", "2"] + no_config) == 1

    data = json.loads(report.read_text(encoding="utf-8"))
    assert data["summary"]["total_files"] == 2
    assert data["summary"]["total_findings"] == 2
    assert data["summary"]["by_kind"] == {"parameter": 1, "return": 1, "field": 0}


def test_invalid_source_exits_with_two(tmp_path, no_config, capsys):
    path = tmp_path / "broken.py"
    path.write_text("def broken(:\n", encoding="utf-8")

    assert main([str(path)] + no_config) == 2
    assert "Invalid Python source" in capsys.readouterr().out


def test_missing_path_exits_with_two(tmp_path, no_config):
    assert main([str(tmp_path / "nowhere.py")] + no_config) == 2


def test_invalid_config_exits_with_two(tmp_path):
    config = tmp_path / "pyproject.toml"
    config.write_text('[tool.contractsync]\nunknown_key = "x"\n', encoding="utf-8")
    path = tmp_path / "greet.py"
    path.write_text(CHECKED, encoding="utf-8")

    assert main([str(path), "--config", str(config)]) == 2


def test_config_marker_names_are_used(tmp_path):
    config = tmp_path / "pyproject.toml"
    config.write_text(textwrap.dedent('''
        [tool.contractsync]
        not_null_names = ["mylib.NonNull"]
    '''), encoding="utf-8")
    path = tmp_path / "greet.py"
    path.write_text(UNCHECKED, encoding="utf-8")

    assert main([str(path), "--config", str(config)]) == 0


def test_fix_result_for_single_file(tmp_path):
    path = tmp_path / "greet.py"
    path.write_text(UNCHECKED, encoding="utf-8")

    result = check_file(path, ContractSettings(), fix=True)

    assert result.error is None
    assert len(result.findings) == 2
    assert result.remaining == []
    assert result.changed
    assert result.fixed_source == CHECKED
    # check_file computes fixes, run() writes them
    assert path.read_text(encoding="utf-8") == UNCHECKED


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
