"""Tests for cli: the file/stream boundary around the engine."""

from __future__ import annotations

import io
import json

import pytest

import cli


@pytest.fixture
def post_file(tmp_path, sample_post):
    path = tmp_path / "post.md"
    path.write_text(sample_post, encoding="utf-8")
    return path


# -----------------------------------------------------------------------
# Sanitize mode
# -----------------------------------------------------------------------


class TestSanitize:
    def test_file_to_stdout(self, post_file, sanitized_post, capsys):
        assert cli.main(["--file", str(post_file)]) == 0
        captured = capsys.readouterr()
        assert captured.out == sanitized_post
        assert captured.err == ""

    def test_stdin_to_output_file(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("Connect to dns1 at 192.168.10.111 as mareox"))
        out = tmp_path / "clean.md"

        assert cli.main(["-o", str(out)]) == 0

        assert out.read_text(encoding="utf-8") == "Connect to DNS-Primary at DNS-Primary as <YOUR_USER>"
        assert capsys.readouterr().out == ""

    def test_report_goes_to_stderr(self, post_file, sanitized_post, capsys):
        assert cli.main(["--file", str(post_file), "--report"]) == 0
        captured = capsys.readouterr()
        assert captured.out == sanitized_post
        assert "--- Sanitization Report ---" in captured.err
        assert "IPs replaced: 4" in captured.err
        assert "Hostnames replaced: 5" in captured.err

    def test_report_json(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("password: s3cr3t123"))
        assert cli.main(["-r", "--json"]) == 0
        captured = capsys.readouterr()
        assert captured.out == "password: s3cr3t123"
        report = json.loads(captured.err)
        assert report["stats"]["sensitive_flagged"] == 1
        assert report["entries"][0]["severity"] == "warning"

    def test_option_flags(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("192.168.10.111 and 192.168.50.7"))
        assert cli.main(["--no-role-names", "--preserve-structure"]) == 0
        assert capsys.readouterr().out == "192.168.X.X and 192.168.X.X"

    def test_options_from_settings(self, monkeypatch, capsys):
        monkeypatch.setenv("PRESERVE_STRUCTURE", "true")
        monkeypatch.setattr("sys.stdin", io.StringIO("10.9.8.7"))
        assert cli.main([]) == 0
        assert capsys.readouterr().out == "10.X.X.X"

    def test_custom_catalog(self, tmp_path, monkeypatch, capsys):
        catalog = tmp_path / "catalog.json"
        catalog.write_text(json.dumps({"hostname_roles": {"gw1": "Gateway"}}))
        monkeypatch.setattr("sys.stdin", io.StringIO("gw1 and dns1"))

        assert cli.main(["--catalog", str(catalog)]) == 0
        assert capsys.readouterr().out == "Gateway and dns1"


# -----------------------------------------------------------------------
# Validate mode
# -----------------------------------------------------------------------


class TestValidate:
    def test_clean_file_exits_zero(self, tmp_path, sanitized_post, capsys):
        path = tmp_path / "clean.md"
        path.write_text(sanitized_post, encoding="utf-8")

        assert cli.main(["--validate", str(path)]) == 0
        assert "Content is properly sanitized." in capsys.readouterr().out

    def test_dirty_file_exits_one(self, post_file, capsys):
        assert cli.main(["-v", str(post_file)]) == 1
        out = capsys.readouterr().out
        assert out.startswith("Validation failed:")
        assert '  - Found unsanitized username "mareox"' in out

    def test_json_output(self, post_file, capsys):
        assert cli.main(["-v", str(post_file), "--json"]) == 1
        report = json.loads(capsys.readouterr().out)
        assert report["is_valid"] is False
        assert report["passed"] is False
        assert report["error_count"] == len(report["entries"])


# -----------------------------------------------------------------------
# Boundary errors
# -----------------------------------------------------------------------


class TestErrors:
    def test_missing_input_file(self, tmp_path, capsys):
        assert cli.main(["--file", str(tmp_path / "missing.md")]) == 2
        assert "Error: File not found" in capsys.readouterr().err

    def test_missing_validate_file(self, tmp_path, capsys):
        assert cli.main(["--validate", str(tmp_path / "missing.md")]) == 2
        assert "Error: File not found" in capsys.readouterr().err

    def test_no_input_on_tty(self, monkeypatch, capsys):
        class _Tty(io.StringIO):
            def isatty(self):
                return True

        monkeypatch.setattr("sys.stdin", _Tty())
        assert cli.main([]) == 2
        assert "No input provided" in capsys.readouterr().err

    def test_validate_with_output_rejected(self, post_file, tmp_path, capsys):
        code = cli.main(["--validate", str(post_file), "-o", str(tmp_path / "x.md")])
        assert code == 2
        assert "cannot be combined" in capsys.readouterr().err

    def test_bad_catalog(self, tmp_path, post_file, capsys):
        catalog = tmp_path / "catalog.json"
        catalog.write_text("[]")
        assert cli.main(["--file", str(post_file), "--catalog", str(catalog)]) == 2
        assert "Error: Catalog file" in capsys.readouterr().err

    def test_report_with_validate_rejected(self, post_file, capsys):
        assert cli.main(["--validate", str(post_file), "--report"]) == 2
        assert "Error: --report cannot be combined with --validate" in capsys.readouterr().err

    def test_json_without_report_rejected(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("dns1"))
        assert cli.main(["--json"]) == 2
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Error: --json requires --report or --validate" in captured.err
