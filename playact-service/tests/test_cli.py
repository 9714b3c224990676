"""Tests for the playact command-line interface."""

import io
import json

import pytest
from PIL import Image
from typer.testing import CliRunner

from playact import cli
from playact.cli import app

runner = CliRunner()


def _png(box=None) -> bytes:
    img = Image.new("RGB", (20, 10), (255, 255, 255))
    if box:
        img.paste((0, 0, 0), box)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


class TestMakeSamples:
    def test_writes_pdfs(self, tmp_path):
        result = runner.invoke(app, ["make-samples", "--out-dir", str(tmp_path)])
        assert result.exit_code == 0
        assert (tmp_path / "Invoice.pdf").exists()
        assert result.output.count("Wrote") == 5


class TestValidate:
    def test_invalid_invoices_exit_2(self, tmp_path, sample_root):
        report = tmp_path / "out" / "report.json"
        result = runner.invoke(
            app, ["validate", "--pdf-dir", str(sample_root / "pdfs"), "--report", str(report)]
        )
        assert result.exit_code == 2
        assert "Total invoices: 5" in result.output
        assert "Invalid invoices: 2" in result.output

        data = json.loads(report.read_text(encoding="utf-8"))
        assert data["summary"]["valid_invoices"] == 3
        assert len(data["results"]) == 5

    def test_all_valid(self, tmp_path, sample_pdfs):
        pdf_dir = tmp_path / "pdfs"
        pdf_dir.mkdir()
        (pdf_dir / "Invoice.pdf").write_bytes(sample_pdfs["Invoice.pdf"].read_bytes())
        result = runner.invoke(
            app, ["validate", "--pdf-dir", str(pdf_dir), "--report", str(tmp_path / "r.json")]
        )
        assert result.exit_code == 0
        assert "Top errors: None" in result.output

    def test_unreadable_pdf_is_reported(self, tmp_path, sample_pdfs):
        pdf_dir = tmp_path / "pdfs"
        pdf_dir.mkdir()
        (pdf_dir / "Invoice.pdf").write_bytes(sample_pdfs["Invoice.pdf"].read_bytes())
        (pdf_dir / "broken.pdf").write_bytes(b"%PDF-1.4\nthis is not a pdf body\n")
        report = tmp_path / "r.json"

        result = runner.invoke(app, ["validate", "--pdf-dir", str(pdf_dir), "--report", str(report)])
        assert result.exit_code == 2
        assert "Total invoices: 2" in result.output
        assert "Top errors: UNREADABLE_PDF" in result.output

        data = json.loads(report.read_text(encoding="utf-8"))
        assert [r["invoice_id"] for r in data["results"]] == ["Invoice.pdf", "broken.pdf"]

    def test_missing_directory(self, tmp_path):
        result = runner.invoke(app, ["validate", "--pdf-dir", str(tmp_path / "absent")])
        assert result.exit_code == 1


class TestCheckContent:
    def test_content_ok(self, sample_pdfs):
        result = runner.invoke(
            app,
            ["check-content", "--pdf", str(sample_pdfs["Invoice.pdf"]), "--expect", "John Doe", "--expect", "Net Bill"],
        )
        assert result.exit_code == 0
        assert "Content OK" in result.output

    def test_missing_text(self, sample_pdfs):
        result = runner.invoke(
            app, ["check-content", "--pdf", str(sample_pdfs["total-missing.pdf"]), "--expect", "Net Bill"]
        )
        assert result.exit_code == 1

    def test_absent_text_present(self, sample_pdfs):
        result = runner.invoke(
            app, ["check-content", "--pdf", str(sample_pdfs["wrong-calculations.pdf"]), "--absent", "515.00"]
        )
        assert result.exit_code == 1

    def test_missing_pdf(self, tmp_path):
        result = runner.invoke(app, ["check-content", "--pdf", str(tmp_path / "absent.pdf")])
        assert result.exit_code == 1


class TestCompare:
    @pytest.fixture
    def pages(self, monkeypatch):
        rendered = {}
        monkeypatch.setattr(cli, "convert_pdf_to_images", lambda path: [rendered[path.name]])
        return rendered

    def test_match(self, tmp_path, pages):
        a, b = tmp_path / "a.pdf", tmp_path / "b.pdf"
        a.write_bytes(b"%PDF")
        b.write_bytes(b"%PDF")
        pages.update({"a.pdf": _png(), "b.pdf": _png()})

        result = runner.invoke(app, ["compare", str(a), str(b)])
        assert result.exit_code == 0
        assert "Difference: 0.00% (0 pixels)" in result.output

    def test_mismatch_writes_diff(self, tmp_path, pages):
        a, b = tmp_path / "a.pdf", tmp_path / "b.pdf"
        a.write_bytes(b"%PDF")
        b.write_bytes(b"%PDF")
        pages.update({"a.pdf": _png(), "b.pdf": _png(box=(0, 0, 2, 1))})
        diff_out = tmp_path / "out" / "diff.png"

        result = runner.invoke(app, ["compare", str(a), str(b), "--diff-out", str(diff_out)])
        assert result.exit_code == 1
        assert "Difference: 1.00% (2 pixels)" in result.output
        assert diff_out.exists()

        result = runner.invoke(app, ["compare", str(a), str(b), "--tolerance", "1"])
        assert result.exit_code == 0

    def test_missing_candidate(self, tmp_path):
        a = tmp_path / "a.pdf"
        a.write_bytes(b"%PDF")
        result = runner.invoke(app, ["compare", str(a), str(tmp_path / "b.pdf")])
        assert result.exit_code == 1


class TestSnapshotCommands:
    @pytest.fixture
    def rendered(self, monkeypatch):
        from playact import snapshots

        pages = [_png()]
        monkeypatch.setattr(snapshots, "convert_pdf_to_images", lambda source: list(pages))
        return pages

    def test_snapshot_cycle(self, fixtures_dir, rendered):
        pdf = str(fixtures_dir / "pdfs" / "Invoice.pdf")

        result = runner.invoke(app, ["snapshot", "--pdf", pdf, "--name", "original-invoice"])
        assert result.exit_code == 0
        assert "Page 1: baseline_created" in result.output

        rendered[0] = _png(box=(0, 0, 10, 10))
        result = runner.invoke(app, ["snapshot", "--pdf", pdf, "--name", "original-invoice"])
        assert result.exit_code == 1
        assert "Page 1: mismatch (50.00% different)" in result.output

        result = runner.invoke(app, ["baselines"])
        assert "Found 2 baseline snapshots:" in result.output
        assert "original-invoice-page-1-diff.png" in result.output

        result = runner.invoke(app, ["cleanup-diffs"])
        assert "Cleaned up 1 diff files" in result.output

        result = runner.invoke(app, ["snapshot", "--pdf", pdf, "--name", "original-invoice", "--update"])
        assert result.exit_code == 0
        assert "Page 1: baseline_updated (was 50.00% different)" in result.output

    def test_generate_baselines(self, fixtures_dir, rendered):
        result = runner.invoke(app, ["generate-baselines"])
        assert result.exit_code == 0
        assert "Generated baselines for 5 PDF(s)" in result.output
        assert (fixtures_dir / "snapshots" / "wrong-logo-invoice-page-1.png").exists()


class TestMatrix:
    def test_prints_pairs(self, tmp_path, monkeypatch):
        images = {"a.pdf": _png(), "b.pdf": _png(box=(0, 0, 2, 1)), "c.pdf": _png()}
        for name in images:
            (tmp_path / name).write_bytes(b"%PDF")
        monkeypatch.setattr(cli, "convert_pdf_to_images", lambda path: [images[path.name]])

        result = runner.invoke(app, ["matrix", "--pdf-dir", str(tmp_path)])
        assert result.exit_code == 0
        assert "a.pdf vs b.pdf: 1.00%" in result.output
        assert "a.pdf vs c.pdf: 0.00%" in result.output
        assert "b.pdf vs c.pdf: 1.00%" in result.output


def test_serve_runs_uvicorn(monkeypatch):
    calls = []
    monkeypatch.setattr(cli.uvicorn, "run", lambda *args, **kwargs: calls.append((args, kwargs)))
    result = runner.invoke(app, ["serve", "--port", "9000"])
    assert result.exit_code == 0
    assert calls == [(("playact.api.main:app",), {"host": "127.0.0.1", "port": 9000, "reload": False})]
