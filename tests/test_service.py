"""
Test Suite for the Extractor Pipeline
=====================================
Integration tests for text extraction, the engine, the CLI and the
HTTP service.
"""

from __future__ import annotations

import io
import json
import logging

import pytest
from click.testing import CliRunner

from standings_extractor.cli import cli
from standings_extractor.engine import ExtractorConfig, StandingsExtractor
from standings_extractor.errors import (
    ExtractionError,
    HeaderNotFound,
    NoStandingsFound,
)
from standings_extractor.models import RaceClass
from standings_extractor.server import create_app
from standings_extractor.text_extractor import TextExtractor


ROW_TEXT = "TOP10 1 new 7 Team Racing Inc 120 5 10 2 3 6 8"


# ═══════════════════════════════════════════════════════════════════════════════
# TEXT EXTRACTOR TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestTextExtractor:
    """Test PyMuPDF text extraction."""

    def test_pages_joined_in_order(self, standings_pdf):
        text = TextExtractor().extract(standings_pdf)

        assert text.count("\n") == 2
        assert text.index("Proton") < text.index("Heart")
        assert "GT3 PRO" in text

    def test_page_range(self, standings_pdf):
        text = TextExtractor(page_range=(2, 2)).extract(standings_pdf)

        assert "Heart of Racing Team" in text
        assert "Proton" not in text

    def test_extract_bytes(self, standings_pdf_bytes):
        text = TextExtractor().extract_bytes(standings_pdf_bytes)
        assert "TOP10" in text.split()

    def test_page_count(self, standings_pdf):
        assert TextExtractor().get_page_count(standings_pdf) == 2

    def test_invalid_pdf(self):
        with pytest.raises(ExtractionError) as exc:
            TextExtractor().extract_bytes(b"this is not a pdf")
        assert exc.value.message.startswith("Falha ao processar PDF:")


# ═══════════════════════════════════════════════════════════════════════════════
# ENGINE TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestEngine:
    """Test the extraction engine end to end."""

    def test_parse_text(self):
        result = StandingsExtractor().parse_text(ROW_TEXT, "LMP2 round 3.pdf")

        assert result.detected_class == RaceClass.LMP2
        assert result.raw_text == ROW_TEXT
        assert result.file_name == "LMP2 round 3.pdf"
        assert result.skipped_tokens == 0
        assert result.validation.total_rows == 1

    def test_parse_text_is_idempotent(self):
        extractor = StandingsExtractor()
        first = extractor.parse_text(ROW_TEXT, "x.pdf").model_dump_json()
        second = extractor.parse_text(ROW_TEXT, "x.pdf").model_dump_json()
        assert first == second

    def test_parse_text_case_insensitive(self):
        text = "lmp2 " + ROW_TEXT
        default = StandingsExtractor().parse_text(text)
        relaxed = StandingsExtractor(
            ExtractorConfig(case_insensitive_detection=True)
        ).parse_text(text)

        assert default.detected_class is None
        assert relaxed.detected_class == RaceClass.LMP2

    def test_parse_text_case_override(self):
        text = "lmp2 " + ROW_TEXT
        extractor = StandingsExtractor()

        assert extractor.parse_text(text, case_insensitive=True).detected_class == (
            RaceClass.LMP2
        )
        assert extractor.parse_text(text).detected_class is None

        relaxed = StandingsExtractor(ExtractorConfig(case_insensitive_detection=True))
        assert relaxed.parse_text(text, case_insensitive=False).detected_class is None

    def test_parse_text_errors(self):
        extractor = StandingsExtractor()
        with pytest.raises(HeaderNotFound):
            extractor.parse_text("no table here", "x.pdf")
        with pytest.raises(NoStandingsFound):
            extractor.parse_text("TOP10 nothing follows", "x.pdf")

    def test_parse_pdf(self, standings_pdf):
        result = StandingsExtractor().parse(standings_pdf)

        assert result.detected_class == RaceClass.GT3_PRO
        assert result.file_name == "standings_2024.pdf"
        assert [s.car_number for s in result.standings] == ["77", "9A", "23"]
        assert result.standings[2].team_name == "Heart of Racing Team"
        assert result.validation.is_consistent

    def test_parse_bytes(self, standings_pdf_bytes):
        result = StandingsExtractor().parse_bytes(
            standings_pdf_bytes, "upload.pdf"
        )
        assert len(result.standings) == 3

    def test_parse_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            StandingsExtractor().parse(str(tmp_path / "missing.pdf"))

    def test_log_file(self, tmp_path):
        log_file = tmp_path / "logs" / "extractor.log"
        extractor = StandingsExtractor(ExtractorConfig(log_file=str(log_file)))
        extractor.parse_text(ROW_TEXT)

        assert log_file.exists()
        assert "Decoded 1 standings" in log_file.read_text(encoding="utf-8")


# ═══════════════════════════════════════════════════════════════════════════════
# CLI TESTS
# ═══════════════════════════════════════════════════════════════════════════════


class TestCli:
    """Test the click command-line interface."""

    def test_text_json_output(self, tmp_path):
        text_file = tmp_path / "dump.txt"
        text_file.write_text("GT PRO " + ROW_TEXT, encoding="utf-8")

        result = CliRunner().invoke(cli, ["text", str(text_file), "--json-output"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["detectedClass"] == "GT3 PRO"
        assert data["standings"][0]["team_name"] == "Team Racing Inc"

    def test_text_table_output(self, tmp_path):
        text_file = tmp_path / "dump.txt"
        text_file.write_text(ROW_TEXT, encoding="utf-8")

        result = CliRunner().invoke(
            cli, ["text", str(text_file), "--file-name", "LMP2.pdf"]
        )

        assert result.exit_code == 0
        assert "Standings: LMP2" in result.output

    def test_text_failure_exit_code(self, tmp_path):
        text_file = tmp_path / "dump.txt"
        text_file.write_text("no table here", encoding="utf-8")

        result = CliRunner().invoke(cli, ["text", str(text_file)])

        assert result.exit_code == 1
        assert "cabeçalho da tabela" in result.output

    def test_parse_pdf_json_output(self, standings_pdf):
        result = CliRunner().invoke(cli, ["parse", standings_pdf, "--json-output"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert len(data["standings"]) == 3
        assert "TOP10" in data["rawText"]

    def test_batch(self, tmp_path, standings_pdf_bytes, pdf_builder):
        (tmp_path / "gt.pdf").write_bytes(standings_pdf_bytes)
        (tmp_path / "blank.pdf").write_bytes(pdf_builder([["Nothing to see"]]))

        result = CliRunner().invoke(cli, ["batch", str(tmp_path)])

        assert result.exit_code == 0
        assert "1 failures" in result.output


# ═══════════════════════════════════════════════════════════════════════════════
# HTTP SERVICE TESTS
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def client():
    app = create_app({"TESTING": True})
    return app.test_client()


class TestServer:
    """Test the Flask endpoints."""

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.get_json()["status"] == "healthy"

    def test_parse_upload(self, client, standings_pdf_bytes):
        response = client.post(
            "/api/parse",
            data={"file": (io.BytesIO(standings_pdf_bytes), "standings.pdf")},
            content_type="multipart/form-data",
        )

        assert response.status_code == 200
        data = response.get_json()
        assert data["detectedClass"] == "GT3 PRO"
        assert len(data["standings"]) == 3

    def test_parse_upload_rejects_non_pdf(self, client):
        response = client.post(
            "/api/parse",
            data={"file": (io.BytesIO(b"x"), "standings.txt")},
            content_type="multipart/form-data",
        )

        assert response.status_code == 400
        assert response.get_json()["error"] == "Apenas ficheiros PDF são permitidos."

    def test_parse_upload_requires_file(self, client):
        response = client.post("/api/parse")
        assert response.status_code == 400

    def test_parse_upload_unreadable_pdf(self, client):
        response = client.post(
            "/api/parse",
            data={"file": (io.BytesIO(b"garbage"), "broken.PDF")},
            content_type="multipart/form-data",
        )

        assert response.status_code == 422
        assert response.get_json()["code"] == "extraction_failed"

    def test_parse_text(self, client):
        response = client.post(
            "/api/parse/text",
            json={"text": ROW_TEXT, "file_name": "LMP2.pdf"},
        )

        assert response.status_code == 200
        data = response.get_json()
        assert data["detectedClass"] == "LMP2"
        assert data["rawText"] == ROW_TEXT

    def test_parse_text_ignore_case(self, client):
        response = client.post(
            "/api/parse/text",
            json={"text": "gt pro " + ROW_TEXT, "ignore_case": True},
        )
        assert response.get_json()["detectedClass"] == "GT3 PRO"

    def test_parse_text_header_not_found(self, client):
        response = client.post("/api/parse/text", json={"text": "hello"})

        assert response.status_code == 422
        data = response.get_json()
        assert data["code"] == "header_not_found"
        assert "cabeçalho" in data["error"]

    def test_parse_text_no_standings(self, client):
        response = client.post("/api/parse/text", json={"text": "TOP10 end"})

        assert response.status_code == 422
        assert response.get_json()["code"] == "no_standings_found"

    def test_parse_text_requires_text(self, client):
        response = client.post("/api/parse/text", json={"file_name": "x.pdf"})
        assert response.status_code == 400

    def test_parse_text_prepared_for_detected_class(self, client):
        response = client.post(
            "/api/parse/text",
            json={"text": ROW_TEXT, "file_name": "LMP2.pdf"},
        )

        prepared = response.get_json()["prepared"]
        assert len(prepared) == 1
        assert prepared[0]["race_class"] == "LMP2"
        assert prepared[0]["country_code"] == "PT"
        assert prepared[0]["car_logo_url"] is None
        assert prepared[0]["behind"] == 0

    def test_parse_text_prepared_keeps_existing_rows(self, client):
        text = (
            "TOP10 1 new 7 Alpha Racing 100 0 10 0 0 1 2 "
            "2 new 8 Beta Racing 150 50 10 1 1 2 3"
        )
        response = client.post(
            "/api/parse/text",
            json={
                "text": text,
                "race_class": "GT3 PRO",
                "existing": {
                    "8": {"country_code": "DE", "car_logo_url": "https://cdn/8.png"},
                },
            },
        )

        assert response.status_code == 200
        data = response.get_json()
        assert data["detectedClass"] is None
        assert [s["car_number"] for s in data["standings"]] == ["7", "8"]

        prepared = data["prepared"]
        assert [p["car_number"] for p in prepared] == ["8", "7"]
        assert [p["rank"] for p in prepared] == [1, 2]
        assert [p["behind"] for p in prepared] == [0, -50]
        assert prepared[0]["country_code"] == "DE"
        assert prepared[0]["car_logo_url"] == "https://cdn/8.png"
        assert prepared[1]["country_code"] == "PT"

    def test_parse_text_unknown_class_has_no_prepared_rows(self, client):
        response = client.post("/api/parse/text", json={"text": ROW_TEXT})

        assert response.status_code == 200
        assert "prepared" not in response.get_json()

    def test_parse_text_rejects_unknown_race_class(self, client):
        response = client.post(
            "/api/parse/text",
            json={"text": ROW_TEXT, "race_class": "GT4 AM"},
        )
        assert response.status_code == 400
        assert "GT4 AM" in response.get_json()["error"]

    def test_parse_text_rejects_malformed_existing(self, client):
        for existing in (["77"], {"77": "DE"}):
            response = client.post(
                "/api/parse/text",
                json={"text": ROW_TEXT, "race_class": "LMP2", "existing": existing},
            )
            assert response.status_code == 400

    def test_parse_upload_race_class_overrides_detection(
        self, client, standings_pdf_bytes
    ):
        response = client.post(
            "/api/parse",
            data={
                "file": (io.BytesIO(standings_pdf_bytes), "standings.pdf"),
                "race_class": "LMP2",
            },
            content_type="multipart/form-data",
        )

        data = response.get_json()
        assert data["detectedClass"] == "GT3 PRO"
        assert {p["race_class"] for p in data["prepared"]} == {"LMP2"}
        assert [p["car_number"] for p in data["prepared"]] == ["77", "9A", "23"]

    def test_parse_upload_rejects_unknown_race_class(
        self, client, standings_pdf_bytes
    ):
        response = client.post(
            "/api/parse",
            data={
                "file": (io.BytesIO(standings_pdf_bytes), "standings.pdf"),
                "race_class": "lmp3",
            },
            content_type="multipart/form-data",
        )
        assert response.status_code == 400

    def test_extractor_built_once_per_app(self):
        app = create_app({"TESTING": True})
        extractor = app.extensions["standings_extractor"]
        client = app.test_client()

        client.post("/api/parse/text", json={"text": ROW_TEXT})
        client.post("/api/parse/text", json={"text": ROW_TEXT, "ignore_case": True})

        assert app.extensions["standings_extractor"] is extractor

    def test_requests_leave_logger_level_alone(self):
        client = create_app({"TESTING": True}).test_client()
        package_logger = logging.getLogger("standings_extractor")
        original = package_logger.level

        try:
            package_logger.setLevel(logging.WARNING)
            response = client.post("/api/parse/text", json={"text": ROW_TEXT})

            assert response.status_code == 200
            assert package_logger.level == logging.WARNING
        finally:
            package_logger.setLevel(original)
