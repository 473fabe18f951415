"""Tests for HTML text and metadata extraction."""

from __future__ import annotations

from vault_rag.documents.html_extractor import extract_html, extract_metadata


class TestExtractHtml:
    def test_removes_boilerplate(self, article_html: str):
        text = extract_html(article_html).text
        assert "Hypertension affects nearly half of adults." in text
        assert "Medication may be needed" in text
        for unwanted in ("Home", "About us", "cookies", "Copyright", "window.track"):
            assert unwanted not in text

    def test_meta_description_prepended(self, article_html: str):
        text = extract_html(article_html).text
        assert text.startswith("Guidance on hypertension management")

    def test_metadata(self, article_html: str):
        metadata = extract_html(article_html).metadata
        assert metadata.title == "Managing High Blood Pressure"
        assert metadata.description == "Guidance on hypertension management"
        assert metadata.author == "Clinic Health Team"
        assert metadata.published_date is None

    def test_paragraph_separation(self):
        text = extract_html("<body><p>First finding</p><p>Second finding</p></body>").text
        assert text == "First finding\n\nSecond finding"

    def test_entities_decoded(self):
        text = extract_html("<body><p>Systolic &lt; 120 &amp; diastolic &lt; 80</p></body>").text
        assert text == "Systolic < 120 & diastolic < 80"

    def test_table_cells_separated(self):
        html = "<body><table><tr><td>Glucose</td><td>142</td></tr></table></body>"
        assert "Glucose | 142" in extract_html(html).text

    def test_image_alt_text_included(self):
        html = '<body><img src="x.png" alt="Chest x-ray, frontal view"><p>Clear lungs.</p></body>'
        text = extract_html(html).text
        assert "Chest x-ray, frontal view" in text
        assert "Clear lungs." in text

    def test_protected_landmarks_kept(self):
        html = '<body><main class="nav-layout"><p>Important result</p></main></body>'
        assert "Important result" in extract_html(html).text

    def test_empty_input(self):
        assert extract_html("").text == ""
        assert extract_html("   ").text == ""


class TestExtractMetadata:
    def test_time_tag_date(self):
        html = '<html><body><time datetime="2024-05-01">May 1</time></body></html>'
        assert extract_metadata(html).published_date == "2024-05-01"

    def test_to_dict_drops_missing(self):
        html = "<html><head><title>Lab Guide</title></head></html>"
        assert extract_metadata(html).to_dict() == {"title": "Lab Guide"}
