"""
Tests for the HTML, RTF and DOCX adapters and the pipeline dispatcher.
"""

import subprocess
from unittest.mock import Mock, patch

import pytest

from docgate.exceptions import DocumentConversionError, ToolExecutionError, UnsupportedTypeError
from docgate.services.converter import DocumentConverter
from docgate.services.docx import DocxToHTMLService
from docgate.services.formats import FormatTag
from docgate.services.html_pdf import BASE_CSS, HTMLToPDFService, normalize_html, wrap_html
from docgate.services.rtf import RTFToHTMLService
from docgate.services.text_pdf import TextToPDFService
from tests.helpers import FAKE_PDF, FAKE_RTF_HTML, make_stub_tool


@pytest.fixture
def converter():
    return DocumentConverter(
        text_service=TextToPDFService(),
        html_service=HTMLToPDFService(),
        rtf_service=RTFToHTMLService(),
        docx_service=DocxToHTMLService(),
    )


class TestHTMLShell:
    """Wrapping fragments in the shared document shell."""

    def test_wrap_html_embeds_stylesheet(self):
        html = wrap_html("<p>x</p>")
        assert html.startswith("<!doctype html>")
        assert '<meta charset="utf-8">' in html
        assert BASE_CSS in html
        assert "<body><p>x</p></body>" in html

    def test_full_document_is_untouched(self):
        doc = "<HTML lang='en'><body>hi</body></HTML>"
        assert normalize_html(doc) == doc

    def test_fragment_is_wrapped(self):
        assert normalize_html("<h1>Title</h1>") == wrap_html("<h1>Title</h1>")

    def test_html_prefix_in_other_tag_is_not_a_document(self):
        assert normalize_html("<htmlish>") == wrap_html("<htmlish>")


class TestHTMLToPDFService:
    """wkhtmltopdf invocation and failure reporting."""

    def test_build_command(self, arena):
        service = HTMLToPDFService("/opt/wk/wkhtmltopdf")
        cmd = service.build_command(arena.directory / "in.html", arena.directory / "out.pdf")
        assert cmd[0] == "/opt/wk/wkhtmltopdf"
        assert "--enable-local-file-access" in cmd
        assert cmd[cmd.index("--margin-left") + 1] == "12mm"
        assert cmd[-2:] == [str(arena.directory / "in.html"), str(arena.directory / "out.pdf")]

    def test_render_success(self, arena, fake_tools):
        path = HTMLToPDFService().render("<html><body>x</body></html>", "page", arena)
        assert path.read_bytes() == FAKE_PDF
        assert path.parent == arena.directory
        html_inputs = list(arena.directory.glob("*-page.html"))
        assert len(html_inputs) == 1

    def test_render_reports_exit_status_and_stderr(self, arena, tmp_path):
        stub = make_stub_tool(tmp_path, "wkhtmltopdf", exit_code=3, stdout="partial", stderr="boom")
        service = HTMLToPDFService(str(stub))
        with pytest.raises(ToolExecutionError) as exc_info:
            service.render("<p>x</p>", "page", arena)
        error = exc_info.value
        assert error.returncode == 3
        assert error.status_code == 500
        assert "wkhtmltopdf failed (3)" in error.message
        assert "STDERR:\nboom" in error.message
        assert "partial" in error.message

    def test_missing_binary(self, arena, tmp_path):
        service = HTMLToPDFService(str(tmp_path / "does-not-exist"))
        with pytest.raises(ToolExecutionError) as exc_info:
            service.render("<p>x</p>", "page", arena)
        assert exc_info.value.returncode == 127

    def test_timeout(self, arena):
        with patch(
            "docgate.services.html_pdf.run_command_safely",
            side_effect=subprocess.TimeoutExpired(["wkhtmltopdf"], 5),
        ):
            with pytest.raises(ToolExecutionError, match="timed out"):
                HTMLToPDFService(timeout=5).render("<p>x</p>", "page", arena)


class TestRTFToHTMLService:
    """unrtf invocation."""

    def test_stdout_is_html(self, arena, tmp_path):
        stub = make_stub_tool(tmp_path, "unrtf", stdout="<p>rtf body</p>")
        html = RTFToHTMLService(str(stub)).to_html(b"{\\rtf1 hi}", arena, "memo")
        assert html == "<p>rtf body</p>"
        assert len(list(arena.directory.glob("*-memo.rtf"))) == 1

    def test_failure(self, arena, tmp_path):
        stub = make_stub_tool(tmp_path, "unrtf", exit_code=1, stderr="bad rtf")
        with pytest.raises(ToolExecutionError) as exc_info:
            RTFToHTMLService(str(stub)).to_html(b"junk", arena)
        assert exc_info.value.message == "unrtf failed (1)\nSTDERR:\nbad rtf"


class TestDocxToHTMLService:
    """mammoth-backed DOCX reading."""

    def test_reads_paragraph_text(self, sample_docx):
        html = DocxToHTMLService().to_html(sample_docx)
        assert "Hello from docx" in html
        assert "<p>" in html

    def test_rejects_garbage(self):
        with pytest.raises(DocumentConversionError) as exc_info:
            DocxToHTMLService().to_html(b"definitely not a zip", "broken.docx")
        assert "broken.docx" in exc_info.value.message


class TestDocumentConverter:
    """Pipeline selection per format."""

    def test_supports(self):
        assert DocumentConverter.supports(FormatTag.TXT)
        assert DocumentConverter.supports(FormatTag.HTML)
        assert not DocumentConverter.supports(FormatTag.PDF)
        assert not DocumentConverter.supports(FormatTag.ZIP)

    def test_txt_does_not_touch_external_tools(self, converter, arena, fake_tools):
        path = converter.convert(FormatTag.TXT, b"plain", "plain.txt", arena)
        assert path.read_bytes().startswith(b"%PDF")
        fake_tools.wkhtmltopdf.assert_not_called()
        fake_tools.unrtf.assert_not_called()

    def test_rtf_goes_through_unrtf_and_shell(self, converter, arena, fake_tools):
        path = converter.convert(FormatTag.RTF, b"{\\rtf1 hi}", "memo.rtf", arena)
        assert path.read_bytes() == FAKE_PDF
        html_path = fake_tools.wkhtmltopdf.call_args.args[0][-2]
        rendered = open(html_path, encoding="utf-8").read()
        assert rendered == wrap_html(FAKE_RTF_HTML)

    def test_docx_goes_through_mammoth_and_shell(self, converter, arena, fake_tools, sample_docx):
        path = converter.convert(FormatTag.DOCX, sample_docx, "letter.docx", arena)
        assert path.read_bytes() == FAKE_PDF
        html_path = fake_tools.wkhtmltopdf.call_args.args[0][-2]
        rendered = open(html_path, encoding="utf-8").read()
        assert BASE_CSS in rendered
        assert "Hello from docx" in rendered

    def test_html_document_rendered_as_is(self, converter, arena, fake_tools):
        doc = "<html><body><p>as is</p></body></html>"
        converter.convert(FormatTag.HTML, doc.encode(), "page.html", arena)
        html_path = fake_tools.wkhtmltopdf.call_args.args[0][-2]
        assert open(html_path, encoding="utf-8").read() == doc

    def test_unsupported_format(self, converter, arena):
        with pytest.raises(UnsupportedTypeError):
            converter.convert(FormatTag.PDF, b"%PDF", "x.pdf", arena)

    def test_from_settings_uses_configured_paths(self, test_settings):
        test_settings.WKHTMLTOPDF_PATH = "/usr/local/bin/wkhtmltopdf"
        test_settings.UNRTF_PATH = "/usr/local/bin/unrtf"
        built = DocumentConverter.from_settings(test_settings)
        assert built.html_service.wkhtmltopdf_path == "/usr/local/bin/wkhtmltopdf"
        assert built.rtf_service.unrtf_path == "/usr/local/bin/unrtf"
        assert built.html_service.timeout == test_settings.TOOL_TIMEOUT

    def test_tool_failure_propagates(self, arena):
        html_service = Mock(spec=HTMLToPDFService)
        html_service.render.side_effect = ToolExecutionError("wkhtmltopdf failed (2)", "wkhtmltopdf", 2)
        converter = DocumentConverter(TextToPDFService(), html_service, RTFToHTMLService(), DocxToHTMLService())
        with pytest.raises(ToolExecutionError):
            converter.convert(FormatTag.HTML, b"<p>x</p>", "x.html", arena)
