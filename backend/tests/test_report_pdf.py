"""
Tests for PDF report rendering
"""
import base64
import io
import re
from datetime import datetime
from types import SimpleNamespace

import pytest
from PIL import Image, UnidentifiedImageError

from labnotes.schemas import ReportOptions
from labnotes.services.report_pdf import build_report_pdf, decode_data_uri, fit_size, prepare_image

PAGE_OBJECT = re.compile(rb'/Type /Page\b')


def png_bytes(size=(40, 20), mode='RGBA', color=(255, 0, 0, 128)) -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format='PNG')
    return buffer.getvalue()


def make_note(title='Note', content='<p>hi</p>', attachments=()):
    return SimpleNamespace(
        id=1,
        title=title,
        content=content,
        created_at=datetime(2024, 5, 1, 9, 30),
        author=SimpleNamespace(display_name='Dr. Who', username='who'),
        attachments=list(attachments),
    )


def page_count(pdf: bytes) -> int:
    return len(PAGE_OBJECT.findall(pdf))


@pytest.fixture
def project():
    return SimpleNamespace(name='Lab A', description='Enzyme kinetics')


class TestHelpers:
    def test_fit_size_keeps_aspect_ratio(self):
        assert fit_size(400, 200, 100, 100) == (100, 50)
        assert fit_size(100, 400, 100, 100) == (25, 100)

    def test_fit_size_never_upscales(self):
        assert fit_size(10, 5, 100, 100) == (10, 5)

    def test_fit_size_degenerate(self):
        assert fit_size(0, 10, 100, 100) == (0.0, 0.0)

    def test_prepare_image_flattens_alpha_onto_white(self):
        img = prepare_image(png_bytes(color=(0, 0, 0, 0)))

        assert img.mode == 'RGB'
        assert img.getpixel((0, 0)) == (255, 255, 255)

    def test_prepare_image_rejects_garbage(self):
        with pytest.raises(UnidentifiedImageError):
            prepare_image(b'not an image')

    def test_decode_data_uri(self):
        data = png_bytes()
        uri = 'data:image/png;base64,' + base64.b64encode(data).decode()

        assert decode_data_uri(uri) == data
        assert decode_data_uri('/api/attachments/1/download') is None
        assert decode_data_uri('data:text/plain,hello') is None


class TestBuildReport:
    def test_produces_pdf(self, project):
        pdf = build_report_pdf(project, None, [make_note()])

        assert pdf.startswith(b'%PDF')
        assert page_count(pdf) == 1

    def test_long_notes_span_pages(self, project):
        long_html = ''.join(f'<p>Observation {i}: the sample remained stable under load.</p>' for i in range(300))

        pdf = build_report_pdf(project, None, [make_note(content=long_html)])

        assert page_count(pdf) > 1

    def test_images_from_data_uri_and_loader(self, project):
        inline = 'data:image/png;base64,' + base64.b64encode(png_bytes((800, 600))).decode()
        content = (
            f'<p>Inline</p><img src="{inline}">'
            '<p>Linked</p><img src="/api/attachments/5/download">'
            '<img src="/api/attachments/6/download">'
        )
        requested = []

        def loader(src):
            requested.append(src)
            return png_bytes((300, 1200)) if src.endswith('/5/download') else None

        pdf = build_report_pdf(project, None, [make_note(content=content)], image_loader=loader)

        assert pdf.startswith(b'%PDF')
        assert requested == ['/api/attachments/5/download', '/api/attachments/6/download']

    def test_many_images_force_page_breaks(self, project):
        inline = 'data:image/png;base64,' + base64.b64encode(png_bytes((600, 600))).decode()
        content = ''.join(f'<img src="{inline}">' for _ in range(6))

        pdf = build_report_pdf(project, None, [make_note(content=content)])

        assert page_count(pdf) >= 3

    def test_images_can_be_excluded(self, project):
        calls = []
        options = ReportOptions(include_images=False)

        build_report_pdf(
            project, None, [make_note(content='<img src="/api/attachments/1/download">')],
            options, image_loader=calls.append,
        )

        assert calls == []

    def test_unreadable_image_does_not_fail(self, project):
        pdf = build_report_pdf(
            project, None, [make_note(content='<img src="/api/attachments/1/download">')],
            image_loader=lambda src: b'corrupt',
        )

        assert pdf.startswith(b'%PDF')

    def test_oversized_image_does_not_fail(self, project, monkeypatch):
        monkeypatch.setattr(Image, 'MAX_IMAGE_PIXELS', 100)
        with pytest.raises(Image.DecompressionBombError):
            prepare_image(png_bytes())

        pdf = build_report_pdf(
            project, None, [make_note(content='<img src="/api/attachments/1/download">')],
            image_loader=lambda src: png_bytes(),
        )

        assert pdf.startswith(b'%PDF')

    def test_layout_options(self, project):
        options = ReportOptions(
            title='Quarterly',
            subtitle='Q2',
            custom_header='Confidential',
            custom_footer='Lab A',
            font_family='times',
            orientation='landscape',
            page_size='letter',
            primary_color='#112233',
        )
        experiment = SimpleNamespace(name='Run 1', description='Baseline', created_at=datetime(2024, 4, 1))
        attachment = SimpleNamespace(file_name='data.csv', file_size=2048)

        pdf = build_report_pdf(project, experiment, [make_note(attachments=[attachment])], options)

        assert pdf.startswith(b'%PDF')
        assert re.search(rb'/MediaBox \[\s*0 0 792 612\s*\]', pdf)
