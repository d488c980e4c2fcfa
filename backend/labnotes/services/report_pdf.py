"""
PDF report rendering.

A report is drawn on a reportlab canvas with a single vertical cursor: each
line or image first checks that it fits above the bottom margin and starts a
new page when it does not. Every page carries the optional custom header and a
footer with the page number.
"""
import base64
import binascii
import io
from typing import Callable, Iterable, Optional

from PIL import Image, UnidentifiedImageError
from reportlab.lib.colors import HexColor, black
from reportlab.lib.pagesizes import A4, landscape, letter, portrait
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas

from ..core.logging import get_logger
from ..models.base import utcnow
from ..schemas.report import ReportOptions
from ..utils.html_text import ImageRef, TextBlock, html_to_blocks

logger = get_logger(__name__)

ImageLoader = Callable[[str], Optional[bytes]]

FONTS = {
    "helvetica": ("Helvetica", "Helvetica-Bold", "Helvetica-Oblique"),
    "times": ("Times-Roman", "Times-Bold", "Times-Italic"),
    "courier": ("Courier", "Courier-Bold", "Courier-Oblique"),
}
PAGE_SIZES = {"a4": A4, "letter": letter}

MARGIN = 20 * mm
HEADER_GAP = 8 * mm
BODY_SIZE = 10.5
LEADING = 1.4
MAX_IMAGE_HEIGHT = 110 * mm
HEADING_SIZES = {1: 16, 2: 14, 3: 12.5, 4: 11.5, 5: 11, 6: 11}
GREY = HexColor("#6B7280")


def decode_data_uri(src: str) -> Optional[bytes]:
    """Bytes of a base64 data: URI, None for anything else."""
    if not src.startswith("data:"):
        return None
    header, _, payload = src.partition(",")
    if ";base64" not in header:
        return None
    try:
        return base64.b64decode(payload)
    except (binascii.Error, ValueError):
        return None


def prepare_image(data: bytes) -> Image.Image:
    """
    Open image bytes as an RGB Pillow image.

    Transparent images are flattened onto white, since PDF viewers otherwise
    render the transparent parts black.
    """
    img = Image.open(io.BytesIO(data))
    img.load()
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        rgba = img.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.split()[-1])
        return background
    if img.mode != "RGB":
        return img.convert("RGB")
    return img


def fit_size(width: float, height: float, max_width: float, max_height: float) -> tuple[float, float]:
    """Scale (width, height) down to fit the box, keeping the aspect ratio. Never scales up."""
    if width <= 0 or height <= 0:
        return 0.0, 0.0
    ratio = min(max_width / width, max_height / height, 1.0)
    return width * ratio, height * ratio


class _ReportCanvas:
    def __init__(self, buffer: io.BytesIO, options: ReportOptions, title: str):
        self.options = options
        size = PAGE_SIZES.get(options.page_size, A4)
        self.page_width, self.page_height = landscape(size) if options.orientation == "landscape" else portrait(size)
        self.regular, self.bold, self.italic = FONTS.get(options.font_family, FONTS["helvetica"])
        self.primary = HexColor(options.primary_color)
        self.accent = HexColor(options.accent_color)

        self.c = canvas.Canvas(buffer, pagesize=(self.page_width, self.page_height))
        self.c.setTitle(title)
        self.c.setCreator("Lab Notebook")

        self.left = MARGIN
        self.right = self.page_width - MARGIN
        self.content_width = self.right - self.left
        self.top = self.page_height - MARGIN - (HEADER_GAP if options.custom_header else 0)
        self.bottom = MARGIN + HEADER_GAP
        self.page_number = 0
        self.y = self.top
        self._start_page()

    # -- pages

    def _start_page(self) -> None:
        self.page_number += 1
        self.y = self.top
        if self.options.custom_header:
            self.c.setFont(self.italic, 8.5)
            self.c.setFillColor(GREY)
            self.c.drawString(self.left, self.page_height - MARGIN + 2, self.options.custom_header)
            self.c.setStrokeColor(self.accent)
            self.c.setLineWidth(0.5)
            self.c.line(self.left, self.page_height - MARGIN - 2, self.right, self.page_height - MARGIN - 2)

    def _finish_page(self) -> None:
        self.c.setFont(self.regular, 8.5)
        self.c.setFillColor(GREY)
        if self.options.custom_footer:
            self.c.drawString(self.left, MARGIN - 4, self.options.custom_footer)
        self.c.drawRightString(self.right, MARGIN - 4, f"Page {self.page_number}")

    def new_page(self) -> None:
        self._finish_page()
        self.c.showPage()
        self._start_page()

    def ensure_space(self, height: float) -> None:
        if self.y - height < self.bottom and self.y < self.top:
            self.new_page()

    # -- drawing primitives

    def space(self, height: float) -> None:
        if self.y - height < self.bottom:
            self.new_page()
        else:
            self.y -= height

    def text(
        self,
        text: str,
        size: float = BODY_SIZE,
        font: Optional[str] = None,
        color=black,
        indent: float = 0.0,
        bullet: str = "",
    ) -> None:
        font = font or self.regular
        leading = size * LEADING
        x = self.left + indent
        width = self.content_width - indent
        bullet_width = 0.0
        if bullet:
            bullet_width = self.c.stringWidth(bullet + " ", font, size)
            width -= bullet_width

        first = True
        for paragraph in text.split("\n"):
            lines = simpleSplit(paragraph, font, size, width) or [""]
            for line in lines:
                self.ensure_space(leading)
                self.y -= leading
                self.c.setFont(font, size)
                self.c.setFillColor(color)
                if bullet and first:
                    self.c.drawString(x, self.y, bullet)
                self.c.drawString(x + bullet_width, self.y, line)
                first = False

    def rule(self, color=None) -> None:
        self.ensure_space(6)
        self.y -= 3
        self.c.setStrokeColor(color or self.accent)
        self.c.setLineWidth(0.75)
        self.c.line(self.left, self.y, self.right, self.y)
        self.y -= 3

    def image(self, img: Image.Image) -> None:
        max_height = min(MAX_IMAGE_HEIGHT, self.top - self.bottom)
        width, height = fit_size(img.width, img.height, self.content_width, max_height)
        if width <= 0:
            return
        self.ensure_space(height + 4)
        self.y -= height + 2
        self.c.drawImage(ImageReader(img), self.left, self.y, width=width, height=height)
        self.y -= 2

    def finish(self) -> None:
        self._finish_page()
        self.c.save()


def _display_name(user) -> str:
    if user is None:
        return "Unknown"
    return getattr(user, "display_name", None) or getattr(user, "username", None) or "Unknown"


def _load_image(src: str, image_loader: Optional[ImageLoader]) -> Optional[bytes]:
    data = decode_data_uri(src)
    if data is None and image_loader is not None:
        data = image_loader(src)
    return data


def _draw_note_body(pdf: _ReportCanvas, note, options: ReportOptions, image_loader: Optional[ImageLoader]) -> None:
    for block in html_to_blocks(note.content):
        if isinstance(block, ImageRef):
            if not options.include_images:
                continue
            data = _load_image(block.src, image_loader)
            if data is None:
                pdf.text("[Image unavailable]", size=9, font=pdf.italic, color=GREY)
                continue
            try:
                img = prepare_image(data)
            except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
                logger.warning(f"Skipping unreadable image in note {note.id}: {e}")
                pdf.text("[Image could not be rendered]", size=9, font=pdf.italic, color=GREY)
                continue
            pdf.image(img)
        elif isinstance(block, TextBlock):
            if block.kind == "heading":
                pdf.space(2)
                pdf.text(block.text, size=HEADING_SIZES.get(block.level, 11), font=pdf.bold)
            elif block.kind == "list_item":
                pdf.text(block.text, indent=6 * mm * block.level, bullet=block.bullet)
            elif block.kind == "preformatted":
                pdf.text(block.text, size=9, font="Courier")
            else:
                pdf.text(block.text)
            pdf.space(2)


def build_report_pdf(
    project,
    experiment,
    notes: Iterable,
    options: Optional[ReportOptions] = None,
    image_loader: Optional[ImageLoader] = None,
) -> bytes:
    """
    Render a report for the given notes.

    Args:
        project: project the notes belong to (name/description are printed)
        experiment: optional experiment, printed when include_experiment_details is on
        notes: notes in print order; each needs title, content, created_at, author, attachments
        options: ReportOptions; defaults apply when None
        image_loader: resolves a non data: image src (e.g. /api/attachments/7/download) to bytes

    Returns:
        The PDF document as bytes.
    """
    options = options or ReportOptions()
    notes = list(notes)
    title = options.title or (f"{project.name} Report" if project is not None else "Report")

    buffer = io.BytesIO()
    pdf = _ReportCanvas(buffer, options, title)

    pdf.text(title, size=20, font=pdf.bold, color=pdf.primary)
    if options.subtitle:
        pdf.text(options.subtitle, size=13, font=pdf.italic, color=pdf.accent)
    pdf.text(f"Generated {utcnow():%Y-%m-%d %H:%M} UTC", size=9, color=GREY)
    pdf.rule(pdf.primary)

    if project is not None:
        pdf.space(4)
        pdf.text(f"Project: {project.name}", size=12, font=pdf.bold)
        if project.description:
            pdf.text(project.description)

    if experiment is not None and options.include_experiment_details:
        pdf.space(4)
        pdf.text(f"Experiment: {experiment.name}", size=12, font=pdf.bold)
        if experiment.description:
            pdf.text(experiment.description)
        if options.show_dates and getattr(experiment, "created_at", None):
            pdf.text(f"Started {experiment.created_at:%Y-%m-%d}", size=9, color=GREY)

    for note in notes:
        pdf.space(8)
        pdf.text(note.title, size=14, font=pdf.bold, color=pdf.primary)

        meta = []
        if options.show_authors:
            meta.append(f"By {_display_name(getattr(note, 'author', None))}")
        if options.show_dates and getattr(note, "created_at", None):
            meta.append(f"{note.created_at:%Y-%m-%d %H:%M}")
        if meta:
            pdf.text(" | ".join(meta), size=9, color=GREY)
        pdf.rule()

        _draw_note_body(pdf, note, options, image_loader)

        attachments = list(getattr(note, "attachments", None) or [])
        if options.include_attachments and attachments:
            pdf.space(2)
            pdf.text("Attachments", size=10.5, font=pdf.bold, color=pdf.accent)
            for attachment in attachments:
                size_kb = (attachment.file_size or 0) / 1024
                pdf.text(f"{attachment.file_name} ({size_kb:.1f} KB)", size=9.5, indent=4 * mm, bullet="•")

    pdf.finish()
    logger.info(f"Report rendered: {title} | notes: {len(notes)} | pages: {pdf.page_number}")
    return buffer.getvalue()
