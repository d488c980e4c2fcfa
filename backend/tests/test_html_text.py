"""
Tests for the note HTML flattener used by report rendering
"""
from labnotes.utils.html_text import ImageRef, TextBlock, attachment_id_from_src, html_to_blocks, html_to_text


class TestHtmlToText:
    def test_paragraphs_lists_and_entities(self):
        html = (
            '<p>Hello <b>world</b> &amp; co</p>'
            '<ul><li>one</li><li>two</li></ul>'
            '<ol><li>a</li><li>b</li></ol>'
        )

        assert html_to_text(html) == 'Hello world & co\n• one\n• two\n1. a\n2. b'

    def test_line_breaks_and_whitespace(self):
        assert html_to_text('<p>line   one<br>line\n two</p>') == 'line one\nline two'

    def test_scripts_and_styles_dropped(self):
        html = '<style>p { color: red }</style><p>kept</p><script>alert(1)</script>'

        assert html_to_text(html) == 'kept'

    def test_comments_and_document_head_dropped(self):
        html = '<html><head><title>Draft</title></head><body><p>a<!-- hidden -->b</p></body></html>'

        assert html_to_text(html) == 'ab'

    def test_empty_input(self):
        assert html_to_text(None) == ''
        assert html_to_blocks('') == []

    def test_paragraph_inside_list_item_keeps_bullet(self):
        assert html_to_text('<ul><li><p>wrapped</p></li></ul>') == '• wrapped'


class TestHtmlToBlocks:
    def test_headings_and_preformatted(self):
        blocks = html_to_blocks('<h2>Results</h2><pre>  x = 1\n  y = 2</pre>')

        assert blocks == [
            TextBlock(kind='heading', text='Results', level=2),
            TextBlock(kind='preformatted', text='  x = 1\n  y = 2'),
        ]

    def test_images_split_text(self):
        blocks = html_to_blocks('<p>before<img src="/api/attachments/7/download" alt="gel">after</p>')

        assert blocks == [
            TextBlock(kind='paragraph', text='before'),
            ImageRef(src='/api/attachments/7/download', alt='gel'),
            TextBlock(kind='paragraph', text='after'),
        ]

    def test_image_without_src_ignored(self):
        assert html_to_blocks('<img alt="nothing">') == []

    def test_nested_list_depth(self):
        blocks = html_to_blocks('<ul><li>outer<ul><li>inner</li></ul></li></ul>')

        assert [(b.text, b.level) for b in blocks] == [('outer', 1), ('inner', 2)]


class TestAttachmentIdFromSrc:
    def test_relative_and_absolute(self):
        assert attachment_id_from_src('/api/attachments/12/download') == 12
        assert attachment_id_from_src('http://localhost:8000/api/attachments/3/download') == 3

    def test_other_sources(self):
        assert attachment_id_from_src('data:image/png;base64,AAAA') is None
        assert attachment_id_from_src('https://example.org/image.png') is None
        assert attachment_id_from_src('') is None
