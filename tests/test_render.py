"""Tests for the line classifier and renderer."""

import pytest

from jotmark.core.model import (
    Blank,
    Bold,
    BulletItem,
    ChecklistItem,
    Code,
    CodeBlock,
    Heading,
    ImageLine,
    InlineCodeLine,
    Italic,
    Link,
    LinkLine,
    Paragraph,
    Quote,
    Rule,
    Strike,
    Text,
    block_to_dict,
)
from jotmark.core.render import LineKind, classify_line, render, render_line


def test_heading_levels():
    """Test the three heading prefixes."""
    assert render("# Title") == [Heading(1, (Text("Title"),))]
    assert render("## Sub") == [Heading(2, (Text("Sub"),))]
    assert render("### Small") == [Heading(3, (Text("Small"),))]


def test_heading_needs_space_and_max_three():
    """Test that '#Title' and '#### x' are not headings."""
    assert render("#Title") == [Paragraph((Text("#Title"),))]
    assert render("#### four") == [Paragraph((Text("#### four"),))]


def test_heading_beats_link():
    """Test that a heading prefix wins over link detection."""
    assert render("# [text](url)") == [Heading(1, (Text("[text](url)"),))]


def test_heading_inline_styles():
    blocks = render("## **Big** news")
    assert blocks == [Heading(2, (Bold("Big"), Text(" news")))]


def test_checklist_unchecked():
    assert render("- [ ] buy milk") == [ChecklistItem(False, (Text("buy milk"),))]


def test_checklist_checked():
    assert render("- [x] done") == [ChecklistItem(True, (Text("done"),))]


def test_checklist_marker_only():
    """Test a bare marker renders with no spans."""
    assert render("- [x]") == [ChecklistItem(True, ())]
    assert render("- [ ]") == [ChecklistItem(False, ())]


def test_checklist_uppercase_x_is_not_checklist():
    """Only a lowercase x counts as checked."""
    assert render("- [X] upper") == [Paragraph((Text("- [X] upper"),))]


def test_checklist_beats_link():
    """Test that checklist precedence is higher than links."""
    blocks = render("- [ ] read [docs](https://example.com)")
    assert blocks == [ChecklistItem(False, (Text("read [docs](https://example.com)"),))]


def test_link_line_segments():
    """Test that text around links goes through the inline formatter."""
    blocks = render("See **[docs](http://x)** or [home](/)")
    assert blocks == [
        LinkLine(
            (
                Text("See **"),
                Link("docs", "http://x"),
                Text("** or "),
                Link("home", "/"),
            )
        )
    ]


def test_link_line_with_styles():
    assert render("*see* [a](b) ~~old~~") == [
        LinkLine((Italic("see"), Text(" "), Link("a", "b"), Text(" "), Strike("old")))
    ]


def test_image_line():
    assert render("![cat](cat.png)") == [ImageLine(alt="cat", src="cat.png")]


def test_image_empty_alt():
    assert render("![](pic.jpg)") == [ImageLine(alt="", src="pic.jpg")]


def test_image_first_match_only():
    blocks = render("![one](1.png) ![two](2.png)")
    assert blocks == [ImageLine(alt="one", src="1.png")]


def test_link_beside_image_is_link_line():
    """A real link on the same line as an image makes it a link line."""
    assert classify_line("![i](i.png) and [t](u)") == LineKind.LINK


def test_fenced_code_single_line():
    assert render("```echo hi```") == [CodeBlock("echo hi")]


def test_fenced_code_not_formatted():
    """Test code interior is verbatim, stars included."""
    assert render("```a * b **c**```") == [CodeBlock("a * b **c**")]


def test_bare_fence_is_empty_code():
    assert render("```") == [CodeBlock("")]


def test_inline_code_line():
    blocks = render("run `ls -la` now")
    assert blocks == [InlineCodeLine((Text("run "), Code("ls -la"), Text(" now")))]


def test_inline_code_not_rescanned():
    blocks = render("**b** `**not bold**`")
    assert blocks == [InlineCodeLine((Bold("b"), Text(" "), Code("**not bold**")))]


def test_single_backtick_is_paragraph():
    assert render("it`s fine") == [Paragraph((Text("it`s fine"),))]


def test_bullet():
    assert render("- apples") == [BulletItem((Text("apples"),))]


def test_bullet_with_bracket_is_paragraph():
    """A '- ' line containing '[' is not a bullet."""
    assert render("- [draft") == [Paragraph((Text("- [draft"),))]


def test_quote():
    assert render("> wise words") == [Quote((Text("wise words"),))]


def test_rules():
    assert render("---") == [Rule()]
    assert render("***") == [Rule()]
    assert render("  ---  ") == [Rule()]
    assert render("----") == [Paragraph((Text("----"),))]


def test_paragraph_styles():
    """Test the bold and italic example paragraph."""
    assert render("**bold** and *italic*") == [
        Paragraph((Bold("bold"), Text(" and "), Italic("italic")))
    ]


def test_blank_lines():
    assert render("") == [Blank()]
    assert render("   ") == [Blank()]
    assert render("\t") == [Blank()]


def test_one_block_per_line():
    text = "# T\n\n- [ ] a\n- b\n> q\n---\nplain"
    blocks = render(text)
    assert len(blocks) == len(text.split("\n"))
    assert [b.kind for b in blocks] == [
        "heading",
        "blank",
        "checklist_item",
        "bullet_item",
        "quote",
        "rule",
        "paragraph",
    ]


@pytest.mark.parametrize(
    "first,second",
    [
        ("# a", "- [x] b"),
        ("", "```x```"),
        ("[l](u)", "> q"),
        ("plain", ""),
    ],
)
def test_per_line_independence(first, second):
    """Rendering two lines equals rendering each and concatenating."""
    assert render(first + "\n" + second) == render(first) + render(second)


def test_render_is_pure():
    text = "# Title\n- [ ] one\n**b** `c` [d](e)"
    assert render(text) == render(text)
    assert render(text) is not render(text)


def test_trailing_carriage_return_hidden():
    """CRLF text renders like LF text."""
    assert render("# Title\r\n- [x] a\r") == render("# Title\n- [x] a")
    assert render("---\r") == [Rule()]


def test_render_line_matches_render():
    assert render_line("- [ ] x") == render("- [ ] x")[0]


@pytest.mark.parametrize(
    "line,kind",
    [
        ("# h", LineKind.HEADING),
        ("- [x] c", LineKind.CHECKLIST),
        ("[a](b)", LineKind.LINK),
        ("![a](b)", LineKind.IMAGE),
        ("```x```", LineKind.FENCE),
        ("`x`", LineKind.INLINE_CODE),
        ("- b", LineKind.BULLET),
        ("> q", LineKind.QUOTE),
        ("***", LineKind.RULE),
        ("p", LineKind.PARAGRAPH),
        ("", LineKind.BLANK),
    ],
)
def test_classify_line(line, kind):
    assert classify_line(line) == kind


def test_fence_beats_inline_code():
    assert classify_line("```a `b` c```") == LineKind.FENCE


def test_unmatched_markup_never_raises():
    for line in ["[broken](", "![x](", "**", "~~", "__", "> ", "- ", "`", "[]()"]:
        assert len(render(line)) == 1


def test_block_to_dict():
    data = block_to_dict(render("- [x] **done**")[0])
    assert data == {
        "kind": "checklist_item",
        "checked": True,
        "spans": [{"kind": "bold", "text": "done"}],
    }
    assert block_to_dict(Rule()) == {"kind": "rule"}
    assert block_to_dict(ImageLine("a", "b")) == {"kind": "image_line", "alt": "a", "src": "b"}
