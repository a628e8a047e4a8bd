"""Tests for HTML presentation."""

from jotmark.adapters.html_renderer import HtmlRenderer
from jotmark.core.render import render


def body(content: str, **kwargs) -> str:
    return HtmlRenderer(wrapper_class=None, **kwargs).render_text(content)


def test_wrapper_div():
    html = HtmlRenderer().render_text("# Hi")
    assert html == '<div class="note">\n<h1>Hi</h1>\n</div>'


def test_heading_and_styles():
    assert body("## **a** *b* __c__ ~~d~~") == (
        "<h2><strong>a</strong> <em>b</em> <u>c</u> <del>d</del></h2>"
    )


def test_checklist_carries_line_index():
    lines = body("# List\n- [ ] one\n- [x] two").split("\n")
    assert lines[1] == (
        '<div class="checklist-item todo" data-line="1">'
        '<input type="checkbox"> <span>one</span></div>'
    )
    assert lines[2] == (
        '<div class="checklist-item done" data-line="2">'
        '<input type="checkbox" checked> <span>two</span></div>'
    )


def test_link_opens_new_context():
    html = body("see [docs](https://example.com/?a=1&b=2)")
    assert html == (
        '<div class="link-line">see <a href="https://example.com/?a=1&amp;b=2" '
        'target="_blank" rel="noopener noreferrer">docs</a></div>'
    )


def test_unsafe_link_scheme_neutralized():
    html = body("[x](javascript:alert(1)")
    assert 'href="#"' in html
    assert "javascript" not in html


def test_unsafe_links_allowed_when_disabled():
    html = body("[x](javascript:void)", safe_links=False)
    assert 'href="javascript:void"' in html


def test_text_is_escaped():
    assert body("<script>alert('x')</script>") == (
        "<p>&lt;script&gt;alert(&#x27;x&#x27;)&lt;/script&gt;</p>"
    )
    assert body("```<b>&</b>```") == "<pre><code>&lt;b&gt;&amp;&lt;/b&gt;</code></pre>"


def test_image_with_caption():
    assert body("![A cat](cat.png)") == (
        '<figure><img src="cat.png" alt="A cat"><figcaption>A cat</figcaption></figure>'
    )
    assert body("![](cat.png)") == '<figure><img src="cat.png" alt=""></figure>'


def test_other_blocks():
    assert body("- item") == '<div class="bullet-item">item</div>'
    assert body("> q") == "<blockquote>q</blockquote>"
    assert body("---") == "<hr>"
    assert body("") == '<div class="blank"></div>'
    assert body("x `y`") == '<div class="inline-code-line">x <code>y</code></div>'


def test_render_blocks_one_element_per_line():
    content = "a\n\nb\n- [ ] c"
    html = HtmlRenderer(wrapper_class=None).render_blocks(render(content))
    assert len(html.split("\n")) == 4


def test_render_page():
    page = HtmlRenderer().render_page("# T", title="A & B")
    assert page.startswith("<!DOCTYPE html>")
    assert "<title>A &amp; B</title>" in page
    assert "<h1>T</h1>" in page
