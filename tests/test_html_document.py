from csp_html.utils.html_document import HtmlDocument, looks_like_xhtml


def test_looks_like_xhtml():
    assert looks_like_xhtml('<head><meta charset="utf-8"/></head>')
    assert looks_like_xhtml('<br/>')
    assert not looks_like_xhtml('<head><meta charset="utf-8"></head>')


def test_text_is_exact():
    document = HtmlDocument.parse('<script>\n  if (a < b) { go(); }\n</script>')
    assert document.text(document.select_one('script')) == '\n  if (a < b) { go(); }\n'


def test_head_created_after_doctype():
    document = HtmlDocument.parse('<!DOCTYPE html><p>x</p>')
    meta = document.create_element('meta', {'name': 'a'})
    document.prepend_to_head(meta)
    assert document.soup.contents[1] is document.head()
    assert document.serialize() == '<!DOCTYPE html><head><meta name="a"></head><p>x</p>'


def test_get_attr_joins_multi_valued():
    document = HtmlDocument.parse('<link rel="preload stylesheet" href="a.css">')
    link = document.select_one('link')
    assert document.get_attr(link, 'rel') == 'preload stylesheet'
    assert document.get_attr(link, 'nonce') is None


def test_script_content_is_not_escaped():
    markup = '<html><head><script>if (a < b && c) {}</script></head></html>'
    assert HtmlDocument.parse(markup).serialize() == markup


def test_looks_like_xhtml_ignores_script_style_and_comments():
    assert not looks_like_xhtml('<head><meta charset="utf-8"></head><body><script>el.innerHTML = "<br/>";</script>')
    assert not looks_like_xhtml('<style>p::after { content: "<br/>"; }</style><p>x</p>')
    assert not looks_like_xhtml('<!-- <img src="a.png"/> --><p>x</p>')
    assert looks_like_xhtml('<script>x()</script><link rel="stylesheet" href="a.css"/>')


def test_attributes_keep_source_order():
    document = HtmlDocument.parse('<html><head><script src="a.js" type="module" crossorigin="anonymous"></script></head></html>')
    script = document.select_one('script')
    document.set_attr(script, 'nonce', 'abc')
    meta = document.create_element('meta', {'http-equiv': 'Content-Security-Policy', 'content': "default-src 'self'"})
    document.prepend_to_head(meta)

    assert document.serialize() == (
        '<html><head><meta http-equiv="Content-Security-Policy" content="default-src \'self\'">'
        '<script src="a.js" type="module" crossorigin="anonymous" nonce="abc"></script></head></html>'
    )


def test_doctype_is_written_as_in_source():
    for markup in ('<!DOCTYPE html>\n<html><head></head></html>\n', '<!doctype html><html></html>'):
        assert HtmlDocument.parse(markup).serialize() == markup


def test_character_references_round_trip():
    markup = ('<p title="&quot;x&quot;">a&nbsp;b &copy; &#169; &#xA9; &lt;tag&gt; &amp;</p>'
              '<script>var s = "&nbsp;";</script>')
    document = HtmlDocument.parse(markup)

    assert document.serialize() == markup
    assert document.get_attr(document.select_one('p'), 'title') == '"x"'
    assert document.text(document.select_one('script')) == 'var s = "&nbsp;";'


def test_boolean_attributes():
    markup = '<script defer src="a.js"></script><img alt="" src="b.png">'
    assert HtmlDocument.parse(markup).serialize() == markup
    assert HtmlDocument.parse(markup, xhtml=True).serialize() == (
        '<script defer="" src="a.js"></script><img alt="" src="b.png"/>'
    )
