from csp_html.csp import build_csp_header, parse_csp_header


def test_build_csp_header():
    header = build_csp_header({
        'base-uri': ["'self'"],
        'object-src': ["'none'"],
        'script-src': ["'self'", 'https://cdn.example.com'],
    })
    assert header == "base-uri 'self'; object-src 'none'; script-src 'self' https://cdn.example.com"


def test_build_csp_header_bare_directive():
    header = build_csp_header({'upgrade-insecure-requests': [], 'object-src': ["'none'"]})
    assert header == "upgrade-insecure-requests; object-src 'none'"


def test_build_csp_header_empty_policy():
    assert build_csp_header({}) == ''


def test_parse_csp_header_round_trip():
    header = "base-uri 'self'; upgrade-insecure-requests; script-src 'self' 'nonce-abc'"
    directives = parse_csp_header(header)
    assert directives == {
        'base-uri': ["'self'"],
        'upgrade-insecure-requests': [],
        'script-src': ["'self'", "'nonce-abc'"],
    }
    assert build_csp_header(directives) == header
