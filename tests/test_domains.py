from content.domains import domain_label, hostname_of, registrable_domain, resolve_http_url, same_site


def test_registrable_domain_multi_label_suffix():
    assert registrable_domain("https://shop.example.co.uk/path") == "example.co.uk"
    assert registrable_domain("www.acme.com") == "acme.com"


def test_registrable_domain_unknown_suffix_returns_host():
    assert registrable_domain("http://localhost:8000/") == "localhost"
    assert registrable_domain("") == ""


def test_domain_label():
    assert domain_label("shop.acme.co.uk") == "acme"


def test_hostname_of():
    assert hostname_of("https://Blog.Acme.com:8443/x") == "blog.acme.com"
    assert hostname_of("acme.com/about") == "acme.com"


def test_same_site():
    assert same_site("https://blog.acme.com/a", "acme.com")
    assert not same_site("https://acme.net/", "acme.com")
    assert not same_site("", "")


def test_resolve_http_url():
    assert resolve_http_url("/about", "https://acme.com/pricing") == "https://acme.com/about"
    assert resolve_http_url("mailto:hi@acme.com", "https://acme.com/") is None
    assert resolve_http_url("ftp://acme.com/file", "https://acme.com/") is None
    assert resolve_http_url("", "https://acme.com/") is None
