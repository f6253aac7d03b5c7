from storefront.utils import sanitize_input


def test_sanitize_removes_script_tags():
    s = "<script>alert(1)</script>Bob"
    out = sanitize_input(s)
    assert "<script" not in out.lower()
    assert "bob" in out.lower()


def test_sanitize_strips_markup_and_nulls():
    s = "  <a href='http://evil'>nice</a> product\x00  "
    out = sanitize_input(s)
    assert out == "nice product"


def test_sanitize_none_is_empty():
    assert sanitize_input(None) == ""
