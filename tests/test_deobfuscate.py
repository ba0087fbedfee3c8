# File: tests/test_deobfuscate.py
from script_scout.crawler.models import TextPair
from script_scout.deobfuscate import deobfuscate


def test_plain_code_is_unchanged():
    code = "function track(a) { return window.dataLayer.push(a); }"
    assert deobfuscate(code) == code
    assert TextPair.from_texts(code, deobfuscate(code)).canonical is None


def test_urlencoded_code_is_decoded():
    encoded = "var%20a%3D1%3B"
    decoded = deobfuscate(encoded)
    assert decoded == "var a=1;"
    pair = TextPair.from_texts(encoded, decoded)
    assert pair.original == encoded
    assert pair.searchable == "var a=1;"


def test_results_are_memoised():
    deobfuscate.cache_clear()
    deobfuscate("x = 1")
    deobfuscate("x = 1")
    info = deobfuscate.cache_info()
    assert info.hits == 1
    assert info.misses == 1
