"""로깅 유틸 테스트"""
from src.core.logging import mask_secret, sanitize_for_log


class TestMaskSecret:
    def test_keeps_prefix(self):
        assert mask_secret("AIzaSyExample") == "AIza***"

    def test_short_and_empty(self):
        assert mask_secret("abc") == "***"
        assert mask_secret("") == "[empty]"


class TestSanitizeForLog:
    def test_masks_query_key(self):
        message = "Client error '403' for url 'https://vision.googleapis.com/v1/images:annotate?key=AIzaSECRET'"

        sanitized = sanitize_for_log(message)

        assert "AIzaSECRET" not in sanitized
        assert "key=***" in sanitized
        assert sanitized.startswith("Client error '403'")

    def test_masks_signed_params(self):
        sanitized = sanitize_for_log("GET /rest/search/?api_key=pub&date=1&api_sig=abcdef")

        assert "pub" not in sanitized
        assert "abcdef" not in sanitized
        assert "date=1" in sanitized

    def test_plain_message_untouched(self):
        assert sanitize_for_log("Search timeout after 500ms") == "Search timeout after 500ms"

    def test_truncates(self):
        assert sanitize_for_log("x" * 300, max_length=10) == "x" * 10 + "..."

    def test_empty(self):
        assert sanitize_for_log("") == "[empty]"
