"""Tests for secret normalization and generation."""

import base64

from cookieseal.auth.secret import generate_secret, literal_bytes, secret_bytes


def _b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode()


class TestSecretBytes:
    def test_base64_32_byte_key_is_decoded(self) -> None:
        key = bytes(range(32))
        assert secret_bytes(_b64url(key)) == key

    def test_unpadded_base64_key_is_decoded(self) -> None:
        key = bytes(range(100, 116))
        assert secret_bytes(_b64url(key).rstrip("=")) == key

    def test_24_byte_key_is_decoded(self) -> None:
        key = b"\xff" * 24
        assert secret_bytes(_b64url(key)) == key

    def test_plain_ascii_passphrase_kept_raw(self) -> None:
        assert secret_bytes("helloworld") == b"helloworld"

    def test_decodes_to_17_bytes_kept_raw(self) -> None:
        # 23 base64 characters decode to 17 bytes: not an AES length
        secret = "A" * 23
        assert len(base64.urlsafe_b64decode(secret + "=")) == 17
        assert secret_bytes(secret) == secret.encode()

    def test_16_char_literal_kept_raw(self) -> None:
        """A 16-character passphrase decodes to 12 bytes, so the literal is used."""
        assert secret_bytes("0123456789abcdef") == b"0123456789abcdef"

    def test_standard_alphabet_chars_kept_raw(self) -> None:
        key = bytes([0xFB] * 32)
        std = base64.b64encode(key).decode()
        assert "+" in std or "/" in std
        assert secret_bytes(std) == std.encode()

    def test_invalid_characters_kept_raw(self) -> None:
        assert secret_bytes("not base64 at all!") == b"not base64 at all!"

    def test_trailing_newline_kept_raw(self) -> None:
        secret = _b64url(bytes(32)) + "\n"
        assert secret_bytes(secret) == secret.encode()

    def test_empty_string(self) -> None:
        assert secret_bytes("") == b""

    def test_non_ascii_secret(self) -> None:
        assert secret_bytes("pässwörd") == "pässwörd".encode("utf-8")

    def test_deterministic(self) -> None:
        secret = _b64url(bytes(range(32)))
        assert secret_bytes(secret) == secret_bytes(secret)


class TestGenerateSecret:
    def test_normalizes_to_32_bytes(self) -> None:
        assert len(secret_bytes(generate_secret())) == 32

    def test_is_urlsafe(self) -> None:
        s = generate_secret()
        assert "+" not in s
        assert "/" not in s

    def test_each_call_unique(self) -> None:
        assert generate_secret() != generate_secret()


class TestLiteralBytes:
    def test_escaped_argv_byte_restored(self) -> None:
        """click decodes non-UTF-8 argv with surrogateescape; the original byte comes back."""
        assert secret_bytes("\udcff") == b"\xff"
        assert literal_bytes("key\udcfe") == b"key\xfe"

    def test_other_lone_surrogate_does_not_raise(self) -> None:
        assert secret_bytes("\ud800") == "\ud800".encode("utf-8", "surrogatepass")

    def test_plain_text_is_utf8(self) -> None:
        assert literal_bytes("pässwörd") == "pässwörd".encode("utf-8")
