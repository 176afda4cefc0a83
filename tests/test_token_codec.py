import re

from app.services.token_codec import generate_token, hash_token


def test_generate_token_is_64_hex_chars():
    token = generate_token()
    assert re.fullmatch(r"[0-9a-f]{64}", token)


def test_hash_is_deterministic():
    token = generate_token()
    assert hash_token(token) == hash_token(token)


def test_hash_is_sha256_hex():
    # sha256("abc")
    assert hash_token("abc") == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"


def test_distinct_tokens_hash_differently():
    tokens = {generate_token() for _ in range(50)}
    assert len(tokens) == 50
    assert len({hash_token(t) for t in tokens}) == 50


def test_digest_does_not_contain_secret():
    token = generate_token()
    assert token not in hash_token(token)
