"""
Unit tests for source hashing and key generation
"""
import hashlib

from app.core.hashing import (
    compute_content_hash,
    compute_source_hash,
    generate_phrase_key,
    normalize_text,
)


def test_normalize_text_trims_and_lowercases():
    assert normalize_text("  Hello World \n") == "hello world"
    assert normalize_text(None) == ""


def test_source_hash_ignores_case_and_outer_whitespace():
    assert compute_source_hash("Welcome") == compute_source_hash("  welcome  ")
    assert compute_source_hash("Welcome") == hashlib.sha256(b"welcome").hexdigest()


def test_source_hash_keeps_internal_whitespace():
    assert compute_source_hash("hello world") != compute_source_hash("hello  world")


def test_content_hash_requires_context():
    assert compute_content_hash("Save", None) is None
    assert compute_content_hash("Save", "   ") is None

    expected = hashlib.sha256(b"save:button").hexdigest()
    assert compute_content_hash(" Save ", "Button") == expected


def test_generate_phrase_key_slugifies():
    assert generate_phrase_key("Welcome back, {{name}}!") == "welcome-back-name"
    assert generate_phrase_key("  Add   to cart ") == "add-to-cart"


def test_generate_phrase_key_truncates():
    key = generate_phrase_key("word " * 30, max_length=12)
    assert len(key) == 12
    assert key.startswith("word-word")


def test_generate_phrase_key_collision_is_allowed():
    # different texts, same slug
    assert generate_phrase_key("Sign in!") == generate_phrase_key("sign in?")
    assert compute_source_hash("Sign in!") != compute_source_hash("sign in?")


def test_generate_phrase_key_falls_back_for_punctuation():
    key = generate_phrase_key("!!!")
    assert key == f"phrase-{compute_source_hash('!!!')[:12]}"
