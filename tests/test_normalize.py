import pytest
from eventfinder.recommend.normalize import contains_phrase, normalize_text, tokenize


def test_normalize_folds_accents_case_and_punctuation():
    assert normalize_text("  Café   à Lisboa! ") == "cafe a lisboa"
    assert normalize_text("Próximo MÊS") == "proximo mes"
    assert normalize_text("fim-de-semana") == "fim-de-semana"


@pytest.mark.parametrize(
    "text",
    ["Workshops de Python em Lisboa", "  Híbrido / online?? ", "v2.0 release", ""],
)
def test_normalize_is_idempotent(text):
    once = normalize_text(text)
    assert normalize_text(once) == once


def test_tokenize_splits_on_punctuation():
    assert tokenize("Rock/Jazz no Pórto") == ["rock", "jazz", "no", "porto"]
    assert tokenize("   ") == []
    assert tokenize(None) == []


def test_contains_phrase_matches_whole_words_only():
    assert contains_phrase("show all events", "all events")
    assert contains_phrase("lisboa", "lisboa")
    assert not contains_phrase("football night", "all")
    assert not contains_phrase("hojex", "hoje")
    assert not contains_phrase("melhor onlineshop", "online")
    assert contains_phrase("evento online-only", "online")
    assert not contains_phrase("anything", "")
