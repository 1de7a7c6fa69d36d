from services.game.feature_matcher import dedupe_features, is_help_request, match, normalize_feature


def test_match_is_case_insensitive_and_keeps_original_casing():
    result = match("Dog", ["red collar", "Dog"], set())

    assert result.matched == ["Dog"]
    assert result.normalized == ["dog"]
    assert result.is_help_request is False


def test_match_uses_containment_both_ways():
    features = ["red collar", "dog", "grass background"]

    assert match("a red collar on the dog", features, set()).matched == ["red collar", "dog"]
    assert match("grass", features, set()).matched == ["grass background"]
    # Naive containment: a short fragment hits a longer feature.
    assert match("do", features, set()).matched == ["dog"]


def test_match_skips_already_found_features():
    result = match("dog with red collar", ["red collar", "dog"], {"dog"})

    assert result.matched == ["red collar"]


def test_match_returns_each_feature_once():
    result = match("dog", ["Dog", "dog ", "collar"], set())

    assert result.matched == ["Dog"]


def test_empty_guess_matches_nothing():
    assert match("   ", ["dog"], set()).matched == []
    assert match("", [], set()).matched == []


def test_help_request_short_circuits_matching():
    result = match("can I get a hint about the dog", ["dog"], set())

    assert result.is_help_request is True
    assert result.matched == []


def test_help_keywords_match_whole_words_only():
    assert is_help_request("HELP!")
    assert is_help_request("any clues?")
    assert not is_help_request("a knight's helmet")
    assert not is_help_request("chintz curtains")

    assert match("helmet", ["helmet"], set()).matched == ["helmet"]


def test_normalize_and_dedupe():
    assert normalize_feature("  Red Collar ") == "red collar"
    assert dedupe_features(["Dog", " dog", "", "  ", "Grass"]) == ["Dog", "Grass"]
