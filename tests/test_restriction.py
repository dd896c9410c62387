import pytest

from respot.media import Media, Restriction, Track
from respot.restriction import is_media_restricted


def media_with(*restrictions):
    return Media.from_track(
        Track(gid=b"\x00" * 16, name="song", duration=1000, restrictions=list(restrictions))
    )


def test_invalid_country_is_never_restricted():
    media = media_with(Restriction(countries_allowed=""))
    assert is_media_restricted(media, "ITA") is False
    assert is_media_restricted(media, "") is False


def test_no_restrictions():
    assert is_media_restricted(media_with(), "IT") is False


def test_allowed_list():
    media = media_with(Restriction(countries_allowed="FRITDE"))
    assert is_media_restricted(media, "IT") is False
    assert is_media_restricted(media, "US") is True


def test_empty_allowed_list_restricts():
    assert is_media_restricted(media_with(Restriction(countries_allowed="")), "IT") is True


def test_forbidden_list():
    media = media_with(Restriction(countries_forbidden="USGB"))
    assert is_media_restricted(media, "GB") is True
    assert is_media_restricted(media, "IT") is False


def test_country_match_ignores_case():
    media = media_with(Restriction(countries_forbidden="usgb"))
    assert is_media_restricted(media, "US") is True


def test_only_first_restriction_counts():
    media = media_with(
        Restriction(countries_forbidden="US"), Restriction(countries_allowed="")
    )
    assert is_media_restricted(media, "IT") is False


def test_pairs_are_aligned():
    media = media_with(Restriction(countries_forbidden="ABCD"))
    assert is_media_restricted(media, "BC") is False


def test_malformed_restriction_raises():
    with pytest.raises(ValueError):
        is_media_restricted(media_with(Restriction()), "IT")