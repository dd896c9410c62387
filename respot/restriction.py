"""Country based media restrictions."""

from __future__ import annotations

from .media import Media


def _contains(countries: str, country: str) -> bool:
    wanted = country.casefold()
    return any(
        countries[i : i + 2].casefold() == wanted for i in range(0, len(countries), 2)
    )


def is_media_restricted(media: Media, country: str) -> bool:
    """Return whether ``media`` may not be played in ``country``.

    Only the first restriction is considered. A country code that is not
    two letters long is never restricted.
    """
    if len(country) != 2:
        return False

    for restriction in media.restrictions():
        if restriction.countries_allowed is not None:
            if not restriction.countries_allowed:
                return True
            return not _contains(restriction.countries_allowed, country)
        if restriction.countries_forbidden is not None:
            return _contains(restriction.countries_forbidden, country)
        raise ValueError("unexpected country restriction")

    return False