from __future__ import annotations


def normalize_component(value: str) -> str:
    return value.lower().strip()


def generate_id(*components: str) -> str:
    """Join lowercased, trimmed name components with ``-``.

    The result is what stored ratings are keyed by, so any two spellings that
    differ only by case or surrounding whitespace map to the same record.
    """
    return "-".join(normalize_component(component) for component in components)


def generate_track_id(artist: str, album: str, track: str) -> str:
    return generate_id(artist, album, track)


def generate_album_id(artist: str, album: str) -> str:
    return generate_id(artist, album)
