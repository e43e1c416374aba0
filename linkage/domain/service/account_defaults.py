"""Default account fields derived from provider profiles."""


def split_display_name(display_name: str) -> tuple[str, str]:
    """Split a display name into (first name, last name).

    The last whitespace-separated token is the last name and everything
    before it is the first name, so "John Middle Doe" gives
    ("John Middle", "Doe") and "Madonna" gives ("", "Madonna").
    """
    tokens = display_name.split()
    if not tokens:
        return "", ""
    last_name = tokens.pop()
    return " ".join(tokens), last_name
