def capitalize_word(word: str) -> str:
    # title() may expand one character ("ß" -> "Ss", "ŉ" -> "ʼN"); only its first character stays upper.
    head = word[:1].title()
    return head[:1] + (head[1:] + word[1:]).lower()


def normalize_name(raw: str) -> str:
    """Return the canonical display form of a name: "  jOHN   doe " -> "John Doe"."""
    words = [word for word in raw.strip().split(" ") if word]
    return " ".join(capitalize_word(word) for word in words).strip()
