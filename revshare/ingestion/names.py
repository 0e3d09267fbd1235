"""
Name handling for inbound leads.

Splitting a full name is a strategy so callers can swap the naive
"first token is the given name" rule for something smarter.
"""

import re
import unicodedata

NAME_MATCH_THRESHOLD = 0.70


class NameSplitter:
    """Splits a full name into (first_name, last_name)."""

    def split(self, full_name: str) -> tuple[str, str | None]:
        raise NotImplementedError


class FirstTokenSplitter(NameSplitter):
    """First token is the given name, the remaining tokens are the surname."""

    def split(self, full_name: str) -> tuple[str, str | None]:
        parts = (full_name or "").split()
        if not parts:
            return "", None
        return parts[0], " ".join(parts[1:]) or None


class LastTokenSplitter(NameSplitter):
    """Last token is the surname; everything before it is the given name."""

    def split(self, full_name: str) -> tuple[str, str | None]:
        parts = (full_name or "").split()
        if len(parts) < 2:
            return (parts[0] if parts else ""), None
        return " ".join(parts[:-1]), parts[-1]


def normalize_name(name: str) -> str:
    """Lowercase, strip accents, turn punctuation into spaces."""
    if not name:
        return ""
    decomposed = unicodedata.normalize("NFD", name.strip().lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    stripped = re.sub(r"[.,\-_]", " ", stripped)
    return re.sub(r"\s+", " ", stripped).strip()


def levenshtein_distance(a: str, b: str) -> int:
    previous = list(range(len(b) + 1))
    for i, ch_a in enumerate(a, start=1):
        current = [i]
        for j, ch_b in enumerate(b, start=1):
            cost = 0 if ch_a == ch_b else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def name_similarity(first: str, second: str) -> float:
    """Similarity in [0, 1] between two names after normalization."""
    s1 = normalize_name(first)
    s2 = normalize_name(second)
    if not s1 or not s2:
        return 0.0
    if s1 == s2:
        return 1.0

    # One contains the other: scale 0.85-0.95 by length ratio
    if s1 in s2 or s2 in s1:
        ratio = min(len(s1), len(s2)) / max(len(s1), len(s2))
        return 0.85 + ratio * 0.1

    similarity = 1 - levenshtein_distance(s1, s2) / max(len(s1), len(s2), 1)
    return max(0.0, min(1.0, similarity))


def _full_name(first_name: str, last_name: str | None) -> str:
    return f"{first_name} {last_name}" if last_name else first_name


def find_similar_client(
    first_name: str,
    last_name: str | None,
    clients: list[dict],
    threshold: float = NAME_MATCH_THRESHOLD,
) -> tuple[dict, str, float] | None:
    """
    Best name match among client rows as (client, method, confidence).

    method is 'name_exact' or 'name_fuzzy'. Returns None when nothing
    clears the threshold.
    """
    wanted_full = normalize_name(_full_name(first_name, last_name))
    wanted_first = normalize_name(first_name)
    wanted_last = normalize_name(last_name or "")
    if not wanted_full:
        return None

    best = None

    def consider(client, method, confidence):
        nonlocal best
        if best is None or best[2] < confidence:
            best = (client, method, confidence)

    for client in clients:
        client_full = _full_name(client.get("name") or "", client.get("surname"))
        normalized_full = normalize_name(client_full)
        normalized_first = normalize_name(client.get("name") or "")

        if normalized_full == wanted_full:
            return client, "name_exact", 1.0

        if normalized_first == wanted_first and (
            not last_name or normalize_name(client.get("surname") or "") == wanted_last
        ):
            consider(client, "name_exact", 0.95)

        similarity = name_similarity(client_full, wanted_full)
        if similarity > 0.85:
            consider(client, "name_fuzzy", similarity)

        if normalized_first == wanted_first and last_name:
            surname_similarity = name_similarity(client.get("surname") or "", last_name)
            if surname_similarity > 0.8:
                consider(client, "name_fuzzy", surname_similarity * 0.9)

        if normalized_full and (normalized_full in wanted_full or wanted_full in normalized_full):
            partial = min(len(normalized_full), len(wanted_full)) / max(len(normalized_full), len(wanted_full))
            if partial > 0.7:
                consider(client, "name_fuzzy", partial)

    if best is not None and best[2] > threshold:
        return best
    return None
