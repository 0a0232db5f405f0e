"""Deterministic aspiration built from collected onboarding answers.

Used when the critic rejects a generated aspiration. Pure string templating;
no network calls.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping

DEFAULT_NEXT_SMALL_STEP = "Your next small step: Practice what matters for just 5 minutes."

# First matching proud-moment id wins.
_NEXT_STEP_BY_PROUD_MOMENT: tuple[tuple[tuple[str, ...], str], ...] = (
    (
        ("improving_a_skill",),
        "Your next small step: Set a 10-minute timer to practice one small piece of something you care about.",
    ),
    (
        ("helping_someone", "supporting_a_friend"),
        "Your next small step: Reach out to one person today and offer one simple, concrete help.",
    ),
    (
        ("making_something_meaningful",),
        "Your next small step: Make a tiny version of something you care about, with no pressure to finish it.",
    ),
    (
        ("showing_up_when_hard",),
        "Your next small step: Pick one small way to show up today, even if your energy is low.",
    ),
)

_NON_ID_CHARS_RE = re.compile(r"[^a-z0-9]+")


def _as_list(value: object) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if isinstance(value, Iterable):
        return [str(v).strip() for v in value if str(v).strip()]
    return [str(value)]


def format_labels(labels: Iterable[str]) -> str:
    """Join labels as prose: ``a``, ``a and b``, ``a, b and c``."""

    items = [label for label in labels if label]
    if not items:
        return ""
    if len(items) == 1:
        return items[0]
    return f"{', '.join(items[:-1])} and {items[-1]}"


def _to_id(label: str) -> str:
    return _NON_ID_CHARS_RE.sub("_", label.lower()).strip("_")


def build_next_small_step(proud_moment_ids: Iterable[str]) -> str:
    ids = set(proud_moment_ids)
    for candidates, step in _NEXT_STEP_BY_PROUD_MOMENT:
        if ids.intersection(candidates):
            return step
    return DEFAULT_NEXT_SMALL_STEP


def build_aspiration_fallback(collected: Mapping[str, object]) -> dict[str, str] | None:
    """Template an aspiration payload from onboarding answers.

    Returns None unless domain, motivation, signatureTrait, growthEdge and
    proudMoment are all present.
    """

    domain = format_labels(_as_list(collected.get("domain")))
    motivation = format_labels(_as_list(collected.get("motivation")))
    trait = format_labels(_as_list(collected.get("signatureTrait")))
    growth_edge = format_labels(_as_list(collected.get("growthEdge")))
    proud_moments = _as_list(collected.get("proudMoment"))
    proud_moment = format_labels(proud_moments)

    if not (domain and motivation and trait and growth_edge and proud_moment):
        return None

    name_parts = [domain.split(" ")[0], re.sub(r"^Your\s+", "", trait, flags=re.IGNORECASE)]
    nickname = str(collected.get("nickname") or "").strip()
    arc_name = nickname or " ".join(p for p in name_parts if p) or "Growing into your next version"

    aspiration_sentence = " ".join(
        [
            f"You're the kind of person who is growing in **{domain.lower()}**, "
            f"powered by {motivation.lower()}.",
            f"Your {trait.lower()} is already a real strength, and this next chapter keeps "
            f"building on it while you face {growth_edge.lower()} with honesty.",
            f"On normal days, that often looks like {proud_moment.lower()}.",
        ]
    )

    proud_moment_ids = _as_list(collected.get("proudMomentIds")) or [_to_id(p) for p in proud_moments]
    return {
        "arcName": arc_name,
        "aspirationSentence": aspiration_sentence,
        "nextSmallStep": build_next_small_step(proud_moment_ids),
    }
