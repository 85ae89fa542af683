"""
Face post-processing helpers.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional


def dominant_emotion(expressions: Optional[Mapping[str, float]], fallback: str = "neutral") -> str:
    """Return the highest scoring expression, or `fallback` when none are given."""
    if not expressions:
        return fallback
    # First key wins on ties, matching insertion order.
    best_label = fallback
    best_score = float("-inf")
    for label, score in expressions.items():
        if float(score) > best_score:
            best_label, best_score = label, float(score)
    return best_label


def face_attributes(attributes: Dict[str, Any]) -> Dict[str, Any]:
    """Normalize optional face extras (age, gender, expressions) from an adapter."""
    age = attributes.get("age")
    gender = attributes.get("gender")
    expressions = attributes.get("expressions") or {}
    return {
        "age": float(age) if age is not None else None,
        "gender": str(gender) if gender is not None else None,
        "expressions": {str(k): float(v) for k, v in expressions.items()},
    }
