# Role: Display helpers for provider records (popup text on provider service zones).

from __future__ import annotations

from typing import List

from tripreplay.models.provider import Provider


def eligibility_labels(provider: Provider) -> List[str]:
    # Requirements are stored either as plain strings or as {"type": ..., "proof": ...} objects.
    labels: List[str] = []
    for req in provider.eligibility_requirements:
        if isinstance(req, dict):
            label = req.get("type") or req.get("name")
            if label:
                labels.append(str(label))
        elif req is not None and str(req).strip():
            labels.append(str(req).strip())
    return labels


def build_provider_description(provider: Provider) -> str:
    parts: List[str] = []
    if provider.type:
        parts.append(f"Type: {provider.type}")
    if provider.org:
        parts.append(f"Organization: {provider.org}")
    labels = eligibility_labels(provider)
    if labels:
        parts.append(f"Eligibility: {', '.join(labels)}")
    return "\n".join(parts)
