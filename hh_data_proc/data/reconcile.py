"""
Tag Reconciliation and Weight Resolution
========================================

One physical event may carry several tags at once (e.g. it qualifies for both
a resolved and the boosted jet category). This module merges the per-tag
selection outcomes into one decision per event, and picks one canonical weight
from the per-tag weight vector.

Reconciliation rules:
- Tag 0 is authoritative for region, systematic/scale flags and sample; the
  producer guarantees the other tags share these values (not re-validated)
- Jet category and cut flag are evaluated per tag
- No tags, or no accepted tags -> event rejected
- Jet category: maximum code among accepted tags
- Boosted: any accepted tag in the boosted category
- Cut: logical OR over accepted tags
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from hh_data_proc.data.categories import BOOSTED_JET_CAT
from hh_data_proc.data.selection import SelectionConfig
from hh_data_proc.data.tags import DecodedTag
from hh_data_proc.errors import DuplicateWeightMismatch


WEIGHT_EPSILON = 1e-7


@dataclass(frozen=True)
class MergedDecision:
    """Per-event outcome of reconciling all of its tags."""
    accept: bool
    jet_cat: int = -1
    is_boosted: bool = False
    cut: bool = False
    accepted: Tuple[int, ...] = ()
    lead: Optional[DecodedTag] = None


REJECTED = MergedDecision(accept=False)


def reconcile_tags(tags: Sequence[DecodedTag], config: SelectionConfig) -> MergedDecision:
    """
    Merge the decoded tags of one event into a single decision.

    Args:
        tags: Decoded tags in the order they are stored for the event
        config: Selection switches applied to every tag

    Returns:
        MergedDecision; ``accept`` is False for an empty list or when no tag passes
    """
    if len(tags) == 0:
        return REJECTED

    lead = tags[0]
    accepted = tuple(
        i for i, tag in enumerate(tags)
        if config.accept(tag.jet_cat, tag.cut, lead.region, lead.syst_unc,
                         lead.class_id, lead.klambda)
    )
    if not accepted:
        return MergedDecision(accept=False, lead=lead)

    return MergedDecision(
        accept=True,
        jet_cat=max(tags[i].jet_cat for i in accepted),
        is_boosted=any(tags[i].jet_cat == BOOSTED_JET_CAT for i in accepted),
        cut=any(tags[i].cut for i in accepted),
        accepted=accepted,
        lead=lead,
    )


def resolve_weight(weights: Sequence[float], accepted: Sequence[int]) -> float:
    """
    Return the event weight from the entry of the first accepted tag.

    The remaining accepted entries go through a consistency check which fails
    when a difference is *below* ``WEIGHT_EPSILON``. This inverted tolerance
    matches the upstream processing chain: identical duplicate
    weights abort the run while differing ones pass. It is almost certainly a
    bug upstream and is kept until the owners of the weight convention confirm
    the intent.

    Args:
        weights: Per-tag weight vector of the event
        accepted: Indices of accepted tags (from reconcile_tags)

    Returns:
        Weight of the first accepted tag

    Raises:
        DuplicateWeightMismatch: Empty index list, index outside the weight
                                 vector, or a failed consistency check
    """
    if len(accepted) == 0:
        raise DuplicateWeightMismatch("No accepted tag to take a weight from")
    if max(accepted) >= len(weights):
        raise DuplicateWeightMismatch(
            f"Accepted tag index {max(accepted)} outside weight vector of length {len(weights)}"
        )

    first = float(weights[accepted[0]])
    for i in accepted[1:]:
        diff = abs(float(weights[i]) - first)
        if diff < WEIGHT_EPSILON:
            raise DuplicateWeightMismatch(
                f"Weight of tag {i} ({weights[i]}) differs from tag {accepted[0]} "
                f"({first}) by {diff:.3e} < {WEIGHT_EPSILON:.0e}"
            )
    return first
