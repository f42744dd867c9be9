"""
Event Selection
===============

Configuration and per-tag acceptance predicate for building training tables.

Provides structured configuration for:
- Cut requirement (mass-window selection must have passed)
- Jet categories (inference categories only vs all)
- Regions (signal region only vs all isolation/charge regions)
- Collider data (include or drop real data)
- Systematic variations (central only vs all shifts)
- Signal coupling (nominal klambda only vs full scan)

Design Philosophy:
- The predicate is pure and stateless: all six checks are evaluated, any one
  failing rejects the tag
- A rejection is a normal outcome, not an error
"""

from dataclasses import dataclass
from typing import Optional, List

from hh_data_proc.data.categories import NO_CATEGORY_JET_CAT, SIGNAL_REGION
from hh_data_proc.data.samples import NOMINAL_KLAMBDA


@dataclass
class SelectionConfig:
    """
    Configuration for event selection.

    Attributes:
        apply_cut_requirement: Reject tags that did not pass the mass-window cut.
                               Default: False
        include_all_jet_categories: Keep the inclusive ``2j`` category.
                                    Default: False (inference categories only)
        include_non_signal_regions: Keep OS anti-isolated and SS regions.
                                    Default: False (OS isolated only)
        include_real_data: Keep collider data. Default: False
        include_systematic_variations: Keep systematically shifted tags.
                                       Default: False (central only)
        restrict_to_nominal_coupling: Keep only klambda == 1 signal. Default: False
        n_events: Maximum number of rows written per input source.
                  None or a negative value means no limit. Default: None
        use_deep_csv: Read DeepCSV b-tag scores instead of CSV. Default: False

    Example:
        >>> # Default: signal region, central systematics, inference categories
        >>> selection = SelectionConfig()

        >>> # Background estimation study: all regions, including data
        >>> selection = SelectionConfig(
        ...     include_non_signal_regions=True,
        ...     include_real_data=True,
        ... )
    """

    # Selection switches
    apply_cut_requirement: bool = False
    include_all_jet_categories: bool = False
    include_non_signal_regions: bool = False
    include_real_data: bool = False
    include_systematic_variations: bool = False
    restrict_to_nominal_coupling: bool = False

    # Run options
    n_events: Optional[int] = None
    use_deep_csv: bool = False

    def __post_init__(self):
        """Validate configuration after initialization."""
        if self.n_events is not None and not isinstance(self.n_events, int):
            raise ValueError(f"n_events must be an integer or None, got {self.n_events!r}")
        if self.n_events is not None and self.n_events < 0:
            self.n_events = None

    def accept(self, jet_cat: int, cut: bool, region: int, syst_unc: bool,
               class_id: int, klambda: float) -> bool:
        """Return True if a tag with these flags passes every check."""
        return not self.rejection_reasons(jet_cat, cut, region, syst_unc, class_id, klambda)

    def rejection_reasons(self, jet_cat: int, cut: bool, region: int, syst_unc: bool,
                          class_id: int, klambda: float) -> List[str]:
        """
        Names of every check the tag fails (empty if accepted).

        Returns:
            List of switch names responsible for rejection
        """
        reasons = []
        if self.restrict_to_nominal_coupling and klambda != NOMINAL_KLAMBDA:
            reasons.append('restrict_to_nominal_coupling')
        if self.apply_cut_requirement and not cut:
            reasons.append('apply_cut_requirement')
        if not self.include_real_data and class_id == -1:
            reasons.append('include_real_data')
        if not self.include_non_signal_regions and region != SIGNAL_REGION:
            reasons.append('include_non_signal_regions')
        if not self.include_systematic_variations and not syst_unc:
            reasons.append('include_systematic_variations')
        if not self.include_all_jet_categories and jet_cat == NO_CATEGORY_JET_CAT:
            reasons.append('include_all_jet_categories')
        return reasons

    def __repr__(self) -> str:
        """Readable representation of selection criteria."""
        lines = [
            "SelectionConfig(",
            f"  Cut required:      {self.apply_cut_requirement}",
            f"  All jet cats:      {self.include_all_jet_categories}",
            f"  Non-signal regions:{self.include_non_signal_regions}",
            f"  Real data:         {self.include_real_data}",
            f"  Systematics:       {self.include_systematic_variations}",
            f"  Nominal klambda:   {self.restrict_to_nominal_coupling}",
            f"  Row limit:         {self.n_events if self.n_events is not None else 'none'}",
            f"  B-tag source:      {'DeepCSV' if self.use_deep_csv else 'CSV'}",
            ")",
        ]
        return "\n".join(lines)


def accept_tag(tag, config: SelectionConfig) -> bool:
    """
    Apply the selection to a DecodedTag.

    Args:
        tag: DecodedTag (or anything with the same flag attributes)
        config: Selection switches

    Returns:
        True if the tag is accepted
    """
    return config.accept(tag.jet_cat, tag.cut, tag.region, tag.syst_unc,
                         tag.class_id, tag.klambda)


# Convenience functions for common use cases

def default_selection() -> SelectionConfig:
    """Default: signal region, central systematics, inference jet categories, MC only."""
    return SelectionConfig()


def inference_selection() -> SelectionConfig:
    """Tables for final inference: cut applied, nominal coupling, data included."""
    return SelectionConfig(
        apply_cut_requirement=True,
        include_real_data=True,
        restrict_to_nominal_coupling=True,
    )


def full_selection() -> SelectionConfig:
    """Everything: all categories, regions, systematics and data."""
    return SelectionConfig(
        include_all_jet_categories=True,
        include_non_signal_regions=True,
        include_real_data=True,
        include_systematic_variations=True,
    )
