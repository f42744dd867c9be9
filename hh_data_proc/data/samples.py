"""
Sample Classification
=====================

Maps the last field of a tag name (the sample token) to a signed sample id,
a spin hypothesis and the signal kinematic parameters.

Sample ids:
- negative: signal variants
- zero: collider data
- positive: background processes

Markers are plain substrings and are NOT mutually exclusive (``VBFSignal_NonRes``
contains ``Signal_NonRes``, ``WWW`` contains ``WW``, ``TTW`` contains ``TT``).
The table is therefore an ordered tuple evaluated first-match-wins: a more
specific marker must sit above every more general marker it contains.

Signal magnitudes are kept disjoint from background ids so that the sample
dimension of the stratification key stays injective.
"""

import re
from dataclasses import dataclass
from typing import Optional, Tuple

from hh_data_proc.data.categories import Spin
from hh_data_proc.errors import MalformedSignalToken, UnrecognizedSample


NONRES_MASS = 125.0
NOMINAL_KLAMBDA = 1.0

KLAMBDA_PREFIX = "_kl"
MASS_PREFIX = "_M"

# Optional leading m (minus), digits, optional p (point) and digits
SUFFIX_NUMBER = re.compile(r"m?\d+(p\d+)?")


@dataclass(frozen=True)
class SampleFamily:
    """One row of the classification table."""
    name: str
    sample_id: int
    spin: Spin = Spin.nonres
    suffix_prefix: Optional[str] = None  # Set for signal families only


SAMPLE_TABLE: Tuple[Tuple[Tuple[str, ...], SampleFamily], ...] = (
    # Signal: VBF markers contain the GGF ones, so they come first
    (("VBFSignal_NonRes",),   SampleFamily("vbf_nonres",   -12, Spin.nonres,   KLAMBDA_PREFIX)),
    (("Signal_NonRes",),      SampleFamily("ggf_nonres",   -13, Spin.nonres,   KLAMBDA_PREFIX)),
    (("VBFSignal_Radion",),   SampleFamily("vbf_radion",   -14, Spin.radion,   MASS_PREFIX)),
    (("Signal_Radion",),      SampleFamily("ggf_radion",   -15, Spin.radion,   MASS_PREFIX)),
    (("VBFSignal_Graviton",), SampleFamily("vbf_graviton", -16, Spin.graviton, MASS_PREFIX)),
    (("Signal_Graviton",),    SampleFamily("ggf_graviton", -17, Spin.graviton, MASS_PREFIX)),
    # Collider data
    (("Data",), SampleFamily("data", 0)),
    # Backgrounds
    (("TTW", "TTZ", "TTV"),                         SampleFamily("ttv", 11)),
    (("TT",),                                       SampleFamily("tt", 1)),
    (("ttH",),                                      SampleFamily("tth", 2)),
    (("DY",),                                       SampleFamily("dy", 3)),
    (("Wjets", "WJets"),                            SampleFamily("wjets", 4)),
    (("SM_Higgs", "GluGluHTo", "VBFHTo"),           SampleFamily("sm_higgs", 5)),
    (("VH", "ZHTo", "WplusHTo", "WminusHTo"),       SampleFamily("vh", 6)),
    (("VVV", "WWW", "WWZ", "WZZ", "ZZZ"),           SampleFamily("vvv", 7)),
    (("EWK",),                                      SampleFamily("ewk", 8)),
    (("VV", "WW", "WZ", "ZZ"),                      SampleFamily("vv", 9)),
    (("ST_", "SingleTop"),                          SampleFamily("single_top", 10)),
)


@dataclass(frozen=True)
class SampleInfo:
    """Classification result for one sample token."""
    sample_id: int
    spin: Spin
    res_mass: float
    klambda: float

    @property
    def class_id(self) -> int:
        return class_label(self.sample_id)


def class_label(sample_id: int) -> int:
    """
    Coarse class of a sample id.

    Returns:
        1 for signal (id < 0), -1 for collider data (id == 0), 0 for background
    """
    if sample_id < 0:
        return 1
    if sample_id == 0:
        return -1
    return 0


def _parse_suffix(token: str, marker: str, prefix: str) -> float:
    """
    Parse the number following ``prefix`` (searched after ``marker``).

    ``p`` stands for the decimal point and a leading ``m`` for a minus sign,
    e.g. ``_kl1p5`` -> 1.5, ``_klm2p0`` -> -2.0, ``_M300`` -> 300.
    The number ends at the next ``_`` or at the end of the token.
    """
    start = token.find(prefix, token.find(marker) + len(marker))
    if start < 0:
        raise MalformedSignalToken(f"No '{prefix}' suffix in signal sample '{token}'")
    raw = token[start + len(prefix):].split("_", 1)[0]
    if not SUFFIX_NUMBER.fullmatch(raw):
        raise MalformedSignalToken(
            f"Cannot parse '{prefix}' value '{raw}' in signal sample '{token}'"
        )
    text = raw.replace("p", ".")
    if text.startswith("m"):
        text = "-" + text[1:]
    return float(text)


def classify_sample(token: str) -> SampleInfo:
    """
    Classify a sample token.

    Args:
        token: Last field of a tag name, e.g. ``"DY_MC_M-10-50"`` or
               ``"GluGluSignal_NonRes_kl1p5"``

    Returns:
        SampleInfo with sample id, spin, resonance mass (125 for non-resonant)
        and klambda (1 for resonant)

    Raises:
        UnrecognizedSample: If no marker matches
        MalformedSignalToken: If a signal token's numeric suffix is unparsable

    Example:
        >>> classify_sample("DY_MC_M-10-50").sample_id
        3
        >>> classify_sample("GluGluSignal_NonRes_kl1p5").klambda
        1.5
    """
    for markers, family in SAMPLE_TABLE:
        marker = next((m for m in markers if m in token), None)
        if marker is None:
            continue

        if family.suffix_prefix == KLAMBDA_PREFIX:
            klambda = _parse_suffix(token, marker, KLAMBDA_PREFIX)
            return SampleInfo(family.sample_id, family.spin, NONRES_MASS, klambda)
        if family.suffix_prefix == MASS_PREFIX:
            res_mass = _parse_suffix(token, marker, MASS_PREFIX)
            return SampleInfo(family.sample_id, family.spin, res_mass, NOMINAL_KLAMBDA)
        return SampleInfo(family.sample_id, Spin.nonres, NONRES_MASS, NOMINAL_KLAMBDA)

    raise UnrecognizedSample(f"Unrecognised sample: '{token}'")


def get_sample_name(sample_id: int) -> str:
    """Get the family name for a sample id."""
    for _, family in SAMPLE_TABLE:
        if family.sample_id == sample_id:
            return family.name
    return f"Unknown (sample {sample_id})"
