"""
Tag Decoding
============

Decodes structured tag names into typed category flags::

    jetCategory/cutToken/region/systematicToken/scaleToken/sampleToken

The producer of the input files is trusted in shape but not in content: a
wrong field count or an unknown token is a contract violation and aborts the
run rather than producing a partially filled tag.
"""

from dataclasses import dataclass

from hh_data_proc.data.categories import (
    JET_CATEGORIES,
    REGIONS,
    CUT_PASS_TOKEN,
    CENTRAL_SYST_TOKEN,
    CENTRAL_SCALE_TOKEN,
    Spin,
)
from hh_data_proc.data.samples import classify_sample, class_label
from hh_data_proc.errors import MalformedTag, UnrecognizedCategory

N_TAG_FIELDS = 6


@dataclass(frozen=True)
class DecodedTag:
    """Typed projection of one tag name."""
    jet_cat: int
    cut: bool
    region: int
    syst_unc: bool   # True if systematic-central
    scale: bool      # True if scale-central
    sample: int
    spin: Spin
    res_mass: float
    klambda: float

    @property
    def class_id(self) -> int:
        return class_label(self.sample)


def jet_cat_lookup(token: str) -> int:
    if token not in JET_CATEGORIES:
        raise UnrecognizedCategory(f"Unrecognised jet category: '{token}'")
    return JET_CATEGORIES[token]


def region_lookup(token: str) -> int:
    if token not in REGIONS:
        raise UnrecognizedCategory(f"Unrecognised region: '{token}'")
    return REGIONS[token]


def decode_tag(name: str) -> DecodedTag:
    """
    Decode a tag name.

    Args:
        name: Tag name, e.g. ``"2j/NoCuts/SS_AntiIsolated/None/Central/DY_MC_M-10-50"``

    Returns:
        Fully populated DecodedTag

    Raises:
        MalformedTag: If the name does not have exactly six fields
        UnrecognizedCategory: Unknown jet-category or region token
        UnrecognizedSample, MalformedSignalToken: From sample classification

    Example:
        >>> tag = decode_tag("2j/NoCuts/SS_AntiIsolated/None/Central/DY_MC_M-10-50")
        >>> tag.jet_cat, tag.cut, tag.region, tag.sample, tag.class_id
        (0, False, 3, 3, 0)
    """
    fields = name.split("/")
    if len(fields) != N_TAG_FIELDS:
        raise MalformedTag(
            f"Tag '{name}' has {len(fields)} '/'-delimited fields, expected {N_TAG_FIELDS}"
        )

    jet_token, cut_token, region_token, syst_token, scale_token, sample_token = fields
    info = classify_sample(sample_token)

    return DecodedTag(
        jet_cat=jet_cat_lookup(jet_token),
        cut=cut_token == CUT_PASS_TOKEN,
        region=region_lookup(region_token),
        syst_unc=syst_token == CENTRAL_SYST_TOKEN,
        scale=scale_token == CENTRAL_SCALE_TOKEN,
        sample=info.sample_id,
        spin=info.spin,
        res_mass=info.res_mass,
        klambda=info.klambda,
    )
