"""
Category Vocabularies
=====================

Fixed token vocabularies used in event tag names of the form::

    jetCategory/cutToken/region/systematicToken/scaleToken/sampleToken

Example: ``"2j/NoCuts/SS_AntiIsolated/None/Central/DY_MC_M-10-50"``

The integer codes are written to the output tables and enter the
stratification key as prime exponents, so they must stay small and must never
be renumbered once data has been produced with them.
"""

from enum import IntEnum


# ============================================================================
# JET CATEGORIES
# ============================================================================
JET_CATEGORIES = {
    "2j": 0,              # Inclusive, no inference category
    "2j0bR_noVBF": 1,     # Resolved, 0 b-tags
    "2j1bR_noVBF": 2,     # Resolved, 1 b-tag
    "2j2b+R_noVBF": 3,    # Resolved, >=2 b-tags
    "2j2Lb+B_noVBF": 4,   # Boosted
    "4j1b+_VBF": 5,       # VBF topology
}

NO_CATEGORY_JET_CAT = 0
BOOSTED_JET_CAT = 4

# ============================================================================
# REGIONS
# ============================================================================
REGIONS = {
    "OS_Isolated": 0,      # Signal region
    "OS_AntiIsolated": 1,
    "SS_Isolated": 2,
    "SS_AntiIsolated": 3,
}

SIGNAL_REGION = 0

# ============================================================================
# FLAG TOKENS
# ============================================================================
CUT_PASS_TOKEN = "mh"           # Mass-window selection applied and passed
NO_CUT_TOKEN = "NoCuts"
CENTRAL_SYST_TOKEN = "None"     # No systematic shift
CENTRAL_SCALE_TOKEN = "Central"

# Lepton masses (GeV) substituted for light-lepton legs
MU_MASS = 0.1056583745
E_MASS = 0.0005109989461


class Spin(IntEnum):
    """Signal spin hypothesis."""
    nonres = 0
    radion = 1
    graviton = 2


class Channel(IntEnum):
    """Di-tau decay channel of an input file."""
    tauTau = 0
    muTau = 1
    eTau = 2


class Year(IntEnum):
    """Data-taking year of an input file."""
    y16 = 0
    y17 = 1
    y18 = 2


_YEARS = {"2016": Year.y16, "2017": Year.y17, "2018": Year.y18}


def get_channel(channel: str) -> Channel:
    """
    Convert a channel name to its enum.

    Raises:
        ValueError: If channel is not one of tauTau, muTau, eTau
    """
    try:
        return Channel[channel]
    except KeyError:
        raise ValueError(
            f"Invalid channel '{channel}': options are {[c.name for c in Channel]}"
        ) from None


def get_year(year: str) -> Year:
    """
    Convert a year string to its enum.

    Raises:
        ValueError: If year is not one of 2016, 2017, 2018
    """
    if str(year) not in _YEARS:
        raise ValueError(f"Invalid year '{year}': options are {sorted(_YEARS)}")
    return _YEARS[str(year)]


def get_jet_cat_name(code: int) -> str:
    """
    Get the tag token for a jet-category code.

    Example:
        >>> get_jet_cat_name(4)
        '2j2Lb+B_noVBF'
    """
    for name, value in JET_CATEGORIES.items():
        if value == code:
            return name
    return f"Unknown (jet_cat {code})"


def get_region_name(code: int) -> str:
    """Get the tag token for a region code."""
    for name, value in REGIONS.items():
        if value == code:
            return name
    return f"Unknown (region {code})"
