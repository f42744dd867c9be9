"""
Stratification keys: one integer per exact category combination.

Each category dimension owns one prime and the key is the product of
``prime ** value``. By unique factorisation two tuples differing in any
dimension map to different keys, so downstream samplers can group on the key
directly without a lookup table.
"""

from typing import Tuple

from hh_data_proc.errors import StratKeyOverflow

# (dimension, prime)
STRAT_PRIMES: Tuple[Tuple[str, int], ...] = (
    ('sample', 2),
    ('jet_cat', 3),
    ('region', 5),
    ('cut', 7),
    ('syst_unc', 11),
)

UINT64_MAX = 2**64 - 1


def strat_key(sample: int, jet_cat: int, region: int, cut: bool, syst_unc: bool) -> int:
    """
    Encode a category tuple as an unsigned 64-bit stratification key.

    Args:
        sample: Sample id (its magnitude is encoded)
        jet_cat: Jet-category code
        region: Region code
        cut: Cut-pass flag
        syst_unc: Systematic-centrality flag

    Returns:
        Key in [1, 2**64 - 1]

    Raises:
        StratKeyOverflow: Negative exponent, product beyond 64 bits, or zero
    """
    exponents = (abs(int(sample)), int(jet_cat), int(region), int(bool(cut)), int(bool(syst_unc)))
    key = 1
    for (dim, prime), exponent in zip(STRAT_PRIMES, exponents):
        if exponent < 0:
            raise StratKeyOverflow(f"Negative {dim} exponent {exponent} in strat key")
        key *= prime ** exponent
        if key > UINT64_MAX:
            raise StratKeyOverflow(
                f"Strat key overflows 64 bits at {dim}={exponent} "
                f"(sample={sample}, jet_cat={jet_cat}, region={region}, cut={cut}, syst_unc={syst_unc})"
            )
    if key == 0:
        raise StratKeyOverflow(f"Strat key evaluated to zero for exponents {exponents}")
    return key


def decode_strat_key(key: int) -> Tuple[int, int, int, int, int]:
    """
    Recover ``(|sample|, jet_cat, region, cut, syst_unc)`` from a key.

    Raises:
        ValueError: If the key is not a product of the stratification primes
    """
    key = int(key)
    if key <= 0:
        raise ValueError(f"Invalid strat key {key}")
    exponents = []
    for _, prime in STRAT_PRIMES:
        n = 0
        while key % prime == 0:
            key //= prime
            n += 1
        exponents.append(n)
    if key != 1:
        raise ValueError(f"Strat key has a factor {key} outside the stratification primes")
    return tuple(exponents)
