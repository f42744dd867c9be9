"""
Kinematic Feature Transform
===========================

Turns the kinematic columns of one accepted event into a fixed-length feature
vector. The event loop treats this as a black box: anything exposing
``feature_names`` and ``process(inputs, is_boosted, context)`` can be passed to
the pipeline instead of the default implementation below.

Feature groups (default transform):
- Object momenta: Cartesian (px, py, pz, E) of both leptons and both b-jets,
  transverse (px, py) of the missing energy
- Composite systems: masses and pTs of the visible di-tau, di-b and di-Higgs
  systems, di-tau + MET mass, SVFit mass
- Angular separations: ΔR between legs and between Higgs candidates, Δφ of
  each lepton to the MET
- High-level scalars passed through: kinematic-fit mass and χ², MT2, total
  transverse mass, p_ζ quantities, top masses, lepton transverse masses
- Tagging: b-tag score of each b-jet (CSV or DeepCSV), boosted flag
- Context: channel, year, resonance mass, spin, klambda

Four-vectors are built from (pt, eta, phi, m). In the muTau and eTau channels
the second-leg mass is fixed to the light-lepton mass.
"""

from dataclasses import dataclass, fields
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np

from hh_data_proc.data.categories import Channel, Year, Spin, MU_MASS, E_MASS


# Input field -> source column
SCALAR_COLUMNS = {
    'kinfit_mass': 'm_ttbb_kinfit',
    'kinfit_chi2': 'chi2_kinFit',
    'mt2': 'MT2',
    'mt_tot': 'mt_tot',
    'top_1_mass': 'mass_top1',
    'top_2_mass': 'mass_top2',
    'p_zetavisible': 'p_zetavisible',
    'p_zeta': 'p_zeta',
    'l_1_mt': 'mt_1',
    'l_2_mt': 'mt_2',
    'svfit_mass': 'm_sv',
    'l_1_pT': 'pt_1', 'l_1_eta': 'eta_1', 'l_1_phi': 'phi_1', 'l_1_mass': 'm_1',
    'l_2_pT': 'pt_2', 'l_2_eta': 'eta_2', 'l_2_phi': 'phi_2', 'l_2_mass': 'm_2',
    'b_1_pT': 'pt_b1', 'b_1_eta': 'eta_b1', 'b_1_phi': 'phi_b1', 'b_1_mass': 'm_b1',
    'b_2_pT': 'pt_b2', 'b_2_eta': 'eta_b2', 'b_2_phi': 'phi_b2', 'b_2_mass': 'm_b2',
    'met_pT': 'pt_MET', 'met_phi': 'phiMET',
}

BTAG_COLUMNS = {
    False: {'b_1_tag': 'csv_b1', 'b_2_tag': 'csv_b2'},
    True: {'b_1_tag': 'deepcsv_b1', 'b_2_tag': 'deepcsv_b2'},
}


def kinematic_columns(use_deep_csv: bool = False) -> List[str]:
    """Source columns needed to fill KinematicInputs."""
    return list(SCALAR_COLUMNS.values()) + list(BTAG_COLUMNS[use_deep_csv].values())


@dataclass(frozen=True)
class KinematicInputs:
    """Kinematic quantities of one event, as read from the input table."""
    kinfit_mass: float
    kinfit_chi2: float
    mt2: float
    mt_tot: float
    top_1_mass: float
    top_2_mass: float
    p_zetavisible: float
    p_zeta: float
    l_1_mt: float
    l_2_mt: float
    svfit_mass: float
    l_1_pT: float
    l_1_eta: float
    l_1_phi: float
    l_1_mass: float
    l_2_pT: float
    l_2_eta: float
    l_2_phi: float
    l_2_mass: float
    b_1_pT: float
    b_1_eta: float
    b_1_phi: float
    b_1_mass: float
    b_2_pT: float
    b_2_eta: float
    b_2_phi: float
    b_2_mass: float
    met_pT: float
    met_phi: float
    b_1_tag: float
    b_2_tag: float

    @classmethod
    def from_row(cls, row: Mapping[str, float], use_deep_csv: bool = False) -> 'KinematicInputs':
        """Build from a mapping of source column -> value for one event."""
        mapping = {**SCALAR_COLUMNS, **BTAG_COLUMNS[use_deep_csv]}
        return cls(**{f.name: float(row[mapping[f.name]]) for f in fields(cls)})


@dataclass(frozen=True)
class FeatureContext:
    """Per-event context passed alongside the kinematics."""
    channel: Channel
    year: Year
    res_mass: float
    spin: Spin
    klambda: float


def p4(pt: float, eta: float, phi: float, mass: float) -> np.ndarray:
    """Cartesian four-vector (px, py, pz, E) from (pt, eta, phi, m)."""
    px, py, pz = pt * np.cos(phi), pt * np.sin(phi), pt * np.sinh(eta)
    e = np.sqrt(px**2 + py**2 + pz**2 + mass**2)
    return np.array([px, py, pz, e], dtype=np.float64)


def inv_mass(v: np.ndarray) -> float:
    m2 = v[3]**2 - v[0]**2 - v[1]**2 - v[2]**2
    return float(np.sqrt(max(m2, 0.0)))


def pt_of(v: np.ndarray) -> float:
    return float(np.hypot(v[0], v[1]))


def eta_phi_of(v: np.ndarray):
    pt = pt_of(v)
    eta = float(np.arcsinh(v[2] / pt)) if pt > 0 else 0.0
    return eta, float(np.arctan2(v[1], v[0]))


def delta_phi(phi_1: float, phi_2: float) -> float:
    """Signed Δφ wrapped into [-π, π)."""
    return float((phi_1 - phi_2 + np.pi) % (2 * np.pi) - np.pi)


def delta_r(eta_1: float, phi_1: float, eta_2: float, phi_2: float) -> float:
    return float(np.hypot(eta_1 - eta_2, delta_phi(phi_1, phi_2)))


FEATURE_NAMES = (
    [f'{obj}_{c}' for obj in ('l_1', 'l_2', 'b_1', 'b_2') for c in ('px', 'py', 'pz', 'E')]
    + ['met_px', 'met_py']
    + ['h_tt_vis_mass', 'h_tt_vis_pT', 'h_tt_met_mass', 'h_bb_mass', 'h_bb_pT',
       'hh_vis_mass', 'hh_vis_pT', 'svfit_mass']
    + ['dR_l1_l2', 'dR_b1_b2', 'dR_hbb_htt', 'dphi_l1_met', 'dphi_l2_met']
    + ['kinfit_mass', 'kinfit_chi2', 'mt2', 'mt_tot', 'p_zetavisible', 'p_zeta',
       'top_1_mass', 'top_2_mass', 'l_1_mt', 'l_2_mt']
    + ['b_1_tag', 'b_2_tag', 'is_boosted']
    + ['channel', 'year', 'res_mass', 'spin', 'klambda']
)


class KinematicFeatureTransform:
    """
    Default kinematic feature transform.

    Attributes:
        feature_names: Ordered names of the returned vector entries
    """

    def __init__(self, return_all: bool = True, requested: Optional[Sequence[str]] = None):
        """
        Args:
            return_all: Return every feature in FEATURE_NAMES
            requested: Feature names to return when return_all is False
                       (returned in FEATURE_NAMES order)

        Raises:
            ValueError: Unknown requested feature, or nothing requested
        """
        if return_all or requested is None:
            self.feature_names = list(FEATURE_NAMES)
        else:
            unknown = sorted(set(requested) - set(FEATURE_NAMES))
            if unknown:
                raise ValueError(f"Unknown requested features: {unknown}")
            self.feature_names = [f for f in FEATURE_NAMES if f in set(requested)]
        if not self.feature_names:
            raise ValueError("No features requested")

    @property
    def n_features(self) -> int:
        return len(self.feature_names)

    def compute_all(self, inputs: KinematicInputs, is_boosted: bool,
                    context: FeatureContext) -> Dict[str, float]:
        """Compute every feature of FEATURE_NAMES as a dict."""
        if context.channel == Channel.muTau:
            l_2_mass = MU_MASS
        elif context.channel == Channel.eTau:
            l_2_mass = E_MASS
        else:
            l_2_mass = inputs.l_2_mass

        vecs = {
            'l_1': p4(inputs.l_1_pT, inputs.l_1_eta, inputs.l_1_phi, inputs.l_1_mass),
            'l_2': p4(inputs.l_2_pT, inputs.l_2_eta, inputs.l_2_phi, l_2_mass),
            'b_1': p4(inputs.b_1_pT, inputs.b_1_eta, inputs.b_1_phi, inputs.b_1_mass),
            'b_2': p4(inputs.b_2_pT, inputs.b_2_eta, inputs.b_2_phi, inputs.b_2_mass),
        }
        met = np.array([inputs.met_pT * np.cos(inputs.met_phi),
                        inputs.met_pT * np.sin(inputs.met_phi), 0.0, inputs.met_pT])

        h_tt = vecs['l_1'] + vecs['l_2']
        h_bb = vecs['b_1'] + vecs['b_2']
        hh = h_tt + h_bb

        feats = {}
        for obj, v in vecs.items():
            for c, val in zip(('px', 'py', 'pz', 'E'), v):
                feats[f'{obj}_{c}'] = float(val)
        feats['met_px'], feats['met_py'] = float(met[0]), float(met[1])

        feats['h_tt_vis_mass'] = inv_mass(h_tt)
        feats['h_tt_vis_pT'] = pt_of(h_tt)
        feats['h_tt_met_mass'] = inv_mass(h_tt + met)
        feats['h_bb_mass'] = inv_mass(h_bb)
        feats['h_bb_pT'] = pt_of(h_bb)
        feats['hh_vis_mass'] = inv_mass(hh)
        feats['hh_vis_pT'] = pt_of(hh)
        feats['svfit_mass'] = inputs.svfit_mass

        feats['dR_l1_l2'] = delta_r(inputs.l_1_eta, inputs.l_1_phi, inputs.l_2_eta, inputs.l_2_phi)
        feats['dR_b1_b2'] = delta_r(inputs.b_1_eta, inputs.b_1_phi, inputs.b_2_eta, inputs.b_2_phi)
        feats['dR_hbb_htt'] = delta_r(*eta_phi_of(h_bb), *eta_phi_of(h_tt))
        feats['dphi_l1_met'] = delta_phi(inputs.l_1_phi, inputs.met_phi)
        feats['dphi_l2_met'] = delta_phi(inputs.l_2_phi, inputs.met_phi)

        for name in ('kinfit_mass', 'kinfit_chi2', 'mt2', 'mt_tot', 'p_zetavisible', 'p_zeta',
                     'top_1_mass', 'top_2_mass', 'l_1_mt', 'l_2_mt', 'b_1_tag', 'b_2_tag'):
            feats[name] = getattr(inputs, name)
        feats['is_boosted'] = float(is_boosted)

        feats['channel'] = float(context.channel)
        feats['year'] = float(context.year)
        feats['res_mass'] = float(context.res_mass)
        feats['spin'] = float(context.spin)
        feats['klambda'] = float(context.klambda)
        return feats

    def process(self, inputs: KinematicInputs, is_boosted: bool,
                context: FeatureContext) -> np.ndarray:
        """
        Compute the feature vector for one event.

        Returns:
            float32 array ordered as ``feature_names``
        """
        feats = self.compute_all(inputs, is_boosted, context)
        return np.array([feats[name] for name in self.feature_names], dtype=np.float32)
