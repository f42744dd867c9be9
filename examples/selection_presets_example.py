"""
Example: Tag Decoding and Selection Presets
===========================================

Demonstrates how a set of event tags is decoded, classified and reconciled
under the preset selections:
- default_selection: training tables (signal region, cut optional)
- inference_selection: cut required, data included, nominal klambda only
- full_selection: every category, region, systematic and data

Also shows how a stratification key decodes back to its category tuple.
"""

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from hh_data_proc.data import (
    decode_strat_key,
    decode_tag,
    default_selection,
    full_selection,
    get_jet_cat_name,
    get_region_name,
    get_sample_name,
    inference_selection,
    reconcile_tags,
    strat_key,
)

TAG_SETS = {
    'tt, resolved + boosted': [
        "2j1bR_noVBF/NoCuts/OS_Isolated/None/Central/TT_powheg",
        "2j2Lb+B_noVBF/mh/OS_Isolated/None/Central/TT_powheg",
    ],
    'ggF signal, kl=1.5': [
        "2j2b+R_noVBF/mh/OS_Isolated/None/Central/GluGluSignal_NonRes_kl1p5",
    ],
    'data, anti-isolated': [
        "2j0bR_noVBF/mh/OS_AntiIsolated/None/Central/Data_Tau_Run2016B",
    ],
    'DY, JES up': [
        "2j/mh/OS_Isolated/JES_up/Central/DY_MC_M-10-50",
    ],
}

print("=" * 80)
print("HH bbtautau Selection Presets Example")
print("=" * 80)
print()

presets = {
    'default': default_selection(),
    'inference': inference_selection(),
    'full': full_selection(),
}

for label, names in TAG_SETS.items():
    tags = [decode_tag(name) for name in names]
    lead = tags[0]
    print(f"{label}")
    print("-" * 80)
    print(f"  Sample:  {get_sample_name(lead.sample)} (id {lead.sample}, class {lead.class_id})")
    print(f"  Region:  {get_region_name(lead.region)}")
    for preset, config in presets.items():
        decision = reconcile_tags(tags, config)
        if not decision.accept:
            print(f"  {preset:<10} rejected")
            continue
        key = strat_key(lead.sample, decision.jet_cat, lead.region, decision.cut, lead.syst_unc)
        print(f"  {preset:<10} jet_cat={get_jet_cat_name(decision.jet_cat):<14} "
              f"boosted={decision.is_boosted!s:<5} cut={decision.cut!s:<5} strat_key={key}")
    print()

print("Decoding a stratification key")
print("-" * 80)
key = strat_key(3, 2, 1, True, False)
print(f"strat_key(3, 2, 1, True, False) = {key}")
print(f"decode_strat_key({key}) = {decode_strat_key(key)}")
print()
