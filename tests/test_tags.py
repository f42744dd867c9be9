"""
Unit Tests for Tag Decoding and Sample Classification
=====================================================

Tests for:
- Six-field tag decoding and vocabulary lookups
- First-match-wins sample classification
- Signal suffix parsing (klambda, resonance mass)
- Class labels derived from sample ids
"""

import unittest
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from hh_data_proc.data.categories import Spin, get_channel, get_year, Channel, Year
from hh_data_proc.data.samples import SAMPLE_TABLE, classify_sample, class_label
from hh_data_proc.data.tags import decode_tag
from hh_data_proc.errors import (
    ContractViolation,
    MalformedSignalToken,
    MalformedTag,
    UnrecognizedCategory,
    UnrecognizedSample,
)


class TestDecodeTag(unittest.TestCase):
    """Test suite for decode_tag."""

    def test_drell_yan_example(self):
        """Test the reference background tag decodes to the documented flags."""
        tag = decode_tag("2j/NoCuts/SS_AntiIsolated/None/Central/DY_MC_M-10-50")

        self.assertEqual(tag.jet_cat, 0)
        self.assertFalse(tag.cut)
        self.assertEqual(tag.region, 3)
        self.assertTrue(tag.syst_unc)
        self.assertTrue(tag.scale)
        self.assertEqual(tag.sample, 3)
        self.assertEqual(tag.class_id, 0)

    def test_cut_and_shifted_flags(self):
        """Test non-central systematic/scale tokens and the cut-pass token."""
        tag = decode_tag("2j2Lb+B_noVBF/mh/OS_Isolated/JES_Up/Up/TT_powheg")

        self.assertEqual(tag.jet_cat, 4)
        self.assertTrue(tag.cut)
        self.assertEqual(tag.region, 0)
        self.assertFalse(tag.syst_unc)
        self.assertFalse(tag.scale)
        self.assertEqual(tag.sample, 1)

    def test_signal_tag(self):
        """Test a non-resonant signal tag carries its klambda."""
        tag = decode_tag("2j1bR_noVBF/mh/OS_Isolated/None/Central/GluGluSignal_NonRes_kl1p5")

        self.assertEqual(tag.class_id, 1)
        self.assertAlmostEqual(tag.klambda, 1.5)
        self.assertEqual(tag.spin, Spin.nonres)
        self.assertEqual(tag.res_mass, 125.0)

    def test_too_few_fields_raises(self):
        """Test a tag with fewer than six fields aborts instead of decoding partially."""
        with self.assertRaises(MalformedTag):
            decode_tag("2j/NoCuts/SS_AntiIsolated/None/Central")

    def test_too_many_fields_raises(self):
        with self.assertRaises(MalformedTag):
            decode_tag("2j/NoCuts/SS_AntiIsolated/None/Central/DY/extra")

    def test_unknown_jet_category_raises(self):
        with self.assertRaises(UnrecognizedCategory) as ctx:
            decode_tag("3j/NoCuts/OS_Isolated/None/Central/DY_MC")
        self.assertIn("3j", str(ctx.exception))

    def test_unknown_region_raises(self):
        with self.assertRaises(UnrecognizedCategory):
            decode_tag("2j/NoCuts/OS_Whatever/None/Central/DY_MC")

    def test_errors_are_contract_violations(self):
        """Test every decoding error shares the fatal base class."""
        for exc in (MalformedTag, UnrecognizedCategory, UnrecognizedSample, MalformedSignalToken):
            self.assertTrue(issubclass(exc, ContractViolation))


class TestClassifySample(unittest.TestCase):
    """Test suite for classify_sample."""

    def test_backgrounds(self):
        cases = {
            "TT_powheg": 1,
            "ttHToTauTau": 2,
            "DYJetsToLL_M-50": 3,
            "WJetsToLNu": 4,
            "SM_Higgs_GluGlu": 5,
            "ZHToTauTau": 6,
            "WWW_4F": 7,
            "EWKZ2Jets": 8,
            "WWTo2L2Nu": 9,
            "ST_tW_top": 10,
            "TTWJetsToLNu": 11,
        }
        for token, expected in cases.items():
            with self.subTest(token=token):
                self.assertEqual(classify_sample(token).sample_id, expected)

    def test_specific_marker_wins(self):
        """Test markers that contain more general markers are matched first."""
        self.assertEqual(classify_sample("VBFSignal_NonRes_kl1").sample_id, -12)
        self.assertEqual(classify_sample("GluGluSignal_NonRes_kl1").sample_id, -13)
        self.assertEqual(classify_sample("WZZ").sample_id, 7)
        self.assertEqual(classify_sample("WZTo3LNu").sample_id, 9)
        self.assertEqual(classify_sample("TTZToLLNuNu").sample_id, 11)

    def test_data(self):
        info = classify_sample("Data_Tau_Run2016B")
        self.assertEqual(info.sample_id, 0)
        self.assertEqual(info.class_id, -1)

    def test_resonant_signal(self):
        """Test resonant signal parses mass and defaults klambda to 1."""
        radion = classify_sample("GluGluSignal_Radion_M300")
        self.assertEqual(radion.spin, Spin.radion)
        self.assertEqual(radion.res_mass, 300.0)
        self.assertEqual(radion.klambda, 1.0)
        self.assertEqual(radion.sample_id, -15)

        graviton = classify_sample("VBFSignal_Graviton_M900_madgraph")
        self.assertEqual(graviton.spin, Spin.graviton)
        self.assertEqual(graviton.res_mass, 900.0)
        self.assertEqual(graviton.sample_id, -16)

    def test_klambda_parsing(self):
        self.assertAlmostEqual(classify_sample("GluGluSignal_NonRes_kl1p5").klambda, 1.5)
        self.assertAlmostEqual(classify_sample("GluGluSignal_NonRes_klm2p0").klambda, -2.0)
        self.assertAlmostEqual(classify_sample("GluGluSignal_NonRes_kl20_13TeV").klambda, 20.0)

    def test_malformed_signal_suffix_raises(self):
        with self.assertRaises(MalformedSignalToken):
            classify_sample("GluGluSignal_NonRes_klXYZ")
        with self.assertRaises(MalformedSignalToken):
            classify_sample("GluGluSignal_Radion_noMass")

    def test_non_numeric_float_spellings_raise(self):
        """Test nan/inf/exponent spellings are not accepted as suffix values."""
        for token in ("GluGluSignal_NonRes_klnan", "GluGluSignal_NonRes_klinf",
                      "GluGluSignal_NonRes_kl1e3", "GluGluSignal_Radion_Minf",
                      "VBFSignal_Graviton_Minfinity", "GluGluSignal_NonRes_kl1p",
                      "GluGluSignal_NonRes_kl"):
            with self.assertRaises(MalformedSignalToken, msg=token):
                classify_sample(token)

    def test_unrecognized_sample_raises(self):
        with self.assertRaises(UnrecognizedSample) as ctx:
            classify_sample("QCD_HT500")
        self.assertIn("QCD_HT500", str(ctx.exception))

    def test_deterministic(self):
        """Test the same token always yields the same id and label."""
        first = classify_sample("DY_MC_M-10-50")
        for _ in range(5):
            again = classify_sample("DY_MC_M-10-50")
            self.assertEqual((again.sample_id, again.class_id), (first.sample_id, first.class_id))

    def test_signal_ids_disjoint_from_backgrounds(self):
        """Test signal magnitudes never collide with background ids."""
        ids = [family.sample_id for _, family in SAMPLE_TABLE]
        signal = {abs(i) for i in ids if i < 0}
        background = {i for i in ids if i > 0}
        self.assertFalse(signal & background)
        self.assertEqual(len(ids), len(set(ids)))


class TestClassLabel(unittest.TestCase):

    def test_label_by_sign(self):
        for sample_id in (-17, -12, -1):
            self.assertEqual(class_label(sample_id), 1)
        self.assertEqual(class_label(0), -1)
        for sample_id in (1, 3, 11):
            self.assertEqual(class_label(sample_id), 0)


class TestContextLookups(unittest.TestCase):

    def test_channel_and_year(self):
        self.assertEqual(get_channel("muTau"), Channel.muTau)
        self.assertEqual(get_year("2018"), Year.y18)
        with self.assertRaises(ValueError):
            get_channel("mumu")
        with self.assertRaises(ValueError):
            get_year("2015")


if __name__ == '__main__':
    unittest.main()
