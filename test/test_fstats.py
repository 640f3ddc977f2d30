import math

import pytest
import numpy

from pyfstat import Genotypes
from pyfstat.errors import LocusOutOfRangeError, ZeroDivisorError
from pyfstat.fstats import (
    VarComp,
    calc_variance_components,
    calc_allele_fstats,
    calc_allele_fit,
    calc_allele_fst,
    calc_allele_fis,
    calc_wc_multilocus_fst,
    calc_wc_multilocus_fis,
    calc_rh_multilocus_fst,
    calc_fstats_per_locus,
)


def _create_gts():
    # these are the genotypes used in the scikit-allel weir_cockerham_fst docs
    gt_array = numpy.array(
        [
            [[0, 0], [0, 0], [1, 1], [1, 1]],
            [[0, 1], [0, 1], [0, 1], [0, 1]],
            [[0, 0], [0, 0], [0, 0], [0, 0]],
            [[0, 1], [1, 2], [1, 1], [2, 2]],
            [[0, 0], [1, 1], [0, 1], [-1, -1]],
        ]
    )
    return Genotypes(gt_array, groups=[1, 1, 2, 2])


def _assert_var_comps(var_comps, expected):
    assert sorted(var_comps) == sorted(expected)
    for allele, expected_var_comp in expected.items():
        assert numpy.allclose(var_comps[allele], expected_var_comp)


def test_variance_components():
    gts = _create_gts()
    expected = {0: (0.5, 0.0, 0.0), 1: (0.5, 0.0, 0.0)}
    _assert_var_comps(calc_variance_components(gts, 0, {1, 2}), expected)

    expected = {0: (0.0, -0.25, 0.5), 1: (0.0, -0.25, 0.5)}
    _assert_var_comps(calc_variance_components(gts, 1, {1, 2}), expected)

    expected = {0: (0.0, 0.0, 0.0)}
    _assert_var_comps(calc_variance_components(gts, 2, {1, 2}), expected)

    expected = {
        0: (0.0, 0.0, 0.125),
        1: (-0.125, 0.125, 0.25),
        2: (-0.125, 0.25, 0.125),
    }
    _assert_var_comps(calc_variance_components(gts, 3, {1, 2}), expected)

    # with missing data
    expected = {
        0: (-0.375, 0.41666667, 0.16666667),
        1: (-0.375, 0.41666667, 0.16666667),
    }
    var_comps = calc_variance_components(gts, 4, [2, 1])
    _assert_var_comps(var_comps, expected)
    assert isinstance(var_comps[0], VarComp)
    assert math.isclose(var_comps[0].c, 1 / 6)


def test_variance_components_need_two_groups():
    gts = _create_gts()
    with pytest.raises(ZeroDivisorError):
        calc_variance_components(gts, 0, {1})

    # the second group has no data, it does not count as a group
    gt_array = numpy.array([[[0, 0], [0, 1], [-1, -1], [-1, -1]]])
    gts = Genotypes(gt_array, groups=[1, 1, 2, 2])
    with pytest.raises(ZeroDivisorError):
        calc_variance_components(gts, 0, {1, 2})

    # one individual per group
    gt_array = numpy.array([[[0, 0], [0, 1], [1, 1]]])
    gts = Genotypes(gt_array, groups=[1, 2, 3])
    with pytest.raises(ZeroDivisorError):
        calc_variance_components(gts, 0, {1, 2, 3})

    # a group without genotypes is ignored
    gt_array = numpy.array([[[1, 2], [1, 1], [2, 2], [2, 2], [-1, -1]]])
    gts = Genotypes(gt_array, groups=[1, 1, 2, 2, 3])
    var_comps = calc_variance_components(gts, 0, {1, 2, 3})
    expected = {1: (0.25, 0.0, 0.125), 2: (0.25, 0.0, 0.125)}
    _assert_var_comps(var_comps, expected)


def test_two_groups_one_locus():
    gt_array = numpy.array([[[1, 2], [1, 1], [2, 2], [2, 2]]])
    gts = Genotypes(gt_array, groups=[1, 1, 2, 2])

    expected = {1: (0.25, 0.0, 0.125), 2: (0.25, 0.0, 0.125)}
    _assert_var_comps(calc_variance_components(gts, 0, {1, 2}), expected)

    fstats = calc_allele_fstats(gts, 0, {1, 2})
    for allele in (1, 2):
        assert math.isclose(fstats[allele].fit, 2 / 3)
        assert math.isclose(fstats[allele].fst, 2 / 3)
        assert math.isclose(fstats[allele].fis, 0.0, abs_tol=1e-12)

    assert math.isclose(calc_wc_multilocus_fst(gts, [0], {1, 2}), 2 / 3)
    assert math.isclose(calc_wc_multilocus_fis(gts, [0], {1, 2}), 0.0, abs_tol=1e-12)
    assert math.isclose(calc_rh_multilocus_fst(gts, [0], {1, 2}), 2 / 3)


def test_allele_fstats():
    gts = _create_gts()

    fstats = calc_allele_fstats(gts, 3, {1, 2})
    # allele 1, a + b + c = 0.25
    assert math.isclose(fstats[1].fst, -0.5)
    assert math.isclose(fstats[1].fit, 0.0, abs_tol=1e-12)
    assert math.isclose(fstats[1].fis, 1 / 3)
    for stats in fstats.values():
        assert math.isclose(
            stats.fis, (stats.fit - stats.fst) / (1 - stats.fst), abs_tol=1e-12
        )

    fit = calc_allele_fit(gts, 3, {1, 2})
    fst = calc_allele_fst(gts, 3, {1, 2})
    fis = calc_allele_fis(gts, 3, {1, 2})
    assert sorted(fit) == sorted(fst) == sorted(fis) == [0, 1, 2]
    for allele in fit:
        assert fit[allele] == fstats[allele].fit
        assert fst[allele] == fstats[allele].fst
        assert fis[allele] == fstats[allele].fis

    # a + b + c = 0
    with pytest.raises(ZeroDivisorError):
        calc_allele_fstats(gts, 2, {1, 2})
    # Fst = 1
    with pytest.raises(ZeroDivisorError):
        calc_allele_fis(gts, 0, {1, 2})


def test_multilocus_fstats():
    gts = _create_gts()
    # sum a = 0.75, sum b = -0.125, sum c = 1.5
    fst = calc_wc_multilocus_fst(gts, [0, 1, 2, 3], {1, 2})
    assert math.isclose(fst, 0.75 / 2.125)
    fis = calc_wc_multilocus_fis(gts, [0, 1, 2, 3], {1, 2})
    assert math.isclose(fis, -0.125 / 1.375)

    with pytest.raises(ZeroDivisorError):
        calc_wc_multilocus_fst(gts, [2], {1, 2})
    with pytest.raises(ZeroDivisorError):
        calc_wc_multilocus_fis(gts, [0], {1, 2})


def test_rh_multilocus_fst():
    gts = _create_gts()
    # locus 3, p_bar: 1/8, 1/2, 3/8, thetas: 0, -0.5, -0.5
    # (7/8 * 0 + 1/2 * -0.5 + 5/8 * -0.5) / 2
    assert math.isclose(calc_rh_multilocus_fst(gts, [3], {1, 2}), -0.28125)
    # loci 0 and 1 have one theta for both alleles: 1 and 0, total weight 1
    assert math.isclose(calc_rh_multilocus_fst(gts, [0, 1], {1, 2}), 0.5)
    assert math.isclose(
        calc_rh_multilocus_fst(gts, [0, 1, 3], {1, 2}), (1 - 0.5625) / 4
    )
    # fixed loci do not count
    assert math.isclose(
        calc_rh_multilocus_fst(gts, [0, 1, 2, 3], {1, 2}), (1 - 0.5625) / 4
    )
    with pytest.raises(ZeroDivisorError):
        calc_rh_multilocus_fst(gts, [2], {1, 2})

    # it differs from the ratio of the summed components at multiallelic loci
    assert not math.isclose(
        calc_rh_multilocus_fst(gts, [3], {1, 2}),
        calc_wc_multilocus_fst(gts, [3], {1, 2}),
    )


def test_fstats_per_locus():
    gts = _create_gts()
    res = calc_fstats_per_locus(gts, [0, 1, 2, 3], {1, 2})
    assert list(res.index) == [0, 1, 2, 3]
    assert numpy.allclose(res["fst"].values, [1, 0, numpy.nan, -0.4], equal_nan=True)
    assert numpy.allclose(res["fit"].values, [1, -1, numpy.nan, 0.2], equal_nan=True)
    assert numpy.allclose(
        res["fis"].values, [numpy.nan, -1, numpy.nan, 0.375 / 0.875], equal_nan=True
    )

    res = calc_fstats_per_locus(gts, [0, 1], {1})
    assert res.isna().all().all()


def test_locus_out_of_range():
    gts = _create_gts()
    for funct in (
        calc_variance_components,
        calc_allele_fstats,
        calc_allele_fit,
        calc_allele_fst,
        calc_allele_fis,
    ):
        with pytest.raises(LocusOutOfRangeError):
            funct(gts, 5, {1, 2})
    for funct in (
        calc_wc_multilocus_fst,
        calc_wc_multilocus_fis,
        calc_rh_multilocus_fst,
        calc_fstats_per_locus,
    ):
        with pytest.raises(LocusOutOfRangeError):
            funct(gts, [0, 5], {1, 2})


def test_non_integer_loci():
    gts = _create_gts()
    with pytest.raises(ValueError):
        calc_wc_multilocus_fst(gts, [0, 1.5], {1, 2})
    with pytest.raises(ValueError):
        calc_rh_multilocus_fst(gts, [0.0], {1, 2})
    fst = calc_wc_multilocus_fst(gts, numpy.array([0, 1]), {1, 2})
    assert math.isclose(fst, calc_wc_multilocus_fst(gts, [0, 1], {1, 2}))
