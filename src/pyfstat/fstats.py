import logging
from typing import Iterable, NamedTuple, Sequence

import numpy
import pandas

from pyfstat.errors import ZeroDivisorError
from pyfstat.genotypes import Genotypes
from pyfstat.gt_counts import (
    _get_called_gts_for_groups,
    _calc_gt_is_het,
    _count_alleles_per_indi,
)
from pyfstat.utils_pop import _check_loci, _normalize_groups

logger = logging.getLogger(__name__)
debug = logger.debug


class VarComp(NamedTuple):
    a: float
    b: float
    c: float


class Fstats(NamedTuple):
    fit: float
    fst: float
    fis: float


def _calc_variance_components(gts: Genotypes, locus: int, groups: Iterable[int]):
    """Weir and Cockerham (1984) variance components for every allele of a locus

    The groups are the populations and the individuals the samples of the
    analysis of variance. Groups without any called genotype are ignored.
    """
    res = _get_called_gts_for_groups(gts, locus, groups)
    called_gts = res["called_gts"]
    indi_groups = res["groups"]

    alleles = numpy.unique(called_gts)
    allele_counts = _count_alleles_per_indi(called_gts, alleles)
    het_counts = allele_counts * _calc_gt_is_het(called_gts)[:, numpy.newaxis]

    # number of populations sampled
    pops = numpy.unique(indi_groups)
    r = pops.size
    if r < 2:
        raise ZeroDivisorError(
            f"At least two groups with data are required, {r} found at locus {locus}"
        )

    pop_masks = [indi_groups == pop for pop in pops]
    n = numpy.array([numpy.sum(mask) for mask in pop_masks])
    ac = numpy.array([allele_counts[mask, :].sum(axis=0) for mask in pop_masks])
    hc = numpy.array([het_counts[mask, :].sum(axis=0) for mask in pop_masks])

    n_total = numpy.sum(n)
    n_bar = n_total / r
    if n_bar == 1:
        raise ZeroDivisorError(
            f"The average sample size is 1 at locus {locus}, variance components are undefined"
        )
    # n sub C, it incorporates the coefficient of variation of the sample sizes
    n_c = (n_total - (numpy.sum(n**2) / n_total)) / (r - 1)
    debug("locus %r, r: %r, n: %r, n_bar: %r, n_c: %r", locus, r, n, n_bar, n_c)

    p = ac / (2 * n[:, numpy.newaxis])
    p_bar = numpy.sum(ac, axis=0) / (2 * n_total)
    s_squared = numpy.sum(n[:, numpy.newaxis] * (p - p_bar) ** 2, axis=0) / (
        (r - 1) * n_bar
    )
    h_bar = numpy.sum(hc, axis=0) / n_total
    debug("p_bar: %r, s_squared: %r, h_bar: %r", p_bar, s_squared, h_bar)

    p_q = p_bar * (1 - p_bar)
    # between populations
    a = (n_bar / n_c) * (
        s_squared
        - (1 / (n_bar - 1)) * (p_q - ((r - 1) * s_squared / r) - (h_bar / 4))
    )
    # between individuals within populations
    b = (n_bar / (n_bar - 1)) * (
        p_q - ((r - 1) * s_squared / r) - (((2 * n_bar) - 1) * h_bar / (4 * n_bar))
    )
    # between gametes within individuals
    c = h_bar / 2
    return {"alleles": alleles, "p_bar": p_bar, "a": a, "b": b, "c": c}


def calc_variance_components(
    gts: Genotypes, locus: int, groups: Iterable[int]
) -> dict[int, VarComp]:
    res = _calc_variance_components(gts, locus, groups)
    return {
        allele: VarComp(a=float(a), b=float(b), c=float(c))
        for allele, a, b, c in zip(res["alleles"].tolist(), res["a"], res["b"], res["c"])
    }


def _calc_fstats_from_var_comp(var_comp: VarComp) -> Fstats:
    a, b, c = var_comp
    total = a + b + c
    if total == 0:
        raise ZeroDivisorError("a + b + c is 0, F-statistics are undefined")
    fit = 1 - c / total
    fst = a / total
    if fst == 1:
        raise ZeroDivisorError("Fst is 1, Fis is undefined")
    fis = (fit - fst) / (1 - fst)
    return Fstats(fit=fit, fst=fst, fis=fis)


def calc_allele_fstats(
    gts: Genotypes, locus: int, groups: Iterable[int]
) -> dict[int, Fstats]:
    var_comps = calc_variance_components(gts, locus, groups)
    return {
        allele: _calc_fstats_from_var_comp(var_comp)
        for allele, var_comp in var_comps.items()
    }


def calc_allele_fit(gts: Genotypes, locus: int, groups: Iterable[int]) -> dict[int, float]:
    fstats = calc_allele_fstats(gts, locus, groups)
    return {allele: stats.fit for allele, stats in fstats.items()}


def calc_allele_fst(gts: Genotypes, locus: int, groups: Iterable[int]) -> dict[int, float]:
    fstats = calc_allele_fstats(gts, locus, groups)
    return {allele: stats.fst for allele, stats in fstats.items()}


def calc_allele_fis(gts: Genotypes, locus: int, groups: Iterable[int]) -> dict[int, float]:
    fstats = calc_allele_fstats(gts, locus, groups)
    return {allele: stats.fis for allele, stats in fstats.items()}


def _sum_variance_components(gts, loci, groups):
    loci = _check_loci(gts, loci)
    groups = _normalize_groups(groups)
    sum_a, sum_b, sum_c = 0.0, 0.0, 0.0
    for locus in loci:
        res = _calc_variance_components(gts, locus, groups)
        sum_a += numpy.sum(res["a"])
        sum_b += numpy.sum(res["b"])
        sum_c += numpy.sum(res["c"])
    return float(sum_a), float(sum_b), float(sum_c)


def calc_wc_multilocus_fst(
    gts: Genotypes, loci: Sequence[int], groups: Iterable[int]
) -> float:
    """Weir and Cockerham multilocus theta

    The variance components of every allele of every locus are summed before
    taking the ratio: sum(a) / sum(a + b + c)
    """
    sum_a, sum_b, sum_c = _sum_variance_components(gts, loci, groups)
    total = sum_a + sum_b + sum_c
    if total == 0:
        raise ZeroDivisorError("sum(a + b + c) is 0, multilocus Fst is undefined")
    return sum_a / total


def calc_wc_multilocus_fis(
    gts: Genotypes, loci: Sequence[int], groups: Iterable[int]
) -> float:
    "Weir and Cockerham multilocus Fis: sum(b) / sum(b + c)"
    _, sum_b, sum_c = _sum_variance_components(gts, loci, groups)
    total = sum_b + sum_c
    if total == 0:
        raise ZeroDivisorError("sum(b + c) is 0, multilocus Fis is undefined")
    return sum_b / total


def calc_rh_multilocus_fst(
    gts: Genotypes, loci: Sequence[int], groups: Iterable[int]
) -> float:
    """Robertson and Hill (1984) multilocus theta

    The theta of every allele, a / (a + b + c), is weighted by 1 - p_bar,
    p_bar being its mean frequency:
    sum((1 - p_bar) * theta) / sum(1 - p_bar) over every allele of every locus.
    The weights of a locus add up to its number of alleles minus one.
    """
    loci = _check_loci(gts, loci)
    groups = _normalize_groups(groups)

    weighted_fst = 0.0
    sum_weights = 0.0
    for locus in loci:
        res = _calc_variance_components(gts, locus, groups)
        weights = 1 - res["p_bar"]
        # fixed alleles do not contribute
        is_informative = weights > 0
        if not numpy.any(is_informative):
            continue
        weights = weights[is_informative]
        a = res["a"][is_informative]
        total = a + res["b"][is_informative] + res["c"][is_informative]
        if numpy.any(total == 0):
            raise ZeroDivisorError(f"a + b + c is 0 for an allele at locus {locus}")
        debug("locus %r, RH weights: %r, thetas: %r", locus, weights, a / total)
        weighted_fst += numpy.sum(weights * (a / total))
        sum_weights += numpy.sum(weights)
    if sum_weights == 0:
        raise ZeroDivisorError("No polymorphic locus, Robertson and Hill Fst is undefined")
    return float(weighted_fst / sum_weights)


def calc_fstats_per_locus(
    gts: Genotypes, loci: Sequence[int], groups: Iterable[int]
) -> pandas.DataFrame:
    """Fit, Fst and Fis for every locus, the components summed over its alleles

    Undefined statistics are NaN.
    """
    loci = _check_loci(gts, loci)
    groups = _normalize_groups(groups)

    stats = {"fit": [], "fst": [], "fis": []}
    for locus in loci:
        try:
            res = _calc_variance_components(gts, locus, groups)
        except ZeroDivisorError:
            debug("Not enough data to calculate F-statistics at locus %r", locus)
            fit, fst, fis = numpy.nan, numpy.nan, numpy.nan
        else:
            a, b, c = numpy.sum(res["a"]), numpy.sum(res["b"]), numpy.sum(res["c"])
            total = numpy.float64(a + b + c)
            with numpy.errstate(divide="ignore", invalid="ignore"):
                fit = 1 - c / total
                fst = a / total
                fis = b / numpy.float64(b + c)
        stats["fit"].append(fit)
        stats["fst"].append(fst)
        stats["fis"].append(fis)
    stats = pandas.DataFrame(stats, index=pandas.Index(loci, name="locus"), dtype=float)
    stats = stats.replace([numpy.inf, -numpy.inf], numpy.nan)
    return stats
