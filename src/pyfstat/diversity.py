from typing import Iterable, Sequence

import numpy
import pandas

from pyfstat.errors import ZeroDivisorError
from pyfstat.genotypes import Genotypes
from pyfstat.gt_counts import (
    _get_called_gts_for_groups,
    _calc_gt_is_het,
    calc_allele_freqs_for_groups,
    count_non_missing_for_groups,
)
from pyfstat.utils_pop import _check_loci, _normalize_groups


def count_het_alleles_for_groups(
    gts: Genotypes, locus: int, groups: Iterable[int]
) -> dict[int, int]:
    "Every heterozygous genotype adds one to each of its two alleles"
    called_gts = _get_called_gts_for_groups(gts, locus, groups)["called_gts"]
    het_gts = called_gts[_calc_gt_is_het(called_gts), :]
    alleles, counts = numpy.unique(het_gts, return_counts=True)
    return dict(zip(alleles.tolist(), counts.tolist()))


def calc_het_allele_freqs_for_groups(
    gts: Genotypes, locus: int, groups: Iterable[int]
) -> dict[int, float]:
    called_gts = _get_called_gts_for_groups(gts, locus, groups)["called_gts"]
    num_allelic_gts = called_gts.size
    if not num_allelic_gts:
        raise ZeroDivisorError(
            f"All the selected genotypes are missing at locus {locus}"
        )
    het_gts = called_gts[_calc_gt_is_het(called_gts), :]
    alleles, counts = numpy.unique(het_gts, return_counts=True)
    return dict(zip(alleles.tolist(), (counts / num_allelic_gts).tolist()))


def calc_obs_het(gts: Genotypes, locus: int, groups: Iterable[int]) -> float:
    """Mean of the heterozygous frequencies of the alleles

    It is 0 when no heterozygous genotype is found.
    """
    freqs = calc_het_allele_freqs_for_groups(gts, locus, groups)
    if not freqs:
        return 0.0
    return float(numpy.mean(list(freqs.values())))


def calc_exp_het(gts: Genotypes, locus: int, groups: Iterable[int]) -> float:
    "Nei (1977) expected heterozygosity: 1 - sum(x_i ** 2)"
    freqs = numpy.array(list(calc_allele_freqs_for_groups(gts, locus, groups).values()))
    return float(1 - numpy.sum(freqs**2))


def calc_unbiased_exp_het(gts: Genotypes, locus: int, groups: Iterable[int]) -> float:
    """Nei (1978) unbiased expected heterozygosity

    H_nb = 2n / (2n - 1) * H_exp, n being the number of non missing genotypes
    """
    groups = _normalize_groups(groups)
    exp_het = calc_exp_het(gts, locus, groups)
    num_indis = count_non_missing_for_groups(gts, locus, groups)
    if 2 * num_indis - 1 <= 0:
        raise ZeroDivisorError(f"No genotypes found at locus {locus}")
    return (2 * num_indis / (2 * num_indis - 1)) * exp_het


def calc_het_stats_per_locus(
    gts: Genotypes, loci: Sequence[int], groups: Iterable[int]
) -> pandas.DataFrame:
    loci = _check_loci(gts, loci)
    groups = _normalize_groups(groups)

    stats = {
        "num_non_missing": [],
        "obs_het": [],
        "exp_het": [],
        "unbiased_exp_het": [],
    }
    for locus in loci:
        num_indis = count_non_missing_for_groups(gts, locus, groups)
        stats["num_non_missing"].append(num_indis)
        if num_indis:
            obs_het = calc_obs_het(gts, locus, groups)
            exp_het = calc_exp_het(gts, locus, groups)
            unbiased_exp_het = calc_unbiased_exp_het(gts, locus, groups)
        else:
            obs_het, exp_het, unbiased_exp_het = numpy.nan, numpy.nan, numpy.nan
        stats["obs_het"].append(obs_het)
        stats["exp_het"].append(exp_het)
        stats["unbiased_exp_het"].append(unbiased_exp_het)
    return pandas.DataFrame(stats, index=pandas.Index(loci, name="locus"))
