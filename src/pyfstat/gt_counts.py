from typing import Iterable

import numpy

from pyfstat.config import MISSING_ALLELE
from pyfstat.errors import ZeroDivisorError
from pyfstat.genotypes import Genotypes
from pyfstat.utils_pop import _check_locus, _get_groups_mask


def _get_called_gts_for_groups(gts: Genotypes, locus: int, groups: Iterable[int]):
    locus = _check_locus(gts, locus)
    mask = _get_groups_mask(gts, groups)
    locus_gts = gts.gt_array[locus, mask, :]
    gt_is_missing = numpy.any(locus_gts == MISSING_ALLELE, axis=1)
    gt_is_called = numpy.logical_not(gt_is_missing)
    return {
        "called_gts": locus_gts[gt_is_called, :],
        "groups": gts.groups[mask][gt_is_called],
    }


def _calc_gt_is_het(called_gts):
    return called_gts[:, 0] != called_gts[:, 1]


def _count_alleles_per_indi(called_gts, alleles):
    # indis x alleles, every cell is 0, 1 or 2
    alleles = numpy.asarray(alleles)
    return numpy.sum(called_gts[:, :, numpy.newaxis] == alleles, axis=1)


def get_allele_ids_for_groups(
    gts: Genotypes, locus: int, groups: Iterable[int]
) -> set[int]:
    called_gts = _get_called_gts_for_groups(gts, locus, groups)["called_gts"]
    return set(numpy.unique(called_gts).tolist())


def count_gametes_for_groups(gts: Genotypes, locus: int, groups: Iterable[int]) -> int:
    called_gts = _get_called_gts_for_groups(gts, locus, groups)["called_gts"]
    return int(called_gts.size)


def count_alleles_for_groups(
    gts: Genotypes, locus: int, groups: Iterable[int]
) -> dict[int, int]:
    called_gts = _get_called_gts_for_groups(gts, locus, groups)["called_gts"]
    alleles, counts = numpy.unique(called_gts, return_counts=True)
    return dict(zip(alleles.tolist(), counts.tolist()))


def calc_allele_freqs_for_groups(
    gts: Genotypes, locus: int, groups: Iterable[int]
) -> dict[int, float]:
    called_gts = _get_called_gts_for_groups(gts, locus, groups)["called_gts"]
    num_gametes = called_gts.size
    if not num_gametes:
        raise ZeroDivisorError(
            f"All the selected genotypes are missing at locus {locus}"
        )
    alleles, counts = numpy.unique(called_gts, return_counts=True)
    return dict(zip(alleles.tolist(), (counts / num_gametes).tolist()))


def count_non_missing_for_groups(
    gts: Genotypes, locus: int, groups: Iterable[int]
) -> int:
    called_gts = _get_called_gts_for_groups(gts, locus, groups)["called_gts"]
    return called_gts.shape[0]


def count_bi_allelic_for_groups(
    gts: Genotypes, locus: int, groups: Iterable[int]
) -> int:
    called_gts = _get_called_gts_for_groups(gts, locus, groups)["called_gts"]
    return int(numpy.sum(_calc_gt_is_het(called_gts)))
