import itertools
import logging
import math
from typing import Iterable, Sequence

import numpy
import pandas

from pyfstat.config import (
    DEF_NUM_PROCESSES,
    DIST_METHODS,
    NEI72,
    NEI78,
    NM,
    REYNOLDS_D,
    RH_FST,
    ROUSSET,
    WC_FST,
)
from pyfstat.errors import UnsupportedDistMethodError, ZeroDivisorError
from pyfstat.fstats import calc_rh_multilocus_fst, calc_wc_multilocus_fst
from pyfstat.genotypes import Genotypes
from pyfstat.gt_counts import calc_allele_freqs_for_groups, count_non_missing_for_groups
from pyfstat.pipeline import Pipeline
from pyfstat.utils_pop import _check_loci, _normalize_groups

logger = logging.getLogger(__name__)


def _get_vector_from_square(square_dists):
    row_idxs, col_idxs = numpy.triu_indices(square_dists.shape[0], k=1)
    return square_dists[row_idxs, col_idxs]


def _calc_num_items_from_dist_vector(dist_vector_size):
    a = 1
    b = -1
    c = -2 * dist_vector_size
    return int(round((-b + math.sqrt(b**2 - 4 * a * c)) / (2 * a)))


def _get_square_from_vector(dist_vector):
    num_items = _calc_num_items_from_dist_vector(dist_vector.size)
    square = numpy.zeros((num_items, num_items), dtype=dist_vector.dtype)
    row_idxs, col_idxs = numpy.triu_indices(num_items, k=1)
    square[row_idxs, col_idxs] = dist_vector
    square[col_idxs, row_idxs] = dist_vector
    return square


class Distances:
    """Symmetric distance matrix with a zero diagonal

    Only the upper triangle is stored, row by row, in dist_vector.
    """

    def __init__(
        self,
        dist_vector: numpy.ndarray,
        names: Sequence[str] | Sequence[int] | None = None,
    ):
        self.dist_vector = numpy.array(dist_vector, dtype=float)
        self.dist_vector.flags.writeable = False

        expected_num_items = _calc_num_items_from_dist_vector(self.dist_vector.size)
        if names is None:
            names = numpy.arange(expected_num_items)
        else:
            names = numpy.array(names)
            if names.size != expected_num_items:
                raise ValueError(
                    f"Expected num items ({expected_num_items}) does not match the given number of names ({names.size})"
                )
        names.flags.writeable = False
        self.names = names

    @classmethod
    def from_square_dists(cls, dists: pandas.DataFrame):
        if dists.shape[0] != dists.shape[1]:
            raise ValueError(
                f"A square dist matrix is required, but shape was not squared: {dists.shape}"
            )
        names = numpy.array(dists.index)
        dist_vector = _get_vector_from_square(dists.values)
        return cls(dist_vector=dist_vector, names=names)

    @property
    def square_dists(self):
        dists = _get_square_from_vector(self.dist_vector)
        return pandas.DataFrame(dists, index=self.names, columns=self.names)

    def get_dist(self, name1, name2) -> float:
        return float(self.square_dists.loc[name1, name2])


def _calc_nei_sums(gts, loci, group1, group2, unbiased):
    loci = _check_loci(gts, loci)

    j_xy, j_x, j_y = 0.0, 0.0, 0.0
    for locus in loci:
        freqs1 = calc_allele_freqs_for_groups(gts, locus, {group1})
        freqs2 = calc_allele_freqs_for_groups(gts, locus, {group2})
        alleles = sorted(set(freqs1).union(freqs2))
        x = numpy.array([freqs1.get(allele, 0.0) for allele in alleles])
        y = numpy.array([freqs2.get(allele, 0.0) for allele in alleles])

        locus_j_x = numpy.sum(x**2)
        locus_j_y = numpy.sum(y**2)
        if unbiased:
            n_x = count_non_missing_for_groups(gts, locus, {group1})
            n_y = count_non_missing_for_groups(gts, locus, {group2})
            locus_j_x = (2 * n_x * locus_j_x - 1) / (2 * n_x - 1)
            locus_j_y = (2 * n_y * locus_j_y - 1) / (2 * n_y - 1)

        j_xy += numpy.sum(x * y)
        j_x += locus_j_x
        j_y += locus_j_y
    return float(j_xy), float(j_x), float(j_y)


def _calc_nei_dist_from_sums(j_xy, j_x, j_y):
    if j_x * j_y <= 0:
        raise ZeroDivisorError(
            f"Nei distance undefined, the allele frequency sums of squares are {j_x} and {j_y}"
        )
    identity = j_xy / math.sqrt(j_x * j_y)
    if identity <= 0:
        raise ZeroDivisorError(
            "Nei distance undefined, the groups do not share any allele"
        )
    return -math.log(identity)


def calc_nei_1972_dist(
    gts: Genotypes, loci: Sequence[int], group1: int, group2: int
) -> float:
    """Nei (1972) standard genetic distance between two groups

    D = -ln(sum(x_i * y_i) / sqrt(sum(x_i ** 2) * sum(y_i ** 2)))
    x_i and y_i are the allele frequencies in each group and every sum is
    pooled over all the loci.
    """
    return _calc_nei_dist_from_sums(
        *_calc_nei_sums(gts, loci, group1, group2, unbiased=False)
    )


def calc_nei_1978_dist(
    gts: Genotypes, loci: Sequence[int], group1: int, group2: int
) -> float:
    """Nei (1978) unbiased genetic distance between two groups

    The homozygosities of each group are corrected for the sample size:
    J_X = (2 * n_X * sum(x_i ** 2) - 1) / (2 * n_X - 1)
    n_X being the number of non missing genotypes of the group at the locus.
    """
    return _calc_nei_dist_from_sums(
        *_calc_nei_sums(gts, loci, group1, group2, unbiased=True)
    )


def _calc_wc_fst_for_pair(gts, loci, group1, group2):
    return calc_wc_multilocus_fst(gts, loci, {group1, group2})


def _calc_rh_fst_for_pair(gts, loci, group1, group2):
    return calc_rh_multilocus_fst(gts, loci, {group1, group2})


def _calc_nm(gts, loci, group1, group2):
    fst = _calc_wc_fst_for_pair(gts, loci, group1, group2)
    if fst == 0:
        raise ZeroDivisorError("Fst is 0, Nm is undefined")
    return (1 / fst - 1) / 4


def _calc_reynolds_d(gts, loci, group1, group2):
    fst = _calc_wc_fst_for_pair(gts, loci, group1, group2)
    if 1 - fst <= 0:
        raise ZeroDivisorError(f"Fst is {fst}, -ln(1 - Fst) is undefined")
    return -math.log(1 - fst)


def _calc_rousset_dist(gts, loci, group1, group2):
    fst = _calc_wc_fst_for_pair(gts, loci, group1, group2)
    if fst == 1:
        raise ZeroDivisorError("Fst is 1, Fst / (1 - Fst) is undefined")
    return fst / (1 - fst)


_DIST_FUNCTS = {
    NEI72: calc_nei_1972_dist,
    NEI78: calc_nei_1978_dist,
    WC_FST: _calc_wc_fst_for_pair,
    RH_FST: _calc_rh_fst_for_pair,
    NM: _calc_nm,
    REYNOLDS_D: _calc_reynolds_d,
    ROUSSET: _calc_rousset_dist,
}


class _PairDistCalculator:
    def __init__(self, gts, loci, method):
        self.gts = gts
        self.loci = loci
        self.calc_dist = _DIST_FUNCTS[method]

    def __call__(self, pair):
        group1, group2 = pair
        return group1, group2, self.calc_dist(self.gts, self.loci, group1, group2)


def calc_pop_dists(
    gts: Genotypes,
    loci: Sequence[int],
    groups: Iterable[int],
    method: str,
    num_processes: int = DEF_NUM_PROCESSES,
) -> Distances:
    """Pairwise distances between groups

    method can be: nei72, nei78, WC (Weir and Cockerham Fst), RH (Robertson
    and Hill Fst), Nm ((1 / Fst - 1) / 4), D (Reynolds et al. 1983,
    -ln(1 - Fst)) or Rousset (Rousset 1997, Fst / (1 - Fst)).
    """
    if method not in DIST_METHODS:
        raise UnsupportedDistMethodError(
            f"Unknown distance method: {method}, supported methods are: {', '.join(DIST_METHODS)}"
        )
    loci = _check_loci(gts, loci)
    sorted_groups = sorted(_normalize_groups(groups))
    num_groups = len(sorted_groups)
    if not num_groups:
        raise ValueError("At least one group is required to calculate distances")

    dists = pandas.DataFrame(
        numpy.zeros(shape=(num_groups, num_groups), dtype=float),
        columns=sorted_groups,
        index=sorted_groups,
    )

    logger.debug("Calculating %s distances between %d groups", method, num_groups)
    pipeline = Pipeline(map_functs=[_PairDistCalculator(gts, loci, method)])
    pairs = itertools.combinations(sorted_groups, 2)
    for group1, group2, dist in pipeline.map_items(pairs, num_processes=num_processes):
        dists.loc[group1, group2] = dist
        dists.loc[group2, group1] = dist
    return Distances.from_square_dists(dists)
