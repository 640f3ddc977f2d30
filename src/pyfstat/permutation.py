import logging
from typing import Iterable, NamedTuple, Sequence

import numpy

from pyfstat.config import DEF_NUM_PERMUTATIONS, DEF_NUM_PROCESSES, MISSING_ALLELE
from pyfstat.errors import ZeroDivisorError
from pyfstat.fstats import calc_wc_multilocus_fis, calc_wc_multilocus_fst
from pyfstat.genotypes import Genotypes
from pyfstat.pipeline import Pipeline
from pyfstat.utils_pop import _check_loci, _get_groups_mask, _normalize_groups

logger = logging.getLogger(__name__)


class PermResults(NamedTuple):
    statistic: float
    percent_sup: float
    percent_inf: float


def _compare_with_observed(calc_statistic, perm_gts, loci, groups, observed):
    try:
        value = calc_statistic(perm_gts, loci, groups)
    except ZeroDivisorError as error:
        # an undefined replicate is neither above nor below the observed value
        logger.debug("Undefined permuted statistic: %s", error)
        return 0, 0
    return int(value > observed), int(value < observed)


class _GroupPermutationFstCalculator:
    """Multilocus Fst after shuffling the group labels of the individuals

    Only the individuals that belong to the selected groups are shuffled, so
    the group sizes are kept.
    """

    def __init__(self, gts, loci, groups, observed):
        self.gts = gts
        self.loci = loci
        self.groups = groups
        self.observed = observed
        self.indi_idxs = numpy.where(_get_groups_mask(gts, groups))[0]

    def __call__(self, seed_seq):
        rng = numpy.random.default_rng(seed_seq)
        perm_groups = numpy.array(self.gts.groups)
        perm_groups[self.indi_idxs] = rng.permutation(perm_groups[self.indi_idxs])
        perm_gts = self.gts.with_groups(perm_groups)
        return _compare_with_observed(
            calc_wc_multilocus_fst, perm_gts, self.loci, self.groups, self.observed
        )


class _AllelePermutationFisCalculator:
    """Multilocus Fis after shuffling the alleles between the individuals of each group

    Missing genotypes are left untouched.
    """

    def __init__(self, gts, loci, groups, observed):
        self.gts = gts
        self.loci = loci
        self.groups = groups
        self.observed = observed

        gt_array = gts.gt_array
        self.indi_idxs_per_locus = {}
        for locus in loci:
            gt_is_called = numpy.logical_not(
                numpy.any(gt_array[locus, :, :] == MISSING_ALLELE, axis=1)
            )
            self.indi_idxs_per_locus[locus] = [
                numpy.where(numpy.logical_and(gt_is_called, gts.groups == group))[0]
                for group in sorted(groups)
            ]

    def __call__(self, seed_seq):
        rng = numpy.random.default_rng(seed_seq)
        perm_gt_array = numpy.array(self.gts.gt_array)
        for locus, indi_idxs_per_group in self.indi_idxs_per_locus.items():
            for indi_idxs in indi_idxs_per_group:
                alleles = perm_gt_array[locus, indi_idxs, :].ravel()
                perm_gt_array[locus, indi_idxs, :] = rng.permutation(alleles).reshape(
                    (indi_idxs.size, self.gts.ploidy)
                )
        perm_gts = self.gts.with_gt_array(perm_gt_array)
        return _compare_with_observed(
            calc_wc_multilocus_fis, perm_gts, self.loci, self.groups, self.observed
        )


def _sum_tallies(accumulated_tallies, new_tallies):
    return (
        accumulated_tallies[0] + new_tallies[0],
        accumulated_tallies[1] + new_tallies[1],
    )


def _spawn_seeds(rng, num_permutations):
    # one independent seed per replicate, so the result does not depend on
    # how the replicates are distributed between threads
    rng = numpy.random.default_rng(rng)
    seed_seq = numpy.random.SeedSequence(int(rng.integers(0, 2**63)))
    return seed_seq.spawn(num_permutations)


def _do_permutation_test(
    calculator_class,
    calc_statistic,
    gts,
    loci,
    groups,
    num_permutations,
    rng,
    num_processes,
):
    if num_permutations < 0:
        raise ValueError(
            f"The number of permutations should be positive, but it is {num_permutations}"
        )
    loci = _check_loci(gts, loci)
    groups = _normalize_groups(groups)

    observed = calc_statistic(gts, loci, groups)
    if not num_permutations:
        return PermResults(statistic=observed, percent_sup=0.0, percent_inf=0.0)

    logger.debug(
        "Running %d permutations with %s", num_permutations, calculator_class.__name__
    )
    calculator = calculator_class(gts, loci, groups, observed)
    pipeline = Pipeline(
        map_functs=[calculator],
        reduce_funct=_sum_tallies,
        reduce_initializer=(0, 0),
    )
    num_sup, num_inf = pipeline.map_and_reduce(
        _spawn_seeds(rng, num_permutations), num_processes=num_processes
    )
    logger.debug(
        "observed: %r, num. sup.: %d, num. inf.: %d", observed, num_sup, num_inf
    )
    return PermResults(
        statistic=observed,
        percent_sup=num_sup / num_permutations,
        percent_inf=num_inf / num_permutations,
    )


def calc_wc_multilocus_fst_with_permutation(
    gts: Genotypes,
    loci: Sequence[int],
    groups: Iterable[int],
    num_permutations: int = DEF_NUM_PERMUTATIONS,
    rng: numpy.random.Generator | int | None = None,
    num_processes: int = DEF_NUM_PROCESSES,
) -> PermResults:
    """Weir and Cockerham multilocus Fst with a permutation test

    The null distribution is built by permuting the individuals between the
    groups. percent_sup and percent_inf are the fractions of permuted values
    strictly greater and strictly lower than the observed Fst. Replicates in
    which the statistic is undefined, for instance because all the called
    genotypes of a locus fall in one group, count in neither fraction.
    """
    return _do_permutation_test(
        _GroupPermutationFstCalculator,
        calc_wc_multilocus_fst,
        gts,
        loci,
        groups,
        num_permutations=num_permutations,
        rng=rng,
        num_processes=num_processes,
    )


def calc_wc_multilocus_fis_with_permutation(
    gts: Genotypes,
    loci: Sequence[int],
    groups: Iterable[int],
    num_permutations: int = DEF_NUM_PERMUTATIONS,
    rng: numpy.random.Generator | int | None = None,
    num_processes: int = DEF_NUM_PROCESSES,
) -> PermResults:
    """Weir and Cockerham multilocus Fis with a permutation test

    The null distribution is built by permuting, at every locus, the alleles
    between the individuals of each group.
    """
    return _do_permutation_test(
        _AllelePermutationFisCalculator,
        calc_wc_multilocus_fis,
        gts,
        loci,
        groups,
        num_permutations=num_permutations,
        rng=rng,
        num_processes=num_processes,
    )
