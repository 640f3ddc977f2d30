from typing import Iterable

import numpy

from pyfstat.errors import LocusOutOfRangeError


def _normalize_groups(groups: Iterable[int]) -> set[int]:
    if isinstance(groups, (int, numpy.integer)):
        raise ValueError("groups should be a collection of group ids, not a group id")
    return {int(group) for group in groups}


def _get_groups_mask(gts, groups: Iterable[int]):
    groups = _normalize_groups(groups)
    return numpy.isin(gts.groups, sorted(groups))


def _check_loci(gts, loci: Iterable[int]) -> list[int]:
    loci = list(loci)
    not_int_loci = [
        locus for locus in loci if not isinstance(locus, (int, numpy.integer))
    ]
    if not_int_loci:
        raise ValueError(f"Locus positions should be integers: {not_int_loci}")
    loci = [int(locus) for locus in loci]
    num_loci = gts.num_loci
    bad_loci = [locus for locus in loci if locus < 0 or locus >= num_loci]
    if bad_loci:
        raise LocusOutOfRangeError(
            f"Locus positions {bad_loci} out of range, the genotypes have {num_loci} loci"
        )
    return loci


def _check_locus(gts, locus: int) -> int:
    return _check_loci(gts, [locus])[0]
