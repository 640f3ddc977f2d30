from typing import Self, Sequence

import numpy

from .config import MISSING_ALLELE, PLOIDY


def _as_read_only(array):
    array = numpy.asarray(array)
    # read-only arrays that own their memory can be shared
    if array.flags.writeable or not array.flags.owndata:
        array = array.copy()
        array.flags.writeable = False
    return array


def _check_groups(groups, num_indis):
    if groups.ndim != 1:
        raise ValueError("groups should be a one dimensional sequence of group ids")
    if groups.size != num_indis:
        raise ValueError(
            f"Number of individuals in gts ({num_indis}) and number of given groups ({groups.size}) do not match"
        )
    if not numpy.issubdtype(groups.dtype, numpy.integer):
        raise ValueError("Group ids should be integers")
    if numpy.any(groups < 0):
        raise ValueError("Group ids should be non negative integers")


class Genotypes:
    def __init__(
        self,
        gt_array: numpy.ndarray,
        groups: Sequence[int],
        indi_names: Sequence[str] | Sequence[int] | None = None,
    ):
        gt_array = numpy.asarray(gt_array)
        if gt_array.ndim != 3:
            raise ValueError(
                "Genotype array should have three dimensions: locus x indi x ploidy"
            )
        if not numpy.issubdtype(gt_array.dtype, numpy.integer):
            raise ValueError("gts must be an integer numpy array")
        if gt_array.shape[2] != PLOIDY:
            raise ValueError("Only diploid genotypes are allowed")
        if numpy.any(gt_array < MISSING_ALLELE):
            raise ValueError(
                f"Allele ids should be non negative integers or {MISSING_ALLELE} for missing data"
            )
        gt_array = _as_read_only(gt_array)

        groups = numpy.asarray(groups)
        if not groups.size:
            groups = groups.astype(numpy.int64)
        _check_groups(groups, gt_array.shape[1])
        groups = _as_read_only(groups)

        if indi_names is None:
            indi_names = numpy.arange(gt_array.shape[1])
        indi_names = _as_read_only(indi_names)
        if indi_names.size != gt_array.shape[1]:
            raise ValueError(
                f"Number of individuals in gts ({gt_array.shape[1]}) and number of given names ({indi_names.size}) do not match"
            )

        self._gt_array = gt_array
        self._groups = groups
        self._indi_names = indi_names

    @classmethod
    def from_multilocus_genotypes(
        cls,
        genotypes: Sequence[Sequence[int | tuple[int, int] | None]],
        groups: Sequence[int],
        indi_names: Sequence[str] | Sequence[int] | None = None,
    ) -> Self:
        """Build the genotypes from one sequence of monolocus genotypes per individual

        Each monolocus genotype is None for missing data, an allele id for a
        homozygous genotype or a pair of allele ids.
        """
        num_loci = {len(indi_gts) for indi_gts in genotypes}
        if len(num_loci) > 1:
            raise ValueError(
                f"All individuals should have the same number of loci, but found: {sorted(num_loci)}"
            )
        num_loci = num_loci.pop() if num_loci else 0

        gt_array = numpy.full(
            (num_loci, len(genotypes), PLOIDY), MISSING_ALLELE, dtype=numpy.int64
        )
        for indi_idx, indi_gts in enumerate(genotypes):
            for locus, gt in enumerate(indi_gts):
                if gt is None:
                    continue
                if isinstance(gt, (int, numpy.integer)):
                    gt = (gt, gt)
                if len(gt) != PLOIDY:
                    raise ValueError(f"Only diploid genotypes are allowed: {gt}")
                gt_array[locus, indi_idx, :] = gt
        return cls(gt_array, groups=groups, indi_names=indi_names)

    @property
    def num_loci(self):
        return self._gt_array.shape[0]

    @property
    def num_indis(self):
        return self._gt_array.shape[1]

    @property
    def ploidy(self):
        return self._gt_array.shape[2]

    @property
    def gt_array(self):
        return self._gt_array

    @property
    def groups(self):
        return self._groups

    @property
    def indi_names(self):
        return self._indi_names

    @property
    def group_ids(self):
        return sorted(numpy.unique(self._groups).tolist())

    @property
    def gt_is_missing(self):
        return numpy.any(self._gt_array == MISSING_ALLELE, axis=2)

    def with_groups(self, groups: Sequence[int]) -> Self:
        return self.__class__(self._gt_array, groups=groups, indi_names=self._indi_names)

    def with_gt_array(self, gt_array: numpy.ndarray) -> Self:
        return self.__class__(gt_array, groups=self._groups, indi_names=self._indi_names)
