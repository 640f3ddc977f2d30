import pytest
import numpy

from pyfstat import Genotypes
from pyfstat.config import MISSING_ALLELE


def test_genotypes():
    num_loci = 3
    num_indis = 4
    gt_array = numpy.random.randint(0, 2, size=(num_loci, num_indis, 2))
    gt_array[1, 0, 0] = MISSING_ALLELE
    gts = Genotypes(gt_array, groups=[2, 1, 2, 1])
    assert gts.num_loci == num_loci
    assert gts.num_indis == num_indis
    assert gts.ploidy == 2
    assert gts.group_ids == [1, 2]
    assert list(gts.indi_names) == [0, 1, 2, 3]
    assert gts.gt_is_missing[1, 0]
    assert gts.gt_is_missing.sum() == 1

    with pytest.raises(ValueError):
        gts.gt_array[0, 0, 0] = 1
    with pytest.raises(ValueError):
        gts.groups[0] = 3

    # the container does not share memory with the given array
    gt_array[0, 0, :] = 5
    assert not numpy.any(gts.gt_array == 5)

    # not even with a read only view of a writeable array
    read_only_view = gt_array.view()
    read_only_view.flags.writeable = False
    gts = Genotypes(read_only_view, groups=[2, 1, 2, 1])
    gt_array[0, 0, :] = 7
    assert not numpy.any(gts.gt_array == 7)
    assert not numpy.shares_memory(gts.gt_array, gt_array)


def test_wrong_genotypes():
    with pytest.raises(ValueError):
        Genotypes(numpy.zeros((3, 4), dtype=int), groups=[1, 1, 1, 1])
    with pytest.raises(ValueError):
        Genotypes(numpy.zeros((3, 4, 3), dtype=int), groups=[1, 1, 1, 1])
    with pytest.raises(ValueError):
        Genotypes(numpy.zeros((3, 4, 2), dtype=float), groups=[1, 1, 1, 1])
    with pytest.raises(ValueError):
        Genotypes(numpy.full((3, 4, 2), -2), groups=[1, 1, 1, 1])
    with pytest.raises(ValueError):
        Genotypes(numpy.zeros((3, 4, 2), dtype=int), groups=[1, 1, 1])
    with pytest.raises(ValueError):
        Genotypes(numpy.zeros((3, 4, 2), dtype=int), groups=[1, 1, -1, 1])
    with pytest.raises(ValueError):
        Genotypes(
            numpy.zeros((3, 4, 2), dtype=int),
            groups=[1, 1, 1, 1],
            indi_names=["a", "b"],
        )


def test_from_multilocus_genotypes():
    gts = Genotypes.from_multilocus_genotypes(
        [[(1, 2), None], [1, (2, 1)]], groups=[3, 1], indi_names=["a", "b"]
    )
    expected = [[[1, 2], [1, 1]], [[-1, -1], [2, 1]]]
    assert numpy.array_equal(gts.gt_array, expected)
    assert list(gts.groups) == [3, 1]
    assert list(gts.indi_names) == ["a", "b"]
    assert gts.group_ids == [1, 3]

    with pytest.raises(ValueError):
        Genotypes.from_multilocus_genotypes([[(1, 2), None], [1]], groups=[1, 1])
    with pytest.raises(ValueError):
        Genotypes.from_multilocus_genotypes([[(1, 2, 3)]], groups=[1])


def test_with_groups():
    gt_array = numpy.array([[[1, 2], [1, 1], [2, 2], [2, 2]]])
    gts = Genotypes(gt_array, groups=[1, 1, 2, 2])
    new_gts = gts.with_groups([2, 1, 2, 1])
    assert list(new_gts.groups) == [2, 1, 2, 1]
    assert list(gts.groups) == [1, 1, 2, 2]
    assert new_gts.gt_array is gts.gt_array

    new_gts = gts.with_gt_array(numpy.array([[[1, 1], [1, 1], [2, 2], [2, 1]]]))
    assert new_gts.gt_array[0, 3, 1] == 1
    assert gts.gt_array[0, 3, 1] == 2
