from pyfstat.genotypes import Genotypes
from pyfstat.errors import (
    LocusOutOfRangeError,
    ZeroDivisorError,
    UnsupportedDistMethodError,
)
from pyfstat.gt_counts import (
    get_allele_ids_for_groups,
    count_gametes_for_groups,
    count_alleles_for_groups,
    calc_allele_freqs_for_groups,
    count_non_missing_for_groups,
    count_bi_allelic_for_groups,
)
from pyfstat.diversity import (
    count_het_alleles_for_groups,
    calc_het_allele_freqs_for_groups,
    calc_obs_het,
    calc_exp_het,
    calc_unbiased_exp_het,
    calc_het_stats_per_locus,
)
from pyfstat.fstats import (
    VarComp,
    Fstats,
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
from pyfstat.permutation import (
    PermResults,
    calc_wc_multilocus_fst_with_permutation,
    calc_wc_multilocus_fis_with_permutation,
)
from pyfstat.dists import (
    Distances,
    calc_nei_1972_dist,
    calc_nei_1978_dist,
    calc_pop_dists,
)
