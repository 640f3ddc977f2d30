MISSING_ALLELE = -1
PLOIDY = 2

NEI72 = "nei72"
NEI78 = "nei78"
WC_FST = "WC"
RH_FST = "RH"
NM = "Nm"
REYNOLDS_D = "D"
ROUSSET = "Rousset"
DIST_METHODS = (NEI72, NEI78, WC_FST, RH_FST, NM, REYNOLDS_D, ROUSSET)

DEF_NUM_PERMUTATIONS = 1000
DEF_NUM_PROCESSES = 1
MAP_REDUCE_CHUNK_SIZE = 20
