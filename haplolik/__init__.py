from haplolik.classes import GenomicRegion, Haplotype, Genotype
from haplolik.cache import HaplotypeLikelihoodCache
from haplolik.likelihood import GermlineLikelihoodModel
from haplolik.prior import (
    HaplotypeFrequencies,
    HaplotypePriorModel,
    MutationPriorModel,
    init_haplotype_frequencies,
    init_haplotype_frequencies_from_counts,
    update_haplotype_frequencies,
    compute_haplotype_prior_counts,
    log_hardy_weinberg,
)
from haplolik.em import HaplotypeFrequencyEM, ConvergenceWarning
from haplolik.version import __version__

__all__ = [
    "GenomicRegion",
    "Haplotype",
    "Genotype",
    "HaplotypeLikelihoodCache",
    "GermlineLikelihoodModel",
    "HaplotypeFrequencies",
    "HaplotypePriorModel",
    "MutationPriorModel",
    "init_haplotype_frequencies",
    "init_haplotype_frequencies_from_counts",
    "update_haplotype_frequencies",
    "compute_haplotype_prior_counts",
    "log_hardy_weinberg",
    "HaplotypeFrequencyEM",
    "ConvergenceWarning",
    "__version__",
]
