import numpy as np

from haplolik.classes import GenomicRegion, Haplotype
from haplolik.cache import HaplotypeLikelihoodCache


def simulate_haplotypes(n_haplotypes, length=8, region=None):
    """Simulate a set of unique haplotypes over a region for tests.

    Parameters
    ----------
    n_haplotypes : int
        Number of haplotypes to simulate.
    length : int
        Sequence length of each haplotype.
    region : GenomicRegion, optional
        Region spanned by the haplotypes.

    Returns
    -------
    reference : Haplotype
        Reference haplotype of the region.
    haplotypes : list
        Unique haplotypes, the first of which is the reference.

    Notes
    -----
    The i-th haplotype differs from the reference at the positions
    given by the binary representation of i.
    """
    if region is None:
        region = GenomicRegion("chr1", 100, 100 + length)
    assert n_haplotypes <= 2**length
    reference = Haplotype(region, "A" * length)
    haplotypes = []
    for i in range(n_haplotypes):
        sequence = "".join(
            "C" if (i >> j) & 1 else "A" for j in range(length)
        )
        haplotypes.append(Haplotype(region, sequence))
    return reference, haplotypes


def simulate_likelihood_cache(
    haplotypes,
    samples=("sample",),
    n_reads=20,
    true_genotypes=None,
    error_rate=0.01,
):
    """Simulate per-read haplotype log-likelihoods for tests.

    Parameters
    ----------
    haplotypes : list
        Haplotypes to include in the cache.
    samples : sequence
        Sample identifiers.
    n_reads : int
        Number of reads for each sample.
    true_genotypes : dict, optional
        Mapping of samples to a list of haplotype indices from
        which reads are sampled. If not set, all log-likelihoods
        are sampled at random.
    error_rate : float
        Probability of a read matching a haplotype that it was
        not sampled from.

    Returns
    -------
    cache : HaplotypeLikelihoodCache
        Un-primed cache of log-likelihoods.

    Notes
    -----
    This function is intended only for use in unit tests
    and is not an accurate model of real molecular data.
    """
    cache = HaplotypeLikelihoodCache()
    n_haps = len(haplotypes)
    for sample in samples:
        if true_genotypes is None:
            llks = np.log(np.random.rand(n_haps, n_reads))
        else:
            genotype = true_genotypes[sample]
            origins = np.asarray(genotype)[np.random.randint(0, len(genotype), n_reads)]
            llks = np.full((n_haps, n_reads), np.log(error_rate))
            llks[origins, np.arange(n_reads)] = np.log(1 - error_rate)
        for h, haplotype in enumerate(haplotypes):
            cache.insert(sample, haplotype, llks[h])
    return cache
