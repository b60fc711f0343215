import numpy as np
from numba import njit
from scipy.special import comb

from haplolik.likelihood import log_likelihood_alleles
from haplolik.prior import log_hardy_weinberg_alleles
from haplolik.jitutils import (
    increment_genotype,
    normalise_log_probs,
    sum_log_probs,
)


def count_unique_genotypes(n_haplotypes, ploidy):
    """Number of unordered genotypes of a given ploidy that can be
    built from `n_haplotypes` haplotypes.

    A ploidy of zero has exactly one (empty) genotype.
    """
    return int(comb(n_haplotypes, ploidy, exact=True, repetition=True))


@njit(cache=True)
def index_as_genotype_alleles(index, ploidy):
    """Integer alleles of the genotype at a given position in VCF
    sort order.

    Parameters
    ----------
    index : int
        Position of the genotype in VCF sort order.
    ploidy : int
        Ploidy of the genotype.

    Returns
    -------
    alleles : ndarray, int, shape (ploidy, )
        Integer alleles of the genotype in ascending order.
    """
    if index < 0:
        raise ValueError("Genotype index must be >= 0.")
    genotype = np.zeros(ploidy, np.int64)
    for _ in range(index):
        increment_genotype(genotype)
    return genotype


@njit(cache=True)
def _genotype_log_likelihoods(log_likelihoods, ploidy, n_genotypes):
    llks = np.full(n_genotypes, np.nan, np.float64)
    genotype = np.zeros(ploidy, np.int64)
    for i in range(n_genotypes):
        llks[i] = log_likelihood_alleles(log_likelihoods, genotype)
        increment_genotype(genotype)
    return llks


def genotype_log_likelihoods(log_likelihoods, ploidy):
    """Calculate the log likelihood of every possible genotype
    for a given set of per-read haplotype log likelihoods and ploidy.

    Parameters
    ----------
    log_likelihoods : ndarray, float, shape (n_haplotypes, n_reads)
        Per-read log-likelihoods of each haplotype.
    ploidy : int
        Ploidy of organism.

    Returns
    -------
    log_likelihoods : ndarray, float, shape (n_genotypes, )
        VCF ordered genotype log likelihoods.
    """
    n_haplotypes = len(log_likelihoods)
    n_genotypes = count_unique_genotypes(n_haplotypes, ploidy)
    return _genotype_log_likelihoods(
        np.asarray(log_likelihoods, dtype=np.float64), ploidy, n_genotypes
    )


@njit(cache=True)
def _genotype_log_priors(ploidy, frequencies, n_genotypes):
    lpriors = np.full(n_genotypes, np.nan, np.float64)
    genotype = np.zeros(ploidy, np.int64)
    for i in range(n_genotypes):
        lpriors[i] = log_hardy_weinberg_alleles(genotype, frequencies)
        increment_genotype(genotype)
    return lpriors


def genotype_log_priors(ploidy, frequencies):
    """Calculate the Hardy-Weinberg log prior of every possible genotype.

    Parameters
    ----------
    ploidy : int
        Ploidy of organism.
    frequencies : ndarray, float , shape (n_haplotypes, )
        Population frequency of each haplotype.

    Returns
    -------
    log_priors : ndarray, float, shape (n_genotypes, )
        VCF ordered genotype log priors.
    """
    frequencies = np.asarray(frequencies, dtype=np.float64)
    n_genotypes = count_unique_genotypes(len(frequencies), ploidy)
    return _genotype_log_priors(ploidy, frequencies, n_genotypes)


@njit(cache=True)
def genotype_posteriors(log_likelihoods, log_priors):
    """Calculate posterior probability of every possible genotype.

    Parameters
    ----------
    log_likelihoods : ndarray, float, shape(n_genotypes, )
        VCF ordered log (natural) likelihood of each possible genotype.
    log_priors : ndarray, float, shape(n_genotypes, )
        VCF ordered log (natural) prior of each possible genotype.

    Returns
    -------
    posteriors : ndarray, float, shape(n_genotypes, )
        VCF ordered posterior probability of each possible genotype.
    """
    return normalise_log_probs(log_likelihoods + log_priors)


@njit(cache=True)
def log_evidence(log_likelihoods, log_priors):
    """Log of the marginal likelihood summed over all genotypes."""
    return sum_log_probs(log_likelihoods + log_priors)


@njit(cache=True)
def expected_haplotype_counts(posteriors, ploidy, n_haplotypes):
    """Calculate posterior expected copy number of every haplotype.

    Parameters
    ----------
    posteriors : ndarray, float, shape(n_genotypes, )
        VCF ordered posterior probabilities.
    ploidy : int
        Ploidy of organism.
    n_haplotypes : int
        Total number of possible haplotypes at this locus.

    Returns
    -------
    counts : ndarray, float, shape (n_haplotypes, )
        Posterior expected number of copies of each haplotype
        (summing to ploidy).
    """
    n_genotypes = len(posteriors)
    counts = np.zeros(n_haplotypes, dtype=np.float64)
    genotype = np.zeros(ploidy, np.int64)
    for i in range(n_genotypes):
        p = posteriors[i]
        for j in range(ploidy):
            counts[genotype[j]] += p
        increment_genotype(genotype)
    return counts


@njit(cache=True)
def haplotype_posteriors(posteriors, ploidy, n_haplotypes):
    """Calculate posterior probability of each haplotype occurring
    at any dosage.

    Parameters
    ----------
    posteriors : ndarray, float, shape(n_genotypes, )
        VCF ordered posterior probabilities.
    ploidy : int
        Ploidy of organism.
    n_haplotypes : int
        Total number of possible haplotypes at this locus.

    Returns
    -------
    occurrence : ndarray, float, shape (n_haplotypes, )
        Posterior probability of each haplotype occurring.
    """
    n_genotypes = len(posteriors)
    occur = np.zeros(n_haplotypes, dtype=np.float64)
    genotype = np.zeros(ploidy, np.int64)
    for i in range(n_genotypes):
        p = posteriors[i]
        for j in range(ploidy):
            a = genotype[j]
            if j == 0:
                occur[a] += p
            elif a != genotype[j - 1]:
                # alleles are sorted ascending
                occur[a] += p
        increment_genotype(genotype)
    return occur


def posterior_mode(posteriors, ploidy):
    """Posterior mode genotype.

    Parameters
    ----------
    posteriors : ndarray, float, shape(n_genotypes, )
        VCF ordered posterior probabilities.
    ploidy : int
        Ploidy of organism.

    Returns
    -------
    mode_alleles : ndarray, int, shape (ploidy, )
        Alleles of the mode genotype.
    probability : float
        Posterior probability of the mode genotype.
    """
    idx = np.argmax(posteriors)
    return index_as_genotype_alleles(idx, ploidy), posteriors[idx]
