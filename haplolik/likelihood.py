#!/usr/bin/env python3

import numpy as np
import numba
from dataclasses import dataclass

from haplolik.jitutils import (
    add_log_prob,
    sum_log_probs,
    ln_integer,
    allelic_dosage,
)
from haplolik.cache import HaplotypeLikelihoodCache

__all__ = [
    "log_likelihood_homozygous",
    "log_likelihood_diploid",
    "log_likelihood_triploid",
    "log_likelihood_triploid_dosage",
    "log_likelihood_tetraploid",
    "log_likelihood_biallelic",
    "log_likelihood_polyploid",
    "log_likelihood_alleles",
    "GermlineLikelihoodModel",
]


@numba.njit(cache=True)
def _log_sum_exp_3(a, b, c):
    m = max(a, max(b, c))
    if m == -np.inf:
        return -np.inf
    return m + np.log(np.exp(a - m) + np.exp(b - m) + np.exp(c - m))


@numba.njit(cache=True)
def _log_sum_exp_4(a, b, c, d):
    m = max(max(a, b), max(c, d))
    if m == -np.inf:
        return -np.inf
    return m + np.log(np.exp(a - m) + np.exp(b - m) + np.exp(c - m) + np.exp(d - m))


@numba.njit(cache=True)
def log_likelihood_homozygous(llks):
    """Log likelihood of reads given a homozygous genotype.

    Parameters
    ----------
    llks : ndarray, float, shape (n_reads, )
        Per-read log-likelihoods of the haplotype.

    Returns
    -------
    llk : float
        Log-likelihood of the reads given any number of copies
        of the haplotype.

    Notes
    -----
    This also applies to haploid genotypes.
    """
    llk = 0.0
    for r in range(len(llks)):
        llk += llks[r]
    return llk


@numba.njit(cache=True)
def log_likelihood_diploid(llks_1, llks_2):
    """Log likelihood of reads given a heterozygous diploid genotype.

    Parameters
    ----------
    llks_1, llks_2 : ndarray, float, shape (n_reads, )
        Per-read log-likelihoods of each haplotype.

    Returns
    -------
    llk : float
        Log-likelihood of the reads given the genotype.
    """
    ln_ploidy = ln_integer(2)
    llk = 0.0
    for r in range(len(llks_1)):
        llk += add_log_prob(llks_1[r], llks_2[r]) - ln_ploidy
    return llk


@numba.njit(cache=True)
def log_likelihood_triploid(llks_1, llks_2, llks_3):
    """Log likelihood of reads given a triploid genotype of three
    distinct haplotypes.

    Parameters
    ----------
    llks_1, llks_2, llks_3 : ndarray, float, shape (n_reads, )
        Per-read log-likelihoods of each haplotype.

    Returns
    -------
    llk : float
        Log-likelihood of the reads given the genotype.
    """
    ln_ploidy = ln_integer(3)
    llk = 0.0
    for r in range(len(llks_1)):
        llk += _log_sum_exp_3(llks_1[r], llks_2[r], llks_3[r]) - ln_ploidy
    return llk


@numba.njit(cache=True)
def log_likelihood_triploid_dosage(llks_single, llks_double):
    """Log likelihood of reads given a triploid genotype with a single
    copy of one haplotype and two copies of another.

    Parameters
    ----------
    llks_single : ndarray, float, shape (n_reads, )
        Per-read log-likelihoods of the single copy haplotype.
    llks_double : ndarray, float, shape (n_reads, )
        Per-read log-likelihoods of the duplicated haplotype.

    Returns
    -------
    llk : float
        Log-likelihood of the reads given the genotype.
    """
    ln_two = ln_integer(2)
    ln_ploidy = ln_integer(3)
    llk = 0.0
    for r in range(len(llks_single)):
        llk += add_log_prob(llks_single[r], ln_two + llks_double[r]) - ln_ploidy
    return llk


@numba.njit(cache=True)
def log_likelihood_tetraploid(llks_1, llks_2, llks_3, llks_4):
    """Log likelihood of reads given a tetraploid genotype of four
    distinct haplotypes.

    Parameters
    ----------
    llks_1, llks_2, llks_3, llks_4 : ndarray, float, shape (n_reads, )
        Per-read log-likelihoods of each haplotype.

    Returns
    -------
    llk : float
        Log-likelihood of the reads given the genotype.
    """
    ln_ploidy = ln_integer(4)
    llk = 0.0
    for r in range(len(llks_1)):
        llk += (
            _log_sum_exp_4(llks_1[r], llks_2[r], llks_3[r], llks_4[r]) - ln_ploidy
        )
    return llk


@numba.njit(cache=True)
def log_likelihood_biallelic(llks_1, llks_2, dose_1, dose_2):
    """Log likelihood of reads given a genotype of two distinct
    haplotypes at any dosage.

    Parameters
    ----------
    llks_1, llks_2 : ndarray, float, shape (n_reads, )
        Per-read log-likelihoods of each haplotype.
    dose_1, dose_2 : int
        Number of copies of each haplotype.

    Returns
    -------
    llk : float
        Log-likelihood of the reads given the genotype.
    """
    ln_dose_1 = ln_integer(dose_1)
    ln_dose_2 = ln_integer(dose_2)
    ln_ploidy = ln_integer(dose_1 + dose_2)
    llk = 0.0
    for r in range(len(llks_1)):
        llk += add_log_prob(ln_dose_1 + llks_1[r], ln_dose_2 + llks_2[r]) - ln_ploidy
    return llk


@numba.njit(cache=True)
def log_likelihood_polyploid(llks, dosage):
    """Log likelihood of reads given a genotype of any ploidy.

    Parameters
    ----------
    llks : ndarray, float, shape (n_unique, n_reads)
        Per-read log-likelihoods of each unique haplotype.
    dosage : ndarray, int, shape (n_unique, )
        Number of copies of each unique haplotype.

    Returns
    -------
    llk : float
        Log-likelihood of the reads given the genotype.

    Notes
    -----
    Each read is assumed to be sampled from a haplotype copy chosen
    uniformly at random.
    This is the general case against which all other likelihood
    functions are defined.
    """
    n_unique, n_reads = llks.shape
    if n_unique == 0:
        return 0.0
    ploidy = 0
    ln_dosage = np.empty(n_unique)
    for h in range(n_unique):
        ploidy += dosage[h]
        ln_dosage[h] = ln_integer(dosage[h])
    ln_ploidy = ln_integer(ploidy)
    tmp = np.empty(n_unique)
    llk = 0.0
    for r in range(n_reads):
        for h in range(n_unique):
            tmp[h] = ln_dosage[h] + llks[h, r]
        llk += sum_log_probs(tmp) - ln_ploidy
    return llk


@numba.njit(cache=True)
def log_likelihood_alleles(log_likelihoods, genotype_alleles):
    """Log-likelihood function for genotype alleles indexing a
    set of haplotypes.

    Parameters
    ----------
    log_likelihoods : ndarray, float, shape (n_haplotypes, n_reads)
        Per-read log-likelihoods of each haplotype.
    genotype_alleles : ndarray, int, shape (ploidy, )
        Index of each haplotype in the genotype.

    Returns
    -------
    llk : float
        Log-likelihood.
    """
    ploidy = len(genotype_alleles)
    if ploidy == 0:
        return 0.0
    alleles = np.sort(genotype_alleles)
    dosage = allelic_dosage(alleles)
    idx = dosage > 0
    unique = alleles[idx]
    dosage = dosage[idx]
    zygosity = len(unique)
    if zygosity == 1:
        return log_likelihood_homozygous(log_likelihoods[unique[0]])
    if ploidy == 2:
        return log_likelihood_diploid(
            log_likelihoods[unique[0]], log_likelihoods[unique[1]]
        )
    if ploidy == 3:
        if zygosity == 3:
            return log_likelihood_triploid(
                log_likelihoods[unique[0]],
                log_likelihoods[unique[1]],
                log_likelihoods[unique[2]],
            )
        if dosage[0] == 1:
            return log_likelihood_triploid_dosage(
                log_likelihoods[unique[0]], log_likelihoods[unique[1]]
            )
        return log_likelihood_triploid_dosage(
            log_likelihoods[unique[1]], log_likelihoods[unique[0]]
        )
    if ploidy == 4 and zygosity == 4:
        return log_likelihood_tetraploid(
            log_likelihoods[unique[0]],
            log_likelihoods[unique[1]],
            log_likelihoods[unique[2]],
            log_likelihoods[unique[3]],
        )
    if zygosity == 2:
        return log_likelihood_biallelic(
            log_likelihoods[unique[0]],
            log_likelihoods[unique[1]],
            dosage[0],
            dosage[1],
        )
    return log_likelihood_polyploid(log_likelihoods[unique], dosage)


@dataclass
class GermlineLikelihoodModel(object):
    """Likelihood of a sample's reads given a germline genotype.

    Attributes
    ----------
    likelihoods : HaplotypeLikelihoodCache
        Per-read haplotype log-likelihoods primed with the sample
        of interest.

    Notes
    -----
    ln P(read | genotype) = ln sum_h (dose_h / ploidy) P(read | h)
    ln P(reads | genotype) = sum_read ln P(read | genotype)

    """

    likelihoods: HaplotypeLikelihoodCache

    def evaluate(self, genotype):
        """Natural log probability of the primed sample's reads
        given a genotype.

        Parameters
        ----------
        genotype : Genotype
            Genotype of haplotypes present in the likelihood cache.

        Returns
        -------
        llk : float
            Log-likelihood of the reads.

        """
        assert self.likelihoods.is_primed(), "Likelihood cache has not been primed"
        ploidy = genotype.ploidy
        if ploidy == 0:
            return 0.0
        haplotypes, dosage = genotype.dosage()
        zygosity = len(haplotypes)
        llks = [self.likelihoods[h] for h in haplotypes]
        if zygosity == 1:
            return log_likelihood_homozygous(llks[0])
        if ploidy == 2:
            return log_likelihood_diploid(llks[0], llks[1])
        if ploidy == 3:
            if zygosity == 3:
                return log_likelihood_triploid(llks[0], llks[1], llks[2])
            if dosage[0] == 1:
                return log_likelihood_triploid_dosage(llks[0], llks[1])
            return log_likelihood_triploid_dosage(llks[1], llks[0])
        if ploidy == 4 and zygosity == 4:
            return log_likelihood_tetraploid(llks[0], llks[1], llks[2], llks[3])
        if zygosity == 2:
            return log_likelihood_biallelic(llks[0], llks[1], dosage[0], dosage[1])
        return log_likelihood_polyploid(np.array(llks), dosage)

    def evaluate_general(self, genotype):
        """Log-likelihood of the primed sample's reads computed without
        any ploidy or zygosity specific shortcuts.
        """
        assert self.likelihoods.is_primed(), "Likelihood cache has not been primed"
        if genotype.ploidy == 0:
            return 0.0
        haplotypes, dosage = genotype.dosage()
        llks = np.array([self.likelihoods[h] for h in haplotypes])
        return log_likelihood_polyploid(llks, dosage)
