#!/usr/bin/env python3

import numpy as np
import numba
from dataclasses import dataclass

from haplolik.jitutils import (
    ln_integer,
    allelic_dosage,
    log_multinomial_coefficient,
)

__all__ = [
    "PRIOR_COUNT_SCALE",
    "HaplotypeFrequencies",
    "init_haplotype_frequencies",
    "init_haplotype_frequencies_from_counts",
    "update_haplotype_frequencies",
    "compute_haplotype_prior_counts",
    "log_hardy_weinberg",
    "log_hardy_weinberg_alleles",
    "HaplotypePriorModel",
    "MutationPriorModel",
]


PRIOR_COUNT_SCALE = 100.0


@dataclass
class HaplotypeFrequencies(object):
    """Population frequencies of a set of haplotypes.

    Attributes
    ----------
    haplotypes : tuple
        Haplotypes in a fixed order.
    frequencies : ndarray, float, shape (n_haplotypes, )
        Frequency of each haplotype (summing to 1).

    Notes
    -----
    Instances are owned by a single caller and updated in place
    during re-estimation. Use `copy` to retain a snapshot.

    """

    haplotypes: tuple
    frequencies: np.ndarray

    def __post_init__(self):
        self.haplotypes = tuple(self.haplotypes)
        self.frequencies = np.asarray(self.frequencies, dtype=np.float64)
        if len(self.haplotypes) != len(self.frequencies):
            raise ValueError("Expected one frequency per haplotype.")
        # written so that nan values also fail
        if not np.all((self.frequencies >= 0) & (self.frequencies <= 1)):
            raise ValueError("Haplotype frequencies must be within [0, 1].")
        n = len(self.frequencies)
        if not abs(self.frequencies.sum() - 1) <= 1e-9 * max(n, 1):
            raise ValueError("Haplotype frequencies must sum to 1.")
        self._labels = {h: i for i, h in enumerate(self.haplotypes)}
        if len(self._labels) != len(self.haplotypes):
            raise ValueError("Haplotypes must be unique.")

    def __len__(self):
        return len(self.haplotypes)

    def __contains__(self, haplotype):
        return haplotype in self._labels

    def __getitem__(self, haplotype):
        return self.frequencies[self._labels[haplotype]]

    def __iter__(self):
        return iter(self.haplotypes)

    def index(self, haplotype):
        """Position of a haplotype in the frequencies array."""
        return self._labels[haplotype]

    def items(self):
        return zip(self.haplotypes, self.frequencies)

    def as_dict(self):
        return dict(self.items())

    def copy(self):
        return type(self)(self.haplotypes, self.frequencies.copy())


def init_haplotype_frequencies(haplotypes):
    """Uniform frequencies over a set of haplotypes.

    Parameters
    ----------
    haplotypes : sequence
        Unique haplotypes.

    Returns
    -------
    frequencies : HaplotypeFrequencies
        Each haplotype with a frequency of `1 / n_haplotypes`.

    Raises
    ------
    ValueError
        If no haplotypes are given.

    """
    haplotypes = tuple(haplotypes)
    n = len(haplotypes)
    if n == 0:
        raise ValueError("Cannot initialise frequencies of zero haplotypes.")
    return HaplotypeFrequencies(haplotypes, np.full(n, 1 / n))


def init_haplotype_frequencies_from_counts(counts):
    """Frequencies proportional to haplotype prior counts.

    Parameters
    ----------
    counts : dict
        Mapping of haplotypes to non-negative (pseudo) counts.

    Returns
    -------
    frequencies : HaplotypeFrequencies
        Each haplotype with a frequency of its count divided by
        the sum of counts.

    Raises
    ------
    ValueError
        If the counts do not sum to a positive value.

    """
    haplotypes = tuple(counts)
    values = np.array([counts[h] for h in haplotypes], dtype=np.float64)
    return HaplotypeFrequencies(haplotypes, _normalise_counts(values))


def _normalise_counts(counts):
    if np.any(counts < 0):
        raise ValueError("Haplotype counts must be non-negative.")
    total = counts.sum()
    if not total > 0:
        raise ValueError("Haplotype counts must sum to a positive value.")
    return counts / total


def update_haplotype_frequencies(frequencies, counts):
    """Re-estimate haplotype frequencies from expected counts.

    This is the maximisation step of an EM algorithm.

    Parameters
    ----------
    frequencies : HaplotypeFrequencies
        Frequencies to update.
    counts : ndarray, float, shape (n_haplotypes, )
        Expected count of each haplotype in the order of
        `frequencies.haplotypes`.

    Returns
    -------
    frequencies : HaplotypeFrequencies
        The input frequencies.

    Notes
    -----
    The frequencies are updated in place.

    """
    counts = np.asarray(counts, dtype=np.float64)
    if counts.shape != frequencies.frequencies.shape:
        raise ValueError("Expected one count per haplotype.")
    frequencies.frequencies[:] = _normalise_counts(counts)
    return frequencies


def compute_haplotype_prior_counts(
    haplotypes, reference, prior_model, scale=PRIOR_COUNT_SCALE
):
    """Haplotype pseudo-counts based on divergence from a reference.

    Parameters
    ----------
    haplotypes : sequence
        Unique haplotypes.
    reference : Haplotype
        Reference haplotype spanning the same region.
    prior_model : HaplotypePriorModel
        Scores each haplotype against the reference.
    scale : float
        Total of the returned pseudo-counts (default = 100).

    Returns
    -------
    counts : dict
        Mapping of each haplotype to its normalised score
        multiplied by `scale`.

    """
    counts = {}
    if len(haplotypes) == 0:
        return counts
    scores = np.array([prior_model.evaluate(h, reference) for h in haplotypes])
    if np.any(scores < 0):
        raise ValueError("Haplotype prior scores must be non-negative.")
    norm = scores.sum()
    if not norm > 0:
        raise ValueError("Haplotype prior scores must sum to a positive value.")
    for h, score in zip(haplotypes, scores):
        counts[h] = scale * score / norm
    return counts


@numba.njit(cache=True)
def log_hardy_weinberg_alleles(genotype_alleles, frequencies):
    """Log probability of a genotype under Hardy-Weinberg equilibrium.

    Parameters
    ----------
    genotype_alleles : ndarray, int, shape (ploidy, )
        Integer encoded alleles of the genotype.
    frequencies : ndarray, float, shape (n_alleles, )
        Population frequency of each allele.

    Returns
    -------
    lprior : float
        Log-probability of the genotype.

    """
    ploidy = len(genotype_alleles)
    if ploidy == 0:
        return 0.0
    if ploidy == 1:
        return np.log(frequencies[genotype_alleles[0]])
    if ploidy == 2:
        a = genotype_alleles[0]
        b = genotype_alleles[1]
        if a == b:
            return 2 * np.log(frequencies[a])
        return np.log(frequencies[a]) + np.log(frequencies[b]) + ln_integer(2)
    dosage = allelic_dosage(genotype_alleles)
    lprob = log_multinomial_coefficient(dosage)
    for i in range(ploidy):
        d = dosage[i]
        if d > 0:
            lprob += d * np.log(frequencies[genotype_alleles[i]])
    return lprob


def log_hardy_weinberg(genotype, frequencies):
    """Log probability of a genotype under Hardy-Weinberg equilibrium.

    Parameters
    ----------
    genotype : Genotype
        Genotype of haplotypes.
    frequencies : HaplotypeFrequencies
        Population frequencies of haplotypes including all those
        within the genotype.

    Returns
    -------
    lprior : float
        Log-probability of the genotype.

    Raises
    ------
    KeyError
        If a haplotype of the genotype has no frequency.

    """
    alleles = np.array([frequencies.index(h) for h in genotype], dtype=np.int64)
    return log_hardy_weinberg_alleles(alleles, frequencies.frequencies)


@dataclass
class HaplotypePriorModel(object):
    """Abstract base class for scoring haplotypes relative to a reference."""

    def evaluate(self, haplotype, reference):
        """Non-negative prior score of a haplotype.

        Raises
        ------
        NotImplementedError

        """
        raise NotImplementedError()


@dataclass
class MutationPriorModel(HaplotypePriorModel):
    """Prior score of a haplotype based on the number of mutations
    separating it from the reference.

    Attributes
    ----------
    snp_heterozygosity : float
        Prior probability of a single nucleotide difference
        (default = 0.001).
    indel_heterozygosity : float
        Prior probability of a single inserted or deleted base
        (default = 0.0001).

    Notes
    -----
    Single nucleotide differences are counted over the shared length
    of the two sequences and each base of length difference is counted
    as one indel. This is not an alignment.

    """

    snp_heterozygosity: float = 0.001
    indel_heterozygosity: float = 0.0001

    def __post_init__(self):
        for value in (self.snp_heterozygosity, self.indel_heterozygosity):
            if not 0 < value <= 1:
                raise ValueError("Heterozygosity must be in the interval (0, 1].")

    def count_mutations(self, haplotype, reference):
        """Count SNVs and indel bases separating a haplotype from the reference.

        Returns
        -------
        n_snv : int
        n_indel : int

        """
        if haplotype.region != reference.region:
            raise ValueError(
                "Haplotype region {} does not match reference region {}.".format(
                    haplotype.region, reference.region
                )
            )
        x, y = haplotype.sequence, reference.sequence
        n_snv = sum(a != b for a, b in zip(x, y))
        n_indel = abs(len(x) - len(y))
        return n_snv, n_indel

    def evaluate(self, haplotype, reference):
        n_snv, n_indel = self.count_mutations(haplotype, reference)
        return self.snp_heterozygosity**n_snv * self.indel_heterozygosity**n_indel
