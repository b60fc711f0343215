#!/usr/bin/env python3

import numpy as np

__all__ = ["HaplotypeLikelihoodCache"]


class HaplotypeLikelihoodCache(object):
    """Per-read log-likelihoods of haplotypes for a set of samples.

    Each sample maps haplotypes to a vector of natural-log likelihoods
    with one value per read. Read indices are aligned across all
    haplotypes of a sample.

    The cache must be primed with a sample before likelihoods can be
    retrieved.

    """

    def __init__(self):
        self._data = {}
        self._primed = None

    def insert(self, sample, haplotype, log_likelihoods):
        """Add the per-read log-likelihoods of a haplotype.

        Parameters
        ----------
        sample : str
            Sample identifier.
        haplotype : Haplotype
            Haplotype the reads are evaluated against.
        log_likelihoods : array_like, float, shape (n_reads, )
            Natural-log likelihood of each read given the haplotype.

        Raises
        ------
        ValueError
            If the number of reads differs from vectors already
            stored for this sample.

        """
        array = np.array(log_likelihoods, dtype=np.float64)
        if array.ndim != 1:
            raise ValueError("Log-likelihoods must be a one-dimensional vector.")
        array.flags.writeable = False
        haplotypes = self._data.setdefault(sample, {})
        if haplotypes:
            n_reads = len(next(iter(haplotypes.values())))
            if len(array) != n_reads:
                raise ValueError(
                    "Expected {} log-likelihoods for sample '{}' but found {}.".format(
                        n_reads, sample, len(array)
                    )
                )
        haplotypes[haplotype] = array

    def prime(self, sample):
        """Select the sample from which likelihoods are retrieved."""
        if sample not in self._data:
            raise KeyError(sample)
        self._primed = sample

    def unprime(self):
        self._primed = None

    def is_primed(self):
        return self._primed is not None

    @property
    def sample(self):
        """The currently primed sample (or None)."""
        return self._primed

    def __getitem__(self, haplotype):
        assert self.is_primed(), "Likelihood cache has not been primed"
        return self._data[self._primed][haplotype]

    def get(self, haplotype):
        return self[haplotype]

    def __contains__(self, haplotype):
        assert self.is_primed(), "Likelihood cache has not been primed"
        return haplotype in self._data[self._primed]

    def samples(self):
        return list(self._data)

    def haplotypes(self, sample=None):
        """Haplotypes of a sample in insertion order.

        Defaults to the primed sample.
        """
        if sample is None:
            assert self.is_primed(), "Likelihood cache has not been primed"
            sample = self._primed
        return list(self._data[sample])

    def n_reads(self, sample=None):
        if sample is None:
            assert self.is_primed(), "Likelihood cache has not been primed"
            sample = self._primed
        haplotypes = self._data[sample]
        if not haplotypes:
            return 0
        return len(next(iter(haplotypes.values())))

    def as_array(self, haplotypes):
        """Log-likelihoods of the primed sample as a matrix.

        Parameters
        ----------
        haplotypes : sequence
            Haplotypes defining the row order of the matrix.

        Returns
        -------
        log_likelihoods : ndarray, float, shape (n_haplotypes, n_reads)
            Per-read log-likelihoods of each haplotype.

        """
        assert self.is_primed(), "Likelihood cache has not been primed"
        n_reads = self.n_reads()
        array = np.empty((len(haplotypes), n_reads), dtype=np.float64)
        for i, haplotype in enumerate(haplotypes):
            array[i] = self[haplotype]
        return array
