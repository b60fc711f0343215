import warnings
import numpy as np
from dataclasses import dataclass

from haplolik.classes import Genotype
from haplolik.prior import (
    HaplotypeFrequencies,
    init_haplotype_frequencies,
    init_haplotype_frequencies_from_counts,
    update_haplotype_frequencies,
)
from haplolik import exact

__all__ = [
    "ConvergenceWarning",
    "HaplotypeFrequencyEM",
    "HaplotypeFrequencyEMResult",
]


class ConvergenceWarning(UserWarning):
    pass


@dataclass
class HaplotypeFrequencyEM(object):
    """Estimation of population haplotype frequencies by
    expectation-maximisation over all possible genotypes.

    Attributes
    ----------
    ploidy : int
        Ploidy of all samples at the locus.
    max_iterations : int, optional
        Maximum number of EM iterations (default = 100).
    epsilon : float, optional
        Convergence is reached when no haplotype frequency changes
        by more than this value in a single iteration (default = 1e-3).
    use_prior_counts : bool, optional
        If True, prior counts are added to the expected haplotype
        counts of each maximisation step (default = True).

    """

    ploidy: int
    max_iterations: int = 100
    epsilon: float = 1e-3
    use_prior_counts: bool = True

    def __post_init__(self):
        if self.ploidy < 1:
            raise ValueError("Ploidy must be a positive integer.")
        if self.max_iterations < 1:
            raise ValueError("Maximum iterations must be a positive integer.")
        if self.epsilon < 0:
            raise ValueError("Epsilon must be non-negative.")

    def fit(self, likelihoods, haplotypes, samples=None, prior_counts=None):
        """Fit haplotype frequencies to the reads of a set of samples.

        Parameters
        ----------
        likelihoods : HaplotypeLikelihoodCache
            Per-read log-likelihoods of each haplotype for each sample.
        haplotypes : sequence
            Unique haplotypes at the locus.
        samples : list, optional
            Samples to include (defaults to all samples in the cache).
        prior_counts : dict, optional
            Prior pseudo-counts of each haplotype used to initialise
            frequencies (defaults to uniform frequencies).

        Returns
        -------
        result : HaplotypeFrequencyEMResult
            Estimated frequencies and posterior distributions.

        Notes
        -----
        The likelihood cache is primed with each sample in turn and is
        left un-primed on return.

        """
        haplotypes = tuple(haplotypes)
        if prior_counts is None:
            frequencies = init_haplotype_frequencies(haplotypes)
            pseudo_counts = np.zeros(len(haplotypes))
        else:
            frequencies = init_haplotype_frequencies_from_counts(
                {h: prior_counts[h] for h in haplotypes}
            )
            pseudo_counts = np.array([prior_counts[h] for h in haplotypes], float)
        if not self.use_prior_counts:
            pseudo_counts[:] = 0
        if samples is None:
            samples = likelihoods.samples()
        samples = list(samples)

        # genotype likelihoods are constant among iterations
        sample_llks = {}
        try:
            for sample in samples:
                likelihoods.prime(sample)
                sample_llks[sample] = exact.genotype_log_likelihoods(
                    likelihoods.as_array(haplotypes), self.ploidy
                )
        finally:
            likelihoods.unprime()

        n_haplotypes = len(haplotypes)
        converged = False
        iterations = 0
        while iterations < self.max_iterations:
            iterations += 1
            lpriors = exact.genotype_log_priors(self.ploidy, frequencies.frequencies)
            counts = pseudo_counts.copy()
            for sample in samples:
                posteriors = exact.genotype_posteriors(sample_llks[sample], lpriors)
                counts += exact.expected_haplotype_counts(
                    posteriors, self.ploidy, n_haplotypes
                )
            previous = frequencies.frequencies.copy()
            update_haplotype_frequencies(frequencies, counts)
            delta = np.max(np.abs(frequencies.frequencies - previous))
            if delta <= self.epsilon:
                converged = True
                break

        if not converged:
            warnings.warn(
                "Haplotype frequencies did not converge within {} iterations.".format(
                    self.max_iterations
                ),
                ConvergenceWarning,
            )

        # final posteriors with the estimated frequencies
        lpriors = exact.genotype_log_priors(self.ploidy, frequencies.frequencies)
        genotype_probs = {}
        haplotype_probs = {}
        evidence = {}
        for sample in samples:
            llks = sample_llks[sample]
            posteriors = exact.genotype_posteriors(llks, lpriors)
            genotype_probs[sample] = posteriors
            haplotype_probs[sample] = exact.haplotype_posteriors(
                posteriors, self.ploidy, n_haplotypes
            )
            evidence[sample] = exact.log_evidence(llks, lpriors)

        return HaplotypeFrequencyEMResult(
            ploidy=self.ploidy,
            haplotypes=haplotypes,
            frequencies=frequencies,
            genotype_posteriors=genotype_probs,
            haplotype_posteriors=haplotype_probs,
            log_evidence=evidence,
            iterations=iterations,
            converged=converged,
        )


@dataclass
class HaplotypeFrequencyEMResult(object):
    """Result of fitting haplotype frequencies.

    Attributes
    ----------
    ploidy : int
        Ploidy of all samples.
    haplotypes : tuple
        Haplotypes in the order used to index genotypes.
    frequencies : HaplotypeFrequencies
        Estimated haplotype frequencies.
    genotype_posteriors : dict
        Mapping of sample to the VCF ordered posterior probability of
        each possible genotype.
    haplotype_posteriors : dict
        Mapping of sample to the posterior probability of each haplotype
        occurring at any dosage.
    log_evidence : dict
        Mapping of sample to its log marginal likelihood.
    iterations : int
        Number of EM iterations performed.
    converged : bool
        True if the frequencies converged.

    """

    ploidy: int
    haplotypes: tuple
    frequencies: HaplotypeFrequencies
    genotype_posteriors: dict
    haplotype_posteriors: dict
    log_evidence: dict
    iterations: int
    converged: bool

    def mode(self, sample):
        """Posterior mode genotype of a sample.

        Returns
        -------
        genotype : Genotype
            The genotype with the highest posterior probability.
        probability : float
            The posterior probability of the mode genotype.

        """
        alleles, prob = exact.posterior_mode(
            self.genotype_posteriors[sample], self.ploidy
        )
        return Genotype.from_alleles(alleles, self.haplotypes), prob
