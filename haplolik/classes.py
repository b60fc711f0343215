#!/usr/bin/env python3

import numpy as np
from dataclasses import dataclass
from collections import Counter

__all__ = [
    "GenomicRegion",
    "Haplotype",
    "Genotype",
]


@dataclass(frozen=True, order=True)
class GenomicRegion:
    """Half open interval of a contig."""

    contig: str
    start: int
    stop: int

    def __post_init__(self):
        if self.stop < self.start:
            raise ValueError("Region stop must not be less than its start.")

    def __len__(self):
        return self.stop - self.start

    def __str__(self):
        return "{}:{}-{}".format(self.contig, self.start, self.stop)


@dataclass(frozen=True, order=True)
class Haplotype:
    """A sequence of alleles spanning a genomic region.

    Attributes
    ----------
    region : GenomicRegion
        Region of the reference genome spanned by the haplotype.
    sequence : str
        Nucleotide sequence of the haplotype.

    Notes
    -----
    Haplotypes are immutable values and are hashed and compared
    on their region and sequence.

    """

    region: GenomicRegion
    sequence: str

    def __len__(self):
        return len(self.sequence)

    def __str__(self):
        return "{} {}".format(self.region, self.sequence)


@dataclass(frozen=True, init=False)
class Genotype:
    """An unordered multi-set of haplotypes of fixed ploidy.

    Attributes
    ----------
    haplotypes : tuple
        Haplotypes of the genotype in sorted order.

    Notes
    -----
    Haplotypes are stored in sorted order so that permutations of
    the same multi-set produce equal (and equally hashed) genotypes.

    """

    haplotypes: tuple

    def __init__(self, haplotypes):
        object.__setattr__(self, "haplotypes", tuple(sorted(haplotypes)))

    def __len__(self):
        return len(self.haplotypes)

    def __getitem__(self, index):
        return self.haplotypes[index]

    def __iter__(self):
        return iter(self.haplotypes)

    def __contains__(self, haplotype):
        return haplotype in self.haplotypes

    @property
    def ploidy(self):
        return len(self.haplotypes)

    def is_homozygous(self):
        """True if all haplotype copies are identical.

        A genotype with a ploidy of zero is not homozygous.
        """
        if self.ploidy == 0:
            return False
        first = self.haplotypes[0]
        return all(h == first for h in self.haplotypes)

    def zygosity(self):
        """Number of distinct haplotypes in the genotype."""
        return len(self.unique_haplotypes())

    def count(self, haplotype):
        """Number of copies of a haplotype in the genotype."""
        return self.haplotypes.count(haplotype)

    def unique_haplotypes(self):
        """Distinct haplotypes in sorted order."""
        return tuple(Counter(self.haplotypes))

    def dosage(self):
        """Distinct haplotypes and their multiplicities.

        Returns
        -------
        haplotypes : tuple
            Distinct haplotypes in sorted order.
        dosage : ndarray, int, shape (zygosity, )
            Number of copies of each distinct haplotype.
        """
        counts = Counter(self.haplotypes)
        haplotypes = tuple(counts)
        dosage = np.array([counts[h] for h in haplotypes], dtype=np.int64)
        return haplotypes, dosage

    def as_alleles(self, haplotypes):
        """Encode the genotype as integer alleles.

        Parameters
        ----------
        haplotypes : sequence
            Haplotypes to be indexed by the returned alleles.

        Returns
        -------
        alleles : ndarray, int, shape (ploidy, )
            Index of each haplotype copy in ascending order.

        Raises
        ------
        KeyError
            If a haplotype of the genotype is not among `haplotypes`.
        """
        labels = {h: i for i, h in enumerate(haplotypes)}
        alleles = np.array([labels[h] for h in self.haplotypes], dtype=np.int64)
        alleles.sort()
        return alleles

    @classmethod
    def from_alleles(cls, alleles, haplotypes):
        """Decode integer alleles indexing a sequence of haplotypes."""
        return cls(haplotypes[a] for a in alleles)

    def __str__(self):
        return "{" + ", ".join(h.sequence for h in self.haplotypes) + "}"
