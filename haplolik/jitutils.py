import numpy as np
import math
import numba


@numba.njit(cache=True)
def add_log_prob(x, y):
    """Sum of two probabilities in log space.

    Parameters
    ----------
    x, y : float
        Log-transformed probabilities.

    Returns
    -------
    z : float
        The log-transformed sum of the un-transformed `x` and `y`.

    """
    if x == y == -np.inf:
        return -np.inf
    if x > y:
        return x + np.log1p(np.exp(y - x))
    else:
        return y + np.log1p(np.exp(x - y))


@numba.njit(cache=True)
def sum_log_probs(array):
    """Sum of values in log space.

    Parameters
    ----------
    array : ndarray, float, shape (n_values, )
        Log-transformed values.

    Returns
    -------
    z : float
        The log-transformed sum of the un-transformed values.

    Notes
    -----
    Uses the maximum value as a pivot so that the result is
    not affected by the order of values.

    """
    n = len(array)
    if n == 0:
        return -np.inf
    pivot = array[0]
    for i in range(1, n):
        if array[i] > pivot:
            pivot = array[i]
    if pivot == -np.inf:
        return -np.inf
    if pivot == np.inf:
        return np.inf
    total = 0.0
    for i in range(n):
        total += np.exp(array[i] - pivot)
    return pivot + np.log(total)


@numba.njit(cache=True)
def normalise_log_probs(llks):
    """Returns normalised probabilities of
    an array of log-transformed probabilities.

    Parameters
    ----------
    llks : ndarray, float, shape (n_values, )
        Log-transformed likelihoods.

    Returns
    -------
    conditionals : ndarray, float, shape (n_values, )
        Normalised conditional probabilities.

    """
    # calculated denominator in log space
    log_denominator = sum_log_probs(llks)

    # calculate conditional probabilities
    n = len(llks)
    normalised = np.empty(n)
    for opt in range(n):
        normalised[opt] = np.exp(llks[opt] - log_denominator)
    return normalised


def _ln_integers(n):
    array = np.empty(n, np.float64)
    array[0] = -np.inf
    array[1:] = np.log(np.arange(1, n))
    return array


# ln(0) ... ln(10)
LN_INTEGERS = _ln_integers(11)
LN_INTEGERS.flags.writeable = False


@numba.njit(cache=True)
def ln_integer(n):
    """Natural log of a non-negative integer.

    Small values are read from a pre-computed table.
    """
    if n < len(LN_INTEGERS):
        return LN_INTEGERS[n]
    return np.log(n)


@numba.njit(cache=True)
def log_multinomial_coefficient(dosage):
    """Natural log of the multinomial coefficient of a genotype dosage.

    Parameters
    ----------
    dosage : ndarray, int
        1D vector of counts of each unique haplotype in a genotype.

    Returns
    -------
    coefficient : float
        Log of `ploidy! / prod(dosage!)`.

    Notes
    -----
    A genotype is an unsorted multi-set of haplotypes hence rearranging the
    order of haplotypes in a (heterozygous) genotype can result in equivalent
    permutations.
    Zero values in the dosage are ignored.

    """
    ploidy = 0
    ln_denom = 0.0
    for i in range(len(dosage)):
        d = dosage[i]
        assert d >= 0
        ploidy += d
        ln_denom += math.lgamma(d + 1)
    return math.lgamma(ploidy + 1) - ln_denom


@numba.njit(cache=True)
def increment_genotype(genotype):
    """Increment a genotype of allele numbers to the next genotype
    in VCF sort order.

    Parameters
    ----------
    genotype : ndarray, int, shape (ploidy,)
        Array of allele numbers in ascending order.

    Notes
    -----
    Mutates genotype array in place.
    An empty (ploidy 0) genotype has no successor and is left unchanged.
    """
    ploidy = len(genotype)
    if ploidy == 0:
        return
    # first position followed by a different allele
    i = 0
    while i < ploidy - 1 and genotype[i] == genotype[i + 1]:
        i += 1
    if i < ploidy - 1 and genotype[i] > genotype[i + 1]:
        raise ValueError("genotype alleles are not in ascending order")
    genotype[i] += 1
    genotype[0:i] = 0


@numba.njit(cache=True)
def allelic_dosage(genotype_alleles):
    """Return the dosage of genotype alleles encoded as integers.

    Parameters
    ----------
    genotype_alleles : ndarray, int, shape (ploidy, )
        Genotype alleles encoded as integers

    Returns
    -------
    dosage : ndarray, int, shape (ploidy, )
        Allelic dosage of genotype where dosage corresponds
        to the first instance of each allele.
    """
    ploidy = len(genotype_alleles)
    dosage = np.zeros(ploidy, dtype=np.int64)
    for i in range(ploidy):
        for j in range(i + 1):
            if genotype_alleles[j] == genotype_alleles[i]:
                dosage[j] += 1
                break
    return dosage
