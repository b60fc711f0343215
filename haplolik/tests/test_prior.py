import numpy as np
import pytest
from scipy.stats import multinomial

from haplolik.classes import GenomicRegion, Haplotype, Genotype
from haplolik.prior import (
    HaplotypeFrequencies,
    init_haplotype_frequencies,
    init_haplotype_frequencies_from_counts,
    update_haplotype_frequencies,
    compute_haplotype_prior_counts,
    log_hardy_weinberg,
    log_hardy_weinberg_alleles,
    HaplotypePriorModel,
    MutationPriorModel,
)
from haplolik.exact import genotype_log_priors, count_unique_genotypes
from haplolik.jitutils import increment_genotype
from haplolik.testing import simulate_haplotypes


@pytest.mark.parametrize("k", [1, 2, 3, 7, 100])
def test_init_haplotype_frequencies(k):
    _, haplotypes = simulate_haplotypes(k)
    freqs = init_haplotype_frequencies(haplotypes)
    assert len(freqs) == k
    for h in haplotypes:
        assert freqs[h] == 1 / k
    assert abs(freqs.frequencies.sum() - 1) < 1e-9
    assert freqs.haplotypes == tuple(haplotypes)


def test_init_haplotype_frequencies__empty():
    with pytest.raises(ValueError):
        init_haplotype_frequencies([])


def test_init_haplotype_frequencies_from_counts():
    _, (a, b, c) = simulate_haplotypes(3)
    freqs = init_haplotype_frequencies_from_counts({a: 2.0, b: 6.0, c: 0.0})
    assert freqs[a] == 0.25
    assert freqs[b] == 0.75
    assert freqs[c] == 0.0
    assert freqs.as_dict() == {a: 0.25, b: 0.75, c: 0.0}


@pytest.mark.parametrize(
    "counts",
    [
        pytest.param({}, id="empty"),
        pytest.param([0.0, 0.0], id="zeros"),
        pytest.param([1.0, -1.0], id="negative"),
    ],
)
def test_init_haplotype_frequencies_from_counts__invalid(counts):
    _, haplotypes = simulate_haplotypes(2)
    if not isinstance(counts, dict):
        counts = dict(zip(haplotypes, counts))
    with pytest.raises(ValueError):
        init_haplotype_frequencies_from_counts(counts)


def test_haplotype_frequencies__validation():
    _, (a, b) = simulate_haplotypes(2)
    with pytest.raises(ValueError):
        HaplotypeFrequencies((a, b), [1.0])
    with pytest.raises(ValueError):
        HaplotypeFrequencies((a, a), [0.5, 0.5])
    with pytest.raises(ValueError, match="sum to 1"):
        HaplotypeFrequencies((a, b), [0.4, 0.9])
    with pytest.raises(ValueError, match="within"):
        HaplotypeFrequencies((a, b), [-0.5, 1.5])
    with pytest.raises(ValueError):
        HaplotypeFrequencies((a, b), [np.nan, 1.0])
    # rounding error is tolerated
    freqs = HaplotypeFrequencies((a, b), [0.1 + 0.2, 0.7])
    np.testing.assert_almost_equal(freqs.frequencies.sum(), 1.0)


def test_haplotype_frequencies__lookup():
    _, (a, b, c) = simulate_haplotypes(3)
    freqs = HaplotypeFrequencies((a, b), [0.4, 0.6])
    assert a in freqs
    assert c not in freqs
    assert freqs.index(b) == 1
    assert list(freqs) == [a, b]
    with pytest.raises(KeyError):
        freqs[c]


def test_haplotype_frequencies__copy():
    _, (a, b) = simulate_haplotypes(2)
    freqs = HaplotypeFrequencies((a, b), [0.4, 0.6])
    snapshot = freqs.copy()
    update_haplotype_frequencies(freqs, [3.0, 1.0])
    assert snapshot[a] == 0.4
    assert freqs[a] == 0.75


def test_update_haplotype_frequencies():
    _, haplotypes = simulate_haplotypes(4)
    freqs = init_haplotype_frequencies(haplotypes)
    result = update_haplotype_frequencies(freqs, np.array([1.0, 2.0, 3.0, 4.0]))
    assert result is freqs
    np.testing.assert_array_almost_equal(freqs.frequencies, [0.1, 0.2, 0.3, 0.4])


def test_update_haplotype_frequencies__invalid():
    _, haplotypes = simulate_haplotypes(3)
    freqs = init_haplotype_frequencies(haplotypes)
    with pytest.raises(ValueError):
        update_haplotype_frequencies(freqs, [1.0, 2.0])
    with pytest.raises(ValueError):
        update_haplotype_frequencies(freqs, [0.0, 0.0, 0.0])
    # frequencies unchanged by failed updates
    np.testing.assert_array_equal(freqs.frequencies, np.full(3, 1 / 3))


@pytest.mark.parametrize("ploidy", [1, 2, 3, 4, 5, 6])
@pytest.mark.parametrize("k", [1, 2, 5])
def test_log_hardy_weinberg__uniform_homozygous(ploidy, k):
    _, haplotypes = simulate_haplotypes(k)
    freqs = init_haplotype_frequencies(haplotypes)
    genotype = Genotype([haplotypes[-1]] * ploidy)
    expect = ploidy * np.log(1 / k)
    np.testing.assert_almost_equal(log_hardy_weinberg(genotype, freqs), expect)


def test_log_hardy_weinberg__triploid_heterozygous():
    _, haplotypes = simulate_haplotypes(3)
    freqs = init_haplotype_frequencies(haplotypes)
    genotype = Genotype(haplotypes)
    expect = np.log(6) - 3 * np.log(3)
    np.testing.assert_almost_equal(log_hardy_weinberg(genotype, freqs), expect)


def test_log_hardy_weinberg__diploid():
    _, (a, b) = simulate_haplotypes(2)
    freqs = HaplotypeFrequencies((a, b), [0.2, 0.8])
    np.testing.assert_almost_equal(
        log_hardy_weinberg(Genotype([a]), freqs), np.log(0.2)
    )
    np.testing.assert_almost_equal(
        log_hardy_weinberg(Genotype([a, a]), freqs), 2 * np.log(0.2)
    )
    np.testing.assert_almost_equal(
        log_hardy_weinberg(Genotype([b, a]), freqs),
        np.log(0.2) + np.log(0.8) + np.log(2),
    )


def test_log_hardy_weinberg__ploidy_zero():
    _, haplotypes = simulate_haplotypes(2)
    freqs = init_haplotype_frequencies(haplotypes)
    assert log_hardy_weinberg(Genotype([]), freqs) == 0.0


@pytest.mark.parametrize("ploidy", [3, 4, 6, 8])
def test_log_hardy_weinberg__multinomial(ploidy):
    np.random.seed(ploidy)
    _, haplotypes = simulate_haplotypes(4)
    frequencies = np.random.dirichlet(np.ones(4))
    freqs = HaplotypeFrequencies(haplotypes, frequencies)
    for _ in range(10):
        alleles = np.random.randint(0, 4, size=ploidy)
        genotype = Genotype.from_alleles(alleles, haplotypes)
        counts = np.bincount(alleles, minlength=4)
        expect = multinomial.logpmf(counts, n=ploidy, p=frequencies)
        np.testing.assert_almost_equal(
            log_hardy_weinberg(genotype, freqs), expect, decimal=10
        )


@pytest.mark.parametrize("ploidy", [1, 2, 3, 4, 5])
@pytest.mark.parametrize(
    "frequencies",
    [
        [1.0],
        [0.5, 0.5],
        [1 / 3, 1 / 3, 1 / 3],
        [0.25, 0.5, 0.125, 0.125],
        [0.0, 0.7, 0.05, 0.1, 0.14, 0.01],
    ],
)
def test_log_hardy_weinberg__sums_to_one(ploidy, frequencies):
    frequencies = np.array(frequencies)
    lpriors = genotype_log_priors(ploidy, frequencies)
    assert len(lpriors) == count_unique_genotypes(len(frequencies), ploidy)
    np.testing.assert_almost_equal(np.exp(lpriors).sum(), 1.0)


@pytest.mark.parametrize("ploidy", [1, 2, 3, 4])
def test_log_hardy_weinberg__expected_homozygosity(ploidy):
    # probability of a homozygous genotype is sum(f ** ploidy)
    frequencies = np.array([0.25, 0.5, 0.125, 0.125])
    n_genotypes = count_unique_genotypes(len(frequencies), ploidy)
    genotype = np.zeros(ploidy, np.int64)
    total = 0.0
    for _ in range(n_genotypes):
        if np.all(genotype == genotype[0]):
            total += np.exp(log_hardy_weinberg_alleles(genotype, frequencies))
        increment_genotype(genotype)
    np.testing.assert_almost_equal(total, (frequencies**ploidy).sum())


@pytest.mark.parametrize("ploidy", [1, 2, 3, 4])
def test_log_hardy_weinberg__zero_frequency(ploidy):
    _, (a, b) = simulate_haplotypes(2)
    freqs = HaplotypeFrequencies((a, b), [0.0, 1.0])
    genotype = Genotype([a] + [b] * (ploidy - 1))
    assert log_hardy_weinberg(genotype, freqs) == -np.inf
    assert log_hardy_weinberg(Genotype([b] * ploidy), freqs) == 0.0


def test_log_hardy_weinberg__missing_haplotype():
    _, (a, b, c) = simulate_haplotypes(3)
    freqs = init_haplotype_frequencies([a, b])
    with pytest.raises(KeyError):
        log_hardy_weinberg(Genotype([a, c]), freqs)


def test_haplotype_prior_model__abstract():
    _, (a,) = simulate_haplotypes(1)
    with pytest.raises(NotImplementedError):
        HaplotypePriorModel().evaluate(a, a)


@pytest.mark.parametrize(
    "sequence,n_snv,n_indel",
    [
        pytest.param("ACGTACGT", 0, 0, id="reference"),
        pytest.param("ACGTACGA", 1, 0, id="snv"),
        pytest.param("TCGTACGA", 2, 0, id="snvs"),
        pytest.param("ACGTACG", 0, 1, id="deletion"),
        pytest.param("ACGTACGTTT", 0, 2, id="insertion"),
        pytest.param("ACCTACGTT", 1, 1, id="mixed"),
    ],
)
def test_mutation_prior_model(sequence, n_snv, n_indel):
    region = GenomicRegion("chr2", 0, 8)
    reference = Haplotype(region, "ACGTACGT")
    haplotype = Haplotype(region, sequence)
    model = MutationPriorModel(snp_heterozygosity=0.01, indel_heterozygosity=0.001)
    assert model.count_mutations(haplotype, reference) == (n_snv, n_indel)
    expect = 0.01**n_snv * 0.001**n_indel
    np.testing.assert_almost_equal(model.evaluate(haplotype, reference), expect)


def test_mutation_prior_model__invalid():
    with pytest.raises(ValueError):
        MutationPriorModel(snp_heterozygosity=0.0)
    with pytest.raises(ValueError):
        MutationPriorModel(indel_heterozygosity=1.5)
    reference = Haplotype(GenomicRegion("chr2", 0, 4), "ACGT")
    haplotype = Haplotype(GenomicRegion("chr2", 1, 5), "ACGT")
    with pytest.raises(ValueError):
        MutationPriorModel().evaluate(haplotype, reference)


def test_compute_haplotype_prior_counts__empty():
    reference, _ = simulate_haplotypes(1)
    counts = compute_haplotype_prior_counts([], reference, MutationPriorModel())
    assert counts == {}


def test_compute_haplotype_prior_counts():
    reference, haplotypes = simulate_haplotypes(8)
    model = MutationPriorModel()
    counts = compute_haplotype_prior_counts(haplotypes, reference, model)
    assert list(counts) == haplotypes
    values = np.array(list(counts.values()))
    assert np.all(values >= 0)
    np.testing.assert_almost_equal(values.sum(), 100)
    np.testing.assert_almost_equal((values / 100).sum(), 1)
    # the reference is the most likely haplotype
    assert counts[reference] == values.max()
    # proportional to scores
    scores = np.array([model.evaluate(h, reference) for h in haplotypes])
    np.testing.assert_array_almost_equal(values, 100 * scores / scores.sum())


def test_compute_haplotype_prior_counts__scale():
    reference, haplotypes = simulate_haplotypes(4)
    counts = compute_haplotype_prior_counts(
        haplotypes, reference, MutationPriorModel(), scale=1.0
    )
    np.testing.assert_almost_equal(sum(counts.values()), 1.0)


def test_compute_haplotype_prior_counts__initialise_frequencies():
    reference, haplotypes = simulate_haplotypes(4)
    counts = compute_haplotype_prior_counts(
        haplotypes, reference, MutationPriorModel()
    )
    freqs = init_haplotype_frequencies_from_counts(counts)
    for h in haplotypes:
        np.testing.assert_almost_equal(freqs[h], counts[h] / 100)


class NegativePriorModel(HaplotypePriorModel):
    def evaluate(self, haplotype, reference):
        return -1.0


def test_compute_haplotype_prior_counts__negative_scores():
    reference, haplotypes = simulate_haplotypes(2)
    with pytest.raises(ValueError):
        compute_haplotype_prior_counts(haplotypes, reference, NegativePriorModel())
