"""Tests for the Gaussian message distribution."""

import numpy as np
import pytest
from scipy import stats

from factorflow.core.errors import ImproperDistributionError, UnsupportedCapabilityError
from factorflow.distributions.continuous import Gaussian, GaussianEstimator


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestGaussianConstruction:
    def test_mean_and_variance(self):
        g = Gaussian.from_mean_and_variance(1.0, 2.0)
        assert g.get_mean() == pytest.approx(1.0)
        assert g.get_variance() == pytest.approx(2.0)
        assert g.precision == pytest.approx(0.5)

    def test_mean_and_precision(self):
        g = Gaussian.from_mean_and_precision(3.0, 4.0)
        assert g.mean_times_precision == pytest.approx(12.0)
        assert g.get_variance() == pytest.approx(0.25)

    def test_zero_variance_is_point_mass(self):
        g = Gaussian.from_mean_and_variance(2.5, 0.0)
        assert g.is_point_mass
        assert g.point == 2.5
        assert g.get_variance() == 0.0

    def test_infinite_variance_is_uniform(self):
        g = Gaussian.from_mean_and_variance(0.0, np.inf)
        assert g.is_uniform()
        assert not g.is_proper()

    def test_nan_rejected(self):
        with pytest.raises(ImproperDistributionError):
            Gaussian(np.nan, 1.0)

    def test_uniform_has_no_mean(self):
        with pytest.raises(ImproperDistributionError):
            Gaussian.uniform().get_mean()

    def test_repr(self):
        assert "point_mass" in repr(Gaussian.point_mass(1.0))
        assert "uniform" in repr(Gaussian.uniform())
        assert "variance" in repr(Gaussian.from_mean_and_variance(0, 1))
        assert "precision" in repr(Gaussian(0.0, -1.0))


# ---------------------------------------------------------------------------
# Product and copy
# ---------------------------------------------------------------------------


class TestGaussianProduct:
    def test_product_adds_natural_parameters(self):
        result = Gaussian.uniform()
        result.set_to_product(
            Gaussian.from_mean_and_variance(0.0, 1.0),
            Gaussian.from_mean_and_variance(2.0, 1.0),
        )
        assert result.get_mean() == pytest.approx(1.0)
        assert result.get_variance() == pytest.approx(0.5)

    def test_product_commutes(self):
        a = Gaussian.from_mean_and_variance(-1.0, 3.0)
        b = Gaussian.from_mean_and_variance(4.0, 0.5)
        ab, ba = Gaussian.uniform(), Gaussian.uniform()
        ab.set_to_product(a, b)
        ba.set_to_product(b, a)
        assert ab.mean_times_precision == pytest.approx(ba.mean_times_precision)
        assert ab.precision == pytest.approx(ba.precision)

    def test_point_mass_absorbs_other_operand(self):
        result = Gaussian.uniform()
        result.set_to_product(Gaussian.point_mass(5.0), Gaussian.from_mean_and_variance(0, 1))
        assert result.is_point_mass
        assert result.point == 5.0
        result.set_to_product(Gaussian.from_mean_and_variance(0, 1), Gaussian.point_mass(-2.0))
        assert result.point == -2.0

    def test_distinct_point_masses_raise(self):
        with pytest.raises(ImproperDistributionError):
            Gaussian.uniform().set_to_product(Gaussian.point_mass(1.0), Gaussian.point_mass(2.0))

    def test_product_may_alias_operand(self):
        a = Gaussian.from_mean_and_variance(0.0, 1.0)
        a.set_to_product(a, Gaussian.from_mean_and_variance(2.0, 1.0))
        assert a.get_mean() == pytest.approx(1.0)

    def test_set_to_number_is_point_mass(self):
        g = Gaussian.uniform()
        g.set_to(3.5)
        assert g.is_point_mass
        assert g.point == 3.5

    def test_set_to_unsupported(self):
        with pytest.raises(UnsupportedCapabilityError):
            Gaussian.uniform().set_to("three")

    def test_clone_is_independent(self):
        g = Gaussian.from_mean_and_variance(1.0, 1.0)
        c = g.clone()
        c.point = 9.0
        assert g.get_mean() == pytest.approx(1.0)


# ---------------------------------------------------------------------------
# Densities and evidence integrals
# ---------------------------------------------------------------------------


class TestGaussianDensities:
    def test_log_prob_matches_scipy(self):
        g = Gaussian.from_mean_and_variance(1.0, 4.0)
        assert g.log_prob(0.3) == pytest.approx(stats.norm.logpdf(0.3, loc=1.0, scale=2.0))

    def test_point_mass_log_prob(self):
        g = Gaussian.point_mass(5.0)
        assert g.log_prob(5.0) == np.inf
        assert g.log_prob(4.0) == -np.inf

    def test_uniform_log_prob_is_zero(self):
        assert Gaussian.uniform().log_prob(123.0) == 0.0

    def test_negative_precision_has_no_density(self):
        with pytest.raises(ImproperDistributionError):
            Gaussian(0.0, -1.0).log_prob(0.0)

    def test_log_average_of(self):
        a = Gaussian.from_mean_and_variance(0.0, 1.0)
        b = Gaussian.from_mean_and_variance(1.0, 2.0)
        expected = stats.norm.logpdf(0.0, loc=1.0, scale=np.sqrt(3.0))
        assert a.log_average_of(b) == pytest.approx(expected)
        assert b.log_average_of(a) == pytest.approx(expected)

    def test_log_average_of_uniform_is_zero(self):
        a = Gaussian.from_mean_and_variance(2.0, 1.0)
        assert a.log_average_of(Gaussian.uniform()) == pytest.approx(0.0)
        assert Gaussian.uniform().log_average_of(a) == pytest.approx(0.0)

    def test_log_average_of_point_mass(self):
        a = Gaussian.from_mean_and_variance(0.0, 1.0)
        assert a.log_average_of(Gaussian.point_mass(1.0)) == pytest.approx(
            stats.norm.logpdf(1.0)
        )

    def test_log_average_of_disjoint_points_raises(self):
        with pytest.raises(ImproperDistributionError):
            Gaussian.point_mass(0.0).log_average_of(Gaussian.point_mass(1.0))

    def test_average_log_self_is_negative_entropy(self):
        g = Gaussian.from_mean_and_variance(3.0, 2.0)
        entropy = 0.5 * np.log(2 * np.pi * np.e * 2.0)
        assert -g.average_log(g) == pytest.approx(entropy)

    def test_average_log_closed_form(self):
        p = Gaussian.from_mean_and_variance(1.0, 0.5)
        q = Gaussian.from_mean_and_variance(0.0, 2.0)
        expected = -0.5 * np.log(2 * np.pi * 2.0) - (1.0 + 0.5) / (2 * 2.0)
        assert p.average_log(q) == pytest.approx(expected)

    def test_average_log_of_point_mass_density_raises(self):
        with pytest.raises(ImproperDistributionError):
            Gaussian.from_mean_and_variance(0, 1).average_log(Gaussian.point_mass(0.0))

    def test_average_log_improper_raises(self):
        with pytest.raises(ImproperDistributionError):
            Gaussian(0.0, -1.0).average_log(Gaussian.from_mean_and_variance(0, 1))


# ---------------------------------------------------------------------------
# Sampling and estimation
# ---------------------------------------------------------------------------


class TestGaussianSampling:
    def test_sample_moments(self):
        rng = np.random.default_rng(42)
        g = Gaussian.from_mean_and_variance(2.0, 0.25)
        samples = np.array([g.sample(rng) for _ in range(20_000)])
        assert samples.mean() == pytest.approx(2.0, abs=0.02)
        assert samples.var() == pytest.approx(0.25, rel=0.05)

    def test_point_mass_sample(self):
        assert Gaussian.point_mass(5.0).sample() == 5.0

    def test_uniform_cannot_be_sampled(self):
        with pytest.raises(ImproperDistributionError):
            Gaussian.uniform().sample()


class TestGaussianEstimator:
    def test_mixture_moments(self):
        est = GaussianEstimator()
        est.add(Gaussian.from_mean_and_variance(0.0, 1.0))
        est.add(Gaussian.from_mean_and_variance(2.0, 1.0))
        result = est.get_distribution()
        assert result.get_mean() == pytest.approx(1.0)
        assert result.get_variance() == pytest.approx(2.0)

    def test_samples(self):
        est = GaussianEstimator()
        for value in (1.0, 3.0):
            est.add_sample(value)
        result = est.get_distribution(Gaussian.uniform())
        assert result.get_mean() == pytest.approx(2.0)
        assert result.get_variance() == pytest.approx(1.0)

    def test_identical_points_give_point_mass(self):
        est = GaussianEstimator()
        est.add(Gaussian.point_mass(4.0))
        est.add_sample(4.0)
        assert est.get_distribution().is_point_mass

    def test_empty_raises(self):
        with pytest.raises(ImproperDistributionError):
            GaussianEstimator().get_distribution()
