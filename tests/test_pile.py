"""Tests for the pile volume and weight estimate."""

import pytest

from photomeasure.core.pile import DEFAULT_DENSITY, depth_from_measurement, estimate_pile


class TestEstimatePile:
    def test_volume_and_weight(self):
        est = estimate_pile(12.0, 9.0, 3.0)
        assert est.cubic_yards == pytest.approx(12.0)
        assert est.tons == pytest.approx(12.0 * DEFAULT_DENSITY)
        assert est.describe() == "12.00 yd³, estimated weight 18.00 tons"

    def test_custom_density(self):
        assert estimate_pile(3.0, 3.0, 3.0, density=2.0).tons == pytest.approx(2.0)

    def test_zero_dimension(self):
        assert estimate_pile(10.0, 0.0, 4.0).tons == 0.0

    @pytest.mark.parametrize("dims", [(-1.0, 2.0, 3.0), (1.0, -2.0, 3.0), (1.0, 2.0, -3.0)])
    def test_negative_dimension(self, dims):
        with pytest.raises(ValueError):
            estimate_pile(*dims)

    def test_bad_density(self):
        with pytest.raises(ValueError):
            estimate_pile(1.0, 1.0, 1.0, density=0.0)


def test_depth_from_measurement():
    assert depth_from_measurement(42.0) == pytest.approx(3.5)
