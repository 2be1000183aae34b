"""
Tests for the field and curve-cycle layer.

Covers:
- FR arithmetic and sqrt_mod (p ≡ 3 mod 4 and Tonelli–Shanks paths)
- BN254 / Grumpkin generators, group order, negation
- CurveCycle validation
- Pippenger MSM against naive double-and-add
- hash_to_curve determinism
"""

import pytest

from ivc.curves import BN254, GRUMPKIN, CURVES, DEFAULT_CYCLE, CurveCycle
from ivc.field import FQ, FR, CURVE_ORDER, FIELD_MODULUS, fr_vector, sqrt_mod, to_fr


# ─────────────────────────────────────────────────────────────────────
# Field
# ─────────────────────────────────────────────────────────────────────

class TestField:

    def test_fr_modulus(self):
        assert FR.field_modulus == CURVE_ORDER

    def test_fr_wraps_negative(self):
        assert to_fr(-1) == FR(CURVE_ORDER - 1)

    def test_fr_vector(self):
        assert fr_vector([1, 2]) == (FR(1), FR(2))

    @pytest.mark.parametrize("p", [FIELD_MODULUS, CURVE_ORDER])
    def test_sqrt_of_square(self, p):
        for x in (2, 3, 12345678901234567890, p - 5):
            a = x * x % p
            root = sqrt_mod(a, p)
            assert root is not None
            assert root * root % p == a

    def test_sqrt_non_residue(self):
        # -1 은 p ≡ 3 (mod 4) 에서 이차비잉여
        assert FIELD_MODULUS % 4 == 3
        assert sqrt_mod(FIELD_MODULUS - 1, FIELD_MODULUS) is None

    def test_sqrt_zero(self):
        assert sqrt_mod(0, CURVE_ORDER) == 0


# ─────────────────────────────────────────────────────────────────────
# Curves
# ─────────────────────────────────────────────────────────────────────

class TestCurves:

    @pytest.mark.parametrize("curve", [BN254, GRUMPKIN])
    def test_generator_on_curve(self, curve):
        assert curve.is_on_curve(curve.g)

    @pytest.mark.parametrize("curve", [BN254, GRUMPKIN])
    def test_order_minus_one_is_negation(self, curve):
        """(n - 1)·G = -G: 군의 위수가 scalar_modulus 임을 확인."""
        g = curve.g
        assert curve.mul(g, curve.scalar_modulus - 1) == curve.neg(g)

    @pytest.mark.parametrize("curve", [BN254, GRUMPKIN])
    def test_add_inverse_is_identity(self, curve):
        g = curve.g
        assert curve.add(g, curve.neg(g)) is None

    @pytest.mark.parametrize("curve", [BN254, GRUMPKIN])
    def test_identity_rules(self, curve):
        g = curve.g
        assert curve.add(None, g) == g
        assert curve.add(g, None) == g
        assert curve.mul(g, 0) is None
        assert curve.mul(None, 5) is None

    def test_double_via_add(self):
        g = BN254.g
        assert BN254.add(g, g) == BN254.mul(g, 2)

    def test_point_rejects_off_curve(self):
        with pytest.raises(ValueError):
            BN254.point(1, 3)

    def test_to_ints(self):
        assert BN254.to_ints(BN254.g) == (1, 2)
        assert BN254.to_ints(None) is None

    def test_registry(self):
        assert CURVES["bn254"] is BN254
        assert CURVES["grumpkin"] is GRUMPKIN


class TestCurveCycle:

    def test_default_cycle(self):
        assert DEFAULT_CYCLE.primary is BN254
        assert DEFAULT_CYCLE.secondary is GRUMPKIN
        assert DEFAULT_CYCLE.name == "bn254/grumpkin"

    def test_fields_swap(self):
        assert BN254.scalar_modulus == GRUMPKIN.base_modulus
        assert BN254.base_modulus == GRUMPKIN.scalar_modulus

    def test_field_classes(self):
        assert BN254.scalar_field is FR and BN254.base_field is FQ
        assert GRUMPKIN.scalar_field is FQ and GRUMPKIN.base_field is FR
        assert isinstance(GRUMPKIN.g[0], FR)

    def test_b3(self):
        assert BN254.b3 == 9
        assert GRUMPKIN.b3 == (-51) % CURVE_ORDER

    def test_rejects_non_cycle(self):
        with pytest.raises(ValueError):
            CurveCycle(BN254, BN254)

    def test_reversed_pair_is_cycle(self):
        cycle = CurveCycle(GRUMPKIN, BN254)
        assert cycle.primary is GRUMPKIN


# ─────────────────────────────────────────────────────────────────────
# MSM / hash-to-curve
# ─────────────────────────────────────────────────────────────────────

def _naive_msm(curve, points, scalars):
    acc = None
    for p, s in zip(points, scalars):
        acc = curve.add(acc, curve.mul(p, s))
    return acc


class TestMSM:

    @pytest.mark.parametrize("curve", [BN254, GRUMPKIN])
    def test_pippenger_matches_naive(self, curve):
        points = [curve.hash_to_curve("msm", i) for i in range(12)]
        scalars = [(i * 0x9E3779B97F4A7C15 + 7) ** 3 for i in range(12)]
        scalars[3] = 0
        points[5] = None
        assert curve.msm(points, scalars) == _naive_msm(curve, points, scalars)

    def test_small_msm(self):
        g = BN254.g
        assert BN254.msm([g, g], [2, 3]) == BN254.mul(g, 5)

    def test_empty_and_zero(self):
        g = BN254.g
        assert BN254.msm([], []) is None
        assert BN254.msm([g, g], [0, 0]) is None

    def test_cancelling_scalars(self):
        points = [BN254.hash_to_curve("cancel", i) for i in range(10)]
        scalars = [1] * 10
        scalars[0] = BN254.scalar_modulus - 1
        points[1] = points[0]
        # -P0 + P0 + Σ 나머지
        rest = _naive_msm(BN254, points[2:], scalars[2:])
        assert BN254.msm(points, scalars) == rest

    def test_fr_scalars(self):
        g = BN254.g
        assert BN254.msm([g], [FR(-1)]) == BN254.neg(g)


class TestHashToCurve:

    @pytest.mark.parametrize("curve", [BN254, GRUMPKIN])
    def test_deterministic_and_on_curve(self, curve):
        p1 = curve.hash_to_curve("label", 3)
        p2 = curve.hash_to_curve("label", 3)
        assert p1 == p2
        assert curve.is_on_curve(p1)

    def test_distinct_indices(self):
        assert BN254.hash_to_curve("label", 0) != BN254.hash_to_curve("label", 1)

    def test_distinct_labels(self):
        assert BN254.hash_to_curve("a", 0) != BN254.hash_to_curve("b", 0)
