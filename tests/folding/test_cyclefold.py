"""
Tests for the CycleFold circuit and the elliptic-curve gadgets it is built from.

Covers:
- limb encoding of challenges and BN254 points
- constraint systems over Fq
- alloc_point / point_add / scalar_mul / normalize against native curve arithmetic
- strict bit decomposition
- CycleFold circuit: honest folds, identities, wrong results, off-curve inputs
"""

import pytest

from ivc import cyclefold
from ivc.constraint_system import ConstraintSystem
from ivc.curves import BN254, GRUMPKIN
from ivc.cyclefold import (
    LIMB_BITS,
    CycleFoldInputs,
    limbs,
    num_challenge_limbs,
    num_io,
    point_limbs,
    truncate_challenge,
)
from ivc.errors import SynthesisError
from ivc.field import CURVE_ORDER, FIELD_MODULUS, FQ, FR
from ivc.gadgets import (
    alloc_bits_strict,
    alloc_point,
    identity_point,
    mul,
    normalize,
    point_add,
    recompose,
    scalar_mul,
)

CHALLENGE_BITS = 8


# ─────────────────────────────────────────────────────────────────────
# 인코딩
# ─────────────────────────────────────────────────────────────────────

class TestEncoding:

    def test_limbs_recompose(self):
        value = FIELD_MODULUS - 12345
        parts = limbs(value)
        assert len(parts) == 5
        assert all(0 <= v < 2 ** LIMB_BITS for v in parts)
        assert sum(v << (LIMB_BITS * k) for k, v in enumerate(parts)) == value

    def test_identity_point_limbs(self):
        assert point_limbs(None) == [0] * 10

    def test_point_limbs(self):
        assert point_limbs(BN254.g) == [1, 0, 0, 0, 0, 2, 0, 0, 0, 0]

    @pytest.mark.parametrize("bits, expected", [(8, 1), (51, 1), (52, 2), (128, 3)])
    def test_challenge_limbs(self, bits, expected):
        assert num_challenge_limbs(bits) == expected
        assert num_io(bits) == expected + 60

    def test_truncate_challenge(self):
        assert truncate_challenge(FR(0x1ff), 8) == 0xff
        assert truncate_challenge(FR(CURVE_ORDER - 1), 128) < 2 ** 128


# ─────────────────────────────────────────────────────────────────────
# Fq 위의 제약 시스템
# ─────────────────────────────────────────────────────────────────────

class TestFqConstraintSystem:

    def test_values_reduce_mod_q(self):
        cs = ConstraintSystem(FQ)
        x = cs.alloc(CURVE_ORDER + 1)
        assert cs.value(x) == FQ(CURVE_ORDER + 1)
        assert cs.value(x) != FQ(1)

    def test_shape_field(self):
        cs = ConstraintSystem(FQ)
        a = cs.alloc(FQ(3))
        out = mul(cs, a, a)
        assert cs.value(out) == FQ(9)
        assert cs.is_satisfied()
        assert cs.to_shape().field is FQ

    def test_foreign_field_value_moves_by_integer(self):
        cs = ConstraintSystem(FQ)
        x = cs.alloc(FR(7))
        assert cs.value(x) == FQ(7)


# ─────────────────────────────────────────────────────────────────────
# 타원곡선 가젯
# ─────────────────────────────────────────────────────────────────────

def _alloc_affine(cs, curve, p):
    if p is None:
        x, y = cs.alloc(0), cs.alloc(0)
    else:
        x, y = cs.alloc(p[0]), cs.alloc(p[1])
    return alloc_point(cs, x, y, curve.b)


def _to_native(cs, p):
    x, y = normalize(cs, p)
    x, y = int(cs.value(x)), int(cs.value(y))
    return None if (x, y) == (0, 0) else (x, y)


def _ints(curve, p):
    return curve.to_ints(p)


@pytest.mark.parametrize("curve", [BN254, GRUMPKIN], ids=lambda c: c.name)
class TestPointGadgets:

    def test_add_distinct(self, curve):
        cs = ConstraintSystem(curve.base_field)
        P, Q = curve.mul(curve.g, 5), curve.mul(curve.g, 9)
        out = point_add(cs, _alloc_affine(cs, curve, P), _alloc_affine(cs, curve, Q), curve.b3)
        assert _to_native(cs, out) == _ints(curve, curve.add(P, Q))
        assert cs.is_satisfied()

    def test_add_doubling_and_identity(self, curve):
        cs = ConstraintSystem(curve.base_field)
        P = curve.mul(curve.g, 3)
        p = _alloc_affine(cs, curve, P)
        o = _alloc_affine(cs, curve, None)
        assert _to_native(cs, point_add(cs, p, p, curve.b3)) == _ints(curve, curve.mul(P, 2))
        assert _to_native(cs, point_add(cs, p, o, curve.b3)) == _ints(curve, P)
        assert _to_native(cs, point_add(cs, o, o, curve.b3)) is None
        assert cs.is_satisfied()

    def test_add_inverse_is_identity(self, curve):
        cs = ConstraintSystem(curve.base_field)
        P = curve.mul(curve.g, 4)
        out = point_add(cs, _alloc_affine(cs, curve, P), _alloc_affine(cs, curve, curve.neg(P)),
                        curve.b3)
        assert _to_native(cs, out) is None
        assert cs.is_satisfied()

    @pytest.mark.parametrize("k", [0, 1, 2, 0xb5, 0xff])
    def test_scalar_mul(self, curve, k):
        cs = ConstraintSystem(curve.base_field)
        P = curve.mul(curve.g, 11)
        bits = [cs.alloc((k >> i) & 1) for i in range(8)]
        out = scalar_mul(cs, bits, _alloc_affine(cs, curve, P), curve.b3)
        assert _to_native(cs, out) == _ints(curve, curve.mul(P, k))
        assert cs.is_satisfied()

    def test_off_curve_point_unsatisfied(self, curve):
        cs = ConstraintSystem(curve.base_field)
        x, y = curve.g
        _alloc_affine(cs, curve, (x, y + 1))
        assert not cs.is_satisfied()

    def test_identity_with_nonzero_x_unsatisfied(self, curve):
        cs = ConstraintSystem(curve.base_field)
        alloc_point(cs, cs.alloc(5), cs.alloc(0), curve.b)
        assert not cs.is_satisfied()

    def test_identity_constant(self, curve):
        cs = ConstraintSystem(curve.base_field)
        assert _to_native(cs, identity_point()) is None
        assert cs.is_satisfied()


class TestStrictBits:

    def test_top_value(self):
        cs = ConstraintSystem()
        x = cs.alloc(CURVE_ORDER - 1)
        bits = alloc_bits_strict(cs, x)
        assert len(bits) == (CURVE_ORDER - 1).bit_length()
        assert cs.value(recompose(bits)) == FR(CURVE_ORDER - 1)
        assert cs.is_satisfied()

    def test_small_value(self):
        cs = ConstraintSystem()
        bits = alloc_bits_strict(cs, cs.alloc(6))
        assert [int(cs.value(b)) for b in bits[:4]] == [0, 1, 1, 0]
        assert cs.is_satisfied()

    def test_field_sized(self):
        cs = ConstraintSystem(FQ)
        bits = alloc_bits_strict(cs, cs.alloc(FIELD_MODULUS - 1))
        assert len(bits) == (FIELD_MODULUS - 1).bit_length()
        assert cs.is_satisfied()


# ─────────────────────────────────────────────────────────────────────
# CycleFold 회로
# ─────────────────────────────────────────────────────────────────────

def _honest_inputs(r=77):
    g = BN254.g
    U_W, u_W = BN254.mul(g, 5), BN254.mul(g, 7)
    U_E, T = BN254.mul(g, 13), BN254.mul(g, 11)
    return CycleFoldInputs(
        r, U_W, u_W, BN254.add(U_W, BN254.mul(u_W, r)),
        U_E, T, BN254.add(U_E, BN254.mul(T, r)),
    )


@pytest.fixture(scope="module")
def default_shape():
    return cyclefold.synthesize(CHALLENGE_BITS, CycleFoldInputs.default()).to_shape()


class TestCycleFoldCircuit:

    def test_honest_fold(self, default_shape):
        inputs = _honest_inputs()
        cs = cyclefold.synthesize(CHALLENGE_BITS, inputs)
        assert cs.is_satisfied()
        assert cs.field is FQ
        assert cs.inputs == [FQ(v) for v in inputs.io(CHALLENGE_BITS)]
        assert cs.to_shape() == default_shape

    def test_default_inputs_satisfied(self):
        assert cyclefold.synthesize(CHALLENGE_BITS, CycleFoldInputs.default()).is_satisfied()

    def test_zero_challenge(self):
        inputs = _honest_inputs(r=0)
        assert inputs.U_next_W == inputs.U_W
        assert cyclefold.synthesize(CHALLENGE_BITS, inputs).is_satisfied()

    def test_identity_running_commitments(self):
        """첫 폴딩: U 의 커밋먼트가 무한원점이다."""
        base = _honest_inputs()
        r = base.r
        inputs = CycleFoldInputs(r, None, base.u_W, BN254.mul(base.u_W, r),
                                 None, base.comm_T, BN254.mul(base.comm_T, r))
        assert cyclefold.synthesize(CHALLENGE_BITS, inputs).is_satisfied()

    def test_wrong_witness_fold(self):
        inputs = _honest_inputs()
        bad = CycleFoldInputs(inputs.r, inputs.U_W, inputs.u_W, BN254.add(inputs.U_next_W, BN254.g),
                              inputs.U_E, inputs.comm_T, inputs.U_next_E)
        assert not cyclefold.synthesize(CHALLENGE_BITS, bad).is_satisfied()

    def test_wrong_error_fold(self):
        inputs = _honest_inputs()
        bad = CycleFoldInputs(inputs.r, inputs.U_W, inputs.u_W, inputs.U_next_W,
                              inputs.U_E, inputs.comm_T, None)
        assert not cyclefold.synthesize(CHALLENGE_BITS, bad).is_satisfied()

    def test_off_curve_input(self):
        inputs = _honest_inputs()
        x, y = inputs.u_W
        bad = CycleFoldInputs(inputs.r, inputs.U_W, (x, y + FQ(1)), inputs.U_next_W,
                              inputs.U_E, inputs.comm_T, inputs.U_next_E)
        assert not cyclefold.synthesize(CHALLENGE_BITS, bad).is_satisfied()

    def test_challenge_too_wide(self):
        with pytest.raises(SynthesisError):
            cyclefold.synthesize(CHALLENGE_BITS, _honest_inputs(r=1 << CHALLENGE_BITS))

    def test_grows_with_challenge_bits(self, default_shape):
        wider = cyclefold.synthesize(2 * CHALLENGE_BITS, CycleFoldInputs.default()).to_shape()
        assert wider.num_constraints > default_shape.num_constraints
