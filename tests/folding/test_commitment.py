"""
Tests for SRS generation and commitment schemes.

Covers:
- SRS determinism and generator
- KZG / Pedersen key generation (sizes, curve restriction, size limits)
- commit: zero vector, overflow, additive homomorphism
- Grumpkin commitments with Fq scalars, fixed-base multiplication
"""

import pytest

from ivc import commitment
from ivc.commitment import (
    KZGCommitment,
    PedersenCommitment,
    commit,
    coordinates,
    get_scheme,
)
from ivc.curves import BN254, GRUMPKIN
from ivc.errors import CommitmentError
from ivc.field import CURVE_ORDER, FQ, FR
from ivc.srs import SRS, _fixed_base_mul, _fixed_base_table


# ─────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────

@pytest.fixture(scope="module")
def kzg_key():
    return KZGCommitment.setup(6, "kzg-test")


@pytest.fixture(scope="module")
def pedersen_key():
    return PedersenCommitment.setup(6, "pedersen-test", BN254)


@pytest.fixture(scope="module")
def secondary_key():
    return PedersenCommitment.setup(4, "secondary-test", GRUMPKIN)


# ─────────────────────────────────────────────────────────────────────
# SRS
# ─────────────────────────────────────────────────────────────────────

class TestSRS:
    """SRS.generate 테스트."""

    def test_generate_length(self):
        srs = SRS.generate(max_degree=4, seed=42)
        assert len(srs.g1_powers) == 5
        assert srs.max_degree == 4

    def test_first_power_is_generator(self):
        srs = SRS.generate(max_degree=2, seed=42)
        assert srs.g1_powers[0] == BN254.g

    def test_deterministic_with_same_seed(self):
        assert SRS.generate(3, seed=99).g1_powers == SRS.generate(3, seed=99).g1_powers

    def test_different_seeds(self):
        assert SRS.generate(3, seed=1).g1_powers != SRS.generate(3, seed=2).g1_powers


# ─────────────────────────────────────────────────────────────────────
# Key generation
# ─────────────────────────────────────────────────────────────────────

class TestKeygen:

    def test_kzg_key(self, kzg_key):
        assert kzg_key.scheme == "kzg"
        assert kzg_key.curve is BN254
        assert kzg_key.size == 6

    def test_pedersen_key(self, pedersen_key, secondary_key):
        assert pedersen_key.size == 6
        assert secondary_key.curve is GRUMPKIN
        assert all(GRUMPKIN.is_on_curve(g) for g in secondary_key.generators)

    def test_pedersen_deterministic(self, pedersen_key):
        assert PedersenCommitment.setup(6, "pedersen-test", BN254) == pedersen_key

    def test_kzg_rejects_grumpkin(self):
        with pytest.raises(CommitmentError):
            KZGCommitment.setup(4, "x", GRUMPKIN)

    @pytest.mark.parametrize("size", [0, -3])
    def test_rejects_non_positive_size(self, size):
        with pytest.raises(CommitmentError):
            PedersenCommitment.setup(size, "x")

    def test_rejects_oversized_key(self, monkeypatch):
        monkeypatch.setattr(commitment, "MAX_KEY_SIZE", 4)
        with pytest.raises(CommitmentError):
            PedersenCommitment.setup(5, "x")

    def test_scheme_registry(self):
        assert get_scheme("kzg") is KZGCommitment
        assert get_scheme("pedersen") is PedersenCommitment
        with pytest.raises(CommitmentError):
            get_scheme("ipa")


# ─────────────────────────────────────────────────────────────────────
# Commit
# ─────────────────────────────────────────────────────────────────────

class TestCommit:

    def test_zero_vector_is_identity(self, kzg_key):
        assert commit(kzg_key, [FR(0)] * 6) is None
        assert commit(kzg_key, []) is None

    def test_single_entry(self, kzg_key):
        assert commit(kzg_key, [FR(5)]) == BN254.mul(BN254.g, 5)

    def test_vector_too_long(self, kzg_key):
        with pytest.raises(CommitmentError):
            commit(kzg_key, [FR(1)] * 7)

    def test_deterministic(self, pedersen_key):
        v = [FR(1), FR(2), FR(3)]
        assert commit(pedersen_key, v) == commit(pedersen_key, v)

    def test_binding_to_position(self, pedersen_key):
        assert commit(pedersen_key, [FR(1), FR(0)]) != commit(pedersen_key, [FR(0), FR(1)])

    @pytest.mark.parametrize("key_name", ["kzg_key", "pedersen_key"])
    def test_homomorphism(self, key_name, request):
        """commit(a) + r·commit(b) == commit(a + r·b)"""
        key = request.getfixturevalue(key_name)
        a = [FR(1), FR(2), FR(3), FR(4)]
        b = [FR(7), FR(0), FR(11), FR(13)]
        r = FR(123456789)
        lhs = BN254.add(commit(key, a), BN254.mul(commit(key, b), r))
        rhs = commit(key, [x + r * y for x, y in zip(a, b)])
        assert lhs == rhs


# ─────────────────────────────────────────────────────────────────────
# Secondary curve / coordinates
# ─────────────────────────────────────────────────────────────────────

class TestSecondary:

    def test_coordinates(self):
        assert coordinates([None, BN254.g]) == [0, 0, 1, 2]

    def test_grumpkin_commit_uses_fq_scalars(self, secondary_key):
        g0 = secondary_key.generators[0]
        assert commit(secondary_key, [FQ(3)]) == GRUMPKIN.mul(g0, 3)

    def test_grumpkin_scalar_reduced_mod_q(self, secondary_key):
        g0 = secondary_key.generators[0]
        assert commit(secondary_key, [FQ.field_modulus + 5]) == GRUMPKIN.mul(g0, 5)

    def test_fixed_base_powers(self):
        """고정 기저 테이블로 계산한 τⁱ·G 가 일반 스칼라 곱과 같다."""
        table = _fixed_base_table(BN254, BN254.g)
        for k in (1, 2, 255, 256, 2**200 + 12345, CURVE_ORDER - 1):
            assert _fixed_base_mul(BN254, table, k) == BN254.mul(BN254.g, k)
