"""
Tests for ivc_serializers: JSON round trips and byte stability.
"""

import pytest

from ivc.curves import BN254
from ivc.field import FQ, FR
from ivc.proof import IVCProof

from ivc_serializers import (
    deserialize_fr,
    deserialize_point,
    deserialize_proof,
    deserialize_public_params,
    dumps,
    dumps_proof,
    dumps_public_params,
    fr_short,
    loads_proof,
    loads_public_params,
    point_short,
    serialize_fr,
    serialize_point,
    serialize_proof,
    serialize_public_params,
)


class TestPrimitives:

    def test_fr(self):
        assert serialize_fr(FR(35)) == "35"
        assert deserialize_fr("35") == FR(35)

    def test_point(self):
        g = BN254.g
        assert serialize_point(g) == ["1", "2"]
        assert deserialize_point(["1", "2"]) == g
        assert serialize_point(None) is None
        assert deserialize_point(None) is None

    def test_point_off_curve(self):
        with pytest.raises(ValueError):
            deserialize_point(["1", "3"])

    def test_dumps_is_canonical(self):
        assert dumps({"b": 1, "a": [2, 3]}) == b'{"a":[2,3],"b":1}'

    def test_short_forms(self):
        assert fr_short(FR(35)) == "35"
        assert fr_short(FR(-1)).startswith("21888242")
        assert point_short(None) == "O"


class TestProof:

    def test_base_round_trip(self):
        proof = IVCProof.new([FR(2), FR(3)])
        assert deserialize_proof(serialize_proof(proof)) == proof

    def test_stepped_round_trip(self, cubic_chain):
        proof = cubic_chain[3]
        assert loads_proof(dumps_proof(proof)) == proof

    def test_byte_stable(self, cubic_chain):
        raw = dumps_proof(cubic_chain[2])
        assert dumps_proof(loads_proof(raw)) == raw

    def test_restored_proof_verifies_and_extends(self, pp_cubic, cubic_chain):
        from ivc.step_circuit import CubicCircuit

        restored = loads_proof(dumps_proof(cubic_chain[2]))
        restored.verify_steps(pp_cubic, 2)
        assert restored.prove_step(pp_cubic, CubicCircuit()) == cubic_chain[3]

    def test_secondary_instance_restored_over_fq(self, cubic_chain):
        restored = loads_proof(dumps_proof(cubic_chain[3]))
        assert isinstance(restored.U_sec.u, FQ)
        assert all(isinstance(v, FQ) for v in restored.W_sec.E)
        assert restored.U_sec == cubic_chain[3].U_sec

    def test_secondary_point_checked_on_grumpkin(self, cubic_chain):
        data = serialize_proof(cubic_chain[3])
        data["U_sec"]["comm_W"] = serialize_point(BN254.g)
        with pytest.raises(ValueError):
            deserialize_proof(data)


class TestPublicParameters:

    def test_round_trip(self, pp_identity):
        assert loads_public_params(dumps_public_params(pp_identity)) == pp_identity

    def test_byte_stable(self, pp_identity):
        raw = dumps_public_params(pp_identity)
        assert dumps_public_params(loads_public_params(raw)) == raw

    def test_tampered_digest(self, pp_identity):
        data = serialize_public_params(pp_identity)
        data["digest"] = str(int(pp_identity.digest) + 1)
        with pytest.raises(ValueError):
            deserialize_public_params(data)

    def test_secondary_shape_over_fq(self, pp_identity):
        restored = loads_public_params(dumps_public_params(pp_identity))
        assert restored.secondary_shape.field is FQ
        assert restored.shape.field is FR
        assert restored.challenge_bits == pp_identity.challenge_bits

    def test_tampered_challenge_bits(self, pp_identity):
        data = serialize_public_params(pp_identity)
        data["challenge_bits"] = pp_identity.challenge_bits + 1
        with pytest.raises(ValueError):
            deserialize_public_params(data)

    def test_tampered_contents(self, pp_identity):
        data = serialize_public_params(pp_identity)
        data["arity"] = 2
        with pytest.raises(ValueError):
            deserialize_public_params(data)
