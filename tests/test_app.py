"""
Tests for the Flask demo app (ivc blueprint + TinyDB persistence).
"""

import pytest

from app import create_app
from ivc.errors import RelationUnsatisfiedError
from ivc.proof import IVCProof


@pytest.fixture(scope="module")
def client():
    app = create_app({
        "TESTING": True,
        "DB_PATH": None,
        "FULL_ROUNDS": 2,
        "PARTIAL_ROUNDS": 1,
        "PRIMARY_SCHEME": "pedersen",
        "SETUP_SEED": "app-test",
        "CHALLENGE_BITS": 16,
        "LOG_LEVEL": "WARNING",
    })
    return app.test_client()


@pytest.fixture(scope="module")
def cubic_setup(client):
    resp = client.post("/ivc/setup", json={"circuit": "cubic"})
    assert resp.status_code == 200
    return resp.get_json()


@pytest.fixture(scope="module")
def bounded_setup(client):
    resp = client.post("/ivc/setup", json={"circuit": "bounded_addition",
                                           "options": {"num_bits": 8}})
    assert resp.status_code == 200
    return resp.get_json()


def _new_chain(client, setup_id, z0):
    resp = client.post("/ivc/chains", json={"setup_id": setup_id, "z0": z0})
    assert resp.status_code == 201
    return resp.get_json()["chain_id"]


class TestEndpoints:

    def test_index(self, client):
        data = client.get("/").get_json()
        assert "/ivc/circuits" in data["endpoints"]

    def test_circuits(self, client):
        data = client.get("/ivc/circuits").get_json()
        names = [c["name"] for c in data["circuits"]]
        assert "cubic" in names and "identity" in names

    def test_setup(self, cubic_setup):
        assert cubic_setup["ok"]
        assert cubic_setup["primary_key"] == "pedersen/bn254"
        assert cubic_setup["secondary_key"] == "pedersen/grumpkin"
        assert cubic_setup["num_constraints"] > 0
        assert cubic_setup["cyclefold_constraints"] > 0
        assert cubic_setup["challenge_bits"] == 16

    def test_unknown_circuit(self, client):
        resp = client.post("/ivc/setup", json={"circuit": "sha256"})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "BadRequest"

    def test_bad_circuit_options(self, client):
        resp = client.post("/ivc/setup", json={"circuit": "cubic", "options": {"width": 3}})
        assert resp.status_code == 400


class TestChains:

    def test_prove_and_verify(self, client, cubic_setup):
        chain_id = _new_chain(client, cubic_setup["setup_id"], [3])

        resp = client.post(f"/ivc/chains/{chain_id}/prove", json={"steps": 2})
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["steps"] == 2
        assert data["zi"] == [str(35 ** 3 + 35 + 5)]

        resp = client.post(f"/ivc/chains/{chain_id}/verify", json={"steps": 2})
        assert resp.status_code == 200
        assert resp.get_json()["ok"]

        data = client.get(f"/ivc/chains/{chain_id}").get_json()
        assert data["steps"] == 2
        assert data["z0"] == ["3"]

    def test_verify_wrong_step_count(self, client, cubic_setup):
        chain_id = _new_chain(client, cubic_setup["setup_id"], [3])
        client.post(f"/ivc/chains/{chain_id}/prove", json={})
        resp = client.post(f"/ivc/chains/{chain_id}/verify", json={"steps": 2})
        assert resp.status_code == 422
        body = resp.get_json()
        assert body["error"] == "StepCountMismatchError"
        assert body["step"] == 1

    def test_failed_step_keeps_chain(self, client, bounded_setup):
        chain_id = _new_chain(client, bounded_setup["setup_id"], [10])
        resp = client.post(f"/ivc/chains/{chain_id}/prove", json={"aux": 1000})
        assert resp.status_code == 400
        body = resp.get_json()
        assert body["error"] == "RelationUnsatisfiedError"
        assert body["retryable"] is True
        assert client.get(f"/ivc/chains/{chain_id}").get_json()["steps"] == 0

        resp = client.post(f"/ivc/chains/{chain_id}/prove", json={"aux": 7})
        assert resp.get_json()["zi"] == ["17"]

    def test_bad_z0(self, client, cubic_setup):
        resp = client.post("/ivc/chains", json={"setup_id": cubic_setup["setup_id"], "z0": [1, 2]})
        assert resp.status_code == 400

    def test_unknown_setup(self, client):
        resp = client.post("/ivc/chains", json={"setup_id": "0", "z0": [1]})
        assert resp.status_code == 404

    def test_unknown_chain(self, client):
        assert client.get("/ivc/chains/missing").status_code == 404
        assert client.post("/ivc/chains/missing/verify", json={}).status_code == 404

    def test_invalid_steps(self, client, cubic_setup):
        chain_id = _new_chain(client, cubic_setup["setup_id"], [3])
        resp = client.post(f"/ivc/chains/{chain_id}/prove", json={"steps": 0})
        assert resp.status_code == 400

    @pytest.mark.parametrize("aux", ["abc", [1], 2.9, True])
    def test_invalid_aux(self, client, bounded_setup, aux):
        chain_id = _new_chain(client, bounded_setup["setup_id"], [10])
        resp = client.post(f"/ivc/chains/{chain_id}/prove", json={"aux": aux})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "BadRequest"
        assert client.get(f"/ivc/chains/{chain_id}").get_json()["steps"] == 0

    def test_boolean_steps(self, client, cubic_setup):
        chain_id = _new_chain(client, cubic_setup["setup_id"], [3])
        resp = client.post(f"/ivc/chains/{chain_id}/prove", json={"steps": True})
        assert resp.status_code == 400
        resp = client.post(f"/ivc/chains/{chain_id}/verify", json={"steps": False})
        assert resp.status_code == 400

    def test_failure_mid_batch_keeps_chain(self, client, bounded_setup, monkeypatch):
        """두 번째 스텝이 실패하면 첫 번째 스텝도 저장되지 않는다."""
        chain_id = _new_chain(client, bounded_setup["setup_id"], [10])
        prove_step = IVCProof.prove_step
        calls = []

        def failing_second_step(self, pp, circuit, aux=None):
            calls.append(self.i)
            if len(calls) == 2:
                raise RelationUnsatisfiedError("second step rejected", step=self.i)
            return prove_step(self, pp, circuit, aux)

        monkeypatch.setattr(IVCProof, "prove_step", failing_second_step)
        resp = client.post(f"/ivc/chains/{chain_id}/prove", json={"steps": 2, "aux": 5})
        assert resp.status_code == 400
        assert resp.get_json()["step"] == 1
        assert calls == [0, 1]
        data = client.get(f"/ivc/chains/{chain_id}").get_json()
        assert data["steps"] == 0
        assert data["zi"] == ["10"]
