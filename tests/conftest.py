import sys
import os
import pytest

# 프로젝트 루트를 sys.path에 추가
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from ivc.commitment import PedersenCommitment
from ivc.field import FR
from ivc.proof import IVCProof
from ivc.public_params import setup
from ivc.step_circuit import (
    BoundedAdditionCircuit,
    CubicCircuit,
    FibonacciCircuit,
    IdentityCircuit,
)
from ivc.transcript import poseidon_config


# ── 테스트 상수 ──
# 라운드 수를 줄인 Poseidon (순열 하나에 제약 33개)
TEST_FULL_ROUNDS = 2
TEST_PARTIAL_ROUNDS = 1
TEST_SEED = "ivc-test"
# 폴딩 챌린지 비트 수 (스칼라 곱 회로 크기가 비례한다)
TEST_CHALLENGE_BITS = 16

CUBIC_Z0 = [3]
CUBIC_STEPS = 5


@pytest.fixture(scope="session")
def transcript_config():
    return poseidon_config(full_rounds=TEST_FULL_ROUNDS, partial_rounds=TEST_PARTIAL_ROUNDS,
                           seed=TEST_SEED)


@pytest.fixture(scope="session")
def challenge_bits():
    return TEST_CHALLENGE_BITS


@pytest.fixture(scope="session")
def pp_identity(transcript_config):
    """항등 회로 파라미터 (primary: Pedersen)."""
    return setup(transcript_config, IdentityCircuit(), primary_scheme=PedersenCommitment,
                 seed=TEST_SEED, challenge_bits=TEST_CHALLENGE_BITS)


@pytest.fixture(scope="session")
def pp_cubic(transcript_config):
    """x³ + x + 5 회로 파라미터 (primary: KZG)."""
    return setup(transcript_config, CubicCircuit(), seed=TEST_SEED,
                 challenge_bits=TEST_CHALLENGE_BITS)


@pytest.fixture(scope="session")
def pp_fibonacci(transcript_config):
    return setup(transcript_config, FibonacciCircuit(), primary_scheme=PedersenCommitment,
                 seed=TEST_SEED, challenge_bits=TEST_CHALLENGE_BITS)


@pytest.fixture(scope="session")
def pp_bounded(transcript_config):
    return setup(transcript_config, BoundedAdditionCircuit(num_bits=8),
                 primary_scheme=PedersenCommitment, seed=TEST_SEED,
                 challenge_bits=TEST_CHALLENGE_BITS)


@pytest.fixture(scope="session")
def cubic_chain(pp_cubic):
    """[proof_0, proof_1, ..., proof_5] (x → x³ + x + 5, z0 = [3])."""
    circuit = CubicCircuit()
    proofs = [IVCProof.new([FR(v) for v in CUBIC_Z0])]
    for _ in range(CUBIC_STEPS):
        proofs.append(proofs[-1].prove_step(pp_cubic, circuit))
    return proofs
