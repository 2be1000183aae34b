"""
IVC 공개 파라미터 (Public Parameters)
======================================

setup 은 한 번만 실행되며, 같은 step 회로로 만드는 모든 체인이 결과를 공유한다.

**setup 과정**:
  1. 기저 스텝용 더미 입력으로 증강 회로를 한 번 합성하여 R1CS 형태만 남긴다.
     (회로 구조는 값과 무관하므로 모든 스텝이 이 형태를 공유한다)
  2. CycleFold 회로(Fq 위)도 같은 방법으로 secondary 형태를 만든다.
  3. primary 커밋먼트 키 (BN254): max(num_vars, num_constraints) 길이 (W, E, T 커밋용)
  4. secondary 커밋먼트 키 (Grumpkin): CycleFold 형태의 max(num_vars, num_constraints) 길이
  5. 위 모든 것을 묶는 다이제스트 (FR) 계산

**다이제스트**:
  증강 회로의 해시 입력 params 로 들어가므로,
  다른 파라미터로 만든 증명은 검증 시 해시가 맞지 않는다.

**챌린지 비트 수 (challenge_bits)**:
  폴딩 챌린지 r 은 트랜스크립트 출력의 하위 c 비트이다 (기본 128, 최대 128).
  CycleFold 회로와 증강 회로의 Grumpkin 스칼라 곱이 c 에 비례하므로
  테스트에서는 작은 값을 쓴다.

사용 예시:
    >>> pp = setup(poseidon_config(), CubicCircuit(), seed="demo")
    >>> pp.shape.num_constraints
"""

import hashlib
import logging
from dataclasses import dataclass

from ivc import cyclefold
from ivc.augmented import AugmentedCircuit, AugmentedInputs
from ivc.commitment import (
    KZGCommitment,
    PedersenCommitment,
    CommitmentKey,
    commit,
    get_scheme,
)
from ivc.constraint_system import ConstraintSystem
from ivc.curves import DEFAULT_CYCLE, CurveCycle
from ivc.cyclefold import CHALLENGE_BITS, MAX_CHALLENGE_BITS, CycleFoldInputs
from ivc.errors import CommitmentError, CommitmentKeygenError, ShapeMismatchError, SynthesisError
from ivc.field import FR, CURVE_ORDER, zeros
from ivc.r1cs import R1CSShape
from ivc.transcript import PoseidonConfig

logger = logging.getLogger(__name__)

# 체인 하나가 가질 수 있는 최대 스텝 수 (u64)
MAX_STEPS = 2**64 - 1


@dataclass(frozen=True)
class PublicParameters:
    transcript_config: PoseidonConfig
    cycle: CurveCycle
    shape: R1CSShape
    secondary_shape: R1CSShape
    ck_primary: CommitmentKey
    ck_secondary: CommitmentKey
    arity: int
    max_steps: int
    challenge_bits: int
    digest: FR

    @property
    def num_constraints(self):
        return self.shape.num_constraints

    @property
    def num_vars(self):
        return self.shape.num_vars

    def commit(self, vector):
        return commit(self.ck_primary, vector)

    def commit_secondary(self, vector):
        return commit(self.ck_secondary, vector)


def compute_digest(transcript_config, cycle, shape, secondary_shape, ck_primary, ck_secondary,
                   arity, max_steps, challenge_bits):
    """공개 파라미터 전체를 묶는 다이제스트 (sha256 mod r)."""
    h = hashlib.sha256()

    def update(*items):
        for item in items:
            h.update(repr(item).encode())
            h.update(b"|")

    c = transcript_config
    update("poseidon", c.width, c.full_rounds, c.partial_rounds, c.alpha, c.seed)
    update("cycle", cycle.primary.name, cycle.secondary.name)
    for s in (shape, secondary_shape):
        update("shape", s.num_constraints, s.num_io, s.num_vars, s.field.field_modulus)
        for M in (s.A, s.B, s.C):
            for row in M:
                update(tuple((col, int(coeff)) for col, coeff in row))
    for ck in (ck_primary, ck_secondary):
        update("key", ck.scheme, ck.curve.name, ck.label, ck.size)
        for g in ck.generators:
            update(ck.curve.to_ints(g))
    update("arity", arity, "max_steps", max_steps, "challenge_bits", challenge_bits)
    return FR(int.from_bytes(h.digest(), "big") % CURVE_ORDER)


def setup(transcript_config, step_circuit, *, cycle=DEFAULT_CYCLE,
          primary_scheme=KZGCommitment, secondary_scheme=PedersenCommitment,
          seed="ivc-setup", max_steps=MAX_STEPS, challenge_bits=CHALLENGE_BITS):
    """공개 파라미터를 생성한다.

    Args:
        transcript_config: PoseidonConfig
        step_circuit: arity() / synthesize() 를 가진 step 회로
        cycle: (primary, secondary) 곡선 사이클
        primary_scheme: primary 커밋먼트 스킴 (클래스 또는 이름)
        secondary_scheme: secondary 커밋먼트 스킴 (클래스 또는 이름)
        seed: 커밋먼트 키 생성 시드
        max_steps: 체인의 최대 스텝 수 (1 ≤ max_steps ≤ MAX_STEPS)
        challenge_bits: 폴딩 챌린지 비트 수 (1 ≤ c ≤ 128)

    Returns:
        PublicParameters

    Raises:
        ValueError: max_steps 또는 challenge_bits 가 범위를 벗어날 때
        ShapeMismatchError: arity 가 0 이하이거나 step 회로 출력 길이가 arity 와 다를 때
        CommitmentKeygenError: 필요한 크기의 커밋먼트 키를 만들 수 없을 때
    """
    arity = step_circuit.arity()
    if not isinstance(arity, int) or arity <= 0:
        raise ShapeMismatchError(f"step circuit arity must be positive, got {arity!r}")
    if not isinstance(max_steps, int) or not 1 <= max_steps <= MAX_STEPS:
        raise ValueError(f"max_steps must be an integer in [1, {MAX_STEPS}], got {max_steps!r}")
    if (isinstance(challenge_bits, bool) or not isinstance(challenge_bits, int)
            or not 1 <= challenge_bits <= MAX_CHALLENGE_BITS):
        raise ValueError(
            f"challenge_bits must be an integer in [1, {MAX_CHALLENGE_BITS}], got {challenge_bits!r}"
        )

    z0 = zeros(arity)
    trial = ConstraintSystem()
    try:
        outputs = step_circuit.synthesize(trial, [trial.alloc(v) for v in z0], None)
    except SynthesisError as exc:
        raise ShapeMismatchError(f"step circuit cannot be synthesized: {exc}") from exc
    if len(outputs) != arity:
        raise ShapeMismatchError(
            f"step circuit returned {len(outputs)} outputs, arity is {arity}"
        )

    cs = ConstraintSystem()
    circuit = AugmentedCircuit(transcript_config, step_circuit,
                               AugmentedInputs.base(FR(0), z0, challenge_bits),
                               challenge_bits=challenge_bits, cycle=cycle)
    try:
        circuit.synthesize(cs)
    except SynthesisError as exc:
        raise ShapeMismatchError(f"augmented circuit cannot be synthesized: {exc}") from exc
    shape = cs.to_shape()
    secondary_shape = cyclefold.synthesize(challenge_bits, CycleFoldInputs.default(),
                                           cycle.primary).to_shape()
    logger.info(
        "augmented circuit: %d constraints, %d io, %d vars; cyclefold circuit: %d constraints",
        shape.num_constraints, shape.num_io, shape.num_vars, secondary_shape.num_constraints,
    )

    if isinstance(primary_scheme, str):
        primary_scheme = get_scheme(primary_scheme)
    if isinstance(secondary_scheme, str):
        secondary_scheme = get_scheme(secondary_scheme)

    try:
        ck_primary = primary_scheme.setup(
            max(shape.num_vars, shape.num_constraints), f"{seed}/primary", cycle.primary
        )
        ck_secondary = secondary_scheme.setup(
            max(secondary_shape.num_vars, secondary_shape.num_constraints),
            f"{seed}/secondary", cycle.secondary,
        )
    except CommitmentError as exc:
        raise CommitmentKeygenError(f"commitment key generation failed: {exc}") from exc
    logger.debug(
        "commitment keys: %s/%s size %d, %s/%s size %d",
        ck_primary.scheme, ck_primary.curve.name, ck_primary.size,
        ck_secondary.scheme, ck_secondary.curve.name, ck_secondary.size,
    )

    digest = compute_digest(transcript_config, cycle, shape, secondary_shape,
                            ck_primary, ck_secondary, arity, max_steps, challenge_bits)
    return PublicParameters(
        transcript_config=transcript_config,
        cycle=cycle,
        shape=shape,
        secondary_shape=secondary_shape,
        ck_primary=ck_primary,
        ck_secondary=ck_secondary,
        arity=arity,
        max_steps=max_steps,
        challenge_bits=challenge_bits,
        digest=digest,
    )
