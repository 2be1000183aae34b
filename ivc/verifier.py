"""
IVC 체인 검증자 (Verifier)
===========================

누적기 하나만 보고 "z0 에서 F 를 n 번 적용하여 zn 을 얻었다"를 확인한다.

**검증 순서**:
  1. 주장한 스텝 수 == 누적기의 i                   (StepCountMismatchError)
  2. n = 0: zn == z0, arity 일치, 인스턴스 없음       (InstanceUnsatisfiedError)
  3. U₂ 의 스칼라가 FR 범위 안에 있음                (InstanceUnsatisfiedError)
  4. H(pp.digest, n, z0, zn, Uₙ, U₂ₙ) == uₙ.x        (TranscriptMismatchError)
  5. Uₙ 이 Wₙ 으로 Relaxed R1CS 를 만족                (InstanceUnsatisfiedError)
  6. uₙ 이 wₙ 으로 R1CS 를 만족                       (InstanceUnsatisfiedError)
  7. U₂ₙ 이 W₂ₙ 으로 CycleFold Relaxed R1CS 를 만족     (InstanceUnsatisfiedError)
  8. 모든 커밋먼트를 witness 로부터 다시 계산          (InstanceUnsatisfiedError)

7 번이 Uₙ 의 커밋먼트가 올바르게 접혔음을 보장한다.
증강 회로는 U' 의 커밋먼트를 CycleFold 인스턴스의 공개 입력으로만 넘기기 때문이다.

**3 번 검사**:
  U₂ 의 u, X 는 Fq 원소이지만 해시와 증강 회로에서는 FR 원소로 쓰인다.
  q > r 이므로 r 이상의 값을 허용하면 같은 해시가 서로 다른 Fq 값을 가리킬 수 있다.

검증 실패는 항상 VerifyError 로 보고되며 성공으로 바뀌지 않는다.
"""

import logging

from ivc.augmented import running_instance_hash
from ivc.commitment import commit
from ivc.errors import (
    CommitmentError,
    InstanceUnsatisfiedError,
    StepCountMismatchError,
    TranscriptMismatchError,
)
from ivc.field import CURVE_ORDER

logger = logging.getLogger(__name__)


def _reject(exc):
    logger.info("verification rejected: %s", exc)
    raise exc


def _check_commitments(ck, checks, n):
    try:
        for name, expected, vector in checks:
            if commit(ck, vector) != expected:
                _reject(InstanceUnsatisfiedError(f"{name} commitment mismatch", step=n))
    except CommitmentError as exc:
        raise InstanceUnsatisfiedError(f"cannot recompute commitments: {exc.message}",
                                       step=n) from exc


def verify_steps(pp, proof, claimed_steps):
    """누적기 proof 가 claimed_steps 번의 올바른 스텝을 나타내는지 검증한다.

    Raises:
        StepCountMismatchError, TranscriptMismatchError, InstanceUnsatisfiedError
    """
    n = proof.i
    if claimed_steps != n:
        _reject(StepCountMismatchError(
            f"claimed {claimed_steps} steps, accumulator holds {n}", step=n))

    if len(proof.z0) != pp.arity or len(proof.zi) != pp.arity:
        _reject(InstanceUnsatisfiedError(
            f"state length does not match arity {pp.arity}", step=n))

    # ── 기저 상태 ───────────────────────────────────────────────
    instances = (proof.U, proof.W, proof.u, proof.w, proof.U_sec, proof.W_sec)
    if n == 0:
        if tuple(proof.zi) != tuple(proof.z0):
            _reject(InstanceUnsatisfiedError("base accumulator state differs from z0", step=0))
        if any(v is not None for v in instances):
            _reject(InstanceUnsatisfiedError("base accumulator carries an instance", step=0))
        return

    U, W, u, w, U_sec, W_sec = instances
    if any(v is None for v in instances):
        _reject(InstanceUnsatisfiedError("accumulator is missing an instance", step=n))

    shape, secondary = pp.shape, pp.secondary_shape
    if len(U.x) != shape.num_io or len(u.x) != shape.num_io:
        _reject(InstanceUnsatisfiedError("public input length does not match shape", step=n))
    if len(U_sec.x) != secondary.num_io:
        _reject(InstanceUnsatisfiedError(
            "cyclefold public input length does not match shape", step=n))
    if any(int(v) >= CURVE_ORDER for v in (U_sec.u,) + tuple(U_sec.x)):
        _reject(InstanceUnsatisfiedError("cyclefold instance scalar out of range", step=n))

    # ── 해시 ────────────────────────────────────────────────────
    h = running_instance_hash(pp.transcript_config, pp.digest, n, proof.z0, proof.zi, U, U_sec)
    if h != u.x[0]:
        _reject(TranscriptMismatchError("accumulator hash does not match instance input", step=n))

    # ── R1CS 만족 ───────────────────────────────────────────────
    if not shape.is_relaxed_satisfied(U, W):
        _reject(InstanceUnsatisfiedError("running instance is not satisfied", step=n))
    if not shape.is_satisfied(u, w):
        _reject(InstanceUnsatisfiedError("last step instance is not satisfied", step=n))
    if not secondary.is_relaxed_satisfied(U_sec, W_sec):
        _reject(InstanceUnsatisfiedError("cyclefold instance is not satisfied", step=n))

    # ── 커밋먼트 ────────────────────────────────────────────────
    _check_commitments(pp.ck_primary, (
        ("running witness", U.comm_W, W.W),
        ("running error", U.comm_E, W.E),
        ("step witness", u.comm_W, w.W),
    ), n)
    _check_commitments(pp.ck_secondary, (
        ("cyclefold witness", U_sec.comm_W, W_sec.W),
        ("cyclefold error", U_sec.comm_E, W_sec.E),
    ), n)
