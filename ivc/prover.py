"""
IVC 증명자 (Prover)
====================

누적기 (z0, zi, i, U, W, u, w, U₂, W₂) 에서 한 스텝을 진행한다.

**기저 스텝 (i = 0)**:
  폴딩할 것이 없다. 누적 인스턴스 U, U₂ 는 자명한 0 인스턴스이고,
  증강 회로를 합성하여 첫 번째 인스턴스 (u₁, w₁) 을 만든다.

**일반 스텝 (i ≥ 1)**:
  1. h_in = H(params, i, z0, zi, Uᵢ, U₂ᵢ)  (회로도 같은 값을 계산해 uᵢ.x 와 비교)
  2. NIFS (BN254): T, comm_T → r₁ → Uᵢ₊₁ = Uᵢ ⊕ᵣ₁ uᵢ
  3. CycleFold 회로 합성 (Fq) → 커밋 (Grumpkin) → (u_cf, w_cf)
  4. NIFS (Grumpkin): T₂, comm_T₂ → r₂ → U₂ᵢ₊₁ = U₂ᵢ ⊕ᵣ₂ u_cf
  5. 증강 회로 합성 → (uᵢ₊₁, wᵢ₊₁), 새 witness 커밋

  ┌──────────────┐  fold(r₁)  ┌──────────────┐
  │ (Uᵢ, Wᵢ)     │ ─────────▶ │ (Uᵢ₊₁, Wᵢ₊₁) │ ──┐ CycleFold
  │ (uᵢ, wᵢ)     │            └──────────────┘   ▼
  └──────────────┘  fold(r₂)  ┌──────────────┐  (u_cf, w_cf)
  (U₂ᵢ, W₂ᵢ)      ─────────▶  │ (U₂ᵢ₊₁, ...) │
                              └──────────────┘

두 챌린지는 하나의 트랜스크립트에서 차례로 추출되며, 증강 회로가 같은 순서로 다시 계산한다.
무거운 작업(폴딩, 커밋) 전에 step 함수를 네이티브로 먼저 실행하여 빨리 실패한다.
"""

import logging
import time

from ivc import cyclefold
from ivc.augmented import (
    AugmentedCircuit,
    AugmentedInputs,
    absorb_running_instance,
    cyclefold_challenge_elements,
    default_secondary_instance,
    fold_challenge_elements,
    running_instance_elements,
    secondary_instance_elements,
)
from ivc.commitment import commit
from ivc.constraint_system import ConstraintSystem
from ivc.cyclefold import CycleFoldInputs, truncate_challenge
from ivc.errors import (
    CircuitMismatchError,
    CommitmentError,
    CommitmentFailureError,
    RelationUnsatisfiedError,
    StepOverflowError,
    SynthesisError,
)
from ivc.nifs import NIFS
from ivc.r1cs import R1CSInstance, R1CSWitness, RelaxedR1CSInstance, RelaxedR1CSWitness
from ivc.step_circuit import evaluate
from ivc.transcript import Transcript

logger = logging.getLogger(__name__)


def _challenge(transcript, elements, challenge_bits):
    """comm_T 를 받아 흡수할 값을 만들고 r (하위 challenge_bits 비트) 을 돌려주는 콜백."""
    def challenge(comm_T):
        transcript.absorb(elements(comm_T))
        return truncate_challenge(transcript.squeeze_challenge(), challenge_bits)
    return challenge


def prove_cyclefold(pp, inputs, step=None):
    """CycleFold 회로를 합성하고 witness 를 Grumpkin 위에서 커밋한다.

    Returns:
        (u_cf, w_cf): R1CSInstance (x ∈ Fq), R1CSWitness

    Raises:
        RelationUnsatisfiedError: 입력 점들이 폴딩 관계를 만족하지 않을 때
    """
    cs = cyclefold.synthesize(pp.challenge_bits, inputs, pp.cycle.primary)
    row = cs.which_is_unsatisfied()
    if row is not None:
        raise RelationUnsatisfiedError(f"cyclefold constraint {row} is not satisfied", step=step)
    x, W = cs.assignment()
    return R1CSInstance(commit(pp.ck_secondary, W), x), R1CSWitness(W)


def fold_step(pp, proof):
    """일반 스텝 (i ≥ 1) 의 두 폴딩을 실행하고 증강 회로 입력을 만든다.

    Returns:
        (U_next, W_next, U_sec_next, W_sec_next, AugmentedInputs)
    """
    step = proof.i
    c = pp.challenge_bits
    U, u = proof.U, proof.u

    transcript = Transcript(pp.transcript_config)
    absorb_running_instance(transcript, pp.digest, step, proof.z0, proof.zi,
                            running_instance_elements(U), secondary_instance_elements(proof.U_sec))
    transcript.squeeze_challenge()

    # ── 1. 증강 회로 인스턴스 폴딩 (BN254) ─────────────────────
    U_next, W_next, comm_T, r1 = NIFS.prove(
        pp.shape, pp.ck_primary, U, proof.W, u, proof.w,
        _challenge(transcript, lambda T: fold_challenge_elements(u.comm_W, T), c),
    )

    # ── 2. 커밋먼트 폴딩을 CycleFold 인스턴스로 ────────────────
    cf_inputs = CycleFoldInputs(r1, U.comm_W, u.comm_W, U_next.comm_W,
                                U.comm_E, comm_T, U_next.comm_E)
    u_cf, w_cf = prove_cyclefold(pp, cf_inputs, step)

    # ── 3. secondary 인스턴스 폴딩 (Grumpkin) ───────────────────
    U_sec_next, W_sec_next, comm_T_cf, _ = NIFS.prove(
        pp.secondary_shape, pp.ck_secondary, proof.U_sec, proof.W_sec, u_cf, w_cf,
        _challenge(transcript, lambda T: cyclefold_challenge_elements(
            U_next.comm_W, U_next.comm_E, u_cf.comm_W, T), c),
    )

    inputs = AugmentedInputs(
        params=pp.digest,
        i=step,
        z0=proof.z0,
        zi=proof.zi,
        U=U,
        u_W=u.comm_W,
        u_x=u.x[0],
        comm_T=comm_T,
        U_next_W=U_next.comm_W,
        U_next_E=U_next.comm_E,
        U_sec=proof.U_sec,
        u_cf_W=u_cf.comm_W,
        comm_T_cf=comm_T_cf,
    )
    return U_next, W_next, U_sec_next, W_sec_next, inputs


def synthesize_step(pp, step_circuit, inputs, aux=None, step=None):
    """증강 회로를 합성하고 새 witness 를 커밋한다.

    Returns:
        (z_next, u_next, w_next)
    """
    cs = ConstraintSystem()
    circuit = AugmentedCircuit(pp.transcript_config, step_circuit, inputs, aux,
                               challenge_bits=pp.challenge_bits, cycle=pp.cycle)
    try:
        z_next = circuit.synthesize(cs)
    except SynthesisError as exc:
        raise RelationUnsatisfiedError(exc.message, step=step) from exc
    row = cs.which_is_unsatisfied()
    if row is not None:
        raise RelationUnsatisfiedError(f"augmented circuit constraint {row} is not satisfied",
                                       step=step)
    x, W = cs.assignment()
    if not pp.shape.has_dimensions(x, W):
        raise CircuitMismatchError("augmented circuit does not match the parameter shape",
                                   step=step)
    try:
        comm_W = pp.commit(W)
    except CommitmentError as exc:
        raise CommitmentFailureError(f"witness commitment failed: {exc.message}", step=step) from exc
    return tuple(cs.value(v) for v in z_next), R1CSInstance(comm_W, x), R1CSWitness(W)


def prove_step(pp, step_circuit, proof, aux=None):
    """누적기 proof 에서 한 스텝을 증명한다.

    Returns:
        (z_next, U_next, W_next, u_next, w_next, U_sec_next, W_sec_next)

    Raises:
        StepOverflowError: proof.i >= pp.max_steps
        CircuitMismatchError: step 회로 arity 나 상태 길이가 공개 파라미터와 다를 때
        RelationUnsatisfiedError: step 함수가 (zi, aux) 로 만족되지 않을 때
        CommitmentFailureError: 커밋먼트 계산 실패
    """
    step = proof.i
    if step >= pp.max_steps:
        raise StepOverflowError(f"chain already has {step} steps (max {pp.max_steps})", step=step)
    if step_circuit.arity() != pp.arity or len(proof.zi) != pp.arity:
        raise CircuitMismatchError(
            f"step circuit arity {step_circuit.arity()} does not match parameters ({pp.arity})",
            step=step,
        )

    start = time.perf_counter()

    # ── 0. step 함수 네이티브 실행 (fail fast) ───────────────────
    try:
        evaluate(step_circuit, proof.zi, aux)
    except SynthesisError as exc:
        raise RelationUnsatisfiedError(exc.message, step=step) from exc

    # ── 1-4. 폴딩 ───────────────────────────────────────────────
    try:
        if proof.is_base:
            U_next = RelaxedR1CSInstance.default(pp.shape)
            W_next = RelaxedR1CSWitness.default(pp.shape)
            U_sec_next = default_secondary_instance(pp.challenge_bits)
            W_sec_next = RelaxedR1CSWitness.default(pp.secondary_shape)
            inputs = AugmentedInputs.base(pp.digest, proof.z0, pp.challenge_bits)
        else:
            U_next, W_next, U_sec_next, W_sec_next, inputs = fold_step(pp, proof)
    except CommitmentError as exc:
        raise CommitmentFailureError(f"folding commitment failed: {exc.message}", step=step) from exc
    fold_time = time.perf_counter()

    # ── 5. 증강 회로 합성 ───────────────────────────────────────
    z_next, u_next, w_next = synthesize_step(pp, step_circuit, inputs, aux, step)

    logger.debug(
        "step %d: fold %.3fs, synthesize+commit %.3fs",
        step, fold_time - start, time.perf_counter() - fold_time,
    )
    return z_next, U_next, W_next, u_next, w_next, U_sec_next, W_sec_next
