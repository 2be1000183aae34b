"""
증강 step 회로 (Augmented Step Circuit)
========================================

매 스텝 증명자가 합성하는 회로. step 함수 F 에 "이전 스텝의 폴딩을 검증하는 부분"을
덧붙여서, 하나의 R1CS 인스턴스가 지금까지의 모든 계산을 대표하게 만든다.

누적기는 두 개의 누적 인스턴스를 가진다.
  - U  : 증강 회로 인스턴스 (커밋먼트는 BN254 점, 스칼라는 FR)
  - U₂ : CycleFold 인스턴스 (커밋먼트는 Grumpkin 점, 스칼라는 Fq)

**회로 입력 (witness)**:
  - params, i, z0, zi
  - U (BN254 좌표는 51비트 limb), u.comm_W, u.x, comm_T
  - U' 의 커밋먼트 (CycleFold 인스턴스가 증명하는 값)
  - U₂, CycleFold 인스턴스의 커밋먼트 comm_W_cf, 교차항 커밋먼트 comm_T₂

**회로 동작**:
  1. is_base = (i == 0)
  2. h_in = H(params, i, z0, zi, U, U₂);   (1 - is_base)·(h_in - u.x) = 0
  3. 같은 스펀지에 (u.comm_W, comm_T) 흡수 → r₁ (하위 c 비트)
  4. u' = U.u + r₁,   x' = U.x + r₁·u.x
  5. x_cf = (r₁, U.comm_W, u.comm_W, U'.comm_W, U.comm_E, comm_T, U'.comm_E) limb
  6. (U'.comm_W, U'.comm_E, comm_W_cf, comm_T₂) 흡수 → r₂
  7. U₂' = U₂ ⊕ᵣ₂ (comm_W_cf, x_cf):  Grumpkin 점 연산과 FR 정수 연산
  8. 기저 스텝이면 U', U₂' 는 0 인스턴스
  9. z_in = is_base ? z0 : zi,   z_next = F(z_in, aux)
  10. 공개 입력 h_out = H(params, i + 1, z0, z_next, U', U₂')

**공개 입력은 h_out 하나뿐** (num_io = 1). 따라서 어떤 스텝이든 R1CS 형태가 같다.

U' 의 커밋먼트는 이 회로가 계산하지 않는다. 대신 x_cf 를 공개 입력으로 갖는
CycleFold 인스턴스가 U₂ 에 접히고, 최종 검증자가 U₂ 를 확인한다.
"""

from dataclasses import dataclass
from typing import Optional

from ivc.commitment import coordinates
from ivc.constraint_system import ConstraintSystem, LinearCombination
from ivc.curves import DEFAULT_CYCLE
from ivc.cyclefold import (
    CHALLENGE_BITS,
    LIMB_BITS,
    num_challenge_limbs,
    num_io,
    point_limbs,
)
from ivc.errors import SynthesisError
from ivc.field import FQ, FR, fr_vector, zeros
from ivc.gadgets import (
    alloc_bits,
    alloc_bits_strict,
    alloc_point,
    conditionally_select,
    enforce_equal,
    is_zero,
    mul,
    normalize,
    point_add,
    recompose,
    scalar_mul,
)
from ivc.r1cs import RelaxedR1CSInstance
from ivc.transcript import Transcript, TranscriptVar


# ─────────────────────────────────────────────────────────────────────
# 해시 입력 (네이티브 / 회로 공용 순서)
# ─────────────────────────────────────────────────────────────────────

def running_instance_elements(U):
    """U → limb(comm_W) ‖ limb(comm_E) ‖ u ‖ x"""
    return point_limbs(U.comm_W) + point_limbs(U.comm_E) + [U.u] + list(U.x)


def secondary_instance_elements(U):
    """U₂ → comm_W.(x, y) ‖ comm_E.(x, y) ‖ u ‖ X"""
    return coordinates((U.comm_W, U.comm_E)) + [U.u] + list(U.x)


def fold_challenge_elements(u_W, comm_T):
    """r₁ 앞에 흡수하는 값."""
    return point_limbs(u_W) + point_limbs(comm_T)


def cyclefold_challenge_elements(U_next_W, U_next_E, u_cf_W, comm_T_cf):
    """r₂ 앞에 흡수하는 값."""
    return point_limbs(U_next_W) + point_limbs(U_next_E) + coordinates((u_cf_W, comm_T_cf))


def absorb_running_instance(transcript, params, i, z0, zi, U_elements, U_sec_elements):
    """H(params, i, z0, zi, U, U₂) 의 흡수 순서. 네이티브/회로 트랜스크립트 공용."""
    transcript.absorb([params, i])
    transcript.absorb(z0)
    transcript.absorb(zi)
    transcript.absorb(U_elements)
    transcript.absorb(U_sec_elements)


def running_instance_hash(config, params, i, z0, zi, U, U_sec):
    """누적기 해시 H(params, i, z0, zi, U, U₂) (네이티브)."""
    transcript = Transcript(config)
    absorb_running_instance(transcript, params, i, z0, zi,
                            running_instance_elements(U), secondary_instance_elements(U_sec))
    return transcript.squeeze_challenge()


def default_running_instance():
    return RelaxedR1CSInstance(None, None, FR(0), (FR(0),))


def default_secondary_instance(challenge_bits=CHALLENGE_BITS):
    return RelaxedR1CSInstance(None, None, FQ(0), zeros(num_io(challenge_bits), FQ))


# ─────────────────────────────────────────────────────────────────────
# 입력
# ─────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AugmentedInputs:
    params: FR
    i: int
    z0: tuple
    zi: tuple
    U: RelaxedR1CSInstance
    u_W: Optional[tuple]
    u_x: FR
    comm_T: Optional[tuple]
    U_next_W: Optional[tuple]
    U_next_E: Optional[tuple]
    U_sec: RelaxedR1CSInstance
    u_cf_W: Optional[tuple]
    comm_T_cf: Optional[tuple]

    @classmethod
    def base(cls, params, z0, challenge_bits=CHALLENGE_BITS):
        """i = 0 인 기저 스텝의 입력. 누적 인스턴스는 모두 0 이다."""
        z0 = fr_vector(z0)
        return cls(params, 0, z0, z0, default_running_instance(), None, FR(0), None,
                   None, None, default_secondary_instance(challenge_bits), None, None)


# ─────────────────────────────────────────────────────────────────────
# 회로
# ─────────────────────────────────────────────────────────────────────

def _alloc_all(cs, values):
    return [cs.alloc(v) for v in values]


def _masked(cs, not_base, values):
    """기저 스텝이면 0, 아니면 그대로."""
    return [mul(cs, not_base, v) for v in values]


class AugmentedCircuit:
    """step 회로 + 폴딩 검증 회로."""

    def __init__(self, config, step_circuit, inputs, aux=None, *,
                 challenge_bits=CHALLENGE_BITS, cycle=DEFAULT_CYCLE):
        self.config = config
        self.step_circuit = step_circuit
        self.inputs = inputs
        self.aux = aux
        self.challenge_bits = challenge_bits
        self.cycle = cycle

    def synthesize(self, cs):
        """회로를 cs 에 합성하고 z_next 변수 리스트를 반환한다.

        Raises:
            SynthesisError: step 회로가 만족되지 않거나, 출력 길이가 arity 와 다르거나,
                limb 가 51비트를 넘을 때
        """
        inp = self.inputs
        arity = self.step_circuit.arity()
        if len(inp.z0) != arity or len(inp.zi) != arity:
            raise SynthesisError(f"state length does not match arity {arity}")
        c = self.challenge_bits
        if len(inp.U.x) != 1:
            raise SynthesisError("running instance must have a single public input")
        if len(inp.U_sec.x) != num_io(c):
            raise SynthesisError("secondary instance does not match the challenge size")
        grumpkin = self.cycle.secondary

        # ── witness 할당 ────────────────────────────────────────
        params = cs.alloc(inp.params)
        i = cs.alloc(inp.i)
        z0 = _alloc_all(cs, inp.z0)
        zi = _alloc_all(cs, inp.zi)
        U = _alloc_all(cs, running_instance_elements(inp.U))
        u_W = _alloc_all(cs, point_limbs(inp.u_W))
        u_x = cs.alloc(inp.u_x)
        T = _alloc_all(cs, point_limbs(inp.comm_T))
        U_next_W = _alloc_all(cs, point_limbs(inp.U_next_W))
        U_next_E = _alloc_all(cs, point_limbs(inp.U_next_E))
        S = _alloc_all(cs, secondary_instance_elements(inp.U_sec))
        cf_W = _alloc_all(cs, coordinates((inp.u_cf_W,)))
        T_cf = _alloc_all(cs, coordinates((inp.comm_T_cf,)))

        U_W, U_E, U_u, U_x = U[:10], U[10:20], U[20], U[21]
        S_W, S_E, S_u, S_x = S[0:2], S[2:4], S[4], S[5:]

        is_base = is_zero(cs, i)
        not_base = ConstraintSystem.one - is_base

        # 새로 들어오는 BN254 limb 범위 검사 (U 의 limb 는 이전 출력 해시에 묶여 있다)
        for limb in u_W + T + U_next_W + U_next_E:
            alloc_bits(cs, limb, LIMB_BITS)

        # ── 1. 이전 스텝 해시 확인 ──────────────────────────────
        transcript = TranscriptVar(cs, self.config)
        absorb_running_instance(transcript, params, i, z0, zi, U, S)
        h_in = transcript.squeeze_challenge()
        cs.enforce(not_base, h_in - u_x, LinearCombination())

        # ── 2. 폴딩 챌린지 r₁ ───────────────────────────────────
        transcript.absorb(u_W + T)
        r1_bits = alloc_bits_strict(cs, transcript.squeeze_challenge())[:c]
        r1 = recompose(r1_bits)

        # ── 3. 스칼라 성분 폴딩 ─────────────────────────────────
        nb = cs.value(not_base)
        u_new = cs.alloc(nb * (cs.value(U_u) + cs.value(r1)))
        cs.enforce(not_base, U_u + r1, u_new)

        prod = mul(cs, r1, u_x)
        x_new = cs.alloc(nb * (cs.value(U_x) + cs.value(prod)))
        cs.enforce(not_base, U_x + prod, x_new)

        # ── 4. CycleFold 공개 입력 ──────────────────────────────
        x_cf = [recompose(r1_bits[k * LIMB_BITS:(k + 1) * LIMB_BITS])
                for k in range(num_challenge_limbs(c))]
        x_cf += U_W + u_W + U_next_W + U_E + T + U_next_E

        # ── 5. CycleFold 챌린지 r₂ ──────────────────────────────
        transcript.absorb(U_next_W + U_next_E + cf_W + T_cf)
        r2_bits = alloc_bits_strict(cs, transcript.squeeze_challenge())[:c]
        r2 = recompose(r2_bits)

        # ── 6. secondary 인스턴스 폴딩 (Grumpkin, 회로의 체 = 좌표 체) ──
        b3 = grumpkin.b3
        W2 = alloc_point(cs, *S_W, grumpkin.b)
        E2 = alloc_point(cs, *S_E, grumpkin.b)
        W_cf = alloc_point(cs, *cf_W, grumpkin.b)
        T2 = alloc_point(cs, *T_cf, grumpkin.b)
        W2_new = normalize(cs, point_add(cs, W2, scalar_mul(cs, r2_bits, W_cf, b3), b3))
        E2_new = normalize(cs, point_add(cs, E2, scalar_mul(cs, r2_bits, T2, b3), b3))
        # 넘침 없는 정수 연산: u₂ ≤ steps·2^c,  X₂ < steps·2^(c+51)
        u2_new = S_u + r2
        X2_new = [x + mul(cs, r2, v) for x, v in zip(S_x, x_cf)]

        # ── 7. 기저 스텝이면 0 인스턴스 ────────────────────────
        U_out = _masked(cs, not_base, U_next_W + U_next_E) + [u_new, x_new]
        S_out = _masked(cs, not_base, list(W2_new) + list(E2_new) + [u2_new] + X2_new)

        # ── 8. step 함수 ────────────────────────────────────────
        z_in = [conditionally_select(cs, is_base, a, b) for a, b in zip(z0, zi)]
        z_next = self.step_circuit.synthesize(cs, z_in, self.aux)
        if len(z_next) != arity:
            raise SynthesisError(
                f"step circuit returned {len(z_next)} outputs, arity is {arity}"
            )

        # ── 9. 출력 해시 (유일한 공개 입력) ──────────────────────
        out = TranscriptVar(cs, self.config)
        absorb_running_instance(out, params, i + 1, z0, z_next, U_out, S_out)
        h_out = out.squeeze_challenge()
        h = cs.alloc_input(cs.value(h_out))
        enforce_equal(cs, h, h_out)

        return z_next
