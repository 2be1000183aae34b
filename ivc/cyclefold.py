"""
CycleFold 회로 (Secondary Circuit)
===================================

증강 회로는 FR 위의 회로라서 BN254 점(좌표 ∈ Fq)의 연산을 직접 계산할 수 없다.
대신 커밋먼트 폴딩

    comm_W' = comm_W + r·comm_W₂
    comm_E' = comm_E + r·comm_T

을 BN254 의 기저체 Fq 위의 작은 회로로 증명하고, 그 인스턴스를
Grumpkin 커밋먼트로 secondary 누적 인스턴스에 접는다.
Grumpkin 점의 좌표는 FR 원소이므로 이 접기는 증강 회로 안에서 계산된다.

**공개 입력 (x_cf)**:

  | 위치             | 값                                 |
  |------------------|------------------------------------|
  | 0 .. k           | 챌린지 r 의 51비트 limb (k = ⌈c/51⌉) |
  | 이후 6 × 10      | 점마다 x limb 5개, y limb 5개        |

  점 순서: U.comm_W, u.comm_W, U'.comm_W, U.comm_E, comm_T, U'.comm_E
  무한원점은 (0, 0) 으로 인코딩한다.

**limb 인코딩**:
  좌표 하나를 51비트 limb 5개로 나눈다 (255비트).
  증강 회로는 x_cf 를 FR 위의 정수로 폴딩하므로 limb 가 작아야 값이 넘치지 않는다:

    X' = X + r·x_cf  (스텝마다),   max_steps · 2^c · 2^51 < 2^243 < r
"""

from dataclasses import dataclass
from typing import Optional

from ivc.constraint_system import ConstraintSystem, LinearCombination
from ivc.curves import BN254
from ivc.gadgets import alloc_bits, alloc_point, enforce_equal, normalize, point_add, scalar_mul

# 폴딩 챌린지 비트 수 (기본값 / 최댓값)
CHALLENGE_BITS = 128
MAX_CHALLENGE_BITS = 128

LIMB_BITS = 51
NUM_LIMBS = 5
POINT_LIMBS = 2 * NUM_LIMBS
NUM_POINTS = 6

_LIMB_MASK = (1 << LIMB_BITS) - 1


# ─────────────────────────────────────────────────────────────────────
# 인코딩 (네이티브)
# ─────────────────────────────────────────────────────────────────────

def limbs(value, count=NUM_LIMBS):
    """정수 → 하위부터 51비트 limb 리스트."""
    value = int(value)
    return [(value >> (LIMB_BITS * k)) & _LIMB_MASK for k in range(count)]


def point_limbs(p):
    """아핀 점 → x limb 5개 + y limb 5개. 무한원점은 0 10개."""
    if p is None:
        return [0] * POINT_LIMBS
    return limbs(p[0]) + limbs(p[1])


def num_challenge_limbs(challenge_bits):
    return -(-challenge_bits // LIMB_BITS)


def num_io(challenge_bits):
    """CycleFold 인스턴스의 공개 입력 길이."""
    return num_challenge_limbs(challenge_bits) + NUM_POINTS * POINT_LIMBS


def truncate_challenge(r, challenge_bits):
    """트랜스크립트 출력의 하위 challenge_bits 비트."""
    return int(r) & ((1 << challenge_bits) - 1)


@dataclass(frozen=True)
class CycleFoldInputs:
    """CycleFold 회로 한 번의 입력. 점은 BN254 아핀 점 또는 None."""
    r: int
    U_W: Optional[tuple]
    u_W: Optional[tuple]
    U_next_W: Optional[tuple]
    U_E: Optional[tuple]
    comm_T: Optional[tuple]
    U_next_E: Optional[tuple]

    @classmethod
    def default(cls):
        return cls(0, None, None, None, None, None, None)

    def points(self):
        return (self.U_W, self.u_W, self.U_next_W, self.U_E, self.comm_T, self.U_next_E)

    def io(self, challenge_bits):
        """공개 입력 x_cf (정수 리스트)."""
        x = limbs(self.r, num_challenge_limbs(challenge_bits))
        for p in self.points():
            x.extend(point_limbs(p))
        return x


# ─────────────────────────────────────────────────────────────────────
# 회로
# ─────────────────────────────────────────────────────────────────────

def _coordinate(limb_vars):
    """Σ limbₖ · 2^(51k)"""
    out = LinearCombination()
    for k, limb in enumerate(limb_vars):
        out = out + limb * (1 << (LIMB_BITS * k))
    return out


class CycleFoldCircuit:
    """BN254 커밋먼트 두 쌍의 폴딩을 증명하는 Fq 위의 회로.

    제약 수는 대략 2 · 27 · c 이며 (c = 챌린지 비트 수), 값과 무관하게 같은 모양이다.
    """

    def __init__(self, challenge_bits, inputs, curve=BN254):
        self.challenge_bits = challenge_bits
        self.inputs = inputs
        self.curve = curve

    def synthesize(self, cs):
        bits_total = self.challenge_bits
        curve = self.curve
        x = self.inputs.io(bits_total)

        # ── 공개 입력 ───────────────────────────────────────────
        nr = num_challenge_limbs(bits_total)
        x_vars = [cs.alloc_input(v) for v in x]
        r_limbs, rest = x_vars[:nr], x_vars[nr:]
        points = [rest[k * POINT_LIMBS:(k + 1) * POINT_LIMBS] for k in range(NUM_POINTS)]
        affine = [(_coordinate(p[:NUM_LIMBS]), _coordinate(p[NUM_LIMBS:])) for p in points]

        # ── 챌린지 비트 ─────────────────────────────────────────
        bits = []
        for k, limb in enumerate(r_limbs):
            bits.extend(alloc_bits(cs, limb, min(LIMB_BITS, bits_total - LIMB_BITS * k)))

        # ── 입력 점 (곡선 위 검사) ──────────────────────────────
        U_W = alloc_point(cs, *affine[0], curve.b)
        u_W = alloc_point(cs, *affine[1], curve.b)
        U_E = alloc_point(cs, *affine[3], curve.b)
        T = alloc_point(cs, *affine[4], curve.b)

        # ── 폴딩 ────────────────────────────────────────────────
        folded = (
            (point_add(cs, U_W, scalar_mul(cs, bits, u_W, curve.b3), curve.b3), affine[2]),
            (point_add(cs, U_E, scalar_mul(cs, bits, T, curve.b3), curve.b3), affine[5]),
        )
        for result, claimed in folded:
            x_out, y_out = normalize(cs, result)
            enforce_equal(cs, x_out, claimed[0])
            enforce_equal(cs, y_out, claimed[1])


def synthesize(challenge_bits, inputs, curve=BN254):
    """CycleFold 회로를 새 제약 시스템(곡선의 기저체)에 합성한다."""
    cs = ConstraintSystem(curve.base_field)
    CycleFoldCircuit(challenge_bits, inputs, curve).synthesize(cs)
    return cs
