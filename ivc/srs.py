"""
IVC Structured Reference String (SRS)
======================================

KZG 스타일 벡터 커밋먼트에 쓰이는 powers-of-tau 공개 파라미터를 생성한다.

**SRS란?**
  비밀 값 τ ("toxic waste")를 사용하여 만든 G1 점들의 나열이다.

  SRS = [G1, τ·G1, τ²·G1, ..., τ^d·G1]

  벡터 v = (v₀, ..., v_d)를 다항식 계수로 보면
  Σ vᵢ·τⁱ·G1 = v(τ)·G1 이 그 벡터의 커밋먼트가 된다.
  폴딩은 커밋먼트의 **동형성(homomorphism)** 만 사용하므로
  페어링(G2 powers)과 열기 증명은 필요 없다.

**보안**:
  τ를 아는 사람은 커밋먼트를 위조할 수 있다.
  여기서는 교육용으로 seed에서 결정론적으로 생성한다.

사용 예시:
    >>> srs = SRS.generate(max_degree=16, seed=42)
    >>> len(srs.g1_powers)  # 17 (0차부터 16차까지)
"""

import hashlib

from py_ecc import optimized_bn128 as ec

from ivc.curves import BN254
from ivc.field import FR, CURVE_ORDER

# 고정 기저 테이블의 윈도우 비트 수
WINDOW_BITS = 8


class SRS:
    """Structured Reference String: KZG 스타일 커밋먼트용 공개 파라미터.

    속성:
        g1_powers: [G1, τ·G1, τ²·G1, ..., τ^d·G1] (아핀 좌표)
        max_degree: 커밋 가능한 최대 다항식 차수 d
    """

    def __init__(self, g1_powers, max_degree):
        self.g1_powers = g1_powers
        self.max_degree = max_degree

    @classmethod
    def generate(cls, max_degree, seed, curve=BN254):
        """SRS를 생성한다.

        Args:
            max_degree: 지원할 최대 차수 (= 커밋할 벡터 길이 - 1)
            seed: 결정론적 생성을 위한 시드 (교육용)
            curve: 커밋먼트 곡선

        Returns:
            SRS
        """
        # toxic waste τ 생성
        h = hashlib.sha256(str(seed).encode()).digest()
        tau = FR(int.from_bytes(h, "big") % CURVE_ORDER)

        scalars = []
        tau_power = FR(1)  # τ^0 = 1
        for _ in range(max_degree + 1):
            scalars.append(int(tau_power))
            tau_power = tau_power * tau

        table = _fixed_base_table(curve, curve.g)
        g1_powers = tuple(_fixed_base_mul(curve, table, k) for k in scalars)
        return cls(g1_powers, max_degree)


# ─────────────────────────────────────────────────────────────────────
# 고정 기저 스칼라 곱
# ─────────────────────────────────────────────────────────────────────

def _fixed_base_table(curve, g):
    """table[j][d - 1] = d · 2^(w·j) · G  (사영 좌표)

    모든 τⁱ·G 가 같은 G 를 쓰므로 한 번 만든 테이블로
    스칼라 곱 하나를 덧셈 (비트 수 / w) 번으로 계산한다.
    """
    num_windows = -(-curve.scalar_modulus.bit_length() // WINDOW_BITS)
    base = curve._projective(g)
    table = []
    for _ in range(num_windows):
        row = [base]
        for _ in range((1 << WINDOW_BITS) - 2):
            row.append(ec.add(row[-1], base))
        table.append(row)
        base = ec.add(row[-1], base)
    return table


def _fixed_base_mul(curve, table, k):
    mask = (1 << WINDOW_BITS) - 1
    acc = None
    for row in table:
        d = k & mask
        if d:
            acc = row[d - 1] if acc is None else ec.add(acc, row[d - 1])
        k >>= WINDOW_BITS
    return None if acc is None else curve._affine(acc)
