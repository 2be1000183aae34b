"""
IVC 기반 모듈: 타원곡선 사이클(Curve Cycle)
===========================================

폴딩 IVC는 두 개의 타원곡선을 짝지어 사용한다.

**BN254 (primary)**:
  y² = x³ + 3, 기저체 Fq, 스칼라 필드 FR.
  witness / error 벡터의 커밋먼트는 이 곡선 위의 점이다.

**Grumpkin (secondary)**:
  y² = x³ - 17, 기저체 FR, 스칼라 필드 Fq.
  좌표가 FR 원소이므로 증강 회로(FR 위의 회로)가 이 곡선의 점 연산을 직접 계산할 수 있다.
  CycleFold 인스턴스(FQ 위의 회로)의 witness 커밋먼트가 이 곡선 위의 점이다.

점 표현:
  - 외부에 노출되는 점은 아핀 좌표 튜플 (x, y) 이고, 무한원점은 None 이다.
  - 내부 연산은 py_ecc.optimized_bn128 의 사영(projective) 좌표 함수
    (add, double, multiply, normalize)를 그대로 사용한다.
    이 함수들은 좌표 체 클래스의 one()/zero()만 사용하므로
    Grumpkin(좌표 체 = FR)에도 그대로 적용된다.
"""

import hashlib
from dataclasses import dataclass

from py_ecc import optimized_bn128 as ec

from ivc.field import FQ, FR, sqrt_mod


# ─────────────────────────────────────────────────────────────────────
# 곡선 정의
# ─────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CurveSpec:
    """y² = x³ + b 형태의 짧은 바이어슈트라스 곡선.

    Attributes:
        name: 곡선 이름 ("bn254", "grumpkin")
        base_field: 좌표 체 클래스 (py_ecc FQ 계열)
        scalar_field: 스칼라 체 클래스. 위수가 곧 군의 위수이다 (cofactor 1)
        b: 곡선 상수
        generator: 아핀 생성원 (정수 좌표)
    """
    name: str
    base_field: type
    scalar_field: type
    b: int
    generator: tuple

    @property
    def base_modulus(self):
        return self.base_field.field_modulus

    @property
    def scalar_modulus(self):
        return self.scalar_field.field_modulus

    @property
    def b3(self):
        """완전 덧셈 공식의 상수 3·b (좌표 체에서)."""
        return 3 * self.b % self.base_modulus

    # ── 점 변환 ──────────────────────────────────────────────────

    def point(self, x, y):
        """정수 좌표로 곡선 위의 아핀 점을 만든다."""
        p = (self.base_field(x), self.base_field(y))
        if not self.is_on_curve(p):
            raise ValueError(f"point ({x}, {y}) is not on {self.name}")
        return p

    def to_ints(self, p):
        """아핀 점 → (int, int), 무한원점은 None."""
        if p is None:
            return None
        return (int(p[0]), int(p[1]))

    def is_on_curve(self, p):
        if p is None:
            return True
        x, y = p
        return y * y - x * x * x == self.base_field(self.b)

    @property
    def g(self):
        return self.point(*self.generator)

    def _projective(self, p):
        one = self.base_field.one()
        if p is None:
            return (one, one, self.base_field.zero())
        return (p[0], p[1], one)

    def _affine(self, pt):
        if ec.is_inf(pt):
            return None
        return ec.normalize(pt)

    # ── 군 연산 ──────────────────────────────────────────────────

    def add(self, p, q):
        if p is None:
            return q
        if q is None:
            return p
        return self._affine(ec.add(self._projective(p), self._projective(q)))

    def neg(self, p):
        if p is None:
            return None
        return (p[0], -p[1])

    def mul(self, p, k):
        k = int(k) % self.scalar_modulus
        if p is None or k == 0:
            return None
        return self._affine(ec.multiply(self._projective(p), k))

    def msm(self, points, scalars):
        """다중 스칼라 곱 Σ scalars[i]·points[i] (Pippenger 버킷 방식).

        스칼라를 c비트 윈도우로 나누고, 윈도우마다 같은 자릿값을 가진 점들을
        버킷에 모은 뒤 누적합(running sum)으로 Σ d·bucket[d]를 계산한다.
        0 스칼라와 무한원점은 건너뛴다.
        """
        pairs = []
        for p, s in zip(points, scalars):
            s = int(s) % self.scalar_modulus
            if s and p is not None:
                pairs.append((self._projective(p), s))
        if not pairs:
            return None

        if len(pairs) < 8:
            acc = None
            for p, s in pairs:
                term = ec.multiply(p, s)
                acc = term if acc is None else ec.add(acc, term)
            return self._affine(acc)

        c = _window_size(len(pairs))
        num_bits = max(s.bit_length() for _, s in pairs)
        mask = (1 << c) - 1

        result = None
        for shift in reversed(range(0, num_bits, c)):
            if result is not None:
                for _ in range(c):
                    result = ec.double(result)

            buckets = [None] * mask
            for p, s in pairs:
                d = (s >> shift) & mask
                if d:
                    b = buckets[d - 1]
                    buckets[d - 1] = p if b is None else ec.add(b, p)

            running, window = None, None
            for b in reversed(buckets):
                if b is not None:
                    running = b if running is None else ec.add(running, b)
                if running is not None:
                    window = running if window is None else ec.add(window, running)

            if window is not None:
                result = window if result is None else ec.add(result, window)

        return None if result is None else self._affine(result)

    # ── 해시 → 곡선 ─────────────────────────────────────────────

    def hash_to_curve(self, label, index):
        """label과 index로부터 결정적으로 곡선 위의 점을 만든다 (try-and-increment).

        sha256(label:index:counter) mod p 를 x 후보로 삼아 x³ + b 가
        이차잉여가 될 때까지 counter를 증가시킨다. 두 제곱근 중 작은 값을 y로 쓴다.
        이렇게 만든 생성원들 사이의 이산로그는 아무도 모른다.
        """
        p = self.base_modulus
        counter = 0
        while True:
            data = f"{self.name}:{label}:{index}:{counter}".encode()
            x = int.from_bytes(hashlib.sha256(data).digest(), "big") % p
            y = sqrt_mod(x * x * x + self.b, p)
            if y is not None and y != 0:
                return self.point(x, min(y, p - y))
            counter += 1


def _window_size(n):
    """MSM 윈도우 비트 수. 점 개수에 따라 대략 log(n)에 비례하게 고른다."""
    return max(3, min(12, (n.bit_length() * 2) // 3))


# ─────────────────────────────────────────────────────────────────────
# BN254 / Grumpkin
# ─────────────────────────────────────────────────────────────────────

BN254 = CurveSpec(
    name="bn254",
    base_field=FQ,
    scalar_field=FR,
    b=3,
    generator=(1, 2),
)

GRUMPKIN = CurveSpec(
    name="grumpkin",
    base_field=FR,
    scalar_field=FQ,
    b=FR.field_modulus - 17,
    generator=(1, 17631683881184975370165255887551781615748388533673675138860),
)

CURVES = {BN254.name: BN254, GRUMPKIN.name: GRUMPKIN}


@dataclass(frozen=True)
class CurveCycle:
    """(primary, secondary) 곡선 쌍.

    primary의 스칼라 필드 = secondary의 기저체,
    primary의 기저체 = secondary의 스칼라 필드 를 만족해야 한다.
    """
    primary: CurveSpec
    secondary: CurveSpec

    def __post_init__(self):
        if self.primary.scalar_modulus != self.secondary.base_modulus:
            raise ValueError(
                f"{self.primary.name} scalar field does not match "
                f"{self.secondary.name} base field"
            )
        if self.primary.base_modulus != self.secondary.scalar_modulus:
            raise ValueError(
                f"{self.primary.name} base field does not match "
                f"{self.secondary.name} scalar field"
            )

    @property
    def name(self):
        return f"{self.primary.name}/{self.secondary.name}"


DEFAULT_CYCLE = CurveCycle(BN254, GRUMPKIN)
