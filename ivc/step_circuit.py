"""
Step 회로 (Step Circuit)
=========================

IVC가 반복 적용하는 함수 F: z_{i+1} = F(z_i, aux_i).

step 회로는 다음 두 메서드만 있으면 된다 (상속 불필요):

    arity()                     -> 상태 벡터 길이
    synthesize(cs, z, aux=None) -> 다음 상태 변수 리스트

synthesize 는 z (변수 리스트)와 보조 입력 aux 를 받아
제약을 추가하고 z_{i+1} 변수들을 반환한다.
aux 가 관계를 만족시킬 수 없으면 SynthesisError 를 발생시킨다.

**제약 구조는 값과 무관해야 한다**: 같은 회로는 어떤 z, aux 에 대해서도
같은 수의 변수와 제약을 만들어야 모든 스텝이 하나의 R1CS 형태를 공유한다.

  | 회로                   | arity | F                         |
  |------------------------|-------|---------------------------|
  | IdentityCircuit        | n     | z → z                     |
  | SquaringCircuit(k)     | 1     | x → x^(2^k)               |
  | CubicCircuit           | 1     | x → x³ + x + 5            |
  | FibonacciCircuit       | 2     | (a, b) → (b, a + b)       |
  | BoundedAdditionCircuit | 1     | x → x + aux, aux < 2^bits |
"""

from typing import Protocol

from ivc.constraint_system import ConstraintSystem
from ivc.errors import SynthesisError
from ivc.field import FR
from ivc.gadgets import alloc_bits, mul


class StepCircuit(Protocol):
    def arity(self) -> int:
        ...

    def synthesize(self, cs, z, aux=None) -> list:
        ...


# ─────────────────────────────────────────────────────────────────────
# 예제 step 회로
# ─────────────────────────────────────────────────────────────────────

class IdentityCircuit:
    """F(z) = z. 제약이 없는 가장 단순한 회로."""

    def __init__(self, arity=1):
        self._arity = arity

    def arity(self):
        return self._arity

    def synthesize(self, cs, z, aux=None):
        return list(z)


class SquaringCircuit:
    """x 를 num_constraints 번 제곱한다 (제약 수 조절용 벤치마크 회로)."""

    def __init__(self, num_constraints=1):
        self.num_constraints = num_constraints

    def arity(self):
        return 1

    def synthesize(self, cs, z, aux=None):
        x = z[0]
        for _ in range(self.num_constraints):
            x = mul(cs, x, x)
        return [x]


class CubicCircuit:
    """F(x) = x³ + x + 5

    | 제약 | 의미              |
    |------|-------------------|
    | 0    | x · x = x²        |
    | 1    | x² · x = x³       |
    | 2    | (x³ + x + 5)·1 = y |
    """

    def arity(self):
        return 1

    def synthesize(self, cs, z, aux=None):
        x = z[0]
        x2 = mul(cs, x, x)
        x3 = mul(cs, x2, x)
        y = cs.alloc(cs.value(x3) + cs.value(x) + FR(5))
        cs.enforce(x3 + x + 5, ConstraintSystem.one, y)
        return [y]


class FibonacciCircuit:
    """F(a, b) = (b, a + b)"""

    def arity(self):
        return 2

    def synthesize(self, cs, z, aux=None):
        a, b = z
        c = cs.alloc(cs.value(a) + cs.value(b))
        cs.enforce(a + b, ConstraintSystem.one, c)
        return [b, c]


class BoundedAdditionCircuit:
    """F(x, aux) = x + aux, 단 0 ≤ aux < 2^num_bits.

    aux 는 스텝마다 증명자가 고르는 비공개 입력이며, 생략하면 0 이다.
    범위를 벗어난 aux 는 SynthesisError 로 거부된다.
    """

    def __init__(self, num_bits=8):
        self.num_bits = num_bits

    def arity(self):
        return 1

    def synthesize(self, cs, z, aux=None):
        delta = cs.alloc(0 if aux is None else aux)
        alloc_bits(cs, delta, self.num_bits)
        out = cs.alloc(cs.value(z[0]) + cs.value(delta))
        cs.enforce(z[0] + delta, ConstraintSystem.one, out)
        return [out]


CIRCUITS = {
    "identity": IdentityCircuit,
    "squaring": SquaringCircuit,
    "cubic": CubicCircuit,
    "fibonacci": FibonacciCircuit,
    "bounded_addition": BoundedAdditionCircuit,
}


def evaluate(step_circuit, z, aux=None):
    """step 회로를 단독으로 합성하여 F(z, aux) 를 계산한다.

    Returns:
        list[FR]: 다음 상태

    Raises:
        SynthesisError: 출력 길이가 arity 와 다르거나 제약이 만족되지 않을 때
    """
    cs = ConstraintSystem()
    z_vars = [cs.alloc(v) for v in z]
    out = step_circuit.synthesize(cs, z_vars, aux)
    if len(out) != step_circuit.arity():
        raise SynthesisError(
            f"step circuit returned {len(out)} outputs, arity is {step_circuit.arity()}"
        )
    row = cs.which_is_unsatisfied()
    if row is not None:
        raise SynthesisError(f"step circuit constraint {row} is not satisfied")
    return [cs.value(v) for v in out]
