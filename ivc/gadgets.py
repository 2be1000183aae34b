"""
재사용 가능한 회로 가젯 (Gadgets)
==================================

증강 회로, CycleFold 회로, step 회로가 공유하는 작은 부품들.
각 가젯은 witness 값을 먼저 계산해 할당하고, 그 값을 강제하는 제약을 추가한다.
값은 cs.field 위에서 계산되므로 FR 회로와 FQ 회로 모두에서 쓸 수 있다.

  | 가젯                 | 제약 수 | 의미                       |
  |----------------------|---------|----------------------------|
  | mul                  | 1       | out = a · b                |
  | is_zero              | 2       | out = (x == 0 ? 1 : 0)     |
  | conditionally_select | 1       | out = bit ? a : b          |
  | enforce_equal        | 1       | a == b                     |
  | alloc_bits           | n + 1   | x = Σ bᵢ·2ⁱ, bᵢ ∈ {0, 1}  |
  | alloc_bits_strict    | ≈ 2n    | 위 + Σ bᵢ·2ⁱ < 체의 위수   |

**타원곡선 가젯** (y² = x³ + b, 좌표가 회로의 체 위에 있는 곡선):

  | 가젯              | 제약 수 | 의미                                  |
  |-------------------|---------|---------------------------------------|
  | alloc_point       | 7       | 아핀 (x, y) → 사영 좌표, 곡선 위 검사 |
  | point_add         | 12      | 완전(complete) 덧셈                   |
  | scalar_mul        | 27 / 비트 | 비트열 스칼라 곱 (double-and-add)   |
  | normalize         | 5       | 사영 → 아핀, 무한원점은 (0, 0)        |

점은 사영 좌표 (X : Y : Z) 의 선형결합 튜플이다. 무한원점은 (0 : 1 : 0).
"""

from ivc.constraint_system import ConstraintSystem, LinearCombination
from ivc.errors import SynthesisError


def mul(cs, a, b):
    """out = a · b"""
    out = cs.alloc(cs.value(a) * cs.value(b))
    cs.enforce(a, b, out)
    return out


def is_zero(cs, x):
    """x == 0 이면 1, 아니면 0 인 비트 변수를 반환한다.

    보조 변수 inv (x ≠ 0 이면 1/x, 아니면 0)를 사용하여

        x · inv = 1 - out
        x · out = 0

    x ≠ 0 이면 두 번째 식에서 out = 0, 첫 번째 식이 inv = 1/x 를 강제한다.
    x = 0 이면 첫 번째 식에서 out = 1.
    """
    v = cs.value(x)
    if v == 0:
        inv, bit = 0, 1
    else:
        inv, bit = cs.field(1) / v, 0
    inv_var = cs.alloc(inv)
    out = cs.alloc(bit)
    cs.enforce(x, inv_var, ConstraintSystem.one - out)
    cs.enforce(x, out, LinearCombination())
    return out


def conditionally_select(cs, bit, a, b):
    """bit ? a : b

    out - b = bit · (a - b)
    """
    a = LinearCombination.of(a)
    b = LinearCombination.of(b)
    if cs.value(bit) == 1:
        out = cs.alloc(cs.value(a))
    else:
        out = cs.alloc(cs.value(b))
    cs.enforce(bit, a - b, out - b)
    return out


def enforce_equal(cs, a, b):
    """a == b"""
    cs.enforce(LinearCombination.of(a) - b, ConstraintSystem.one, LinearCombination())


def alloc_bits(cs, x, num_bits):
    """x 를 num_bits 비트로 분해하여 범위 검사를 한다.

    Raises:
        SynthesisError: x 가 [0, 2^num_bits) 범위를 벗어날 때
    """
    n = int(cs.value(x))
    if n >= 1 << num_bits:
        raise SynthesisError(f"value {n} does not fit in {num_bits} bits")

    bits = []
    recomposed = LinearCombination()
    for i in range(num_bits):
        b = cs.alloc((n >> i) & 1)
        # b · (1 - b) = 0
        cs.enforce(b, ConstraintSystem.one - b, LinearCombination())
        recomposed = recomposed + b * (1 << i)
        bits.append(b)
    enforce_equal(cs, recomposed, x)
    return bits


def alloc_bits_strict(cs, x):
    """x 를 체의 비트 길이만큼 분해하고, 비트열의 정수 값이 위수보다 작음을 강제한다.

    비트 길이가 같으면 x 와 x + p 가 둘 다 표현될 수 있으므로
    위에서부터 p - 1 의 비트와 비교한다. eq 는 "지금까지 상위 비트가 모두 p - 1 과 같음".

        p - 1 의 비트가 1:  eq' = eq · bᵢ
        p - 1 의 비트가 0:  eq · bᵢ = 0

    Returns:
        list: 하위 비트부터의 비트 변수 (체의 비트 길이 개)
    """
    bound = cs.field.field_modulus - 1
    bits = alloc_bits(cs, x, bound.bit_length())
    eq = None
    for i in reversed(range(len(bits))):
        if (bound >> i) & 1:
            eq = bits[i] if eq is None else mul(cs, eq, bits[i])
        elif eq is not None:
            cs.enforce(eq, bits[i], LinearCombination())
    return bits


def recompose(bits):
    """Σ bᵢ·2ⁱ 선형결합."""
    out = LinearCombination()
    for i, b in enumerate(bits):
        out = out + b * (1 << i)
    return out


# ─────────────────────────────────────────────────────────────────────
# 타원곡선 가젯
# ─────────────────────────────────────────────────────────────────────

def identity_point():
    """무한원점 (0 : 1 : 0) 상수."""
    return (LinearCombination(), LinearCombination.of(1), LinearCombination())


def alloc_point(cs, x, y, b):
    """아핀 좌표 (x, y) 를 사영 좌표로 바꾸고 곡선 위에 있음을 강제한다.

    무한원점은 (0, 0) 으로 인코딩한다. 소수 위수 곡선에는 y = 0 인 점이 없으므로
    flag = (y == 0) 이 곧 무한원점 여부이다.

        flag · x = 0
        (y² - x³ - b) · (1 - flag) = 0
        P = (x : y + flag : 1 - flag)
    """
    flag = is_zero(cs, y)
    cs.enforce(flag, x, LinearCombination())
    y2 = mul(cs, y, y)
    x2 = mul(cs, x, x)
    x3 = mul(cs, x2, x)
    cs.enforce(y2 - x3 - b, ConstraintSystem.one - flag, LinearCombination())
    return (LinearCombination.of(x), LinearCombination.of(y) + flag,
            ConstraintSystem.one - flag)


def point_add(cs, p, q, b3):
    """완전(complete) 사영 덧셈, a = 0 인 소수 위수 곡선 (Renes–Costello–Batina, Algorithm 7).

    P = Q 이거나 어느 한쪽이 무한원점이어도 같은 식이 성립한다.
    b3 = 3·b. 곱셈 12 개.
    """
    X1, Y1, Z1 = p
    X2, Y2, Z2 = q
    p0 = mul(cs, X1, X2)
    p1 = mul(cs, Y1, Y2)
    p2 = mul(cs, Z1, Z2)
    t3 = mul(cs, X1 + Y1, X2 + Y2) - p0 - p1          # X1Y2 + X2Y1
    t4 = mul(cs, Y1 + Z1, Y2 + Z2) - p1 - p2          # Y1Z2 + Y2Z1
    s = mul(cs, X1 + Z1, X2 + Z2) - p0 - p2           # X1Z2 + X2Z1
    t0 = p0 * 3
    z = p1 + p2 * b3
    t1 = p1 - p2 * b3
    ys = s * b3
    X3 = mul(cs, t3, t1) - mul(cs, t4, ys)
    Y3 = mul(cs, t1, z) + mul(cs, ys, t0)
    Z3 = mul(cs, z, t4) + mul(cs, t0, t3)
    return (X3, Y3, Z3)


def select_point(cs, bit, p, q):
    """bit ? p : q"""
    return tuple(LinearCombination.of(conditionally_select(cs, bit, a, b)) for a, b in zip(p, q))


def scalar_mul(cs, bits, p, b3):
    """Σ bᵢ·2ⁱ · P. 상위 비트부터 double-and-add.

    Args:
        bits: 하위 비트부터의 비트 변수 리스트
    """
    acc = identity_point()
    for bit in reversed(bits):
        doubled = point_add(cs, acc, acc, b3)
        added = point_add(cs, doubled, p, b3)
        acc = select_point(cs, bit, added, doubled)
    return acc


def normalize(cs, p):
    """사영 좌표 → 아핀 (x, y). 무한원점(Z = 0)은 (0, 0).

        Z · inv = 1 - flag,  Z · flag = 0,  flag · inv = 0
        x = X · inv,  y = Y · inv
    """
    X, Y, Z = p
    z = cs.value(Z)
    if z == 0:
        inv, bit = 0, 1
    else:
        inv, bit = cs.field(1) / z, 0
    inv_var = cs.alloc(inv)
    flag = cs.alloc(bit)
    cs.enforce(Z, inv_var, ConstraintSystem.one - flag)
    cs.enforce(Z, flag, LinearCombination())
    cs.enforce(flag, inv_var, LinearCombination())
    return mul(cs, X, inv_var), mul(cs, Y, inv_var)
