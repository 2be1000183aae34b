"""
IVC 기반 모듈: 유한체(Finite Field)
=====================================

폴딩(folding) 기반 IVC 전체에서 사용되는 두 개의 소수체를 정의한다.

**유한체 FR**:
  bn128(BN254) 타원곡선의 스칼라 필드. 증강 회로(augmented circuit)의
  모든 제약, witness, 폴딩 챌린지가 이 체 위에서 계산된다.
  - 위수 r ≈ 2^254
  - Grumpkin 곡선의 **기저체(base field)** 이기도 하다

**유한체 Fq**:
  BN254의 기저체 (좌표 체). Grumpkin 곡선의 **스칼라 필드** 이다.
  커밋먼트 폴딩을 증명하는 CycleFold 회로가 이 체 위에서 합성된다.

  r = |BN254|  = Grumpkin 기저체
  q = |Grumpkin| = BN254 기저체

  이 "곡선 사이클(curve cycle)" 관계 덕분에 한 곡선의 점 좌표를
  다른 곡선의 스칼라로 그대로 사용할 수 있다.

사용 예시:
    >>> from ivc.field import FR
    >>> a = FR(3)
    >>> b = FR(7)
    >>> c = a * b        # FR(21)
"""

from py_ecc.fields import bn128_FQ
from py_ecc import optimized_bn128 as bn128


# ─────────────────────────────────────────────────────────────────────
# 유한체(Finite Field) FR
# ─────────────────────────────────────────────────────────────────────

class FR(bn128_FQ):
    """bn128 스칼라 필드 위의 유한체 원소.

    py_ecc의 bn128_FQ 클래스를 상속하여 +, -, *, /, ** 등의 필드 연산을 제공한다.
    Grumpkin 곡선의 좌표 체로도 그대로 사용된다.

    예시:
        >>> x = FR(3)
        >>> x * x          # FR(9)
        >>> FR(1) / FR(3)   # 3의 모듈러 역원
    """
    field_modulus = bn128.curve_order


# BN254 기저체 Fq (= Grumpkin 스칼라 필드). BN254 점 좌표와 같은 클래스이다.
FQ = bn128.FQ


# 스칼라 필드 위수 r (= Grumpkin 기저체)
CURVE_ORDER = bn128.curve_order

# BN254 기저체 위수 q (= Grumpkin 스칼라 필드)
FIELD_MODULUS = bn128.field_modulus


def to_fr(value):
    """정수 또는 FR 값을 FR 원소로 변환한다."""
    if isinstance(value, FR):
        return value
    return FR(int(value) % CURVE_ORDER)


def fr_vector(values):
    """값 리스트를 FR 원소 튜플로 변환한다."""
    return tuple(to_fr(v) for v in values)


def zeros(n, field=FR):
    """길이 n의 0 튜플."""
    return (field(0),) * n


def to_field(field, value):
    """정수 또는 체 원소를 field 원소로 변환한다. 다른 체의 원소는 정수 값으로 옮긴다."""
    if type(value) is field:
        return value
    return field(int(value) % field.field_modulus)


# ─────────────────────────────────────────────────────────────────────
# 제곱근 (Tonelli–Shanks)
# ─────────────────────────────────────────────────────────────────────

def sqrt_mod(a, p):
    """소수 p에 대해 a의 모듈러 제곱근을 반환한다.

    p ≡ 3 (mod 4)이면 a^((p+1)/4)로 바로 계산하고,
    그렇지 않으면 (예: r - 1 = 2^28·m 인 FR) Tonelli–Shanks를 사용한다.

    Args:
        a: 정수
        p: 홀수 소수

    Returns:
        int 또는 None: a가 이차잉여가 아니면 None
    """
    a %= p
    if a == 0:
        return 0
    if pow(a, (p - 1) // 2, p) != 1:
        return None
    if p % 4 == 3:
        return pow(a, (p + 1) // 4, p)

    # p - 1 = q · 2^s (q 홀수)
    q, s = p - 1, 0
    while q % 2 == 0:
        q //= 2
        s += 1

    # 이차비잉여 z 탐색
    z = 2
    while pow(z, (p - 1) // 2, p) != p - 1:
        z += 1

    m = s
    c = pow(z, q, p)
    t = pow(a, q, p)
    root = pow(a, (q + 1) // 2, p)
    while t != 1:
        i, t2 = 0, t
        while t2 != 1:
            t2 = t2 * t2 % p
            i += 1
        b = pow(c, 1 << (m - i - 1), p)
        m = i
        c = b * b % p
        t = t * c % p
        root = root * b % p
    return root
