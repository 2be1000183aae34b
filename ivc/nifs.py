"""
NIFS: 비대화형 폴딩 스킴 (Non-Interactive Folding Scheme)
===========================================================

누적 Relaxed R1CS 인스턴스 (U₁, W₁) 와 새 인스턴스 (U₂, W₂) 를
같은 형태의 인스턴스 하나로 접는다.

**교차항 (cross term)**:
  z = z₁ + r·z₂ 를 대입하면

    Az∘Bz = (Az₁∘Bz₁) + r·T + r²·(Az₂∘Bz₂)
    T = Az₁∘Bz₂ + Az₂∘Bz₁ − u₁·Cz₂ − u₂·Cz₁

  이므로 E' = E₁ + r·T + r²·E₂ 로 두면 Relaxed 관계가 유지된다.

**폴딩 결과**:
  u'      = u₁ + r·u₂
  x'      = x₁ + r·x₂
  W'      = W₁ + r·W₂
  E'      = E₁ + r·T + r²·E₂
  comm_W' = comm_W₁ + r·comm_W₂
  comm_E' = comm_E₁ + r·comm_T + r²·comm_E₂

**Fiat-Shamir**:
  챌린지 r 은 반드시 comm_T 를 흡수한 뒤에 추출해야 한다.
  (T 를 보기 전에 r 을 알면 증명자가 E 를 조작할 수 있다.)
  무엇을 어떤 순서로 흡수할지는 호출자가 challenge(comm_T) 콜백으로 정한다.

**체**:
  증강 회로 인스턴스는 FR, CycleFold 인스턴스는 FQ 위에서 접힌다.
  스칼라는 shape.field (witness 쪽) 또는 커밋먼트 곡선의 스칼라 체 (인스턴스 쪽) 로 계산한다.
"""

from ivc.commitment import commit
from ivc.field import to_field, zeros
from ivc.r1cs import RelaxedR1CSInstance, RelaxedR1CSWitness


def _relaxed(U, W, field):
    if isinstance(U, RelaxedR1CSInstance):
        return U, W
    U = RelaxedR1CSInstance.from_r1cs_instance(U, field)
    if W is None:
        return U, None
    return U, RelaxedR1CSWitness(tuple(W.W), ())


def compute_cross_term(shape, U1, W1, U2, W2):
    """T = Az₁∘Bz₂ + Az₂∘Bz₁ − u₁·Cz₂ − u₂·Cz₁"""
    U1, W1 = _relaxed(U1, W1, shape.field)
    U2, W2 = _relaxed(U2, W2, shape.field)
    Az1, Bz1, Cz1 = shape.multiply_vec([U1.u] + list(U1.x) + list(W1.W))
    Az2, Bz2, Cz2 = shape.multiply_vec([U2.u] + list(U2.x) + list(W2.W))
    return tuple(
        a1 * b2 + a2 * b1 - U1.u * c2 - U2.u * c1
        for a1, b1, c1, a2, b2, c2 in zip(Az1, Bz1, Cz1, Az2, Bz2, Cz2)
    )


def fold_instances(curve, U1, U2, comm_T, r):
    """인스턴스(검증자 쪽) 폴딩. 스칼라는 curve 의 스칼라 체 원소이다."""
    field = curve.scalar_field
    U1, _ = _relaxed(U1, None, field)
    U2, _ = _relaxed(U2, None, field)
    r = to_field(field, r)
    r2 = r * r
    comm_E = curve.add(U1.comm_E, curve.mul(comm_T, r))
    comm_E = curve.add(comm_E, curve.mul(U2.comm_E, r2))
    return RelaxedR1CSInstance(
        comm_W=curve.add(U1.comm_W, curve.mul(U2.comm_W, r)),
        comm_E=comm_E,
        u=U1.u + r * U2.u,
        x=tuple(a + r * b for a, b in zip(U1.x, U2.x)),
    )


def fold_witnesses(field, W1, W2, T, r):
    """witness(증명자 쪽) 폴딩. 일반 R1CS witness 는 E₂ = 0 으로 본다."""
    r = to_field(field, r)
    r2 = r * r
    E2 = getattr(W2, "E", None) or zeros(len(T), field)
    return RelaxedR1CSWitness(
        W=tuple(a + r * b for a, b in zip(W1.W, W2.W)),
        E=tuple(e1 + r * t + r2 * e2 for e1, t, e2 in zip(W1.E, T, E2)),
    )


def fold(shape, ck, U1, W1, U2, W2, challenge):
    """주어진 챌린지로 (U₁, W₁) 과 (U₂, W₂) 를 접는다.

    Returns:
        (U', W', comm_T)

    Raises:
        CommitmentError: T 가 커밋먼트 키보다 길 때
    """
    T = compute_cross_term(shape, U1, W1, U2, W2)
    comm_T = commit(ck, T)
    U = fold_instances(ck.curve, U1, U2, comm_T, challenge)
    W = fold_witnesses(shape.field, W1, W2, T, challenge)
    return U, W, comm_T


class NIFS:
    """Fiat-Shamir 로 챌린지를 정하는 폴딩.

    challenge(comm_T) 는 comm_T 를 트랜스크립트에 흡수하고 챌린지 r 을 돌려주는 함수이다.
    증명자와 검증자가 같은 트랜스크립트 상태에서 같은 함수를 쓰면 같은 r 이 나온다.
    """

    @staticmethod
    def prove(shape, ck, U1, W1, u2, w2, challenge):
        """(U₁, W₁) 과 새 인스턴스 (u₂, w₂) 를 접는다.

        Returns:
            (U', W', comm_T, r)
        """
        T = compute_cross_term(shape, U1, W1, u2, w2)
        comm_T = commit(ck, T)
        r = challenge(comm_T)
        U = fold_instances(ck.curve, U1, u2, comm_T, r)
        W = fold_witnesses(shape.field, W1, w2, T, r)
        return U, W, comm_T, r

    @staticmethod
    def verify(ck, U1, u2, comm_T, challenge):
        """검증자 쪽: 같은 트랜스크립트로 r 을 다시 만들고 인스턴스만 접는다.

        Returns:
            (U', r)
        """
        r = challenge(comm_T)
        return fold_instances(ck.curve, U1, u2, comm_T, r), r
