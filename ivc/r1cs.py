"""
R1CS 형태(shape)와 인스턴스
============================

**R1CS (Rank-1 Constraint System)**:
  행렬 A, B, C 와 벡터 z = [1, x, W] 에 대해

    Az ∘ Bz = Cz          (∘ : 원소별 곱)

**Relaxed R1CS** (Nova):
  두 인스턴스를 하나로 접기(fold) 위해 스칼라 u 와 오차 벡터 E 를 추가한다.

    Az ∘ Bz = u·Cz + E,    z = [u, x, W]

  일반 R1CS 인스턴스는 u = 1, E = 0 인 특수한 경우이다.

**인스턴스 / witness 분리**:
  - 인스턴스 (검증자가 보는 것): 커밋먼트 comm_W, comm_E, 그리고 u, x
  - witness (증명자만 아는 것): W, E 벡터 자체

모든 값은 불변(frozen) dataclass 이며, 폴딩 때마다 새 값으로 교체된다.
"""

from dataclasses import dataclass

from ivc.field import FR, to_field, zeros


@dataclass(frozen=True)
class R1CSShape:
    """증강 회로의 행렬 구조.

    Attributes:
        num_constraints: 제약(행) 수
        num_io: 공개 입력 수
        num_vars: witness 변수 수
        A, B, C: 행마다 ((열, 계수), ...) 튜플
        field: 계수와 witness 가 속한 체 (증강 회로는 FR, CycleFold 회로는 FQ)
    """
    num_constraints: int
    num_io: int
    num_vars: int
    A: tuple
    B: tuple
    C: tuple
    field: type = FR

    def multiply_vec(self, z):
        """(Az, Bz, Cz) 를 계산한다."""
        if len(z) != 1 + self.num_io + self.num_vars:
            raise ValueError(
                f"z has length {len(z)}, expected {1 + self.num_io + self.num_vars}"
            )

        def mv(M):
            return [sum((coeff * z[col] for col, coeff in row), self.field(0)) for row in M]

        return mv(self.A), mv(self.B), mv(self.C)

    def _z(self, u, x, W):
        return [u] + list(x) + list(W)

    def has_dimensions(self, x, W, E=None):
        if len(x) != self.num_io or len(W) != self.num_vars:
            return False
        return E is None or len(E) == self.num_constraints

    def is_satisfied(self, U, W):
        """일반 R1CS: Az ∘ Bz == Cz (z = [1, x, W])."""
        if not self.has_dimensions(U.x, W.W):
            return False
        Az, Bz, Cz = self.multiply_vec(self._z(self.field(1), U.x, W.W))
        return all(a * b == c for a, b, c in zip(Az, Bz, Cz))

    def is_relaxed_satisfied(self, U, W):
        """Relaxed R1CS: Az ∘ Bz == u·Cz + E (z = [u, x, W])."""
        if not self.has_dimensions(U.x, W.W, W.E):
            return False
        Az, Bz, Cz = self.multiply_vec(self._z(U.u, U.x, W.W))
        return all(a * b == U.u * c + e for a, b, c, e in zip(Az, Bz, Cz, W.E))


# ─────────────────────────────────────────────────────────────────────
# 일반(strict) 인스턴스
# ─────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class R1CSInstance:
    comm_W: object
    x: tuple

    @classmethod
    def default(cls, shape):
        return cls(None, zeros(shape.num_io, shape.field))


@dataclass(frozen=True)
class R1CSWitness:
    W: tuple

    @classmethod
    def default(cls, shape):
        return cls(zeros(shape.num_vars, shape.field))


# ─────────────────────────────────────────────────────────────────────
# Relaxed 인스턴스
# ─────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class RelaxedR1CSInstance:
    """(comm_W, comm_E, u, x)"""
    comm_W: object
    comm_E: object
    u: FR
    x: tuple

    @classmethod
    def default(cls, shape):
        """모든 값이 0인 자명한 인스턴스 (0 = 0·Cz + 0)."""
        return cls(None, None, shape.field(0), zeros(shape.num_io, shape.field))

    @classmethod
    def from_r1cs_instance(cls, instance, field=FR):
        return cls(instance.comm_W, None, field(1), tuple(to_field(field, v) for v in instance.x))


@dataclass(frozen=True)
class RelaxedR1CSWitness:
    """(W, E)"""
    W: tuple
    E: tuple

    @classmethod
    def default(cls, shape):
        return cls(zeros(shape.num_vars, shape.field), zeros(shape.num_constraints, shape.field))

    @classmethod
    def from_r1cs_witness(cls, shape, witness):
        return cls(tuple(witness.W), zeros(shape.num_constraints, shape.field))
