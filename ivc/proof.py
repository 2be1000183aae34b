"""
IVC 누적기 (IVCProof)
======================

체인의 모든 상태를 담는 상수 크기 값.

  | 필드 | 의미                                      |
  |------|-------------------------------------------|
  | z0   | 초기 상태                                 |
  | zi   | 현재 상태                                 |
  | i    | 지금까지 적용한 스텝 수                   |
  | U, W | 누적(running) Relaxed R1CS 인스턴스/witness |
  | u, w | 마지막 스텝의 R1CS 인스턴스/witness        |
  | U_sec, W_sec | CycleFold 누적 인스턴스/witness (Fq) |

**상태 기계**:
  Base (i = 0, 인스턴스 없음) ──prove_step──▶ Stepped(1) ──prove_step──▶ Stepped(2) ...

누적기는 불변 값이다. prove_step 은 새 누적기를 반환하고 원래 값은 그대로 남으므로,
실패한 스텝은 이전 누적기로 다시 시도할 수 있다.

사용 예시 (항등 회로, z0 = [2]):
    >>> proof = IVCProof.new([FR(2)])
    >>> for _ in range(3):
    ...     proof = proof.prove_step(pp, IdentityCircuit())
    >>> proof.verify_steps(pp, 3)
    >>> [int(v) for v in proof.zi]
    [2]
"""

from dataclasses import dataclass
from typing import Optional

from ivc import prover, verifier
from ivc.field import fr_vector
from ivc.r1cs import R1CSInstance, R1CSWitness, RelaxedR1CSInstance, RelaxedR1CSWitness


@dataclass(frozen=True)
class IVCProof:
    z0: tuple
    zi: tuple
    i: int = 0
    U: Optional[RelaxedR1CSInstance] = None
    W: Optional[RelaxedR1CSWitness] = None
    u: Optional[R1CSInstance] = None
    w: Optional[R1CSWitness] = None
    U_sec: Optional[RelaxedR1CSInstance] = None
    W_sec: Optional[RelaxedR1CSWitness] = None

    @classmethod
    def new(cls, z0):
        """초기 상태 z0 에서 시작하는 Base 누적기."""
        z0 = fr_vector(z0)
        if not z0:
            raise ValueError("initial state must not be empty")
        return cls(z0=z0, zi=z0)

    @property
    def is_base(self):
        return self.i == 0

    @property
    def num_steps(self):
        return self.i

    def prove_step(self, pp, step_circuit, aux=None):
        """F 를 한 번 더 적용한 새 누적기를 반환한다."""
        zi, U, W, u, w, U_sec, W_sec = prover.prove_step(pp, step_circuit, self, aux)
        return IVCProof(z0=self.z0, zi=zi, i=self.i + 1, U=U, W=W, u=u, w=w,
                        U_sec=U_sec, W_sec=W_sec)

    def verify_steps(self, pp, claimed_steps):
        """claimed_steps 번의 올바른 스텝인지 검증한다. 실패하면 VerifyError."""
        verifier.verify_steps(pp, self, claimed_steps)
