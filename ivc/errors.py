"""
IVC 오류 계층
==============

    IVCError
    ├── CommitmentError          (커밋먼트 계층)
    ├── SynthesisError           (회로 합성 계층)
    ├── SetupError
    │   ├── ShapeMismatchError
    │   └── CommitmentKeygenError
    ├── ProveError
    │   ├── RelationUnsatisfiedError   (재시도 가능)
    │   ├── CircuitMismatchError
    │   ├── CommitmentFailureError
    │   └── StepOverflowError
    └── VerifyError
        ├── StepCountMismatchError
        ├── InstanceUnsatisfiedError
        └── TranscriptMismatchError

하위 계층의 CommitmentError / SynthesisError는 prover에서
`raise ... from exc` 로 감싸져 스텝 번호와 함께 다시 발생한다.
"""


class IVCError(Exception):
    """모든 IVC 오류의 최상위 클래스.

    Attributes:
        step: 오류가 발생한 스텝 번호 (알 수 없으면 None)
        retryable: 같은 누적기로 다시 시도할 수 있는지 여부
    """

    retryable = False

    def __init__(self, message, step=None):
        super().__init__(message)
        self.message = message
        self.step = step

    def __str__(self):
        if self.step is None:
            return self.message
        return f"step {self.step}: {self.message}"


class CommitmentError(IVCError):
    """벡터가 커밋먼트 키보다 길거나 키 생성에 실패했을 때."""


class SynthesisError(IVCError):
    """step 회로가 주어진 witness로 관계를 만족시키지 못할 때."""


# ── setup ───────────────────────────────────────────────────────────

class SetupError(IVCError):
    pass


class ShapeMismatchError(SetupError):
    """step 회로의 arity가 0 이하이거나 출력 길이가 arity와 다를 때."""


class CommitmentKeygenError(SetupError):
    pass


# ── prove ───────────────────────────────────────────────────────────

class ProveError(IVCError):
    pass


class RelationUnsatisfiedError(ProveError):
    """step 함수가 현재 상태/보조 입력으로 만족되지 않음. 다른 aux로 재시도 가능."""

    retryable = True


class CircuitMismatchError(ProveError):
    """증명 시점의 step 회로 arity 나 합성된 회로 모양이 공개 파라미터와 다를 때."""


class CommitmentFailureError(ProveError):
    pass


class StepOverflowError(ProveError):
    pass


# ── verify ──────────────────────────────────────────────────────────

class VerifyError(IVCError):
    pass


class StepCountMismatchError(VerifyError):
    pass


class InstanceUnsatisfiedError(VerifyError):
    pass


class TranscriptMismatchError(VerifyError):
    pass
