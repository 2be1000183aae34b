"""
IVC 벡터 커밋먼트 스킴
======================

폴딩에 필요한 것은 **가법 동형(additively homomorphic)** 벡터 커밋먼트이다:

    commit(v₁) + r·commit(v₂) = commit(v₁ + r·v₂)

두 가지 스킴을 제공한다. 둘 다 커밋은 같은 MSM(Σ vᵢ·Gᵢ)이고,
생성원 Gᵢ를 만드는 방법만 다르다.

**KZG 스타일 (primary 기본값)**:
  Gᵢ = τⁱ·G1 (powers-of-tau SRS). 벡터를 다항식 계수로 본 v(τ)·G1.
  페어링 친화 곡선(BN254)에서만 사용한다.

**Pedersen**:
  Gᵢ = hash_to_curve(label, i). 서로의 이산로그를 아무도 모르는 생성원.
  사이클의 어느 곡선에서도 사용할 수 있다 (secondary 기본값).

**곡선 배치**:
  primary 키 (BN254): 증강 회로의 W, E, T 커밋.
  secondary 키 (Grumpkin): CycleFold 회로의 W, E, T 커밋. 좌표가 FR 원소라서
  증강 회로가 이 커밋먼트들의 폴딩을 직접 계산한다.

사용 예시:
    >>> ck = KZGCommitment.setup(8, "ivc-primary")
    >>> C = commit(ck, [FR(1), FR(2), FR(3)])
"""

from dataclasses import dataclass

from ivc.curves import BN254, GRUMPKIN, CurveSpec
from ivc.errors import CommitmentError
from ivc.srs import SRS


# 키 생성 가능한 최대 길이
MAX_KEY_SIZE = 1 << 20


@dataclass(frozen=True)
class CommitmentKey:
    """커밋먼트 키.

    Attributes:
        scheme: "kzg" 또는 "pedersen"
        curve: 생성원이 놓인 곡선
        label: 생성에 쓰인 seed/label
        generators: 아핀 생성원 튜플
    """
    scheme: str
    curve: CurveSpec
    label: str
    generators: tuple

    @property
    def size(self):
        return len(self.generators)


def _check_size(size):
    if not isinstance(size, int) or size < 1:
        raise CommitmentError(f"commitment key size must be a positive integer, got {size!r}")
    if size > MAX_KEY_SIZE:
        raise CommitmentError(f"commitment key size {size} exceeds {MAX_KEY_SIZE}")


# ─────────────────────────────────────────────────────────────────────
# 스킴
# ─────────────────────────────────────────────────────────────────────

class KZGCommitment:
    """powers-of-tau 생성원을 쓰는 벡터 커밋먼트."""

    name = "kzg"

    @staticmethod
    def setup(size, label, curve=BN254):
        _check_size(size)
        if curve.name != BN254.name:
            raise CommitmentError(f"kzg commitments need a pairing-friendly curve, got {curve.name}")
        srs = SRS.generate(max_degree=size - 1, seed=label, curve=curve)
        return CommitmentKey(KZGCommitment.name, curve, str(label), srs.g1_powers)


class PedersenCommitment:
    """hash-to-curve 생성원을 쓰는 벡터 커밋먼트."""

    name = "pedersen"

    @staticmethod
    def setup(size, label, curve=GRUMPKIN):
        _check_size(size)
        generators = tuple(curve.hash_to_curve(label, i) for i in range(size))
        return CommitmentKey(PedersenCommitment.name, curve, str(label), generators)


SCHEMES = {
    KZGCommitment.name: KZGCommitment,
    PedersenCommitment.name: PedersenCommitment,
}


def get_scheme(name):
    try:
        return SCHEMES[name]
    except KeyError:
        raise CommitmentError(f"unknown commitment scheme {name!r}") from None


# ─────────────────────────────────────────────────────────────────────
# 커밋
# ─────────────────────────────────────────────────────────────────────

def commit(key, vector):
    """C = Σᵢ vᵢ · Gᵢ

    Args:
        key: CommitmentKey
        vector: 스칼라 리스트 (FR 또는 int)

    Returns:
        아핀 점 또는 None (영벡터의 커밋먼트 = 무한원점)

    Raises:
        CommitmentError: 벡터가 키보다 길 때
    """
    if len(vector) > key.size:
        raise CommitmentError(
            f"vector of length {len(vector)} does not fit a key of size {key.size}"
        )
    return key.curve.msm(key.generators, vector)


def coordinates(points):
    """점 리스트를 좌표 정수 리스트로 펼친다. 무한원점은 (0, 0)."""
    coords = []
    for p in points:
        if p is None:
            coords.extend((0, 0))
        else:
            coords.extend((int(p[0]), int(p[1])))
    return coords

