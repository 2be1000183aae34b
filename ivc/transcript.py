"""
IVC 트랜스크립트 (Random Oracle)
=================================

Fiat-Shamir 변환과 누적기 해시에 쓰이는 Poseidon 스타일 스펀지.

**왜 SHA-256이 아닌가?**
  증강 회로는 이전 스텝의 해시와 폴딩 챌린지를 **회로 안에서** 다시 계산한다.
  SHA-256은 비트 연산이라 R1CS 제약이 수만 개 필요하지만,
  Poseidon은 FR 위의 덧셈/곱셈만 사용하므로 수십~수백 개면 충분하다.

**Poseidon 순열**:
  상태 state[0..t) 에 대해 라운드마다

    1. AddRoundConstants:  state[i] += c[r][i]
    2. S-box:              x → x⁵  (full 라운드: 모든 원소, partial 라운드: state[0]만)
    3. MDS 혼합:           state = M · state   (Cauchy 행렬)

  라운드 배치: R_F/2 full → R_P partial → R_F/2 full

**스펀지 (duplex)**:
  state = [capacity | rate]. absorb 는 rate 칸에 원소를 더하고,
  rate 가 가득 차면 순열을 적용한다. squeeze_challenge 는 순열 후 state[capacity] 를 반환한다.

네이티브(Transcript)와 회로 가젯(TranscriptVar)은 호출 순서가 완전히 같아야
같은 챌린지를 만든다.

사용 예시:
    >>> t = Transcript(poseidon_config())
    >>> t.absorb([FR(1), FR(2)])
    >>> r = t.squeeze_challenge()
"""

import hashlib
from dataclasses import dataclass, field

from ivc.constraint_system import LinearCombination
from ivc.field import FR, CURVE_ORDER, to_fr
from ivc.gadgets import mul


# ─────────────────────────────────────────────────────────────────────
# 설정
# ─────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PoseidonConfig:
    """Poseidon 스펀지 설정.

    Attributes:
        width: 상태 크기 t (rate = t - 1, capacity = 1)
        full_rounds: R_F (짝수)
        partial_rounds: R_P
        alpha: S-box 지수 (5)
        seed: 라운드 상수 유도용 문자열

    라운드 상수와 MDS 행렬은 위 값들로부터 결정적으로 유도되며 동등성 비교에 쓰이지 않는다.
    """
    width: int = 5
    full_rounds: int = 8
    partial_rounds: int = 56
    alpha: int = 5
    seed: str = "ivc-poseidon"
    round_constants: tuple = field(init=False, repr=False, compare=False)
    mds: tuple = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.width < 2:
            raise ValueError(f"poseidon width must be at least 2, got {self.width}")
        if self.full_rounds < 2 or self.full_rounds % 2:
            raise ValueError(f"full_rounds must be a positive even number, got {self.full_rounds}")
        if self.partial_rounds < 0:
            raise ValueError(f"partial_rounds must be non-negative, got {self.partial_rounds}")
        if self.alpha != 5:
            raise ValueError(f"only alpha = 5 is supported, got {self.alpha}")
        object.__setattr__(self, "round_constants", _round_constants(self))
        object.__setattr__(self, "mds", _cauchy_mds(self.width))

    capacity = 1

    @property
    def rate(self):
        return self.width - self.capacity

    @property
    def num_rounds(self):
        return self.full_rounds + self.partial_rounds

    def is_full_round(self, rnd):
        half = self.full_rounds // 2
        return rnd < half or rnd >= half + self.partial_rounds


def poseidon_config(width=5, full_rounds=8, partial_rounds=56, seed="ivc-poseidon"):
    """기본 Poseidon 설정 (t = 5, R_F = 8, R_P = 56)."""
    return PoseidonConfig(width=width, full_rounds=full_rounds,
                          partial_rounds=partial_rounds, seed=seed)


def _round_constants(config):
    constants = []
    for rnd in range(config.num_rounds):
        row = []
        for i in range(config.width):
            data = f"{config.seed}:{config.width}:{rnd}:{i}".encode()
            row.append(FR(int.from_bytes(hashlib.sha256(data).digest(), "big") % CURVE_ORDER))
        constants.append(tuple(row))
    return tuple(constants)


def _cauchy_mds(width):
    """M[i][j] = 1 / (xᵢ + yⱼ),  xᵢ = i, yⱼ = t + j (모두 다르므로 가역)."""
    return tuple(
        tuple(FR(1) / FR(i + width + j) for j in range(width))
        for i in range(width)
    )


# ─────────────────────────────────────────────────────────────────────
# 네이티브 순열 / 스펀지
# ─────────────────────────────────────────────────────────────────────

def permute(config, state):
    """Poseidon 순열 (네이티브)."""
    state = list(state)
    for rnd in range(config.num_rounds):
        state = [s + c for s, c in zip(state, config.round_constants[rnd])]
        if config.is_full_round(rnd):
            state = [s ** config.alpha for s in state]
        else:
            state[0] = state[0] ** config.alpha
        state = [
            sum((m * s for m, s in zip(row, state)), FR(0))
            for row in config.mds
        ]
    return state


class Transcript:
    """네이티브 Poseidon 스펀지."""

    def __init__(self, config):
        self.config = config
        self.state = [FR(0)] * config.width
        self.pos = 0

    def absorb(self, elements):
        for e in elements:
            if self.pos == self.config.rate:
                self.state = permute(self.config, self.state)
                self.pos = 0
            idx = self.config.capacity + self.pos
            self.state[idx] = self.state[idx] + to_fr(e)
            self.pos += 1

    def squeeze_challenge(self):
        self.state = permute(self.config, self.state)
        self.pos = 0
        return self.state[self.config.capacity]


def hash_elements(config, elements):
    """원소 리스트의 Poseidon 해시 (absorb 후 squeeze 1회)."""
    t = Transcript(config)
    t.absorb(elements)
    return t.squeeze_challenge()


# ─────────────────────────────────────────────────────────────────────
# 회로 가젯
# ─────────────────────────────────────────────────────────────────────

def _sbox(cs, s):
    # x⁵ = ((x²)²)·x : 제약 3개
    x2 = mul(cs, s, s)
    x4 = mul(cs, x2, x2)
    return mul(cs, x4, s)


def permute_gadget(cs, config, state):
    """Poseidon 순열 (회로). 상태는 선형결합 리스트."""
    state = [LinearCombination.of(s) for s in state]
    for rnd in range(config.num_rounds):
        state = [s + c for s, c in zip(state, config.round_constants[rnd])]
        if config.is_full_round(rnd):
            state = [_sbox(cs, s) for s in state]
        else:
            state[0] = _sbox(cs, state[0])
        mixed = []
        for row in config.mds:
            acc = LinearCombination()
            for m, s in zip(row, state):
                acc = acc + s * m
            mixed.append(acc)
        state = mixed
    return state


class TranscriptVar:
    """회로 안의 Poseidon 스펀지. Transcript 와 같은 순서로 호출해야 한다."""

    def __init__(self, cs, config):
        self.cs = cs
        self.config = config
        self.state = [LinearCombination() for _ in range(config.width)]
        self.pos = 0

    def absorb(self, elements):
        for e in elements:
            if self.pos == self.config.rate:
                self.state = permute_gadget(self.cs, self.config, self.state)
                self.pos = 0
            idx = self.config.capacity + self.pos
            self.state[idx] = self.state[idx] + e
            self.pos += 1

    def squeeze_challenge(self):
        """챌린지를 선형결합으로 반환한다."""
        self.state = permute_gadget(self.cs, self.config, self.state)
        self.pos = 0
        return self.state[self.config.capacity]
